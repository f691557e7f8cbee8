# sqlplayground/monitoring.py
"""
Centralized monitoring: Prometheus metrics, structured JSON logging, optional Sentry.

Env vars:
- PROMETHEUS_ENABLED (default: true)
- SENTRY_DSN (optional)
- LOG_AS_JSON (default: true)
- LOG_LEVEL (default: INFO)
- ENVIRONMENT (default: development)
"""

import os
import logging
import time
from typing import Tuple

import sentry_sdk
from prometheus_client import (
    Counter, Histogram, Gauge,
    generate_latest, CONTENT_TYPE_LATEST, REGISTRY,
)
from pythonjsonlogger.json import JsonFormatter

# --- ENV flags
PROMETHEUS_ENABLED = os.getenv("PROMETHEUS_ENABLED", "true").lower() in ("1", "true", "yes")
SENTRY_DSN = os.getenv("SENTRY_DSN", None)
LOG_AS_JSON = os.getenv("LOG_AS_JSON", "true").lower() in ("1", "true", "yes")
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")


# --- Logger setup
def setup_logger(name: str = "sql-playground", level: int = None) -> logging.Logger:
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO")) if level is None else level
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        if LOG_AS_JSON:
            handler.setFormatter(JsonFormatter(
                "%(asctime)s %(levelname)s %(name)s %(message)s"
            ))
        else:
            handler.setFormatter(logging.Formatter(
                "%(asctime)s %(levelname)s %(name)s %(message)s"
            ))
        logger.addHandler(handler)
    return logger


logger = setup_logger()

# --- Sentry (optional)
if SENTRY_DSN:
    sentry_sdk.init(dsn=SENTRY_DSN, environment=ENVIRONMENT)
    logger.info("Sentry initialized")


# --- Prometheus metrics
REQUEST_COUNT = Counter(
    "playground_requests_total",
    "Total /api requests",
    ["method", "endpoint", "status"],
)

REQUEST_LATENCY = Histogram(
    "playground_request_latency_seconds",
    "Request latency in seconds",
    ["endpoint"],
)

LLM_CALLS = Counter(
    "playground_llm_calls_total",
    "Language model calls",
    ["purpose", "outcome"],
)

LLM_LATENCY = Histogram(
    "playground_llm_latency_seconds",
    "Language model call latency",
    ["purpose"],
)

SQL_EXECUTIONS = Counter(
    "playground_sql_executions_total",
    "SQL statements executed",
    ["source", "outcome"],
)

SQL_LATENCY = Histogram(
    "playground_sql_latency_seconds",
    "SQL execution latency",
    ["source"],
)

LAST_RESULT_ROWS = Gauge(
    "playground_last_result_rows",
    "Rows in the last successful query result",
)


# --- Helper wrappers (never crash the app)
def observe_request(start_ts: float, endpoint: str, method: str, status: str):
    try:
        REQUEST_LATENCY.labels(endpoint=endpoint).observe(time.time() - start_ts)
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=status).inc()
    except Exception:
        pass


def observe_llm_call(start_ts: float, purpose: str, outcome: str):
    try:
        LLM_LATENCY.labels(purpose=purpose).observe(time.time() - start_ts)
        LLM_CALLS.labels(purpose=purpose, outcome=outcome).inc()
    except Exception:
        pass


def observe_sql(start_ts: float, source: str, outcome: str):
    try:
        SQL_LATENCY.labels(source=source).observe(time.time() - start_ts)
        SQL_EXECUTIONS.labels(source=source, outcome=outcome).inc()
    except Exception:
        pass


def set_last_result_rows(n: int):
    try:
        LAST_RESULT_ROWS.set(n)
    except Exception:
        pass


def prometheus_metrics_response() -> Tuple[bytes, str]:
    """Return (body_bytes, content_type) for Prometheus scrape."""
    try:
        return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
    except Exception:
        return b"", CONTENT_TYPE_LATEST
