# sqlplayground/app.py
import time
from contextlib import asynccontextmanager
from typing import Annotated

# Load .env BEFORE any sqlplayground imports (they read env vars at import time)
from dotenv import load_dotenv
load_dotenv(override=True)

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response, PlainTextResponse

from sqlplayground import auth as authmod
from sqlplayground import db as dbmod
from sqlplayground import monitoring
from sqlplayground import query_catalog
from sqlplayground.llm_wrapper import LLMClient, LLMError, CHAT_LLM_MODEL, QUERY_LLM_MODEL
from sqlplayground.orchestrator import ChatOrchestrator
from sqlplayground.processors.splicer import format_for_display
from sqlplayground.schemas import (
    ChatRequest, ChatResponse,
    GenerateQueryRequest, GenerateQueryResponse,
    PredefinedQuery, QueryRequest, QueryResponse,
)

E_BAD_REQUEST = "E_BAD_REQUEST"
E_LLM_FAILED = "E_LLM_FAILED"
E_QUERY_FAILED = "E_QUERY_FAILED"
E_NOT_FOUND = "E_NOT_FOUND"
E_INTERNAL = "E_INTERNAL"

# the app's collaborators, built once and handed out through the dependencies below
executor = dbmod.QueryExecutor()
orchestrator = ChatOrchestrator(
    llm=LLMClient(),
    executor=executor,
    chat_model=CHAT_LLM_MODEL,
    query_model=QUERY_LLM_MODEL,
)


def get_executor() -> dbmod.QueryExecutor:
    return executor


def get_orchestrator() -> ChatOrchestrator:
    return orchestrator


executor_dep = Annotated[dbmod.QueryExecutor, Depends(get_executor)]
orchestrator_dep = Annotated[ChatOrchestrator, Depends(get_orchestrator)]


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await executor.engine.dispose()


app = FastAPI(title="SQL Playground API", lifespan=lifespan)


def _error(status_code: int, error: str, error_code: str, **extra) -> JSONResponse:
    content = {"error": error, "error_code": error_code}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


# ---------------------------------------------------------------------------
# Auth + rate-limit middleware (runs first on /api/* paths)
# ---------------------------------------------------------------------------
@app.middleware("http")
async def api_key_and_rate_limit_middleware(request: Request, call_next):
    if not request.url.path.startswith("/api/"):
        return await call_next(request)

    api_key = request.headers.get(authmod.API_KEY_HEADER)
    if not authmod.is_key_allowed(api_key):
        return _error(401, "Missing or invalid API key", "E_UNAUTHORIZED")

    allowed, _remaining = authmod.check_rate_limit(api_key or "")
    if not allowed:
        resp = _error(429, "Rate limit exceeded", "E_RATE_LIMIT")
        resp.headers["Retry-After"] = "60"
        return resp

    return await call_next(request)


# ---------------------------------------------------------------------------
# Metrics middleware
# ---------------------------------------------------------------------------
@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start = time.time()
    endpoint = request.url.path
    method = request.method
    status = "500"
    try:
        response = await call_next(request)
        status = str(response.status_code)
        return response
    except Exception:
        monitoring.logger.exception("Unhandled exception in request", extra={"path": endpoint})
        raise
    finally:
        monitoring.observe_request(start, endpoint, method, status)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    monitoring.logger.info("Rejected malformed request", extra={"path": request.url.path})
    return _error(422, "Invalid request body", E_BAD_REQUEST, details=jsonable_encoder(exc.errors()))


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@app.post("/api/generate-query", response_model=GenerateQueryResponse)
async def generate_query(req: GenerateQueryRequest, orch: orchestrator_dep):
    """
    POST /api/generate-query
    Body: { "question": "How many users are there?" }
    """
    monitoring.logger.info("Received /api/generate-query request",
                           extra={"question_preview": req.question[:200]})
    try:
        query = await orch.generate_query(req.question)
    except LLMError:
        monitoring.logger.exception("Model call failed in /api/generate-query")
        return _error(500, "Failed to generate query", E_LLM_FAILED)
    return {"query": query}


@app.post("/api/chat-with-db", response_model=ChatResponse)
async def chat_with_db(req: ChatRequest, orch: orchestrator_dep):
    """
    POST /api/chat-with-db
    Body: { "messages": [ {"role": "user", "content": "..."}, ... ] }

    `response` is what the client appends to its transcript; `display` is a
    cosmetic rendering of it and must not be sent back.
    """
    monitoring.logger.info("Received /api/chat-with-db request", extra={"turns": len(req.messages)})
    try:
        result = await orch.handle_chat([m.model_dump() for m in req.messages])
    except LLMError:
        monitoring.logger.exception("Model call failed in /api/chat-with-db")
        return _error(500, "Failed to process chat request", E_LLM_FAILED)
    except Exception as e:
        monitoring.logger.exception("Unexpected error in /api/chat-with-db handler")
        return _error(500, "Failed to process chat request", E_INTERNAL, details={"exception": str(e)})

    content = result.turn.content
    return {
        "response": content,
        "display": format_for_display(content),
        "sql": result.sql,
        "sql_error": result.sql_error,
    }


@app.post("/api/database", response_model=QueryResponse)
async def run_query(req: QueryRequest, query_executor: executor_dep):
    """
    POST /api/database
    Body: { "sql": "SELECT ...", "params": [ ... ] }
    """
    outcome = await query_executor.execute(req.sql, req.params, source="direct")
    if not outcome.ok:
        return _error(500, "Database query failed", E_QUERY_FAILED, message=outcome.message)
    return outcome.result.to_dict()


@app.get("/api/database/tables")
async def list_tables(query_executor: executor_dep):
    try:
        tables = await query_executor.list_tables()
    except Exception as e:
        monitoring.logger.exception("Listing tables failed")
        return _error(500, "Could not list tables", E_QUERY_FAILED, message=str(e))
    return {"tables": tables}


@app.get("/api/queries")
async def list_predefined_queries():
    return {"queries": query_catalog.PREDEFINED_QUERIES}


@app.get("/api/queries/{name}", response_model=PredefinedQuery)
async def get_predefined_query(name: str):
    q = query_catalog.get_query(name)
    if q is None:
        return _error(404, f"No example query named {name!r}", E_NOT_FOUND)
    return q


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/metrics")
async def metrics():
    if not monitoring.PROMETHEUS_ENABLED:
        return PlainTextResponse("Prometheus disabled", status_code=404)
    payload, content_type = monitoring.prometheus_metrics_response()
    return Response(content=payload, media_type=content_type)
