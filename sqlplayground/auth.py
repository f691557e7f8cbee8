# sqlplayground/auth.py
"""
Optional API key check and per-key rate limiting for /api/* routes.

This controls who can reach the endpoints, not what SQL they may run.

Env vars:
- MOCK_AUTH (default: true): bypass auth in dev
- API_KEYS: comma-separated allowed keys
- API_KEYS_FILE: optional path to file with one key per line
- RATE_LIMIT_PER_MINUTE (default: 60)
"""

import os
import time
import threading
from typing import Optional, Tuple, Dict, Set, Iterable

MOCK_AUTH = os.getenv("MOCK_AUTH", "true").lower() in ("1", "true", "yes")
RATE_LIMIT_PER_MINUTE = int(os.getenv("RATE_LIMIT_PER_MINUTE", "60"))
API_KEYS_ENV = os.getenv("API_KEYS", "")
API_KEYS_FILE = os.getenv("API_KEYS_FILE", "")

API_KEY_HEADER = "x-api-key"


def _clean(keys: Iterable[str]) -> Set[str]:
    return {k.strip() for k in keys if k and k.strip()}


def load_api_keys(env_value: str = API_KEYS_ENV, path: str = API_KEYS_FILE) -> Set[str]:
    keys = _clean(env_value.split(","))
    if path and os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            keys |= _clean(f)
    return keys


API_KEYS = load_api_keys()


class FixedWindowLimiter:
    """Per-process fixed-window counter, one window per wall-clock minute."""

    def __init__(self, limit_per_minute: int = 60, clock=time.time):
        self.limit = limit_per_minute
        self._clock = clock
        self._windows: Dict[str, Tuple[int, int]] = {}  # key -> (minute, count)
        self._lock = threading.Lock()

    def allow_request(self, key: str) -> Tuple[bool, int]:
        minute = int(self._clock()) // 60
        with self._lock:
            seen_minute, count = self._windows.get(key, (minute, 0))
            if seen_minute != minute:
                count = 0
            if count >= self.limit:
                return False, 0
            self._windows[key] = (minute, count + 1)
            return True, self.limit - (count + 1)

    def reset(self):
        with self._lock:
            self._windows.clear()


_rate_limiter = FixedWindowLimiter(RATE_LIMIT_PER_MINUTE)


def is_key_allowed(api_key: Optional[str]) -> bool:
    """Check if API key is valid. If MOCK_AUTH=true, always returns True."""
    if MOCK_AUTH:
        return True
    return bool(api_key) and api_key in API_KEYS


def check_rate_limit(api_key: str) -> Tuple[bool, Optional[int]]:
    """Check and consume quota. Returns (allowed, remaining)."""
    if MOCK_AUTH:
        return True, None
    if not api_key:
        return False, 0
    return _rate_limiter.allow_request(api_key)
