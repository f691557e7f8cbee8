# api/index.py
"""
Vercel Serverless Function adapter.

Vercel's Python runtime looks for a variable named `app` (ASGI) or `handler` (WSGI).
FastAPI is ASGI, so we just re-export it as `app`.
"""
import sys
import os

# Ensure project root is on the Python path so `sqlplayground.*` imports resolve.
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

# Serverless defaults; real deployments set DATABASE_URL to the hosted Postgres
os.environ.setdefault("MOCK_AUTH", "true")
os.environ.setdefault("PROMETHEUS_ENABLED", "false")

# Filesystem is read-only except /tmp
if not os.environ.get("DATABASE_URL"):
    os.environ["DATABASE_URL"] = "sqlite+aiosqlite:////tmp/playground.db"

from dotenv import load_dotenv
load_dotenv(os.path.join(ROOT, ".env"), override=True)

from sqlplayground.app import app  # noqa: F401,E402  Vercel uses this
