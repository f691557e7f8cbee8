import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.pool import StaticPool

from sqlplayground.app import app, get_executor, get_orchestrator
from sqlplayground.db import QueryExecutor, make_engine
from sqlplayground.orchestrator import ChatOrchestrator

USERS = [
    (1, "alice", "alice@example.com"),
    (2, "bob", "bob@example.com"),
    (3, "carol", "carol@example.com"),
]

ORDERS = [
    (1, 1, 19.99, "Delivered"),
    (2, 1, 5.50, "Pending"),
    (3, 2, 120.00, "Delivered"),
    (4, 3, 42.00, "Cancelled"),
    (5, 3, 7.25, "Delivered"),
]


class FakeLLM:
    """Stands in for LLMClient: returns a canned reply (or raises) and records calls."""

    def __init__(self, reply: str = "", error: Exception = None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def complete(self, messages, model=None, **kwargs):
        self.calls.append({"messages": messages, "model": model})
        if self.error is not None:
            raise self.error
        return {"text": self.reply, "model": model or "fake-model",
                "response_id": f"fake-{len(self.calls)}", "raw": {}}


async def seed(engine):
    async with engine.begin() as conn:
        await conn.exec_driver_sql(
            "CREATE TABLE Users (id INTEGER PRIMARY KEY, username TEXT, email TEXT)"
        )
        await conn.exec_driver_sql("INSERT INTO Users (id, username, email) VALUES (?, ?, ?)", USERS)
        await conn.exec_driver_sql(
            "CREATE TABLE Orders (order_id INTEGER PRIMARY KEY, user_id INTEGER, "
            "total_amount REAL, status TEXT)"
        )
        await conn.exec_driver_sql(
            "INSERT INTO Orders (order_id, user_id, total_amount, status) VALUES (?, ?, ?, ?)", ORDERS
        )


# In-memory database shared by every connection of the test, seeded fresh per test
@pytest_asyncio.fixture(scope="function")
async def engine():
    eng = make_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    await seed(eng)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture(scope="function")
async def executor(engine):
    return QueryExecutor(engine)


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest_asyncio.fixture(scope="function")
async def client(executor, fake_llm):
    orch = ChatOrchestrator(llm=fake_llm, executor=executor)
    app.dependency_overrides[get_executor] = lambda: executor
    app.dependency_overrides[get_orchestrator] = lambda: orch

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
