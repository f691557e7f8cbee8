# tests/test_orchestrator.py
import pytest

from sqlplayground import prompts
from sqlplayground.db import QueryExecutor
from sqlplayground.llm_wrapper import LLMError
from sqlplayground.orchestrator import ChatOrchestrator
from tests.conftest import FakeLLM


class CountingExecutor(QueryExecutor):
    def __init__(self, db_engine):
        super().__init__(db_engine)
        self.executed = []

    async def execute(self, sql, params=None, source="direct"):
        self.executed.append(sql)
        return await super().execute(sql, params, source=source)


class ExplodingExecutor:
    async def execute(self, sql, params=None, source="direct"):
        raise RuntimeError("connection pool exhausted")


TRANSCRIPT = [
    {"role": "user", "content": "hi"},
    {"role": "assistant", "content": "Hello! Ask me about the shop."},
    {"role": "user", "content": "how many orders exist"},
]


@pytest.mark.asyncio
async def test_prompt_composition_and_single_model_call(engine):
    llm = FakeLLM(reply="There are some orders.")
    orch = ChatOrchestrator(llm=llm, executor=CountingExecutor(engine), chat_model="chat-x")

    result = await orch.handle_chat(TRANSCRIPT)

    assert len(llm.calls) == 1
    sent = llm.calls[0]["messages"]
    assert llm.calls[0]["model"] == "chat-x"
    assert sent[0] == {"role": "system", "content": prompts.build_chat_system_prompt()}
    assert sent[1:] == TRANSCRIPT
    assert result.turn.role == "assistant"
    assert result.turn.content == "There are some orders."


@pytest.mark.asyncio
async def test_no_sql_means_no_execution(engine):
    ex = CountingExecutor(engine)
    orch = ChatOrchestrator(llm=FakeLLM(reply="Just chatting."), executor=ex)
    result = await orch.handle_chat(TRANSCRIPT)
    assert ex.executed == []
    assert result.extracted is None and result.outcome is None
    assert result.sql is None and result.sql_error is None


@pytest.mark.asyncio
async def test_sql_executed_once_and_spliced(engine):
    ex = CountingExecutor(engine)
    llm = FakeLLM(reply="Let me check.[SQL]SELECT COUNT(*) AS c FROM Orders[/SQL]")
    orch = ChatOrchestrator(llm=llm, executor=ex)

    result = await orch.handle_chat(TRANSCRIPT)

    assert ex.executed == ["SELECT COUNT(*) AS c FROM Orders"]
    assert result.sql == "SELECT COUNT(*) AS c FROM Orders"
    assert "SELECT COUNT(*) AS c FROM Orders" in result.turn.content
    assert '"c": 5' in result.turn.content
    assert result.turn.content.startswith("Let me check.Here is the query I used:")


@pytest.mark.asyncio
async def test_only_first_query_is_executed(engine):
    ex = CountingExecutor(engine)
    llm = FakeLLM(reply="[SQL]SELECT COUNT(*) AS n FROM Users[/SQL] and [SQL]DELETE FROM Users[/SQL]")
    orch = ChatOrchestrator(llm=llm, executor=ex)

    result = await orch.handle_chat(TRANSCRIPT)

    assert ex.executed == ["SELECT COUNT(*) AS n FROM Users"]
    assert result.turn.content.endswith("[SQL]DELETE FROM Users[/SQL]")
    still_there = await ex.execute("SELECT COUNT(*) AS n FROM Users")
    assert still_there.result.rows == [{"n": 3}]


@pytest.mark.asyncio
async def test_query_failure_folded_into_reply(engine):
    orch = ChatOrchestrator(llm=FakeLLM(reply="[SQL]SELECT * FROM NoSuchTable[/SQL]"),
                            executor=CountingExecutor(engine))
    result = await orch.handle_chat(TRANSCRIPT)
    assert result.turn.content.startswith("I encountered an error while executing the query:")
    assert "no such table" in result.sql_error.lower()


@pytest.mark.asyncio
async def test_unexpected_executor_error_still_returns_turn():
    orch = ChatOrchestrator(llm=FakeLLM(reply="ok [SQL]SELECT 1[/SQL]"), executor=ExplodingExecutor())
    result = await orch.handle_chat(TRANSCRIPT)
    assert result.turn.content == "ok I encountered an error while executing the query: connection pool exhausted"


@pytest.mark.asyncio
async def test_model_failure_propagates(engine):
    ex = CountingExecutor(engine)
    orch = ChatOrchestrator(llm=FakeLLM(error=LLMError("rate limited")), executor=ex)
    with pytest.raises(LLMError):
        await orch.handle_chat(TRANSCRIPT)
    assert ex.executed == []


@pytest.mark.asyncio
async def test_generate_query_single_turn_prompt(engine):
    llm = FakeLLM(reply="  SELECT COUNT(*) AS total_users FROM Users\n")
    orch = ChatOrchestrator(llm=llm, executor=CountingExecutor(engine), query_model="query-x")

    query = await orch.generate_query("How many users are there?")

    assert query == "SELECT COUNT(*) AS total_users FROM Users"
    assert llm.calls[0]["model"] == "query-x"
    assert llm.calls[0]["messages"] == [
        {"role": "system", "content": prompts.build_query_system_prompt()},
        {"role": "user", "content": "How many users are there?"},
    ]
