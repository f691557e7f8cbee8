# sqlplayground/orchestrator.py
import time
from dataclasses import dataclass
from typing import Dict, Any, Optional, List

# Import modules (not bare functions) so monkeypatching in tests works correctly
import sqlplayground.processors.sql_extractor as _extractor
import sqlplayground.processors.splicer as _splicer
from sqlplayground import monitoring
from sqlplayground import prompts
from sqlplayground.db import ExecutionOutcome, QueryExecutor, QueryFailure
from sqlplayground.llm_wrapper import LLMClient, LLMError

PURPOSE_CHAT = "chat"
PURPOSE_GENERATE = "generate_query"


@dataclass(frozen=True)
class Turn:
    role: str
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class ChatTurnResult:
    turn: Turn
    extracted: Optional[_extractor.ExtractedQuery] = None
    outcome: Optional[ExecutionOutcome] = None

    @property
    def sql(self) -> Optional[str]:
        return self.extracted.sql if self.extracted else None

    @property
    def sql_error(self) -> Optional[str]:
        if self.outcome is None or self.outcome.ok:
            return None
        return self.outcome.message


class ChatOrchestrator:
    """
    One chat turn per call. Holds no conversation state: the caller sends the
    whole transcript every time and appends the returned turn itself.
    """

    def __init__(self, llm: LLMClient, executor: QueryExecutor,
                 chat_model: Optional[str] = None, query_model: Optional[str] = None):
        self.llm = llm
        self.executor = executor
        self.chat_model = chat_model
        self.query_model = query_model

    async def _call_model(self, messages: List[Dict[str, str]], model: Optional[str],
                          purpose: str) -> Dict[str, Any]:
        start = time.time()
        try:
            resp = await self.llm.complete(messages, model=model)
        except LLMError:
            monitoring.observe_llm_call(start, purpose, "fail")
            raise
        monitoring.observe_llm_call(start, purpose, "success")
        monitoring.logger.info(
            "Model call completed",
            extra={"purpose": purpose, "model": resp.get("model"), "response_id": resp.get("response_id")},
        )
        return resp

    async def handle_chat(self, messages: List[Dict[str, str]]) -> ChatTurnResult:
        """
        1. Compose: system prompt (instructions + schema) + transcript
        2. Invoke model (LLMError propagates)
        3. Extract the first [SQL]...[/SQL] query
        4. Execute it if present; failures are folded into the reply
        5. Splice and return the assistant turn
        """
        composed = [prompts.system_turn(prompts.build_chat_system_prompt())]
        composed.extend({"role": m["role"], "content": m["content"]} for m in messages)

        resp = await self._call_model(composed, self.chat_model, PURPOSE_CHAT)
        reply = resp.get("text") or ""

        extracted = _extractor.extract_sql(reply)
        outcome = None
        if extracted is not None:
            try:
                outcome = await self.executor.execute(extracted.sql, source=PURPOSE_CHAT)
            except Exception as e:
                # a bad query degrades the reply, it never fails the turn
                monitoring.logger.exception("Query execution raised in chat turn")
                outcome = QueryFailure(message=str(e))

        content = _splicer.splice_response(reply, extracted, outcome)
        return ChatTurnResult(turn=Turn(role="assistant", content=content),
                              extracted=extracted, outcome=outcome)

    async def generate_query(self, question: str) -> str:
        """Single-turn prompt; the model is told to answer with bare SQL."""
        composed = [
            prompts.system_turn(prompts.build_query_system_prompt()),
            {"role": "user", "content": question},
        ]
        resp = await self._call_model(composed, self.query_model, PURPOSE_GENERATE)
        return (resp.get("text") or "").strip()
