# sqlplayground/schemas.py
from typing import List, Optional, Any, Dict, Literal
from pydantic import BaseModel, ConfigDict, Field, model_validator


class TurnIn(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    messages: List[TurnIn] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _require_user_turn(self):
        # Anthropic rejects a conversation with no user/assistant messages
        if not any(m.role == "user" for m in self.messages):
            raise ValueError("messages must contain at least one user turn")
        return self


class ChatResponse(BaseModel):
    response: str
    display: str
    sql: Optional[str] = None
    sql_error: Optional[str] = None


class GenerateQueryRequest(BaseModel):
    question: str


class GenerateQueryResponse(BaseModel):
    query: str


class QueryRequest(BaseModel):
    sql: str
    params: Optional[List[Any]] = None


class ColumnSpec(BaseModel):
    name: str
    type: Optional[Any] = None


class QueryResponse(BaseModel):
    columns: List[ColumnSpec]
    rows: List[Dict[str, Any]]
    row_count: int


class PredefinedQuery(BaseModel):
    name: str
    query: str
