# sqlplayground/llm_wrapper.py
"""
Language model client. Supports OpenAI and Anthropic backends.
LLMClient.complete returns a standardized dict:
{
  "text": "<assistant text>",
  "model": "<model used>",
  "response_id": "<model response id if available>",
  "raw": <raw response object>
}

Configuration (env vars):
  LLM_PROVIDER=openai|anthropic   (default: auto-detect based on available keys)
  OPENAI_API_KEY=...
  ANTHROPIC_API_KEY=...
  CHAT_LLM_MODEL=...              (default: depends on provider)
  QUERY_LLM_MODEL=...             (default: CHAT_LLM_MODEL)
  LLM_TIMEOUT=30                  (seconds per call)
  MOCK_LLM=false                  (mock mode for dev/tests)

Usage:
  llm = LLMClient()
  resp = await llm.complete(messages=[{"role": "user", "content": "hi"}])
  text = resp["text"]; model = resp["model"]; rid = resp["response_id"]
"""

import os
import time
from typing import Dict, Any, Optional, List

MOCK_LLM = os.getenv("MOCK_LLM", "false").lower() in ("1", "true", "yes")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "").strip()
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "").strip()
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "30"))

# Auto-detect provider: explicit > anthropic if key present > openai
_explicit_provider = os.getenv("LLM_PROVIDER", "").strip().lower()
if _explicit_provider in ("anthropic", "claude"):
    LLM_PROVIDER = "anthropic"
elif _explicit_provider in ("openai", "gpt"):
    LLM_PROVIDER = "openai"
elif ANTHROPIC_API_KEY:
    LLM_PROVIDER = "anthropic"
elif OPENAI_API_KEY:
    LLM_PROVIDER = "openai"
else:
    LLM_PROVIDER = "openai"

# Default models per provider
_ANTHROPIC_DEFAULT = "claude-sonnet-4-20250514"
_OPENAI_DEFAULT = "gpt-4o"

CHAT_LLM_MODEL = os.getenv(
    "CHAT_LLM_MODEL",
    _ANTHROPIC_DEFAULT if LLM_PROVIDER == "anthropic" else _OPENAI_DEFAULT
)
QUERY_LLM_MODEL = os.getenv("QUERY_LLM_MODEL", CHAT_LLM_MODEL)


class LLMError(RuntimeError):
    """Raised when the upstream model call fails (auth, timeout, quota, ...)."""


class LLMClient:
    """
    Async chat-completion client.

    Provider SDK clients are built on first use so the app can be imported
    without credentials.
    """

    def __init__(self, provider: Optional[str] = None, default_model: Optional[str] = None,
                 timeout: Optional[float] = None, mock: Optional[bool] = None):
        self.provider = provider or LLM_PROVIDER
        self.default_model = default_model or CHAT_LLM_MODEL
        self.timeout = LLM_TIMEOUT if timeout is None else timeout
        self.mock = MOCK_LLM if mock is None else mock
        self._openai = None
        self._anthropic = None

    # -----------------------------------------------------------------------
    # Anthropic backend
    # -----------------------------------------------------------------------
    async def _anthropic_chat(self, messages: List[Dict[str, str]], model: str,
                              max_tokens: int, temperature: float) -> Dict[str, Any]:
        if self._anthropic is None:
            from anthropic import AsyncAnthropic
            self._anthropic = AsyncAnthropic(api_key=ANTHROPIC_API_KEY or None)

        # Anthropic uses a separate system param, not a system message in messages list
        system_text = ""
        chat_messages = []
        for m in messages:
            if m["role"] == "system":
                system_text += m["content"] + "\n"
            else:
                chat_messages.append({"role": m["role"], "content": m["content"]})

        kwargs = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": chat_messages,
            "timeout": self.timeout,
        }
        if system_text.strip():
            kwargs["system"] = system_text.strip()

        resp = await self._anthropic.messages.create(**kwargs)

        text = ""
        for block in resp.content:
            if hasattr(block, "text"):
                text += block.text

        rid = getattr(resp, "id", None)
        return {"text": text, "model": model, "response_id": rid, "raw": resp}

    # -----------------------------------------------------------------------
    # OpenAI backend
    # -----------------------------------------------------------------------
    async def _openai_chat(self, messages: List[Dict[str, str]], model: str,
                           max_tokens: int, temperature: float) -> Dict[str, Any]:
        if self._openai is None:
            from openai import AsyncOpenAI
            self._openai = AsyncOpenAI(api_key=OPENAI_API_KEY or None)
        resp = await self._openai.chat.completions.create(
            model=model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
            timeout=self.timeout,
        )
        choices = getattr(resp, "choices", [])
        text = (choices[0].message.content or "") if choices else ""
        rid = getattr(resp, "id", None)
        return {"text": text, "model": model, "response_id": rid, "raw": resp}

    # -----------------------------------------------------------------------
    # Mock backend
    # -----------------------------------------------------------------------
    def _mock_chat(self, messages: List[Dict[str, str]], model: str) -> Dict[str, Any]:
        """
        Deterministic mock used in dev. Echoes the last user message back,
        so a user can type "[SQL]SELECT 1[/SQL]" to exercise the full round trip.
        """
        user_texts = [m["content"] for m in messages if m["role"] == "user"]
        text = user_texts[-1][:1000] if user_texts else ""
        rid = f"mock-{model}-{int(time.time() * 1000)}"
        return {"text": text, "model": model, "response_id": rid, "raw": {"mock": True}}

    async def complete(self, messages: List[Dict[str, str]], model: Optional[str] = None,
                       max_tokens: int = 4096, temperature: float = 0.0) -> Dict[str, Any]:
        """
        messages: list of {role, content}
        model: override model string
        Returns: dict with keys 'text','model','response_id','raw'
        Raises LLMError on any provider failure.
        """
        model = model or self.default_model
        if self.mock:
            return self._mock_chat(messages, model=model)
        try:
            if self.provider == "anthropic":
                return await self._anthropic_chat(messages, model=model,
                                                  max_tokens=max_tokens,
                                                  temperature=temperature)
            return await self._openai_chat(messages, model=model,
                                           max_tokens=max_tokens,
                                           temperature=temperature)
        except Exception as e:
            raise LLMError(f"LLM call failed ({self.provider}): {e}") from e
