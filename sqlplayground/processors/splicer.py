# sqlplayground/processors/splicer.py
"""
Text transforms applied to assistant replies.

- splice_response: replaces the first [SQL]...[/SQL] span with the executed
  query and its results (or the execution error). Its output is what the
  client stores in the transcript and sends back to the model.
- format_for_display: cosmetic, lossy rewrite for rendering only. Strips every
  span, flattens JSON objects to "key: value" text and breaks lines after
  sentences. Never feed its output back to the model.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Optional

from sqlplayground.db import ExecutionOutcome, QuerySuccess, binary_to_text
from sqlplayground.processors.sql_extractor import ExtractedQuery, SQL_SPAN_RE

SUCCESS_TEMPLATE = "Here is the query I used:\n\n{sql}\n\nAnd here are the results:\n\n{results}"
FAILURE_TEMPLATE = "I encountered an error while executing the query: {message}"
DISPLAY_SQL_MARKER = "I used the following SQL query:"

_BRACED_RE = re.compile(r"\{[\s\S]*?\}")


def _json_default(value: Any) -> str:
    encoded = binary_to_text(value)
    return encoded if isinstance(encoded, str) else str(encoded)


def render_rows(rows) -> str:
    return json.dumps(rows, indent=2, default=_json_default, ensure_ascii=False)


def render_outcome(extracted: ExtractedQuery, outcome: ExecutionOutcome) -> str:
    if isinstance(outcome, QuerySuccess):
        return SUCCESS_TEMPLATE.format(sql=extracted.sql, results=render_rows(outcome.result.rows))
    return FAILURE_TEMPLATE.format(message=outcome.message)


def splice_response(text: str, extracted: Optional[ExtractedQuery],
                    outcome: Optional[ExecutionOutcome]) -> str:
    """Replace the first delimited span of `text` with the rendered outcome."""
    if extracted is None or outcome is None:
        return text
    replacement = render_outcome(extracted, outcome)
    # callable replacement: inserted literally, no backreference expansion
    return SQL_SPAN_RE.sub(lambda _m: replacement, text, count=1)


@dataclass(frozen=True)
class JsonParse:
    ok: bool
    value: Any = None
    error: Optional[str] = None


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def try_parse_json(fragment: str) -> JsonParse:
    """Strict parse: NaN and Infinity are rejected like a browser's JSON.parse."""
    try:
        return JsonParse(ok=True, value=json.loads(fragment, parse_constant=_reject_constant))
    except (ValueError, TypeError) as e:
        return JsonParse(ok=False, error=str(e))


_INDEX_KEY_RE = re.compile(r"(0|[1-9][0-9]*)")
_MAX_INDEX_KEY = 2 ** 32 - 2


def _is_index_key(key: str) -> bool:
    return bool(_INDEX_KEY_RE.fullmatch(key)) and int(key) <= _MAX_INDEX_KEY


def _browser_key_order(obj: dict) -> list:
    # integer-like keys first in ascending order, then the rest in insertion order
    index_keys = sorted((k for k in obj if _is_index_key(k)), key=int)
    return index_keys + [k for k in obj if not _is_index_key(k)]


def _display_value(value: Any) -> str:
    # mirror how a browser stringifies JSON values
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, list):
        return ",".join("" if v is None else _display_value(v) for v in value)
    if isinstance(value, dict):
        return "[object Object]"
    return str(value)


def _flatten_object(match: "re.Match") -> str:
    parsed = try_parse_json(match.group(0))
    if not parsed.ok or not isinstance(parsed.value, dict):
        return match.group(0)
    obj = parsed.value
    return ", ".join(f"{k}: {_display_value(obj[k])}" for k in _browser_key_order(obj))


def format_for_display(text: str) -> str:
    text = SQL_SPAN_RE.sub(lambda _m: DISPLAY_SQL_MARKER, text)
    text = _BRACED_RE.sub(_flatten_object, text)
    return text.replace(". ", ".\n")
