# sqlplayground/processors/sql_extractor.py
import re
from dataclasses import dataclass
from typing import Optional

from sqlplayground.prompts import SQL_OPEN, SQL_CLOSE

# Non-greedy so the first [/SQL] after the first [SQL] closes the span.
SQL_SPAN_RE = re.compile(re.escape(SQL_OPEN) + r"([\s\S]*?)" + re.escape(SQL_CLOSE))


@dataclass(frozen=True)
class ExtractedQuery:
    sql: str   # interior, trimmed
    span: str  # full "[SQL]...[/SQL]" text it came from


def extract_sql(text: str) -> Optional[ExtractedQuery]:
    """
    Return the first delimited query in `text`, or None.

    None covers: no delimiters, an opening delimiter with no closing one,
    and an empty interior. Later spans are ignored.
    """
    if not isinstance(text, str):
        return None
    m = SQL_SPAN_RE.search(text)
    if m is None:
        return None
    sql = m.group(1).strip()
    if not sql:
        return None
    return ExtractedQuery(sql=sql, span=m.group(0))
