from __future__ import annotations

import logging
from typing import Any, Iterable

from .guardrails import split_placeholders


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def log_extra(**kwargs: Any) -> dict[str, Any]:
    return {k: v for k, v in kwargs.items() if v is not None}


def full_sql(sql: str, args: Iterable[Any] | None = None) -> str:
    """Substitute each ``?`` with its quoted argument so the statement can be pasted.

    Question marks inside quoted literals are left alone; placeholders
    without a matching argument stay as ``?``.
    """
    pieces = split_placeholders(sql)
    values = list(args or ())
    out = [pieces[0]]
    for index, piece in enumerate(pieces[1:]):
        out.append(f"'{values[index]}'" if index < len(values) else "?")
        out.append(piece)
    return "".join(out)
