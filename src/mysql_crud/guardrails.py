from __future__ import annotations

import re

from .errors import GuardrailError

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.([A-Za-z_][A-Za-z0-9_]*|\*))?$")


def sanitize_identifier(identifier: str, field_name: str) -> str:
    if not isinstance(identifier, str) or not _IDENTIFIER_RE.match(identifier):
        raise GuardrailError(f"Invalid identifier for {field_name}")
    return identifier


def quote_identifier(identifier: str, field_name: str = "identifier") -> str:
    return f"`{sanitize_identifier(identifier, field_name)}`"


def quote_field(name: str) -> str:
    """Quote ``column`` or ``table.column`` (``table.*`` allowed) with backticks."""
    if name == "*":
        return name
    if not isinstance(name, str) or not _FIELD_RE.match(name):
        raise GuardrailError(f"Invalid field name: {name!r}")
    return ".".join(part if part == "*" else f"`{part}`" for part in name.split("."))


def detect_statement_type(sql: str) -> str:
    stripped = sql.strip().split()
    if not stripped:
        raise GuardrailError("SQL statement is empty")
    return stripped[0].upper()


def is_select(sql: str) -> bool:
    try:
        return detect_statement_type(sql) == "SELECT"
    except GuardrailError:
        return False


def split_placeholders(sql: str) -> list[str]:
    """Split ``sql`` around its ``?`` placeholders, ignoring those in quoted text.

    The result always holds one more piece than there are placeholders.
    """
    pieces: list[str] = []
    current: list[str] = []
    quote: str | None = None
    i = 0
    while i < len(sql):
        char = sql[i]
        if quote:
            current.append(char)
            if char == "\\" and i + 1 < len(sql):
                current.append(sql[i + 1])
                i += 2
                continue
            if char == quote:
                quote = None
        elif char in ("'", '"', "`"):
            quote = char
            current.append(char)
        elif char == "?":
            pieces.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1
    pieces.append("".join(current))
    return pieces
