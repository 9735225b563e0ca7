from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Sequence, TypeVar

if TYPE_CHECKING:
    from .records import Record

R = TypeVar("R", bound="Record")


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


@dataclass
class Rows:
    """Fully fetched result set of one statement."""

    columns: list[str] = field(default_factory=list)
    rows: list[Sequence[Any]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def maps(self) -> list[dict[str, Any]]:
        return [dict(zip(self.columns, row)) for row in self.rows]

    def strings(self) -> list[dict[str, str]]:
        return [
            {col: _text(value) for col, value in zip(self.columns, row)}
            for row in self.rows
        ]

    def first(self) -> dict[str, str]:
        strings = self.strings()
        return strings[0] if strings else {}

    def grid(self) -> tuple[dict[str, int], list[list[str]]]:
        index = {col: i for i, col in enumerate(self.columns)}
        return index, [[_text(value) for value in row] for row in self.rows]

    def scalar(self, column: str | None = None) -> Any:
        if not self.rows:
            return None
        if column is None:
            return self.rows[0][0] if self.columns else None
        return self.maps()[0].get(column)

    def into(self, record_type: type[R]) -> list[R]:
        return [record_type.from_row(row) for row in self.maps()]
