"""Immutable SELECT builder.

Every method returns a new :class:`Predicate`; the receiver is left as it
was, so a shared base query can be branched from any number of threads::

    base = Predicate().for_table("user")
    adults = base.where("age >= ?", 18)
    admins = base.where("role = ?", "admin")   # does not see the age filter
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from .errors import ArgumentError
from .guardrails import quote_field, quote_identifier


@dataclass(frozen=True)
class Predicate:
    wheres: tuple[str, ...] = ()
    args: tuple[Any, ...] = ()
    joins: tuple[str, ...] = ()
    fields: tuple[str, ...] | None = None
    table: str | None = None

    def where(self, fragment: str, *args: Any) -> "Predicate":
        if not fragment or not fragment.strip():
            raise ArgumentError("WHERE fragment must not be empty")
        return replace(
            self,
            wheres=self.wheres + (fragment.strip(),),
            args=self.args + args,
        )

    def join(self, fragment: str) -> "Predicate":
        if not fragment or not fragment.strip():
            raise ArgumentError("JOIN fragment must not be empty")
        return replace(self, joins=self.joins + (fragment.strip(),))

    def select_fields(self, *names: str) -> "Predicate":
        for name in names:
            quote_field(name)
        return replace(self, fields=tuple(names) if names else None)

    def for_table(self, name: str) -> "Predicate":
        quote_identifier(name, "table")
        return replace(self, table=name)

    def render(self) -> tuple[str, list[Any]]:
        fields = ", ".join(quote_field(f) for f in self.fields) if self.fields else "*"
        return self._render(fields)

    def render_count(self) -> tuple[str, list[Any]]:
        return self._render("COUNT(*)")

    def _render(self, select: str) -> tuple[str, list[Any]]:
        if not self.table:
            raise ArgumentError("No table set on query")
        parts = [f"SELECT {select} FROM {quote_identifier(self.table, 'table')}"]
        parts.extend(self.joins)
        if self.wheres:
            parts.append("WHERE " + " AND ".join(f"({w})" for w in self.wheres))
        return " ".join(parts), list(self.args)
