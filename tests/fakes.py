from __future__ import annotations

from typing import Any, Iterable

from mysql_crud.client import ExecResult
from mysql_crud.rows import Rows
from mysql_crud.schema import COLUMNS_SQL

SCHEMA = {
    "user": ["id", "name", "age", "created_at", "updated_at"],
    "question": ["id", "title", "user_id", "is_deleted", "deleted_at"],
    "question_option": ["id", "question_id", "label"],
    "group": ["id", "name"],
    "section": ["id", "name"],
    "group_section": ["id", "group_id", "section_id"],
    "note": ["id", "body"],
}


class FakeClient:
    """Stands in for MySQLClient: serves information_schema from a dict and
    answers other statements from scripted responses."""

    def __init__(self, tables: dict[str, Iterable[str]] | None = None) -> None:
        self.tables = {name: list(cols) for name, cols in (tables or {}).items()}
        self.statements: list[tuple[str, tuple[Any, ...]]] = []
        self.introspected: list[str] = []
        self.exec_queue: list[ExecResult | Exception] = []
        self.debug_sql = False
        self.closed = False
        self._responses: list[tuple[str, Rows]] = []
        self._next_id = 100

    def respond(self, needle: str, columns: list[str], rows: list[tuple]) -> None:
        self._responses.append((needle, Rows(columns=columns, rows=rows)))

    def query(self, sql: str, args: Iterable[Any] | None = None) -> Rows:
        params = tuple(args or ())
        if sql == COLUMNS_SQL:
            table = params[0]
            self.introspected.append(table)
            return Rows(
                columns=["COLUMN_NAME", "COLUMN_COMMENT", "COLUMN_TYPE", "DATA_TYPE", "IS_NULLABLE"],
                rows=[(c, "", "varchar(255)", "varchar", "YES") for c in self.tables.get(table, [])],
            )
        self.statements.append((sql, params))
        if sql == "SHOW TABLES":
            return Rows(columns=["Tables_in_app"], rows=[(t,) for t in self.tables])
        for needle, response in reversed(self._responses):
            if needle in sql:
                return response
        return Rows()

    def execute(self, sql: str, args: Iterable[Any] | None = None) -> ExecResult:
        self.statements.append((sql, tuple(args or ())))
        if self.exec_queue:
            item = self.exec_queue.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        result = ExecResult(last_insert_id=self._next_id, rows_affected=1)
        self._next_id += 1
        return result

    def close(self) -> None:
        self.closed = True


