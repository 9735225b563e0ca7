"""Lazily populated cache of table column metadata.

Each table is introspected through ``information_schema.COLUMNS`` the first
time it is referenced. Tables that do not exist, or whose introspection
failed, are cached as an empty :class:`TableSchema` so later feature checks
(``is_deleted``, ``created_at`` ...) answer "absent" without another round trip.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Mapping

from .errors import ExecutionError
from .logging_utils import log_extra

if TYPE_CHECKING:
    from .client import MySQLClient

COLUMNS_SQL = (
    "SELECT COLUMN_NAME, COLUMN_COMMENT, COLUMN_TYPE, DATA_TYPE, IS_NULLABLE "
    "FROM information_schema.`COLUMNS` "
    "WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = ? "
    "ORDER BY ORDINAL_POSITION"
)

_TYPE_KINDS = {
    "integer": {"tinyint", "smallint", "mediumint", "int", "integer", "bigint", "bit", "year"},
    "decimal": {"decimal", "numeric"},
    "float": {"float", "double", "real"},
    "string": {"char", "varchar", "tinytext", "text", "mediumtext", "longtext", "enum", "set"},
    "datetime": {"date", "datetime", "timestamp", "time"},
    "binary": {"binary", "varbinary", "tinyblob", "blob", "mediumblob", "longblob"},
    "json": {"json"},
}


def normalize_data_type(data_type: str) -> str:
    lowered = (data_type or "").lower()
    for kind, names in _TYPE_KINDS.items():
        if lowered in names:
            return kind
    return "other"


@dataclass(frozen=True)
class Column:
    name: str
    comment: str = ""
    column_type: str = ""
    data_type: str = ""
    nullable: bool = True

    @property
    def kind(self) -> str:
        return normalize_data_type(self.data_type)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Column":
        return cls(
            name=row["COLUMN_NAME"],
            comment=row.get("COLUMN_COMMENT") or "",
            column_type=row.get("COLUMN_TYPE") or "",
            data_type=row.get("DATA_TYPE") or "",
            nullable=str(row.get("IS_NULLABLE", "YES")).upper() == "YES",
        )


@dataclass(frozen=True)
class TableSchema:
    table: str
    columns: Mapping[str, Column] = field(default_factory=dict)

    def has(self, column: str) -> bool:
        return column in self.columns

    def __contains__(self, column: object) -> bool:
        return column in self.columns

    def __iter__(self) -> Iterator[str]:
        return iter(self.columns)

    def __len__(self) -> int:
        return len(self.columns)

    def get(self, column: str) -> Column | None:
        return self.columns.get(column)


class SchemaCatalog:
    """Table name -> :class:`TableSchema`, shared by every clone of a ``Crud``.

    Writes happen under a lock; two threads touching the same new table may
    both introspect it and the last write wins.
    """

    def __init__(self, client: "MySQLClient") -> None:
        self._client = client
        self._tables: dict[str, TableSchema] = {}
        self._lock = threading.Lock()
        self._log = logging.getLogger(__name__)

    def columns_of(self, table: str) -> TableSchema:
        with self._lock:
            cached = self._tables.get(table)
        if cached is not None:
            return cached
        schema = self._fetch(table)
        with self._lock:
            self._tables[table] = schema
        return schema

    def has_table(self, table: str) -> bool:
        return len(self.columns_of(table)) > 0

    def has_column(self, table: str, column: str) -> bool:
        return self.columns_of(table).has(column)

    def warm(self, tables: Iterable[str]) -> int:
        """Populate several tables up front; returns how many exist."""
        return sum(1 for table in tables if self.has_table(table))

    def prime(self, table: str, columns: Iterable[Column | str]) -> TableSchema:
        cols = {}
        for col in columns:
            column = col if isinstance(col, Column) else Column(name=col)
            cols[column.name] = column
        schema = TableSchema(table=table, columns=cols)
        with self._lock:
            self._tables[table] = schema
        return schema

    def tables(self) -> list[str]:
        with self._lock:
            return [name for name, schema in self._tables.items() if len(schema)]

    def _fetch(self, table: str) -> TableSchema:
        try:
            rows = self._client.query(COLUMNS_SQL, (table,)).maps()
        except ExecutionError as exc:
            self._log.warning(
                "Schema introspection failed; caching empty schema",
                extra=log_extra(table=table, error_message=str(exc)),
            )
            return TableSchema(table=table)
        columns = {}
        for row in rows:
            column = Column.from_row(row)
            columns[column.name] = column
        if not columns:
            self._log.debug(f"No columns found for table {table}")
        return TableSchema(table=table, columns=columns)
