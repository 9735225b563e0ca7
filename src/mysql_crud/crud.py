from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping, TypeVar

from .client import ExecResult, MySQLClient
from .config import AppConfig
from .errors import ArgumentError, MissingPrimaryKeyError, RelationNotFoundError
from .guardrails import is_select, quote_identifier
from .loader import EagerLoader
from .logging_utils import log_extra
from .predicate import Predicate
from .records import (
    PRIMARY_KEY,
    AfterCreate,
    AfterDelete,
    AfterFind,
    AfterUpdate,
    BeforeCreate,
    BeforeDelete,
    BeforeUpdate,
    Record,
)
from .relations import RelationResolver
from .rows import Rows
from .schema import SchemaCatalog, TableSchema

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

R = TypeVar("R", bound=Record)

_LEADING_AND_RE = re.compile(r"^\s*AND\s+", re.IGNORECASE)


def now_text() -> str:
    return datetime.now().strftime(TIME_FORMAT)


@dataclass
class BatchResult:
    """Outcome of a batch write that stops at the first failing element."""

    completed: list[Any] = field(default_factory=list)
    error: Exception | None = None
    affected: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


class Crud:
    """Entry point for reads and writes against one MySQL database.

    Chaining methods (``table``, ``where``, ``join``, ``fields``) return a
    copy carrying a new :class:`Predicate`; the client and the schema catalog
    are shared by every copy.
    """

    def __init__(
        self,
        client: MySQLClient,
        catalog: SchemaCatalog | None = None,
        predicate: Predicate | None = None,
        max_depth: int = 8,
    ) -> None:
        self._client = client
        self._catalog = catalog if catalog is not None else SchemaCatalog(client)
        self._predicate = predicate or Predicate()
        self._max_depth = max_depth
        self._resolver = RelationResolver(self._catalog)
        self._log = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config: AppConfig) -> "Crud":
        return cls(MySQLClient.from_config(config), max_depth=config.loading.max_depth)

    def _with(self, predicate: Predicate) -> "Crud":
        return Crud(
            self._client,
            catalog=self._catalog,
            predicate=predicate,
            max_depth=self._max_depth,
        )

    @property
    def client(self) -> MySQLClient:
        return self._client

    @property
    def catalog(self) -> SchemaCatalog:
        return self._catalog

    @property
    def predicate(self) -> Predicate:
        return self._predicate

    @property
    def resolver(self) -> RelationResolver:
        return self._resolver

    def debug(self, enabled: bool) -> "Crud":
        self._client.debug_sql = enabled
        return self

    def close(self) -> None:
        self._client.close()

    # Schema

    def has_table(self, table: str) -> bool:
        return self._catalog.has_table(table)

    def columns_of(self, table: str) -> TableSchema:
        return self._catalog.columns_of(table)

    def warm_catalog(self) -> int:
        """List every table with ``SHOW TABLES`` and introspect each once."""
        names = [row[0] for row in self._client.query("SHOW TABLES").rows]
        loaded = self._catalog.warm(names)
        self._log.info(f"Schema catalog warmed with {loaded} tables")
        return loaded

    # Chaining

    def table(self, name: str) -> "Crud":
        if not self.has_table(name):
            raise ArgumentError(f"Unknown table: {name}")
        return self._with(self._predicate.for_table(name))

    def where(self, fragment: str, *args: Any) -> "Crud":
        return self._with(self._predicate.where(fragment, *args))

    def join(self, fragment: str) -> "Crud":
        return self._with(self._predicate.join(fragment))

    def fields(self, *names: str) -> "Crud":
        return self._with(self._predicate.select_fields(*names))

    def render(self) -> tuple[str, list[Any]]:
        return self._predicate.render()

    def rows(self) -> Rows:
        sql, args = self._predicate.render()
        return self._client.query(sql, args)

    def maps(self) -> list[dict[str, Any]]:
        return self.rows().maps()

    def strings(self) -> list[dict[str, str]]:
        return self.rows().strings()

    def first(self) -> dict[str, str]:
        return self.rows().first()

    def grid(self) -> tuple[dict[str, int], list[list[str]]]:
        return self.rows().grid()

    def count(self) -> int:
        sql, args = self._predicate.render_count()
        return int(self._client.query(sql, args).scalar() or 0)

    def scalar_int(self, column: str | None = None) -> int:
        value = self.scalar_str(column)
        try:
            return int(value)
        except ValueError:
            return 0

    def scalar_str(self, column: str | None = None) -> str:
        row = self.first()
        if column is not None:
            return row.get(column, "")
        return next(iter(row.values()), "")

    def records(self, record_type: type[R]) -> list[R]:
        predicate = self._predicate
        if predicate.table is None:
            predicate = predicate.for_table(record_type.table_name())
        sql, args = predicate.render()
        return self._after_find(self._client.query(sql, args).into(record_type))

    # Raw SQL

    def query(self, sql: str, *args: Any) -> Rows:
        return self._client.query(sql, args)

    def execute(self, sql: str, *args: Any) -> ExecResult:
        return self._client.execute(sql, args)

    # Reads

    def find(self, record_type: type[R], *args: Any) -> list[R]:
        """Load records.

        ``find(T)`` loads every row, ``find(T, 3)`` the row with id 3,
        ``find(T, "age > ? AND role = ?", 18, "admin")`` rows matching the
        predicate and ``find(T, "SELECT ...", *args)`` runs the statement as
        given. Soft-deleted rows are left out unless raw SQL is used.
        """
        if args and isinstance(args[0], str) and is_select(args[0]):
            rows = self._client.query(args[0], args[1:])
        else:
            sql, params = self._find_statement(record_type, args)
            rows = self._client.query(sql, params)
        return self._after_find(rows.into(record_type))

    def find_one(self, record_type: type[R], *args: Any) -> R | None:
        found = self.find(record_type, *args)
        return found[0] if found else None

    def load_all(self, record_type: type[R], *args: Any) -> list[R]:
        """Like :meth:`find`, then fill nested record fields by relationship."""
        return EagerLoader(self, self._resolver, self._max_depth).load(record_type, *args)

    def load_one(self, record_type: type[R], *args: Any) -> R | None:
        found = self.load_all(record_type, *args)
        return found[0] if found else None

    def related(self, record: Record, target_type: type[R]) -> list[R]:
        link = self._resolver.resolve(target_type.table_name(), record)
        if not link.found:
            raise RelationNotFoundError(
                f"No relation from {type(record).table_name()} to {target_type.table_name()}"
            )
        return self.find(target_type, *link.as_args())

    def _find_statement(
        self, record_type: type[Record], args: tuple[Any, ...]
    ) -> tuple[str, list[Any]]:
        table = record_type.table_name()
        schema = self._require_schema(table)
        conditions = ["1"]
        params: list[Any] = []
        if len(args) == 1:
            conditions.append(f"`{PRIMARY_KEY}` = ?")
            params.append(args[0])
        elif len(args) > 1:
            predicate = args[0]
            if not isinstance(predicate, str) or not predicate.strip():
                raise ArgumentError("Filter must be a non-empty SQL predicate")
            conditions.append(f"({_LEADING_AND_RE.sub('', predicate.strip())})")
            params.extend(args[1:])
        if schema.has("is_deleted"):
            conditions.append("`is_deleted` = 0")
        sql = f"SELECT * FROM {quote_identifier(table, 'table')} WHERE {' AND '.join(conditions)}"
        return sql, params

    def _after_find(self, records: list[R]) -> list[R]:
        for record in records:
            if isinstance(record, AfterFind):
                record.after_find()
        return records

    # Writes on plain mappings

    def insert(self, table: str, values: Mapping[str, Any]) -> int | None:
        schema = self._require_schema(table)
        row = self._writable(schema, values)
        if not row.get(PRIMARY_KEY):
            row.pop(PRIMARY_KEY, None)
        now = now_text()
        if schema.has("created_at"):
            row["created_at"] = now
        if schema.has("is_deleted"):
            row["is_deleted"] = 0
        if schema.has("updated_at"):
            row["updated_at"] = now
        if not row:
            raise ArgumentError(f"Nothing to insert into {table}")
        names = ", ".join(quote_identifier(name, "column") for name in row)
        marks = ", ".join("?" for _ in row)
        result = self._client.execute(
            f"INSERT INTO {quote_identifier(table, 'table')} ({names}) VALUES ({marks})",
            list(row.values()),
        )
        return result.last_insert_id

    def update_row(self, table: str, pk: Any, values: Mapping[str, Any]) -> int:
        if pk is None or pk == "":
            raise MissingPrimaryKeyError(f"Update on {table} needs an id")
        schema = self._require_schema(table)
        row = self._writable(schema, values)
        row.pop(PRIMARY_KEY, None)
        if schema.has("updated_at"):
            row["updated_at"] = now_text()
        if not row:
            raise ArgumentError(f"Nothing to update in {table}")
        assignments = ", ".join(f"{quote_identifier(name, 'column')} = ?" for name in row)
        result = self._client.execute(
            f"UPDATE {quote_identifier(table, 'table')} SET {assignments} WHERE `{PRIMARY_KEY}` = ?",
            [*row.values(), pk],
        )
        return result.rows_affected

    def delete_row(self, table: str, pk: Any) -> int:
        """Delete one row, or flag it when the table has ``is_deleted``."""
        if pk is None or pk == "":
            raise MissingPrimaryKeyError(f"Delete on {table} needs an id")
        schema = self._require_schema(table)
        if schema.has("is_deleted"):
            values: dict[str, Any] = {"is_deleted": 1}
            if schema.has("deleted_at"):
                values["deleted_at"] = now_text()
            return self.update_row(table, pk, values)
        result = self._client.execute(
            f"DELETE FROM {quote_identifier(table, 'table')} WHERE `{PRIMARY_KEY}` = ?",
            [pk],
        )
        return result.rows_affected

    # Writes on records

    def create(self, record: Record) -> int | None:
        if isinstance(record, BeforeCreate):
            record.before_create()
        new_id = self.insert(type(record).table_name(), record.to_values())
        if new_id and type(record).field_for_column(PRIMARY_KEY) is not None:
            record.set_pk(new_id)
        if isinstance(record, AfterCreate):
            record.after_create()
        return new_id

    def update(self, record: Record) -> int:
        if record.pk is None:
            raise MissingPrimaryKeyError(f"{type(record).__name__} has no id to update")
        if isinstance(record, BeforeUpdate):
            record.before_update()
        values = record.to_values()
        values.pop("created_at", None)
        affected = self.update_row(type(record).table_name(), record.pk, values)
        if isinstance(record, AfterUpdate):
            record.after_update()
        return affected

    def delete(self, record: Record) -> int:
        if record.pk is None:
            raise MissingPrimaryKeyError(f"{type(record).__name__} has no id to delete")
        if isinstance(record, BeforeDelete):
            record.before_delete()
        affected = self.delete_row(type(record).table_name(), record.pk)
        if isinstance(record, AfterDelete):
            record.after_delete()
        return affected

    def creates(self, records: Iterable[Record]) -> BatchResult:
        return self._batch("create", records, self.create, counts=False)

    def updates(self, records: Iterable[Record]) -> BatchResult:
        return self._batch("update", records, self.update, counts=True)

    def deletes(self, records: Iterable[Record]) -> BatchResult:
        return self._batch("delete", records, self.delete, counts=True)

    def _batch(
        self,
        operation: str,
        records: Iterable[Record],
        apply: Callable[[Record], Any],
        counts: bool,
    ) -> BatchResult:
        result = BatchResult()
        for index, record in enumerate(records):
            try:
                value = apply(record)
            except Exception as exc:
                self._log.warning(
                    f"Batch {operation} stopped at element {index}",
                    extra=log_extra(operation=operation, index=index, error_message=str(exc)),
                )
                result.error = exc
                break
            result.completed.append(value)
            if counts:
                result.affected += value or 0
        return result

    # Helpers

    def _require_schema(self, table: str) -> TableSchema:
        schema = self._catalog.columns_of(table)
        if not schema:
            raise ArgumentError(f"Unknown table: {table}")
        return schema

    def _writable(self, schema: TableSchema, values: Mapping[str, Any]) -> dict[str, Any]:
        row = {}
        for name, value in values.items():
            if schema.has(name):
                row[name] = value
            else:
                self._log.debug(f"Dropping {name}: not a column of {schema.table}")
        return row
