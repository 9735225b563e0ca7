"""Render-callback facade for request handlers.

The web layer parses a request into an ordered field -> value mapping and
passes it here together with an opaque ``sink`` (a response writer, a list,
anything). Outcomes are reported through a single render function
``render(sink, error, *data)``; the facade never serializes anything itself.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from .crud import Crud
from .errors import ArgumentError, ExecutionError
from .guardrails import quote_identifier
from .logging_utils import log_extra
from .records import PRIMARY_KEY, Record

Render = Callable[..., None]

ERR_ARGS = ArgumentError("invalid arguments")
ERR_EXEC = ExecutionError("execution failed")

_FAILED = object()


def _noop_render(sink: Any, error: Exception | None, *data: Any) -> None:
    return None


class CrudHandlers:
    def __init__(self, crud: Crud, render: Render | None = None) -> None:
        self._crud = crud
        self._render = render or _noop_render
        self._log = logging.getLogger(__name__)

    def success(self, sink: Any) -> None:
        self._render(sink, None, None)

    def create(self, sink: Any, record_type: type[Record], values: Mapping[str, Any]) -> None:
        if not values:
            self._render(sink, ERR_ARGS)
            return
        table = record_type.table_name()
        new_id = self._guard(sink, "create", table, lambda: self._crud.insert(table, values))
        if new_id is _FAILED:
            return
        data = {k: v for k, v in values.items() if self._crud.catalog.has_column(table, k)}
        data[PRIMARY_KEY] = new_id
        data.pop("is_deleted", None)
        self._render(sink, None, data)

    def read(
        self, sink: Any, record_type: type[Record], values: Mapping[str, Any] | None = None
    ) -> None:
        """Render matching rows.

        Every key must be a column of the record's table, except ``<other>_id``
        keys that live in a ``<table>_<other>`` or ``<other>_<table>`` join
        table; those turn the read into a lookup through that join table.
        """
        table = record_type.table_name()
        statement = self._guard(
            sink, "read", table, lambda: self._read_statement(table, dict(values or {}))
        )
        if statement is _FAILED:
            return
        sql, params = statement
        data = self._guard(sink, "read", table, lambda: self._crud.query(sql, *params).maps())
        if data is _FAILED:
            return
        self._render(sink, None, data)

    def update(self, sink: Any, record_type: type[Record], values: Mapping[str, Any]) -> None:
        if not values or values.get(PRIMARY_KEY) in (None, ""):
            self._render(sink, ERR_ARGS)
            return
        table = record_type.table_name()
        outcome = self._guard(
            sink,
            "update",
            table,
            lambda: self._crud.update_row(table, values[PRIMARY_KEY], values),
        )
        if outcome is not _FAILED:
            self.success(sink)

    def delete(self, sink: Any, record_type: type[Record], values: Mapping[str, Any]) -> None:
        if not values or values.get(PRIMARY_KEY) in (None, ""):
            self._render(sink, ERR_ARGS)
            return
        table = record_type.table_name()
        outcome = self._guard(
            sink, "delete", table, lambda: self._crud.delete_row(table, values[PRIMARY_KEY])
        )
        if outcome is not _FAILED:
            self.success(sink)

    def _read_statement(self, table: str, values: dict[str, Any]) -> tuple[str, list[Any]]:
        catalog = self._crud.catalog
        schema = catalog.columns_of(table)
        if not schema:
            raise ArgumentError(f"Unknown table: {table}")

        join_table = None
        for key in values:
            if schema.has(key) or not key.endswith("_id"):
                continue
            other = key[: -len("_id")]
            for candidate in (f"{table}_{other}", f"{other}_{table}"):
                if catalog.has_column(candidate, key) and catalog.has_column(
                    candidate, f"{table}_id"
                ):
                    join_table = candidate
                    break

        if schema.has("is_deleted"):
            values["is_deleted"] = 0

        qt = quote_identifier(table, "table")
        conditions = []
        for key in values:
            if schema.has(key):
                conditions.append(f"{qt}.{quote_identifier(key, 'column')} = ?")
            elif join_table and catalog.has_column(join_table, key):
                conditions.append(f"`{join_table}`.{quote_identifier(key, 'column')} = ?")
            else:
                raise ArgumentError(f"Unknown filter column: {key}")
        where = f" WHERE {' AND '.join(conditions)}" if conditions else ""
        params = list(values.values())

        if join_table is None:
            return f"SELECT * FROM {qt}{where}", params
        return (
            f"SELECT {qt}.* FROM `{join_table}` "
            f"LEFT JOIN {qt} ON `{join_table}`.`{table}_id` = {qt}.`id`{where}",
            params,
        )

    def _guard(self, sink: Any, operation: str, table: str, action: Callable[[], Any]) -> Any:
        try:
            return action()
        except ArgumentError as exc:
            self._log.info(
                "Rejected request arguments",
                extra=log_extra(operation=operation, table=table, error_message=str(exc)),
            )
            self._render(sink, ERR_ARGS)
        except ExecutionError as exc:
            self._log.warning(
                "Request failed during execution",
                extra=log_extra(operation=operation, table=table, error_message=str(exc)),
            )
            self._render(sink, ERR_EXEC)
        return _FAILED

