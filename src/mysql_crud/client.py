from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

import mysql.connector
from mysql.connector import Error as MySQLError

from .config import AppConfig
from .errors import ExecutionError
from .guardrails import detect_statement_type
from .logging_utils import full_sql, log_extra
from .pool import ConnectionPool
from .rows import Rows


@dataclass(frozen=True)
class ExecResult:
    last_insert_id: int | None
    rows_affected: int


class MySQLClient:
    """Runs single statements, each on its own pooled connection."""

    def __init__(self, pool: ConnectionPool, debug_sql: bool = False) -> None:
        self._pool = pool
        self._debug_sql = debug_sql
        self._log = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config: AppConfig) -> "MySQLClient":
        connect_args = config.database.connect_args()
        pool = ConnectionPool(
            lambda: mysql.connector.connect(**connect_args),
            max_open=config.pool.max_open,
            max_idle=config.pool.max_idle,
            acquire_timeout=config.pool.acquire_timeout,
        )
        return cls(pool, debug_sql=config.observability.debug_sql)

    @property
    def pool(self) -> ConnectionPool:
        return self._pool

    @property
    def debug_sql(self) -> bool:
        return self._debug_sql

    @debug_sql.setter
    def debug_sql(self, enabled: bool) -> None:
        self._debug_sql = enabled

    def query(self, sql: str, args: Iterable[Any] | None = None) -> Rows:
        columns, rows, _ = self._execute(sql, args)
        return Rows(columns=columns, rows=rows)

    def execute(self, sql: str, args: Iterable[Any] | None = None) -> ExecResult:
        _, _, result = self._execute(sql, args)
        return result

    def close(self) -> None:
        self._pool.close()

    def _execute(
        self, sql: str, args: Iterable[Any] | None
    ) -> tuple[list[str], list[Sequence[Any]], ExecResult]:
        """
        Run one statement on a leased connection and fetch everything it returns.

        The connection goes back to the pool before this returns, also when
        the driver fails; a failing connection is discarded instead of reused.

        Raises:
        ExecutionError: If the driver reports a failure
        """
        params = tuple(args) if args is not None else ()
        statement_type = detect_statement_type(sql)
        query_id = str(uuid.uuid4())
        if self._debug_sql:
            self._log.debug(full_sql(sql, params))

        try:
            with self._pool.connection() as connection:
                # Prepared cursors bind `?` server-side; without values the text runs verbatim.
                cursor = connection.cursor(prepared=True) if params else connection.cursor()
                try:
                    if params:
                        cursor.execute(sql, params)
                    else:
                        cursor.execute(sql)
                    description = cursor.description
                    rows_raw = cursor.fetchall() if description else []
                    result = ExecResult(
                        last_insert_id=cursor.lastrowid,
                        rows_affected=cursor.rowcount,
                    )
                finally:
                    cursor.close()
        except MySQLError as exc:
            self._log.error(
                f"Statement failed: {exc}\n{full_sql(sql, params)}",
                extra=log_extra(query_id=query_id, statement_type=statement_type),
                stack_info=True,
            )
            raise ExecutionError(f"Statement execution failed: {exc}") from exc

        columns = [col[0] for col in description or []]
        rows = [tuple(row) for row in rows_raw]
        self._log.debug(
            "Statement executed",
            extra=log_extra(
                query_id=query_id,
                statement_type=statement_type,
                row_count=len(rows),
            ),
        )
        return columns, rows, result
