"""Bounded pool of reusable driver connections."""

from __future__ import annotations

import logging
import threading
from collections import deque
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from .errors import PoolExhaustedError
from .logging_utils import log_extra


class ConnectionPool:
    """Lease connections for one statement at a time.

    At most ``max_open`` connections exist at once; ``acquire`` blocks while
    all of them are leased, or raises :class:`PoolExhaustedError` once
    ``acquire_timeout`` seconds pass. Up to ``max_idle`` released connections
    are kept for reuse, the rest are closed.
    """

    def __init__(
        self,
        connect: Callable[[], Any],
        max_open: int = 20,
        max_idle: int = 20,
        acquire_timeout: float | None = None,
    ) -> None:
        if max_open <= 0:
            raise ValueError("max_open must be greater than 0")
        self._connect = connect
        self._max_open = max_open
        self._max_idle = min(max_idle, max_open)
        self._acquire_timeout = acquire_timeout
        self._slots = threading.BoundedSemaphore(max_open)
        self._idle: deque[Any] = deque()
        self._lock = threading.Lock()
        self._open = 0
        self._in_use = 0
        self._log = logging.getLogger(__name__)

    @property
    def max_open(self) -> int:
        return self._max_open

    @property
    def open_connections(self) -> int:
        with self._lock:
            return self._open

    @property
    def in_use(self) -> int:
        with self._lock:
            return self._in_use

    def acquire(self) -> Any:
        if not self._slots.acquire(timeout=self._acquire_timeout):
            self._log.warning(
                "Connection pool exhausted",
                extra=log_extra(max_open=self._max_open, timeout=self._acquire_timeout),
            )
            raise PoolExhaustedError(
                f"No connection available within {self._acquire_timeout}s"
            )
        with self._lock:
            if self._idle:
                self._in_use += 1
                return self._idle.pop()
        try:
            conn = self._connect()
        except Exception:
            self._slots.release()
            raise
        with self._lock:
            self._open += 1
            self._in_use += 1
        return conn

    def release(self, conn: Any, discard: bool = False) -> None:
        with self._lock:
            self._in_use -= 1
            keep = not discard and len(self._idle) < self._max_idle
            if keep:
                self._idle.append(conn)
            else:
                self._open -= 1
        if not keep:
            self._close_quietly(conn)
        self._slots.release()

    @contextmanager
    def connection(self) -> Iterator[Any]:
        conn = self.acquire()
        discard = False
        try:
            yield conn
        except BaseException:
            discard = True
            raise
        finally:
            self.release(conn, discard=discard)

    def close(self) -> None:
        with self._lock:
            idle = list(self._idle)
            self._idle.clear()
            self._open -= len(idle)
        for conn in idle:
            self._close_quietly(conn)

    def _close_quietly(self, conn: Any) -> None:
        try:
            conn.close()
        except Exception as exc:
            self._log.debug(f"Ignoring error while closing connection: {exc}")
