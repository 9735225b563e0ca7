from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar

from .logging_utils import log_extra
from .records import Record
from .relations import RelationResolver

if TYPE_CHECKING:
    from .crud import Crud

R = TypeVar("R", bound=Record)


class EagerLoader:
    """Depth-first loader for nested record fields.

    A nested field whose table already appears on the path from the root is
    skipped, and nothing below ``max_depth`` levels is loaded, so records that
    refer to each other cannot recurse forever. Each query leases its own
    connection; none is held across the tree.
    """

    def __init__(self, crud: "Crud", resolver: RelationResolver, max_depth: int = 8) -> None:
        self._crud = crud
        self._resolver = resolver
        self._max_depth = max_depth
        self._log = logging.getLogger(__name__)

    def load(self, record_type: type[R], *args: Any) -> list[R]:
        return self._load(record_type, args, ())

    def _load(self, record_type: type[R], args: tuple[Any, ...], path: tuple[str, ...]) -> list[R]:
        records = self._crud.find(record_type, *args)
        path = path + (record_type.table_name(),)
        if len(path) >= self._max_depth:
            self._log.debug(
                "Eager loading depth limit reached",
                extra=log_extra(path=".".join(path)),
            )
            return records
        for record in records:
            self._fill(record, path)
        return records

    def _fill(self, record: Record, path: tuple[str, ...]) -> None:
        for nested in type(record).nested_fields():
            target = nested.record_type.table_name()
            if target in path:
                self._log.debug(
                    "Skipping nested field that would revisit a table",
                    extra=log_extra(field=nested.name, path=".".join(path)),
                )
                continue
            link = self._resolver.resolve(target, record)
            if not link.found:
                continue
            children = self._load(nested.record_type, link.as_args(), path)
            if nested.many:
                setattr(record, nested.name, children)
            elif children:
                setattr(record, nested.name, children[0])
