"""Record contract used by the CRUD facade and the eager loader.

A record is a dataclass subclassing :class:`Record`. Its table name comes
from ``__tablename__`` or from the class name (``QuestionOption`` ->
``question_option``); each scalar field maps to the column of the same
translated name unless ``field(metadata={"column": ...})`` says otherwise.
``field(metadata={"ignore": True})`` keeps a field out of writes. Fields
annotated with another record type, or a ``list`` of one, are nested fields
filled by :meth:`Crud.load_all`.

Lifecycle hooks are optional methods; a record opts in by defining them and
the facade checks for them with ``isinstance`` against the protocols below.
"""

from __future__ import annotations

import dataclasses
import types
import typing
from dataclasses import dataclass
from typing import Any, ClassVar, Mapping, Protocol, runtime_checkable

from .errors import ArgumentError
from .naming import to_db_name

PRIMARY_KEY = "id"


@runtime_checkable
class BeforeCreate(Protocol):
    def before_create(self) -> None: ...


@runtime_checkable
class AfterCreate(Protocol):
    def after_create(self) -> None: ...


@runtime_checkable
class BeforeUpdate(Protocol):
    def before_update(self) -> None: ...


@runtime_checkable
class AfterUpdate(Protocol):
    def after_update(self) -> None: ...


@runtime_checkable
class BeforeDelete(Protocol):
    def before_delete(self) -> None: ...


@runtime_checkable
class AfterDelete(Protocol):
    def after_delete(self) -> None: ...


@runtime_checkable
class AfterFind(Protocol):
    def after_find(self) -> None: ...


@dataclass(frozen=True)
class NestedField:
    name: str
    record_type: type["Record"]
    many: bool


def _unwrap_optional(hint: Any) -> Any:
    origin = typing.get_origin(hint)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


def _nested_from_hint(name: str, hint: Any) -> NestedField | None:
    hint = _unwrap_optional(hint)
    if isinstance(hint, type) and issubclass(hint, Record):
        return NestedField(name=name, record_type=hint, many=False)
    if typing.get_origin(hint) in (list, typing.List):
        args = typing.get_args(hint)
        if args and isinstance(args[0], type) and issubclass(args[0], Record):
            return NestedField(name=name, record_type=args[0], many=True)
    return None


class Record:
    __tablename__: ClassVar[str | None] = None

    # Per-class caches, filled on first use so forward references resolve.
    _nested_cache: ClassVar[dict[type, tuple[NestedField, ...]]] = {}
    _columns_cache: ClassVar[dict[type, dict[str, str]]] = {}

    @classmethod
    def table_name(cls) -> str:
        return cls.__dict__.get("__tablename__") or to_db_name(cls.__name__)

    @classmethod
    def _fields(cls) -> tuple[dataclasses.Field, ...]:
        if not dataclasses.is_dataclass(cls):
            raise ArgumentError(f"{cls.__name__} must be a dataclass to be used as a record")
        return dataclasses.fields(cls)

    @classmethod
    def nested_fields(cls) -> tuple[NestedField, ...]:
        cached = Record._nested_cache.get(cls)
        if cached is not None:
            return cached
        hints = typing.get_type_hints(cls)
        nested = []
        for f in cls._fields():
            found = _nested_from_hint(f.name, hints.get(f.name))
            if found is not None:
                nested.append(found)
        result = tuple(nested)
        Record._nested_cache[cls] = result
        return result

    @classmethod
    def column_map(cls) -> dict[str, str]:
        """Field name -> column name for every scalar field."""
        cached = Record._columns_cache.get(cls)
        if cached is not None:
            return cached
        nested = {n.name for n in cls.nested_fields()}
        mapping = {}
        for f in cls._fields():
            if f.name in nested:
                continue
            mapping[f.name] = f.metadata.get("column") or to_db_name(f.name)
        Record._columns_cache[cls] = mapping
        return mapping

    @classmethod
    def ignored_fields(cls) -> set[str]:
        return {f.name for f in cls._fields() if f.metadata.get("ignore")}

    @classmethod
    def field_for_column(cls, column: str) -> str | None:
        for name, col in cls.column_map().items():
            if col == column:
                return name
        return None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Record":
        kwargs = {
            name: row[column]
            for name, column in cls.column_map().items()
            if column in row
        }
        try:
            return cls(**kwargs)
        except TypeError as exc:
            raise ArgumentError(
                f"Row does not fit record {cls.__name__}: {exc}"
            ) from exc

    def to_values(self) -> dict[str, Any]:
        """Ordered column -> value mapping used for writes."""
        ignored = self.ignored_fields()
        return {
            column: getattr(self, name)
            for name, column in self.column_map().items()
            if name not in ignored
        }

    def column_value(self, column: str) -> Any:
        name = self.field_for_column(column)
        return getattr(self, name) if name is not None else None

    @property
    def pk(self) -> Any:
        return self.column_value(PRIMARY_KEY)

    def set_pk(self, value: Any) -> None:
        name = self.field_for_column(PRIMARY_KEY)
        if name is None:
            raise ArgumentError(f"{type(self).__name__} has no {PRIMARY_KEY} field")
        setattr(self, name, value)
