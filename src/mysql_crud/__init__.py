"""Typed record access to MySQL tables without hand-written SQL."""

from .crud import BatchResult, Crud
from .errors import (
    ArgumentError,
    ConfigError,
    ExecutionError,
    GuardrailError,
    MissingPrimaryKeyError,
    PoolExhaustedError,
    RelationNotFoundError,
)
from .handlers import ERR_ARGS, ERR_EXEC, CrudHandlers
from .naming import to_db_name, to_struct_name
from .predicate import Predicate
from .records import Record
from .relations import RelationKind, infer_relation

__all__ = [
    "ArgumentError",
    "BatchResult",
    "ConfigError",
    "Crud",
    "CrudHandlers",
    "ERR_ARGS",
    "ERR_EXEC",
    "ExecutionError",
    "GuardrailError",
    "MissingPrimaryKeyError",
    "PoolExhaustedError",
    "Predicate",
    "Record",
    "RelationKind",
    "RelationNotFoundError",
    "infer_relation",
    "to_db_name",
    "to_struct_name",
]
