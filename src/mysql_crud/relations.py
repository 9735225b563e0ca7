"""Convention based relationship inference.

Given a target table and a known table the rules below are tried in order and
the first one that matches wins:

1. BELONGS_TO    known has ``<target>_id``
2. HAS_MANY      target has ``<known>_id``
3. MANY_TO_MANY  ``<target>_<known>`` (tried first) or ``<known>_<target>``
                 exists with both ``<known>_id`` and ``<target>_id``
4. NONE

A schema matching both rule 1 and rule 3 always resolves through rule 1.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Protocol

from .records import PRIMARY_KEY, Record

SOFT_DELETE_COLUMN = "is_deleted"


class CatalogView(Protocol):
    def has_table(self, table: str) -> bool: ...

    def has_column(self, table: str, column: str) -> bool: ...


class RelationKind(enum.Enum):
    BELONGS_TO = "belongs_to"
    HAS_MANY = "has_many"
    MANY_TO_MANY = "many_to_many"
    NONE = "none"


@dataclass(frozen=True)
class Relation:
    kind: RelationKind
    target: str
    known: str
    join_table: str | None = None
    soft_delete: bool = False

    @property
    def found(self) -> bool:
        return self.kind is not RelationKind.NONE

    @property
    def known_column(self) -> str:
        """Column of the known row whose value is bound into the query."""
        if self.kind is RelationKind.BELONGS_TO:
            return f"{self.target}_id"
        return PRIMARY_KEY

    def statement(self) -> str:
        target, known = self.target, self.known
        if self.kind is RelationKind.BELONGS_TO:
            sql = f"SELECT * FROM `{target}` WHERE `{target}`.`id` = ?"
        elif self.kind is RelationKind.HAS_MANY:
            sql = f"SELECT * FROM `{target}` WHERE `{target}`.`{known}_id` = ?"
        elif self.kind is RelationKind.MANY_TO_MANY:
            jt = self.join_table
            sql = (
                f"SELECT `{target}`.* FROM `{target}` "
                f"LEFT JOIN `{jt}` ON `{jt}`.`{target}_id` = `{target}`.`id` "
                f"WHERE `{jt}`.`{known}_id` = ?"
            )
        else:
            raise ValueError("No statement for an unresolved relation")
        if self.soft_delete:
            sql += f" AND `{target}`.`{SOFT_DELETE_COLUMN}` = 0"
        return sql


@dataclass(frozen=True)
class RelationLink:
    relation: Relation
    sql: str = ""
    arg: Any = None

    @property
    def found(self) -> bool:
        return self.relation.found

    def as_args(self) -> tuple[Any, ...]:
        return (self.sql, self.arg)


def infer_relation(target: str, known: str, catalog: CatalogView) -> Relation:
    soft_delete = catalog.has_column(target, SOFT_DELETE_COLUMN)

    if catalog.has_column(known, f"{target}_id"):
        return Relation(RelationKind.BELONGS_TO, target, known, soft_delete=soft_delete)

    if catalog.has_column(target, f"{known}_id"):
        return Relation(RelationKind.HAS_MANY, target, known, soft_delete=soft_delete)

    for join_table in (f"{target}_{known}", f"{known}_{target}"):
        if (
            catalog.has_table(join_table)
            and catalog.has_column(join_table, f"{known}_id")
            and catalog.has_column(join_table, f"{target}_id")
        ):
            return Relation(
                RelationKind.MANY_TO_MANY,
                target,
                known,
                join_table=join_table,
                soft_delete=soft_delete,
            )

    return Relation(RelationKind.NONE, target, known)


class RelationResolver:
    """Turns a relation between a table and a loaded record into a query."""

    def __init__(self, catalog: CatalogView) -> None:
        self._catalog = catalog

    def relation(self, target: str, known: str) -> Relation:
        return infer_relation(target, known, self._catalog)

    def resolve(self, target: str, record: Record) -> RelationLink:
        relation = self.relation(target, type(record).table_name())
        if not relation.found:
            return RelationLink(relation)
        return RelationLink(
            relation,
            sql=relation.statement(),
            arg=record.column_value(relation.known_column),
        )
