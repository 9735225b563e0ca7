import pytest

from mysql_crud.relations import RelationKind, RelationResolver, infer_relation

from sample_records import Question, User


class StubCatalog:
    def __init__(self, tables: dict[str, list[str]]) -> None:
        self.tables = {name: set(cols) for name, cols in tables.items()}

    def has_table(self, table: str) -> bool:
        return bool(self.tables.get(table))

    def has_column(self, table: str, column: str) -> bool:
        return column in self.tables.get(table, set())


def test_belongs_to() -> None:
    catalog = StubCatalog({"question": ["id", "user_id"], "user": ["id"]})
    relation = infer_relation("user", "question", catalog)

    assert relation.kind is RelationKind.BELONGS_TO
    assert relation.known_column == "user_id"
    assert relation.statement() == "SELECT * FROM `user` WHERE `user`.`id` = ?"


def test_has_many() -> None:
    catalog = StubCatalog({"question": ["id"], "question_option": ["id", "question_id"]})
    relation = infer_relation("question_option", "question", catalog)

    assert relation.kind is RelationKind.HAS_MANY
    assert relation.known_column == "id"
    assert relation.statement() == (
        "SELECT * FROM `question_option` WHERE `question_option`.`question_id` = ?"
    )


@pytest.mark.parametrize("join_table", ["section_group", "group_section"])
def test_many_to_many(join_table: str) -> None:
    catalog = StubCatalog(
        {
            "group": ["id"],
            "section": ["id"],
            join_table: ["id", "group_id", "section_id"],
        }
    )
    relation = infer_relation("section", "group", catalog)

    assert relation.kind is RelationKind.MANY_TO_MANY
    assert relation.join_table == join_table
    assert relation.statement() == (
        f"SELECT `section`.* FROM `section` "
        f"LEFT JOIN `{join_table}` ON `{join_table}`.`section_id` = `section`.`id` "
        f"WHERE `{join_table}`.`group_id` = ?"
    )


def test_target_known_join_table_is_checked_first() -> None:
    catalog = StubCatalog(
        {
            "section_group": ["group_id", "section_id"],
            "group_section": ["group_id", "section_id"],
        }
    )
    assert infer_relation("section", "group", catalog).join_table == "section_group"


def test_join_table_needs_both_columns() -> None:
    catalog = StubCatalog({"group_section": ["id", "group_id"]})
    relation = infer_relation("section", "group", catalog)
    assert relation.kind is RelationKind.NONE
    assert not relation.found


def test_belongs_to_wins_over_many_to_many() -> None:
    catalog = StubCatalog(
        {
            "question": ["id", "user_id"],
            "user": ["id"],
            "user_question": ["user_id", "question_id"],
        }
    )
    assert infer_relation("user", "question", catalog).kind is RelationKind.BELONGS_TO


def test_belongs_to_wins_over_has_many() -> None:
    catalog = StubCatalog(
        {
            "question": ["id", "user_id"],
            "user": ["id", "question_id"],
        }
    )
    relation = infer_relation("user", "question", catalog)
    assert relation.kind is RelationKind.BELONGS_TO
    assert relation.statement() == "SELECT * FROM `user` WHERE `user`.`id` = ?"


def test_has_many_wins_over_many_to_many() -> None:
    catalog = StubCatalog(
        {
            "question": ["id"],
            "question_option": ["id", "question_id"],
            "question_option_question": ["question_id", "question_option_id"],
        }
    )
    relation = infer_relation("question_option", "question", catalog)
    assert relation.kind is RelationKind.HAS_MANY
    assert relation.join_table is None


def test_soft_deleted_targets_are_filtered() -> None:
    catalog = StubCatalog({"question": ["id", "user_id", "is_deleted"], "user": ["id"]})
    relation = infer_relation("question", "user", catalog)
    assert relation.statement() == (
        "SELECT * FROM `question` WHERE `question`.`user_id` = ? "
        "AND `question`.`is_deleted` = 0"
    )


def test_resolver_binds_value_from_record() -> None:
    catalog = StubCatalog({"question": ["id", "user_id"], "user": ["id"]})
    resolver = RelationResolver(catalog)

    to_parent = resolver.resolve("user", Question(id=4, user_id=9))
    to_children = resolver.resolve("question", User(id=9))

    assert to_parent.found and to_parent.arg == 9
    assert to_children.found and to_children.arg == 9
    assert to_children.as_args() == (
        "SELECT * FROM `question` WHERE `question`.`user_id` = ?",
        9,
    )


def test_unresolved_link() -> None:
    link = RelationResolver(StubCatalog({})).resolve("note", User(id=1))
    assert not link.found
    assert link.sql == ""
