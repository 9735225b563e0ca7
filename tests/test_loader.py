from fakes import FakeClient

from mysql_crud.crud import Crud

from sample_records import Group, Question


def _script_question_tree(client: FakeClient) -> None:
    client.respond("FROM `question` WHERE 1", ["id", "title", "user_id", "is_deleted"], [(1, "q1", 9, 0)])
    client.respond(
        "FROM `question_option` WHERE",
        ["id", "question_id", "label"],
        [(10, 1, "a"), (11, 1, "b")],
    )
    client.respond("FROM `user` WHERE `user`.`id`", ["id", "name", "age"], [(9, "ann", 30)])


def test_loads_children_and_parent(crud: Crud, client: FakeClient) -> None:
    _script_question_tree(client)

    question = crud.load_one(Question, 1)

    assert question is not None
    assert [o.label for o in question.options] == ["a", "b"]
    assert question.author is not None and question.author.name == "ann"
    assert [sql for sql, _ in client.statements] == [
        "SELECT * FROM `question` WHERE 1 AND `id` = ? AND `is_deleted` = 0",
        "SELECT * FROM `question_option` WHERE `question_option`.`question_id` = ?",
        "SELECT * FROM `user` WHERE `user`.`id` = ?",
    ]
    assert client.statements[1][1] == (1,)
    assert client.statements[2][1] == (9,)


def test_back_reference_is_not_followed(crud: Crud, client: FakeClient) -> None:
    _script_question_tree(client)

    question = crud.load_one(Question, 1)

    assert all(option.question is None for option in question.options)
    assert len(client.statements) == 3


def test_depth_limit(client: FakeClient) -> None:
    _script_question_tree(client)
    shallow = Crud(client, max_depth=1)

    question = shallow.load_one(Question, 1)

    assert question.options == []
    assert question.author is None
    assert len(client.statements) == 1


def test_many_to_many_and_unrelated_fields(crud: Crud, client: FakeClient) -> None:
    client.respond("FROM `group` WHERE 1", ["id", "name"], [(3, "admins")])
    client.respond("FROM `section`", ["id", "name"], [(20, "intro"), (21, "faq")])

    groups = crud.load_all(Group)

    assert [s.name for s in groups[0].sections] == ["intro", "faq"]
    assert groups[0].notes == []
    assert client.statements[-1] == (
        "SELECT `section`.* FROM `section` "
        "LEFT JOIN `group_section` ON `group_section`.`section_id` = `section`.`id` "
        "WHERE `group_section`.`group_id` = ?",
        (3,),
    )


def test_empty_parent_leaves_field_untouched(crud: Crud, client: FakeClient) -> None:
    client.respond("FROM `question` WHERE 1", ["id", "title", "user_id"], [(1, "q1", None)])

    question = crud.load_one(Question, 1)

    assert question.author is None
    assert question.options == []
