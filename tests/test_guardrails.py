import pytest

from mysql_crud.errors import ArgumentError, GuardrailError
from mysql_crud.guardrails import (
    detect_statement_type,
    is_select,
    quote_field,
    quote_identifier,
    sanitize_identifier,
    split_placeholders,
)


def test_detect_statement_type() -> None:
    assert detect_statement_type("  select * from table") == "SELECT"
    with pytest.raises(GuardrailError):
        detect_statement_type("   ")


def test_is_select() -> None:
    assert is_select("SELECT 1")
    assert not is_select("name = ?")
    assert not is_select("")


def test_sanitize_identifier() -> None:
    assert sanitize_identifier("valid_name", "table") == "valid_name"
    with pytest.raises(GuardrailError):
        sanitize_identifier("not-valid*", "table")


def test_guardrail_error_is_an_argument_error() -> None:
    with pytest.raises(ArgumentError):
        quote_identifier("user`; DROP TABLE x", "table")


def test_quote_field() -> None:
    assert quote_field("name") == "`name`"
    assert quote_field("user.name") == "`user`.`name`"
    assert quote_field("user.*") == "`user`.*"
    assert quote_field("*") == "*"
    with pytest.raises(GuardrailError):
        quote_field("COUNT(*)")


def test_split_placeholders_skips_quoted_text() -> None:
    sql = "SELECT * FROM t WHERE a = ? AND b = '?' AND c = \"it\\'s ?\" AND d = ?"
    assert split_placeholders(sql) == [
        "SELECT * FROM t WHERE a = ",
        " AND b = '?' AND c = \"it\\'s ?\" AND d = ",
        "",
    ]


def test_split_placeholders_without_placeholders() -> None:
    assert split_placeholders("SELECT 1") == ["SELECT 1"]
