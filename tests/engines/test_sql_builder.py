"""Unit tests for engines.sql.builder: pagination, ordering, statement text and values."""

import pytest
from psycopg.types.json import Json

from tablegate.engines.sql.builder import (
    ActionError,
    OrderSpec,
    QueryOptions,
    check_identifier,
    delete_by_id,
    insert_row,
    normalize_direction,
    normalize_page,
    order_clause,
    page_clause,
    select_by_id,
    select_page,
    update_row,
)

# --- normalize_page ---


def test_normalize_page_neither_supplied_disables_pagination() -> None:
    assert normalize_page(None, None) == (None, None)


def test_normalize_page_valid_values() -> None:
    assert normalize_page("2", "10") == (2, 10)
    assert normalize_page(3, 5) == (3, 5)


def test_normalize_page_only_page_defaults_size() -> None:
    assert normalize_page("4", None) == (4, 20)


def test_normalize_page_only_size_defaults_page() -> None:
    assert normalize_page(None, "7") == (1, 7)


def test_normalize_page_malformed_values_fall_back_to_defaults() -> None:
    assert normalize_page("abc", "x") == (1, 20)
    assert normalize_page("", "") == (1, 20)
    assert normalize_page("2.5", "-3") == (1, 20)


def test_normalize_page_zero_page_invalid_zero_size_valid() -> None:
    assert normalize_page("0", "0") == (1, 0)


def test_normalize_page_bool_is_not_an_int() -> None:
    assert normalize_page(True, False) == (1, 20)


# --- identifiers and directions ---


@pytest.mark.parametrize("name", ["id", "name", "_x", "created_at2"])
def test_check_identifier_accepts_plain_names(name: str) -> None:
    assert check_identifier(name) == name


@pytest.mark.parametrize(
    "name",
    ["", "1abc", "name; drop table widgets", "a b", "x--", "a.b", '"quoted"', "name\n", None, 3],
)
def test_check_identifier_rejects_everything_else(name: object) -> None:
    with pytest.raises(ActionError, match="Invalid column name"):
        check_identifier(name)


def test_normalize_direction() -> None:
    assert normalize_direction(None) == "asc"
    assert normalize_direction("DESC") == "desc"
    assert normalize_direction(" asc ") == "asc"
    with pytest.raises(ActionError, match="Invalid order mode"):
        normalize_direction("sideways")


# --- clauses ---


def test_order_clause_empty() -> None:
    assert order_clause([]) == ""


def test_order_clause_keeps_caller_order() -> None:
    orders = [OrderSpec("b", "desc"), OrderSpec("a", "asc")]
    assert order_clause(orders) == " ORDER BY b desc, a asc"


def test_order_clause_qualified() -> None:
    orders = [OrderSpec("b", "desc"), OrderSpec("a")]
    assert order_clause(orders, "r.") == " ORDER BY r.b desc, r.a asc"


def test_page_clause_not_paginated() -> None:
    assert page_clause(QueryOptions()) == ("", [])


def test_page_clause_offset() -> None:
    text, values = page_clause(QueryOptions(page=3, size=10))
    assert text == " LIMIT %s OFFSET %s"
    assert values == [10, 20]


# --- statements ---


def test_select_page_plain() -> None:
    st = select_page("widgets", QueryOptions())
    assert st.text == (
        "SELECT (SELECT count(*) FROM widgets) AS total, "
        "COALESCE((SELECT json_agg(r) FROM (SELECT * FROM widgets) AS r), '[]'::json) AS records"
    )
    assert st.values == []


def test_select_page_ordered_and_paginated() -> None:
    opts = QueryOptions(orders=[OrderSpec("name", "desc")], page=2, size=10)
    st = select_page("widgets", opts)
    assert "json_agg(r ORDER BY r.name desc)" in st.text
    assert "(SELECT * FROM widgets ORDER BY name desc LIMIT %s OFFSET %s) AS r" in st.text
    assert "(SELECT count(*) FROM widgets) AS total" in st.text
    assert st.values == [10, 10]


def test_select_by_id() -> None:
    st = select_by_id("widgets", 7)
    assert st.text == "SELECT * FROM widgets WHERE id = %s"
    assert st.values == [7]


def test_insert_row_values_follow_column_order() -> None:
    st = insert_row("widgets", {"name": "foo", "price": 3})
    assert st.text == "INSERT INTO widgets (name, price) VALUES (%s, %s) RETURNING *"
    assert st.values == ["foo", 3]


def test_insert_row_binds_nested_objects_as_json() -> None:
    st = insert_row("widgets", {"meta": {"color": "red"}, "tags": ["a", "b"]})
    assert st.text == "INSERT INTO widgets (meta, tags) VALUES (%s, %s) RETURNING *"
    assert isinstance(st.values[0], Json)
    assert st.values[0].obj == {"color": "red"}
    assert st.values[1] == ["a", "b"]


def test_insert_row_empty_payload_uses_defaults() -> None:
    st = insert_row("widgets", {})
    assert st.text == "INSERT INTO widgets DEFAULT VALUES RETURNING *"
    assert st.values == []


def test_insert_row_rejects_non_object_payload() -> None:
    with pytest.raises(ActionError, match="JSON object"):
        insert_row("widgets", [1, 2])


def test_insert_row_rejects_injected_column() -> None:
    with pytest.raises(ActionError):
        insert_row("widgets", {"name) values ('x'); --": 1})


def test_update_row_binds_id_last() -> None:
    st = update_row("widgets", 5, {"name": "bar", "price": 9})
    assert st.text == "UPDATE widgets SET name = %s, price = %s WHERE id = %s RETURNING *"
    assert st.values == ["bar", 9, 5]


def test_update_row_empty_payload_is_rejected() -> None:
    with pytest.raises(ActionError, match="at least one column"):
        update_row("widgets", 5, {})


def test_delete_by_id() -> None:
    st = delete_by_id("widgets", 2)
    assert st.text == "DELETE FROM widgets WHERE id = %s RETURNING *"
    assert st.values == [2]


def test_statement_to_dict() -> None:
    assert select_by_id("users", 1).to_dict() == {
        "text": "SELECT * FROM users WHERE id = %s",
        "values": [1],
    }
