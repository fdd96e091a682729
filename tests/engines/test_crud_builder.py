"""Unit tests for engines.crud.builder."""

import pytest

from txcrud.engines.crud import (
    build_delete,
    build_insert,
    build_join,
    build_procedure_call,
    build_select,
    build_update,
)
from txcrud.exceptions import InvalidArgumentError
from txcrud.types import Statement


class TestBuildInsert:
    def test_one_placeholder_per_column(self) -> None:
        stmt = build_insert("users", ["name", "email"], ["Ann", "a@x.com"])
        assert stmt == Statement(
            "INSERT INTO users (name, email) VALUES (?, ?)", ("Ann", "a@x.com")
        )

    def test_values_bound_in_column_order(self) -> None:
        values = ["John Doe", "john@example.com", 30, None]
        stmt = build_insert("users", ["name", "email", "age", "status"], values)
        assert stmt.sql.count("?") == 4
        assert list(stmt.params) == values

    def test_format_paramstyle(self) -> None:
        stmt = build_insert("users", ["name"], ["Ann"], paramstyle="format")
        assert stmt.sql == "INSERT INTO users (name) VALUES (%s)"

    @pytest.mark.parametrize(
        "columns,values",
        [
            (["name", "email"], ["Ann"]),
            (["name"], ["Ann", "a@x.com"]),
            ([], []),
            (None, ["Ann"]),
            (["name"], None),
        ],
    )
    def test_arity_mismatch(self, columns, values) -> None:
        with pytest.raises(InvalidArgumentError):
            build_insert("users", columns, values)

    def test_invalid_argument_is_a_value_error(self) -> None:
        with pytest.raises(ValueError, match="equal length"):
            build_insert("users", ["a", "b"], [1])

    def test_blank_table(self) -> None:
        with pytest.raises(InvalidArgumentError, match="table"):
            build_insert("  ", ["name"], ["Ann"])

    def test_unknown_paramstyle(self) -> None:
        with pytest.raises(InvalidArgumentError, match="paramstyle"):
            build_insert("users", ["name"], ["Ann"], paramstyle="named")


class TestBuildSelect:
    def test_star_with_where(self) -> None:
        assert build_select("users", None, "age > 25") == Statement(
            "SELECT * FROM users WHERE age > 25"
        )

    def test_columns_no_where(self) -> None:
        stmt = build_select("users", ["id", "name", "email"])
        assert stmt.sql == "SELECT id, name, email FROM users"
        assert stmt.params == ()

    @pytest.mark.parametrize("where", [None, "", "   "])
    def test_blank_where_is_omitted(self, where) -> None:
        assert build_select("users", None, where).sql == "SELECT * FROM users"

    def test_where_is_not_parameterized(self) -> None:
        stmt = build_select("users", None, "email = 'x@y.com'")
        assert stmt.sql.endswith("WHERE email = 'x@y.com'")
        assert stmt.params == ()

    def test_empty_column_list(self) -> None:
        with pytest.raises(InvalidArgumentError):
            build_select("users", [], None)


class TestBuildUpdate:
    def test_set_clause(self) -> None:
        stmt = build_update(
            "users", ["email", "status"], ["new@example.com", "inactive"], "id = 123"
        )
        assert stmt.sql == "UPDATE users SET email = ?, status = ? WHERE id = 123"
        assert stmt.params == ("new@example.com", "inactive")

    def test_format_paramstyle(self) -> None:
        stmt = build_update("users", ["email"], ["e"], "id = 1", paramstyle="format")
        assert stmt.sql == "UPDATE users SET email = %s WHERE id = 1"

    def test_format_paramstyle_keeps_percent_in_where_literal(self) -> None:
        stmt = build_update(
            "users", ["status"], ["x"], "email LIKE '%@x.com'", paramstyle="format"
        )
        assert stmt.sql == "UPDATE users SET status = %s WHERE email LIKE '%%@x.com'"
        assert stmt.params == ("x",)

    def test_qmark_leaves_percent_untouched(self) -> None:
        stmt = build_update("users", ["status"], ["x"], "email LIKE '%@x.com'")
        assert stmt.sql == "UPDATE users SET status = ? WHERE email LIKE '%@x.com'"

    def test_arity_mismatch(self) -> None:
        with pytest.raises(InvalidArgumentError):
            build_update("users", ["email", "status"], ["e"], "id = 1")

    def test_where_required(self) -> None:
        with pytest.raises(InvalidArgumentError, match="where"):
            build_update("users", ["email"], ["e"], "")


class TestBuildDelete:
    def test_delete(self) -> None:
        assert build_delete("users", "email = 'x@y.com'") == Statement(
            "DELETE FROM users WHERE email = 'x@y.com'"
        )

    def test_where_required(self) -> None:
        with pytest.raises(InvalidArgumentError):
            build_delete("users", None)


class TestBuildJoin:
    def test_two_tables_single_condition(self) -> None:
        stmt = build_join(["users", "orders"], "users.id = orders.user_id")
        assert stmt.sql == "SELECT * FROM users JOIN orders ON users.id = orders.user_id"

    def test_three_tables_with_columns_and_where(self) -> None:
        stmt = build_join(
            ["users", "orders", "items"],
            ["users.id = orders.user_id", "orders.order_id = items.order_id"],
            ["users.name", "items.sku"],
            "orders.total > 10",
        )
        assert stmt.sql == (
            "SELECT users.name, items.sku FROM users "
            "JOIN orders ON users.id = orders.user_id "
            "JOIN items ON orders.order_id = items.order_id "
            "WHERE orders.total > 10"
        )

    def test_condition_count_must_match(self) -> None:
        with pytest.raises(InvalidArgumentError, match="join condition"):
            build_join(["users", "orders", "items"], ["users.id = orders.user_id"])

    def test_needs_two_tables(self) -> None:
        with pytest.raises(InvalidArgumentError, match="two tables"):
            build_join(["users"], [])


class TestBuildProcedureCall:
    def test_placeholders_match_params(self) -> None:
        stmt = build_procedure_call("get_user_details", [123, "x"])
        assert stmt == Statement("CALL get_user_details(?, ?)", (123, "x"))

    def test_from_count(self) -> None:
        stmt = build_procedure_call("refresh", 3, paramstyle="format")
        assert stmt.sql == "CALL refresh(%s, %s, %s)"
        assert stmt.params == ()

    def test_no_params(self) -> None:
        assert build_procedure_call("refresh").sql == "CALL refresh()"

    def test_negative_count(self) -> None:
        with pytest.raises(InvalidArgumentError):
            build_procedure_call("refresh", -1)
