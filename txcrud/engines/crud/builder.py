"""
SQL statement builders for CRUD operations. Pure functions, no I/O.

Only column values (insert/update) and procedure arguments are bound as
parameters. ``where`` predicates and join conditions are trusted SQL
fragments that are concatenated verbatim: never build them from user input.
"""

from collections.abc import Sequence

from txcrud.exceptions import InvalidArgumentError
from txcrud.types import Statement, Value

_PLACEHOLDERS = {
    "qmark": "?",
    "format": "%s",
}


def placeholder(paramstyle: str) -> str:
    """Positional placeholder for a DB-API paramstyle (qmark or format)."""
    try:
        return _PLACEHOLDERS[paramstyle]
    except KeyError:
        raise InvalidArgumentError(f"Unsupported paramstyle: {paramstyle!r}") from None


def _escape_literal(fragment: str, paramstyle: str) -> str:
    """Double literal ``%`` in raw text spliced next to ``format`` placeholders."""
    return fragment.replace("%", "%%") if paramstyle == "format" else fragment


def _require_name(kind: str, name: str | None, operation: str) -> str:
    if name is None or not str(name).strip():
        raise InvalidArgumentError(f"{kind} name must be a non-empty string", operation=operation)
    return str(name).strip()


def _require_columns(
    columns: Sequence[str] | None, operation: str
) -> list[str]:
    if not columns or isinstance(columns, str):
        raise InvalidArgumentError(
            "columns must be a non-empty sequence of names", operation=operation
        )
    return [_require_name("column", c, operation) for c in columns]


def _require_pairs(
    columns: Sequence[str] | None,
    values: Sequence[Value] | None,
    operation: str,
) -> tuple[list[str], tuple[Value, ...]]:
    if columns is None or values is None or len(columns) != len(values):
        raise InvalidArgumentError(
            "Columns and values must be non-null and of equal length",
            operation=operation,
        )
    return _require_columns(columns, operation), tuple(values)


def _require_where(where: str | None, operation: str) -> str:
    if where is None or not where.strip():
        raise InvalidArgumentError(
            "where clause is required (pass '1=1' to target every row)",
            operation=operation,
        )
    return where.strip()


def build_insert(
    table: str,
    columns: Sequence[str],
    values: Sequence[Value],
    *,
    paramstyle: str = "qmark",
) -> Statement:
    """``INSERT INTO t (a, b) VALUES (?, ?)`` with values bound in column order."""
    table = _require_name("table", table, "create")
    cols, params = _require_pairs(columns, values, "create")
    ph = placeholder(paramstyle)
    sql = (
        f"INSERT INTO {table} ({', '.join(cols)}) "
        f"VALUES ({', '.join([ph] * len(cols))})"
    )
    return Statement(sql, params)


def build_select(
    table: str,
    columns: Sequence[str] | None = None,
    where: str | None = None,
) -> Statement:
    """``SELECT cols FROM t [WHERE where]``. ``columns=None`` selects ``*``.

    *where* is a trusted raw fragment and is appended only when non-blank.
    """
    table = _require_name("table", table, "read")
    cols = "*" if columns is None else ", ".join(_require_columns(columns, "read"))
    sql = f"SELECT {cols} FROM {table}"
    if where is not None and where.strip():
        sql += f" WHERE {where.strip()}"
    return Statement(sql)


def build_update(
    table: str,
    columns: Sequence[str],
    values: Sequence[Value],
    where: str,
    *,
    paramstyle: str = "qmark",
) -> Statement:
    """``UPDATE t SET a = ?, b = ? WHERE where`` with values bound in column order.

    With the ``format`` paramstyle, ``%`` in *where* is doubled so the driver
    keeps it literal (e.g. ``email LIKE '%@x.com'``).
    """
    table = _require_name("table", table, "update")
    cols, params = _require_pairs(columns, values, "update")
    ph = placeholder(paramstyle)
    where = _escape_literal(_require_where(where, "update"), paramstyle)
    assignments = ", ".join(f"{c} = {ph}" for c in cols)
    return Statement(f"UPDATE {table} SET {assignments} WHERE {where}", params)


def build_delete(table: str, where: str) -> Statement:
    """``DELETE FROM t WHERE where``."""
    table = _require_name("table", table, "delete")
    where = _require_where(where, "delete")
    return Statement(f"DELETE FROM {table} WHERE {where}")


def build_join(
    tables: Sequence[str],
    join_conditions: Sequence[str] | str,
    columns: Sequence[str] | None = None,
    where: str | None = None,
) -> Statement:
    """``SELECT * FROM t1 JOIN t2 ON c1 [JOIN t3 ON c2 ...] [WHERE where]``.

    Needs at least two tables and one condition per joined table
    (``len(tables) - 1``). A single string is accepted as the only condition.
    """
    if isinstance(tables, str) or not tables or len(tables) < 2:
        raise InvalidArgumentError("a join needs at least two tables", operation="join")
    names = [_require_name("table", t, "join") for t in tables]
    conditions = [join_conditions] if isinstance(join_conditions, str) else list(join_conditions or [])
    if len(conditions) != len(names) - 1:
        raise InvalidArgumentError(
            f"expected {len(names) - 1} join condition(s), got {len(conditions)}",
            operation="join",
        )
    cols = "*" if columns is None else ", ".join(_require_columns(columns, "join"))
    parts = [f"SELECT {cols} FROM {names[0]}"]
    for table, cond in zip(names[1:], conditions, strict=True):
        if cond is None or not cond.strip():
            raise InvalidArgumentError("join condition must not be empty", operation="join")
        parts.append(f"JOIN {table} ON {cond.strip()}")
    if where is not None and where.strip():
        parts.append(f"WHERE {where.strip()}")
    return Statement(" ".join(parts))


def build_procedure_call(
    name: str,
    params: Sequence[Value] | int = (),
    *,
    paramstyle: str = "qmark",
) -> Statement:
    """``CALL name(?, ?)``, one placeholder per argument.

    *params* is either the argument values (bound in order) or just a count,
    in which case the statement carries no values.
    """
    name = _require_name("procedure", name, "procedure")
    if isinstance(params, int):
        if params < 0:
            raise InvalidArgumentError("param count must be >= 0", operation="procedure")
        count, values = params, ()
    else:
        values = tuple(params)
        count = len(values)
    ph = placeholder(paramstyle)
    return Statement(f"CALL {name}({', '.join([ph] * count)})", values)
