"""
Value, Row and Statement types shared by the builder and executor.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import NamedTuple, Union

# Scalars a driver may hand back for one cell.
Value = Union[None, bool, int, float, Decimal, str, bytes, date, time, datetime]

Row = dict[str, Value]
ResultSet = list[Row]


class Statement(NamedTuple):
    """SQL text plus its positional bind values, in placeholder order."""

    sql: str
    params: tuple[Value, ...] = ()
