"""
Checks the pool runs when a connection changes hands.

health_check() pings a connection that sat idle before it is handed out again.
reset_for_reuse() clears session state when a connection comes back.
"""

import logging
from typing import Any

from txcrud.models import ProductTypeEnum

_log = logging.getLogger(__name__)


def health_check(conn: Any, product_type: ProductTypeEnum) -> bool:
    """Round-trip ``SELECT 1``; False when the server does not answer.

    Uses a bare cursor so a ping never touches the statement timeout.
    """
    try:
        cur = conn.cursor()
    except Exception as e:
        _log.debug("%s ping failed opening cursor: %s", product_type.value, e)
        return False
    try:
        cur.execute("SELECT 1")
        # Trino runs queries lazily; the round-trip happens on fetch.
        return cur.fetchone() is not None
    except Exception as e:
        _log.debug("%s ping failed: %s", product_type.value, e)
        return False
    finally:
        try:
            cur.close()
        except Exception as e:
            _log.debug("Error closing ping cursor: %s", e)


def reset_for_reuse(conn: Any, product_type: ProductTypeEnum) -> None:
    """Discard any open transaction before the connection is pooled again.

    Trino connections are autocommit only and refuse ``rollback()`` outside a
    transaction, so they have nothing to reset. Errors propagate; the pool
    drops a connection that cannot be reset.
    """
    if product_type == ProductTypeEnum.TRINO:
        return
    conn.rollback()
