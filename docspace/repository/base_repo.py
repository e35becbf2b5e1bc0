from __future__ import annotations

import logging
import re
import sqlite3
from sqlite3 import Connection
from typing import Any, Sequence

from ..errors import ConstraintError, QueryError, StoreError

logger = logging.getLogger(__name__)

_IDENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _table(name: str) -> str:
    if not _IDENT.match(name or ""):
        raise ValueError(f"invalid table name: {name!r}")
    return name


def wrap_error(operation: str, key: str | None, exc: Exception) -> StoreError:
    """Map a driver exception onto the store error types and log it."""
    logger.warning("%s failed for %s: %s", operation, key, exc)
    if isinstance(exc, sqlite3.IntegrityError):
        return ConstraintError(operation, key, exc)
    return QueryError(operation, key, exc)


def delete_where(conn: Connection, table: str, where: str, params: Sequence[Any]) -> int:
    sql = f"DELETE FROM {_table(table)} WHERE {where}"
    try:
        cur = conn.execute(sql, params)
    except sqlite3.Error as e:
        raise wrap_error(f"delete from {table}", ", ".join(str(p) for p in params), e) from e
    return cur.rowcount


def delete_constrained(conn: Connection, table: str, org_id: str, ref_id: str) -> int:
    """Delete the row of `table` identified by (orgid, refid); returns rows removed."""
    return delete_where(conn, table, "orgid=? AND refid=?", (org_id, ref_id))
