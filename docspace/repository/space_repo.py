"""
Space store: persistence for spaces and the visibility listings.

Every function takes the storage handle explicitly. Writes expect a
connection inside db.transaction(); reads can use any connection.
"""
from __future__ import annotations

import sqlite3
from datetime import timedelta
from sqlite3 import Connection
from typing import List

from ..domain.context import RequestContext
from ..domain.space import SELECT_COLUMNS, Space, SpaceType, utc_now
from ..errors import DecodeError, NotFoundError
from .base_repo import delete_constrained, wrap_error

# Wildcard subject / member id meaning "everyone".
EVERYONE = "0"


def _decode(row, operation: str, key: str) -> Space:
    try:
        return Space.from_row(row)
    except (ValueError, KeyError, TypeError) as e:
        # pydantic ValidationError is a ValueError
        raise DecodeError(operation, key, e) from e


def _select_many(conn: Connection, sql: str, params, operation: str, key: str) -> List[Space]:
    try:
        rows = conn.execute(sql, params).fetchall()
    except sqlite3.Error as e:
        raise wrap_error(operation, key, e) from e
    return [_decode(r, operation, key) for r in rows]


def add(conn: Connection, ctx: RequestContext, sp: Space) -> Space:
    now = utc_now()
    sp = sp.model_copy(update={"user_id": ctx.user_id, "created": now, "revised": now})
    params = sp.to_params()
    try:
        cur = conn.execute(
            "INSERT INTO space(refid, name, orgid, userid, type, lifecycle, likes, created, revised) "
            "VALUES(:refid, :name, :orgid, :userid, :type, :lifecycle, :likes, :created, :revised)",
            params,
        )
    except sqlite3.Error as e:
        raise wrap_error("insert space", sp.ref_id, e) from e
    return sp.model_copy(update={"id": int(cur.lastrowid)})


def get(conn: Connection, ctx: RequestContext, ref_id: str) -> Space:
    try:
        row = conn.execute(
            f"SELECT {SELECT_COLUMNS} FROM space WHERE orgid=? AND refid=?",
            (ctx.org_id, ref_id),
        ).fetchone()
    except sqlite3.Error as e:
        raise wrap_error("select space", ref_id, e) from e
    if row is None:
        raise NotFoundError("select space", ref_id)
    return _decode(row, "select space", ref_id)


def public_spaces(conn: Connection, ctx: RequestContext, org_id: str) -> List[Space]:
    """Spaces anyone in the organization can see."""
    return _select_many(
        conn,
        f"SELECT {SELECT_COLUMNS} FROM space WHERE orgid=? AND type=? ORDER BY name, refid",
        (org_id, int(SpaceType.PUBLIC)),
        "public spaces",
        org_id,
    )


def get_viewable(conn: Connection, ctx: RequestContext) -> List[Space]:
    """
    Spaces the current user may view: a user-level view grant (own id or
    everyone), or a role-level view grant on a role the user belongs to
    (or whose membership includes everyone).
    """
    sql = f"""
    SELECT {SELECT_COLUMNS}
    FROM space
    WHERE orgid = :org AND refid IN (
        SELECT refid FROM permission
        WHERE orgid = :org AND who = 'user' AND (whoid = :user OR whoid = :everyone)
          AND location = 'space' AND action = 'view'
        UNION
        SELECT p.refid FROM permission p
        LEFT JOIN group_member r ON p.whoid = r.groupid
        WHERE p.orgid = :org AND p.who = 'role'
          AND p.location = 'space' AND p.action = 'view'
          AND (r.userid = :user OR r.userid = :everyone)
    )
    ORDER BY name, refid
    """
    params = {"org": ctx.org_id, "user": ctx.user_id, "everyone": EVERYONE}
    return _select_many(conn, sql, params, "viewable spaces", ctx.org_id)


def get_all(conn: Connection, ctx: RequestContext) -> List[Space]:
    """Every space in the organization, regardless of grants. Admin use."""
    return _select_many(
        conn,
        f"SELECT {SELECT_COLUMNS} FROM space WHERE orgid=? ORDER BY name, refid",
        (ctx.org_id,),
        "all spaces",
        ctx.org_id,
    )


def update(conn: Connection, ctx: RequestContext, sp: Space) -> Space:
    if sp.org_id != ctx.org_id:
        raise NotFoundError("update space", sp.ref_id)
    revised = utc_now()
    if sp.revised is not None:
        revised = max(revised, sp.revised + timedelta(microseconds=1))
    sp = sp.model_copy(update={"revised": revised})
    params = sp.to_params()
    params["orgid"] = ctx.org_id
    try:
        cur = conn.execute(
            "UPDATE space SET name=:name, type=:type, lifecycle=:lifecycle, userid=:userid, "
            "likes=:likes, revised=:revised WHERE orgid=:orgid AND refid=:refid",
            params,
        )
    except sqlite3.Error as e:
        raise wrap_error("update space", sp.ref_id, e) from e
    if cur.rowcount == 0:
        raise NotFoundError("update space", sp.ref_id)
    return sp


def delete(conn: Connection, ctx: RequestContext, ref_id: str) -> int:
    return delete_constrained(conn, "space", ctx.org_id, ref_id)
