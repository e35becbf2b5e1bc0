from __future__ import annotations

import logging
import uuid

from ..db import get_conn, transaction
from ..domain.context import RequestContext
from ..domain.space import Lifecycle, Space, SpaceType
from ..logs import LogContext
from ..repository import space_repo

logger = logging.getLogger(__name__)

# Fields a caller may change through update_space.
EDITABLE_FIELDS = ("name", "type", "lifecycle", "user_id", "likes")


def _snapshot(sp: Space | None) -> dict | None:
    return None if sp is None else sp.model_dump(mode="json")


def new_ref_id() -> str:
    return uuid.uuid4().hex


def create_space(
    ctx: RequestContext,
    name: str,
    log: LogContext,
    *,
    space_type: SpaceType = SpaceType.PRIVATE,
    lifecycle: Lifecycle = Lifecycle.LIVE,
    ref_id: str | None = None,
) -> Space:
    name = (name or "").strip()
    if not name:
        raise ValueError("space_name_required")
    sp = Space(
        ref_id=ref_id or new_ref_id(),
        name=name,
        org_id=ctx.org_id,
        type=space_type,
        lifecycle=lifecycle,
    )
    log.set_payload({"name": name, "type": int(space_type), "lifecycle": int(lifecycle)})
    with get_conn() as conn:
        with transaction(conn):
            created = space_repo.add(conn, ctx, sp)
    log.set_entity("SPACE", created.ref_id)
    log.set_after(_snapshot(created))
    return created


def get_space(ctx: RequestContext, ref_id: str) -> Space:
    with get_conn() as conn:
        return space_repo.get(conn, ctx, ref_id)


def list_public_spaces(ctx: RequestContext, org_id: str | None = None) -> list[Space]:
    with get_conn() as conn:
        return space_repo.public_spaces(conn, ctx, org_id or ctx.org_id)


def list_viewable_spaces(ctx: RequestContext) -> list[Space]:
    with get_conn() as conn:
        return space_repo.get_viewable(conn, ctx)


def list_all_spaces(ctx: RequestContext) -> list[Space]:
    if not ctx.administrator:
        raise PermissionError("administrator_required")
    with get_conn() as conn:
        return space_repo.get_all(conn, ctx)


def update_space(ctx: RequestContext, ref_id: str, changes: dict, log: LogContext) -> Space:
    """
    Apply `changes` to the space and persist it.
    Only EDITABLE_FIELDS may be changed; ref id, org and created are fixed.
    """
    unknown = sorted(set(changes) - set(EDITABLE_FIELDS))
    if unknown:
        raise ValueError(f"not_editable: {', '.join(unknown)}")
    if not changes:
        raise ValueError("no_changes")

    log.set_entity("SPACE", ref_id)
    log.set_payload(changes)
    with get_conn() as conn:
        with transaction(conn):
            before = space_repo.get(conn, ctx, ref_id)
            # validate through the model so bad enum values are rejected
            edited = Space.model_validate({**before.model_dump(), **changes})
            after = space_repo.update(conn, ctx, edited)
    log.set_before(_snapshot(before))
    log.set_after(_snapshot(after))
    return after


def delete_space(ctx: RequestContext, ref_id: str, log: LogContext) -> int:
    log.set_entity("SPACE", ref_id)
    with get_conn() as conn:
        with transaction(conn):
            rows = space_repo.delete(conn, ctx, ref_id)
    if rows == 0:
        logger.info("delete_space: nothing to delete for %s/%s", ctx.org_id, ref_id)
    log.set_after({"deleted": rows})
    return rows
