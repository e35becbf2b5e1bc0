from __future__ import annotations

import pytest

from docspace.domain.context import RequestContext
from docspace.domain.space import Space, SpaceType
from docspace.repository import space_repo


def grant(conn, refid, who="user", whoid="u1", action="view", orgid="org1", location="space"):
    conn.execute(
        "INSERT INTO permission(orgid, who, whoid, action, location, refid) VALUES(?,?,?,?,?,?)",
        (orgid, who, whoid, action, location, refid),
    )


def member(conn, groupid, userid, orgid="org1"):
    conn.execute(
        "INSERT INTO group_member(orgid, groupid, userid) VALUES(?,?,?)",
        (orgid, groupid, userid),
    )


def refs(spaces):
    return [s.ref_id for s in spaces]


@pytest.fixture()
def org1(conn, ctx):
    """s1 public, s2 private, s3 private."""
    space_repo.add(conn, ctx, Space(ref_id="s1", name="s1", org_id="org1", type=SpaceType.PUBLIC))
    space_repo.add(conn, ctx, Space(ref_id="s2", name="s2", org_id="org1"))
    space_repo.add(conn, ctx, Space(ref_id="s3", name="s3", org_id="org1"))
    return conn


def as_user(user_id, org_id="org1"):
    return RequestContext(org_id=org_id, user_id=user_id)


def test_no_grants_nothing_viewable(org1):
    assert space_repo.get_viewable(org1, as_user("u1")) == []


def test_direct_and_everyone_grants(org1):
    grant(org1, "s1", whoid="0")
    grant(org1, "s2", whoid="u1")

    assert refs(space_repo.get_viewable(org1, as_user("u1"))) == ["s1", "s2"]
    assert refs(space_repo.get_viewable(org1, as_user("u2"))) == ["s1"]


def test_public_type_alone_does_not_grant_view(org1):
    # visibility comes from grants; type only drives public_spaces
    grant(org1, "s2", whoid="u1")
    assert refs(space_repo.public_spaces(org1, as_user("u2"), "org1")) == ["s1"]
    assert space_repo.get_viewable(org1, as_user("u2")) == []


def test_role_grant_through_membership(org1):
    grant(org1, "s3", who="role", whoid="g-editors")
    member(org1, "g-editors", "u2")

    assert refs(space_repo.get_viewable(org1, as_user("u2"))) == ["s3"]
    assert space_repo.get_viewable(org1, as_user("u1")) == []


def test_role_with_everyone_member(org1):
    grant(org1, "s2", who="role", whoid="g-all")
    member(org1, "g-all", "0")

    assert refs(space_repo.get_viewable(org1, as_user("anyone"))) == ["s2"]


def test_role_grant_without_members_hides_space(org1):
    grant(org1, "s3", who="role", whoid="g-empty")
    assert space_repo.get_viewable(org1, as_user("u1")) == []


def test_duplicate_grants_yield_one_row(org1):
    grant(org1, "s2", whoid="u1")
    grant(org1, "s2", whoid="u1")
    grant(org1, "s2", whoid="0")
    grant(org1, "s2", who="role", whoid="g1")
    member(org1, "g1", "u1")
    member(org1, "g1", "0")

    assert refs(space_repo.get_viewable(org1, as_user("u1"))) == ["s2"]


def test_only_view_action_on_spaces_counts(org1):
    grant(org1, "s1", whoid="u1", action="edit")
    grant(org1, "s2", whoid="u1", location="document")
    grant(org1, "s3", who="role", whoid="g1", action="manage")
    member(org1, "g1", "u1")

    assert space_repo.get_viewable(org1, as_user("u1")) == []


def test_sorted_by_name(conn, ctx):
    for ref, name in (("a", "zulu"), ("b", "alpha"), ("c", "mike")):
        space_repo.add(conn, ctx, Space(ref_id=ref, name=name, org_id="org1"))
        grant(conn, ref, whoid="u1")

    assert [s.name for s in space_repo.get_viewable(conn, as_user("u1"))] == ["alpha", "mike", "zulu"]


def test_no_cross_tenant_leakage(org1, ctx):
    other = as_user("u1", org_id="org2")
    space_repo.add(org1, other, Space(ref_id="s2", name="theirs", org_id="org2"))
    space_repo.add(org1, other, Space(ref_id="x9", name="x9", org_id="org2"))
    # grants recorded in org2 must not open org1's s2, and vice versa
    grant(org1, "s2", whoid="u1", orgid="org2")
    grant(org1, "x9", whoid="u1", orgid="org1")

    assert space_repo.get_viewable(org1, as_user("u1")) == []
    viewable = space_repo.get_viewable(org1, other)
    assert refs(viewable) == ["s2"]
    assert viewable[0].name == "theirs"
