import pytest

from hcp.core.errors import Forbidden
from hcp.core.permissions import PartnerScope, can_access
from hcp.schemas.admin import AdminUser
from hcp.schemas.enums import AdminRole


SUPER = AdminUser(id="a1", role=AdminRole.SUPER_ADMIN)
REGIONAL = AdminUser(id="a2", role=AdminRole.REGIONAL_ADMIN, assigned_codes=["P1", "P2"])
LOCAL = AdminUser(id="a3", role=AdminRole.COMMUNITY_ADMIN, assigned_codes=["P3"])


@pytest.mark.parametrize("code", ["P1", "P9", "ANY"])
def test_super_admin_accesses_every_code(code):
    assert can_access(SUPER, code)


@pytest.mark.parametrize("admin,code,expected", [
    (REGIONAL, "P1", True),
    (REGIONAL, "P2", True),
    (REGIONAL, "P3", False),
    (LOCAL, "P3", True),
    (LOCAL, "P1", False),
])
def test_scoped_admin_accesses_only_assigned_codes(admin, code, expected):
    assert can_access(admin, code) is expected


def test_unknown_actor_has_no_access():
    assert can_access(None, "P1") is False


async def test_repository_has_access_looks_up_actor(repos, super_admin, community_admin):
    assert await repos.admins.has_access(super_admin.id, "P7")
    assert await repos.admins.has_access(community_admin.id, "P1")
    assert not await repos.admins.has_access(community_admin.id, "P2")
    assert not await repos.admins.has_access("nobody", "P1")


def test_scope_filters_records():
    records = [{"code": "P1"}, {"code": "P3"}, {"code": None}]
    scope = PartnerScope(REGIONAL)

    assert scope.filter(records, lambda r: r["code"]) == [{"code": "P1"}]
    assert PartnerScope(SUPER).filter(records, lambda r: r["code"]) == records


def test_scope_unenforced_is_unrestricted():
    scope = PartnerScope(LOCAL, enforce=False)
    assert scope.unrestricted
    assert scope.codes is None
    scope.require_access("P1")
    scope.require_super_admin()


def test_scope_rejects_outside_codes():
    scope = PartnerScope(LOCAL)
    assert scope.codes == {"P3"}
    with pytest.raises(Forbidden):
        scope.require_access("P1")
    with pytest.raises(Forbidden):
        scope.require_access(None)
    with pytest.raises(Forbidden):
        scope.require_super_admin()
