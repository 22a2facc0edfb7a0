"""
Tests for the role -> permission table.
"""

from __future__ import annotations

import pytest

from todo_api.auth.permissions import ROLE_PERMISSIONS, resolve_permissions
from todo_api_shared.schemas.common import Permission, Role


class TestResolvePermissions:
    @pytest.mark.parametrize("role", list(Role))
    def test_stable_across_calls(self, role):
        assert resolve_permissions(role) == resolve_permissions(role)
        assert resolve_permissions(role.value) == resolve_permissions(role)

    def test_owner_has_everything(self):
        assert set(resolve_permissions(Role.OWNER)) == set(Permission)

    def test_admin_lacks_role_changes_and_org_delete(self):
        perms = resolve_permissions(Role.ADMIN)
        assert Permission.ORG_DELETE not in perms
        assert Permission.ORG_MEMBERS_UPDATE_ROLE not in perms
        assert Permission.ORG_SETTINGS_UPDATE not in perms
        assert Permission.TODOS_DELETE in perms

    def test_member_cannot_delete_or_invite(self):
        perms = resolve_permissions(Role.MEMBER)
        assert Permission.TODOS_DELETE not in perms
        assert Permission.ORG_MEMBERS_INVITE not in perms
        assert Permission.TODOS_COMPLETE in perms

    def test_viewer_is_read_only(self):
        perms = resolve_permissions(Role.VIEWER)
        for p in perms:
            assert not p.value.endswith((":create", ":update", ":delete"))
        assert Permission.TODOS_READ in perms

    def test_unknown_role(self):
        with pytest.raises(ValueError):
            resolve_permissions("superuser")

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            ROLE_PERMISSIONS[Role.VIEWER] = (Permission.ORG_DELETE,)

    def test_roles_do_not_share_list_objects(self):
        # Each role is enumerated on its own; no derivation from another role.
        assert resolve_permissions(Role.ADMIN) is not resolve_permissions(Role.OWNER)
        assert len(resolve_permissions(Role.OWNER)) == 12
        assert len(resolve_permissions(Role.ADMIN)) == 9
        assert len(resolve_permissions(Role.MEMBER)) == 5
        assert len(resolve_permissions(Role.VIEWER)) == 3
