"""Tests for accrual_ledger/core/auth.py: role membership."""

import pytest

from accrual_ledger.core.auth import AllowAll, RoleTable, require_role
from accrual_ledger.core.errors import Unauthorized
from accrual_ledger.core.types import Role


class TestRoleTable:
    def test_seeded_grants(self):
        roles = RoleTable("owner", grants={Role.MINTER: ["vault"]})
        assert roles.has_role(Role.MINTER, "vault")
        assert not roles.has_role(Role.BURNER, "vault")

    def test_owner_grants_and_revokes(self):
        roles = RoleTable("owner")
        roles.grant_role(Role.BURNER, "vault", caller="owner")
        assert roles.members(Role.BURNER) == ["vault"]
        roles.revoke_role(Role.BURNER, "vault", caller="owner")
        assert roles.members(Role.BURNER) == []

    def test_non_owner_cannot_grant(self):
        roles = RoleTable("owner")
        with pytest.raises(Unauthorized) as ei:
            roles.grant_role(Role.MINTER, "mallory", caller="mallory")
        assert ei.value.permission == "owner"
        assert not roles.has_role(Role.MINTER, "mallory")

    def test_owner_is_not_implicitly_privileged(self):
        roles = RoleTable("owner")
        assert not roles.has_role(Role.MINTER, "owner")

    def test_transfer_ownership(self):
        roles = RoleTable("owner")
        roles.transfer_ownership("new", caller="owner")
        assert roles.owner == "new"
        with pytest.raises(Unauthorized):
            roles.grant_role(Role.MINTER, "x", caller="owner")

    def test_empty_owner_rejected(self):
        with pytest.raises(ValueError):
            RoleTable("")


class TestRequireRole:
    def test_pass(self):
        require_role(AllowAll(), Role.RATE_ADMIN, "anyone")

    def test_fail(self):
        with pytest.raises(Unauthorized):
            require_role(RoleTable("owner"), Role.RATE_ADMIN, "anyone")
