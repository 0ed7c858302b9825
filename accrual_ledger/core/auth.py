"""
Caller authorization.

The ledger never inherits from an access-control type; it receives an
``Authorizer`` and asks it a membership question. ``RoleTable`` is the default
implementation: an owner-administered capability set.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Protocol, Set

from ..util.structured_log import log_event
from .errors import Unauthorized
from .types import Role

log = logging.getLogger("accrual_ledger.auth")


class Authorizer(Protocol):
    def has_role(self, role: Role, account: str) -> bool: ...


class AllowAll:
    """Authorizer granting every role to everyone. For tests and local tooling."""

    def has_role(self, role: Role, account: str) -> bool:
        return True


class RoleTable:
    """Owner-administered role membership."""

    def __init__(self, owner: str, grants: Dict[Role, Iterable[str]] | None = None) -> None:
        if not isinstance(owner, str) or not owner:
            raise ValueError("owner must be a non-empty string")
        self._owner = owner
        self._members: Dict[Role, Set[str]] = {role: set() for role in Role}
        for role, accounts in (grants or {}).items():
            self._members[role].update(accounts)

    @property
    def owner(self) -> str:
        return self._owner

    def has_role(self, role: Role, account: str) -> bool:
        return account in self._members[role]

    def members(self, role: Role) -> list[str]:
        return sorted(self._members[role])

    def _require_owner(self, caller: str) -> None:
        if caller != self._owner:
            raise Unauthorized(caller, "owner")

    def grant_role(self, role: Role, account: str, *, caller: str) -> None:
        self._require_owner(caller)
        if account in self._members[role]:
            return
        self._members[role].add(account)
        log_event(log, "role_granted", role=role.value, account=account)

    def revoke_role(self, role: Role, account: str, *, caller: str) -> None:
        self._require_owner(caller)
        if account not in self._members[role]:
            return
        self._members[role].discard(account)
        log_event(log, "role_revoked", role=role.value, account=account)

    def transfer_ownership(self, new_owner: str, *, caller: str) -> None:
        self._require_owner(caller)
        if not isinstance(new_owner, str) or not new_owner:
            raise ValueError("new_owner must be a non-empty string")
        self._owner = new_owner


def require_role(authorizer: Authorizer, role: Role, caller: str) -> None:
    """Raise ``Unauthorized`` unless ``caller`` holds ``role``."""
    if not authorizer.has_role(role, caller):
        raise Unauthorized(caller, role.value)
