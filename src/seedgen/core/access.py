from __future__ import annotations

from enum import Enum
from threading import Lock

import structlog

from seedgen.core.errors import ExecutorForbidden, OwnerForbidden

log = structlog.get_logger()


class Role(str, Enum):
    OWNER = "owner"
    EXECUTOR = "executor"


class AccessControl:
    """
    Explicit role map: caller handle -> roles.

    - exactly one owner at any time
    - the owner satisfies executor checks as well
    """

    def __init__(self, *, owner: str, executors: tuple[str, ...] = ()) -> None:
        if not owner:
            raise ValueError("owner must be non-empty")
        self._lock = Lock()
        self._roles: dict[str, set[Role]] = {owner: {Role.OWNER}}
        for handle in executors:
            if handle:
                self._roles.setdefault(handle, set()).add(Role.EXECUTOR)

    @property
    def owner(self) -> str:
        with self._lock:
            return next(h for h, roles in self._roles.items() if Role.OWNER in roles)

    def roles_of(self, caller: str) -> frozenset[Role]:
        with self._lock:
            return frozenset(self._roles.get(caller, ()))

    def has_role(self, caller: str, role: Role) -> bool:
        roles = self.roles_of(caller)
        if role is Role.EXECUTOR:
            return Role.EXECUTOR in roles or Role.OWNER in roles
        return role in roles

    def require_owner(self, caller: str) -> None:
        if not self.has_role(caller, Role.OWNER):
            log.info("access.denied", caller=caller, role=Role.OWNER.value)
            raise OwnerForbidden(f"{caller!r} is not the owner")

    def require_executor(self, caller: str) -> None:
        if not self.has_role(caller, Role.EXECUTOR):
            log.info("access.denied", caller=caller, role=Role.EXECUTOR.value)
            raise ExecutorForbidden(f"{caller!r} is not an executor")

    def executors(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(sorted(h for h, roles in self._roles.items() if Role.EXECUTOR in roles))

    def grant_executor(self, handle: str) -> bool:
        """
        Returns False when `handle` already held the role.
        """
        if not handle:
            raise ValueError("handle must be non-empty")
        with self._lock:
            roles = self._roles.setdefault(handle, set())
            if Role.EXECUTOR in roles:
                return False
            roles.add(Role.EXECUTOR)
            return True

    def revoke_executor(self, handle: str) -> bool:
        with self._lock:
            roles = self._roles.get(handle)
            if roles is None or Role.EXECUTOR not in roles:
                return False
            roles.discard(Role.EXECUTOR)
            if not roles:
                del self._roles[handle]
            return True
