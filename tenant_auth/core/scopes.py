"""
core/scopes.py
--------------
Role → scope derivation.

Roles are an open set of labels. Only the three canonical roles below map to
scopes; any other label contributes nothing and is not an error, so a new
role can be assigned before its mapping ships.

Scopes are never stored. They are recomputed from the user's current roles
every time an access token is issued.
"""

from enum import Enum
from typing import Dict, FrozenSet, Iterable, List


class Role(str, Enum):
    ADMIN = "ROLE_ADMIN"
    AGENT = "ROLE_AGENT"
    USER = "ROLE_USER"


class Scope(str, Enum):
    TICKETS_READ_ANY = "tickets:read:any"
    TICKETS_WRITE_ANY = "tickets:write:any"
    TICKETS_DELETE_ANY = "tickets:delete:any"
    TICKETS_READ_ASSIGNED = "tickets:read:assigned"
    TICKETS_WRITE_ASSIGNED = "tickets:write:assigned"
    TICKETS_READ_OWN = "tickets:read:own"
    TICKETS_WRITE_OWN = "tickets:write:own"
    USERS_READ_ANY = "users:read:any"
    USERS_WRITE_ANY = "users:write:any"


ROLE_SCOPES: Dict[str, FrozenSet[str]] = {
    Role.ADMIN.value: frozenset({
        Scope.TICKETS_READ_ANY.value,
        Scope.TICKETS_WRITE_ANY.value,
        Scope.TICKETS_DELETE_ANY.value,
        Scope.USERS_READ_ANY.value,
        Scope.USERS_WRITE_ANY.value,
    }),
    Role.AGENT.value: frozenset({
        Scope.TICKETS_READ_ASSIGNED.value,
        Scope.TICKETS_WRITE_ASSIGNED.value,
        Scope.TICKETS_READ_ANY.value,
    }),
    Role.USER.value: frozenset({
        Scope.TICKETS_READ_OWN.value,
        Scope.TICKETS_WRITE_OWN.value,
    }),
}

DEFAULT_SIGNUP_ROLES: FrozenSet[str] = frozenset({Role.USER.value})


def derive_scopes(roles: Iterable[str]) -> FrozenSet[str]:
    """Union of the scopes granted by each role. Unknown roles grant nothing."""
    scopes: set = set()
    for role in roles:
        scopes |= ROLE_SCOPES.get(role, frozenset())
    return frozenset(scopes)


def normalize_roles(roles: Iterable[str]) -> List[str]:
    """Collapse duplicates and give a stable order for token claims."""
    return sorted(set(roles))
