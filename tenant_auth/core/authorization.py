"""
core/authorization.py
---------------------
Role and scope checks against a decoded claim set.

Each protected operation declares a Policy value (kind, required set,
require_all). The evaluator knows nothing about endpoints; it only compares
the policy with the caller's claims and returns a Decision.

    require_all=False  allow if the caller holds at least one required item
    require_all=True   allow if the caller holds every required item

Deny reasons are distinct so the boundary can answer 401 for NO_TOKEN and
403 for the others.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple

from tenant_auth.core.tokens import ClaimSet


class PolicyKind(str, Enum):
    ROLE = "role"
    SCOPE = "scope"


class DenyReason(str, Enum):
    NO_TOKEN = "NO_TOKEN"
    NO_SCOPES = "NO_SCOPES"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[DenyReason] = None
    message: str = ""

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(allowed=True)


def deny(reason: DenyReason, message: str) -> Decision:
    return Decision(allowed=False, reason=reason, message=message)


@dataclass(frozen=True)
class Policy:
    kind: PolicyKind
    required: Tuple[str, ...]
    require_all: bool = False

    @classmethod
    def roles(cls, *required: str, require_all: bool = False) -> "Policy":
        return cls(PolicyKind.ROLE, tuple(required), require_all)

    @classmethod
    def scopes(cls, *required: str, require_all: bool = False) -> "Policy":
        return cls(PolicyKind.SCOPE, tuple(required), require_all)

    def describe(self) -> str:
        joiner = " and " if self.require_all else " or "
        return f"{self.kind.value}: {joiner.join(self.required)}"


def _matches(held: Iterable[str], required: Iterable[str], require_all: bool) -> bool:
    held_set = set(held)
    required_set = set(required)
    if require_all:
        return required_set <= held_set
    return not held_set.isdisjoint(required_set)


def check_role(
    claims: Optional[ClaimSet],
    required_roles: Iterable[str],
    require_all: bool = False,
) -> Decision:
    if claims is None:
        return deny(DenyReason.NO_TOKEN, "No authentication token provided")
    if not _matches(claims.roles, required_roles, require_all):
        return deny(DenyReason.INSUFFICIENT_PERMISSIONS, "Insufficient role permissions")
    return ALLOW


def check_scope(
    claims: Optional[ClaimSet],
    required_scopes: Iterable[str],
    require_all: bool = False,
) -> Decision:
    if claims is None:
        return deny(DenyReason.NO_TOKEN, "No authentication token provided")
    if claims.scopes is None:
        return deny(DenyReason.NO_SCOPES, "No scopes found in token")
    if not _matches(claims.scopes, required_scopes, require_all):
        return deny(DenyReason.INSUFFICIENT_PERMISSIONS, "Insufficient scope permissions")
    return ALLOW


def evaluate(claims: Optional[ClaimSet], policy: Policy) -> Decision:
    if policy.kind is PolicyKind.ROLE:
        return check_role(claims, policy.required, policy.require_all)
    return check_scope(claims, policy.required, policy.require_all)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an `Authorization: Bearer <token>` value, else None."""
    if authorization is None or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer "):]
    return token or None
