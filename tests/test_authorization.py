import pytest

from tenant_auth.core.authorization import (
    DenyReason,
    Policy,
    check_role,
    check_scope,
    evaluate,
    extract_bearer_token,
)
from tenant_auth.core.scopes import derive_scopes
from tenant_auth.core.tokens import ClaimSet


def _claims(roles, scopes="derive") -> ClaimSet:
    if scopes == "derive":
        scopes = tuple(sorted(derive_scopes(roles)))
    return ClaimSet(
        subject="a@x.com",
        issued_at=1,
        expires_at=2,
        tenant_id="t-1",
        roles=tuple(roles),
        scopes=scopes,
    )


AGENT = _claims(["ROLE_AGENT"])
ADMIN = _claims(["ROLE_ADMIN", "ROLE_USER"])
LEGACY = _claims([], scopes=None)


def test_agent_lacks_admin_role():
    decision = check_role(AGENT, ["ROLE_ADMIN"])
    assert not decision
    assert decision.reason is DenyReason.INSUFFICIENT_PERMISSIONS


def test_agent_reads_any_ticket():
    assert check_scope(AGENT, ["tickets:read:any"])


def test_any_of_roles():
    assert check_role(AGENT, ["ROLE_ADMIN", "ROLE_AGENT"])


def test_all_of_scopes():
    assert check_scope(ADMIN, ["tickets:read:any", "users:write:any"], require_all=True)
    decision = check_scope(AGENT, ["tickets:read:any", "tickets:write:any"], require_all=True)
    assert decision.reason is DenyReason.INSUFFICIENT_PERMISSIONS


def test_all_of_roles_requires_every_role():
    assert check_role(ADMIN, ["ROLE_ADMIN", "ROLE_USER"], require_all=True)
    assert not check_role(ADMIN, ["ROLE_ADMIN", "ROLE_AGENT"], require_all=True)


@pytest.mark.parametrize("check", [check_role, check_scope])
def test_missing_claims(check):
    decision = check(None, ["ROLE_ADMIN"])
    assert decision.reason is DenyReason.NO_TOKEN


def test_token_without_scopes_claim():
    decision = check_scope(LEGACY, ["tickets:read:own"])
    assert decision.reason is DenyReason.NO_SCOPES


def test_token_without_roles_claim():
    decision = check_role(LEGACY, ["ROLE_USER"])
    assert decision.reason is DenyReason.INSUFFICIENT_PERMISSIONS


def test_empty_requirement():
    assert not check_role(ADMIN, [])
    assert check_role(ADMIN, [], require_all=True)


def test_evaluate_dispatches_on_kind():
    assert evaluate(AGENT, Policy.scopes("tickets:read:any"))
    assert not evaluate(AGENT, Policy.roles("ROLE_ADMIN"))
    assert evaluate(None, Policy.roles("ROLE_ADMIN")).reason is DenyReason.NO_TOKEN


def test_policy_description():
    assert Policy.roles("ROLE_ADMIN", "ROLE_AGENT").describe() == "role: ROLE_ADMIN or ROLE_AGENT"
    policy = Policy.scopes("a", "b", require_all=True)
    assert policy.describe() == "scope: a and b"


@pytest.mark.parametrize(
    "header, expected",
    [
        ("Bearer abc.def.ghi", "abc.def.ghi"),
        (None, None),
        ("", None),
        ("Bearer ", None),
        ("bearer abc", None),
        ("Basic dXNlcjpwYXNz", None),
        ("Token abc", None),
    ],
)
def test_extract_bearer_token(header, expected):
    assert extract_bearer_token(header) == expected
