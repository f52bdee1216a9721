import time

import pytest
from jose import jwt
from jose.utils import base64url_decode, base64url_encode
from pydantic import ValidationError

from tenant_auth.core.config import Settings
from tenant_auth.core.tokens import ClaimSet, TokenCodec, TokenFailure, TokenFailureReason

from conftest import TEST_SECRET

TENANT_ID = "00000000-0000-0000-0000-000000000001"


def _claims(codec: TokenCodec, now=None) -> ClaimSet:
    return codec.build_claims(
        subject="a@x.com",
        tenant_id=TENANT_ID,
        roles=["ROLE_USER"],
        scopes=["tickets:read:own", "tickets:write:own"],
        now=now,
    )


def _reason(outcome) -> TokenFailureReason:
    assert isinstance(outcome, TokenFailure), outcome
    return outcome.reason


def test_round_trip(codec):
    claims = _claims(codec)
    assert codec.decode(codec.encode(claims)) == claims


def test_wire_payload(codec):
    claims = _claims(codec, now=1_700_000_000.5)
    payload = jwt.get_unverified_claims(codec.encode(claims))
    assert payload == {
        "sub": "a@x.com",
        "tenant_id": TENANT_ID,
        "roles": ["ROLE_USER"],
        "scopes": ["tickets:read:own", "tickets:write:own"],
        "iat": 1_700_000_000,
        "exp": 1_700_000_900,
    }
    assert jwt.get_unverified_header(codec.encode(claims))["alg"] == "HS256"


def test_expiry_is_issued_at_plus_ttl(codec):
    claims = _claims(codec, now=1000.0)
    assert claims.expires_at - claims.issued_at == codec.ttl_ms // 1000


def test_expired_token(codec):
    ttl_seconds = codec.ttl_ms / 1000
    claims = _claims(codec, now=time.time() - ttl_seconds - 1)
    outcome = codec.decode(codec.encode(claims))
    assert _reason(outcome) is TokenFailureReason.EXPIRED
    assert outcome.expired


def test_every_signature_character_is_checked(codec):
    token = codec.encode(_claims(codec))
    head, payload, signature = token.split(".")
    for i, ch in enumerate(signature):
        replacement = "A" if ch != "A" else "B"
        tampered = f"{head}.{payload}.{signature[:i]}{replacement}{signature[i + 1:]}"
        assert _reason(codec.decode(tampered)) is TokenFailureReason.BAD_SIGNATURE


def test_payload_tampering_is_detected(codec):
    token = codec.encode(_claims(codec))
    head, payload, signature = token.split(".")
    forged = base64url_decode(payload.encode()).replace(b"ROLE_USER", b"ROLE_ADMIN")
    tampered = f"{head}.{base64url_encode(forged).decode()}.{signature}"
    assert _reason(codec.decode(tampered)) is TokenFailureReason.BAD_SIGNATURE


def test_token_signed_with_other_secret(codec):
    payload = _claims(codec).to_payload()
    token = jwt.encode(payload, "another-secret-that-is-also-long-enough-1234", algorithm="HS256")
    assert _reason(codec.decode(token)) is TokenFailureReason.BAD_SIGNATURE


def test_other_algorithm_is_unsupported(codec):
    token = jwt.encode(_claims(codec).to_payload(), TEST_SECRET, algorithm="HS512")
    assert _reason(codec.decode(token)) is TokenFailureReason.UNSUPPORTED


def test_unsigned_token_is_unsupported(codec):
    head = base64url_encode(b'{"alg":"none","typ":"JWT"}').decode()
    body = base64url_encode(b'{"sub":"a@x.com","iat":1,"exp":9999999999}').decode()
    assert _reason(codec.decode(f"{head}.{body}.")) is TokenFailureReason.UNSUPPORTED


@pytest.mark.parametrize("token", [None, "", "   "])
def test_empty_token(codec, token):
    assert _reason(codec.decode(token)) is TokenFailureReason.INVALID_ARGUMENT


@pytest.mark.parametrize("token", ["abc", "a.b", "a.b.c.d", "!!!.???.sig", "e30.e30"])
def test_structurally_invalid(codec, token):
    assert _reason(codec.decode(token)) is TokenFailureReason.MALFORMED


def test_non_object_payload(codec):
    head = base64url_encode(b'{"alg":"HS256"}').decode()
    body = base64url_encode(b"[1, 2, 3]").decode()
    assert _reason(codec.decode(f"{head}.{body}.c2ln")) is TokenFailureReason.MALFORMED


def test_oversized_token(codec):
    assert _reason(codec.decode("a" * 10_000)) is TokenFailureReason.MALFORMED


@pytest.mark.parametrize("segment", ["header", "payload"])
def test_deeply_nested_segment_is_malformed(codec, segment):
    nested = base64url_encode(b"[" * 5000).decode()
    head = base64url_encode(b'{"alg":"HS256"}').decode()
    body = base64url_encode(b'{"sub":"a@x.com"}').decode()
    token = f"{nested}.{body}.c2ln" if segment == "header" else f"{head}.{nested}.c2ln"
    assert len(token) < 8192
    assert _reason(codec.decode(token)) is TokenFailureReason.MALFORMED


def test_wrongly_typed_claim_is_malformed(codec):
    payload = _claims(codec).to_payload()
    payload["roles"] = "ROLE_ADMIN"
    token = jwt.encode(payload, TEST_SECRET, algorithm="HS256")
    assert _reason(codec.decode(token)) is TokenFailureReason.MALFORMED


def test_missing_subject_is_malformed(codec):
    payload = _claims(codec).to_payload()
    del payload["sub"]
    token = jwt.encode(payload, TEST_SECRET, algorithm="HS256")
    assert _reason(codec.decode(token)) is TokenFailureReason.MALFORMED


def test_legacy_token_without_enriched_claims(codec):
    now = int(time.time())
    token = jwt.encode(
        {"sub": "old@x.com", "iat": now, "exp": now + 600}, TEST_SECRET, algorithm="HS256"
    )
    claims = codec.decode(token)
    assert isinstance(claims, ClaimSet)
    assert claims.subject == "old@x.com"
    assert claims.tenant_id is None
    assert claims.roles == ()
    assert claims.scopes is None


def test_empty_scopes_differ_from_absent_scopes(codec):
    claims = codec.build_claims("a@x.com", TENANT_ID, [], [])
    decoded = codec.decode(codec.encode(claims))
    assert decoded.scopes == ()


def test_short_secret_is_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, JWT_SECRET="too-short")


def test_non_hmac_algorithm_is_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, JWT_SECRET=TEST_SECRET, JWT_ALGORITHM="RS256")
