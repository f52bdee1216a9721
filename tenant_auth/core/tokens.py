"""
core/tokens.py
--------------
Access token encoding and verification.

Wire format: compact JWS (header.payload.signature), HMAC-SHA256 by default.
Payload claims:
    sub        user email
    tenant_id  tenant UUID (optional on legacy tokens)
    roles      list of role labels (optional on legacy tokens)
    scopes     list of derived scopes (optional on legacy tokens)
    iat, exp   integer seconds since epoch

decode() never raises for bad input. It returns either a ClaimSet or a
TokenFailure whose reason tells "expired" apart from "invalid", so the
boundary can say "session expired" instead of "access denied".
"""

import json
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from jose import ExpiredSignatureError, JWTError, jws, jwt
from jose.exceptions import JWSError
from jose.utils import base64url_decode, base64url_encode

from tenant_auth.core.config import Settings


@dataclass(frozen=True)
class ClaimSet:
    """Decoded token payload. A value: built fresh on encode/decode."""

    subject: str
    issued_at: int
    expires_at: int
    tenant_id: Optional[str] = None
    roles: Tuple[str, ...] = ()
    # None means the claim was absent (legacy token), not "no scopes"
    scopes: Optional[Tuple[str, ...]] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "sub": self.subject,
            "roles": list(self.roles),
            "iat": self.issued_at,
            "exp": self.expires_at,
        }
        if self.tenant_id is not None:
            payload["tenant_id"] = self.tenant_id
        if self.scopes is not None:
            payload["scopes"] = list(self.scopes)
        return payload

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ClaimSet":
        """Raises ValueError if a present claim has the wrong type."""
        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise ValueError("sub must be a non-empty string")

        issued_at = _int_claim(payload, "iat")
        expires_at = _int_claim(payload, "exp")

        tenant_id = payload.get("tenant_id")
        if tenant_id is not None and not isinstance(tenant_id, str):
            raise ValueError("tenant_id must be a string")

        roles = payload.get("roles")
        scopes = payload.get("scopes")
        return cls(
            subject=subject,
            issued_at=issued_at,
            expires_at=expires_at,
            tenant_id=tenant_id,
            roles=_string_list(roles, "roles") if roles is not None else (),
            scopes=_string_list(scopes, "scopes") if scopes is not None else None,
        )


def _int_claim(payload: Dict[str, Any], name: str) -> int:
    value = payload.get(name)
    # bool is an int subclass; reject it explicitly
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{name} must be an integer")
    return value


def _string_list(value: Any, name: str) -> Tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{name} must be a list of strings")
    return tuple(value)


class TokenFailureReason(str, Enum):
    MALFORMED = "MALFORMED"
    EXPIRED = "EXPIRED"
    UNSUPPORTED = "UNSUPPORTED"
    BAD_SIGNATURE = "BAD_SIGNATURE"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"


@dataclass(frozen=True)
class TokenFailure:
    reason: TokenFailureReason
    message: str

    @property
    def expired(self) -> bool:
        return self.reason is TokenFailureReason.EXPIRED


DecodeResult = Union[ClaimSet, TokenFailure]


class TokenCodec:
    """
    Signs and verifies access tokens with a shared secret.

    The codec holds only immutable configuration, so one instance can be
    shared by any number of concurrent requests.
    """

    def __init__(self, settings: Settings) -> None:
        self._secret = settings.JWT_SECRET
        self._algorithm = settings.JWT_ALGORITHM
        self._ttl_ms = settings.ACCESS_TOKEN_EXPIRE_MS
        self._max_length = settings.MAX_TOKEN_LENGTH

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms

    def build_claims(
        self,
        subject: str,
        tenant_id: Optional[str],
        roles: Iterable[str],
        scopes: Optional[Iterable[str]],
        now: Optional[float] = None,
    ) -> ClaimSet:
        """Stamp iat/exp onto a claim set. `now` is seconds since epoch."""
        now_ms = int((time.time() if now is None else now) * 1000)
        return ClaimSet(
            subject=subject,
            issued_at=now_ms // 1000,
            expires_at=(now_ms + self._ttl_ms) // 1000,
            tenant_id=tenant_id,
            roles=tuple(roles),
            scopes=tuple(scopes) if scopes is not None else None,
        )

    def encode(self, claims: ClaimSet) -> str:
        return jwt.encode(claims.to_payload(), self._secret, algorithm=self._algorithm)

    def decode(self, token: Optional[str]) -> DecodeResult:
        if token is None or not token.strip():
            return TokenFailure(TokenFailureReason.INVALID_ARGUMENT, "Token is empty")
        if len(token) > self._max_length:
            return TokenFailure(TokenFailureReason.MALFORMED, "Token is too long")

        segments = token.split(".")
        if len(segments) != 3:
            return TokenFailure(TokenFailureReason.MALFORMED, "Token must have three segments")
        header_segment, payload_segment, signature_segment = segments

        try:
            header = json.loads(base64url_decode(header_segment.encode("ascii")))
            payload = json.loads(base64url_decode(payload_segment.encode("ascii")))
        except (ValueError, RecursionError):
            # Deeply nested arrays exhaust the parser stack
            return TokenFailure(TokenFailureReason.MALFORMED, "Token segments are not valid base64 JSON")
        if not isinstance(header, dict) or not isinstance(payload, dict):
            return TokenFailure(TokenFailureReason.MALFORMED, "Token header and payload must be JSON objects")

        if header.get("alg") != self._algorithm:
            return TokenFailure(
                TokenFailureReason.UNSUPPORTED,
                f"Unsupported token algorithm: {header.get('alg')!r}",
            )

        if not _is_canonical_segment(signature_segment):
            return TokenFailure(TokenFailureReason.BAD_SIGNATURE, "Signature verification failed")
        try:
            jws.verify(token, self._secret, algorithms=[self._algorithm])
        except JWSError:
            return TokenFailure(TokenFailureReason.BAD_SIGNATURE, "Signature verification failed")

        try:
            verified = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={
                    "require_sub": True,
                    "require_iat": True,
                    "require_exp": True,
                    "leeway": 0,
                },
            )
        except ExpiredSignatureError:
            return TokenFailure(TokenFailureReason.EXPIRED, "Token has expired")
        except JWTError as exc:
            return TokenFailure(TokenFailureReason.MALFORMED, str(exc))

        try:
            return ClaimSet.from_payload(verified)
        except ValueError as exc:
            return TokenFailure(TokenFailureReason.MALFORMED, str(exc))


def _is_canonical_segment(segment: str) -> bool:
    """
    Base64url decoders ignore stray trailing bits and junk characters, so two
    different strings can decode to the same MAC. Only the canonical encoding
    is accepted.
    """
    try:
        raw = segment.encode("ascii")
        return base64url_encode(base64url_decode(raw)) == raw
    except ValueError:
        return False
