"""
core/security.py
----------------
Password hashing.

Design decisions:
  - bcrypt via passlib; the work factor comes from Settings.BCRYPT_ROUNDS
    (12 in production, lowered in tests).
  - bcrypt is CPU-bound, so hash/verify run in the threadpool and never
    block the event loop. Many verifications can run concurrently.
  - dummy_verify() burns the same time as a real check, so a login against
    an unknown email is not distinguishable by latency.
"""

from functools import lru_cache

from passlib.context import CryptContext
from starlette.concurrency import run_in_threadpool


class PasswordHasher:
    """One-way hash/verify capability injected into the auth flows."""

    def __init__(self, rounds: int = 12) -> None:
        self._context = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds
        )

    async def hash(self, plain: str) -> str:
        """Return a bcrypt hash of the plain-text password."""
        return await run_in_threadpool(self._context.hash, plain)

    async def verify(self, plain: str, hashed: str) -> bool:
        """Constant-time comparison of plain password against stored hash."""
        return await run_in_threadpool(self._context.verify, plain, hashed)

    async def dummy_verify(self) -> None:
        await run_in_threadpool(self._context.dummy_verify)


@lru_cache()
def get_password_hasher(rounds: int) -> PasswordHasher:
    return PasswordHasher(rounds)
