"""Credential codec: protocol, bcrypt (production), and simple SHA-256 (tests/dev).

BcryptHasher is CPU-bound (~100ms per call at the default work factor) and
runs off the event loop using anyio.to_thread.run_sync() to avoid blocking
under concurrent requests.

SimpleHasher uses unsalted SHA-256 with a "simple$" prefix for instant hashing.
It is intended for tests and throwaway local setups only.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Protocol, runtime_checkable

import bcrypt
import structlog
from anyio import to_thread

logger = structlog.get_logger()

DEFAULT_BCRYPT_ROUNDS = 12
BCRYPT_MAX_BYTES = 72


@runtime_checkable
class PasswordHasher(Protocol):
    """Hash and verify credentials."""

    async def hash(self, plain: str) -> str: ...

    async def verify(self, plain: str, hashed: str) -> bool: ...


class BcryptHasher:
    """Production hasher using bcrypt (async, off-thread)."""

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        self._rounds = rounds

    async def hash(self, plain: str) -> str:
        encoded = plain.encode("utf-8")
        rounds = self._rounds
        return await to_thread.run_sync(lambda: bcrypt.hashpw(encoded, bcrypt.gensalt(rounds)).decode("utf-8"))

    async def verify(self, plain: str, hashed: str) -> bool:
        """Return False for a wrong credential and for malformed stored hashes.

        A malformed hash means corrupted data; it is logged, not propagated.
        Credentials longer than bcrypt accepts can never match and are
        rejected before checkpw, which would blame the hash for them.
        """
        encoded_plain = plain.encode("utf-8")
        if len(encoded_plain) > BCRYPT_MAX_BYTES:
            return False
        encoded_hash = hashed.encode("utf-8")
        try:
            return await to_thread.run_sync(lambda: bcrypt.checkpw(encoded_plain, encoded_hash))
        except ValueError:
            logger.warning("malformed stored credential hash")
            return False


_SIMPLE_PREFIX = "simple$"


class SimpleHasher:
    """Fast SHA-256 hasher for tests. Not suitable for production use."""

    async def hash(self, plain: str) -> str:
        return _SIMPLE_PREFIX + hashlib.sha256(plain.encode("utf-8")).hexdigest()

    async def verify(self, plain: str, hashed: str) -> bool:
        if not hashed.startswith(_SIMPLE_PREFIX):
            return False
        expected = _SIMPLE_PREFIX + hashlib.sha256(plain.encode("utf-8")).hexdigest()
        return hmac.compare_digest(hashed, expected)


def get_hasher(name: str = "bcrypt", *, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> PasswordHasher:
    """Return a PasswordHasher by name ("bcrypt" or "simple")."""
    if name == "bcrypt":
        return BcryptHasher(rounds)
    if name == "simple":
        return SimpleHasher()
    raise ValueError(f"Unknown password hasher: {name!r}")
