"""Tests for password hashers."""

from __future__ import annotations

import logging

import pytest

from shared.auth.password import BCRYPT_MAX_BYTES, BcryptHasher, PasswordHasher, SimpleHasher, get_hasher

# Minimum work factor keeps the suite fast; production default is 12.
FAST_ROUNDS = 4


class TestBcryptHasher:
    async def test_hash_and_verify_roundtrip(self):
        hasher = BcryptHasher(rounds=FAST_ROUNDS)
        hashed = await hasher.hash("my-secret-password")
        assert await hasher.verify("my-secret-password", hashed) is True

    async def test_wrong_password_rejected(self):
        hasher = BcryptHasher(rounds=FAST_ROUNDS)
        hashed = await hasher.hash("correct-password")
        assert await hasher.verify("wrong-password", hashed) is False

    async def test_hash_is_salted(self):
        hasher = BcryptHasher(rounds=FAST_ROUNDS)
        first = await hasher.hash("same-password")
        second = await hasher.hash("same-password")
        assert first != second
        assert "same-password" not in first

    async def test_hash_uses_configured_rounds(self):
        hashed = await BcryptHasher(rounds=5).hash("pw")
        assert hashed.startswith("$2b$05$")

    async def test_malformed_hash_returns_false(self):
        """verify returns False for non-bcrypt hashes instead of raising."""
        hasher = BcryptHasher(rounds=FAST_ROUNDS)
        assert await hasher.verify("any-password", "!") is False
        assert await hasher.verify("any-password", "not-a-bcrypt-hash") is False

    async def test_malformed_hash_is_logged(self, caplog):
        hasher = BcryptHasher(rounds=FAST_ROUNDS)
        with caplog.at_level(logging.WARNING):
            await hasher.verify("any-password", "not-a-bcrypt-hash")
        assert "malformed stored credential hash" in caplog.text

    async def test_overlong_credential_rejected_without_blaming_the_hash(self, caplog):
        hasher = BcryptHasher(rounds=FAST_ROUNDS)
        hashed = await hasher.hash("x" * BCRYPT_MAX_BYTES)
        assert await hasher.verify("x" * BCRYPT_MAX_BYTES, hashed) is True

        with caplog.at_level(logging.WARNING):
            assert await hasher.verify("x" * (BCRYPT_MAX_BYTES + 1), hashed) is False
        assert "malformed stored credential hash" not in caplog.text


class TestSimpleHasher:
    async def test_hash_and_verify_roundtrip(self):
        hasher = SimpleHasher()
        hashed = await hasher.hash("my-secret-password")
        assert await hasher.verify("my-secret-password", hashed) is True

    async def test_wrong_password_rejected(self):
        hasher = SimpleHasher()
        hashed = await hasher.hash("correct-password")
        assert await hasher.verify("wrong-password", hashed) is False

    async def test_rejects_non_simple_hash(self):
        hasher = SimpleHasher()
        assert await hasher.verify("any-password", "not-a-simple-hash") is False


class TestGetHasher:
    def test_returns_bcrypt_by_default(self):
        assert isinstance(get_hasher(), BcryptHasher)

    def test_returns_simple(self):
        assert isinstance(get_hasher("simple"), SimpleHasher)

    def test_hashers_satisfy_protocol(self):
        assert isinstance(get_hasher("simple"), PasswordHasher)
        assert isinstance(get_hasher("bcrypt", rounds=FAST_ROUNDS), PasswordHasher)

    def test_raises_for_unknown(self):
        with pytest.raises(ValueError, match="Unknown password hasher"):
            get_hasher("argon2")
