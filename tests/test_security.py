"""Unit tests for rolegate.core.security: bcrypt password hashing and the JWT token codec."""

import unittest
from datetime import UTC, datetime, timedelta

import jwt

from rolegate.core.errors import (
    PasswordHashError,
    TokenExpiredError,
    TokenMalformedError,
    TokenSignatureError,
    UnauthorizedError,
)
from rolegate.core.security import PasswordHasher, TokenCodec
from tests.helpers import TEST_SECRET, make_codec


class TestPasswordHasher(unittest.TestCase):
    """hash/verify round-trip; mismatch is False, not an error."""

    def setUp(self) -> None:
        self.hasher = PasswordHasher(rounds=4)

    def test_round_trip(self) -> None:
        for password in ("pw12345", "correct horse battery staple", "pässwörd-ünïcode", "x" * 100):
            hashed = self.hasher.hash(password)
            self.assertTrue(self.hasher.verify(password, hashed))

    def test_other_password_is_mismatch(self) -> None:
        hashed = self.hasher.hash("pw12345")
        self.assertFalse(self.hasher.verify("pw12346", hashed))
        self.assertFalse(self.hasher.verify("", hashed))

    def test_hash_is_salted_and_self_describing(self) -> None:
        first = self.hasher.hash("pw12345")
        second = self.hasher.hash("pw12345")
        self.assertNotEqual(first, second)
        self.assertTrue(first.startswith("$2b$04$"))

    def test_malformed_hash_is_failure_not_mismatch(self) -> None:
        with self.assertRaises(PasswordHashError):
            self.hasher.verify("pw12345", "not-a-bcrypt-hash")

    def test_empty_hash_is_failure(self) -> None:
        with self.assertRaises(PasswordHashError):
            self.hasher.verify("pw12345", "")

    def test_dummy_hash_is_cached(self) -> None:
        self.assertIs(self.hasher.dummy_hash, self.hasher.dummy_hash)
        self.assertFalse(self.hasher.verify("pw12345", self.hasher.dummy_hash))


class TestTokenCodec(unittest.TestCase):
    def test_round_trip(self) -> None:
        codec = make_codec()
        for uid, role in ((1, "admin"), (42, "user"), (10**9, "anonymous")):
            claims = codec.verify(codec.sign(uid, role))
            self.assertEqual(claims.subject_id, uid)
            self.assertEqual(claims.role, role)

    def test_three_segments(self) -> None:
        token = make_codec().sign(1, "user")
        self.assertEqual(len(token.split(".")), 3)

    def test_expiry_is_issued_at_plus_ttl(self) -> None:
        codec = make_codec(ttl_seconds=120)
        claims = codec.verify(codec.sign(7, "user"))
        self.assertEqual(claims.expires_at - claims.issued_at, timedelta(seconds=120))

    def test_explicit_ttl_overrides_default(self) -> None:
        codec = make_codec(ttl_seconds=120)
        claims = codec.verify(codec.sign(7, "user", ttl_seconds=30))
        self.assertEqual(claims.expires_at - claims.issued_at, timedelta(seconds=30))

    def test_non_positive_ttl_is_expired(self) -> None:
        codec = make_codec()
        for ttl in (0, -1, -3600):
            with self.subTest(ttl=ttl):
                with self.assertRaises(TokenExpiredError):
                    codec.verify(codec.sign(1, "user", ttl_seconds=ttl))

    def test_wrong_key_is_bad_signature(self) -> None:
        token = TokenCodec("another-secret-key-that-is-also-long-enough").sign(1, "admin")
        with self.assertRaises(TokenSignatureError):
            make_codec().verify(token)

    def test_tampered_claims_are_bad_signature(self) -> None:
        codec = make_codec()
        header, _, signature = codec.sign(1, "user").split(".")
        forged_payload = codec.sign(1, "admin").split(".")[1]
        with self.assertRaises(TokenSignatureError):
            codec.verify(".".join([header, forged_payload, signature]))

    def test_garbage_is_malformed(self) -> None:
        with self.assertRaises(TokenMalformedError):
            make_codec().verify("this-is-not-a-valid-jwt")

    def test_missing_role_is_malformed(self) -> None:
        now = datetime.now(UTC)
        token = jwt.encode(
            {"sub": "1", "iat": now, "exp": now + timedelta(minutes=5)},
            TEST_SECRET,
            algorithm="HS256",
        )
        with self.assertRaises(TokenMalformedError):
            make_codec().verify(token)

    def test_non_numeric_subject_is_malformed(self) -> None:
        now = datetime.now(UTC)
        token = jwt.encode(
            {"sub": "alice", "role": "user", "iat": now, "exp": now + timedelta(minutes=5)},
            TEST_SECRET,
            algorithm="HS256",
        )
        with self.assertRaises(TokenMalformedError):
            make_codec().verify(token)

    def test_token_errors_are_unauthorized(self) -> None:
        for cls in (TokenExpiredError, TokenMalformedError, TokenSignatureError):
            self.assertTrue(issubclass(cls, UnauthorizedError))

    def test_empty_key_is_refused(self) -> None:
        for secret in ("", "   "):
            with self.assertRaises(ValueError):
                TokenCodec(secret)


if __name__ == "__main__":
    unittest.main()
