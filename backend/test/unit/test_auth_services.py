"""
Unit tests for password hashing and bearer tokens.
"""

from datetime import datetime, timedelta, timezone

from auth.src.password_hashing import hash_password, verify_password
from auth.src.token_service import TokenService

SECRET = "unit-test-secret-that-is-long-enough-for-hs256"


class TestPasswordHashing:

    def test_hash_verifies(self):
        hashed = hash_password("hunter22")
        assert hashed != "hunter22"
        assert verify_password("hunter22", hashed)

    def test_wrong_password_rejected(self):
        assert not verify_password("nope", hash_password("hunter22"))

    def test_malformed_hash_rejected(self):
        assert not verify_password("hunter22", "not-a-bcrypt-hash")
        assert not verify_password("hunter22", "")


class TestTokenService:

    def test_issue_and_verify(self):
        service = TokenService(SECRET)
        claims = service.verify(service.issue("user-1", "a@example.com"))

        assert claims["sub"] == "user-1"
        assert claims["email"] == "a@example.com"

    def test_expired_token_rejected(self):
        service = TokenService(SECRET, ttl=timedelta(minutes=5))
        token = service.issue("user-1", "a@example.com", now=datetime.now(timezone.utc) - timedelta(hours=1))
        assert service.verify(token) is None

    def test_wrong_secret_rejected(self):
        token = TokenService(SECRET).issue("user-1", "a@example.com")
        assert TokenService(SECRET + "-other").verify(token) is None

    def test_garbage_rejected(self):
        assert TokenService(SECRET).verify("not.a.jwt") is None
        assert TokenService(SECRET).verify("") is None
