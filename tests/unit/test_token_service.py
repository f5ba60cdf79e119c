"""Unit tests for JWT issue/verify."""
from datetime import timedelta

import pytest
from jose import jwt

from aivestor.services.token_service import TokenService


@pytest.fixture
def tokens():
    return TokenService("unit-secret", "HS256", access_expire_minutes=60)


@pytest.mark.unit
class TestTokenService:
    def test_access_token_roundtrip(self, tokens):
        claims = tokens.decode(tokens.access_token("u-1", "a@example.com"))
        assert claims["uid"] == "u-1"
        assert claims["email"] == "a@example.com"
        assert claims["exp"] - claims["iat"] == 3600

    def test_expired_token_rejected(self, tokens):
        token = tokens.encode({"uid": "u-1"}, timedelta(seconds=-10))
        assert tokens.decode(token) is None

    def test_foreign_signature_rejected(self, tokens):
        forged = jwt.encode({"uid": "u-1"}, "other-secret", algorithm="HS256")
        assert tokens.decode(forged) is None

    def test_garbage_rejected(self, tokens):
        assert tokens.decode("not-a-jwt") is None

    def test_purpose_token_checked(self, tokens):
        token = tokens.purpose_token("a@example.com", "reset", timedelta(hours=1))
        assert tokens.decode_purpose(token, "reset") == "a@example.com"
        assert tokens.decode_purpose(token, "verify") is None

    def test_access_token_is_not_a_purpose_token(self, tokens):
        assert tokens.decode_purpose(tokens.access_token("u", "a@example.com"), "reset") is None

    def test_service_token_claims(self, tokens):
        claims = tokens.decode(tokens.service_token(timedelta(minutes=15)))
        assert claims["service"] == "backend"
        assert claims["exp"] - claims["iat"] == 900

    def test_empty_secret_refused(self):
        with pytest.raises(ValueError):
            TokenService("")
