"""
Integration tests for AuthService against the test database.

Covers the register -> login -> reset -> verify flow and single-use tokens.
"""
from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from aivestor.db.token_repo import OneTimeTokenRepository
from aivestor.db.user_repo import UserRepository
from aivestor.services.auth_service import AuthError, AuthService
from aivestor.services.google_auth import GoogleTokenVerifier
from aivestor.services.token_service import TokenService

EMAIL = "flow@example.com"
PASSWORD = "correct-horse"


@pytest.fixture
def tokens():
    return TokenService("integration-secret")


@pytest.fixture
def google():
    verifier = GoogleTokenVerifier("cid")
    verifier.verify = AsyncMock(return_value={"email": "g@example.com", "aud": "cid"})
    return verifier


@pytest.fixture
def auth_service(session_factory, tokens, google):
    return AuthService(session_factory, tokens, google)


@pytest.mark.integration
class TestRegisterAndLogin:
    async def test_register_then_login(self, auth_service, tokens):
        user = await auth_service.register(EMAIL, PASSWORD, 0.7)
        assert user.risk_tolerance == 0.7
        assert user.password_hash != PASSWORD

        result = await auth_service.login(EMAIL, PASSWORD)
        claims = tokens.decode(result.token)
        assert claims["uid"] == str(user.id)
        assert claims["email"] == EMAIL

    async def test_duplicate_email_is_409(self, auth_service):
        await auth_service.register(EMAIL, PASSWORD)
        with pytest.raises(AuthError) as exc:
            await auth_service.register(EMAIL, PASSWORD)
        assert exc.value.status_code == 409

    async def test_short_password_rejected(self, auth_service):
        with pytest.raises(AuthError) as exc:
            await auth_service.register(EMAIL, "short")
        assert exc.value.status_code == 400

    @pytest.mark.parametrize("email, password", [(EMAIL, "wrong-password"), ("nobody@example.com", PASSWORD)])
    async def test_bad_credentials_same_error(self, auth_service, email, password):
        await auth_service.register(EMAIL, PASSWORD)
        with pytest.raises(AuthError) as exc:
            await auth_service.login(email, password)
        assert exc.value.status_code == 401
        assert exc.value.message == "Invalid credentials"

    async def test_google_login_creates_user_once(self, auth_service, session_factory):
        first = await auth_service.google_login("id-token")
        second = await auth_service.google_login("id-token")
        assert first.user.id == second.user.id
        async with session_factory() as session:
            assert await UserRepository(session).get_by_email("g@example.com") is not None

    async def test_google_rejected(self, auth_service, google):
        google.verify.return_value = None
        with pytest.raises(AuthError) as exc:
            await auth_service.google_login("bad")
        assert exc.value.status_code == 401


@pytest.mark.integration
class TestResetAndVerify:
    async def test_forgot_unknown_email_returns_none(self, auth_service):
        assert await auth_service.forgot_password("nobody@example.com") is None

    async def test_reset_password_once(self, auth_service):
        await auth_service.register(EMAIL, PASSWORD)
        token = await auth_service.forgot_password(EMAIL)

        await auth_service.reset_password(token, "brand-new-password")
        await auth_service.login(EMAIL, "brand-new-password")

        with pytest.raises(AuthError) as exc:
            await auth_service.reset_password(token, "another-password")
        assert exc.value.message == "Token has expired or been used"

    async def test_reset_with_verify_token_rejected(self, auth_service):
        await auth_service.register(EMAIL, PASSWORD)
        token = await auth_service.send_verification(EMAIL)
        with pytest.raises(AuthError) as exc:
            await auth_service.reset_password(token, "brand-new-password")
        assert exc.value.message == "Invalid or expired token"

    async def test_verify_email(self, auth_service, session_factory):
        await auth_service.register(EMAIL, PASSWORD)
        token = await auth_service.send_verification(EMAIL)
        await auth_service.verify_email(token)

        async with session_factory() as session:
            user = await UserRepository(session).get_by_email(EMAIL)
        assert user.email_verified is True

        with pytest.raises(AuthError):
            await auth_service.verify_email(token)


@pytest.mark.integration
class TestOneTimeTokenRepository:
    async def test_consume_once(self, session_factory):
        async with session_factory() as session:
            repo = OneTimeTokenRepository(session)
            await repo.issue("tok", "reset", EMAIL, datetime.now(UTC) + timedelta(hours=1))
            assert await repo.consume("tok", "reset") == EMAIL
            assert await repo.consume("tok", "reset") is None
            await session.commit()

    async def test_expired_not_consumable(self, session_factory):
        async with session_factory() as session:
            repo = OneTimeTokenRepository(session)
            await repo.issue("old", "reset", EMAIL, datetime.now(UTC) - timedelta(seconds=1))
            assert await repo.consume("old", "reset") is None

    async def test_wrong_purpose_not_consumable(self, session_factory):
        async with session_factory() as session:
            repo = OneTimeTokenRepository(session)
            await repo.issue("tok", "verify", EMAIL, datetime.now(UTC) + timedelta(hours=1))
            assert await repo.consume("tok", "reset") is None
