from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import bcrypt
from sqlalchemy.ext.asyncio import async_sessionmaker

from aivestor.db.token_repo import OneTimeTokenRepository
from aivestor.db.user_repo import UserRepository
from aivestor.models.auth_token import TokenPurpose
from aivestor.models.user import User
from aivestor.services.google_auth import GoogleTokenVerifier
from aivestor.services.token_service import TokenService
from aivestor.utils.logging import audit_log

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128
FORGOT_PASSWORD_MESSAGE = "If the email exists, a reset link will be sent"

# Pre-hashed dummy password for timing-attack prevention
_DUMMY_HASH = bcrypt.hashpw(b"dummy-timing-safe", bcrypt.gensalt(rounds=12))


class AuthError(Exception):
    """Identity failure carrying the HTTP status the router responds with."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: User


def user_to_dict(user: User) -> dict:
    return {
        "id": str(user.id),
        "email": user.email,
        "risk_tolerance": user.risk_tolerance,
        "risk_level": user.risk_level,
        "risk_profile": user.risk_profile,
        "risk_answers": user.risk_answers,
        "email_verified": user.email_verified,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


def _check_password_length(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise AuthError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password) > MAX_PASSWORD_LENGTH:
        raise AuthError(f"Password must be at most {MAX_PASSWORD_LENGTH} characters")


def _hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=12)).decode("utf-8")


class AuthService:
    """Local password auth, Google sign-in and single-use reset/verify tokens."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        tokens: TokenService,
        google: GoogleTokenVerifier,
        reset_expire: timedelta = timedelta(hours=1),
        verify_expire: timedelta = timedelta(hours=24),
    ):
        self._session_factory = session_factory
        self._tokens = tokens
        self._google = google
        self._reset_expire = reset_expire
        self._verify_expire = verify_expire

    async def register(self, email: str, password: str, risk_tolerance: float | None = None) -> User:
        _check_password_length(password)
        hashed = _hash_password(password)

        async with self._session_factory() as session:
            repo = UserRepository(session)
            if await repo.get_by_email(email):
                raise AuthError("Email is already registered", status_code=409)
            user = await repo.create(
                User(
                    email=email,
                    password_hash=hashed,
                    risk_tolerance=risk_tolerance if risk_tolerance is not None else 0.5,
                )
            )
            await session.commit()

        audit_log("user_registered", user_id=str(user.id))
        return user

    async def login(self, email: str, password: str) -> LoginResult:
        async with self._session_factory() as session:
            user = await UserRepository(session).get_by_email(email)

        if not user or not user.password_hash:
            # Timing attack prevention: dummy bcrypt comparison
            bcrypt.checkpw(password.encode("utf-8"), _DUMMY_HASH)
            audit_log("login_failed", user_id="-", reason="unknown_user")
            raise AuthError("Invalid credentials", status_code=401)

        if not bcrypt.checkpw(password.encode("utf-8"), user.password_hash.encode("utf-8")):
            audit_log("login_failed", user_id=str(user.id), reason="bad_password")
            raise AuthError("Invalid credentials", status_code=401)

        audit_log("login_success", user_id=str(user.id))
        return LoginResult(token=self._tokens.access_token(str(user.id), user.email), user=user)

    async def google_login(self, id_token: str) -> LoginResult:
        claims = await self._google.verify(id_token)
        if claims is None:
            raise AuthError("Invalid Google ID token", status_code=401)

        async with self._session_factory() as session:
            user = await UserRepository(session).ensure(claims["email"])
            await session.commit()

        audit_log("login_success", user_id=str(user.id), method="google")
        return LoginResult(token=self._tokens.access_token(str(user.id), user.email), user=user)

    async def forgot_password(self, email: str) -> str | None:
        """Reset token for a known e-mail, None otherwise. Callers answer identically."""
        async with self._session_factory() as session:
            user = await UserRepository(session).get_by_email(email)
            if user is None:
                return None
            token = self._tokens.purpose_token(email, TokenPurpose.RESET.value, self._reset_expire)
            await OneTimeTokenRepository(session).issue(
                token, TokenPurpose.RESET.value, email, datetime.now(UTC) + self._reset_expire
            )
            await session.commit()

        logger.info("Password reset token issued for user %s", user.id)
        audit_log("password_reset_requested", user_id=str(user.id))
        return token

    async def reset_password(self, token: str, password: str) -> None:
        email = self._tokens.decode_purpose(token, TokenPurpose.RESET.value)
        if email is None:
            raise AuthError("Invalid or expired token")
        _check_password_length(password)
        hashed = _hash_password(password)

        async with self._session_factory() as session:
            consumed = await OneTimeTokenRepository(session).consume(token, TokenPurpose.RESET.value)
            if consumed is None:
                raise AuthError("Token has expired or been used")
            repo = UserRepository(session)
            user = await repo.get_by_email(consumed)
            if user is None:
                raise AuthError("Invalid or expired token")
            await repo.update(user, {"password_hash": hashed})
            await session.commit()

        audit_log("password_reset", user_id=str(user.id))

    async def send_verification(self, email: str) -> str:
        if not email:
            raise AuthError("Email not found")
        token = self._tokens.purpose_token(email, TokenPurpose.VERIFY.value, self._verify_expire)
        async with self._session_factory() as session:
            await OneTimeTokenRepository(session).issue(
                token, TokenPurpose.VERIFY.value, email, datetime.now(UTC) + self._verify_expire
            )
            await session.commit()
        logger.info("Verification token issued")
        return token

    async def verify_email(self, token: str) -> None:
        if self._tokens.decode_purpose(token, TokenPurpose.VERIFY.value) is None:
            raise AuthError("Invalid or expired token")

        async with self._session_factory() as session:
            consumed = await OneTimeTokenRepository(session).consume(token, TokenPurpose.VERIFY.value)
            if consumed is None:
                raise AuthError("Token has expired or been used")
            repo = UserRepository(session)
            user = await repo.get_by_email(consumed)
            if user is not None:
                await repo.update(user, {"email_verified": True})
            await session.commit()

        audit_log("email_verified", user_id=str(user.id) if user else "-")

    def refresh(self, claims: dict) -> str:
        uid, email = claims.get("uid"), claims.get("email")
        if not uid or not email:
            raise AuthError("Invalid token data")
        return self._tokens.access_token(uid, email)
