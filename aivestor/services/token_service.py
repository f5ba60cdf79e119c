from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

logger = logging.getLogger(__name__)


class TokenService:
    """HS256 JWT issue/verify for users, purpose tokens and the AI service."""

    def __init__(self, secret: str, algorithm: str = "HS256", access_expire_minutes: int = 60):
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self._access_expire = timedelta(minutes=access_expire_minutes)

    def encode(self, claims: dict[str, Any], expires_in: timedelta) -> str:
        now = datetime.now(UTC)
        payload = dict(claims)
        payload.update({"iat": int(now.timestamp()), "exp": int((now + expires_in).timestamp())})
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def decode(self, token: str) -> dict[str, Any] | None:
        """Verified claims, or None when the token is malformed, forged or expired."""
        try:
            return jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except JWTError as e:
            logger.debug("JWT rejected: %s", e)
            return None

    def access_token(self, uid: str, email: str) -> str:
        return self.encode({"uid": str(uid), "email": email}, self._access_expire)

    def purpose_token(self, email: str, purpose: str, expires_in: timedelta) -> str:
        # jti keeps two tokens issued in the same second distinct
        return self.encode({"email": email, "purpose": purpose, "jti": uuid.uuid4().hex}, expires_in)

    def decode_purpose(self, token: str, purpose: str) -> str | None:
        """E-mail carried by a token issued for ``purpose``."""
        claims = self.decode(token)
        if not claims or claims.get("purpose") != purpose or not claims.get("email"):
            return None
        return claims["email"]

    def service_token(self, expires_in: timedelta = timedelta(hours=1)) -> str:
        """Token the AI prediction service accepts from this backend."""
        return self.encode({"service": "backend"}, expires_in)
