from __future__ import annotations

import logging

from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)

# Exact public paths
PUBLIC_PATHS = {"/", "/health", "/healthz", "/metrics", "/api/portfolio", "/openapi.json"}
# Public prefixes
PUBLIC_PREFIXES = ("/api/auth/", "/api/predict/", "/ws/", "/docs", "/redoc")
# Auth routes that still need a bearer token
PROTECTED_AUTH_PATHS = {"/api/auth/send-verification", "/api/auth/refresh"}


def is_public(path: str) -> bool:
    if path in PROTECTED_AUTH_PATHS:
        return False
    return path in PUBLIC_PATHS or path.startswith(PUBLIC_PREFIXES)


class AuthMiddleware:
    """
    Bearer JWT -> request.state.user injection.

    Missing token answers 401, an undecodable or expired token 403. The
    decoded claims (``uid``, ``email``) become ``request.state.user``.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        if scope.get("method") == "OPTIONS" or is_public(path):
            await self.app(scope, receive, send)
            return

        token = _bearer_token(scope)
        if not token:
            response = JSONResponse({"error": "Access denied, no token provided"}, status_code=401)
            await response(scope, receive, send)
            return

        # Token service is set on app.state during lifespan
        tokens = scope["app"].state.token_service
        claims = tokens.decode(token)
        if not claims or not claims.get("uid"):
            response = JSONResponse({"error": "Invalid token"}, status_code=403)
            await response(scope, receive, send)
            return

        scope.setdefault("state", {})
        scope["state"]["user"] = {"uid": str(claims["uid"]), "email": claims.get("email")}
        await self.app(scope, receive, send)


def _bearer_token(scope) -> str | None:
    for name, value in scope.get("headers", []):
        if name == b"authorization":
            raw = value.decode("latin-1")
            scheme, _, token = raw.partition(" ")
            if scheme.lower() == "bearer" and token.strip():
                return token.strip()
            return None
    return None
