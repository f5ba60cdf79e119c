from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)

TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"


class GoogleTokenVerifier:
    """Checks a Google ID token against Google's tokeninfo endpoint."""

    def __init__(self, client_id: str = "", timeout: float = 5.0):
        self._client_id = client_id
        self._timeout = timeout

    async def verify(self, id_token: str) -> dict | None:
        """
        Token claims when Google accepts the token and vouches for the e-mail,
        else None.
        The audience is only checked when a client id is configured.
        """
        if not id_token:
            return None
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.get(TOKENINFO_URL, params={"id_token": id_token})
        except httpx.HTTPError as e:
            logger.warning("Google tokeninfo request failed: %s", e)
            return None

        if resp.status_code != 200:
            return None
        try:
            claims = resp.json()
        except ValueError:
            logger.warning("Google tokeninfo returned a non-JSON body")
            return None
        if not isinstance(claims, dict):
            return None
        if self._client_id and claims.get("aud") != self._client_id:
            logger.warning("Google ID token issued for another audience")
            return None
        if not claims.get("email"):
            return None
        # tokeninfo sends the flag as the string "true"
        if str(claims.get("email_verified", "")).lower() != "true":
            logger.warning("Google account e-mail is not verified")
            return None
        return claims
