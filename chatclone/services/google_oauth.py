"""
Google sign-in - authorization code flow.

Builds the consent URL, exchanges the returned code for tokens and checks
the ID token with Google's tokeninfo endpoint.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from ..models import User

logger = logging.getLogger(__name__)

AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"
SCOPES = ["openid", "email", "profile"]


class GoogleOAuthError(Exception):
    """Raised when the code exchange or ID token check fails."""


class GoogleOAuthClient:
    """Minimal OAuth 2.0 client for Google sign-in."""

    def __init__(self, client_id: str, client_secret: str, redirect_uri: str, timeout: float = 30.0):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout

    def authorization_url(self, state: Optional[str] = None) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(SCOPES),
            "access_type": "offline",
        }
        if state:
            params["state"] = state
        return f"{AUTH_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> Dict[str, Any]:
        """Trade an authorization code for Google tokens."""
        data = {
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
            "grant_type": "authorization_code",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(TOKEN_URL, data=data)
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPError as e:
            raise GoogleOAuthError(f"Token exchange failed: {e}") from e

    async def verify_id_token(self, id_token: str) -> Dict[str, Any]:
        """Validate an ID token and return its claims."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(TOKENINFO_URL, params={"id_token": id_token})
                resp.raise_for_status()
                claims = resp.json()
        except httpx.HTTPError as e:
            raise GoogleOAuthError(f"ID token verification failed: {e}") from e

        if claims.get("aud") != self.client_id:
            raise GoogleOAuthError("ID token audience mismatch")
        return claims

    async def authenticate(self, code: str) -> User:
        """Run the full callback flow and return the signed-in user."""
        tokens = await self.exchange_code(code)
        id_token = tokens.get("id_token")
        if not id_token:
            raise GoogleOAuthError("No ID token in token response")

        claims = await self.verify_id_token(id_token)
        logger.info(f"Google sign-in verified for subject {claims.get('sub')}")
        return User(
            id=claims["sub"],
            email=claims.get("email", ""),
            name=claims.get("name", ""),
            picture=claims.get("picture"),
        )
