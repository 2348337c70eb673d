"""
Authentication API endpoints - Google sign-in and the current identity.
"""

import json
import logging
from typing import Optional
from urllib.parse import quote
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import RedirectResponse

from ..config import settings
from ..models import User
from ..services import GoogleOAuthClient
from ..utils.auth import create_user_token, get_current_user
from .deps import get_google_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.get("/google")
async def google_login(google: GoogleOAuthClient = Depends(get_google_client)):
    """Redirect the browser to Google's consent screen."""
    logger.info("Google auth initiated")
    return RedirectResponse(google.authorization_url())


@router.get("/google/callback")
async def google_callback(
    code: Optional[str] = None,
    google: GoogleOAuthClient = Depends(get_google_client),
):
    """
    Finish Google sign-in and hand a JWT to the client app.

    Redirects to ``{client_url}/auth/callback?token=...&user=...`` on success
    and to ``{client_url}/?error=auth_failed`` on any failure.
    """
    if not code:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Authorization code required"
        )

    try:
        user = await google.authenticate(code)
    except Exception as e:
        logger.error(f"Google sign-in failed: {e}")
        return RedirectResponse(f"{settings.client_url}/?error=auth_failed")

    token = create_user_token(user)
    user_param = quote(json.dumps(user.model_dump()))
    logger.info(f"Issued token for user {user.id}")
    return RedirectResponse(f"{settings.client_url}/auth/callback?token={token}&user={user_param}")


@router.get("/me", response_model=User)
async def get_me(user: User = Depends(get_current_user)):
    """Return the identity behind the bearer token."""
    return user
