"""
Authentication utilities - JWT token handling and request identity.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..config import settings
from ..models import TokenData, User

# Bearer token security
security = HTTPBearer(auto_error=False)

# Identity used for the development bypass token
MOCK_USER = User(id="mock-user-id", email="test@example.com", name="Test User")


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Claims to encode; ``sub`` carries the user id
        expires_delta: Optional expiration time delta

    Returns:
        str: Encoded JWT token
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def create_user_token(user: User) -> str:
    return create_access_token({
        "sub": user.id,
        "email": user.email,
        "name": user.name,
        "picture": user.picture,
    })


def decode_access_token(token: str) -> Optional[TokenData]:
    """
    Decode and verify a JWT access token.

    Returns:
        Optional[TokenData]: Token data if valid, None otherwise
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None

    user_id = payload.get("sub")
    if user_id is None:
        return None

    return TokenData(
        user_id=user_id,
        email=payload.get("email"),
        name=payload.get("name"),
        picture=payload.get("picture"),
    )


def _require_credentials(credentials: Optional[HTTPAuthorizationCredentials]) -> str:
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authenticated"
        )
    return credentials.credentials


def _user_from_token(token: str) -> User:
    token_data = decode_access_token(token)
    if token_data is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return User(
        id=token_data.user_id,
        email=token_data.email or "",
        name=token_data.name or "",
        picture=token_data.picture,
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> User:
    """
    Dependency resolving the caller from the bearer token.
    The configured mock token maps to ``MOCK_USER``.

    Raises:
        HTTPException: 403 without a token, 401 if the token is invalid
    """
    token = _require_credentials(credentials)
    if token == settings.mock_token:
        return MOCK_USER
    return _user_from_token(token)


async def get_verified_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> User:
    """Like ``get_current_user`` but only accepts a signed token."""
    return _user_from_token(_require_credentials(credentials))
