"""
User Model - identity carried by bearer tokens.
"""

from typing import Optional
from pydantic import BaseModel


class User(BaseModel):
    """Authenticated identity."""
    id: str
    email: str
    name: str
    picture: Optional[str] = None


class TokenData(BaseModel):
    """Token payload data."""
    user_id: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None
