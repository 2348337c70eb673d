"""Services module - provides external service integrations."""

from .google_oauth import GoogleOAuthClient, GoogleOAuthError

__all__ = ['GoogleOAuthClient', 'GoogleOAuthError']
