"""Google OAuth utilities."""

from drive_transfer.google.exceptions import (
    AuthFailure,
    AuthorizationRequired,
    CredentialsNotFoundError,
    GoogleAuthError,
    ScopeMismatchError,
    TokenError,
)
from drive_transfer.google.oauth import DEFAULT_SCOPES, SCOPES, GoogleOAuth

__all__ = [
    "GoogleOAuth",
    "SCOPES",
    "DEFAULT_SCOPES",
    "GoogleAuthError",
    "AuthFailure",
    "AuthorizationRequired",
    "CredentialsNotFoundError",
    "TokenError",
    "ScopeMismatchError",
]
