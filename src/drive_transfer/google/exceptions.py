"""Google authentication exceptions."""


class GoogleAuthError(Exception):
    """Base exception for Google authentication errors."""

    pass


class CredentialsNotFoundError(GoogleAuthError):
    """Raised when no OAuth client credentials are configured."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"OAuth client credentials not found: set GOOGLE_CLIENT_ID and "
            f"GOOGLE_CLIENT_SECRET or place credentials.json at {path}."
        )


class TokenError(GoogleAuthError):
    """Raised when there's an issue with the OAuth token."""

    pass


class ScopeMismatchError(GoogleAuthError):
    """Raised when token scopes don't match required scopes."""

    def __init__(self, missing_scopes: set[str]):
        self.missing_scopes = missing_scopes
        super().__init__(f"Token missing required scopes: {missing_scopes}")


class AuthorizationRequired(GoogleAuthError):
    """Raised when an API call needs an OAuth authorization that hasn't happened yet."""

    def __init__(self, authorization_url: str, message: str):
        self.authorization_url = authorization_url
        super().__init__(message)


class AuthFailure(GoogleAuthError):
    """Raised when an account cannot be authenticated (invalid, expired or refused token)."""

    def __init__(self, account: str, message: str):
        self.account = account
        super().__init__(f"Authentication failed for {account}: {message}")
