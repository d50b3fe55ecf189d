"""Google OAuth management using Authlib.

One GoogleOAuth instance manages the token of one Google account:
- Authorization URL / code exchange for the interactive consent flow
- Automatic token refresh with scope preservation
- Token persistence in Google's authorized-user JSON format
- Drive API service creation
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any

from authlib.integrations.requests_client import OAuth2Session
from authlib.oauth2 import OAuth2Error
from google.oauth2.credentials import Credentials as GoogleCredentials
from googleapiclient.discovery import build

from drive_transfer.config import DEFAULT_REDIRECT_URI, GOOGLE_CREDENTIALS, TOKENS_DIR
from drive_transfer.google.exceptions import (
    CredentialsNotFoundError,
    ScopeMismatchError,
    TokenError,
)

logger = logging.getLogger(__name__)


SCOPES = {
    "drive": "https://www.googleapis.com/auth/drive",
    "drive_file": "https://www.googleapis.com/auth/drive.file",
    "drive_metadata": "https://www.googleapis.com/auth/drive.metadata",
    "drive_readonly": "https://www.googleapis.com/auth/drive.readonly",
}

# Ownership transfer needs full Drive access
DEFAULT_SCOPES = ["drive", "drive_file", "drive_metadata"]


def resolve_scopes(scopes: list[str]) -> list[str]:
    """Resolve scope names to full URLs."""
    resolved = []
    for scope in scopes:
        if scope.startswith("https://"):
            resolved.append(scope)
        elif scope in SCOPES:
            resolved.append(SCOPES[scope])
        else:
            raise ValueError(f"Unknown scope: {scope}. Use full URL or one of: {list(SCOPES.keys())}")
    return resolved


class GoogleOAuth:
    """OAuth 2.0 session for a single Google account.

    Example:
        >>> auth = GoogleOAuth(token_path="tokens/alice@example.com.json")
        >>> if not auth.is_authorized():
        ...     print(f"Visit: {auth.get_authorization_url()}")
        ...     auth.fetch_token(input("Paste redirect URL or code: "))
        >>> drive = auth.build_service("drive", "v3")
    """

    AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"

    def __init__(
        self,
        scopes: list[str] | None = None,
        client_id: str | None = None,
        client_secret: str | None = None,
        token_path: str | Path | None = None,
        credentials_path: str | Path | None = None,
        redirect_uri: str | None = None,
    ):
        """Initialize Google OAuth.

        Args:
            scopes: Scope names (e.g., ["drive"]) or full URLs. Defaults to
                drive, drive.file and drive.metadata.
            client_id: OAuth client ID. Falls back to GOOGLE_CLIENT_ID, then
                the credentials file.
            client_secret: OAuth client secret. Falls back to
                GOOGLE_CLIENT_SECRET, then the credentials file.
            token_path: Where this account's token is stored.
            credentials_path: OAuth client credentials file.
            redirect_uri: Redirect URI registered for the OAuth client.
        """
        self.token_path = Path(token_path) if token_path else TOKENS_DIR / "default.json"
        self.credentials_path = Path(credentials_path) if credentials_path else GOOGLE_CREDENTIALS
        self.redirect_uri = (
            redirect_uri or os.environ.get("GOOGLE_REDIRECT_URI") or DEFAULT_REDIRECT_URI
        )

        self.required_scopes = resolve_scopes(scopes or DEFAULT_SCOPES)

        client_id = client_id or os.environ.get("GOOGLE_CLIENT_ID")
        client_secret = client_secret or os.environ.get("GOOGLE_CLIENT_SECRET")
        if not client_id or not client_secret:
            client_id, client_secret = self._load_client_credentials()

        self.client_id = client_id
        self.client_secret = client_secret

        self.session = OAuth2Session(
            client_id=self.client_id,
            client_secret=self.client_secret,
            scope=" ".join(self.required_scopes),
            redirect_uri=self.redirect_uri,
            token=self._load_token(),
            update_token=self._save_token,
            token_endpoint=self.TOKEN_URL,
            grant_type="refresh_token",
            token_endpoint_auth_method="client_secret_post",
        )

        self._state: str | None = None

    def _load_client_credentials(self) -> tuple[str, str]:
        """Load OAuth client credentials from file."""
        if not self.credentials_path.exists():
            raise CredentialsNotFoundError(str(self.credentials_path))

        with open(self.credentials_path) as f:
            creds = json.load(f)

        # Handle both web and installed app credential formats
        if "installed" in creds:
            app_creds = creds["installed"]
        elif "web" in creds:
            app_creds = creds["web"]
        else:
            raise ValueError("Invalid credentials.json format. Expected 'installed' or 'web' key.")

        return app_creds["client_id"], app_creds["client_secret"]

    def _load_token(self) -> dict[str, Any] | None:
        """Load the stored token and convert it to Authlib format."""
        if not self.token_path.exists():
            logger.info(f"No existing token at {self.token_path}")
            return None

        try:
            with open(self.token_path) as f:
                token_data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load token from {self.token_path}: {e}")
            return None

        expiry = token_data.get("expiry")
        if expiry and isinstance(expiry, str):
            expires_at = datetime.fromisoformat(expiry.replace("Z", "+00:00")).timestamp()
        else:
            expires_at = expiry

        current_scopes = set(token_data.get("scopes", []))
        missing = set(self.required_scopes) - current_scopes
        if missing:
            logger.warning(f"Token at {self.token_path} missing required scopes: {missing}")
            return None

        logger.debug(f"Loaded token with scopes: {current_scopes}")
        return {
            "access_token": token_data.get("token"),
            "refresh_token": token_data.get("refresh_token"),
            "token_type": token_data.get("type", "Bearer"),
            "expires_at": expires_at,
            "scope": " ".join(token_data.get("scopes", [])),
        }

    def _save_token(
        self,
        token: dict[str, Any],
        refresh_token: str | None = None,
        access_token: str | None = None,
    ):
        """Save token to storage (Authlib callback)."""
        if access_token:
            token["access_token"] = access_token
        if refresh_token:
            token["refresh_token"] = refresh_token

        # Refresh responses may omit the scope; keep what the session had
        scope = token.get("scope")
        if not scope and self.session.token:
            scope = self.session.token.get("scope", "")
        token_scopes = set((scope or "").split())

        missing = set(self.required_scopes) - token_scopes
        if missing:
            raise ScopeMismatchError(missing)

        google_token = {
            "token": token["access_token"],
            "refresh_token": token.get("refresh_token"),
            "token_uri": self.TOKEN_URL,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "scopes": sorted(token_scopes),
            "type": token.get("token_type", "Bearer"),
            "expiry": token.get("expires_at"),
            "_class": "google.oauth2.credentials.Credentials",
        }

        self.token_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.token_path, "w") as f:
            json.dump(google_token, f, indent=2)

        logger.info(f"Token saved to {self.token_path}")

    def is_authorized(self) -> bool:
        """Check if we have a token carrying all required scopes."""
        if not self.session.token:
            return False

        token_scopes = set(self.session.token.get("scope", "").split())
        return set(self.required_scopes).issubset(token_scopes)

    def get_authorization_url(self) -> str:
        """Start the OAuth consent flow.

        Returns:
            Authorization URL for the user to visit. Offline access and a forced
            consent prompt make Google issue a refresh token.
        """
        authorization_url, state = self.session.create_authorization_url(
            self.AUTHORIZE_URL,
            access_type="offline",
            prompt="consent",
            include_granted_scopes="true",
        )

        self._state = state
        return authorization_url

    def fetch_token(self, authorization_response: str) -> dict[str, Any]:
        """Complete the consent flow and persist the token.

        Args:
            authorization_response: Either the full redirect URL from the OAuth
                callback or the bare authorization code.

        Returns:
            The fetched OAuth token dict.

        Raises:
            TokenError: If Google refuses the code.
        """
        response = authorization_response.strip()
        if not response:
            raise TokenError("No authorization code provided")

        kwargs: dict[str, Any] = {"client_secret": self.client_secret}
        if response.startswith(("http://", "https://")):
            kwargs["authorization_response"] = response
        else:
            kwargs["code"] = response

        try:
            token = self.session.fetch_token(self.TOKEN_URL, **kwargs)
        except OAuth2Error as e:
            raise TokenError(f"Error retrieving access token: {e}") from e

        self._save_token(token)
        return token

    def get_credentials(self) -> GoogleCredentials:
        """Get a Google Credentials object for API client libraries.

        Raises:
            TokenError: If not authorized or token refresh fails.
        """
        if not self.is_authorized():
            raise TokenError("Not authorized or missing required scopes")

        expires_at = self.session.token.get("expires_at", 0)
        if expires_at and expires_at < datetime.now().timestamp():
            logger.info("Token expired, refreshing...")
            try:
                self.session.refresh_token(
                    self.TOKEN_URL,
                    refresh_token=self.session.token.get("refresh_token"),
                )
            except OAuth2Error as e:
                raise TokenError(f"Failed to refresh token: {e}") from e

        return GoogleCredentials(
            token=self.session.token["access_token"],
            refresh_token=self.session.token.get("refresh_token"),
            token_uri=self.TOKEN_URL,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=self.required_scopes,
        )

    def build_service(self, service_name: str = "drive", version: str = "v3"):
        """Build a Google API service with current credentials."""
        creds = self.get_credentials()
        return build(service_name, version, credentials=creds, cache_discovery=False)
