"""Authenticated Drive clients per account."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from drive_transfer.accounts.tokens import TokenStore
from drive_transfer.drive import DriveAPIError, DriveClient
from drive_transfer.google import GoogleOAuth
from drive_transfer.google.exceptions import AuthFailure, GoogleAuthError

OAuthFactory = Callable[..., GoogleOAuth]
ClientFactory = Callable[..., DriveClient]


class Authenticator:
    """Hands out a Drive client for an account, running the consent flow when needed.

    The saved token of the account is tried first. If it is missing, lacks
    scopes or fails a test call, the user is sent through the OAuth consent
    flow via the ``notify``/``prompt`` callables and the new token is saved.

    Example:
        >>> auth = Authenticator(TokenStore("tokens"), prompt=input, notify=print)
        >>> source = auth.authenticate("alice@example.com")
        >>> source.get_current_user().email_address
        'alice@example.com'
    """

    def __init__(
        self,
        store: TokenStore,
        scopes: list[str] | None = None,
        client_id: str | None = None,
        client_secret: str | None = None,
        credentials_path: str | Path | None = None,
        redirect_uri: str | None = None,
        prompt: Callable[[str], str] | None = None,
        notify: Callable[[str], None] | None = None,
        logger: logging.Logger | None = None,
        oauth_factory: OAuthFactory = GoogleOAuth,
        client_factory: ClientFactory = DriveClient,
    ):
        """Initialize the authenticator.

        Args:
            store: Where account tokens live.
            scopes: OAuth scopes (defaults to the Drive scopes ownership transfer needs).
            client_id: OAuth client ID.
            client_secret: OAuth client secret.
            credentials_path: OAuth client credentials file.
            redirect_uri: Redirect URI registered for the OAuth client.
            prompt: Reads the redirect URL / authorization code from the user.
                Without it, accounts lacking a valid token fail with AuthFailure.
            notify: Shows the authorization URL and instructions to the user.
            logger: Logger for authentication events.
            oauth_factory: Builds the per-account OAuth session.
            client_factory: Builds the Drive client around an OAuth session.
        """
        self.store = store
        self.scopes = scopes
        self.client_id = client_id
        self.client_secret = client_secret
        self.credentials_path = credentials_path
        self.redirect_uri = redirect_uri
        self.prompt = prompt
        self.notify = notify or (lambda message: None)
        self.logger = logger or logging.getLogger(__name__)
        self._oauth_factory = oauth_factory
        self._client_factory = client_factory

    def _session(self, account: str) -> GoogleOAuth:
        try:
            return self._oauth_factory(
                scopes=self.scopes,
                client_id=self.client_id,
                client_secret=self.client_secret,
                token_path=self.store.path_for(account),
                credentials_path=self.credentials_path,
                redirect_uri=self.redirect_uri,
            )
        except (GoogleAuthError, ValueError) as e:
            raise AuthFailure(account, str(e)) from e

    def authenticate(self, account: str) -> DriveClient:
        """Get a Drive client authenticated as ``account``.

        Raises:
            AuthFailure: If no valid token exists and the consent flow fails or
                cannot be run.
        """
        session = self._session(account)

        if session.is_authorized():
            client = self._client_factory(auth=session, account=account)
            if self.is_valid(client):
                self.logger.info(f"Authenticated {account} using saved tokens")
                return client

        self.logger.info(f"Need to get new tokens for {account}")
        return self._authorize(account, session)

    def is_valid(self, client: DriveClient) -> bool:
        """Check that a client's token still works with a cheap API call."""
        try:
            user = client.get_current_user()
        except (DriveAPIError, GoogleAuthError) as e:
            self.logger.debug(f"Token check failed for {client.account}: {e}")
            return False

        if client.account and user.email_address.casefold() != client.account.casefold():
            self.logger.warning(
                f"Token for {client.account} is authorized as {user.email_address}"
            )
        return True

    def _authorize(self, account: str, session: GoogleOAuth) -> DriveClient:
        if self.prompt is None:
            raise AuthFailure(account, "no valid token and no interactive prompt available")

        self.store.ensure_dir()
        url = session.get_authorization_url()
        self.notify(f"Please visit this URL to authorize {account}:\n{url}")
        self.notify("After authorizing, paste the redirect URL or the authorization code.")

        response = self.prompt("Enter the authorization code: ")
        try:
            session.fetch_token(response)
        except GoogleAuthError as e:
            raise AuthFailure(account, str(e)) from e

        self.logger.info(f"Authenticated and saved tokens for {account}")
        return self._client_factory(auth=session, account=account)
