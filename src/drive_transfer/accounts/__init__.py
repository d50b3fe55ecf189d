"""Account tokens and authentication.

Usage:
    from drive_transfer.accounts import Authenticator, TokenStore

    store = TokenStore("tokens")
    auth = Authenticator(store, prompt=input, notify=print)
    client = auth.authenticate("alice@example.com")

    print(store.list_accounts())
"""

from __future__ import annotations

from drive_transfer.accounts.authenticator import Authenticator
from drive_transfer.accounts.tokens import TokenStore

__all__ = ["Authenticator", "TokenStore"]
