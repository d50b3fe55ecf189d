"""Per-account OAuth token files."""

from __future__ import annotations

import logging
from pathlib import Path

from drive_transfer.config import TOKENS_DIR

logger = logging.getLogger(__name__)

TOKEN_SUFFIX = ".json"


class TokenStore:
    """Directory of OAuth token files, one per account email.

    Layout:
        <tokens_dir>/alice@example.com.json
        <tokens_dir>/bob@example.com.json
    """

    def __init__(self, tokens_dir: str | Path | None = None):
        self.tokens_dir = Path(tokens_dir) if tokens_dir else TOKENS_DIR

    def ensure_dir(self) -> Path:
        """Create the tokens directory if it doesn't exist."""
        self.tokens_dir.mkdir(parents=True, exist_ok=True)
        return self.tokens_dir

    def path_for(self, account: str) -> Path:
        """Token file path for an account."""
        if not account or "/" in account or "\\" in account or account.startswith("."):
            raise ValueError(f"Invalid account identifier: {account!r}")
        return self.tokens_dir / f"{account}{TOKEN_SUFFIX}"

    def has_token(self, account: str) -> bool:
        return self.path_for(account).exists()

    def list_accounts(self) -> list[str]:
        """Accounts with a saved token, sorted."""
        if not self.tokens_dir.exists():
            return []
        return sorted(
            path.name[: -len(TOKEN_SUFFIX)]
            for path in self.tokens_dir.iterdir()
            if path.is_file() and path.name.endswith(TOKEN_SUFFIX)
        )

    def remove(self, account: str) -> bool:
        """Delete an account's token.

        Returns:
            True if a token was removed, False if none existed.
        """
        path = self.path_for(account)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        logger.info(f"Removed tokens for {account}")
        return True
