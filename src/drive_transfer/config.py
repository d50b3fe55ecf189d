"""Centralized application configuration.

Everything lives under the drive-transfer repo root by default:
    .env              - GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, GOOGLE_REDIRECT_URI, ...
    credentials.json  - Google OAuth client credentials (alternative to .env)
    tokens/           - one OAuth token file per account (<email>.json)
    logs/             - daily JSON-lines log files

This module auto-loads the .env file on import. Variables already present
in the environment take precedence over the file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

# __file__ is src/drive_transfer/config.py, so 3 levels up
REPO_ROOT = Path(__file__).parent.parent.parent

ENV_FILE = REPO_ROOT / ".env"
GOOGLE_CREDENTIALS = REPO_ROOT / "credentials.json"
TOKENS_DIR = REPO_ROOT / "tokens"
LOGS_DIR = REPO_ROOT / "logs"

DEFAULT_REDIRECT_URI = "http://localhost"
DEFAULT_DELAY_MS = 1500


def _load_env_file(env_path: Path) -> dict[str, str]:
    """Load environment variables from a file.

    Args:
        env_path: Path to .env file.

    Returns:
        Dictionary of loaded variables.
    """
    loaded = {}
    if not env_path.exists():
        return loaded

    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip()

            if (value.startswith('"') and value.endswith('"')) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]

            if key and key not in os.environ:
                os.environ[key] = value
                loaded[key] = value

    return loaded


def _path_from_env(name: str, default: Path) -> Path:
    value = os.environ.get(name)
    return Path(value).expanduser() if value else default


@dataclass
class AppConfig:
    """Runtime settings for drive-transfer.

    Attributes:
        client_id: OAuth client ID (GOOGLE_CLIENT_ID).
        client_secret: OAuth client secret (GOOGLE_CLIENT_SECRET).
        redirect_uri: OAuth redirect URI (GOOGLE_REDIRECT_URI).
        credentials_path: OAuth client credentials file, used when the
            client ID/secret are not set in the environment.
        tokens_dir: Directory holding per-account token files.
        log_dir: Directory for daily log files.
        delay_ms: Default pause between batch transfers, in milliseconds.
        environment: "development" enables debug logging.
    """

    client_id: str | None = None
    client_secret: str | None = None
    redirect_uri: str = DEFAULT_REDIRECT_URI
    credentials_path: Path = GOOGLE_CREDENTIALS
    tokens_dir: Path = TOKENS_DIR
    log_dir: Path = LOGS_DIR
    delay_ms: int = DEFAULT_DELAY_MS
    environment: str = "development"

    @classmethod
    def from_env(cls) -> AppConfig:
        """Build configuration from environment variables."""
        delay = os.environ.get("DRIVE_TRANSFER_DELAY_MS")
        try:
            delay_ms = int(delay) if delay else DEFAULT_DELAY_MS
        except ValueError as e:
            raise ValueError(f"DRIVE_TRANSFER_DELAY_MS must be an integer, got {delay!r}") from e
        if delay_ms < 0:
            raise ValueError(f"DRIVE_TRANSFER_DELAY_MS must be non-negative, got {delay_ms}")

        return cls(
            client_id=os.environ.get("GOOGLE_CLIENT_ID") or None,
            client_secret=os.environ.get("GOOGLE_CLIENT_SECRET") or None,
            redirect_uri=os.environ.get("GOOGLE_REDIRECT_URI") or DEFAULT_REDIRECT_URI,
            credentials_path=_path_from_env("GOOGLE_CREDENTIALS_FILE", GOOGLE_CREDENTIALS),
            tokens_dir=_path_from_env("DRIVE_TRANSFER_TOKENS_DIR", TOKENS_DIR),
            log_dir=_path_from_env("DRIVE_TRANSFER_LOG_DIR", LOGS_DIR),
            delay_ms=delay_ms,
            environment=os.environ.get("APP_ENV", "development"),
        )

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    def validate(self) -> list[str]:
        """Return the names of missing required settings.

        Client ID and secret are required unless a credentials.json file
        provides them.
        """
        if self.credentials_path.exists():
            return []

        missing = []
        if not self.client_id:
            missing.append("GOOGLE_CLIENT_ID")
        if not self.client_secret:
            missing.append("GOOGLE_CLIENT_SECRET")
        return missing


def ensure_dirs(config: AppConfig) -> list[Path]:
    """Create token and log directories if they don't exist.

    Returns:
        The directories that were ensured.
    """
    created = []
    for directory in (config.tokens_dir, config.log_dir):
        directory.mkdir(parents=True, exist_ok=True)
        created.append(directory)
    return created


def get_status(config: AppConfig) -> dict:
    """Get status of the configured credentials and directories.

    Returns:
        Dictionary with configuration status.
    """
    return {
        "repo_root": str(REPO_ROOT),
        "env_file": ENV_FILE.exists(),
        "google": {
            "client_id": bool(config.client_id),
            "client_secret": bool(config.client_secret),
            "redirect_uri": config.redirect_uri,
            "credentials": config.credentials_path.exists(),
        },
        "tokens_dir": str(config.tokens_dir),
        "log_dir": str(config.log_dir),
        "missing": config.validate(),
    }


# Auto-load .env from repo root on import
_loaded = _load_env_file(ENV_FILE)
