"""Input validation for transfer requests."""

from __future__ import annotations

import re
from collections.abc import Sequence

# Syntactic check used by the transfer protocol itself
BASIC_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Stricter RFC 5322-style check for user-entered addresses
EMAIL_RE = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)
MAX_EMAIL_LENGTH = 254

# Drive file IDs are 28-44 URL-safe characters
FILE_ID_RE = re.compile(r"^[a-zA-Z0-9_-]{28,44}$")

MAX_INPUT_LENGTH = 500
_UNSAFE_CHARS_RE = re.compile(r"[<>\"']")


def is_basic_email(email: object) -> bool:
    """Check that a value looks like local@domain.tld."""
    return isinstance(email, str) and bool(BASIC_EMAIL_RE.match(email))


def is_valid_email(email: object) -> bool:
    """Validate an email address against an RFC 5322-style pattern."""
    if not email or not isinstance(email, str):
        return False
    return len(email) <= MAX_EMAIL_LENGTH and bool(EMAIL_RE.match(email))


def is_valid_file_id(file_id: object) -> bool:
    """Validate the shape of a Google Drive file ID."""
    if not file_id or not isinstance(file_id, str):
        return False
    return bool(FILE_ID_RE.match(file_id))


def validate_file_ids(file_ids: Sequence[str]) -> str | None:
    """Validate a batch of file IDs.

    Returns:
        An error message, or None when every ID is valid.
    """
    if isinstance(file_ids, str) or not isinstance(file_ids, Sequence):
        return "File IDs must be provided as a list"
    if not file_ids:
        return "At least one file ID must be provided"

    invalid = [file_id for file_id in file_ids if not is_valid_file_id(file_id)]
    if invalid:
        return f"Invalid file IDs found: {', '.join(map(str, invalid))}"
    return None


def validate_transfer_params(
    source_email: str,
    target_email: str,
    file_ids: Sequence[str],
) -> list[str]:
    """Validate the parameters of a transfer request.

    Returns:
        List of error messages; empty when the request is valid.
    """
    errors = []

    if not is_valid_email(source_email):
        errors.append("Invalid source email address")
    if not is_valid_email(target_email):
        errors.append("Invalid target email address")
    if source_email and target_email and source_email.casefold() == target_email.casefold():
        errors.append("Source and target email addresses cannot be the same")

    file_id_error = validate_file_ids(file_ids)
    if file_id_error:
        errors.append(file_id_error)

    return errors


def sanitize_input(value: str) -> str:
    """Trim user input, drop markup/quote characters and cap its length."""
    if not isinstance(value, str):
        return value
    return _UNSAFE_CHARS_RE.sub("", value.strip())[:MAX_INPUT_LENGTH]
