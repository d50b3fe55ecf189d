"""Tests for transfer input validation."""

import pytest

from drive_transfer.transfer.validation import (
    is_basic_email,
    is_valid_email,
    is_valid_file_id,
    sanitize_input,
    validate_file_ids,
    validate_transfer_params,
)

FILE_ID = "1AbCdEfGhIjKlMnOpQrStUvWxYz_-0123"


class TestEmail:
    """Email address checks."""

    @pytest.mark.parametrize(
        "email", ["b@x.com", "first.last+tag@sub.example.org", "o'neil@example.ie"]
    )
    def test_valid(self, email):
        """Should accept well-formed addresses."""
        assert is_valid_email(email)
        assert is_basic_email(email)

    @pytest.mark.parametrize("email", ["not-an-email", "a@", "@x.com", "a b@x.com", "", None, 42])
    def test_invalid(self, email):
        """Should reject malformed addresses and non-strings."""
        assert not is_valid_email(email)
        assert not is_basic_email(email)

    def test_length_limit(self):
        """Should reject addresses longer than 254 characters."""
        email = "a" * 64 + "@" + ".".join(["b" * 60] * 4) + ".com"
        assert len(email) > 254
        assert not is_valid_email(email)


class TestFileIds:
    """Drive file ID checks."""

    def test_valid_file_id(self):
        """Should accept 28-44 URL-safe characters."""
        assert is_valid_file_id(FILE_ID)

    @pytest.mark.parametrize("file_id", ["short", "x" * 45, FILE_ID[:-1] + "!", "", None])
    def test_invalid_file_id(self, file_id):
        """Should reject IDs with the wrong length or characters."""
        assert not is_valid_file_id(file_id)

    def test_validate_file_ids(self):
        """Should report empty lists, non-lists and invalid IDs."""
        assert validate_file_ids([FILE_ID]) is None
        assert validate_file_ids([]) == "At least one file ID must be provided"
        assert validate_file_ids(FILE_ID) == "File IDs must be provided as a list"
        assert validate_file_ids([FILE_ID, "bad"]) == "Invalid file IDs found: bad"


class TestTransferParams:
    """Combined transfer request validation."""

    def test_valid(self):
        """Should return no errors for a valid request."""
        assert validate_transfer_params("a@x.com", "b@x.com", [FILE_ID]) == []

    def test_same_account(self):
        """Should reject transfers to the same account."""
        errors = validate_transfer_params("a@x.com", "A@x.com", [FILE_ID])
        assert errors == ["Source and target email addresses cannot be the same"]

    def test_collects_all_errors(self):
        """Should report every problem at once."""
        errors = validate_transfer_params("bad", "worse", [])
        assert errors == [
            "Invalid source email address",
            "Invalid target email address",
            "At least one file ID must be provided",
        ]


class TestSanitize:
    """User input sanitization."""

    def test_strips_and_removes_unsafe_characters(self):
        """Should trim whitespace and drop markup and quote characters."""
        assert sanitize_input('  <b>"id"</b>  ') == "bid/b"

    def test_caps_length(self):
        """Should cap input at 500 characters."""
        assert len(sanitize_input("x" * 600)) == 500

    def test_non_string_passthrough(self):
        """Should leave non-strings untouched."""
        assert sanitize_input(None) is None
