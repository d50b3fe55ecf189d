"""Google Drive API client with OAuth authentication.

Usage:
    from drive_transfer.drive import DriveClient
    from drive_transfer.google import GoogleOAuth

    client = DriveClient(auth=GoogleOAuth(token_path="tokens/me@example.com.json"))

    record = client.get_file(file_id)
    print(record.name, record.primary_owner)

    for permission in client.list_permissions(file_id):
        print(permission.email_address, permission.role)
"""

from __future__ import annotations

from drive_transfer.drive.client import (
    FOLDER_MIME_TYPE,
    DriveClient,
    FileListPage,
    FileRecord,
    Permission,
    Principal,
)
from drive_transfer.drive.exceptions import DriveAPIError

__all__ = [
    "DriveClient",
    "DriveAPIError",
    "FileRecord",
    "FileListPage",
    "Permission",
    "Principal",
    "FOLDER_MIME_TYPE",
]
