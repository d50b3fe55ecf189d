"""Google Drive API client implementation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from google.auth.exceptions import RefreshError
from googleapiclient.errors import HttpError

from drive_transfer.drive.exceptions import DriveAPIError
from drive_transfer.google import GoogleOAuth
from drive_transfer.google.exceptions import AuthorizationRequired, TokenError


@dataclass(frozen=True)
class Principal:
    """A Google account taking part in ownership and permission relations."""

    email_address: str
    display_name: str = ""


@dataclass(frozen=True)
class Permission:
    """A role granted on a file to a principal."""

    id: str
    role: str
    type: str = "user"
    email_address: str | None = None
    display_name: str | None = None

    @property
    def is_owner(self) -> bool:
        return self.role == "owner"

    def matches(self, email: str) -> bool:
        """Check whether this permission belongs to the given email (case-insensitive)."""
        return bool(self.email_address) and self.email_address.casefold() == email.casefold()


@dataclass(frozen=True)
class FileRecord:
    """Snapshot of a Drive file's metadata, fetched fresh for each operation."""

    id: str
    name: str
    mime_type: str
    owners: tuple[Principal, ...] = ()
    parents: tuple[str, ...] = ()
    web_view_link: str | None = None
    size: int | None = None

    @property
    def primary_owner(self) -> Principal | None:
        """Drive lists the primary owner first."""
        return self.owners[0] if self.owners else None

    @property
    def is_folder(self) -> bool:
        return self.mime_type == FOLDER_MIME_TYPE


@dataclass
class FileListPage:
    """One page of a files.list query."""

    files: list[FileRecord] = field(default_factory=list)
    next_page_token: str | None = None


FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"

FILE_FIELDS = "id, name, mimeType, owners(emailAddress, displayName), parents, webViewLink, size"
PERMISSION_FIELDS = "id, role, type, emailAddress, displayName"


class DriveClient:
    """Google Drive API client bound to one authenticated account.

    Exposes the file and permission operations ownership transfer needs.
    Every Drive API failure is raised as DriveAPIError.

    Usage:
        client = DriveClient(auth=GoogleOAuth(token_path="tokens/me@example.com.json"))

        record = client.get_file(file_id)
        for permission in client.list_permissions(file_id):
            print(permission.email_address, permission.role)

    Note:
        Requires OAuth authorization. Run `drive-transfer login EMAIL` to authorize.
    """

    def __init__(
        self,
        auth: GoogleOAuth | None = None,
        service: Any = None,
        account: str | None = None,
    ) -> None:
        """Initialize Drive client.

        Args:
            auth: OAuth session of the account. Used to build the service lazily.
            service: Pre-built Drive v3 discovery service (takes precedence over auth).
            account: Email of the account this client acts as, for display and logs.
        """
        if auth is None and service is None:
            raise ValueError("DriveClient needs an OAuth session or a Drive service")
        self._auth = auth
        self._service = service
        self.account = account

    def _get_service(self) -> Any:
        """Get or create Drive API service."""
        if self._service is None:
            if not self._auth.is_authorized():
                raise AuthorizationRequired(
                    self._auth.get_authorization_url(),
                    "Drive API requires OAuth authorization. "
                    "Run 'drive-transfer login EMAIL' to authorize.",
                )
            try:
                self._service = self._auth.build_service("drive", "v3")
            except TokenError as e:
                raise DriveAPIError(str(e), status_code=401) from e
        return self._service

    def is_authorized(self) -> bool:
        """Check if client has a usable session."""
        return self._service is not None or self._auth.is_authorized()

    def _execute(self, request: Any, action: str) -> dict:
        """Run an API request and convert transport errors into DriveAPIError."""
        try:
            return request.execute()
        except HttpError as e:
            raise DriveAPIError(
                f"Failed to {action}: {e.reason}", status_code=e.resp.status
            ) from e
        except RefreshError as e:
            raise DriveAPIError(f"Failed to {action}: {e}", status_code=401) from e

    # =========================================================================
    # Files
    # =========================================================================

    def get_file(self, file_id: str) -> FileRecord:
        """Get a file's metadata, including its owners.

        Raises:
            DriveAPIError: If the file is missing or not accessible.
        """
        service = self._get_service()
        data = self._execute(
            service.files().get(fileId=file_id, fields=FILE_FIELDS),
            "get file details",
        )
        return self._parse_file(data)

    def file_exists(self, file_id: str) -> bool:
        """Check if a file exists and is accessible.

        Returns:
            False on a 404 response. Other API errors are raised.
        """
        service = self._get_service()
        try:
            self._execute(service.files().get(fileId=file_id, fields="id"), "check file")
        except DriveAPIError as e:
            if e.is_not_found:
                return False
            raise
        return True

    def list_files(
        self,
        page_size: int = 100,
        page_token: str | None = None,
        query: str | None = None,
        order_by: str = "name",
    ) -> FileListPage:
        """List one page of files.

        Args:
            page_size: Maximum number of files in the page.
            page_token: Token returned by the previous page.
            query: Search query (Drive query syntax).
            order_by: Sort order (e.g., "name", "modifiedTime desc").
        """
        service = self._get_service()

        kwargs: dict[str, Any] = {
            "pageSize": page_size,
            "fields": f"nextPageToken, files({FILE_FIELDS})",
            "orderBy": order_by,
        }
        if page_token:
            kwargs["pageToken"] = page_token
        if query:
            kwargs["q"] = query

        results = self._execute(service.files().list(**kwargs), "list files")
        return FileListPage(
            files=[self._parse_file(item) for item in results.get("files", [])],
            next_page_token=results.get("nextPageToken"),
        )

    def search_files(self, query: str, page_size: int = 100) -> FileListPage:
        """Search files using Drive query syntax."""
        return self.list_files(page_size=page_size, query=query)

    def list_owned_files(self, email: str, max_results: int = 50) -> list[FileRecord]:
        """List non-trashed files owned by the given account."""
        page = self.search_files(
            f"'{_escape(email)}' in owners and trashed = false", page_size=max_results
        )
        return page.files

    def get_files_by_name(self, name: str) -> list[FileRecord]:
        """Find non-trashed files with an exact name."""
        return self.search_files(f"name = '{_escape(name)}' and trashed = false").files

    def get_files_in_folder(self, folder_id: str) -> list[FileRecord]:
        """List non-trashed files directly inside a folder."""
        return self.search_files(f"'{_escape(folder_id)}' in parents and trashed = false").files

    # =========================================================================
    # Permissions
    # =========================================================================

    def list_permissions(self, file_id: str) -> list[Permission]:
        """List every permission on a file, following pagination."""
        service = self._get_service()
        permissions: list[Permission] = []
        page_token = None

        while True:
            kwargs: dict[str, Any] = {
                "fileId": file_id,
                "fields": f"nextPageToken, permissions({PERMISSION_FIELDS})",
            }
            if page_token:
                kwargs["pageToken"] = page_token

            results = self._execute(service.permissions().list(**kwargs), "get permissions")
            permissions.extend(self._parse_permission(p) for p in results.get("permissions", []))

            page_token = results.get("nextPageToken")
            if not page_token:
                return permissions

    def create_permission(
        self,
        file_id: str,
        email: str,
        role: str,
        type: str = "user",
        send_notification_email: bool = False,
    ) -> Permission:
        """Grant a role on a file to a user.

        Args:
            file_id: Drive file ID.
            email: Grantee email address.
            role: Role to grant (e.g., "writer").
            type: Grantee type.
            send_notification_email: Let Drive email the grantee.
        """
        service = self._get_service()
        result = self._execute(
            service.permissions().create(
                fileId=file_id,
                body={"role": role, "type": type, "emailAddress": email},
                sendNotificationEmail=send_notification_email,
                fields=PERMISSION_FIELDS,
            ),
            "add permission",
        )
        return self._parse_permission(result, email=email)

    def update_permission(
        self,
        file_id: str,
        permission_id: str,
        role: str,
        transfer_ownership: bool = False,
    ) -> Permission:
        """Change the role of an existing permission.

        Args:
            file_id: Drive file ID.
            permission_id: Permission to update.
            role: New role.
            transfer_ownership: Required by Drive when role is "owner"; the previous
                owner is downgraded to writer and the new owner is notified.

        Note:
            Drive v3 permissions.update takes no sendNotificationEmail parameter
            and always emails the new owner on an ownership transfer. Callers that
            control notification pass it to create_permission when granting access.
        """
        service = self._get_service()
        result = self._execute(
            service.permissions().update(
                fileId=file_id,
                permissionId=permission_id,
                body={"role": role},
                transferOwnership=transfer_ownership,
                fields=PERMISSION_FIELDS,
            ),
            "promote to owner" if role == "owner" else "update permission",
        )
        return self._parse_permission(result)

    # =========================================================================
    # Account
    # =========================================================================

    def get_current_user(self) -> Principal:
        """Get the account this client is authenticated as."""
        service = self._get_service()
        result = self._execute(
            service.about().get(fields="user(displayName, emailAddress)"),
            "get current user",
        )
        user = result.get("user", {})
        return Principal(
            email_address=user.get("emailAddress", ""),
            display_name=user.get("displayName", ""),
        )

    def _parse_file(self, data: dict) -> FileRecord:
        """Parse file from API response."""
        size = None
        if data.get("size"):
            try:
                size = int(data["size"])
            except (TypeError, ValueError):
                size = None

        owners = tuple(
            Principal(
                email_address=owner.get("emailAddress", ""),
                display_name=owner.get("displayName", ""),
            )
            for owner in data.get("owners", [])
        )

        return FileRecord(
            id=data["id"],
            name=data.get("name", ""),
            mime_type=data.get("mimeType", ""),
            owners=owners,
            parents=tuple(data.get("parents", [])),
            web_view_link=data.get("webViewLink"),
            size=size,
        )

    def _parse_permission(self, data: dict, email: str | None = None) -> Permission:
        """Parse permission from API response."""
        return Permission(
            id=data["id"],
            role=data.get("role", ""),
            type=data.get("type", "user"),
            email_address=data.get("emailAddress", email),
            display_name=data.get("displayName"),
        )


def _escape(value: str) -> str:
    """Escape a literal for use inside a single-quoted Drive query string."""
    return value.replace("\\", "\\\\").replace("'", "\\'")
