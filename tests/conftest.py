"""Shared pytest fixtures."""

import itertools
import logging

import pytest

from drive_transfer.drive import DriveAPIError, FileRecord, Permission, Principal

OWNER = "a@x.com"
TARGET = "b@x.com"


class FakeDrive:
    """In-memory stand-in for DriveClient that records every call."""

    def __init__(self, account=OWNER):
        self.account = account
        self.files = {}
        self.permissions = {}
        self.calls = []
        self.errors = {}
        self._ids = itertools.count(1)

    def add_file(self, file_id, name=None, owner=OWNER, permissions=()):
        owners = (Principal(owner, owner.split("@")[0]),) if owner else ()
        self.files[file_id] = FileRecord(
            id=file_id,
            name=name or f"{file_id}.txt",
            mime_type="text/plain",
            owners=owners,
        )
        perms = [Permission(id=f"owner-{file_id}", role="owner", email_address=owner)]
        if not owner:
            perms = []
        for email, role in permissions:
            perms.append(Permission(id=f"perm-{next(self._ids)}", role=role, email_address=email))
        self.permissions[file_id] = perms
        return self.files[file_id]

    def fail(self, method, file_id, status_code=500, message="Backend Error"):
        self.errors[(method, file_id)] = DriveAPIError(message, status_code=status_code)

    def _call(self, method, file_id, *args):
        self.calls.append((method, file_id, *args))
        error = self.errors.get((method, file_id))
        if error is not None:
            raise error

    @property
    def write_calls(self):
        return [c for c in self.calls if c[0] in ("create_permission", "update_permission")]

    def calls_for(self, method):
        return [c for c in self.calls if c[0] == method]

    def get_file(self, file_id):
        self._call("get_file", file_id)
        if file_id not in self.files:
            raise DriveAPIError("Failed to get file details: File not found", status_code=404)
        return self.files[file_id]

    def list_permissions(self, file_id):
        self._call("list_permissions", file_id)
        return list(self.permissions.get(file_id, []))

    def create_permission(self, file_id, email, role, type="user", send_notification_email=False):
        self._call("create_permission", file_id, email, role, send_notification_email)
        permission = Permission(
            id=f"perm-{next(self._ids)}", role=role, type=type, email_address=email
        )
        self.permissions.setdefault(file_id, []).append(permission)
        return permission

    def update_permission(self, file_id, permission_id, role, transfer_ownership=False):
        self._call("update_permission", file_id, permission_id, role, transfer_ownership)
        updated = None
        perms = []
        for permission in self.permissions[file_id]:
            if permission.id == permission_id:
                updated = Permission(permission.id, role, permission.type, permission.email_address)
                perms.append(updated)
            elif role == "owner" and transfer_ownership and permission.role == "owner":
                perms.append(
                    Permission(permission.id, "writer", permission.type, permission.email_address)
                )
            else:
                perms.append(permission)
        self.permissions[file_id] = perms
        return updated

    def get_current_user(self):
        self.calls.append(("get_current_user", None))
        return Principal(self.account, self.account.split("@")[0])

    def role_of(self, file_id, email):
        for permission in self.permissions.get(file_id, []):
            if permission.email_address == email:
                return permission.role
        return None


@pytest.fixture
def drive():
    """Fake Drive client authenticated as the current owner."""
    return FakeDrive()


@pytest.fixture
def sleeps():
    """Records the pauses requested by the batch coordinator."""
    return []


@pytest.fixture
def record_sleep(sleeps):
    return sleeps.append


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo setup_logging so later tests see the default logger hierarchy."""
    yield
    logger = logging.getLogger("drive_transfer")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
