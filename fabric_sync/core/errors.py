"""Exceptions raised by the sync core."""

from pathlib import Path
from typing import Any


class FabricSyncError(Exception):
    """Base class for every sync error."""


class AuthError(FabricSyncError):
    """No credential could be obtained. Fatal to a sync run."""


class RemoteError(FabricSyncError):
    """Exception raised for Fabric / Power BI API errors."""

    def __init__(self, message: str, status_code: int | None = None, body: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class NotConfiguredError(RemoteError):
    """Git integration is not configured for the workspace (404 on git status)."""


class JobFailedError(FabricSyncError):
    """The remote export job reached the ``Failed`` state."""

    def __init__(self, message: str, item_id: str | None = None, error: Any = None) -> None:
        super().__init__(message)
        self.item_id = item_id
        self.error = error


class JobTimeoutError(FabricSyncError):
    """The export job did not finish within the allowed poll attempts."""

    def __init__(self, message: str, item_id: str | None = None, attempts: int = 0) -> None:
        super().__init__(message)
        self.item_id = item_id
        self.attempts = attempts


class JobCancelledError(FabricSyncError):
    """The sync run was cancelled while the export job was in flight."""

    def __init__(self, message: str, item_id: str | None = None) -> None:
        super().__init__(message)
        self.item_id = item_id


class FilesystemError(FabricSyncError):
    """Writing an item folder failed. Files already written are left in place."""

    def __init__(
        self,
        message: str,
        item_dir: Path | None = None,
        written: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.item_dir = item_dir
        self.written = written or []
