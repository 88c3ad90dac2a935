"""Result models returned by the sync engine."""

from dataclasses import dataclass, field
from pathlib import Path

from .config import sanitize_filename
from .workspace import ChangeRecord, Item


class RunStatus:
    """Overall outcome of a sync run."""

    SYNCED = "Synced"
    PARTIAL_FAILURE = "PartialFailure"
    NOT_CONFIGURED = "NotConfigured"
    CANCELLED = "Cancelled"
    ERROR = "Error"


class ErrorKind:
    """Why a single item failed."""

    REMOTE = "RemoteError"
    JOB_FAILED = "JobFailed"
    TIMEOUT = "Timeout"
    FILESYSTEM = "FilesystemError"
    CANCELLED = "Cancelled"
    UNEXPECTED = "Error"


class Affordance:
    """Next step offered to the user after a status check."""

    NONE = "none"
    SHOW_DIFF = "show_diff"  # local checkout matches the workspace head
    CHECKOUT = "checkout"  # local checkout is behind or ahead


@dataclass
class PlanEntry:
    """Where one item will be written."""

    item: Item
    directory: Path  # parent directory of the item folder
    folder_path: list[str] = field(default_factory=list)

    @property
    def item_dir(self) -> Path:
        """Full path of the ``<displayName>.<type>`` folder."""
        return self.directory / sanitize_filename(self.item.folder_name)


@dataclass
class SucceededItem:
    """An item whose definition was written to disk."""

    item: Item
    path: Path
    files_written: list[str] = field(default_factory=list)
    files_unchanged: list[str] = field(default_factory=list)


@dataclass
class FailedItem:
    """An item that could not be synced."""

    item: Item
    reason: str
    error_kind: str
    partial_files: list[str] = field(default_factory=list)


@dataclass
class SkippedItem:
    """An item (or change record) that was deliberately not exported."""

    reason: str
    item: Item | None = None
    change: ChangeRecord | None = None

    @property
    def label(self) -> str:
        """Best available name for display."""
        if self.item is not None:
            return self.item.display_name
        if self.change is not None:
            return self.change.item_display_name or self.change.object_id
        return "unknown"


@dataclass
class SyncRunResult:
    """Structured result of a sync run."""

    workspace_id: str
    status: str
    succeeded_items: list[SucceededItem] = field(default_factory=list)
    failed_items: list[FailedItem] = field(default_factory=list)
    skipped: list[SkippedItem] = field(default_factory=list)
    message: str = ""

    @property
    def success(self) -> bool:
        """True when the run finished without any failure."""
        return self.status in (RunStatus.SYNCED, RunStatus.NOT_CONFIGURED)

    def finalize(self, cancelled: bool = False) -> "SyncRunResult":
        """Derive the overall status from the collected item results."""
        if cancelled:
            self.status = RunStatus.CANCELLED
        elif self.failed_items:
            self.status = RunStatus.PARTIAL_FAILURE
        else:
            self.status = RunStatus.SYNCED
        return self


@dataclass
class ChangeEntry:
    """A change record paired with its display name and matching item."""

    change: ChangeRecord
    display_name: str
    item: Item | None = None


@dataclass
class StatusReport:
    """Outcome of classifying a workspace's git status."""

    workspace_id: str
    configured: bool = True
    workspace_head: str | None = None
    local_revision: str | None = None
    changes: list[ChangeEntry] = field(default_factory=list)
    sync_ids: list[str] = field(default_factory=list)

    @property
    def synced(self) -> bool:
        """True when the workspace reports no divergence."""
        return self.configured and not self.changes

    @property
    def is_current(self) -> bool:
        """True when the local checkout is at the workspace head."""
        return bool(self.workspace_head) and self.workspace_head == self.local_revision

    @property
    def affordance(self) -> str:
        """Which follow-up action makes sense for the user."""
        if not self.configured:
            return Affordance.NONE
        return Affordance.SHOW_DIFF if self.is_current else Affordance.CHECKOUT
