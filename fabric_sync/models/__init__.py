"""Data models for sync system."""

from .config import (
    DEFAULT_CONFIG_FILENAME,
    SyncConfig,
    SyncSettings,
    WorkspaceConfig,
    sanitize_filename,
)
from .results import (
    Affordance,
    ChangeEntry,
    ErrorKind,
    FailedItem,
    PlanEntry,
    RunStatus,
    SkippedItem,
    StatusReport,
    SucceededItem,
    SyncRunResult,
)
from .workspace import ChangeKind, ChangeRecord, DefinitionPart, Folder, Item, Workspace

__all__ = [
    "DEFAULT_CONFIG_FILENAME",
    "Affordance",
    "ChangeEntry",
    "ChangeKind",
    "ChangeRecord",
    "DefinitionPart",
    "ErrorKind",
    "FailedItem",
    "Folder",
    "Item",
    "PlanEntry",
    "RunStatus",
    "SkippedItem",
    "StatusReport",
    "SucceededItem",
    "SyncConfig",
    "SyncRunResult",
    "SyncSettings",
    "Workspace",
    "WorkspaceConfig",
    "sanitize_filename",
]
