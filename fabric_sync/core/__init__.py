"""Core sync functionality."""

from .auth import Credential, CredentialSource, EnvCredentialSource, StaticCredentialSource
from .changes import ChangeClassifier
from .client import ExportResponse, FabricClient
from .engine import SyncEngine
from .errors import (
    AuthError,
    FabricSyncError,
    FilesystemError,
    JobCancelledError,
    JobFailedError,
    JobTimeoutError,
    NotConfiguredError,
    RemoteError,
)
from .folders import FolderHierarchy
from .jobs import ExportJobDriver, JobState
from .materializer import Materializer, MaterializeResult
from .revision import RevisionInspector

__all__ = [
    "AuthError",
    "ChangeClassifier",
    "Credential",
    "CredentialSource",
    "EnvCredentialSource",
    "ExportJobDriver",
    "ExportResponse",
    "FabricClient",
    "FabricSyncError",
    "FilesystemError",
    "FolderHierarchy",
    "JobCancelledError",
    "JobFailedError",
    "JobState",
    "JobTimeoutError",
    "MaterializeResult",
    "Materializer",
    "NotConfiguredError",
    "RemoteError",
    "RevisionInspector",
    "StaticCredentialSource",
    "SyncEngine",
]
