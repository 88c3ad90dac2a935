"""Workspace synchronization: pull item definitions into a local tree."""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable

from ..models.config import SyncSettings, WorkspaceConfig, should_exclude
from ..models.results import (
    ErrorKind,
    FailedItem,
    PlanEntry,
    RunStatus,
    SkippedItem,
    StatusReport,
    SucceededItem,
    SyncRunResult,
)
from ..models.workspace import ChangeKind, Folder, Item
from .auth import CredentialSource
from .changes import ChangeClassifier
from .client import FabricClient
from .errors import (
    AuthError,
    FilesystemError,
    JobCancelledError,
    JobFailedError,
    JobTimeoutError,
    NotConfiguredError,
    RemoteError,
)
from .folders import FolderHierarchy
from .jobs import ExportJobDriver
from .materializer import Materializer
from .revision import RevisionInspector

logger = logging.getLogger(__name__)

ItemOutcome = SucceededItem | FailedItem | SkippedItem

CANCELLED_REASON = "Run cancelled"


class SyncEngine:
    """Pulls item definitions from one workspace into a local directory.

    Every collaborator is passed in; nothing is shared between runs except
    what the caller hands over. Within a run, items are exported one at a
    time unless ``settings.max_workers`` allows more.
    """

    def __init__(
        self,
        credentials: CredentialSource,
        client: FabricClient,
        root: Path,
        settings: SyncSettings | None = None,
        revision_inspector: RevisionInspector | None = None,
        driver: ExportJobDriver | None = None,
        materializer: Materializer | None = None,
        exclude: list[str] | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            credentials: Source of the bearer token
            client: Remote workspace client
            root: Local directory the workspace is materialised under
            settings: Poll and concurrency settings
            revision_inspector: Reads the local git revision for status checks
            driver: Export job driver (built from settings if not provided)
            materializer: Filesystem writer (built from settings if not provided)
            exclude: Glob patterns on "<folder path>/<item folder>" to skip
        """
        self.credentials = credentials
        self.client = client
        self.root = Path(root)
        self.settings = settings or SyncSettings()
        self.revision_inspector = revision_inspector or RevisionInspector()
        self.driver = driver or ExportJobDriver(
            client,
            poll_interval=self.settings.poll_interval,
            max_poll_attempts=self.settings.max_poll_attempts,
        )
        self.materializer = materializer or Materializer(write_metadata=self.settings.write_metadata)
        self.exclude = exclude or []

    @classmethod
    def from_config(
        cls,
        workspace_config: WorkspaceConfig,
        settings: SyncSettings,
        credentials: CredentialSource,
        client: FabricClient,
        base_dir: Path,
    ) -> "SyncEngine":
        """Build an engine for a configured workspace."""
        return cls(
            credentials=credentials,
            client=client,
            root=Path(base_dir) / workspace_config.local_path,
            settings=settings,
            exclude=workspace_config.exclude,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _token(self) -> str:
        return self.credentials.require().token

    def _prepare_root(self) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"Cannot use output directory {self.root}: {e}", item_dir=self.root) from e

    def _list_items_and_folders(self, token: str, workspace_id: str) -> tuple[list[Item], list[Folder]]:
        """Fetch items and folders concurrently."""
        with ThreadPoolExecutor(max_workers=2) as executor:
            items_future = executor.submit(self.client.list_items, token, workspace_id)
            folders_future = executor.submit(self.client.list_folders, token, workspace_id)
            return items_future.result(), folders_future.result()

    @staticmethod
    def _error_result(workspace_id: str, error: Exception) -> SyncRunResult:
        logger.error("Sync of workspace %s aborted: %s", workspace_id, error)
        return SyncRunResult(workspace_id=workspace_id, status=RunStatus.ERROR, message=str(error))

    # =========================================================================
    # Status
    # =========================================================================

    def status(self, workspace_id: str) -> StatusReport:
        """Classify the workspace's git status without exporting anything.

        Raises:
            AuthError: No credential available
            RemoteError: Listing calls failed
        """
        token = self._token()
        # A missing root has no revision of its own
        local_revision = self.revision_inspector.current_revision(self.root) if self.root.is_dir() else None

        try:
            git_status = self.client.get_git_status(token, workspace_id)
        except NotConfiguredError:
            return StatusReport(workspace_id=workspace_id, configured=False, local_revision=local_revision)

        items: list[Item] = []
        if git_status.get("changes"):
            items = self.client.list_items(token, workspace_id)

        return ChangeClassifier(items).classify(workspace_id, git_status, local_revision)

    # =========================================================================
    # Planning
    # =========================================================================

    def plan(
        self,
        items: Iterable[Item],
        hierarchy: FolderHierarchy,
    ) -> tuple[list[PlanEntry], list[SkippedItem]]:
        """Resolve where each item goes, applying exclude patterns.

        Returns:
            (entries to export, items skipped by pattern)
        """
        entries: list[PlanEntry] = []
        skipped: list[SkippedItem] = []

        for item in items:
            folder_path = hierarchy.full_path(item.folder_id)
            relative = "/".join(folder_path + [item.folder_name])
            if should_exclude(relative, self.exclude):
                skipped.append(SkippedItem(reason="Excluded by pattern", item=item))
                continue
            entries.append(PlanEntry(
                item=item,
                directory=hierarchy.item_directory(self.root, item),
                folder_path=folder_path,
            ))

        return entries, skipped

    def plan_workspace(
        self,
        workspace_id: str,
        item_types: list[str] | None = None,
    ) -> tuple[list[PlanEntry], list[SkippedItem]]:
        """Dry run: resolve every item's target directory without exporting."""
        token = self._token()
        items, folders = self._list_items_and_folders(token, workspace_id)
        if item_types:
            items = [item for item in items if item.type in item_types]
        return self.plan(items, FolderHierarchy(folders))

    # =========================================================================
    # Sync Runs
    # =========================================================================

    def sync_changes(
        self,
        workspace_id: str,
        cancel_event: threading.Event | None = None,
    ) -> SyncRunResult:
        """Pull every item the workspace's git status reports as divergent."""
        try:
            token = self._token()
            try:
                git_status = self.client.get_git_status(token, workspace_id)
            except NotConfiguredError as e:
                logger.info("Workspace %s: %s", workspace_id, e)
                return SyncRunResult(
                    workspace_id=workspace_id,
                    status=RunStatus.NOT_CONFIGURED,
                    message=str(e),
                )

            if not ChangeClassifier.parse_changes(git_status):
                logger.info("Workspace %s is synced with git", workspace_id)
                return SyncRunResult(workspace_id=workspace_id, status=RunStatus.SYNCED)

            self._prepare_root()
            items, folders = self._list_items_and_folders(token, workspace_id)
        except (AuthError, RemoteError, FilesystemError) as e:
            return self._error_result(workspace_id, e)

        report = ChangeClassifier(items).classify(workspace_id, git_status)
        result = SyncRunResult(workspace_id=workspace_id, status=RunStatus.SYNCED)

        by_id = {item.id: item for item in items}
        targets: list[Item] = []
        for entry in report.changes:
            change = entry.change
            if change.kind == ChangeKind.TARGET_ONLY:
                result.skipped.append(SkippedItem(reason="Only exists in git", change=change))
            elif change.object_id not in by_id:
                result.skipped.append(SkippedItem(reason="No matching item in workspace", change=change))
        for object_id in report.sync_ids:
            if object_id in by_id:
                targets.append(by_id[object_id])

        return self._run(token, workspace_id, targets, FolderHierarchy(folders), result, cancel_event)

    def sync_items(
        self,
        workspace_id: str,
        item_ids: list[str],
        cancel_event: threading.Event | None = None,
    ) -> SyncRunResult:
        """Pull an explicit set of items, bypassing the git status check."""
        try:
            token = self._token()
            self._prepare_root()
            items, folders = self._list_items_and_folders(token, workspace_id)
        except (AuthError, RemoteError, FilesystemError) as e:
            return self._error_result(workspace_id, e)

        result = SyncRunResult(workspace_id=workspace_id, status=RunStatus.SYNCED)
        by_id = {item.id: item for item in items}
        targets: list[Item] = []
        for item_id in dict.fromkeys(item_ids):
            if item_id in by_id:
                targets.append(by_id[item_id])
            else:
                result.skipped.append(SkippedItem(reason=f"Item {item_id} not found in workspace"))

        return self._run(token, workspace_id, targets, FolderHierarchy(folders), result, cancel_event)

    def sync_all(
        self,
        workspace_id: str,
        item_types: list[str] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> SyncRunResult:
        """Pull every item in the workspace, optionally only some types."""
        try:
            token = self._token()
            self._prepare_root()
            items, folders = self._list_items_and_folders(token, workspace_id)
        except (AuthError, RemoteError, FilesystemError) as e:
            return self._error_result(workspace_id, e)

        result = SyncRunResult(workspace_id=workspace_id, status=RunStatus.SYNCED)
        if item_types:
            items = [item for item in items if item.type in item_types]
            if not items:
                result.message = f"No items of type {', '.join(item_types)} in workspace"

        return self._run(token, workspace_id, items, FolderHierarchy(folders), result, cancel_event)

    # =========================================================================
    # Per-Item Export
    # =========================================================================

    def _run(
        self,
        token: str,
        workspace_id: str,
        items: list[Item],
        hierarchy: FolderHierarchy,
        result: SyncRunResult,
        cancel_event: threading.Event | None,
    ) -> SyncRunResult:
        cancel_event = cancel_event or threading.Event()
        entries, excluded = self.plan(items, hierarchy)
        result.skipped.extend(excluded)

        if self.settings.max_workers > 1 and len(entries) > 1:
            with ThreadPoolExecutor(max_workers=self.settings.max_workers) as executor:
                futures = [
                    executor.submit(self._sync_item, token, workspace_id, entry, cancel_event)
                    for entry in entries
                ]
                outcomes = [future.result() for future in futures]
        else:
            outcomes = [self._sync_item(token, workspace_id, entry, cancel_event) for entry in entries]

        for outcome in outcomes:
            if isinstance(outcome, SucceededItem):
                result.succeeded_items.append(outcome)
            elif isinstance(outcome, FailedItem):
                result.failed_items.append(outcome)
            else:
                result.skipped.append(outcome)

        cancelled = any(f.error_kind == ErrorKind.CANCELLED for f in result.failed_items) or any(
            s.reason == CANCELLED_REASON for s in result.skipped
        )
        result.finalize(cancelled=cancelled)
        logger.info(
            "Workspace %s: %s (%d synced, %d failed, %d skipped)",
            workspace_id,
            result.status,
            len(result.succeeded_items),
            len(result.failed_items),
            len(result.skipped),
        )
        return result

    def _sync_item(
        self,
        token: str,
        workspace_id: str,
        entry: PlanEntry,
        cancel_event: threading.Event,
    ) -> ItemOutcome:
        """Export and write one item. Failures are returned, never raised."""
        item = entry.item
        if cancel_event.is_set():
            return SkippedItem(reason=CANCELLED_REASON, item=item)

        try:
            parts = self.driver.export(token, workspace_id, item.id, cancel_event)
            written = self.materializer.write_item(
                entry.directory,
                item,
                parts,
                metadata={
                    "workspace_id": workspace_id,
                    "folder_path": "/".join(entry.folder_path),
                },
            )
        except JobCancelledError as e:
            return self._failed(item, e, ErrorKind.CANCELLED)
        except JobFailedError as e:
            return self._failed(item, e, ErrorKind.JOB_FAILED)
        except JobTimeoutError as e:
            return self._failed(item, e, ErrorKind.TIMEOUT)
        except FilesystemError as e:
            return self._failed(item, e, ErrorKind.FILESYSTEM, partial_files=e.written)
        except RemoteError as e:
            return self._failed(item, e, ErrorKind.REMOTE)
        except Exception as e:
            logger.exception("Unexpected error syncing %s", item.display_name)
            return self._failed(item, e, ErrorKind.UNEXPECTED)

        return SucceededItem(
            item=item,
            path=written.item_dir,
            files_written=written.written,
            files_unchanged=written.unchanged,
        )

    @staticmethod
    def _failed(
        item: Item,
        error: Exception,
        kind: str,
        partial_files: list[str] | None = None,
    ) -> FailedItem:
        logger.warning("Failed to sync %s (%s): %s", item.display_name, kind, error)
        return FailedItem(item=item, reason=str(error), error_kind=kind, partial_files=partial_files or [])
