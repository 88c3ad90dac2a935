"""Classify a workspace's git status against the items it holds."""

import logging
from typing import Any, Iterable

from ..models.results import ChangeEntry, StatusReport
from ..models.workspace import ChangeKind, ChangeRecord, Item

logger = logging.getLogger(__name__)


class ChangeClassifier:
    """Turns a raw git-status payload into a StatusReport.

    Changes are matched to items by ``objectId``. The display name for a
    change is, in order: the name carried by the status entry, the name of
    the matching item, then the raw object (or logical) id.
    """

    def __init__(self, items: Iterable[Item] = ()) -> None:
        self.items: dict[str, Item] = {item.id: item for item in items}

    @staticmethod
    def parse_changes(status: dict[str, Any]) -> list[ChangeRecord]:
        """Parse ``changes[]`` into records, dropping entries with no identity."""
        records = []
        for raw in status.get("changes") or []:
            record = ChangeRecord.from_dict(raw)
            if not record.object_id:
                logger.warning("Ignoring git status entry without an object id: %s", raw)
                continue
            records.append(record)
        return records

    def display_name(self, change: ChangeRecord) -> str:
        """Best available human name for a change."""
        if change.item_display_name:
            return change.item_display_name
        item = self.items.get(change.object_id)
        if item is not None:
            return item.display_name
        return change.object_id or change.logical_id or "unknown"

    def classify(
        self,
        workspace_id: str,
        status: dict[str, Any],
        local_revision: str | None = None,
    ) -> StatusReport:
        """Build the status report for one workspace.

        Args:
            workspace_id: Workspace the status belongs to
            status: Raw git-status payload (``workspaceHead``, ``changes``)
            local_revision: Local checkout revision, if known

        Returns:
            StatusReport; ``sync_ids`` lists object ids that can be exported,
            in the order the service reported them
        """
        report = StatusReport(
            workspace_id=workspace_id,
            workspace_head=status.get("workspaceHead"),
            local_revision=local_revision,
        )

        seen: set[str] = set()
        for change in self.parse_changes(status):
            if change.kind == ChangeKind.NONE:
                continue
            report.changes.append(ChangeEntry(
                change=change,
                display_name=self.display_name(change),
                item=self.items.get(change.object_id),
            ))
            if change.needs_sync and change.object_id not in seen:
                seen.add(change.object_id)
                report.sync_ids.append(change.object_id)

        logger.debug(
            "Workspace %s: %d changes, %d to sync, head=%s local=%s",
            workspace_id,
            len(report.changes),
            len(report.sync_ids),
            report.workspace_head,
            local_revision,
        )
        return report
