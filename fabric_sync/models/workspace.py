"""Data models for Fabric workspace resources."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Workspace:
    """A remote workspace (Power BI group)."""

    id: str
    name: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Workspace":
        """Create from an API record (``name`` or ``displayName``)."""
        return cls(
            id=data["id"],
            name=data.get("name") or data.get("displayName") or data["id"],
        )


@dataclass(frozen=True)
class Item:
    """One exportable artifact in a workspace (notebook, report, ...)."""

    id: str
    display_name: str
    type: str
    folder_id: str | None = None  # None means workspace root

    @property
    def folder_name(self) -> str:
        """Local directory name for this item: ``<displayName>.<type>``."""
        return f"{self.display_name}.{self.type}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Item":
        """Create from an API record."""
        return cls(
            id=data["id"],
            display_name=data.get("displayName", data["id"]),
            type=data.get("type", "Unknown"),
            folder_id=data.get("folderId") or None,
        )


@dataclass(frozen=True)
class Folder:
    """A workspace folder record."""

    id: str
    display_name: str
    parent_folder_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Folder":
        """Create from an API record."""
        return cls(
            id=data["id"],
            display_name=data.get("displayName", data["id"]),
            parent_folder_id=data.get("parentFolderId") or None,
        )


@dataclass(frozen=True)
class DefinitionPart:
    """One file inside an item definition bundle."""

    path: str
    payload: str | None  # base64, None for reference-only parts
    payload_type: str = "InlineBase64"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DefinitionPart":
        """Create from a ``definition.parts`` entry."""
        return cls(
            path=data["path"],
            payload=data.get("payload") or None,
            payload_type=data.get("payloadType", "InlineBase64"),
        )


class ChangeKind:
    """Kinds of divergence between the workspace and its git branch."""

    SOURCE_ONLY = "SourceOnly"  # exists in the workspace, not in git
    TARGET_ONLY = "TargetOnly"  # exists in git, not in the workspace
    CONFLICTING = "Conflicting"  # changed on both sides
    MODIFIED = "Modified"  # exists on both sides, differs
    NONE = "None"


@dataclass(frozen=True)
class ChangeRecord:
    """One unit of divergence reported by the git-status endpoint."""

    object_id: str
    kind: str
    item_display_name: str | None = None
    item_type: str | None = None
    logical_id: str | None = None
    workspace_change: str | None = None
    remote_change: str | None = None

    @property
    def needs_sync(self) -> bool:
        """True when the item exists in the workspace and can be exported."""
        return self.kind not in (ChangeKind.TARGET_ONLY, ChangeKind.NONE)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChangeRecord":
        """Create from a ``changes[]`` entry.

        Accepts both the nested ``itemMetadata.itemIdentifier`` shape and a
        flattened one with ``itemIdentifier`` / ``itemId`` at the top level.
        ``objectId`` is the canonical identity; ``itemId`` and ``logicalId``
        are fallbacks.
        """
        metadata = data.get("itemMetadata") or {}
        identifier = metadata.get("itemIdentifier") or data.get("itemIdentifier") or {}

        object_id = identifier.get("objectId") or data.get("objectId") or data.get("itemId")
        logical_id = identifier.get("logicalId") or data.get("logicalId")
        if not object_id:
            object_id = logical_id or ""

        return cls(
            object_id=object_id,
            kind=classify_change(data),
            item_display_name=metadata.get("itemDisplayName") or data.get("itemDisplayName"),
            item_type=metadata.get("itemType") or data.get("itemType"),
            logical_id=logical_id,
            workspace_change=data.get("workspaceChange"),
            remote_change=data.get("remoteChange"),
        )


def classify_change(data: dict[str, Any]) -> str:
    """Map a raw git-status change entry to a ChangeKind."""
    conflict = data.get("conflictType") or data.get("status")
    if conflict in ("Conflict", ChangeKind.CONFLICTING):
        return ChangeKind.CONFLICTING
    if conflict in (ChangeKind.SOURCE_ONLY, ChangeKind.TARGET_ONLY, ChangeKind.MODIFIED):
        return conflict

    if conflict == "SameChanges":
        return ChangeKind.NONE

    workspace_change = data.get("workspaceChange")
    remote_change = data.get("remoteChange")

    if workspace_change == "Added" or remote_change == "Deleted":
        return ChangeKind.SOURCE_ONLY
    if workspace_change == "Deleted" or remote_change == "Added":
        return ChangeKind.TARGET_ONLY

    # Entries that carry no change detail are still divergent.
    return ChangeKind.MODIFIED
