"""Resolve workspace folder records into local directory paths."""

import logging
from pathlib import Path
from typing import Any, Iterable

from ..models.config import sanitize_filename
from ..models.workspace import Folder, Item

logger = logging.getLogger(__name__)


class FolderHierarchy:
    """Tree view over a flat list of folder records.

    Chains are memoised for the lifetime of the instance, which is one sync
    run. Malformed parent chains (cycles, dangling parent ids) never raise:
    the walk stops at the offending ancestor and the last folder reached is
    treated as a root.
    """

    def __init__(self, folders: Iterable[Folder]) -> None:
        self._folders: dict[str, Folder] = {f.id: f for f in folders}
        self._chains: dict[str, list[str]] = {}

    def __contains__(self, folder_id: object) -> bool:
        return folder_id in self._folders

    def __len__(self) -> int:
        return len(self._folders)

    def get(self, folder_id: str) -> Folder | None:
        """Get a folder record by id."""
        return self._folders.get(folder_id)

    def _chain(self, folder_id: str) -> list[str]:
        """Folder ids from the root down to ``folder_id``."""
        cached = self._chains.get(folder_id)
        if cached is not None:
            return cached

        chain: list[str] = []
        visited: set[str] = set()
        current = self._folders[folder_id]

        while True:
            visited.add(current.id)
            chain.append(current.id)

            parent_id = current.parent_folder_id
            if not parent_id:
                break
            if parent_id in visited:
                logger.warning(
                    "Folder cycle detected at %s (%s), treating it as a root",
                    current.id,
                    current.display_name,
                )
                break
            if parent_id not in self._folders:
                logger.warning(
                    "Folder %s has unknown parent %s, treating it as a root",
                    current.id,
                    parent_id,
                )
                break
            current = self._folders[parent_id]

        chain.reverse()
        self._chains[folder_id] = chain
        return chain

    def full_path(self, folder_id: str | None) -> list[str]:
        """Folder display names from the root down to ``folder_id``.

        A missing id resolves to the workspace root (empty path), as does an
        id that is not in the folder list.
        """
        if not folder_id:
            return []
        if folder_id not in self._folders:
            logger.warning("Unknown folder %s, placing item at workspace root", folder_id)
            return []
        return [self._folders[fid].display_name for fid in self._chain(folder_id)]

    def resolve_directory(self, root: Path, folder_id: str | None) -> Path:
        """Local directory for items in ``folder_id``, relative to ``root``."""
        directory = Path(root)
        for segment in self.full_path(folder_id):
            directory = directory / sanitize_filename(segment)
        return directory

    def item_directory(self, root: Path, item: Item) -> Path:
        """Local directory that will hold ``item``'s folder."""
        return self.resolve_directory(root, item.folder_id)

    def to_tree(self) -> dict[str, Any]:
        """Nested ``{id, name, folders}`` structure for display.

        A folder is nested under its parent only when that does not close a
        cycle; otherwise it is shown at the top level.
        """
        children: dict[str | None, list[Folder]] = {}
        for folder in self._folders.values():
            parent_id = folder.parent_folder_id
            if parent_id not in self._folders or folder.id in self._chain(parent_id):
                parent_id = None
            children.setdefault(parent_id, []).append(folder)

        def build(folder: Folder) -> dict[str, Any]:
            return {
                "id": folder.id,
                "name": folder.display_name,
                "folders": [
                    build(child)
                    for child in sorted(children.get(folder.id, []), key=lambda f: f.display_name)
                ],
            }

        roots = sorted(children.get(None, []), key=lambda f: f.display_name)
        return {"id": None, "name": "", "folders": [build(f) for f in roots]}
