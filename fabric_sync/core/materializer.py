"""Write decoded item definitions to the local filesystem."""

import base64
import binascii
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

from ..models.config import sanitize_filename
from ..models.workspace import DefinitionPart, Item
from .errors import FilesystemError

logger = logging.getLogger(__name__)

METADATA_FILENAME = ".fabric-sync.json"


@dataclass
class MaterializeResult:
    """Files touched while writing one item folder."""

    item_dir: Path
    written: list[str] = field(default_factory=list)  # created or changed
    unchanged: list[str] = field(default_factory=list)  # already identical on disk
    skipped: list[str] = field(default_factory=list)  # parts without payload


def decode_payload(part: DefinitionPart) -> bytes:
    """Decode a part's base64 payload."""
    if part.payload is None:
        return b""
    try:
        return base64.b64decode(part.payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 payload for {part.path}: {e}") from e


def safe_relative_path(part_path: str) -> PurePosixPath:
    """Validate a part path declared by the service.

    Raises:
        ValueError: If the path is empty, absolute or climbs out of the item folder
    """
    relative = PurePosixPath(part_path.replace("\\", "/"))
    if not part_path or relative.is_absolute() or ".." in relative.parts:
        raise ValueError(f"Refusing to write outside the item folder: {part_path!r}")
    return relative


def _is_metadata_path(part_path: str) -> bool:
    return PurePosixPath(part_path.replace("\\", "/")).parts == (METADATA_FILENAME,)


class Materializer:
    """Writes item definition parts under ``<directory>/<displayName>.<type>/``.

    Writes are idempotent: a file whose bytes already match is left alone.
    They are not transactional; if a write fails, files written before it
    stay on disk and are reported on the raised FilesystemError.
    """

    def __init__(self, write_metadata: bool = True) -> None:
        self.write_metadata = write_metadata

    @staticmethod
    def item_dir(directory: Path, item: Item) -> Path:
        return Path(directory) / sanitize_filename(item.folder_name)

    @staticmethod
    def _write_if_changed(path: Path, content: bytes) -> bool:
        """Write ``content`` unless the file already holds it. Returns True on write."""
        if path.is_file() and path.read_bytes() == content:
            return False
        path.write_bytes(content)
        return True

    def write_item(
        self,
        directory: Path,
        item: Item,
        parts: list[DefinitionPart],
        metadata: dict[str, Any] | None = None,
    ) -> MaterializeResult:
        """Write every materialisable part of ``item``.

        Args:
            directory: Resolved parent directory for the item folder
            item: The item being written
            parts: Definition parts in service order
            metadata: Extra traceability fields for the metadata file

        Returns:
            MaterializeResult listing written, unchanged and skipped parts

        Raises:
            FilesystemError: On invalid part paths/payloads or OS write errors
        """
        item_dir = self.item_dir(directory, item)
        result = MaterializeResult(item_dir=item_dir)

        try:
            item_dir.mkdir(parents=True, exist_ok=True)

            for part in parts:
                if self.write_metadata and _is_metadata_path(part.path):
                    logger.warning("Skipping %s/%s: reserved for sync metadata", item.display_name, part.path)
                    result.skipped.append(part.path)
                    continue
                if part.payload is None:
                    logger.debug("Skipping %s/%s: no payload", item.display_name, part.path)
                    result.skipped.append(part.path)
                    continue

                target = item_dir.joinpath(*safe_relative_path(part.path).parts)
                content = decode_payload(part)
                target.parent.mkdir(parents=True, exist_ok=True)

                if self._write_if_changed(target, content):
                    result.written.append(part.path)
                else:
                    result.unchanged.append(part.path)

            if self.write_metadata:
                self._write_metadata(item_dir, item, parts, metadata or {})

        except (OSError, ValueError) as e:
            raise FilesystemError(
                f"Failed writing {item.folder_name}: {e}",
                item_dir=item_dir,
                written=list(result.written),
            ) from e

        logger.info(
            "Wrote %s (%d written, %d unchanged, %d skipped)",
            item_dir,
            len(result.written),
            len(result.unchanged),
            len(result.skipped),
        )
        return result

    def _write_metadata(
        self,
        item_dir: Path,
        item: Item,
        parts: list[DefinitionPart],
        extra: dict[str, Any],
    ) -> None:
        """Save the metadata file that maps the folder back to the workspace.

        The content depends only on the item and its parts, so re-running a
        sync leaves the file untouched.
        """
        data: dict[str, Any] = {
            "item_id": item.id,
            "display_name": item.display_name,
            "type": item.type,
            "folder_id": item.folder_id,
            "parts": [
                part.path for part in parts
                if part.payload is not None and not _is_metadata_path(part.path)
            ],
        }
        data.update(extra)
        content = (json.dumps(data, indent=2) + "\n").encode("utf-8")
        self._write_if_changed(item_dir / METADATA_FILENAME, content)

    @staticmethod
    def load_metadata(item_dir: Path) -> dict[str, Any] | None:
        """Load an item folder's metadata file if it exists."""
        metadata_path = Path(item_dir) / METADATA_FILENAME
        if not metadata_path.exists():
            return None
        with open(metadata_path, encoding="utf-8") as f:
            return json.load(f)
