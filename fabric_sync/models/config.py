"""Configuration models for the sync system."""

import fnmatch
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_FILENAME = "fabric-sync.yaml"


def should_exclude(path: str, patterns: list[str]) -> bool:
    """Check if a relative path (or its last segment) matches any glob pattern."""
    for pattern in patterns:
        if fnmatch.fnmatch(path, pattern):
            return True
        if fnmatch.fnmatch(path.split("/")[-1], pattern):
            return True
    return False


def sanitize_filename(name: str) -> str:
    """Sanitize a name for use as a filesystem path segment.

    Replaces invalid characters with underscores and handles edge cases.
    Dots are kept so ``<displayName>.<type>`` folder names survive.
    """
    # Replace characters that are problematic on various filesystems
    sanitized = re.sub(r'[<>:"/\\|?*\x00-\x1f]', "_", name)
    sanitized = sanitized.strip(" ")
    # "." and ".." would resolve outside the intended directory
    if sanitized in ("", ".", ".."):
        return "unnamed"
    return sanitized


@dataclass
class WorkspaceConfig:
    """Configuration for one workspace synced to a local directory."""

    name: str  # Human-readable name
    workspace_id: str
    local_path: str  # Local directory to sync into
    item_types: list[str] = field(default_factory=list)  # Empty means every type
    exclude: list[str] = field(default_factory=list)  # Glob patterns on "<folder path>/<item folder>"

    def should_exclude(self, path: str) -> bool:
        """Check if a relative item path matches any exclude pattern."""
        return should_exclude(path, self.exclude)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for YAML serialization."""
        data: dict[str, Any] = {
            "name": self.name,
            "workspace_id": self.workspace_id,
            "local_path": self.local_path,
        }
        if self.item_types:
            data["item_types"] = self.item_types
        if self.exclude:
            data["exclude"] = self.exclude
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WorkspaceConfig":
        """Create from dictionary."""
        return cls(
            name=data.get("name", data["workspace_id"]),
            workspace_id=data["workspace_id"],
            local_path=data.get("local_path", "."),
            item_types=data.get("item_types") or [],
            exclude=data.get("exclude") or [],
        )


@dataclass
class SyncSettings:
    """Sync operation settings."""

    poll_interval: float = 2.0  # Seconds between export job polls
    max_poll_attempts: int = 150  # Upper bound before a job is abandoned
    request_timeout: float = 30.0
    max_workers: int = 1  # Items exported concurrently
    write_metadata: bool = True  # Write .fabric-sync.json into each item folder
    verbose: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for YAML serialization."""
        return {
            "poll_interval": self.poll_interval,
            "max_poll_attempts": self.max_poll_attempts,
            "request_timeout": self.request_timeout,
            "max_workers": self.max_workers,
            "write_metadata": self.write_metadata,
            "verbose": self.verbose,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SyncSettings":
        """Create from dictionary, falling back to defaults."""
        defaults = cls()
        return cls(
            poll_interval=float(data.get("poll_interval", defaults.poll_interval)),
            max_poll_attempts=int(data.get("max_poll_attempts", defaults.max_poll_attempts)),
            request_timeout=float(data.get("request_timeout", defaults.request_timeout)),
            max_workers=max(1, int(data.get("max_workers", defaults.max_workers))),
            write_metadata=bool(data.get("write_metadata", defaults.write_metadata)),
            verbose=bool(data.get("verbose", defaults.verbose)),
        )


@dataclass
class SyncConfig:
    """Main configuration for the sync system."""

    workspaces: list[WorkspaceConfig] = field(default_factory=list)
    settings: SyncSettings = field(default_factory=SyncSettings)

    def get_workspace(self, name_or_id: str) -> WorkspaceConfig | None:
        """Get a configured workspace by name or id."""
        for ws in self.workspaces:
            if name_or_id in (ws.name, ws.workspace_id):
                return ws
        return None

    @classmethod
    def load(cls, config_path: Path) -> "SyncConfig":
        """Load configuration from YAML file.

        A missing file yields the default configuration.
        """
        config_path = Path(config_path)
        if not config_path.exists():
            return cls()

        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        workspaces = [WorkspaceConfig.from_dict(ws) for ws in data.get("workspaces") or []]
        settings = SyncSettings.from_dict(data.get("settings") or {})

        return cls(workspaces=workspaces, settings=settings)

    def save(self, config_path: Path) -> None:
        """Save configuration to YAML file."""
        data: dict[str, Any] = {}

        if self.workspaces:
            data["workspaces"] = [ws.to_dict() for ws in self.workspaces]

        data["settings"] = self.settings.to_dict()

        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
