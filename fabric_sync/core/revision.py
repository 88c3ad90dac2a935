"""Read the local git checkout's revision.

The sync core only compares this revision with the workspace head; it never
changes the local repository.
"""

import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


class RevisionInspector:
    """Asks the ``git`` binary for the current commit of a directory."""

    def __init__(self, git_executable: str = "git", timeout: float = 5.0) -> None:
        self.git_executable = git_executable
        self.timeout = timeout

    def current_revision(self, root_path: Path | str | None = None) -> str | None:
        """Get the full SHA of HEAD.

        Args:
            root_path: Directory inside the repository (default: current directory)

        Returns:
            Commit SHA or None if not in a repo, no commits yet, or git is absent
        """
        try:
            result = subprocess.run(
                [self.git_executable, "rev-parse", "HEAD"],
                capture_output=True,
                text=True,
                cwd=root_path,
                timeout=self.timeout,
            )
        except (subprocess.SubprocessError, OSError) as e:
            logger.debug("git rev-parse failed in %s: %s", root_path, e)
            return None

        if result.returncode != 0:
            logger.debug("git rev-parse exited %d in %s", result.returncode, root_path)
            return None
        return result.stdout.strip() or None
