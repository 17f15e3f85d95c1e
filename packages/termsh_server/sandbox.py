"""Path confinement for file commands.

Every filename a client sends is resolved here before anything touches the
filesystem. A name that would land outside the working directory raises
SecurityViolation instead of returning a path.
"""

import os
from pathlib import Path

from .exceptions import SecurityViolation


class Sandbox:
    """Resolves client-supplied names inside a fixed working directory."""

    def __init__(self, work_dir: Path | str):
        """Initialize the sandbox.

        Args:
            work_dir: Root directory; made absolute but not otherwise checked
        """
        self.work_dir = Path(os.path.abspath(work_dir))

    def resolve(self, name: str) -> Path:
        """Resolve a filename against the working directory.

        The lexical check (join + normpath) runs first and makes no system
        calls, so "../" style escapes are refused before the filesystem is
        consulted at all. The realpath check afterwards catches symlinks
        inside the tree that point out of it.

        Args:
            name: Filename as typed by the client

        Returns:
            Normalized absolute path inside the working directory

        Raises:
            SecurityViolation: If the name escapes the working directory
        """
        candidate = Path(os.path.normpath(os.path.join(self.work_dir, name)))
        if not candidate.is_relative_to(self.work_dir):
            raise SecurityViolation(name)

        real_root = Path(os.path.realpath(self.work_dir))
        if not Path(os.path.realpath(candidate)).is_relative_to(real_root):
            raise SecurityViolation(name)

        return candidate
