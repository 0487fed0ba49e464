"""Ephemeral, exclusively owned working directories."""

from __future__ import annotations

import shutil
import tempfile
from pathlib import Path
from typing import Any, Optional

from issuebot.core.logging import get_logger

logger = get_logger(__name__)


class Workspace:
    """A uniquely named temporary directory, removed on exit.

    Usage:
        with Workspace(prefix="repo-42-") as path:
            ...
    """

    def __init__(self, prefix: str, root: Optional[str] = None):
        self.prefix = prefix
        self.root = root
        self.path: Optional[Path] = None

    def __enter__(self) -> Path:
        return self.create()

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.cleanup()

    def create(self) -> Path:
        if self.root:
            Path(self.root).mkdir(parents=True, exist_ok=True)
        self.path = Path(tempfile.mkdtemp(prefix=self.prefix, dir=self.root))
        logger.info("Created workspace", path=str(self.path))
        return self.path

    def cleanup(self) -> None:
        """Remove the directory. Safe to call more than once."""
        if self.path is None:
            return
        shutil.rmtree(self.path, ignore_errors=True)
        if self.path.exists():
            logger.error("Workspace could not be fully removed", path=str(self.path))
        else:
            logger.info("Removed workspace", path=str(self.path))
        self.path = None
