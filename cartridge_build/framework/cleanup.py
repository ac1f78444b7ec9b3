"""Pre-build cleanup of previously generated output."""

from __future__ import annotations

import logging
import os
import shutil
from typing import Protocol

logger = logging.getLogger(__name__)


class OutputCleaner(Protocol):
    def clean(self, path: str) -> None:
        """Remove generated files under `path`; raise OSError on failure."""


class DirectoryCleaner:
    """Empties an output directory, keeping the directory itself. Missing paths are a no-op."""

    def clean(self, path: str) -> None:
        if not os.path.isdir(path):
            logger.debug("Nothing to clean at %s", path)
            return
        removed = 0
        for name in sorted(os.listdir(path)):
            target = os.path.join(path, name)
            if os.path.isdir(target) and not os.path.islink(target):
                shutil.rmtree(target)
            else:
                os.remove(target)
            removed += 1
        logger.debug("Cleaned %d item(s) from %s", removed, path)


class RecordingCleaner:
    """Records cleanup requests without touching the filesystem (dry runs, tests)."""

    def __init__(self) -> None:
        self.requested: list[str] = []

    def clean(self, path: str) -> None:
        self.requested.append(path)
