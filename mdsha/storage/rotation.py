"""
Rotation of on-disk metadata snapshot generations.
"""

import os
import time
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

ARCHIVE_MARKER = ".archive-"
TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


@dataclass
class RotationResult:
    """What a rotation pass did."""
    archived: Optional[str] = None
    moved: List[Tuple[str, str]] = field(default_factory=list)
    pruned: List[str] = field(default_factory=list)


class SnapshotRotator:
    """
    Snapshot generation manager for a stopped shadow.

    Layout inside the data directory:
    - ``metadata.mfs``                      current snapshot
    - ``metadata.mfs.1`` .. ``.3``          numbered generations, 1 is newest
    - ``metadata.mfs.archive-<timestamp>``  archived generations (UTC)

    Rotating moves the current snapshot out of the way, so a stale shadow
    can not be restarted as master from it without an explicit restore.
    """

    GENERATIONS = 3

    def __init__(self, data_dir: str, base_name: str = "metadata.mfs",
                 retention_minutes: int = 7 * 24 * 60,
                 clock: Callable[[], float] = time.time):
        self.data_dir = data_dir
        self.base_name = base_name
        self.retention_minutes = retention_minutes
        self._clock = clock

    def generation_path(self, generation: int) -> str:
        """Path of a generation, 0 being the current snapshot."""
        name = self.base_name if generation == 0 else f"{self.base_name}.{generation}"
        return os.path.join(self.data_dir, name)

    def _new_archive_path(self) -> str:
        stamp = datetime.fromtimestamp(self._clock(), timezone.utc).strftime(TIMESTAMP_FORMAT)
        path = os.path.join(self.data_dir, f"{self.base_name}{ARCHIVE_MARKER}{stamp}")
        candidate, n = path, 1
        while os.path.exists(candidate):
            candidate = f"{path}.{n}"
            n += 1
        return candidate

    def list_archives(self) -> List[Tuple[float, str]]:
        """
        Find archived generations.

        Returns:
            List of (archive timestamp, path), oldest first
        """
        prefix = f"{self.base_name}{ARCHIVE_MARKER}"
        archives = []
        for name in os.listdir(self.data_dir):
            if not name.startswith(prefix):
                continue
            stamp = name[len(prefix):len(prefix) + len("YYYYmmddHHMMSS")]
            try:
                parsed = datetime.strptime(stamp, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
            except ValueError:
                logger.warning("Ignoring archive with unreadable timestamp: %s", name)
                continue
            archives.append((parsed.timestamp(), os.path.join(self.data_dir, name)))
        archives.sort()
        return archives

    def rotate(self) -> RotationResult:
        """
        Shift every generation one step older, then prune old archives.

        Order: oldest numbered generation to a new archive, then
        2 -> 3, 1 -> 2 and current -> 1. Missing generations are skipped.
        """
        result = RotationResult()

        oldest = self.generation_path(self.GENERATIONS)
        if os.path.exists(oldest):
            archive = self._new_archive_path()
            os.rename(oldest, archive)
            result.archived = archive
            logger.info("Archived %s as %s", oldest, archive)

        for generation in range(self.GENERATIONS - 1, -1, -1):
            src = self.generation_path(generation)
            dst = self.generation_path(generation + 1)
            if os.path.exists(src):
                os.rename(src, dst)
                result.moved.append((src, dst))

        if result.moved:
            logger.info("Rotated metadata generations in %s", self.data_dir)

        result.pruned = self.prune(keep=result.archived)
        return result

    def prune(self, keep: Optional[str] = None) -> List[str]:
        """
        Delete archives older than the retention window. Returns deleted paths.

        Archive names carry whole seconds, so with a zero window a fresh archive
        would look expired; pass it as keep to spare it.
        """
        cutoff = self._clock() - self.retention_minutes * 60
        removed = []
        for stamp, path in self.list_archives():
            if stamp >= cutoff or path == keep:
                continue
            try:
                os.remove(path)
            except FileNotFoundError:
                continue
            removed.append(path)
            logger.info("Removed old metadata archive %s", path)
        return removed
