"""On-disk state: lock file, metadata dump, snapshot generations."""

from .lock import AdvisoryLock
from .dump import MetadataDumpReader
from .rotation import SnapshotRotator, RotationResult

__all__ = ['AdvisoryLock', 'MetadataDumpReader', 'SnapshotRotator', 'RotationResult']
