"""
Stopping the metadata server.
"""

import logging
from typing import Optional

from ..config import Personality, StatusCode
from ..server.process import ServerProcess
from ..storage.lock import AdvisoryLock
from ..storage.rotation import SnapshotRotator
from .reconciler import Reconciliation

logger = logging.getLogger(__name__)


class StopController:
    """
    Stops the server and, for a shadow holding metadata, rotates its snapshots.

    A master's snapshot is left in place: it may be the basis of a later
    restart. A stopped shadow's snapshot is moved aside so the node can not
    silently come back as master with stale metadata.
    """

    def __init__(self, process: ServerProcess, lock: AdvisoryLock,
                 rotator: Optional[SnapshotRotator] = None):
        self.process = process
        self.lock = lock
        self.rotator = rotator

    def stop(self, rec: Reconciliation) -> StatusCode:
        if not rec.probe.process_running:
            logger.info("Metadata server already stopped")
            self.lock.release()
            return StatusCode.SUCCESS

        personality = Personality.MASTER if rec.is_master else Personality.SHADOW
        if not self.process.stop(personality).ok:
            logger.warning("Graceful stop failed, killing the metadata server")
            if not self.process.kill(personality).ok:
                return StatusCode.ERR_GENERIC

        self.lock.release()

        if rec.is_shadow and rec.probe.local_version > 0 and self.rotator is not None:
            try:
                self.rotator.rotate()
            except OSError as e:
                logger.error("Metadata rotation failed in %s: %s", self.rotator.data_dir, e)
                return StatusCode.ERR_GENERIC

        logger.info("Metadata server stopped")
        return StatusCode.SUCCESS
