"""
Demotion of a running master.
"""

import logging

from ..config import StatusCode
from ..server.admin import AdminClient, AdminCommand
from ..server.process import ServerProcess
from ..storage.lock import AdvisoryLock
from .reconciler import Reconciliation

logger = logging.getLogger(__name__)


class DemotionController:
    """
    Halts a master quickly and releases its lock.

    The master is quick-stopped without saving metadata. Demotion leaves the
    server stopped; starting it again as a shadow is a separate start action.
    """

    def __init__(self, admin: AdminClient, process: ServerProcess, lock: AdvisoryLock,
                 stop_wait_timeout: float = 60.0):
        self.admin = admin
        self.process = process
        self.lock = lock
        self.stop_wait_timeout = stop_wait_timeout

    def demote(self, rec: Reconciliation) -> StatusCode:
        if rec.is_shadow:
            logger.info("Not a master, nothing to demote")
            return StatusCode.SUCCESS

        if not rec.is_master:
            logger.error("Cannot demote from status %s", rec.status.name)
            return StatusCode.ERR_GENERIC

        if not self.admin.command(AdminCommand.STOP_WITHOUT_SAVING).ok:
            return StatusCode.ERR_GENERIC

        if not self.process.wait_stopped(self.stop_wait_timeout):
            logger.error("Master still running %.0fs after quick-stop", self.stop_wait_timeout)
            return StatusCode.ERR_GENERIC

        self.lock.release()
        logger.info("Master demoted")
        return StatusCode.SUCCESS
