"""
Promotion of a shadow to master.
"""

import logging
from typing import Optional

from ..cleanup import ErrorCleanupTask
from ..config import Personality, PromoteMode, StatusCode
from ..server.admin import AdminClient, AdminCommand
from ..server.process import ServerProcess
from ..storage.lock import AdvisoryLock
from .reconciler import Reconciliation

logger = logging.getLogger(__name__)


def prevent_diagnostic(rec: Reconciliation) -> str:
    """Operator instructions for a shadow that must not be promoted."""
    return (
        f"Refusing to promote: local metadata version is {rec.probe.local_version}, "
        f"cluster metadata version is {rec.cluster_version}. Promoting would lose metadata. "
        "To recover: (1) compare the metadata versions of all replicas; "
        "(2) on the most advanced node, restore the metadata from its change logs "
        "(mfsmetarestore -a); "
        "(3) reset the cluster metadata version attribute to the restored version "
        "(crm_attribute --type crm_config --name <attribute> --update <version>); "
        "(4) clear the resource's error state (crm_resource --cleanup)."
    )


class PromotionController:
    """
    Executes the promotion strategy chosen by the preceding reconciliation.

    Strategies:
    - RELOAD: the running shadow takes over in place
    - RESTART: stop as shadow, release the lock, start as master
    - PREVENT: refuse with a permanent error
    """

    def __init__(self, admin: AdminClient, process: ServerProcess, lock: AdvisoryLock,
                 cleanup: Optional[ErrorCleanupTask] = None):
        self.admin = admin
        self.process = process
        self.lock = lock
        self.cleanup = cleanup

    def promote(self, rec: Reconciliation) -> StatusCode:
        if rec.is_master:
            logger.info("Already running as master")
            return StatusCode.SUCCESS

        if not rec.is_shadow:
            logger.error("Cannot promote from status %s", rec.status.name)
            if rec.status == StatusCode.FAILED_MASTER:
                return StatusCode.FAILED_MASTER
            return StatusCode.ERR_GENERIC

        mode = rec.promote_mode
        if mode == PromoteMode.PREVENT:
            logger.error(prevent_diagnostic(rec))
            return StatusCode.ERR_PERM

        if mode == PromoteMode.RELOAD:
            status = self._promote_in_place()
        else:
            status = self._promote_by_restart()

        if status == StatusCode.SUCCESS:
            logger.info("Promoted to master (%s)", mode.value)
            if self.cleanup is not None:
                self.cleanup.schedule()
        return status

    def _promote_in_place(self) -> StatusCode:
        if not self.admin.command(AdminCommand.PROMOTE).ok:
            return StatusCode.FAILED_MASTER
        return StatusCode.SUCCESS

    def _promote_by_restart(self) -> StatusCode:
        if not self.process.stop(Personality.SHADOW).ok:
            return StatusCode.FAILED_MASTER
        self.lock.release()
        if not self.process.start(Personality.MASTER).ok:
            return StatusCode.FAILED_MASTER
        return StatusCode.SUCCESS
