"""
Resource agent: lifecycle actions for one metadata server node.
"""

import time
import logging
from typing import Callable, Dict, Optional

from .cleanup import ErrorCleanupTask
from .cluster.attribute import MetadataVersionAttribute, PromotionScore
from .cluster.crm import CrmClient
from .config import AgentConfig, ConfigurationError, Personality, StatusCode, SCORE_ZERO
from .control.demotion import DemotionController
from .control.promotion import PromotionController
from .control.reconciler import Reconciliation, reconcile
from .control.stop import StopController
from .metadata import metadata_xml
from .server.admin import AdminClient, AdminCommand
from .server.probe import ProcessProbe
from .server.process import ServerProcess
from .storage.dump import MetadataDumpReader
from .storage.lock import AdvisoryLock
from .storage.rotation import SnapshotRotator

logger = logging.getLogger(__name__)


class ResourceAgent:
    """
    Lifecycle surface invoked by the cluster resource manager.

    Every action first reconciles the live server state against the cluster
    metadata version, then acts on that fresh result. Nothing is carried
    over between invocations, so any action can be re-run after an aborted
    attempt.

    Actions: start, stop, monitor, promote, demote, notify, validate-all,
    meta-data.
    """

    # Action name -> method
    ACTIONS: Dict[str, str] = {
        "start": "start",
        "stop": "stop",
        "monitor": "monitor",
        "promote": "promote",
        "demote": "demote",
        "notify": "notify",
        "validate-all": "validate",
        "meta-data": "describe",
    }

    def __init__(self, config: AgentConfig,
                 admin: Optional[AdminClient] = None,
                 process: Optional[ServerProcess] = None,
                 lock: Optional[AdvisoryLock] = None,
                 crm: Optional[CrmClient] = None,
                 dump_reader: Optional[MetadataDumpReader] = None,
                 rotator: Optional[SnapshotRotator] = None,
                 cleanup: Optional[ErrorCleanupTask] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 output: Callable[[str], None] = print):
        self.config = config
        self.output = output

        self.admin = admin or AdminClient(
            config.admin_binary, config.admin_host, config.admin_port,
            config.admin_password, timeout=config.command_timeout,
            query_timeout=config.probe_timeout,
        )
        self.process = process or ServerProcess(
            config.master_binary, config.master_cfg, config.personality_file,
        )
        self.lock = lock or AdvisoryLock(config.lock_file)
        self.crm = crm or CrmClient(
            config.resource_name, timeout=config.command_timeout,
            lookup_timeout=config.probe_timeout,
        )
        self.dump_reader = dump_reader or MetadataDumpReader(
            config.metarestore_binary, config.data_path, timeout=config.command_timeout,
        )
        self.rotator = rotator or SnapshotRotator(
            config.data_path, retention_minutes=config.retention_minutes,
        )
        self.cleanup = cleanup or ErrorCleanupTask(config.resource_name, config.cleanup_delays)

        self.attribute = MetadataVersionAttribute(self.crm, config.metadata_version_attribute)
        self.score = PromotionScore(self.crm)

        self.probe = ProcessProbe(
            self.admin, self.process, self.lock, self.dump_reader,
            retry_delay=config.probe_retry_delay, sleep=sleep,
        )
        self.probe.set_callbacks(is_local_leader=self.crm.is_local_leader)

        self.promotion = PromotionController(self.admin, self.process, self.lock, self.cleanup)
        self.demotion = DemotionController(
            self.admin, self.process, self.lock, stop_wait_timeout=config.stop_wait_timeout,
        )
        self.stopper = StopController(self.process, self.lock, self.rotator)

    def run(self, action: str) -> StatusCode:
        """Dispatch one lifecycle action."""
        method = self.ACTIONS.get(action)
        if method is None:
            logger.error("Unimplemented action: %s", action)
            return StatusCode.ERR_UNIMPLEMENTED
        handler: Callable[[], StatusCode] = getattr(self, method)

        if action != "meta-data":
            try:
                self.config.validate()
            except ConfigurationError as e:
                logger.error("Configuration error: %s", e)
                return StatusCode.ERR_CONFIGURED

        status = handler()
        logger.debug("%s finished with %s", action, status.name)
        return status

    def reconcile(self) -> Reconciliation:
        """Probe the server and reconcile it with the cluster metadata version."""
        probe = self.probe.probe()
        rec = reconcile(probe, self.attribute.get())
        for message in rec.diagnostics:
            logger.error(message)
        return rec

    def monitor(self) -> StatusCode:
        rec = self.reconcile()
        if rec.score is not None:
            self.score.set(rec.score)
        if rec.publish_version is not None:
            self.attribute.set(rec.publish_version, current=rec.cluster_version)
        return rec.status

    def start(self) -> StatusCode:
        rec = self.reconcile()
        if rec.is_master or rec.is_shadow:
            logger.info("Metadata server already running")
            return StatusCode.SUCCESS
        if rec.status != StatusCode.NOT_RUNNING:
            logger.error("Not starting metadata server in state %s", rec.status.name)
            return StatusCode.ERR_GENERIC

        if not self.process.start(Personality.SHADOW).ok:
            return StatusCode.ERR_GENERIC
        return StatusCode.SUCCESS

    def stop(self) -> StatusCode:
        status = self.stopper.stop(self.reconcile())
        if status == StatusCode.SUCCESS:
            self.score.set(SCORE_ZERO)
        return status

    def promote(self) -> StatusCode:
        return self.promotion.promote(self.reconcile())

    def demote(self) -> StatusCode:
        status = self.demotion.demote(self.reconcile())
        if status == StatusCode.SUCCESS:
            self.score.set(SCORE_ZERO)
        return status

    def notify(self) -> StatusCode:
        """On post-promote, make a running shadow reattach to the new master."""
        if (self.config.notify_type, self.config.notify_operation) != ("post", "promote"):
            return StatusCode.SUCCESS

        rec = self.reconcile()
        if rec.is_shadow:
            result = self.admin.command(AdminCommand.RELOAD)
            if not result.ok:
                logger.error("Shadow could not reload after promotion elsewhere: %s", result.output)
        return StatusCode.SUCCESS

    def validate(self) -> StatusCode:
        # Validation already ran in run()
        return StatusCode.SUCCESS

    def describe(self) -> StatusCode:
        self.output(metadata_xml(self.config))
        return StatusCode.SUCCESS


def create_agent(environ=None, **kwargs) -> ResourceAgent:
    """Create an agent configured from the environment."""
    return ResourceAgent(AgentConfig.from_environ(environ), **kwargs)
