"""
Probe of the local metadata server's live state.
"""

import time
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ..config import ReplicaRole, ConnectionState, VersionSource
from ..storage.dump import MetadataDumpReader
from ..storage.lock import AdvisoryLock
from .admin import AdminClient, AdminStatus
from .faults import FaultKind, classify_fault
from .process import ServerProcess

logger = logging.getLogger(__name__)


@dataclass
class ProbeResult:
    """What the probe learned about the local server."""
    role: ReplicaRole
    connection: ConnectionState
    local_version: int = 0
    version_source: VersionSource = VersionSource.LIVE
    process_running: bool = True
    lock_present: bool = False
    raw_error: str = ""

    @classmethod
    def absent(cls, lock_present: bool) -> 'ProbeResult':
        """No server process exists."""
        return cls(
            role=ReplicaRole.UNKNOWN,
            connection=ConnectionState.UNKNOWN,
            process_running=False,
            lock_present=lock_present,
        )

    @classmethod
    def unknown(cls, raw_error: str) -> 'ProbeResult':
        """An unclassified fault, kept verbatim."""
        return cls(
            role=ReplicaRole.UNKNOWN,
            connection=ConnectionState.UNKNOWN,
            raw_error=raw_error,
        )


class ProcessProbe:
    """
    Queries the local server and resolves faults into a state.

    Features:
    - One retry after a fixed delay on transient faults
    - Busy-master / syncing-shadow reporting when a transient fault persists
    - Start/stop transition detection from the process table
    - Offline dump version for a disconnected, empty shadow
    """

    def __init__(self, admin: AdminClient, process: ServerProcess, lock: AdvisoryLock,
                 dump_reader: Optional[MetadataDumpReader] = None,
                 retry_delay: float = 3.0,
                 sleep: Callable[[float], None] = time.sleep):
        self.admin = admin
        self.process = process
        self.lock = lock
        self.dump_reader = dump_reader
        self.retry_delay = retry_delay
        self._sleep = sleep

        self._is_local_leader: Optional[Callable[[], bool]] = None

    def set_callbacks(self, is_local_leader=None):
        """Set the leader-identity lookup used when a fault persists."""
        self._is_local_leader = is_local_leader

    def probe(self) -> ProbeResult:
        """Run the probe. Issues at most two admin queries."""
        status, error = self.admin.query()
        if status is not None:
            return self._from_status(status)

        fault = classify_fault(error)

        if not self.process.is_running():
            return ProbeResult.absent(self.lock.exists())

        if fault.transient:
            logger.warning("Admin query failed (%s), retrying in %.1fs: %s",
                           fault.value, self.retry_delay, error)
            self._sleep(self.retry_delay)
            status, error = self.admin.query()
            if status is not None:
                return self._from_status(status)

            fault = classify_fault(error)
            if fault.transient:
                return self._degraded(error)
            if not self.process.is_running():
                return ProbeResult.absent(self.lock.exists())

        if fault == FaultKind.NOT_CONNECTED:
            for action, connection in (("stop", ConnectionState.STOPPING),
                                       ("start", ConnectionState.STARTING)):
                personality = self.process.transition_in_progress(action)
                if personality is not None:
                    logger.info("Server not connected, %s in progress as %s",
                                action, personality.value)
                    return ProbeResult(
                        role=ReplicaRole(personality.value),
                        connection=connection,
                        raw_error=error,
                    )

        logger.error("Unclassified admin query failure: %s", error)
        return ProbeResult.unknown(error)

    def _degraded(self, error: str) -> ProbeResult:
        """State to report when the server stays unreachable but alive."""
        if self._is_local_leader is not None and self._is_local_leader():
            logger.warning("Master not answering, assuming busy: %s", error)
            return ProbeResult(ReplicaRole.MASTER, ConnectionState.BUSY,
                               raw_error=error)
        logger.warning("Shadow not answering, assuming syncing: %s", error)
        return ProbeResult(ReplicaRole.SHADOW, ConnectionState.SYNCING,
                           raw_error=error)

    def _from_status(self, status: AdminStatus) -> ProbeResult:
        result = ProbeResult(
            role=status.role,
            connection=status.connection,
            local_version=status.version,
            lock_present=self.lock.exists(),
        )
        if (status.role == ReplicaRole.SHADOW
                and status.connection == ConnectionState.DISCONNECTED
                and status.version == 0
                and self.dump_reader is not None):
            dumped = self.dump_reader.read_version()
            if dumped > 0:
                result.local_version = dumped
                result.version_source = VersionSource.DUMP
        return result
