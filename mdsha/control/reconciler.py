"""
Reconciliation of the probed server state against the cluster's metadata version.

``reconcile`` is a pure function: it performs no I/O and returns every side
effect (score, attribute write, diagnostics) as data for the caller to apply.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from ..config import (
    ReplicaRole, ConnectionState, PromoteMode, StatusCode, VersionSource,
    SCORE_TOP, SCORE_LATEST, SCORE_MID, SCORE_ZERO,
)
from ..server.probe import ProbeResult

CRASH_DIAGNOSTIC = (
    "Metadata server is not running but its lock file exists: it crashed. "
    "Manual intervention is required: check the server log, verify the metadata "
    "on this node against the other replicas, remove the lock file and clear the "
    "resource's error state."
)


@dataclass
class Reconciliation:
    """Result of one reconciliation pass. Never reused across invocations."""
    status: StatusCode
    probe: ProbeResult
    score: Optional[int] = None              # None = leave unchanged
    publish_version: Optional[int] = None    # Cluster attribute write, if any
    promote_mode: PromoteMode = PromoteMode.PREVENT
    cluster_version: int = 0
    diagnostics: List[str] = field(default_factory=list)

    @property
    def is_master(self) -> bool:
        return self.status == StatusCode.RUNNING_MASTER

    @property
    def is_shadow(self) -> bool:
        return self.status == StatusCode.SUCCESS


def reconcile(probe: ProbeResult, cluster_version: int) -> Reconciliation:
    """
    Map a probe result and the cluster metadata version to a status, score and promote mode.

    Args:
        probe: Live state of the local server
        cluster_version: Shared metadata version marker (0 when unset)
    """
    if not probe.process_running:
        if probe.lock_present:
            return Reconciliation(
                status=StatusCode.FAILED_MASTER,
                probe=probe,
                cluster_version=cluster_version,
                diagnostics=[CRASH_DIAGNOSTIC],
            )
        return Reconciliation(StatusCode.NOT_RUNNING, probe, cluster_version=cluster_version)

    if probe.role == ReplicaRole.MASTER:
        return _reconcile_master(probe, cluster_version)
    if probe.role == ReplicaRole.SHADOW:
        return _reconcile_shadow(probe, cluster_version)

    return Reconciliation(
        status=StatusCode.ERR_GENERIC,
        probe=probe,
        cluster_version=cluster_version,
        diagnostics=[f"Cannot determine metadata server state: {probe.raw_error or 'unknown'}"],
    )


def _reconcile_master(probe: ProbeResult, cluster_version: int) -> Reconciliation:
    result = Reconciliation(StatusCode.RUNNING_MASTER, probe, cluster_version=cluster_version)

    if probe.connection == ConnectionState.RUNNING:
        result.score = SCORE_TOP
        # A master reporting no metadata must not reset the marker
        if probe.local_version > 0 and probe.local_version != cluster_version:
            result.publish_version = probe.local_version
    elif probe.connection in (ConnectionState.STOPPING, ConnectionState.STARTING):
        result.score = SCORE_ZERO
    # Busy and any other state: keep the score, a loaded master must not be demoted

    return result


def _reconcile_shadow(probe: ProbeResult, cluster_version: int) -> Reconciliation:
    result = Reconciliation(StatusCode.SUCCESS, probe, cluster_version=cluster_version)
    local = probe.local_version

    if probe.connection in (ConnectionState.STOPPING, ConnectionState.STARTING,
                            ConnectionState.SYNCING):
        result.score = SCORE_ZERO
        return result

    if probe.connection not in (ConnectionState.CONNECTED, ConnectionState.DISCONNECTED):
        return result

    if local <= 0:
        result.score = SCORE_ZERO
        result.promote_mode = PromoteMode.PREVENT
    elif local >= cluster_version:
        result.score = SCORE_LATEST
        if probe.version_source == VersionSource.DUMP:
            result.promote_mode = PromoteMode.RESTART
        else:
            result.promote_mode = PromoteMode.RELOAD
    else:
        result.score = SCORE_MID
        result.promote_mode = PromoteMode.RELOAD

    return result
