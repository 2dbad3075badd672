#!/usr/bin/env python3
"""
Walk through the reconciliation decisions for a two-node cluster failover.

Nothing is started or queried: the probe results are written out by hand,
so this runs anywhere.

Run with: python failover_walkthrough.py
"""

import sys
import os

# Add parent to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from mdsha.config import ReplicaRole, ConnectionState, VersionSource
from mdsha.control.reconciler import reconcile
from mdsha.server.probe import ProbeResult


def print_banner(text: str, char: str = "="):
    """Print a banner."""
    print()
    print(char * 70)
    print(f"  {text}")
    print(char * 70)


def show(label: str, probe: ProbeResult, cluster_version: int):
    rec = reconcile(probe, cluster_version)
    score = "unchanged" if rec.score is None else rec.score
    publish = "-" if rec.publish_version is None else rec.publish_version
    print(f"  {label:<38} status={rec.status.name:<15} score={str(score):<9} "
          f"mode={rec.promote_mode.value:<8} publish={publish}")
    for message in rec.diagnostics:
        print(f"    ! {message}")


def main():
    print_banner("Steady state: node1 master, node2 shadow")
    show("node1 master/running v57", ProbeResult(ReplicaRole.MASTER, ConnectionState.RUNNING, 57), 50)
    show("node2 shadow/connected v57", ProbeResult(ReplicaRole.SHADOW, ConnectionState.CONNECTED, 57), 57)

    print_banner("node1 under heavy I/O")
    show("node1 master/busy", ProbeResult(ReplicaRole.MASTER, ConnectionState.BUSY), 57)

    print_banner("node1 crashes")
    show("node1 absent, lock present", ProbeResult.absent(lock_present=True), 57)
    show("node2 shadow/disconnected v57", ProbeResult(ReplicaRole.SHADOW, ConnectionState.DISCONNECTED, 57), 57)

    print_banner("A shadow that restarted from disk")
    show("node2 shadow/disconnected dump v57",
         ProbeResult(ReplicaRole.SHADOW, ConnectionState.DISCONNECTED, 57, VersionSource.DUMP), 57)

    print_banner("A shadow without metadata")
    show("node3 shadow/connected v0", ProbeResult(ReplicaRole.SHADOW, ConnectionState.CONNECTED, 0), 57)


if __name__ == "__main__":
    main()
