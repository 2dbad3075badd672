"""
Client for the metadata server's admin interface.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from ..config import ReplicaRole, ConnectionState
from ..shell import CommandResult, run_command

logger = logging.getLogger(__name__)


class AdminCommand(Enum):
    """Authenticated control commands understood by the admin tool."""
    PROMOTE = "promote-shadow"
    STOP_WITHOUT_SAVING = "stop-master-without-saving-metadata"
    RELOAD = "reload-config"


@dataclass
class AdminStatus:
    """Parsed answer of a status query."""
    role: ReplicaRole
    connection: ConnectionState
    version: int


def parse_status(output: str) -> Optional[AdminStatus]:
    """
    Parse ``personality state version`` as printed by the porcelain status query.

    Returns:
        AdminStatus, or None when the output is not a well-formed status line
    """
    fields = output.split()
    if len(fields) < 3:
        return None
    try:
        return AdminStatus(
            role=ReplicaRole(fields[0].lower()),
            connection=ConnectionState(fields[1].lower()),
            version=int(fields[2]),
        )
    except ValueError:
        return None


class AdminClient:
    """
    Admin tool wrapper for the local metadata server.

    Status queries are unauthenticated. Control commands authenticate with
    the admin password, written to the tool's stdin so it never shows up in
    the process table.
    """

    def __init__(self, binary: str = "lizardfs-admin", host: str = "localhost",
                 port: int = 9421, password: Optional[str] = None,
                 timeout: float = 60.0, query_timeout: float = 3.0):
        self.binary = binary
        self.host = host
        self.port = port
        self.password = password
        self.timeout = timeout
        self.query_timeout = query_timeout

    def query(self) -> Tuple[Optional[AdminStatus], str]:
        """
        Ask the server for its role, connection state and metadata version.

        Returns:
            Tuple of (status, error). Exactly one of them is meaningful:
            status is None when the query failed and error holds the raw text.
        """
        result = run_command(
            [self.binary, "metadataserver-status", "--porcelain", self.host, str(self.port)],
            timeout=self.query_timeout,
        )
        if not result.ok:
            return None, result.output or f"{self.binary} exited with {result.returncode}"

        status = parse_status(result.stdout)
        if status is None:
            return None, f"Unexpected status output: {result.output!r}"
        return status, ""

    def command(self, command: AdminCommand) -> CommandResult:
        """Run an authenticated control command against the local server."""
        logger.info("Sending %s to %s:%s", command.value, self.host, self.port)
        result = run_command(
            [self.binary, command.value, self.host, str(self.port)],
            input=f"{self.password or ''}\n",
            timeout=self.timeout,
        )
        if not result.ok:
            logger.error("%s failed: %s", command.value, result.output)
        return result
