"""
Lifecycle and process-table inspection of the local metadata server.
"""

import os
import logging
from typing import List, Optional

import psutil

from ..config import Personality
from ..shell import CommandResult, run_command

logger = logging.getLogger(__name__)


class ServerProcess:
    """
    Start, stop and kill the metadata server, and inspect the process table.

    Every invocation runs in cluster-managed mode with an explicit initial
    personality; the server never picks its own.
    """

    def __init__(self, binary: str = "mfsmaster", config_file: str = "/etc/mfs/mfsmaster.cfg",
                 personality_file: Optional[str] = None, timeout: float = 600.0):
        self.binary = binary
        self.config_file = config_file
        self.personality_file = personality_file
        self.timeout = timeout
        self._name = os.path.basename(binary)

    def _command(self, personality: Personality, action: str) -> List[str]:
        return [
            self.binary,
            "-c", self.config_file,
            "-o", "ha-cluster-managed",
            "-o", f"initial-personality={personality.value}",
            action,
        ]

    def _processes(self) -> List[psutil.Process]:
        """All processes running the server binary, except ourselves."""
        found = []
        own_pid = os.getpid()
        for proc in psutil.process_iter(["pid", "name", "cmdline"]):
            cmdline = proc.info.get("cmdline") or []
            if proc.info["pid"] == own_pid or not cmdline:
                continue
            if os.path.basename(cmdline[0]) == self._name:
                found.append(proc)
        return found

    def is_running(self) -> bool:
        """Check if any instance of the server exists."""
        return bool(self._processes())

    def transition_in_progress(self, action: str) -> Optional[Personality]:
        """
        Look for a running ``start`` or ``stop`` invocation of the server.

        Returns:
            Personality of the invocation found, or None
        """
        for proc in self._processes():
            cmdline = proc.info.get("cmdline") or []
            if action not in cmdline[1:]:
                continue
            for personality in Personality:
                if f"initial-personality={personality.value}" in cmdline:
                    return personality
            return Personality.SHADOW
        return None

    def _write_personality(self, personality: Personality):
        if not self.personality_file:
            return
        with open(self.personality_file, "w") as f:
            f.write(f"{personality.value}\n")

    def start(self, personality: Personality) -> CommandResult:
        """Start the server with the given personality."""
        logger.info("Starting metadata server as %s", personality.value)
        self._write_personality(personality)
        result = run_command(self._command(personality, "start"), timeout=self.timeout)
        if not result.ok:
            logger.error("Start as %s failed: %s", personality.value, result.output)
        return result

    def stop(self, personality: Personality) -> CommandResult:
        """Stop the server gracefully, saving metadata."""
        logger.info("Stopping metadata server (%s)", personality.value)
        result = run_command(self._command(personality, "stop"), timeout=self.timeout)
        if not result.ok:
            logger.error("Stop failed: %s", result.output)
        return result

    def kill(self, personality: Personality) -> CommandResult:
        """Kill the server without a graceful shutdown."""
        logger.warning("Killing metadata server (%s)", personality.value)
        result = run_command(self._command(personality, "kill"), timeout=self.timeout)
        if not result.ok:
            logger.error("Kill failed: %s", result.output)
        return result

    def wait_stopped(self, timeout: float) -> bool:
        """Wait until no server process is left. Returns True if none remains."""
        _, alive = psutil.wait_procs(self._processes(), timeout=timeout)
        return not alive
