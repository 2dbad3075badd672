"""
Post-promotion error cleanup.

After a promotion, stale failure records of the resource can keep the other
shadows from following the new master. The cleanup runs in a detached worker
process so the promote action returns without waiting for it. Clearing
errors is idempotent, so a worker racing a later invocation is harmless.
"""

import sys
import time
import logging
import logging.handlers
import argparse
import subprocess
from typing import Callable, List, Optional, Sequence

from .cluster.crm import CrmClient

logger = logging.getLogger(__name__)

SYSLOG_SOCKET = "/dev/log"


def _spawn_detached(args: List[str]):
    subprocess.Popen(
        args,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        close_fds=True,
        start_new_session=True,
    )


class ErrorCleanupTask:
    """Best-effort, fire-and-forget scheduling of resource error cleanup."""

    def __init__(self, resource_name: str, delays: Sequence[float] = (5.0, 30.0),
                 spawn: Callable[[List[str]], None] = _spawn_detached):
        self.resource_name = resource_name
        self.delays = tuple(delays)
        self._spawn = spawn

    def command(self) -> List[str]:
        args = [sys.executable, "-m", "mdsha.cleanup", "--resource", self.resource_name]
        for delay in self.delays:
            args.extend(["--delay", str(delay)])
        return args

    def schedule(self) -> bool:
        """Start the worker. Returns False if it could not be started; never raises."""
        try:
            self._spawn(self.command())
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning("Could not schedule error cleanup for %s: %s", self.resource_name, e)
            return False
        logger.info("Scheduled error cleanup for %s after %s seconds",
                    self.resource_name, ", ".join(f"{d:g}" for d in self.delays))
        return True


def run_cleanup(crm: CrmClient, delays: Sequence[float],
                sleep: Callable[[float], None] = time.sleep) -> int:
    """Wait and clear errors once per delay. Returns the number of successful cleanups."""
    cleaned = 0
    for attempt, delay in enumerate(delays, 1):
        sleep(delay)
        if crm.cleanup_errors():
            cleaned += 1
        else:
            logger.warning("Error cleanup attempt %d of %d failed", attempt, len(delays))
    return cleaned


def worker_log_handler(address: str = SYSLOG_SOCKET) -> logging.Handler:
    """
    Handler for the detached worker.

    The worker has no terminal and outlives the agent's stderr, so it logs
    to the local syslog socket. Stderr is used only when syslog is unreachable.
    """
    try:
        handler = logging.handlers.SysLogHandler(
            address=address, facility=logging.handlers.SysLogHandler.LOG_DAEMON,
        )
        handler.setFormatter(logging.Formatter("mdsha-cleanup[%(process)d]: %(levelname)s: %(message)s"))
    except OSError:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s mdsha-cleanup[%(process)d] %(levelname)s: %(message)s"
        ))
    return handler


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Clear resource errors after a promotion")
    parser.add_argument("--resource", required=True, help="Resource name")
    parser.add_argument("--delay", type=float, action="append", default=[],
                        help="Seconds to wait before a cleanup (repeatable)")
    args = parser.parse_args(argv)
    delays = args.delay or [5.0, 30.0]

    package_logger = logging.getLogger("mdsha")
    package_logger.setLevel(logging.INFO)
    package_logger.addHandler(worker_log_handler())

    cleaned = run_cleanup(CrmClient(args.resource), delays)
    logger.info("Error cleanup for %s done, %d of %d succeeded",
                args.resource, cleaned, len(delays))
    return 0


if __name__ == "__main__":
    sys.exit(main())
