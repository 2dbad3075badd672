"""
Metadata version of the offline dump on disk.
"""

import logging

from ..shell import run_command

logger = logging.getLogger(__name__)


class MetadataDumpReader:
    """Reads the metadata version stored in the data directory without a running server."""

    def __init__(self, binary: str = "mfsmetarestore", data_path: str = "/var/lib/mfs",
                 timeout: float = 60.0):
        self.binary = binary
        self.data_path = data_path
        self.timeout = timeout

    def read_version(self) -> int:
        """Return the dump's metadata version, 0 if there is none or it is unreadable."""
        result = run_command([self.binary, "-g", "-d", self.data_path], timeout=self.timeout)
        if not result.ok:
            logger.warning("Cannot read metadata version from %s: %s", self.data_path, result.output)
            return 0
        try:
            return max(int(result.stdout.strip().split()[-1]), 0)
        except (ValueError, IndexError):
            logger.warning("Unexpected %s output: %r", self.binary, result.output)
            return 0
