"""
Advisory lock file left by a running metadata server.
"""

import os
import logging

logger = logging.getLogger(__name__)


class AdvisoryLock:
    """
    The server's lock file.

    Present while the server runs. Present while the server is absent
    means it crashed rather than stopped cleanly.
    """

    def __init__(self, path: str):
        self.path = path

    def exists(self) -> bool:
        return os.path.exists(self.path)

    def release(self):
        """Remove the lock file. Safe to call when it is already gone."""
        try:
            os.remove(self.path)
            logger.info("Released lock %s", self.path)
        except FileNotFoundError:
            pass
