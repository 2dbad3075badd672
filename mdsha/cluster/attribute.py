"""
Cluster-shared metadata version marker and this node's promotion score.
"""

import logging
from typing import Optional

from .crm import CrmClient

logger = logging.getLogger(__name__)


class MetadataVersionAttribute:
    """
    The last known-good metadata version, shared by all nodes.

    Stored by the cluster manager with a "forever" lifetime and read as 0
    when unset. Writes are skipped while a cluster transition is pending so
    an in-flight election never sees the value change under it.
    """

    def __init__(self, crm: CrmClient, name: str = "mds-metadata-version"):
        self.crm = crm
        self.name = name

    def get(self) -> int:
        return self.crm.get_attribute(self.name, default=0)

    def set(self, version: int, current: Optional[int] = None) -> bool:
        """
        Publish a metadata version.

        Args:
            version: New value
            current: Value already read during this invocation, if any

        Returns:
            True if the attribute was written
        """
        if current is None:
            current = self.get()
        if current == version:
            return False
        if self.crm.transition_pending():
            logger.info("Cluster transition pending, not publishing metadata version %s", version)
            return False
        if self.crm.set_attribute(self.name, version):
            logger.info("Published metadata version %s (was %s)", version, current)
            return True
        return False


class PromotionScore:
    """This node's weight in the cluster's choice of master."""

    def __init__(self, crm: CrmClient):
        self.crm = crm

    def set(self, score: int) -> bool:
        """Update the score. Returns True if it changed."""
        if self.crm.get_score() == score:
            return False
        if self.crm.set_score(score):
            logger.debug("Promotion score set to %s", score)
            return True
        return False
