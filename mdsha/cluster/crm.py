"""
Pacemaker command-line tools used by the agent.
"""

import re
import logging
from typing import Optional

from ..shell import run_command

logger = logging.getLogger(__name__)

_DC_PATTERN = re.compile(r"Designated Controller is:\s*(\S+)")
_LOCATE_PATTERN = re.compile(r"is running on:\s*(\S+)\s+(?:Master|Promoted)\b", re.IGNORECASE)


class CrmClient:
    """
    Thin wrapper around the cluster manager's tools.

    Features:
    - Cluster-wide ("forever") attributes
    - This node's promotion score
    - Current leader lookup
    - Transition-in-progress check
    - Resource error cleanup
    """

    def __init__(self, resource_name: str, timeout: float = 60.0, lookup_timeout: float = 3.0):
        self.resource_name = resource_name
        self.timeout = timeout
        # Leader lookup runs inside the probe and must fit its budget
        self.lookup_timeout = lookup_timeout

    def get_attribute(self, name: str, default: int = 0) -> int:
        """Read an integer cluster attribute, default when unset or unreadable."""
        result = run_command(
            ["crm_attribute", "--type", "crm_config", "--name", name,
             "--query", "--quiet", "--default", str(default)],
            timeout=self.timeout,
        )
        if not result.ok:
            logger.warning("Cannot read cluster attribute %s: %s", name, result.output)
            return default
        try:
            return int(result.stdout.strip())
        except ValueError:
            logger.warning("Cluster attribute %s is not a number: %r", name, result.stdout)
            return default

    def set_attribute(self, name: str, value: int) -> bool:
        result = run_command(
            ["crm_attribute", "--type", "crm_config", "--name", name, "--update", str(value)],
            timeout=self.timeout,
        )
        if not result.ok:
            logger.error("Cannot set cluster attribute %s=%s: %s", name, value, result.output)
        return result.ok

    def get_score(self) -> Optional[int]:
        """This node's promotion score, None when unset."""
        result = run_command(["crm_master", "-l", "forever", "-G", "-q"], timeout=self.timeout)
        if not result.ok:
            return None
        try:
            return int(result.stdout.strip())
        except ValueError:
            return None

    def set_score(self, score: int) -> bool:
        result = run_command(["crm_master", "-l", "forever", "-v", str(score)], timeout=self.timeout)
        if not result.ok:
            logger.error("Cannot set promotion score %s: %s", score, result.output)
        return result.ok

    def local_node(self) -> Optional[str]:
        result = run_command(["crm_node", "-n"], timeout=self.lookup_timeout)
        if not result.ok:
            return None
        return result.stdout.strip() or None

    def leader_node(self) -> Optional[str]:
        """
        Node the cluster currently runs the resource as master on.

        Older Pacemaker prints the role as ``Master``, 2.1 and later as ``Promoted``.
        """
        result = run_command(
            ["crm_resource", "--resource", self.resource_name, "--locate"],
            timeout=self.lookup_timeout,
        )
        if not result.ok:
            return None
        match = _LOCATE_PATTERN.search(result.output)
        return match.group(1) if match else None

    def is_local_leader(self) -> bool:
        leader = self.leader_node()
        return leader is not None and leader == self.local_node()

    def transition_pending(self) -> bool:
        """
        Check whether the cluster is in the middle of a transition.

        The designated controller reports S_IDLE when nothing is pending.
        An unreachable controller counts as pending.
        """
        lookup = run_command(["crmadmin", "--dc_lookup"], timeout=self.timeout)
        match = _DC_PATTERN.search(lookup.output)
        if not lookup.ok or not match:
            return True
        status = run_command(["crmadmin", "--status", match.group(1)], timeout=self.timeout)
        return "S_IDLE" not in status.output

    def cleanup_errors(self) -> bool:
        """Clear failure records of the resource so other nodes see the new state."""
        result = run_command(
            ["crm_resource", "--cleanup", "--resource", self.resource_name],
            timeout=self.timeout,
        )
        if not result.ok:
            logger.warning("Resource cleanup failed: %s", result.output)
        return result.ok
