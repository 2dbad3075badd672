"""
OCF meta-data describing the agent's parameters and actions.
"""

from typing import List, Tuple

from .config import AgentConfig, DEFAULT_MONITOR_TIMEOUT

# (name, short description, long description, default)
PARAMETERS: List[Tuple[str, str, str, str]] = [
    ("master_cfg", "Master config file",
     "Metadata server config file. MASTER_HOST, ADMIN_PASSWORD, MATOCL_LISTEN_PORT "
     "and DATA_PATH are read from it.", AgentConfig.master_cfg),
    ("exports_cfg", "Exports config file",
     "Exports file the metadata server requires.", AgentConfig.exports_cfg),
    ("admin_password", "Admin password",
     "Overrides ADMIN_PASSWORD from the master config file.", ""),
    ("master_binary", "Server executable",
     "Metadata server executable.", AgentConfig.master_binary),
    ("admin_binary", "Admin tool",
     "Admin tool used for status queries and control commands.", AgentConfig.admin_binary),
    ("metarestore_binary", "Metadata restore tool",
     "Tool reading the metadata version of the on-disk dump.", AgentConfig.metarestore_binary),
    ("metadata_version_attribute", "Cluster metadata version attribute",
     "Name of the cluster attribute holding the last known-good metadata version.",
     AgentConfig.metadata_version_attribute),
    ("old_metadata_retention", "Archive retention in minutes",
     "Archived metadata generations older than this are deleted when a shadow stops.",
     str(AgentConfig.retention_minutes)),
    ("probe_retry_delay", "Probe retry delay in seconds",
     "Delay before the single retry of a status query that timed out or was reset.",
     f"{AgentConfig.probe_retry_delay:g}"),
    ("probe_timeout", "Status query timeout in seconds",
     "Timeout of each status query and leader lookup made by the probe. Four of these "
     "plus the retry delay must stay under the monitor timeout.",
     f"{AgentConfig.probe_timeout:g}"),
    ("personality_file", "Personality marker file",
     "When set, the personality is written here before every start.", ""),
    ("log_level", "Log level",
     "Logging level of the agent.", AgentConfig.log_level),
]

# (action, timeout, extra attributes)
ACTIONS: List[Tuple[str, str, str]] = [
    ("start", "1800s", ""),
    ("stop", "1800s", ""),
    ("promote", "1800s", ""),
    ("demote", "1800s", ""),
    ("notify", "60s", ""),
    ("monitor", f"{DEFAULT_MONITOR_TIMEOUT:g}s", ' interval="10s" role="Master"'),
    ("monitor", "40s", ' interval="20s" role="Slave"'),
    ("meta-data", "5s", ""),
    ("validate-all", "5s", ""),
]


def metadata_xml(config: AgentConfig) -> str:
    """Render the resource agent meta-data document."""
    params = []
    for name, short, long, default in PARAMETERS:
        params.append(
            f'    <parameter name="{name}" unique="0" required="0">\n'
            f'      <longdesc lang="en">{long}</longdesc>\n'
            f'      <shortdesc lang="en">{short}</shortdesc>\n'
            f'      <content type="string" default="{default}"/>\n'
            f'    </parameter>'
        )
    actions = [
        f'    <action name="{name}" timeout="{timeout}"{extra}/>'
        for name, timeout, extra in ACTIONS
    ]
    return "\n".join([
        '<?xml version="1.0"?>',
        '<!DOCTYPE resource-agent SYSTEM "ra-api-1.dtd">',
        f'<resource-agent name="{config.resource_name}" version="1.0">',
        '  <version>1.0</version>',
        '  <longdesc lang="en">Manages a replicated metadata server as a '
        'promotable (master/shadow) resource. Promotion is refused for a shadow '
        'whose metadata is absent, and a stopped shadow\'s metadata is rotated '
        'aside.</longdesc>',
        '  <shortdesc lang="en">Metadata server failover</shortdesc>',
        '  <parameters>',
        *params,
        '  </parameters>',
        '  <actions>',
        *actions,
        '  </actions>',
        '</resource-agent>',
    ])
