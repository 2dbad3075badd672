"""
Configuration management for the metadata server resource agent.
"""

import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple
from enum import Enum, IntEnum


class ReplicaRole(Enum):
    """Role reported by a running metadata server."""
    MASTER = "master"
    SHADOW = "shadow"
    UNKNOWN = "unknown"


class ConnectionState(Enum):
    """Connection state reported by a running metadata server."""
    RUNNING = "running"
    STOPPING = "stopping"
    STARTING = "starting"
    BUSY = "busy"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    SYNCING = "syncing"
    UNKNOWN = "unknown"


class Personality(Enum):
    """Personality a metadata server process is started with."""
    MASTER = "master"
    SHADOW = "shadow"


class PromoteMode(Enum):
    """How a shadow may be promoted."""
    PREVENT = "prevent"   # Refuse, metadata unsafe
    RELOAD = "reload"     # Promote the live process in place
    RESTART = "restart"   # Restart as master, re-reading metadata from disk


class VersionSource(Enum):
    """Where a reported metadata version came from."""
    LIVE = "live"
    DUMP = "dump"


class StatusCode(IntEnum):
    """OCF resource agent return codes."""
    SUCCESS = 0
    ERR_GENERIC = 1
    ERR_ARGS = 2
    ERR_UNIMPLEMENTED = 3
    ERR_PERM = 4
    ERR_INSTALLED = 5
    ERR_CONFIGURED = 6
    NOT_RUNNING = 7
    RUNNING_MASTER = 8
    FAILED_MASTER = 9


# Promotion weights fed to the cluster manager
SCORE_TOP = 1000
SCORE_LATEST = 900
SCORE_MID = 500
SCORE_ZERO = 0

DEFAULT_ADMIN_PORT = 9421
DEFAULT_DATA_PATH = "/var/lib/mfs"
DEFAULT_RETENTION_MINUTES = 7 * 24 * 60
DEFAULT_MONITOR_TIMEOUT = 20.0  # seconds, master monitor timeout advertised in meta-data


class ConfigurationError(Exception):
    """Required settings are missing or unusable."""


def parse_server_config(path: str) -> Dict[str, str]:
    """
    Parse a metadata server config file.

    The format is one ``KEY = VALUE`` per line, ``#`` starts a comment.

    Returns:
        Dict of {KEY: VALUE}
    """
    values = {}
    with open(path, "r") as f:
        for line in f:
            line = line.split("#", 1)[0].strip()
            if not line or "=" not in line:
                continue
            key, value = line.split("=", 1)
            values[key.strip()] = value.strip()
    return values


@dataclass
class AgentConfig:
    """Configuration for one resource agent invocation."""
    resource_name: str = "mdsha"

    # Files
    master_cfg: str = "/etc/mfs/mfsmaster.cfg"
    exports_cfg: str = "/etc/mfs/mfsexports.cfg"
    personality_file: Optional[str] = None

    # Executables
    master_binary: str = "mfsmaster"
    admin_binary: str = "lizardfs-admin"
    metarestore_binary: str = "mfsmetarestore"

    # Values read from the server config
    master_host: Optional[str] = None
    admin_password: Optional[str] = None
    admin_host: str = "localhost"
    admin_port: int = DEFAULT_ADMIN_PORT
    data_path: str = DEFAULT_DATA_PATH

    # Cluster settings
    metadata_version_attribute: str = "mds-metadata-version"

    # Probe settings
    probe_retry_delay: float = 3.0   # seconds
    probe_timeout: float = 3.0       # seconds, per status query and leader lookup call
    action_timeout: float = DEFAULT_MONITOR_TIMEOUT  # seconds, granted by the cluster manager
    command_timeout: float = 60.0    # seconds, per external command
    stop_wait_timeout: float = 60.0  # seconds for a quick-stopped server to exit

    # Rotation settings
    retention_minutes: int = DEFAULT_RETENTION_MINUTES

    # Post-promotion error cleanup
    cleanup_delays: Tuple[float, ...] = (5.0, 30.0)

    # Notification context
    notify_type: str = ""
    notify_operation: str = ""

    log_level: str = "INFO"

    @property
    def probe_budget(self) -> float:
        """
        Worst-case seconds a probe can block.

        Two status queries around the retry delay, then the two leader lookup
        calls made when the fault persists.
        """
        return 4 * self.probe_timeout + self.probe_retry_delay

    @property
    def lock_file(self) -> str:
        """Advisory lock file kept by the server while it runs."""
        return os.path.join(self.data_path, "metadata.mfs.lock")

    @property
    def metadata_file(self) -> str:
        """Current on-disk metadata snapshot."""
        return os.path.join(self.data_path, "metadata.mfs")

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> 'AgentConfig':
        """Build a config from OCF environment variables and the server config file."""
        if environ is None:
            environ = os.environ

        def param(name: str, default=None):
            value = environ.get(f"OCF_RESKEY_{name}")
            return value if value not in (None, "") else default

        def number(name: str, default, cast):
            value = param(name, default)
            try:
                return cast(value)
            except ValueError:
                raise ConfigurationError(f"Parameter {name} is not a number: {value!r}")

        config = cls(
            resource_name=environ.get("OCF_RESOURCE_INSTANCE", "mdsha").split(":", 1)[0],
            master_cfg=param("master_cfg", cls.master_cfg),
            exports_cfg=param("exports_cfg", cls.exports_cfg),
            personality_file=param("personality_file"),
            master_binary=param("master_binary", cls.master_binary),
            admin_binary=param("admin_binary", cls.admin_binary),
            metarestore_binary=param("metarestore_binary", cls.metarestore_binary),
            metadata_version_attribute=param(
                "metadata_version_attribute", cls.metadata_version_attribute
            ),
            probe_retry_delay=number("probe_retry_delay", cls.probe_retry_delay, float),
            probe_timeout=number("probe_timeout", cls.probe_timeout, float),
            # Pacemaker passes the action timeout in milliseconds
            action_timeout=number("CRM_meta_timeout", cls.action_timeout * 1000, float) / 1000,
            retention_minutes=number("old_metadata_retention", cls.retention_minutes, int),
            notify_type=param("CRM_meta_notify_type", ""),
            notify_operation=param("CRM_meta_notify_operation", ""),
            log_level=param("log_level", cls.log_level).upper(),
        )

        if os.path.isfile(config.master_cfg):
            config.load_server_settings()

        password = param("admin_password")
        if password:
            config.admin_password = password

        return config

    def load_server_settings(self):
        """Read host, port, password and data path from the master config file."""
        settings = parse_server_config(self.master_cfg)
        self.master_host = settings.get("MASTER_HOST") or None
        self.admin_password = settings.get("ADMIN_PASSWORD") or None
        self.data_path = settings.get("DATA_PATH", DEFAULT_DATA_PATH)
        port = settings.get("MATOCL_LISTEN_PORT")
        if port:
            try:
                self.admin_port = int(port)
            except ValueError:
                raise ConfigurationError(
                    f"MATOCL_LISTEN_PORT is not a number in {self.master_cfg}: {port!r}"
                )

    def validate(self):
        """
        Check that every required setting is present.

        Raises:
            ConfigurationError: describing the first missing setting
        """
        for path in (self.master_cfg, self.exports_cfg):
            if not os.path.isfile(path):
                raise ConfigurationError(f"Config file not found: {path}")
        if not self.master_host:
            raise ConfigurationError(f"MASTER_HOST is not set in {self.master_cfg}")
        if not self.admin_password:
            raise ConfigurationError(
                f"ADMIN_PASSWORD is not set in {self.master_cfg} "
                "and no admin_password parameter was given"
            )
        if self.retention_minutes < 0:
            raise ConfigurationError("old_metadata_retention must not be negative")
        if self.probe_retry_delay < 0:
            raise ConfigurationError("probe_retry_delay must not be negative")
        if self.probe_timeout <= 0:
            raise ConfigurationError("probe_timeout must be positive")
        if self.probe_budget >= self.action_timeout:
            raise ConfigurationError(
                f"A probe can take up to {self.probe_budget:g}s (4 x probe_timeout + "
                f"probe_retry_delay), not under the action timeout of {self.action_timeout:g}s"
            )
