"""
mdsha
Failover resource agent for a replicated metadata server (master/shadow).
"""

__version__ = "1.0.0"
__author__ = "The mdsha Contributors"

from .config import (
    AgentConfig, ConfigurationError, ReplicaRole, ConnectionState,
    Personality, PromoteMode, StatusCode, VersionSource,
)
from .agent import ResourceAgent, create_agent

__all__ = [
    # Config
    'AgentConfig',
    'ConfigurationError',
    'ReplicaRole',
    'ConnectionState',
    'Personality',
    'PromoteMode',
    'StatusCode',
    'VersionSource',
    # Agent
    'ResourceAgent',
    'create_agent',
]
