"""Local metadata server access: admin interface, process table, probe."""

from .admin import AdminClient, AdminCommand, AdminStatus
from .faults import FaultKind, classify_fault
from .process import ServerProcess
from .probe import ProcessProbe, ProbeResult

__all__ = [
    'AdminClient',
    'AdminCommand',
    'AdminStatus',
    'FaultKind',
    'classify_fault',
    'ServerProcess',
    'ProcessProbe',
    'ProbeResult',
]
