"""Platform-specific daemon backends."""

from host_daemon.backends.base import DaemonBackend
from host_daemon.backends.linux import DaemontoolsBackend
from host_daemon.backends.openbsd import RcctlBackend
from host_daemon.backends.windows import WindowsTaskBackend

__all__ = [
    'DaemonBackend',
    'DaemontoolsBackend',
    'RcctlBackend',
    'WindowsTaskBackend',
]
