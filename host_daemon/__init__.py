"""
host-daemon - install and control a program as a native OS daemon.

This library provides a unified lifecycle interface (install, delete, start,
stop, get_config, query) over Windows Task Scheduler, daemontools on Linux
and rcctl on OpenBSD.
"""
__version__ = "0.1.0"

from host_daemon.manager import DaemonManager, create_backend
from host_daemon.config import DaemonConfig, DaemonPaths
from host_daemon.definition import ServiceDefinition, ServiceUser, build_definition, resolve_user
from host_daemon.process import CommandRunner, CommandResult
from host_daemon.exceptions import (
    DaemonError,
    DaemonConstructionError,
    UnsupportedPlatformError,
    CommandFailedError,
    UnexpectedOutputError,
    DaemonOperationError,
    ServiceOperation,
)

__all__ = [
    # Main classes
    "DaemonManager",
    "DaemonConfig",
    "DaemonPaths",
    "create_backend",
    # Definition
    "ServiceDefinition",
    "ServiceUser",
    "build_definition",
    "resolve_user",
    # Process invocation
    "CommandRunner",
    "CommandResult",
    # Exceptions
    "DaemonError",
    "DaemonConstructionError",
    "UnsupportedPlatformError",
    "CommandFailedError",
    "UnexpectedOutputError",
    "DaemonOperationError",
    "ServiceOperation",
]
