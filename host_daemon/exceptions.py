"""Daemon manager exceptions."""

from enum import Enum
from typing import Optional, Sequence


class ServiceOperation(Enum):
    """Operations that can be performed on a daemon."""
    INSTALL = 'install'
    DELETE = 'delete'
    START = 'start'
    STOP = 'stop'
    GET_CONFIG = 'getConfig'
    QUERY = 'query'


class DaemonError(Exception):
    """Base exception for daemon manager errors."""
    pass


class DaemonConstructionError(DaemonError, ValueError):
    """Raised when a daemon definition or backend cannot be constructed."""
    pass


class UnsupportedPlatformError(DaemonConstructionError):
    """Raised when the host platform has no backend."""

    def __init__(self, system: str):
        super().__init__(f'Unsupported platform: {system}')
        self.system = system


class CommandFailedError(DaemonError):
    """Raised when a control utility cannot be run or exits non-zero."""

    def __init__(
        self,
        command: Sequence[str],
        message: str,
        exit_code: Optional[int] = None,
        stderr: str = ''
    ):
        super().__init__(message)
        self.command = list(command)
        self.exit_code = exit_code
        self.stderr = stderr
        self.message = message


class UnexpectedOutputError(DaemonError):
    """Raised when a control utility's output does not have the expected shape."""

    def __init__(self, message: str, output: str):
        super().__init__(f'{message}: {output!r}')
        self.output = output


class DaemonOperationError(DaemonError):
    """Raised when a filesystem step of a daemon operation fails."""

    def __init__(self, operation: ServiceOperation, message: str):
        super().__init__(f'Operation {operation.value} failed: {message}')
        self.operation = operation
        self.message = message
