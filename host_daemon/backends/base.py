"""Abstract base class for platform-specific daemon backends."""

import logging
import os
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from host_daemon.config import DaemonPaths
from host_daemon.definition import ServiceDefinition
from host_daemon.exceptions import DaemonOperationError, ServiceOperation
from host_daemon.process import CommandRunner


class DaemonBackend(ABC):
    """Lifecycle contract shared by every platform-specific backend."""

    def __init__(
        self,
        definition: ServiceDefinition,
        paths: Optional[DaemonPaths] = None,
        runner: Optional[CommandRunner] = None
    ):
        """
        Initialize the daemon backend.

        Args:
            definition: Resolved definition of the daemon.
            paths: Host locations used by the backend.
            runner: Runs the platform control utility.
        """
        self.definition = definition
        self.paths = paths or DaemonPaths()
        self.runner = runner or CommandRunner()
        self.logger = logging.getLogger(f'{self.__class__.__name__}.{definition.name}')

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    @abstractmethod
    def platform_name(self) -> str:
        """Return the service subsystem name (e.g., 'schtasks', 'daemontools')."""
        pass

    @abstractmethod
    def install(self) -> None:
        """
        Write the daemon's artifacts and register it with the host.

        The daemon is left installed but stopped. Installing over an existing
        registration is not handled here; delete it first to reinstall.
        """
        pass

    @abstractmethod
    def delete(self) -> None:
        """Stop the daemon if it is running and remove its registration."""
        pass

    @abstractmethod
    def start(self) -> None:
        """Start the installed daemon."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop the daemon."""
        pass

    @abstractmethod
    def get_config(self) -> str:
        """
        Get the daemon's registered configuration.

        Raises an error when the daemon is not installed.
        """
        pass

    @abstractmethod
    def query(self) -> bool:
        """Return True if the daemon is running."""
        pass

    def restart(self) -> None:
        """Stop, then start the daemon."""
        self.stop()
        self.start()

    def _write_file(self, path: Path, content: str, mode: int, operation: ServiceOperation) -> None:
        """Write a file next to its destination, set its mode, then move it into place."""
        self.logger.info('Writing %s', path)
        temp_path = path.with_name(f'.{path.name}.tmp')
        try:
            temp_path.write_text(content)
            temp_path.chmod(mode)
            os.replace(temp_path, path)
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            raise DaemonOperationError(operation, f'Failed to write {path}: {e}') from e

    def _copy_executable(self, target: Path, operation: ServiceOperation) -> None:
        source = self.definition.executable
        self.logger.info('Copying %s to %s', source, target)
        try:
            shutil.copyfile(source, target)
            target.chmod(0o755)
        except OSError as e:
            raise DaemonOperationError(operation, f'Failed to copy {source} to {target}: {e}') from e
