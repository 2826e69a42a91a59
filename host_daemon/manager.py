"""Daemon manager - cross-platform daemon lifecycle."""

import platform
from typing import Dict, Optional, Type

from host_daemon.backends.base import DaemonBackend
from host_daemon.backends.linux import DaemontoolsBackend
from host_daemon.backends.openbsd import RcctlBackend
from host_daemon.backends.windows import WindowsTaskBackend
from host_daemon.config import DaemonConfig
from host_daemon.definition import ServiceDefinition, build_definition
from host_daemon.exceptions import UnsupportedPlatformError
from host_daemon.process import CommandRunner

BACKENDS: Dict[str, Type[DaemonBackend]] = {
    'Windows': WindowsTaskBackend,
    'Linux': DaemontoolsBackend,
    'OpenBSD': RcctlBackend,
}


def backend_class(system: str) -> Type[DaemonBackend]:
    """
    Get the backend class for a platform.

    Raises:
        UnsupportedPlatformError: If the platform has no backend.
    """
    try:
        return BACKENDS[system]
    except KeyError:
        raise UnsupportedPlatformError(system) from None


def create_backend(
    config: DaemonConfig,
    system: Optional[str] = None,
    runner: Optional[CommandRunner] = None
) -> DaemonBackend:
    """
    Resolve a configuration and construct the backend for the host platform.

    Args:
        config: Daemon configuration.
        system: Platform name; defaults to ``platform.system()``.
        runner: Command runner handed to the backend.

    Raises:
        UnsupportedPlatformError: If the platform is not supported.
        DaemonConstructionError: If the user or working directory is invalid.
    """
    system = system or platform.system()
    backend_cls = backend_class(system)
    definition = build_definition(config, system=system, runner=runner)
    return backend_cls(definition, config.paths, runner)


class DaemonManager:
    """
    Cross-platform daemon manager.

    Provides a unified interface for managing a daemon with Windows Task
    Scheduler, daemontools on Linux and rcctl on OpenBSD. The backend is
    selected once, from the current platform, when the manager is created.
    """

    def __init__(
        self,
        config: DaemonConfig,
        runner: Optional[CommandRunner] = None,
        system: Optional[str] = None
    ):
        """
        Initialize the daemon manager.

        Args:
            config: Daemon configuration.
            runner: Command runner for the control utilities.
            system: Platform name; defaults to ``platform.system()``.

        Raises:
            UnsupportedPlatformError: If the current platform is not supported.
            DaemonConstructionError: If the user or working directory is invalid.
        """
        self.config = config
        self._backend = create_backend(config, system=system, runner=runner)

    def install(self) -> None:
        """
        Install the daemon, leaving it stopped.

        Raises:
            FileNotFoundError: If the executable doesn't exist.
            DaemonError: If installation fails.
        """
        executable = self._backend.definition.executable
        if not executable.exists():
            raise FileNotFoundError(f'Executable does not exist: {executable}')
        self._backend.install()

    def delete(self) -> None:
        """
        Stop the daemon if needed and remove its registration.

        Raises:
            DaemonError: If a step fails, including when it is not installed.
        """
        self._backend.delete()

    def start(self) -> None:
        """Start the daemon."""
        self._backend.start()

    def stop(self) -> None:
        """Stop the daemon."""
        self._backend.stop()

    def restart(self) -> None:
        """Stop, then start the daemon."""
        self._backend.restart()

    def get_config(self) -> str:
        """
        Get the daemon's registered configuration.

        Raises:
            DaemonError: If the daemon is not installed.
        """
        return self._backend.get_config()

    def query(self) -> bool:
        """
        Check whether the daemon is running.

        Raises:
            DaemonError: If the control utility fails or its output is not understood.
        """
        return self._backend.query()

    @property
    def name(self) -> str:
        """Get the daemon name."""
        return self._backend.name

    @property
    def platform_name(self) -> str:
        """Get the service subsystem in use."""
        return self._backend.platform_name

    @property
    def definition(self) -> ServiceDefinition:
        return self._backend.definition

    @property
    def backend(self) -> DaemonBackend:
        return self._backend
