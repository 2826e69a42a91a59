"""Daemon configuration."""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

from host_daemon.exceptions import DaemonConstructionError


@dataclass(frozen=True)
class DaemonPaths:
    """Host locations used by the Unix backends."""

    svc_root: Path = Path('/var/svc.d')
    service_root: Path = Path('/etc/service')
    bin_dir: Path = Path('/usr/local/bin')
    log_root: Path = Path('/var/log')
    rc_dir: Path = Path('/etc/rc.d')


def validate_name(name: str) -> None:
    """
    Check that a daemon name can be used as a file and task name.

    Raises:
        DaemonConstructionError: If the name is empty or is not a single path
            component.
    """
    if not name:
        raise DaemonConstructionError('Daemon name cannot be empty')
    if name in ('.', '..') or '/' in name or '\\' in name:
        raise DaemonConstructionError(f'Daemon name must be a single path component: {name!r}')


def daemon_defaults() -> Tuple[Path, str]:
    """
    Get the default executable and daemon name for the running program.

    The name is the executable's basename up to the first dot, so
    ``netbootd.exe`` becomes ``netbootd``.
    """
    binary = Path(sys.argv[0]).resolve()
    name = binary.name.split('.', 1)[0]
    return binary, name


class DaemonConfig:
    """Configuration for a daemon."""

    def __init__(
        self,
        name: str,
        executable: Union[str, Path],
        arguments: Sequence[str] = (),
        user: Optional[str] = None,
        directory: Optional[Union[str, Path]] = None,
        paths: Optional[DaemonPaths] = None
    ):
        """
        Initialize daemon configuration.

        Args:
            name: Name of the daemon; used as the task, service and rc script name.
            executable: Path of the binary the daemon runs.
            arguments: Arguments passed to the binary.
            user: Account the daemon runs as. Defaults to the acting user.
            directory: Working directory. Defaults to the user's home directory.
            paths: Host locations for the Unix backends.

        Raises:
            DaemonConstructionError: If name is empty or not a single path component.
        """
        validate_name(name)
        self.name = name
        self.executable = Path(executable)
        self.arguments = tuple(arguments)
        self.user = user or None
        self.directory = Path(directory) if directory else None
        self.paths = paths or DaemonPaths()

    @classmethod
    def from_defaults(
        cls,
        arguments: Sequence[str] = (),
        name: Optional[str] = None,
        user: Optional[str] = None,
        directory: Optional[Union[str, Path]] = None,
        paths: Optional[DaemonPaths] = None
    ) -> 'DaemonConfig':
        """Build a configuration that installs the running program itself."""
        binary, default_name = daemon_defaults()
        return cls(
            name=name or default_name,
            executable=binary,
            arguments=arguments,
            user=user,
            directory=directory,
            paths=paths,
        )

    def __repr__(self) -> str:
        return (
            f'DaemonConfig(name={self.name!r}, executable={str(self.executable)!r}, '
            f'arguments={self.arguments!r}, user={self.user!r}, directory={self.directory!r})'
        )
