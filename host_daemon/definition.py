"""Resolved identity and immutable definition of a daemon."""

import logging
import os
import platform
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import psutil

from host_daemon.config import DaemonConfig, validate_name
from host_daemon.exceptions import CommandFailedError, DaemonConstructionError
from host_daemon.process import CommandRunner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceUser:
    """
    OS account a daemon runs as.

    ``uid`` is the numeric user id on POSIX hosts and the account SID on
    Windows. ``gid`` is empty on Windows.
    """

    username: str
    uid: str
    gid: str
    home: Path


@dataclass(frozen=True)
class ServiceDefinition:
    """Everything a backend needs to know about the daemon it manages."""

    name: str
    user: ServiceUser
    executable: Path
    arguments: Tuple[str, ...]
    directory: Path

    def __post_init__(self):
        validate_name(self.name)


def _posix_user(username: Optional[str]) -> ServiceUser:
    import pwd

    try:
        if username is None:
            entry = pwd.getpwuid(psutil.Process().uids().real)
        else:
            entry = pwd.getpwnam(username)
    except KeyError as e:
        raise DaemonConstructionError(f'Unknown user: {username}') from e

    return ServiceUser(
        username=entry.pw_name,
        uid=str(entry.pw_uid),
        gid=str(entry.pw_gid),
        home=Path(entry.pw_dir),
    )


def _windows_user(username: Optional[str], runner: CommandRunner) -> ServiceUser:
    try:
        result = runner.check(['whoami', '/user', '/fo', 'csv', '/nh'])
    except CommandFailedError as e:
        raise DaemonConstructionError(f'Failed to get user SID: {e}') from e

    parts = [part.replace('"', '').strip() for part in result.stdout.split(',')]
    if len(parts) < 2 or not parts[0] or not parts[1]:
        raise DaemonConstructionError(f'Failed to get user SID: {result.stdout!r}')
    current_user, current_sid = parts[0], parts[1]

    def short_name(name: str) -> str:
        return name.rsplit('\\', 1)[-1].lower()

    if username is None or short_name(username) == short_name(current_user):
        return ServiceUser(username=current_user, uid=current_sid, gid='', home=Path.home())

    script = (
        f"(New-Object System.Security.Principal.NTAccount('{username}'))"
        '.Translate([System.Security.Principal.SecurityIdentifier]).Value'
    )
    try:
        result = runner.check(['powershell', '-NoProfile', '-Command', script])
    except CommandFailedError as e:
        raise DaemonConstructionError(f'Unknown user: {username}: {e}') from e
    if not result.stdout:
        raise DaemonConstructionError(f'Unknown user: {username}')

    return ServiceUser(
        username=username,
        uid=result.stdout,
        gid='',
        home=Path.home().parent / username.rsplit('\\', 1)[-1],
    )


def resolve_user(
    username: Optional[str] = None,
    system: Optional[str] = None,
    runner: Optional[CommandRunner] = None
) -> ServiceUser:
    """
    Resolve the account a daemon runs as.

    Args:
        username: Account name to look up. None resolves the acting user,
            the real owner of this process.
        system: Platform name as reported by ``platform.system()``.
        runner: Command runner used for Windows account lookups.

    Raises:
        DaemonConstructionError: If the account cannot be resolved.
    """
    system = system or platform.system()
    if system == 'Windows':
        return _windows_user(username, runner or CommandRunner())
    return _posix_user(username)


def build_definition(
    config: DaemonConfig,
    system: Optional[str] = None,
    runner: Optional[CommandRunner] = None
) -> ServiceDefinition:
    """
    Resolve a configuration into a service definition.

    Raises:
        DaemonConstructionError: If the user cannot be resolved or the working
            directory is not an existing directory.
    """
    user = resolve_user(config.user, system=system, runner=runner)
    directory = config.directory or user.home
    if not directory.is_dir():
        raise DaemonConstructionError(f'not directory: {directory}')

    executable = config.executable
    if not executable.is_absolute():
        executable = Path(os.path.abspath(executable))

    definition = ServiceDefinition(
        name=config.name,
        user=user,
        executable=executable,
        arguments=config.arguments,
        directory=directory,
    )
    logger.debug('Resolved %s', definition)
    return definition
