"""
Daemon commands for a command-line front end.

Each function takes a ``DaemonManager`` (or any backend) and maps a verb to
console output and a process exit code. Argument parsing is left to the
caller, so these work under argparse, click or anything else.
"""

import logging
import sys
from typing import Callable, Dict, Optional, TextIO

from host_daemon.exceptions import DaemonError

logger = logging.getLogger(__name__)


def install(daemon, force: bool = False) -> int:
    """Install the daemon; with ``force``, delete an existing registration first."""
    if force:
        try:
            daemon.get_config()
        except DaemonError:
            logger.debug('%s is not installed', daemon.name)
        else:
            logger.info('Reinstalling %s', daemon.name)
            daemon.delete()
    daemon.install()
    return 0


def start(daemon) -> int:
    daemon.start()
    return 0


def stop(daemon) -> int:
    daemon.stop()
    return 0


def restart(daemon) -> int:
    daemon.restart()
    return 0


def delete(daemon) -> int:
    daemon.delete()
    return 0


def show(daemon, out: Optional[TextIO] = None) -> int:
    """Print the daemon's registered configuration."""
    print(daemon.get_config(), file=out or sys.stdout)
    return 0


def query(daemon, quiet: bool = False, out: Optional[TextIO] = None) -> int:
    """
    Report whether the daemon is running.

    Returns:
        0 if the daemon is running, 1 if not. In quiet mode nothing is printed
        and a failed query counts as not running.
    """
    try:
        running = daemon.query()
    except DaemonError as e:
        if not quiet:
            raise
        logger.debug('Query of %s failed: %s', daemon.name, e)
        running = False

    if not quiet:
        print('running' if running else 'stopped', file=out or sys.stdout)
    return 0 if running else 1


COMMANDS: Dict[str, Callable[..., int]] = {
    'install': install,
    'start': start,
    'stop': stop,
    'restart': restart,
    'delete': delete,
    'show': show,
    'query': query,
}


def run(verb: str, daemon, err: Optional[TextIO] = None, **options) -> int:
    """
    Run a command by name and turn daemon errors into an exit status.

    Args:
        verb: One of the names in ``COMMANDS``.
        daemon: Manager or backend to act on.
        err: Stream for error messages; defaults to stderr.
        **options: Keyword options of the command, e.g. ``force`` or ``quiet``.

    Returns:
        The command's exit code, or 1 after printing the error.
    """
    try:
        command = COMMANDS[verb]
    except KeyError:
        raise ValueError(f'Unknown command: {verb}') from None

    try:
        return command(daemon, **options)
    except (DaemonError, OSError) as e:
        print(f'Error: {e}', file=err or sys.stderr)
        return 1
