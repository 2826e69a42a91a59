"""External command invocation for the control utilities."""

import logging
import os
import subprocess
from typing import Optional, Sequence

from host_daemon.exceptions import CommandFailedError

logger = logging.getLogger(__name__)


class CommandResult:
    """Exit code and trimmed output of a finished command."""

    def __init__(self, command: Sequence[str], exit_code: int, stdout: str, stderr: str):
        self.command = list(command)
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def __repr__(self) -> str:
        return f'CommandResult(command={self.command!r}, exit_code={self.exit_code})'


class CommandRunner:
    """
    Runs control utilities and captures their output.

    Backends receive a runner at construction, so tests can substitute a
    subclass that answers commands without touching the host.
    """

    def __init__(self, timeout: Optional[float] = None):
        """
        Args:
            timeout: Seconds to wait for a command. None waits indefinitely.
        """
        self.timeout = timeout

    def run(self, command: Sequence[str]) -> CommandResult:
        """
        Run a command to completion.

        A non-zero exit status is returned, not raised.

        Raises:
            CommandFailedError: If the command could not be started or timed out.
        """
        logger.debug('Running: %s', ' '.join(command))
        kwargs = {}
        if os.name == 'nt':
            kwargs['creationflags'] = subprocess.CREATE_NO_WINDOW
        try:
            completed = subprocess.run(
                list(command),
                capture_output=True, text=True, errors='replace', check=False, timeout=self.timeout,
                **kwargs
            )
        except subprocess.TimeoutExpired as e:
            raise CommandFailedError(command, f'{command[0]} timed out after {self.timeout}s') from e
        except OSError as e:
            raise CommandFailedError(command, f'{command[0]}: {e}') from e

        result = CommandResult(command, completed.returncode, completed.stdout.strip(), completed.stderr.strip())
        if result.stdout:
            logger.debug('%s output: %s', command[0], result.stdout)
        return result

    def check(self, command: Sequence[str]) -> CommandResult:
        """
        Run a command and require a zero exit status.

        Raises:
            CommandFailedError: If the command could not be started or exited
                non-zero. The message is the command's stderr, or the exit
                status when stderr is empty.
        """
        result = self.run(command)
        if not result.ok:
            message = result.stderr or f'{command[0]}: exit status {result.exit_code}'
            logger.debug('%s failed with exit code %d: %s', command[0], result.exit_code, message)
            raise CommandFailedError(command, message, exit_code=result.exit_code, stderr=result.stderr)
        return result
