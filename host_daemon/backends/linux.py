"""daemontools supervision tree daemon backend."""

import os
import shlex
import shutil
from pathlib import Path
from typing import Optional

from host_daemon.backends.base import DaemonBackend
from host_daemon.backends.linux_templates import LOG_RUN_TEMPLATE, RUN_TEMPLATE
from host_daemon.config import DaemonPaths
from host_daemon.definition import ServiceDefinition
from host_daemon.exceptions import DaemonOperationError, ServiceOperation, UnexpectedOutputError
from host_daemon.process import CommandRunner
from host_daemon.template import render

# Supervisors skip auto-starting a service whose directory holds this file
DOWN_FILE = 'down'


def parse_svstat(output: str, service_dir: str) -> bool:
    """
    Parse ``svstat <service_dir>`` output.

    Typical output is ``/etc/service/x: up (pid 123) 5s`` or
    ``/etc/service/x: down 0s``.

    Returns:
        True if the service is up.

    Raises:
        UnexpectedOutputError: If the output does not start with
            ``<service_dir>:`` followed by a state.
    """
    fields = output.split()
    if len(fields) < 2:
        raise UnexpectedOutputError('unexpected svstat output', output)
    if fields[0] != f'{service_dir}:':
        raise UnexpectedOutputError('unexpected svstat dir output', fields[0])
    return fields[1] == 'up'


class DaemontoolsBackend(DaemonBackend):
    """
    daemontools daemon backend.

    The run scripts live in a control directory under ``svc_root``; the
    supervision directory under ``service_root`` is a symlink to it, watched
    by svscan. A ``down`` file keeps the service from being started
    automatically, so installed services stay stopped until ``start``.
    """

    def __init__(
        self,
        definition: ServiceDefinition,
        paths: Optional[DaemonPaths] = None,
        runner: Optional[CommandRunner] = None
    ):
        super().__init__(definition, paths, runner)
        self.control_dir = self.paths.svc_root / definition.name
        self.service_dir = self.paths.service_root / definition.name
        self.service_bin = self.paths.bin_dir / definition.executable.name
        self.log_dir = self.paths.log_root / definition.name
        # the log supervisor collects stdout, so the daemon logs there
        self.arguments = [*definition.arguments, '-L-']

        self.logger.info('DaemontoolsBackend initialized for service: %s', self.name)
        self.logger.debug(
            'control_dir: %s, service_dir: %s, service_bin: %s',
            self.control_dir, self.service_dir, self.service_bin
        )

    @property
    def platform_name(self) -> str:
        return 'daemontools'

    def template_values(self) -> dict:
        user = self.definition.user
        return {
            'TASK_NAME': self.name,
            'TASK_USER': user.username,
            'TASK_BIN': shlex.quote(str(self.service_bin)),
            'TASK_ARGS': ' '.join(shlex.quote(arg) for arg in self.arguments),
            'TASK_DIR': shlex.quote(str(self.definition.directory)),
            'TASK_LOG': shlex.quote(str(self.log_dir)),
        }

    @property
    def down_file(self) -> Path:
        # the supervision dir links here, so both paths name the same file
        return self.control_dir / DOWN_FILE

    def _enable(self) -> None:
        if self.down_file.is_file():
            self.logger.debug('Removing %s', self.down_file)
            try:
                self.down_file.unlink()
            except OSError as e:
                raise DaemonOperationError(ServiceOperation.START, f'Failed to enable service: {e}') from e

    def _disable(self) -> None:
        if not self.down_file.is_file():
            self._write_file(self.down_file, '', 0o600, ServiceOperation.INSTALL)

    def _svc(self, flag: str, service_dir: Path) -> None:
        self.runner.check(['svc', flag, str(service_dir)])

    def _svstat(self, service_dir: Path) -> bool:
        result = self.runner.check(['svstat', str(service_dir)])
        return parse_svstat(result.stdout, str(service_dir))

    def install(self) -> None:
        self.logger.info('Installing service: %s', self.name)
        op = ServiceOperation.INSTALL

        try:
            gid = int(self.definition.user.gid)
        except ValueError as e:
            raise DaemonOperationError(op, f'Invalid group id: {self.definition.user.gid!r}') from e

        try:
            self.paths.svc_root.mkdir(mode=0o755, parents=True, exist_ok=True)
            self.control_dir.mkdir(mode=0o750, exist_ok=True)
            (self.control_dir / 'log').mkdir(mode=0o750, exist_ok=True)
            os.chown(self.control_dir, -1, gid)
        except OSError as e:
            raise DaemonOperationError(op, f'Failed to create {self.control_dir}: {e}') from e

        values = self.template_values()
        self._write_file(self.control_dir / 'run', render(RUN_TEMPLATE, values), 0o700, op)
        self._write_file(self.control_dir / 'log' / 'run', render(LOG_RUN_TEMPLATE, values), 0o700, op)

        if self.definition.executable != self.service_bin:
            self._copy_executable(self.service_bin, op)

        if not self.log_dir.is_dir():
            self.logger.info('Creating log directory: %s', self.log_dir)
            try:
                self.log_dir.mkdir(mode=0o770)
                os.chown(self.log_dir, -1, gid)
            except OSError as e:
                raise DaemonOperationError(op, f'Failed to create {self.log_dir}: {e}') from e

        self._disable()

        self.logger.info('Linking %s to %s', self.service_dir, self.control_dir)
        try:
            self.paths.service_root.mkdir(parents=True, exist_ok=True)
            self.service_dir.symlink_to(self.control_dir, target_is_directory=True)
        except OSError as e:
            raise DaemonOperationError(op, f'Failed to link {self.service_dir}: {e}') from e

        self.logger.info('Service %s has been installed successfully', self.name)

    def delete(self) -> None:
        self.logger.info('Deleting service: %s', self.name)

        if self._svstat(self.service_dir):
            self.logger.info('Service is running, stopping first')
            self.stop()

        log_service_dir = self.service_dir / 'log'
        if self._svstat(log_service_dir):
            self.logger.info('Stopping log supervisor')
            self._svc('-d', log_service_dir)

        try:
            if self.service_dir.is_symlink():
                self.logger.info('Removing %s', self.service_dir)
                self.service_dir.unlink()
            elif self.service_dir.exists():
                self.logger.info('Removing %s', self.service_dir)
                shutil.rmtree(self.service_dir)
            if self.control_dir.exists():
                self.logger.info('Removing %s', self.control_dir)
                shutil.rmtree(self.control_dir)
        except OSError as e:
            raise DaemonOperationError(ServiceOperation.DELETE, f'Failed to remove service directories: {e}') from e

        self.logger.info('Service %s successfully deleted', self.name)

    def start(self) -> None:
        self.logger.info('Starting service: %s', self.name)
        self._enable()
        self._svc('-u', self.service_dir)

    def stop(self) -> None:
        self.logger.info('Stopping service: %s', self.name)
        self._svc('-d', self.service_dir)

    def get_config(self) -> str:
        run_file = self.service_dir / 'run'
        try:
            return run_file.read_text()
        except OSError as e:
            raise DaemonOperationError(ServiceOperation.GET_CONFIG, f'Failed to read {run_file}: {e}') from e

    def query(self) -> bool:
        running = self._svstat(self.service_dir)
        self.logger.debug('Service %s running: %s', self.name, running)
        return running
