"""OpenBSD rc.d daemon backend."""

import shlex
from typing import Optional

from host_daemon.backends.base import DaemonBackend
from host_daemon.backends.openbsd_templates import RC_SCRIPT_TEMPLATE
from host_daemon.config import DaemonPaths
from host_daemon.definition import ServiceDefinition
from host_daemon.exceptions import DaemonOperationError, ServiceOperation
from host_daemon.process import CommandResult, CommandRunner
from host_daemon.template import render


class RcctlBackend(DaemonBackend):
    """OpenBSD rc.d script daemon backend, controlled with rcctl."""

    def __init__(
        self,
        definition: ServiceDefinition,
        paths: Optional[DaemonPaths] = None,
        runner: Optional[CommandRunner] = None
    ):
        super().__init__(definition, paths, runner)
        self.rc_file = self.paths.rc_dir / definition.name
        self.service_bin = self.paths.bin_dir / definition.executable.name
        self.log_file = self.paths.log_root / definition.name
        self.arguments = [*definition.arguments, '-L', str(self.log_file)]

        self.logger.info('RcctlBackend initialized for daemon: %s', self.name)
        self.logger.debug('rc_file: %s, service_bin: %s', self.rc_file, self.service_bin)

    @property
    def platform_name(self) -> str:
        return 'rcctl'

    def _rcctl(self, command: str) -> CommandResult:
        result = self.runner.check(['rcctl', command, self.name])
        if result.stdout:
            self.logger.info('rcctl %s %s: %s', command, self.name, result.stdout)
        return result

    def render_rc_script(self) -> str:
        user = self.definition.user
        values = {
            'TASK_USER': shlex.quote(user.username),
            'TASK_UID': user.uid,
            'TASK_BIN': shlex.quote(str(self.service_bin)),
            'TASK_ARGS': shlex.quote(' '.join(shlex.quote(arg) for arg in self.arguments)),
            'TASK_DIR': shlex.quote(str(self.definition.directory)),
        }
        return render(RC_SCRIPT_TEMPLATE, values)

    def install(self) -> None:
        self.logger.info('Installing daemon: %s', self.name)
        op = ServiceOperation.INSTALL

        if self.definition.executable != self.service_bin:
            self._copy_executable(self.service_bin, op)

        self._write_file(self.rc_file, self.render_rc_script(), 0o755, op)
        self.logger.info('Daemon %s has been installed successfully', self.name)

    def delete(self) -> None:
        self.logger.info('Deleting daemon: %s', self.name)
        self._rcctl('stop')
        self._rcctl('disable')
        self.logger.info('Removing rc script: %s', self.rc_file)
        try:
            self.rc_file.unlink()
        except OSError as e:
            raise DaemonOperationError(ServiceOperation.DELETE, f'Failed to remove {self.rc_file}: {e}') from e
        self.logger.info('Daemon %s successfully deleted', self.name)

    def start(self) -> None:
        self.logger.info('Starting daemon: %s', self.name)
        self._rcctl('enable')
        self._rcctl('start')

    def stop(self) -> None:
        self.logger.info('Stopping daemon: %s', self.name)
        self._rcctl('stop')

    def get_config(self) -> str:
        return self.runner.check(['rcctl', 'get', self.name]).stdout

    def query(self) -> bool:
        # rcctl check exits non-zero when the daemon is down; only a failure
        # to run rcctl at all is an error here
        result = self.runner.run(['rcctl', 'check', self.name])
        self.logger.debug('Daemon %s check exit code: %d', self.name, result.exit_code)
        return result.ok
