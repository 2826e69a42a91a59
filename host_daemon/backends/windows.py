"""Windows Task Scheduler daemon backend."""

import subprocess
import tempfile
from pathlib import Path
from typing import Optional
from xml.sax.saxutils import escape

from host_daemon.backends.base import DaemonBackend
from host_daemon.backends.windows_templates import TASK_XML_TEMPLATE, UNEXPANDED_XML_PARAM
from host_daemon.config import DaemonPaths
from host_daemon.definition import ServiceDefinition
from host_daemon.exceptions import DaemonOperationError, ServiceOperation, UnexpectedOutputError
from host_daemon.process import CommandResult, CommandRunner
from host_daemon.template import render

SCHTASKS = 'schtasks.exe'


def parse_task_status(output: str, task_name: str) -> bool:
    """
    Parse ``schtasks /QUERY /FO csv /NH`` output for a single task.

    The output must be one line of three quoted fields: the task path
    (``"\\<name>"``), the next run time and the status.

    Returns:
        True if the task status is ``Running``.

    Raises:
        UnexpectedOutputError: If the output has any other shape or names
            another task.
    """
    lines = output.strip().splitlines()
    fields = lines[0].split(',') if len(lines) == 1 else []
    if len(lines) != 1 or len(fields) != 3:
        raise UnexpectedOutputError('unexpected schtasks output', output)
    if fields[0] != f'"\\{task_name}"':
        raise UnexpectedOutputError('unexpected task name', fields[0])
    return fields[2] == '"Running"'


class WindowsTaskBackend(DaemonBackend):
    """Windows scheduled task daemon backend."""

    def __init__(
        self,
        definition: ServiceDefinition,
        paths: Optional[DaemonPaths] = None,
        runner: Optional[CommandRunner] = None
    ):
        super().__init__(definition, paths, runner)
        self.log_dir = definition.user.home / 'logs'
        self.log_file = self.log_dir / f'{definition.name}-task.log'
        self.arguments = [*definition.arguments, '-L', str(self.log_file)]

        self.logger.info('WindowsTaskBackend initialized for task: %s', self.name)
        self.logger.debug('log_file: %s', self.log_file)

    @property
    def platform_name(self) -> str:
        return 'schtasks'

    def _schtasks(self, verb: str, *args: str) -> CommandResult:
        return self.runner.check([SCHTASKS, f'/{verb}', '/TN', self.name, *args])

    def render_task_xml(self) -> str:
        values = {
            'TASK_USER': self.definition.user.username,
            'TASK_UID': self.definition.user.uid,
            'TASK_BIN': str(self.definition.executable),
            'TASK_ARGS': subprocess.list2cmdline(self.arguments),
            'TASK_DIR': str(self.definition.directory),
        }
        escaped = {key: escape(value) for key, value in values.items()}
        return render(TASK_XML_TEMPLATE, escaped, unexpanded=UNEXPANDED_XML_PARAM)

    def install(self) -> None:
        self.logger.info('Installing task: %s', self.name)
        try:
            self.log_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        except OSError as e:
            raise DaemonOperationError(ServiceOperation.INSTALL, f'Failed to create log directory: {e}') from e

        task_xml = self.render_task_xml()
        with tempfile.TemporaryDirectory(prefix='task-create-') as temp_dir:
            xml_file = Path(temp_dir) / 'task.xml'
            try:
                # Task Scheduler only accepts UTF-16 task definitions
                xml_file.write_text(task_xml, encoding='utf-16')
            except OSError as e:
                raise DaemonOperationError(ServiceOperation.INSTALL, f'Failed to write task XML: {e}') from e

            self.logger.debug('Registering task from %s', xml_file)
            self._schtasks('CREATE', '/XML', str(xml_file))

        self.logger.info('Task %s has been installed successfully', self.name)

    def delete(self) -> None:
        self.logger.info('Deleting task: %s', self.name)
        # END succeeds on a stopped task; any failure aborts the delete
        self._schtasks('END')
        self._schtasks('DELETE', '/F')
        self.logger.info('Task %s successfully deleted', self.name)

    def start(self) -> None:
        self.logger.info('Starting task: %s', self.name)
        self._schtasks('RUN')

    def stop(self) -> None:
        self.logger.info('Stopping task: %s', self.name)
        self._schtasks('END')

    def get_config(self) -> str:
        return self._schtasks('QUERY', '/XML', 'ONE').stdout

    def query(self) -> bool:
        result = self._schtasks('QUERY', '/FO', 'csv', '/NH')
        running = parse_task_status(result.stdout, self.name)
        self.logger.debug('Task %s running: %s', self.name, running)
        return running
