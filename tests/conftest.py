"""Pytest configuration and fixtures for host-daemon tests.

The control utilities (schtasks.exe, svc/svstat, rcctl) are replaced by small
stateful fakes that answer through the CommandRunner seam, and every host
path is relocated under the test's tmp_path.
"""

import logging
import os
import pwd
from pathlib import Path
from typing import Callable, Dict, List, Sequence, Set

import pytest

from host_daemon import (
    CommandResult,
    CommandRunner,
    DaemonPaths,
    ServiceDefinition,
    ServiceUser,
)
from host_daemon.backends import DaemontoolsBackend, RcctlBackend, WindowsTaskBackend

# Configure logging for tests
logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# Test configuration
TEST_DAEMON_NAME = "netboot"
TEST_DAEMON_ARGUMENTS = ("server",)


class FakeRunner(CommandRunner):
    """Command runner that dispatches each command to a registered fake utility."""

    def __init__(self):
        super().__init__()
        self.calls: List[List[str]] = []
        self.handlers: Dict[str, Callable[[List[str]], CommandResult]] = {}

    def register(self, program: str, handler: Callable[[List[str]], CommandResult]) -> None:
        self.handlers[program] = handler

    def run(self, command: Sequence[str]) -> CommandResult:
        command = list(command)
        self.calls.append(command)
        handler = self.handlers.get(command[0])
        if handler is None:
            return CommandResult(command, 127, '', f'{command[0]}: command not found')
        return handler(command)

    def commands(self, program: str) -> List[List[str]]:
        """Get the recorded invocations of one program, without the program name."""
        return [call[1:] for call in self.calls if call[0] == program]


def ok(command, stdout: str = '') -> CommandResult:
    return CommandResult(command, 0, stdout, '')


def fail(command, stderr: str, exit_code: int = 1) -> CommandResult:
    return CommandResult(command, exit_code, '', stderr)


class FakeSchtasks:
    """In-memory Task Scheduler answering schtasks.exe command lines."""

    NOT_FOUND = 'ERROR: The system cannot find the file specified.'

    def __init__(self):
        self.tasks: Dict[str, dict] = {}
        self.xml_files: List[Path] = []

    def __call__(self, command: List[str]) -> CommandResult:
        verb = command[1].upper()
        name = command[command.index('/TN') + 1]
        task = self.tasks.get(name)

        if verb == '/CREATE':
            xml_file = Path(command[command.index('/XML') + 1])
            self.xml_files.append(xml_file)
            if task is not None:
                return fail(command, 'ERROR: Cannot create a file when that file already exists.')
            self.tasks[name] = {'xml': xml_file.read_text(encoding='utf-16'), 'running': False}
            return ok(command, f'SUCCESS: The scheduled task "{name}" has successfully been created.')

        if task is None:
            return fail(command, self.NOT_FOUND)

        if verb == '/RUN':
            task['running'] = True
            return ok(command, f'SUCCESS: Attempted to run the scheduled task "{name}".')
        if verb == '/END':
            task['running'] = False
            return ok(command, f'SUCCESS: The scheduled task "{name}" has been terminated successfully.')
        if verb == '/DELETE':
            del self.tasks[name]
            return ok(command, f'SUCCESS: The scheduled task "{name}" was successfully deleted.')
        if verb == '/QUERY':
            if '/XML' in command:
                return ok(command, task['xml'].strip())
            status = 'Running' if task['running'] else 'Ready'
            return ok(command, f'"\\{name}","N/A","{status}"')
        return fail(command, f'ERROR: Invalid argument/option - {command[1]!r}.')


class FakeSupervisor:
    """svc and svstat over supervision directories, tracking which are up."""

    def __init__(self):
        self.up: Set[str] = set()

    def svc(self, command: List[str]) -> CommandResult:
        flag, service_dir = command[1], command[2]
        if not Path(service_dir).is_dir():
            return fail(command, f'svc: warning: unable to chdir to {service_dir}: file does not exist', 111)
        if flag == '-u':
            self.up.add(service_dir)
        elif flag == '-d':
            self.up.discard(service_dir)
        return ok(command)

    def svstat(self, command: List[str]) -> CommandResult:
        service_dir = command[1]
        if not Path(service_dir).is_dir():
            return ok(command, f'{service_dir}: unable to chdir: file does not exist')
        if service_dir in self.up:
            return ok(command, f'{service_dir}: up (pid 4242) 5 seconds')
        return ok(command, f'{service_dir}: down 0 seconds')


class FakeRcctl:
    """rcctl over the rc scripts found in an rc.d directory."""

    def __init__(self, rc_dir: Path):
        self.rc_dir = rc_dir
        self.enabled: Set[str] = set()
        self.running: Set[str] = set()

    def __call__(self, command: List[str]) -> CommandResult:
        verb, name = command[1], command[2]
        rc_file = self.rc_dir / name
        if not rc_file.is_file():
            return fail(command, f'rcctl: service {name} does not exist', 2)

        if verb == 'enable':
            self.enabled.add(name)
            return ok(command)
        if verb == 'disable':
            self.enabled.discard(name)
            return ok(command)
        if verb == 'start':
            self.running.add(name)
            return ok(command, f'{name}(ok)')
        if verb == 'stop':
            self.running.discard(name)
            return ok(command, f'{name}(ok)')
        if verb == 'check':
            if name in self.running:
                return ok(command, f'{name}(ok)')
            return CommandResult(command, 1, f'{name}(failed)', '')
        if verb == 'get':
            script = rc_file.read_text()
            flags = next(
                line.split('=', 1)[1] for line in script.splitlines() if line.startswith('daemon_flags=')
            )
            user = next(
                line.split('=', 1)[1] for line in script.splitlines() if line.startswith('daemon_user=')
            )
            flags = flags.strip("'")
            return ok(command, '\n'.join([
                f'{name}_class=daemon',
                f'{name}_flags={flags}',
                f'{name}_logger=',
                f'{name}_rtable=0',
                f'{name}_timeout=30',
                f'{name}_user={user}',
            ]))
        return fail(command, f'rcctl: unknown command {verb}', 1)


@pytest.fixture
def host_paths(tmp_path: Path) -> DaemonPaths:
    """Fixture providing host locations relocated under tmp_path."""
    root = tmp_path / "host"
    paths = DaemonPaths(
        svc_root=root / "var" / "svc.d",
        service_root=root / "etc" / "service",
        bin_dir=root / "usr" / "local" / "bin",
        log_root=root / "var" / "log",
        rc_dir=root / "etc" / "rc.d",
    )
    for directory in (paths.service_root, paths.bin_dir, paths.log_root, paths.rc_dir):
        directory.mkdir(parents=True)
    return paths


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    """Fixture providing the daemon's working (and home) directory."""
    directory = tmp_path / "home" / "svc"
    directory.mkdir(parents=True)
    return directory


@pytest.fixture
def executable(tmp_path: Path) -> Path:
    """Fixture providing a small executable to install."""
    build_dir = tmp_path / "build"
    build_dir.mkdir()
    path = build_dir / "netbootd"
    path.write_text("#!/bin/sh\nexit 0\n")
    path.chmod(0o755)
    return path


@pytest.fixture
def service_user(work_dir: Path) -> ServiceUser:
    """Fixture providing the current user, with the test working directory as home."""
    return ServiceUser(
        username=pwd.getpwuid(os.getuid()).pw_name,
        uid=str(os.getuid()),
        gid=str(os.getgid()),
        home=work_dir,
    )


@pytest.fixture
def definition(service_user: ServiceUser, executable: Path, work_dir: Path) -> ServiceDefinition:
    """Fixture providing the definition of the netboot test daemon."""
    return ServiceDefinition(
        name=TEST_DAEMON_NAME,
        user=service_user,
        executable=executable,
        arguments=TEST_DAEMON_ARGUMENTS,
        directory=work_dir,
    )


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def schtasks(runner: FakeRunner) -> FakeSchtasks:
    fake = FakeSchtasks()
    runner.register('schtasks.exe', fake)
    return fake


@pytest.fixture
def supervisor(runner: FakeRunner) -> FakeSupervisor:
    fake = FakeSupervisor()
    runner.register('svc', fake.svc)
    runner.register('svstat', fake.svstat)
    return fake


@pytest.fixture
def rcctl(runner: FakeRunner, host_paths: DaemonPaths) -> FakeRcctl:
    fake = FakeRcctl(host_paths.rc_dir)
    runner.register('rcctl', fake)
    return fake


@pytest.fixture
def windows_backend(definition, host_paths, runner, schtasks) -> WindowsTaskBackend:
    return WindowsTaskBackend(definition, host_paths, runner)


@pytest.fixture
def daemontools_backend(definition, host_paths, runner, supervisor) -> DaemontoolsBackend:
    return DaemontoolsBackend(definition, host_paths, runner)


@pytest.fixture
def rcctl_backend(definition, host_paths, runner, rcctl) -> RcctlBackend:
    return RcctlBackend(definition, host_paths, runner)


@pytest.fixture(params=["windows", "daemontools", "rcctl"])
def backend(request):
    """Fixture providing each backend in turn, wired to its fake control utility."""
    return request.getfixturevalue(f"{request.param}_backend")
