"""Tests for the install / delete lifecycle, run against every backend."""

import pytest

from host_daemon import DaemonError


class TestServiceLifecycle:
    """Tests for daemon lifecycle: install, query, delete."""

    def test_install_then_get_config(self, backend, definition, work_dir):
        """A freshly installed daemon has a configuration to show."""
        backend.install()

        config = backend.get_config()

        assert config
        if backend.platform_name != 'rcctl':
            # rcctl get lists settings, not the script holding the paths
            assert definition.executable.name in config
            assert str(work_dir) in config

    def test_installed_daemon_is_stopped(self, backend):
        backend.install()

        assert backend.query() is False

    def test_delete_after_start_stops_first(self, backend, runner):
        """Delete stops a running daemon before removing its registration."""
        backend.install()
        backend.start()
        assert backend.query() is True

        backend.delete()

        with pytest.raises(DaemonError):
            backend.get_config()

    def test_delete_stopped_daemon(self, backend):
        backend.install()

        backend.delete()

        with pytest.raises(DaemonError):
            backend.get_config()

    def test_get_config_before_install_fails(self, backend):
        with pytest.raises(DaemonError):
            backend.get_config()

    def test_reinstall_after_delete(self, backend):
        backend.install()
        backend.delete()
        backend.install()

        assert backend.get_config()
        assert backend.query() is False


class TestNetbootScenario:
    """The netboot daemon, installed and removed on each platform."""

    def test_netboot(self, backend, definition):
        assert definition.name == 'netboot'
        assert definition.arguments == ('server',)
        assert definition.executable.name == 'netbootd'

        backend.install()
        assert backend.get_config()

        backend.delete()
        with pytest.raises(DaemonError):
            backend.get_config()
