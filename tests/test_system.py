"""
Tests for status, doctor and maintenance commands
"""

import pytest
from unittest.mock import Mock, patch
from ware.dispatcher import Dispatcher
from ware.errors import BackendUnavailable
from ware.models import Backend
from ware.system import (
    SystemMaintenance,
    collect_status,
    format_uptime,
    pending_updates,
    read_memory_usage,
    read_uptime,
    report_firewall,
)


@pytest.fixture
def pacman(backend_factory):
    adapter = backend_factory(Backend.SYSTEM, "pacman")
    adapter.check_database = Mock(return_value=(True, ""))
    adapter.clean_cache = Mock(return_value=(True, ""))
    adapter.autoremove = Mock(return_value=(True, "Removed 2 orphaned package(s)"))
    adapter.install_needed = Mock(return_value=(True, ""))
    return adapter


@pytest.fixture
def flatpak(backend_factory):
    adapter = backend_factory(Backend.UNIVERSAL, "flatpak")
    adapter.remove_unused = Mock(return_value=(True, ""))
    adapter.repair_check = Mock(return_value=(True, ""))
    return adapter


@pytest.fixture
def maintenance(config, action_log, pacman, flatpak, backend_factory):
    aur = backend_factory(Backend.COMMUNITY, "AUR", command="paru", available=False)
    dispatcher = Dispatcher(config, adapters=[pacman, flatpak, aur], action_log=action_log)
    return SystemMaintenance(config, dispatcher, action_log)


def read_log(config):
    with open(config.log_file, "r", encoding="utf-8") as f:
        return f.read()


class TestStatusHelpers:

    @pytest.mark.unit
    def test_format_uptime(self):
        assert format_uptime(59) == "0m"
        assert format_uptime(3600) == "1h 0m"
        assert format_uptime(86400 + 2 * 3600 + 3 * 60 + 4) == "1d 2h 3m"

    @pytest.mark.unit
    def test_read_uptime(self, tmp_path):
        uptime = tmp_path / "uptime"
        uptime.write_text("7384.21 28000.10\n")
        assert read_uptime(str(uptime)) == "2h 3m"
        assert read_uptime(str(tmp_path / "missing")) == "unknown"

    @pytest.mark.unit
    def test_read_memory_usage(self, tmp_path):
        meminfo = tmp_path / "meminfo"
        meminfo.write_text(
            "MemTotal:        8000000 kB\n"
            "MemFree:          500000 kB\n"
            "MemAvailable:    2000000 kB\n"
        )
        assert read_memory_usage(str(meminfo)) == "5.7 GiB / 7.6 GiB (75%)"

    @pytest.mark.unit
    def test_read_memory_usage_without_available(self, tmp_path):
        meminfo = tmp_path / "meminfo"
        meminfo.write_text("MemTotal:        8000000 kB\n")
        assert read_memory_usage(str(meminfo)) == "unknown"

    @pytest.mark.unit
    @patch('ware.command.subprocess.run')
    @patch('ware.system.shutil.which', return_value='/usr/bin/checkupdates')
    def test_pending_updates(self, mock_which, mock_run):
        mock_run.return_value = Mock(returncode=0, stdout="linux 6.9.1 -> 6.9.2\nmesa 24.1 -> 24.2\n", stderr="")
        assert pending_updates() == 2

        # checkupdates exits 2 when the system is up to date
        mock_run.return_value = Mock(returncode=2, stdout="", stderr="")
        assert pending_updates() == 0

        mock_run.return_value = Mock(returncode=1, stdout="", stderr="==> ERROR")
        assert pending_updates() is None

    @pytest.mark.unit
    @patch('ware.system.shutil.which', return_value=None)
    def test_pending_updates_without_checkupdates(self, mock_which):
        assert pending_updates() is None

    @pytest.mark.unit
    @patch('ware.system.pending_updates', return_value=4)
    @patch('ware.system.service_state', return_value=(True, True))
    def test_collect_status(self, mock_state, mock_updates, config, tmp_path):
        (tmp_path / "os-release").write_text('VERSION="Stable"\n')

        status = collect_status(config)

        assert status.pending_updates == 4
        assert status.firewall_active is True
        assert status.channel == "Stable"
        assert status.version == config.version


class TestFirewall:

    @pytest.mark.unit
    @patch('ware.system.shutil.which', return_value=None)
    def test_missing_ufw(self, mock_which, capsys):
        assert report_firewall() is False
        assert "NOT installed" in capsys.readouterr().err

    @pytest.mark.unit
    @patch('ware.system.service_state', return_value=(True, False))
    @patch('ware.system.shutil.which', return_value='/usr/bin/ufw')
    def test_ufw_not_running(self, mock_which, mock_state, capsys):
        assert report_firewall() is False
        assert "NOT running" in capsys.readouterr().out

    @pytest.mark.unit
    @patch('ware.system.service_state', return_value=(True, True))
    @patch('ware.system.shutil.which', return_value='/usr/bin/ufw')
    def test_ufw_active(self, mock_which, mock_state):
        assert report_firewall() is True


class TestMaintenance:

    @pytest.mark.unit
    def test_update_runs_available_backends(self, maintenance, pacman, flatpak, config):
        assert maintenance.update() is True

        pacman.update.assert_called_once()
        flatpak.update.assert_called_once()
        maintenance.dispatcher.adapter_for(Backend.COMMUNITY).update.assert_not_called()
        assert "System updated" in read_log(config)

    @pytest.mark.unit
    def test_update_reports_failures(self, maintenance, flatpak):
        flatpak.update.return_value = (False, "flatpak update -y exited with status 1")
        assert maintenance.update() is False

    @pytest.mark.unit
    def test_clean(self, maintenance, pacman, flatpak, config):
        assert maintenance.clean() is True
        pacman.clean_cache.assert_called_once()
        flatpak.remove_unused.assert_called_once()
        assert "Cache cleaned" in read_log(config)

    @pytest.mark.unit
    def test_autoremove(self, maintenance, config):
        assert maintenance.autoremove() is True
        assert "Autoremove executed" in read_log(config)

    @pytest.mark.unit
    def test_autoremove_without_pacman(self, config, action_log):
        maintenance = SystemMaintenance(config, Dispatcher(config, adapters=[], action_log=action_log),
                                        action_log)
        with pytest.raises(BackendUnavailable):
            maintenance.autoremove()

    @pytest.mark.unit
    @patch('ware.system.run_action', return_value=(True, ""))
    def test_sync_mirrors(self, mock_action, maintenance, pacman, config):
        assert maintenance.sync_mirrors() is True

        pacman.install_needed.assert_called_once_with(["reflector"])
        assert mock_action.call_args[0][0] == [
            "reflector", "--latest", "10", "--sort", "rate", "--save", "/etc/pacman.d/mirrorlist"
        ]
        assert "Mirrors synced" in read_log(config)

    @pytest.mark.unit
    @patch('ware.system.report_firewall', return_value=True)
    def test_doctor_only_reports(self, mock_firewall, maintenance, pacman, flatpak):
        assert maintenance.doctor() is True

        pacman.check_database.assert_called_once()
        flatpak.repair_check.assert_called_once()
        pacman.install.assert_not_called()
        pacman.remove.assert_not_called()

    @pytest.mark.unit
    @patch('ware.system.report_firewall', return_value=False)
    def test_doctor_with_problems(self, mock_firewall, maintenance, flatpak):
        flatpak.is_available.return_value = False

        assert maintenance.doctor() is False
        flatpak.repair_check.assert_not_called()
