"""
Tests for the pacman adapter
"""

import pytest
from unittest.mock import Mock, patch
from ware.adapters.pacman_adapter import (
    PacmanAdapter,
    parse_key_values,
    parse_search_output,
    validate_package_name,
)
from ware.config import WareConfig

SEARCH_OUTPUT = """extra/htop 3.3.0-1 [installed]
    Interactive process viewer
core/bash 5.2.026-2
    The GNU Bourne Again shell
"""

INFO_OUTPUT = """Repository      : extra
Name            : htop
Version         : 3.3.0-1
Description     : Interactive process viewer
URL             : https://htop.dev/
Licenses        : GPL-2.0-only
Depends On      : libncursesw.so=6-64  libnl
                  lm_sensors
Installed Size  : 450.57 KiB
"""


@pytest.fixture
def adapter():
    return PacmanAdapter(WareConfig(sudo=['sudo'], spinner=False))


def test_validate_package_name():
    assert validate_package_name("htop") is True
    assert validate_package_name("lib32-mesa") is True
    assert validate_package_name("gtk+") is True
    assert validate_package_name("python3.12") is True

    assert validate_package_name("") is False
    assert validate_package_name("-Syu") is False
    assert validate_package_name(".hidden") is False
    assert validate_package_name("Htop") is False
    assert validate_package_name("htop; rm -rf /") is False
    assert validate_package_name("a" * 256) is False


def test_parse_search_output():
    results = parse_search_output(SEARCH_OUTPUT, "pacman")

    assert [r.package_id for r in results] == ["htop", "bash"]
    assert results[0].version == "3.3.0-1"
    assert results[0].description == "Interactive process viewer"
    assert results[1].package_manager == "pacman"


def test_parse_key_values_joins_continuation_lines():
    fields = parse_key_values(INFO_OUTPUT)

    assert fields["Name"] == "htop"
    assert fields["Depends On"].split() == ["libncursesw.so=6-64", "libnl", "lm_sensors"]
    assert fields["Installed Size"] == "450.57 KiB"


class TestPacmanLookups:

    @patch('ware.command.subprocess.run')
    @patch('ware.adapters.base.shutil.which', return_value='/usr/bin/pacman')
    def test_resolve(self, mock_which, mock_run, adapter):
        mock_run.return_value = Mock(returncode=0, stdout=INFO_OUTPUT, stderr="")
        assert adapter.resolve("htop") == "htop"
        assert mock_run.call_args[0][0] == ['pacman', '-Si', 'htop']

        mock_run.return_value = Mock(returncode=1, stdout="", stderr="error: package 'nope' was not found")
        assert adapter.resolve("nope") is None

    @patch('ware.command.subprocess.run')
    @patch('ware.adapters.base.shutil.which', return_value='/usr/bin/pacman')
    def test_resolve_rejects_invalid_names(self, mock_which, mock_run, adapter):
        assert adapter.resolve("--help") is None
        mock_run.assert_not_called()

    @patch('ware.command.subprocess.run')
    @patch('ware.adapters.base.shutil.which', return_value=None)
    def test_resolve_when_unavailable(self, mock_which, mock_run, adapter):
        assert adapter.resolve("htop") is None
        mock_run.assert_not_called()

    @patch('ware.command.subprocess.run')
    @patch('ware.adapters.base.shutil.which', return_value='/usr/bin/pacman')
    def test_resolve_installed(self, mock_which, mock_run, adapter):
        mock_run.return_value = Mock(returncode=0, stdout="htop 3.3.0-1\n", stderr="")
        assert adapter.resolve_installed("htop") == "htop"
        assert mock_run.call_args[0][0] == ['pacman', '-Q', 'htop']

    @patch('ware.command.subprocess.run')
    @patch('ware.adapters.base.shutil.which', return_value='/usr/bin/pacman')
    def test_list_installed(self, mock_which, mock_run, adapter):
        mock_run.return_value = Mock(returncode=0, stdout="bash 5.2.026-2\nhtop 3.3.0-1\n", stderr="")

        installed = adapter.list_installed()

        assert [(p.package_id, p.version) for p in installed] == [("bash", "5.2.026-2"), ("htop", "3.3.0-1")]

    @patch('ware.command.subprocess.run')
    @patch('ware.adapters.base.shutil.which', return_value='/usr/bin/pacman')
    def test_get_details(self, mock_which, mock_run, adapter):
        mock_run.return_value = Mock(returncode=0, stdout=INFO_OUTPUT, stderr="")

        details = adapter.get_details("htop")

        assert details.name == "htop"
        assert details.repository == "extra"
        assert details.homepage == "https://htop.dev/"
        assert details.license == "GPL-2.0-only"
        assert details.dependencies == ["libncursesw.so=6-64", "libnl", "lm_sensors"]


class TestPacmanActions:

    @patch('ware.command.run_with_spinner', return_value=0)
    def test_install(self, mock_spinner, adapter):
        assert adapter.install("htop") == (True, "")
        mock_spinner.assert_called_once_with(['sudo', 'pacman', '-S', '--noconfirm', 'htop'], False, cwd=None)

    @patch('ware.command.run_with_spinner', return_value=0)
    def test_install_blocks_invalid_names(self, mock_spinner, adapter):
        success, msg = adapter.install("htop; rm -rf /")

        assert success is False
        assert "Invalid package name" in msg
        mock_spinner.assert_not_called()

    @patch('ware.command.run_with_spinner', return_value=0)
    def test_install_needed(self, mock_spinner, adapter):
        adapter.install_needed(["ufw", "fail2ban"])
        mock_spinner.assert_called_once_with(
            ['sudo', 'pacman', '-S', '--needed', '--noconfirm', 'ufw', 'fail2ban'], False, cwd=None
        )

    @patch('ware.command.run_with_spinner', return_value=1)
    def test_remove_failure(self, mock_spinner, adapter):
        success, msg = adapter.remove("htop")

        assert success is False
        assert "exited with status 1" in msg
        assert mock_spinner.call_args[0][0] == ['sudo', 'pacman', '-Rns', '--noconfirm', 'htop']

    @patch('ware.command.run_with_spinner', return_value=0)
    def test_update(self, mock_spinner, adapter):
        adapter.update()
        assert mock_spinner.call_args[0][0] == ['sudo', 'pacman', '-Syu', '--noconfirm']

    @patch('ware.command.run_with_spinner', return_value=0)
    @patch('ware.command.subprocess.run')
    def test_autoremove(self, mock_run, mock_spinner, adapter):
        mock_run.return_value = Mock(returncode=0, stdout="libfoo\nlibbar\n", stderr="")

        assert adapter.autoremove() == (True, "Removed 2 orphaned package(s)")
        assert mock_spinner.call_args[0][0] == ['sudo', 'pacman', '-Rns', '--noconfirm', 'libfoo', 'libbar']

    @patch('ware.command.run_with_spinner', return_value=0)
    @patch('ware.command.subprocess.run')
    def test_autoremove_without_orphans(self, mock_run, mock_spinner, adapter):
        # pacman -Qtdq exits 1 when nothing matches
        mock_run.return_value = Mock(returncode=1, stdout="", stderr="")

        assert adapter.autoremove() == (True, "No orphaned packages")
        mock_spinner.assert_not_called()
