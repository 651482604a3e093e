"""
Tests for display manager switching
"""

import os
import pytest
from unittest.mock import call, patch
from ware.command import CmdResult
from ware.display_managers import DisplayManagerControl


def unit_files(*installed):
    """Fake systemctl: units in installed exist, nothing is enabled"""
    def run(argv, timeout=None):
        unit = argv[-1]
        if argv[1] == 'list-unit-files' and unit[:-len('.service')] in installed:
            return CmdResult(argv, 0, f"{unit} disabled disabled\n", "")
        if argv[1] == 'list-unit-files':
            return CmdResult(argv, 0, "", "")
        return CmdResult(argv, 1, "", "")
    return run


@pytest.fixture
def control(config, tmp_path):
    return DisplayManagerControl(config, link_path=str(tmp_path / "display-manager.service"))


@pytest.mark.unit
@patch('ware.display_managers.run_action', return_value=(True, ""))
@patch('ware.display_managers.run_cmd', side_effect=unit_files("sddm", "gdm"))
def test_switch_disables_others_first(mock_cmd, mock_action, control):
    assert control.switch("gdm") is True

    assert mock_action.call_args_list == [
        call(['systemctl', 'disable', 'sddm.service'], show_spinner=False),
        call(['systemctl', 'disable', 'lightdm.service'], show_spinner=False),
        call(['systemctl', 'disable', 'ly.service'], show_spinner=False),
        call(['systemctl', 'disable', 'greetd.service'], show_spinner=False),
        call(['systemctl', 'enable', '--force', 'gdm.service'], show_spinner=False),
    ]


@pytest.mark.unit
@patch('ware.display_managers.run_action', return_value=(True, ""))
@patch('ware.display_managers.run_cmd', side_effect=unit_files("sddm"))
def test_switch_to_uninstalled_manager(mock_cmd, mock_action, control, capsys):
    assert control.switch("gdm") is False

    assert "gdm is not installed" in capsys.readouterr().err
    mock_action.assert_not_called()


@pytest.mark.unit
@patch('ware.display_managers.run_action')
@patch('ware.display_managers.run_cmd')
def test_switch_to_unknown_manager(mock_cmd, mock_action, control):
    assert control.switch("xdm") is False
    mock_cmd.assert_not_called()
    mock_action.assert_not_called()


@pytest.mark.unit
@patch('ware.display_managers.run_action')
@patch('ware.display_managers.run_cmd', side_effect=unit_files("sddm", "gdm"))
def test_switch_reports_enable_failure(mock_cmd, mock_action, control):
    mock_action.side_effect = [(False, "")] * 4 + [(False, "systemctl exited with status 1")]
    assert control.switch("gdm") is False


@pytest.mark.unit
@patch('ware.display_managers.run_cmd', side_effect=unit_files())
def test_current_follows_the_link(mock_cmd, control):
    os.symlink("/usr/lib/systemd/system/sddm.service", control.link_path)
    assert control.current() == "sddm"


@pytest.mark.unit
@patch('ware.display_managers.run_cmd', side_effect=unit_files())
def test_current_without_display_manager(mock_cmd, control):
    assert control.current() is None
    assert control.status() is None


@pytest.mark.unit
@patch('ware.display_managers.run_cmd', side_effect=unit_files("sddm"))
def test_list(mock_cmd, control, capsys):
    states = control.list()

    assert [s.name for s in states] == ["sddm", "gdm", "lightdm", "ly", "greetd"]
    assert states[0].installed is True
    assert states[1].installed is False
    assert "gdm        not installed" in capsys.readouterr().out
