"""
Tests for the ware action log
"""

import re
import pytest
from ware import logger as ware_logger
from ware.logger import LoggerManager, get_logger

LINE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} - (.*)$")


def messages(path):
    with open(path, "r", encoding="utf-8") as f:
        return [LINE.match(line.rstrip("\n")).group(1) for line in f]


@pytest.fixture
def log_path(tmp_path):
    return str(tmp_path / "log" / "ware.log")


@pytest.mark.unit
def test_install_lines(log_path):
    manager = LoggerManager(log_path)
    manager.log_install_attempt("htop")
    manager.log_install_success("htop", "pacman")
    manager.log_install_failure("ghost-package")
    manager.close()

    assert messages(log_path) == [
        "Install requested: htop",
        "Installed via pacman: htop",
        "FAILED install: ghost-package",
    ]


@pytest.mark.unit
def test_remove_lines(log_path):
    manager = LoggerManager(log_path)
    manager.log_uninstall_attempt("discord")
    manager.log_uninstall_success("discord", "flatpak")
    manager.log_uninstall_failure("ghost-package")
    manager.close()

    assert messages(log_path) == [
        "Remove requested: discord",
        "Removed via flatpak: discord",
        "FAILED remove: ghost-package",
    ]


@pytest.mark.unit
def test_log_is_appended(log_path):
    first = LoggerManager(log_path)
    first.log_event("System updated")
    first.close()

    second = LoggerManager(log_path)
    second.log_event("Cache cleaned")
    second.close()

    assert messages(log_path) == ["System updated", "Cache cleaned"]


@pytest.mark.unit
def test_log_error_includes_exception(log_path):
    manager = LoggerManager(log_path)
    manager.log_error("paru bootstrap failed", RuntimeError("makepkg exited with status 1"))
    manager.close()

    assert messages(log_path) == ["paru bootstrap failed: makepkg exited with status 1"]


@pytest.mark.unit
def test_fallback_when_log_dir_is_unusable(tmp_path, monkeypatch):
    home = tmp_path / "home"
    monkeypatch.setenv("HOME", str(home))
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")

    manager = LoggerManager(str(blocker / "ware.log"))
    manager.log_event("Mirrors synced")
    manager.close()

    fallback = home / ".local" / "state" / "ware" / "ware.log"
    assert manager.get_log_file_path() == str(fallback)
    assert messages(fallback) == ["Mirrors synced"]


@pytest.mark.unit
def test_read_log_file_tail(log_path):
    manager = LoggerManager(log_path)
    for i in range(5):
        manager.log_event(f"event {i}")

    tail = manager.read_log_file(lines=2)
    manager.close()

    assert tail.count("\n") == 2
    assert "event 3" in tail
    assert "event 4" in tail
    assert "event 2" not in tail


@pytest.mark.unit
def test_read_missing_log_file(log_path):
    manager = LoggerManager(log_path)
    manager.close()
    manager.log_path = log_path + ".missing"

    assert manager.read_log_file() == "Log file not found"


@pytest.mark.unit
def test_get_logger_is_shared(log_path):
    first = get_logger(log_path)
    assert get_logger() is first
    assert ware_logger._logger_instance is first
    first.close()
