import pytest
from unittest.mock import Mock

from ware import logger as ware_logger
from ware.adapters.base import PackageManagerAdapter
from ware.config import WareConfig
from ware.logger import LoggerManager


@pytest.fixture
def config(tmp_path):
    """Unprivileged, spinner-free config writing into tmp_path"""
    build_dir = tmp_path / "build"
    build_dir.mkdir()
    return WareConfig(
        log_file=str(tmp_path / "ware.log"),
        spinner=False,
        sudo=[],
        os_release=str(tmp_path / "os-release"),
        build_dir=str(build_dir),
    )


@pytest.fixture
def action_log(config):
    manager = LoggerManager(config.log_file)
    yield manager
    manager.close()


@pytest.fixture(autouse=True)
def reset_global_logger(monkeypatch):
    monkeypatch.setattr(ware_logger, "_logger_instance", None)


def make_adapter(backend, label, command=None, packages=None, installed=None,
                 action_ok=True, available=True):
    """Mock backend resolving the names in packages/installed to their IDs"""
    packages = packages or {}
    installed = installed or {}

    adapter = Mock(spec=PackageManagerAdapter)
    adapter.backend = backend
    adapter.label = label
    adapter.command = command or label
    adapter.is_available.return_value = available
    adapter.ensure_client.return_value = False
    adapter.resolve.side_effect = lambda name: packages.get(name)
    adapter.resolve_installed.side_effect = lambda name: installed.get(name)

    result = (True, "") if action_ok else (False, f"{adapter.command} exited with status 1")
    adapter.install.return_value = result
    adapter.remove.return_value = result
    adapter.update.return_value = (True, "")
    adapter.search.return_value = []
    adapter.get_details.return_value = None
    return adapter


@pytest.fixture
def backend_factory():
    return make_adapter
