"""
Package resolution for ware

Each request is tried against the backends in a fixed priority order:
pacman (system repositories), then Flatpak, then the AUR through paru.
The first backend that knows the package performs the action; a backend
whose action fails hands over to the next one.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from ware import ui
from ware.adapters.aur_adapter import AurAdapter
from ware.adapters.base import PackageManagerAdapter
from ware.adapters.flatpak_adapter import FlatpakAdapter
from ware.adapters.pacman_adapter import PacmanAdapter
from ware.config import WareConfig
from ware.errors import BootstrapFailure, PackageNotFound, WareError
from ware.logger import LoggerManager, get_logger
from ware.models import (
    Action,
    Backend,
    BackendResult,
    LogEntry,
    Outcome,
    PackageDetails,
    PackageInfo,
    PackageRequest,
)

logger = logging.getLogger(__name__)

Lookup = Callable[[str], Optional[str]]
Act = Callable[[str], Tuple[bool, str]]


def default_adapters(config: WareConfig) -> List[PackageManagerAdapter]:
    """Backends in resolution priority order"""
    pacman = PacmanAdapter(config)
    return [pacman, FlatpakAdapter(config), AurAdapter(config, system=pacman)]


class Dispatcher:
    """Routes package requests to the first backend able to serve them"""

    def __init__(self, config: WareConfig,
                 adapters: Optional[List[PackageManagerAdapter]] = None,
                 action_log: Optional[LoggerManager] = None):
        self.config = config
        self.adapters = adapters if adapters is not None else default_adapters(config)
        self.action_log = action_log or get_logger(config.log_file)

    def adapter_for(self, backend: Backend) -> Optional[PackageManagerAdapter]:
        for adapter in self.adapters:
            if adapter.backend is backend:
                return adapter
        return None

    def resolve_and_act(self, request: PackageRequest) -> LogEntry:
        """Serve a single request and return its terminal outcome"""
        handlers = {
            Action.INSTALL: self._install,
            Action.REMOVE: self._remove,
            Action.SEARCH: self._search,
            Action.INFO: self._info,
        }
        return handlers[request.action](request)

    # ==================== Mutating actions ====================

    def install(self, names: List[str]) -> List[LogEntry]:
        return self._batch(names, Action.INSTALL)

    def remove(self, names: List[str]) -> List[LogEntry]:
        return self._batch(names, Action.REMOVE)

    def interactive_install(self, prompt: Callable[[str], str] = input) -> List[LogEntry]:
        """Ask for a package name and install it"""
        name = prompt("Enter package name: ").strip()
        if not name:
            ui.warn("No package name given")
            return []
        return self.install([name])

    def _batch(self, names: List[str], action: Action) -> List[LogEntry]:
        entries = []
        for name in names:
            try:
                entries.append(self.resolve_and_act(PackageRequest(name, action)))
            except WareError as e:
                ui.error(f"{name}: {e}")
                entries.append(self._entry(action, name, Outcome.ERROR, message=str(e)))
        return entries

    def _install(self, request: PackageRequest) -> LogEntry:
        name = request.name
        self.action_log.log_install_attempt(name)
        attempts: List[BackendResult] = []

        for adapter in self.adapters:
            try:
                if adapter.ensure_client():
                    self.action_log.log_event(f"{adapter.command} installed")
            except BootstrapFailure as e:
                ui.error(str(e))
                self.action_log.log_error(f"{adapter.command} bootstrap failed", e)
                attempts.append(BackendResult(adapter.backend, Outcome.ERROR, str(e)))
                continue

            result = self._attempt(adapter, name, adapter.resolve, adapter.install, "install")
            attempts.append(result)
            if result.outcome is Outcome.SUCCESS:
                self.action_log.log_install_success(name, adapter.label)
                ui.success(f"Installed {name} via {adapter.label}")
                return self._entry(request.action, name, Outcome.SUCCESS,
                                   adapter.backend, result.message, attempts)

        outcome = self._final_outcome(attempts)
        if outcome is Outcome.NOT_FOUND:
            message = f"Package not found: {name}"
        else:
            message = f"Could not install {name}"
        ui.error(message)
        self.action_log.log_install_failure(name)
        return self._entry(request.action, name, outcome, message=message, attempts=attempts)

    def _remove(self, request: PackageRequest) -> LogEntry:
        name = request.name
        self.action_log.log_uninstall_attempt(name)
        attempts: List[BackendResult] = []

        # Removal never bootstraps a backend client: a missing client
        # cannot own an installed package.
        for adapter in self.adapters:
            result = self._attempt(adapter, name, adapter.resolve_installed, adapter.remove, "remove")
            attempts.append(result)
            if result.outcome is Outcome.SUCCESS:
                self.action_log.log_uninstall_success(name, adapter.label)
                ui.success(f"Removed {name} via {adapter.label}")
                return self._entry(request.action, name, Outcome.SUCCESS,
                                   adapter.backend, result.message, attempts)

        outcome = self._final_outcome(attempts)
        if outcome is Outcome.NOT_FOUND:
            message = f"{name} not installed"
        else:
            message = f"Could not remove {name}"
        ui.error(message)
        self.action_log.log_uninstall_failure(name)
        return self._entry(request.action, name, outcome, message=message, attempts=attempts)

    def _attempt(self, adapter: PackageManagerAdapter, name: str,
                 lookup: Lookup, act: Act, verb: str) -> BackendResult:
        if not adapter.is_available():
            return BackendResult(adapter.backend, Outcome.NOT_FOUND, f"{adapter.command} is not available")

        package_id = lookup(name)
        if package_id is None:
            logger.debug("%s: %s not found", adapter.label, name)
            return BackendResult(adapter.backend, Outcome.NOT_FOUND, f"{name} not found in {adapter.label}")

        if not self.config.json_mode:
            ui.info(f"{name} found in {adapter.label}, running {verb}...")

        success, message = act(package_id)
        if success:
            return BackendResult(adapter.backend, Outcome.SUCCESS, message or package_id)

        ui.warn(f"{adapter.label} could not {verb} {name}: {message}")
        return BackendResult(adapter.backend, Outcome.ERROR, message)

    @staticmethod
    def _final_outcome(attempts: List[BackendResult]) -> Outcome:
        if any(a.outcome is Outcome.ERROR for a in attempts):
            return Outcome.ERROR
        return Outcome.NOT_FOUND

    def _entry(self, action: Action, package: str, outcome: Outcome,
               backend: Optional[Backend] = None, message: str = "",
               attempts: Optional[List[BackendResult]] = None) -> LogEntry:
        return LogEntry(
            timestamp=datetime.now(),
            action=action,
            package=package,
            outcome=outcome,
            backend=backend,
            message=message,
            attempts=attempts or [],
        )

    # ==================== Read-only queries ====================

    def info(self, name: str) -> PackageDetails:
        """
        Details from the first backend that knows the package

        Raises:
            PackageNotFound: if no backend has it
        """
        order = [Backend.SYSTEM, Backend.COMMUNITY, Backend.UNIVERSAL]
        for backend in order:
            adapter = self.adapter_for(backend)
            if adapter is None or not adapter.is_available():
                continue
            details = adapter.get_details(name)
            if details is not None:
                return details
        raise PackageNotFound(name)

    def _info(self, request: PackageRequest) -> LogEntry:
        try:
            details = self.info(request.name)
        except PackageNotFound as e:
            ui.error(str(e))
            return self._entry(request.action, request.name, Outcome.NOT_FOUND, message=str(e))

        ui.print_details(details)
        backend = next((a.backend for a in self.adapters if a.label == details.package_manager), None)
        return self._entry(request.action, request.name, Outcome.SUCCESS, backend, details.package_id)

    def _search(self, request: PackageRequest) -> LogEntry:
        found = 0
        for adapter in self.adapters:
            if not adapter.is_available():
                ui.print_search_results(adapter.label, [])
                continue
            results = adapter.search(request.name)
            found += len(results)
            ui.print_search_results(adapter.label, results)

        outcome = Outcome.SUCCESS if found else Outcome.NOT_FOUND
        return self._entry(request.action, request.name, outcome, message=f"{found} result(s)")

    def search(self, term: str) -> LogEntry:
        return self.resolve_and_act(PackageRequest(term, Action.SEARCH))

    def list_installed(self) -> Dict[str, List[PackageInfo]]:
        """Installed packages per backend label, skipping unavailable backends"""
        installed = {}
        for adapter in self.adapters:
            if adapter.is_available():
                installed[adapter.label] = adapter.list_installed()
        return installed
