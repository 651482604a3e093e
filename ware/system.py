"""
System-wide ware commands: status, doctor and maintenance passthroughs
"""

import os
import platform
import shutil
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ware import ui
from ware.command import run_action, run_cmd
from ware.config import WareConfig
from ware.dispatcher import Dispatcher
from ware.errors import BackendUnavailable
from ware.logger import LoggerManager
from ware.models import Backend

MIRRORLIST = "/etc/pacman.d/mirrorlist"


@dataclass
class SystemStatus:
    """Snapshot printed by 'ware status'"""
    kernel: str
    uptime: str
    pending_updates: Optional[int]
    firewall_active: bool
    disk_usage: str
    memory_usage: str
    desktop: str
    channel: str
    version: str


def _run(argv: List[str], timeout: int = 30) -> Tuple[int, str]:
    result = run_cmd(argv, timeout=timeout)
    return result.returncode, result.stdout


def _format_bytes(size: float) -> str:
    for unit in ("B", "KiB", "MiB", "GiB", "TiB"):
        if size < 1024 or unit == "TiB":
            return f"{size:.1f} {unit}" if unit != "B" else f"{int(size)} B"
        size /= 1024
    return f"{size:.1f} TiB"


def format_uptime(seconds: float) -> str:
    minutes = int(seconds // 60)
    days, minutes = divmod(minutes, 60 * 24)
    hours, minutes = divmod(minutes, 60)
    parts = []
    if days:
        parts.append(f"{days}d")
    if hours or days:
        parts.append(f"{hours}h")
    parts.append(f"{minutes}m")
    return " ".join(parts)


def read_uptime(path: str = "/proc/uptime") -> str:
    try:
        with open(path, "r") as f:
            return format_uptime(float(f.read().split()[0]))
    except (OSError, ValueError, IndexError):
        return "unknown"


def read_memory_usage(path: str = "/proc/meminfo") -> str:
    fields: Dict[str, int] = {}
    try:
        with open(path, "r") as f:
            for line in f:
                key, _, rest = line.partition(":")
                value = rest.strip().split()
                if value:
                    fields[key] = int(value[0]) * 1024
    except (OSError, ValueError):
        return "unknown"

    total = fields.get("MemTotal")
    available = fields.get("MemAvailable")
    if not total or available is None:
        return "unknown"
    used = total - available
    return f"{_format_bytes(used)} / {_format_bytes(total)} ({used * 100 // total}%)"


def read_disk_usage(path: str = "/") -> str:
    try:
        usage = shutil.disk_usage(path)
    except OSError:
        return "unknown"
    percent = usage.used * 100 // usage.total if usage.total else 0
    return f"{_format_bytes(usage.used)} / {_format_bytes(usage.total)} ({percent}%)"


def pending_updates() -> Optional[int]:
    """Count pending repo updates with checkupdates (pacman-contrib)"""
    if shutil.which("checkupdates") is None:
        return None
    returncode, output = _run(["checkupdates"], timeout=120)
    # checkupdates exits 2 when there is nothing to update
    if returncode == 2:
        return 0
    if returncode != 0:
        return None
    return len([line for line in output.split("\n") if line.strip()])


def current_desktop() -> str:
    return (os.environ.get("XDG_CURRENT_DESKTOP")
            or os.environ.get("DESKTOP_SESSION")
            or "unknown")


def service_state(service: str) -> Tuple[bool, bool]:
    """Return (enabled, active) for a systemd unit"""
    enabled, _ = _run(["systemctl", "is-enabled", service], timeout=10)
    active, _ = _run(["systemctl", "is-active", service], timeout=10)
    return enabled == 0, active == 0


def collect_status(config: WareConfig) -> SystemStatus:
    _, active = service_state("ufw")
    return SystemStatus(
        kernel=platform.release(),
        uptime=read_uptime(),
        pending_updates=pending_updates(),
        firewall_active=active,
        disk_usage=read_disk_usage("/"),
        memory_usage=read_memory_usage(),
        desktop=current_desktop(),
        channel=config.channel,
        version=config.version,
    )


def print_status(status: SystemStatus):
    updates = "unknown" if status.pending_updates is None else str(status.pending_updates)
    firewall = f"{ui.GREEN}active{ui.RESET}" if status.firewall_active else f"{ui.RED}inactive{ui.RESET}"
    rows = [
        ("Kernel", status.kernel),
        ("Uptime", status.uptime),
        ("Updates", updates),
        ("Firewall", firewall),
        ("Disk", status.disk_usage),
        ("Memory", status.memory_usage),
        ("Desktop", status.desktop),
        ("Channel", status.channel),
        ("Version", status.version),
    ]
    for key, value in rows:
        print(f"{ui.CYAN}{key:<10}{ui.RESET}: {value}")


class SystemMaintenance:
    """Maintenance commands that fan out over every backend"""

    def __init__(self, config: WareConfig, dispatcher: Dispatcher, action_log: LoggerManager):
        self.config = config
        self.dispatcher = dispatcher
        self.action_log = action_log

    @property
    def pacman(self):
        adapter = self.dispatcher.adapter_for(Backend.SYSTEM)
        if adapter is None or not adapter.is_available():
            raise BackendUnavailable("pacman")
        return adapter

    @property
    def flatpak(self):
        return self.dispatcher.adapter_for(Backend.UNIVERSAL)

    def update(self) -> bool:
        """Run every available backend's own upgrade routine"""
        ok = True
        for adapter in self.dispatcher.adapters:
            if not adapter.is_available():
                continue
            ui.info(f"Updating {adapter.label} packages...")
            success, message = adapter.update()
            if not success:
                ui.warn(f"{adapter.label} update failed: {message}")
                ok = False
        self.action_log.log_event("System updated")
        return ok

    def clean(self) -> bool:
        ok = True
        success, message = self.pacman.clean_cache()
        if not success:
            ui.warn(f"pacman cache clean failed: {message}")
            ok = False
        if self.flatpak is not None and self.flatpak.is_available():
            success, message = self.flatpak.remove_unused()
            if not success:
                ui.warn(f"flatpak cleanup failed: {message}")
                ok = False
        self.action_log.log_event("Cache cleaned")
        return ok

    def autoremove(self) -> bool:
        success, message = self.pacman.autoremove()
        if success:
            ui.success(message)
        else:
            ui.error(message)
        self.action_log.log_event("Autoremove executed")
        return success

    def sync_mirrors(self) -> bool:
        """Rank the 10 most recently synced mirrors by speed"""
        success, message = self.pacman.install_needed(["reflector"])
        if not success:
            ui.error(f"Could not install reflector: {message}")
            return False

        success, message = run_action(self.config.privileged([
            "reflector", "--latest", "10", "--sort", "rate", "--save", MIRRORLIST
        ]), self.config.show_spinner)
        if not success:
            ui.error(f"Mirror sync failed: {message}")
            return False

        self.action_log.log_event("Mirrors synced")
        ui.success("Mirrors synced")
        return True

    def doctor(self) -> bool:
        """Report package database, Flatpak and firewall health without repairing"""
        healthy = True

        ui.info("Checking package database integrity...")
        success, _ = self.pacman.check_database()
        healthy &= success

        print()
        ui.info("Checking Flatpak integrity...")
        if self.flatpak is not None and self.flatpak.is_available():
            success, _ = self.flatpak.repair_check()
            healthy &= success
        else:
            ui.warn("Flatpak is not installed")

        print()
        ui.info("Checking firewall status...")
        healthy &= report_firewall()

        print()
        if healthy:
            ui.success("Diagnostics complete.")
        else:
            ui.warn("Diagnostics complete with problems.")
        return healthy


def report_firewall() -> bool:
    if shutil.which("ufw") is None:
        ui.error("Firewall (ufw) is NOT installed")
        ui.hint("Install with: sudo pacman -S ufw")
        return False

    enabled, active = service_state("ufw")
    if not enabled:
        ui.warn("Firewall (ufw) is installed but NOT enabled")
        ui.hint("Enable it with: sudo systemctl enable ufw")
        return False
    if not active:
        ui.warn("Firewall (ufw) is installed but NOT running")
        ui.hint("Start it with: sudo systemctl start ufw")
        return False

    ui.success("Firewall (ufw) is installed and ACTIVE")
    return True
