"""
Display manager control for 'ware dm'

Only one display manager may be enabled at a time: switching disables every
other known manager before enabling the requested one.
"""

import os
from dataclasses import dataclass
from typing import List, Optional

from ware import ui
from ware.command import run_action, run_cmd
from ware.config import WareConfig

KNOWN_DISPLAY_MANAGERS = ["sddm", "gdm", "lightdm", "ly", "greetd"]
DISPLAY_MANAGER_LINK = "/etc/systemd/system/display-manager.service"


@dataclass
class DisplayManagerState:
    name: str
    installed: bool
    enabled: bool
    active: bool


class DisplayManagerControl:

    def __init__(self, config: WareConfig, known: Optional[List[str]] = None,
                 link_path: str = DISPLAY_MANAGER_LINK):
        self.config = config
        self.known = list(known or KNOWN_DISPLAY_MANAGERS)
        self.link_path = link_path

    def _unit(self, name: str) -> str:
        return f"{name}.service"

    def is_installed(self, name: str) -> bool:
        result = run_cmd(['systemctl', 'list-unit-files', '--no-legend', self._unit(name)], timeout=10)
        return result.ok and self._unit(name) in result.stdout

    def state(self, name: str) -> DisplayManagerState:
        enabled = run_cmd(['systemctl', 'is-enabled', self._unit(name)], timeout=10)
        active = run_cmd(['systemctl', 'is-active', self._unit(name)], timeout=10)
        return DisplayManagerState(
            name=name,
            installed=self.is_installed(name),
            enabled=enabled.ok,
            active=active.ok,
        )

    def list(self) -> List[DisplayManagerState]:
        states = [self.state(name) for name in self.known]
        for s in states:
            if not s.installed:
                print(f"  {s.name:<10} not installed")
                continue
            flags = []
            if s.enabled:
                flags.append(f"{ui.GREEN}enabled{ui.RESET}")
            if s.active:
                flags.append(f"{ui.GREEN}active{ui.RESET}")
            print(f"  {s.name:<10} installed {' '.join(flags)}".rstrip())
        return states

    def current(self) -> Optional[str]:
        """Name of the display manager systemd will start, if any"""
        try:
            target = os.readlink(self.link_path)
        except OSError:
            target = None

        if target:
            unit = os.path.basename(target)
            if unit.endswith(".service"):
                return unit[:-len(".service")]

        for name in self.known:
            if run_cmd(['systemctl', 'is-enabled', self._unit(name)], timeout=10).ok:
                return name
        return None

    def status(self) -> Optional[str]:
        name = self.current()
        if name is None:
            ui.warn("No display manager is enabled")
            return None

        state = self.state(name)
        running = "running" if state.active else "not running"
        print(f"{ui.CYAN}Display manager{ui.RESET}: {name} ({running})")
        return name

    def switch(self, name: str) -> bool:
        """Enable name as the only display manager"""
        if name not in self.known:
            ui.error(f"Unknown display manager: {name}")
            ui.hint(f"Known: {', '.join(self.known)}")
            return False

        if not self.is_installed(name):
            ui.error(f"{name} is not installed")
            ui.hint(f"Install it with: ware install {name}")
            return False

        for other in self.known:
            if other == name:
                continue
            # exit status ignored: the unit may not exist on this system
            run_action(self.config.privileged(['systemctl', 'disable', self._unit(other)]),
                       show_spinner=False)

        success, message = run_action(
            self.config.privileged(['systemctl', 'enable', '--force', self._unit(name)]),
            show_spinner=False
        )
        if not success:
            ui.error(f"Could not enable {name}: {message}")
            return False

        ui.success(f"Switched display manager to {name}")
        ui.hint("Reboot to use the new login screen")
        return True
