"""
Power profiles for 'ware power'

A profile is a fixed triple: the package providing its tooling, whether the
tlp power-management service runs, and the cpupower frequency governor.
Applying a profile sets all three regardless of the previous state.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ware import ui
from ware.adapters.pacman_adapter import PacmanAdapter
from ware.command import run_action, run_cmd
from ware.config import WareConfig

POWER_SERVICE = "tlp"


@dataclass(frozen=True)
class PowerProfile:
    name: str
    title: str
    package: str
    service_enabled: bool
    governor: str


PROFILES: Dict[str, PowerProfile] = {
    "balanced": PowerProfile("balanced", "Balanced", "tlp", True, "schedutil"),
    "performance": PowerProfile("performance", "Performance", "cpupower", False, "performance"),
    "battery": PowerProfile("battery", "Battery Saver", "tlp", True, "powersave"),
}


class PowerManager:
    """Applies and reports power profiles"""

    def __init__(self, config: WareConfig, pacman: Optional[PacmanAdapter] = None):
        self.config = config
        self.pacman = pacman or PacmanAdapter(config)

    def _act(self, argv) -> Tuple[bool, str]:
        return run_action(self.config.privileged(argv), self.config.show_spinner)

    def apply(self, name: str) -> bool:
        profile = PROFILES.get(name)
        if profile is None:
            ui.warn("Usage: ware power <balanced|performance|battery|status>")
            return False

        ui.info(f"Setting {profile.title} mode...")
        ok = True

        success, message = self.pacman.install_needed([profile.package])
        if not success:
            ui.warn(f"Could not install {profile.package}: {message}")
            ok = False

        if profile.service_enabled:
            success, message = self._act(['systemctl', 'enable', '--now', POWER_SERVICE])
        else:
            success, message = self._act(['systemctl', 'disable', '--now', POWER_SERVICE])
        if not success:
            ui.warn(f"Could not update {POWER_SERVICE} service: {message}")
            ok = False

        success, message = self._act(['cpupower', 'frequency-set', '-g', profile.governor])
        if not success:
            ui.warn(f"Could not set CPU governor to {profile.governor}: {message}")
            ok = False

        if ok:
            ui.success(f"{profile.title} profile applied")
        else:
            ui.error(f"{profile.title} profile applied with errors")
        return ok

    def status(self) -> Optional[str]:
        """Print and return cpupower's current policy line"""
        result = run_cmd(['cpupower', 'frequency-info', '-p'], timeout=10)
        print(f"{ui.CYAN}Power Profile Status:{ui.RESET}")
        if not result.ok:
            ui.warn("cpupower is not available")
            return None

        for line in result.stdout.split('\n'):
            if 'current policy' in line or 'governor' in line:
                print(line.rstrip())
                return line.strip()
        print(result.stdout.strip())
        return result.stdout.strip()
