"""
Runtime configuration for ware

A WareConfig is built once per invocation and passed to every adapter,
the dispatcher and the system commands.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

VERSION = "0.7.0"

DEFAULT_LOG_FILE = "/var/log/ware.log"
DEFAULT_OS_RELEASE = "/etc/os-release"
AUR_HELPER_REPO = "https://aur.archlinux.org/paru.git"
FLATHUB_REPO_URL = "https://flathub.org/repo/flathub.flatpakrepo"


@dataclass(frozen=True)
class Channel:
    """A release track and the installer that provisions it"""
    name: str
    repo_url: str
    script: str


CHANNELS: Dict[str, Channel] = {
    "testing": Channel(
        name="Testing",
        repo_url="https://github.com/SkywareSW/SkywareOS-Testing",
        script="skyware-testingsetup.sh",
    ),
    "stable": Channel(
        name="Stable",
        repo_url="https://github.com/SkywareSW/SkywareOS",
        script="skyware-setup.sh",
    ),
}


def _default_sudo() -> List[str]:
    if hasattr(os, "geteuid") and os.geteuid() == 0:
        return []
    return ["sudo"]


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")


@dataclass
class WareConfig:
    """Context object shared by every ware command"""
    log_file: str = DEFAULT_LOG_FILE
    json_mode: bool = False
    spinner: bool = True
    verbose: bool = False
    sudo: List[str] = field(default_factory=_default_sudo)
    os_release: str = DEFAULT_OS_RELEASE
    flatpak_remote: str = "flathub"
    aur_helper_repo: str = AUR_HELPER_REPO
    build_dir: Optional[str] = None
    version: str = VERSION

    @classmethod
    def from_env(cls, **overrides) -> "WareConfig":
        """Build a config from WARE_* environment variables and explicit overrides"""
        values = {}
        if os.environ.get("WARE_LOG_FILE"):
            values["log_file"] = os.environ["WARE_LOG_FILE"]
        if os.environ.get("WARE_OS_RELEASE"):
            values["os_release"] = os.environ["WARE_OS_RELEASE"]
        if os.environ.get("WARE_BUILD_DIR"):
            values["build_dir"] = os.environ["WARE_BUILD_DIR"]
        if _env_flag("WARE_NO_SPINNER"):
            values["spinner"] = False
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @property
    def show_spinner(self) -> bool:
        return self.spinner and not self.json_mode

    def privileged(self, argv: List[str]) -> List[str]:
        """Prefix argv with the privilege-escalation command, if any"""
        return list(self.sudo) + list(argv)

    def read_os_release(self) -> Dict[str, str]:
        """Parse the os-release file into a dict, empty if unreadable"""
        values = {}
        try:
            text = Path(self.os_release).read_text(encoding="utf-8")
        except OSError:
            return values

        for line in text.splitlines():
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            values[key.strip()] = value.strip().strip('"')
        return values

    @property
    def channel(self) -> str:
        """Release channel the system currently follows"""
        return self.read_os_release().get("VERSION", "Testing")

    def channel_info(self, name: Optional[str] = None) -> Channel:
        key = (name or self.channel).strip().lower()
        if key not in CHANNELS:
            raise KeyError(f"Unknown channel: {name or self.channel}")
        return CHANNELS[key]
