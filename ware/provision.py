#!/usr/bin/env python3
"""
SkywareOS Testing installer (skyware-setup)

Turns a fresh Arch install into SkywareOS: base packages, firewall, GPU
drivers, a desktop environment, Flathub apps and os-release branding.
"""

import argparse
import os
import shutil
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ware import ui
from ware.adapters.flatpak_adapter import FlatpakAdapter
from ware.adapters.pacman_adapter import PacmanAdapter
from ware.command import run_action
from ware.config import WareConfig
from ware.display_managers import DisplayManagerControl
from ware.errors import InstallerError, PermissionDenied, WareError
from ware.logger import get_logger

BASE_PACKAGES = [
    "flatpak", "cmatrix", "fastfetch", "btop", "zsh",
    "alacritty", "kitty", "curl", "git", "base-devel",
]

FIREWALL_PACKAGES = ["ufw", "fail2ban"]

FLATPAK_APPS = [
    "com.discordapp.Discord",
    "com.spotify.Client",
    "com.valvesoftware.Steam",
]

OS_RELEASE_BACKUP_SUFFIX = ".skyware.bak"

OS_RELEASE = """NAME="SkywareOS"
PRETTY_NAME="SkywareOS"
ID=skywareos
ID_LIKE=arch
VERSION="Testing"
VERSION_ID=Testing
HOME_URL="https://github.com/SkywareSW"
LOGO=skywareos
"""


@dataclass(frozen=True)
class Choice:
    key: str
    title: str
    packages: List[str]
    display_manager: Optional[str] = None


GPU_CHOICES = [
    Choice("nvidia-open", "NVIDIA (Modern)", ["nvidia-open", "nvidia-utils", "nvidia-settings"]),
    Choice("nvidia-dkms", "NVIDIA", ["nvidia-dkms", "nvidia-utils", "nvidia-settings"]),
    Choice("amd", "AMD", ["xf86-video-amdgpu", "mesa"]),
    Choice("intel", "Intel", ["xf86-video-intel", "mesa"]),
    Choice("vmware", "VMware", ["open-vm-tools", "mesa"]),
]

DESKTOP_CHOICES = [
    Choice("kde", "KDE Plasma", ["plasma", "kde-applications", "sddm"], display_manager="sddm"),
    Choice("gnome", "GNOME", ["gnome", "gnome-extra", "gdm"], display_manager="gdm"),
]


def pick_choice(title: str, choices: List[Choice], selected: Optional[str],
                prompt: Callable[[str], str] = input) -> Optional[Choice]:
    """
    Resolve a choice by key or 1-based menu number, prompting when not given

    Returns None for 'none' or an invalid answer.
    """
    if selected is None:
        print(title)
        for index, choice in enumerate(choices, start=1):
            print(f"{index}) {choice.title}")
        numbers = "/".join(str(i) for i in range(1, len(choices) + 1))
        selected = prompt(f"Enter choice ({numbers}): ").strip()

    by_key: Dict[str, Choice] = {c.key: c for c in choices}
    by_key.update({str(i): c for i, c in enumerate(choices, start=1)})
    return by_key.get(selected.strip().lower())


def brand_os_release(path: str, content: str = OS_RELEASE,
                     config: Optional[WareConfig] = None) -> Optional[Path]:
    """
    Overwrite an os-release file with SkywareOS branding

    The original file is copied to '<path>.skyware.bak' the first time only,
    so re-running never replaces the pristine copy with branded content.
    When config carries a sudo prefix the content is staged in a temporary
    file and both copies run through the privilege-escalation command.

    Returns:
        The backup path if it was created by this call

    Raises:
        PermissionDenied: if the file or its backup cannot be written
    """
    if config is not None and config.sudo:
        return _brand_privileged(path, content, config)

    target = Path(path)
    backup = Path(path + OS_RELEASE_BACKUP_SUFFIX)
    created = None
    try:
        if target.exists() and not backup.exists():
            shutil.copyfile(target, backup)
            created = backup
        target.write_text(content, encoding="utf-8")
    except PermissionError as e:
        raise PermissionDenied(f"Cannot write {path}: {e}") from e
    return created


def _privileged_copy(config: WareConfig, source: str, dest: str):
    success, message = run_action(config.privileged(["cp", source, dest]), config.show_spinner)
    if not success:
        raise PermissionDenied(f"Cannot write {dest}: {message}")


def _brand_privileged(path: str, content: str, config: WareConfig) -> Optional[Path]:
    target = Path(path)
    backup = Path(path + OS_RELEASE_BACKUP_SUFFIX)
    created = None
    if target.exists() and not backup.exists():
        _privileged_copy(config, path, str(backup))
        created = backup

    try:
        fd, staged = tempfile.mkstemp(prefix="ware-os-release-", dir=config.build_dir)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.chmod(staged, 0o644)
    except OSError as e:
        raise InstallerError(f"Cannot stage branding for {path}: {e}") from e

    try:
        # cp writes through a symlinked target instead of replacing the link
        _privileged_copy(config, staged, path)
    finally:
        os.unlink(staged)
    return created


class Provisioner:
    """Runs the installer steps in order, stopping at the first failure"""

    def __init__(self, config: WareConfig, gpu: Optional[str] = None, desktop: Optional[str] = None,
                 flatpak_apps: bool = True, branding: bool = True,
                 os_release_paths: Optional[List[str]] = None,
                 prompt: Callable[[str], str] = input):
        self.config = config
        self.gpu = gpu
        self.desktop = desktop
        self.flatpak_apps = flatpak_apps
        self.branding = branding
        self.os_release_paths = os_release_paths or [config.os_release, "/usr/lib/os-release"]
        self.prompt = prompt
        self.pacman = PacmanAdapter(config)
        self.flatpak = FlatpakAdapter(config)
        self.action_log = get_logger(config.log_file)

    def _act(self, argv: List[str], privileged: bool = True):
        if privileged:
            argv = self.config.privileged(argv)
        success, message = run_action(argv, self.config.show_spinner)
        if not success:
            raise InstallerError(message)

    def _install(self, packages: List[str]):
        success, message = self.pacman.install_needed(packages)
        if not success:
            raise InstallerError(message)

    def steps(self) -> List[tuple]:
        steps = [
            ("Installing base packages", self.install_base),
            ("Configuring firewall", self.configure_firewall),
            ("Installing GPU drivers", self.install_gpu_drivers),
            ("Installing desktop environment", self.install_desktop),
        ]
        if self.flatpak_apps:
            steps.append(("Installing Flatpak apps", self.install_flatpak_apps))
        if self.branding:
            steps.append(("Applying SkywareOS branding", self.apply_branding))
        return steps

    def run(self) -> bool:
        print("== SkywareOS Testing setup starting ==")
        for title, step in self.steps():
            print(f"\n== {title} ==")
            try:
                step()
            except WareError as e:
                ui.error(f"{title} failed: {e}")
                self.action_log.log_error(f"Setup step failed: {title}", e)
                return False

        self.action_log.log_event("SkywareOS setup completed")
        print("\n== SkywareOS full setup complete ==")
        print("Log out or reboot required")
        return True

    def install_base(self):
        success, message = self.pacman.update()
        if not success:
            raise InstallerError(message)
        self._install(BASE_PACKAGES)

    def configure_firewall(self):
        self._install(FIREWALL_PACKAGES)
        self._act(["systemctl", "enable", "ufw"])
        self._act(["systemctl", "enable", "fail2ban"])
        self._act(["ufw", "enable"])

    def install_gpu_drivers(self):
        choice = pick_choice("Select your GPU driver:", GPU_CHOICES, self.gpu, self.prompt)
        if choice is None:
            ui.warn("No valid choice, skipping GPU drivers.")
            return
        ui.info(f"Installing {choice.title} drivers...")
        self._install(choice.packages)

    def install_desktop(self):
        choice = pick_choice("Select your Desktop Environment / Compositor:",
                             DESKTOP_CHOICES, self.desktop, self.prompt)
        if choice is None:
            ui.warn("No valid choice, skipping DE installation.")
            return
        ui.info(f"Installing {choice.title}...")
        self._install(choice.packages)
        if choice.display_manager and not DisplayManagerControl(self.config).switch(choice.display_manager):
            raise InstallerError(f"Could not enable {choice.display_manager}")

    def install_flatpak_apps(self):
        success, message = self.flatpak.ensure_remote()
        if not success:
            raise InstallerError(message)
        self._act(["flatpak", "install", "-y", self.config.flatpak_remote] + FLATPAK_APPS,
                  privileged=False)

    def apply_branding(self):
        # /etc/os-release is usually a link to /usr/lib/os-release
        seen = set()
        for path in self.os_release_paths:
            resolved = Path(path).resolve()
            if resolved in seen:
                continue
            seen.add(resolved)
            backup = brand_os_release(path, config=self.config)
            if backup is not None:
                ui.info(f"Saved original {path} to {backup}")
        ui.success("SkywareOS Finalization Complete")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description='SkywareOS Testing installer',
        prog='skyware-setup'
    )
    parser.add_argument('--gpu', choices=[c.key for c in GPU_CHOICES] + ['none'],
                        help='GPU driver to install (prompted if omitted)')
    parser.add_argument('--de', dest='desktop', choices=[c.key for c in DESKTOP_CHOICES] + ['none'],
                        help='Desktop environment to install (prompted if omitted)')
    parser.add_argument('--skip-flatpak', action='store_true', help='Do not install Flathub apps')
    parser.add_argument('--skip-branding', action='store_true', help='Leave os-release untouched')
    parser.add_argument('--no-spinner', action='store_true', help='Disable the progress spinner')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    config = WareConfig.from_env(spinner=False if args.no_spinner else None)
    provisioner = Provisioner(
        config,
        gpu=args.gpu,
        desktop=args.desktop,
        flatpak_apps=not args.skip_flatpak,
        branding=not args.skip_branding,
    )
    return 0 if provisioner.run() else 1


if __name__ == '__main__':
    sys.exit(main())
