"""
Installer providers for 'ware setup', 'ware upgrade' and 'ware switch'

Every provider follows the same contract, driven by run_installer():

    packages  repo packages installed first (pacman --needed)
    fetch     download or clone whatever the installer needs into a work dir
    verify    check the fetched artifact before anything runs
    execute   apply the installer to the system

Providers are one-shot environment bootstraps; only SnapInstaller is
expected to be safe to run repeatedly.
"""

import os
import shutil
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from ware import ui
from ware.adapters.pacman_adapter import PacmanAdapter
from ware.command import run_action
from ware.config import Channel, WareConfig
from ware.dispatcher import Dispatcher
from ware.errors import InstallerError
from ware.logger import LoggerManager
from ware.models import Backend
from ware.verification import PackageVerifier

HYPRLAND_DOTS_URL = "https://raw.githubusercontent.com/JaKooLit/Hyprland-Dots/main/Distro-Hyprland.sh"
LAZYVIM_STARTER_URL = "https://github.com/LazyVim/starter"
NIRI_SETUP_URL = "https://github.com/acaibowlz/niri-setup.git"


@dataclass
class InstallContext:
    """Everything a provider may touch while it runs"""
    config: WareConfig
    dispatcher: Dispatcher
    action_log: LoggerManager
    home: Path
    workdir: Optional[Path] = None

    @property
    def pacman(self) -> PacmanAdapter:
        return self.dispatcher.adapter_for(Backend.SYSTEM)

    def act(self, argv: List[str], cwd: Optional[str] = None, privileged: bool = False):
        if privileged:
            argv = self.config.privileged(argv)
        return run_action(argv, self.config.show_spinner, cwd=cwd)


def git_clone(ctx: InstallContext, url: str, dest: Path) -> Path:
    success, message = ctx.act(['git', 'clone', '--depth', '1', url, str(dest)])
    if not success:
        raise InstallerError(f"Could not clone {url}: {message}")
    return dest


class InstallerProvider(ABC):
    """A named installer that can be fetched, verified and executed"""

    name: str = ""
    description: str = ""
    packages: List[str] = []

    def fetch(self, ctx: InstallContext) -> Optional[Path]:
        """Fetch the installer artifact into ctx.workdir; None if nothing to fetch"""
        return None

    def verify(self, ctx: InstallContext, artifact: Optional[Path]):
        """Raise InstallerError if the artifact must not be executed"""

    @abstractmethod
    def execute(self, ctx: InstallContext, artifact: Optional[Path]):
        pass


def _failed(provider: InstallerProvider, ctx: InstallContext, error: InstallerError) -> bool:
    ui.error(f"{provider.name} setup failed: {error}")
    ctx.action_log.log_error(f"{provider.name} setup failed", error)
    return False


def run_installer(provider: InstallerProvider, ctx: InstallContext) -> bool:
    """Run a provider through packages, fetch, verify and execute"""
    ctx.action_log.log_event(f"{provider.name} setup started")
    ui.info(f"Installing {provider.description or provider.name}...")

    try:
        workdir = Path(tempfile.mkdtemp(prefix=f"ware-{provider.name}-", dir=ctx.config.build_dir))
    except OSError as e:
        return _failed(provider, ctx, InstallerError(f"Could not create work directory: {e}"))

    ctx.workdir = workdir
    try:
        if provider.packages:
            success, message = ctx.pacman.install_needed(provider.packages)
            if not success:
                raise InstallerError(f"Could not install {', '.join(provider.packages)}: {message}")
            ui.success("Base packages installed")

        artifact = provider.fetch(ctx)
        provider.verify(ctx, artifact)
        provider.execute(ctx, artifact)
    except InstallerError as e:
        return _failed(provider, ctx, e)
    finally:
        shutil.rmtree(workdir, ignore_errors=True)
        ctx.workdir = None

    ctx.action_log.log_event(f"{provider.name} setup completed")
    ui.success(f"{provider.name} setup complete")
    return True


class RemoteScriptInstaller(InstallerProvider):
    """Downloads a shell script over HTTPS and runs it with sh"""

    url: str = ""
    checksum: Optional[str] = None

    def __init__(self, verifier: Optional[PackageVerifier] = None):
        self.verifier = verifier or PackageVerifier()

    def fetch(self, ctx: InstallContext) -> Optional[Path]:
        target = ctx.workdir / f"{self.name}-installer.sh"
        success, message, path = self.verifier.download_and_verify(
            self.url, expected_checksum=self.checksum, save_path=str(target)
        )
        if not success:
            raise InstallerError(message)
        print(message)
        return Path(path)

    def verify(self, ctx: InstallContext, artifact: Optional[Path]):
        if artifact is None or not artifact.exists() or artifact.stat().st_size == 0:
            raise InstallerError(f"Downloaded installer from {self.url} is empty")

    def execute(self, ctx: InstallContext, artifact: Optional[Path]):
        success, message = ctx.act(['sh', str(artifact)], cwd=str(ctx.workdir))
        if not success:
            raise InstallerError(message)


class HyprlandInstaller(RemoteScriptInstaller):
    name = "hyprland"
    description = "Hyprland environment"
    url = HYPRLAND_DOTS_URL
    packages = [
        "hyprland",
        "xdg-desktop-portal-hyprland",
        "waybar",
        "wofi",
        "kitty",
        "grim",
        "slurp",
        "wl-clipboard",
        "polkit-kde-agent",
        "pipewire",
        "wireplumber",
        "network-manager-applet",
        "thunar",
    ]


def backup_path(path: Path) -> Path:
    """First free 'path.bak', 'path.bak.1', ... next to path"""
    candidate = path.with_name(path.name + ".bak")
    index = 1
    while candidate.exists():
        candidate = path.with_name(f"{path.name}.bak.{index}")
        index += 1
    return candidate


class LazyVimInstaller(InstallerProvider):
    name = "lazyvim"
    description = "LazyVim"
    packages = ["neovim", "git"]

    def nvim_dirs(self, home: Path) -> List[Path]:
        return [
            home / ".config" / "nvim",
            home / ".local" / "share" / "nvim",
            home / ".local" / "state" / "nvim",
            home / ".cache" / "nvim",
        ]

    def fetch(self, ctx: InstallContext) -> Optional[Path]:
        return git_clone(ctx, LAZYVIM_STARTER_URL, ctx.workdir / "starter")

    def verify(self, ctx: InstallContext, artifact: Optional[Path]):
        if artifact is None or not (artifact / "init.lua").exists():
            raise InstallerError("LazyVim starter has no init.lua")

    def execute(self, ctx: InstallContext, artifact: Optional[Path]):
        for path in self.nvim_dirs(ctx.home):
            if path.exists() or path.is_symlink():
                target = backup_path(path)
                shutil.move(str(path), str(target))
                ui.info(f"Backed up {path} to {target}")

        config_dir = ctx.home / ".config" / "nvim"
        config_dir.parent.mkdir(parents=True, exist_ok=True)
        shutil.copytree(artifact, config_dir, ignore=shutil.ignore_patterns(".git"))
        ui.success("LazyVim installed.")
        ui.hint("Run nvim to finish installing plugins")


class NiriInstaller(InstallerProvider):
    name = "niri"
    description = "Niri environment"
    packages = ["gum"]

    def fetch(self, ctx: InstallContext) -> Optional[Path]:
        ui.warn("Installing alongside hyprland is NOT recommended.")
        return git_clone(ctx, NIRI_SETUP_URL, ctx.workdir / "niri-setup")

    def verify(self, ctx: InstallContext, artifact: Optional[Path]):
        if artifact is None or not (artifact / "setup.sh").is_file():
            raise InstallerError("niri-setup has no setup.sh")

    def execute(self, ctx: InstallContext, artifact: Optional[Path]):
        script = artifact / "setup.sh"
        script.chmod(0o755)
        success, message = ctx.act([str(script)], cwd=str(artifact))
        if not success:
            raise InstallerError(message)

        config_src = artifact / "niri"
        if config_src.is_dir():
            files = [str(p) for p in sorted(config_src.iterdir())]
            ctx.act(['mkdir', '-p', '/etc/niri'], privileged=True)
            success, message = ctx.act(['cp', '-r'] + files + ['/etc/niri/'], privileged=True)
            if not success:
                raise InstallerError(f"Could not install niri configuration: {message}")

        ui.warn("Reboot recommended")


class SnapInstaller(InstallerProvider):
    """snapd from the AUR, its socket, and the classic /snap link"""

    name = "snap"
    description = "Snap support"

    def __init__(self, snap_link: str = "/snap", snap_root: str = "/var/lib/snapd/snap"):
        self.snap_link = snap_link
        self.snap_root = snap_root

    def _installed(self, ctx: InstallContext) -> bool:
        for adapter in ctx.dispatcher.adapters:
            if adapter.backend is Backend.UNIVERSAL or not adapter.is_available():
                continue
            if adapter.resolve_installed("snapd"):
                return True
        return False

    def execute(self, ctx: InstallContext, artifact: Optional[Path]):
        if self._installed(ctx):
            ui.success("snapd is already installed")
        else:
            entry = ctx.dispatcher.install(["snapd"])[0]
            if not entry.success:
                raise InstallerError(entry.message or "snapd could not be installed")

        success, message = ctx.act(['systemctl', 'enable', '--now', 'snapd.socket'], privileged=True)
        if not success:
            raise InstallerError(f"Could not enable snapd.socket: {message}")

        if os.path.islink(self.snap_link):
            if os.readlink(self.snap_link) == self.snap_root:
                ui.success(f"{self.snap_link} already links to {self.snap_root}")
                return
            raise InstallerError(f"{self.snap_link} links to {os.readlink(self.snap_link)}")
        if os.path.exists(self.snap_link):
            raise InstallerError(f"{self.snap_link} exists and is not a link")

        success, message = ctx.act(['ln', '-s', self.snap_root, self.snap_link], privileged=True)
        if not success:
            raise InstallerError(f"Could not link {self.snap_link}: {message}")


class ChannelInstaller(InstallerProvider):
    """Re-fetches and re-runs a channel's installer, replacing this tool"""

    def __init__(self, channel: Channel):
        self.channel = channel
        self.name = f"{channel.name.lower()}-installer"
        self.description = f"latest SkywareOS {channel.name} installer"

    def fetch(self, ctx: InstallContext) -> Optional[Path]:
        return git_clone(ctx, self.channel.repo_url, ctx.workdir / "installer")

    def verify(self, ctx: InstallContext, artifact: Optional[Path]):
        script = artifact / self.channel.script if artifact else None
        if script is None or not script.is_file():
            raise InstallerError(f"{self.channel.repo_url} has no {self.channel.script}")

        # Scripts committed from Windows checkouts carry CRLF line endings
        data = script.read_bytes()
        if b"\r\n" in data:
            script.write_bytes(data.replace(b"\r\n", b"\n"))
        script.chmod(0o755)

    def execute(self, ctx: InstallContext, artifact: Optional[Path]):
        script = artifact / self.channel.script
        success, message = ctx.act([str(script)], cwd=str(artifact))
        if not success:
            raise InstallerError(message)


SETUP_TARGETS = {
    "hyprland": HyprlandInstaller,
    "lazyvim": LazyVimInstaller,
    "niri": NiriInstaller,
    "snap": SnapInstaller,
}


def get_installer(name: str) -> Optional[InstallerProvider]:
    factory = SETUP_TARGETS.get(name)
    return factory() if factory else None


def available_targets() -> Dict[str, str]:
    return {name: cls.description for name, cls in SETUP_TARGETS.items()}
