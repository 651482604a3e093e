import shutil
import tempfile
from pathlib import Path
from typing import List, Optional, Tuple
from ware.adapters.base import PackageManagerAdapter
from ware.adapters.pacman_adapter import (
    PacmanAdapter,
    details_from_fields,
    parse_key_values,
    parse_search_output,
    validate_package_name,
)
from ware.config import WareConfig
from ware.errors import BootstrapFailure
from ware.models import Backend, PackageSearchResult, PackageInfo, PackageDetails
from ware import ui

BOOTSTRAP_PACKAGES = ['base-devel', 'git']


class AurAdapter(PackageManagerAdapter):
    """Adapter for the AUR through the paru helper

    paru itself lives in the AUR, so the first install that reaches this
    backend builds it from its recipe (see ensure_client).
    """

    backend = Backend.COMMUNITY
    label = "AUR"
    command = "paru"

    def __init__(self, config: Optional[WareConfig] = None,
                 system: Optional[PacmanAdapter] = None):
        super().__init__(config)
        self.system = system or PacmanAdapter(self.config)

    def ensure_client(self) -> bool:
        """
        Build and install paru if it is missing

        Returns:
            True if paru was installed by this call, False if it was already present

        Raises:
            BootstrapFailure: if any step of the build fails
        """
        if self.is_available():
            return False

        ui.warn("Installing paru (AUR helper)...")
        success, message = self.system.install_needed(BOOTSTRAP_PACKAGES)
        if not success:
            raise BootstrapFailure(f"Could not install build tools: {message}")

        try:
            build_root = tempfile.mkdtemp(prefix="ware-paru-", dir=self.config.build_dir)
        except OSError as e:
            raise BootstrapFailure(f"Could not create paru build directory: {e}") from e
        recipe_dir = str(Path(build_root) / "paru")
        try:
            success, message = self._run_action(
                ['git', 'clone', self.config.aur_helper_repo, recipe_dir]
            )
            if not success:
                raise BootstrapFailure(f"Could not fetch paru build recipe: {message}")

            success, message = self._run_action(['makepkg', '-si', '--noconfirm'], cwd=recipe_dir)
            if not success:
                raise BootstrapFailure(f"Could not build paru: {message}")
        finally:
            shutil.rmtree(build_root, ignore_errors=True)

        if not self.is_available():
            raise BootstrapFailure("paru was built but is not on PATH")
        return True

    def resolve(self, name: str) -> Optional[str]:
        if not self.is_available() or not validate_package_name(name):
            return None

        success, _ = self._run_command(['-Si', name], timeout=60)
        return name if success else None

    def resolve_installed(self, name: str) -> Optional[str]:
        if not self.is_available() or not validate_package_name(name):
            return None

        success, _ = self._run_command(['-Q', name])
        return name if success else None

    def install(self, package_id: str) -> Tuple[bool, str]:
        """Build and install an AUR package; paru escalates privileges itself"""
        if not validate_package_name(package_id):
            return False, f"Invalid package name: {package_id}"

        return self._run_action(['paru', '-S', '--noconfirm', package_id])

    def remove(self, package_id: str) -> Tuple[bool, str]:
        if not validate_package_name(package_id):
            return False, f"Invalid package name: {package_id}"

        return self._run_action(['paru', '-Rns', '--noconfirm', package_id])

    def search(self, query: str) -> List[PackageSearchResult]:
        if not self.is_available() or not query.strip():
            return []

        success, output = self._run_command(['-Ss', '--aur', query], timeout=60)
        if not success:
            return []

        return parse_search_output(output, self.label)

    def list_installed(self) -> List[PackageInfo]:
        """List foreign packages, i.e. those not from the sync databases"""
        if not self.is_available():
            return []

        success, output = self._run_command(['-Qm'])
        if not success:
            return []

        installed = []
        for line in output.strip().split('\n'):
            parts = line.split()
            if len(parts) >= 2:
                installed.append(PackageInfo(
                    package_id=parts[0],
                    name=parts[0],
                    version=parts[1],
                    package_manager=self.label
                ))

        return installed

    def get_details(self, package_id: str) -> Optional[PackageDetails]:
        if not self.is_available() or not validate_package_name(package_id):
            return None

        success, output = self._run_command(['-Si', package_id], timeout=60)
        if not success:
            return None

        return details_from_fields(parse_key_values(output), self.label)

    def update(self) -> Tuple[bool, str]:
        """Upgrade AUR packages only; repo packages are pacman's job"""
        return self._run_action(['paru', '-Sua', '--noconfirm'])
