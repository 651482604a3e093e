import re
from typing import Dict, List, Optional, Tuple
from ware.adapters.base import PackageManagerAdapter
from ware.models import Backend, PackageSearchResult, PackageInfo, PackageDetails


def validate_package_name(package_name: str) -> bool:
    """
    Validate an Arch package name before handing it to pacman or paru

    Arch package names use lowercase alphanumerics and @ . _ + -,
    and must not start with a hyphen or dot (which pacman would read as a flag).
    """
    if not package_name or len(package_name) > 255:
        return False

    pattern = r'^[a-z0-9@_+][a-z0-9@._+-]*$'
    return bool(re.match(pattern, package_name))


def parse_key_values(output: str) -> Dict[str, str]:
    """
    Parse 'Key : Value' blocks as printed by pacman -Si / paru -Si

    Indented lines without a separator continue the previous value.
    """
    fields: Dict[str, str] = {}
    last_key = None

    for line in output.splitlines():
        if not line.strip():
            continue
        if ' : ' in line and not line.startswith(' '):
            key, value = line.split(' : ', 1)
            last_key = key.strip()
            fields[last_key] = value.strip()
        elif last_key is not None:
            fields[last_key] = f"{fields[last_key]} {line.strip()}".strip()

    return fields


def parse_search_output(output: str, package_manager: str) -> List[PackageSearchResult]:
    """Parse pacman -Ss style output (also produced by paru -Ss)"""
    results = []
    current = None

    # Format: repo/name version [installed]
    #             description
    for line in output.split('\n'):
        if not line.strip():
            continue

        if not line.startswith(' '):
            parts = line.split()
            if len(parts) < 2 or '/' not in parts[0]:
                current = None
                continue
            name = parts[0].split('/', 1)[1]
            current = PackageSearchResult(
                package_id=name,
                name=name,
                description="",
                version=parts[1],
                package_manager=package_manager
            )
            results.append(current)
        elif current is not None:
            current.description = line.strip()

    return results


def details_from_fields(fields: Dict[str, str], package_manager: str) -> Optional[PackageDetails]:
    """Build PackageDetails from parsed pacman-style fields"""
    name = fields.get('Name')
    if not name:
        return None

    depends = fields.get('Depends On', 'None')
    return PackageDetails(
        package_id=name,
        name=name,
        description=fields.get('Description', ''),
        version=fields.get('Version', 'unknown'),
        package_manager=package_manager,
        homepage=fields.get('URL'),
        license=fields.get('Licenses'),
        size=fields.get('Installed Size'),
        dependencies=[] if depends == 'None' else depends.split(),
        repository=fields.get('Repository'),
    )


class PacmanAdapter(PackageManagerAdapter):
    """Adapter for the pacman system package manager"""

    backend = Backend.SYSTEM
    label = "pacman"
    command = "pacman"

    def resolve(self, name: str) -> Optional[str]:
        """Check the sync databases for a package with this exact name"""
        if not self.is_available() or not validate_package_name(name):
            return None

        success, _ = self._run_command(['-Si', name])
        return name if success else None

    def resolve_installed(self, name: str) -> Optional[str]:
        if not self.is_available() or not validate_package_name(name):
            return None

        success, _ = self._run_command(['-Q', name])
        return name if success else None

    def install(self, package_id: str) -> Tuple[bool, str]:
        """Install package via pacman"""
        if not validate_package_name(package_id):
            return False, f"Invalid package name: {package_id}"

        return self._run_action(self.config.privileged(
            ['pacman', '-S', '--noconfirm', package_id]
        ))

    def install_needed(self, packages: List[str]) -> Tuple[bool, str]:
        """Install packages, skipping those already up to date"""
        invalid = [p for p in packages if not validate_package_name(p)]
        if invalid:
            return False, f"Invalid package name: {invalid[0]}"

        return self._run_action(self.config.privileged(
            ['pacman', '-S', '--needed', '--noconfirm'] + list(packages)
        ))

    def remove(self, package_id: str) -> Tuple[bool, str]:
        """Remove package, its unneeded dependencies and saved configs"""
        if not validate_package_name(package_id):
            return False, f"Invalid package name: {package_id}"

        return self._run_action(self.config.privileged(
            ['pacman', '-Rns', '--noconfirm', package_id]
        ))

    def search(self, query: str) -> List[PackageSearchResult]:
        """Search the sync databases"""
        if not self.is_available() or not query.strip():
            return []

        success, output = self._run_command(['-Ss', query])
        if not success:
            return []

        return parse_search_output(output, self.label)

    def list_installed(self) -> List[PackageInfo]:
        if not self.is_available():
            return []

        success, output = self._run_command(['-Q'])
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

        success, output = self._run_command(['-Si', package_id])
        if not success:
            return None

        return details_from_fields(parse_key_values(output), self.label)

    def update(self) -> Tuple[bool, str]:
        return self._run_action(self.config.privileged(['pacman', '-Syu', '--noconfirm']))

    def clean_cache(self) -> Tuple[bool, str]:
        return self._run_action(self.config.privileged(['pacman', '-Sc', '--noconfirm']))

    def orphans(self) -> List[str]:
        """Packages installed as dependencies that nothing requires anymore"""
        success, output = self._run_command(['-Qtdq'])
        if not success:
            return []
        return [line.strip() for line in output.split('\n') if line.strip()]

    def autoremove(self) -> Tuple[bool, str]:
        orphans = self.orphans()
        if not orphans:
            return True, "No orphaned packages"

        success, message = self._run_action(self.config.privileged(
            ['pacman', '-Rns', '--noconfirm'] + orphans
        ))
        if success:
            return True, f"Removed {len(orphans)} orphaned package(s)"
        return False, message

    def check_database(self) -> Tuple[bool, str]:
        """Run pacman's database consistency check"""
        return self._run_action(self.config.privileged(['pacman', '-Dk']))
