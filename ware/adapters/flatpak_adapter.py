from typing import List, Optional, Tuple
from ware.adapters.base import PackageManagerAdapter
from ware.config import FLATHUB_REPO_URL
from ware.models import Backend, PackageSearchResult, PackageInfo, PackageDetails


def validate_flatpak_query(name: str) -> bool:
    """
    Validate a Flatpak application ID or display name

    Display names may contain spaces, but nothing that flatpak would parse
    as an option and no control characters.
    """
    if not name or len(name) > 255 or name.startswith('-'):
        return False
    return all(ch.isprintable() for ch in name)


def match_application(name: str, rows: List[List[str]]) -> Optional[str]:
    """
    Find the application ID whose ID or display name equals name

    Comparison is case-insensitive and exact, so 'code' does not match
    'com.visualstudio.code' or 'VS Codium'. Returns the first match.
    """
    wanted = name.strip().casefold()
    for row in rows:
        if not row or not row[0].strip():
            continue
        app_id = row[0].strip()
        display = row[1].strip() if len(row) > 1 else ""
        if wanted == app_id.casefold() or (display and wanted == display.casefold()):
            return app_id
    return None


class FlatpakAdapter(PackageManagerAdapter):
    """Adapter for Flatpak package manager using CLI"""

    backend = Backend.UNIVERSAL
    label = "flatpak"
    command = "flatpak"

    def _rows(self, output: str) -> List[List[str]]:
        rows = []
        for line in output.strip().split('\n'):
            if '\t' not in line:
                continue
            rows.append(line.split('\t'))
        return rows

    def resolve(self, name: str) -> Optional[str]:
        """Search the remotes for an application whose ID or name is exactly name"""
        if not self.is_available() or not validate_flatpak_query(name):
            return None

        success, output = self._run_command(['search', '--columns=application,name', name])
        if not success:
            return None

        return match_application(name, self._rows(output))

    def resolve_installed(self, name: str) -> Optional[str]:
        if not self.is_available() or not validate_flatpak_query(name):
            return None

        success, output = self._run_command(['list', '--app', '--columns=application,name'])
        if not success:
            return None

        return match_application(name, self._rows(output))

    def install(self, package_id: str) -> Tuple[bool, str]:
        """Install package via Flatpak"""
        # Use -y to auto-confirm
        return self._run_action(['flatpak', 'install', '-y', self.config.flatpak_remote, package_id])

    def remove(self, package_id: str) -> Tuple[bool, str]:
        """Remove package via Flatpak"""
        return self._run_action(['flatpak', 'uninstall', '-y', package_id])

    def search(self, query: str) -> List[PackageSearchResult]:
        """Search for packages in Flatpak"""
        if not self.is_available() or not validate_flatpak_query(query):
            return []

        success, output = self._run_command([
            'search',
            '--columns=application,name,description,version',
            query
        ])

        if not success:
            return []

        results = []
        for parts in self._rows(output):
            if len(parts) >= 3:
                result = PackageSearchResult(
                    package_id=parts[0].strip(),
                    name=parts[1].strip(),
                    description=parts[2].strip(),
                    version=parts[3].strip() if len(parts) > 3 and parts[3].strip() else "unknown",
                    package_manager=self.label
                )
                results.append(result)

        return results

    def list_installed(self) -> List[PackageInfo]:
        """List installed Flatpak applications"""
        if not self.is_available():
            return []

        success, output = self._run_command([
            'list',
            '--app',
            '--columns=application,name,version'
        ])

        if not success:
            return []

        installed = []
        for parts in self._rows(output):
            if len(parts) >= 3:
                installed.append(PackageInfo(
                    package_id=parts[0].strip(),
                    name=parts[1].strip(),
                    version=parts[2].strip(),
                    package_manager=self.label
                ))

        return installed

    def get_details(self, package_id: str) -> Optional[PackageDetails]:
        """Get package details, accepting an application ID or display name"""
        if not self.is_available():
            return None

        app_id = self.resolve_installed(package_id)
        if app_id is not None:
            success, output = self._run_command(['info', app_id])
        else:
            app_id = self.resolve(package_id)
            if app_id is None:
                return None
            success, output = self._run_command(['remote-info', self.config.flatpak_remote, app_id])

        if not success:
            return None

        return self._parse_info(app_id, output)

    def _parse_info(self, app_id: str, output: str) -> PackageDetails:
        # First non-empty line reads "Name - summary"; the rest is "Key: Value"
        lines = [line for line in output.split('\n') if line.strip()]
        name, description = app_id, ""
        if lines and ': ' not in lines[0]:
            title = lines[0].strip()
            if ' - ' in title:
                name, description = title.split(' - ', 1)
            else:
                name = title
            lines = lines[1:]

        fields = {}
        for line in lines:
            if ': ' in line:
                key, value = line.split(': ', 1)
                fields[key.strip().lower()] = value.strip()

        return PackageDetails(
            package_id=app_id,
            name=name.strip(),
            description=description.strip(),
            version=fields.get('version', 'unknown'),
            package_manager=self.label,
            license=fields.get('license'),
            size=fields.get('installed') or fields.get('download'),
            repository=fields.get('origin', self.config.flatpak_remote),
        )

    def update(self) -> Tuple[bool, str]:
        return self._run_action(['flatpak', 'update', '-y'])

    def remove_unused(self) -> Tuple[bool, str]:
        return self._run_action(['flatpak', 'uninstall', '--unused', '-y'])

    def repair_check(self) -> Tuple[bool, str]:
        """Report installation problems without fixing them"""
        return self._run_action(['flatpak', 'repair', '--dry-run'])

    def is_remote_configured(self) -> bool:
        success, output = self._run_command(['remotes', '--columns=name'], timeout=10)
        if not success:
            return False
        return self.config.flatpak_remote in output.split()

    def ensure_remote(self) -> Tuple[bool, str]:
        """Add the Flathub remote if not already configured"""
        if self.is_remote_configured():
            return True, f"{self.config.flatpak_remote} is already configured"

        return self._run_action(self.config.privileged([
            'flatpak', 'remote-add', '--if-not-exists',
            self.config.flatpak_remote, FLATHUB_REPO_URL
        ]))
