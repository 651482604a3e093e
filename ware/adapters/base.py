import shutil
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple
from ware.command import run_action, run_cmd
from ware.config import WareConfig
from ware.models import Backend, PackageSearchResult, PackageInfo, PackageDetails


class PackageManagerAdapter(ABC):
    """Abstract base class for package backend adapters

    Queries (resolve, resolve_installed, search, list_installed, get_details)
    only read backend state. install, remove and update mutate it.
    """

    backend: Backend
    label: str
    command: str

    def __init__(self, config: Optional[WareConfig] = None):
        self.config = config or WareConfig()

    def is_available(self) -> bool:
        """Check if the backend's client is on PATH"""
        return shutil.which(self.command) is not None

    def ensure_client(self) -> bool:
        """
        Make sure the backend's client is installed

        Returns:
            True if the client was installed by this call
        """
        return False

    def _run_command(self, args: List[str], timeout: int = 30) -> Tuple[bool, str]:
        """
        Run a read-only backend command with captured output

        Returns:
            Tuple of (success, output)
        """
        result = run_cmd([self.command] + args, timeout=timeout)
        if result.returncode in (124, 127) and not result.stdout:
            return False, result.stderr
        return result.ok, result.stdout

    def _run_action(self, argv: List[str], cwd: Optional[str] = None) -> Tuple[bool, str]:
        """
        Run a mutating command with the terminal attached

        Returns:
            Tuple of (success, message)
        """
        return run_action(argv, self.config.show_spinner, cwd=cwd)

    @abstractmethod
    def resolve(self, name: str) -> Optional[str]:
        """
        Check whether a package is available from this backend

        Args:
            name: Package name as typed by the user

        Returns:
            The backend's identifier for the package, or None if not found
        """
        pass

    @abstractmethod
    def resolve_installed(self, name: str) -> Optional[str]:
        """
        Check whether a package is installed through this backend

        Returns:
            The backend's identifier for the installed package, or None
        """
        pass

    @abstractmethod
    def install(self, package_id: str) -> Tuple[bool, str]:
        """
        Install a package non-interactively

        Returns:
            Tuple of (success, message)
        """
        pass

    @abstractmethod
    def remove(self, package_id: str) -> Tuple[bool, str]:
        """
        Remove a package non-interactively

        Returns:
            Tuple of (success, message)
        """
        pass

    @abstractmethod
    def search(self, query: str) -> List[PackageSearchResult]:
        """Search for packages matching query"""
        pass

    @abstractmethod
    def list_installed(self) -> List[PackageInfo]:
        """List all packages installed through this backend"""
        pass

    @abstractmethod
    def get_details(self, package_id: str) -> Optional[PackageDetails]:
        """
        Get detailed information about a package

        Returns:
            Package details or None if not found
        """
        pass

    @abstractmethod
    def update(self) -> Tuple[bool, str]:
        """Upgrade everything installed through this backend"""
        pass
