from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class Action(str, Enum):
    """Package action requested on the command line"""
    INSTALL = "install"
    REMOVE = "remove"
    SEARCH = "search"
    INFO = "info"


class Backend(str, Enum):
    """Package backends, declared in resolution priority order"""
    SYSTEM = "system"        # pacman
    UNIVERSAL = "universal"  # flatpak
    COMMUNITY = "community"  # AUR via paru


class Outcome(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True)
class PackageRequest:
    """A single package name paired with the action to perform on it"""
    name: str
    action: Action


@dataclass
class BackendResult:
    """Outcome of trying one backend for a request"""
    backend: Backend
    outcome: Outcome
    message: str = ""


@dataclass
class LogEntry:
    """Terminal outcome of a dispatched request"""
    timestamp: datetime
    action: Action
    package: str
    outcome: Outcome
    backend: Optional[Backend] = None
    message: str = ""
    attempts: List[BackendResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.outcome is Outcome.SUCCESS


@dataclass
class PackageSearchResult:
    """Result from searching for packages"""
    package_id: str
    name: str
    description: str
    version: str
    package_manager: str  # 'pacman', 'flatpak', 'aur'


@dataclass
class PackageInfo:
    """Information about an installed package"""
    package_id: str
    name: str
    version: str
    package_manager: str


@dataclass
class PackageDetails:
    """Detailed information about a package"""
    package_id: str
    name: str
    description: str
    version: str
    package_manager: str
    homepage: Optional[str] = None
    license: Optional[str] = None
    size: Optional[str] = None
    dependencies: Optional[list[str]] = None
    repository: Optional[str] = None
