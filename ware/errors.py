"""
Error taxonomy for ware

Errors are raised at the seams where a step cannot continue (bootstrapping
the AUR helper, writing system files, fetching installers) and are turned
into colored messages by the dispatcher or the CLI.
"""


class WareError(Exception):
    """Base class for all ware errors"""


class BackendUnavailable(WareError):
    """A package backend's client is not present on the system"""

    def __init__(self, backend: str):
        super().__init__(f"{backend} is not available")
        self.backend = backend


class PackageNotFound(WareError):
    """No backend knows about the requested package"""

    def __init__(self, package: str):
        super().__init__(f"Package not found: {package}")
        self.package = package


class PermissionDenied(WareError):
    """A privileged file or command could not be used"""


class BootstrapFailure(WareError):
    """The AUR helper client could not be built and installed"""


class InstallerError(WareError):
    """An installer provider failed to fetch, verify or execute"""
