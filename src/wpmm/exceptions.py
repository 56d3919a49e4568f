"""wpmm-specific exceptions.

Every failure a unit can hit maps to one class here, so the orchestrator
can log a single readable line per failed package.
"""


class WpmmError(Exception):
    """Base exception for wpmm operations."""

    def __init__(self, message: str, context: dict | None = None):
        """Initialize with message and optional context.

        Args:
            message: Human-readable error message
            context: Optional dict with additional context (urls, paths, etc.)
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class TransportError(WpmmError):
    """HTTP retrieval failed (status >= 400 or connection error)."""


class ExtractionError(WpmmError):
    """Archive is corrupt or could not be unpacked."""


class InvalidSourceError(WpmmError):
    """Package name/source combination cannot be resolved."""


class CloneError(WpmmError):
    """git clone exited non-zero or could not be started."""


class SecondaryBuildError(WpmmError):
    """Dependency install/build step exited non-zero."""


class InstallTimeoutError(WpmmError, TimeoutError):
    """Package unit exceeded its configured timeout."""


class PackageInstallError(WpmmError):
    """Unexpected failure while installing a package unit."""
