"""wpmm - WordPress package manager.

Installs the WordPress core, themes and plugins declared in a manifest
(wp-package.json). Library mechanism only: apps inject paths, hosts and the
command runner.
"""

from .exceptions import CloneError
from .exceptions import ExtractionError
from .exceptions import InstallTimeoutError
from .exceptions import InvalidSourceError
from .exceptions import PackageInstallError
from .exceptions import SecondaryBuildError
from .exceptions import TransportError
from .exceptions import WpmmError
from .installer import InstallReport
from .installer import Installer
from .installer import install_all
from .lock import InstallLock
from .lock import InstallLockEntry
from .package import CorePackage
from .package import Package
from .package import PackageState
from .paths import InstallPaths
from .paths import is_wordpress_folder
from .resolver import AbsoluteUrl
from .resolver import GitRepository
from .resolver import RegistrySynthesized
from .resolver import SourceResolver
from .resolver import get_core_download_url
from .resolver import resolve_source
from .schema import CoreSpec
from .schema import Manifest
from .schema import PackageRole
from .schema import PackageSpec
from .schema import WpConfigValues
from .transport import extract
from .transport import fetch
from .updater import Updater

__all__ = [
    # Manifest
    "Manifest",
    "PackageSpec",
    "CoreSpec",
    "PackageRole",
    "WpConfigValues",
    # Paths
    "InstallPaths",
    "is_wordpress_folder",
    # Resolution
    "SourceResolver",
    "AbsoluteUrl",
    "GitRepository",
    "RegistrySynthesized",
    "resolve_source",
    "get_core_download_url",
    # Transport
    "fetch",
    "extract",
    # Installation
    "Package",
    "CorePackage",
    "PackageState",
    "Installer",
    "InstallReport",
    "install_all",
    "Updater",
    # Lock file
    "InstallLock",
    "InstallLockEntry",
    # Exceptions
    "WpmmError",
    "TransportError",
    "ExtractionError",
    "InvalidSourceError",
    "CloneError",
    "SecondaryBuildError",
    "InstallTimeoutError",
    "PackageInstallError",
]

__version__ = "0.1.0"
