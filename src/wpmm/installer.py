"""Install orchestrator - core first, then themes and plugins concurrently.

Process:
1. Create the temp workspace
2. Install the core package (awaited before anything else starts)
3. Install every plugin and theme concurrently; failures stay isolated
4. Run post-install commands sequentially when WP-CLI is available
5. Remove the temp workspace, whatever happened above
"""

import asyncio
import logging
import shutil
from collections.abc import Callable
from collections.abc import Mapping
from contextlib import AsyncExitStack
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path

import httpx

from .commands import CommandRunner
from .commands import is_wp_cli_available
from .commands import run_command
from .commands import run_post_install_commands
from .lock import InstallLock
from .package import CorePackage
from .package import Package
from .package import PackageState
from .paths import InstallPaths
from .resolver import SourceResolver
from .schema import Manifest
from .schema import PackageRole
from .schema import PackageSpec
from .transport import create_client

logger = logging.getLogger(__name__)

WP_CLI_HELP_URL = "https://make.wordpress.org/cli/handbook/guides/installing/"


@dataclass
class InstallReport:
    """Outcome of an installation run."""

    installed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    failed_commands: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed and not self.failed_commands


class Installer:
    """
    Installs everything a manifest declares (with injected paths and policy).

    Example:
        >>> manifest = Manifest.from_file(Path("wp-package.json"))
        >>> paths = InstallPaths.from_root(Path.cwd(), manifest.wordpress.name)
        >>> report = await Installer(manifest, paths, lock=InstallLock(Path("wpmm.lock"))).run()
        >>> print(report.failed)
    """

    def __init__(
        self,
        manifest: Manifest,
        paths: InstallPaths,
        *,
        resolver: SourceResolver | None = None,
        client: httpx.AsyncClient | None = None,
        runner: CommandRunner = run_command,
        lock: InstallLock | None = None,
        destinations: Mapping[PackageRole, Path] | None = None,
        wp_cli_available: Callable[[], bool] = is_wp_cli_available,
        unit_timeout: float | None = None,
        abort_on_core_failure: bool = False,
    ):
        """Initialize installer.

        Args:
            manifest: What to install
            paths: Where to install (computed once per run)
            resolver: Source resolver (default hosts if None)
            client: Shared HTTP client (one is created per run if None)
            runner: Runs git/npm/composer/post-install commands
            lock: Optional lock file recording installed packages
            destinations: Role to directory table (defaults to paths.destinations())
            wp_cli_available: Check used before running post-install commands
            unit_timeout: Optional per-unit timeout in seconds
            abort_on_core_failure: Skip themes/plugins when the core failed
        """
        self.manifest = manifest
        self.paths = paths
        self.resolver = resolver or SourceResolver()
        self.client = client
        self.runner = runner
        self.lock = lock
        self.destinations = dict(destinations or paths.destinations())
        self.wp_cli_available = wp_cli_available
        self.unit_timeout = unit_timeout
        self.abort_on_core_failure = abort_on_core_failure

        self.core_package: CorePackage | None = None
        self.packages: list[Package] = []

    def destination_for(self, spec: PackageSpec) -> Path:
        """Destination folder of a package (the core owns its whole folder)."""
        folder = self.destinations[spec.role]
        if spec.role is PackageRole.CORE:
            return folder
        return folder / spec.folder_name

    def build_packages(self, client: httpx.AsyncClient | None = None) -> tuple[CorePackage | None, list[Package]]:
        """Create the core unit and one unit per plugin and theme."""
        options = {
            "temp_dir": self.paths.temp_dir,
            "resolver": self.resolver,
            "client": client or self.client,
            "runner": self.runner,
            "timeout": self.unit_timeout,
        }

        core = None
        if self.manifest.wordpress is not None:
            spec = self.manifest.wordpress
            core = CorePackage(spec, destination=self.destination_for(spec), **options)

        packages = [
            Package(spec, destination=self.destination_for(spec), **options)
            for spec in [*self.manifest.plugins, *self.manifest.themes]
        ]
        return core, packages

    async def install_packages(self) -> InstallReport:
        """
        Install core, plugins and themes, then run post-install commands.

        Returns:
            InstallReport; individual failures are reported, never raised
        """
        report = InstallReport()
        self.paths.temp_dir.mkdir(parents=True, exist_ok=True)

        async with AsyncExitStack() as stack:
            client = self.client
            if client is None:
                client = await stack.enter_async_context(create_client())

            self.core_package, self.packages = self.build_packages(client)

            if self.core_package is not None:
                core_ok = await self.core_package.install()
                self._record(self.core_package, report)
                if not core_ok and self.abort_on_core_failure:
                    logger.error("Core installation failed, not installing themes and plugins")
                    self._log_summary(report)
                    return report

            if self.packages:
                logger.info(f"Installing {len(self.packages)} plugins and themes")
                await asyncio.gather(*(package.install() for package in self.packages))
                for package in self.packages:
                    self._record(package, report)

        if self.manifest.post_install:
            if self.wp_cli_available():
                logger.info("Executing post-install commands...")
                cwd = self.paths.base_folder if self.paths.base_folder.exists() else None
                report.failed_commands = await run_post_install_commands(
                    self.manifest.post_install, cwd=cwd, runner=self.runner
                )
            else:
                logger.warning(
                    f"Unable to execute post-install commands: WP-CLI is not available. More info: {WP_CLI_HELP_URL}"
                )

        self._log_summary(report)
        return report

    async def run(self) -> InstallReport:
        """Install everything, then always remove the temp workspace."""
        try:
            return await self.install_packages()
        finally:
            self.cleanup()

    def cleanup(self) -> None:
        """Remove the temp workspace."""
        temp_dir = self.paths.temp_dir
        if not temp_dir.exists():
            return
        try:
            shutil.rmtree(temp_dir)
            logger.info(f"{temp_dir} removed successfully.")
        except OSError as e:
            logger.error(f"Failed to remove {temp_dir}: {e}")

    def _record(self, package: Package, report: InstallReport) -> None:
        if package.state is PackageState.FAILED:
            report.failed[package.key] = package.error.message if package.error else "unknown error"
            # Failed units leave no folder behind; drop any earlier entry
            if self.lock is not None:
                self.lock.remove_entry(name=package.spec.name, role=package.spec.role.value)
            return

        if package.skipped:
            report.skipped.append(package.key)
            return

        report.installed.append(package.key)
        if self.lock is not None and package.source is not None:
            self.lock.add_entry(
                name=package.spec.name,
                role=package.spec.role.value,
                version=package.spec.version,
                source=package.source.url,
                path=package.destination,
            )

    def _log_summary(self, report: InstallReport) -> None:
        logger.info(
            f"Installed {len(report.installed)}, skipped {len(report.skipped)}, failed {len(report.failed)} packages"
        )
        if report.failed:
            logger.error(f"{len(report.failed)} package(s) failed: {', '.join(report.failed)}")


async def install_all(manifest: Manifest, paths: InstallPaths, **kwargs) -> InstallReport:
    """
    Install everything the manifest declares into paths.

    Keyword arguments are passed to Installer.

    Example:
        >>> report = await install_all(manifest, InstallPaths.from_root(Path.cwd(), "site"))
    """
    return await Installer(manifest, paths, **kwargs).run()
