"""Package unit - install one core, theme or plugin package.

Workflow per unit:
1. Skip when the destination folder already exists
2. Resolve the fetch source
3. Clone (VCS locator) or download + extract + move into place
4. Run the secondary build when the package ships a build manifest

Errors are caught at the unit boundary: a failed unit logs one line and
reports False, it never raises into the orchestrator.
"""

import asyncio
import logging
import shutil
import time
from enum import Enum
from pathlib import Path

import httpx

from .commands import CommandRunner
from .commands import clone_repository
from .commands import run_command
from .commands import run_secondary_build
from .exceptions import InstallTimeoutError
from .exceptions import PackageInstallError
from .exceptions import WpmmError
from .resolver import GitRepository
from .resolver import ResolvedSource
from .resolver import SourceResolver
from .schema import CoreSpec
from .schema import PackageSpec
from .transport import extract
from .transport import fetch
from .wp_config import setup_wp_config

logger = logging.getLogger(__name__)


class PackageState(str, Enum):
    """Lifecycle of a package unit (never moves backward)."""

    PENDING = "pending"
    SOURCE_RESOLVED = "source_resolved"
    DOWNLOADING = "downloading"
    CLONING = "cloning"
    EXTRACTED = "extracted"
    RELOCATED = "relocated"
    SECONDARY_BUILD_CHECKED = "secondary_build_checked"
    DONE = "done"
    FAILED = "failed"


_STATE_ORDER = list(PackageState)


class Package:
    """
    One installable unit bound to its destination folder.

    Example:
        >>> spec = PackageSpec(name="akismet", role=PackageRole.PLUGIN)
        >>> package = Package(spec, destination=paths.plugins_folder / "akismet", temp_dir=paths.temp_dir)
        >>> ok = await package.install()
    """

    def __init__(
        self,
        spec: PackageSpec,
        destination: Path,
        temp_dir: Path,
        resolver: SourceResolver | None = None,
        client: httpx.AsyncClient | None = None,
        runner: CommandRunner = run_command,
        timeout: float | None = None,
    ):
        self.spec = spec
        self.destination = destination
        self.temp_dir = temp_dir
        self.resolver = resolver or SourceResolver()
        self.client = client
        self.runner = runner
        self.timeout = timeout

        self.state = PackageState.PENDING
        self.source: ResolvedSource | None = None
        self.error: WpmmError | None = None
        self.skipped = False
        self._owns_destination = False
        self.started_at: int | None = None
        self.finished_at: int | None = None

    @property
    def key(self) -> str:
        return self.spec.key

    @property
    def label(self) -> str:
        return f"{self.spec.role.value} '{self.spec.name}'"

    def _transition(self, state: PackageState) -> None:
        if self.state in (PackageState.DONE, PackageState.FAILED):
            raise RuntimeError(f"{self.label} is already {self.state.value}")
        if state is not PackageState.FAILED and _STATE_ORDER.index(state) <= _STATE_ORDER.index(self.state):
            raise RuntimeError(f"{self.label} cannot move from {self.state.value} to {state.value}")
        logger.debug(f"{self.label}: {self.state.value} -> {state.value}")
        self.state = state

    async def install(self) -> bool:
        """
        Install the package (once per unit).

        Returns:
            True when the package is installed or was already present,
            False when the unit failed (see self.error)
        """
        if self.state is not PackageState.PENDING:
            raise RuntimeError(f"{self.label} was already installed in this run")

        self.started_at = time.monotonic_ns()
        try:
            if self.timeout is None:
                await self._install()
            else:
                try:
                    await asyncio.wait_for(self._install(), self.timeout)
                except TimeoutError as e:
                    raise InstallTimeoutError(
                        f"Timed out after {self.timeout}s", context={"package": self.key}
                    ) from e
        except Exception as e:
            if isinstance(e, WpmmError):
                self.error = e
            else:
                self.error = PackageInstallError(f"{type(e).__name__}: {e}", context={"package": self.key})
                self.error.__cause__ = e
            self._transition(PackageState.FAILED)
            logger.error(f"Failed to install {self.label}: {self.error.message}")
            self._remove_partial_destination()
            return False
        finally:
            self.finished_at = time.monotonic_ns()

        return True

    async def _install(self) -> None:
        if self.destination.exists():
            logger.info(f"Destination folder {self.destination} already exists. Skipping {self.label}.")
            self.skipped = True
            self._transition(PackageState.DONE)
            return

        self.source = self.resolver.resolve(self.spec)
        self._transition(PackageState.SOURCE_RESOLVED)

        # A failed unit removes whatever it wrote to the destination
        self._owns_destination = True

        if isinstance(self.source, GitRepository) and self.source.clone:
            self._transition(PackageState.CLONING)
            logger.info(f"Cloning {self.source.url} into {self.destination}")
            await clone_repository(self.source.url, self.destination, ref=self.source.ref, runner=self.runner)
        else:
            self._transition(PackageState.DOWNLOADING)
            extracted = await self._download(self.source.url)
            self._transition(PackageState.EXTRACTED)
            self._relocate(extracted)
        self._transition(PackageState.RELOCATED)

        await run_secondary_build(self.destination, runner=self.runner)
        self._transition(PackageState.SECONDARY_BUILD_CHECKED)

        logger.info(f"{self.label} installed successfully in {self.destination}")
        self._transition(PackageState.DONE)

    @property
    def _work_name(self) -> str:
        # Unique per unit: folder names are unique within a role
        name = f"{self.spec.role.value}-{self.spec.folder_name}"
        if self.spec.version:
            name = f"{name}-{self.spec.version}"
        return name.replace("/", "_")

    async def _download(self, url: str) -> Path:
        """Download and extract url; return the folder to move into place."""
        archive_path = self.temp_dir / f"{self._work_name}.zip"
        work_dir = self.temp_dir / self._work_name

        logger.info(f"Downloading {url} to {archive_path}")
        await fetch(url, archive_path, client=self.client)

        if work_dir.exists():
            shutil.rmtree(work_dir)
        root = extract(archive_path, work_dir)

        if root and (work_dir / root).is_dir():
            return work_dir / root
        # No single root folder: the archive content is the package
        return work_dir

    def _remove_partial_destination(self) -> None:
        if not self._owns_destination or not self.destination.exists():
            return
        try:
            shutil.rmtree(self.destination)
            logger.info(f"Removed incomplete {self.destination}")
        except OSError as e:
            logger.error(f"Failed to remove incomplete {self.destination}: {e}")

    def _relocate(self, extracted: Path) -> None:
        self.destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(extracted), str(self.destination))
        logger.debug(f"Moved {extracted} to {self.destination}")


class CorePackage(Package):
    """The core system unit; also writes wp-config.php when values are given."""

    spec: CoreSpec

    async def install(self) -> bool:
        ok = await super().install()
        if ok and self.spec.wp_config is not None:
            try:
                setup_wp_config(self.destination, self.spec.wp_config)
            except OSError as e:
                logger.error(f"Error setting up WordPress configuration: {e}")
        return ok
