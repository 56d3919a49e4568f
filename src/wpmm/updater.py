"""Update an existing installation through WP-CLI.

Re-running the installer never refreshes a folder that already exists;
updates go through `wp` instead.
"""

import logging
from pathlib import Path

from .commands import CommandRunner
from .commands import run_command
from .schema import Manifest
from .schema import PackageSpec

logger = logging.getLogger(__name__)


class Updater:
    """Updates core, plugins and themes of the WordPress install in base_folder."""

    def __init__(self, manifest: Manifest, base_folder: Path, runner: CommandRunner = run_command):
        self.manifest = manifest
        self.base_folder = base_folder
        self.runner = runner

    async def _wp(self, args: list[str], label: str) -> bool:
        try:
            result = await self.runner(["wp", *args], cwd=self.base_folder)
        except OSError as e:
            logger.error(f"Error updating {label}: {e}")
            return False
        if not result.ok:
            logger.error(f"Error updating {label}: {result.stderr.strip() or result.stdout.strip()}")
            return False
        logger.info(f"{label} updated successfully")
        return True

    async def _update_package(self, kind: str, spec: PackageSpec) -> bool:
        args = [kind, "install", spec.source or spec.name]
        if spec.version:
            args.append(f"--version={spec.version}")
        args += ["--force", "--activate"]
        return await self._wp(args, f"{kind} {spec.name}")

    async def update_plugins(self) -> list[str]:
        """Reinstall and activate every plugin; returns names that failed."""
        return [spec.name for spec in self.manifest.plugins if not await self._update_package("plugin", spec)]

    async def update_themes(self) -> list[str]:
        """Reinstall and activate every theme; returns names that failed."""
        return [spec.name for spec in self.manifest.themes if not await self._update_package("theme", spec)]

    async def update_wordpress(self) -> bool:
        return await self._wp(["core", "update"], "WordPress")

    async def run(
        self,
        wordpress: bool = False,
        plugins: bool = False,
        themes: bool = False,
        everything: bool = False,
    ) -> list[str]:
        """
        Run the selected updates.

        Returns:
            Labels of everything that failed to update
        """
        failed: list[str] = []
        if everything or wordpress:
            if not await self.update_wordpress():
                failed.append("wordpress")
        if everything or plugins:
            failed += [f"plugin:{name}" for name in await self.update_plugins()]
        if everything or themes:
            failed += [f"theme:{name}" for name in await self.update_themes()]
        return failed
