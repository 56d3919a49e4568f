"""Filesystem layout for an installation run.

Computed once per run from a root folder and the core package name, then
treated as immutable.
"""

from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict

from .schema import DEFAULT_INSTALL_FOLDER
from .schema import PKG_FILE_NAME
from .schema import PackageRole

TEMP_FOLDER_NAME = "wpmm-temp"


def is_wordpress_folder(folder: Path) -> bool:
    """Check if folder already holds a WordPress install (or its manifest)."""
    return (folder / "wp-config.php").exists() or (folder / PKG_FILE_NAME).exists()


class InstallPaths(BaseModel):
    """Resolved directories for one run (immutable data structure)."""

    model_config = ConfigDict(frozen=True)

    temp_dir: Path
    base_folder: Path
    plugins_folder: Path
    theme_folder: Path

    @classmethod
    def from_root(cls, root_folder: Path, core_name: str | None = None) -> "InstallPaths":
        """
        Compute the layout for a run.

        When root_folder already is a WordPress folder it becomes the base
        folder; otherwise the core is installed into root_folder/<core_name>.

        Args:
            root_folder: Directory the run operates in
            core_name: Name of the core package (defaults to "wordpress")

        Example:
            >>> paths = InstallPaths.from_root(Path("/srv/www"), "site")
            >>> paths.plugins_folder
            PosixPath('/srv/www/site/wp-content/plugins')
        """
        base_folder = root_folder
        if not is_wordpress_folder(root_folder):
            base_folder = root_folder / (core_name or DEFAULT_INSTALL_FOLDER)

        content = base_folder / "wp-content"
        return cls(
            temp_dir=root_folder / TEMP_FOLDER_NAME,
            base_folder=base_folder,
            plugins_folder=content / "plugins",
            theme_folder=content / "themes",
        )

    def destinations(self) -> dict[PackageRole, Path]:
        """Role to destination directory lookup table."""
        return {
            PackageRole.CORE: self.base_folder,
            PackageRole.PLUGIN: self.plugins_folder,
            PackageRole.THEME: self.theme_folder,
        }
