"""Manifest schema - Parse wp-package.json files.

The manifest owns what gets installed: one core descriptor, ordered theme and
plugin descriptors, and the post-install command list. Everything else (where,
from which hosts) is injected by the caller.
"""

import json
from enum import Enum
from pathlib import Path
from urllib.parse import urlsplit

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator
from pydantic import model_validator

PKG_FILE_NAME = "wp-package.json"
DEFAULT_INSTALL_FOLDER = "wordpress"
DEFAULT_CORE_VERSION = "latest"


def is_absolute_url(value: str) -> bool:
    """Check whether value is an absolute http(s) URL."""
    return value.startswith("http://") or value.startswith("https://")


class PackageRole(str, Enum):
    """Role of a package unit; decides destination and registry path."""

    CORE = "core"
    THEME = "theme"
    PLUGIN = "plugin"

    @property
    def registry_path(self) -> str:
        """Path segment used by the public registry (plugins/themes)."""
        return "themes" if self is PackageRole.THEME else "plugins"


class PackageSpec(BaseModel):
    """Declarative description of one installable unit."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(min_length=1)
    version: str | None = None
    source: str | None = None
    role: PackageRole

    @field_validator("version", mode="before")
    @classmethod
    def _version_as_string(cls, value):
        # JSON manifests often carry versions as bare numbers (6.4)
        if isinstance(value, int | float) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def folder_name(self) -> str:
        """Name of the folder the package ends up in."""
        if is_absolute_url(self.name):
            segment = urlsplit(self.name).path.rstrip("/").rsplit("/", 1)[-1]
            return segment.removesuffix(".zip") or self.name
        if "/" in self.name:
            return self.name.rsplit("/", 1)[-1]
        return self.name

    @property
    def key(self) -> str:
        """Identifier unique across roles (e.g. "plugin:akismet")."""
        return f"{self.role.value}:{self.name}"


class WpConfigValues(BaseModel):
    """Values written into wp-config.php for the core install."""

    model_config = ConfigDict(frozen=True)

    DB_NAME: str = "my_db_name"
    DB_USER: str = "my_username"
    DB_PASSWORD: str = "my_password"
    DB_HOST: str = "localhost"
    DB_CHARSET: str = "utf8"
    DB_COLLATE: str = ""
    table_prefix: str = "wp_"
    WP_DEBUG: bool = False


class CoreSpec(PackageSpec):
    """The core system (WordPress itself)."""

    name: str = Field(default=DEFAULT_INSTALL_FOLDER, min_length=1)
    version: str | None = DEFAULT_CORE_VERSION
    role: PackageRole = PackageRole.CORE
    language: str | None = None
    wp_config: WpConfigValues | None = Field(default=None, alias="WP_config")


def _tag_role(items, role: PackageRole) -> list:
    """Attach the role implied by the list an entry appears in."""
    if items is None:
        return []
    tagged = []
    for item in items:
        if isinstance(item, str):
            tagged.append({"name": item, "role": role})
        elif isinstance(item, dict):
            tagged.append({**item, "role": role})
        elif isinstance(item, PackageSpec) and item.role is not role:
            tagged.append(item.model_copy(update={"role": role}))
        else:
            tagged.append(item)
    return tagged


class Manifest(BaseModel):
    """
    Installation manifest (wp-package.json).

    Example:
        {
          "wordpress": {"name": "site", "version": "6.4", "language": "it_IT"},
          "plugins": [{"name": "akismet", "version": "5.3"}, "hello-dolly"],
          "themes": [{"name": "org/theme", "version": "v2"}],
          "postInstall": ["wp plugin activate akismet"]
        }
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    wordpress: CoreSpec | None = None
    themes: list[PackageSpec] = Field(default_factory=list)
    plugins: list[PackageSpec] = Field(default_factory=list)
    post_install: list[str] = Field(default_factory=list, alias="postInstall")

    @field_validator("themes", mode="before")
    @classmethod
    def _tag_themes(cls, value):
        return _tag_role(value, PackageRole.THEME)

    @field_validator("plugins", mode="before")
    @classmethod
    def _tag_plugins(cls, value):
        return _tag_role(value, PackageRole.PLUGIN)

    @field_validator("post_install", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return [] if value is None else value

    @model_validator(mode="after")
    def _unique_names(self) -> "Manifest":
        for label, packages in (("theme", self.themes), ("plugin", self.plugins)):
            seen: set[str] = set()
            duplicates = []
            for package in packages:
                if package.name in seen:
                    duplicates.append(package.name)
                seen.add(package.name)
            if duplicates:
                raise ValueError(f"Duplicate {label} name(s): {', '.join(duplicates)}")

            # Different names can still land in the same folder (a/repo, b/repo)
            folders: dict[str, str] = {}
            clashes = []
            for package in packages:
                other = folders.setdefault(package.folder_name, package.name)
                if other != package.name:
                    clashes.append(f"'{other}' and '{package.name}' -> {package.folder_name}")
            if clashes:
                raise ValueError(f"Duplicate {label} folder(s): {'; '.join(clashes)}")
        return self

    @classmethod
    def from_file(cls, manifest_path: Path) -> "Manifest":
        """
        Load manifest from a JSON file.

        Args:
            manifest_path: Path to wp-package.json

        Returns:
            Manifest instance

        Raises:
            FileNotFoundError: If the file doesn't exist
            json.JSONDecodeError: If invalid JSON
            pydantic.ValidationError: If the content doesn't match the schema
        """
        if not manifest_path.exists():
            raise FileNotFoundError(f"{PKG_FILE_NAME} not found: {manifest_path}")

        with open(manifest_path, encoding="utf-8") as f:
            data = json.load(f)

        return cls.model_validate(data)
