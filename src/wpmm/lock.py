"""Install lock file management.

Records what each run actually installed (resolved source, version, path),
so a manifest can be reproduced or audited later. The lock path is injected
by the app.
"""

import json
import logging
from dataclasses import asdict
from dataclasses import dataclass
from datetime import UTC
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class InstallLockEntry:
    """Entry in the install lock file."""

    name: str
    role: str
    version: str | None
    source: str
    path: str
    installed_at: str

    @property
    def key(self) -> str:
        return f"{self.role}:{self.name}"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "InstallLockEntry":
        """Create from dictionary."""
        return cls(**data)


class InstallLock:
    """
    Install lock file manager (with injected lock path).

    Lock format (JSON):
    {
      "version": "1.0",
      "packages": {
        "plugin:akismet": {
          "name": "akismet",
          "role": "plugin",
          "version": "5.3",
          "source": "https://downloads.wordpress.org/plugins/akismet.5.3.zip",
          "path": "/srv/www/site/wp-content/plugins/akismet",
          "installed_at": "2025-10-26T12:00:00+00:00"
        }
      }
    }
    """

    VERSION = "1.0"

    def __init__(self, lock_path: Path):
        """Initialize lock manager with app-provided lock path.

        Args:
            lock_path: Path to lock file (app determines location)
        """
        self.lock_path = lock_path
        self._data: dict[str, InstallLockEntry] = {}
        self._load()

    def _load(self) -> None:
        """Load lock file if it exists."""
        if not self.lock_path.exists():
            self._data = {}
            return

        try:
            with open(self.lock_path, encoding="utf-8") as f:
                data = json.load(f)

            if data.get("version") != self.VERSION:
                logger.warning(f"Lock file version mismatch: expected {self.VERSION}, got {data.get('version')}")

            packages = data.get("packages", {})
            self._data = {key: InstallLockEntry.from_dict(entry) for key, entry in packages.items()}

            logger.debug(f"Loaded {len(self._data)} packages from lock file")

        except (OSError, ValueError, TypeError) as e:
            logger.error(f"Failed to load lock file {self.lock_path}: {e}")
            self._data = {}

    def _save(self) -> None:
        """Save lock file."""
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "version": self.VERSION,
            "packages": {key: entry.to_dict() for key, entry in self._data.items()},
        }

        try:
            with open(self.lock_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            logger.debug(f"Saved lock file with {len(self._data)} packages")
        except OSError as e:
            logger.error(f"Failed to save lock file {self.lock_path}: {e}")

    def add_entry(
        self,
        name: str,
        role: str,
        version: str | None,
        source: str,
        path: Path,
    ) -> None:
        """
        Add or update a package in the lock file.

        Args:
            name: Package name
            role: Package role (core/theme/plugin)
            version: Declared version (None if not pinned)
            source: Resolved fetch URL
            path: Installation path
        """
        entry = InstallLockEntry(
            name=name,
            role=role,
            version=version,
            source=source,
            path=str(path),
            installed_at=datetime.now(UTC).isoformat(),
        )

        self._data[entry.key] = entry
        self._save()

        logger.debug(f"Added {entry.key} to lock file")

    def remove_entry(self, name: str, role: str) -> None:
        """Remove a package from the lock file."""
        key = f"{role}:{name}"
        if key in self._data:
            del self._data[key]
            self._save()
            logger.debug(f"Removed {key} from lock file")

    def get_entry(self, name: str, role: str) -> InstallLockEntry | None:
        """Get the lock entry for a package, or None if not tracked."""
        return self._data.get(f"{role}:{name}")

    def list_entries(self) -> list[InstallLockEntry]:
        """List all recorded packages."""
        return list(self._data.values())
