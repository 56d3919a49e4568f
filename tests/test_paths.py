"""Tests for install path computation."""

import tempfile
from pathlib import Path

from wpmm import InstallPaths
from wpmm import PackageRole
from wpmm import is_wordpress_folder


def test_paths_for_new_install():
    """Fresh root: the core goes into root/<core name>."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)

        paths = InstallPaths.from_root(root, "site")

        assert paths.base_folder == root / "site"
        assert paths.plugins_folder == root / "site" / "wp-content" / "plugins"
        assert paths.theme_folder == root / "site" / "wp-content" / "themes"
        assert paths.temp_dir == root / "wpmm-temp"


def test_paths_inside_existing_install():
    """A root holding wp-config.php is the base folder itself."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        (root / "wp-config.php").write_text("<?php")

        paths = InstallPaths.from_root(root, "site")

        assert paths.base_folder == root
        assert paths.plugins_folder == root / "wp-content" / "plugins"


def test_paths_are_distinct_and_nested():
    with tempfile.TemporaryDirectory() as tmpdir:
        paths = InstallPaths.from_root(Path(tmpdir), None)

        all_paths = {paths.temp_dir, paths.base_folder, paths.plugins_folder, paths.theme_folder}
        assert len(all_paths) == 4
        assert paths.base_folder.name == "wordpress"
        assert paths.base_folder in paths.plugins_folder.parents
        assert paths.base_folder in paths.theme_folder.parents
        assert paths.base_folder not in paths.temp_dir.parents


def test_destinations_table():
    with tempfile.TemporaryDirectory() as tmpdir:
        paths = InstallPaths.from_root(Path(tmpdir), "site")

        destinations = paths.destinations()

        assert destinations[PackageRole.CORE] == paths.base_folder
        assert destinations[PackageRole.PLUGIN] == paths.plugins_folder
        assert destinations[PackageRole.THEME] == paths.theme_folder


def test_is_wordpress_folder(tmp_path):
    assert not is_wordpress_folder(tmp_path)

    (tmp_path / "wp-package.json").write_text("{}")

    assert is_wordpress_folder(tmp_path)
