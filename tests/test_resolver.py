"""Tests for SourceResolver with injected hosts."""

import pytest
from wpmm import AbsoluteUrl
from wpmm import CoreSpec
from wpmm import GitRepository
from wpmm import InvalidSourceError
from wpmm import PackageRole
from wpmm import PackageSpec
from wpmm import RegistrySynthesized
from wpmm import SourceResolver
from wpmm import get_core_download_url
from wpmm import resolve_source


def plugin(name: str, **kwargs) -> PackageSpec:
    return PackageSpec(name=name, role=PackageRole.PLUGIN, **kwargs)


def test_absolute_url_name():
    source = resolve_source(plugin("http://x.com/p.zip"))

    assert isinstance(source, AbsoluteUrl)
    assert source.url == "http://x.com/p.zip"


def test_owner_repo_with_version_targets_tag():
    source = resolve_source(plugin("owner/repo", version="v2"))

    assert isinstance(source, GitRepository)
    assert source.url == "https://github.com/owner/repo/archive/refs/tags/v2.zip"
    assert source.ref == "v2"
    assert source.clone is False


def test_owner_repo_without_version_targets_default_branch():
    source = resolve_source(plugin("owner/repo"))

    assert isinstance(source, GitRepository)
    assert source.url == "https://github.com/owner/repo/archive/refs/heads/main.zip"


def test_injected_default_branch():
    resolver = SourceResolver(default_branch="trunk")

    assert resolver.resolve(plugin("owner/repo")).url.endswith("/refs/heads/trunk.zip")


def test_registry_with_version():
    source = resolve_source(plugin("plain-name", version="1.2"))

    assert isinstance(source, RegistrySynthesized)
    assert source.url == "https://downloads.wordpress.org/plugins/plain-name.1.2.zip"


def test_registry_theme_without_version():
    source = resolve_source(PackageSpec(name="twentytwentyfour", role=PackageRole.THEME))

    assert source.url == "https://downloads.wordpress.org/themes/twentytwentyfour.zip"


def test_injected_registry_base():
    resolver = SourceResolver(registry_base="https://mirror.local/wp/")

    assert resolver.resolve(plugin("akismet")).url == "https://mirror.local/wp/plugins/akismet.zip"


@pytest.mark.parametrize("name", ["a/b/c", "/repo", "owner/"])
def test_malformed_slash_name(name):
    with pytest.raises(InvalidSourceError):
        resolve_source(plugin(name))


def test_explicit_source_overrides_registry():
    source = resolve_source(plugin("akismet", source="https://example.com/akismet-custom.zip"))

    assert isinstance(source, AbsoluteUrl)
    assert source.url == "https://example.com/akismet-custom.zip"


def test_explicit_git_source_is_cloned():
    source = resolve_source(plugin("my-plugin", version="1.0", source="https://github.com/org/my-plugin.git"))

    assert isinstance(source, GitRepository)
    assert source.clone is True
    assert source.ref == "1.0"


def test_explicit_source_wins_over_shorthand_name():
    source = resolve_source(plugin("owner/repo", source="git@github.com:owner/repo.git"))

    assert isinstance(source, GitRepository)
    assert source.clone is True
    assert source.url == "git@github.com:owner/repo.git"


def test_unrecognized_explicit_source():
    with pytest.raises(InvalidSourceError, match="Unrecognized source"):
        resolve_source(plugin("my-plugin", source="not-a-url"))


def test_core_uses_core_download_url():
    source = resolve_source(CoreSpec(name="site", version="6.4"))

    assert isinstance(source, RegistrySynthesized)
    assert source.url == "https://wordpress.org/wordpress-6.4.zip"


def test_core_language_selects_localized_host():
    source = resolve_source(CoreSpec(name="site", version="6.4", language="it_IT"))

    assert source.url == "https://it.wordpress.org/wordpress-6.4-it_IT.zip"


def test_core_uses_injected_default_locale():
    resolver = SourceResolver(default_locale="de_DE")

    assert resolver.resolve(CoreSpec(version="6.4")).url == "https://de.wordpress.org/wordpress-6.4-de_DE.zip"


class TestCoreDownloadUrl:
    def test_no_language(self):
        assert get_core_download_url("5.7.1") == "https://wordpress.org/wordpress-5.7.1.zip"

    def test_english_variant(self):
        assert get_core_download_url("5.7.1", "en-US") == "https://wordpress.org/wordpress-5.7.1.zip"
        assert get_core_download_url("5.7.1", "en_GB") == "https://wordpress.org/wordpress-5.7.1.zip"

    def test_localized(self):
        assert get_core_download_url("5.7.1", "it_IT") == "https://it.wordpress.org/wordpress-5.7.1-it_IT.zip"
