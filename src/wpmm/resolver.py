"""Source resolver - Turn a package spec into a concrete fetch source.

Hosts, default branch and locale are policy and are injected; the resolver
itself does no I/O.

Precedence (first match wins):
1. Explicit VCS locator (source ending in ".git") -> cloned
2. Explicit absolute URL (source, then name) -> downloaded verbatim
3. "owner/repo" shorthand name -> VCS archive download
4. Registry synthesis (core download URL for the core role)
"""

import logging
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict

from .exceptions import InvalidSourceError
from .schema import DEFAULT_CORE_VERSION
from .schema import CoreSpec
from .schema import PackageRole
from .schema import PackageSpec
from .schema import is_absolute_url

logger = logging.getLogger(__name__)

REGISTRY_BASE = "https://downloads.wordpress.org"
VCS_HOST = "https://github.com"
DEFAULT_BRANCH = "main"
CORE_HOST = "wordpress.org"
DEFAULT_LOCALE = "en_US"
VCS_SUFFIX = ".git"


class AbsoluteUrl(BaseModel):
    """Explicit http(s) URL used verbatim."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["absolute"] = "absolute"
    url: str


class GitRepository(BaseModel):
    """VCS source: either a clonable locator or a synthesized archive URL."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["git"] = "git"
    url: str
    ref: str | None = None
    clone: bool = False


class RegistrySynthesized(BaseModel):
    """URL built from the public registry (or core download) convention."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["registry"] = "registry"
    url: str


ResolvedSource = AbsoluteUrl | GitRepository | RegistrySynthesized


class SourceResolver:
    """
    Resolve package specs to fetch sources (with injected hosts).

    Example:
        >>> resolver = SourceResolver(default_locale="it_IT")
        >>> resolver.resolve(PackageSpec(name="akismet", version="5.3", role=PackageRole.PLUGIN)).url
        'https://downloads.wordpress.org/plugins/akismet.5.3.zip'
    """

    def __init__(
        self,
        registry_base: str = REGISTRY_BASE,
        vcs_host: str = VCS_HOST,
        default_branch: str = DEFAULT_BRANCH,
        core_host: str = CORE_HOST,
        default_locale: str | None = DEFAULT_LOCALE,
    ):
        self.registry_base = registry_base.rstrip("/")
        self.vcs_host = vcs_host.rstrip("/")
        self.default_branch = default_branch
        self.core_host = core_host
        self.default_locale = default_locale

    def resolve(self, spec: PackageSpec) -> ResolvedSource:
        """
        Resolve a package spec to a fetch source.

        Args:
            spec: Package to resolve

        Returns:
            AbsoluteUrl, GitRepository or RegistrySynthesized

        Raises:
            InvalidSourceError: If the source or name is malformed
        """
        if spec.source:
            return self._resolve_explicit(spec)

        if is_absolute_url(spec.name):
            return AbsoluteUrl(url=spec.name)

        if "/" in spec.name:
            return self._resolve_shorthand(spec)

        if spec.role is PackageRole.CORE:
            language = spec.language if isinstance(spec, CoreSpec) else None
            url = self.core_download_url(spec.version or DEFAULT_CORE_VERSION, language)
            return RegistrySynthesized(url=url)

        name = f"{spec.name}.{spec.version}" if spec.version else spec.name
        return RegistrySynthesized(url=f"{self.registry_base}/{spec.role.registry_path}/{name}.zip")

    def core_download_url(self, version: str, locale: str | None = None) -> str:
        """
        Download URL of the core package for a version and locale.

        Locales starting with "en" use the canonical host; anything else
        uses the localized host, e.g. it_IT -> https://it.wordpress.org/wordpress-6.4-it_IT.zip.
        """
        locale = locale or self.default_locale
        if locale and not locale.startswith("en"):
            return f"https://{locale[:2].lower()}.{self.core_host}/wordpress-{version}-{locale}.zip"
        return f"https://{self.core_host}/wordpress-{version}.zip"

    def _resolve_explicit(self, spec: PackageSpec) -> ResolvedSource:
        source = spec.source or ""
        if source.endswith(VCS_SUFFIX):
            return GitRepository(url=source, ref=spec.version, clone=True)
        if is_absolute_url(source):
            return AbsoluteUrl(url=source)
        raise InvalidSourceError(
            f"Unrecognized source for {spec.role.value} '{spec.name}': {source}",
            context={"name": spec.name, "source": source},
        )

    def _resolve_shorthand(self, spec: PackageSpec) -> GitRepository:
        parts = spec.name.split("/")
        if len(parts) != 2 or not all(parts):
            raise InvalidSourceError(
                f"Invalid {spec.role.value} name '{spec.name}': expected 'owner/repo'",
                context={"name": spec.name},
            )

        owner, repo = parts
        if spec.version:
            ref = f"tags/{spec.version}"
        else:
            ref = f"heads/{self.default_branch}"
        url = f"{self.vcs_host}/{owner}/{repo}/archive/refs/{ref}.zip"
        logger.debug(f"Resolved '{spec.name}' to VCS archive {url}")
        return GitRepository(url=url, ref=spec.version or self.default_branch)


_default_resolver = SourceResolver()


def resolve_source(spec: PackageSpec) -> ResolvedSource:
    """Resolve spec with the default hosts."""
    return _default_resolver.resolve(spec)


def get_core_download_url(version: str, locale: str | None = None) -> str:
    """Core download URL with the default hosts."""
    return _default_resolver.core_download_url(version, locale)
