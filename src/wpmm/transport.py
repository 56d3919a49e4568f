"""Archive transport - download archives over HTTP and unpack them.

Redirects are followed by hand: registry and VCS archive endpoints redirect
on the normal path, and each hop must land in the same destination file.
"""

import logging
import zipfile
from functools import reduce
from pathlib import Path

import httpx

from .exceptions import ExtractionError
from .exceptions import TransportError
from .schema import is_absolute_url

logger = logging.getLogger(__name__)

USER_AGENT = "wpmm - WordPress Package Manager"
REQUEST_HEADERS = {"User-Agent": USER_AGENT}
DEFAULT_TIMEOUT = httpx.Timeout(60.0, connect=15.0)
MAX_REDIRECTS = 10


def create_client(**kwargs) -> httpx.AsyncClient:
    """Build the AsyncClient used for all downloads of a run."""
    kwargs.setdefault("timeout", DEFAULT_TIMEOUT)
    kwargs.setdefault("headers", REQUEST_HEADERS)
    return httpx.AsyncClient(**kwargs)


async def fetch(
    url: str,
    destination_file: Path,
    client: httpx.AsyncClient | None = None,
    max_redirects: int = MAX_REDIRECTS,
) -> None:
    """
    Download url into destination_file.

    Skips entirely when destination_file already exists, so repeated runs
    against a populated temp directory don't download again.

    Args:
        url: Absolute http(s) URL
        destination_file: File to write the response body to
        client: Optional shared client (a private one is created otherwise)
        max_redirects: Maximum number of redirect hops to follow

    Raises:
        TransportError: On status >= 400, connection failure, non-HTTP URL
            or too many redirects
    """
    if destination_file.exists():
        logger.info(f"{destination_file} already exists. Skipping download.")
        return

    if client is None:
        async with create_client() as own_client:
            await _fetch(own_client, url, destination_file, max_redirects)
        return

    await _fetch(client, url, destination_file, max_redirects)


async def _fetch(client: httpx.AsyncClient, url: str, destination_file: Path, redirects_left: int) -> None:
    if not is_absolute_url(url):
        raise TransportError(f"Not an http(s) URL: {url}", context={"url": url})

    next_url = None
    try:
        async with client.stream("GET", url, headers=REQUEST_HEADERS, follow_redirects=False) as response:
            status = response.status_code
            location = response.headers.get("Location")

            if 300 <= status < 400:
                if not location:
                    raise TransportError(
                        f"GET {url} failed: {status} {response.reason_phrase} without a Location header",
                        context={"url": url, "status": status},
                    )
                next_url = str(response.url.join(location))
            elif status >= 400:
                raise TransportError(
                    f"GET {url} failed: {status} {response.reason_phrase}",
                    context={"url": url, "status": status},
                )
            else:
                await _write_body(response, destination_file)
    except httpx.HTTPError as e:
        raise TransportError(f"GET {url} failed: {e}", context={"url": url}) from e

    if next_url is None:
        logger.debug(f"Downloaded {url} to {destination_file}")
        return

    if redirects_left <= 0:
        raise TransportError(f"Too many redirects while fetching {url}", context={"url": url})

    logger.debug(f"Following redirect {url} -> {next_url}")
    await _fetch(client, next_url, destination_file, redirects_left - 1)


async def _write_body(response: httpx.Response, destination_file: Path) -> None:
    destination_file.parent.mkdir(parents=True, exist_ok=True)
    try:
        with open(destination_file, "wb") as f:
            async for chunk in response.aiter_bytes():
                f.write(chunk)
    except BaseException:
        # A partial archive would be picked up by the skip-if-exists check
        destination_file.unlink(missing_ok=True)
        raise


def _fold_common_root(common: list[str] | None, entry_name: str) -> list[str]:
    """Shrink the running common prefix with one archive entry.

    File entries contribute their directory segments only, so a
    single-file archive doesn't report the file itself as the root.
    """
    normalized = entry_name.replace("\\", "/")
    parts = [part for part in normalized.split("/") if part]
    if not normalized.endswith("/"):
        parts = parts[:-1]

    if common is None:
        return parts

    shared = []
    for ours, theirs in zip(common, parts):
        if ours != theirs:
            break
        shared.append(ours)
    return shared


def common_root(entry_names: list[str]) -> str:
    """Common leading directory of all entries ("" when there is none)."""
    prefix = reduce(_fold_common_root, entry_names, None)
    return "/".join(prefix or [])


def extract(archive_path: Path, target_directory: Path) -> str:
    """
    Unpack a zip archive into target_directory.

    Args:
        archive_path: Path to the zip file
        target_directory: Directory to extract into (created if needed)

    Returns:
        Common root folder shared by every entry (e.g. "plugin-name-1.2.3"),
        or "" for an empty archive or one without a single root

    Raises:
        ExtractionError: If the archive is corrupt or unreadable
    """
    try:
        target_directory.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(archive_path) as archive:
            entry_names = archive.namelist()
            archive.extractall(target_directory)
    except (zipfile.BadZipFile, zipfile.LargeZipFile, NotImplementedError, RuntimeError, OSError) as e:
        raise ExtractionError(
            f"Error extracting {archive_path}: {e}",
            context={"archive": str(archive_path), "target": str(target_directory)},
        ) from e

    root = common_root(entry_names)
    logger.debug(f"Extracted {archive_path.name} to {target_directory} (root: {root or '<none>'})")
    return root
