"""Shared test helpers: in-memory zip archives, mock HTTP and a fake command runner."""

import io
import zipfile
from collections.abc import Sequence
from pathlib import Path

import httpx
import pytest
from wpmm.commands import CommandResult


def make_zip(entries: dict[str, str | bytes]) -> bytes:
    """Build a zip archive in memory (names ending in "/" are directories)."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in entries.items():
            archive.writestr(name, content)
    return buffer.getvalue()


class MockRegistry:
    """URL -> response table served through httpx.MockTransport."""

    def __init__(self, routes: dict[str, httpx.Response] | None = None):
        self.routes = dict(routes or {})
        self.requests: list[str] = []

    def add_zip(self, url: str, entries: dict[str, str | bytes]) -> None:
        self.routes[url] = httpx.Response(200, content=make_zip(entries))

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        response = self.routes.get(url)
        if response is None:
            return httpx.Response(404, text="not found")
        return httpx.Response(response.status_code, headers=response.headers, content=response.content)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


class FakeRunner:
    """Records commands instead of running them.

    `git clone` creates the destination folder so the unit sees a checkout.
    """

    def __init__(self, returncodes: dict[str, int] | None = None):
        self.returncodes = returncodes or {}
        self.calls: list[tuple[list[str], Path | None]] = []

    async def __call__(self, args: Sequence[str], cwd: Path | None = None) -> CommandResult:
        argv = [str(arg) for arg in args]
        self.calls.append((argv, cwd))
        returncode = self.returncodes.get(" ".join(argv), 0)
        if returncode == 0 and argv[:2] == ["git", "clone"]:
            Path(argv[-1]).mkdir(parents=True)
        stderr = "" if returncode == 0 else "command failed"
        return CommandResult(args=argv, returncode=returncode, stdout="", stderr=stderr)

    @property
    def commands(self) -> list[list[str]]:
        return [argv for argv, _cwd in self.calls]


@pytest.fixture
def registry() -> MockRegistry:
    return MockRegistry()


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()
