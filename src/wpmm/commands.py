"""External processes: git clone, secondary builds and post-install commands.

Every command is an argument vector passed to create_subprocess_exec; nothing
from the manifest ever reaches a shell.
"""

import asyncio
import json
import logging
import shlex
import shutil
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from .exceptions import CloneError
from .exceptions import SecondaryBuildError

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Outcome of one external process."""

    args: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner(Protocol):
    """Protocol for running external commands.

    Apps and tests can swap in any implementation; the default is run_command.
    """

    async def __call__(self, args: Sequence[str], cwd: Path | None = None) -> CommandResult:
        """Run args (no shell) in cwd and capture output.

        Raises:
            OSError: If the executable cannot be started
        """
        ...


async def run_command(args: Sequence[str], cwd: Path | None = None) -> CommandResult:
    """Run a command and wait for it, capturing stdout/stderr."""
    argv = [str(arg) for arg in args]
    logger.debug(f"Running {shlex.join(argv)} (cwd={cwd})")
    process = await asyncio.create_subprocess_exec(
        *argv,
        cwd=cwd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await process.communicate()
    return CommandResult(
        args=argv,
        returncode=process.returncode if process.returncode is not None else -1,
        stdout=stdout.decode(errors="replace"),
        stderr=stderr.decode(errors="replace"),
    )


async def clone_repository(
    url: str,
    destination: Path,
    ref: str | None = None,
    runner: CommandRunner = run_command,
) -> None:
    """
    Shallow-clone a repository into destination.

    Args:
        url: Repository locator (e.g. https://github.com/org/theme.git)
        destination: Folder to clone into (must not exist)
        ref: Optional branch or tag to check out
        runner: Command runner

    Raises:
        CloneError: If git is missing or exits non-zero
    """
    args = ["git", "clone", "--depth", "1"]
    if ref:
        args += ["--branch", ref]
    args += ["--", url, str(destination)]

    destination.parent.mkdir(parents=True, exist_ok=True)
    try:
        result = await runner(args)
    except OSError as e:
        raise CloneError(f"Failed to start git for {url}: {e}", context={"url": url}) from e

    if not result.ok:
        raise CloneError(
            f"git clone {url} failed (exit {result.returncode}): {result.stderr.strip()}",
            context={"url": url, "destination": str(destination)},
        )
    logger.debug(f"Cloned {url} into {destination}")


def _build_steps(folder: Path) -> list[list[str]]:
    """Commands needed to install dependencies of a package folder."""
    steps: list[list[str]] = []

    package_json = folder / "package.json"
    if package_json.exists():
        try:
            with open(package_json, encoding="utf-8") as f:
                package_data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise SecondaryBuildError(f"Unreadable {package_json}: {e}", context={"folder": str(folder)}) from e

        if (folder / "package-lock.json").exists():
            steps.append(["npm", "ci"])
        else:
            steps.append(["npm", "install"])

        scripts = package_data.get("scripts") if isinstance(package_data, dict) else None
        if isinstance(scripts, dict) and "build" in scripts:
            steps.append(["npm", "run", "build"])

    if (folder / "composer.json").exists():
        steps.append(["composer", "install", "--no-dev"])
        steps.append(["composer", "dumpautoload", "-o"])

    return steps


async def run_secondary_build(folder: Path, runner: CommandRunner = run_command) -> bool:
    """
    Install dependencies for a package that ships its own build manifest.

    Returns:
        True if any build step ran, False if the folder has no manifest

    Raises:
        SecondaryBuildError: If a step can't be started or exits non-zero
    """
    steps = _build_steps(folder)
    if not steps:
        return False

    logger.info(f"Installing and building dependencies in {folder}")
    for args in steps:
        try:
            result = await runner(args, cwd=folder)
        except OSError as e:
            raise SecondaryBuildError(
                f"Failed to start '{shlex.join(args)}' in {folder}: {e}",
                context={"folder": str(folder), "command": args},
            ) from e
        if not result.ok:
            raise SecondaryBuildError(
                f"'{shlex.join(args)}' failed in {folder} (exit {result.returncode}): {result.stderr.strip()}",
                context={"folder": str(folder), "command": args},
            )
    logger.info(f"Dependencies installed and built in {folder}")
    return True


def is_wp_cli_available() -> bool:
    """Check if WP-CLI (wp) is on PATH."""
    return shutil.which("wp") is not None


async def run_post_install_commands(
    commands: Sequence[str],
    cwd: Path | None = None,
    runner: CommandRunner = run_command,
) -> list[str]:
    """
    Run post-install commands one after another, in order.

    A failing command is logged and does not stop the following ones.

    Returns:
        Commands that failed
    """
    failed: list[str] = []
    for command in commands:
        logger.info(f"Executing: {command}")
        try:
            args = shlex.split(command)
        except ValueError as e:
            logger.error(f"Cannot parse command '{command}': {e}")
            failed.append(command)
            continue
        if not args:
            continue

        try:
            result = await runner(args, cwd=cwd)
        except OSError as e:
            logger.error(f"Error executing command '{command}': {e}")
            failed.append(command)
            continue

        if result.stdout:
            logger.info(f"Command output:\n{result.stdout.rstrip()}")
        if not result.ok:
            logger.error(f"Command '{command}' exited with {result.returncode}: {result.stderr.strip()}")
            failed.append(command)
        elif result.stderr:
            logger.warning(f"Command stderr:\n{result.stderr.rstrip()}")
    return failed
