"""Locate the standalone server bundle, the node runtime, and the server's env file.

Everything here is a pure lookup: no writes, no process spawns.
"""

from __future__ import annotations

import shutil
import sys
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import TypeAlias

from stow_desktop.cli.desktop.logging import LauncherLogComponent, get_logger
from stow_desktop.constants import (
    ANCESTOR_SEARCH_DEPTH,
    MACOS_RESOURCES_SUBPATH,
    RUNTIME_BINARY,
    RUNTIME_BINARY_CANDIDATES,
    SERVER_ENTRY,
    STANDALONE_SUBPATH,
)
from stow_desktop.models import EnvVarMap

logger = get_logger(LauncherLogComponent.RESOLVER)

ResolutionStrategy: TypeAlias = Callable[[Path], Path | None]


def current_executable() -> Path:
    """Return the path the launcher runs from.

    A frozen (PyInstaller) build reports its own binary; otherwise the
    launcher's source location stands in for it.
    """
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve()
    return Path(__file__).resolve()


# === Resolution strategies ===


def macos_bundle_strategy(exe_path: Path) -> Path | None:
    """`<App>.app/Contents/MacOS/<exe>` -> `<App>.app/Contents/Resources/standalone`."""
    candidate = exe_path.parent.parent.joinpath(*MACOS_RESOURCES_SUBPATH)
    if candidate.is_dir():
        return candidate
    return None


def ancestor_walk_strategy(
    depth: int = ANCESTOR_SEARCH_DEPTH, entry: str = SERVER_ENTRY
) -> ResolutionStrategy:
    """Build a strategy that walks up from the executable looking for the build output."""

    def _walk(exe_path: Path) -> Path | None:
        current = exe_path
        for _ in range(depth):
            parent = current.parent
            if parent == current:
                return None
            current = parent
            standalone = current.joinpath(*STANDALONE_SUBPATH)
            if (standalone / entry).is_file():
                return standalone
        return None

    return _walk


def fixed_directory_strategy(directory: Path) -> ResolutionStrategy:
    """Build a strategy that always proposes an explicitly configured directory."""

    def _fixed(_exe_path: Path) -> Path | None:
        return directory.expanduser()

    return _fixed


def platform_strategies(platform: str | None = None) -> list[ResolutionStrategy]:
    """Strategies that only apply on some platforms (empty elsewhere)."""
    platform = platform or sys.platform
    if platform == "darwin":
        return [macos_bundle_strategy]
    return []


def default_strategies(
    *,
    server_dir: Path | None = None,
    depth: int = ANCESTOR_SEARCH_DEPTH,
    entry: str = SERVER_ENTRY,
    platform: str | None = None,
) -> list[ResolutionStrategy]:
    """Ordered strategies: configured directory, platform bundle, ancestor walk."""
    strategies: list[ResolutionStrategy] = []
    if server_dir is not None:
        strategies.append(fixed_directory_strategy(server_dir))
    strategies.extend(platform_strategies(platform))
    strategies.append(ancestor_walk_strategy(depth=depth, entry=entry))
    return strategies


def resolve_server_location(
    exe_path: Path | None = None,
    strategies: Sequence[ResolutionStrategy] | None = None,
    entry: str = SERVER_ENTRY,
) -> Path | None:
    """Return the first directory proposed by a strategy that contains the server entry.

    Args:
        exe_path: Location to resolve from (defaults to the running executable)
        strategies: Ordered resolution strategies (defaults to `default_strategies()`)
        entry: File name the server directory must contain

    Returns:
        The server directory, or None if no strategy found one
    """
    exe_path = exe_path or current_executable()
    if strategies is None:
        strategies = default_strategies(entry=entry)

    for strategy in strategies:
        candidate = strategy(exe_path)
        if candidate is None:
            continue
        if (candidate / entry).is_file():
            logger.debug(f"Server directory resolved to {candidate}")
            return candidate
        logger.debug(f"Skipping {candidate}: no {entry}")
    return None


# === Runtime binary ===


def find_runtime_binary(
    candidates: Iterable[str | Path] = RUNTIME_BINARY_CANDIDATES,
    *,
    override: Path | None = None,
    which: Callable[[str], str | None] = shutil.which,
    name: str = RUNTIME_BINARY,
) -> Path | None:
    """Return the first existing runtime binary.

    Checks the explicit override, then well-known install locations, then the
    shell's command lookup (PATH). The runtime itself is never executed.
    """
    ordered: list[Path] = []
    if override is not None:
        ordered.append(override.expanduser())
    ordered.extend(Path(c) for c in candidates)

    for path in ordered:
        if path.is_file():
            return path

    found = which(name)
    if found:
        return Path(found)
    return None


# === Environment file ===


def parse_env_lines(lines: Iterable[str]) -> EnvVarMap:
    """Parse `KEY=VALUE` lines; later keys overwrite earlier ones."""
    env_vars: EnvVarMap = {}
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key:
            continue
        env_vars[key] = value.strip()
    return env_vars


def parse_env_file(path: Path) -> EnvVarMap:
    """Parse an env file, returning an empty map if it is missing or unreadable."""
    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return {}
    return parse_env_lines(content.splitlines())
