"""Process tracking and forceful stop helpers for the supervised server.

Rules:
- Only kill processes we started (tracked by pid + create_time).
- Kill the whole tree: `node server.js` may have spawned workers of its own.
- Keep the kill request separate from the wait so callers can release locks in between.
"""

from __future__ import annotations

import os

import psutil

from stow_desktop.cli.desktop.logging import LauncherLogComponent, get_logger
from stow_desktop.models import ServerHandle

logger = get_logger(LauncherLogComponent.PROCESS_CONTROL)


def _get_pgid_safe(pid: int) -> int | None:
    # Windows doesn't have pgid.
    if os.name == "nt":
        return None
    try:
        return os.getpgid(pid)
    except OSError:
        return None


def track_process(pid: int) -> ServerHandle:
    """Describe a freshly spawned PID, recording create_time and pgid when available."""
    try:
        create_time: float | None = float(psutil.Process(pid).create_time())
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        create_time = None
    return ServerHandle(pid=pid, create_time=create_time, pgid=_get_pgid_safe(pid))


def validate_tracked(handle: ServerHandle) -> psutil.Process | None:
    """Return the live process behind `handle`, or None if the PID now belongs to someone else."""
    try:
        proc = psutil.Process(handle.pid)
        if handle.create_time is not None and (
            abs(float(proc.create_time()) - handle.create_time) > 0.001
        ):
            return None
        return proc
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return None


def kill_process_tree(handle: ServerHandle) -> list[psutil.Process]:
    """Send a forceful kill to a tracked process and its descendants.

    Returns the processes that were signalled so the caller can reap them
    later with `wait_for_exit`, outside of any lock.
    """
    root = validate_tracked(handle)
    if root is None:
        return []

    try:
        children = root.children(recursive=True)
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        children = []

    signalled: list[psutil.Process] = []
    for proc in [root, *children]:
        try:
            proc.kill()
            signalled.append(proc)
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied as e:
            logger.warning(f"Could not kill pid={proc.pid}: {e}")
    logger.debug(f"Killed pid={handle.pid} with {len(children)} descendant(s)")
    return signalled


def wait_for_exit(procs: list[psutil.Process], timeout: float = 3.0) -> bool:
    """Wait for signalled processes to exit. Returns True if none are left alive."""
    if not procs:
        return True
    _, alive = psutil.wait_procs(procs, timeout=timeout)
    if alive:
        logger.warning(f"{len(alive)} process(es) still alive after kill")
    return not alive
