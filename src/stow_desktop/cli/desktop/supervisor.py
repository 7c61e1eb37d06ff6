"""Spawn and own the embedded dashboard server process."""

from __future__ import annotations

import os
import subprocess
import threading
from collections.abc import Callable, Mapping
from pathlib import Path

from stow_desktop.cli.desktop.logging import LauncherLogComponent, get_logger
from stow_desktop.cli.desktop.process_control import (
    kill_process_tree,
    track_process,
    wait_for_exit,
)
from stow_desktop.cli.desktop.resolver import (
    default_strategies,
    find_runtime_binary,
    parse_env_file,
    resolve_server_location,
)
from stow_desktop.models import EnvVarMap, LauncherConfig, ServerHandle

logger = get_logger(LauncherLogComponent.SUPERVISOR)


def build_server_env(
    base: Mapping[str, str],
    *,
    port: int,
    hostname: str,
    overrides: EnvVarMap,
) -> dict[str, str]:
    """Merge the server environment.

    Layers, lowest precedence first: the parent environment, the fixed
    PORT/HOSTNAME values, then the keys from the server's env file.
    """
    env = dict(base)
    env["PORT"] = str(port)
    env["HOSTNAME"] = hostname
    env.update(overrides)
    return env


class ServerSupervisor:
    """Owns at most one running server child process.

    The Popen object never leaves this class; callers only see a ServerHandle
    describing it. The lock guards spawn and kill calls only and is never held
    across a blocking wait.
    """

    def __init__(
        self,
        config: LauncherConfig,
        *,
        locate_server: Callable[[], Path | None] | None = None,
        locate_runtime: Callable[[], Path | None] | None = None,
    ):
        self.config: LauncherConfig = config
        self._locate_server: Callable[[], Path | None] = (
            locate_server or self._default_locate_server
        )
        self._locate_runtime: Callable[[], Path | None] = (
            locate_runtime or self._default_locate_runtime
        )
        self._lock: threading.Lock = threading.Lock()
        self._process: subprocess.Popen[bytes] | None = None
        self._handle: ServerHandle | None = None

    def _default_locate_server(self) -> Path | None:
        return resolve_server_location(
            strategies=default_strategies(
                server_dir=self.config.server_dir,
                depth=self.config.search_depth,
                entry=self.config.server_entry,
            ),
            entry=self.config.server_entry,
        )

    def _default_locate_runtime(self) -> Path | None:
        return find_runtime_binary(override=self.config.node_path)

    @property
    def handle(self) -> ServerHandle | None:
        """Description of the tracked child, or None if nothing is running."""
        with self._lock:
            self._clear_if_exited()
            return self._handle

    def is_running(self) -> bool:
        return self.handle is not None

    def _clear_if_exited(self) -> None:
        # Caller holds the lock.
        if self._process is not None and self._process.poll() is not None:
            logger.info(
                f"Server pid={self._process.pid} exited with code {self._process.returncode}"
            )
            self._process = None
            self._handle = None

    def start(self) -> ServerHandle | None:
        """Spawn the server if it can be located and none is running yet.

        Returns:
            The handle of the new child, or None when nothing was spawned
            (server or runtime not found, spawn rejected, or already running)
        """
        with self._lock:
            self._clear_if_exited()
            if self._handle is not None:
                logger.warning(
                    f"Server already running (pid={self._handle.pid}); not starting another"
                )
                return None

        server_dir = self._locate_server()
        if server_dir is None:
            logger.error("Could not find the standalone server directory")
            return None
        logger.info(f"Standalone dir: {server_dir}")

        entry = server_dir / self.config.server_entry
        if not entry.is_file():
            logger.error(f"{self.config.server_entry} not found at {entry}")
            return None

        runtime = self._locate_runtime()
        if runtime is None:
            logger.error("Could not find node binary")
            return None
        logger.info(f"Using node at: {runtime}")

        env_vars = parse_env_file(server_dir / self.config.env_file_name)
        logger.info(f"Starting server with {len(env_vars)} env vars")
        env = build_server_env(
            os.environ,
            port=self.config.port,
            hostname=self.config.hostname,
            overrides=env_vars,
        )

        with self._lock:
            # Re-check: another thread may have started the server meanwhile.
            self._clear_if_exited()
            if self._handle is not None:
                logger.warning("Server was started concurrently; not starting another")
                return None
            try:
                process = subprocess.Popen(
                    [str(runtime), self.config.server_entry],
                    cwd=server_dir,
                    env=env,
                    stdin=subprocess.DEVNULL,
                )
            except (OSError, ValueError) as e:
                logger.error(f"Failed to start server: {e}")
                return None
            handle = track_process(process.pid)
            self._process = process
            self._handle = handle

        logger.info(f"Server started with PID {process.pid}")
        return handle

    def stop(self) -> None:
        """Forcefully kill the tracked server (and its descendants).

        Safe to call when nothing is running.
        """
        with self._lock:
            process, handle = self._process, self._handle
            self._process = None
            self._handle = None
            if process is None or handle is None:
                return
            signalled = kill_process_tree(handle) if process.poll() is None else []
            if not signalled and process.poll() is None:
                process.kill()

        # Reap outside the lock.
        wait_for_exit(signalled)
        try:
            process.wait(timeout=3.0)
        except subprocess.TimeoutExpired:
            logger.warning(f"Server pid={handle.pid} did not exit after kill")
            return
        logger.info(f"Server pid={handle.pid} stopped")
