"""TCP readiness probe for the supervised server."""

from __future__ import annotations

import socket
import time

from stow_desktop.cli.desktop.logging import LauncherLogComponent, get_logger
from stow_desktop.constants import (
    DEFAULT_HOST,
    PROBE_INTERVAL_SECONDS,
    PROBE_TIMEOUT_SECONDS,
)

logger = get_logger(LauncherLogComponent.HEALTH)


def is_port_open(host: str, port: int, timeout: float = PROBE_INTERVAL_SECONDS) -> bool:
    """Return True if something accepts TCP connections on host:port."""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


def wait_until_ready(
    port: int,
    timeout: float = PROBE_TIMEOUT_SECONDS,
    *,
    host: str = DEFAULT_HOST,
    interval: float = PROBE_INTERVAL_SECONDS,
) -> bool:
    """Poll host:port until it accepts a connection or `timeout` seconds elapse.

    Blocks the calling thread; never call it from the UI thread. This is a
    liveness check only: it says nothing about the application being healthy.

    Args:
        port: Port to connect to
        timeout: Overall budget in seconds
        host: Host to connect to (default: localhost)
        interval: Fixed delay between attempts

    Returns:
        True as soon as a connection succeeds, False once the budget is spent
    """
    start = time.monotonic()
    deadline = start + timeout
    attempts = 0
    while True:
        attempts += 1
        remaining = deadline - time.monotonic()
        if is_port_open(host, port, timeout=max(0.01, min(interval, remaining))):
            logger.info(
                f"{host}:{port} is accepting connections after {time.monotonic() - start:.2f}s"
            )
            return True
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            logger.warning(
                f"{host}:{port} not reachable after {attempts} attempt(s) in {timeout:.1f}s"
            )
            return False
        time.sleep(min(interval, remaining))
