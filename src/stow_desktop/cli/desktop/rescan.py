"""Fire-and-forget rescan notification for the running dashboard server."""

from __future__ import annotations

import threading

import httpx

from stow_desktop.cli.desktop.logging import LauncherLogComponent, get_logger
from stow_desktop.constants import RESCAN_MAX_INFLIGHT, RESCAN_TIMEOUT_SECONDS

logger = get_logger(LauncherLogComponent.RESCAN)


class RescanTrigger:
    """Ask the server to re-scan projects without waiting for the outcome.

    Each call runs on its own daemon thread. At most `max_inflight` requests
    are outstanding at once; further calls are dropped until one finishes.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = RESCAN_TIMEOUT_SECONDS,
        max_inflight: int = RESCAN_MAX_INFLIGHT,
        transport: httpx.BaseTransport | None = None,
    ):
        self.url: str = url
        self.timeout: float = timeout
        self._transport: httpx.BaseTransport | None = transport
        self._slots: threading.BoundedSemaphore = threading.BoundedSemaphore(
            max(1, max_inflight)
        )

    def fire(self) -> threading.Thread | None:
        """Start the request in the background.

        Returns:
            The background thread, or None if the request was dropped
        """
        if not self._slots.acquire(blocking=False):
            logger.debug("Rescan already in flight; dropping request")
            return None

        thread = threading.Thread(target=self._post, name="stow-rescan", daemon=True)
        try:
            thread.start()
        except RuntimeError as e:
            self._slots.release()
            logger.debug(f"Could not start rescan thread: {e}")
            return None
        return thread

    def _post(self) -> None:
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.url)
            if response.is_success:
                logger.info("Rescan requested")
            else:
                logger.debug(f"Rescan returned HTTP {response.status_code}")
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug(f"Rescan request failed: {e}")
        finally:
            self._slots.release()
