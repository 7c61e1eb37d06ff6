"""pywebview implementation of the window backend.

pywebview refuses to start its GUI loop before a window exists, and the loop
must own the main thread. `mainloop()` therefore parks the main thread until
the first window is created (or shutdown is requested) and only then calls
`webview.start()`.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

from stow_desktop.cli.desktop.logging import LauncherLogComponent, get_logger
from stow_desktop.models import WindowSpec

logger = get_logger(LauncherLogComponent.WINDOW)


class WebviewWindow:
    """Adapter exposing a pywebview window through the WindowHandle protocol."""

    def __init__(self, window: Any, on_close_request: Callable[[], None] | None = None):
        self._window: Any = window
        self._visible: bool = True
        self._closed: bool = False
        self._on_close_request: Callable[[], None] | None = on_close_request
        self._allow_close: bool = False

        window.events.closing += self._handle_closing
        window.events.closed += self._handle_closed

    @property
    def closed(self) -> bool:
        return self._closed

    def show(self) -> None:
        self._window.show()
        self._visible = True

    def hide(self) -> None:
        self._window.hide()
        self._visible = False

    def focus(self) -> None:
        # pywebview has no explicit focus call; restoring brings the window forward.
        self._window.restore()

    def is_visible(self) -> bool:
        return self._visible and not self._closed

    def destroy(self) -> None:
        self._allow_close = True
        self._window.destroy()

    def _handle_closing(self) -> bool:
        if self._allow_close:
            return True
        # Closing from the title bar only hides; the launcher keeps running in the tray.
        if self._on_close_request is not None:
            self._on_close_request()
        return False

    def _handle_closed(self) -> None:
        self._closed = True
        self._visible = False


class WebviewBackend:
    """Creates pywebview windows lazily and runs its GUI loop on the main thread."""

    def __init__(
        self,
        *,
        on_close_request: Callable[[], None] | None = None,
        gui: str | None = None,
        debug: bool = False,
    ):
        self.on_close_request: Callable[[], None] | None = on_close_request
        self.gui: str | None = gui
        self.debug: bool = debug
        self._windows: dict[str, WebviewWindow] = {}
        self._lock: threading.Lock = threading.Lock()
        self._ready: threading.Event = threading.Event()
        self._stopping: bool = False

    def lookup(self, name: str) -> WebviewWindow | None:
        with self._lock:
            window = self._windows.get(name)
            if window is not None and window.closed:
                del self._windows[name]
                return None
            return window

    def create(self, spec: WindowSpec) -> WebviewWindow:
        import webview

        if self._stopping:
            raise RuntimeError("window backend is shutting down")

        native = webview.create_window(
            spec.title,
            url=spec.url,
            width=spec.width,
            height=spec.height,
            min_size=(spec.min_width, spec.min_height),
        )
        if native is None:
            raise RuntimeError(f"pywebview did not create window '{spec.name}'")

        window = WebviewWindow(native, on_close_request=self.on_close_request)
        with self._lock:
            self._windows[spec.name] = window
        self._ready.set()
        return window

    def mainloop(self) -> None:
        import webview

        self._ready.wait()
        if self._stopping:
            return
        logger.debug("Starting pywebview GUI loop")
        webview.start(gui=self.gui, debug=self.debug)
        logger.debug("pywebview GUI loop finished")

    def shutdown(self) -> None:
        self._stopping = True
        with self._lock:
            windows = list(self._windows.values())
            self._windows.clear()
        for window in windows:
            if window.closed:
                continue
            try:
                window.destroy()
            except Exception as e:
                logger.debug(f"Could not destroy window: {e}")
        self._ready.set()
