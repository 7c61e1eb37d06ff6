"""Visibility state machine for the singleton dashboard window.

The controller is only ever driven from the UI thread (the command channel
consumer). The actual toolkit sits behind `WindowBackend`, so the state
machine can run against pywebview or an in-memory fake.
"""

from __future__ import annotations

from typing import Protocol

from stow_desktop.cli.desktop.logging import LauncherLogComponent, get_logger
from stow_desktop.models import WindowSpec, WindowState

logger = get_logger(LauncherLogComponent.WINDOW)


class WindowHandle(Protocol):
    """A native window that exists."""

    def show(self) -> None: ...

    def hide(self) -> None: ...

    def focus(self) -> None: ...

    def is_visible(self) -> bool: ...


class WindowBackend(Protocol):
    """Minimal toolkit surface the controller and the app need."""

    def lookup(self, name: str) -> WindowHandle | None:
        """Return the window registered under `name`, if it exists."""
        ...

    def create(self, spec: WindowSpec) -> WindowHandle:
        """Construct a window. May raise if the platform refuses."""
        ...

    def mainloop(self) -> None:
        """Run the toolkit's event loop until `shutdown()` is called."""
        ...

    def shutdown(self) -> None: ...


class WindowController:
    """Idempotent show/hide/toggle over a single named window."""

    def __init__(self, backend: WindowBackend, spec: WindowSpec):
        self.backend: WindowBackend = backend
        self.spec: WindowSpec = spec

    def _lookup(self) -> WindowHandle | None:
        try:
            return self.backend.lookup(self.spec.name)
        except Exception as e:
            logger.warning(f"Window lookup failed: {e}")
            return None

    @staticmethod
    def _is_visible(window: WindowHandle) -> bool:
        try:
            return bool(window.is_visible())
        except Exception:
            return False

    @property
    def state(self) -> WindowState:
        window = self._lookup()
        if window is None:
            return WindowState.ABSENT
        return WindowState.VISIBLE if self._is_visible(window) else WindowState.HIDDEN

    def _reveal(self, window: WindowHandle) -> None:
        try:
            window.show()
            window.focus()
        except Exception as e:
            logger.warning(f"Could not show window: {e}")

    def show_or_create(self) -> None:
        """Show and focus the window, creating it on first use."""
        window = self._lookup()
        if window is None:
            try:
                window = self.backend.create(self.spec)
            except Exception as e:
                logger.error(f"Could not create window: {e}")
                return
            logger.info(f"Created window '{self.spec.name}' for {self.spec.url}")
        self._reveal(window)

    def hide(self) -> None:
        window = self._lookup()
        if window is None:
            return
        try:
            window.hide()
        except Exception as e:
            logger.warning(f"Could not hide window: {e}")

    def toggle(self) -> None:
        """Hide a visible window; show (or create) one that is not."""
        window = self._lookup()
        if window is None:
            self.show_or_create()
        elif self._is_visible(window):
            self.hide()
        else:
            self._reveal(window)
