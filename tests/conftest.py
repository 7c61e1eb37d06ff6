"""Shared fixtures: an in-memory window backend standing in for pywebview."""

from __future__ import annotations

import socket
import threading

import pytest

from stow_desktop.models import WindowSpec


class FakeWindow:
    def __init__(self, spec: WindowSpec):
        self.spec: WindowSpec = spec
        self.visible: bool = False
        self.show_calls: int = 0
        self.focus_calls: int = 0
        self.fail_visibility: bool = False

    def show(self) -> None:
        self.show_calls += 1
        self.visible = True

    def hide(self) -> None:
        self.visible = False

    def focus(self) -> None:
        self.focus_calls += 1

    def is_visible(self) -> bool:
        if self.fail_visibility:
            raise RuntimeError("visibility query failed")
        return self.visible


class FakeBackend:
    def __init__(self) -> None:
        self.windows: dict[str, FakeWindow] = {}
        self.created: int = 0
        self.fail_create: bool = False
        self.stopped: threading.Event = threading.Event()

    def lookup(self, name: str) -> FakeWindow | None:
        return self.windows.get(name)

    def create(self, spec: WindowSpec) -> FakeWindow:
        if self.fail_create:
            raise RuntimeError("platform refused to create a window")
        window = FakeWindow(spec)
        self.windows[spec.name] = window
        self.created += 1
        return window

    def mainloop(self) -> None:
        self.stopped.wait(timeout=10)

    def shutdown(self) -> None:
        self.stopped.set()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def free_port() -> int:
    """A port nothing is listening on (at the time of the call)."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]
