"""End-to-end tests of the launcher flow against the in-memory window backend."""

from __future__ import annotations

import socket
from collections.abc import Iterator
from typing import TYPE_CHECKING
from unittest.mock import Mock

import pytest

from stow_desktop.cli.desktop.app import DesktopApp
from stow_desktop.cli.desktop.supervisor import ServerSupervisor
from stow_desktop.models import CommandId, LauncherConfig, ServerHandle, WindowState

if TYPE_CHECKING:
    from conftest import FakeBackend


@pytest.fixture
def listening_port() -> Iterator[int]:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        sock.listen()
        yield sock.getsockname()[1]


def _config(port: int, **overrides: object) -> LauncherConfig:
    values: dict[str, object] = {
        "port": port,
        "hostname": "127.0.0.1",
        "probe_timeout": 2.0,
        "probe_interval": 0.05,
        "show_delay": 0.0,
    }
    values.update(overrides)
    return LauncherConfig(**values)


def _mock_supervisor() -> Mock:
    supervisor = Mock(spec=ServerSupervisor)
    supervisor.start.return_value = ServerHandle(pid=4242)
    supervisor.is_running.return_value = False
    return supervisor


def test_runs_without_server_until_quit(backend: FakeBackend, free_port: int) -> None:
    supervisor = ServerSupervisor(
        _config(free_port), locate_server=lambda: None, locate_runtime=lambda: None
    )
    app = DesktopApp(
        _config(free_port), backend=backend, supervisor=supervisor, enable_tray=False
    )
    app.channel.post(CommandId.SHOW)
    app.channel.post(CommandId.QUIT)

    assert app.run() == 0
    assert backend.stopped.is_set()
    # Commands still work when no server could be started.
    assert app.window.state is WindowState.VISIBLE


def test_shows_window_once_server_is_reachable(
    backend: FakeBackend, listening_port: int
) -> None:
    supervisor = _mock_supervisor()
    app = DesktopApp(
        _config(listening_port), backend=backend, supervisor=supervisor, enable_tray=False
    )

    assert app.start_server() == ServerHandle(pid=4242)
    assert app._health_thread is not None
    app._health_thread.join(timeout=5)
    app.channel.post(CommandId.QUIT)
    app.channel.serve(app.dispatcher)

    assert backend.created == 1
    assert app.window.state is WindowState.VISIBLE
    assert backend.windows["main"].spec.url == f"http://127.0.0.1:{listening_port}"
    supervisor.stop.assert_called_once_with()
    assert app.exit_code == 0


def test_no_window_when_server_never_comes_up(
    backend: FakeBackend, free_port: int
) -> None:
    app = DesktopApp(
        _config(free_port, probe_timeout=0.3),
        backend=backend,
        supervisor=_mock_supervisor(),
        enable_tray=False,
    )

    app.start_server()
    assert app._health_thread is not None
    app._health_thread.join(timeout=5)
    app.channel.post(CommandId.QUIT)
    app.channel.serve(app.dispatcher)

    assert backend.created == 0


def test_auto_show_disabled(backend: FakeBackend, listening_port: int) -> None:
    app = DesktopApp(
        _config(listening_port, auto_show=False),
        backend=backend,
        supervisor=_mock_supervisor(),
        enable_tray=False,
    )
    app.start_server()
    assert app._health_thread is None


def test_quit_stops_server_and_tray(backend: FakeBackend, free_port: int) -> None:
    supervisor = _mock_supervisor()
    tray = Mock()
    tray.start.return_value = True
    app = DesktopApp(
        _config(free_port, auto_show=False),
        backend=backend,
        supervisor=supervisor,
        tray=tray,
    )
    app.channel.post(CommandId.QUIT)

    assert app.run() == 0
    supervisor.start.assert_called_once_with()
    supervisor.stop.assert_called_once_with()
    tray.start.assert_called_once_with()
    tray.stop.assert_called_once_with()


def test_unavailable_tray_is_not_fatal(backend: FakeBackend, free_port: int) -> None:
    tray = Mock()
    tray.start.return_value = False
    app = DesktopApp(
        _config(free_port, auto_show=False),
        backend=backend,
        supervisor=_mock_supervisor(),
        tray=tray,
    )
    app.channel.post(CommandId.QUIT)
    assert app.run() == 0


class TestWindowClose:
    def _app(self, backend: FakeBackend, tray: Mock | None) -> DesktopApp:
        app = DesktopApp(
            _config(3088),
            backend=backend,
            supervisor=_mock_supervisor(),
            tray=tray,
            enable_tray=False,
        )
        app.channel.post = Mock()
        return app

    def test_close_hides_when_tray_is_running(self, backend: FakeBackend) -> None:
        tray = Mock()
        tray.running = True
        app = self._app(backend, tray)

        app._on_window_close()

        app.channel.post.assert_called_once_with(CommandId.HIDE)

    def test_close_quits_without_tray(self, backend: FakeBackend) -> None:
        app = self._app(backend, None)

        app._on_window_close()

        app.channel.post.assert_called_once_with(CommandId.QUIT)


def test_emergency_stop_only_when_running(backend: FakeBackend) -> None:
    supervisor = _mock_supervisor()
    app = DesktopApp(_config(3088), backend=backend, supervisor=supervisor, enable_tray=False)

    app._emergency_stop()
    supervisor.stop.assert_not_called()

    supervisor.is_running.return_value = True
    app._emergency_stop()
    supervisor.stop.assert_called_once_with()
