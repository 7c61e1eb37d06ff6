"""Route tray/menu commands to the supervisor, window controller, and rescan trigger.

Tray callbacks and background threads never touch the window directly: they
post a CommandId onto the CommandChannel, and the single UI thread consumes
the channel through `CommandChannel.serve()`.
"""

from __future__ import annotations

import queue
from collections.abc import Callable

from stow_desktop.cli.desktop.logging import LauncherLogComponent, get_logger
from stow_desktop.cli.desktop.rescan import RescanTrigger
from stow_desktop.cli.desktop.supervisor import ServerSupervisor
from stow_desktop.cli.desktop.window import WindowController
from stow_desktop.models import CommandId

logger = get_logger(LauncherLogComponent.DISPATCH)


def _coerce(command: CommandId | str) -> CommandId | None:
    if isinstance(command, CommandId):
        return command
    return CommandId.from_string(command)


class CommandDispatcher:
    """Total mapping from CommandId to an action; unknown commands do nothing."""

    def __init__(
        self,
        *,
        window: WindowController,
        supervisor: ServerSupervisor,
        rescan: RescanTrigger,
        request_exit: Callable[[int], None],
    ):
        self.window: WindowController = window
        self.supervisor: ServerSupervisor = supervisor
        self.rescan: RescanTrigger = rescan
        self.request_exit: Callable[[int], None] = request_exit
        self._routes: dict[CommandId, Callable[[], None]] = {
            CommandId.SHOW: self.window.show_or_create,
            CommandId.HIDE: self.window.hide,
            CommandId.TOGGLE: self.window.toggle,
            CommandId.RESCAN: self._rescan,
            CommandId.QUIT: self._quit,
        }

    def _rescan(self) -> None:
        self.rescan.fire()

    def _quit(self) -> None:
        self.supervisor.stop()
        # Must stay the last observable action of a quit.
        self.request_exit(0)

    def dispatch(self, command: CommandId | str) -> None:
        resolved = _coerce(command)
        if resolved is None:
            logger.debug(f"Ignoring unknown command {command!r}")
            return

        action = self._routes.get(resolved)
        if action is None:
            return
        logger.debug(f"Dispatching {resolved.value}")
        action()


class CommandChannel:
    """Thread-safe command queue with a single consumer loop."""

    def __init__(self) -> None:
        self._queue: queue.Queue[CommandId | str] = queue.Queue()

    def post(self, command: CommandId | str) -> None:
        """Enqueue a command; callable from any thread."""
        self._queue.put(command)

    def poster(self, command: CommandId) -> Callable[..., None]:
        """Return a callback that posts `command`, ignoring its arguments."""

        def _post(*_args: object) -> None:
            self.post(command)

        return _post

    def serve(self, dispatcher: CommandDispatcher) -> None:
        """Dispatch commands on the calling thread until a quit has been handled."""
        while True:
            command = self._queue.get()
            try:
                dispatcher.dispatch(command)
            except Exception:
                logger.exception(f"Command {command!r} failed")
            finally:
                self._queue.task_done()
            if _coerce(command) is CommandId.QUIT:
                return
