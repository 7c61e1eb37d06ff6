"""Centralized logging for the desktop launcher (component loggers and CLI formatting)."""

from __future__ import annotations

import logging
from enum import Enum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict

from stow_desktop.utils import PrefixedLogHandler


class LauncherLogComponent(str, Enum):
    """Where a log originated (used for prefixes and fine-grained filtering)."""

    APP = "app"
    RESOLVER = "resolver"
    SUPERVISOR = "supervisor"
    PROCESS_CONTROL = "process_control"
    HEALTH = "health"
    WINDOW = "window"
    DISPATCH = "dispatch"
    RESCAN = "rescan"
    TRAY = "tray"


_COMPONENT_COLOR: dict[LauncherLogComponent, str] = {
    LauncherLogComponent.APP: "bright_blue",
    LauncherLogComponent.RESOLVER: "cyan",
    LauncherLogComponent.SUPERVISOR: "green",
    LauncherLogComponent.PROCESS_CONTROL: "green",
    LauncherLogComponent.HEALTH: "magenta",
    LauncherLogComponent.WINDOW: "cyan",
    LauncherLogComponent.DISPATCH: "bright_blue",
    LauncherLogComponent.RESCAN: "magenta",
    LauncherLogComponent.TRAY: "cyan",
}

_PREFIX_WIDTH = max(len(c.value) for c in LauncherLogComponent)


class _LauncherLogState(BaseModel):
    configured: bool = False
    level: int = logging.INFO

    model_config: ClassVar[ConfigDict] = ConfigDict(validate_assignment=True)


_STATE = _LauncherLogState()


def _logger_name(component: LauncherLogComponent) -> str:
    return f"stow.desktop.{component.value}"


def configure_desktop_logging(level: int = logging.INFO) -> None:
    """Attach a console handler to every component logger."""
    for component in LauncherLogComponent:
        logger = logging.getLogger(_logger_name(component))
        logger.setLevel(level)
        logger.handlers.clear()
        handler = PrefixedLogHandler(
            prefix=component.value,
            color=_COMPONENT_COLOR.get(component, "white"),
            width=_PREFIX_WIDTH,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.propagate = False

    _STATE.level = level
    _STATE.configured = True


def get_logger(component: LauncherLogComponent) -> logging.Logger:
    """Get a launcher logger for a component (do not call stdlib logging directly)."""
    logger = logging.getLogger(_logger_name(component))
    if not _STATE.configured:
        # Avoid "No handlers could be found" warnings when logging is not configured.
        if not logger.handlers:
            logger.addHandler(logging.NullHandler())
    return logger
