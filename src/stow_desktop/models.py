"""Centralized Pydantic models, enums, and type aliases for stow-desktop."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import ClassVar, TypeAlias

from pydantic import BaseModel, ConfigDict, Field

from stow_desktop.constants import (
    ANCESTOR_SEARCH_DEPTH,
    APP_NAME,
    DEFAULT_HOST,
    DEFAULT_PORT,
    PROBE_INTERVAL_SECONDS,
    PROBE_TIMEOUT_SECONDS,
    RESCAN_MAX_INFLIGHT,
    RESCAN_PATH,
    RESCAN_TIMEOUT_SECONDS,
    SERVER_ENTRY,
    SERVER_ENV_FILE,
    SHOW_DELAY_SECONDS,
    WINDOW_HEIGHT,
    WINDOW_MIN_HEIGHT,
    WINDOW_MIN_WIDTH,
    WINDOW_NAME,
    WINDOW_WIDTH,
)


# === Type Aliases ===

EnvVarMap: TypeAlias = dict[str, str]


# === Enums ===


class CommandId(str, Enum):
    """User commands coming from the tray icon and its menu."""

    SHOW = "show"
    HIDE = "hide"
    TOGGLE = "toggle"
    RESCAN = "rescan"
    QUIT = "quit"
    SEPARATOR = "sep"

    @classmethod
    def from_string(cls, value: str) -> CommandId | None:
        """Return the matching command, or None for unknown identifiers."""
        try:
            return cls(value)
        except ValueError:
            return None


class WindowState(str, Enum):
    """Visibility state of the singleton dashboard window."""

    ABSENT = "absent"
    VISIBLE = "visible"
    HIDDEN = "hidden"


# === Process Models ===


class ServerHandle(BaseModel):
    """Description of the server child process owned by the supervisor.

    create_time protects against PID reuse when the process is inspected later.
    """

    pid: int
    create_time: float | None = None
    pgid: int | None = None

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True)


# === Window Models ===


class WindowSpec(BaseModel):
    """Construction parameters for the dashboard window."""

    name: str = WINDOW_NAME
    title: str = APP_NAME
    url: str
    width: int = WINDOW_WIDTH
    height: int = WINDOW_HEIGHT
    min_width: int = WINDOW_MIN_WIDTH
    min_height: int = WINDOW_MIN_HEIGHT

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True)


# === Launcher Configuration ===


class LauncherConfig(BaseModel):
    """Complete configuration for the desktop launcher.

    This is the single source of truth for launcher settings.
    All default values are defined here and should not be repeated elsewhere.
    """

    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    hostname: str = DEFAULT_HOST
    server_dir: Path | None = None
    node_path: Path | None = None
    icon_path: Path | None = None
    server_entry: str = SERVER_ENTRY
    env_file_name: str = SERVER_ENV_FILE
    search_depth: int = ANCESTOR_SEARCH_DEPTH
    probe_timeout: float = PROBE_TIMEOUT_SECONDS
    probe_interval: float = PROBE_INTERVAL_SECONDS
    show_delay: float = SHOW_DELAY_SECONDS
    auto_show: bool = True
    rescan_path: str = RESCAN_PATH
    rescan_timeout: float = RESCAN_TIMEOUT_SECONDS
    rescan_max_inflight: int = RESCAN_MAX_INFLIGHT

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True)

    @property
    def base_url(self) -> str:
        """Root URL of the supervised server."""
        return f"http://{self.hostname}:{self.port}"

    @property
    def rescan_url(self) -> str:
        return f"{self.base_url}{self.rescan_path}"

    def window_spec(self) -> WindowSpec:
        """Build the dashboard window spec pointing at the server root."""
        return WindowSpec(url=self.base_url)
