"""System tray icon and menu.

Menu items only post CommandIds onto the command channel; they never call
into the supervisor or the window themselves.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any, NamedTuple

from stow_desktop.cli.desktop.dispatcher import CommandChannel
from stow_desktop.cli.desktop.logging import LauncherLogComponent, get_logger
from stow_desktop.constants import APP_NAME
from stow_desktop.models import CommandId

if TYPE_CHECKING:
    from PIL.Image import Image

logger = get_logger(LauncherLogComponent.TRAY)

SEPARATOR_LABEL = "─────────────"


class TrayEntry(NamedTuple):
    label: str
    command: CommandId
    enabled: bool = True
    visible: bool = True
    default: bool = False


TRAY_ENTRIES: tuple[TrayEntry, ...] = (
    # Hidden default entry: activating the icon itself (left click) toggles the window.
    TrayEntry("Toggle Dashboard", CommandId.TOGGLE, visible=False, default=True),
    TrayEntry("Show Dashboard", CommandId.SHOW),
    TrayEntry("Hide Dashboard", CommandId.HIDE),
    TrayEntry("Rescan Projects", CommandId.RESCAN),
    TrayEntry(SEPARATOR_LABEL, CommandId.SEPARATOR, enabled=False),
    TrayEntry("Quit", CommandId.QUIT),
)


def draw_default_icon(size: int = 64) -> Image:
    """Draw the fallback tray icon: a stacked-boxes glyph."""
    from PIL import Image as PILImage
    from PIL import ImageDraw

    img = PILImage.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    unit = size // 8
    draw.rounded_rectangle(
        (unit, unit, size - unit, size - unit), radius=unit * 2, fill=(24, 24, 27, 255)
    )
    for row in range(3):
        top = unit * 2 + row * unit * 4 // 3 + row * unit // 2
        draw.rectangle(
            (unit * 2, top, size - unit * 2, top + unit), fill=(250, 250, 250, 255)
        )
    return img


def load_icon(icon_path: Path | None) -> Image:
    """Load the configured icon file, falling back to the drawn default."""
    if icon_path is not None:
        from PIL import Image as PILImage

        try:
            with PILImage.open(icon_path) as img:
                return img.convert("RGBA")
        except OSError as e:
            logger.warning(f"Could not load tray icon {icon_path}: {e}")
    return draw_default_icon()


class TrayIcon:
    """pystray icon whose menu feeds the command channel."""

    def __init__(self, channel: CommandChannel, *, icon_path: Path | None = None):
        self.channel: CommandChannel = channel
        self.icon_path: Path | None = icon_path
        self._icon: Any = None
        self._thread: threading.Thread | None = None

    def _build_menu(self) -> Any:
        import pystray

        items = [
            pystray.MenuItem(
                entry.label,
                self.channel.poster(entry.command),
                enabled=entry.enabled,
                visible=entry.visible,
                default=entry.default,
            )
            for entry in TRAY_ENTRIES
        ]
        return pystray.Menu(*items)

    def start(self) -> bool:
        """Show the tray icon on a background thread. Returns False if unavailable."""
        try:
            import pystray

            self._icon = pystray.Icon(
                "stow-dashboard",
                icon=load_icon(self.icon_path),
                title=APP_NAME,
                menu=self._build_menu(),
            )
        except Exception as e:
            logger.warning(f"System tray not available: {e}")
            self._icon = None
            return False

        self._thread = threading.Thread(
            target=self._icon.run, name="stow-tray", daemon=True
        )
        self._thread.start()
        return True

    @property
    def running(self) -> bool:
        return self._icon is not None

    def stop(self) -> None:
        if self._icon is None:
            return
        try:
            self._icon.stop()
        except Exception as e:
            logger.debug(f"Could not stop tray icon: {e}")
        self._icon = None
