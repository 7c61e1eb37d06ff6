import logging
import time

from rich.console import Console
from rich.markup import escape
from typing_extensions import override

# legacy_windows=False keeps emoji and box characters working on Windows terminals
console = Console(legacy_windows=False)


def format_elapsed_ms(start_time_perf: float) -> str:
    """Human-readable time since `start_time_perf` (a `time.perf_counter()` value)."""
    elapsed = time.perf_counter() - start_time_perf
    if elapsed < 1:
        return f"{int(elapsed * 1000)}ms"
    return f"{elapsed:.1f}s"


def _timestamp(now: float) -> str:
    return time.strftime("%H:%M:%S", time.localtime(now)) + f".{int(now % 1 * 1000):03d}"


def print_component_line(component: str, text: str, color: str, width: int = 12) -> None:
    """Print each line of `text` as `time | component | line`, coloring the component."""
    stamp = _timestamp(time.time())
    label = escape(component).ljust(width)
    for line in text.splitlines() or [""]:
        console.print(f"[dim]{stamp}[/dim] | [{color}]{label}[/] | {escape(line)}")


class PrefixedLogHandler(logging.Handler):
    """Route log records of one launcher component to the shared rich console.

    Warnings and errors override the component color so they stand out.
    """

    def __init__(self, prefix: str, color: str, width: int = 12):
        super().__init__()
        self.prefix: str = prefix
        self.color: str = color
        self.width: int = width

    def _color_for(self, record: logging.LogRecord) -> str:
        if record.levelno >= logging.ERROR:
            return "red"
        if record.levelno >= logging.WARNING:
            return "yellow"
        return self.color

    @override
    def emit(self, record: logging.LogRecord) -> None:
        try:
            print_component_line(
                self.prefix, self.format(record), self._color_for(record), self.width
            )
        except Exception:
            self.handleError(record)
