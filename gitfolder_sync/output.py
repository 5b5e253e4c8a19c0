"""Output handler implementations: console, null, buffered; tqdm progress bar."""

from __future__ import annotations

import threading

from colorama import Fore, Style
from tqdm import tqdm

from gitfolder_sync.protocols import OutputHandler

SECTION_WIDTH = 50


class LineOutputHandler:
    """Formats messages into indented, optionally colored lines; subclasses decide where lines go."""

    def __init__(self, color: bool = True):
        self.color = color

    def _emit(self, *lines: str) -> None:
        raise NotImplementedError

    def _paint(self, message: str, fore: str) -> str:
        if not self.color:
            return message
        return f"{fore}{message}{Style.RESET_ALL}"

    def info(self, message: str, indent: int = 0) -> None:
        self._emit("  " * indent + message)

    def success(self, message: str, indent: int = 0) -> None:
        self._emit("  " * indent + self._paint(message, Fore.GREEN))

    def warning(self, message: str, indent: int = 0) -> None:
        self._emit("  " * indent + self._paint(message, Fore.YELLOW))

    def error(self, message: str, indent: int = 0) -> None:
        self._emit("  " * indent + self._paint(message, Fore.RED))

    def section(self, title: str) -> None:
        """Blank line, title, divider."""
        self._emit("", title, "-" * SECTION_WIDTH)

    def debug(self, message: str) -> None:
        pass


class ConsoleOutputHandler(LineOutputHandler):
    """Console output with colors, written through tqdm so open progress bars stay intact."""

    def __init__(self, verbose: bool = False, color: bool = True):
        """Create a console handler. Set verbose=True to enable debug output."""
        super().__init__(color)
        self.verbose = verbose

    def _emit(self, *lines: str) -> None:
        for line in lines:
            tqdm.write(line)

    def debug(self, message: str) -> None:
        """Print a cyan debug message (only when verbose is enabled)."""
        if self.verbose:
            self._emit(self._paint(f"[DEBUG] {message}", Fore.CYAN))


class NullOutputHandler:
    """Silent output handler for testing and JSON mode."""

    def info(self, message: str, indent: int = 0) -> None:
        pass

    def success(self, message: str, indent: int = 0) -> None:
        pass

    def warning(self, message: str, indent: int = 0) -> None:
        pass

    def error(self, message: str, indent: int = 0) -> None:
        pass

    def section(self, title: str) -> None:
        pass

    def debug(self, message: str) -> None:
        pass


class BufferedOutputHandler(LineOutputHandler):
    """Collects output from a worker thread for the owning thread to print later.

    Debug messages are dropped.
    """

    def __init__(self, color: bool = True):
        """Initialize with an empty message buffer."""
        super().__init__(color)
        self.messages: list[str] = []
        self._lock = threading.Lock()

    def _emit(self, *lines: str) -> None:
        with self._lock:
            self.messages.extend(lines)

    def flush_to(self, target: OutputHandler) -> None:
        """Write all buffered messages to a target handler and clear the buffer."""
        with self._lock:
            pending = list(self.messages)
            self.messages.clear()
        for msg in pending:
            target.info(msg)


class ProgressBar:
    """Adapts the (label, fraction) progress callback to a tqdm bar."""

    RESOLUTION = 1000

    def __init__(self, desc: str = "Syncing", disable: bool = False):
        """Create a bar; use as a context manager so the bar is closed."""
        self._bar = tqdm(total=self.RESOLUTION, desc=desc, disable=disable,
                         bar_format="{l_bar}{bar}| {postfix}")
        self._position = 0

    def __call__(self, label: str, fraction: float) -> None:
        target = int(min(max(fraction, 0.0), 1.0) * self.RESOLUTION)
        if target > self._position:
            self._bar.update(target - self._position)
            self._position = target
        self._bar.set_postfix_str(label, refresh=True)

    def close(self) -> None:
        self._bar.close()

    def __enter__(self) -> ProgressBar:
        return self

    def __exit__(self, *exc) -> None:
        self.close()
