# ==============================================================================
# REPORTER MODULE
# ==============================================================================
# Leveled diagnostics for export runs.
#
# The export pipeline never prints directly; it hands every message to a
# Reporter. Two implementations ship with the application:
#   - ConsoleReporter:   coloured terminal output, optional log file mirror
#   - RecordingReporter: keeps messages in memory (tests, embedding)
#
# Levels:
#   - info:     progress and notices (mode changes, unsupported entries)
#   - success:  an entry was exported
#   - warning:  non-fatal per-entry problem (decode failure, zero matches)
#   - error:    fatal condition (malformed script header)
# ==============================================================================

import sys
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, TextIO


# ==============================================================================
# COLOR HELPERS FOR TERMINAL OUTPUT
# ==============================================================================
class Colors:
    """ANSI color codes for terminal output."""
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    BOLD = '\033[1m'
    END = '\033[0m'

    @classmethod
    def disable(cls):
        """Disable colors (for non-supporting terminals)."""
        cls.HEADER = ''
        cls.BLUE = ''
        cls.CYAN = ''
        cls.GREEN = ''
        cls.YELLOW = ''
        cls.RED = ''
        cls.BOLD = ''
        cls.END = ''


# ==============================================================================
# REPORTER INTERFACE
# ==============================================================================
class Reporter(ABC):
    """Receives leveled diagnostic messages from the export pipeline."""

    @abstractmethod
    def log(self, level: str, message: str):
        """
        Emit one message.

        Args:
            level: One of "info", "success", "warning", "error"
            message: Message text
        """
        pass

    def info(self, message: str):
        self.log("info", message)

    def success(self, message: str):
        self.log("success", message)

    def warning(self, message: str):
        self.log("warning", message)

    def error(self, message: str):
        self.log("error", message)

    def progress(self, current: int, total: int, name: str):
        """Progress callback(current, total, name); ignored by default."""
        pass


# ==============================================================================
# CONSOLE REPORTER
# ==============================================================================
class ConsoleReporter(Reporter):
    """
    Prints diagnostics to the terminal with [INFO]/[WARN]/[ERROR] prefixes.

    Warnings and errors go to stderr, everything else to stdout. When a log
    file is given, every message is also appended to it without colours.
    """

    _PREFIXES = {
        "info": "[INFO]",
        "success": "[OK]",
        "warning": "[WARN]",
        "error": "[ERROR]",
    }

    def __init__(self, use_colors: bool = True, log_file: Optional[str] = None,
                 show_progress: bool = False):
        if not use_colors:
            Colors.disable()
        self.show_progress = show_progress
        self._lock = threading.Lock()
        self._log_handle: Optional[TextIO] = None
        if log_file:
            self._log_handle = open(log_file, 'a', encoding='utf-8')

    def _color_for(self, level: str) -> str:
        return {
            "info": Colors.BLUE,
            "success": Colors.GREEN,
            "warning": Colors.YELLOW,
            "error": Colors.RED,
        }.get(level, '')

    def log(self, level: str, message: str):
        prefix = self._PREFIXES.get(level, "[INFO]")
        stream = sys.stderr if level in ("warning", "error") else sys.stdout

        with self._lock:
            print(f"{self._color_for(level)}{prefix} {message}{Colors.END}", file=stream)
            if self._log_handle:
                self._log_handle.write(f"{prefix} {message}\n")
                self._log_handle.flush()

    def progress(self, current: int, total: int, name: str):
        """Single-line progress bar, as used by the extract commands."""
        if not self.show_progress:
            return

        percent = (current / total) * 100 if total > 0 else 0
        bar_length = 30
        filled = int(bar_length * current / total) if total > 0 else 0
        bar = '█' * filled + '░' * (bar_length - filled)

        max_name_len = 40
        if len(name) > max_name_len:
            name = '...' + name[-(max_name_len - 3):]

        with self._lock:
            print(f"\r[{bar}] {percent:5.1f}% | {current}/{total} | {name}", end='', flush=True)
            if current >= total:
                print()

    def close(self):
        if self._log_handle:
            self._log_handle.close()
            self._log_handle = None


# ==============================================================================
# RECORDING REPORTER
# ==============================================================================
@dataclass
class ReportedMessage:
    level: str
    message: str


class RecordingReporter(Reporter):
    """Keeps every message in memory, in arrival order."""

    def __init__(self):
        self.messages: List[ReportedMessage] = []
        self._lock = threading.Lock()

    def log(self, level: str, message: str):
        with self._lock:
            self.messages.append(ReportedMessage(level, message))

    def of_level(self, level: str) -> List[str]:
        """All message texts logged at the given level."""
        return [m.message for m in self.messages if m.level == level]

    @property
    def warnings(self) -> List[str]:
        return self.of_level("warning")

    @property
    def errors(self) -> List[str]:
        return self.of_level("error")
