"""
Logging system for Historarr.

Everything logs under the "historarr" logger namespace. Three sinks hang off it:
    - console (colored)
    - historarr.log in the log directory, when one is given
    - an in-memory ring buffer served by /api/logs
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Dict, Optional
from collections import deque
import threading

NAMESPACE = "historarr"


def _source(logger_name: str) -> str:
    """'historarr.core' -> 'core'."""
    prefix = NAMESPACE + "."
    return logger_name[len(prefix):] if logger_name.startswith(prefix) else logger_name


class MemoryHandler(logging.Handler):
    """Ring buffer of recent log entries for the web API."""

    def __init__(self, capacity: int = 1000):
        super().__init__()
        self.buffer = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def emit(self, record: logging.LogRecord):
        entry = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'source': _source(record.name),
            'message': self.format(record),
        }
        with self._lock:
            self.buffer.append(entry)

    def get_logs(self, level: Optional[str] = None, limit: int = 100,
                 source: Optional[str] = None) -> List[Dict]:
        """Most recent entries, oldest first, optionally by level and/or source."""
        with self._lock:
            logs = list(self.buffer)

        if level:
            logs = [entry for entry in logs if entry['level'] == level.upper()]
        if source:
            logs = [entry for entry in logs if entry['source'] == source]

        return logs[-limit:] if limit > 0 else []

    def clear(self):
        with self._lock:
            self.buffer.clear()


class ColorFormatter(logging.Formatter):
    """Colored level names for console output."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        # Copy so the memory/file handlers don't see escape codes
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{color}{record.levelname:8}{self.RESET}"
        return super().format(record)


class Logger:
    """Process-wide logging setup, created once in __main__ (or by the tests)."""

    _instance = None
    _memory_handler: Optional[MemoryHandler] = None

    FORMAT = '%(asctime)s | %(levelname)s | %(name)s | %(message)s'
    DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
    BUFFER_SIZE = 2000

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, log_dir: Optional[str] = "/config/logs", debug: bool = False):
        if hasattr(self, '_initialized'):
            return
        self._initialized = True

        # Handlers hang off the package logger so embedding apps keep their root config
        self.root = logging.getLogger(NAMESPACE)
        self.root.setLevel(logging.DEBUG)
        self._level_handlers: List[logging.Handler] = []

        Logger._memory_handler = MemoryHandler(capacity=self.BUFFER_SIZE)
        Logger._memory_handler.setFormatter(logging.Formatter('%(message)s'))
        self._add(Logger._memory_handler, follows_debug=True)

        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(ColorFormatter(self.FORMAT, datefmt=self.DATE_FORMAT))
        self._add(console, follows_debug=True)

        # The file always gets DEBUG, it is what gets attached to bug reports
        self.log_dir = Path(log_dir) if log_dir else None
        if self.log_dir:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(self.log_dir / "historarr.log")
            file_handler.setFormatter(logging.Formatter(self.FORMAT, datefmt=self.DATE_FORMAT))
            self._add(file_handler, follows_debug=False)
            file_handler.setLevel(logging.DEBUG)

        self.set_debug(debug)

    def _add(self, handler: logging.Handler, follows_debug: bool):
        self.root.addHandler(handler)
        if follows_debug:
            self._level_handlers.append(handler)

    def set_debug(self, debug: bool):
        """Switch console and memory output between INFO and DEBUG."""
        self.debug = debug
        level = logging.DEBUG if debug else logging.INFO
        for handler in self._level_handlers:
            handler.setLevel(level)

    def get_logger(self, name: str) -> logging.Logger:
        """Logger for one component, e.g. get_logger('core') -> historarr.core."""
        return logging.getLogger(f"{NAMESPACE}.{name}")

    @classmethod
    def get_logs(cls, level: Optional[str] = None, limit: int = 100,
                 source: Optional[str] = None) -> List[Dict]:
        if cls._memory_handler:
            return cls._memory_handler.get_logs(level, limit, source)
        return []

    @classmethod
    def clear_logs(cls):
        if cls._memory_handler:
            cls._memory_handler.clear()
