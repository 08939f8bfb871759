"""
Logging setup for slashform.

Console output is colour-aware, optional file output is written as one JSON
object per line with rotation, and every handler redacts secrets (tokens
tend to show up in call payloads).
"""

import os
import sys
import inspect
import json
import time
import logging
import logging.handlers
import re
from pathlib import Path
from typing import Dict, Optional, Callable
from functools import wraps
from contextlib import contextmanager
from datetime import datetime


class Colors:
    """ANSI color codes for console output."""
    RESET = '\033[0m'
    BOLD = '\033[1m'

    BRIGHT_BLACK = '\033[90m'
    BRIGHT_RED = '\033[91m'
    BRIGHT_YELLOW = '\033[93m'
    BRIGHT_BLUE = '\033[94m'
    BRIGHT_MAGENTA = '\033[95m'


class SensitiveDataFilter(logging.Filter):
    """Filter to redact secrets from log records."""

    def __init__(self):
        super().__init__()
        self.patterns = [
            (re.compile(r'(api[_-]?key|token|secret|password|pwd)["\s]*[:=]["\s]*([^\s"]{8,})', re.IGNORECASE), r'\1=***REDACTED***'),
            (re.compile(r'(bearer\s+)([a-zA-Z0-9._-]{20,})', re.IGNORECASE), r'\1***REDACTED***'),
            (re.compile(r'(://[^:/\s]+:)([^@\s]+)(@)', re.IGNORECASE), r'\1***REDACTED***\3'),
        ]

    def _redact(self, text: str) -> str:
        for pattern, replacement in self.patterns:
            text = pattern.sub(replacement, text)
        return text

    def filter(self, record):
        """Redact the message and any string arguments."""
        if isinstance(record.msg, str):
            record.msg = self._redact(record.msg)

        if record.args and isinstance(record.args, tuple):
            record.args = tuple(
                self._redact(arg) if isinstance(arg, str) else arg
                for arg in record.args
            )

        return True


class ColoredConsoleFormatter(logging.Formatter):
    """Formatter that colours whole lines by log level."""

    LEVEL_COLORS = {
        'DEBUG': Colors.BRIGHT_BLACK,
        'INFO': Colors.BRIGHT_BLUE,
        'WARNING': Colors.BRIGHT_YELLOW,
        'ERROR': Colors.BRIGHT_RED,
        'CRITICAL': Colors.BRIGHT_MAGENTA + Colors.BOLD,
    }

    def __init__(self, use_colors=True):
        """Initialize the formatter.

        Args:
            use_colors: Whether to use colors in output
        """
        self.use_colors = use_colors and self._supports_color()
        fmt = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
        super().__init__(fmt, datefmt='%Y-%m-%d %H:%M:%S')

    def _supports_color(self):
        """Check if the terminal supports color output."""
        if os.getenv('NO_COLOR'):
            return False

        if os.getenv('FORCE_COLOR'):
            return True

        if not hasattr(sys.stderr, 'isatty') or not sys.stderr.isatty():
            return False

        term = os.getenv('TERM', '').lower()
        return 'color' in term or term in ('xterm', 'xterm-256color', 'screen', 'linux')

    def format(self, record):
        formatted = super().format(record)

        if not self.use_colors:
            return formatted

        color = self.LEVEL_COLORS.get(record.levelname, '')
        if color:
            formatted = f"{color}{formatted}{Colors.RESET}"

        return formatted


class JSONFileFormatter(logging.Formatter):
    """Formatter that outputs structured JSON logs for file storage."""

    _STANDARD_ATTRS = {
        'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
        'filename', 'module', 'exc_info', 'exc_text', 'stack_info',
        'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
        'thread', 'threadName', 'processName', 'process', 'message',
        'taskName',
    }

    def format(self, record):
        log_entry = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'module': record.name,
            'message': record.getMessage(),
            'extra': {
                'filename': record.filename,
                'lineno': record.lineno,
                'funcName': record.funcName,
            },
        }

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in self._STANDARD_ATTRS:
                log_entry['extra'][key] = value

        return json.dumps(log_entry, default=str)


class PerformanceTimer:
    """Context manager for timing an operation."""

    def __init__(self, logger: logging.Logger, operation: str, level: int = logging.DEBUG):
        self.logger = logger
        self.operation = operation
        self.level = level
        self.start_time = None
        self.end_time = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.log(self.level, f"Starting {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.end_time = time.perf_counter()
        duration = self.end_time - self.start_time

        if exc_type is None:
            self.logger.log(self.level, f"Completed {self.operation} in {duration:.3f}s")
        else:
            self.logger.log(self.level, f"Failed {self.operation} after {duration:.3f}s")

    @property
    def duration(self) -> Optional[float]:
        """Get the duration if timing is complete."""
        if self.start_time is not None and self.end_time is not None:
            return self.end_time - self.start_time
        return None


def performance_timer(operation: str = None, level: int = logging.DEBUG):
    """Decorator for timing function execution, sync or async.

    Args:
        operation: Description of the operation (defaults to function name)
        level: Log level to use for timing messages
    """
    def decorator(func: Callable) -> Callable:
        op_name = operation or f"{func.__name__}()"

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                with PerformanceTimer(get_logger(func.__module__), op_name, level):
                    return await func(*args, **kwargs)
            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs):
            with PerformanceTimer(get_logger(func.__module__), op_name, level):
                return func(*args, **kwargs)

        return wrapper
    return decorator


class LoggingManager:
    """Central logging manager for slashform."""

    DEFAULT_MODULE_LEVELS = {
        "slashform.parser": "INFO",
        "slashform.apps": "INFO",
        "slashform.config": "INFO",
        "slashform.cli": "INFO",
    }

    def __init__(self):
        self._initialized = False
        self._loggers: Dict[str, logging.Logger] = {}
        self._log_file: Optional[Path] = None

    def setup_logging(self, config, verbose: bool = False, force_reinit: bool = False):
        """Setup logging based on configuration.

        Args:
            config: SlashFormConfig instance
            verbose: Enable debug logging regardless of the configured level
            force_reinit: Force reinitialization even if already setup
        """
        if self._initialized and not force_reinit:
            return

        if verbose or config.app.verbose_logging:
            log_level = logging.DEBUG
        else:
            log_level = getattr(logging, config.app.log_level.value.upper(), logging.INFO)

        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)

        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        self._setup_console_handler(root_logger, log_level)

        if config.app.log_file:
            self._setup_file_handler(root_logger, config, log_level)

        self._setup_module_loggers(log_level if log_level == logging.DEBUG else None)

        sensitive_filter = SensitiveDataFilter()
        for handler in root_logger.handlers:
            handler.addFilter(sensitive_filter)

        self._initialized = True

        logger = self.get_logger('slashform.logging')
        logger.debug(f"Logging initialized at {logging.getLevelName(log_level)}")
        if self._log_file:
            logger.debug(f"Log file: {self._log_file}")

    def _setup_console_handler(self, root_logger: logging.Logger, log_level: int):
        # stderr keeps stdout clean for CLI output
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(ColoredConsoleFormatter(use_colors=True))
        root_logger.addHandler(console_handler)

    def _setup_file_handler(self, root_logger: logging.Logger, config, log_level: int):
        """Setup rotating JSON file handler."""
        try:
            log_file = Path(config.app.log_file)
            log_file.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=config.app.max_log_size_mb * 1024 * 1024,
                backupCount=config.app.backup_count,
                encoding='utf-8'
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(JSONFileFormatter())

            root_logger.addHandler(file_handler)
            self._log_file = log_file

        except OSError as e:
            print(f"Warning: Could not setup file logging: {e}", file=sys.stderr)

    def _setup_module_loggers(self, override_level: Optional[int]):
        for module_name, level_name in self.DEFAULT_MODULE_LEVELS.items():
            level = override_level or getattr(logging, level_name, logging.INFO)
            logging.getLogger(module_name).setLevel(level)

    def get_logger(self, name: str) -> logging.Logger:
        """Get a logger instance for the given name.

        Args:
            name: Logger name (typically __name__)

        Returns:
            Logger instance
        """
        if name not in self._loggers:
            self._loggers[name] = logging.getLogger(name)

        return self._loggers[name]

    def create_performance_timer(self, operation: str, level: int = logging.DEBUG) -> PerformanceTimer:
        return PerformanceTimer(self.get_logger('slashform.performance'), operation, level)


_logging_manager = LoggingManager()


def setup_logging(config, verbose: bool = False, force_reinit: bool = False):
    """Setup logging based on configuration."""
    _logging_manager.setup_logging(config, verbose, force_reinit)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the given name."""
    return _logging_manager.get_logger(name)


@contextmanager
def log_performance(operation: str, level: int = logging.DEBUG):
    """Context manager for performance timing.

    Args:
        operation: Description of the operation being timed
        level: Log level to use for timing messages

    Yields:
        PerformanceTimer instance
    """
    timer = _logging_manager.create_performance_timer(operation, level)
    with timer:
        yield timer
