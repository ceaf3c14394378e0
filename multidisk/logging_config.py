#!/usr/bin/env python3
# -*-coding: utf-8-*-
"""
Logging setup for multidisk.

- Level-keyed console formatter with optional colours on a TTY
- Optional structured JSON output (MULTIDISK_LOG_JSON=1)
- Rotating main and error log files
"""

import logging
import logging.handlers
import os
import sys
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Dict, Any
from functools import lru_cache

# =====================================================================================================
# Formatters
# =====================================================================================================

class FastFormatter(logging.Formatter):
    """Formatter with one pre-built format per level."""

    def __init__(self, enable_colors: bool = False):
        super().__init__()
        self.enable_colors = enable_colors

        self._formats = {
            logging.ERROR: "[{asctime}] ERROR   [{name}] {message}",
            logging.WARNING: "[{asctime}] WARNING [{name}] {message}",
            logging.INFO: "[{asctime}] INFO    {message}",
            logging.DEBUG: "[{asctime}] DEBUG   {name}:{lineno} - {message}"
        }
        self._formatters = {
            level: logging.Formatter(fmt, style='{', datefmt='%H:%M:%S')
            for level, fmt in self._formats.items()
        }

        self.colors = {
            'ERROR': '\033[91m',     # Red
            'WARNING': '\033[93m',   # Yellow
            'INFO': '\033[92m',      # Green
            'DEBUG': '\033[94m',     # Blue
            'RESET': '\033[0m'
        } if enable_colors else {}

    def format(self, record):
        level = record.levelno
        if level >= logging.ERROR:
            formatter = self._formatters[logging.ERROR]
        else:
            formatter = self._formatters.get(level, self._formatters[logging.INFO])

        text = formatter.format(record)
        if self.enable_colors and record.levelname in self.colors:
            text = f"{self.colors[record.levelname]}{text}{self.colors['RESET']}"
        return text


class JsonFormatter(logging.Formatter):
    """Structured JSON formatter (optional)."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "pathname": record.pathname,
            "lineno": record.lineno,
        }
        if hasattr(record, "error"):
            payload["error"] = record.error
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)

# =====================================================================================================
# Main Setup Function
# =====================================================================================================

def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def setup_logging(
    log_level: str = "INFO",
    log_dir: Optional[str] = None,
    enable_file_logging: bool = False,
    enable_console_logging: bool = True,
    max_log_size: str = "10MB",
    backup_count: int = 3,
    structured_json: Optional[bool] = None
) -> Dict[str, Any]:
    """Configure the root logger for a multidisk run.

    Returns a dict with the installed ``handlers`` and the ``log_dir`` used
    (``None`` when file logging is off).
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handlers = {}
    use_json = structured_json if structured_json is not None else _env_bool("MULTIDISK_LOG_JSON")

    if enable_console_logging:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(numeric_level)

        enable_colors = (hasattr(sys.stdout, 'isatty') and
                         sys.stdout.isatty() and
                         os.environ.get('TERM') != 'dumb')

        console_handler.setFormatter(JsonFormatter() if use_json else FastFormatter(enable_colors=enable_colors))
        root_logger.addHandler(console_handler)
        handlers['console'] = console_handler

    log_dir_path: Optional[Path] = None
    if enable_file_logging:
        log_dir_path = Path(log_dir) if log_dir else Path("logs")
        log_dir_path.mkdir(parents=True, exist_ok=True)
        size_bytes = _parse_size_string(max_log_size)

        main_handler = logging.handlers.RotatingFileHandler(
            str(log_dir_path / "multidisk.log"),
            maxBytes=size_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        main_handler.setLevel(numeric_level)
        main_handler.setFormatter(JsonFormatter() if use_json else FastFormatter())
        root_logger.addHandler(main_handler)
        handlers['main_file'] = main_handler

        error_handler = logging.handlers.RotatingFileHandler(
            str(log_dir_path / "errors.log"),
            maxBytes=size_bytes // 2,
            backupCount=backup_count,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.WARNING)
        error_handler.setFormatter(JsonFormatter() if use_json else FastFormatter())
        root_logger.addHandler(error_handler)
        handlers['error_file'] = error_handler

    get_logger('main').debug(
        "Logging initialized (level=%s, file=%s, json=%s)", log_level, enable_file_logging, use_json
    )

    return {
        'handlers': handlers,
        'log_dir': log_dir_path
    }

# =====================================================================================================
# Utility functions
# =====================================================================================================

def _parse_size_string(size_str: str) -> int:
    """Parse size string into bytes."""
    size_str = size_str.upper().strip()

    multipliers = {
        'KB': 1024,
        'MB': 1024 ** 2,
        'GB': 1024 ** 3,
        'B': 1,
    }

    for suffix, multiplier in multipliers.items():
        if size_str.endswith(suffix):
            try:
                number = float(size_str[:-len(suffix)].strip())
                return int(number * multiplier)
            except ValueError:
                continue

    try:
        return int(float(size_str))
    except ValueError:
        pass

    return 10 * 1024 * 1024  # Default 10MB


@lru_cache(maxsize=32)
def get_logger(name: str) -> logging.Logger:
    """Get cached logger instance."""
    return logging.getLogger(f"multidisk.{name}")


def cleanup_logging():
    """Close and detach all root handlers."""
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    get_logger.cache_clear()
