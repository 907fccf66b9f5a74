"""Logging setup for stepwire.

Console output goes to stderr so the CLI can print task output as JSON on
stdout. Structured context (action_id, task_id, run_id, role) travels in the
``extra`` dict of each log call and shows up as top-level keys in JSON logs.
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from stepwire.config import ENV_ENVIRONMENT, ENV_LOG_DIR, ENV_LOG_LEVEL

# Attributes every LogRecord has; anything else came in through extra=...
_STANDARD_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

MODULE_LOGGERS = ("actions", "task", "manager", "resolvers", "command", "retry")

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s [%(filename)s:%(lineno)d]"


class JsonFormatter(logging.Formatter):
    """One JSON object per line, extra fields merged in."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        entry.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _STANDARD_RECORD_ATTRS
        )
        return json.dumps(entry, separators=(",", ":"), default=str)


def _rotating_handler(
    path: Path, level: int, formatter: logging.Formatter, max_bytes: int, backups: int
) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backups, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: Optional[str] = None,
    log_dir: Optional[str] = None,
    enable_console: bool = True,
    enable_file: bool = False,
    json_format: Optional[bool] = None,
    max_file_size_mb: int = 10,
    backup_count: int = 5,
) -> None:
    """Configure the root logger.

    Args:
        level: Level name; defaults to STEPWIRE_LOG_LEVEL, then INFO
        log_dir: Directory for stepwire.log and stepwire_errors.log;
            defaults to STEPWIRE_LOG_DIR, then logs/
        enable_console: Log to stderr
        enable_file: Log to rotating files
        json_format: Emit JSON lines; None means JSON only when
            STEPWIRE_ENVIRONMENT is "production"
        max_file_size_mb: Rotation threshold per file
        backup_count: Rotated files to keep
    """
    level_name = (level or os.getenv(ENV_LOG_LEVEL, "INFO")).upper()
    numeric_level = getattr(logging, level_name)
    if json_format is None:
        json_format = os.getenv(ENV_ENVIRONMENT, "development").lower() == "production"
    formatter = JsonFormatter() if json_format else logging.Formatter(TEXT_FORMAT)

    root = logging.getLogger()
    root.setLevel(numeric_level)
    root.handlers.clear()

    if enable_console:
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(numeric_level)
        console.setFormatter(formatter)
        root.addHandler(console)

    if enable_file:
        log_path = Path(log_dir or os.getenv(ENV_LOG_DIR, "logs"))
        log_path.mkdir(parents=True, exist_ok=True)
        max_bytes = max_file_size_mb * 1024 * 1024
        root.addHandler(
            _rotating_handler(
                log_path / "stepwire.log", numeric_level, formatter, max_bytes, backup_count
            )
        )
        root.addHandler(
            _rotating_handler(
                log_path / "stepwire_errors.log", logging.ERROR, formatter, max_bytes, backup_count
            )
        )

    _apply_module_levels()


def _apply_module_levels() -> None:
    """Honour per-module overrides such as STEPWIRE_LOG_LEVEL_TASK=DEBUG."""
    for module in MODULE_LOGGERS:
        override = os.getenv(f"{ENV_LOG_LEVEL}_{module.upper()}")
        if override:
            logging.getLogger(f"stepwire.{module}").setLevel(getattr(logging, override.upper()))


def get_logger(name: str) -> logging.Logger:
    """Return the ``stepwire.<name>`` logger."""
    if name != "stepwire" and not name.startswith("stepwire."):
        name = f"stepwire.{name}"
    return logging.getLogger(name)
