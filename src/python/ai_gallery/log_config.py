"""
Logging setup for ai_gallery scripts.

Library modules only create loggers with ``logging.getLogger(__name__)``;
handlers are attached to the root logger once by the entry point. The
handlers installed here are named ``ai_gallery.*`` so a second call
replaces them without touching handlers a host application added.

Example:
    >>> from ai_gallery.log_config import setup_logging
    >>> setup_logging("DEBUG", "gallery.log")
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ai_gallery.config import DEFAULT_QUIET_LOGGERS, LoggingConfig

HANDLER_PREFIX = "ai_gallery."


def resolve_level(level: Union[str, int]) -> int:
    """
    Turn a level name ("debug", "INFO") or number into a logging level.

    Raises:
        ValueError: For an unknown level name
    """
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def gallery_handlers(logger: Optional[logging.Logger] = None) -> List[logging.Handler]:
    """Handlers on ``logger`` (default: root) that setup_logging() installed."""
    logger = logger or logging.getLogger()
    return [h for h in logger.handlers if (h.get_name() or "").startswith(HANDLER_PREFIX)]


def _build_handlers(log_file: Optional[Union[str, Path]], formatter: logging.Formatter) -> List[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    console.set_name(HANDLER_PREFIX + "console")
    handlers: List[logging.Handler] = [console]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        # Prompts and notes carry non-ASCII text
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.set_name(HANDLER_PREFIX + "file")
        handlers.append(file_handler)

    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def setup_logging(
    level: Union[str, int] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    format_string: Optional[str] = None,
    quiet_loggers: Sequence[str] = DEFAULT_QUIET_LOGGERS,
) -> None:
    """Attach the gallery's console (and optional file) handlers to the root logger.

    Args:
        level: Level name or number for the root logger
        log_file: Optional path to a log file, in addition to stdout
        format_string: Custom format string for log messages
        quiet_loggers: Third-party loggers capped at WARNING
    """
    level = resolve_level(level)
    root_logger = logging.getLogger()

    for handler in gallery_handlers(root_logger):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(format_string or LoggingConfig.format)
    for handler in _build_handlers(log_file, formatter):
        root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def setup_logging_from_config(config: LoggingConfig) -> None:
    """Configure logging from the ``logging`` section of a Config."""
    setup_logging(config.level, config.file, config.format, config.quiet_loggers)
