"""
Logging Configuration for fsalang
structlog on top of stdlib logging. Module loggers always route through the
stdlib "fsalang.*" loggers, so nothing is printed until a host calls
setup_logging (the CLI does; library callers may attach their own handlers).
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

import structlog

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.format_exc_info,
    structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
]


def setup_logging(
    log_level: str = "WARNING",
    log_dir: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    console_output: bool = True,
) -> None:
    """
    Configure the "fsalang" logger tree.

    Args:
        log_level: Console level, one of LOG_LEVELS
        log_dir: Directory for a rotating JSON log (everything at DEBUG). None disables it
        console_output: Whether to log to stderr
    """
    if log_level.upper() not in LOG_LEVELS:
        raise ValueError(f"Unknown log level '{log_level}'. Must be one of: {', '.join(LOG_LEVELS)}")
    level = getattr(logging, log_level.upper())

    logger = logging.getLogger("fsalang")
    logger.setLevel(logging.DEBUG if log_dir else level)
    logger.handlers.clear()
    logger.propagate = False

    if log_dir is not None:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path / "fsalang.log",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(processor=structlog.processors.JSONRenderer())
        )
        file_handler.setLevel(logging.DEBUG)
        logger.addHandler(file_handler)

    if console_output:
        # stderr keeps stdout free for reports
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(processor=structlog.dev.ConsoleRenderer(colors=False))
        )
        console_handler.setLevel(level)
        logger.addHandler(console_handler)


def reset_logging() -> None:
    """Drop the handlers installed by setup_logging."""
    logger = logging.getLogger("fsalang")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Structured logger bound to the stdlib logger `name`."""
    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=PROCESSORS,
        wrapper_class=structlog.stdlib.BoundLogger,
    )
