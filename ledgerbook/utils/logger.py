"""
Logger Module
Centralized logging using Loguru

Standard library loggers (uvicorn, apscheduler, aiosqlite) are routed into
loguru so every record ends up in the same sinks.
"""

import logging
import sys
from pathlib import Path
from loguru import logger as _logger


CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{module}</cyan>:<cyan>{function}</cyan> | <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {module}:{function} | {message}"

ROUTED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "apscheduler", "aiosqlite")


class InterceptHandler(logging.Handler):
    """Forward standard library log records to loguru"""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = _logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        _logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logger(
    level: str = "INFO",
    log_file: str = "./logs/app.log",
    max_size: int = 10,
    backup_count: int = 5,
    console: bool = True,
    colorize: bool = True
) -> None:
    """Setup logger with file and console handlers"""

    _logger.remove()

    if console:
        _logger.add(sys.stdout, level=level, format=CONSOLE_FORMAT, colorize=colorize)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        _logger.add(
            log_file,
            level=level,
            format=FILE_FORMAT,
            rotation=f"{max_size} MB",
            retention=backup_count,
            encoding="utf-8"
        )

    handler = InterceptHandler()
    for name in ROUTED_LOGGERS:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [handler]
        std_logger.propagate = False


# Export logger instance
logger = _logger
