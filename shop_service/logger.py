"""Service logging: loguru sinks with the service name on every record."""

import sys
from typing import Optional

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{extra[service]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[service]} | {name}:{function}:{line} - {message}"


def setup_service_logger(
    service_name: str,
    log_level: str = "INFO",
    log_file: Optional[str] = None,
):
    """Replace loguru's sinks with the service's.

    ``service_name`` becomes the default ``extra["service"]`` of every record,
    including those logged through the module-level ``logger`` elsewhere.

    Returns:
        logger: The configured loguru logger.
    """
    handlers = [
        {
            "sink": sys.stderr,
            "level": log_level,
            "format": CONSOLE_FORMAT,
            "colorize": True,
            "backtrace": True,
            "diagnose": False,
        }
    ]
    if log_file:
        handlers.append(
            {
                "sink": log_file,
                "level": log_level,
                "format": FILE_FORMAT,
                "rotation": "10 MB",
                "retention": "1 week",
                "compression": "gz",
            }
        )

    logger.configure(handlers=handlers, extra={"service": service_name})
    return logger


__all__ = ["logger", "setup_service_logger"]
