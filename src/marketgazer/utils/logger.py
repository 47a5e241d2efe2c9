"""Logging configuration for the dashboard."""

import sys
from loguru import logger

from marketgazer.config import config, LOGS_DIR

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def _is_model_record(record) -> bool:
    return record["name"].startswith("marketgazer.llm")


def setup_logger(level: str = None):
    """Configure console and file sinks.

    Writes everything to the main log file, model calls to ``llm.log``
    and errors to ``errors.log``, all under the logs directory.
    """
    LOGS_DIR.mkdir(parents=True, exist_ok=True)
    logger.remove()

    logger.add(sys.stdout, format=CONSOLE_FORMAT, level=level or config.log_level, colorize=True)

    logger.add(
        config.log_file,
        format=FILE_FORMAT,
        level="DEBUG",
        rotation="10 MB",
        retention="30 days",
        compression="zip"
    )

    # Prompt flows and Gemini requests only
    logger.add(
        LOGS_DIR / "llm.log",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}",
        level="INFO",
        filter=_is_model_record,
        rotation="5 MB",
        retention="14 days"
    )

    logger.add(LOGS_DIR / "errors.log", format=FILE_FORMAT, level="ERROR", rotation="5 MB", retention="30 days")

    logger.info(f"Logger initialized, writing to {LOGS_DIR}")
    return logger
