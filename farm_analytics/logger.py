import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from . import settings

# HTTP client libraries used by the Supabase and Gemini clients log every request at INFO.
NOISY_LOGGERS = ("urllib3", "httpx", "httpcore")


def setup_logger(name: Optional[str] = None, log_level: Optional[int] = None) -> logging.Logger:
    """
    Configures a logger (the root logger by default) for the CLI.

    Console output stays minimal (message only); the rotating log file under
    settings.LOG_DIR keeps timestamps and module names for later debugging.
    """
    if log_level is None:
        log_level = logging.getLevelName(settings.LOG_LEVEL)
        # getLevelName returns "Level <name>" for names it doesn't know
        if not isinstance(log_level, int):
            log_level = logging.INFO

    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    # Prevent adding handlers multiple times if logger is already set up
    if logger.hasHandlers():
        return logger

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    settings.LOG_DIR.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        settings.LOG_DIR / "farm_analytics.log",
        maxBytes=5 * 1024 * 1024,  # 5 MB
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    logger.addHandler(file_handler)

    return logger
