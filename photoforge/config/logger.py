# config/logger.py
import logging
from typing import Optional

from photoforge.config.settings import settings


def get_logger(name: str, tag: Optional[str] = None, level: Optional[str] = None) -> logging.Logger:
    """Module logger with its own stream handler.

    Handlers are attached once per logger name, so importing a module twice
    (or calling this from several places) never duplicates log lines.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        prefix = f"[{tag}] " if tag else ""
        formatter = logging.Formatter(f'%(asctime)s [%(levelname)s] {prefix}%(message)s', '%Y-%m-%d %H:%M:%S')
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel((level or settings.LOG_LEVEL).upper())
        logger.propagate = False # no double logging through the root logger
    return logger
