"""
Logging setup for the Rule Content Service
"""

import logging
from logging.handlers import RotatingFileHandler

from .config import LoggingConfig

# Marks handlers installed here so repeated setup replaces only those
_HANDLER_MARK = "_rule_content_service_handler"


def setup_logging(config: LoggingConfig, debug: bool = False) -> None:
    """Configure the root logger from the logging section of the config"""
    level = logging.DEBUG if debug else getattr(logging, config.level)
    formatter = logging.Formatter(config.format)

    handlers = [logging.StreamHandler()]
    if config.file:
        handlers.append(RotatingFileHandler(
            config.file,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        ))

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        setattr(handler, _HANDLER_MARK, True)
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(level)
