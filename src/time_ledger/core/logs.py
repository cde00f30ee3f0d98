"""Logging setup shared by the CLI and the API server."""

import logging
from pathlib import Path
from typing import Optional

from time_ledger.core.config import ConfigManager

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_HANDLER_MARK = "_time_ledger_handler"


def setup_logging(config: Optional[ConfigManager] = None) -> logging.Logger:
    """Configure the ``time_ledger`` logger from the ``logging`` config section.

    Calling it again replaces the handlers it installed earlier.

    Args:
        config: Configuration manager. Uses defaults if None

    Returns:
        The configured package logger
    """
    level_name = config.get("logging.level", "WARNING") if config else "WARNING"
    fmt = config.get("logging.format", DEFAULT_FORMAT) if config else DEFAULT_FORMAT
    log_file = config.get("logging.file") if config else None

    logger = logging.getLogger("time_ledger")
    logger.setLevel(getattr(logging, level_name.upper(), logging.WARNING))

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            logger.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(fmt)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path))

    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_MARK, True)
        logger.addHandler(handler)

    return logger
