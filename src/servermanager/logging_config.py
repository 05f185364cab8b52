"""Logging setup shared by the API server and the CLI."""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(level: str | None = None, rich_output: bool = False) -> logging.Logger:
    """
    Configure the ``servermanager`` logger hierarchy.

    The level comes from the argument, then LOG_LEVEL, then INFO in
    production and DEBUG otherwise.
    ``rich_output`` swaps the plain stream handler for rich's handler,
    which is what the CLI uses.
    """
    mode = os.getenv("SERVERMANAGER_ENV") or os.getenv("NODE_ENV") or "development"
    default = "INFO" if mode.lower() == "production" else "DEBUG"
    level_name = (level or os.getenv("LOG_LEVEL") or default).upper()

    logger = logging.getLogger("servermanager")
    logger.setLevel(level_name)
    logger.handlers.clear()

    if rich_output:
        handler: logging.Handler = RichHandler(
            console=Console(stderr=True), show_path=False, rich_tracebacks=True
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger.addHandler(handler)
    logger.propagate = False
    return logger
