"""Logger factory shared by the orchestration layer."""
import logging
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def get_logger(name: str, level: Optional[Union[int, str]] = None) -> logging.Logger:
    """
    Return the named logger, attaching one stream handler on first use.

    Args:
        name: Logger name, e.g. ``orchestration.state_machine``
        level: Level to set; the first call defaults to INFO, later calls
            leave the level alone unless one is given
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    if level is not None:
        logger.setLevel(level.upper() if isinstance(level, str) else level)
    return logger
