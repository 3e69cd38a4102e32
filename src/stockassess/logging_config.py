"""
Logging configuration for the ``stockassess`` namespace.
"""

import logging
import sys
from typing import Optional, Union


def setup_logging(
    level: Union[int, str] = logging.INFO, log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure the package logger.

    Parameters
    ----------
    level : int or str, default=logging.INFO
        Logging level (e.g. logging.DEBUG or "DEBUG")
    log_file : str, optional
        Path to also write logs to

    Returns
    -------
    logger : logging.Logger
        The configured ``stockassess`` logger
    """
    if isinstance(level, str):
        numeric = logging.getLevelName(level.upper())
        if not isinstance(numeric, int):
            raise ValueError(f"Unknown log level: {level}")
        level = numeric

    logger = logging.getLogger("stockassess")
    logger.setLevel(level)

    # Reconfiguring must not duplicate output
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging initialized.")
    return logger
