import logging
import sys


def setup_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """Set up a logger with the specified name and logging level.

    Records go to stderr so that command output on stdout stays parseable.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Create console handler and set level
    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(level)

    # Create formatter
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    ch.setFormatter(formatter)

    # Add the handler to the logger
    if not logger.hasHandlers():
        logger.addHandler(ch)

    return logger


def set_package_level(level: int) -> None:
    """Change the level of every logger created for this package."""
    for name, existing in logging.Logger.manager.loggerDict.items():
        if not name.startswith("pixel_tree_classifier"):
            continue
        if isinstance(existing, logging.Logger):
            existing.setLevel(level)
            for handler in existing.handlers:
                handler.setLevel(level)
