import logging

from .config import LOG_LEVEL

PACKAGE_LOGGER = "pedestrian_counts"


def setup_logging(level=None):
    """
    Console logging for the pedestrian_counts package

    Parameters
    level (str | int) : Log level, defaults to LOG_LEVEL from the environment

    Returns:
    logging.Logger : The configured package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level or LOG_LEVEL)

    # Only one console handler, however often the app is imported
    if not logger.handlers:
        console_format = logging.Formatter(
            '%(asctime)s - %(levelname)s - %(name)s - %(message)s'
        )
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(console_format)
        logger.addHandler(console_handler)

    return logger
