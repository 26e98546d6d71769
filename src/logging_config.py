"""
Logging Configuration
Sets up the console (and optional file) logger for the viewer.
"""
import logging
import sys
from typing import Optional

# src/ modules are top-level, so their loggers hang off the root logger.
# main.py logs as "__main__" when run as a script and as "main" when imported.
LOGGER_NAMES = ("__main__", "camera", "controls", "main", "obj_loader", "pipeline", "scene", "shader")


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> None:
    """
    Configures the handlers for the viewer's module loggers.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path to save logs to a file.
    """
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    handlers = []
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    for name in LOGGER_NAMES:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        # Avoid duplicate output when called twice
        logger.handlers.clear()
        for handler in handlers:
            logger.addHandler(handler)
        logger.propagate = False

    logging.getLogger("main").info("Logging initialized.")
