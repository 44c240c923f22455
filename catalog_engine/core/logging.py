# catalog_engine/core/logging.py
import logging
import sys
import colorlog

from catalog_engine.core.config import get_settings

def configure_logging(level=None):
    """
    Colored console logging on the root logger. Embedding hosts call this once;
    without an explicit level, DEBUG from settings decides between DEBUG and INFO.
    """
    if level is None:
        level = logging.DEBUG if get_settings().DEBUG else logging.INFO

    handler = colorlog.StreamHandler(sys.stdout)
    handler.setFormatter(
        colorlog.ColoredFormatter(
            "%(log_color)s%(asctime)s %(levelname)-8s [%(name)s]%(reset)s %(message)s",
            datefmt="%H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "bold_red",
            },
        )
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]
    logging.getLogger(__name__).debug("logging configured level=%s", logging.getLevelName(level))
