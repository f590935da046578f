import logging

from config import Settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
ROOT_LOGGER = "roombooking"


def setup_logging(settings: Settings) -> logging.Logger:
    """Point the service's loggers at one stderr handler at ``settings.log_level``.

    Safe to call again (each ``create_app`` does); the level is updated and the
    handler is reused.
    """
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)

    handler = next((h for h in logger.handlers if getattr(h, "_roombooking", False)), None)
    if handler is None:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._roombooking = True
        logger.addHandler(handler)

    logger.propagate = False
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    base = logging.getLogger(ROOT_LOGGER)
    return base.getChild(name) if name else base
