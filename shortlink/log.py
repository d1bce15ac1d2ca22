"""Logger setup shared by the service, its components and the seed script."""

import logging

from shortlink.config import Settings

__all__ = ["LOGGER_NAME", "ContextAdapter", "get_logger", "setup_logging"]

LOGGER_NAME = "shortlink"


def setup_logging(settings: Settings) -> logging.Logger:
    """Setup the root service logger once."""
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(settings.LOG_LEVEL.upper())
    return logger


def get_logger(component: str) -> logging.Logger:
    return logging.getLogger(f"{LOGGER_NAME}.{component}")


class ContextAdapter(logging.LoggerAdapter):
    """LoggerAdapter that keeps per-call ``extra`` fields next to the bound context."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs
