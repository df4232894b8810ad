"""
Logging utilities for lcmix.

Library code uses logging.getLogger(__name__), never print().
"""

import logging


def setup_logging(level: str = "INFO", format_style: str = "default") -> None:
    """
    Configure logging for an lcmix run.

    This should be called at the application entry point (script/notebook),
    NOT inside library modules.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_style: Format style - "default" for standard, "minimal" for compact

    Example:
        >>> from lcmix.utils.logging import setup_logging
        >>> setup_logging(level="DEBUG")
    """
    if format_style == "minimal":
        fmt = "%(levelname)s | %(message)s"
    else:
        fmt = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=fmt,
        datefmt="%Y-%m-%d %H:%M:%S",
    )


class LoggerMixin:
    """
    Mixin class that provides a logger property.

    Usage:
        class MixtureSampler(LoggerMixin):
            def run(self):
                self.logger.info("Sampling")
    """

    @property
    def logger(self) -> logging.Logger:
        """Get logger for this class."""
        return logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")
