"""Loguru sink setup."""
import sys

from loguru import logger


def configure_logging(level: str = "WARNING") -> None:
    """Replace loguru's default handler with a single stderr sink at `level`."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
