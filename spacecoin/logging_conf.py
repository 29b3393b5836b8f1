"""Logging configuration with Rich output."""
import logging

from rich.logging import RichHandler

logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    handlers=[RichHandler(rich_tracebacks=True)],
)


LOGGER = logging.getLogger("spacecoin")
