"""
Logging utilities
"""
import logging

from rich.logging import RichHandler
from rich.console import Console

from config.settings import LOG_LEVEL

# Shared console for log and table output
console = Console()


def setup_logging(level: str = LOG_LEVEL):
    """Configure logging with rich handler"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=console,
                rich_tracebacks=True,
                show_path=False,
                markup=True
            )
        ]
    )

    # Quiet the transport stack
    for name in ("web3", "urllib3", "asyncio", "aiohttp"):
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance"""
    return logging.getLogger(name)
