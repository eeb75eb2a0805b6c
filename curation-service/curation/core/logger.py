"""
Logging configuration using Loguru.

Colorized console output in debug mode, plain console plus a rotating file
otherwise.
"""
import sys
from pathlib import Path
from loguru import logger

from curation.config import settings


DEV_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level> | {extra}"
)

PROD_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | "
    "{level: <8} | "
    "{name}:{function}:{line} | "
    "{message} | {extra}"
)


def setup_logging() -> None:
    """
    Configure loguru logger with appropriate handlers and formatting.

    Development mode:
    - Colorized console output with backtrace/diagnose

    Production mode:
    - Console output (for container logs)
    - File output with rotation, retention and compression
    """

    # Remove default handler
    logger.remove()

    logger.add(
        sys.stdout,
        format=DEV_FORMAT if settings.debug else PROD_FORMAT,
        level=settings.log_level,
        colorize=settings.debug,
        backtrace=settings.debug,
        diagnose=settings.debug,
    )

    # File handler (production only)
    if not settings.debug:
        log_dir = Path(settings.log_directory)
        log_dir.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_dir / "curation-service.log",
            format=PROD_FORMAT,
            level="INFO",
            rotation="100 MB",
            retention="10 days",
            compression="zip",
            enqueue=True,
        )

    logger.info(f"Logging configured - Level: {settings.log_level}")
    logger.debug(f"Debug mode: {settings.debug}")
