import inspect
import logging
import sys
from pathlib import Path

from loguru import logger

from chain_gateway.config import Settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> "
    "<level>{level: <8}</level> "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


class InterceptHandler(logging.Handler):
    """Routes standard library log records (uvicorn, fastapi) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level,
            record.getMessage(),
        )


def configure_logging(settings: Settings) -> None:
    """
    Configure loguru sinks for the service.

    A coloured stderr sink is always installed. Outside development two rotating
    JSON file sinks are added: ``error.log`` for errors only and ``combined.log``
    for everything at the configured level.

    Args:
        settings (Settings): The service settings.
    """
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level, format=LOG_FORMAT, colorize=True)

    if settings.environment != "development":
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_dir / "error.log",
            level="ERROR",
            serialize=True,
            rotation="5 MB",
            retention=5,
        )
        logger.add(
            log_dir / "combined.log",
            level=settings.log_level,
            serialize=True,
            rotation="5 MB",
            retention=5,
        )

    logger.configure(extra={"service": settings.app_name})
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False
