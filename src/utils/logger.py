import os
import sys
from pathlib import Path

from loguru import logger

from config.settings import settings


def setup_logger(
    *,
    json_logs: bool | None = None,
    level: str | None = None,
    log_dir: str | None = None,
) -> None:
    """Configure loguru for the signal pipeline.

    Console level comes from LOG_LEVEL env, then the explicit argument,
    then settings. The file sink always captures DEBUG so rejected tokens
    can be traced after the fact.
    """
    serialize = settings.log_json if json_logs is None else json_logs
    console_level = os.getenv("LOG_LEVEL", level or settings.log_level).upper()
    directory = Path(log_dir or settings.log_dir)
    logger.remove()

    if serialize:
        logger.add(sys.stdout, serialize=True, level=console_level)
    else:
        logger.add(
            sys.stdout,
            format=(
                "<green>{time:HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
                "<level>{message}</level>"
            ),
            level=console_level,
            colorize=True,
        )

    logger.add(
        str(directory / "signals_{time:YYYY-MM-DD}.log"),
        rotation="50 MB",
        retention=settings.log_retention,
        compression="gz",
        level="DEBUG",
        serialize=serialize,
    )
