import sys
import logging

from loguru import logger

from collector.core.config import LoggingConfig

# Formatters
CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level:<8}</level> | "
    "<cyan>{file}:{function}:{line}</cyan> | "
    "<level>{message}</level>"
)

FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | {level:<8} | "
    "{file}:{function}:{line} | {message}"
)

# External loggers uvicorn, asyncpg, sqlalchemy ...
EXTERNAL_LOGGERS = [
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "asyncpg",
    "aiosqlite",
    "sqlalchemy",
    "sqlalchemy.engine",
]


# Intercept standard logging → loguru
class InterceptHandler(logging.Handler):
    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(
            level, record.getMessage()
        )


def configure_logging(config: LoggingConfig) -> None:
    """Replace loguru's default sink and route stdlib logging through it."""
    level = config.level.upper()

    logger.remove()

    logger.add(
        sys.stdout,
        level=level,
        format=CONSOLE_FORMAT,
        colorize=True,
    )

    if config.file is not None:
        config.file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(config.file),
            level=level,
            rotation="5 MB",
            retention=10,
            compression="zip",
            encoding="utf-8",
            format=FILE_FORMAT,
            backtrace=True,
            diagnose=False,
            enqueue=True,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for name in EXTERNAL_LOGGERS:
        ext_logger = logging.getLogger(name)
        ext_logger.handlers.clear()
        ext_logger.addHandler(InterceptHandler())
        ext_logger.setLevel(level)
        ext_logger.propagate = False

    logger.debug(f"Logging configured at level {level}, file sink: {config.file}")
