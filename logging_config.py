import logging
import sys

from loguru import logger


class InterceptHandler(logging.Handler):
    """
    Route standard-library logging records to Loguru.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging(log_level: str = "INFO") -> None:
    """
    Send ledger logs to stderr through Loguru; stdout stays free for reports.
    """
    logger.remove()
    logger.add(sys.stderr, level=log_level.upper(), format="{time:HH:mm:ss} | {level: <7} | {name} - {message}")
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
