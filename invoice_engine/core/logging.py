import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from invoice_engine.core.config import settings

LOG_FILE_NAME = "invoice_engine.log"


def setup_logging(level: str | None = None, log_dir: Path | None = None) -> Path:
    """Configure root logging to write to both stdout and a rotating file."""

    target_dir = log_dir or settings.log_dir
    target_dir.mkdir(parents=True, exist_ok=True)
    log_file = target_dir / LOG_FILE_NAME
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)

    # time | level | module:line | message
    log_format = logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s")

    # 5 MB per file, 5 backups
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=5 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setFormatter(log_format)
    file_handler.setLevel(log_level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(log_format)
    console_handler.setLevel(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # replace handlers from a previous call so lines are not printed twice
    root_logger.handlers = [file_handler, console_handler]

    # route uvicorn request logs into the same file
    for logger_name in ["uvicorn", "uvicorn.access", "uvicorn.error"]:
        logger = logging.getLogger(logger_name)
        logger.handlers = [file_handler, console_handler]
        logger.propagate = False

    logging.info("Logging initialized. Logs will be written to: %s", log_file.absolute())
    return log_file
