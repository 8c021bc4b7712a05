import logging
import os
from logging.handlers import RotatingFileHandler
from typing import IO, Optional

DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def get_level_from_string(level_name: Optional[str]) -> int:
    """Return the numeric logging level for a name, INFO if it is unknown."""
    if not level_name:
        return logging.INFO
    level = logging.getLevelName(str(level_name).strip().upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(log_level: str = "INFO", log_format: str = DEFAULT_LOG_FORMAT,
                      log_to_file: bool = False, log_file_path: str = "logs/inspector.log",
                      max_bytes: int = 500_000, max_log_files: int = 10,
                      stream: Optional[IO[str]] = None) -> logging.Logger:
    """
    Configure root logging with a console handler and optional rolling file.

    Args:
        log_level: Log level name; unknown names fall back to INFO
        log_format: Log message format string
        log_to_file: Whether to enable file logging
        log_file_path: Path to log file (directory will be created if needed)
        max_bytes: Size at which the log file rotates
        max_log_files: Maximum number of log files to keep
        stream: Console stream, defaults to stderr (tests pass a StringIO)

    Returns:
        The configured root logger
    """
    numeric_level = get_level_from_string(log_level)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler(stream)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_to_file:
        try:
            log_dir = os.path.dirname(log_file_path)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                filename=log_file_path,
                maxBytes=max_bytes,
                backupCount=max_log_files - 1,
                encoding='utf-8'
            )
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.warning(f"Failed to set up file logging at {log_file_path}: {e}")

    root_logger.setLevel(numeric_level)
    return root_logger
