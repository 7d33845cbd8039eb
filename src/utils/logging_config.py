import logging
import sys
from pathlib import Path

import structlog

from src.config.config import Config


class CustomFormatter(logging.Formatter):
    """Custom formatter that implements the format: [yyyy-mm-dd hh:mm:ss] [log_type] [logger_name]: {message}"""

    def format(self, record):
        # Last dotted component of the logger name
        logger_name = record.name.split('.')[-1] if '.' in record.name else record.name

        timestamp = self.formatTime(record, '%Y-%m-%d %H:%M:%S')

        formatted_message = f"[{timestamp}] [{record.levelname}] [{logger_name}]: {record.getMessage()}"

        if record.exc_info:
            formatted_message += '\n' + self.formatException(record.exc_info)

        return formatted_message


def ensure_logs_directory() -> Path:
    """Ensure the logs directory exists."""
    logs_dir = Path("logs")
    logs_dir.mkdir(exist_ok=True)
    return logs_dir


def get_log_file_path(config: Config) -> Path:
    """Get the log file path based on environment."""
    logs_dir = ensure_logs_directory()
    log_filename = f"weather_chat_{config.environment}.log"
    return logs_dir / log_filename


def setup_logging(config: Config, log_to_file: bool = True):
    """
    Configure logging for the application.

    Structlog events are rendered to a single line and handed to the stdlib
    root logger, which writes to the console and, optionally, to a file:
    [yyyy-mm-dd hh:mm:ss] [log_type] [logger_name]: {message}

    Args:
        config: Loaded application settings
        log_to_file: Whether to also write to logs/weather_chat_<environment>.log
    """
    level = getattr(logging, config.log_level.upper())

    if config.log_format == "json":
        processors = [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
        formatter = logging.Formatter("%(message)s")
    else:
        # CustomFormatter already writes timestamp and level; render only the event and its fields
        processors = [
            structlog.contextvars.merge_contextvars,
            structlog.dev.ConsoleRenderer(colors=False),
        ]
        formatter = CustomFormatter()

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear any existing handlers
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_to_file:
        log_file_path = get_log_file_path(config)
        file_handler = logging.FileHandler(log_file_path, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    logger = structlog.get_logger(__name__)
    logger.info(
        "Logging configured",
        level=config.log_level,
        format=config.log_format,
        environment=config.environment,
    )
