import logging
import logging.handlers
import sys
import os
from ella_rises.core.config import settings

# Third-party loggers this service runs with, and the level they are held to
LIBRARY_LOG_LEVELS = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.INFO,
    "sqlalchemy.engine": logging.WARNING,
    "alembic": logging.INFO,
}


class RequestIDFilter(logging.Filter):
    """Make sure every record carries a request_id for the formatter."""
    def filter(self, record):
        record.request_id = getattr(record, 'request_id', 'N/A')
        return True


def _level() -> int:
    return getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)


def _rotating_file_handler() -> logging.Handler:
    log_dir = os.path.dirname(settings.LOG_FILE)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        settings.LOG_FILE,
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    handler.setLevel(_level())
    return handler


def setup_logging() -> logging.Logger:
    """Route all application logging through the root logger with request ids attached."""
    root_logger = logging.getLogger()
    root_logger.setLevel(_level())
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(settings.LOG_FORMAT)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
    handlers = [console_handler]
    # Local runs log to the console only
    if not settings.DEBUG:
        handlers.append(_rotating_file_handler())

    request_id_filter = RequestIDFilter()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(request_id_filter)
        root_logger.addHandler(handler)

    for name, level in LIBRARY_LOG_LEVELS.items():
        logging.getLogger(name).setLevel(level)

    return root_logger

# Initialize logging
logger = setup_logging()
