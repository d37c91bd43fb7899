import logging
import logging.handlers
import os
import sys
import uuid
import json
from .settings import settings

class RequestIdFilter(logging.Filter):
    """Filter that adds request_id to log records."""
    def __init__(self, name=''):
        super().__init__(name)
        self.request_id = None

    def filter(self, record):
        record.request_id = getattr(record, 'request_id', self.request_id or '-')
        return True

class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""
    def format(self, record):
        log_record = {
            'timestamp': self.formatTime(record, self.datefmt),
            'level': record.levelname,
            'logger': record.name,
            'request_id': getattr(record, 'request_id', '-'),
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if record.exc_info:
            log_record['exception'] = self.formatException(record.exc_info)

        # Fields passed via extra={"status_code": ...} land on the record itself
        for key in ('method', 'path', 'status_code', 'duration_ms', 'user_id', 'artifact_id'):
            if hasattr(record, key):
                log_record[key] = getattr(record, key)

        return json.dumps(log_record, default=str)


def _rotated_name(default_name: str) -> str:
    """Rename rotated files so they keep the .log suffix: app.log.2025-11-02 -> app_2025-11-02.log"""
    base_filename = default_name.replace('.log', '')
    parts = base_filename.rsplit('.', 1)
    if len(parts) == 2:
        return f"{parts[0]}_{parts[1]}.log"
    return default_name


def setup_logging():
    """Set up application logging. Returns the module logger and the shared request id filter."""
    standard_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - [%(request_id)s] - %(name)s - %(message)s'
    )
    formatter = JsonFormatter() if settings.LOG_FORMAT == 'json' else standard_formatter

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    request_id_filter = RequestIdFilter()

    # Remove existing handlers to avoid duplicates
    root_logger.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    if settings.LOG_FORMAT == 'json':
        console_handler.setFormatter(formatter)
    else:
        console_handler.setFormatter(logging.Formatter('%(levelname)s - [%(request_id)s] - %(message)s'))
    console_handler.addFilter(request_id_filter)
    root_logger.addHandler(console_handler)

    log_filename = None
    if settings.LOG_TO_FILE:
        os.makedirs(settings.LOG_DIR, exist_ok=True)
        log_filename = os.path.join(settings.LOG_DIR, f"{settings.LOG_FILENAME_PREFIX}.log")

        file_handler = logging.handlers.TimedRotatingFileHandler(
            log_filename,
            when='midnight',
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(request_id_filter)
        file_handler.namer = _rotated_name
        root_logger.addHandler(file_handler)

    logger = logging.getLogger(__name__)
    logger.info(
        f"Logging setup complete. Writing to {log_filename or 'console only'}",
        extra={"request_id": "startup"}
    )

    return logger, request_id_filter

def get_request_id():
    """Generate a unique request ID."""
    return str(uuid.uuid4())
