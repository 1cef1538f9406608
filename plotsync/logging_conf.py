"""Logging configuration with Betterstack support."""
import logging
import sys
from logging.handlers import RotatingFileHandler
from logtail import LogtailHandler

from plotsync import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s%(queue_context)s"


class QueueContextFilter(logging.Filter):
    """Renders the queue/entry_id passed via ``extra`` as a message suffix."""

    def filter(self, record):
        parts = []
        queue = getattr(record, "queue", None)
        entry_id = getattr(record, "entry_id", None)
        if queue:
            parts.append(f"queue={queue}")
        if entry_id:
            parts.append(f"entry={entry_id}")
        record.queue_context = f" [{' '.join(parts)}]" if parts else ""
        return True


def setup_logging():
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)
    context_filter = QueueContextFilter()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    # File handler
    log_file = settings.LOGS_DIR / "plotsync.log"
    file_handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5)
    file_handler.setLevel(logging.INFO)
    root_logger.addHandler(file_handler)

    # BetterStack handler
    betterstack_enabled = False
    if settings.BETTERSTACK_SOURCE_TOKEN:
        try:
            handler_kwargs = {"source_token": settings.BETTERSTACK_SOURCE_TOKEN}
            if settings.BETTERSTACK_INGEST_HOST:
                handler_kwargs["host"] = settings.BETTERSTACK_INGEST_HOST
            betterstack_handler = LogtailHandler(**handler_kwargs)
            betterstack_handler.setLevel(logging.DEBUG)
            root_logger.addHandler(betterstack_handler)
            betterstack_enabled = True
        except Exception as e:
            root_logger.warning(f"Failed to initialize BetterStack logging: {e}")

    for handler in root_logger.handlers:
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)

    if betterstack_enabled:
        host_info = settings.BETTERSTACK_INGEST_HOST or "default (in.logs.betterstack.com)"
        root_logger.info(f"BetterStack logging enabled (host: {host_info})")

    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)
    return logging.getLogger("plotsync")


logger = setup_logging()
