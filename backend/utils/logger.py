"""
Logging configuration for request handlers and background jobs
"""
import logging
import sys
from backend.config import get_settings

settings = get_settings()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Get a stdout logger; background jobs have no request log to fall back on"""
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
    return logger


class JobLogAdapter(logging.LoggerAdapter):
    """Prefixes every record with the job it belongs to"""

    def process(self, msg, kwargs):
        return f"[{self.extra['job']}] {msg}", kwargs


def get_job_logger(name: str, job_id: str) -> JobLogAdapter:
    return JobLogAdapter(get_logger(name), {"job": job_id})
