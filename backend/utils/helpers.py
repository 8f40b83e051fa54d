"""
General helper utilities
"""
import uuid
from datetime import datetime, timezone


def new_id() -> str:
    """Application-side primary key (string UUID)"""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
