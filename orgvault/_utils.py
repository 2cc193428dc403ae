import logging
import uuid
from datetime import datetime, timezone

logger = logging.getLogger("orgvault")


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a trailing Z."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def generate_id() -> str:
    return str(uuid.uuid4())
