from datetime import datetime, timedelta, timezone
from typing import Optional

# Taiwan does not observe daylight saving time
TAIPEI_TZ = timezone(timedelta(hours=8), name="Asia/Taipei")
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def taiwan_now_str(now: Optional[datetime] = None) -> str:
    """Current time as ``YYYY-MM-DD HH:mm:ss`` in UTC+8."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(TAIPEI_TZ).strftime(TIMESTAMP_FORMAT)
