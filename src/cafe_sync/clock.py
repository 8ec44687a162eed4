from datetime import datetime, timedelta, timezone
from typing import Any, Optional
import time

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
ONE_MS = timedelta(milliseconds=1)


def now_ms() -> int:
    return int(time.time() * 1000)


def to_utc(value: datetime) -> datetime:
    """Naive datetimes are treated as UTC (SQLite drops the offset)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_ms(value: datetime) -> int:
    return (to_utc(value) - EPOCH) // ONE_MS


def parse_timestamp(value: Any) -> Optional[int]:
    """
    Converts a boundary timestamp into epoch milliseconds.
    Accepts ISO-8601 strings, epoch-ms numbers and datetime objects;
    anything else (or an unparsable string) yields None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return to_ms(value)
    if isinstance(value, (int, float)):
        return _representable(value)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.isdigit():
            return _representable(int(text))
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return to_ms(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


def _representable(value) -> Optional[int]:
    """Epoch ms that format_timestamp can render, else None (inf, nan, out of range)."""
    try:
        ms = int(value)
        EPOCH + timedelta(milliseconds=ms)
    except (ValueError, OverflowError):
        return None
    return ms


def format_timestamp(value: Optional[int]) -> Optional[str]:
    if value is None:
        return None
    return (EPOCH + timedelta(milliseconds=value)).isoformat()
