# utils/time_utils.py
from datetime import datetime, timezone, date


def utcnow_naive() -> datetime:
    # DB가 timezone=False (naive UTC)인 전제
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(dt):
    if dt is None:
        return None
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def from_unix(ts):
    """Stripe epoch seconds -> naive UTC datetime"""
    if ts in (None, ""):
        return None
    return datetime.fromtimestamp(int(ts), tz=timezone.utc).replace(tzinfo=None)


def usage_day(now=None) -> date:
    """사용량 집계 기준일 (UTC 달력 날짜)"""
    now = to_utc_naive(now) or utcnow_naive()
    return now.date()
