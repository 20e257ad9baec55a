from datetime import date, datetime, timezone

__all__ = ["now_utc", "to_utc", "to_epoch_ms", "utc_day", "parse_due_date", "weekday_name"]

_WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def now_utc() -> datetime:
    """Current time in UTC"""
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_epoch_ms(dt: datetime) -> int:
    return int(round(to_utc(dt).timestamp() * 1000))


def utc_day(dt: datetime) -> date:
    """Calendar day of `dt` in UTC, i.e. the date of its UTC midnight"""
    return to_utc(dt).date()


def parse_due_date(raw: str) -> date:
    """Accepts "YYYY-MM-DD" and ISO timestamps; timestamps are moved to UTC before
    the calendar date is taken.

    Raises ValueError when no date can be read.
    """
    text = (raw or "").strip()
    if len(text) > 10 and text[10] in ("T", " "):
        return to_utc(datetime.fromisoformat(text.replace("Z", "+00:00"))).date()
    return date.fromisoformat(text)


def weekday_name(dt: datetime) -> str:
    """Monday-first weekday name of the local calendar day"""
    return _WEEKDAYS[dt.weekday()]
