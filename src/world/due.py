"""
Due evaluation for reminders.

A reminder fires when its due date is today's UTC calendar day and it has not
been notified yet, or when its snooze timer has expired. Day comparison uses
UTC midnights, never elapsed hours, so the result does not depend on the host's
local time zone.
"""

from dataclasses import replace
from datetime import datetime

from datamodel import Reminder
from logger import logger
from utils import parse_due_date, to_epoch_ms, utc_day

__all__ = ["fires_now", "is_due_today", "snooze_expired", "mark_fired", "due_status"]


def is_due_today(now: datetime, reminder: Reminder) -> bool:
    try:
        due = parse_due_date(reminder.due_date)
    except ValueError:
        logger.debug(f"Reminder {reminder.id} has an unreadable due date: {reminder.due_date!r}")
        return False
    return due == utc_day(now)


def snooze_expired(now: datetime, reminder: Reminder) -> bool:
    return reminder.snoozed_until is not None and to_epoch_ms(now) >= reminder.snoozed_until


def fires_now(now: datetime, reminder: Reminder) -> bool:
    """Pure fire decision for one reminder at instant `now`."""
    if is_due_today(now, reminder) and not reminder.notified:
        return True
    return snooze_expired(now, reminder)


def mark_fired(reminder: Reminder) -> Reminder:
    """State after firing: notified, snooze consumed."""
    return replace(reminder, notified=True, snoozed_until=None)


def due_status(now: datetime, reminder: Reminder) -> str:
    """"overdue", "today" or "upcoming" relative to the UTC day of `now`; "invalid" when unreadable."""
    try:
        due = parse_due_date(reminder.due_date)
    except ValueError:
        return "invalid"
    today = utc_day(now)
    if due < today:
        return "overdue"
    if due == today:
        return "today"
    return "upcoming"
