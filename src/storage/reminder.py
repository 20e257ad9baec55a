from datamodel import *
from logger import logger
from storage.kv import get_json, set_json
from storage.user import user_key
from typing import List, Sequence

__all__ = ["get_reminders", "save_reminders", "get_reminder_settings", "save_reminder_settings"]

REMINDERS_KEY = "acadease_reminders"
SETTINGS_KEY = "acadease_settings"


async def get_reminders(scope: str) -> List[Reminder]:
    """Reminders stored for the user scope, empty when absent"""
    raw = await get_json(user_key(scope, REMINDERS_KEY), default=[])
    if not isinstance(raw, list):
        logger.warning(f"Reminder record for {scope} is not a list, ignoring it")
        return []

    reminders: List[Reminder] = []
    for item in raw:
        try:
            reminders.append(Reminder.from_dict(item))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Dropping malformed reminder for {scope}: {item!r} ({e})")
    return reminders


async def save_reminders(scope: str, reminders: Sequence[Reminder]) -> None:
    await set_json(user_key(scope, REMINDERS_KEY), [r.to_dict() for r in reminders])
    logger.trace(f"Saved {len(reminders)} reminders for {scope}")


async def get_reminder_settings(scope: str) -> ReminderSettings:
    """Stored settings merged over the defaults"""
    raw = await get_json(user_key(scope, SETTINGS_KEY))
    if not isinstance(raw, dict):
        return DEFAULT_REMINDER_SETTINGS
    return ReminderSettings.from_dict(raw)


async def save_reminder_settings(scope: str, settings: ReminderSettings) -> None:
    await set_json(user_key(scope, SETTINGS_KEY), settings.to_dict())
