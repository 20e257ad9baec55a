from typing import Dict, List

from channels.base import NotificationChannel
from datamodel import ChannelOutcome, Reminder, ReminderSettings
from logger import logger

__all__ = ["ActiveAlerts", "ToastChannel"]


class ActiveAlerts:
    """Reminders currently shown as on-screen alerts, in the order they fired.

    Keyed by reminder id, so firing the same reminder twice (a snooze expiring
    while its first alert is still open) keeps a single entry.
    """

    def __init__(self) -> None:
        self._alerts: Dict[int, Reminder] = {}

    def add(self, reminder: Reminder) -> None:
        self._alerts[reminder.id] = reminder

    def remove(self, reminder_id: int) -> bool:
        return self._alerts.pop(reminder_id, None) is not None

    def list(self) -> List[Reminder]:
        return list(self._alerts.values())

    def clear(self) -> None:
        self._alerts.clear()

    def __contains__(self, reminder_id: object) -> bool:
        return reminder_id in self._alerts

    def __len__(self) -> int:
        return len(self._alerts)


class ToastChannel(NotificationChannel):
    name = "toast"
    immediate = True

    def __init__(self, alerts: ActiveAlerts) -> None:
        self.alerts = alerts

    async def attempt(self, reminder: Reminder, settings: ReminderSettings) -> ChannelOutcome:
        self.alerts.add(reminder)
        logger.info(f"Reminder alert: {reminder.text} (due {reminder.due_date})")
        return ChannelOutcome.DELIVERED
