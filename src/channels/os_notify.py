"""
OS-level notifications through plyer, gated by a persisted permission.

The permission starts as "default". The first time a notification is wanted
while undecided, a permission request is published on the bus and nothing is
shown; whoever answers it calls `set_permission`. A "denied" answer is final and
is never asked again.
"""

import asyncio
from typing import Protocol

from plyer import notification

from channels.base import NotificationChannel
from config.settings import ENABLE_OS_NOTIFICATIONS
from datamodel import ChannelOutcome, NotificationPermission, Reminder, ReminderSettings
from events import bus, E
from logger import logger
from storage.kv import get_json, set_json

__all__ = [
    "PERMISSION_KEY", "REMINDER_TITLE", "NotificationBackend", "PlyerBackend",
    "OsNotifier", "OsNotificationChannel",
]

PERMISSION_KEY = "acadease_notification_permission"
APP_NAME = "AcadEase"
REMINDER_TITLE = "AcadEase Reminder"


class NotificationBackend(Protocol):
    def notify(self, title: str, body: str) -> None: ...


class PlyerBackend:
    def notify(self, title: str, body: str) -> None:
        notification.notify(title=title, message=body, app_name=APP_NAME, timeout=10)


class OsNotifier:
    def __init__(
        self,
        backend: NotificationBackend | None = None,
        permission: NotificationPermission = NotificationPermission.DEFAULT,
        enabled: bool = ENABLE_OS_NOTIFICATIONS,
    ) -> None:
        self.backend = backend or PlyerBackend()
        self.enabled = enabled
        self._permission = permission
        self.request_pending = False

    @property
    def permission(self) -> NotificationPermission:
        return self._permission

    async def load(self) -> NotificationPermission:
        raw = await get_json(PERMISSION_KEY)
        try:
            self._permission = NotificationPermission(raw) if raw is not None else NotificationPermission.DEFAULT
        except ValueError:
            logger.warning(f"Unknown notification permission {raw!r}, treating it as undecided")
            self._permission = NotificationPermission.DEFAULT
        return self._permission

    async def set_permission(self, permission: NotificationPermission) -> None:
        permission = NotificationPermission(permission)
        self._permission = permission
        self.request_pending = False
        logger.info(f"OS notification permission set to {permission.value}")
        await set_json(PERMISSION_KEY, permission.value)

    def request_permission(self) -> NotificationPermission:
        """Ask for permission if it is still undecided. Never re-asks after a denial."""
        if self._permission != NotificationPermission.DEFAULT:
            return self._permission
        if not self.request_pending:
            self.request_pending = True
            bus.emit(E.NOTIFICATION_PERMISSION_REQUESTED)
        return self._permission

    async def show(self, title: str, body: str) -> bool:
        if not self.enabled or self._permission != NotificationPermission.GRANTED:
            return False
        try:
            await asyncio.to_thread(self.backend.notify, title, body)
        except Exception as e:
            logger.warning(f"OS notification failed: {e}")
            return False
        return True


class OsNotificationChannel(NotificationChannel):
    name = "os"

    def __init__(self, notifier: OsNotifier) -> None:
        self.notifier = notifier

    async def attempt(self, reminder: Reminder, settings: ReminderSettings) -> ChannelOutcome:
        if not self.notifier.enabled:
            return ChannelOutcome.SKIPPED

        permission = self.notifier.permission
        if permission == NotificationPermission.DEFAULT:
            self.notifier.request_permission()
            return ChannelOutcome.SKIPPED
        if permission == NotificationPermission.DENIED:
            return ChannelOutcome.SKIPPED

        if await self.notifier.show(REMINDER_TITLE, f"Due: {reminder.text}"):
            return ChannelOutcome.DELIVERED
        return ChannelOutcome.FAILED
