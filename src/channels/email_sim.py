from channels.base import NotificationChannel
from channels.os_notify import OsNotifier
from datamodel import ChannelOutcome, NotificationPermission, Reminder, ReminderSettings
from logger import logger

__all__ = ["EMAIL_SENT_TITLE", "SimulatedEmailChannel"]

EMAIL_SENT_TITLE = "AcadEase Email Sent"


class SimulatedEmailChannel(NotificationChannel):
    """Pretends to mail the reminder: logs the send and confirms it with an OS notification.

    No mail is actually sent.
    """

    name = "email"

    def __init__(self, notifier: OsNotifier) -> None:
        self.notifier = notifier

    async def attempt(self, reminder: Reminder, settings: ReminderSettings) -> ChannelOutcome:
        address = settings.email_address.strip()
        if not settings.email_enabled or not address:
            return ChannelOutcome.SKIPPED

        logger.info(f"[Simulated Email] Sending email to {address} for reminder: {reminder.text}")
        if self.notifier.permission != NotificationPermission.GRANTED:
            return ChannelOutcome.SKIPPED
        if await self.notifier.show(EMAIL_SENT_TITLE, f"Notification sent to {address}"):
            return ChannelOutcome.DELIVERED
        return ChannelOutcome.FAILED
