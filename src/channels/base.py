from abc import ABC, abstractmethod

from datamodel import ChannelOutcome, Reminder, ReminderSettings

__all__ = ["NotificationChannel"]


class NotificationChannel(ABC):
    """One way of telling the user a reminder fired.

    `attempt` reports what happened instead of raising: a channel that is turned
    off in settings returns SKIPPED, a backend error returns FAILED.
    """

    name: str = "channel"
    # immediate channels must not suspend; they run for the whole batch first
    immediate: bool = False

    @abstractmethod
    async def attempt(self, reminder: Reminder, settings: ReminderSettings) -> ChannelOutcome:
        raise NotImplementedError
