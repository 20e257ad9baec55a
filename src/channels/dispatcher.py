import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from channels.audio import AudioChannel, AudioPlayer
from channels.base import NotificationChannel
from channels.email_sim import SimulatedEmailChannel
from channels.os_notify import OsNotificationChannel, OsNotifier
from channels.toast import ActiveAlerts, ToastChannel
from datamodel import ChannelOutcome, Reminder, ReminderSettings
from logger import logger
from metrics import runtime_metrics

__all__ = ["DispatchReport", "Dispatcher", "build_default_channels"]


@dataclass
class DispatchReport:
    reminder_id: int
    outcomes: Dict[str, ChannelOutcome] = field(default_factory=dict)


class Dispatcher:
    """Fans each fired reminder out to every channel.

    Immediate channels (the on-screen alert) run for every item up front, so a
    delete or snooze that lands while audio is still playing is never undone.
    The other channels then run concurrently per item. A failing channel is
    recorded as FAILED and the rest still deliver.
    """

    def __init__(self, channels: Sequence[NotificationChannel]) -> None:
        self.channels = list(channels)

    async def dispatch(self, batch: Sequence[Reminder], settings: ReminderSettings) -> List[DispatchReport]:
        immediate = [ch for ch in self.channels if ch.immediate]
        deferred = [ch for ch in self.channels if not ch.immediate]

        first_pass: Dict[int, List[ChannelOutcome]] = {}
        for reminder in batch:
            first_pass[reminder.id] = [await self._attempt(ch, reminder, settings) for ch in immediate]

        reports: List[DispatchReport] = []
        for reminder in batch:
            outcomes = await asyncio.gather(*(self._attempt(ch, reminder, settings) for ch in deferred))
            report = DispatchReport(reminder_id=reminder.id)
            for channel, outcome in zip(immediate + deferred, first_pass[reminder.id] + list(outcomes)):
                report.outcomes[channel.name] = outcome
                runtime_metrics.record_channel_outcome(channel.name, outcome.value)
            logger.debug(f"Dispatched reminder {reminder.id}: {({k: v.value for k, v in report.outcomes.items()})}")
            reports.append(report)
        return reports

    async def _attempt(
        self, channel: NotificationChannel, reminder: Reminder, settings: ReminderSettings
    ) -> ChannelOutcome:
        try:
            return await channel.attempt(reminder, settings)
        except Exception as e:
            logger.opt(exception=e).error(f"Channel {channel.name} failed for reminder {reminder.id}")
            return ChannelOutcome.FAILED


def build_default_channels(
    alerts: ActiveAlerts, notifier: OsNotifier, player: AudioPlayer | None = None
) -> List[NotificationChannel]:
    return [
        ToastChannel(alerts),
        AudioChannel(player=player),
        OsNotificationChannel(notifier),
        SimulatedEmailChannel(notifier),
    ]
