"""
Reminder engine for one user scope.

Owns the scope's reminder list and settings, evaluates due reminders on a fixed
schedule and publishes each fired batch on the bus as E.REMINDER_TRIGGERED.
All mutations, ticks included, run under one asyncio.Lock, and every change
replaces the list as a whole, so readers never see a half-applied update.

A reminder fires when its due date is today (UTC) and it was not notified yet,
or when its snooze timer expires. Firing marks it notified and consumes the
snooze in the same step, so one reminder fires at most once per condition.
"""

import asyncio
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Tuple

import storage.reminder as reminder_storage
from channels.toast import ActiveAlerts
from config.settings import REMINDER_CHECK_INTERVAL_SECONDS, REMINDER_SNOOZE_SECONDS
from datamodel import *
from events import bus, E
from logger import logger
from metrics import runtime_metrics
from storage.kv import PersistenceError
from utils import now_utc, parse_due_date, to_epoch_ms
from world.due import due_status, fires_now, mark_fired
from world.ticker import Ticker

__all__ = ["ReminderEngine"]


class ReminderEngine:
    def __init__(
        self,
        scope: str,
        store: Any = reminder_storage,
        alerts: ActiveAlerts | None = None,
        clock: Callable[[], datetime] = now_utc,
        interval_seconds: float = REMINDER_CHECK_INTERVAL_SECONDS,
        snooze_seconds: int = REMINDER_SNOOZE_SECONDS,
    ) -> None:
        self.scope = scope
        self.log = logger.bind(scope=scope)
        self.store = store
        self.alerts = alerts if alerts is not None else ActiveAlerts()
        self.clock = clock
        self.snooze_ms = snooze_seconds * 1000
        self.settings: ReminderSettings = DEFAULT_REMINDER_SETTINGS
        self.last_persist_error: str | None = None
        self._reminders: Tuple[Reminder, ...] = ()
        self._last_id = 0
        self._lock = asyncio.Lock()
        self.ticker = Ticker(self.check, interval_seconds, name=f"reminder-ticker[{scope}]")

    # ----------------- state ----------------
    @property
    def reminders(self) -> List[Reminder]:
        return list(self._reminders)

    def get(self, reminder_id: int) -> Reminder | None:
        return next((r for r in self._reminders if r.id == reminder_id), None)

    def awaiting_alert(self, reminder_id: int) -> bool:
        """Still held and not snoozed again since it fired."""
        reminder = self.get(reminder_id)
        return reminder is not None and reminder.snoozed_until is None

    def list_view(self, now: datetime | None = None) -> List[Dict[str, Any]]:
        """Reminders by due date with their overdue/today/upcoming status."""
        now = now or self.clock()
        ordered = sorted(self._reminders, key=lambda r: (r.due_date, r.id))
        now_ms = to_epoch_ms(now)
        return [
            {**r.to_dict(), "status": due_status(now, r), "snoozed": r.snoozed_until is not None and r.snoozed_until > now_ms}
            for r in ordered
        ]

    async def load(self) -> None:
        reminders = await self.store.get_reminders(self.scope)
        settings = await self.store.get_reminder_settings(self.scope)
        async with self._lock:
            self._reminders = tuple(reminders)
            self._last_id = max((r.id for r in reminders), default=0)
            self.settings = settings
        self.log.info(f"Loaded {len(reminders)} reminders")

    # ----------------- evaluation ----------------
    async def tick(self, now: datetime | None = None) -> List[Reminder]:
        """Evaluate every reminder at `now`, persist the transitions and return the fired batch."""
        async with self._lock:
            now = now or self.clock()
            fired: List[Reminder] = []
            updated: List[Reminder] = []
            for reminder in self._reminders:
                if fires_now(now, reminder):
                    reminder = mark_fired(reminder)
                    fired.append(reminder)
                updated.append(reminder)

            if fired:
                self._reminders = tuple(updated)
                try:
                    await self._persist()
                except PersistenceError:
                    # already logged and recorded; the batch is still delivered
                    pass

        runtime_metrics.record_tick(len(fired))
        return fired

    async def check(self) -> None:
        fired = await self.tick()
        if fired:
            self.log.info(f"{len(fired)} reminder(s) fired")
            bus.emit(E.REMINDER_TRIGGERED, self.scope, fired, self.settings)

    # ----------------- user operations ----------------
    async def add(self, text: str, due_date: str, now: datetime | None = None) -> Reminder:
        if not text or not text.strip():
            raise ValueError("Reminder text must not be empty")
        due = parse_due_date(due_date)

        async with self._lock:
            now = now or self.clock()
            reminder_id = max(to_epoch_ms(now), self._last_id + 1)
            reminder = Reminder(id=reminder_id, text=text, due_date=due.isoformat())
            self._last_id = reminder_id
            self._reminders = self._reminders + (reminder,)
            await self._persist()
        self.log.info(f"Added reminder {reminder.id}, due {reminder.due_date}")
        return reminder

    async def delete(self, reminder_id: int) -> bool:
        async with self._lock:
            self.alerts.remove(reminder_id)
            remaining = tuple(r for r in self._reminders if r.id != reminder_id)
            if len(remaining) == len(self._reminders):
                return False
            self._reminders = remaining
            await self._persist()
        self.log.info(f"Deleted reminder {reminder_id}")
        return True

    async def snooze(
        self, reminder_id: int, now: datetime | None = None, duration_ms: int | None = None
    ) -> Reminder | None:
        """Re-fire the reminder after `duration_ms` (one hour by default) and close its alert."""
        async with self._lock:
            self.alerts.remove(reminder_id)
            target = self.get(reminder_id)
            if target is None:
                return None
            now = now or self.clock()
            duration = self.snooze_ms if duration_ms is None else duration_ms
            snoozed = replace(target, snoozed_until=to_epoch_ms(now) + duration)
            self._reminders = tuple(snoozed if r.id == reminder_id else r for r in self._reminders)
            await self._persist()
        self.log.info(f"Snoozed reminder {reminder_id} until {snoozed.snoozed_until}")
        return snoozed

    def dismiss(self, reminder_id: int) -> bool:
        """Close the on-screen alert only; the reminder itself stays as it is."""
        return self.alerts.remove(reminder_id)

    async def update_settings(self, settings: ReminderSettings) -> ReminderSettings:
        self.settings = settings
        try:
            await self.store.save_reminder_settings(self.scope, settings)
        except Exception as e:
            self._record_persist_error(e)
            raise PersistenceError(f"Failed to save reminder settings for {self.scope}: {e}") from e
        return settings

    # ----------------- lifecycle ----------------
    def start(self) -> None:
        self.ticker.start()

    async def stop(self) -> None:
        await self.ticker.stop()

    def get_status(self) -> Dict[str, object]:
        return {
            "scope": self.scope,
            "running": self.ticker.running,
            "last_check_at_epoch": self.ticker.last_tick_at_epoch,
            "tick_count": self.ticker.tick_count,
            "reminder_count": len(self._reminders),
            "active_alert_count": len(self.alerts),
            "last_persist_error": self.last_persist_error,
        }

    # ----------------- persistence ----------------
    async def _persist(self) -> None:
        """Write the current list. Raises PersistenceError; memory keeps the new state either way."""
        try:
            await self.store.save_reminders(self.scope, self._reminders)
        except Exception as e:
            self._record_persist_error(e)
            if isinstance(e, PersistenceError):
                raise
            raise PersistenceError(f"Failed to save reminders for {self.scope}: {e}") from e
        self.last_persist_error = None

    def _record_persist_error(self, error: Exception) -> None:
        self.last_persist_error = str(error)
        runtime_metrics.record_persist_error()
        self.log.error(f"Reminder persistence failed: {error}")
