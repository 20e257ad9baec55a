"""
Logged-in dashboard: one DashboardSession per user, owned by the Dashboard.

Only one user is logged in at a time. Logging in replaces the current session,
logging out stops its reminder ticker and forgets the stored user.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Sequence

import storage.user as user_storage
from channels.audio import AudioPlayer
from channels.dispatcher import Dispatcher, DispatchReport, build_default_channels
from channels.os_notify import OsNotifier
from channels.toast import ActiveAlerts
from config.settings import REMINDER_CHECK_INTERVAL_SECONDS, REMINDER_SNOOZE_SECONDS
from core.auth import login_admin, login_student
from core.chat import ChatSession
from core.timetable import TimetableService, group_key
from datamodel import *
from events import bus, E
from llm.base import LLMClient
from logger import logger
from storage.kv import PersistenceError
from utils import now_utc
from world.reminder import ReminderEngine

__all__ = ["NotLoggedInError", "DashboardSession", "Dashboard", "configure_dashboard", "require_dashboard"]


class NotLoggedInError(LookupError):
    """An operation needs a logged-in user and there is none."""


class DashboardSession:
    def __init__(
        self,
        user: User,
        notifier: OsNotifier,
        llm: LLMClient | None = None,
        player: AudioPlayer | None = None,
        clock: Callable[[], datetime] = now_utc,
        interval_seconds: float = REMINDER_CHECK_INTERVAL_SECONDS,
        snooze_seconds: int = REMINDER_SNOOZE_SECONDS,
    ) -> None:
        self.user = user
        self.scope = user_storage.user_scope(user)
        self.log = logger.bind(scope=self.scope)
        self.alerts = ActiveAlerts()
        self.engine = ReminderEngine(
            self.scope,
            alerts=self.alerts,
            clock=clock,
            interval_seconds=interval_seconds,
            snooze_seconds=snooze_seconds,
        )
        self.dispatcher = Dispatcher(build_default_channels(self.alerts, notifier, player))
        self.chat = ChatSession(user, self.scope, llm)
        self.timetable = TimetableService(clock=clock)

    async def start(self) -> None:
        await self.engine.load()
        await self.chat.load()
        await self.timetable.load()
        bus.subscribe(E.REMINDER_TRIGGERED, self._on_reminders_triggered)
        self.engine.start()
        self.log.info("Dashboard session started")

    async def stop(self) -> None:
        bus.unsubscribe(E.REMINDER_TRIGGERED, self._on_reminders_triggered)
        await self.engine.stop()
        self.log.info("Dashboard session stopped")

    async def _on_reminders_triggered(
        self, scope: str, batch: Sequence[Reminder], settings: ReminderSettings
    ) -> List[DispatchReport]:
        if scope != self.scope:
            return []
        # deleted or re-snoozed before this handler got to run
        live = [r for r in batch if self.engine.awaiting_alert(r.id)]
        return await self.dispatcher.dispatch(live, settings)

    # ----------------- timetable ----------------
    def _require_admin(self) -> None:
        if not self.user.is_admin:
            raise PermissionError("Only the admin can edit the timetable")

    def my_group(self) -> str:
        return group_key(self.user.branch, self.user.year, self.user.semester)

    def timetable_view(self, day: str | None = None) -> Dict[str, Any]:
        """A student's own group for one day. Admins see every group."""
        if self.user.is_admin:
            return {"groups": {key: [e.to_dict() for e in entries] for key, entries in self.timetable.data.items()}}
        day = day or self.timetable.today()
        return {
            "group": self.my_group(),
            "day": day,
            "entries": [e.to_dict() for e in self.timetable.day_view(self.my_group(), day)],
        }

    async def add_timetable_entry(self, branch: str, year: str, semester: str, **fields: str) -> TimetableEntry:
        self._require_admin()
        return await self.timetable.add_entry(group_key(branch, year, semester), **fields)

    async def update_timetable_entry(
        self, branch: str, year: str, semester: str, entry_id: int, **fields: str
    ) -> TimetableEntry:
        self._require_admin()
        return await self.timetable.update_entry(group_key(branch, year, semester), entry_id, **fields)

    async def delete_timetable_entry(self, branch: str, year: str, semester: str, entry_id: int) -> bool:
        self._require_admin()
        return await self.timetable.delete_entry(group_key(branch, year, semester), entry_id)


class Dashboard:
    def __init__(
        self,
        llm: LLMClient | None = None,
        notifier: OsNotifier | None = None,
        player: AudioPlayer | None = None,
        clock: Callable[[], datetime] = now_utc,
        interval_seconds: float = REMINDER_CHECK_INTERVAL_SECONDS,
    ) -> None:
        self.llm = llm
        self.notifier = notifier or OsNotifier()
        self.player = player
        self.clock = clock
        self.interval_seconds = interval_seconds
        self.session: DashboardSession | None = None

    async def restore(self) -> DashboardSession | None:
        """Reload the notification permission and resume the stored user, if any."""
        await self.notifier.load()
        user = await user_storage.get_stored_user()
        if user is None:
            return None
        logger.info(f"Restoring session for {user.name}")
        return await self._open(user)

    async def login_student(self, name: str, branch: str, year: str, semester: str) -> DashboardSession:
        return await self._login(login_student(name, branch, year, semester))

    async def login_admin(self, username: str, password: str) -> DashboardSession:
        return await self._login(login_admin(username, password))

    async def logout(self) -> None:
        await self.close()
        await user_storage.clear_stored_user()

    async def close(self) -> None:
        if self.session is not None:
            await self.session.stop()
            self.session = None

    def require_session(self) -> DashboardSession:
        if self.session is None:
            raise NotLoggedInError("Nobody is logged in")
        return self.session

    async def _login(self, user: User) -> DashboardSession:
        """Open the session first; the user is remembered only once it is running."""
        session = await self._open(user)
        try:
            await user_storage.store_user(user)
        except PersistenceError:
            await self.close()
            raise
        return session

    async def _open(self, user: User) -> DashboardSession:
        await self.close()
        session = DashboardSession(
            user,
            notifier=self.notifier,
            llm=self.llm,
            player=self.player,
            clock=self.clock,
            interval_seconds=self.interval_seconds,
        )
        await session.start()
        self.session = session
        return session


_dashboard: Dashboard | None = None


def configure_dashboard(dashboard: Dashboard) -> None:
    global _dashboard
    _dashboard = dashboard


def require_dashboard() -> Dashboard:
    if _dashboard is None:
        raise RuntimeError("Dashboard is not configured, call configure_dashboard() first")
    return _dashboard
