import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List

import pytest

import storage.db_config as db_config
from datamodel import *

ESSAY_DAY = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


class FakeReminderStore:
    """In-memory stand-in for storage.reminder."""

    def __init__(self, reminders=None, settings=DEFAULT_REMINDER_SETTINGS):
        self.reminders: Dict[str, List[Reminder]] = {}
        self.settings: Dict[str, ReminderSettings] = {}
        self.initial_reminders = list(reminders or [])
        self.initial_settings = settings
        self.save_count = 0
        self.fail_saves = False

    async def get_reminders(self, scope):
        return list(self.reminders.get(scope, self.initial_reminders))

    async def save_reminders(self, scope, reminders):
        if self.fail_saves:
            raise OSError("disk is full")
        self.save_count += 1
        self.reminders[scope] = list(reminders)

    async def get_reminder_settings(self, scope):
        return self.settings.get(scope, self.initial_settings)

    async def save_reminder_settings(self, scope, settings):
        if self.fail_saves:
            raise OSError("disk is full")
        self.settings[scope] = settings


class FakeTimetableStore:
    def __init__(self, data=None):
        self.data = dict(data or {})
        self.save_count = 0

    async def get_timetable(self):
        return {key: list(entries) for key, entries in self.data.items()}

    async def save_timetable(self, timetable):
        self.save_count += 1
        self.data = {key: list(entries) for key, entries in timetable.items()}


class FakeMessageStore:
    def __init__(self, history=None):
        self.history: Dict[str, List[Message]] = {}
        self.initial = list(history or [])

    async def get_chat_history(self, scope):
        return list(self.history.get(scope, self.initial))

    async def save_chat_history(self, scope, messages):
        self.history[scope] = list(messages)


class FakePlayer:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.played: List[Any] = []

    def play(self, samples, sample_rate):
        if self.fail:
            raise RuntimeError("no output device")
        self.played.append((len(samples), sample_rate))


class FakeBackend:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.shown: List[tuple] = []

    def notify(self, title, body):
        if self.fail:
            raise NotImplementedError("no notification backend on this platform")
        self.shown.append((title, body))


class FakeLLM:
    def __init__(self, answer: str = "", error: Exception | None = None):
        self.answer = answer
        self.error = error
        self.prompts: List[tuple] = []

    async def generate_response(self, prompt, user=None):
        self.prompts.append((prompt, user))
        if self.error is not None:
            raise self.error
        return self.answer


@pytest.fixture
def run_with_db(tmp_path):
    """Run a coroutine function against a fresh sqlite database."""

    def runner(coro_fn):
        async def _run():
            await db_config.init_db(str(tmp_path / "acadease.db"))
            try:
                return await coro_fn()
            finally:
                await db_config.close_db()

        return asyncio.run(_run())

    return runner
