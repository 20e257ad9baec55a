import asyncio
import time
from datetime import timedelta

import pytest

from channels.audio import AudioChannel
from channels.dispatcher import Dispatcher
from channels.email_sim import SimulatedEmailChannel
from channels.os_notify import OsNotificationChannel, OsNotifier
from channels.toast import ToastChannel
from conftest import ESSAY_DAY, FakeBackend, FakePlayer, FakeReminderStore
from datamodel import *
from events import bus, E
from logger import logger
from storage.kv import PersistenceError
from utils import to_epoch_ms
from world.reminder import ReminderEngine

ESSAY = Reminder(id=1, text="Essay", due_date="2024-03-01")


def _engine(store, **kwargs):
    return ReminderEngine("alice-cs", store=store, clock=lambda: ESSAY_DAY, **kwargs)


def test_due_reminder_fires_exactly_once():
    async def scenario():
        store = FakeReminderStore([ESSAY])
        engine = _engine(store)
        await engine.load()

        first = await engine.tick(ESSAY_DAY)
        second = await engine.tick(ESSAY_DAY + timedelta(minutes=1))
        return engine, store, first, second

    engine, store, first, second = asyncio.run(scenario())
    assert [r.id for r in first] == [1]
    assert first[0].notified is True
    assert second == []
    assert engine.get(1).notified is True
    assert store.reminders["alice-cs"][0].notified is True


def test_tick_without_firing_does_not_write():
    async def scenario():
        store = FakeReminderStore([Reminder(id=1, text="Later", due_date="2024-04-01")])
        engine = _engine(store)
        await engine.load()
        fired = await engine.tick(ESSAY_DAY)
        return store, fired

    store, fired = asyncio.run(scenario())
    assert fired == []
    assert store.save_count == 0


def test_snooze_sets_timer_and_closes_alert():
    async def scenario():
        engine = _engine(FakeReminderStore([ESSAY]))
        await engine.load()
        fired = await engine.tick(ESSAY_DAY)
        engine.alerts.add(fired[0])
        snoozed = await engine.snooze(1, now=ESSAY_DAY)
        return engine, snoozed

    engine, snoozed = asyncio.run(scenario())
    assert snoozed.snoozed_until == to_epoch_ms(ESSAY_DAY) + 3600000
    assert 1 not in engine.alerts


def test_snoozed_reminder_refires_after_an_hour():
    t0 = ESSAY_DAY

    async def scenario():
        engine = _engine(FakeReminderStore([ESSAY]))
        await engine.load()
        await engine.tick(t0)
        await engine.snooze(1, now=t0)
        early = await engine.tick(t0 + timedelta(milliseconds=1800000))
        late = await engine.tick(t0 + timedelta(milliseconds=3600001))
        again = await engine.tick(t0 + timedelta(milliseconds=3700000))
        return engine, early, late, again

    engine, early, late, again = asyncio.run(scenario())
    assert early == []
    assert [r.id for r in late] == [1]
    assert late[0].snoozed_until is None
    assert late[0].notified is True
    assert again == []
    assert engine.get(1).snoozed_until is None


def test_snooze_unknown_id_returns_none():
    async def scenario():
        engine = _engine(FakeReminderStore())
        return await engine.snooze(42, now=ESSAY_DAY)

    assert asyncio.run(scenario()) is None


def test_delete_removes_from_list_and_alerts():
    async def scenario():
        store = FakeReminderStore([ESSAY, Reminder(id=2, text="Lab", due_date="2024-04-01")])
        engine = _engine(store)
        await engine.load()
        fired = await engine.tick(ESSAY_DAY)
        engine.alerts.add(fired[0])
        removed_fired = await engine.delete(1)
        removed_unfired = await engine.delete(2)
        missing = await engine.delete(3)
        return engine, store, removed_fired, removed_unfired, missing

    engine, store, removed_fired, removed_unfired, missing = asyncio.run(scenario())
    assert removed_fired and removed_unfired
    assert not missing
    assert engine.reminders == []
    assert store.reminders["alice-cs"] == []
    assert len(engine.alerts) == 0


def test_dismiss_only_closes_the_alert():
    async def scenario():
        engine = _engine(FakeReminderStore([ESSAY]))
        await engine.load()
        fired = await engine.tick(ESSAY_DAY)
        engine.alerts.add(fired[0])
        return engine, engine.dismiss(1), engine.dismiss(1)

    engine, first, second = asyncio.run(scenario())
    assert first is True
    assert second is False
    assert engine.get(1) is not None


def test_add_assigns_increasing_ids_and_persists():
    async def scenario():
        store = FakeReminderStore()
        engine = _engine(store)
        a = await engine.add("Essay", "2024-03-05")
        b = await engine.add("Lab report", "2024-03-06")
        return store, a, b

    store, a, b = asyncio.run(scenario())
    assert a.id == to_epoch_ms(ESSAY_DAY)
    assert b.id == a.id + 1
    assert [r.text for r in store.reminders["alice-cs"]] == ["Essay", "Lab report"]


@pytest.mark.parametrize("text,due_date", [("", "2024-03-05"), ("   ", "2024-03-05"), ("Essay", "soon")])
def test_add_rejects_invalid_input(text, due_date):
    async def scenario():
        engine = _engine(FakeReminderStore())
        with pytest.raises(ValueError):
            await engine.add(text, due_date)
        return engine

    assert asyncio.run(scenario()).reminders == []


def test_failed_write_during_tick_still_fires():
    async def scenario():
        store = FakeReminderStore([ESSAY])
        engine = _engine(store)
        await engine.load()
        store.fail_saves = True
        fired = await engine.tick(ESSAY_DAY)
        return engine, fired

    engine, fired = asyncio.run(scenario())
    assert [r.id for r in fired] == [1]
    assert engine.get(1).notified is True
    assert "disk is full" in engine.get_status()["last_persist_error"]


def test_failed_write_during_add_raises_but_keeps_memory_state():
    async def scenario():
        store = FakeReminderStore()
        store.fail_saves = True
        engine = _engine(store)
        with pytest.raises(PersistenceError):
            await engine.add("Essay", "2024-03-05")
        return engine

    engine = asyncio.run(scenario())
    assert [r.text for r in engine.reminders] == ["Essay"]
    assert engine.last_persist_error is not None


def test_check_publishes_fired_batch():
    received = []

    def on_triggered(scope, batch, settings):
        received.append((scope, [r.id for r in batch], settings))

    async def scenario():
        engine = _engine(FakeReminderStore([ESSAY]))
        await engine.load()
        bus.subscribe(E.REMINDER_TRIGGERED, on_triggered)
        try:
            await engine.check()
            await engine.check()
        finally:
            bus.unsubscribe(E.REMINDER_TRIGGERED, on_triggered)

    asyncio.run(scenario())
    assert received == [("alice-cs", [1], DEFAULT_REMINDER_SETTINGS)]


def test_list_view_sorted_by_due_date_with_status():
    async def scenario():
        engine = _engine(FakeReminderStore([
            Reminder(id=3, text="Exam", due_date="2024-03-10"),
            Reminder(id=1, text="Essay", due_date="2024-03-01"),
            Reminder(id=2, text="Quiz", due_date="2024-02-20", snoozed_until=to_epoch_ms(ESSAY_DAY) + 1000),
        ]))
        await engine.load()
        return engine.list_view(ESSAY_DAY)

    view = asyncio.run(scenario())
    assert [(item["id"], item["status"]) for item in view] == [(2, "overdue"), (1, "today"), (3, "upcoming")]
    assert view[0]["snoozed"] is True


def _dispatcher(alerts, player, backend, permission=NotificationPermission.GRANTED):
    notifier = OsNotifier(backend=backend, permission=permission, enabled=True)
    return Dispatcher([
        ToastChannel(alerts),
        AudioChannel(player=player, enabled=True),
        OsNotificationChannel(notifier),
        SimulatedEmailChannel(notifier),
    ])


def test_essay_due_fires_into_alerts_and_plays_sound():
    player, backend = FakePlayer(), FakeBackend()

    async def scenario():
        engine = _engine(FakeReminderStore([ESSAY]))
        await engine.load()
        batch = await engine.tick(ESSAY_DAY)
        reports = await _dispatcher(engine.alerts, player, backend).dispatch(batch, engine.settings)
        return engine, reports

    engine, reports = asyncio.run(scenario())
    assert engine.get(1).notified is True
    assert 1 in engine.alerts
    assert reports[0].outcomes["audio"] == ChannelOutcome.DELIVERED
    assert len(player.played) == 1
    assert backend.shown == [("AcadEase Reminder", "Due: Essay")]


def test_sound_and_email_disabled_only_toast_and_os(monkeypatch):
    import channels.audio

    def fail_synthesize(*args, **kwargs):
        raise AssertionError("audio synthesis must not run")

    monkeypatch.setattr(channels.audio, "synthesize", fail_synthesize)
    player, backend = FakePlayer(), FakeBackend()
    settings = ReminderSettings(sound_enabled=False, email_enabled=False, email_address="a@b.c")

    async def scenario():
        engine = _engine(FakeReminderStore([ESSAY], settings=settings))
        await engine.load()
        batch = await engine.tick(ESSAY_DAY)
        reports = await _dispatcher(engine.alerts, player, backend).dispatch(batch, engine.settings)
        return engine, reports

    engine, reports = asyncio.run(scenario())
    outcomes = reports[0].outcomes
    assert outcomes["toast"] == ChannelOutcome.DELIVERED
    assert outcomes["os"] == ChannelOutcome.DELIVERED
    assert outcomes["audio"] == ChannelOutcome.SKIPPED
    assert outcomes["email"] == ChannelOutcome.SKIPPED
    assert player.played == []
    assert 1 in engine.alerts


def test_toast_updates_regardless_of_other_channels():
    player, backend = FakePlayer(fail=True), FakeBackend(fail=True)
    batch = [ESSAY, Reminder(id=2, text="Lab", due_date="2024-03-01")]

    async def scenario():
        engine = _engine(FakeReminderStore())
        reports = await _dispatcher(engine.alerts, player, backend).dispatch(batch, DEFAULT_REMINDER_SETTINGS)
        return engine, reports

    engine, reports = asyncio.run(scenario())
    assert [r.id for r in engine.alerts.list()] == [1, 2]
    assert all(r.outcomes["audio"] == ChannelOutcome.FAILED for r in reports)
    assert all(r.outcomes["os"] == ChannelOutcome.FAILED for r in reports)


def test_engine_ticker_runs_check_on_start():
    async def scenario():
        store = FakeReminderStore([ESSAY])
        engine = _engine(store, interval_seconds=3600)
        await engine.load()
        engine.start()
        await asyncio.sleep(0.05)
        status = engine.get_status()
        await engine.stop()
        return engine, status

    engine, status = asyncio.run(scenario())
    assert status["running"] is True
    assert status["tick_count"] == 1
    assert engine.get(1).notified is True
    assert engine.get_status()["running"] is False


def test_offset_due_date_is_stored_as_its_utc_day():
    async def scenario():
        engine = _engine(FakeReminderStore())
        return await engine.add("Essay", "2024-02-29T23:00:00-05:00")

    assert asyncio.run(scenario()).due_date == "2024-03-01"


class SlowPlayer(FakePlayer):
    def play(self, samples, sample_rate):
        time.sleep(0.3)
        super().play(samples, sample_rate)


def test_delete_and_snooze_during_dispatch_stay_closed():
    lab = Reminder(id=2, text="Lab", due_date="2024-03-01")

    async def scenario():
        engine = _engine(FakeReminderStore([ESSAY, lab]))
        await engine.load()
        batch = await engine.tick(ESSAY_DAY)
        dispatcher = _dispatcher(engine.alerts, SlowPlayer(), FakeBackend())
        delivery = asyncio.create_task(dispatcher.dispatch(batch, engine.settings))
        # first item's sound is still playing
        await asyncio.sleep(0.1)
        await engine.delete(2)
        await engine.snooze(1, now=ESSAY_DAY)
        reports = await delivery
        return engine, reports

    engine, reports = asyncio.run(scenario())
    assert [r.id for r in engine.reminders] == [1]
    assert 2 not in engine.alerts
    assert 1 not in engine.alerts
    assert [r.outcomes["toast"] for r in reports] == [ChannelOutcome.DELIVERED] * 2


def test_engine_logs_carry_the_user_scope():
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="INFO")

    async def scenario():
        engine = _engine(FakeReminderStore())
        await engine.add("Essay", "2024-03-05")

    try:
        asyncio.run(scenario())
    finally:
        logger.remove(handler_id)
    added = [r for r in records if r["message"].startswith("Added reminder")]
    assert [r["extra"]["scope"] for r in added] == ["alice-cs"]
