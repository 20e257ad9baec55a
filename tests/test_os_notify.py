import asyncio

from channels.email_sim import SimulatedEmailChannel
from channels.os_notify import OsNotificationChannel, OsNotifier
from conftest import FakeBackend
from datamodel import *
from events import bus, E

ESSAY = Reminder(id=1, text="Essay", due_date="2024-03-01")


def _notifier(backend, permission):
    return OsNotifier(backend=backend, permission=permission, enabled=True)


def test_granted_shows_reminder():
    backend = FakeBackend()
    channel = OsNotificationChannel(_notifier(backend, NotificationPermission.GRANTED))

    outcome = asyncio.run(channel.attempt(ESSAY, DEFAULT_REMINDER_SETTINGS))

    assert outcome == ChannelOutcome.DELIVERED
    assert backend.shown == [("AcadEase Reminder", "Due: Essay")]


def test_undecided_requests_permission_once_and_shows_nothing():
    backend = FakeBackend()
    notifier = _notifier(backend, NotificationPermission.DEFAULT)
    channel = OsNotificationChannel(notifier)
    requests = []

    def on_request():
        requests.append(True)

    async def scenario():
        bus.subscribe(E.NOTIFICATION_PERMISSION_REQUESTED, on_request)
        try:
            first = await channel.attempt(ESSAY, DEFAULT_REMINDER_SETTINGS)
            second = await channel.attempt(ESSAY, DEFAULT_REMINDER_SETTINGS)
        finally:
            bus.unsubscribe(E.NOTIFICATION_PERMISSION_REQUESTED, on_request)
        return first, second

    first, second = asyncio.run(scenario())
    assert first == second == ChannelOutcome.SKIPPED
    assert requests == [True]
    assert notifier.request_pending
    assert backend.shown == []


def test_denied_never_asks_again():
    backend = FakeBackend()
    notifier = _notifier(backend, NotificationPermission.DENIED)
    requests = []

    def on_request():
        requests.append(True)

    async def scenario():
        bus.subscribe(E.NOTIFICATION_PERMISSION_REQUESTED, on_request)
        try:
            return await OsNotificationChannel(notifier).attempt(ESSAY, DEFAULT_REMINDER_SETTINGS)
        finally:
            bus.unsubscribe(E.NOTIFICATION_PERMISSION_REQUESTED, on_request)

    assert asyncio.run(scenario()) == ChannelOutcome.SKIPPED
    assert notifier.request_permission() == NotificationPermission.DENIED
    assert requests == []
    assert backend.shown == []


def test_backend_error_is_a_failed_outcome():
    channel = OsNotificationChannel(_notifier(FakeBackend(fail=True), NotificationPermission.GRANTED))
    assert asyncio.run(channel.attempt(ESSAY, DEFAULT_REMINDER_SETTINGS)) == ChannelOutcome.FAILED


def test_permission_is_persisted(run_with_db):
    async def scenario():
        notifier = _notifier(FakeBackend(), NotificationPermission.DEFAULT)
        notifier.request_permission()
        await notifier.set_permission(NotificationPermission.GRANTED)
        restored = _notifier(FakeBackend(), NotificationPermission.DEFAULT)
        await restored.load()
        return notifier, restored

    notifier, restored = run_with_db(scenario)
    assert notifier.request_pending is False
    assert restored.permission == NotificationPermission.GRANTED


def test_email_simulation_confirms_with_os_notification():
    backend = FakeBackend()
    channel = SimulatedEmailChannel(_notifier(backend, NotificationPermission.GRANTED))
    settings = ReminderSettings(email_enabled=True, email_address=" student@example.edu ")

    outcome = asyncio.run(channel.attempt(ESSAY, settings))

    assert outcome == ChannelOutcome.DELIVERED
    assert backend.shown == [("AcadEase Email Sent", "Notification sent to student@example.edu")]


def test_email_skipped_without_address_or_permission():
    backend = FakeBackend()
    no_address = SimulatedEmailChannel(_notifier(backend, NotificationPermission.GRANTED))
    no_permission = SimulatedEmailChannel(_notifier(backend, NotificationPermission.DENIED))

    blank = ReminderSettings(email_enabled=True, email_address="  ")
    full = ReminderSettings(email_enabled=True, email_address="student@example.edu")

    assert asyncio.run(no_address.attempt(ESSAY, blank)) == ChannelOutcome.SKIPPED
    assert asyncio.run(no_permission.attempt(ESSAY, full)) == ChannelOutcome.SKIPPED
    assert backend.shown == []
