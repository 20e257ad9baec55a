"""Event bus: the Bus class and the event name registry E.

Handlers may be plain functions or coroutines. Coroutine handlers are scheduled
as tasks on the running loop, so `emit` never waits for them.
"""

from __future__ import annotations
from pyee.asyncio import AsyncIOEventEmitter
from typing import Any, Awaitable, Callable

from logger import logger

Handler = Callable[..., Awaitable[None] | None]

# Event names
class E:
    REMINDER_TRIGGERED = "reminder.triggered"
    NOTIFICATION_PERMISSION_REQUESTED = "notification.permission_requested"


class Bus(AsyncIOEventEmitter):
    def on(self, event: str) -> Callable[[Handler], Handler]:
        """Decorator registering a handler for `event`."""
        def decorator(handler: Handler) -> Handler:
            logger.debug(f"Registering event handler: {event} -> {handler.__name__}")
            super(Bus, self).on(event, handler)
            return handler

        return decorator

    def subscribe(self, event: str, handler: Handler) -> None:
        logger.debug(f"Subscribing to {event}: {getattr(handler, '__qualname__', handler)}")
        self.add_listener(event, handler)

    def unsubscribe(self, event: str, handler: Handler) -> None:
        try:
            self.remove_listener(event, handler)
        except KeyError:
            logger.debug(f"Handler was not subscribed to {event}")


bus = Bus()


@bus.on("error")
def _log_handler_error(error: Any) -> None:
    logger.opt(exception=error if isinstance(error, BaseException) else None).error(
        f"Event handler raised: {error}"
    )


__all__ = ["bus", "E", "Bus"]
