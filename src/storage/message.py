from datamodel import *
from logger import logger
from storage.kv import get_json, set_json
from storage.user import user_key
from typing import List, Sequence

__all__ = ["get_chat_history", "save_chat_history"]

CHAT_HISTORY_KEY = "acadease_chat_history"


async def get_chat_history(scope: str) -> List[Message]:
    raw = await get_json(user_key(scope, CHAT_HISTORY_KEY), default=[])
    if not isinstance(raw, list):
        logger.warning(f"Chat history for {scope} is not a list, ignoring it")
        return []

    messages: List[Message] = []
    for item in raw:
        try:
            messages.append(Message.from_dict(item))
        except (AttributeError, TypeError, ValueError):
            logger.warning(f"Dropping malformed chat message for {scope}: {item!r}")
    return messages


async def save_chat_history(scope: str, messages: Sequence[Message]) -> None:
    await set_json(user_key(scope, CHAT_HISTORY_KEY), [m.to_dict() for m in messages])
