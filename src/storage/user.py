import re

from datamodel import *
from logger import logger
from storage.kv import get_json, set_json, delete_key

__all__ = ["USER_KEY", "user_scope", "user_key", "get_stored_user", "store_user", "clear_stored_user"]

USER_KEY = "acadease_user"

_WHITESPACE_RE = re.compile(r"\s+")


def user_scope(user: User) -> str:
    """Namespace isolating one user's records from another's"""
    if user.is_admin:
        return "admin"
    identifier = f"{user.name}-{user.branch}-{user.year}-{user.semester}"
    return _WHITESPACE_RE.sub("_", identifier).lower()


def user_key(scope: str, prefix: str) -> str:
    return f"{prefix}_{scope}"


async def get_stored_user() -> User | None:
    raw = await get_json(USER_KEY)
    if not isinstance(raw, dict):
        return None
    try:
        return User.from_dict(raw)
    except ValueError as e:
        logger.warning(f"Stored user record is invalid, ignoring it: {e}")
        return None


async def store_user(user: User) -> None:
    await set_json(USER_KEY, user.to_dict())


async def clear_stored_user() -> None:
    await delete_key(USER_KEY)
