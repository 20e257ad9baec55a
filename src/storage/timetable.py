from datamodel import *
from logger import logger
from storage.kv import get_json, set_json
from typing import Dict, List

__all__ = ["TimetableData", "get_timetable", "save_timetable"]

TIMETABLE_KEY = "acadease_timetable"

TimetableData = Dict[str, List[TimetableEntry]]


async def get_timetable() -> TimetableData:
    """Shared timetable, keyed by "<branch>-<year>-<semester>" """
    raw = await get_json(TIMETABLE_KEY, default={})
    if not isinstance(raw, dict):
        logger.warning("Timetable record is not a mapping, ignoring it")
        return {}

    timetable: TimetableData = {}
    for group_key, entries in raw.items():
        group: List[TimetableEntry] = []
        for item in entries or []:
            try:
                group.append(TimetableEntry.from_dict(item))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Dropping malformed timetable entry in {group_key}: {item!r} ({e})")
        timetable[group_key] = group
    return timetable


async def save_timetable(timetable: TimetableData) -> None:
    await set_json(
        TIMETABLE_KEY,
        {group_key: [e.to_dict() for e in entries] for group_key, entries in timetable.items()},
    )
