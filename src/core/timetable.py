"""
Shared class timetable, grouped by "<branch>-<year>-<semester>".

Admins edit any group; students read their own group one day at a time,
sorted by start time.
"""

from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, List

import storage.timetable as timetable_storage
from datamodel import *
from logger import logger
from storage.timetable import TimetableData
from utils import now_utc, to_epoch_ms, weekday_name

__all__ = ["group_key", "validate_entry", "TimetableService"]


def group_key(branch: str, year: str, semester: str) -> str:
    return f"{branch}-{year}-{semester}"


def validate_entry(day: str, subject: str, start_time: str, end_time: str) -> None:
    if day not in DAYS_OF_WEEK:
        raise ValueError(f"Unknown day: {day!r}")
    if not (subject or "").strip() or not (start_time or "").strip() or not (end_time or "").strip():
        raise ValueError("Please fill all fields")


class TimetableService:
    def __init__(self, store: Any = timetable_storage, clock: Callable[[], datetime] = now_utc) -> None:
        self.store = store
        self.clock = clock
        self._data: TimetableData = {}
        self._last_id = 0

    async def load(self) -> None:
        self._data = await self.store.get_timetable()
        self._last_id = max((e.id for entries in self._data.values() for e in entries), default=0)

    @property
    def data(self) -> TimetableData:
        return {key: list(entries) for key, entries in self._data.items()}

    def entries(self, key: str) -> List[TimetableEntry]:
        return list(self._data.get(key, []))

    def today(self) -> str:
        """Weekday name of the local calendar day"""
        return weekday_name(self.clock().astimezone())

    def day_view(self, key: str, day: str | None = None) -> List[TimetableEntry]:
        day = day or self.today()
        if day not in DAYS_OF_WEEK:
            raise ValueError(f"Unknown day: {day!r}")
        return sorted((e for e in self._data.get(key, []) if e.day == day), key=lambda e: e.start_time)

    async def add_entry(self, key: str, day: str, subject: str, start_time: str, end_time: str) -> TimetableEntry:
        validate_entry(day, subject, start_time, end_time)
        entry_id = max(to_epoch_ms(self.clock()), self._last_id + 1)
        entry = TimetableEntry(id=entry_id, day=day, subject=subject.strip(), start_time=start_time, end_time=end_time)
        self._last_id = entry_id
        self._data = {**self._data, key: self.entries(key) + [entry]}
        await self.store.save_timetable(self._data)
        logger.info(f"Added timetable entry {entry.id} to {key}")
        return entry

    async def update_entry(
        self, key: str, entry_id: int, day: str, subject: str, start_time: str, end_time: str
    ) -> TimetableEntry:
        validate_entry(day, subject, start_time, end_time)
        current = next((e for e in self._data.get(key, []) if e.id == entry_id), None)
        if current is None:
            raise KeyError(f"No timetable entry {entry_id} in {key}")
        updated = replace(current, day=day, subject=subject.strip(), start_time=start_time, end_time=end_time)
        self._data = {**self._data, key: [updated if e.id == entry_id else e for e in self._data[key]]}
        await self.store.save_timetable(self._data)
        logger.info(f"Updated timetable entry {entry_id} in {key}")
        return updated

    async def delete_entry(self, key: str, entry_id: int) -> bool:
        remaining = [e for e in self._data.get(key, []) if e.id != entry_id]
        if len(remaining) == len(self._data.get(key, [])):
            return False
        self._data = {**self._data, key: remaining}
        await self.store.save_timetable(self._data)
        logger.info(f"Deleted timetable entry {entry_id} from {key}")
        return True
