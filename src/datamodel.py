from dataclasses import dataclass
from typing import Any, Dict, Optional
from enum import Enum

__all__ = [
    "Role", "User",
    "Reminder", "SoundType", "ReminderSettings", "DEFAULT_REMINDER_SETTINGS",
    "NotificationPermission", "ChannelOutcome",
    "TimetableEntry", "DAYS_OF_WEEK", "BRANCHES", "YEARS", "SEMESTERS",
    "MessageSender", "Message",
]


# ----------------- User data model ----------------
class Role(str, Enum):
    STUDENT = "student"
    ADMIN = "admin"


@dataclass(frozen=True)
class User:
    name: str
    role: Role = Role.STUDENT
    branch: str = ""
    year: str = ""
    semester: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "branch": self.branch,
            "year": self.year,
            "semester": self.semester,
            "role": self.role.value,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "User":
        return cls(
            name=str(raw.get("name", "")),
            role=Role(raw.get("role", Role.STUDENT.value)),
            branch=str(raw.get("branch", "")),
            year=str(raw.get("year", "")),
            semester=str(raw.get("semester", "")),
        )


# ----------------- Reminder data model ----------------
@dataclass(frozen=True)
class Reminder:
    id: int  # creation time in epoch ms, strictly increasing per session
    text: str
    due_date: str  # "YYYY-MM-DD", no time-of-day
    notified: bool = False  # the due-date alert already fired once
    snoozed_until: Optional[int] = None  # epoch ms, only while a snooze is pending

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "text": self.text,
            "dueDate": self.due_date,
            "notified": self.notified,
        }
        if self.snoozed_until is not None:
            data["snoozedUntil"] = self.snoozed_until
        return data

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Reminder":
        snoozed_until = raw.get("snoozedUntil")
        return cls(
            id=int(raw["id"]),
            text=str(raw.get("text", "")),
            due_date=str(raw.get("dueDate", "")),
            notified=bool(raw.get("notified", False)),
            snoozed_until=int(snoozed_until) if snoozed_until is not None else None,
        )


class SoundType(str, Enum):
    BEEP = "beep"
    CHIME = "chime"
    ALERT = "alert"


@dataclass(frozen=True)
class ReminderSettings:
    sound_enabled: bool = True
    sound_type: SoundType = SoundType.BEEP
    email_enabled: bool = False
    email_address: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "soundEnabled": self.sound_enabled,
            "soundType": self.sound_type.value,
            "emailEnabled": self.email_enabled,
            "emailAddress": self.email_address,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ReminderSettings":
        """Merge a possibly partial stored record over the defaults."""
        merged = {**DEFAULT_REMINDER_SETTINGS.to_dict(), **raw}
        try:
            sound_type = SoundType(merged["soundType"])
        except ValueError:
            sound_type = SoundType.BEEP
        return cls(
            sound_enabled=bool(merged["soundEnabled"]),
            sound_type=sound_type,
            email_enabled=bool(merged["emailEnabled"]),
            email_address=str(merged["emailAddress"] or ""),
        )


DEFAULT_REMINDER_SETTINGS = ReminderSettings()


# ----------------- Notification data model ----------------
class NotificationPermission(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"
    DEFAULT = "default"  # not decided yet


class ChannelOutcome(str, Enum):
    DELIVERED = "delivered"
    SKIPPED = "skipped"
    FAILED = "failed"


# ----------------- Timetable data model ----------------
DAYS_OF_WEEK = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
BRANCHES = ["Computer Science", "Mechanical Engineering", "Electrical Engineering", "Civil Engineering", "Biotechnology"]
YEARS = ["1st Year", "2nd Year", "3rd Year", "4th Year"]
SEMESTERS = ["1st Sem", "2nd Sem", "3rd Sem", "4th Sem", "5th Sem", "6th Sem", "7th Sem", "8th Sem"]


@dataclass(frozen=True)
class TimetableEntry:
    id: int
    day: str
    subject: str
    start_time: str  # "HH:MM"
    end_time: str  # "HH:MM"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "day": self.day,
            "subject": self.subject,
            "startTime": self.start_time,
            "endTime": self.end_time,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "TimetableEntry":
        return cls(
            id=int(raw["id"]),
            day=str(raw.get("day", "")),
            subject=str(raw.get("subject", "")),
            start_time=str(raw.get("startTime", "")),
            end_time=str(raw.get("endTime", "")),
        )


# ----------------- Chat data model ----------------
class MessageSender(str, Enum):
    USER = "user"
    BOT = "bot"


@dataclass
class Message:
    text: str
    sender: MessageSender

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "sender": self.sender.value}

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Message":
        return cls(text=str(raw.get("text", "")), sender=MessageSender(raw.get("sender", MessageSender.BOT.value)))
