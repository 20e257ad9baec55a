from __future__ import annotations

import asyncio
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from datamodel import NotificationPermission, SoundType


@dataclass
class RuntimeControl:
    shutdown_event: asyncio.Event
    started_at: float


class ShutdownRequest(BaseModel):
    reason: str = Field(default="manual")


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class StudentLoginRequest(BaseModel):
    name: str
    branch: str
    year: str
    semester: str


class AdminLoginRequest(BaseModel):
    username: str
    password: str


class ReminderCreateRequest(_CamelModel):
    text: str
    due_date: str = Field(alias="dueDate")


class SettingsUpdateRequest(_CamelModel):
    sound_enabled: bool | None = Field(default=None, alias="soundEnabled")
    sound_type: SoundType | None = Field(default=None, alias="soundType")
    email_enabled: bool | None = Field(default=None, alias="emailEnabled")
    email_address: str | None = Field(default=None, alias="emailAddress")


class PermissionUpdateRequest(BaseModel):
    permission: NotificationPermission


class TimetableEntryRequest(_CamelModel):
    branch: str
    year: str
    semester: str
    day: str
    subject: str
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")


class ChatRequest(BaseModel):
    text: str
