from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from config.settings import OPS_AUTH_TOKEN
from core.auth import AuthError
from core.dashboard import DashboardSession, NotLoggedInError, require_dashboard
from datamodel import ReminderSettings
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from logger import logger
from metrics import runtime_metrics
from storage.kv import PersistenceError

import storage.db_config as db_config
from web.auth import require_ops_auth
from web.schemas import (
    AdminLoginRequest,
    ChatRequest,
    PermissionUpdateRequest,
    ReminderCreateRequest,
    RuntimeControl,
    SettingsUpdateRequest,
    ShutdownRequest,
    StudentLoginRequest,
    TimetableEntryRequest,
)

# most specific exception class wins, so NotLoggedInError beats LookupError
_ERROR_STATUS: dict[type[Exception], int] = {
    PersistenceError: 503,
    AuthError: 401,
    NotLoggedInError: 401,
    PermissionError: 403,
    LookupError: 404,
    ValueError: 400,
}


def _session_payload(session: DashboardSession) -> dict[str, Any]:
    return {"user": session.user.to_dict(), "scope": session.scope}


def create_app(control: RuntimeControl, db_path: str | None = None, ops_token: str = OPS_AUTH_TOKEN) -> FastAPI:
    """Build the dashboard API.

    With `db_path` the app opens and closes the database itself; otherwise the
    caller is expected to have called init_db() already.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if db_path is not None:
            await db_config.init_db(db_path)
        dashboard = require_dashboard()
        await dashboard.restore()
        try:
            yield
        finally:
            await dashboard.close()
            if db_path is not None:
                await db_config.close_db()

    app = FastAPI(title="AcadEase API", version="1.0.0", lifespan=lifespan)

    if not ops_token:
        logger.warning("OPS_AUTH_TOKEN is not set, metrics and shutdown endpoints are disabled")

    def _make_handler(status_code: int):
        async def handler(request: Request, exc: Exception) -> JSONResponse:
            if status_code >= 500:
                logger.error(f"{request.method} {request.url.path} failed: {exc}")
            return JSONResponse(status_code=status_code, content={"detail": str(exc).strip("'\"")})

        return handler

    for exc_type, status_code in _ERROR_STATUS.items():
        app.add_exception_handler(exc_type, _make_handler(status_code))

    def current_session() -> DashboardSession:
        return require_dashboard().require_session()

    def health_payload() -> dict[str, Any]:
        session = require_dashboard().session
        return {
            "status": "ok",
            "now_utc": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "uptime_seconds": max(0.0, time.time() - control.started_at),
            "db_connected": db_config.conn is not None,
            "logged_in": session is not None,
            "shutdown_requested": control.shutdown_event.is_set(),
        }

    @app.get("/health", include_in_schema=False)
    async def health() -> dict[str, Any]:
        return health_payload()

    @app.get("/api/v1/health")
    async def api_health() -> dict[str, Any]:
        return health_payload()

    # ----------------- session ----------------
    @app.post("/api/v1/login/student")
    async def login_student(payload: StudentLoginRequest) -> dict[str, Any]:
        session = await require_dashboard().login_student(
            payload.name, payload.branch, payload.year, payload.semester
        )
        return _session_payload(session)

    @app.post("/api/v1/login/admin")
    async def login_admin(payload: AdminLoginRequest) -> dict[str, Any]:
        session = await require_dashboard().login_admin(payload.username, payload.password)
        return _session_payload(session)

    @app.post("/api/v1/logout")
    async def logout() -> dict[str, bool]:
        await require_dashboard().logout()
        return {"ok": True}

    @app.get("/api/v1/me")
    async def me() -> dict[str, Any]:
        return _session_payload(current_session())

    # ----------------- reminders ----------------
    @app.get("/api/v1/reminders")
    async def list_reminders() -> dict[str, Any]:
        return {"items": current_session().engine.list_view()}

    @app.post("/api/v1/reminders", status_code=201)
    async def create_reminder(payload: ReminderCreateRequest) -> dict[str, Any]:
        reminder = await current_session().engine.add(payload.text, payload.due_date)
        return reminder.to_dict()

    @app.delete("/api/v1/reminders/{reminder_id}")
    async def delete_reminder(reminder_id: int) -> dict[str, bool]:
        if not await current_session().engine.delete(reminder_id):
            raise HTTPException(status_code=404, detail=f"Reminder {reminder_id} not found")
        return {"ok": True}

    @app.post("/api/v1/reminders/{reminder_id}/snooze")
    async def snooze_reminder(reminder_id: int) -> dict[str, Any]:
        reminder = await current_session().engine.snooze(reminder_id)
        if reminder is None:
            raise HTTPException(status_code=404, detail=f"Reminder {reminder_id} not found")
        return reminder.to_dict()

    @app.post("/api/v1/reminders/{reminder_id}/dismiss")
    async def dismiss_reminder(reminder_id: int) -> dict[str, bool]:
        return {"dismissed": current_session().engine.dismiss(reminder_id)}

    @app.get("/api/v1/alerts")
    async def active_alerts() -> dict[str, Any]:
        return {"items": [r.to_dict() for r in current_session().alerts.list()]}

    # ----------------- settings ----------------
    @app.get("/api/v1/settings")
    async def get_settings() -> dict[str, Any]:
        return current_session().engine.settings.to_dict()

    @app.put("/api/v1/settings")
    async def update_settings(payload: SettingsUpdateRequest) -> dict[str, Any]:
        engine = current_session().engine
        changes = payload.model_dump(by_alias=True, exclude_none=True, mode="json")
        settings = ReminderSettings.from_dict({**engine.settings.to_dict(), **changes})
        await engine.update_settings(settings)
        return settings.to_dict()

    # ----------------- notification permission ----------------
    def permission_payload() -> dict[str, Any]:
        notifier = require_dashboard().notifier
        return {"permission": notifier.permission.value, "requestPending": notifier.request_pending}

    @app.get("/api/v1/notifications/permission")
    async def get_permission() -> dict[str, Any]:
        return permission_payload()

    @app.put("/api/v1/notifications/permission")
    async def set_permission(payload: PermissionUpdateRequest) -> dict[str, Any]:
        await require_dashboard().notifier.set_permission(payload.permission)
        return permission_payload()

    # ----------------- timetable ----------------
    @app.get("/api/v1/timetable")
    async def get_timetable(day: str | None = None) -> dict[str, Any]:
        return current_session().timetable_view(day)

    @app.post("/api/v1/timetable", status_code=201)
    async def add_timetable_entry(payload: TimetableEntryRequest) -> dict[str, Any]:
        entry = await current_session().add_timetable_entry(
            payload.branch, payload.year, payload.semester,
            day=payload.day, subject=payload.subject,
            start_time=payload.start_time, end_time=payload.end_time,
        )
        return entry.to_dict()

    @app.put("/api/v1/timetable/{entry_id}")
    async def update_timetable_entry(entry_id: int, payload: TimetableEntryRequest) -> dict[str, Any]:
        entry = await current_session().update_timetable_entry(
            payload.branch, payload.year, payload.semester, entry_id,
            day=payload.day, subject=payload.subject,
            start_time=payload.start_time, end_time=payload.end_time,
        )
        return entry.to_dict()

    @app.delete("/api/v1/timetable/{entry_id}")
    async def delete_timetable_entry(entry_id: int, branch: str, year: str, semester: str) -> dict[str, bool]:
        if not await current_session().delete_timetable_entry(branch, year, semester, entry_id):
            raise HTTPException(status_code=404, detail=f"Timetable entry {entry_id} not found")
        return {"ok": True}

    # ----------------- chat ----------------
    @app.get("/api/v1/chat")
    async def get_chat() -> dict[str, Any]:
        return {"messages": [m.to_dict() for m in current_session().chat.messages]}

    @app.post("/api/v1/chat")
    async def post_chat(payload: ChatRequest) -> dict[str, Any]:
        chat = current_session().chat
        reply = await chat.send(payload.text)
        return {
            "reply": reply.to_dict() if reply is not None else None,
            "messages": [m.to_dict() for m in chat.messages],
        }

    # ----------------- ops ----------------
    @app.get("/api/v1/metrics")
    async def get_metrics(request: Request) -> dict[str, Any]:
        await require_ops_auth(request, ops_token)
        session = require_dashboard().session
        return {
            "runtime": runtime_metrics.snapshot(),
            "components": {
                "db": {"connected": db_config.conn is not None},
                "reminder": session.engine.get_status() if session is not None else {"running": False},
            },
            "active_tasks": len(asyncio.all_tasks()),
        }

    @app.post("/api/v1/admin/shutdown")
    async def admin_shutdown(payload: ShutdownRequest, request: Request) -> dict[str, Any]:
        auth_info = await require_ops_auth(request, ops_token)
        logger.warning(f"Remote shutdown requested: by={auth_info['user']}, reason={payload.reason}")
        control.shutdown_event.set()
        return {"ok": True, "action": "shutdown", "reason": payload.reason}

    return app
