"""
Runs the dashboard API inside the main event loop.

uvicorn serves until the shared shutdown event is set, either by a signal in
main.py or by POST /api/v1/admin/shutdown. The reminder ticker and the bus
handlers live on the same loop, so nothing here spawns threads.
"""

from __future__ import annotations

import asyncio
import time

import uvicorn
from fastapi import FastAPI

from config.settings import HTTP_HOST, HTTP_PORT, LOG_LEVEL
from logger import logger
from web.app import create_app
from web.schemas import RuntimeControl

_UVICORN_LEVELS = {"TRACE": "trace", "DEBUG": "debug", "INFO": "info", "WARNING": "warning", "ERROR": "error"}


def build_server(app: FastAPI, host: str = HTTP_HOST, port: int = HTTP_PORT) -> uvicorn.Server:
    config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level=_UVICORN_LEVELS.get(LOG_LEVEL, "info"),
        access_log=False,
    )
    server = uvicorn.Server(config)
    # signals are handled by main.py
    server.install_signal_handlers = lambda: None
    return server


async def _stop_on(shutdown_event: asyncio.Event, server: uvicorn.Server) -> None:
    await shutdown_event.wait()
    logger.info("Shutdown requested, stopping the HTTP server")
    server.should_exit = True


async def main_loop(shutdown_event: asyncio.Event) -> None:
    control = RuntimeControl(shutdown_event=shutdown_event, started_at=time.time())
    server = build_server(create_app(control))

    watcher = asyncio.create_task(_stop_on(shutdown_event, server), name="http-shutdown-watcher")
    logger.info(f"AcadEase API listening on http://{HTTP_HOST}:{HTTP_PORT} (docs at /docs)")
    try:
        await server.serve()
    finally:
        watcher.cancel()
        try:
            await watcher
        except asyncio.CancelledError:
            pass
        # the server can also exit on its own, e.g. when the port is taken
        shutdown_event.set()
        logger.info("HTTP server stopped")
