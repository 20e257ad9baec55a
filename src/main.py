from logger import setup_logging, logger
from config.settings import *
setup_logging(
    log_level=LOG_LEVEL,
    log_file=LOG_FILE,
    console_level="INFO",
)

import asyncio
import signal

from core.dashboard import Dashboard, configure_dashboard
from events import bus, E
from llm.base import LLMClient
from web.http_server import main_loop as http_main
import storage.db_config as db_config

shutdown_event = asyncio.Event()

def signal_handler(sig, frame):
    logger.info("Received interrupt signal, shutting down...")
    shutdown_event.set()

def _create_llm_client() -> LLMClient:
    if LLM_PROVIDER == "openai":
        from llm.openai_client import OpenAIClient

        return OpenAIClient(model=LLM_MODEL)

    if LLM_PROVIDER == "gemini":
        from llm.gemini_client import GeminiClient

        return GeminiClient(model=LLM_MODEL)

    raise ValueError(f"Unsupported LLM_PROVIDER: {LLM_PROVIDER}")


@bus.on(E.NOTIFICATION_PERMISSION_REQUESTED)
def _announce_permission_request() -> None:
    logger.warning(
        "Desktop notifications are not enabled yet. Allow or block them with "
        f"PUT http://{HTTP_HOST}:{HTTP_PORT}/api/v1/notifications/permission"
    )


async def main():
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    configure_dashboard(Dashboard(llm=_create_llm_client()))

    await db_config.init_db(DB_PATH)
    try:
        await http_main(shutdown_event)
    finally:
        logger.info("Closing database connection...")
        await db_config.close_db()
        logger.info("AcadEase stopped")


if __name__ == "__main__":
    logger.info("Starting AcadEase...")
    asyncio.run(main())
