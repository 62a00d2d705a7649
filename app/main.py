# Run from project root: uvicorn app.main:app --reload

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.routes import router
from app.core.config import ERROR_LOG_DAYS_TO_KEEP, ERROR_LOG_DIR, LOG_LEVEL
from app.core.db import init_db
from app.core.error_log import cleanup_error_logs
from app.services.assistant_client import close_assistant_client

logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    removed = cleanup_error_logs(ERROR_LOG_DIR, ERROR_LOG_DAYS_TO_KEEP)
    logger.info("Startup complete (old error logs removed: %d)", removed)
    yield
    await close_assistant_client()


app = FastAPI(title="Agent Conversation Backend", lifespan=lifespan)
app.include_router(router)


if __name__ == "__main__":
    print("Agent conversation backend booting...")
