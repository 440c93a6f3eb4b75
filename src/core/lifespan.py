import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from core.config import settings
from model.database import create_db_and_tables, create_db_engine
from model.store import TaskStore
from processor.dispatcher import WorkerDispatcher
from service.task_service import TaskService
from utility.logger import setup_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    # === 시작 ===
    setup_logger(settings.LOG_LEVEL)
    logger.info(f"{settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Python {settings.python_version}")

    engine = create_db_engine(settings.DATABASE_URL, echo=settings.DEBUG)
    create_db_and_tables(engine)
    logger.info(f"Database ready ({settings.DATABASE_URL})")

    dispatcher = WorkerDispatcher(
        start_method=settings.WORKER_START_METHOD,
        timeout=settings.worker_timeout,
        log_level=settings.LOG_LEVEL,
    )
    logger.info(
        f"Worker dispatcher ready (start_method={settings.WORKER_START_METHOD}, "
        f"timeout={settings.worker_timeout}, resolutions={settings.resolutions})"
    )

    app.state.settings = settings
    app.state.started_at = time.monotonic()
    app.state.dispatcher = dispatcher
    app.state.task_service = TaskService(TaskStore(engine), dispatcher, settings)

    yield

    # === 종료 ===
    logger.info(f"Shutting down ({dispatcher.in_flight} worker(s) in flight)")
    dispatcher.shutdown()
    engine.dispose()
