"""Transfer service: main application entry point."""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from pathlib import Path

from alembic import command
from alembic.config import Config
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool

from config import CLEANUP_INTERVAL_SECONDS, LOG_LEVEL
from api.transfers.controllers.transfers_controller import router as transfers_router
from api.download.controllers.download_controller import router as download_router
from api.upload.controllers.upload_controller import router as upload_router
from cleanup import run_cleanup

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def run_migrations():
    """Run Alembic migrations on startup."""
    try:
        alembic_ini = Path(__file__).parent / "alembic.ini"
        alembic_cfg = Config(str(alembic_ini))
        alembic_cfg.set_main_option(
            "script_location", str(Path(__file__).parent / "db_migrations")
        )
        command.upgrade(alembic_cfg, "head")
    except Exception as e:
        logger.warning("Migration failed, creating tables directly: %s", e)
        from database import init_db

        init_db()


async def _cleanup_loop(interval: int):
    while True:
        await asyncio.sleep(interval)
        try:
            await run_in_threadpool(run_cleanup)
        except Exception:
            logger.exception("Cleanup run failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    task = None
    if CLEANUP_INTERVAL_SECONDS > 0:
        task = asyncio.create_task(_cleanup_loop(CLEANUP_INTERVAL_SECONDS))
    yield
    if task:
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task


app = FastAPI(title="Transfer", version="0.1.0", lifespan=lifespan)

# Run database migrations
run_migrations()

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Router registration order matters:
# 1. Health check (before catch-all routes)
@app.get("/api/health")
async def health():
    return {"status": "ok"}


# 2. API routers (prefixed, match first)
app.include_router(transfers_router)

# 3. Download (GET/POST /download/{link_id})
app.include_router(download_router)

# 4. Upload (POST /api/transfers and catch-all PUT /{filename})
app.include_router(upload_router)
