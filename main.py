"""FastAPI application entrypoint."""

# pylint: disable=duplicate-code

import asyncio
import contextlib
from pathlib import Path

from fastapi import FastAPI

from config import config
from entity_kinds import KINDS
from routes import entities, leads, mbbs
from slug_index import get_slug_index, keep_index_fresh
from store import get_store
from utils.logging import configure_logger

LOG_FILE = Path(config.LOG_DIR) / "server.log"
logger = configure_logger(__name__, LOG_FILE)


@contextlib.asynccontextmanager
async def lifespan(_: FastAPI):
    """Start the slug index refresher when indexing is enabled."""

    refresher = None
    index = get_slug_index()
    if index is not None:
        logger.info(
            "Starting slug index refresher (every %s seconds)", index.ttl_seconds
        )
        refresher = asyncio.create_task(
            keep_index_fresh(index, get_store(), KINDS.values())
        )
    yield
    if refresher is not None:
        refresher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await refresher


logger.info("Initializing FastAPI app (store=%s)", config.STORE_BACKEND)
app = FastAPI(title="coursefinder", lifespan=lifespan)
app.include_router(mbbs.router)
app.include_router(leads.router)
app.include_router(entities.router)
logger.info("Routers registered")
