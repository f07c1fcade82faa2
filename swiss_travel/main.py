import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy import text

from swiss_travel.core.config import settings
from swiss_travel.db.session import engine
from swiss_travel.api.v1.chat import router as chat_router
from swiss_travel.api.v1.wishlist import router as wishlist_router
from swiss_travel.api.v1.admin import router as admin_router
from swiss_travel.services.backfill import run_startup_backfill
from swiss_travel.services.embeddings import load_embedding_provider

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Fails startup if the DB is unreachable
    async with engine.begin() as conn:
        await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))

    # Model load happens off the event loop and before the first request
    await load_embedding_provider()

    # Backfill runs alongside traffic; searches simply skip rows without a vector
    backfill_task = None
    if settings.BACKFILL_ON_STARTUP:
        backfill_task = asyncio.create_task(run_startup_backfill())
    yield
    if backfill_task is not None and not backfill_task.done():
        backfill_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await backfill_task
    await engine.dispose()


app = FastAPI(
    title="Swiss Travel Advisor API",
    version="1.0.0",
    description="Conversational travel advisor for Switzerland: destinations, hotels and activities.",
    lifespan=lifespan,
)

app.include_router(chat_router,     prefix="/api")
app.include_router(wishlist_router, prefix="/api")
app.include_router(admin_router,    prefix="/api")


@app.get("/health", tags=["meta"])
async def health_check():
    return {"status": "ok", "version": app.version}


def run() -> None:
    import uvicorn

    uvicorn.run("swiss_travel.main:app", host="0.0.0.0", port=settings.SERVER_PORT)
