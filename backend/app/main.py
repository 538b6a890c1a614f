"""
Signalist — FastAPI application entry point.

Starts up with DB initialization and the digest scheduler, registers all
routers, and exposes a health check so Docker knows we're alive.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.database import Database
from app.routers import digest, news, stocks, watchlist
from app.schemas.api import HealthResponse
from app.scheduling.scheduler import shutdown_scheduler, start_scheduler

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Signalist backend...")
    database = Database.from_settings(settings)
    await database.create_all()
    app.state.database = database
    logger.info("Database initialized.")

    start_scheduler(database)
    yield
    logger.info("Shutting down...")
    shutdown_scheduler()
    await database.dispose()


app = FastAPI(
    title="Signalist",
    description="Stock watchlists, deduplicated market news, and daily AI news digests.",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ────────────────────────────────────────────────────────────────
app.include_router(watchlist.router, prefix="/api/watchlist", tags=["watchlist"])
app.include_router(news.router, prefix="/api/news", tags=["news"])
app.include_router(stocks.router, prefix="/api/stocks", tags=["stocks"])
app.include_router(digest.router, prefix="/api", tags=["digest"])


# ── Health check ───────────────────────────────────────────────────────────
@app.get("/health", tags=["health"], response_model=HealthResponse)
async def health() -> dict[str, Any]:
    configured = settings.configured_apis()
    return {
        "status": "ok",
        "version": VERSION,
        "apis_configured": configured,
        "all_apis_ready": configured["finnhub"] and configured["mail"]
        and (configured["anthropic"] or configured["openai"]),
    }
