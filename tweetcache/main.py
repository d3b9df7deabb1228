"""
FastAPI application entry point for the tweet cache.

Wires together the Twitter client, the object store and the timeline route.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from tweetcache.config import settings
from tweetcache.routes.timeline import router as timeline_router
from tweetcache.store import FileSystemObjectStore, InMemoryObjectStore
from tweetcache.twitter_client import TwitterClient

# ---------------------------------------------------------------------------
# Logging — configured at module level before anything else runs
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan — manages startup and shutdown of long-lived resources
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Create the Twitter client and object store on ``app.state`` at startup;
    close the client on shutdown.

    The store is file-backed when ``STORE_DIR`` is set, in-memory otherwise.
    """
    logger.info("Starting tweet cache …")

    if not settings.twitter_bearer_token:
        logger.warning("TWITTER_BEARER_TOKEN is not set — upstream calls will be rejected")

    twitter_client = TwitterClient(settings)
    app.state.twitter_client = twitter_client

    if settings.store_dir:
        app.state.store = FileSystemObjectStore(settings.store_dir)
        logger.info("Using file-backed object store at %s", settings.store_dir)
    else:
        app.state.store = InMemoryObjectStore()
        logger.info("Using in-memory object store")

    yield  # application runs here

    logger.info("Shutting down tweet cache …")
    await twitter_client.close()


# ---------------------------------------------------------------------------
# Application instance
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Tweet Cache",
    description="Read-through cache for Twitter user timelines",
    version="1.0.0",
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------
@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Return service liveness status."""
    return {"status": "ok", "service": "tweetcache"}


app.include_router(timeline_router, tags=["timeline"])
