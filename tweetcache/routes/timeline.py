"""
Timeline route for the tweet cache.

Endpoints:
  GET /?userid=<id>&max_results=<n>  — Recent tweets for a user, read through
                                       the object store

Every other method on ``/`` is rejected with 405 and ``Allow: GET`` before
any query parsing or I/O.

Responses are raw JSON bodies (the stored bytes are served verbatim on a
cache hit), so this route builds ``Response`` objects directly rather than
letting FastAPI serialize a dict.
"""

import logging

from fastapi import APIRouter, Request, Response

from tweetcache.cache import CONTENT_TYPE_JSON, ReadThroughCache, build_request_context
from tweetcache.config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter()

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,HEAD,POST,OPTIONS",
    "Access-Control-Max-Age": "86400",
}

_REJECTED_METHODS: list[str] = ["HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


# ---------------------------------------------------------------------------
# GET / — user timeline
# ---------------------------------------------------------------------------

@router.get("/", summary="Recent tweets for a user")
async def get_timeline(request: Request) -> Response:
    """
    Return the recent tweets for ``?userid``.

    Resolution order:
      1. Object store entry ``{userid}.json`` if younger than the freshness
         window.
      2. Twitter ``/2/users/{userid}/tweets``; the result is written back.
      3. The stale store entry, if the Twitter call failed.

    Returns 500 with ``{"error": ...}`` only when steps 2 and 3 both come up
    empty.
    """
    settings = get_settings()
    ctx = build_request_context(request.query_params, settings)

    resolver = ReadThroughCache(
        store=getattr(request.app.state, "store", None),
        client=request.app.state.twitter_client,
        freshness_seconds=settings.cache_freshness_seconds,
    )
    result = await resolver.resolve(ctx)
    logger.debug("Resolved %s from %s (status %d)", ctx.cache_key, result.source.value, result.status_code)

    return Response(
        content=result.body,
        status_code=result.status_code,
        media_type=CONTENT_TYPE_JSON,
        headers=CORS_HEADERS,
    )


# ---------------------------------------------------------------------------
# Anything else on / — method not allowed
# ---------------------------------------------------------------------------

@router.api_route("/", methods=_REJECTED_METHODS, include_in_schema=False)
async def reject_method(request: Request) -> Response:
    """Reject non-GET methods without touching the store or upstream."""
    logger.info("Method Not Allowed: %s", request.method)
    return Response(content="Method Not Allowed", status_code=405, headers={"Allow": "GET"})
