"""
Read-through cache for user timelines.

Each request is resolved independently against the object store:

  1. Derive the cache key from the user id (``"{userid}.json"``).
  2. Read the stored object.  A read fault counts as a miss.
  3. Serve the stored body if it is younger than the freshness window.
  4. Otherwise fetch from Twitter.  On success, write the payload back
     (a write fault is logged, never surfaced) and serve it.
  5. On upstream failure, serve whatever was read in step 2, however old.
     Only when nothing was read does the caller get a 500.

There is no in-process state shared between requests and no locking:
concurrent misses for the same key each call upstream and the last write
wins.
"""

import enum
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Mapping, Optional

from tweetcache.config import Settings
from tweetcache.store import ObjectStore, StoredObject
from tweetcache.twitter_client import TwitterClient

logger = logging.getLogger(__name__)

FRESHNESS_WINDOW_SECONDS: int = 901
CACHE_ERROR_MESSAGE: str = "Failed to fetch data and no cache available"
CONTENT_TYPE_JSON: str = "application/json"


class CacheSource(str, enum.Enum):
    """Where the body of a resolved response came from."""

    CACHE = "cache"
    UPSTREAM = "upstream"
    STALE = "stale"
    ERROR = "error"


@dataclass(frozen=True)
class RequestContext:
    """Parameters of one inbound request, with the derived cache key."""

    userid: str
    max_results: int
    cache_key: str


@dataclass(frozen=True)
class CacheResult:
    """Outcome of resolving one request."""

    status_code: int
    body: str
    source: CacheSource


def derive_cache_key(userid: str) -> str:
    """Return the store key for *userid*.  ``max_results`` never participates."""
    return f"{userid}.json"


def parse_max_results(raw: Optional[str], default: int) -> int:
    """Parse a ``max_results`` query value, falling back to *default*.

    Absent, blank, non-integer and non-positive values all yield *default*.
    """
    if raw is None:
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    return value if value >= 1 else default


def _first_value(params: Mapping[str, str], name: str) -> Optional[str]:
    """Return the first value of a possibly repeated query parameter."""
    getlist = getattr(params, "getlist", None)
    if getlist is None:
        return params.get(name)
    values = getlist(name)
    return values[0] if values else None


def build_request_context(params: Mapping[str, str], settings: Settings) -> RequestContext:
    """Extract the user id and result limit from query *params*.

    When a parameter repeats, the first occurrence wins.
    """
    userid = _first_value(params, "userid") or settings.default_userid
    max_results = parse_max_results(_first_value(params, "max_results"), settings.default_max_results)
    return RequestContext(
        userid=userid,
        max_results=max_results,
        cache_key=derive_cache_key(userid),
    )


def is_fresh(obj: StoredObject, now: datetime, window_seconds: int = FRESHNESS_WINDOW_SECONDS) -> bool:
    """Return True if *obj* is younger than *window_seconds*.

    Objects stamped in the future have a negative age and count as fresh.
    """
    age = (now - obj.uploaded).total_seconds()
    return age < window_seconds


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReadThroughCache:
    """Resolves timeline requests through an object store and the Twitter API."""

    def __init__(
        self,
        store: Optional[ObjectStore],
        client: TwitterClient,
        freshness_seconds: int = FRESHNESS_WINDOW_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.client = client
        self.freshness_seconds = freshness_seconds
        self._clock = clock

    async def _read(self, key: str) -> Optional[StoredObject]:
        if self.store is None:
            logger.warning("No object store configured — treating %s as a miss", key)
            return None
        try:
            return await self.store.get(key)
        except Exception as exc:
            logger.warning("Cache read failed for %s, continuing as miss: %s", key, exc)
            return None

    async def _write(self, ctx: RequestContext, body: str) -> None:
        if self.store is None:
            logger.warning("No object store configured — %s not persisted", ctx.cache_key)
            return
        metadata = {"Content-Type": CONTENT_TYPE_JSON, "userid": ctx.userid}
        try:
            await self.store.put(ctx.cache_key, body, metadata=metadata)
        except Exception as exc:
            logger.warning("Cache write failed for %s, serving fresh data anyway: %s", ctx.cache_key, exc)

    async def _fetch(self, ctx: RequestContext) -> Optional[dict]:
        try:
            return await self.client.get_user_tweets(ctx.userid, ctx.max_results)
        except Exception:
            logger.exception("Unexpected error fetching tweets for userid %s", ctx.userid)
            return None

    async def resolve(self, ctx: RequestContext) -> CacheResult:
        """
        Produce the response body for *ctx*.

        Returns:
            A 200 ``CacheResult`` sourced from the fresh cache, the upstream
            API, or a stale cache entry; or a 500 ``CacheResult`` carrying
            the fixed error body when upstream failed and nothing was cached.
        """
        logger.info("Using cache key: %s", ctx.cache_key)
        cached = await self._read(ctx.cache_key)

        if cached is not None and is_fresh(cached, self._clock(), self.freshness_seconds):
            logger.info("Cache hit for userid %s, returning cached data...", ctx.userid)
            return CacheResult(200, cached.body, CacheSource.CACHE)

        logger.info("Cache miss for userid %s, fetching new data...", ctx.userid)
        payload = await self._fetch(ctx)

        if payload is None:
            if cached is not None:
                logger.warning(
                    "Upstream fetch failed for userid %s — serving stale cache uploaded at %s",
                    ctx.userid,
                    cached.uploaded.isoformat(),
                )
                return CacheResult(200, cached.body, CacheSource.STALE)

            logger.error("Upstream fetch failed for userid %s and no cache is available", ctx.userid)
            return CacheResult(500, json.dumps({"error": CACHE_ERROR_MESSAGE}), CacheSource.ERROR)

        body = json.dumps(payload, separators=(",", ":"))
        await self._write(ctx, body)
        return CacheResult(200, body, CacheSource.UPSTREAM)
