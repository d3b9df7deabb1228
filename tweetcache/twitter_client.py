"""
Twitter v2 API client.

Provides async access to the "user tweets" timeline endpoint
(``GET /2/users/{id}/tweets``) with the field expansions the frontend needs
to render a tweet card: creation time, entities, public metrics, and the
author's username and avatar.

Auth: Bearer token passed in the Authorization header.
"""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from tweetcache.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Field expansions appended to every timeline request, in this order.
TWEET_FIELD_PARAMS: tuple[tuple[str, str], ...] = (
    ("tweet.fields", "created_at,entities,public_metrics"),
    ("expansions", "author_id"),
    ("user.fields", "profile_image_url,username"),
)


def build_tweets_path(userid: str) -> str:
    """Return the timeline path for *userid*, encoded as one path segment."""
    return f"/2/users/{quote(userid, safe='')}/tweets"


def build_tweets_params(max_results: int) -> list[tuple[str, str]]:
    """Return the ordered query parameters for a timeline request."""
    return [("max_results", str(max_results)), *TWEET_FIELD_PARAMS]


class TwitterClient:
    """Async HTTP client for the Twitter v2 user timeline API."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = settings or get_settings()
        self._timeout: float = settings.upstream_timeout_seconds
        self._client = httpx.AsyncClient(
            base_url=settings.twitter_base_url,
            headers={
                "Authorization": f"Bearer {settings.twitter_bearer_token}",
                "Accept": "application/json",
                "Content-Type": "application/json;charset=UTF-8",
            },
            timeout=self._timeout,
            transport=transport,
        )

    async def get_user_tweets(self, userid: str, max_results: int) -> dict | None:
        """
        Fetch the most recent tweets posted by *userid*.

        Args:
            userid:      Twitter user id, forwarded verbatim into the path.
            max_results: Number of tweets to request.

        Returns:
            The decoded response object (``data``, ``includes``, ``meta``),
            or ``None`` if the request fails for any reason (network error,
            timeout, non-2xx status, body that is not a JSON object).
        """
        path = build_tweets_path(userid)
        params = build_tweets_params(max_results)
        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "TwitterClient.get_user_tweets: HTTP %s for userid=%r — %s",
                exc.response.status_code,
                userid,
                exc.response.text[:200],
            )
            return None
        except httpx.TimeoutException:
            logger.error(
                "TwitterClient.get_user_tweets: request timed out after %.0fs (userid=%r)",
                self._timeout,
                userid,
            )
            return None
        except httpx.RequestError as exc:
            logger.error(
                "TwitterClient.get_user_tweets: network error for userid=%r — %s",
                userid,
                exc,
            )
            return None

        try:
            payload = response.json()
        except ValueError as exc:
            logger.error(
                "TwitterClient.get_user_tweets: failed to decode JSON response — %s",
                exc,
            )
            return None

        if not isinstance(payload, dict):
            logger.error(
                "TwitterClient.get_user_tweets: unexpected response shape — "
                "expected a JSON object, got %s",
                type(payload).__name__,
            )
            return None

        meta = payload.get("meta")
        logger.debug(
            "TwitterClient.get_user_tweets: received %s tweets for userid=%r",
            meta.get("result_count", "?") if isinstance(meta, dict) else "?",
            userid,
        )
        return payload

    async def close(self) -> None:
        """Close the underlying HTTP client and release connections."""
        await self._client.aclose()
