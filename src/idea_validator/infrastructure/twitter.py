"""Async client for the twitterapi.io REST API.

Every request first passes through the injected :class:`RateLimiter`, so all
calls made through one limiter share the service's free-tier pacing no matter
how many stages or fan-out tasks issue them concurrently.

Failures (transport errors, non-2xx responses, non-JSON bodies) are raised
as :class:`ExternalServiceError`; the fan-out aggregator turns them into
failed envelopes.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any

import httpx

from idea_validator.domain.exceptions import ExternalServiceError
from idea_validator.domain.values import Trend, Tweet, TwitterUser
from idea_validator.infrastructure.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

BASE_URL = "https://api.twitterapi.io"
_SERVICE = "twitter"


def days_ago(n: int, now: float | None = None) -> str:
    """Return the ``since:`` filter date *n* days before *now* (UTC)."""
    ts = (time.time() if now is None else now) - n * 86400
    return time.strftime("%Y-%m-%d_00:00:00_UTC", time.gmtime(ts))


class TwitterClient:
    """Rate-limited twitterapi.io client.

    Parameters
    ----------
    api_key:
        Value of the ``X-API-Key`` header.
    limiter:
        Shared limiter guarding this service.
    timeout:
        Transport timeout in seconds.
    base_url:
        API root, overridable for proxies and tests.
    transport:
        Optional ``httpx`` transport (e.g. ``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        api_key: str,
        limiter: RateLimiter,
        timeout: float = 20.0,
        base_url: str = BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._limiter = limiter
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"X-API-Key": api_key},
            timeout=timeout,
            transport=transport,
        )

    @property
    def limiter(self) -> RateLimiter:
        return self._limiter

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, path: str, params: Mapping[str, Any]) -> dict[str, Any]:
        await self._limiter.acquire()
        logger.debug("GET %s %s", path, dict(params))
        try:
            response = await self._client.get(path, params=dict(params))
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            raise ExternalServiceError(
                f"{path} returned HTTP {exc.response.status_code}",
                service=_SERVICE,
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise ExternalServiceError(
                f"{path} request failed: {exc}", service=_SERVICE
            ) from exc
        except ValueError as exc:
            raise ExternalServiceError(
                f"{path} returned a non-JSON body", service=_SERVICE
            ) from exc
        if not isinstance(data, dict):
            raise ExternalServiceError(
                f"{path} returned an unexpected payload", service=_SERVICE
            )
        return data

    # -- tweets --------------------------------------------------------------

    async def search_tweets(
        self,
        query: str,
        count: int = 20,
        query_type: str = "Latest",
        cursor: str = "",
    ) -> list[Tweet]:
        """Advanced search using full Twitter query syntax."""
        params: dict[str, Any] = {"query": query, "queryType": query_type}
        if cursor:
            params["cursor"] = cursor
        data = await self._get("/twitter/tweet/advanced_search", params)
        return list(data.get("tweets") or [])[:count]

    async def search_recent_tweets(
        self,
        query: str,
        days: int = 7,
        count: int = 20,
        query_type: str = "Latest",
    ) -> list[Tweet]:
        """Advanced search restricted to the last *days* days, English only."""
        return await self.search_tweets(
            f"{query} since:{days_ago(days)} lang:en", count, query_type
        )

    async def search_top_tweets(self, query: str, count: int = 10) -> list[Tweet]:
        """Most-engaged English tweets for *query*."""
        data = await self._get(
            "/twitter/tweet/advanced_search",
            {"query": f"{query} lang:en", "queryType": "Top"},
        )
        return list(data.get("tweets") or [])[:count]

    async def search_community_tweets(
        self, query: str, count: int = 20, query_type: str = "Latest"
    ) -> list[Tweet]:
        """Search tweets posted inside Twitter Communities."""
        data = await self._get(
            "/twitter/community/get_tweets_from_all_community",
            {"query": query, "queryType": query_type},
        )
        return list(data.get("tweets") or [])[:count]

    # -- trends --------------------------------------------------------------

    async def get_trends(self, woeid: int = 1, count: int = 30) -> list[Trend]:
        """Trending topics for a location (1 = worldwide, 23424977 = USA)."""
        data = await self._get("/twitter/trends", {"woeid": woeid, "count": count})
        return list(data.get("trends") or [])

    # -- users ---------------------------------------------------------------

    async def get_user_info(self, user_name: str) -> TwitterUser | None:
        data = await self._get("/twitter/user/info", {"userName": user_name})
        return data.get("data") or None

    async def search_users(self, query: str, count: int = 20) -> list[TwitterUser]:
        data = await self._get("/twitter/user/search", {"query": query})
        return list(data.get("users") or [])[:count]

    async def get_user_tweets(
        self, user_name: str, count: int = 10, include_replies: bool = False
    ) -> list[Tweet]:
        data = await self._get(
            "/twitter/user/last_tweets",
            {"userName": user_name, "includeReplies": str(include_replies).lower()},
        )
        return list(data.get("tweets") or [])[:count]

    async def get_user_mentions(
        self, user_name: str, days: int = 7, count: int = 20
    ) -> list[Tweet]:
        since_time = int(time.time() - days * 86400)
        data = await self._get(
            "/twitter/user/mentions", {"userName": user_name, "sinceTime": since_time}
        )
        return list(data.get("tweets") or [])[:count]

    # -- account -------------------------------------------------------------

    async def get_credits(self) -> int | None:
        """Remaining API credits, or ``None`` when they cannot be read."""
        try:
            data = await self._get("/oapi/my/info", {})
        except ExternalServiceError as exc:
            logger.debug("get_credits failed: %s", exc)
            return None
        credits = data.get("recharge_credits")
        return int(credits) if isinstance(credits, (int, float)) else None
