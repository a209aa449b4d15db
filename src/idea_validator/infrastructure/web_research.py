"""Async client for the Tavily web-search API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from idea_validator.domain.exceptions import ExternalServiceError
from idea_validator.domain.values import WebSearchResult, WebSource

logger = logging.getLogger(__name__)

BASE_URL = "https://api.tavily.com"
_SERVICE = "tavily"


class WebResearchClient:
    """Issue web-search queries and return answer + sources.

    Parameters
    ----------
    api_key:
        Tavily API key, sent as a bearer token.
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
        timeout: float = 30.0,
        base_url: str = BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def search(
        self,
        query: str,
        max_results: int = 7,
        include_answer: bool = True,
        search_depth: str = "advanced",
    ) -> WebSearchResult:
        body = {
            "query": query,
            "max_results": max_results,
            "include_answer": include_answer,
            "search_depth": search_depth,
        }
        logger.debug("search %r", query)
        try:
            response = await self._client.post("/search", json=body)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            raise ExternalServiceError(
                f"search returned HTTP {exc.response.status_code}",
                service=_SERVICE,
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise ExternalServiceError(
                f"search request failed: {exc}", service=_SERVICE
            ) from exc
        except ValueError as exc:
            raise ExternalServiceError(
                "search returned a non-JSON body", service=_SERVICE
            ) from exc
        return parse_search_response(query, data)


def parse_search_response(query: str, data: Any) -> WebSearchResult:
    """Convert a raw search response into a :class:`WebSearchResult`."""
    if not isinstance(data, dict):
        raise ExternalServiceError("search returned an unexpected payload", service=_SERVICE)
    sources = tuple(
        WebSource(
            url=str(item.get("url") or ""),
            title=str(item.get("title") or ""),
            content=str(item.get("content") or ""),
        )
        for item in data.get("results") or []
        if isinstance(item, dict)
    )
    answer = data.get("answer")
    return WebSearchResult(
        query=query,
        answer=str(answer) if answer else None,
        results=sources,
    )
