# ============================================================================
# GRAPHQL MCP - UPSTREAM GRAPHQL CLIENT
# ============================================================================
# Copyright 2026 Graforest. All Rights Reserved.
#
# HTTP client for the configured GraphQL endpoint.
#
# AUTH HEADER SELECTION (only when an API key is configured):
#   - Authorization: Bearer <key>  (github.com hosts, or AUTH_TYPE=Bearer)
#   - x-api-key: <key>             (every other case)
# ============================================================================

import logging
from typing import Any
from urllib.parse import urlparse

import httpx

from ..core.config import Settings
from ..core.errors import UpstreamError
from ..core.log import summarize

logger = logging.getLogger(__name__)

USER_AGENT = "DirectQL/GraphQL-MCP-Agent/1.0"

# Hosts that only accept Bearer tokens regardless of AUTH_TYPE
BEARER_HOSTS = ("github.com",)

__all__ = ["GraphQLClient", "build_headers", "USER_AGENT"]


def _uses_bearer(endpoint: str, auth_type: str) -> bool:
    host = urlparse(endpoint).hostname or ""
    return auth_type == "Bearer" or any(h in host for h in BEARER_HOSTS)


def build_headers(settings: Settings) -> dict[str, str]:
    headers = {
        "Content-Type": "application/json",
        "User-Agent": USER_AGENT,
    }
    if not settings.api_key:
        return headers

    if _uses_bearer(settings.endpoint, settings.auth_type):
        headers["Authorization"] = f"Bearer {settings.api_key}"
    else:
        headers["x-api-key"] = settings.api_key
    return headers


class GraphQLClient:
    """Async HTTP client for the upstream GraphQL endpoint.

    Issues exactly one POST per call and never retries. An ``httpx.AsyncClient``
    may be injected (tests use ``httpx.MockTransport``); otherwise one is
    created lazily and owned by this instance.
    """

    def __init__(
        self,
        settings: Settings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.settings.timeout)
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()

    async def execute(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
    ) -> Any:
        """POST {query, variables} and return the decoded JSON body."""
        client = await self._get_client()
        logger.info(
            f"Executing GraphQL query: {summarize(query)} "
            f"variables={summarize(variables or {})}"
        )

        try:
            resp = await client.post(
                self.settings.endpoint,
                json={"query": query, "variables": variables or {}},
                headers=build_headers(self.settings),
            )
        except httpx.HTTPError as e:
            raise UpstreamError(f"GraphQL request failed: {e}") from e

        if not resp.is_success:
            raise UpstreamError(
                f"GraphQL Error: {resp.status_code} {resp.reason_phrase}",
                status_code=resp.status_code,
            )

        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamError(
                f"GraphQL endpoint returned invalid JSON: {resp.text[:200]}",
                status_code=resp.status_code,
            ) from e
