# ============================================================================
# GRAPHQL MCP - SCHEMA CACHE
# ============================================================================
# Copyright 2026 Graforest. All Rights Reserved.
#
# In-memory TTL cache for fetched artifacts (parsed schema, SDL, ...).
#
# LOOKUP ORDER:
#   1. Unexpired in-memory entry
#   2. Local override file <schema_dir>/<key>.graphql (cached too)
#   3. fetch_fn() — result cached for `ttl` seconds, failures not cached
#
# Concurrent first-fetches for one key are not deduplicated; the last
# writer wins. Fetched artifacts are snapshots of the same upstream schema.
# ============================================================================

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import anyio

logger = logging.getLogger(__name__)

__all__ = ["SchemaCache", "CacheEntry", "DEFAULT_TTL"]

DEFAULT_TTL = 3600.0


@dataclass
class CacheEntry:
    key: str
    value: Any
    expiry: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expiry


class SchemaCache:
    """TTL cache with a local-file override. One instance per process."""

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        schema_dir: Path | str = "schemas",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self.schema_dir = Path(schema_dir)
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = CacheEntry(key=key, value=value, expiry=self._clock() + self.ttl)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)

    async def _read_override(self, key: str) -> str | None:
        path = anyio.Path(self.schema_dir / f"{key}.graphql")
        if not await path.is_file():
            return None
        return await path.read_text(encoding="utf-8")

    async def get_or_fetch(self, key: str, fetch_fn: Callable[[], Awaitable[Any]]) -> Any:
        cached = self.get(key)
        if cached is not None:
            logger.debug(f"Cache hit (memory) for {key}")
            return cached

        override = await self._read_override(key)
        if override is not None:
            logger.info(f"Cache hit (file) for {key}")
            self.set(key, override)
            return override

        logger.info(f"Cache miss for {key}. Fetching from remote...")
        try:
            value = await fetch_fn()
        except Exception as e:
            logger.error(f"Failed to fetch {key}: {e}")
            raise
        self.set(key, value)
        return value
