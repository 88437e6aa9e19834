# ============================================================================
# GRAPHQL MCP - LOGGING UTILITIES
# ============================================================================
# Copyright 2026 Graforest. All Rights Reserved.
#
# Logs go to stderr. stdout belongs to the STDIO transport.
# ============================================================================

import logging
import sys
from typing import Any

__all__ = [
    "configure_logging",
    "summarize",
]

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "info") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def summarize(
    data: Any,
    max_length: int = 100,
    max_items: int = 10,
    depth: int = 0,
) -> Any:
    """Shrink a payload for logging.

    Long strings are truncated, lists are capped at ``max_items`` and
    anything nested deeper than five levels is replaced with a marker.
    """
    if depth > 5:
        return "[Deep Object]"

    if data is None:
        return None

    if isinstance(data, str):
        if len(data) <= max_length:
            return data
        return f"{data[:max_length]}... ({len(data)} chars)"

    if isinstance(data, (list, tuple)):
        summary = [summarize(item, max_length, max_items, depth + 1) for item in data[:max_items]]
        if len(data) > max_items:
            summary.append(f"... {len(data) - max_items} more items")
        return summary

    if isinstance(data, dict):
        return {
            key: summarize(value, max_length, max_items, depth + 1)
            for key, value in data.items()
        }

    return data
