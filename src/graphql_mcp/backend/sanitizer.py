# ============================================================================
# GRAPHQL MCP - RESPONSE SANITIZER
# ============================================================================
# Copyright 2026 Graforest. All Rights Reserved.
#
# Strips server internals (exception details, stack traces) from upstream
# GraphQL error objects before they reach the agent.
# ============================================================================

import logging
from typing import Any

logger = logging.getLogger(__name__)

__all__ = ["sanitize_response", "SENSITIVE_EXTENSION_KEYS"]

SENSITIVE_EXTENSION_KEYS = ("exception", "stacktrace")


def _clean_error(error: dict[str, Any]) -> dict[str, Any]:
    extensions = error.get("extensions")
    if isinstance(extensions, dict):
        extensions = {
            key: value
            for key, value in extensions.items()
            if key not in SENSITIVE_EXTENSION_KEYS
        }
    cleaned = {"message": error.get("message") or "Unknown Error"}
    for key, value in (
        ("locations", error.get("locations")),
        ("path", error.get("path")),
        ("extensions", extensions),
    ):
        # absent keys stay absent
        if value is not None:
            cleaned[key] = value
    return cleaned


def sanitize_response(body: Any) -> Any:
    """Return a copy of ``body`` with its ``errors`` entries cleaned.

    Non-dict bodies are returned unchanged. Entries of ``errors`` that are
    not objects (e.g. ``null``) are dropped. ``data`` is passed through.
    """
    if not isinstance(body, dict):
        return body

    sanitized = dict(body)
    errors = sanitized.get("errors")
    if isinstance(errors, list):
        cleaned = [_clean_error(err) for err in errors if isinstance(err, dict)]
        if len(cleaned) != len(errors):
            logger.warning(f"Dropped {len(errors) - len(cleaned)} malformed error entries")
        sanitized["errors"] = cleaned

    return sanitized
