# ============================================================================
# GRAPHQL MCP - CONFIGURATION
# ============================================================================
# Copyright 2026 Graforest. All Rights Reserved.
#
# Environment-driven settings, validated once at startup and handed to the
# core as a single immutable object.
#
# Environment Variables:
#   GRAPHQL_MCP_ENDPOINT - Upstream GraphQL endpoint (required)
#   GRAPHQL_API_KEY      - API key forwarded upstream (optional)
#   AUTH_TYPE            - Bearer (default) | x-api-key | none
#   GRAPHQL_READ_ONLY    - true (default) | false
#   LOG_LEVEL            - debug | info (default) | warning | error
#   HOST / PORT          - HTTP bind address (0.0.0.0:3000)
#   TRANSPORT            - http (default) | stdio
#   GRAPHQL_SCHEMA_DIR   - Local schema override directory (./schemas)
#   GRAPHQL_CACHE_TTL    - Schema cache TTL in seconds (3600)
#   GRAPHQL_TIMEOUT      - Upstream request timeout in seconds (30)
# ============================================================================

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

from dotenv import load_dotenv

from .errors import ConfigError

__all__ = [
    "AUTH_TYPES",
    "Settings",
    "load_settings",
]

AUTH_TYPES = ("Bearer", "x-api-key", "none")
TRANSPORTS = ("http", "stdio")
LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


@dataclass(frozen=True)
class Settings:
    endpoint: str
    api_key: str | None = None
    auth_type: str = "Bearer"
    read_only: bool = True
    log_level: str = "info"
    host: str = "0.0.0.0"
    port: int = 3000
    transport: str = "http"
    schema_dir: Path = Path("schemas")
    cache_ttl: float = 3600.0
    timeout: float = 30.0


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value not in ("true", "false"):
        raise ConfigError(f"{name} must be 'true' or 'false', got {raw!r}")
    return value == "true"


def _parse_number(name: str, raw: str, kind: type) -> int | float:
    try:
        value = kind(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


def _validate_endpoint(raw: str | None) -> str:
    if not raw:
        raise ConfigError("GRAPHQL_MCP_ENDPOINT environment variable not set")
    parsed = urlparse(raw)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"GRAPHQL_MCP_ENDPOINT must be an http(s) URL, got {raw!r}")
    return raw


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from the environment.

    When ``environ`` is omitted, ``.env`` files are loaded first (current
    directory, then up to two parents) without overriding real variables.
    """
    if environ is None:
        for candidate in (Path(".env"), Path("../.env"), Path("../../.env")):
            if candidate.is_file():
                load_dotenv(candidate, override=False)
        environ = os.environ

    auth_type = environ.get("AUTH_TYPE", "Bearer")
    if auth_type not in AUTH_TYPES:
        raise ConfigError(f"AUTH_TYPE must be one of {', '.join(AUTH_TYPES)}, got {auth_type!r}")

    transport = environ.get("TRANSPORT", "http").lower()
    if transport not in TRANSPORTS:
        raise ConfigError(f"TRANSPORT must be one of {', '.join(TRANSPORTS)}, got {transport!r}")

    log_level = environ.get("LOG_LEVEL", "info").lower()
    if log_level not in LOG_LEVELS:
        raise ConfigError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}")

    return Settings(
        endpoint=_validate_endpoint(environ.get("GRAPHQL_MCP_ENDPOINT")),
        api_key=environ.get("GRAPHQL_API_KEY") or None,
        auth_type=auth_type,
        read_only=_parse_bool("GRAPHQL_READ_ONLY", environ.get("GRAPHQL_READ_ONLY", "true")),
        log_level=log_level,
        host=environ.get("HOST", "0.0.0.0"),
        port=int(_parse_number("PORT", environ.get("PORT", "3000"), int)),
        transport=transport,
        schema_dir=Path(environ.get("GRAPHQL_SCHEMA_DIR", "schemas")),
        cache_ttl=float(_parse_number("GRAPHQL_CACHE_TTL", environ.get("GRAPHQL_CACHE_TTL", "3600"), float)),
        timeout=float(_parse_number("GRAPHQL_TIMEOUT", environ.get("GRAPHQL_TIMEOUT", "30"), float)),
    )
