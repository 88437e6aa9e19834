"""Tests for settings resolution."""

from pathlib import Path

import pytest

from graphql_mcp.core.config import Settings, load_settings
from graphql_mcp.core.errors import ConfigError

ENDPOINT = "https://api.example.com/graphql"


def test_defaults() -> None:
    settings = load_settings({"GRAPHQL_MCP_ENDPOINT": ENDPOINT})
    assert settings == Settings(endpoint=ENDPOINT)
    assert settings.read_only is True
    assert settings.auth_type == "Bearer"
    assert settings.port == 3000
    assert settings.schema_dir == Path("schemas")


def test_overrides() -> None:
    settings = load_settings({
        "GRAPHQL_MCP_ENDPOINT": ENDPOINT,
        "GRAPHQL_API_KEY": "k",
        "AUTH_TYPE": "x-api-key",
        "GRAPHQL_READ_ONLY": "false",
        "PORT": "8080",
        "TRANSPORT": "STDIO",
        "GRAPHQL_CACHE_TTL": "60",
        "GRAPHQL_SCHEMA_DIR": "/tmp/schemas",
    })
    assert settings.api_key == "k"
    assert settings.auth_type == "x-api-key"
    assert settings.read_only is False
    assert settings.port == 8080
    assert settings.transport == "stdio"
    assert settings.cache_ttl == 60.0
    assert settings.schema_dir == Path("/tmp/schemas")


def test_settings_are_immutable() -> None:
    settings = load_settings({"GRAPHQL_MCP_ENDPOINT": ENDPOINT})
    with pytest.raises(AttributeError):
        settings.read_only = False


@pytest.mark.parametrize(
    "env, match",
    [
        ({}, "GRAPHQL_MCP_ENDPOINT"),
        ({"GRAPHQL_MCP_ENDPOINT": "not-a-url"}, "http"),
        ({"GRAPHQL_MCP_ENDPOINT": ENDPOINT, "AUTH_TYPE": "Basic"}, "AUTH_TYPE"),
        ({"GRAPHQL_MCP_ENDPOINT": ENDPOINT, "GRAPHQL_READ_ONLY": "yes"}, "GRAPHQL_READ_ONLY"),
        ({"GRAPHQL_MCP_ENDPOINT": ENDPOINT, "PORT": "abc"}, "PORT"),
        ({"GRAPHQL_MCP_ENDPOINT": ENDPOINT, "TRANSPORT": "ws"}, "TRANSPORT"),
    ],
)
def test_invalid_values(env, match) -> None:
    with pytest.raises(ConfigError, match=match):
        load_settings(env)
