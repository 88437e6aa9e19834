import json
from typing import Any

import httpx
import pytest
from graphql import build_schema, introspection_from_schema

from graphql_mcp.backend import GraphQLClient, SchemaCache, create_graphql_server
from graphql_mcp.core import Settings

SCHEMA_SDL = """
type Query {
    hello: String
    user(id: ID!): User
}

type User {
    id: ID!
    name: String
}

type Mutation {
    addUser(name: String!): User
}
"""

ENDPOINT = "https://api.example.com/graphql"


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeUpstream:
    """httpx.MockTransport handler standing in for the GraphQL endpoint.

    Introspection queries get the introspection of SCHEMA_SDL; everything
    else gets ``body`` with ``status_code``.
    """

    def __init__(self) -> None:
        self.introspection = introspection_from_schema(build_schema(SCHEMA_SDL))
        self.body: Any = {"data": {"hello": "world"}}
        self.status_code = 200
        self.introspection_status = 200
        self.calls: list[dict[str, Any]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        self.calls.append({"payload": payload, "headers": request.headers})
        if "__schema" in payload["query"]:
            return httpx.Response(self.introspection_status, json={"data": self.introspection})
        return httpx.Response(self.status_code, json=self.body)

    @property
    def query_calls(self) -> list[dict[str, Any]]:
        return [c for c in self.calls if "__schema" not in c["payload"]["query"]]


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(endpoint=ENDPOINT, api_key="secret", schema_dir=tmp_path)


@pytest.fixture
def cache(settings) -> SchemaCache:
    return SchemaCache(ttl=settings.cache_ttl, schema_dir=settings.schema_dir)


@pytest.fixture
def client(settings, upstream) -> GraphQLClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))
    return GraphQLClient(settings, client=http)


@pytest.fixture
def server_factory(settings, cache, client):
    def factory():
        return create_graphql_server(settings, cache, client)

    return factory


@pytest.fixture
def server(server_factory):
    return server_factory()


def rpc(method: str, params: dict | None = None, msg_id: int | None = 1) -> dict:
    message: dict[str, Any] = {"jsonrpc": "2.0", "method": method}
    if msg_id is not None:
        message["id"] = msg_id
    if params is not None:
        message["params"] = params
    return message
