# ============================================================================
# GRAPHQL MCP - GRAPHQL TOOLS
# ============================================================================
# Copyright 2026 Graforest. All Rights Reserved.
#
# TOOLS (2):
#   introspect-graphql-schema  — Raw introspection JSON of the upstream schema
#   query-graphql              — Validate, execute and sanitize a query
#
# RESOURCES (1):
#   graphql://schema           — Upstream schema as SDL (cached)
#
# PROMPTS (1):
#   write-graphql-query        — Ask the agent to draft a query for a request
#
# EXECUTION PATH:
#   validate_query (cached schema) → GraphQLClient → sanitize_response
# ============================================================================

import logging
from typing import Any

from graphql import (
    GraphQLSchema,
    build_client_schema,
    build_schema,
    get_introspection_query,
    print_schema,
)
from mcp.types import (
    GetPromptResult,
    Prompt,
    PromptArgument,
    PromptMessage,
    Resource,
    TextContent,
)

from .. import __version__
from ..core import BaseMCPServer
from ..core.config import Settings
from ..core.errors import UpstreamError
from ..core.log import summarize
from .cache import SchemaCache
from .graphql_client import GraphQLClient
from .sanitizer import sanitize_response
from .validator import validate_query

logger = logging.getLogger(__name__)

__all__ = [
    "GRAPHQL_TOOLS",
    "GRAPHQL_PROMPTS",
    "SCHEMA_URI",
    "GraphQLMCPServer",
    "create_graphql_server",
]

SCHEMA_URI = "graphql://schema"

# Cache keys. A local <key>.graphql file overrides either one.
PARSED_SCHEMA_KEY = "parsed_schema"
SCHEMA_SDL_KEY = "schema_sdl"


# ============================================================================
# TOOL DEFINITIONS
# ============================================================================

GRAPHQL_TOOLS: list[dict[str, Any]] = [
    {
        "name": "introspect-graphql-schema",
        "title": "Introspect GraphQL Schema",
        "description": "Retrieves the full GraphQL schema.",
        "inputSchema": {"type": "object", "properties": {}, "required": []},
        "annotations": {
            "readOnlyHint": True,
            "destructiveHint": False,
            "idempotentHint": True,
            "openWorldHint": True,
        },
    },
    {
        "name": "query-graphql",
        "title": "Query GraphQL",
        "description": (
            "Executes a GraphQL query. Read the 'graphql://schema' resource first "
            "to see the available types and fields."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "The GraphQL query to execute",
                },
                "variables": {
                    "type": "object",
                    "description": "Optional variables referenced by the query",
                },
            },
            "required": ["query"],
        },
        "annotations": {
            "readOnlyHint": False,
            "destructiveHint": False,
            "idempotentHint": False,
            "openWorldHint": True,
        },
    },
]


# ============================================================================
# PROMPT / RESOURCE DEFINITIONS
# ============================================================================

GRAPHQL_PROMPTS: list[Prompt] = [
    Prompt(
        name="write-graphql-query",
        description="Generate a GraphQL query.",
        arguments=[
            PromptArgument(
                name="request",
                description="Description of the query to generate",
                required=True,
            ),
        ],
    ),
]

SCHEMA_RESOURCE = Resource(
    uri=SCHEMA_URI,
    name="GraphQL Schema",
    description="The introspected GraphQL schema in SDL format",
    mimeType="text/plain",
)


# ============================================================================
# GRAPHQL MCP SERVER
# ============================================================================

class GraphQLMCPServer(BaseMCPServer):
    """Protocol server fronting one upstream GraphQL endpoint.

    The schema cache and upstream client are process-wide and injected;
    everything else is per instance.
    """

    INSTRUCTIONS = """GraphQL MCP Server — Safe access to a GraphQL API

WORKFLOW:
1. Read the 'graphql://schema' resource (or call introspect-graphql-schema)
2. Write a query using only types and fields from the schema
3. Call query-graphql with the query (and variables, if any)

Queries are validated before they are sent: syntax, schema conformance and a
maximum nesting depth of 15. Mutations are rejected in read-only mode.
Failures come back as text starting with "Error:" with hints on how to fix them."""

    def __init__(
        self,
        settings: Settings,
        cache: SchemaCache,
        client: GraphQLClient,
    ) -> None:
        super().__init__(
            name="GraphQL MCP Server",
            version=__version__,
            instructions=self.INSTRUCTIONS,
        )
        self.settings = settings
        self.cache = cache
        self.client = client

        self.register_tools(GRAPHQL_TOOLS)
        self.register_tool_handler("introspect-graphql-schema", self._handle_introspect)
        self.register_tool_handler("query-graphql", self._handle_query)

        self.register_prompts(GRAPHQL_PROMPTS)
        self.register_prompt_handler("write-graphql-query", self._handle_query_prompt)

        self.register_resource(SCHEMA_URI, SCHEMA_RESOURCE, self.read_schema_sdl)

    # ====================================================================
    # EXECUTION
    # ====================================================================

    async def get_schema(self) -> GraphQLSchema:
        """Parsed upstream schema, cached. A local override file holds SDL."""
        value = await self.cache.get_or_fetch(PARSED_SCHEMA_KEY, self._fetch_schema)
        if isinstance(value, str):
            schema = build_schema(value)
            self.cache.set(PARSED_SCHEMA_KEY, schema)
            return schema
        return value

    async def _fetch_schema(self) -> GraphQLSchema:
        data = await self.execute_graphql(get_introspection_query(), skip_validation=True)
        return build_client_schema(data)

    async def read_schema_sdl(self) -> str:
        async def fetch_sdl() -> str:
            return print_schema(await self.get_schema())

        return await self.cache.get_or_fetch(SCHEMA_SDL_KEY, fetch_sdl)

    async def execute_graphql(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        skip_validation: bool = False,
    ) -> Any:
        """Validate, send and sanitize one query.

        Returns the ``data`` payload when present, else the sanitized body.
        """
        if not skip_validation:
            schema = None
            try:
                schema = await self.get_schema()
            except Exception as e:
                logger.warning(f"Schema fetch failed, proceeding with syntax validation only: {e}")
            validate_query(query, variables, schema, read_only=self.settings.read_only)

        body = await self.client.execute(query, variables)
        if not isinstance(body, dict):
            raise UpstreamError(f"GraphQL endpoint returned unexpected payload: {summarize(body)}")

        sanitized = sanitize_response(body)
        result = sanitized["data"] if sanitized.get("data") else sanitized

        if not skip_validation:
            logger.info(f"GraphQL response: {summarize(result)}")
        return result

    # ====================================================================
    # TOOL HANDLERS
    # ====================================================================

    async def _handle_introspect(self, name: str, arguments: dict) -> Any:
        data = await self.execute_graphql(get_introspection_query(), skip_validation=True)
        logger.info(f"Tool result {name}: {summarize(data)}")
        return data

    async def _handle_query(self, name: str, arguments: dict) -> Any:
        query = arguments.get("query")
        if not query:
            raise ValueError("Missing 'query' argument")

        logger.info(f"Tool call {name}: {summarize(arguments)}")
        return await self.execute_graphql(query, arguments.get("variables"))

    # ====================================================================
    # PROMPT HANDLERS
    # ====================================================================

    def _handle_query_prompt(
        self, name: str, arguments: dict[str, str] | None,
    ) -> GetPromptResult:
        request = (arguments or {}).get("request") or "a query"
        return GetPromptResult(
            messages=[
                PromptMessage(
                    role="user",
                    content=TextContent(
                        type="text",
                        text=f"Generate query for: \"{request}\". Inspect '{SCHEMA_URI}'.",
                    ),
                )
            ]
        )


# ============================================================================
# FACTORY FUNCTION
# ============================================================================

def create_graphql_server(
    settings: Settings,
    cache: SchemaCache,
    client: GraphQLClient,
) -> GraphQLMCPServer:
    """Factory function to create one isolated GraphQL MCP server."""
    return GraphQLMCPServer(settings=settings, cache=cache, client=client)
