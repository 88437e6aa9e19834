# ============================================================================
# GRAPHQL MCP - BACKEND MODULE
# ============================================================================
# Copyright 2026 Graforest. All Rights Reserved.
#
# Public API:
#   GraphQLClient          — HTTP client for the upstream GraphQL endpoint
#   SchemaCache            — TTL cache with local-file override
#   validate_query         — Query validation pipeline
#   sanitize_response      — Upstream error scrubbing
#   GraphQLMCPServer       — MCP server with the GraphQL tools
#   create_graphql_server  — Factory function
# ============================================================================

from .cache import SchemaCache
from .graphql_client import GraphQLClient
from .sanitizer import sanitize_response
from .validator import MAX_QUERY_DEPTH, calculate_depth, validate_query
from .tools import (
    GRAPHQL_TOOLS,
    GRAPHQL_PROMPTS,
    SCHEMA_URI,
    GraphQLMCPServer,
    create_graphql_server,
)

__all__ = [
    "SchemaCache",
    "GraphQLClient",
    "sanitize_response",
    "MAX_QUERY_DEPTH",
    "calculate_depth",
    "validate_query",
    "GRAPHQL_TOOLS",
    "GRAPHQL_PROMPTS",
    "SCHEMA_URI",
    "GraphQLMCPServer",
    "create_graphql_server",
]
