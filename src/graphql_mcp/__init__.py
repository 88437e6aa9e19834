# ============================================================================
# GRAPHQL MCP — GraphQL Gateway Server
# ============================================================================
# Copyright 2026 Graforest. All Rights Reserved.
#
# Exposes a remote GraphQL endpoint to MCP agents:
#   - Tools: 2 (introspect-graphql-schema, query-graphql)
#   - Resources: 1 (graphql://schema)
#   - Prompts: 1 (write-graphql-query)
#
# Usage:
#   export GRAPHQL_MCP_ENDPOINT=https://api.example.com/graphql
#   export GRAPHQL_API_KEY=...
#   graphql-mcp
#
# Environment Variables:
#   See graphql_mcp/core/config.py for the full list.
#   TRANSPORT - Transport: http (default) or stdio
# ============================================================================

import sys
from functools import partial

# Version from package metadata
from importlib.metadata import version as _get_version
__version__ = _get_version("graphql-mcp")

# Public API
__all__ = [
    "__version__",
    "main",
]


def main() -> None:
    """Main entry point — runs the GraphQL MCP server."""
    from .core import ConfigError, configure_logging, load_settings, run_http, run_stdio

    try:
        settings = load_settings()
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        print("", file=sys.stderr)
        print("Example:", file=sys.stderr)
        print("  export GRAPHQL_MCP_ENDPOINT=https://api.example.com/graphql", file=sys.stderr)
        sys.exit(1)

    configure_logging(settings.log_level)
    print(
        f"[graphql-mcp] Starting server (endpoint={settings.endpoint}, "
        f"read_only={settings.read_only}, transport={settings.transport})...",
        file=sys.stderr,
    )

    try:
        from .backend import GraphQLClient, SchemaCache, create_graphql_server

        cache = SchemaCache(ttl=settings.cache_ttl, schema_dir=settings.schema_dir)
        client = GraphQLClient(settings)
        factory = partial(create_graphql_server, settings, cache, client)

        if settings.transport == "stdio":
            run_stdio(factory())
        else:
            run_http(factory, settings, cleanup=client.close)
    except KeyboardInterrupt:
        sys.exit(0)
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
