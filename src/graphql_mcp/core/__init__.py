# ============================================================================
# GRAPHQL MCP - CORE MODULE
# ============================================================================
# Copyright 2026 Graforest. All Rights Reserved.
#
# Shared core components for the MCP server:
#   - Base protocol server (JSON-RPC method table)
#   - Session manager (SSE sessions)
#   - Transport layer (STDIO + HTTP)
#   - Configuration, errors, logging utilities
#
# ARCHITECTURE:
# GraphQLMCPServer (backend) extends this core with the GraphQL tools.
# ============================================================================

from .config import Settings, load_settings
from .errors import (
    GatewayError,
    ConfigError,
    ProtocolError,
    SessionNotFound,
    UpstreamError,
    ValidationError,
)
from .log import configure_logging, summarize
from .server import (
    BaseMCPServer,
    PROTOCOL_METHODS,
    PROTOCOL_VERSION,
)
from .session import Session, SessionManager
from .transport import (
    run_stdio,
    run_http,
    create_http_app,
)

__all__ = [
    "Settings",
    "load_settings",
    "GatewayError",
    "ConfigError",
    "ProtocolError",
    "SessionNotFound",
    "UpstreamError",
    "ValidationError",
    "configure_logging",
    "summarize",
    "BaseMCPServer",
    "PROTOCOL_METHODS",
    "PROTOCOL_VERSION",
    "Session",
    "SessionManager",
    "run_stdio",
    "run_http",
    "create_http_app",
]
