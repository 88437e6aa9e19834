# ============================================================================
# GRAPHQL MCP - ERROR TAXONOMY
# ============================================================================
# Copyright 2026 Graforest. All Rights Reserved.
#
# Exceptions raised by the gateway core.
#
# PROPAGATION:
# - ValidationError / UpstreamError → caught at the tool-call boundary and
#   returned to the agent as "Error: ..." text inside a successful result
# - ProtocolError → JSON-RPC error object
# - SessionNotFound → HTTP 404 on the follow-up route
# ============================================================================

from mcp.types import INVALID_REQUEST, METHOD_NOT_FOUND

__all__ = [
    "GatewayError",
    "ConfigError",
    "ValidationError",
    "InvalidInput",
    "QuerySyntaxError",
    "ReadOnlyViolation",
    "DepthExceeded",
    "SchemaValidationError",
    "UpstreamError",
    "SessionNotFound",
    "ProtocolError",
]


class GatewayError(Exception):
    """Base class for every error raised by the gateway."""


class ConfigError(GatewayError):
    """Invalid or missing configuration value."""


# ============================================================================
# QUERY VALIDATION
# ============================================================================

class ValidationError(GatewayError):
    """A query was rejected before reaching the upstream endpoint."""


class InvalidInput(ValidationError):
    pass


class QuerySyntaxError(ValidationError):
    pass


class ReadOnlyViolation(ValidationError):
    pass


class DepthExceeded(ValidationError):
    def __init__(self, depth: int, limit: int) -> None:
        self.depth = depth
        self.limit = limit
        super().__init__(
            f"Validation Error: Query depth {depth} exceeds maximum allowed depth of {limit}."
        )


class SchemaValidationError(ValidationError):
    def __init__(self, message: str, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(message)


# ============================================================================
# UPSTREAM / PROTOCOL
# ============================================================================

class UpstreamError(GatewayError):
    """Non-success status or transport failure from the GraphQL endpoint."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class SessionNotFound(GatewayError):
    def __init__(self, session_id: str | None) -> None:
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class ProtocolError(GatewayError):
    """JSON-RPC level failure. Carries the error code sent back to the caller."""

    def __init__(self, code: int, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)

    @classmethod
    def method_not_found(cls, message: str) -> "ProtocolError":
        return cls(METHOD_NOT_FOUND, message)

    @classmethod
    def invalid_request(cls, message: str = "Invalid JSON-RPC request") -> "ProtocolError":
        return cls(INVALID_REQUEST, message)
