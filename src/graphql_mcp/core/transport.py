# ============================================================================
# GRAPHQL MCP - TRANSPORT LAYER
# ============================================================================
# Copyright 2026 Graforest. All Rights Reserved.
#
# Transport implementations over one shared method table.
#
# TRANSPORTS:
# - SSE session: GET /sse opens a stream, POST /messages?sessionId=... feeds it
# - Stateless:   POST /sse or POST /mcp, one JSON-RPC message per request
# - STDIO:       newline-delimited JSON-RPC on stdin/stdout
# ============================================================================

import contextlib
import json
import logging
import sys
from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

import anyio
from sse_starlette import EventSourceResponse
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import Route
from starlette.types import ASGIApp, Receive, Scope, Send

from .config import Settings
from .errors import ProtocolError, SessionNotFound
from .log import summarize
from .server import BaseMCPServer, error_envelope, parse_message
from .session import SessionManager

logger = logging.getLogger(__name__)

__all__ = [
    "run_stdio",
    "run_http",
    "create_http_app",
    "StatelessExchange",
]

MESSAGES_PATH = "/messages"

# Never log credentials
REDACTED_HEADERS = ("authorization", "x-api-key", "cookie")


# ============================================================================
# STDIO TRANSPORT - Local IDE Integration
# ============================================================================

def run_stdio(server: BaseMCPServer) -> None:
    """Run the protocol server over stdin/stdout."""
    anyio.run(_stdio_async, server)


async def _stdio_async(server: BaseMCPServer) -> None:
    stdin = anyio.wrap_file(sys.stdin)
    stdout = anyio.wrap_file(sys.stdout)

    async for line in stdin:
        line = line.strip()
        if not line:
            continue
        try:
            message = parse_message(line)
        except ProtocolError as e:
            response = error_envelope(None, e.code, e.message)
        else:
            response = await server.handle_message(message)

        if response is not None:
            await stdout.write(json.dumps(response) + "\n")
            await stdout.flush()


# ============================================================================
# HTTP TRANSPORT - SSE Sessions + Stateless JSON-RPC
# ============================================================================

class StatelessExchange:
    """One inbound message paired with exactly one HTTP response."""

    def __init__(self, message: dict[str, Any]) -> None:
        self.message = message
        self._response: Response | None = None

    def respond(self, payload: Any, status_code: int = 200) -> bool:
        if self._response is not None:
            logger.warning(f"Dropping second response for {self.message.get('method')}")
            return False
        self._response = JSONResponse(payload, status_code=status_code)
        return True

    @property
    def response(self) -> Response:
        if self._response is None:
            raise RuntimeError("Exchange has no response")
        return self._response


class RequestLoggingMiddleware:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            headers = {
                key.decode("latin-1"): (
                    "[redacted]" if key.decode("latin-1").lower() in REDACTED_HEADERS
                    else value.decode("latin-1")
                )
                for key, value in scope["headers"]
            }
            logger.info(
                f"Incoming request {scope['method']} {scope['path']} "
                f"headers={summarize(headers)}"
            )
        await self.app(scope, receive, send)


async def _read_message(request: Request) -> dict[str, Any]:
    return parse_message(await request.body())


def _envelope_error_response(error: ProtocolError) -> JSONResponse:
    return JSONResponse(error_envelope(None, error.code, error.message), status_code=400)


def run_http(
    server_factory: Callable[[], BaseMCPServer],
    settings: Settings,
    cleanup: Callable[[], Awaitable[None]] | None = None,
) -> None:
    """Run the HTTP server (SSE sessions + stateless JSON-RPC)."""
    import uvicorn

    app = create_http_app(server_factory, settings, cleanup=cleanup)

    host, port = settings.host, settings.port
    print(f"[graphql-mcp] HTTP server starting on {host}:{port}", file=sys.stderr)
    print(f"[graphql-mcp] MCP endpoints:", file=sys.stderr)
    print(f"[graphql-mcp]   - GET  http://{host}:{port}/sse (session stream)", file=sys.stderr)
    print(f"[graphql-mcp]   - POST http://{host}:{port}/sse (stateless)", file=sys.stderr)

    uvicorn.run(app, host=host, port=port, log_level=settings.log_level)


def create_http_app(
    server_factory: Callable[[], BaseMCPServer],
    settings: Settings,
    server_card_builder: Callable[[], dict] | None = None,
    cleanup: Callable[[], Awaitable[None]] | None = None,
    session_manager: SessionManager | None = None,
) -> Any:
    """Create Starlette ASGI application for HTTP transport."""
    if session_manager is None:
        session_manager = SessionManager(server_factory)
    probe = server_factory()
    name, version, description = probe.name, probe.version, probe.instructions

    async def health(request: Request) -> Response:
        return JSONResponse({
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    async def server_card(request: Request) -> Response:
        if server_card_builder:
            card = server_card_builder()
        else:
            card = _build_default_server_card(name, version, description, settings)
        return JSONResponse(card)

    async def openapi(request: Request) -> Response:
        proto = request.headers.get("x-forwarded-proto", request.url.scheme)
        host = request.headers.get("host", request.url.netloc)
        return JSONResponse(_build_openapi(f"{proto}://{host}", name, version))

    async def handle_sse(request: Request) -> Response:
        session = session_manager.open_session()
        endpoint = f"{MESSAGES_PATH}?sessionId={session.session_id}"

        async def event_stream() -> AsyncIterator[dict[str, str]]:
            try:
                yield {"event": "endpoint", "data": endpoint}
                async for response in session.responses():
                    yield {"event": "message", "data": json.dumps(response)}
            finally:
                session_manager.close_session(session.session_id)

        return EventSourceResponse(event_stream())

    async def handle_follow_up(request: Request) -> Response:
        session_id = request.query_params.get("sessionId")
        if not session_id:
            return PlainTextResponse("sessionId is required", status_code=400)

        try:
            session_manager.get(session_id)
            message = await _read_message(request)
            await session_manager.handle_follow_up(session_id, message)
        except SessionNotFound:
            logger.warning(f"Follow-up for unknown session: {session_id}")
            return PlainTextResponse("Session not found", status_code=404)
        except ProtocolError as e:
            return _envelope_error_response(e)

        return PlainTextResponse("Accepted", status_code=202)

    async def handle_stateless(request: Request) -> Response:
        try:
            message = await _read_message(request)
        except ProtocolError as e:
            logger.warning(f"Rejected stateless request: {e.message}")
            return _envelope_error_response(e)

        exchange = StatelessExchange(message)
        response = await server_factory().handle_message(message)
        # notifications get a bare acknowledgment
        exchange.respond(response if response is not None else {})
        return exchange.response

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        try:
            yield
        finally:
            session_manager.close_all()
            if cleanup is not None:
                await cleanup()

    app = Starlette(
        debug=False,
        routes=[
            Route("/health", endpoint=health, methods=["GET"]),
            Route("/openapi.json", endpoint=openapi, methods=["GET"]),
            Route("/.well-known/mcp/server-card.json", endpoint=server_card, methods=["GET"]),
            Route("/sse", endpoint=handle_sse, methods=["GET"]),
            Route("/sse", endpoint=handle_stateless, methods=["POST"]),
            Route("/mcp", endpoint=handle_stateless, methods=["POST"]),
            Route(MESSAGES_PATH, endpoint=handle_follow_up, methods=["POST"]),
        ],
        lifespan=lifespan,
    )
    wrapped = CORSMiddleware(
        RequestLoggingMiddleware(app),
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "x-api-key", "mcp-protocol-version"],
    )

    return wrapped


def _build_default_server_card(
    name: str, version: str, description: str, settings: Settings,
) -> dict:
    return {
        "name": name,
        "displayName": "GraphQL MCP Server",
        "version": version,
        "description": description,
        "capabilities": {
            "tools": True,
            "resources": True,
            "prompts": True,
        },
        "readOnly": settings.read_only,
        "transports": {
            "sse": "/sse",
            "messages": MESSAGES_PATH,
            "stateless": ["/sse", "/mcp"],
        },
    }


def _build_openapi(server_url: str, name: str, version: str) -> dict:
    return {
        "openapi": "3.0.1",
        "info": {
            "title": name,
            "description": "Model Context Protocol Server for GraphQL",
            "version": version,
        },
        "servers": [{"url": server_url}],
        "paths": {
            "/sse": {
                "get": {
                    "summary": "Connect via Server-Sent Events",
                    "responses": {"200": {"description": "SSE Stream"}},
                },
                "post": {
                    "summary": "Send JSON-RPC Message",
                    "requestBody": {
                        "content": {"application/json": {"schema": {"type": "object"}}},
                    },
                    "responses": {
                        "200": {"description": "JSON-RPC Response"},
                        "400": {"description": "Malformed JSON-RPC envelope"},
                    },
                },
            },
            MESSAGES_PATH: {
                "post": {
                    "summary": "Send a message to an open SSE session",
                    "parameters": [{
                        "name": "sessionId",
                        "in": "query",
                        "required": True,
                        "schema": {"type": "string"},
                    }],
                    "responses": {
                        "202": {"description": "Accepted"},
                        "404": {"description": "Session not found"},
                    },
                },
            },
        },
    }
