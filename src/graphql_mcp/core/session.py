# ============================================================================
# GRAPHQL MCP - SESSION MANAGER
# ============================================================================
# Copyright 2026 Graforest. All Rights Reserved.
#
# Registry of live streamed (SSE) sessions.
#
# LIFECYCLE:
#   open_session()          — mint id, fresh protocol server, register
#   handle_follow_up(id, m) — queue a POSTed message on that session
#   transport close         — deregister (wired in open_session)
#
# Each session drains its own inbound queue in order, so responses on one
# session follow the order its messages arrived. Sessions share nothing.
# ============================================================================

import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

import anyio

from .errors import SessionNotFound
from .server import BaseMCPServer

logger = logging.getLogger(__name__)

__all__ = [
    "Session",
    "SessionManager",
    "SessionTransport",
]

# Follow-ups queued per session before POSTs start waiting
DEFAULT_BUFFER_SIZE = 32


class SessionTransport:
    """Inbound message queue plus close signal for one session."""

    def __init__(self, session_id: str, buffer_size: int = DEFAULT_BUFFER_SIZE) -> None:
        self.session_id = session_id
        self._send, self._receive = anyio.create_memory_object_stream[dict[str, Any]](buffer_size)
        self._closed = False
        self._reading = False
        self._close_callbacks: list[Callable[[], None]] = []

    @property
    def closed(self) -> bool:
        return self._closed

    def on_close(self, callback: Callable[[], None]) -> None:
        self._close_callbacks.append(callback)

    async def deliver(self, message: dict[str, Any]) -> None:
        """Queue an inbound message. Raises SessionNotFound once closed."""
        if self._closed:
            raise SessionNotFound(self.session_id)
        try:
            await self._send.send(message)
        except (anyio.ClosedResourceError, anyio.BrokenResourceError):
            raise SessionNotFound(self.session_id) from None

    async def messages(self) -> AsyncIterator[dict[str, Any]]:
        self._reading = True
        async with self._receive:
            async for message in self._receive:
                yield message

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # ends the reader's loop; the reader closes its own end
        self._send.close()
        if not self._reading:
            self._receive.close()
        for callback in self._close_callbacks:
            callback()


@dataclass
class Session:
    session_id: str
    transport: SessionTransport
    server: BaseMCPServer

    async def responses(self) -> AsyncIterator[dict[str, Any]]:
        """Answer queued messages in arrival order until the transport closes."""
        async for message in self.transport.messages():
            response = await self.server.handle_message(message)
            if response is not None:
                yield response


class SessionManager:
    """Owns every live Session, keyed by session id.

    ``server_factory`` builds an isolated protocol server per session.
    """

    def __init__(
        self,
        server_factory: Callable[[], BaseMCPServer],
        buffer_size: int = DEFAULT_BUFFER_SIZE,
    ) -> None:
        self._server_factory = server_factory
        self._buffer_size = buffer_size
        self._sessions: dict[str, Session] = {}

    def open_session(self) -> Session:
        session_id = uuid4().hex
        transport = SessionTransport(session_id, self._buffer_size)
        session = Session(session_id=session_id, transport=transport, server=self._server_factory())

        self._sessions[session_id] = session
        transport.on_close(lambda: self._deregister(session_id))
        logger.info(f"Session opened: {session_id} ({len(self._sessions)} active)")
        return session

    def _deregister(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is not None:
            logger.info(f"Session closed: {session_id} ({len(self._sessions)} active)")

    def get(self, session_id: str | None) -> Session:
        session = self._sessions.get(session_id) if session_id else None
        if session is None:
            raise SessionNotFound(session_id)
        return session

    async def handle_follow_up(self, session_id: str | None, message: dict[str, Any]) -> None:
        session = self.get(session_id)
        await session.transport.deliver(message)

    def close_session(self, session_id: str) -> None:
        session = self._sessions.get(session_id)
        if session is not None:
            session.transport.close()

    def close_all(self) -> None:
        for session_id in list(self._sessions):
            self.close_session(session_id)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
