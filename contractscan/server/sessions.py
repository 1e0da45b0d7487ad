"""
Protocol Session Multiplexer

Maps the session token carried in the `mcp-session-id` header to a live
transport. Each session gets its own transport and protocol server,
created on first contact and forgotten when the transport closes or the
client sends DELETE.

    POST   no/unknown token  -> new session, kept and its token returned in the
                                header only if the transport accepts the request
    ANY    known token       -> routed to that session's transport
    GET    no/unknown token  -> 400
    DELETE no/unknown token  -> 404

Usage:
    multiplexer = SessionMultiplexer(lambda token: McpSessionTransport(token, make_server(token)))

    async with multiplexer.run():
        ...  # serve `multiplexer` as an ASGI app
"""

import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import AsyncIterator, Callable, Dict, List, Optional

import anyio
from anyio.abc import TaskGroup, TaskStatus
from loguru import logger
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import Message, Receive, Scope, Send

from .transport import SessionTransport


SESSION_HEADER = "mcp-session-id"


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    CLOSED = "closed"


@dataclass
class Session:
    """One token bound to one transport."""

    token: str
    transport: SessionTransport
    state: SessionState = SessionState.UNINITIALIZED
    created_at: datetime = field(default_factory=datetime.now)
    last_active: Optional[datetime] = None
    request_count: int = 0

    def touch(self) -> None:
        self.last_active = datetime.now()
        self.request_count += 1

    def to_dict(self) -> dict:
        return {
            "token": self.token,
            "state": self.state.value,
            "created_at": self.created_at.isoformat(),
            "last_active": self.last_active.isoformat() if self.last_active else None,
            "request_count": self.request_count,
        }


TransportFactory = Callable[[str], SessionTransport]


class SessionMultiplexer:
    """
    ASGI app routing requests to per-session transports.

    The token table is only touched from the event loop, and a token is
    registered before its transport starts, so one token never maps to
    more than one live transport.
    """

    def __init__(self, transport_factory: TransportFactory, header: str = SESSION_HEADER):
        """
        Args:
            transport_factory: Builds a transport (and its protocol server)
                for a newly issued token
            header: Request/response header carrying the token
        """
        self._factory = transport_factory
        self.header = header
        self._sessions: Dict[str, Session] = {}
        self._task_group: Optional[TaskGroup] = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @asynccontextmanager
    async def run(self) -> AsyncIterator["SessionMultiplexer"]:
        """Own the task group that runs every session's protocol loop."""
        if self._task_group is not None:
            raise RuntimeError("Session multiplexer is already running")

        async with anyio.create_task_group() as tg:
            self._task_group = tg
            logger.info("[Sessions] Multiplexer started")
            try:
                yield self
            finally:
                await self.close_all()
                tg.cancel_scope.cancel()
                self._task_group = None
                logger.info("[Sessions] Multiplexer stopped")

    async def close_all(self) -> None:
        """Terminate every live session."""
        for session in list(self._sessions.values()):
            await self._terminate(session)
            self._forget(session, "server shutdown")

    # =========================================================================
    # Request routing
    # =========================================================================

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope)
        method = request.method
        token = request.headers.get(self.header)
        session = self._sessions.get(token) if token else None

        if session is not None:
            await self._route(session, scope, receive, send)
            if method == "DELETE":
                self._forget(session, "terminated by client")
            return

        if method == "POST":
            if token:
                logger.info(f"[Sessions] Unknown token {token[:8]}, starting a new session")
                scope = self._without_token(scope)
            try:
                session = await self._open()
            except Exception as e:
                logger.exception(f"[Sessions] Failed to start session: {e}")
                await self._reply(scope, receive, send, 500, "Failed to start session")
                return
            await self._first_contact(session, scope, receive, send)
            return

        if method == "GET":
            await self._reply(scope, receive, send, 400, f"Invalid or missing {self.header}")
        elif method == "DELETE":
            await self._reply(scope, receive, send, 404, "Session not found")
        else:
            await self._reply(scope, receive, send, 405, f"Method {method} not allowed")

    async def _first_contact(self, session: Session, scope: Scope, receive: Receive, send: Send) -> None:
        """
        Route the request that created a session.

        The session is kept only if the transport accepts this request
        with a 2xx status. Otherwise the client never sees the token and
        the transport is shut down.
        """
        accepted = False
        status = None
        try:
            status = await self._route(session, scope, receive, send, first_contact=True)
            accepted = status is not None and 200 <= status < 300
        finally:
            if accepted:
                session.state = SessionState.ACTIVE
                logger.info(f"[Sessions] Opened {session.token[:8]} ({len(self._sessions)} active)")
            else:
                self._forget(session, f"first request rejected ({status})")
                with anyio.CancelScope(shield=True):
                    await self._terminate(session)

    async def _route(
        self,
        session: Session,
        scope: Scope,
        receive: Receive,
        send: Send,
        first_contact: bool = False,
    ) -> Optional[int]:
        """Deliver a request to the session's transport and return the response status."""
        session.touch()
        header_name = self.header.encode("latin-1")
        header_value = session.token.encode("latin-1")
        status: Optional[int] = None

        async def send_with_token(message: Message) -> None:
            nonlocal status
            if message["type"] == "http.response.start":
                status = message["status"]
                headers = [
                    (name, value) for name, value in message.get("headers", [])
                    if name.lower() != header_name
                ]
                # A rejected first request does not issue a token
                if not first_contact or 200 <= status < 300:
                    headers.append((header_name, header_value))
                message = {**message, "headers": headers}
            await send(message)

        await session.transport.handle_request(scope, receive, send_with_token)
        return status

    def _without_token(self, scope: Scope) -> Scope:
        header_name = self.header.encode("latin-1")
        headers = [(name, value) for name, value in scope["headers"] if name.lower() != header_name]
        return {**scope, "headers": headers}

    async def _reply(self, scope: Scope, receive: Receive, send: Send, status: int, error: str) -> None:
        response = JSONResponse({"error": error}, status_code=status)
        await response(scope, receive, send)

    # =========================================================================
    # Session table
    # =========================================================================

    async def _open(self) -> Session:
        if self._task_group is None:
            raise RuntimeError("Session multiplexer is not running")

        token = uuid.uuid4().hex
        session = Session(token=token, transport=self._factory(token))
        self._sessions[token] = session

        try:
            await self._task_group.start(self._serve, session)
        except BaseException:
            self._forget(session, "failed to start")
            raise

        return session

    async def _serve(self, session: Session, *, task_status: TaskStatus = anyio.TASK_STATUS_IGNORED) -> None:
        try:
            await session.transport.serve(task_status=task_status)
        except Exception as e:
            logger.exception(f"[Sessions] Session {session.token[:8]} crashed: {e}")
        finally:
            self._forget(session, "transport closed")

    async def _terminate(self, session: Session) -> None:
        try:
            await session.transport.terminate()
        except Exception as e:
            logger.warning(f"[Sessions] Error terminating {session.token[:8]}: {e}")

    def _forget(self, session: Session, reason: str) -> None:
        # Only drop the token if it still belongs to this session
        if self._sessions.get(session.token) is session:
            del self._sessions[session.token]
            logger.info(f"[Sessions] Closed {session.token[:8]}: {reason} ({len(self._sessions)} active)")
        session.state = SessionState.CLOSED

    # =========================================================================
    # Introspection
    # =========================================================================

    @property
    def running(self) -> bool:
        return self._task_group is not None

    def get(self, token: str) -> Optional[Session]:
        return self._sessions.get(token)

    def tokens(self) -> List[str]:
        return list(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, token: str) -> bool:
        return token in self._sessions
