"""
Session Transport

Binds one MCP streamable-HTTP transport to one protocol server instance.
The session multiplexer owns one of these per session token.
"""

from contextlib import AsyncExitStack
from typing import Protocol

import anyio
from anyio.abc import TaskStatus
from fastmcp import FastMCP
from mcp.server.streamable_http import StreamableHTTPServerTransport
from starlette.types import Receive, Scope, Send


class SessionTransport(Protocol):
    """What the multiplexer needs from a session's transport."""

    async def serve(self, *, task_status: TaskStatus = anyio.TASK_STATUS_IGNORED) -> None:
        """Run the protocol server until the transport closes."""
        ...

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Deliver one HTTP request to the session."""
        ...

    async def terminate(self) -> None:
        """Close the transport; serve() returns afterwards."""
        ...


class McpSessionTransport:
    """
    MCP streamable-HTTP transport for a single session.

    serve() connects the transport's streams to the FastMCP server's
    protocol loop; handle_request() feeds HTTP requests into it.
    """

    def __init__(self, session_id: str, server: FastMCP, json_response: bool = False):
        """
        Args:
            session_id: Token issued by the multiplexer
            server: Protocol server owned by this session only
            json_response: Reply with JSON bodies instead of SSE streams
        """
        self.session_id = session_id
        self.server = server
        self._http = StreamableHTTPServerTransport(
            mcp_session_id=session_id,
            is_json_response_enabled=json_response,
        )

    async def serve(self, *, task_status: TaskStatus = anyio.TASK_STATUS_IGNORED) -> None:
        protocol_server = self.server._mcp_server

        async with AsyncExitStack() as stack:
            # Later fastmcp 2.x releases expect the runner to enter the server lifespan;
            # earlier ones have no _lifespan_manager
            lifespan = getattr(self.server, "_lifespan_manager", None)
            if lifespan is not None:
                await stack.enter_async_context(lifespan())

            read_stream, write_stream = await stack.enter_async_context(self._http.connect())
            task_status.started()
            await protocol_server.run(
                read_stream,
                write_stream,
                protocol_server.create_initialization_options(),
                stateless=False,
            )

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self._http.handle_request(scope, receive, send)

    async def terminate(self) -> None:
        await self._http.terminate()
