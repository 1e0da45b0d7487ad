"""
ContractScan Server

HTTP application and the MCP session multiplexer.

Usage:
    from contractscan.server import create_app

    app = create_app(Config(engine="slither"))
    uvicorn.run(app, host="0.0.0.0", port=9005)
"""

from .app import create_app, build_orchestrator, AnalyzeRequest, STATUS_FOR_KIND
from .sessions import SessionMultiplexer, Session, SessionState, SESSION_HEADER
from .transport import McpSessionTransport, SessionTransport

__all__ = [
    # App
    "create_app",
    "build_orchestrator",
    "AnalyzeRequest",
    "STATUS_FOR_KIND",
    # Sessions
    "SessionMultiplexer",
    "Session",
    "SessionState",
    "SESSION_HEADER",
    # Transport
    "McpSessionTransport",
    "SessionTransport",
]
