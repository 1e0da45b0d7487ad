"""
ContractScan Tools

Operation catalog, dispatcher and the per-session MCP server factory.

Usage:
    # Direct dispatch (internal Python code)
    dispatcher = ToolDispatcher(orchestrator, skills=library)
    response = await dispatcher.dispatch("slither_summary", {"files": {...}})

    # Via MCP Client (one isolated server per session)
    from fastmcp import Client
    async with Client(create_session_server(dispatcher)) as client:
        result = await client.call_tool("slither_summary", {"files": {...}})
"""

from .catalog import (
    ToolSpec,
    FilesArgs,
    DetectorArgs,
    SkillArgs,
    ENGINE_TOOLS,
    SKILL_TOOLS,
    PRIMARY_TOOL,
    tools_for,
)
from .dispatcher import ToolDispatcher, ToolResponse
from .mcp_factory import create_session_server

__all__ = [
    # Catalog
    "ToolSpec",
    "FilesArgs",
    "DetectorArgs",
    "SkillArgs",
    "ENGINE_TOOLS",
    "SKILL_TOOLS",
    "PRIMARY_TOOL",
    "tools_for",
    # Dispatcher
    "ToolDispatcher",
    "ToolResponse",
    # MCP
    "create_session_server",
]
