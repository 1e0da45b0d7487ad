"""
MCP Server Factory

Creates an isolated FastMCP server instance for each protocol session.
Sessions share the dispatcher (and through it the result cache) but never
a server instance.

Usage:
    from contractscan.tools.mcp_factory import create_session_server

    mcp_server = create_session_server(dispatcher, session_id="abc123")
    async with Client(mcp_server) as client:
        result = await client.call_tool("slither_analyze", {"files": {"A.sol": "contract A {}"}})
"""

from typing import Annotated, Any, Dict, List, Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from pydantic import Field

from .catalog import FILES_DESCRIPTION
from .dispatcher import ToolDispatcher, ToolResponse


Files = Annotated[Dict[str, str], Field(description=FILES_DESCRIPTION)]
Detectors = Annotated[
    Optional[List[str]],
    Field(description="Detector names to run (e.g. [\"reentrancy-eth\", \"tx-origin\"]). Omit to run all detectors."),
]
SkillId = Annotated[
    str,
    Field(description="The skill identifier. Use list_skills to see all available ids (e.g. 'ship', 'wallets', 'security')"),
]

# Catalog tools whose only argument is the file mapping
FILES_ONLY_TOOLS = (
    "slither_high_impact",
    "slither_summary",
    "slither_contract_summary",
    "slither_function_summary",
    "aderyn_analyze",
)


def create_session_server(dispatcher: ToolDispatcher, session_id: str = "default") -> FastMCP:
    """
    Create an isolated FastMCP server with the dispatcher's tools registered.

    Args:
        dispatcher: Shared tool dispatcher
        session_id: Session token (used in the server name only)

    Returns:
        A new FastMCP instance
    """
    mcp = FastMCP(f"ContractScan-{dispatcher.engine}-{session_id[:8]}")

    _register_analysis_tools(mcp, dispatcher)
    if dispatcher.skills is not None:
        _register_skill_tools(mcp, dispatcher)

    return mcp


def _unwrap(response: ToolResponse) -> str:
    """Text for a successful response; ToolError (isError=true) otherwise."""
    if response.is_error:
        raise ToolError(response.text)
    return response.text


def _arguments(**values: Any) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


def _register(mcp: FastMCP, dispatcher: ToolDispatcher, name: str, fn) -> None:
    spec = dispatcher.tools.get(name)
    if spec is None:
        return
    mcp.tool(fn, name=name, description=spec.description)


def _files_tool(dispatcher: ToolDispatcher, name: str):
    async def run_files_tool(files: Files) -> str:
        return _unwrap(await dispatcher.dispatch(name, _arguments(files=files)))

    return run_files_tool


def _register_analysis_tools(mcp: FastMCP, dispatcher: ToolDispatcher) -> None:
    """Register engine tools present in the dispatcher's catalog."""

    async def slither_analyze(files: Files, detectors: Detectors = None) -> str:
        response = await dispatcher.dispatch(
            "slither_analyze", _arguments(files=files, detectors=detectors)
        )
        return _unwrap(response)

    _register(mcp, dispatcher, "slither_analyze", slither_analyze)

    for name in FILES_ONLY_TOOLS:
        _register(mcp, dispatcher, name, _files_tool(dispatcher, name))


def _register_skill_tools(mcp: FastMCP, dispatcher: ToolDispatcher) -> None:
    """Register the skills catalog tools."""

    async def list_skills() -> str:
        return _unwrap(await dispatcher.dispatch("list_skills", {}))

    async def get_skill(skill_id: SkillId) -> str:
        return _unwrap(await dispatcher.dispatch("get_skill", {"skill_id": skill_id}))

    _register(mcp, dispatcher, "list_skills", list_skills)
    _register(mcp, dispatcher, "get_skill", get_skill)
