"""
Tests for the per-session MCP server, driven in memory with fastmcp.Client.

Run with: pytest tests/test_mcp_factory.py -v
"""

import asyncio

import pytest
from fastmcp import Client
from fastmcp.exceptions import ToolError
from mcp.shared.exceptions import McpError

from contractscan.knowledge import Skill, SkillLibrary
from contractscan.tools import ToolDispatcher, create_session_server


FILES = {"Token.sol": "contract Token {}"}


@pytest.fixture
def dispatcher(slither_orchestrator):
    library = SkillLibrary(skills=[Skill("ship", "Ship", "End-to-end guide")])
    library._content["ship"] = "# Ship"
    return ToolDispatcher(slither_orchestrator, skills=library)


class TestSessionServer:

    def test_each_session_gets_its_own_instance(self, dispatcher):
        first = create_session_server(dispatcher, "aaaaaaaa1111")
        second = create_session_server(dispatcher, "bbbbbbbb2222")

        assert first is not second
        assert first.name == "ContractScan-slither-aaaaaaaa"
        assert second.name == "ContractScan-slither-bbbbbbbb"

    def test_lists_catalog_tools(self, dispatcher):
        server = create_session_server(dispatcher, "session1")

        async def _run():
            async with Client(server) as client:
                return await client.list_tools()

        tools = {tool.name: tool for tool in asyncio.run(_run())}

        assert set(tools) == set(dispatcher.tools)
        assert "files" in tools["slither_analyze"].inputSchema["properties"]
        assert "detectors" in tools["slither_analyze"].inputSchema["properties"]
        assert tools["slither_analyze"].inputSchema["required"] == ["files"]

    def test_call_analysis_tool(self, dispatcher):
        server = create_session_server(dispatcher, "session1")

        async def _run():
            async with Client(server) as client:
                return await client.call_tool(
                    "slither_analyze", {"files": FILES, "detectors": ["tx-origin"]}
                )

        result = asyncio.run(_run())

        assert not result.is_error
        assert "args: --detect tx-origin" in result.content[0].text

    def test_sessions_share_the_cache(self, dispatcher):
        async def _run():
            for session_id in ("session1", "session2"):
                async with Client(create_session_server(dispatcher, session_id)) as client:
                    await client.call_tool("slither_summary", {"files": FILES})

        asyncio.run(_run())

        assert dispatcher.orchestrator.invoker.invocations == 1

    def test_failure_sets_is_error(self, dispatcher):
        server = create_session_server(dispatcher, "session1")

        async def _run():
            async with Client(server) as client:
                return await client.call_tool(
                    "get_skill", {"skill_id": "nope"}, raise_on_error=False
                )

        result = asyncio.run(_run())

        assert result.is_error
        assert "Unknown skill id: 'nope'" in result.content[0].text

    def test_unknown_tool(self, dispatcher):
        server = create_session_server(dispatcher, "session1")

        async def _run():
            async with Client(server) as client:
                await client.call_tool("nonexistent_tool", {"files": FILES})

        with pytest.raises((ToolError, McpError), match="Unknown tool"):
            asyncio.run(_run())

    def test_skill_tools(self, dispatcher):
        server = create_session_server(dispatcher, "session1")

        async def _run():
            async with Client(server) as client:
                index = await client.call_tool("list_skills", {})
                skill = await client.call_tool("get_skill", {"skill_id": "ship"})
                return index, skill

        index, skill = asyncio.run(_run())

        assert "`ship`" in index.content[0].text
        assert skill.content[0].text == "# Ship"
