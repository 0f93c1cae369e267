"""Tests for tool registration and routing in the MCP server.

Handler behaviour is covered in tests/test_mcp/tools/test_publisher.py;
this file only tests the server routing layer.
"""

import asyncio

import mcp.types as types
import pytest

from folder_publisher.config_loader import CONFIG_ENV_VAR
from folder_publisher.mcp.server import (
    get_registry,
    handle_call_tool,
    handle_list_tools,
    set_registry,
)
from folder_publisher.mcp.tools import ALL_SPECS
from folder_publisher.mcp.tools.registry import ToolRegistry


class TestServerRouting:
    def setup_method(self):
        set_registry(ToolRegistry(ALL_SPECS))

    def teardown_method(self):
        set_registry(None)

    def test_list_tools(self):
        tools = asyncio.run(handle_list_tools())
        assert {t.name for t in tools} == {"data_extract", "data_check", "data_list"}

    def test_unknown_tool_returns_error(self):
        result = asyncio.run(handle_call_tool("wiki_get", {}))

        assert isinstance(result, types.CallToolResult)
        assert result.isError
        content = result.content[0]
        assert isinstance(content, types.TextContent)
        assert "Error (unknown_tool): Unknown tool: wiki_get" in content.text
        assert "list_tools" in content.text

    def test_routes_to_handler(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)

        result = asyncio.run(
            handle_call_tool(
                "data_list", {"output_dir": "data", "cwd": str(tmp_path)}
            )
        )

        assert not result.isError
        assert result.structuredContent == {"packages": []}


class TestRegistryAccessor:
    def test_uninitialized_raises(self):
        set_registry(None)
        with pytest.raises(RuntimeError, match="not initialized"):
            get_registry()
