"""Tests for tool discovery and orchestration."""

import pytest

from task2model.config import Settings
from task2model.core.context import AppContext
from task2model.core.orchestrator import ToolOrchestrator
from task2model.core.registry import ToolRegistry
from task2model.tools import SyncCatalogTool
from tests.fixtures import FIXED_NOW, FakeOpenRouterClient, make_record


@pytest.fixture
def context(memory_store):
    client = FakeOpenRouterClient(records=[make_record("a/b")])
    return AppContext.create(Settings(), client=client, store=memory_store, now=lambda: FIXED_NOW)


@pytest.fixture
def registry(context):
    registry = ToolRegistry(context)
    registry.discover_tools()
    return registry


class TestToolRegistry:
    """Tests for ToolRegistry."""

    def test_discovers_all_tools(self, registry):
        assert sorted(registry.list_tools()) == ["get_model_profile", "sync_catalog", "task2model"]

    def test_tools_share_context(self, registry, context):
        assert registry.get_tool("sync_catalog").context is context

    def test_duplicate_registration_ignored(self, registry):
        first = registry.get_tool("sync_catalog")

        registry.register(SyncCatalogTool)

        assert registry.get_tool("sync_catalog") is first
        assert len(registry.list_tools()) == 3

    def test_unknown_tool(self, registry):
        assert registry.get_tool("ask_gemini") is None

    def test_mcp_definitions(self, registry):
        definitions = {d["name"]: d for d in registry.get_mcp_tool_definitions()}

        assert set(definitions) == {"get_model_profile", "sync_catalog", "task2model"}
        for definition in definitions.values():
            assert definition["description"]
            assert definition["inputSchema"]["type"] == "object"


class TestToolOrchestrator:
    """Tests for ToolOrchestrator."""

    @pytest.mark.asyncio
    async def test_execute_tool(self, registry):
        orchestrator = ToolOrchestrator(registry)

        output = await orchestrator.execute_tool("sync_catalog", {})

        assert output.success is True
        assert output.result["model_count"] == 1

    @pytest.mark.asyncio
    async def test_unknown_tool(self, registry):
        orchestrator = ToolOrchestrator(registry)

        output = await orchestrator.execute_tool("nope")

        assert output.success is False
        assert output.error["code"] == "INVALID_INPUT"
        assert output.tool_name == "nope"

    @pytest.mark.asyncio
    async def test_parameters_default_to_empty(self, registry):
        orchestrator = ToolOrchestrator(registry)

        output = await orchestrator.execute_tool("sync_catalog")

        assert output.success is True
