"""
Unit Tests for Tool Dispatcher

Tests tool-name resolution, instance selection, argument filtering and
error capture.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from core.dispatcher import ToolDispatcher
from services.integration_service import IntegrationRegistry
from tests.conftest import FakeClientFactory, mark_connected
from tools import ToolSpec


def make_spec(name, handler, integration_type="github", required=None, properties=None):
    return ToolSpec(
        name=name,
        description=f"{name} test tool",
        parameters={
            "type": "object",
            "properties": properties if properties is not None else {"owner": {"type": "string"}, "repo": {"type": "string"}},
            "required": required or [],
        },
        integration_type=integration_type,
        handler=handler,
    )


class TestToolDispatcher:
    """Test ToolDispatcher class."""

    @pytest.mark.asyncio
    async def test_unknown_tool(self, registry):
        """Test a name outside the tool table is reported."""
        dispatcher = ToolDispatcher(registry)

        result = await dispatcher.dispatch("launch_rockets", {})

        assert result == {"success": False, "error": "Unknown tool launch_rockets"}

    @pytest.mark.asyncio
    async def test_no_server_connected(self, registry, client_factory):
        """Test a known tool whose type is not connected creates no client."""
        await registry.add({"type": "github", "name": "gh", "credential": "x"})
        dispatcher = ToolDispatcher(registry)

        result = await dispatcher.dispatch("search_github_repos", {"query": "dijkstra"})

        assert result == {"success": False, "error": "No github server connected"}
        assert client_factory.created == []

    @pytest.mark.asyncio
    async def test_builtin_runs_without_registry(self, registry):
        """Test built-in tools run with nothing connected."""
        dispatcher = ToolDispatcher(registry)

        result = await dispatcher.dispatch("material_generator", {"topic": "Photosynthesis"})

        assert result["success"] is True
        assert result["type"] == "flashcards"

    @pytest.mark.asyncio
    async def test_handler_receives_bound_client(self, registry, client_factory):
        """Test the selected instance's client is passed and closed afterwards."""
        seen = {}

        async def handler(client, owner=None, repo=None):
            seen["client"] = client
            return {"success": True, "repo": f"{owner}/{repo}"}

        instance = mark_connected(await registry.add({"type": "github", "name": "gh", "credential": "tok"}))
        dispatcher = ToolDispatcher(registry, tool_table={"get_repo": make_spec("get_repo", handler)})

        result = await dispatcher.dispatch("get_repo", {"owner": "octo", "repo": "hello"})

        assert result == {"success": True, "repo": "octo/hello"}
        assert seen["client"].credential == instance.credential
        assert seen["client"].closed is True

    @pytest.mark.asyncio
    async def test_arguments_filtered(self, registry):
        """Test unknown arguments are dropped and missing required ones become None."""
        received = {}

        async def handler(client, **kwargs):
            received.update(kwargs)
            return {"success": True}

        mark_connected(await registry.add({"type": "github", "name": "gh", "credential": "tok"}))
        spec = make_spec("get_repo", handler, required=["owner", "repo"])
        dispatcher = ToolDispatcher(registry, tool_table={"get_repo": spec})

        await dispatcher.dispatch("get_repo", {"owner": "octo", "color": "blue"})

        assert received == {"owner": "octo", "repo": None}

    def test_filter_arguments_non_dict(self):
        """Test non-object arguments are treated as empty."""
        async def handler(client, **kwargs):
            return {}

        spec = make_spec("get_repo", handler, required=["owner"])

        assert ToolDispatcher.filter_arguments(spec, "oops") == {"owner": None}

    @pytest.mark.asyncio
    async def test_handler_exception_captured(self, registry):
        """Test a raising handler becomes an error result."""
        async def handler(client, **kwargs):
            raise RuntimeError("rate limited")

        mark_connected(await registry.add({"type": "github", "name": "gh", "credential": "tok"}))
        dispatcher = ToolDispatcher(registry, tool_table={"get_repo": make_spec("get_repo", handler)})

        result = await dispatcher.dispatch("get_repo", {})

        assert result == {"success": False, "error": "rate limited"}

    @pytest.mark.asyncio
    async def test_timeout(self, registry):
        """Test a slow handler is cut off at the dispatch timeout."""
        async def handler(**kwargs):
            await asyncio.sleep(5)
            return {"success": True}

        spec = make_spec("slow", handler, integration_type=None, properties={})
        dispatcher = ToolDispatcher(registry, tool_table={"slow": spec}, timeout=0.01)

        result = await dispatcher.dispatch("slow", {})

        assert result["success"] is False
        assert "timed out" in result["error"]

    @pytest.mark.asyncio
    async def test_error_result_passed_through(self, registry):
        """Test a handler's own error payload is returned unchanged."""
        async def handler(**kwargs):
            return {"success": False, "error": "topic is required"}

        spec = make_spec("gen", handler, integration_type=None, properties={})
        dispatcher = ToolDispatcher(registry, tool_table={"gen": spec})

        assert await dispatcher.dispatch("gen", None) == {"success": False, "error": "topic is required"}

    @pytest.mark.asyncio
    async def test_non_dict_result_wrapped(self, registry):
        """Test plain return values are wrapped as a success payload."""
        async def handler(**kwargs):
            return ["a", "b"]

        spec = make_spec("lst", handler, integration_type=None, properties={})
        dispatcher = ToolDispatcher(registry, tool_table={"lst": spec})

        assert await dispatcher.dispatch("lst", {}) == {"success": True, "result": ["a", "b"]}

    @pytest.mark.asyncio
    async def test_create_repository_through_table(self):
        """Test github_create_repo makes one client call and returns its result."""
        create_repository = AsyncMock(return_value={
            "name": "demo",
            "full_name": "octo/demo",
            "html_url": "https://github.com/octo/demo",
            "default_branch": "main",
        })
        registry = IntegrationRegistry(client_factory=FakeClientFactory(methods={"create_repository": create_repository}))
        mark_connected(await registry.add({"type": "github", "name": "gh", "credential": "tok"}))
        dispatcher = ToolDispatcher(registry)

        result = await dispatcher.dispatch("github_create_repo", {"name": "demo"})

        create_repository.assert_awaited_once_with("demo", description="", private=False, gitignore_template=None)
        assert result["success"] is True
        assert result["repo"]["full_name"] == "octo/demo"
        assert result["repo"]["html_url"] == "https://github.com/octo/demo"
