"""
Unit Tests for Integration Service

Tests the integration registry: validation, CRUD, connection testing,
catalog assembly and instance selection.
"""

import asyncio
import re
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from core.errors import IntegrationNotFoundError, IntegrationValidationError
from services import integration_service
from services.integration_service import (
    DEFAULT_CANVAS_ID,
    IntegrationInstance,
    IntegrationRegistry,
    IntegrationStatus,
    IntegrationType,
    TieBreak,
    seed_from_config,
    validate_config,
)
from tests.conftest import FakeClientFactory, mark_connected
from tools import get_tool_descriptors


def tool_names(catalog):
    return [tool["name"] for tool in catalog]


class TestValidateConfig:
    """Test validate_config function."""

    def test_valid_github_config(self):
        """Test a credentialed config is normalized."""
        fields = validate_config({"type": "github", "name": " My GitHub ", "apiKey": "ghp_x"})

        assert fields["type"] == IntegrationType.GITHUB
        assert fields["name"] == "My GitHub"
        assert fields["credential"] == "ghp_x"
        assert fields["config"] == {}

    def test_unknown_type(self):
        """Test unknown types are rejected."""
        with pytest.raises(IntegrationValidationError, match="Unknown integration type"):
            validate_config({"type": "myspace", "name": "x", "credential": "y"})

    def test_missing_name(self):
        """Test a blank name is rejected."""
        with pytest.raises(IntegrationValidationError, match="name is required"):
            validate_config({"type": "github", "name": "  ", "credential": "y"})

    def test_missing_credential(self):
        """Test credentialed types need a credential."""
        with pytest.raises(IntegrationValidationError, match="credential is required"):
            validate_config({"type": "notion", "name": "Notes"})

    def test_custom_requires_url(self):
        """Test custom servers need an API URL but no credential."""
        with pytest.raises(IntegrationValidationError, match="API URL required"):
            validate_config({"type": "custom", "name": "Lab server"})

        fields = validate_config({"type": "custom", "name": "Lab server", "apiUrl": "http://lab.local"})
        assert fields["api_url"] == "http://lab.local"
        assert fields["credential"] is None


class TestRegistryCrud:
    """Test add, get, update and delete."""

    @pytest.mark.asyncio
    async def test_add_creates_disconnected_instance(self, registry, client_factory):
        """Test add() stores a disconnected instance without any network call."""
        instance = await registry.add({"type": "slack", "name": "Study group", "credential": "xoxb"})

        assert re.fullmatch(r"mcp_\d+_[a-z0-9]{9}", instance.id)
        assert instance.status == IntegrationStatus.DISCONNECTED
        assert registry.get(instance.id) is instance
        assert client_factory.created == []

    @pytest.mark.asyncio
    async def test_add_invalid_config(self, registry):
        """Test add() propagates validation errors and stores nothing."""
        with pytest.raises(IntegrationValidationError):
            await registry.add({"type": "github", "name": "No token"})

        assert registry.list() == []

    @pytest.mark.asyncio
    async def test_concurrent_adds_get_distinct_ids(self, registry):
        """Test parallel adds all land in the registry."""
        configs = [{"type": "github", "name": f"gh{i}", "credential": "t"} for i in range(5)]

        instances = await asyncio.gather(*[registry.add(c) for c in configs])

        assert len({i.id for i in instances}) == 5
        assert len(registry.list()) == 5

    @pytest.mark.asyncio
    async def test_update_merges_fields(self, registry):
        """Test update() merges config key-wise and keeps unspecified fields."""
        instance = await registry.add({
            "type": "custom",
            "name": "Lab",
            "api_url": "http://lab.local",
            "config": {"healthEndpoint": "/ping", "region": "eu"},
        })
        before = instance.updated_at

        updated = await registry.update(instance.id, {"name": "Lab v2", "config": {"region": "us"}})

        assert updated.name == "Lab v2"
        assert updated.api_url == "http://lab.local"
        assert updated.config == {"healthEndpoint": "/ping", "region": "us"}
        assert updated.updated_at >= before

    @pytest.mark.asyncio
    async def test_update_keeps_status(self, registry):
        """Test update() does not touch the connection status."""
        instance = mark_connected(await registry.add({"type": "github", "name": "gh", "credential": "a"}))

        await registry.update(instance.id, {"credential": "b"})

        assert instance.credential == "b"
        assert instance.status == IntegrationStatus.CONNECTED

    @pytest.mark.asyncio
    async def test_update_unknown_id(self, registry):
        """Test update() on a missing id raises."""
        with pytest.raises(IntegrationNotFoundError, match="Server nope not found"):
            await registry.update("nope", {"name": "x"})

    @pytest.mark.asyncio
    async def test_delete(self, registry):
        """Test delete() removes the instance."""
        instance = await registry.add({"type": "github", "name": "gh", "credential": "a"})

        result = await registry.delete(instance.id)

        assert result == {"success": True, "message": f"Server {instance.id} deleted"}
        assert registry.get(instance.id) is None

        with pytest.raises(IntegrationNotFoundError):
            await registry.delete(instance.id)

    @pytest.mark.asyncio
    async def test_to_dict_hides_credential(self, registry):
        """Test the public view never carries the credential."""
        instance = await registry.add({"type": "github", "name": "gh", "credential": "secret"})

        data = instance.to_dict()

        assert "secret" not in str(data)
        assert data["has_credential"] is True
        assert data["type"] == "github"
        assert data["status"] == "disconnected"


class TestConnectionTesting:
    """Test test_connection and test_all."""

    @pytest.mark.asyncio
    async def test_success_marks_connected(self, registry, client_factory):
        """Test a passing check sets connected and last_sync."""
        instance = await registry.add({"type": "github", "name": "gh", "credential": "tok"})

        result = await registry.test_connection(instance.id)

        assert result["success"] is True
        assert instance.status == IntegrationStatus.CONNECTED
        assert instance.last_sync is not None
        assert client_factory.created[0].credential == "tok"
        assert client_factory.created[0].closed is True

    @pytest.mark.asyncio
    async def test_failure_marks_error(self):
        """Test a failing check sets error and returns the reason."""
        factory = FakeClientFactory(check_result={"success": False, "error": "GitHub API error: 401 Unauthorized"})
        registry = IntegrationRegistry(client_factory=factory)
        instance = await registry.add({"type": "github", "name": "gh", "credential": "bad"})

        result = await registry.test_connection(instance.id)

        assert result == {"success": False, "error": "GitHub API error: 401 Unauthorized"}
        assert instance.status == IntegrationStatus.ERROR
        assert instance.last_sync is None

    @pytest.mark.asyncio
    async def test_exception_is_captured(self):
        """Test a raising client is reported, not propagated."""
        factory = FakeClientFactory(check_result=RuntimeError("boom"))
        registry = IntegrationRegistry(client_factory=factory)
        instance = await registry.add({"type": "notion", "name": "n", "credential": "x"})

        result = await registry.test_connection(instance.id)

        assert result["success"] is False
        assert "boom" in result["error"]
        assert instance.status == IntegrationStatus.ERROR

    @pytest.mark.asyncio
    async def test_error_recovers_on_retest(self, registry, client_factory):
        """Test an errored instance can reconnect."""
        instance = await registry.add({"type": "github", "name": "gh", "credential": "x"})
        instance.status = IntegrationStatus.ERROR

        await registry.test_connection(instance.id)

        assert instance.status == IntegrationStatus.CONNECTED

    @pytest.mark.asyncio
    async def test_unknown_id(self, registry):
        """Test testing a missing id raises."""
        with pytest.raises(IntegrationNotFoundError):
            await registry.test_connection("missing")

    @pytest.mark.asyncio
    async def test_unknown_ids_leave_no_lock(self, registry):
        """Test failed lookups do not leave per-id locks behind."""
        for bogus in ("a", "b", "c"):
            with pytest.raises(IntegrationNotFoundError):
                await registry.update(bogus, {"name": "x"})
            with pytest.raises(IntegrationNotFoundError):
                await registry.test_connection(bogus)

        assert registry._locks == {}

    @pytest.mark.asyncio
    async def test_test_all(self, registry):
        """Test every instance is tested and reported."""
        a = await registry.add({"type": "github", "name": "gh", "credential": "x"})
        b = await registry.add({"type": "slack", "name": "sl", "credential": "y"})

        results = await registry.test_all()

        assert [r["id"] for r in results] == [a.id, b.id]
        assert all(r["success"] for r in results)
        assert registry.stats()["connected"] == 2


class TestCatalog:
    """Test catalog assembly and instance selection."""

    @pytest.mark.asyncio
    async def test_empty_when_nothing_connected(self, registry):
        """Test disconnected instances contribute no tools."""
        await registry.add({"type": "github", "name": "gh", "credential": "x"})

        assert registry.get_tool_catalog() == []

    @pytest.mark.asyncio
    async def test_grouped_by_type_in_enum_order(self, registry):
        """Test descriptors are grouped per type in type order."""
        mark_connected(await registry.add({"type": "slack", "name": "sl", "credential": "y"}))
        mark_connected(await registry.add({"type": "canvas", "name": "cv", "credential": "z"}))

        catalog = registry.get_tool_catalog()

        expected = tool_names(get_tool_descriptors("canvas")) + tool_names(get_tool_descriptors("slack"))
        assert tool_names(catalog) == expected

    @pytest.mark.asyncio
    async def test_same_type_contributes_once(self, registry):
        """Test two connected instances of one type do not duplicate tools."""
        mark_connected(await registry.add({"type": "github", "name": "one", "credential": "a"}))
        mark_connected(await registry.add({"type": "github", "name": "two", "credential": "b"}))

        names = tool_names(registry.get_tool_catalog())

        assert len(names) == len(set(names))
        assert names == tool_names(get_tool_descriptors("github"))

    @pytest.mark.asyncio
    async def test_custom_contributes_no_tools(self, registry):
        """Test custom servers are tracked but add nothing to the catalog."""
        mark_connected(await registry.add({"type": "custom", "name": "lab", "api_url": "http://lab"}))

        assert registry.get_tool_catalog() == []
        assert registry.connected_types() == [IntegrationType.CUSTOM]

    @pytest.mark.asyncio
    async def test_failed_retest_drops_tools(self, client_factory):
        """Test a connected instance that fails a retest leaves the catalog."""
        registry = IntegrationRegistry(client_factory=client_factory)
        instance = await registry.add({"type": "github", "name": "gh", "credential": "tok"})
        await registry.test_connection(instance.id)
        assert tool_names(registry.get_tool_catalog()) == tool_names(get_tool_descriptors("github"))

        client_factory.check_result = {"success": False, "error": "GitHub API error: 401 Unauthorized"}
        await registry.test_connection(instance.id)

        assert instance.status == IntegrationStatus.ERROR
        assert registry.get_tool_catalog() == []
        assert registry.select_instance("github") is None

    @pytest.mark.asyncio
    async def test_disconnected_instance_drops_tools(self, registry):
        """Test only the type that went down loses its tools."""
        slack = mark_connected(await registry.add({"type": "slack", "name": "sl", "credential": "y"}))
        mark_connected(await registry.add({"type": "canvas", "name": "cv", "credential": "z"}))

        slack.status = IntegrationStatus.DISCONNECTED

        assert tool_names(registry.get_tool_catalog()) == tool_names(get_tool_descriptors("canvas"))

    @pytest.mark.asyncio
    async def test_select_first(self, registry):
        """Test the first-inserted connected instance wins by default."""
        first = mark_connected(await registry.add({"type": "github", "name": "one", "credential": "a"}))
        mark_connected(await registry.add({"type": "github", "name": "two", "credential": "b"}))

        assert registry.select_instance("github") is first

    @pytest.mark.asyncio
    async def test_select_recent(self, client_factory):
        """Test the recent policy picks the latest last_sync."""
        registry = IntegrationRegistry(client_factory=client_factory, tie_break="recent")
        now = datetime.now(timezone.utc)
        old = mark_connected(await registry.add({"type": "github", "name": "old", "credential": "a"}))
        new = mark_connected(await registry.add({"type": "github", "name": "new", "credential": "b"}))
        old.last_sync = now
        new.last_sync = now - timedelta(minutes=5)

        assert registry.tie_break == TieBreak.RECENT
        assert registry.select_instance(IntegrationType.GITHUB) is old

    @pytest.mark.asyncio
    async def test_select_skips_disconnected(self, registry):
        """Test only connected instances are eligible."""
        await registry.add({"type": "github", "name": "down", "credential": "a"})

        assert registry.select_instance("github") is None

    def test_unknown_tie_break_falls_back(self, client_factory):
        """Test an unknown policy falls back to first."""
        registry = IntegrationRegistry(client_factory=client_factory, tie_break="random")

        assert registry.tie_break == TieBreak.FIRST

    @pytest.mark.asyncio
    async def test_stats(self, registry):
        """Test status and type counts."""
        mark_connected(await registry.add({"type": "github", "name": "gh", "credential": "a"}))
        errored = await registry.add({"type": "slack", "name": "sl", "credential": "b"})
        errored.status = IntegrationStatus.ERROR
        await registry.add({"type": "slack", "name": "sl2", "credential": "c"})

        stats = registry.stats()

        assert stats["total"] == 3
        assert stats["connected"] == 1
        assert stats["error"] == 1
        assert stats["disconnected"] == 1
        assert stats["by_type"]["slack"] == 2
        assert stats["by_type"]["canvas"] == 0


class TestSeeding:
    """Test the default Canvas seeding."""

    def test_seed_with_token(self, registry):
        """Test the Canvas token seeds canvas_default, disconnected."""
        with patch.object(integration_service, "CANVAS_API_TOKEN", "canvas-token"):
            seed_from_config(registry)

        instance = registry.get(DEFAULT_CANVAS_ID)
        assert isinstance(instance, IntegrationInstance)
        assert instance.type == IntegrationType.CANVAS
        assert instance.credential == "canvas-token"
        assert instance.status == IntegrationStatus.DISCONNECTED

    def test_no_seed_without_token(self, registry):
        """Test nothing is seeded without a token."""
        with patch.object(integration_service, "CANVAS_API_TOKEN", None):
            seed_from_config(registry)

        assert registry.list() == []

    def test_process_wide_registry_is_shared(self):
        """Test get_integration_registry returns one registry until reset."""
        integration_service.reset_integration_registry()
        try:
            assert integration_service.get_integration_registry() is integration_service.get_integration_registry()
        finally:
            integration_service.reset_integration_registry()
