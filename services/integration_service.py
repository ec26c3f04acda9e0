"""
Integration Service - Integration Registry

Keeps the student's configured integrations (Canvas, Google Drive, GitHub,
Notion, Slack, custom servers) in memory, tests their connectivity and
assembles the tool catalog offered to the model from whatever is
currently connected.

The registry is process-wide shared state. Mutations of one instance
(update, delete, test) are serialized by a per-id asyncio.Lock; adding
takes a registry-wide lock only while inserting.
"""

import asyncio
import logging
import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from config import CANVAS_API_TOKEN, CANVAS_API_URL, INTEGRATION_TIE_BREAK, TOOL_TIMEOUT
from clients import create_client
from core.errors import IntegrationNotFoundError, IntegrationValidationError
from tools import get_tool_descriptors

logger = logging.getLogger(__name__)

DEFAULT_CANVAS_ID = "canvas_default"


# ============================================================================
# DATA STRUCTURES
# ============================================================================

class IntegrationType(str, Enum):
    """Supported integration types, in catalog order."""
    CANVAS = "canvas"
    GOOGLE_DRIVE = "google_drive"
    GITHUB = "github"
    NOTION = "notion"
    SLACK = "slack"
    CUSTOM = "custom"


class IntegrationStatus(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"


class TieBreak(str, Enum):
    """Which connected instance serves a type when several are connected."""
    FIRST = "first"      # registry insertion order
    RECENT = "recent"    # most recently connected


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"mcp_{int(time.time() * 1000)}_{suffix}"


@dataclass
class IntegrationInstance:
    """
    One configured integration.

    Attributes:
        id: Registry key
        type: Integration type
        name: Display name
        credential: API token (never exposed by to_dict)
        api_url: Endpoint override (required for custom servers)
        config: Extra per-type settings (e.g. healthEndpoint)
        status: Changes only through test_connection
        last_sync: Time of the last successful connection test
    """
    id: str
    type: IntegrationType
    name: str
    credential: Optional[str] = None
    api_url: Optional[str] = None
    config: Dict[str, Any] = field(default_factory=dict)
    status: IntegrationStatus = IntegrationStatus.DISCONNECTED
    last_sync: Optional[datetime] = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    @property
    def is_connected(self) -> bool:
        return self.status == IntegrationStatus.CONNECTED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "name": self.name,
            "api_url": self.api_url,
            "status": self.status.value,
            "last_sync": self.last_sync.isoformat() if self.last_sync else None,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "has_credential": bool(self.credential),
        }


# ============================================================================
# VALIDATION
# ============================================================================

def _first_present(config: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if config.get(key) is not None:
            return config[key]
    return None


def parse_integration_type(value: Any) -> IntegrationType:
    try:
        return IntegrationType(getattr(value, "value", value))
    except ValueError:
        raise IntegrationValidationError(f"Unknown integration type: {value}") from None


def validate_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate an add() config and normalize it to instance fields.

    Accepts snake_case keys as well as apiKey / apiUrl.

    Raises:
        IntegrationValidationError: Unknown type, missing name, missing
            credential for a credentialed type, or missing api_url for custom
    """
    if not isinstance(config, dict):
        raise IntegrationValidationError("Integration config must be an object")

    integration_type = parse_integration_type(config.get("type"))

    name = config.get("name")
    if not isinstance(name, str) or not name.strip():
        raise IntegrationValidationError("Integration name is required")

    credential = _first_present(config, "credential", "api_key", "apiKey")
    api_url = _first_present(config, "api_url", "apiUrl")

    if integration_type == IntegrationType.CUSTOM:
        if not api_url:
            raise IntegrationValidationError("API URL required for custom server")
    elif not credential:
        raise IntegrationValidationError(f"A credential is required for {integration_type.value} integrations")

    extra = config.get("config") or {}
    if not isinstance(extra, dict):
        raise IntegrationValidationError("config must be an object")

    return {
        "type": integration_type,
        "name": name.strip(),
        "credential": credential,
        "api_url": api_url,
        "config": dict(extra),
    }


# ============================================================================
# REGISTRY
# ============================================================================

class IntegrationRegistry:
    """
    In-memory registry of integration instances.

    Usage:
        registry = IntegrationRegistry()
        instance = await registry.add({"type": "github", "name": "GitHub", "credential": "ghp_..."})
        await registry.test_connection(instance.id)
        catalog = registry.get_tool_catalog()
    """

    def __init__(
        self,
        client_factory: Callable[..., Any] = create_client,
        tie_break: str = INTEGRATION_TIE_BREAK,
        test_timeout: float = TOOL_TIMEOUT,
    ):
        self._instances: Dict[str, IntegrationInstance] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._add_lock = asyncio.Lock()
        self.client_factory = client_factory
        self.test_timeout = test_timeout
        try:
            self.tie_break = TieBreak(tie_break)
        except ValueError:
            logger.warning(f"⚠️  Unknown tie-break policy '{tie_break}', using 'first'")
            self.tie_break = TieBreak.FIRST

    def _lock_for(self, integration_id: str) -> asyncio.Lock:
        """Per-instance lock; unknown ids raise before a lock is created."""
        self.get_or_raise(integration_id)
        lock = self._locks.get(integration_id)
        if lock is None:
            lock = self._locks[integration_id] = asyncio.Lock()
        return lock

    # ------------------------------------------------------------------ #
    # CRUD
    # ------------------------------------------------------------------ #

    def seed(self, instance: IntegrationInstance) -> IntegrationInstance:
        """Insert a preconfigured instance (startup seeding, no validation round-trip)."""
        self._instances[instance.id] = instance
        return instance

    async def add(self, config: Dict[str, Any]) -> IntegrationInstance:
        """
        Create a new, disconnected instance. No network traffic.

        Raises:
            IntegrationValidationError: If the config is rejected
        """
        fields = validate_config(config)

        async with self._add_lock:
            integration_id = _new_id()
            while integration_id in self._instances:
                integration_id = _new_id()
            instance = IntegrationInstance(id=integration_id, **fields)
            self._instances[integration_id] = instance

        logger.info(f"➕ Added {instance.type.value} integration '{instance.name}' ({instance.id})")
        return instance

    def get(self, integration_id: str) -> Optional[IntegrationInstance]:
        return self._instances.get(integration_id)

    def get_or_raise(self, integration_id: str) -> IntegrationInstance:
        instance = self._instances.get(integration_id)
        if instance is None:
            raise IntegrationNotFoundError(integration_id)
        return instance

    def list(self) -> List[IntegrationInstance]:
        return list(self._instances.values())

    def list_by_type(self, integration_type: Any) -> List[IntegrationInstance]:
        integration_type = parse_integration_type(integration_type)
        return [i for i in self._instances.values() if i.type == integration_type]

    def list_connected(self, integration_type: Any = None) -> List[IntegrationInstance]:
        instances = self.list() if integration_type is None else self.list_by_type(integration_type)
        return [i for i in instances if i.is_connected]

    async def update(self, integration_id: str, fields: Dict[str, Any]) -> IntegrationInstance:
        """
        Merge name, credential, api_url and config into an instance.

        config is merged key-wise. Status is left alone: call
        test_connection to re-check.

        Raises:
            IntegrationNotFoundError: If the id is unknown
        """
        async with self._lock_for(integration_id):
            instance = self.get_or_raise(integration_id)

            name = fields.get("name")
            credential = _first_present(fields, "credential", "api_key", "apiKey")
            api_url = _first_present(fields, "api_url", "apiUrl")
            extra = fields.get("config")

            if name:
                instance.name = name
            if credential:
                instance.credential = credential
            if api_url:
                instance.api_url = api_url
            if isinstance(extra, dict):
                instance.config = {**instance.config, **extra}

            instance.updated_at = _now()

        logger.info(f"✏️  Updated integration {integration_id}")
        return instance

    async def delete(self, integration_id: str) -> Dict[str, Any]:
        """
        Remove an instance.

        Raises:
            IntegrationNotFoundError: If the id is unknown
        """
        async with self._lock_for(integration_id):
            self.get_or_raise(integration_id)
            del self._instances[integration_id]

        self._locks.pop(integration_id, None)
        logger.info(f"🗑️  Deleted integration {integration_id}")
        return {"success": True, "message": f"Server {integration_id} deleted"}

    # ------------------------------------------------------------------ #
    # Connection testing
    # ------------------------------------------------------------------ #

    def client_for(self, instance: IntegrationInstance):
        """Client bound to an instance's credential, endpoint and config."""
        return self.client_factory(
            instance.type.value,
            instance.credential,
            api_url=instance.api_url,
            config=instance.config,
        )

    async def test_connection(self, integration_id: str) -> Dict[str, Any]:
        """
        Run the type's connectivity check and record the outcome.

        Returns:
            {"success": True, "message": ..., "data": {...}} with status set to
            connected, or {"success": False, "error": ...} with status set to error

        Raises:
            IntegrationNotFoundError: If the id is unknown (the only exception)
        """
        async with self._lock_for(integration_id):
            instance = self.get_or_raise(integration_id)
            logger.info(f"🔌 Testing {instance.type.value} integration '{instance.name}'")

            try:
                client = self.client_for(instance)
                async with client:
                    result = await asyncio.wait_for(client.check_connection(), timeout=self.test_timeout)
            except asyncio.TimeoutError:
                result = {"success": False, "error": f"Connection test timed out after {self.test_timeout}s"}
            except Exception as e:
                logger.error(f"❌ Connection test for {integration_id} failed: {e}", exc_info=True)
                result = {"success": False, "error": str(e) or type(e).__name__}

            if result.get("success"):
                instance.status = IntegrationStatus.CONNECTED
                instance.last_sync = _now()
                logger.info(f"✅ {instance.name} connected")
            else:
                instance.status = IntegrationStatus.ERROR
                logger.warning(f"⚠️  {instance.name} connection failed: {result.get('error')}")

        return result

    async def test_all(self) -> List[Dict[str, Any]]:
        """Test every instance, one after another."""
        results = []
        for instance in self.list():
            if instance.id not in self._instances:
                continue
            result = await self.test_connection(instance.id)
            results.append({
                "id": instance.id,
                "name": instance.name,
                "type": instance.type.value,
                **result,
            })
        return results

    # ------------------------------------------------------------------ #
    # Catalog & selection
    # ------------------------------------------------------------------ #

    def connected_types(self) -> List[IntegrationType]:
        """Types with at least one connected instance, in enum order."""
        connected = {i.type for i in self._instances.values() if i.is_connected}
        return [t for t in IntegrationType if t in connected]

    def get_tool_catalog(self) -> List[Dict[str, Any]]:
        """
        Tool descriptors for every connected type, grouped by type.

        Each type's descriptor set is included once however many instances
        of that type are connected; the dispatcher picks the instance.
        """
        catalog: List[Dict[str, Any]] = []
        for integration_type in self.connected_types():
            catalog.extend(get_tool_descriptors(integration_type.value))
        return catalog

    def select_instance(self, integration_type: Any) -> Optional[IntegrationInstance]:
        """The connected instance that serves a type, per the tie-break policy."""
        connected = self.list_connected(integration_type)
        if not connected:
            return None
        if self.tie_break == TieBreak.RECENT:
            floor = datetime.min.replace(tzinfo=timezone.utc)
            return max(connected, key=lambda i: i.last_sync or floor)
        return connected[0]

    def stats(self) -> Dict[str, Any]:
        instances = self.list()
        return {
            "total": len(instances),
            "connected": sum(1 for i in instances if i.status == IntegrationStatus.CONNECTED),
            "disconnected": sum(1 for i in instances if i.status == IntegrationStatus.DISCONNECTED),
            "error": sum(1 for i in instances if i.status == IntegrationStatus.ERROR),
            "by_type": {t.value: sum(1 for i in instances if i.type == t) for t in IntegrationType},
        }


# ============================================================================
# PROCESS-WIDE REGISTRY
# ============================================================================

_registry: Optional[IntegrationRegistry] = None


def seed_from_config(registry: IntegrationRegistry) -> None:
    """Seed the default Canvas instance from CANVAS_API_TOKEN, if set."""
    if not CANVAS_API_TOKEN:
        logger.info("ℹ️  CANVAS_API_TOKEN not set - no default Canvas integration")
        return

    registry.seed(IntegrationInstance(
        id=DEFAULT_CANVAS_ID,
        type=IntegrationType.CANVAS,
        name="Canvas LMS",
        credential=CANVAS_API_TOKEN,
        api_url=CANVAS_API_URL,
    ))
    logger.info(f"✅ Seeded {DEFAULT_CANVAS_ID} from environment")


def get_integration_registry() -> IntegrationRegistry:
    """Get (or lazily create) the process-wide registry."""
    global _registry
    if _registry is None:
        _registry = IntegrationRegistry()
        seed_from_config(_registry)
    return _registry


def reset_integration_registry() -> None:
    global _registry
    _registry = None
