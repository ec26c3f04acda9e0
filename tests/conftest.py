"""
Shared fixtures: an in-memory client factory so registry and dispatcher
tests never touch the network.
"""

import pytest

from services.integration_service import IntegrationRegistry, IntegrationStatus


class FakeClient:
    """Stands in for an API client; records whether it was closed."""

    def __init__(self, integration_type, credential=None, api_url=None, config=None, check_result=None):
        self.integration_type = integration_type
        self.credential = credential
        self.api_url = api_url
        self.config = config or {}
        self.check_result = check_result or {"success": True, "message": "ok", "data": {}}
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.closed = True

    async def check_connection(self):
        if isinstance(self.check_result, Exception):
            raise self.check_result
        return self.check_result


class FakeClientFactory:
    """
    Client factory that records every client it builds.

    `methods` maps client method names to mocks attached to each client.
    """

    def __init__(self, check_result=None, methods=None):
        self.check_result = check_result
        self.methods = methods or {}
        self.created = []

    def __call__(self, integration_type, credential=None, api_url=None, config=None):
        client = FakeClient(integration_type, credential, api_url, config, check_result=self.check_result)
        for name, method in self.methods.items():
            setattr(client, name, method)
        self.created.append(client)
        return client


@pytest.fixture
def client_factory():
    return FakeClientFactory()


@pytest.fixture
def registry(client_factory):
    return IntegrationRegistry(client_factory=client_factory, tie_break="first", test_timeout=1)


def mark_connected(instance):
    """Flip an instance to connected without a connection test."""
    instance.status = IntegrationStatus.CONNECTED
    return instance
