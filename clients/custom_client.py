"""
Custom Client - generic HTTP health check for user-supplied servers.

A custom integration contributes no tools; it is only ever connection-tested.
"""

from typing import Any, Dict, Optional

from config import DEFAULT_HEALTH_ENDPOINT
from clients.base import BaseAPIClient


class CustomClient(BaseAPIClient):
    """Health-check client for a custom server; the credential is optional."""

    service_name = "Custom server"
    requires_credential = False

    def __init__(
        self,
        credential: Optional[str],
        base_url: Optional[str] = None,
        health_endpoint: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(credential, base_url or "", **kwargs)
        self.health_endpoint = health_endpoint or DEFAULT_HEALTH_ENDPOINT

    def _describe_error(self, response) -> str:
        return f"Custom server returned {response.status_code}"

    async def check_connection(self) -> Dict[str, Any]:
        if not self.base_url:
            return {"success": False, "error": "API URL required for custom server"}

        response: Any = await self._send("GET", self.health_endpoint)
        if isinstance(response, dict):
            return {"success": False, "error": response["error"]}

        return {
            "success": True,
            "message": "Custom server connected successfully",
            "data": {"status_code": response.status_code},
        }
