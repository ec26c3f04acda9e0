"""
Base API Client

Shared async HTTP plumbing for every integration client. Each client is
bound to one integration instance (credential + endpoint) and owns a
pooled httpx.AsyncClient for its lifetime.

Requests never raise for HTTP or network problems: failures come back as
{"error": "<message>"} so tools can turn them into structured results.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from config import HTTP_TIMEOUT

logger = logging.getLogger(__name__)


def has_error(payload: Any) -> bool:
    """True when a client payload is an {"error": ...} result."""
    return isinstance(payload, dict) and "error" in payload


class BaseAPIClient:
    """
    Async REST client bound to a single credential and base URL.

    Subclasses set `service_name`, override `_headers` for their auth
    scheme and implement `check_connection`.

    Usage:
        async with CanvasClient(token, url) as client:
            courses = await client.get_courses()
    """

    service_name = "API"
    requires_credential = True

    def __init__(
        self,
        credential: Optional[str],
        base_url: str,
        timeout: float = HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.credential = credential
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()
        self._http_client = None

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.credential:
            headers["Authorization"] = f"Bearer {self.credential}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the pooled HTTP client for this integration."""
        if self._http_client is None or self._http_client.is_closed:
            kwargs: Dict[str, Any] = {
                "base_url": self.base_url,
                "headers": self._headers(),
                "timeout": self.timeout,
                "limits": httpx.Limits(max_connections=10, max_keepalive_connections=5),
            }
            if self._transport is not None:
                kwargs["transport"] = self._transport
            self._http_client = httpx.AsyncClient(**kwargs)
        return self._http_client

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    def _describe_error(self, response: httpx.Response) -> str:
        return f"{self.service_name} API error: {response.status_code} {response.reason_phrase}"

    async def _send(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ):
        """
        Issue a request and return the httpx.Response, or an error dict.

        None-valued params are dropped.
        """
        if self.requires_credential and not self.credential:
            return {"error": f"{self.service_name} credential not configured"}

        if params:
            params = {k: v for k, v in params.items() if v is not None}

        client = await self._get_client()
        try:
            response = await client.request(method, endpoint, params=params or None, json=json)
        except httpx.TimeoutException:
            logger.warning(f"⚠️  {self.service_name} {method} {endpoint} timed out")
            return {"error": f"{self.service_name} API timed out after {self.timeout}s"}
        except httpx.HTTPError as e:
            logger.warning(f"⚠️  {self.service_name} {method} {endpoint} failed: {e}")
            return {"error": f"{self.service_name} API request failed: {e}"}

        if response.is_error:
            logger.debug(f"{self.service_name} {method} {endpoint} -> {response.status_code}")
            return {"error": self._describe_error(response)}

        return response

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Issue a request and decode its JSON body (or return an error dict)."""
        response = await self._send(method, endpoint, params=params, json=json)
        if isinstance(response, dict):
            return response

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {"error": f"{self.service_name} API returned invalid JSON"}

    async def _get(self, endpoint: str, **params) -> Any:
        return await self._request("GET", endpoint, params=params)

    async def _post(self, endpoint: str, body: Optional[Dict[str, Any]] = None) -> Any:
        return await self._request("POST", endpoint, json=body or {})

    # ------------------------------------------------------------------ #
    # Connection check
    # ------------------------------------------------------------------ #

    async def check_connection(self) -> Dict[str, Any]:
        """
        Lightweight authenticated read against the service.

        Returns:
            {"success": True, "message": str, "data": {...}} or
            {"success": False, "error": str}
        """
        raise NotImplementedError
