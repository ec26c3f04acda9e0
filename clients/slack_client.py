"""
Slack Client - Slack Web API

Slack answers HTTP 200 for most failures and reports them in the body as
{"ok": false, "error": "..."}; those are treated as errors here.
"""

import logging
from typing import Any, Dict, Optional

from config import SLACK_API_URL
from clients.base import BaseAPIClient, has_error

logger = logging.getLogger(__name__)


class SlackClient(BaseAPIClient):
    """Slack client bound to one bot or user token."""

    service_name = "Slack"

    def __init__(self, credential: Optional[str], base_url: Optional[str] = None, **kwargs):
        super().__init__(credential, base_url or SLACK_API_URL, **kwargs)

    async def _request(self, method, endpoint, params=None, json=None) -> Any:
        data = await super()._request(method, endpoint, params=params, json=json)
        if has_error(data):
            return data
        if not isinstance(data, dict) or not data.get("ok"):
            error = data.get("error") if isinstance(data, dict) else None
            return {"error": f"Slack API error: {error or 'Unknown error'}"}
        return data

    async def search_messages(self, query: str, limit: int = 20) -> Any:
        return await self._get("/search.messages", query=query, count=limit)

    async def send_message(self, channel: str, text: str) -> Any:
        return await self._post("/chat.postMessage", {"channel": channel, "text": text})

    async def list_channels(self, limit: int = 100) -> Any:
        return await self._get(
            "/conversations.list", types="public_channel,private_channel", limit=limit
        )

    async def get_channel_history(self, channel_id: str, limit: int = 50) -> Any:
        return await self._get("/conversations.history", channel=channel_id, limit=limit)

    async def check_connection(self) -> Dict[str, Any]:
        data = await self._post("/auth.test")
        if has_error(data):
            return {"success": False, "error": data["error"]}

        return {
            "success": True,
            "message": "Slack connected successfully",
            "data": {"team": data.get("team"), "user": data.get("user")},
        }
