"""
Slack Tools

Function calling tools over a connected Slack workspace: search class
channels, list channels and post messages on the student's behalf.
"""

import logging
from typing import Any, Dict, Optional

from clients import SlackClient, has_error
from tools.base import build_specs, error_result

logger = logging.getLogger(__name__)

INTEGRATION_TYPE = "slack"


TOOL_DEFINITIONS = [
    {
        "name": "search_slack_messages",
        "description": "Search Slack messages (e.g. announcements or classmates' questions about an assignment).",
        "parameters": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Slack search query"},
                "limit": {"type": "integer", "description": "Maximum number of messages (default 20)"},
            },
            "required": ["query"],
        },
    },
    {
        "name": "send_slack_message",
        "description": "Post a message to a Slack channel. Only use when the student explicitly asks to send something.",
        "parameters": {
            "type": "object",
            "properties": {
                "channel": {"type": "string", "description": "Channel ID or name (e.g. '#study-group')"},
                "text": {"type": "string", "description": "Message text"},
            },
            "required": ["channel", "text"],
        },
    },
    {
        "name": "list_slack_channels",
        "description": "List the public and private Slack channels the student can see.",
        "parameters": {
            "type": "object",
            "properties": {
                "limit": {"type": "integer", "description": "Maximum number of channels (default 100)"},
            },
        },
    },
]


async def search_slack_messages(client: SlackClient, query: Optional[str], limit: Optional[int] = 20) -> Dict[str, Any]:
    if not query:
        return error_result("query is required")

    logger.info(f"🔍 Searching Slack for '{query}'")

    data = await client.search_messages(query, limit=int(limit or 20))
    if has_error(data):
        return error_result(data["error"])

    matches = (data.get("messages") or {}).get("matches") or []
    messages = [
        {
            "text": match.get("text"),
            "user": match.get("username") or match.get("user"),
            "channel": (match.get("channel") or {}).get("name"),
            "ts": match.get("ts"),
            "permalink": match.get("permalink"),
        }
        for match in matches
    ]
    return {"success": True, "count": len(messages), "messages": messages}


async def send_slack_message(client: SlackClient, channel: Optional[str], text: Optional[str]) -> Dict[str, Any]:
    if not channel or not text:
        return error_result("channel and text are required")

    logger.info(f"💬 Sending Slack message to {channel}")

    data = await client.send_message(channel, text)
    if has_error(data):
        return error_result(data["error"])

    return {
        "success": True,
        "message": "Message sent",
        "channel": data.get("channel"),
        "ts": data.get("ts"),
    }


async def list_slack_channels(client: SlackClient, limit: Optional[int] = 100) -> Dict[str, Any]:
    data = await client.list_channels(limit=int(limit or 100))
    if has_error(data):
        return error_result(data["error"])

    channels = [
        {
            "id": channel.get("id"),
            "name": channel.get("name"),
            "is_private": channel.get("is_private", False),
            "num_members": channel.get("num_members"),
            "topic": (channel.get("topic") or {}).get("value"),
        }
        for channel in data.get("channels") or []
    ]
    return {"success": True, "count": len(channels), "channels": channels}


HANDLERS = {
    "search_slack_messages": search_slack_messages,
    "send_slack_message": send_slack_message,
    "list_slack_channels": list_slack_channels,
}

TOOL_SPECS = build_specs(TOOL_DEFINITIONS, HANDLERS, INTEGRATION_TYPE)
