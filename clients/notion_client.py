"""
Notion Client - Notion public API

Page search, page metadata, page text (blocks flattened) and database
queries over one integration token.
"""

import logging
from typing import Any, Dict, List, Optional

from config import NOTION_API_URL, NOTION_VERSION
from clients.base import BaseAPIClient, has_error

logger = logging.getLogger(__name__)

_BLOCK_PREFIXES = {
    "heading_1": "# ",
    "heading_2": "## ",
    "heading_3": "### ",
    "bulleted_list_item": "- ",
    "numbered_list_item": "1. ",
    "to_do": "[ ] ",
    "quote": "> ",
}


def rich_text_to_plain(rich_text: List[Dict[str, Any]]) -> str:
    return "".join(part.get("plain_text", "") for part in rich_text or [])


def page_title(page: Dict[str, Any]) -> str:
    """Title of a Notion page, read from whichever property has type "title"."""
    for prop in (page.get("properties") or {}).values():
        if isinstance(prop, dict) and prop.get("type") == "title":
            return rich_text_to_plain(prop.get("title"))
    return ""


def blocks_to_text(blocks: List[Dict[str, Any]]) -> str:
    """Flatten a list of Notion blocks into markdown-ish plain text."""
    lines = []
    for block in blocks:
        block_type = block.get("type")
        payload = block.get(block_type) or {}
        text = rich_text_to_plain(payload.get("rich_text"))

        if block_type == "to_do" and payload.get("checked"):
            prefix = "[x] "
        elif block_type == "code":
            text = f"```\n{text}\n```"
            prefix = ""
        else:
            prefix = _BLOCK_PREFIXES.get(block_type, "")

        if text:
            lines.append(f"{prefix}{text}")
    return "\n".join(lines)


class NotionClient(BaseAPIClient):
    """Notion client bound to one integration token."""

    service_name = "Notion"

    def __init__(self, credential: Optional[str], base_url: Optional[str] = None, **kwargs):
        super().__init__(credential, base_url or NOTION_API_URL, **kwargs)

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        headers["Notion-Version"] = NOTION_VERSION
        return headers

    async def search_pages(self, query: str, limit: int = 10) -> Any:
        return await self._post("/search", {
            "query": query or "",
            "filter": {"property": "object", "value": "page"},
            "sort": {"direction": "descending", "timestamp": "last_edited_time"},
            "page_size": limit,
        })

    async def get_page(self, page_id: str) -> Any:
        return await self._get(f"/pages/{page_id}")

    async def get_page_content(self, page_id: str) -> Dict[str, Any]:
        """
        Text of a page's top-level blocks.

        Returns:
            {"text": str, "block_count": int} or an error dict
        """
        blocks = await self._get(f"/blocks/{page_id}/children", page_size=100)
        if has_error(blocks):
            return blocks

        results = blocks.get("results") or []
        return {"text": blocks_to_text(results), "block_count": len(results)}

    async def query_database(self, database_id: str, filter: Optional[Dict[str, Any]] = None) -> Any:
        body = {"filter": filter} if filter else {}
        return await self._post(f"/databases/{database_id}/query", body)

    async def check_connection(self) -> Dict[str, Any]:
        me = await self._get("/users/me")
        if has_error(me):
            return {"success": False, "error": f"Invalid Notion integration token ({me['error']})"}

        return {
            "success": True,
            "message": "Notion connected successfully",
            "data": {"user": me.get("name")},
        }
