"""
Notion Tools

Function calling tools over a connected Notion workspace: find the
student's notes and read a page as plain text.
"""

import logging
from typing import Any, Dict, Optional

from clients import NotionClient, has_error
from clients.notion_client import page_title
from tools.base import build_specs, error_result
from utils import truncate

logger = logging.getLogger(__name__)

INTEGRATION_TYPE = "notion"


TOOL_DEFINITIONS = [
    {
        "name": "search_notion_pages",
        "description": "Search the student's Notion workspace for pages (class notes, study plans) matching a query.",
        "parameters": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Text to search for in page titles and content"},
                "limit": {"type": "integer", "description": "Maximum number of pages (default 10)"},
            },
            "required": ["query"],
        },
    },
    {
        "name": "get_notion_page",
        "description": "Get a Notion page's title, link and text content.",
        "parameters": {
            "type": "object",
            "properties": {
                "page_id": {"type": "string", "description": "Notion page ID (from search_notion_pages)"},
            },
            "required": ["page_id"],
        },
    },
]


async def search_notion_pages(client: NotionClient, query: Optional[str], limit: Optional[int] = 10) -> Dict[str, Any]:
    logger.info(f"🔍 Searching Notion for '{query}'")

    data = await client.search_pages(query or "", limit=int(limit or 10))
    if has_error(data):
        return error_result(data["error"])

    pages = [
        {
            "id": page.get("id"),
            "title": page_title(page),
            "url": page.get("url"),
            "last_edited_time": page.get("last_edited_time"),
        }
        for page in data.get("results") or []
    ]
    return {"success": True, "count": len(pages), "pages": pages}


async def get_notion_page(client: NotionClient, page_id: Optional[str]) -> Dict[str, Any]:
    if not page_id:
        return error_result("page_id is required")

    logger.info(f"📄 Reading Notion page {page_id}")

    page = await client.get_page(page_id)
    if has_error(page):
        return error_result(page["error"])

    content = await client.get_page_content(page_id)
    if has_error(content):
        return error_result(content["error"])

    return {
        "success": True,
        "page": {
            "id": page.get("id", page_id),
            "title": page_title(page),
            "url": page.get("url"),
            "last_edited_time": page.get("last_edited_time"),
            "content": truncate(content["text"]),
        },
    }


HANDLERS = {
    "search_notion_pages": search_notion_pages,
    "get_notion_page": get_notion_page,
}

TOOL_SPECS = build_specs(TOOL_DEFINITIONS, HANDLERS, INTEGRATION_TYPE)
