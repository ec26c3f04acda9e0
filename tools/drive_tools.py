"""
Google Drive Tools

Function calling tools over a connected Google Drive: find documents and
read their text (Docs, PDFs, plain text).
"""

import logging
from typing import Any, Dict, Optional

from clients import GoogleDriveClient, has_error
from tools.base import build_specs, error_result
from utils import truncate

logger = logging.getLogger(__name__)

INTEGRATION_TYPE = "google_drive"


TOOL_DEFINITIONS = [
    {
        "name": "search_drive_files",
        "description": (
            "Search the student's Google Drive for documents containing the given text. "
            "Without a query, lists the most recently modified files."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Full-text search terms"},
                "limit": {"type": "integer", "description": "Maximum number of files (default 10)"},
            },
        },
    },
    {
        "name": "get_drive_file",
        "description": "Get a Google Drive file's metadata and text content (Google Docs, PDFs, text files).",
        "parameters": {
            "type": "object",
            "properties": {
                "file_id": {"type": "string", "description": "Drive file ID (from search_drive_files)"},
            },
            "required": ["file_id"],
        },
    },
]


def _file_summary(item: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": item.get("id"),
        "name": item.get("name"),
        "mime_type": item.get("mimeType"),
        "url": item.get("webViewLink"),
        "modified_time": item.get("modifiedTime"),
    }


async def search_drive_files(
    client: GoogleDriveClient,
    query: Optional[str] = None,
    limit: Optional[int] = 10,
) -> Dict[str, Any]:
    limit = int(limit or 10)

    if query:
        logger.info(f"🔍 Searching Google Drive for '{query}'")
        data = await client.search_files(query, limit=limit)
    else:
        data = await client.list_files(limit=limit)

    if has_error(data):
        return error_result(data["error"])

    files = [_file_summary(item) for item in data.get("files") or []]
    return {"success": True, "count": len(files), "files": files}


async def get_drive_file(client: GoogleDriveClient, file_id: Optional[str]) -> Dict[str, Any]:
    if not file_id:
        return error_result("file_id is required")

    logger.info(f"📄 Reading Google Drive file {file_id}")

    data = await client.get_file_content(file_id)
    if has_error(data):
        return error_result(data["error"])

    data["content"] = truncate(data["content"])
    return {"success": True, "file": data}


HANDLERS = {
    "search_drive_files": search_drive_files,
    "get_drive_file": get_drive_file,
}

TOOL_SPECS = build_specs(TOOL_DEFINITIONS, HANDLERS, INTEGRATION_TYPE)
