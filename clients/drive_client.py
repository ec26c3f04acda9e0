"""
Google Drive Client - Drive API v3

Search and list the student's files, read metadata and pull text out of
Google Docs (export), PDFs (pdfplumber) and plain-text files.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from config import GOOGLE_DRIVE_API_URL
from clients.base import BaseAPIClient, has_error
from clients.pdf_client import extract_text_from_bytes, clean_extracted_text

logger = logging.getLogger(__name__)

FILE_LIST_FIELDS = "files(id,name,mimeType,webViewLink,modifiedTime)"
FILE_FIELDS = "id,name,mimeType,webViewLink,modifiedTime,description"

GOOGLE_APPS_PREFIX = "application/vnd.google-apps."
TEXT_MIME_TYPES = {"application/json", "application/xml", "application/javascript"}

# Google Workspace types and the format they are exported to
EXPORT_MIME_TYPES = {
    "application/vnd.google-apps.document": "text/plain",
    "application/vnd.google-apps.presentation": "text/plain",
    "application/vnd.google-apps.spreadsheet": "text/csv",
}


def _escape_query(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


class GoogleDriveClient(BaseAPIClient):
    """Google Drive client bound to one OAuth access token."""

    service_name = "Google Drive"

    def __init__(self, credential: Optional[str], base_url: Optional[str] = None, **kwargs):
        super().__init__(credential, base_url or GOOGLE_DRIVE_API_URL, **kwargs)

    async def search_files(self, query: str, limit: int = 10) -> Any:
        return await self._get(
            "/files",
            q=f"fullText contains '{_escape_query(query or '')}' and trashed = false",
            pageSize=limit,
            fields=FILE_LIST_FIELDS,
        )

    async def list_files(self, limit: int = 20) -> Any:
        return await self._get(
            "/files",
            pageSize=limit,
            fields=FILE_LIST_FIELDS,
            orderBy="modifiedTime desc",
        )

    async def get_file(self, file_id: str) -> Any:
        return await self._get(f"/files/{file_id}", fields=FILE_FIELDS)

    async def get_file_content(self, file_id: str) -> Dict[str, Any]:
        """
        Metadata plus extracted text for a file.

        Returns:
            {"id", "name", "mime_type", "url", "content"} or an error dict
        """
        meta = await self.get_file(file_id)
        if has_error(meta):
            return meta

        mime_type = meta.get("mimeType") or ""
        name = meta.get("name") or file_id

        if mime_type.startswith(GOOGLE_APPS_PREFIX):
            export_type = EXPORT_MIME_TYPES.get(mime_type)
            if export_type is None:
                return {"error": f"Cannot export Google file type {mime_type}"}
            response = await self._send(
                "GET", f"/files/{file_id}/export", params={"mimeType": export_type}
            )
            if isinstance(response, dict):
                return response
            content = response.text

        elif mime_type == "application/pdf":
            response = await self._send("GET", f"/files/{file_id}", params={"alt": "media"})
            if isinstance(response, dict):
                return response
            try:
                text = await asyncio.to_thread(extract_text_from_bytes, response.content, name=name)
                content = clean_extracted_text(text)
            except ValueError as e:
                return {"error": str(e)}

        elif mime_type.startswith("text/") or mime_type in TEXT_MIME_TYPES:
            response = await self._send("GET", f"/files/{file_id}", params={"alt": "media"})
            if isinstance(response, dict):
                return response
            content = response.text

        else:
            return {"error": f"Unsupported file type {mime_type or 'unknown'} for {name}"}

        return {
            "id": meta.get("id", file_id),
            "name": name,
            "mime_type": mime_type,
            "url": meta.get("webViewLink"),
            "content": content,
        }

    async def check_connection(self) -> Dict[str, Any]:
        about = await self._get("/about", fields="user")
        if has_error(about):
            return {
                "success": False,
                "error": f"Invalid Google Drive token or insufficient permissions ({about['error']})",
            }

        return {
            "success": True,
            "message": "Google Drive connected successfully",
            "data": {"user": (about.get("user") or {}).get("emailAddress")},
        }
