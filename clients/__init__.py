"""
Integration Clients Module

This module contains low-level clients for the external services a
student can connect. These are pure transport wrappers that don't contain
business logic: they return decoded payloads or {"error": ...}.

Clients:
- Canvas Client: Canvas LMS courses, assignments, pages, quizzes
- GitHub Client: repositories, contents, branches, issues, pull requests
- Notion Client: page search, page text, database queries
- Slack Client: message search, posting, channels
- Google Drive Client: file search and text extraction
- Custom Client: health check for user-supplied servers
- PDF Client: Extract text from PDF bytes using pdfplumber
"""

from typing import Any, Dict, Optional

from .base import BaseAPIClient, has_error
from .canvas_client import CanvasClient
from .github_client import GitHubClient
from .notion_client import NotionClient
from .slack_client import SlackClient
from .drive_client import GoogleDriveClient
from .custom_client import CustomClient
from .pdf_client import extract_text_from_bytes, clean_extracted_text

CLIENT_CLASSES = {
    "canvas": CanvasClient,
    "github": GitHubClient,
    "notion": NotionClient,
    "slack": SlackClient,
    "google_drive": GoogleDriveClient,
    "custom": CustomClient,
}


def create_client(
    integration_type: Any,
    credential: Optional[str],
    api_url: Optional[str] = None,
    config: Optional[Dict[str, Any]] = None,
    **kwargs,
) -> BaseAPIClient:
    """
    Build the client for an integration type.

    Args:
        integration_type: Type name ("canvas", ...) or an IntegrationType member
        credential: Access token for the service
        api_url: Base URL override (required for custom servers)
        config: Extra per-instance settings (e.g. healthEndpoint)
        **kwargs: Passed to the client (timeout, transport)

    Raises:
        ValueError: If the type has no client
    """
    type_name = getattr(integration_type, "value", integration_type)
    client_class = CLIENT_CLASSES.get(type_name)
    if client_class is None:
        raise ValueError(f"Unknown integration type: {type_name}")

    if client_class is CustomClient:
        health_endpoint = (config or {}).get("healthEndpoint") or (config or {}).get("health_endpoint")
        return CustomClient(credential, api_url, health_endpoint=health_endpoint, **kwargs)

    return client_class(credential, api_url, **kwargs)


__all__ = [
    "BaseAPIClient",
    "has_error",
    "CanvasClient",
    "GitHubClient",
    "NotionClient",
    "SlackClient",
    "GoogleDriveClient",
    "CustomClient",
    "CLIENT_CLASSES",
    "create_client",
    "extract_text_from_bytes",
    "clean_extracted_text",
]
