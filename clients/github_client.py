"""
GitHub Client - GitHub REST API v3

Repository search and browsing plus the write operations students use to
start a project: repositories, files, branches, issues and pull requests.
"""

import base64
import logging
from typing import Any, Dict, List, Optional

from config import GITHUB_API_URL
from clients.base import BaseAPIClient, has_error

logger = logging.getLogger(__name__)


def _encode(content: str) -> str:
    return base64.b64encode(content.encode("utf-8")).decode("ascii")


class GitHubClient(BaseAPIClient):
    """GitHub client bound to one personal access token."""

    service_name = "GitHub"

    def __init__(self, credential: Optional[str], base_url: Optional[str] = None, **kwargs):
        super().__init__(credential, base_url or GITHUB_API_URL, **kwargs)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"token {self.credential}",
            "Accept": "application/vnd.github.v3+json",
            "Content-Type": "application/json",
        }

    def _describe_error(self, response) -> str:
        message = ""
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("message", "")
        base = f"GitHub API error: {response.status_code} {response.reason_phrase}"
        return f"{base} ({message})" if message else base

    # ------------------------------------------------------------------ #
    # Repositories
    # ------------------------------------------------------------------ #

    async def search_repositories(
        self,
        query: str,
        limit: int = 10,
        sort: str = "stars",
        order: str = "desc",
    ) -> Any:
        return await self._get("/search/repositories", q=query, sort=sort, order=order, per_page=limit)

    async def list_repositories(self, sort: str = "updated", per_page: int = 30, page: int = 1) -> Any:
        return await self._get("/user/repos", sort=sort, per_page=per_page, page=page)

    async def get_repository(self, owner: str, repo: str) -> Any:
        return await self._get(f"/repos/{owner}/{repo}")

    async def create_repository(
        self,
        name: str,
        description: str = "",
        private: bool = False,
        auto_init: bool = True,
        gitignore_template: Optional[str] = None,
        license_template: Optional[str] = None,
    ) -> Any:
        body: Dict[str, Any] = {
            "name": name,
            "description": description or "",
            "private": bool(private),
            "auto_init": auto_init is not False,
        }
        if gitignore_template:
            body["gitignore_template"] = gitignore_template
        if license_template:
            body["license_template"] = license_template
        return await self._post("/user/repos", body)

    # ------------------------------------------------------------------ #
    # Contents
    # ------------------------------------------------------------------ #

    async def get_file_content(
        self,
        owner: str,
        repo: str,
        path: str,
        ref: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Read a file or list a directory.

        Returns:
            {"type": "file", "file": {..., "content": <decoded text>}} or
            {"type": "directory", "contents": [...]} or an error dict
        """
        data = await self._get(f"/repos/{owner}/{repo}/contents/{path}", ref=ref)
        if has_error(data):
            return data

        if isinstance(data, list):
            return {
                "type": "directory",
                "contents": [
                    {
                        "name": item.get("name"),
                        "path": item.get("path"),
                        "type": item.get("type"),
                        "size": item.get("size"),
                        "sha": item.get("sha"),
                        "url": item.get("html_url"),
                    }
                    for item in data
                ],
            }

        content = data.get("content") or ""
        if data.get("encoding") == "base64":
            content = base64.b64decode(content).decode("utf-8", errors="replace")

        return {
            "type": "file",
            "file": {
                "name": data.get("name"),
                "path": data.get("path"),
                "content": content,
                "sha": data.get("sha"),
                "size": data.get("size"),
                "url": data.get("html_url"),
            },
        }

    async def create_file(
        self,
        owner: str,
        repo: str,
        path: str,
        content: str,
        message: str,
        branch: Optional[str] = None,
    ) -> Any:
        body: Dict[str, Any] = {"message": message, "content": _encode(content or "")}
        if branch:
            body["branch"] = branch
        return await self._request("PUT", f"/repos/{owner}/{repo}/contents/{path}", json=body)

    async def update_file(
        self,
        owner: str,
        repo: str,
        path: str,
        content: str,
        message: str,
        sha: str,
        branch: Optional[str] = None,
    ) -> Any:
        body: Dict[str, Any] = {"message": message, "content": _encode(content or ""), "sha": sha}
        if branch:
            body["branch"] = branch
        return await self._request("PUT", f"/repos/{owner}/{repo}/contents/{path}", json=body)

    # ------------------------------------------------------------------ #
    # Branches, issues, pull requests
    # ------------------------------------------------------------------ #

    async def create_branch(self, owner: str, repo: str, branch: str, from_branch: str = "main") -> Any:
        """Create `branch` pointing at the head of `from_branch`."""
        ref = await self._get(f"/repos/{owner}/{repo}/git/ref/heads/{from_branch}")
        if has_error(ref):
            return ref

        sha = (ref.get("object") or {}).get("sha")
        if not sha:
            return {"error": f"Could not resolve branch {from_branch}"}

        return await self._post(
            f"/repos/{owner}/{repo}/git/refs",
            {"ref": f"refs/heads/{branch}", "sha": sha},
        )

    async def create_issue(
        self,
        owner: str,
        repo: str,
        title: str,
        body: str = "",
        labels: Optional[List[str]] = None,
    ) -> Any:
        return await self._post(
            f"/repos/{owner}/{repo}/issues",
            {"title": title, "body": body or "", "labels": list(labels or [])},
        )

    async def list_issues(self, owner: str, repo: str, state: str = "open") -> Any:
        return await self._get(f"/repos/{owner}/{repo}/issues", state=state)

    async def create_pull_request(
        self,
        owner: str,
        repo: str,
        title: str,
        head: str,
        base: str,
        body: str = "",
    ) -> Any:
        return await self._post(
            f"/repos/{owner}/{repo}/pulls",
            {"title": title, "head": head, "base": base, "body": body or ""},
        )

    # ------------------------------------------------------------------ #
    # Connection check
    # ------------------------------------------------------------------ #

    async def check_connection(self) -> Dict[str, Any]:
        user = await self._get("/user")
        if has_error(user):
            return {"success": False, "error": f"Invalid GitHub token ({user['error']})"}

        return {
            "success": True,
            "message": "GitHub connected successfully",
            "data": {"username": user.get("login")},
        }
