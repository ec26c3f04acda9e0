"""
GitHub Tools

Function calling tools over a connected GitHub account: discovering
example code, reading files, and scaffolding a project (repo, files,
branches, issues, pull requests).
"""

import logging
from typing import Any, Dict, List, Optional

from clients import GitHubClient, has_error
from tools.base import build_specs, error_result
from utils import truncate

logger = logging.getLogger(__name__)

INTEGRATION_TYPE = "github"

_OWNER = {"type": "string", "description": "Repository owner (user or organization)"}
_REPO = {"type": "string", "description": "Repository name"}


# ============================================================================
# TOOL DEFINITIONS
# ============================================================================

TOOL_DEFINITIONS = [
    {
        "name": "search_github_repos",
        "description": "Search public GitHub repositories by keyword, e.g. to find example projects for a topic.",
        "parameters": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "GitHub search query"},
                "limit": {"type": "integer", "description": "Maximum number of repositories (default 10)"},
            },
            "required": ["query"],
        },
    },
    {
        "name": "get_github_file",
        "description": "Get the contents of a file (or the listing of a directory) in a GitHub repository.",
        "parameters": {
            "type": "object",
            "properties": {
                "owner": _OWNER,
                "repo": _REPO,
                "path": {"type": "string", "description": "Path inside the repository"},
                "ref": {"type": "string", "description": "Branch, tag or commit (default: repository default branch)"},
            },
            "required": ["owner", "repo", "path"],
        },
    },
    {
        "name": "github_list_repos",
        "description": "List the student's own GitHub repositories, most recently updated first.",
        "parameters": {
            "type": "object",
            "properties": {
                "limit": {"type": "integer", "description": "Maximum number of repositories (default 30)"},
            },
        },
    },
    {
        "name": "github_get_repo",
        "description": "Get details about a GitHub repository (description, language, default branch, topics).",
        "parameters": {
            "type": "object",
            "properties": {"owner": _OWNER, "repo": _REPO},
            "required": ["owner", "repo"],
        },
    },
    {
        "name": "github_create_repo",
        "description": "Create a new repository for the student's project. Only use when the student explicitly asks.",
        "parameters": {
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "Repository name"},
                "description": {"type": "string", "description": "Short description"},
                "private": {"type": "boolean", "description": "Create as private (default false)"},
                "gitignore_template": {"type": "string", "description": "e.g. 'Python', 'Node'"},
            },
            "required": ["name"],
        },
    },
    {
        "name": "github_create_file",
        "description": "Create a new file in a repository with a commit message.",
        "parameters": {
            "type": "object",
            "properties": {
                "owner": _OWNER,
                "repo": _REPO,
                "path": {"type": "string", "description": "File path to create"},
                "content": {"type": "string", "description": "File content"},
                "message": {"type": "string", "description": "Commit message"},
                "branch": {"type": "string", "description": "Target branch (default: repository default branch)"},
            },
            "required": ["owner", "repo", "path", "content", "message"],
        },
    },
    {
        "name": "github_update_file",
        "description": "Update an existing file. Requires the file's current sha (from get_github_file).",
        "parameters": {
            "type": "object",
            "properties": {
                "owner": _OWNER,
                "repo": _REPO,
                "path": {"type": "string", "description": "File path to update"},
                "content": {"type": "string", "description": "New file content"},
                "message": {"type": "string", "description": "Commit message"},
                "sha": {"type": "string", "description": "Current blob sha of the file"},
                "branch": {"type": "string", "description": "Target branch"},
            },
            "required": ["owner", "repo", "path", "content", "message", "sha"],
        },
    },
    {
        "name": "github_create_branch",
        "description": "Create a new branch from an existing one.",
        "parameters": {
            "type": "object",
            "properties": {
                "owner": _OWNER,
                "repo": _REPO,
                "branch": {"type": "string", "description": "New branch name"},
                "from_branch": {"type": "string", "description": "Source branch (default 'main')"},
            },
            "required": ["owner", "repo", "branch"],
        },
    },
    {
        "name": "github_create_issue",
        "description": "Open an issue, e.g. to track a task from an assignment plan.",
        "parameters": {
            "type": "object",
            "properties": {
                "owner": _OWNER,
                "repo": _REPO,
                "title": {"type": "string", "description": "Issue title"},
                "body": {"type": "string", "description": "Issue body (markdown)"},
                "labels": {"type": "array", "items": {"type": "string"}, "description": "Labels to apply"},
            },
            "required": ["owner", "repo", "title"],
        },
    },
    {
        "name": "github_list_issues",
        "description": "List issues of a repository.",
        "parameters": {
            "type": "object",
            "properties": {
                "owner": _OWNER,
                "repo": _REPO,
                "state": {"type": "string", "enum": ["open", "closed", "all"], "description": "Issue state (default open)"},
            },
            "required": ["owner", "repo"],
        },
    },
    {
        "name": "github_create_pull_request",
        "description": "Open a pull request from one branch into another.",
        "parameters": {
            "type": "object",
            "properties": {
                "owner": _OWNER,
                "repo": _REPO,
                "title": {"type": "string", "description": "Pull request title"},
                "head": {"type": "string", "description": "Branch with the changes"},
                "base": {"type": "string", "description": "Branch to merge into"},
                "body": {"type": "string", "description": "Pull request description"},
            },
            "required": ["owner", "repo", "title", "head", "base"],
        },
    },
]


# ============================================================================
# SHAPING
# ============================================================================

def _repo_summary(repo: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "name": repo.get("name"),
        "full_name": repo.get("full_name"),
        "description": repo.get("description"),
        "html_url": repo.get("html_url"),
        "private": repo.get("private"),
        "default_branch": repo.get("default_branch"),
        "language": repo.get("language"),
        "stars": repo.get("stargazers_count"),
        "updated_at": repo.get("updated_at"),
    }


def _issue_summary(issue: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "number": issue.get("number"),
        "title": issue.get("title"),
        "state": issue.get("state"),
        "html_url": issue.get("html_url"),
        "created_at": issue.get("created_at"),
        "updated_at": issue.get("updated_at"),
    }


def _missing(**values) -> Optional[Dict[str, Any]]:
    missing = [name for name, value in values.items() if value in (None, "")]
    if missing:
        return error_result(f"Missing required argument(s): {', '.join(missing)}")
    return None


# ============================================================================
# HANDLERS
# ============================================================================

async def search_github_repos(client: GitHubClient, query: Optional[str], limit: Optional[int] = 10) -> Dict[str, Any]:
    err = _missing(query=query)
    if err:
        return err

    logger.info(f"🔍 Searching GitHub for '{query}'")
    data = await client.search_repositories(query, limit=int(limit or 10))
    if has_error(data):
        return error_result(data["error"])

    return {
        "success": True,
        "total_count": data.get("total_count", 0),
        "repos": [_repo_summary(r) for r in data.get("items") or []],
    }


async def get_github_file(
    client: GitHubClient,
    owner: Optional[str],
    repo: Optional[str],
    path: Optional[str],
    ref: Optional[str] = None,
) -> Dict[str, Any]:
    err = _missing(owner=owner, repo=repo, path=path)
    if err:
        return err

    logger.info(f"📄 Reading {owner}/{repo}:{path}")
    data = await client.get_file_content(owner, repo, path, ref=ref)
    if has_error(data):
        return error_result(data["error"])

    if data["type"] == "file":
        data["file"]["content"] = truncate(data["file"]["content"])
    return {"success": True, **data}


async def github_list_repos(client: GitHubClient, limit: Optional[int] = 30) -> Dict[str, Any]:
    data = await client.list_repositories(per_page=int(limit or 30))
    if has_error(data):
        return error_result(data["error"])
    return {"success": True, "repos": [_repo_summary(r) for r in data or []]}


async def github_get_repo(client: GitHubClient, owner: Optional[str], repo: Optional[str]) -> Dict[str, Any]:
    err = _missing(owner=owner, repo=repo)
    if err:
        return err

    data = await client.get_repository(owner, repo)
    if has_error(data):
        return error_result(data["error"])

    summary = _repo_summary(data)
    summary.update({
        "created_at": data.get("created_at"),
        "size": data.get("size"),
        "topics": data.get("topics") or [],
    })
    return {"success": True, "repo": summary}


async def github_create_repo(
    client: GitHubClient,
    name: Optional[str],
    description: Optional[str] = "",
    private: Optional[bool] = False,
    gitignore_template: Optional[str] = None,
) -> Dict[str, Any]:
    err = _missing(name=name)
    if err:
        return err

    logger.info(f"🆕 Creating GitHub repository '{name}'")
    data = await client.create_repository(
        name,
        description=description or "",
        private=bool(private),
        gitignore_template=gitignore_template,
    )
    if has_error(data):
        return error_result(data["error"])

    return {
        "success": True,
        "repo": {
            "name": data.get("name"),
            "full_name": data.get("full_name"),
            "html_url": data.get("html_url"),
            "clone_url": data.get("clone_url"),
            "ssh_url": data.get("ssh_url"),
            "default_branch": data.get("default_branch"),
        },
    }


def _commit_result(data: Dict[str, Any]) -> Dict[str, Any]:
    content = data.get("content") or {}
    commit = data.get("commit") or {}
    return {
        "success": True,
        "file": {"path": content.get("path"), "sha": content.get("sha"), "url": content.get("html_url")},
        "commit": {"sha": commit.get("sha"), "url": commit.get("html_url")},
    }


async def github_create_file(
    client: GitHubClient,
    owner: Optional[str],
    repo: Optional[str],
    path: Optional[str],
    content: Optional[str],
    message: Optional[str],
    branch: Optional[str] = None,
) -> Dict[str, Any]:
    err = _missing(owner=owner, repo=repo, path=path, message=message)
    if err:
        return err

    logger.info(f"✏️  Creating {owner}/{repo}:{path}")
    data = await client.create_file(owner, repo, path, content or "", message, branch=branch)
    if has_error(data):
        return error_result(data["error"])
    return _commit_result(data)


async def github_update_file(
    client: GitHubClient,
    owner: Optional[str],
    repo: Optional[str],
    path: Optional[str],
    content: Optional[str],
    message: Optional[str],
    sha: Optional[str],
    branch: Optional[str] = None,
) -> Dict[str, Any]:
    err = _missing(owner=owner, repo=repo, path=path, message=message, sha=sha)
    if err:
        return err

    logger.info(f"✏️  Updating {owner}/{repo}:{path}")
    data = await client.update_file(owner, repo, path, content or "", message, sha, branch=branch)
    if has_error(data):
        return error_result(data["error"])
    return _commit_result(data)


async def github_create_branch(
    client: GitHubClient,
    owner: Optional[str],
    repo: Optional[str],
    branch: Optional[str],
    from_branch: Optional[str] = "main",
) -> Dict[str, Any]:
    err = _missing(owner=owner, repo=repo, branch=branch)
    if err:
        return err

    data = await client.create_branch(owner, repo, branch, from_branch=from_branch or "main")
    if has_error(data):
        return error_result(data["error"])

    return {
        "success": True,
        "branch": {"name": branch, "ref": data.get("ref"), "sha": (data.get("object") or {}).get("sha")},
    }


async def github_create_issue(
    client: GitHubClient,
    owner: Optional[str],
    repo: Optional[str],
    title: Optional[str],
    body: Optional[str] = "",
    labels: Optional[List[str]] = None,
) -> Dict[str, Any]:
    err = _missing(owner=owner, repo=repo, title=title)
    if err:
        return err

    data = await client.create_issue(owner, repo, title, body=body or "", labels=labels)
    if has_error(data):
        return error_result(data["error"])
    return {"success": True, "issue": _issue_summary(data)}


async def github_list_issues(
    client: GitHubClient,
    owner: Optional[str],
    repo: Optional[str],
    state: Optional[str] = "open",
) -> Dict[str, Any]:
    err = _missing(owner=owner, repo=repo)
    if err:
        return err

    data = await client.list_issues(owner, repo, state=state or "open")
    if has_error(data):
        return error_result(data["error"])
    return {"success": True, "issues": [_issue_summary(i) for i in data or []]}


async def github_create_pull_request(
    client: GitHubClient,
    owner: Optional[str],
    repo: Optional[str],
    title: Optional[str],
    head: Optional[str],
    base: Optional[str],
    body: Optional[str] = "",
) -> Dict[str, Any]:
    err = _missing(owner=owner, repo=repo, title=title, head=head, base=base)
    if err:
        return err

    data = await client.create_pull_request(owner, repo, title, head, base, body=body or "")
    if has_error(data):
        return error_result(data["error"])

    return {
        "success": True,
        "pull_request": {
            "number": data.get("number"),
            "title": data.get("title"),
            "html_url": data.get("html_url"),
            "state": data.get("state"),
        },
    }


HANDLERS = {
    "search_github_repos": search_github_repos,
    "get_github_file": get_github_file,
    "github_list_repos": github_list_repos,
    "github_get_repo": github_get_repo,
    "github_create_repo": github_create_repo,
    "github_create_file": github_create_file,
    "github_update_file": github_update_file,
    "github_create_branch": github_create_branch,
    "github_create_issue": github_create_issue,
    "github_list_issues": github_list_issues,
    "github_create_pull_request": github_create_pull_request,
}

TOOL_SPECS = build_specs(TOOL_DEFINITIONS, HANDLERS, INTEGRATION_TYPE)
