"""
Text helpers shared by integration clients and tools.

Canvas pages, syllabi and assignment descriptions arrive as HTML; the model
gets plain text, capped so a single tool result cannot flood the context.
"""

from typing import Optional

from bs4 import BeautifulSoup

from config import MAX_TOOL_CONTENT_CHARS


BLOCK_TAGS = ["p", "div", "li", "tr", "pre", "blockquote", "h1", "h2", "h3", "h4", "h5", "h6"]


def strip_html(value: Optional[str]) -> str:
    """
    Convert an HTML fragment to readable plain text.

    Block-level elements start a new line, inline markup is dropped,
    entities are unescaped and blank lines are removed.

    Example:
        >>> strip_html("<p>Read <b>chapter 3</b></p><p>Due Friday</p>")
        'Read chapter 3\\nDue Friday'
    """
    if not value:
        return ""

    soup = BeautifulSoup(value, "html.parser")

    for element in soup(["script", "style"]):
        element.decompose()
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for block in soup.find_all(BLOCK_TAGS):
        block.insert_before("\n")
        block.append("\n")

    lines = [line.strip() for line in soup.get_text().splitlines()]
    return "\n".join(line for line in lines if line)


def truncate(value: Optional[str], limit: int = MAX_TOOL_CONTENT_CHARS, marker: str = "…") -> str:
    """Cut text to `limit` characters, appending a marker when cut."""
    if not value:
        return ""
    if len(value) <= limit:
        return value
    return value[:limit].rstrip() + marker
