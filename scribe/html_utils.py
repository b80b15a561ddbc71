"""HTML utility functions for Scribe.

This module provides HTML string manipulation: escaping, URL joining,
absolutizing root-relative links and whitespace minification of finished
documents.

Functions:
    escape_html: Escape special HTML characters in a string.
    join_root_url: Join a base URL with a path.
    absolutize_html_urls: Convert root-relative URLs to absolute in HTML.
    minify_html: Collapse insignificant whitespace and drop comments.
"""

from __future__ import annotations

import re

# URL attribute regex pattern for finding href, src, action attributes
_URL_ATTR_RE = re.compile(
    r'(?P<prefix>\b(?:href|src|action)=["\'])(?P<url>[^"\']+)(?P<suffix>["\'])'
)

# URL prefixes that should not be modified
_URL_SKIP_PREFIXES = (
    "http://",
    "https://",
    "//",
    "mailto:",
    "tel:",
    "#",
    "javascript:",
    "data:",
)

# Elements whose content must survive minification byte for byte
_PRESERVE_RE = re.compile(
    r"<(pre|textarea|script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL
)
_COMMENT_RE = re.compile(r"<!--(?!\[if).*?-->", re.DOTALL)
_BETWEEN_TAGS_RE = re.compile(r">\s*\n\s*<")
_WHITESPACE_RE = re.compile(r"\s{2,}")


def escape_html(text: str) -> str:
    """Escape special HTML characters in a string.

    Args:
        text: The string to escape.

    Returns:
        The escaped string, safe for inclusion in HTML.

    Examples:
        >>> escape_html('Tom & "Jerry"')
        'Tom &amp; &quot;Jerry&quot;'
    """
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def join_root_url(root_url: str, path: str) -> str:
    """Safely join a root URL and a path, avoiding double slashes.

    Args:
        root_url: Base URL (e.g., https://example.com/blog).
        path: Path beginning with or without a leading slash.

    Returns:
        Combined URL with proper slash handling.

    Examples:
        >>> join_root_url('https://example.com/', 'about/')
        'https://example.com/about/'
    """
    if not root_url:
        return path
    base = root_url.rstrip("/")
    suffix = path if path.startswith("/") else f"/{path}"
    return f"{base}{suffix}"


def absolutize_html_urls(html: str, root_url: str) -> str:
    """Rewrite root-relative URLs in HTML to absolute URLs.

    External URLs, anchors, mailto/tel links, data URIs and javascript:
    URLs are left unchanged.

    Args:
        html: HTML content to process.
        root_url: Base URL to prepend to relative paths.

    Returns:
        HTML with root-relative URLs converted to absolute.
    """
    if not root_url:
        return html

    def repl(match: re.Match) -> str:
        url = match.group("url")
        if not url.startswith("/") or url.startswith(_URL_SKIP_PREFIXES):
            return match.group(0)
        absolute = join_root_url(root_url, url)
        return f"{match.group('prefix')}{absolute}{match.group('suffix')}"

    return _URL_ATTR_RE.sub(repl, html)


def minify_html(html: str) -> str:
    """Minify an HTML document.

    Drops comments (conditional comments are kept), removes line breaks
    between tags and collapses runs of whitespace elsewhere. Content of
    ``pre``, ``textarea``, ``script`` and ``style`` elements is untouched.

    Args:
        html: Full HTML document.

    Returns:
        Minified HTML.
    """
    preserved: list[str] = []

    def stash(match: re.Match) -> str:
        preserved.append(match.group(0))
        return f"\x00{len(preserved) - 1}\x00"

    text = _PRESERVE_RE.sub(stash, html)
    text = _COMMENT_RE.sub("", text)
    text = _BETWEEN_TAGS_RE.sub("><", text)
    text = _WHITESPACE_RE.sub(" ", text).strip()
    return re.sub(r"\x00(\d+)\x00", lambda m: preserved[int(m.group(1))], text)
