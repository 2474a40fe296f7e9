"""HTML utility functions for Perseus.

This module provides HTML manipulation utilities including escaping,
URL absolutization and relative asset rewriting.

This module focuses exclusively on HTML and CSS string manipulation.

Functions:
    escape_html: Escape special HTML characters in a string.
    absolutize_html_urls: Convert root-relative URLs to absolute in HTML.
    join_root_url: Join a base URL with a path.
    relative_url: Express a root-relative URL relative to an output file.
    rewrite_html_urls: Apply a rewrite function to href/src/action URLs.
    rewrite_css_urls: Apply a rewrite function to CSS url() references.
"""

from __future__ import annotations

import posixpath
import re
from collections.abc import Callable

# URL attribute regex pattern for finding href, src, action attributes
_URL_ATTR_RE = re.compile(
    r'(?P<prefix>\b(?:href|src|action)=["\'])(?P<url>[^"\']+)(?P<suffix>["\'])'
)

# CSS url() references, quoted or bare
_CSS_URL_RE = re.compile(
    r"(?P<prefix>url\(\s*(?P<quote>['\"]?))(?P<url>[^'\")\s]+)(?P<suffix>(?P=quote)\s*\))"
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


def escape_html(text: str) -> str:
    """Escape special HTML characters in a string.

    Args:
        text: The string to escape.

    Returns:
        The escaped string, safe for inclusion in HTML.

    Examples:
        >>> escape_html('Tom & Jerry')
        'Tom &amp; Jerry'
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
        >>> join_root_url('https://example.com', '/about')
        'https://example.com/about'

        >>> join_root_url('https://example.com/', 'about')
        'https://example.com/about'
    """
    if not root_url:
        return path
    base = root_url.rstrip("/")
    suffix = path if path.startswith("/") else f"/{path}"
    return f"{base}{suffix}"


def is_root_relative(url: str) -> bool:
    """Return True for URLs like ``/css/site.css`` that name a path on this site."""
    return url.startswith("/") and not url.startswith(_URL_SKIP_PREFIXES)


def split_url(url: str) -> tuple[str, str]:
    """Split a URL into its path and its ``?query#fragment`` tail."""
    for index, char in enumerate(url):
        if char in "?#":
            return url[:index], url[index:]
    return url, ""


def relative_url(url: str, from_path: str) -> str:
    """Express a root-relative URL relative to the directory of an output file.

    Args:
        url: Root-relative URL such as ``/css/site.css?v=2``.
        from_path: Posix output path of the referencing file, e.g. ``blog/post/index.html``.

    Returns:
        Relative URL such as ``../../css/site.css?v=2``.

    Examples:
        >>> relative_url('/css/site.css', 'about/index.html')
        '../css/site.css'

        >>> relative_url('/images/logo.png', 'index.html')
        'images/logo.png'
    """
    path, tail = split_url(url)
    start = posixpath.dirname(from_path) or "."
    relative = posixpath.relpath(path.lstrip("/") or ".", start)
    if path.endswith("/") and not relative.endswith("/"):
        relative = f"{relative}/"
    return f"{relative}{tail}"


def rewrite_html_urls(html: str, rewrite: Callable[[str], str]) -> str:
    """Apply ``rewrite`` to every href, src and action URL in an HTML document.

    External URLs, anchors, mailto/tel/data links and javascript: URLs are
    left unchanged and never passed to ``rewrite``.
    """

    def repl(match: re.Match) -> str:
        url = match.group("url")
        if not url or url.startswith(_URL_SKIP_PREFIXES):
            return match.group(0)
        return f"{match.group('prefix')}{rewrite(url)}{match.group('suffix')}"

    return _URL_ATTR_RE.sub(repl, html)


def rewrite_css_urls(css: str, rewrite: Callable[[str], str]) -> str:
    """Apply ``rewrite`` to every url() reference in a stylesheet."""

    def repl(match: re.Match) -> str:
        url = match.group("url")
        if url.startswith(_URL_SKIP_PREFIXES):
            return match.group(0)
        return f"{match.group('prefix')}{rewrite(url)}{match.group('suffix')}"

    return _CSS_URL_RE.sub(repl, css)


def absolutize_html_urls(html: str, root_url: str) -> str:
    """Rewrite root-relative URLs in HTML to absolute URLs.

    Processes href, src, and action attributes in HTML, converting
    root-relative URLs (starting with /) to absolute URLs using the
    provided root_url. Feed readers need this because they resolve
    nothing against the site.

    Args:
        html: HTML content to process.
        root_url: Base URL to prepend to relative paths.

    Returns:
        HTML with root-relative URLs converted to absolute.

    Examples:
        >>> absolutize_html_urls('<a href="/about/">About</a>', 'https://example.com')
        '<a href="https://example.com/about/">About</a>'
    """
    if not root_url:
        return html

    def absolute(url: str) -> str:
        if not url.startswith("/"):
            return url
        return join_root_url(root_url, url)

    return rewrite_html_urls(html, absolute)
