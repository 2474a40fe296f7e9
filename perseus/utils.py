"""Utility functions for Perseus.

This module contains various utility functions used throughout the Perseus codebase.
These include string processing, path handling and content classification.

Key functions:
    slugify: Convert titles and filenames to URL slugs.
    titleize: Convert filenames to human-readable titles.
    logical_path: Strip template extensions from a source path.
    build_tags_index: Build index of posts by tags.
    is_markdown: Check if a path is a Markdown file.
    is_template: Check if a path is a Jinja template.
    is_html: Check if a path is a plain HTML file.
    ensure_clean_dir: Ensure a directory exists and is empty.

Note:
    HTML-related utilities (escape_html, relative_url, join_root_url)
    live in html_utils.py.
"""

from __future__ import annotations

import posixpath
import re
import shutil
from collections.abc import Iterable
from pathlib import Path

MARKDOWN_EXTENSIONS = (".md", ".markdown")
TEMPLATE_EXTENSIONS = MARKDOWN_EXTENSIONS + (".jinja",)


def slugify(name: str) -> str:
    """Convert a title or filename stem to a URL slug.

    Args:
        name: Title or filename stem.

    Returns:
        URL-friendly slug, empty when the name has no word characters.

    Examples:
        >>> slugify("Hello, World!")
        'hello-world'

        >>> slugify("Café Notes")
        'café-notes'
    """
    cleaned = re.sub(r"[\W_]+", "-", name)
    return cleaned.strip("-").lower()


def titleize(filename: str) -> str:
    """Convert a filename to a human-readable title.

    Removes date prefixes (YYYY-MM-DD) and template extensions, replaces
    hyphens and underscores with spaces, and capitalizes each word.

    Args:
        filename: Filename with or without extension.

    Returns:
        Human-readable title string.

    Examples:
        >>> titleize("2024-01-15-hello-world.md")
        'Hello World'

        >>> titleize("getting-started.html.md")
        'Getting Started'
    """
    base = Path(logical_path(filename)).stem
    if "-" in base:
        parts = base.split("-")
        if len(parts) >= 4 and all(p.isdigit() for p in parts[:3]):
            base = "-".join(parts[3:])
    words = re.split(r"[\s\-_]+", base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def logical_path(rel_path: str) -> str:
    """Return the output-relative path a content source stands for.

    Template extensions (.md, .markdown, .jinja) are stripped. A name left
    without an extension is treated as an HTML page.

    Args:
        rel_path: Posix path of the source file relative to the site directory.

    Returns:
        Logical posix path, e.g. ``posts/2023-05-01-hello.html``.

    Examples:
        >>> logical_path("about.md")
        'about.html'

        >>> logical_path("feed.xml.jinja")
        'feed.xml'
    """
    head, name = posixpath.split(rel_path)
    lowered = name.lower()
    for ext in TEMPLATE_EXTENSIONS:
        if lowered.endswith(ext):
            name = name[: -len(ext)]
            break
    if not posixpath.splitext(name)[1]:
        name = f"{name}.html"
    return posixpath.join(head, name) if head else name


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    If the directory exists, removes all contents. Creates the
    directory if it doesn't exist.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(str(path))
    path.mkdir(parents=True, exist_ok=True)


def is_internal_path(path: Path) -> bool:
    """Check if a path is internal (contains components starting with _).

    Internal paths hold layouts and partials and are never output.

    Args:
        path: Path relative to the site directory.

    Returns:
        True if any path component starts with underscore.
    """
    return any(part.startswith("_") for part in path.parts)


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file.

    Args:
        path: Path to check.

    Returns:
        True if the file has a .md or .markdown extension (case-insensitive).
    """
    return path.suffix.lower() in MARKDOWN_EXTENSIONS


def is_template(path: Path) -> bool:
    """Check if a path is a Jinja template file.

    Matches .jinja, .html.jinja and .xml.jinja alike.

    Args:
        path: Path to check.

    Returns:
        True if the file is a Jinja template.
    """
    return path.suffix.lower() == ".jinja"


def is_html(path: Path) -> bool:
    """Check if a path is a plain HTML file (not a Jinja template).

    Args:
        path: Path to check.

    Returns:
        True if the file has .html extension.
    """
    return path.suffix.lower() in (".html", ".htm")


def is_content(path: Path) -> bool:
    """Check if a path is a content source rather than a static asset."""
    return is_markdown(path) or is_template(path) or is_html(path)


def build_tags_index(items: Iterable) -> dict[str, list]:
    """Build an index mapping tags to lists of items carrying that tag.

    Args:
        items: Iterable of content items with a 'tags' attribute.

    Returns:
        Dictionary mapping tag names to lists of items.
    """
    tags: dict[str, list] = {}
    for item in items:
        for tag in item.tags:
            tags.setdefault(tag, []).append(item)
    return tags
