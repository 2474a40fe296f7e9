"""Metadata extractors for Perseus.

Each extractor pulls a single kind of metadata out of a content source.

Key classes:
- FrontmatterExtractor: Splits YAML frontmatter from the body.
- TitleExtractor: Extracts title from frontmatter, content or filename.
- TagExtractor: Extracts tags from frontmatter.
- CompositeMetadataExtractor: Runs several extractors and merges the results.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml

from .utils import titleize

FRONTMATTER_RE = re.compile(r"^---\s*\n(.*?)\n---\s*(?:\n|$)", re.DOTALL)


class FrontmatterError(ValueError):
    """Raised when a frontmatter block is present but is not a YAML mapping."""


def extract_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Extract YAML frontmatter from content.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (frontmatter dict, remaining content).

    Raises:
        FrontmatterError: If the block cannot be parsed into a mapping.
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    try:
        data = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError as exc:
        raise FrontmatterError(f"Invalid frontmatter: {exc}") from exc
    if not isinstance(data, dict):
        raise FrontmatterError("Frontmatter must be a mapping of keys to values")
    return data, text[match.end() :]


class FrontmatterExtractor:
    """Extracts YAML frontmatter from content.

    Parses YAML frontmatter at the beginning of the file
    (between --- markers).
    """

    def extract(self, content: str, path: Path, found: dict[str, Any]) -> dict[str, Any]:
        frontmatter, body = extract_frontmatter(content)
        return {"frontmatter": frontmatter, "body": body}


class TitleExtractor:
    """Extracts the title.

    A ``title`` frontmatter key wins. Otherwise the first level-1 Markdown
    heading (``# Title``) is used, falling back to titleizing the filename.
    """

    def extract(self, content: str, path: Path, found: dict[str, Any]) -> dict[str, Any]:
        frontmatter = found.get("frontmatter", {})
        if frontmatter.get("title"):
            return {"title": str(frontmatter["title"])}
        for line in found.get("body", content).splitlines():
            stripped = line.strip()
            if stripped.startswith("# "):
                return {"title": stripped[2:].strip()}
        return {"title": titleize(path.name)}


class TagExtractor:
    """Extracts tags from the ``tags`` frontmatter key.

    Accepts a YAML list or a comma-separated string.
    """

    def extract(self, content: str, path: Path, found: dict[str, Any]) -> dict[str, Any]:
        raw = found.get("frontmatter", {}).get("tags") or []
        if isinstance(raw, str):
            raw = raw.split(",")
        tags: list[str] = []
        for tag in raw:
            cleaned = str(tag).strip()
            if cleaned and cleaned not in tags:
                tags.append(cleaned)
        return {"tags": tags}


class CompositeMetadataExtractor:
    """Combines multiple metadata extractors.

    Extractors run in order and each sees what the earlier ones found,
    so the frontmatter extractor must come first.
    """

    def __init__(self, extractors: list | None = None):
        if extractors is None:
            self._extractors = [
                FrontmatterExtractor(),
                TitleExtractor(),
                TagExtractor(),
            ]
        else:
            self._extractors = list(extractors)

    def add_extractor(self, extractor) -> None:
        """Add an extractor to the composite.

        Args:
            extractor: Object with an ``extract(content, path, found)`` method.
        """
        self._extractors.append(extractor)

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        """Extract all metadata from content.

        Args:
            content: Source content.
            path: Path to the source file.

        Returns:
            Dictionary with all extracted metadata.
        """
        result: dict[str, Any] = {}
        for extractor in self._extractors:
            result.update(extractor.extract(content, path, result))
        return result


# Default composite extractor instance
default_metadata_extractor = CompositeMetadataExtractor()
