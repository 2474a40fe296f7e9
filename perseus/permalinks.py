"""Blog path patterns for Perseus.

Posts are recognised by a source filename pattern such as
``posts/:year-:month-:day-:title.html`` and published under a permalink
pattern such as ``blog/:title``. Directory-index expansion then turns
``blog/hello-world.html`` into ``blog/hello-world/index.html``.

Key objects:
- SourcePattern: Matches post source paths and extracts their fields.
- PermalinkPattern: Expands post fields into an output path.
- directory_index_path: The final ``name.html`` to ``name/index.html`` step.
- url_for_path: The public URL of an output path.
"""

from __future__ import annotations

import posixpath
import re
from datetime import datetime

from .config import PLACEHOLDER_RE
from .utils import slugify

INDEX_FILE = "index.html"

_PLACEHOLDER_REGEX = {
    "year": r"(?P<year>\d{4})",
    "month": r"(?P<month>\d{2})",
    "day": r"(?P<day>\d{2})",
}


class SourcePattern:
    """Compiled blog source pattern.

    Attributes:
        pattern: The pattern string, e.g. ``posts/:year-:month-:day-:title.html``.
        directory: Directory part preceding the first placeholder, e.g. ``posts/``.
    """

    def __init__(self, pattern: str):
        self.pattern = pattern.strip("/")
        first = PLACEHOLDER_RE.search(self.pattern)
        prefix = self.pattern[: first.start()] if first else self.pattern
        self.directory = prefix[: prefix.rfind("/") + 1]
        self._regex = re.compile(self._compile(self.pattern))

    @staticmethod
    def _compile(pattern: str) -> str:
        parts: list[str] = []
        position = 0
        for match in PLACEHOLDER_RE.finditer(pattern):
            parts.append(re.escape(pattern[position : match.start()]))
            name = match.group(1)
            parts.append(_PLACEHOLDER_REGEX.get(name, rf"(?P<{name}>[^/]+?)"))
            position = match.end()
        parts.append(re.escape(pattern[position:]))
        return "^" + "".join(parts) + "$"

    def covers(self, rel_path: str) -> bool:
        """Return True if ``rel_path`` lies in the directory holding posts."""
        return bool(self.directory) and rel_path.startswith(self.directory)

    def match(self, rel_path: str) -> dict[str, str] | None:
        """Match a logical source path against the pattern.

        Args:
            rel_path: Posix path relative to the site directory, template
                extensions already stripped.

        Returns:
            Mapping of placeholder name to captured text, or None.
        """
        found = self._regex.match(rel_path)
        if not found:
            return None
        return found.groupdict()

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"SourcePattern({self.pattern!r})"


class PermalinkPattern:
    """Expands post fields into an output path.

    A permalink without a file extension is published as ``<permalink>.html``
    so that directory-index expansion can give it a clean URL.
    """

    def __init__(self, pattern: str):
        self.pattern = pattern.strip("/")

    def expand(self, fields: dict[str, str]) -> str:
        """Substitute placeholders and return the output path.

        Args:
            fields: Placeholder values, e.g. from SourcePattern.match.

        Returns:
            Posix output path relative to the output root.

        Raises:
            KeyError: If the pattern names a field that was not supplied.
        """
        path = PLACEHOLDER_RE.sub(lambda m: fields[m.group(1)], self.pattern)
        if not posixpath.splitext(path)[1]:
            path = f"{path}.html"
        return path


def post_fields(match: dict[str, str]) -> dict[str, str]:
    """Normalise captured source fields for permalink expansion.

    The title is slugified; every other field is used as captured.
    """
    fields = dict(match)
    fields["title"] = slugify(fields["title"])
    return fields


def post_date(match: dict[str, str]) -> datetime:
    """Return the publish date captured from a post filename.

    Raises:
        ValueError: If the captured year, month and day are not a real date.
    """
    return datetime(int(match["year"]), int(match["month"]), int(match["day"]))


def directory_index_path(path: str) -> str:
    """Expand ``name.html`` into ``name/index.html``.

    ``index.html`` files and non-HTML outputs are returned unchanged.

    Examples:
        >>> directory_index_path("about.html")
        'about/index.html'

        >>> directory_index_path("blog/index.html")
        'blog/index.html'

        >>> directory_index_path("feed.xml")
        'feed.xml'
    """
    head, name = posixpath.split(path)
    stem, ext = posixpath.splitext(name)
    if ext.lower() != ".html" or name == INDEX_FILE:
        return path
    return posixpath.join(head, stem, INDEX_FILE)


def url_for_path(path: str) -> str:
    """Return the public URL of an output path.

    Examples:
        >>> url_for_path("blog/hello-world/index.html")
        '/blog/hello-world/'

        >>> url_for_path("feed.xml")
        '/feed.xml'
    """
    if path == INDEX_FILE:
        return "/"
    if path.endswith(f"/{INDEX_FILE}"):
        return f"/{path[: -len(INDEX_FILE)]}"
    return f"/{path}"
