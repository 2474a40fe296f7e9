"""Content discovery for Perseus.

This module finds the content sources of a site, classifies blog posts by
their filename pattern, and creates ContentItem objects carrying everything
the build pipeline needs: output path, URL, layout and metadata.

Key classes:
- ContentItem: Dataclass representing a page or a blog post.
- FileContentLoader: Discovers content and asset files in the site directory.
- LayoutResolver: Picks the layout for an item.
- DefaultItemBuilder: Builds ContentItem objects from source files.
- ContentProcessor: Facade returning all items of a site.
"""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

from .config import PageOptions, SiteConfig
from .errors import ContentError
from .extractors import (
    CompositeMetadataExtractor,
    FrontmatterError,
    default_metadata_extractor,
)
from .permalinks import (
    PermalinkPattern,
    SourcePattern,
    directory_index_path,
    post_date,
    post_fields,
    url_for_path,
)
from .renderers import RendererRegistry, create_default_registry
from .utils import is_content, is_internal_path, logical_path, slugify

PAGE = "page"
POST = "post"


@dataclass
class ContentItem:
    """A page or blog post of the site.

    Attributes:
        title: Human-readable title.
        body: Source text with frontmatter removed.
        content: Rendered HTML body, filled in by the build pipeline.
        source_path: Path to the source file.
        rel_path: Posix source path relative to the site directory.
        output_path: Posix output path before directory-index expansion.
        url: Public URL of the final output file.
        layout: Layout name, or None when the item is emitted bare.
        source_type: "markdown", "html" or "jinja".
        kind: "page" or "post".
        date: Publish date for posts, frontmatter date for pages.
        slug: URL slug (the post title part for posts).
        tags: Tags from frontmatter.
        summary: HTML summary for posts, filled in by the build pipeline.
        published: False hides the item from production builds.
        directory_index: Whether the output may be expanded into name/index.html.
        frontmatter: Raw frontmatter mapping.
    """

    title: str
    body: str
    content: str
    source_path: Path
    rel_path: str
    output_path: str
    url: str
    layout: str | None
    source_type: str
    kind: str = PAGE
    date: datetime | None = None
    slug: str = ""
    tags: list[str] = field(default_factory=list)
    summary: str = ""
    published: bool = True
    directory_index: bool = True
    frontmatter: dict[str, Any] = field(default_factory=dict)

    @property
    def is_post(self) -> bool:
        return self.kind == POST

    @property
    def final_path(self) -> str:
        """Output path once directory-index expansion has been applied."""
        return self.expanded_path(self.output_path, self.directory_index)

    @staticmethod
    def expanded_path(output_path: str, directory_index: bool) -> str:
        return directory_index_path(output_path) if directory_index else output_path

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"ContentItem({self.kind} {self.rel_path!r} -> {self.output_path!r})"


class FileContentLoader:
    """Discovers files in a site directory.

    Internal directories (``_layouts``, ``_partials``) are skipped.

    Attributes:
        site_dir: Directory containing site content.
    """

    def __init__(self, site_dir: Path):
        self.site_dir = site_dir

    def _iter_public(self) -> list[Path]:
        files: list[Path] = []
        for path in sorted(self.site_dir.rglob("*")):
            if path.is_dir():
                continue
            rel = path.relative_to(self.site_dir)
            if is_internal_path(rel) or rel.name.startswith("."):
                continue
            files.append(path)
        return files

    def iter_files(self) -> list[Path]:
        """Return all content sources (Markdown, Jinja and HTML files)."""
        return [path for path in self._iter_public() if is_content(path)]

    def iter_assets(self) -> list[Path]:
        """Return all static files that are not content sources."""
        return [path for path in self._iter_public() if not is_content(path)]


class LayoutResolver:
    """Resolves the layout for an item.

    Precedence: frontmatter ``layout``, then the ``pages`` option matching the
    output path, then the blog layout for posts, then the default layout for
    HTML output. Non-HTML output gets no layout unless one is named.
    """

    def __init__(self, config: SiteConfig):
        self.config = config

    def page_options(self, logical: str) -> PageOptions | None:
        """Return the ``pages`` option whose glob matches the logical output path."""
        for pattern, options in self.config.pages.items():
            if fnmatch.fnmatchcase(logical, pattern):
                return options
        return None

    def resolve(
        self,
        logical: str,
        kind: str,
        frontmatter: dict[str, Any],
        options: PageOptions | None,
    ) -> str | None:
        if "layout" in frontmatter:
            return self._normalize(frontmatter["layout"])
        if options is not None and options.layout is not None:
            return self._normalize(options.layout)
        if kind == POST:
            return self.config.blog.layout
        if logical.lower().endswith((".html", ".htm")):
            return self.config.default_layout
        return None

    @staticmethod
    def _normalize(layout: Any) -> str | None:
        if layout is False or layout is None:
            return None
        return str(layout)


class DefaultItemBuilder:
    """Builds ContentItem objects from source files.

    Attributes:
        site_dir: Directory containing site content.
        config: Site configuration.
        renderer_registry: Registry used to tell the source type of a file.
        metadata_extractor: Composite metadata extractor.
        layout_resolver: Layout resolver instance.
    """

    def __init__(
        self,
        site_dir: Path,
        config: SiteConfig,
        renderer_registry: RendererRegistry | None = None,
        metadata_extractor: CompositeMetadataExtractor | None = None,
    ):
        self.site_dir = site_dir
        self.config = config
        self.renderer_registry = renderer_registry or create_default_registry(
            config.markdown, config.syntax_highlight
        )
        self.metadata_extractor = metadata_extractor or default_metadata_extractor
        self.layout_resolver = LayoutResolver(config)
        self.sources = SourcePattern(config.blog.sources)
        self.permalink = PermalinkPattern(config.blog.permalink)

    def build(self, path: Path) -> ContentItem:
        """Build a ContentItem from a source file.

        Args:
            path: Path to the source file.

        Returns:
            ContentItem with output path, URL and layout resolved.

        Raises:
            ContentError: If the file sits among the posts but does not
                follow the post naming pattern, or its metadata is invalid.
        """
        rel_path = path.relative_to(self.site_dir).as_posix()
        logical = logical_path(rel_path)
        try:
            raw = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise ContentError(path, f"Source is not valid UTF-8 text: {exc.reason}", exc) from exc

        try:
            metadata = self.metadata_extractor.extract(raw, path)
        except FrontmatterError as exc:
            raise ContentError(path, str(exc), exc) from exc
        frontmatter = metadata.get("frontmatter", {})

        renderer = self.renderer_registry.get_renderer(path)
        source_type = renderer.source_type if renderer else "html"

        match = self.sources.match(logical)
        if match is None and self.sources.covers(logical):
            raise ContentError(
                path,
                f"'{rel_path}' does not match the post filename pattern "
                f"'{self.config.blog.sources}'",
            )

        if match is not None:
            kind = POST
            try:
                item_date: datetime | None = post_date(match)
            except ValueError as exc:
                raise ContentError(path, f"Invalid post date in '{rel_path}': {exc}", exc) from exc
            fields = post_fields(match)
            output_path = self.permalink.expand(fields)
            slug = fields["title"]
            if not slug:
                raise ContentError(
                    path, f"Post title in '{rel_path}' does not produce a URL slug"
                )
        else:
            kind = PAGE
            item_date = self._page_date(path, frontmatter)
            output_path = logical
            slug = slugify(Path(logical).stem) or "index"

        options = self.layout_resolver.page_options(logical)
        layout = self.layout_resolver.resolve(logical, kind, frontmatter, options)
        directory_index = self._directory_index(frontmatter, options)
        published = self._published(path, frontmatter)

        final_path = ContentItem.expanded_path(
            output_path, directory_index and self.config.directory_indexes
        )
        return ContentItem(
            title=metadata.get("title", ""),
            body=metadata.get("body", raw),
            content="",
            source_path=path,
            rel_path=rel_path,
            output_path=output_path,
            url=url_for_path(final_path),
            layout=layout,
            source_type=source_type,
            kind=kind,
            date=item_date,
            slug=slug,
            tags=metadata.get("tags", []),
            published=published,
            directory_index=directory_index and self.config.directory_indexes,
            frontmatter=frontmatter,
        )

    @staticmethod
    def _page_date(path: Path, frontmatter: dict[str, Any]) -> datetime | None:
        value = frontmatter.get("date")
        if value is None:
            return None
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)
        raise ContentError(path, f"Frontmatter date must be a YYYY-MM-DD date, got {value!r}")

    @staticmethod
    def _directory_index(frontmatter: dict[str, Any], options: PageOptions | None) -> bool:
        if "directory_index" in frontmatter:
            return bool(frontmatter["directory_index"])
        if options is not None:
            return options.directory_index
        return True

    @staticmethod
    def _published(path: Path, frontmatter: dict[str, Any]) -> bool:
        value = frontmatter.get("published", True)
        if not isinstance(value, bool):
            raise ContentError(path, "Frontmatter 'published' must be true or false")
        return value


class ContentProcessor:
    """Facade for discovering content and building ContentItem objects.

    Attributes:
        site_dir: Directory containing site content.
        config: Site configuration.
    """

    def __init__(
        self,
        site_dir: Path,
        config: SiteConfig,
        content_loader: FileContentLoader | None = None,
        item_builder: DefaultItemBuilder | None = None,
    ):
        self.site_dir = site_dir
        self.config = config
        self._content_loader = content_loader or FileContentLoader(site_dir)
        self._item_builder = item_builder or DefaultItemBuilder(site_dir, config)

    def load(self) -> list[ContentItem]:
        """Load all content files and create ContentItem objects.

        Unpublished items are dropped from production builds.

        Returns:
            List of ContentItem objects in source path order.
        """
        items: list[ContentItem] = []
        for path in self._content_loader.iter_files():
            item = self._item_builder.build(path)
            if not item.published and self.config.is_production:
                continue
            items.append(item)
        return items
