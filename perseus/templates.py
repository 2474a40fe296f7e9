"""Template rendering engine for Perseus.

This module uses Jinja2 to render template bodies and wrap rendered content
in layouts. Layouts live in ``_layouts`` and partials in ``_partials`` inside
the site directory; layouts may extend each other.

Key class:
- TemplateEngine: Handles template rendering and provides context to templates.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, Template, TemplateNotFound, select_autoescape
from markupsafe import Markup
from pygments.formatters import HtmlFormatter

from .asset_resolver import DefaultAssetPathResolver
from .collections import PostCollection, TagCollection
from .config import SiteConfig
from .content import ContentItem
from .errors import LayoutNotFoundError
from .html_utils import absolutize_html_urls, join_root_url
from .utils import build_tags_index

__all__ = ["TemplateEngine"]

LAYOUT_SUFFIXES = (".html.jinja", ".xml.jinja", ".jinja", ".html", "")


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Attributes:
        site_dir: Directory containing the ``_layouts`` and ``_partials`` folders.
        config: Site configuration, exposed to templates as ``site``.
        data: Data loaded from the project's data directory.
        env: Jinja2 environment.
        pages: Collection of every item of the site.
        posts: Collection of blog posts, newest first.
        tags: Mapping of tag names to posts.
        asset_resolver: Resolver for asset paths.
    """

    def __init__(
        self,
        site_dir: Path,
        config: SiteConfig,
        data: dict[str, Any] | None = None,
        asset_resolver: DefaultAssetPathResolver | None = None,
    ):
        self.site_dir = site_dir
        self.config = config
        self.data = data or {}
        self.env = Environment(
            loader=FileSystemLoader(
                [
                    str(site_dir / "_layouts"),
                    str(site_dir / "_partials"),
                ]
            ),
            autoescape=select_autoescape(
                ["html", "xml", "html.jinja", "xml.jinja"], default_for_string=True
            ),
        )
        self.pages = PostCollection([])
        self.posts = PostCollection([])
        self.tags = TagCollection({})

        self.asset_resolver = asset_resolver or DefaultAssetPathResolver(site_dir, config)
        self.asset_resolver.set_url_generator(self.url_for)

        self._install_globals()

    def _install_globals(self) -> None:
        """Install global variables and functions in the Jinja environment."""
        self.env.globals["site"] = self.config
        self.env.globals["data"] = self.data
        self.env.globals["environment"] = self.config.environment
        self.env.globals["pages"] = self.pages
        self.env.globals["posts"] = self.posts
        self.env.globals["tags"] = self.tags
        self.env.globals["url_for"] = self.url_for
        self.env.globals["absolute_url"] = self.absolute_url
        self.env.globals["pygments_css"] = self._pygments_css
        self.env.globals["js_path"] = self.asset_resolver.js_path
        self.env.globals["css_path"] = self.asset_resolver.css_path
        self.env.globals["img_path"] = self.asset_resolver.img_path
        self.env.filters["absolute_urls"] = self._absolute_urls

    @staticmethod
    def _pygments_css() -> str:
        """Return Pygments CSS styles for the ``.highlight`` class."""
        return HtmlFormatter().get_style_defs(".highlight")

    def update_collections(self, items: Iterable[ContentItem]) -> None:
        """Expose the site's items to templates.

        Args:
            items: Every content item of the build.
        """
        self.pages = PostCollection(items)
        self.posts = self.pages.posts().published().sorted()
        self.tags = TagCollection(build_tags_index(self.posts))
        self.env.globals["pages"] = self.pages
        self.env.globals["posts"] = self.posts
        self.env.globals["tags"] = self.tags

    def url_for(self, target: str | ContentItem) -> str:
        """Return the root-relative URL of a path or content item.

        Args:
            target: A ContentItem, a site path, or an external URL.

        Returns:
            URL beginning with ``/`` unless ``target`` is external.
        """
        if isinstance(target, ContentItem):
            return target.url
        if target.startswith(("http://", "https://", "//")):
            return target
        return target if target.startswith("/") else f"/{target}"

    def absolute_url(self, target: str | ContentItem) -> str:
        """Return the absolute URL of a path or content item under ``site_url``."""
        url = self.url_for(target)
        if url.startswith(("http://", "https://", "//")):
            return url
        return join_root_url(self.config.site_url, url)

    def _absolute_urls(self, html: str) -> Markup:
        return Markup(absolutize_html_urls(str(html), self.config.site_url))

    def context_for(self, item: ContentItem) -> dict[str, Any]:
        """Return the template context for rendering an item."""
        return {
            "current_page": item,
            "frontmatter": item.frontmatter,
            "previous_post": self.posts.previous(item) if item.is_post else None,
            "next_post": self.posts.next(item) if item.is_post else None,
        }

    def render_item(self, item: ContentItem) -> str:
        """Render an item's body and wrap it in its layout.

        Args:
            item: Item whose ``content`` holds its rendered HTML (for Markdown
                and HTML sources) or whose ``body`` is a Jinja template.

        Returns:
            Rendered output text.

        Raises:
            LayoutNotFoundError: If the item names a layout that does not exist.
        """
        context = self.context_for(item)
        body_html = self.render_body(item, context)
        if item.layout is None:
            return body_html
        layout_template = self.resolve_layout(item)
        return layout_template.render(page_content=Markup(body_html), **context)

    def render_body(self, item: ContentItem, context: dict[str, Any]) -> str:
        """Render the item body.

        Jinja bodies are rendered once and kept in ``item.content``.

        Args:
            item: Item to render.
            context: Template context dictionary.

        Returns:
            Rendered body HTML.
        """
        if item.source_type == "jinja" and not item.content:
            template = self.env.from_string(item.body)
            item.content = template.render(**context)
        return item.content

    def resolve_layout(self, item: ContentItem) -> Template:
        """Resolve and return the layout template named by an item.

        Raises:
            LayoutNotFoundError: If no template matches the layout name.
        """
        layout = item.layout or ""
        candidates = [f"{layout}{suffix}" for suffix in LAYOUT_SUFFIXES]
        for name in candidates:
            try:
                return self.env.get_template(name)
            except TemplateNotFound:
                continue
        raise LayoutNotFoundError(item.source_path, layout, candidates)
