"""Build pipeline for Perseus.

A build is an explicit, ordered list of stages, each taking the full list of
BuildFile objects and returning it transformed. The stages are chosen from
the configuration's mode-resolved flags when the pipeline is constructed:

1. MarkdownStage: render Markdown items to HTML.
2. LayoutStage: render Jinja bodies and wrap items in their layouts.
3. RelativeAssetsStage: rewrite asset references to relative paths (production).
4. MinifyStage: minify CSS and JavaScript (production).
5. DirectoryIndexStage: expand ``name.html`` into ``name/index.html``; always last.

Relative rewriting runs before minification so the minifiers only ever see
final URLs.
"""

from __future__ import annotations

import posixpath
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from jinja2 import TemplateSyntaxError

from .asset_processors import AssetProcessorRegistry, create_minifier_registry
from .config import SiteConfig
from .content import ContentItem
from .errors import BuildError, format_error_message
from .html_utils import (
    is_root_relative,
    relative_url,
    rewrite_css_urls,
    rewrite_html_urls,
    split_url,
)
from .renderers import RendererRegistry, create_default_registry, first_paragraph
from .templates import TemplateEngine

ASSET_EXTENSIONS = frozenset(
    {
        ".css",
        ".js",
        ".png",
        ".jpg",
        ".jpeg",
        ".gif",
        ".svg",
        ".webp",
        ".ico",
        ".woff",
        ".woff2",
        ".ttf",
        ".otf",
        ".eot",
    }
)


@dataclass
class BuildFile:
    """One output file travelling through the pipeline.

    Attributes:
        path: Posix output path relative to the output root.
        content: Text for pages, stylesheets and scripts; bytes for everything else.
        source_path: Path of the source the file was produced from.
        item: The ContentItem for rendered pages, None for static assets.
    """

    path: str
    content: str | bytes
    source_path: Path
    item: ContentItem | None = None

    @classmethod
    def for_item(cls, item: ContentItem) -> BuildFile:
        return cls(
            path=item.output_path,
            content=item.body,
            source_path=item.source_path,
            item=item,
        )

    @property
    def is_text(self) -> bool:
        return isinstance(self.content, str)

    @property
    def suffix(self) -> str:
        return posixpath.splitext(self.path)[1].lower()

    def final_path(self, directory_indexes: bool) -> str:
        """Return the path this file will have after directory-index expansion."""
        if self.item is None or not directory_indexes:
            return self.path
        return ContentItem.expanded_path(self.path, self.item.directory_index)


class BuildStage(ABC):
    """A single pass over every file of the build."""

    name = "stage"

    @abstractmethod
    def run(self, files: list[BuildFile]) -> list[BuildFile]:
        """Transform the build files and return them."""
        ...

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"<{type(self).__name__}>"


class MarkdownStage(BuildStage):
    """Renders item bodies to HTML and computes post summaries.

    Markdown bodies go through the Markdown renderer; HTML bodies pass
    through unchanged. Jinja bodies are left for the LayoutStage.
    """

    name = "markdown"

    def __init__(self, renderer_registry: RendererRegistry, summary_separator: str = ""):
        self.renderer_registry = renderer_registry
        self.summary_separator = summary_separator

    def run(self, files: list[BuildFile]) -> list[BuildFile]:
        for build_file in files:
            item = build_file.item
            if item is None or item.source_type == "jinja":
                continue
            renderer = self.renderer_registry.get_renderer(item.source_path)
            if renderer is None:
                item.content = item.body
            else:
                item.content = renderer.render(item.body)
                if item.is_post:
                    item.summary = self._summary(renderer, item)
            build_file.content = item.content
        return files

    def _summary(self, renderer, item: ContentItem) -> str:
        separator = self.summary_separator
        if separator and separator in item.body:
            return renderer.render(item.body.split(separator, 1)[0])
        return first_paragraph(item.content)


class LayoutStage(BuildStage):
    """Renders Jinja bodies and wraps every item in its layout.

    Jinja-bodied posts are rendered first, so listings and feeds see their
    content and summary. Template failures are reported as BuildError with
    the item's source file.
    """

    name = "layout"

    def __init__(self, engine: TemplateEngine, summary_separator: str = ""):
        self.engine = engine
        self.summary_separator = summary_separator

    def run(self, files: list[BuildFile]) -> list[BuildFile]:
        items = [f.item for f in files if f.item is not None]
        self.engine.update_collections(items)
        for item in items:
            if item.is_post and item.source_type == "jinja":
                self._guarded(item, self._render_post_body)
        for build_file in files:
            item = build_file.item
            if item is None:
                continue
            build_file.content = self._guarded(item, self.engine.render_item)
        return files

    def _render_post_body(self, item: ContentItem) -> None:
        self.engine.render_body(item, self.engine.context_for(item))
        separator = self.summary_separator
        if separator and separator in item.content:
            item.summary = item.content.split(separator, 1)[0]
        else:
            item.summary = first_paragraph(item.content)

    @staticmethod
    def _guarded(item: ContentItem, render):
        try:
            return render(item)
        except BuildError:
            raise
        except TemplateSyntaxError as exc:
            raise BuildError(
                item.source_path,
                f"Template syntax error on line {exc.lineno}: {exc.message}",
                exc,
            ) from exc
        except Exception as exc:
            raise BuildError(item.source_path, format_error_message(exc), exc) from exc


class RelativeAssetsStage(BuildStage):
    """Rewrites root-relative asset references into relative paths.

    Applies to ``href``/``src``/``action`` attributes in HTML output and
    ``url()`` references in stylesheets. Only references to asset files
    (stylesheets, scripts, images, fonts) are rewritten; links to pages keep
    their root-relative form. The path is computed from the file's final
    location, after directory-index expansion.
    """

    name = "relative_assets"

    def __init__(self, directory_indexes: bool = True):
        self.directory_indexes = directory_indexes

    def run(self, files: list[BuildFile]) -> list[BuildFile]:
        known = {f.final_path(self.directory_indexes) for f in files}
        for build_file in files:
            if not build_file.is_text:
                continue
            if build_file.suffix in (".html", ".htm"):
                rewrite = rewrite_html_urls
            elif build_file.suffix == ".css":
                rewrite = rewrite_css_urls
            else:
                continue
            final = build_file.final_path(self.directory_indexes)
            build_file.content = rewrite(
                build_file.content, self._rewriter(build_file, final, known)
            )
        return files

    @staticmethod
    def _rewriter(build_file: BuildFile, final: str, known: set[str]):
        def rewrite(url: str) -> str:
            if not is_root_relative(url):
                return url
            path, _ = split_url(url)
            if posixpath.splitext(path)[1].lower() not in ASSET_EXTENSIONS:
                return url
            if path.lstrip("/") not in known:
                print(f"Warning: {build_file.path} references missing asset {path}")
            return relative_url(url, final)

        return rewrite


class MinifyStage(BuildStage):
    """Minifies text assets with the processors in a registry."""

    name = "minify"

    def __init__(self, registry: AssetProcessorRegistry):
        self.registry = registry

    def run(self, files: list[BuildFile]) -> list[BuildFile]:
        for build_file in files:
            if build_file.item is not None or not build_file.is_text:
                continue
            processor = self.registry.get_processor(build_file.path)
            if processor is not None:
                build_file.content = processor.process(build_file.content)
        return files


class DirectoryIndexStage(BuildStage):
    """Moves ``name.html`` output to ``name/index.html`` for clean URLs."""

    name = "directory_indexes"

    def run(self, files: list[BuildFile]) -> list[BuildFile]:
        for build_file in files:
            build_file.path = build_file.final_path(True)
        return files


class Pipeline:
    """An ordered list of build stages.

    Attributes:
        stages: Stages in execution order.
    """

    def __init__(self, stages: list[BuildStage]):
        self.stages = list(stages)

    @property
    def stage_names(self) -> list[str]:
        return [stage.name for stage in self.stages]

    def run(self, files: list[BuildFile]) -> list[BuildFile]:
        for stage in self.stages:
            files = stage.run(files)
        return files


def create_pipeline(
    config: SiteConfig,
    engine: TemplateEngine,
    renderer_registry: RendererRegistry | None = None,
) -> Pipeline:
    """Build the stage list for a configuration.

    Args:
        config: Mode-resolved site configuration.
        engine: Template engine used by the layout stage.
        renderer_registry: Optional custom renderer registry.

    Returns:
        Pipeline with stages selected by the configuration flags.
    """
    registry = renderer_registry or create_default_registry(
        config.markdown, config.syntax_highlight
    )
    stages: list[BuildStage] = [
        MarkdownStage(registry, config.blog.summary_separator),
        LayoutStage(engine, config.blog.summary_separator),
    ]
    if config.relative_assets:
        stages.append(RelativeAssetsStage(config.directory_indexes))
    if config.minify_css or config.minify_javascript:
        stages.append(
            MinifyStage(
                create_minifier_registry(config.minify_css, config.minify_javascript)
            )
        )
    if config.directory_indexes:
        stages.append(DirectoryIndexStage())
    return Pipeline(stages)
