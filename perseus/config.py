"""Site configuration for Perseus.

Configuration is read once from ``perseus.yaml`` at the project root, merged
over DEFAULT_CONFIG, validated, and frozen into a SiteConfig that is passed
explicitly to every component of a build.

A top-level ``build:`` mapping holds overrides that apply only to production
builds (minification, relative assets and the like).

Key objects:
- BuildMode: development or production.
- SiteConfig: Immutable site settings.
- load_config: Load and validate perseus.yaml.
- load_data: Load template data from YAML files in the data directory.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

CONFIG_FILENAME = "perseus.yaml"

POST_PLACEHOLDERS = ("year", "month", "day", "title")
MARKDOWN_ENGINES = ("markdown", "mistune")
PLACEHOLDER_RE = re.compile(r":([a-z_]+)")

FEATURE_FLAGS = (
    "minify_css",
    "minify_javascript",
    "relative_assets",
    "live_reload",
    "directory_indexes",
    "syntax_highlight",
)

DEFAULT_CONFIG: dict[str, Any] = {
    "site_url": "",
    "title": "",
    "description": "",
    "source_dir": "site",
    "output_dir": "build",
    "css_dir": "css",
    "js_dir": "js",
    "images_dir": "images",
    "default_layout": "layout",
    "markdown_engine": "markdown",
    "markdown": {
        "fenced_code_blocks": True,
        "smartypants": True,
    },
    "syntax_highlight": True,
    "directory_indexes": True,
    "minify_css": False,
    "minify_javascript": False,
    "relative_assets": False,
    "live_reload": True,
    "port": 4567,
    "ws_port": 35729,
    "blog": {
        "layout": "blog",
        "permalink": "blog/:title",
        "sources": "posts/:year-:month-:day-:title.html",
        "summary_separator": "<!--more-->",
    },
    "pages": {},
}

_KNOWN_KEYS = set(DEFAULT_CONFIG) | {"build"}


class ConfigError(Exception):
    """Invalid or missing site configuration.

    Attributes:
        key: The configuration key at fault, when there is one.
        message: Human-readable error message.
    """

    def __init__(self, message: str, key: str | None = None):
        self.key = key
        self.message = message
        super().__init__(f"{key}: {message}" if key else message)


class BuildMode(str, Enum):
    """Build variant selected at invocation."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"


@dataclass(frozen=True)
class MarkdownOptions:
    """Markdown rendering options.

    Attributes:
        engine: "markdown" (Python-Markdown) or "mistune".
        fenced_code_blocks: Whether triple-backtick fences start code blocks.
        smartypants: Whether quotes, dashes and ellipses are made typographic.
    """

    engine: str = "markdown"
    fenced_code_blocks: bool = True
    smartypants: bool = True


@dataclass(frozen=True)
class BlogOptions:
    """Blog conventions.

    Attributes:
        layout: Layout wrapped around every post.
        permalink: Output URL pattern, e.g. ``blog/:title``.
        sources: Source filename pattern, e.g. ``posts/:year-:month-:day-:title.html``.
        summary_separator: Marker splitting a post's summary from the rest.
    """

    layout: str = "blog"
    permalink: str = "blog/:title"
    sources: str = "posts/:year-:month-:day-:title.html"
    summary_separator: str = "<!--more-->"


@dataclass(frozen=True)
class PageOptions:
    """Per-page overrides matched by output path glob.

    ``layout`` is None when the option leaves the layout alone and False
    when the page must be emitted without one.
    """

    layout: str | bool | None = None
    directory_index: bool = True


@dataclass(frozen=True)
class SiteConfig:
    """Immutable site configuration, created once per build.

    Attributes:
        site_url: Public base URL of the site.
        title: Site title.
        description: Site description.
        source_dir: Content directory, relative to the project root.
        output_dir: Build output directory, relative to the project root.
        css_dir: Stylesheet directory inside the content tree.
        js_dir: Script directory inside the content tree.
        images_dir: Image directory inside the content tree.
        default_layout: Layout used for HTML pages that name none.
        markdown_engine: Markdown engine name.
        markdown: Markdown rendering options.
        syntax_highlight: Whether fenced code is highlighted with Pygments.
        directory_indexes: Whether ``name.html`` is emitted as ``name/index.html``.
        minify_css: Whether CSS outputs are minified.
        minify_javascript: Whether JavaScript outputs are minified.
        relative_assets: Whether asset references are rewritten to relative paths.
        live_reload: Whether the dev server injects the reload script.
        port: Dev server HTTP port.
        ws_port: Dev server live reload websocket port.
        blog: Blog conventions.
        pages: Read-only mapping of output path glob to PageOptions.
        mode: Build mode the flags above were resolved for.
        extra: Read-only mapping of any other top-level keys.
    """

    site_url: str
    title: str
    description: str = ""
    source_dir: str = "site"
    output_dir: str = "build"
    css_dir: str = "css"
    js_dir: str = "js"
    images_dir: str = "images"
    default_layout: str = "layout"
    markdown_engine: str = "markdown"
    markdown: MarkdownOptions = field(default_factory=MarkdownOptions)
    syntax_highlight: bool = True
    directory_indexes: bool = True
    minify_css: bool = False
    minify_javascript: bool = False
    relative_assets: bool = False
    live_reload: bool = True
    port: int = 4567
    ws_port: int = 35729
    blog: BlogOptions = field(default_factory=BlogOptions)
    pages: Mapping[str, PageOptions] = field(
        default_factory=lambda: MappingProxyType({})
    )
    mode: BuildMode = BuildMode.DEVELOPMENT
    extra: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def environment(self) -> str:
        """Name of the build mode, for templates."""
        return self.mode.value

    @property
    def is_production(self) -> bool:
        return self.mode is BuildMode.PRODUCTION


def _deep_merge(base: dict[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``overrides`` into ``base`` recursively and return ``base``."""
    for key, value in overrides.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _read_yaml(path: Path) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Could not parse {path.name}: {exc}") from exc


def _require_mapping(value: Any, key: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigError("expected a mapping", key)
    return value


def _require_str(raw: Mapping[str, Any], key: str, allow_empty: bool = True) -> str:
    value = raw.get(key)
    if value is None:
        value = ""
    if not isinstance(value, str):
        raise ConfigError("expected a string", key)
    if not allow_empty and not value.strip():
        raise ConfigError("is required", key)
    return value


def _require_bool(raw: Mapping[str, Any], key: str) -> bool:
    value = raw.get(key)
    if not isinstance(value, bool):
        raise ConfigError("expected true or false", key)
    return value


def _require_int(raw: Mapping[str, Any], key: str) -> int:
    value = raw.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError("expected an integer", key)
    return value


def _parse_blog(raw: Mapping[str, Any]) -> BlogOptions:
    layout = _require_str(raw, "layout", allow_empty=False)
    permalink = _require_str(raw, "permalink", allow_empty=False).strip("/")
    sources = _require_str(raw, "sources", allow_empty=False).strip("/")
    separator = _require_str(raw, "summary_separator")

    source_names = PLACEHOLDER_RE.findall(sources)
    missing = [name for name in POST_PLACEHOLDERS if name not in source_names]
    if missing:
        placeholders = ", ".join(f":{name}" for name in missing)
        raise ConfigError(f"pattern is missing {placeholders}", "blog.sources")
    for name in PLACEHOLDER_RE.findall(permalink):
        if name not in source_names:
            raise ConfigError(
                f"uses :{name}, which blog.sources does not provide", "blog.permalink"
            )
    return BlogOptions(
        layout=layout,
        permalink=permalink,
        sources=sources,
        summary_separator=separator,
    )


def _parse_pages(raw: Mapping[str, Any]) -> Mapping[str, PageOptions]:
    pages: dict[str, PageOptions] = {}
    for pattern, options in raw.items():
        key = f"pages.{pattern}"
        options = _require_mapping(options or {}, key)
        layout = options.get("layout")
        if layout is True or (layout is not None and not isinstance(layout, (str, bool))):
            raise ConfigError("layout must be a layout name or false", key)
        directory_index = options.get("directory_index", True)
        if not isinstance(directory_index, bool):
            raise ConfigError("directory_index must be true or false", key)
        pages[str(pattern)] = PageOptions(layout=layout, directory_index=directory_index)
    return MappingProxyType(pages)


def parse_config(
    raw: Mapping[str, Any], mode: BuildMode = BuildMode.DEVELOPMENT
) -> SiteConfig:
    """Validate a raw configuration mapping and freeze it into a SiteConfig.

    Args:
        raw: Configuration mapping, usually the parsed perseus.yaml.
        mode: Build mode; production applies the ``build`` overrides.

    Returns:
        Validated SiteConfig.

    Raises:
        ConfigError: If a setting is missing or invalid.
    """
    merged = _deep_merge(copy.deepcopy(DEFAULT_CONFIG), raw)
    overrides = merged.pop("build", None) or {}
    _require_mapping(overrides, "build")
    if mode is BuildMode.PRODUCTION:
        _deep_merge(merged, overrides)

    engine = _require_str(merged, "markdown_engine", allow_empty=False)
    if engine not in MARKDOWN_ENGINES:
        raise ConfigError(
            f"unsupported markdown engine '{engine}' (expected one of: {', '.join(MARKDOWN_ENGINES)})",
            "markdown_engine",
        )
    markdown = _require_mapping(merged["markdown"], "markdown")
    smartypants = _require_bool(markdown, "smartypants")
    if smartypants and engine != "markdown":
        raise ConfigError(
            f"smart punctuation is not available with the {engine} engine",
            "markdown.smartypants",
        )
    flags = {name: _require_bool(merged, name) for name in FEATURE_FLAGS}
    extra = {key: value for key, value in merged.items() if key not in _KNOWN_KEYS}

    return SiteConfig(
        site_url=_require_str(merged, "site_url", allow_empty=False).rstrip("/"),
        title=_require_str(merged, "title", allow_empty=False),
        description=_require_str(merged, "description"),
        source_dir=_require_str(merged, "source_dir", allow_empty=False),
        output_dir=_require_str(merged, "output_dir", allow_empty=False),
        css_dir=_require_str(merged, "css_dir", allow_empty=False).strip("/"),
        js_dir=_require_str(merged, "js_dir", allow_empty=False).strip("/"),
        images_dir=_require_str(merged, "images_dir", allow_empty=False).strip("/"),
        default_layout=_require_str(merged, "default_layout", allow_empty=False),
        markdown_engine=engine,
        markdown=MarkdownOptions(
            engine=engine,
            fenced_code_blocks=_require_bool(markdown, "fenced_code_blocks"),
            smartypants=smartypants,
        ),
        port=_require_int(merged, "port"),
        ws_port=_require_int(merged, "ws_port"),
        blog=_parse_blog(_require_mapping(merged["blog"], "blog")),
        pages=_parse_pages(_require_mapping(merged["pages"] or {}, "pages")),
        mode=mode,
        extra=MappingProxyType(extra),
        **flags,
    )


def load_config(
    project_root: Path, mode: BuildMode = BuildMode.DEVELOPMENT
) -> SiteConfig:
    """Load site configuration from perseus.yaml.

    Args:
        project_root: Root directory of the project.
        mode: Build mode to resolve the configuration for.

    Returns:
        Validated SiteConfig with defaults applied.

    Raises:
        ConfigError: If the file is missing, unparseable or invalid.
    """
    config_path = project_root / CONFIG_FILENAME
    if not config_path.exists():
        raise ConfigError(f"No {CONFIG_FILENAME} found in {project_root}")
    loaded = _read_yaml(config_path)
    if loaded is None:
        loaded = {}
    if not isinstance(loaded, Mapping):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping")
    return parse_config(loaded, mode)


def load_data(project_root: Path) -> dict[str, Any]:
    """Load site data from YAML files in the data directory.

    Args:
        project_root: Root directory of the project.

    Returns:
        Dictionary keyed by file stem with the parsed contents of each file.
    """
    data_dir = project_root / "data"
    data: dict[str, Any] = {}
    if not data_dir.exists():
        return data
    for path in sorted(data_dir.glob("*.yaml")):
        payload = _read_yaml(path)
        if payload is None:
            continue
        data[path.stem] = payload
    return data
