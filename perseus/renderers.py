"""Content renderers for Perseus.

Each renderer handles rendering one type of content source to HTML.

Key classes:
- MarkdownRenderer: Renders Markdown to HTML with syntax highlighting and smart punctuation.
- HTMLRenderer: Passes through HTML content.
- JinjaContentRenderer: Marks Jinja content for the TemplateEngine.
- RendererRegistry: Picks the renderer for a source file.
"""

from __future__ import annotations

import re
from pathlib import Path

import markdown
import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .config import MarkdownOptions
from .html_utils import escape_html
from .utils import is_html, is_markdown, is_template

FIRST_PARAGRAPH_RE = re.compile(r"<p>.*?</p>", re.DOTALL)

BASE_EXTENSIONS = ["tables", "footnotes", "sane_lists"]
MISTUNE_PLUGINS = ["strikethrough", "footnotes", "table", "url"]


def first_paragraph(html: str) -> str:
    """Return the first ``<p>`` element of rendered HTML, or an empty string."""
    match = FIRST_PARAGRAPH_RE.search(html)
    return match.group(0) if match else ""


class _HighlightRenderer(mistune.HTMLRenderer):
    """Mistune renderer that highlights fenced code with Pygments."""

    def __init__(self, syntax_highlight: bool = True):
        super().__init__(escape=False)
        self.syntax_highlight = syntax_highlight

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a code block, highlighted when its language is known.

        Args:
            code: The code content.
            info: Language identifier (e.g., 'python', 'ruby').

        Returns:
            HTML string with highlighted code.
        """
        lang = info.split()[0] if info and info.strip() else None
        if lang and self.syntax_highlight:
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                formatter = HtmlFormatter(cssclass="highlight")
                return highlight(code, lexer, formatter)
        lang_class = f' class="language-{escape_html(lang)}"' if lang else ""
        return f"<pre><code{lang_class}>{escape_html(code)}</code></pre>\n"


class MarkdownRenderer:
    """Renders Markdown content to HTML.

    Two engines are available. Python-Markdown (``markdown``) supports
    every option; mistune renders fenced code but has no smart punctuation.

    Attributes:
        options: Markdown options (engine, fenced code blocks, smart punctuation).
        syntax_highlight: Whether fenced code with a language is highlighted.
    """

    def __init__(
        self, options: MarkdownOptions | None = None, syntax_highlight: bool = True
    ):
        self.options = options or MarkdownOptions()
        self.syntax_highlight = syntax_highlight

    @property
    def source_type(self) -> str:
        return "markdown"

    def can_render(self, path: Path) -> bool:
        return is_markdown(path)

    def _extensions(self) -> tuple[list[str], dict[str, dict]]:
        extensions = list(BASE_EXTENSIONS)
        configs: dict[str, dict] = {}
        if self.options.fenced_code_blocks:
            extensions.append("fenced_code")
        if self.syntax_highlight:
            extensions.append("codehilite")
            configs["codehilite"] = {"css_class": "highlight", "guess_lang": False}
        if self.options.smartypants:
            extensions.append("smarty")
        return extensions, configs

    def _create_mistune(self) -> mistune.Markdown:
        md = mistune.create_markdown(
            renderer=_HighlightRenderer(self.syntax_highlight),
            plugins=MISTUNE_PLUGINS,
        )
        if not self.options.fenced_code_blocks:
            block = md.block
            for rules in (block.rules, block.block_quote_rules, block.list_rules):
                if "fenced_code" in rules:
                    rules.remove("fenced_code")
        return md

    def render(self, content: str) -> str:
        """Render Markdown content to HTML.

        A fresh parser is built for every call so that rendering the same
        input always yields the same output.

        Args:
            content: Markdown source content.

        Returns:
            Rendered HTML.
        """
        if self.options.engine == "mistune":
            return self._create_mistune()(content)
        extensions, configs = self._extensions()
        md = markdown.Markdown(
            extensions=extensions, extension_configs=configs, output_format="html"
        )
        return md.convert(content)


class HTMLRenderer:
    """Passes through HTML content unchanged."""

    @property
    def source_type(self) -> str:
        return "html"

    def can_render(self, path: Path) -> bool:
        return is_html(path)

    def render(self, content: str) -> str:
        return content


class JinjaContentRenderer:
    """Handles Jinja template content.

    The actual Jinja rendering is deferred to the TemplateEngine, which
    needs the whole site in its context.
    """

    @property
    def source_type(self) -> str:
        return "jinja"

    def can_render(self, path: Path) -> bool:
        return is_template(path)

    def render(self, content: str) -> str:
        return content


class RendererRegistry:
    """Registry for content renderers.

    The first registered renderer that accepts a path wins.
    """

    def __init__(self, renderers: list | None = None):
        self._renderers: list = list(renderers or [])

    def register(self, renderer) -> None:
        """Register a new renderer.

        Args:
            renderer: Object with ``source_type``, ``can_render`` and ``render``.
        """
        self._renderers.append(renderer)

    def get_renderer(self, path: Path):
        """Get the appropriate renderer for a file.

        Args:
            path: Path to the source file.

        Returns:
            The first renderer that can handle the file, or None.
        """
        for renderer in self._renderers:
            if renderer.can_render(path):
                return renderer
        return None


def create_default_registry(
    options: MarkdownOptions | None = None, syntax_highlight: bool = True
) -> RendererRegistry:
    """Create a registry with the Markdown, Jinja and HTML renderers."""
    return RendererRegistry(
        [
            MarkdownRenderer(options, syntax_highlight),
            JinjaContentRenderer(),
            HTMLRenderer(),
        ]
    )
