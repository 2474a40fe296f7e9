from pathlib import Path

from perseus.config import MarkdownOptions
from perseus.renderers import (
    HTMLRenderer,
    JinjaContentRenderer,
    MarkdownRenderer,
    RendererRegistry,
    create_default_registry,
    first_paragraph,
)

FENCED = "Intro\n\n```python\nprint('hi')\n```\n"


def test_fenced_code_is_highlighted():
    html = MarkdownRenderer().render(FENCED)
    assert 'class="highlight"' in html
    assert "<p>Intro</p>" in html


def test_fenced_code_without_highlighting():
    html = MarkdownRenderer(syntax_highlight=False).render(FENCED)
    assert 'class="language-python"' in html
    assert 'class="highlight"' not in html


def test_fenced_code_blocks_disabled():
    options = MarkdownOptions(fenced_code_blocks=False)
    html = MarkdownRenderer(options).render(FENCED)
    assert "language-python" not in html
    assert 'class="highlight"' not in html


def test_smart_punctuation():
    html = MarkdownRenderer().render('He said "hello" -- it\'s fine...')
    assert "&ldquo;hello&rdquo;" in html
    assert "&ndash;" in html
    assert "&rsquo;" in html
    assert "&hellip;" in html


def test_smart_punctuation_leaves_code_alone():
    html = MarkdownRenderer().render('Run `"quoted" -- arg`')
    assert '<code>"quoted" -- arg</code>' in html


def test_smart_punctuation_disabled():
    options = MarkdownOptions(smartypants=False)
    html = MarkdownRenderer(options).render('He said "hello"')
    assert '"hello"' in html
    assert "&ldquo;" not in html


def test_rendering_is_deterministic():
    source = "# Title\n\nText with a footnote[^1].\n\n[^1]: The note.\n\n" + FENCED
    renderer = MarkdownRenderer()
    assert renderer.render(source) == renderer.render(source)
    assert MarkdownRenderer().render(source) == renderer.render(source)


def test_mistune_engine():
    options = MarkdownOptions(engine="mistune", smartypants=False)
    renderer = MarkdownRenderer(options)
    assert 'class="highlight"' in renderer.render(FENCED)
    unknown = renderer.render("```nosuchlang\n<b>x</b>\n```\n")
    assert '<pre><code class="language-nosuchlang">&lt;b&gt;x&lt;/b&gt;' in unknown
    assert renderer.render(FENCED) == renderer.render(FENCED)


def test_mistune_engine_fenced_code_disabled():
    options = MarkdownOptions(engine="mistune", fenced_code_blocks=False, smartypants=False)
    html = MarkdownRenderer(options).render(FENCED)
    assert "language-python" not in html
    assert 'class="highlight"' not in html


def test_first_paragraph():
    assert first_paragraph("<h1>T</h1><p>One</p><p>Two</p>") == "<p>One</p>"
    assert first_paragraph("<h1>T</h1>") == ""


def test_registry_selects_renderer():
    registry = create_default_registry()
    assert registry.get_renderer(Path("a.md")).source_type == "markdown"
    assert registry.get_renderer(Path("feed.xml.jinja")).source_type == "jinja"
    assert registry.get_renderer(Path("404.html")).source_type == "html"
    assert registry.get_renderer(Path("site.css")) is None


def test_pass_through_renderers():
    assert HTMLRenderer().render("<p>x</p>") == "<p>x</p>"
    assert JinjaContentRenderer().render("{{ x }}") == "{{ x }}"
    registry = RendererRegistry()
    registry.register(HTMLRenderer())
    assert registry.get_renderer(Path("a.md")) is None
