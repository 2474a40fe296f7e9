from pathlib import Path

import pytest

from perseus.asset_resolver import AssetNotFoundError, DefaultAssetPathResolver
from perseus.config import BuildMode, parse_config
from perseus.content import DefaultItemBuilder
from perseus.errors import LayoutNotFoundError
from perseus.templates import TemplateEngine

BASE = {
    "site_url": "https://example.com",
    "title": "Example & Co",
    "pages": {"feed.xml": {"layout": False}},
}


def make_site(tmp_path: Path) -> Path:
    site = tmp_path / "site"
    layouts = site / "_layouts"
    layouts.mkdir(parents=True)
    (site / "_partials").mkdir()
    (site / "posts").mkdir()
    (site / "css").mkdir()
    (site / "images").mkdir()
    (layouts / "layout.html.jinja").write_text(
        "<title>{{ current_page.title }} | {{ site.title }}</title>"
        "{% include 'footer.html.jinja' %}"
        "<main>{% block content %}{{ page_content }}{% endblock %}</main>",
        encoding="utf-8",
    )
    (layouts / "blog.html.jinja").write_text(
        "{% extends 'layout.html.jinja' %}{% block content %}<article>{{ page_content }}</article>"
        "{% if previous_post %}<a class='prev' href='{{ url_for(previous_post) }}'>prev</a>{% endif %}"
        "{% if next_post %}<a class='next' href='{{ url_for(next_post) }}'>next</a>{% endif %}"
        "{% endblock %}",
        encoding="utf-8",
    )
    (site / "_partials" / "footer.html.jinja").write_text(
        "<footer>{{ environment }}</footer>", encoding="utf-8"
    )
    (site / "css" / "site.css").write_text("body {}", encoding="utf-8")
    (site / "images" / "logo.svg").write_text("<svg/>", encoding="utf-8")
    (site / "posts" / "2023-05-01-hello-world.md").write_text(
        "---\ntitle: Hello\ntags: [intro]\n---\nHello <em>there</em>.", encoding="utf-8"
    )
    (site / "posts" / "2023-06-01-second.md").write_text("Second post.", encoding="utf-8")
    return site


def make_engine(site: Path, mode=BuildMode.DEVELOPMENT, **overrides):
    config = parse_config(dict(BASE, **overrides), mode)
    builder = DefaultItemBuilder(site, config)
    items = [builder.build(p) for p in sorted((site / "posts").glob("*.md"))]
    for item in items:
        item.content = f"<p>{item.body}</p>"
    engine = TemplateEngine(site, config, data={"nav": [{"title": "Home", "url": "/"}]})
    engine.update_collections(items)
    return engine, builder, items


def test_layout_wraps_content_without_escaping(tmp_path):
    site = make_site(tmp_path)
    engine, builder, items = make_engine(site)
    (site / "about.html").write_text("<p>About <b>us</b></p>", encoding="utf-8")
    item = builder.build(site / "about.html")
    item.content = item.body
    html = engine.render_item(item)
    assert "<main><p>About <b>us</b></p></main>" in html
    assert "Example &amp; Co" in html
    assert "<footer>development</footer>" in html


def test_blog_layout_links_neighbours(tmp_path):
    site = make_site(tmp_path)
    engine, _, items = make_engine(site)
    first, second = items
    html = engine.render_item(first)
    assert "<article><p>Hello <em>there</em>.</p></article>" in html
    assert "class='next' href='/blog/second/'" in html
    assert "class='prev'" not in html
    assert "class='prev' href='/blog/hello-world/'" in engine.render_item(second)


def test_jinja_body_sees_site_context(tmp_path):
    site = make_site(tmp_path)
    (site / "feed.xml.jinja").write_text(
        "<feed>{% for post in posts %}<entry href=\"{{ absolute_url(post) }}\">"
        "{{ post.title }}</entry>{% endfor %}{{ data.nav[0].title }}</feed>",
        encoding="utf-8",
    )
    engine, builder, _ = make_engine(site)
    feed = builder.build(site / "feed.xml.jinja")
    xml = engine.render_item(feed)
    assert xml == (
        '<feed><entry href="https://example.com/blog/second/">Second</entry>'
        '<entry href="https://example.com/blog/hello-world/">Hello</entry>Home</feed>'
    )


def test_absolute_urls_filter(tmp_path):
    site = make_site(tmp_path)
    engine, _, _ = make_engine(site)
    template = engine.env.from_string("{{ body | absolute_urls }}")
    out = template.render(body='<a href="/about/">x</a><img src="https://cdn.example.com/a.png">')
    assert out == '<a href="https://example.com/about/">x</a><img src="https://cdn.example.com/a.png">'


def test_url_helpers(tmp_path):
    site = make_site(tmp_path)
    engine, _, items = make_engine(site)
    assert engine.url_for("about/") == "/about/"
    assert engine.url_for("https://other.org/") == "https://other.org/"
    assert engine.url_for(items[0]) == "/blog/hello-world/"
    assert engine.absolute_url("/feed.xml") == "https://example.com/feed.xml"


def test_asset_helpers(tmp_path):
    site = make_site(tmp_path)
    engine, _, _ = make_engine(site)
    template = engine.env.from_string("{{ css_path('site') }} {{ img_path('logo') }}")
    assert template.render() == "/css/site.css /images/logo.svg"
    with pytest.raises(AssetNotFoundError):
        engine.asset_resolver.js_path("missing")


def test_asset_resolver_without_engine(tmp_path):
    site = make_site(tmp_path)
    resolver = DefaultAssetPathResolver(site, parse_config(BASE))
    assert resolver.css_path("site.css") == "/css/site.css"
    with pytest.raises(AssetNotFoundError) as exc:
        resolver.img_path("nope")
    assert exc.value.asset_type == "image"
    assert len(exc.value.searched_paths) == len(resolver.IMAGE_EXTENSIONS)


def test_collections_exposed(tmp_path):
    site = make_site(tmp_path)
    engine, _, _ = make_engine(site)
    template = engine.env.from_string(
        "{{ posts | length }}:{% for name, tagged in tags.items() %}{{ name }}={{ tagged | length }}{% endfor %}"
    )
    assert template.render() == "2:intro=1"


def test_missing_layout_raises(tmp_path):
    site = make_site(tmp_path)
    (site / "page.md").write_text("---\nlayout: nowhere\n---\nx", encoding="utf-8")
    engine, builder, _ = make_engine(site)
    item = builder.build(site / "page.md")
    with pytest.raises(LayoutNotFoundError) as exc:
        engine.render_item(item)
    assert exc.value.layout == "nowhere"
    assert exc.value.source_path == site / "page.md"


def test_pygments_css(tmp_path):
    site = make_site(tmp_path)
    engine, _, _ = make_engine(site)
    assert ".highlight" in engine.env.globals["pygments_css"]()
