from pathlib import Path

from perseus.html_utils import (
    absolutize_html_urls,
    escape_html,
    is_root_relative,
    join_root_url,
    relative_url,
    rewrite_css_urls,
    rewrite_html_urls,
    split_url,
)
from perseus.utils import (
    build_tags_index,
    ensure_clean_dir,
    is_content,
    is_html,
    is_internal_path,
    is_markdown,
    is_template,
    logical_path,
    slugify,
    titleize,
)


class Item:
    def __init__(self, tags):
        self.tags = tags


def test_slugify():
    assert slugify("Hello, World!") == "hello-world"
    assert slugify("  Spaces   and_underscores ") == "spaces-and-underscores"
    assert slugify("Café Notes") == "café-notes"
    assert slugify("日本 旅行") == "日本-旅行"
    assert slugify("!!!") == ""


def test_titleize_strips_date_and_extensions():
    assert titleize("2024-01-15-hello-world.md") == "Hello World"
    assert titleize("getting-started.html.md") == "Getting Started"
    assert titleize("my_notes") == "My Notes"


def test_logical_path():
    assert logical_path("about.md") == "about.html"
    assert logical_path("feed.xml.jinja") == "feed.xml"
    assert logical_path("index.html.jinja") == "index.html"
    assert logical_path("posts/2023-05-01-hello.markdown") == "posts/2023-05-01-hello.html"
    assert logical_path("404.html") == "404.html"
    assert logical_path("notes/todo.jinja") == "notes/todo.html"


def test_path_classification():
    assert is_internal_path(Path("_layouts/layout.html.jinja"))
    assert is_internal_path(Path("blog/_drafts/post.md"))
    assert not is_internal_path(Path("posts/2023-05-01-hello.md"))
    assert is_markdown(Path("a.MD"))
    assert is_template(Path("feed.xml.jinja"))
    assert is_html(Path("404.html"))
    assert is_content(Path("about.md"))
    assert not is_content(Path("css/site.css"))


def test_ensure_clean_dir(tmp_path):
    target = tmp_path / "out"
    (target / "nested").mkdir(parents=True)
    (target / "nested" / "old.txt").write_text("x", encoding="utf-8")
    ensure_clean_dir(target)
    assert target.is_dir()
    assert list(target.iterdir()) == []


def test_build_tags_index():
    a = Item(["python", "web"])
    b = Item(["python"])
    index = build_tags_index([a, b])
    assert index["python"] == [a, b]
    assert index["web"] == [a]


def test_escape_and_join():
    assert escape_html('<a href="x">&</a>') == "&lt;a href=&quot;x&quot;&gt;&amp;&lt;/a&gt;"
    assert join_root_url("https://example.com/", "/about/") == "https://example.com/about/"
    assert join_root_url("https://example.com", "about") == "https://example.com/about"
    assert join_root_url("", "/about/") == "/about/"


def test_url_helpers():
    assert is_root_relative("/css/site.css")
    assert not is_root_relative("//cdn.example.com/x.js")
    assert not is_root_relative("css/site.css")
    assert split_url("/a.css?v=1#top") == ("/a.css", "?v=1#top")
    assert relative_url("/css/site.css", "about/index.html") == "../css/site.css"
    assert relative_url("/images/logo.png", "index.html") == "images/logo.png"
    assert relative_url("/css/site.css?v=2", "blog/hello/index.html") == "../../css/site.css?v=2"
    assert relative_url("/images/logo.svg", "css/site.css") == "../images/logo.svg"


def test_rewrite_html_urls_skips_external_and_anchors():
    html = (
        '<a href="/about/">A</a><a href="https://x.com/">X</a>'
        '<a href="#top">T</a><img src="/images/a.png">'
    )
    seen = []

    def rewrite(url):
        seen.append(url)
        return url.upper()

    result = rewrite_html_urls(html, rewrite)
    assert seen == ["/about/", "/images/a.png"]
    assert 'href="/ABOUT/"' in result
    assert 'href="https://x.com/"' in result
    assert 'href="#top"' in result


def test_rewrite_css_urls():
    css = "a{background:url('/images/a.png')} b{background:url(/images/b.png)} c{background:url(data:image/png;base64,xx)}"
    result = rewrite_css_urls(css, lambda url: "X" + url)
    assert "url('X/images/a.png')" in result
    assert "url(X/images/b.png)" in result
    assert "url(data:image/png;base64,xx)" in result


def test_absolutize_html_urls():
    html = '<a href="/about/">About</a><img src="https://cdn.example.com/a.png">'
    result = absolutize_html_urls(html, "https://example.com")
    assert 'href="https://example.com/about/"' in result
    assert 'src="https://cdn.example.com/a.png"' in result
    assert absolutize_html_urls(html, "") == html
