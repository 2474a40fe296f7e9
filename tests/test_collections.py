from datetime import datetime
from pathlib import Path

from perseus.collections import PostCollection, TagCollection
from perseus.content import PAGE, POST, ContentItem


def make_item(slug, kind=POST, date=None, tags=None, published=True):
    return ContentItem(
        title=slug.title(),
        body="",
        content="",
        source_path=Path(f"{slug}.md"),
        rel_path=f"{slug}.md",
        output_path=f"{slug}.html",
        url=f"/{slug}/",
        layout=None,
        source_type="markdown",
        kind=kind,
        date=date,
        slug=slug,
        tags=tags or [],
        published=published,
    )


def sample():
    return PostCollection(
        [
            make_item("first", date=datetime(2023, 1, 1), tags=["python"]),
            make_item("third", date=datetime(2023, 3, 1), tags=["python", "web"]),
            make_item("about", kind=PAGE),
            make_item("second", date=datetime(2023, 2, 1), tags=["web"], published=False),
        ]
    )


def test_filters():
    items = sample()
    assert [i.slug for i in items.posts()] == ["first", "third", "second"]
    assert [i.slug for i in items.pages()] == ["about"]
    assert [i.slug for i in items.with_tag("web")] == ["third", "second"]
    assert [i.slug for i in items.published()] == ["first", "third", "about"]


def test_sorted_newest_first():
    posts = sample().posts()
    assert [i.slug for i in posts.sorted()] == ["third", "second", "first"]
    assert [i.slug for i in posts.sorted(reverse=False)] == ["first", "second", "third"]
    assert [i.slug for i in posts.latest(2)] == ["third", "second"]


def test_undated_items_sort_oldest():
    items = sample()
    assert items.sorted()[-1].slug == "about"


def test_previous_and_next():
    posts = sample().posts().sorted()
    first, second, third = posts[2], posts[1], posts[0]
    assert posts.previous(first) is None
    assert posts.next(first) is second
    assert posts.previous(third) is second
    assert posts.next(third) is None
    assert posts.next(make_item("stranger", date=datetime(2024, 1, 1))) is None


def test_by_year():
    posts = PostCollection(
        [
            make_item("old", date=datetime(2022, 5, 1)),
            make_item("new", date=datetime(2023, 5, 1)),
        ]
    )
    grouped = posts.by_year()
    assert list(grouped) == [2023, 2022]
    assert [i.slug for i in grouped[2022]] == ["old"]


def test_tag_collection():
    tags = TagCollection(
        {
            "web": [make_item("a", date=datetime(2023, 1, 1)), make_item("b", date=datetime(2023, 2, 1))],
            "python": [make_item("c", date=datetime(2023, 1, 1))],
        }
    )
    assert list(tags) == ["python", "web"]
    assert len(tags) == 2
    assert [i.slug for i in tags["web"]] == ["b", "a"]
