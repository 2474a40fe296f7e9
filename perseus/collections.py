from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from datetime import datetime

from .content import ContentItem


class PostCollection(Sequence[ContentItem]):
    """Lightweight helper for working with lists of items in templates and code."""

    def __init__(self, items: Iterable[ContentItem]):
        self._items = list(items)

    def __iter__(self) -> Iterator[ContentItem]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, item):
        return self._items[item]

    def posts(self) -> PostCollection:
        return PostCollection(i for i in self._items if i.is_post)

    def pages(self) -> PostCollection:
        return PostCollection(i for i in self._items if not i.is_post)

    def with_tag(self, tag: str) -> PostCollection:
        return PostCollection(i for i in self._items if tag in i.tags)

    def published(self) -> PostCollection:
        return PostCollection(i for i in self._items if i.published)

    def sorted(self, reverse: bool = True) -> PostCollection:
        """Sort items by date, then by slug.

        Items without a date sort as the oldest.

        Args:
            reverse: If True (default), newest first. If False, oldest first.

        Returns:
            A new PostCollection with sorted items.
        """

        def sort_key(item: ContentItem):
            return (item.date or datetime.min, item.slug)

        return PostCollection(sorted(self._items, key=sort_key, reverse=reverse))

    def latest(self, count: int = 5) -> PostCollection:
        return PostCollection(self.sorted()[:count])

    def previous(self, item: ContentItem) -> ContentItem | None:
        """Return the item published just before ``item``, if any."""
        ordered = self.sorted(reverse=False)._items
        index = self._index(ordered, item)
        return ordered[index - 1] if index is not None and index > 0 else None

    def next(self, item: ContentItem) -> ContentItem | None:
        """Return the item published just after ``item``, if any."""
        ordered = self.sorted(reverse=False)._items
        index = self._index(ordered, item)
        if index is None or index + 1 >= len(ordered):
            return None
        return ordered[index + 1]

    def by_year(self) -> dict[int, PostCollection]:
        """Group dated items by publish year, newest year first."""
        years: dict[int, list[ContentItem]] = {}
        for item in self.sorted():
            if item.date is not None:
                years.setdefault(item.date.year, []).append(item)
        return {year: PostCollection(items) for year, items in years.items()}

    @staticmethod
    def _index(items: list[ContentItem], item: ContentItem) -> int | None:
        for index, candidate in enumerate(items):
            if candidate is item:
                return index
        return None

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"PostCollection({len(self._items)} items)"


class TagCollection(Mapping[str, PostCollection]):
    """Mapping of tag name to PostCollection with convenience helpers."""

    def __init__(self, mapping: dict[str, Iterable[ContentItem]]):
        self._mapping = {k: PostCollection(v).sorted() for k, v in sorted(mapping.items())}

    def __getitem__(self, key: str) -> PostCollection:
        return self._mapping[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"TagCollection({len(self._mapping)} tags)"
