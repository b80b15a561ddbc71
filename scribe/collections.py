from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence

from .content import Page
from .utils import slugify, strip_date_prefix


class PageCollection(Sequence[Page]):
    """Lightweight helper for working with lists of Pages in templates and code."""

    def __init__(self, pages: Iterable[Page]):
        self._pages = list(pages)

    def __iter__(self) -> Iterator[Page]:
        return iter(self._pages)

    def __len__(self) -> int:
        return len(self._pages)

    def __getitem__(self, item):
        return self._pages[item]

    def section(self, name: str) -> PageCollection:
        return PageCollection(p for p in self._pages if p.is_page and p.section == name)

    def sections(self, names: Iterable[str]) -> PageCollection:
        wanted = set(names)
        return PageCollection(p for p in self._pages if p.is_page and p.section in wanted)

    def regular(self) -> PageCollection:
        return PageCollection(p for p in self._pages if p.is_page)

    def with_tag(self, tag: str) -> PageCollection:
        key = slugify(tag)
        return PageCollection(p for p in self._pages if key in {slugify(t) for t in p.tags})

    def drafts(self) -> PageCollection:
        return PageCollection(p for p in self._pages if p.draft)

    def published(self) -> PageCollection:
        return PageCollection(p for p in self._pages if not p.draft)

    def sorted(self, reverse: bool = True) -> PageCollection:
        """Sort pages by date, then weight, then filename.

        Args:
            reverse: If True (default), newest first. If False, oldest first.

        Returns:
            A new PageCollection with sorted pages.
        """

        def name_key(p: Page) -> str:
            return strip_date_prefix(p.path.stem).lower() if p.path else p.slug

        # sorted() is stable with reverse=True, so names stay ascending on ties
        pages = sorted(self._pages, key=name_key)
        pages.sort(key=lambda p: (p.date, -p.weight if reverse else p.weight), reverse=reverse)
        return PageCollection(pages)

    def by_weight(self) -> PageCollection:
        """Sort by ascending weight, then title; used for "uses" style sections."""
        return PageCollection(sorted(self._pages, key=lambda p: (p.weight, p.title.lower())))

    def latest(self, count: int = 5) -> PageCollection:
        return PageCollection(self.sorted()[:count])

    def by_year(self) -> list[tuple[int, PageCollection]]:
        """Group pages newest first by publication year."""
        groups: dict[int, list[Page]] = {}
        for page in self.sorted():
            groups.setdefault(page.date.year, []).append(page)
        return [(year, PageCollection(items)) for year, items in groups.items()]

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"PageCollection({len(self._pages)} pages)"


class Term:
    """A taxonomy term: display name, URL slug and the pages using it."""

    def __init__(self, name: str, slug: str, pages: Iterable[Page], base: str = "tags"):
        self.name = name
        self.slug = slug
        self.pages = PageCollection(pages)
        self.url = f"/{base}/{slug}/"

    @property
    def count(self) -> int:
        return len(self.pages)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"Term({self.name!r}, {self.count} pages)"


class TagCollection(Mapping[str, Term]):
    """Mapping of tag slug to Term with convenience helpers.

    Tags are grouped by slug so ``Kotlin`` and ``kotlin`` land on one page;
    the first spelling seen becomes the display name.
    """

    def __init__(self, pages: Iterable[Page], base: str = "tags"):
        self.base = base
        names: dict[str, str] = {}
        grouped: dict[str, list[Page]] = {}
        for page in pages:
            for key in dict.fromkeys(slugify(tag) for tag in page.tags):
                names.setdefault(key, next(t for t in page.tags if slugify(t) == key))
                grouped.setdefault(key, []).append(page)
        self._mapping = {
            key: Term(names[key], key, PageCollection(items).sorted(), base)
            for key, items in sorted(grouped.items())
        }

    def __getitem__(self, key: str) -> Term:
        return self._mapping[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    @property
    def url(self) -> str:
        return f"/{self.base}/"

    def terms(self) -> list[Term]:
        return list(self._mapping.values())

    def sorted_by_count(self) -> list[Term]:
        """Terms with most pages first, ties broken alphabetically."""
        return sorted(self._mapping.values(), key=lambda t: (-t.count, t.name.lower()))

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"TagCollection({len(self._mapping)} tags)"
