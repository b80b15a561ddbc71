from datetime import datetime, timezone
from pathlib import Path

from scribe.collections import PageCollection, TagCollection, Term
from scribe.content import Page


def make_page(name, section="posts", day=1, year=2024, weight=0, tags=None, draft=False, kind="page"):
    date = datetime(year, 1, day, tzinfo=timezone.utc)
    return Page(
        title=name.title(),
        kind=kind,
        section=section,
        url=f"/{section}/{name}/" if section else f"/{name}/",
        slug=name,
        date=date,
        lastmod=date,
        weight=weight,
        tags=tags or [],
        draft=draft,
        path=Path(f"content/{section}/{name}.md"),
    )


def test_filters_and_sorting():
    old = make_page("old", day=1, tags=["Kotlin"])
    new = make_page("new", day=5, tags=["kotlin", "Testing"])
    draft = make_page("draft", day=3, draft=True)
    gear = make_page("gear", section="uses")
    section = make_page("posts", section="", kind="section")
    pages = PageCollection([old, new, draft, gear, section])

    assert list(pages.section("posts")) == [old, new, draft]
    assert list(pages.sections(["posts", "uses"])) == [old, new, draft, gear]
    assert section not in pages.regular()
    assert list(pages.with_tag("KOTLIN")) == [old, new]
    assert list(pages.drafts()) == [draft]
    assert draft not in pages.published()
    assert list(pages.section("posts").sorted()) == [new, draft, old]
    assert list(pages.section("posts").sorted(reverse=False)) == [old, draft, new]
    assert list(pages.section("posts").latest(2)) == [new, draft]
    assert len(pages) == 5
    assert pages[0] is old


def test_sorted_keeps_names_ascending_on_ties():
    b = make_page("b", day=3)
    a = make_page("a", day=3)
    older = make_page("older", day=1)
    pages = PageCollection([b, older, a])
    assert list(pages.sorted()) == [a, b, older]
    assert list(pages.sorted(reverse=False)) == [older, a, b]

    light = make_page("z", day=3, weight=1)
    heavy = make_page("c", day=3, weight=2)
    assert list(PageCollection([heavy, b, light, a]).sorted()) == [a, b, light, heavy]


def test_by_weight_and_by_year():
    second = make_page("software", section="uses", weight=2)
    first = make_page("hardware", section="uses", weight=1)
    desk = make_page("desk", section="uses", weight=1)
    assert list(PageCollection([second, first, desk]).by_weight()) == [desk, first, second]

    a = make_page("a", year=2023)
    b = make_page("b", year=2024, day=2)
    c = make_page("c", year=2024, day=9)
    groups = PageCollection([a, b, c]).by_year()
    assert [year for year, _ in groups] == [2024, 2023]
    assert list(groups[0][1]) == [c, b]


def test_tag_collection_groups_by_slug():
    first = make_page("first", day=1, tags=["Kotlin", "Unit Testing"])
    second = make_page("second", day=2, tags=["kotlin"])
    tags = TagCollection([first, second])

    assert set(tags) == {"kotlin", "unit-testing"}
    kotlin = tags["kotlin"]
    assert kotlin.name == "Kotlin"
    assert kotlin.url == "/tags/kotlin/"
    assert kotlin.count == 2
    assert list(kotlin.pages) == [second, first]
    assert tags.url == "/tags/"
    assert [term.slug for term in tags.sorted_by_count()] == ["kotlin", "unit-testing"]
    assert [term.slug for term in tags.terms()] == ["kotlin", "unit-testing"]

    topics = TagCollection([first], base="topics")
    assert topics.url == "/topics/"
    assert topics["kotlin"].url == "/topics/kotlin/"
    assert not TagCollection([])


def test_tag_collection_counts_a_page_once_per_slug():
    page = make_page("post", tags=["Android Dev", "android-dev"])
    tags = TagCollection([page])
    assert list(tags) == ["android-dev"]
    assert tags["android-dev"].name == "Android Dev"
    assert tags["android-dev"].count == 1


def test_term_count():
    term = Term("Go", "go", [make_page("x")])
    assert term.count == 1
    assert term.url == "/tags/go/"
