from datetime import datetime, timezone

import pytest
from conftest import write
from jinja2 import TemplatesNotFound

from scribe.collections import PageCollection, TagCollection
from scribe.content import Heading, Page
from scribe.templates import BUNDLED_THEMES_DIR, Site, TemplateEngine, render_toc, theme_dirs


def make_page(**kwargs):
    date = datetime(2024, 1, 15, tzinfo=timezone.utc)
    defaults = dict(
        title="Fakes over mocks",
        kind="page",
        section="posts",
        url="/posts/fakes-over-mocks/",
        slug="fakes-over-mocks",
        date=date,
        lastmod=date,
        content="<p>Prefer fakes.</p>",
        tags=["Kotlin"],
    )
    defaults.update(kwargs)
    return Page(**defaults)


def make_engine(root, pages, **config):
    settings = {
        "title": "Test Blog",
        "base_url": "https://example.com/blog/",
        "theme": "default",
        "main_sections": ["posts"],
        "params": {},
        "menu": [{"name": "Uses", "url": "/uses/", "weight": 2}, {"name": "Posts", "url": "/posts/", "weight": 1}],
    }
    settings.update(config)
    collection = PageCollection(pages)
    site = Site(config=settings, pages=collection, tags=TagCollection(collection.regular()))
    return TemplateEngine(root, site)


def test_render_toc_nests_levels():
    page = make_page(
        toc=[
            Heading("intro", "Intro", 2),
            Heading("setup", "Setup & run", 3),
            Heading("outro", "Outro", 2),
        ]
    )
    html = str(render_toc(page))
    assert html == (
        '<ul><li><a href="#intro">Intro</a>'
        '<ul><li><a href="#setup">Setup &amp; run</a></li></ul>'
        '</li><li><a href="#outro">Outro</a></li></ul>'
    )
    assert str(render_toc(make_page())) == ""


def test_theme_dirs_prefers_project_theme(tmp_path):
    assert theme_dirs(tmp_path, "default") == [BUNDLED_THEMES_DIR / "default"]
    custom = tmp_path / "themes" / "paper"
    custom.mkdir(parents=True)
    assert theme_dirs(tmp_path, "paper") == [custom, BUNDLED_THEMES_DIR / "default"]


def test_site_properties(tmp_path):
    home = make_page(title="Home", kind="home", section="", url="/", slug="")
    post = make_page()
    engine = make_engine(tmp_path, [home, post])
    site = engine.site
    assert site.home is home
    assert [item["name"] for item in site.menu] == ["Posts", "Uses"]
    assert list(site.regular_pages) == [post]
    assert list(site.section("posts")) == [post]
    assert site.get_page("/posts/fakes-over-mocks/") is post
    assert site.get_page("/missing/") is None
    assert site.language_code == "en-us"


def test_url_helpers(tmp_path):
    engine = make_engine(tmp_path, [])
    assert engine.abs_url("/about/") == "https://example.com/blog/about/"
    assert engine.abs_url("https://other.dev/") == "https://other.dev/"
    assert engine.rel_url("/about/") == "/blog/about/"
    assert engine.url_for("css/style.css") == "https://example.com/blog/css/style.css"

    local = make_engine(tmp_path, [], base_url="")
    assert local.abs_url("about/") == "/about/"
    assert local.rel_url("/about/") == "/about/"


def test_layout_candidates(tmp_path):
    engine = make_engine(tmp_path, [])
    assert engine.layout_candidates(make_page()) == ["posts/single.html", "_default/single.html"]
    assert engine.layout_candidates(make_page(section="", url="/about/")) == [
        "_default/single.html"
    ]
    assert engine.layout_candidates(make_page(kind="section", url="/posts/")) == [
        "posts/list.html",
        "_default/list.html",
    ]
    assert engine.layout_candidates(make_page(kind="home", section="", url="/")) == [
        "index.html",
        "_default/list.html",
    ]
    assert engine.layout_candidates(make_page(layout="wide"))[:2] == [
        "posts/wide.html",
        "_default/wide.html",
    ]


def test_render_single_page_with_bundled_theme(tmp_path):
    post = make_page()
    engine = make_engine(tmp_path, [post])
    html = engine.render_page(post)
    assert "<h1>Fakes over mocks</h1>" in html
    assert "<p>Prefer fakes.</p>" in html
    assert "<title>Fakes over mocks | Test Blog</title>" in html
    assert 'href="/blog/tags/kotlin/"' in html
    assert 'rel="canonical" href="https://example.com/blog/posts/fakes-over-mocks/"' in html
    assert ".highlight" in html


def test_project_layouts_override_theme(tmp_path):
    write(tmp_path / "layouts" / "posts" / "single.html", "POST {{ page.title }} {{ site.title }}")
    write(tmp_path / "layouts" / "_default" / "wide.html", "WIDE {{ page.content | safe }}")
    post = make_page()
    engine = make_engine(tmp_path, [post])
    assert engine.render_page(post) == "POST Fakes over mocks Test Blog"
    assert engine.render_page(make_page(layout="wide")) == "WIDE <p>Prefer fakes.</p>"


def test_project_theme_folder_is_searched(tmp_path):
    write(tmp_path / "themes" / "paper" / "layouts" / "_default" / "single.html", "PAPER")
    post = make_page()
    engine = make_engine(tmp_path, [post], theme="paper")
    assert engine.render_page(post) == "PAPER"
    # layouts the custom theme lacks come from the bundled default
    assert "Page not found" in engine.render_not_found()


def test_missing_layout_raises(tmp_path):
    engine = make_engine(tmp_path, [])
    with pytest.raises(TemplatesNotFound):
        engine._select(["missing/single.html", "missing/list.html"])


def test_render_terms_and_alias(tmp_path):
    first = make_page()
    second = make_page(
        title="State holders", url="/posts/state-holders/", slug="state-holders", tags=["kotlin"]
    )
    engine = make_engine(tmp_path, [first, second])
    tags = engine.site.tags
    term_html = engine.render_term(tags["kotlin"])
    assert "#Kotlin" in term_html
    assert "/blog/posts/state-holders/" in term_html
    terms_html = engine.render_terms(tags)
    assert "(2)" in terms_html

    alias = engine.render_alias("/posts/fakes-over-mocks/")
    assert 'content="0; url=https://example.com/blog/posts/fakes-over-mocks/"' in alias


def test_filters(tmp_path):
    engine = make_engine(tmp_path, [])
    date = datetime(2024, 1, 15, tzinfo=timezone.utc)
    out = engine.render_string(
        "{{ d | date('%b %d, %Y') }}|{{ 'Hello World' | slugify }}|{{ '*hi*' | markdownify }}",
        {"d": date},
    )
    assert out == "Jan 15, 2024|hello-world|<p><em>hi</em></p>\n"
