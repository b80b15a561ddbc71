"""Template rendering engine for Scribe.

This module uses Jinja2 to render pages inside theme layouts. Layouts are
looked up in the project's ``layouts/`` folder first, then in the selected
theme under ``themes/<name>/layouts/``, then in the theme bundled with
Scribe, so a project only overrides the templates it cares about.

Key classes:
- Site: Read-only view of configuration, data and collections for templates.
- TemplateEngine: Resolves layouts per page kind and renders them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from jinja2 import Environment, FileSystemLoader, Template, TemplateNotFound, select_autoescape
from markupsafe import Markup
from pygments.formatters import HtmlFormatter

from .collections import PageCollection, TagCollection, Term
from .content import Heading, Page
from .html_utils import escape_html, join_root_url
from .renderers import MarkdownRenderer
from .utils import slugify

BUNDLED_THEMES_DIR = Path(__file__).parent / "themes"

__all__ = [
    "BUNDLED_THEMES_DIR",
    "Site",
    "TemplateEngine",
    "TemplateNotFound",
    "render_toc",
    "theme_dirs",
]


def render_toc(page: Page) -> Markup:
    """Render a table of contents as nested HTML from page headings.

    Args:
        page: Page object containing the toc (list of Heading objects).

    Returns:
        Markup-safe HTML string of the nested TOC, or empty Markup if no headings.
    """
    if not page.toc:
        return Markup("")
    return _render_toc_from_headings(page.toc)


def _render_toc_from_headings(headings: list[Heading]) -> Markup:
    html_parts: list[str] = []
    level_stack: list[int] = []

    for heading in headings:
        level = heading.level

        # Close nested lists if going to a shallower level
        while level_stack and level_stack[-1] > level:
            level_stack.pop()
            html_parts.append("</li></ul>")

        if level_stack and level_stack[-1] == level:
            html_parts.append("</li>")
        elif not level_stack or level > level_stack[-1]:  # pragma: no branch
            html_parts.append("<ul>")
            level_stack.append(level)

        html_parts.append(
            f'<li><a href="#{escape_html(heading.id)}">{escape_html(heading.text)}</a>'
        )

    while level_stack:
        level_stack.pop()
        html_parts.append("</li></ul>")

    return Markup("".join(html_parts))


def theme_dirs(project_root: Path, theme: str) -> list[Path]:
    """Theme roots in lookup order: project theme folder, then bundled theme.

    Args:
        project_root: Root directory of the project.
        theme: Theme name from configuration.

    Returns:
        Existing theme directories; the bundled default is always last.
    """
    dirs = []
    for candidate in (project_root / "themes" / theme, BUNDLED_THEMES_DIR / theme):
        if candidate.is_dir() and candidate not in dirs:
            dirs.append(candidate)
    default = BUNDLED_THEMES_DIR / "default"
    if default not in dirs:
        dirs.append(default)
    return dirs


@dataclass
class Site:
    """Everything templates know about the site as a whole.

    Attributes:
        config: Merged configuration from scribe.yaml.
        data: Data loaded from data/*.yaml.
        pages: All published pages, home and sections included.
        tags: Tag taxonomy over the regular pages.
    """

    config: dict[str, Any]
    data: dict[str, Any] = field(default_factory=dict)
    pages: PageCollection = field(default_factory=lambda: PageCollection([]))
    tags: TagCollection = field(default_factory=lambda: TagCollection([]))
    build_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def title(self) -> str:
        return str(self.config.get("title", ""))

    @property
    def base_url(self) -> str:
        return str(self.config.get("base_url") or "")

    @property
    def language_code(self) -> str:
        return str(self.config.get("language_code", "en-us"))

    @property
    def author(self) -> str:
        return str(self.config.get("author", ""))

    @property
    def description(self) -> str:
        return str(self.config.get("description", ""))

    @property
    def params(self) -> dict[str, Any]:
        return self.config.get("params") or {}

    @property
    def menu(self) -> list[dict[str, Any]]:
        items = self.config.get("menu") or []
        return sorted(items, key=lambda item: item.get("weight", 0))

    @property
    def main_sections(self) -> list[str]:
        return list(self.config.get("main_sections") or [])

    @property
    def regular_pages(self) -> PageCollection:
        return self.pages.regular()

    @property
    def home(self) -> Page | None:
        return next((p for p in self.pages if p.is_home), None)

    def section(self, name: str) -> PageCollection:
        return self.pages.section(name)

    def get_page(self, url: str) -> Page | None:
        return next((p for p in self.pages if p.url == url), None)


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Attributes:
        site: Site context shared by every render.
        env: Jinja2 environment.
    """

    def __init__(self, project_root: Path, site: Site):
        """Initialize the template engine.

        Args:
            project_root: Root directory of the project.
            site: Site context.
        """
        self.project_root = project_root
        self.site = site
        theme = str(site.config.get("theme") or "default")
        search_path = [project_root / "layouts"]
        search_path.extend(path / "layouts" for path in theme_dirs(project_root, theme))
        self.env = Environment(
            loader=FileSystemLoader([str(path) for path in search_path]),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._markdown = MarkdownRenderer()
        self._install_globals()

    def _install_globals(self) -> None:
        self.env.globals["site"] = self.site
        self.env.globals["url_for"] = self.url_for
        self.env.globals["abs_url"] = self.abs_url
        self.env.globals["rel_url"] = self.rel_url
        self.env.globals["render_toc"] = render_toc
        self.env.globals["pygments_css"] = self._pygments_css
        self.env.filters["abs_url"] = self.abs_url
        self.env.filters["rel_url"] = self.rel_url
        self.env.filters["date"] = _format_date
        self.env.filters["markdownify"] = self._markdownify
        self.env.filters["slugify"] = slugify

    @staticmethod
    def _pygments_css() -> Markup:
        """Return Pygments CSS styles for the .highlight class."""
        return Markup(HtmlFormatter().get_style_defs(".highlight"))

    def _markdownify(self, text: str) -> Markup:
        html, _ = self._markdown.render(str(text or ""))
        return Markup(html)

    def abs_url(self, path: str) -> str:
        """Absolute URL for a site path; unchanged when no base_url is set."""
        if path.startswith(("http://", "https://", "//")):
            return path
        base = self.site.base_url
        if not base:
            return path if path.startswith("/") else f"/{path}"
        return join_root_url(base, path)

    def rel_url(self, path: str) -> str:
        """Root-relative URL honouring a base_url that lives in a sub-path."""
        if path.startswith(("http://", "https://", "//")):
            return path
        prefix = urlparse(self.site.base_url).path.rstrip("/")
        suffix = path if path.startswith("/") else f"/{path}"
        return f"{prefix}{suffix}"

    def url_for(self, path: str) -> str:
        return self.abs_url(path)

    def layout_candidates(self, page: Page) -> list[str]:
        """Layout names to try for a page, most specific first."""
        candidates: list[str] = []
        if page.layout:
            if page.section:
                candidates.append(f"{page.section}/{page.layout}.html")
            candidates.append(f"_default/{page.layout}.html")
        if page.is_home:
            candidates.extend(["index.html", "_default/list.html"])
        elif page.is_section:
            candidates.extend([f"{page.section}/list.html", "_default/list.html"])
        else:
            if page.section:
                candidates.append(f"{page.section}/single.html")
            candidates.append("_default/single.html")
        return candidates

    def render_page(self, page: Page) -> str:
        """Render a page, section or home page with its layout."""
        template = self._select(self.layout_candidates(page))
        return template.render(page=page, current_page=page)

    def render_term(self, term: Term) -> str:
        """Render the list page of one tag."""
        template = self._select(["_default/taxonomy.html", "_default/list.html"])
        page = self._virtual_page(term.name, term.url, term.pages)
        return template.render(page=page, current_page=page, term=term)

    def render_terms(self, tags: TagCollection) -> str:
        """Render the index of all tags."""
        template = self._select(["_default/terms.html", "_default/list.html"])
        page = self._virtual_page(tags.base.capitalize(), tags.url, [])
        return template.render(page=page, current_page=page, terms=tags)

    def render_not_found(self) -> str:
        template = self._select(["404.html"])
        page = self._virtual_page("Page not found", "/404.html", [])
        return template.render(page=page, current_page=page)

    def render_alias(self, target: str) -> str:
        template = self._select(["alias.html"])
        return template.render(target=self.abs_url(target))

    def render_string(self, template: str, context: dict[str, Any]) -> str:
        return self.env.from_string(template).render(**context)

    def _select(self, candidates: list[str]) -> Template:
        """Return the first existing template among ``candidates``.

        Raises:
            TemplateNotFound: If none of the candidates exists.
        """
        return self.env.select_template(candidates)

    def _virtual_page(self, title: str, url: str, pages) -> Page:
        now = self.site.build_date
        page = Page(
            title=title, kind="taxonomy", section="", url=url, slug="", date=now, lastmod=now
        )
        page.pages = list(pages)
        return page


def _format_date(value: datetime | None, fmt: str = "%Y-%m-%d") -> str:
    if value is None:
        return ""
    return value.strftime(fmt)

