"""Content processing for Scribe.

This module turns the files under ``content/`` into Page objects. It extracts
metadata, renders the body and derives the URL, section and kind of each
page. Deciding what gets published is done by PublishFilter.

Directory convention:
- ``content/_index.md`` is the home page.
- ``content/<section>/_index.md`` is the list page of a section.
- ``content/<section>/<name>.md`` is a regular page at ``/<section>/<slug>/``.
- ``content/<section>/<name>/index.md`` is a page bundle; the other files in
  that folder are copied next to the rendered page.
- ``content/<name>.md`` is a top-level page such as ``/about/``.

Key classes:
- Page: Dataclass representing a site page with all its metadata.
- Heading: Dataclass representing a heading for TOC generation.
- FileContentLoader: Discovers content files and bundles.
- UrlDeriver: Computes slug and URL for a content file.
- DefaultPageBuilder: Builds a Page from a source file.
- PublishFilter: Applies draft, future and expiry rules.
- ContentProcessor: Facade that loads every page of the site.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .errors import BuildError
from .extractors import CompositeMetadataExtractor
from .gitinfo import GitInfo
from .renderers import MarkdownRenderer, RendererRegistry, default_renderer_registry
from .utils import (
    count_words,
    is_content,
    is_hidden,
    normalize_url,
    reading_time,
    slugify,
    strip_tags,
    titleize,
    truncate_words,
)

SECTION_INDEX = "_index"
BUNDLE_INDEX = "index"
DESCRIPTION_LIMIT = 160


@dataclass
class Heading:
    """Represents a heading extracted from markdown content for TOC generation.

    Attributes:
        id: Anchor ID for the heading (URL-friendly slug).
        text: The text content of the heading.
        level: Heading level (1-6).
    """

    id: str
    text: str
    level: int


@dataclass
class Page:
    """Represents a site page with all its metadata and content.

    Attributes:
        title: Human-readable title of the page.
        kind: "page", "section" or "home".
        section: Top-level content folder ("" for top-level pages).
        url: Site-relative URL path, always with leading and trailing slash.
        slug: URL-friendly slug.
        date: Publication date (timezone aware).
        lastmod: Last modification date.
        draft: Whether this page is a draft.
        tags: Tags from front matter.
        content: Rendered HTML content.
        summary: Summary HTML (or plain text when derived from content).
        description: Plain-text description for meta tags and feeds.
        path: Source file, None for implicit sections and home.
        source_type: "markdown", "html" or "" for implicit pages.
        params: Complete front matter mapping.
    """

    title: str
    kind: str
    section: str
    url: str
    slug: str
    date: datetime
    lastmod: datetime
    draft: bool = False
    tags: list[str] = field(default_factory=list)
    content: str = ""
    raw: str = ""
    summary: str = ""
    truncated: bool = False
    description: str = ""
    word_count: int = 0
    reading_time: int = 0
    toc: list[Heading] = field(default_factory=list)
    layout: str | None = None
    weight: int = 0
    aliases: list[str] = field(default_factory=list)
    expiry_date: datetime | None = None
    path: Path | None = None
    source_type: str = ""
    resources: list[Path] = field(default_factory=list)
    params: dict[str, Any] = field(default_factory=dict)
    pages: list[Page] = field(default_factory=list, repr=False)

    @property
    def is_home(self) -> bool:
        return self.kind == "home"

    @property
    def is_section(self) -> bool:
        return self.kind == "section"

    @property
    def is_page(self) -> bool:
        return self.kind == "page"

    def is_future(self, now: datetime) -> bool:
        return self.date > now

    def is_expired(self, now: datetime) -> bool:
        return self.expiry_date is not None and self.expiry_date <= now


class FileContentLoader:
    """Discovers content files in the content directory.

    Hidden files and folders (leading dot) are skipped. Content files that
    live inside a page bundle, other than the bundle's index, are treated as
    bundle resources rather than pages.

    Attributes:
        content_dir: Directory containing site content.
    """

    def __init__(self, content_dir: Path):
        self.content_dir = content_dir

    def iter_files(self) -> list[Path]:
        """Return all page sources, sorted for stable output."""
        bundles = self.bundle_dirs()
        files: list[Path] = []
        for path in sorted(self.content_dir.rglob("*")):
            if path.is_dir() or not is_content(path):
                continue
            rel = path.relative_to(self.content_dir)
            if is_hidden(rel):
                continue
            if self._inside_bundle(path, bundles) and path.stem != BUNDLE_INDEX:
                continue
            files.append(path)
        return files

    def bundle_dirs(self) -> set[Path]:
        """Folders holding an ``index.md`` (leaf bundles), excluding the root."""
        bundles: set[Path] = set()
        for path in self.content_dir.rglob(f"{BUNDLE_INDEX}.*"):
            if path.is_file() and is_content(path) and path.parent != self.content_dir:
                if not is_hidden(path.relative_to(self.content_dir)):
                    bundles.add(path.parent)
        return bundles

    def resources_for(self, index_path: Path) -> list[Path]:
        """List the files bundled with a bundle index, excluding the index."""
        resources = []
        for path in sorted(index_path.parent.rglob("*")):
            if path.is_dir() or path == index_path:
                continue
            if is_hidden(path.relative_to(index_path.parent)):
                continue
            resources.append(path)
        return resources

    @staticmethod
    def _inside_bundle(path: Path, bundles: set[Path]) -> bool:
        return any(parent in bundles for parent in path.parents)


class UrlDeriver:
    """Derives slugs and URLs for content files."""

    def derive(self, rel: Path, frontmatter: dict[str, Any]) -> tuple[str, str]:
        """Derive the slug and URL for a page.

        Args:
            rel: Source path relative to the content directory.
            frontmatter: Page front matter (``slug`` and ``url`` override).

        Returns:
            Tuple of (slug, url).
        """
        parents = list(rel.parent.parts)
        if rel.stem == SECTION_INDEX:
            slug = parents[-1] if parents else ""
            url = "/" + "/".join(parents) if parents else "/"
        else:
            if rel.stem == BUNDLE_INDEX and parents:
                name = parents.pop()
            else:
                name = rel.stem
            slug = str(frontmatter.get("slug") or slugify(name))
            url = "/" + "/".join(parents + [slug])
        if frontmatter.get("url"):
            url = str(frontmatter["url"])
        return slug, normalize_url(url)


class PublishFilter:
    """Decides which pages are published.

    Drafts, pages dated in the future and expired pages are excluded unless
    explicitly included. Home and section pages are always published.
    """

    def __init__(
        self,
        include_drafts: bool = False,
        include_future: bool = False,
        include_expired: bool = False,
        now: datetime | None = None,
    ):
        self.include_drafts = include_drafts
        self.include_future = include_future
        self.include_expired = include_expired
        self.now = now or datetime.now(timezone.utc)

    def allows(self, page: Page) -> bool:
        if not page.is_page:
            return True
        if page.draft and not self.include_drafts:
            return False
        if page.is_future(self.now) and not self.include_future:
            return False
        if page.is_expired(self.now) and not self.include_expired:
            return False
        return True

    def apply(self, pages: list[Page]) -> list[Page]:
        return [page for page in pages if self.allows(page)]


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "on", "1")
    return bool(value)


def _as_int(value: Any, path: Path, key: str) -> int:
    if value is None or value == "":
        return 0
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise BuildError(path, f"Invalid {key} in front matter: {value!r}", exc) from exc


def _as_list(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value]


class DefaultPageBuilder:
    """Builds Page objects from source files.

    Coordinates the metadata extractors, the renderer registry and the URL
    deriver.

    Attributes:
        content_dir: Directory containing site content.
        summary_length: Words kept in derived summaries.
    """

    def __init__(
        self,
        content_dir: Path,
        summary_length: int = 70,
        renderer_registry: RendererRegistry | None = None,
        metadata_extractor: CompositeMetadataExtractor | None = None,
        git_info: GitInfo | None = None,
    ):
        self.content_dir = content_dir
        self.summary_length = summary_length
        self.renderer_registry = renderer_registry or default_renderer_registry
        self.metadata_extractor = metadata_extractor or CompositeMetadataExtractor(
            git_info=git_info
        )
        self.url_deriver = UrlDeriver()

    def build(self, path: Path) -> Page:
        """Build a Page object from a source file.

        Args:
            path: Path to the source file.

        Returns:
            Page object.

        Raises:
            BuildError: If the front matter is invalid.
        """
        rel = path.relative_to(self.content_dir)
        raw = path.read_text(encoding="utf-8")
        meta = self.metadata_extractor.extract(raw, path)
        frontmatter: dict[str, Any] = meta.get("frontmatter", {})
        body: str = meta.get("body", raw)

        renderer = self.renderer_registry.get_renderer(path)
        content, toc = renderer.render(body) if renderer else (body, [])

        slug, url = self.url_deriver.derive(rel, frontmatter)
        parts = rel.parent.parts
        section = parts[0] if parts else ""
        if rel.stem == SECTION_INDEX:
            kind = "section" if parts else "home"
        else:
            kind = "page"

        words = count_words(content)
        summary, truncated = self._summary(meta, content, words)
        description = str(frontmatter.get("description") or "")
        if not description:
            description = truncate_words(strip_tags(summary), 40)[:DESCRIPTION_LIMIT]

        return Page(
            title=self._title(meta, kind, path),
            kind=kind,
            section=section,
            url=url,
            slug=slug,
            date=meta["date"],
            lastmod=meta["lastmod"],
            draft=_as_bool(frontmatter.get("draft", False)),
            tags=meta.get("tags", []),
            content=content,
            raw=body,
            summary=summary,
            truncated=truncated,
            description=description,
            word_count=words,
            reading_time=reading_time(words),
            toc=toc,
            layout=frontmatter.get("layout"),
            weight=_as_int(frontmatter.get("weight"), path, "weight"),
            aliases=[normalize_url(alias) for alias in _as_list(frontmatter.get("aliases"))],
            expiry_date=meta.get("expiry_date"),
            path=path,
            source_type=renderer.source_type if renderer else "",
            params=frontmatter,
        )

    @staticmethod
    def _title(meta: dict[str, Any], kind: str, path: Path) -> str:
        if meta.get("title"):
            return meta["title"]
        # an untitled home page takes the site title at build time
        if kind == "home":
            return ""
        return meta.get("fallback_title") or titleize(path.name)

    def _summary(self, meta: dict[str, Any], content: str, words: int) -> tuple[str, bool]:
        source = meta.get("summary_source")
        if source is not None:
            html, _ = MarkdownRenderer().render(source)
            return html, bool(meta.get("truncated"))
        text = truncate_words(strip_tags(content), self.summary_length)
        return text, words > self.summary_length


class ContentProcessor:
    """Facade for processing content files and building Page objects.

    Attributes:
        content_dir: Directory containing site content.
    """

    def __init__(
        self,
        content_dir: Path,
        summary_length: int = 70,
        git_info: GitInfo | None = None,
        content_loader: FileContentLoader | None = None,
        page_builder: DefaultPageBuilder | None = None,
    ):
        self.content_dir = content_dir
        self._content_loader = content_loader or FileContentLoader(content_dir)
        self._page_builder = page_builder or DefaultPageBuilder(
            content_dir, summary_length=summary_length, git_info=git_info
        )

    def load(self, publish_filter: PublishFilter | None = None) -> list[Page]:
        """Load all content files and create Page objects.

        Implicit section and home pages are added for folders without an
        ``_index.md``. Regular pages are attached to their section's ``pages``.

        Args:
            publish_filter: Filter deciding what is published; None keeps all.

        Returns:
            List of Page objects, home first.
        """
        pages: list[Page] = []
        for path in self._content_loader.iter_files():
            page = self._page_builder.build(path)
            if page.path is not None and page.path.stem == BUNDLE_INDEX and page.is_page:
                page.resources = self._content_loader.resources_for(page.path)
            pages.append(page)
        if publish_filter is not None:
            pages = publish_filter.apply(pages)
        pages = self._add_implicit_lists(pages)
        self._attach_children(pages)
        return pages

    def _add_implicit_lists(self, pages: list[Page]) -> list[Page]:
        lists = {page.url for page in pages if not page.is_page}
        now = datetime.now(timezone.utc)
        implicit: list[Page] = []
        if "/" not in lists:
            implicit.append(
                Page(title="", kind="home", section="", url="/", slug="", date=now, lastmod=now)
            )
        for section in sorted({page.section for page in pages if page.is_page and page.section}):
            url = f"/{section}/"
            if url not in lists:
                implicit.append(
                    Page(
                        title=titleize(section),
                        kind="section",
                        section=section,
                        url=url,
                        slug=section,
                        date=now,
                        lastmod=now,
                    )
                )
        ordered = implicit + pages
        return sorted(ordered, key=lambda p: (not p.is_home, p.url))

    @staticmethod
    def _attach_children(pages: list[Page]) -> None:
        regular = [page for page in pages if page.is_page]
        for page in pages:
            if page.is_section:
                page.pages = [child for child in regular if child.url.startswith(page.url)]
                if page.pages:
                    newest = max(child.lastmod for child in page.pages)
                    if page.path is None or newest > page.lastmod:
                        page.lastmod = newest
            elif page.is_home:
                page.pages = regular
                if regular and page.path is None:
                    page.lastmod = max(child.lastmod for child in regular)
