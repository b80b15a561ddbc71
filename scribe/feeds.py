"""Feed generation for Scribe.

This module generates the machine-readable files of the site: sitemap.xml,
RSS 2.0 feeds (one for the home page over the main sections, one per section)
and robots.txt. Feed generation is separate from build orchestration.

Classes:
    FeedGenerator: Base class for feed generators.
    SitemapGenerator: Generates sitemap.xml.
    RSSGenerator: Generates index.xml RSS feeds.
    RobotsGenerator: Generates robots.txt.
    FeedRegistry: Registry for managing feed generators.

Functions:
    create_default_feed_registry: Create a registry with default generators.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from email.utils import format_datetime
from pathlib import Path
from typing import TYPE_CHECKING
from xml.sax.saxutils import escape

from .collections import PageCollection
from .html_utils import join_root_url

if TYPE_CHECKING:
    from .content import Page
    from .templates import Site


class FeedGenerator(ABC):
    """Abstract base class for feed generators.

    Subclasses return a mapping of output path (relative to the output
    directory) to file content.
    """

    @abstractmethod
    def generate(self, site: Site) -> dict[str, str]:
        """Generate feed files for the site.

        Args:
            site: Site context with config and published pages.

        Returns:
            Mapping of relative output path to content; empty when the feed
            cannot be generated (e.g., missing base_url).
        """
        ...

    def write(self, output_dir: Path, site: Site) -> list[str]:
        """Generate and write feed files.

        Returns:
            Relative paths of the files written.
        """
        written = []
        for rel_path, content in self.generate(site).items():
            target = output_dir / rel_path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
            written.append(rel_path)
        return written


class SitemapGenerator(FeedGenerator):
    """Generates sitemap.xml following the sitemaps.org protocol.

    Requires ``base_url`` in the configuration.
    """

    def generate(self, site: Site) -> dict[str, str]:
        base_url = site.base_url
        if not base_url:
            return {}
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
        ]
        for page in sorted(site.pages, key=lambda p: p.url):
            loc = escape(join_root_url(base_url, page.url))
            lastmod = page.lastmod.strftime("%Y-%m-%d")
            lines.append(f"  <url><loc>{loc}</loc><lastmod>{lastmod}</lastmod></url>")
        for term in site.tags.terms():
            loc = escape(join_root_url(base_url, term.url))
            lines.append(f"  <url><loc>{loc}</loc></url>")
        lines.append("</urlset>")
        return {"sitemap.xml": "\n".join(lines) + "\n"}


class RSSGenerator(FeedGenerator):
    """Generates RSS 2.0 feeds, newest first.

    The home feed covers the configured ``main_sections``; each section gets
    its own ``<section>/index.xml``. ``rss_limit`` caps the number of items
    (0 means unlimited).
    """

    filename = "index.xml"

    def generate(self, site: Site) -> dict[str, str]:
        base_url = site.base_url
        if not base_url:
            return {}
        limit = int(site.config.get("rss_limit", 0) or 0)
        feeds = {}
        home_pages = site.pages.sections(site.main_sections)
        feeds[self.filename] = self._channel(site, site.title, "/", home_pages, limit)
        for page in site.pages:
            if not page.is_section:
                continue
            title = f"{page.title} on {site.title}" if site.title else page.title
            rel = f"{page.url.strip('/')}/{self.filename}"
            feeds[rel] = self._channel(site, title, page.url, PageCollection(page.pages), limit)
        return feeds

    def _channel(
        self, site: Site, title: str, url: str, pages: PageCollection, limit: int
    ) -> str:
        base_url = site.base_url
        items = list(pages.sorted())
        if limit:
            items = items[:limit]
        feed_url = join_root_url(base_url, f"{url.rstrip('/')}/{self.filename}")
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0" xmlns:atom="http://www.w3.org/2005/Atom"><channel>',
            f"<title>{escape(title)}</title>",
            f"<link>{escape(join_root_url(base_url, url))}</link>",
            f"<description>{escape(site.description or title)}</description>",
            f"<language>{escape(site.language_code)}</language>",
            f"<lastBuildDate>{format_datetime(site.build_date)}</lastBuildDate>",
            f'<atom:link href="{escape(feed_url)}" rel="self" type="application/rss+xml"/>',
        ]
        lines.extend(self._item(base_url, page) for page in items)
        lines.append("</channel></rss>")
        return "\n".join(lines) + "\n"

    @staticmethod
    def _item(base_url: str, page: Page) -> str:
        link = escape(join_root_url(base_url, page.url))
        description = escape(page.description or page.title)
        return (
            f"<item><title>{escape(page.title)}</title><link>{link}</link>"
            f"<guid>{link}</guid>"
            f"<pubDate>{format_datetime(page.date)}</pubDate>"
            f"<description>{description}</description></item>"
        )


class RobotsGenerator(FeedGenerator):
    """Generates robots.txt allowing everything and pointing at the sitemap."""

    def generate(self, site: Site) -> dict[str, str]:
        if not site.config.get("enable_robots_txt", True):
            return {}
        lines = ["User-agent: *", "Allow: /"]
        if site.base_url:
            lines.append(f"Sitemap: {join_root_url(site.base_url, '/sitemap.xml')}")
        return {"robots.txt": "\n".join(lines) + "\n"}


class FeedRegistry:
    """Registry for managing feed generators."""

    def __init__(self) -> None:
        self._generators: list[FeedGenerator] = []

    def register(self, generator: FeedGenerator) -> None:
        self._generators.append(generator)

    def generate_all(self, output_dir: Path, site: Site) -> list[str]:
        """Generate all registered feeds.

        Returns:
            Relative paths of every file generated.
        """
        generated = []
        for generator in self._generators:
            generated.extend(generator.write(output_dir, site))
        return generated


def create_default_feed_registry() -> FeedRegistry:
    """Create a registry with sitemap, RSS and robots.txt generators."""
    registry = FeedRegistry()
    registry.register(SitemapGenerator())
    registry.register(RSSGenerator())
    registry.register(RobotsGenerator())
    return registry
