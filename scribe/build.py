"""Site building functionality for Scribe.

This module contains the core logic for building the static site from the
content directory. It loads configuration and data, loads and filters the
content, renders every page through the theme, writes feeds and copies
static files.

Key functions:
- build_site: Main function to build the entire site.
- load_config: Loads site configuration from scribe.yaml.
- load_data: Loads template data from YAML files in the data directory.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from jinja2 import TemplateNotFound, TemplateSyntaxError, TemplatesNotFound

from .assets import AssetPipeline
from .collections import PageCollection, TagCollection
from .content import ContentProcessor, Page, PublishFilter
from .errors import BuildError, ConfigError, ScribeError
from .feeds import create_default_feed_registry
from .gitinfo import GitInfo
from .html_utils import absolutize_html_urls, minify_html
from .templates import Site, TemplateEngine, theme_dirs
from .utils import ensure_clean_dir

__all__ = [
    "BuildError",
    "BuildResult",
    "ConfigError",
    "DEFAULT_CONFIG",
    "ScribeError",
    "build_site",
    "load_config",
    "load_data",
]

CONFIG_FILE = "scribe.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "title": "",
    "base_url": "",
    "language_code": "en-us",
    "author": "",
    "description": "",
    "theme": "default",
    "content_dir": "content",
    "output_dir": "public",
    "port": 1313,
    "main_sections": ["posts"],
    "summary_length": 70,
    "rss_limit": 0,
    "enable_git_info": False,
    "enable_robots_txt": True,
    "canonify_urls": False,
    "minify": False,
    "menu": [],
    "params": {},
    "taxonomies": {"tag": "tags"},
}


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        pages: List of all published pages in the site.
        output_dir: Directory where the site was built.
        config: Effective configuration, overrides applied.
        data: Template data loaded from data/.
        feeds: Relative paths of generated feed files.
    """

    pages: list[Page]
    output_dir: Path
    config: dict[str, Any]
    data: dict[str, Any] = field(default_factory=dict)
    feeds: list[str] = field(default_factory=list)


def _read_yaml(path: Path) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(path, f"Invalid YAML: {exc}") from exc


def load_config(project_root: Path) -> dict[str, Any]:
    """Load site configuration from scribe.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        Dictionary containing configuration values, with defaults applied.

    Raises:
        ConfigError: If the file exists but is not valid YAML.
    """
    config_path = project_root / CONFIG_FILE
    config = {key: _copy(value) for key, value in DEFAULT_CONFIG.items()}
    if config_path.exists():
        loaded = _read_yaml(config_path) or {}
        if isinstance(loaded, dict):
            config.update(loaded)
    return config


def _copy(value: Any) -> Any:
    if isinstance(value, dict):
        return dict(value)
    if isinstance(value, list):
        return list(value)
    return value


def load_data(project_root: Path) -> dict[str, Any]:
    """Load template data from YAML files in the data directory.

    Args:
        project_root: Root directory of the project.

    Returns:
        Dictionary mapping each file stem to its payload.
    """
    data_dir = project_root / "data"
    data: dict[str, Any] = {}
    if not data_dir.exists():
        return data
    for path in sorted([*data_dir.glob("*.yaml"), *data_dir.glob("*.yml")]):
        payload = _read_yaml(path)
        if isinstance(payload, (dict, list)):
            data[path.stem] = payload
    return data


def build_site(
    project_root: Path,
    include_drafts: bool = False,
    include_future: bool = False,
    include_expired: bool = False,
    base_url: str | None = None,
    minify: bool | None = None,
    clean_output: bool = True,
    output_dir_override: Path | None = None,
) -> BuildResult:
    """Build the entire static site.

    Args:
        project_root: Root directory of the project.
        include_drafts: Whether to publish pages marked ``draft: true``.
        include_future: Whether to publish pages dated in the future.
        include_expired: Whether to publish pages past their expiry date.
        base_url: Optional override of the configured base_url.
        minify: Optional override of the configured minify flag.
        clean_output: Whether to wipe the output directory before building.
        output_dir_override: Optional path to write the build output instead of config output_dir.

    Returns:
        BuildResult containing all pages, output directory, config and data.

    Raises:
        BuildError: If content cannot be loaded or rendered.
        ConfigError: If configuration or data files are invalid.
    """
    config = load_config(project_root)
    if base_url is not None:
        config["base_url"] = base_url
    if minify is not None:
        config["minify"] = minify
    output_dir = output_dir_override or (project_root / config["output_dir"])
    content_dir = project_root / config["content_dir"]
    if not content_dir.is_dir():
        raise BuildError(content_dir, "Content directory not found")

    data = load_data(project_root)
    git_info = GitInfo(project_root) if config.get("enable_git_info") else None
    processor = ContentProcessor(
        content_dir,
        summary_length=int(config.get("summary_length") or 70),
        git_info=git_info,
    )
    publish_filter = PublishFilter(include_drafts, include_future, include_expired)
    pages = processor.load(publish_filter)
    for page in pages:
        if page.is_home and not page.title:
            page.title = str(config.get("title", ""))

    tag_base = str((config.get("taxonomies") or {}).get("tag", "tags"))
    collection = PageCollection(pages)
    site = Site(
        config=config,
        data=data,
        pages=collection,
        tags=TagCollection(collection.regular(), base=tag_base),
    )
    _check_url_collisions(pages, site.tags)
    engine = TemplateEngine(project_root, site)

    if clean_output:
        ensure_clean_dir(output_dir)
    else:
        output_dir.mkdir(parents=True, exist_ok=True)

    writer = _HtmlWriter(output_dir, config)
    for page in pages:
        html = _render(lambda: engine.render_page(page), page.path or content_dir)
        writer.write(page.url, html)
    if site.tags:
        for term in site.tags.values():
            writer.write(term.url, _render(lambda: engine.render_term(term), content_dir))
        writer.write(site.tags.url, _render(lambda: engine.render_terms(site.tags), content_dir))
    _write_aliases(engine, writer, pages)
    writer.write_file("404.html", _render(engine.render_not_found, content_dir))

    feeds = create_default_feed_registry().generate_all(output_dir, site)

    theme = str(config.get("theme") or "default")
    static_sources = [path / "static" for path in reversed(theme_dirs(project_root, theme))]
    static_sources.append(project_root / "static")
    pipeline = AssetPipeline(static_sources, output_dir, minify=bool(config.get("minify")))
    pipeline.run()
    pipeline.copy_resources(pages)
    return BuildResult(pages=pages, output_dir=output_dir, config=config, data=data, feeds=feeds)


class _HtmlWriter:
    """Writes rendered documents, applying URL canonification and minification."""

    def __init__(self, output_dir: Path, config: dict[str, Any]):
        self.output_dir = output_dir
        self.minify = bool(config.get("minify"))
        self.base_url = str(config.get("base_url") or "") if config.get("canonify_urls") else ""

    def write(self, url: str, html: str) -> Path:
        url_path = url.strip("/")
        if url_path.endswith(".html"):
            return self.write_file(url_path, html)
        return self.write_file(f"{url_path}/index.html" if url_path else "index.html", html)

    def write_file(self, rel_path: str, html: str) -> Path:
        if self.base_url:
            html = absolutize_html_urls(html, self.base_url)
        if self.minify:
            html = minify_html(html)
        target = self.output_dir / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            f.write(html)
        return target


def _render(render: Callable[[], str], source_path: Path) -> str:
    """Run a render call and turn template failures into BuildError."""
    try:
        return render()
    except TemplateSyntaxError as exc:
        where = Path(exc.filename) if exc.filename else source_path
        raise BuildError(
            where,
            f"Template syntax error on line {exc.lineno}: {exc.message}",
            exc,
        ) from exc
    except TemplatesNotFound as exc:
        tried = ", ".join(str(name) for name in exc.templates)
        raise BuildError(source_path, f"No layout found (tried: {tried})", exc) from exc
    except TemplateNotFound as exc:
        raise BuildError(source_path, f"Template not found: {exc.name}", exc) from exc
    except ScribeError:
        raise
    except Exception as exc:
        raise BuildError(source_path, _format_error_message(exc), exc) from exc


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message.

    Args:
        exc: The exception to format.

    Returns:
        A human-readable error message.
    """
    error_type = type(exc).__name__
    error_msg = str(exc)

    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if error_type == "TypeError":
        return f"Type error: {error_msg}"
    if error_type == "AttributeError":
        return f"Attribute error: {error_msg}"

    return f"{error_type}: {error_msg}"


def _check_url_collisions(pages: list[Page], tags: TagCollection) -> None:
    """Fail when two outputs would be written to the same URL.

    Page URLs, aliases and the tag pages generated for the taxonomy all
    share one URL space; the first claim wins and the next one is reported.
    """
    owners: dict[str, Page] = {}
    for page in pages:
        other = owners.get(page.url)
        if other is not None:
            first = other.path or Path(other.url)
            raise BuildError(
                page.path or Path(page.url),
                f"URL {page.url} is already used by {first}",
            )
        owners[page.url] = page
    generated = [tags.url, *(term.url for term in tags.values())] if tags else []
    for url in generated:
        page = owners.get(url)
        if page is not None:
            raise BuildError(
                page.path or Path(page.url),
                f"URL {url} collides with a generated tag page",
            )
    reserved = set(owners) | set(generated)
    for page in pages:
        for alias in page.aliases:
            if alias in reserved:
                raise BuildError(
                    page.path or Path(page.url),
                    f"Alias {alias} collides with an existing page",
                )
            reserved.add(alias)


def _write_aliases(engine: TemplateEngine, writer: _HtmlWriter, pages: list[Page]) -> None:
    """Write redirect pages for every ``aliases`` entry."""
    for page in pages:
        source = page.path or Path(page.url)
        for alias in page.aliases:
            writer.write(alias, _render(lambda: engine.render_alias(page.url), source))
