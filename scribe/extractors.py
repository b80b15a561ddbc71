"""Metadata extractors for Scribe.

This module contains implementations of the MetadataExtractor protocol.
Each extractor handles a single type of metadata, following the
Single Responsibility Principle (SRP). Front matter always wins; the other
extractors only fill in what the author left out.

Key classes:
- FrontmatterExtractor: Splits the YAML front matter block from the body.
- TitleExtractor: Extracts title from front matter, first heading or filename.
- TagExtractor: Reads and normalises the ``tags`` list.
- DateExtractor: Resolves publication, lastmod and expiry dates.
- SummaryExtractor: Extracts the summary/description source text.
- CompositeMetadataExtractor: Runs extractors in order and merges results.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml

from .errors import BuildError
from .gitinfo import GitInfo
from .utils import extract_date_from_name, parse_date, slugify, titleize

FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)", re.DOTALL | re.MULTILINE
)
SUMMARY_DIVIDER = "<!--more-->"


def extract_frontmatter(text: str, path: Path | None = None) -> tuple[dict[str, Any], str]:
    """Extract YAML front matter from content.

    Args:
        text: Raw file content.
        path: Source file, used in error messages.

    Returns:
        Tuple of (front matter dict, remaining content).

    Raises:
        BuildError: If the block exists but is not valid YAML or not a mapping.
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    source = path or Path("<string>")
    try:
        data = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError as exc:
        raise BuildError(source, f"Invalid front matter: {exc}", exc) from exc
    if not isinstance(data, dict):
        raise BuildError(source, "Front matter must be a mapping of keys to values")
    return data, text[match.end() :]


class FrontmatterExtractor:
    """Splits YAML front matter (between --- markers) from the body."""

    def extract(self, content: str, path: Path, meta: dict[str, Any]) -> dict[str, Any]:
        frontmatter, body = extract_frontmatter(content, path)
        return {"frontmatter": frontmatter, "body": body}


class TitleExtractor:
    """Extracts title from front matter or the first ``# `` heading.

    When neither exists only ``fallback_title`` is set, derived from the
    filename (or the folder name for ``index``/``_index``), so the home page
    can take the site title instead.
    """

    def extract(self, content: str, path: Path, meta: dict[str, Any]) -> dict[str, Any]:
        frontmatter = meta.get("frontmatter", {})
        if frontmatter.get("title"):
            return {"title": str(frontmatter["title"])}
        body = meta.get("body", content)
        for line in body.splitlines():
            stripped = line.strip()
            if stripped.startswith("# "):
                return {"title": stripped[2:].strip()}
        name = path.parent.name if path.stem in ("index", "_index") else path.name
        return {"fallback_title": titleize(name)}


class TagExtractor:
    """Reads tags from front matter.

    Accepts a YAML list or a comma separated string. Tags sharing a slug are
    the same tag; the first spelling is kept.
    """

    def extract(self, content: str, path: Path, meta: dict[str, Any]) -> dict[str, Any]:
        raw = meta.get("frontmatter", {}).get("tags") or []
        if isinstance(raw, str):
            raw = raw.split(",")
        if not isinstance(raw, list):
            raise BuildError(path, f"tags must be a list or a string, got {raw!r}")
        tags: list[str] = []
        seen: set[str] = set()
        for item in raw:
            tag = str(item).strip()
            if tag and slugify(tag) not in seen:
                seen.add(slugify(tag))
                tags.append(tag)
        return {"tags": tags}


class DateExtractor:
    """Resolves page dates.

    Publication date, in order: front matter ``date``, filename prefix,
    git commit that added the file, file modification time. ``lastmod``
    falls back to the last git commit, then to the publication date.

    Attributes:
        git_info: Optional GitInfo used when git dates are enabled.
    """

    def __init__(self, git_info: GitInfo | None = None):
        self.git_info = git_info

    def extract(self, content: str, path: Path, meta: dict[str, Any]) -> dict[str, Any]:
        frontmatter = meta.get("frontmatter", {})
        try:
            date = parse_date(frontmatter.get("date"))
            lastmod = parse_date(frontmatter.get("lastmod"))
            expiry = parse_date(
                frontmatter.get("expiry_date", frontmatter.get("expiryDate"))
            )
        except ValueError as exc:
            raise BuildError(path, f"Invalid date in front matter: {exc}", exc) from exc

        stem = path.parent.name if path.stem == "index" else path.stem
        if date is None:
            date = extract_date_from_name(stem)
        if date is None and self.git_info is not None:
            date = self.git_info.created(path)
        if date is None:
            date = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
        if lastmod is None and self.git_info is not None:
            lastmod = self.git_info.lastmod(path)
        return {"date": date, "lastmod": lastmod or date, "expiry_date": expiry}


class SummaryExtractor:
    """Extracts the Markdown source of the page summary.

    An explicit ``summary`` in front matter wins. Otherwise the text above a
    ``<!--more-->`` divider is used. When neither exists the summary is
    derived later from the rendered content.
    """

    def extract(self, content: str, path: Path, meta: dict[str, Any]) -> dict[str, Any]:
        frontmatter = meta.get("frontmatter", {})
        body = meta.get("body", content)
        if frontmatter.get("summary"):
            return {"summary_source": str(frontmatter["summary"]), "truncated": False}
        if SUMMARY_DIVIDER in body:
            head, _ = body.split(SUMMARY_DIVIDER, 1)
            return {"summary_source": head.strip(), "truncated": True}
        return {"summary_source": None, "truncated": None}


class CompositeMetadataExtractor:
    """Combines multiple metadata extractors.

    Each extractor sees what the previous ones produced, so front matter is
    parsed once and shared.
    """

    def __init__(self, extractors: list | None = None, git_info: GitInfo | None = None):
        """Initialize with a list of extractors.

        Args:
            extractors: List of MetadataExtractor implementations.
                If None, uses default extractors.
            git_info: GitInfo passed to the default DateExtractor.
        """
        if extractors is None:
            self._extractors = [
                FrontmatterExtractor(),
                TitleExtractor(),
                TagExtractor(),
                DateExtractor(git_info),
                SummaryExtractor(),
            ]
        else:
            self._extractors = list(extractors)

    def add_extractor(self, extractor) -> None:
        self._extractors.append(extractor)

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        """Extract all metadata from content.

        Args:
            content: Raw source content.
            path: Path to the source file.

        Returns:
            Dictionary with all extracted metadata.
        """
        result: dict[str, Any] = {}
        for extractor in self._extractors:
            result.update(extractor.extract(content, path, result))
        return result
