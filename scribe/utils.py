"""Utility functions for Scribe.

This module contains small helpers used throughout the generator: slug and
title derivation from filenames, date parsing for front matter values,
word counting and directory housekeeping.

Key functions:
    slugify: Convert filenames and tag names to URL slugs.
    titleize: Convert filenames to human-readable titles.
    extract_date_from_name: Extract date from a YYYY-MM-DD filename prefix.
    parse_date: Normalise front matter date values to aware datetimes.
    count_words: Count words in rendered HTML.
    reading_time: Minutes needed to read a number of words.
    ensure_clean_dir: Ensure a directory exists and is empty.
"""

from __future__ import annotations

import re
import shutil
from datetime import date, datetime, timezone
from pathlib import Path

_DATE_PREFIX_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:-|$)")
_TAG_RE = re.compile(r"<[^>]+>")

WORDS_PER_MINUTE = 213


def strip_date_prefix(name: str) -> str:
    """Drop a leading YYYY-MM-DD- prefix from a filename stem.

    Args:
        name: Filename stem.

    Returns:
        The stem without its date prefix, or the stem unchanged.
    """
    match = _DATE_PREFIX_RE.match(name)
    if not match or match.end() == len(name):
        return name
    return name[match.end() :]


def slugify(name: str) -> str:
    """Convert a filename stem or title to a slug, dropping any date prefix.

    Args:
        name: Filename stem or free text.

    Returns:
        URL-friendly slug.

    Examples:
        >>> slugify("2022-04-01-Hello World")
        'hello-world'
    """
    cleaned = strip_date_prefix(name)
    cleaned = re.sub(r"[^\w]+", "-", cleaned.lower(), flags=re.UNICODE)
    cleaned = cleaned.replace("_", "-")
    cleaned = re.sub(r"-{2,}", "-", cleaned)
    return cleaned.strip("-") or "index"


def titleize(filename: str) -> str:
    """Convert a filename to a human-readable title.

    Removes date prefixes (YYYY-MM-DD), replaces hyphens and underscores
    with spaces, and capitalizes each word.

    Args:
        filename: Filename with or without extension.

    Returns:
        Human-readable title string.

    Examples:
        >>> titleize("2024-01-15-hello-world.md")
        'Hello World'
    """
    base = strip_date_prefix(Path(filename).stem)
    words = re.split(r"[\s\-_]+", base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def extract_date_from_name(name: str) -> datetime | None:
    """Extract a date from a filename with YYYY-MM-DD prefix.

    Args:
        name: Filename stem (without extension).

    Returns:
        UTC datetime if a valid date prefix is found, None otherwise.
    """
    match = _DATE_PREFIX_RE.match(name)
    if not match:
        return None
    try:
        return datetime(
            int(match.group(1)),
            int(match.group(2)),
            int(match.group(3)),
            tzinfo=timezone.utc,
        )
    except ValueError:
        return None


def parse_date(value: object) -> datetime | None:
    """Normalise a front matter date value.

    PyYAML already turns unquoted ISO dates into ``date``/``datetime``
    objects; quoted values arrive as strings. Naive values are taken as UTC.

    Args:
        value: Raw value from front matter.

    Returns:
        Timezone-aware datetime, or None when the value is empty.

    Raises:
        ValueError: If a string value is not an ISO 8601 date.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Unsupported date value: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def strip_tags(html: str) -> str:
    """Remove HTML tags and collapse whitespace."""
    return " ".join(_TAG_RE.sub(" ", html).split())


def count_words(html: str) -> int:
    """Count the words of rendered HTML content."""
    return len(strip_tags(html).split())


def reading_time(words: int) -> int:
    """Minutes needed to read ``words`` words, never less than one."""
    return max(1, (words + WORDS_PER_MINUTE - 1) // WORDS_PER_MINUTE)


def truncate_words(text: str, limit: int) -> str:
    """Keep the first ``limit`` words of plain text, adding an ellipsis if cut."""
    words = text.split()
    if len(words) <= limit:
        return " ".join(words)
    return " ".join(words[:limit]) + "…"


def normalize_url(url: str) -> str:
    """Force a leading and trailing slash on a site-relative URL.

    Args:
        url: URL path such as ``about`` or ``/now/``.

    Returns:
        Normalised URL path; file-like paths (``/feed.xml``) keep no trailing slash.
    """
    cleaned = "/" + url.strip().strip("/")
    if cleaned == "/":
        return cleaned
    if Path(cleaned).suffix:
        return cleaned
    return cleaned + "/"


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    If the directory exists, removes all contents. Creates the
    directory if it doesn't exist.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)


def is_hidden(path: Path) -> bool:
    """Check if any component of a relative path starts with a dot."""
    return any(part.startswith(".") for part in path.parts)


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file.

    Args:
        path: Path to check.

    Returns:
        True if the file has .md extension (case-insensitive).
    """
    return path.suffix.lower() in (".md", ".markdown")


def is_html(path: Path) -> bool:
    """Check if a path is a plain HTML content file."""
    return path.suffix.lower() in (".html", ".htm")


def is_content(path: Path) -> bool:
    """Check if a file is rendered as a page rather than copied."""
    return is_markdown(path) or is_html(path)
