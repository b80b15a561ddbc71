"""Protocol definitions for Scribe.

These interfaces let renderers, metadata extractors and asset processors be
swapped or extended without touching the build pipeline that uses them.
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .content import Heading


@runtime_checkable
class ContentRenderer(Protocol):
    """Protocol for turning a content body into HTML."""

    @abstractmethod
    def can_render(self, path: Path) -> bool:
        """Check if this renderer can handle the given file."""
        ...

    @abstractmethod
    def render(self, content: str) -> tuple[str, list[Heading]]:
        """Render content to HTML.

        Args:
            content: Body of the source file, front matter removed.

        Returns:
            Tuple of (rendered HTML, list of headings for TOC).
        """
        ...

    @property
    @abstractmethod
    def source_type(self) -> str:
        """Return the source type identifier (``markdown`` or ``html``)."""
        ...


@runtime_checkable
class MetadataExtractor(Protocol):
    """Protocol for extracting one kind of page metadata."""

    @abstractmethod
    def extract(self, content: str, path: Path, meta: dict[str, Any]) -> dict[str, Any]:
        """Extract metadata from content.

        Args:
            content: Raw source content.
            path: Path to the source file.
            meta: Metadata produced by the extractors that ran before.

        Returns:
            Dictionary of extracted metadata, merged into ``meta``.
        """
        ...


@runtime_checkable
class AssetProcessor(Protocol):
    """Protocol for copying or transforming a static file into the output."""

    @abstractmethod
    def can_process(self, path: Path) -> bool:
        ...

    @abstractmethod
    def process(self, source: Path, dest: Path) -> bool:
        """Process an asset file.

        Args:
            source: Source asset path.
            dest: Destination path for processed asset.

        Returns:
            True if processing was successful.
        """
        ...

    @property
    @abstractmethod
    def priority(self) -> int:
        """Return processor priority (higher = checked first)."""
        ...
