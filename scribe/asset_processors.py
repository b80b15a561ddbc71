"""Asset processors for Scribe.

Each processor handles one kind of static file, following the Single
Responsibility Principle. The registry picks the highest-priority processor
that accepts a file.

Key classes:
- CSSMinifyProcessor: Minifies stylesheets with csscompressor.
- JSMinifyProcessor: Minifies scripts with rjsmin.
- StaticAssetProcessor: Copies anything else unchanged.
- AssetProcessorRegistry: Registry for managing asset processors.
"""

from __future__ import annotations

import shutil
from abc import ABC, abstractmethod
from pathlib import Path

import csscompressor
import rjsmin


class BaseAssetProcessor(ABC):
    """Base class for asset processors."""

    @property
    @abstractmethod
    def priority(self) -> int:
        """Return processor priority (higher = checked first)."""
        ...

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

    def ensure_dest_dir(self, dest: Path) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)


class _MinifyProcessor(BaseAssetProcessor):
    """Shared logic for text minifiers; copies verbatim when disabled."""

    suffix = ""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    def can_process(self, path: Path) -> bool:
        name = path.name.lower()
        return name.endswith(self.suffix) and not name.endswith(f".min{self.suffix}")

    def process(self, source: Path, dest: Path) -> bool:
        self.ensure_dest_dir(dest)
        if not self.enabled:
            shutil.copy2(source, dest)
            return True
        text = source.read_text(encoding="utf-8")
        dest.write_text(self.minify(text), encoding="utf-8")
        return True

    @abstractmethod
    def minify(self, text: str) -> str:
        ...


class CSSMinifyProcessor(_MinifyProcessor):
    """Minifies CSS files. Files already named ``*.min.css`` are copied."""

    suffix = ".css"

    @property
    def priority(self) -> int:
        return 90

    def minify(self, text: str) -> str:
        return csscompressor.compress(text)


class JSMinifyProcessor(_MinifyProcessor):
    """Minifies JavaScript files. Files already named ``*.min.js`` are copied."""

    suffix = ".js"

    @property
    def priority(self) -> int:
        return 80

    def minify(self, text: str) -> str:
        return rjsmin.jsmin(text)


class StaticAssetProcessor(BaseAssetProcessor):
    """Copies static assets without modification.

    This is the fallback processor for assets that don't need
    special processing (images, fonts, CNAME, etc.).
    """

    @property
    def priority(self) -> int:
        return 0

    def can_process(self, path: Path) -> bool:
        return True

    def process(self, source: Path, dest: Path) -> bool:
        self.ensure_dest_dir(dest)
        shutil.copy2(source, dest)
        return True


class AssetProcessorRegistry:
    """Registry for managing asset processors."""

    def __init__(self):
        self._processors: list[BaseAssetProcessor] = []

    def register(self, processor: BaseAssetProcessor) -> None:
        """Register a new processor, keeping the list sorted by priority."""
        self._processors.append(processor)
        self._processors.sort(key=lambda p: p.priority, reverse=True)

    def get_processor(self, path: Path) -> BaseAssetProcessor | None:
        for processor in self._processors:
            if processor.can_process(path):
                return processor
        return None

    def process(self, source: Path, dest: Path) -> bool:
        """Process an asset using the appropriate processor.

        Returns:
            True if processing was successful, False if no processor found.
        """
        processor = self.get_processor(source)
        if processor:
            return processor.process(source, dest)
        return False


def create_default_registry(minify: bool = False) -> AssetProcessorRegistry:
    """Create a registry with default processors.

    Args:
        minify: Whether CSS and JS are minified or copied as-is.

    Returns:
        Configured AssetProcessorRegistry.
    """
    registry = AssetProcessorRegistry()
    registry.register(CSSMinifyProcessor(enabled=minify))
    registry.register(JSMinifyProcessor(enabled=minify))
    registry.register(StaticAssetProcessor())
    return registry
