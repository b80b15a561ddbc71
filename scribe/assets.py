"""Static file pipeline for Scribe.

Copies the theme's ``static/`` folder and then the project's ``static/``
folder into the output root, so project files (CNAME, favicon, extra CSS)
override theme files of the same name. Page bundle resources are copied
next to the page that owns them.

Key components:
- AssetPipeline: Walks static sources and hands each file to a processor.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from .asset_processors import AssetProcessorRegistry, create_default_registry
from .content import Page
from .utils import is_hidden


class AssetPipeline:
    """Copies and optionally minifies static files into the output directory.

    Attributes:
        sources: Static directories in override order (later wins).
        output_dir: Directory where processed files are written.
        processor_registry: Registry of asset processors.
    """

    def __init__(
        self,
        sources: Iterable[Path],
        output_dir: Path,
        minify: bool = False,
        processor_registry: AssetProcessorRegistry | None = None,
    ):
        self.sources = list(sources)
        self.output_dir = output_dir
        self.processor_registry = processor_registry or create_default_registry(minify)

    def run(self) -> list[Path]:
        """Process every static source; missing directories are skipped.

        Returns:
            Output paths written, in processing order.
        """
        written: list[Path] = []
        for source in self.sources:
            if not source.is_dir():
                continue
            for item in sorted(source.rglob("*")):
                if item.is_dir():
                    continue
                rel = item.relative_to(source)
                if is_hidden(rel):
                    continue
                dest = self.output_dir / rel
                if self.processor_registry.process(item, dest):
                    written.append(dest)
        return written

    def copy_resources(self, pages: Iterable[Page]) -> list[Path]:
        """Copy page bundle resources beside each bundle's index.html."""
        written: list[Path] = []
        for page in pages:
            if not page.resources or page.path is None:
                continue
            target_dir = self.output_dir / page.url.strip("/")
            for resource in page.resources:
                dest = target_dir / resource.relative_to(page.path.parent)
                if self.processor_registry.process(resource, dest):
                    written.append(dest)
        return written
