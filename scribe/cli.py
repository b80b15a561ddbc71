"""Command-line interface for Scribe.

This module defines the CLI commands using the Click framework.

Commands:
- new: Scaffold the blog directory layout.
- build: Build the site into the output directory.
- serve: Run development server with live reload.
- list: Show drafts, future-dated or expired content.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from datetime import datetime, timezone
from pathlib import Path

import click

from . import __version__
from .errors import BuildError, ConfigError, ScribeError

# Path to the project skeleton copied by `scribe new`
_SCAFFOLD_DIR = Path(__file__).parent / "scaffold"

LIST_KINDS = ("drafts", "future", "expired", "all")


@click.group()
@click.version_option(version=__version__, prog_name="scribe")
def cli():
    """Scribe static blog generator."""


@cli.command()
@click.argument("name")
def new(name: str):
    """Scaffold a new blog."""
    target = Path(name).resolve()
    if target.exists() and any(target.iterdir()):
        raise click.ClickException(
            f"Refusing to initialize into non-empty directory: {target}"
        )
    _scaffold(target)
    click.echo(f"New blog created at {target}")


@cli.command()
@click.option("--drafts", "-D", is_flag=True, help="Include content marked as draft")
@click.option("--future", "-F", is_flag=True, help="Include content dated in the future")
@click.option("--expired", "-E", is_flag=True, help="Include expired content")
@click.option("--minify", is_flag=True, help="Minify HTML, CSS and JS output")
@click.option("--base-url", "-b", default=None, help="Override base_url from scribe.yaml")
@click.option(
    "--destination",
    "-d",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Write the site here instead of output_dir",
)
def build(
    drafts: bool,
    future: bool,
    expired: bool,
    minify: bool,
    base_url: str | None,
    destination: Path | None,
):
    """Build the site into the output directory."""
    project_root = Path.cwd()
    from .build import build_site

    output_dir = None
    if destination is not None:
        output_dir = destination if destination.is_absolute() else project_root / destination
    try:
        result = build_site(
            project_root,
            include_drafts=drafts,
            include_future=future,
            include_expired=expired,
            base_url=base_url,
            minify=minify or None,
            output_dir_override=output_dir,
        )
    except ScribeError as exc:
        _report_error(exc, project_root)
        raise SystemExit(1) from None
    count = sum(1 for page in result.pages if page.is_page)
    click.echo(f"Built {count} pages into {result.output_dir}")


@cli.command()
@click.option(
    "--drafts/--no-drafts",
    default=True,
    help="Include draft and future content (default: include)",
)
@click.option(
    "--port",
    type=int,
    required=False,
    help="Port to run the dev server (overrides scribe.yaml)",
)
@click.option(
    "--ws-port",
    type=int,
    required=False,
    help="Port for the live reload websocket server (default: port + 1)",
)
def serve(drafts: bool, port: int | None, ws_port: int | None):
    """Run dev server with live reload."""
    project_root = Path.cwd()
    from .server import DevServer

    try:
        server = DevServer(project_root, http_port=port, ws_port=ws_port)
        server.start(include_drafts=drafts, include_future=drafts)
    except ScribeError as exc:
        _report_error(exc, project_root)
        raise SystemExit(1) from None


@cli.command(name="list")
@click.argument("kind", type=click.Choice(LIST_KINDS), default="drafts")
def list_content(kind: str):
    """List drafts, future-dated, expired or all content."""
    project_root = Path.cwd()
    from .build import load_config
    from .content import ContentProcessor

    try:
        config = load_config(project_root)
        content_dir = project_root / config["content_dir"]
        if not content_dir.is_dir():
            raise BuildError(content_dir, "Content directory not found")
        pages = ContentProcessor(content_dir).load()
    except ScribeError as exc:
        _report_error(exc, project_root)
        raise SystemExit(1) from None

    now = datetime.now(timezone.utc)
    for page in pages:
        if not page.is_page or page.path is None:
            continue
        if kind == "drafts" and not page.draft:
            continue
        if kind == "future" and not page.is_future(now):
            continue
        if kind == "expired" and not page.is_expired(now):
            continue
        rel = _relative(page.path, project_root)
        click.echo(f"{rel}\t{page.title}\t{page.date:%Y-%m-%d}")


def _relative(path: Path, root: Path) -> Path:
    try:
        return path.relative_to(root)
    except ValueError:
        return path


def _report_error(exc: ScribeError, project_root: Path) -> None:
    """Print a build or config error without a traceback."""
    label = "Configuration error:" if isinstance(exc, ConfigError) else "Build failed:"
    click.echo(click.style(label, fg="red", bold=True), err=True)
    source = getattr(exc, "source_path", None)
    message = getattr(exc, "message", str(exc))
    if source is not None:
        rel_path = _relative(Path(source), project_root)
        click.echo(click.style(f"  File: {rel_path}", fg="yellow"), err=True)
    click.echo(click.style(f"  Error: {message}", fg="white"), err=True)


def main():
    """Entry point for the CLI application."""
    cli()


def _scaffold(root: Path) -> None:
    """Create the directory structure and files for a new blog.

    Args:
        root: Root directory for the new project.
    """
    for src_path in _SCAFFOLD_DIR.rglob("*"):
        if src_path.is_dir():
            continue
        rel_path = src_path.relative_to(_SCAFFOLD_DIR)
        dest_path = root / rel_path
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src_path, dest_path)
    for folder in ("static", "layouts", "data"):
        (root / folder).mkdir(parents=True, exist_ok=True)
    _try_git_init(root)


def _try_git_init(root: Path) -> None:
    """Initialize a git repository if git is available."""
    if os.environ.get("SCRIBE_SKIP_GIT_INIT") == "1":
        return
    git_bin = shutil.which("git")
    if not git_bin:
        return
    try:
        subprocess.run(
            [git_bin, "init"],
            cwd=root,
            check=True,
            capture_output=True,
        )
    except (OSError, subprocess.CalledProcessError):
        click.echo("git init failed; run it manually to enable git dates.", err=True)
