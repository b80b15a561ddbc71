"""Scribe static blog generator.

This package builds the blog under ``content/`` into a static website using
Markdown (mistune) and Jinja2 templates. Front matter decides what gets
published; the theme decides how it looks.

The main entry point is the CLI module, which provides commands for scaffolding
the content layout, building the site, listing unpublished content and running
the development server with live reload.
"""

__all__ = ["__version__"]
__version__ = "1.0.0"
