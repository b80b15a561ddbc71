from pathlib import Path

import pytest


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def blog(tmp_path):
    """A small blog project with posts, uses pages, a bundle and a draft."""
    write(
        tmp_path / "scribe.yaml",
        "title: Test Blog\n"
        "base_url: https://example.com/\n"
        "author: Tester\n"
        "description: Notes\n"
        "menu:\n"
        "  - {name: Uses, url: /uses/, weight: 2}\n"
        "  - {name: Posts, url: /posts/, weight: 1}\n",
    )
    content = tmp_path / "content"
    write(content / "_index.md", "---\ntitle: Home\n---\nWelcome to the blog.\n")
    write(content / "about.md", "---\ntitle: About\n---\nI write about Android.\n")
    write(content / "posts" / "_index.md", "---\ntitle: Posts\n---\n")
    write(
        content / "posts" / "2024-01-15-first-post.md",
        "---\n"
        "title: First Post\n"
        "tags: [Kotlin, Testing]\n"
        "aliases: [/first/]\n"
        "---\n"
        "Intro paragraph.\n\n<!--more-->\n\n## Details\n\nMore text.\n",
    )
    write(
        content / "posts" / "2024-03-01-second-post.md",
        "---\ntitle: Second Post\ntags: [kotlin]\n---\nSecond body.\n",
    )
    write(
        content / "posts" / "wip.md",
        "---\ntitle: Work in progress\ndate: 2024-02-01\ndraft: true\n---\nNot yet.\n",
    )
    write(
        content / "posts" / "trip" / "index.md",
        "---\ntitle: Trip\ndate: 2023-06-01\n---\n![photo](photo.jpg)\n",
    )
    write(content / "posts" / "trip" / "photo.jpg", "jpeg-bytes")
    write(content / "uses" / "_index.md", "---\ntitle: Uses\n---\nWhat I use.\n")
    write(
        content / "uses" / "software.md",
        "---\ntitle: Software\nweight: 2\ndate: 2024-01-01\n---\nEditors.\n",
    )
    write(
        content / "uses" / "hardware.md",
        "---\ntitle: Hardware\nweight: 1\ndate: 2024-01-01\n---\nLaptop.\n",
    )
    write(tmp_path / "static" / "CNAME", "example.com\n")
    return tmp_path
