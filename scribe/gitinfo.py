"""Git history lookups for content dates.

When ``enable_git_info`` is on, pages without an explicit ``lastmod`` take
the date of the last commit touching their source file, and pages without
any date take the date of the commit that added them. The CI workflow checks
out the full history for this reason.

Key class:
- GitInfo: Cached per-file commit date lookups through the git CLI.
"""

from __future__ import annotations

import shutil
import subprocess
from datetime import datetime
from pathlib import Path


class GitInfo:
    """Looks up commit dates for files in a git working tree.

    Every failure (git not installed, not a repository, untracked file)
    yields None so the caller falls back to other date sources.

    Attributes:
        project_root: Root of the working tree.
        git_bin: Path to the git executable, or None.
    """

    def __init__(self, project_root: Path, git_bin: str | None = None):
        self.project_root = project_root
        self.git_bin = git_bin or shutil.which("git")
        self._lastmod: dict[Path, datetime | None] = {}
        self._created: dict[Path, datetime | None] = {}

    @property
    def available(self) -> bool:
        return self.git_bin is not None

    def lastmod(self, path: Path) -> datetime | None:
        """Return the committer date of the last commit touching ``path``."""
        if path not in self._lastmod:
            self._lastmod[path] = self._query(
                ["log", "-1", "--format=%cI", "--", str(path)]
            )
        return self._lastmod[path]

    def created(self, path: Path) -> datetime | None:
        """Return the author date of the commit that added ``path``."""
        if path not in self._created:
            self._created[path] = self._query(
                [
                    "log",
                    "--diff-filter=A",
                    "--follow",
                    "--format=%aI",
                    "-1",
                    "--",
                    str(path),
                ]
            )
        return self._created[path]

    def _query(self, args: list[str]) -> datetime | None:
        if not self.git_bin:
            return None
        try:
            result = subprocess.run(
                [self.git_bin, *args],
                cwd=self.project_root,
                capture_output=True,
                text=True,
            )
        except OSError:
            return None
        if result.returncode != 0:
            return None
        output = result.stdout.strip()
        if not output:
            return None
        try:
            return datetime.fromisoformat(output.splitlines()[0])
        except ValueError:
            return None
