import subprocess
from datetime import datetime, timedelta, timezone
from pathlib import Path

from scribe.gitinfo import GitInfo


class FakeCompleted:
    def __init__(self, stdout="", returncode=0):
        self.stdout = stdout
        self.returncode = returncode


def test_lastmod_parses_and_caches(monkeypatch, tmp_path):
    calls = []

    def fake_run(args, **kwargs):
        calls.append(args)
        assert kwargs["cwd"] == tmp_path
        return FakeCompleted("2024-03-01T10:00:00+01:00\n")

    monkeypatch.setattr(subprocess, "run", fake_run)
    git = GitInfo(tmp_path, git_bin="git")
    page = tmp_path / "content" / "post.md"
    expected = datetime(2024, 3, 1, 10, tzinfo=timezone(timedelta(hours=1)))
    assert git.lastmod(page) == expected
    assert git.lastmod(page) == expected
    assert len(calls) == 1
    assert calls[0][:4] == ["git", "log", "-1", "--format=%cI"]


def test_created_uses_first_commit(monkeypatch, tmp_path):
    seen = {}

    def fake_run(args, **kwargs):
        seen["args"] = args
        return FakeCompleted("2022-01-02T03:04:05+00:00\n")

    monkeypatch.setattr(subprocess, "run", fake_run)
    created = GitInfo(tmp_path, git_bin="git").created(tmp_path / "a.md")
    assert created == datetime(2022, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert "--diff-filter=A" in seen["args"]
    assert "--follow" in seen["args"]


def test_failures_yield_none(monkeypatch, tmp_path):
    page = Path("post.md")
    monkeypatch.setattr(subprocess, "run", lambda args, **kwargs: FakeCompleted("", 128))
    assert GitInfo(tmp_path, git_bin="git").lastmod(page) is None

    monkeypatch.setattr(subprocess, "run", lambda args, **kwargs: FakeCompleted(""))
    assert GitInfo(tmp_path, git_bin="git").lastmod(page) is None

    monkeypatch.setattr(subprocess, "run", lambda args, **kwargs: FakeCompleted("garbage"))
    assert GitInfo(tmp_path, git_bin="git").lastmod(page) is None

    def missing(args, **kwargs):
        raise FileNotFoundError("git")

    monkeypatch.setattr(subprocess, "run", missing)
    assert GitInfo(tmp_path, git_bin="git").created(page) is None


def test_unavailable_without_git(monkeypatch, tmp_path):
    monkeypatch.setattr("scribe.gitinfo.shutil.which", lambda name: None)
    git = GitInfo(tmp_path)
    assert not git.available
    assert git.lastmod(tmp_path / "a.md") is None
