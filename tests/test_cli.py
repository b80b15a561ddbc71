from pathlib import Path

from click.testing import CliRunner
from conftest import write

from scribe import __version__
from scribe.build import BuildResult
from scribe.cli import cli

NO_GIT = {"SCRIBE_SKIP_GIT_INIT": "1"}


def test_new_scaffolds_project(tmp_path):
    runner = CliRunner()
    target = tmp_path / "blog"
    result = runner.invoke(cli, ["new", str(target)], env=NO_GIT)
    assert result.exit_code == 0, result.output
    assert (target / "scribe.yaml").exists()
    assert (target / "content" / "_index.md").exists()
    assert (target / "content" / "posts" / "_index.md").exists()
    assert (target / "content" / "uses" / "_index.md").exists()
    assert (target / ".github" / "workflows" / "github-pages.yml").exists()
    for folder in ("static", "layouts", "data"):
        assert (target / folder).is_dir()
    assert not (target / ".git").exists()

    result = runner.invoke(cli, ["new", str(target)], env=NO_GIT)
    assert result.exit_code != 0
    assert "non-empty" in result.output


def test_scaffold_builds(tmp_path, monkeypatch):
    runner = CliRunner()
    target = tmp_path / "blog"
    runner.invoke(cli, ["new", str(target)], env=NO_GIT)
    monkeypatch.chdir(target)
    result = runner.invoke(cli, ["build"])
    assert result.exit_code == 0, result.output
    assert (target / "public" / "index.html").exists()
    assert (target / "public" / "about" / "index.html").exists()
    # the scaffolded hello-world post is a draft
    assert not (target / "public" / "posts" / "hello-world").exists()

    result = runner.invoke(cli, ["build", "--drafts"])
    assert (target / "public" / "posts" / "hello-world" / "index.html").exists()


def test_build_passes_options(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    seen = {}

    def fake_build_site(root, **kwargs):
        seen["root"] = root
        seen.update(kwargs)
        return BuildResult(pages=[], output_dir=root / "out", config={})

    monkeypatch.setattr("scribe.build.build_site", fake_build_site)
    result = CliRunner().invoke(
        cli,
        ["build", "-D", "-F", "-E", "--minify", "-b", "https://x.dev/", "-d", "dist"],
    )
    assert result.exit_code == 0, result.output
    assert seen["root"] == tmp_path
    assert seen["include_drafts"] and seen["include_future"] and seen["include_expired"]
    assert seen["minify"] is True
    assert seen["base_url"] == "https://x.dev/"
    assert seen["output_dir_override"] == tmp_path / "dist"
    assert "Built 0 pages" in result.output

    CliRunner().invoke(cli, ["build"])
    assert seen["minify"] is None
    assert seen["output_dir_override"] is None


def test_build_reports_errors_without_traceback(blog, monkeypatch):
    monkeypatch.chdir(blog)
    write(blog / "content" / "broken.md", "---\ntitle: [oops\n---\n")
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "Build failed:" in result.output
    assert str(Path("content") / "broken.md") in result.output
    assert "Traceback" not in result.output

    (blog / "content" / "broken.md").unlink()
    write(blog / "scribe.yaml", "title: [oops\n")
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "Configuration error:" in result.output


def test_build_reports_bad_front_matter_types(blog, monkeypatch):
    monkeypatch.chdir(blog)
    write(blog / "content" / "desk.md", "---\ntitle: Desk\nweight: first\n---\n")
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "Invalid weight" in result.output
    assert "Traceback" not in result.output

    write(blog / "content" / "desk.md", "---\ntitle: Desk\ntags: 5\n---\n")
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "tags must be a list" in result.output


def test_serve_uses_dev_server(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    called = {}

    class DummyServer:
        def __init__(self, root, http_port=None, ws_port=None):
            called["root"] = root
            called["port"] = http_port
            called["ws_port"] = ws_port

        def start(self, include_drafts=True, include_future=True):
            called["drafts"] = include_drafts
            called["future"] = include_future

    monkeypatch.setattr("scribe.server.DevServer", DummyServer)
    result = CliRunner().invoke(cli, ["serve", "--port", "4000", "--ws-port", "4100"])
    assert result.exit_code == 0, result.output
    assert called == {
        "root": tmp_path,
        "port": 4000,
        "ws_port": 4100,
        "drafts": True,
        "future": True,
    }

    CliRunner().invoke(cli, ["serve", "--no-drafts"])
    assert called["drafts"] is False
    assert called["future"] is False
    assert called["port"] is None


def test_list_content(blog, monkeypatch):
    monkeypatch.chdir(blog)
    write(blog / "content" / "posts" / "2999-01-01-later.md", "---\ntitle: Later\n---\nSoon.\n")
    write(
        blog / "content" / "posts" / "offer.md",
        "---\ntitle: Offer\ndate: 2020-01-01\nexpiry_date: 2020-02-01\n---\n",
    )
    runner = CliRunner()

    drafts = runner.invoke(cli, ["list"])
    assert drafts.exit_code == 0, drafts.output
    assert drafts.output == f"{Path('content/posts/wip.md')}\tWork in progress\t2024-02-01\n"

    future = runner.invoke(cli, ["list", "future"]).output
    assert "Later\t2999-01-01" in future
    assert "Work in progress" not in future

    expired = runner.invoke(cli, ["list", "expired"]).output
    assert "Offer\t2020-01-01" in expired

    everything = runner.invoke(cli, ["list", "all"]).output
    assert "About" in everything and "Later" in everything
    assert "Posts\t" not in everything

    assert runner.invoke(cli, ["list", "bogus"]).exit_code != 0


def test_list_without_content(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, ["list"])
    assert result.exit_code == 1
    assert "Content directory not found" in result.output


def test_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert __version__ in result.output
