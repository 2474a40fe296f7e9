from pathlib import Path

import pytest
from click.testing import CliRunner

from perseus import __version__
from perseus.cli import cli

SKIP_GIT = {"PERSEUS_SKIP_GIT_INIT": "1"}


@pytest.fixture
def project(tmp_path, monkeypatch):
    runner = CliRunner()
    target = tmp_path / "mysite"
    result = runner.invoke(cli, ["new", str(target)], env=SKIP_GIT)
    assert result.exit_code == 0, result.output
    monkeypatch.chdir(target)
    return target


def test_cli_new_scaffolds_project(tmp_path):
    runner = CliRunner()
    target = tmp_path / "mysite"
    result = runner.invoke(cli, ["new", str(target)], env=SKIP_GIT)
    assert result.exit_code == 0
    assert "New Perseus site created" in result.output
    assert (target / "perseus.yaml").exists()
    assert (target / "site" / "_layouts" / "layout.html.jinja").exists()
    assert (target / "site" / "_layouts" / "blog.html.jinja").exists()
    assert (target / "site" / "feed.xml.jinja").exists()
    assert (target / "site" / "posts" / "2023-05-01-hello-world.md").exists()
    assert (target / "data" / "navigation.yaml").exists()

    # fails on non-empty directory
    result = runner.invoke(cli, ["new", str(target)], env=SKIP_GIT)
    assert result.exit_code != 0
    assert "non-empty directory" in result.output


def test_cli_build(project):
    result = CliRunner().invoke(cli, ["build"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Built" in result.output
    assert (project / "build" / "blog" / "hello-world" / "index.html").exists()
    assert (project / "build" / "feed.xml").exists()


def test_cli_build_failure_exits_nonzero(project):
    (project / "site" / "posts" / "not-a-post.md").write_text("x", encoding="utf-8")
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "Build failed" in result.output
    assert "not-a-post.md" in result.output


def test_cli_build_reports_undecodable_asset(project):
    (project / "site" / "js" / "bad.js").write_bytes(b"var s = \"\xff\";")
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "Build failed" in result.output
    assert "bad.js" in result.output
    assert "Traceback" not in result.output


def test_cli_build_without_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "No perseus.yaml" in result.output


def test_cli_serve_passes_ports(project, monkeypatch):
    called = {}

    class DummyServer:
        def __init__(self, root, http_port=None, ws_port=None):
            called["root"] = root
            called["port"] = http_port
            called["ws_port"] = ws_port

        def start(self):
            called["started"] = True

    monkeypatch.setattr("perseus.server.DevServer", DummyServer)
    result = CliRunner().invoke(
        cli, ["serve", "--port", "5050", "--ws-port", "5051"], catch_exceptions=False
    )
    assert result.exit_code == 0
    assert called == {"root": project, "port": 5050, "ws_port": 5051, "started": True}


def test_cli_article_creates_post(project):
    result = CliRunner().invoke(cli, ["article", "My Next Post!", "--date", "2024-02-03"])
    assert result.exit_code == 0, result.output
    path = project / "site" / "posts" / "2024-02-03-my-next-post.md"
    assert path.exists()
    text = path.read_text(encoding="utf-8")
    assert text.startswith('---\ntitle: "My Next Post!"\n')
    assert "Created site/posts/2024-02-03-my-next-post.md" in result.output

    # the new post builds under its permalink
    assert CliRunner().invoke(cli, ["build"]).exit_code == 0
    assert (project / "build" / "blog" / "my-next-post" / "index.html").exists()


def test_cli_article_refuses_slug_collision(project):
    result = CliRunner().invoke(cli, ["article", "Hello World", "--date", "2024-01-01"])
    assert result.exit_code != 0
    assert "already exists: 2023-05-01-hello-world.md" in result.output


def test_cli_article_rejects_title_without_slug(project):
    result = CliRunner().invoke(cli, ["article", "!!!", "--date", "2024-02-03"])
    assert result.exit_code != 0
    assert "no letters or digits" in result.output
    assert not list((project / "site" / "posts").glob("2024-02-03-*"))


def test_cli_article_rejects_bad_date(project):
    result = CliRunner().invoke(cli, ["article", "Dated", "--date", "03/02/2024"])
    assert result.exit_code != 0
    assert "YYYY-MM-DD" in result.output


def test_cli_article_prompts_for_title(project, monkeypatch):
    class FakePrompt:
        def __init__(self, answer):
            self.answer = answer

        def ask(self):
            return self.answer

    monkeypatch.setattr("questionary.text", lambda *args, **kwargs: FakePrompt("Prompted Title"))
    result = CliRunner().invoke(cli, ["article", "--date", "2024-05-06"])
    assert result.exit_code == 0, result.output
    assert (project / "site" / "posts" / "2024-05-06-prompted-title.md").exists()

    monkeypatch.setattr("questionary.text", lambda *args, **kwargs: FakePrompt(None))
    result = CliRunner().invoke(cli, ["article"])
    assert result.exit_code != 0


def test_cli_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert f"perseus, version {__version__}" in result.output


def test_module_main_entrypoint():
    from perseus.__main__ import main

    assert callable(main)


def test_main_invokes_cli(monkeypatch):
    import perseus.cli as cli_mod

    called = {}
    monkeypatch.setattr(cli_mod, "cli", lambda: called.setdefault("ran", True))
    cli_mod.main()
    assert called["ran"] is True


def test_scaffold_runs_git_init(tmp_path, monkeypatch):
    import perseus.cli as cli_mod

    calls = []
    monkeypatch.setattr(cli_mod.shutil, "which", lambda name: "/usr/bin/git")
    monkeypatch.setattr(cli_mod.subprocess, "run", lambda args, **kwargs: calls.append((args, kwargs["cwd"])))
    monkeypatch.delenv("PERSEUS_SKIP_GIT_INIT", raising=False)
    cli_mod._scaffold(tmp_path / "site")
    assert calls == [(["/usr/bin/git", "init"], tmp_path / "site")]
    assert Path(tmp_path / "site" / "perseus.yaml").exists()
