"""Command-line interface for Perseus.

This module defines the CLI commands using Click framework.
It provides commands for creating new projects, building sites, writing
articles and running the development server.

Commands:
- new: Scaffold a new Perseus project.
- build: Build the site for production into the output directory.
- serve: Run development server with live reload.
- article: Create a new blog post following the configured filename pattern.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from datetime import datetime
from pathlib import Path

import click
import questionary

from . import __version__
from .config import BuildMode, ConfigError, load_config
from .errors import BuildError
from .permalinks import PermalinkPattern, SourcePattern
from .utils import logical_path, slugify

# Path to the skeleton copied by `perseus new`
_SKELETON_DIR = Path(__file__).parent / "skeleton"


@click.group()
@click.version_option(version=__version__, prog_name="perseus")
def cli():
    """Perseus static site generator."""


@cli.command()
@click.argument("name")
def new(name: str):
    """Scaffold a new Perseus project."""
    target = Path(name).resolve()
    if target.exists() and any(target.iterdir()):
        raise click.ClickException(
            f"Refusing to initialize into non-empty directory: {target}"
        )
    _scaffold(target)
    click.echo(f"New Perseus site created at {target}")


@cli.command()
def build():
    """Build the site for production into the output directory."""
    project_root = Path.cwd()
    from .build import build_site

    try:
        result = build_site(project_root, mode=BuildMode.PRODUCTION)
    except (BuildError, ConfigError) as exc:
        _report_failure(project_root, exc)
        raise SystemExit(1) from None
    click.echo(
        f"Built {len(result.items)} pages ({len(result.posts)} posts) into {result.output_dir}"
    )


@cli.command()
@click.option(
    "--port",
    type=int,
    required=False,
    help="Port to run the dev server (overrides perseus.yaml)",
)
@click.option(
    "--ws-port",
    type=int,
    required=False,
    help="Port for the live reload websocket server (overrides perseus.yaml ws_port)",
)
def serve(port: int | None, ws_port: int | None):
    """Run dev server with live reload."""
    project_root = Path.cwd()
    from .server import DevServer

    try:
        server = DevServer(project_root, http_port=port, ws_port=ws_port)
        server.start()
    except (BuildError, ConfigError) as exc:
        _report_failure(project_root, exc)
        raise SystemExit(1) from None


@cli.command()
@click.argument("title", required=False)
@click.option(
    "--date",
    "date_str",
    help="Publish date as YYYY-MM-DD (defaults to today)",
)
def article(title: str | None, date_str: str | None):
    """Create a new blog post."""
    project_root = Path.cwd()
    try:
        config = load_config(project_root)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from None

    if not title:
        title = questionary.text(
            "Post title:",
            validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
            style=_questionary_style(),
        ).ask()
        if title is None:
            raise click.Abort()
    title = title.strip()

    try:
        published = datetime.strptime(date_str, "%Y-%m-%d") if date_str else datetime.now()
    except ValueError:
        raise click.BadParameter("expected YYYY-MM-DD", param_hint="--date") from None

    slug = slugify(title)
    if not slug:
        raise click.BadParameter("title has no letters or digits", param_hint="TITLE")
    rel_path = _article_path(config.blog.sources, published, slug)
    target = project_root / config.source_dir / rel_path
    if target.exists():
        raise click.ClickException(
            f"File already exists: {target.relative_to(project_root)}"
        )

    conflicting = _posts_with_slug(project_root / config.source_dir, config.blog.sources, slug)
    if conflicting:
        raise click.ClickException(
            f"A post with slug '{slug}' already exists: {conflicting[0].name}"
        )

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(
        f"---\ntitle: {_yaml_quote(title)}\ntags: []\n---\n\n", encoding="utf-8"
    )
    click.echo(f"Created {target.relative_to(project_root)}")


def _article_path(sources: str, published: datetime, slug: str) -> str:
    """Return the Markdown source path for a new post.

    The blog sources pattern is filled in and its ``.html`` extension is
    replaced by ``.md``.
    """
    fields = {
        "year": f"{published.year:04d}",
        "month": f"{published.month:02d}",
        "day": f"{published.day:02d}",
        "title": slug,
    }
    path = PermalinkPattern(sources).expand(fields)
    if path.endswith(".html"):
        path = path[: -len(".html")]
    return f"{path}.md"


def _posts_with_slug(site_dir: Path, sources: str, slug: str) -> list[Path]:
    """Return existing post sources whose title slugifies to ``slug``."""
    pattern = SourcePattern(sources)
    found = []
    for path in sorted((site_dir / pattern.directory).glob("*")):
        rel = logical_path(path.relative_to(site_dir).as_posix())
        match = pattern.match(rel)
        if match and slugify(match["title"]) == slug:
            found.append(path)
    return found


def _yaml_quote(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _report_failure(project_root: Path, exc: Exception) -> None:
    """Display a build or configuration error without a traceback."""
    click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
    if isinstance(exc, BuildError):
        try:
            rel_path = exc.source_path.relative_to(project_root)
        except ValueError:
            rel_path = exc.source_path
        click.echo(click.style(f"  File: {rel_path}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
    else:
        click.echo(click.style(f"  Configuration: {exc}", fg="white"), err=True)


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()


def _scaffold(root: Path) -> None:
    """Create the directory structure and files for a new Perseus project.

    Args:
        root: Root directory for the new project.
    """
    for src_path in _SKELETON_DIR.rglob("*"):
        if src_path.is_dir():
            continue
        rel_path = src_path.relative_to(_SKELETON_DIR)
        dest_path = root / rel_path
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src_path, dest_path)

    _try_git_init(root)


def _try_git_init(root: Path) -> None:
    """Initialize a git repository if git is available."""
    if os.environ.get("PERSEUS_SKIP_GIT_INIT") == "1":
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
        # Non-fatal: user can run git init manually
        pass
