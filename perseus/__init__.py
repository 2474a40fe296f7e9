"""Perseus static site generator.

This package builds a personal site with a blog from Markdown and Jinja2 templates.
Blog posts are discovered by filename pattern and published under permalinks,
and production builds rewrite asset references to relative paths and minify CSS and JavaScript.

The main entry point is the CLI module, which provides commands for scaffolding new projects,
building sites, writing new articles and running the development server.

A build is an explicit, ordered pipeline:
- Configuration is loaded once into an immutable SiteConfig.
- Content discovery classifies pages and posts and computes their output paths.
- Stages (markdown, layout, relative assets, minify, directory indexes) are
  selected from the build mode when the pipeline is constructed.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
