"""Site building functionality for Perseus.

This module contains the core logic for building a static site from source files.
It loads configuration and data, discovers content and assets, runs the build
pipeline and writes the output tree.

Key functions:
- build_site: Main function to build the entire site.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .assets import AssetCollector
from .config import BuildMode, ConfigError, SiteConfig, load_config, load_data
from .content import ContentItem, ContentProcessor
from .errors import BuildError, ContentError, LayoutNotFoundError
from .pipeline import BuildFile, create_pipeline
from .templates import TemplateEngine
from .utils import ensure_clean_dir

__all__ = [
    "BuildError",
    "BuildResult",
    "ConfigError",
    "ContentError",
    "LayoutNotFoundError",
    "build_site",
]


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        items: Every page and post of the site.
        files: Every file written, with its final output path.
        output_dir: Directory where the site was built.
        config: Configuration the site was built with.
        data: Data loaded from the data directory.
    """

    items: list[ContentItem]
    files: list[BuildFile]
    output_dir: Path
    config: SiteConfig
    data: dict[str, Any]

    @property
    def posts(self) -> list[ContentItem]:
        return [item for item in self.items if item.is_post]


def build_site(
    project_root: Path,
    mode: BuildMode = BuildMode.PRODUCTION,
    clean_output: bool = True,
    output_dir_override: Path | None = None,
) -> BuildResult:
    """Build the entire static site.

    Args:
        project_root: Root directory of the project.
        mode: Build mode; production enables the optimization stages.
        clean_output: Whether to wipe the output directory before building.
        output_dir_override: Optional path to write the build output instead of config output_dir.

    Returns:
        BuildResult containing all items, written files and configuration.

    Raises:
        ConfigError: If the configuration is missing or invalid.
        BuildError: If a content source cannot be turned into output.
    """
    config = load_config(project_root, mode)
    data = load_data(project_root)
    site_dir = project_root / config.source_dir
    if not site_dir.is_dir():
        raise ConfigError(f"Expected site directory at {site_dir}", "source_dir")

    items = ContentProcessor(site_dir, config).load()
    files = [BuildFile.for_item(item) for item in items]
    files.extend(AssetCollector(site_dir).collect())
    _check_unique_paths(files, config)

    engine = TemplateEngine(site_dir, config, data)
    pipeline = create_pipeline(config, engine)
    files = pipeline.run(files)

    output_dir = output_dir_override or (project_root / config.output_dir)
    if clean_output:
        ensure_clean_dir(output_dir)
    else:
        output_dir.mkdir(parents=True, exist_ok=True)
    for build_file in files:
        _write_file(output_dir, build_file)
    return BuildResult(
        items=items, files=files, output_dir=output_dir, config=config, data=data
    )


def _check_unique_paths(files: list[BuildFile], config: SiteConfig) -> None:
    """Ensure no two files end up at the same final output path.

    Raises:
        ContentError: Naming the second source that claims a path.
    """
    claimed: dict[str, Path] = {}
    for build_file in files:
        final = build_file.final_path(config.directory_indexes)
        other = claimed.get(final)
        if other is not None:
            raise ContentError(
                build_file.source_path,
                f"Output path '{final}' is already produced by {other}",
            )
        claimed[final] = build_file.source_path


def _write_file(output_dir: Path, build_file: BuildFile) -> None:
    """Write one build file below the output directory.

    Args:
        output_dir: Base output directory.
        build_file: File with its final output path.
    """
    target = output_dir / build_file.path
    target.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(build_file.content, bytes):
        target.write_bytes(build_file.content)
    else:
        with open(target, "w", encoding="utf-8", newline="") as f:
            f.write(build_file.content)
