"""Asset path resolver for Perseus.

This module provides the AssetPathResolver class for resolving asset names
used in templates to URLs under the configured ``css_dir``, ``js_dir`` and
``images_dir``.

Key classes:
- DefaultAssetPathResolver: Resolves asset paths for templates.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from .config import SiteConfig


class AssetNotFoundError(Exception):
    """Error raised when an asset file is not found.

    Attributes:
        asset_name: The name of the asset that was requested.
        asset_type: The type of asset (e.g., "image", "JavaScript", "CSS").
        searched_paths: List of paths that were searched.
    """

    def __init__(
        self,
        asset_name: str,
        asset_type: str,
        searched_paths: list[Path],
    ):
        self.asset_name = asset_name
        self.asset_type = asset_type
        self.searched_paths = searched_paths
        paths_str = ", ".join(str(p) for p in searched_paths)
        super().__init__(
            f"{asset_type} asset '{asset_name}' not found. Searched: {paths_str}"
        )


class DefaultAssetPathResolver:
    """Resolves asset names to URLs.

    Attributes:
        site_dir: Directory containing site content and assets.
        config: Site configuration naming the asset directories.
    """

    # Supported extensions for auto-detection
    IMAGE_EXTENSIONS = ("png", "jpg", "jpeg", "gif", "svg", "webp", "ico")

    def __init__(
        self,
        site_dir: Path,
        config: SiteConfig,
        url_generator: Callable[[str], str] | None = None,
    ):
        self.site_dir = site_dir
        self.config = config
        self._url_generator = url_generator or (lambda x: x)

    def set_url_generator(self, url_generator: Callable[[str], str]) -> None:
        """Set the URL generator function.

        Args:
            url_generator: Function turning a root-relative path into a URL.
        """
        self._url_generator = url_generator

    def js_path(self, name: str) -> str:
        """Return URL path for a JavaScript file.

        Args:
            name: Filename with or without extension (e.g., "app" or "app.js").

        Returns:
            URL path like /js/app.js

        Raises:
            AssetNotFoundError: If the JavaScript file doesn't exist.
        """
        if not name.endswith(".js"):
            name = f"{name}.js"
        return self._resolve_file(self.config.js_dir, name, "JavaScript")

    def css_path(self, name: str) -> str:
        """Return URL path for a CSS file.

        Args:
            name: Filename with or without extension (e.g., "site" or "site.css").

        Returns:
            URL path like /css/site.css

        Raises:
            AssetNotFoundError: If the CSS file doesn't exist.
        """
        if not name.endswith(".css"):
            name = f"{name}.css"
        return self._resolve_file(self.config.css_dir, name, "CSS")

    def img_path(self, name: str) -> str:
        """Return URL path for an image file, auto-detecting extension.

        Searches for the image with extensions in order: png, jpg, jpeg, gif, svg, webp, ico.
        If name already has an extension, validates it exists.

        Args:
            name: Filename with or without extension (e.g., "logo" or "logo.png").

        Returns:
            URL path like /images/logo.png

        Raises:
            AssetNotFoundError: If no matching image file is found.
        """
        images_dir = self.site_dir / self.config.images_dir

        for ext in self.IMAGE_EXTENSIONS:
            if name.endswith(f".{ext}"):
                return self._resolve_file(self.config.images_dir, name, "image")

        searched_paths = []
        for ext in self.IMAGE_EXTENSIONS:
            file_path = images_dir / f"{name}.{ext}"
            searched_paths.append(file_path)
            if file_path.exists():
                return self._url_generator(f"/{self.config.images_dir}/{name}.{ext}")

        raise AssetNotFoundError(name, "image", searched_paths)

    def _resolve_file(self, directory: str, name: str, asset_type: str) -> str:
        file_path = self.site_dir / directory / name
        if not file_path.exists():
            raise AssetNotFoundError(name, asset_type, [file_path])
        return self._url_generator(f"/{directory}/{name}")
