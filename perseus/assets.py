"""Static asset discovery for Perseus.

Every file in the site directory that is not a content source (and not
inside an internal ``_`` directory) is a static asset: stylesheets, scripts,
images, fonts and anything else. Assets keep their relative path in the
output tree. Stylesheets and scripts are loaded as text so that the
relative-assets and minify stages can rewrite them; everything else is
copied byte for byte.

Key components:
- AssetCollector: Turns the static files of a site into BuildFile objects.
"""

from __future__ import annotations

from pathlib import Path

from .content import FileContentLoader
from .errors import BuildError
from .pipeline import BuildFile

TEXT_ASSET_EXTENSIONS = (".css", ".js")


class AssetCollector:
    """Collects the static assets of a site.

    Attributes:
        site_dir: Directory containing site content and assets.
        content_loader: Loader used to enumerate files.
    """

    def __init__(self, site_dir: Path, content_loader: FileContentLoader | None = None):
        self.site_dir = site_dir
        self.content_loader = content_loader or FileContentLoader(site_dir)

    def collect(self) -> list[BuildFile]:
        """Load every static asset of the site.

        Returns:
            BuildFile objects whose path mirrors the source layout.
        """
        files: list[BuildFile] = []
        for path in self.content_loader.iter_assets():
            rel = path.relative_to(self.site_dir).as_posix()
            files.append(BuildFile(path=rel, content=self._read(path), source_path=path))
        return files

    @staticmethod
    def _read(path: Path) -> str | bytes:
        if path.suffix.lower() in TEXT_ASSET_EXTENSIONS:
            try:
                return path.read_text(encoding="utf-8")
            except UnicodeDecodeError as exc:
                raise BuildError(path, f"Asset is not valid UTF-8 text: {exc.reason}", exc) from exc
        return path.read_bytes()
