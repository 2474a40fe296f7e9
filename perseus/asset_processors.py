"""Asset processors for Perseus.

Each processor minifies a single type of text asset.

Key classes:
- CSSMinifier: Minifies stylesheets with rcssmin.
- JSMinifier: Minifies scripts with rjsmin.
- AssetProcessorRegistry: Registry for managing asset processors.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import rcssmin
import rjsmin


class BaseAssetProcessor(ABC):
    """Base class for asset processors.

    A processor takes the text of one output file and returns its processed
    text. Processors never grow a file: when the processed text is longer
    than the input, the input is kept.
    """

    @property
    @abstractmethod
    def priority(self) -> int:
        """Return processor priority (higher = checked first)."""
        ...

    @abstractmethod
    def can_process(self, path: str) -> bool:
        """Check if this processor can handle the given output path.

        Args:
            path: Posix output path of the asset.

        Returns:
            True if this processor can handle the asset.
        """
        ...

    @abstractmethod
    def transform(self, text: str) -> str:
        """Return the processed text."""
        ...

    def process(self, text: str) -> str:
        """Process asset text, keeping the original if processing grew it.

        Args:
            text: Asset contents.

        Returns:
            Processed contents, never longer than ``text`` in UTF-8 bytes.
        """
        processed = self.transform(text)
        if len(processed.encode("utf-8")) > len(text.encode("utf-8")):
            return text
        return processed


class CSSMinifier(BaseAssetProcessor):
    """Minifies CSS files."""

    @property
    def priority(self) -> int:
        return 90

    def can_process(self, path: str) -> bool:
        return path.lower().endswith(".css")

    def transform(self, text: str) -> str:
        return rcssmin.cssmin(text)


class JSMinifier(BaseAssetProcessor):
    """Minifies JavaScript files.

    Files that are already minified (``*.min.js``) are left alone.
    """

    @property
    def priority(self) -> int:
        return 80

    def can_process(self, path: str) -> bool:
        lowered = path.lower()
        return lowered.endswith(".js") and not lowered.endswith(".min.js")

    def transform(self, text: str) -> str:
        return rjsmin.jsmin(text)


class AssetProcessorRegistry:
    """Registry for managing asset processors.

    Selects the appropriate processor for an output path.
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._processors: list[BaseAssetProcessor] = []

    def __len__(self) -> int:
        return len(self._processors)

    def register(self, processor: BaseAssetProcessor) -> None:
        """Register a new processor.

        Processors are stored sorted by priority (highest first).

        Args:
            processor: Asset processor to register.
        """
        self._processors.append(processor)
        self._processors.sort(key=lambda p: p.priority, reverse=True)

    def get_processor(self, path: str) -> BaseAssetProcessor | None:
        """Get the appropriate processor for an output path.

        Args:
            path: Posix output path of the asset.

        Returns:
            The first processor that can handle the file, or None.
        """
        for processor in self._processors:
            if processor.can_process(path):
                return processor
        return None


def create_minifier_registry(
    minify_css: bool, minify_javascript: bool
) -> AssetProcessorRegistry:
    """Create a registry holding the minifiers switched on by the build flags.

    Args:
        minify_css: Whether to register the CSS minifier.
        minify_javascript: Whether to register the JavaScript minifier.

    Returns:
        Configured AssetProcessorRegistry.
    """
    registry = AssetProcessorRegistry()
    if minify_css:
        registry.register(CSSMinifier())
    if minify_javascript:
        registry.register(JSMinifier())
    return registry
