"""Build errors for Perseus.

Every error raised while turning a source file into output carries the
path of that file so the CLI can point at it.
"""

from __future__ import annotations

from pathlib import Path


class BuildError(Exception):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the source file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


class ContentError(BuildError):
    """A content source is malformed (bad post filename, date or frontmatter)."""


class LayoutNotFoundError(BuildError):
    """An item names a layout that does not exist.

    Attributes:
        layout: The layout name that could not be resolved.
    """

    def __init__(self, source_path: Path, layout: str, searched: list[str]):
        self.layout = layout
        self.searched = searched
        super().__init__(
            source_path,
            f"Layout '{layout}' not found (looked for {', '.join(searched)})",
        )


def format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message.

    Args:
        exc: The exception to format.

    Returns:
        A human-readable error message.
    """
    error_type = type(exc).__name__
    error_msg = str(exc)

    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if error_type == "TemplateNotFound":
        return f"Template not found: {error_msg}"
    if error_type == "AssetNotFoundError":
        return f"Missing asset: {error_msg}"
    if error_type == "TypeError":
        return f"Type error: {error_msg}"
    if error_type == "AttributeError":
        return f"Attribute error: {error_msg}"

    return f"{error_type}: {error_msg}"
