from __future__ import annotations


class GalleryError(Exception):
    """Base class for errors surfaced to callers of the gallery index."""


class DirectoryNotFoundError(GalleryError):
    """The requested directory is missing or cannot be listed."""

    def __init__(self, relative_path: str, reason: str | None = None) -> None:
        self.relative_path = relative_path
        self.reason = reason
        message = f"Directory not found or unreadable: {relative_path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class MetadataLoaderError(GalleryError):
    """A configured metadata loader override could not be resolved."""
