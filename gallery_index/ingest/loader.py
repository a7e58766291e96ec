"""Metadata loading strategy.

The default loader runs the built-in photo and video readers. A deployment can
swap it for its own implementation by naming a ``module:attribute`` in
``METADATA_LOADER``; the override is resolved once when the gallery starts.
"""

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional, Protocol

from gallery_index.core.config import GalleryConfig
from gallery_index.core.errors import MetadataLoaderError
from gallery_index.core.models import PhotoMetadata, VideoMetadata

from .parsers import MetadataParsers, PillowParsers
from .photo_reader import read_photo_metadata
from .video_reader import read_video_metadata

logger = logging.getLogger(__name__)


class MetadataLoader(Protocol):
    def load_photo(self, path: Path) -> PhotoMetadata: ...

    def load_video(self, path: Path) -> VideoMetadata: ...


class DefaultMetadataLoader:
    def __init__(self, config: GalleryConfig, parsers: Optional[MetadataParsers] = None):
        self.config = config
        self.parsers = parsers or PillowParsers(ffprobe_path=config.ffprobe_path)

    def load_photo(self, path: Path) -> PhotoMetadata:
        return read_photo_metadata(
            path,
            self.parsers,
            header_size=self.config.photo_metadata_size,
            faces_enabled=self.config.faces_enabled,
            keywords_to_persons=self.config.keywords_to_persons,
        )

    def load_video(self, path: Path) -> VideoMetadata:
        return read_video_metadata(path, self.parsers)


def resolve_metadata_loader(
    config: GalleryConfig, parsers: Optional[MetadataParsers] = None
) -> MetadataLoader:
    """Return the configured loader, falling back to the default implementation.

    The override target may be a class or factory accepting ``(config)``, or a
    ready-made loader object.
    """
    if not config.metadata_loader:
        return DefaultMetadataLoader(config, parsers)
    module_name, _, attribute = config.metadata_loader.partition(":")
    if not module_name or not attribute:
        raise MetadataLoaderError(
            f"METADATA_LOADER must look like 'package.module:attribute', got {config.metadata_loader!r}"
        )
    try:
        target = getattr(importlib.import_module(module_name), attribute)
    except (ImportError, AttributeError) as exc:
        raise MetadataLoaderError(f"Cannot import metadata loader {config.metadata_loader!r}") from exc
    loader = target(config) if callable(target) and not _is_loader(target) else target
    if not _is_loader(loader):
        raise MetadataLoaderError(
            f"{config.metadata_loader!r} does not provide load_photo/load_video"
        )
    logger.info("Using metadata loader override %s", config.metadata_loader)
    return loader


def _is_loader(candidate: object) -> bool:
    return (
        not isinstance(candidate, type)
        and callable(getattr(candidate, "load_photo", None))
        and callable(getattr(candidate, "load_video", None))
    )
