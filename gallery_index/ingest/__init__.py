"""Media scanning and metadata extraction."""

from .loader import DefaultMetadataLoader, MetadataLoader, resolve_metadata_loader
from .parsers import MetadataParsers, PillowParsers
from .photo_reader import empty_photo_metadata, read_photo_metadata
from .scanner import PHOTO_EXTENSIONS, SUPPORTED_EXTENSIONS, VIDEO_EXTENSIONS, scan_directory
from .video_reader import read_video_metadata

__all__ = [
    "DefaultMetadataLoader",
    "MetadataLoader",
    "MetadataParsers",
    "PHOTO_EXTENSIONS",
    "PillowParsers",
    "SUPPORTED_EXTENSIONS",
    "VIDEO_EXTENSIONS",
    "empty_photo_metadata",
    "read_photo_metadata",
    "read_video_metadata",
    "resolve_metadata_loader",
    "scan_directory",
]
