"""Persistent directory index and its reconciliation with disk."""

from .gallery import GalleryManager
from .merge import MergeStats, merge_scanned_directory
from .records import (
    build_media_item,
    find_directory,
    list_media,
    list_subdirectories,
    load_directory_node,
    metadata_snapshot,
)
from .schema import (
    Base,
    DirectoryRow,
    MediaRow,
    create_engine_from_url,
    init_db,
    session_factory,
)
from .staleness import StalenessDecision, StalenessPolicy

__all__ = [
    "Base",
    "DirectoryRow",
    "GalleryManager",
    "MediaRow",
    "MergeStats",
    "StalenessDecision",
    "StalenessPolicy",
    "build_media_item",
    "create_engine_from_url",
    "find_directory",
    "init_db",
    "list_media",
    "list_subdirectories",
    "load_directory_node",
    "merge_scanned_directory",
    "metadata_snapshot",
    "session_factory",
]
