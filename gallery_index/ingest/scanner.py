from __future__ import annotations

import logging
import os
import stat
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional, Union

from gallery_index.core.errors import DirectoryNotFoundError
from gallery_index.core.models import DirectoryNode, PhotoItem, VideoItem
from gallery_index.core.paths import child_parent_path, join_relative, split_relative

from .loader import MetadataLoader

logger = logging.getLogger(__name__)

PHOTO_EXTENSIONS = {
    ".avif",
    ".bmp",
    ".gif",
    ".heic",
    ".jpe",
    ".jpeg",
    ".jpg",
    ".png",
    ".svg",
    ".tif",
    ".tiff",
    ".webp",
}
VIDEO_EXTENSIONS = {".avi", ".m4v", ".mkv", ".mov", ".mp4", ".ogg", ".ogv", ".webm"}
SUPPORTED_EXTENSIONS = PHOTO_EXTENSIONS | VIDEO_EXTENSIONS

MediaItem = Union[PhotoItem, VideoItem]


def classify_entry(name: str, is_dir: bool) -> Optional[str]:
    """Return "directory", "photo", "video", or None for entries that are ignored."""
    if name.startswith("."):
        return None
    if is_dir:
        return "directory"
    suffix = Path(name).suffix.lower()
    if suffix in PHOTO_EXTENSIONS:
        return "photo"
    if suffix in VIDEO_EXTENSIONS:
        return "video"
    return None


def last_modified_ms(st: os.stat_result) -> int:
    return int(max(st.st_ctime, st.st_mtime) * 1000)


def now_ms() -> int:
    return int(time.time() * 1000)


def stat_directory(absolute: Path, relative_path: str) -> os.stat_result:
    try:
        st = absolute.stat()
    except OSError as exc:
        raise DirectoryNotFoundError(relative_path, exc.strerror or str(exc)) from exc
    if not stat.S_ISDIR(st.st_mode):
        raise DirectoryNotFoundError(relative_path, "not a directory")
    return st


def _list_entries(absolute: Path, relative_path: str) -> list[tuple[str, str]]:
    try:
        with os.scandir(absolute) as it:
            raw = [(entry.name, entry.is_dir()) for entry in it]
    except OSError as exc:
        raise DirectoryNotFoundError(relative_path, exc.strerror or str(exc)) from exc
    entries: list[tuple[str, str]] = []
    for name, is_dir in sorted(raw):
        kind = classify_entry(name, is_dir)
        if kind is not None:
            entries.append((name, kind))
    return entries


def _load_media(
    absolute: Path,
    entries: list[tuple[str, str]],
    directory_path: str,
    loader: MetadataLoader,
    workers: int,
) -> list[MediaItem]:
    def _load(entry: tuple[str, str]) -> MediaItem:
        name, kind = entry
        if kind == "video":
            return VideoItem(
                name=name, directory_path=directory_path, metadata=loader.load_video(absolute / name)
            )
        return PhotoItem(
            name=name, directory_path=directory_path, metadata=loader.load_photo(absolute / name)
        )

    if workers > 1 and len(entries) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(_load, entries))
    return [_load(entry) for entry in entries]


def _attach_media(node: DirectoryNode, items: list[MediaItem]) -> None:
    for item in items:
        if isinstance(item, VideoItem):
            node.videos.append(item)
        else:
            node.photos.append(item)


def _preview_node(
    root: Path, relative_path: str, loader: MetadataLoader, preview_size: int, workers: int
) -> DirectoryNode:
    absolute = root / relative_path
    st = stat_directory(absolute, relative_path)
    name, parent = split_relative(relative_path)
    node = DirectoryNode(
        name=name,
        path=parent,
        last_modified=last_modified_ms(st),
        scanned=False,
        is_partial=True,
    )
    media = [entry for entry in _list_entries(absolute, relative_path) if entry[1] != "directory"]
    own_path = child_parent_path(name, parent)
    if preview_size > 0:
        # Previews are the earliest-created media, so every entry has to be read.
        items = _load_media(absolute, media, own_path, loader, workers)
        items.sort(key=lambda item: (item.metadata.creation_date, item.name))
        _attach_media(node, items[:preview_size])
    return node


def scan_directory(
    root: str | Path,
    relative_path: str,
    loader: MetadataLoader,
    *,
    max_depth: Optional[int] = 0,
    preview_size: int = 2,
    workers: int = 1,
) -> DirectoryNode:
    """List one directory of the image folder and extract metadata for its media.

    Subdirectories are scanned completely down to ``max_depth`` levels below
    this one (``None`` means no limit). Deeper subdirectories come back as
    partial nodes carrying only their ``preview_size`` earliest-created media;
    the rest of their media is not part of the node.

    Raises DirectoryNotFoundError when the directory itself cannot be read.
    """
    root = Path(root)
    absolute = root / relative_path
    st = stat_directory(absolute, relative_path)
    name, parent = split_relative(relative_path)
    own_path = child_parent_path(name, parent)
    node = DirectoryNode(
        name=name,
        path=parent,
        last_modified=last_modified_ms(st),
        last_scanned=now_ms(),
        scanned=True,
        is_partial=False,
    )
    entries = _list_entries(absolute, relative_path)
    media = [entry for entry in entries if entry[1] != "directory"]
    _attach_media(node, _load_media(absolute, media, own_path, loader, workers))

    for child_name, kind in entries:
        if kind != "directory":
            continue
        child_relative = join_relative(child_name, own_path)
        try:
            if max_depth is None or max_depth > 0:
                child = scan_directory(
                    root,
                    child_relative,
                    loader,
                    max_depth=None if max_depth is None else max_depth - 1,
                    preview_size=preview_size,
                    workers=workers,
                )
            else:
                child = _preview_node(root, child_relative, loader, preview_size, workers)
        except DirectoryNotFoundError as exc:
            logger.warning("Skipping unreadable subdirectory %s: %s", child_relative, exc)
            continue
        node.directories.append(child)

    logger.debug(
        "Scanned %s: %d directories, %d photos, %d videos",
        relative_path,
        len(node.directories),
        len(node.photos),
        len(node.videos),
    )
    return node
