"""Reconcile a scanned directory tree with the persisted one.

Persisted children are keyed by name. Scanned children that match are updated
in place, unmatched ones are inserted, and whatever persisted children are left
over no longer exist on disk and are deleted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Optional

from sqlalchemy.orm import Session

from gallery_index.core.models import DirectoryNode
from gallery_index.core.paths import ROOT_NAME, ROOT_PARENT, child_parent_path, split_relative

from .records import (
    MediaItem,
    build_media_item,
    find_directory,
    list_media,
    list_subdirectories,
    metadata_snapshot,
    write_media_row,
)
from .schema import DirectoryRow, MediaRow

logger = logging.getLogger(__name__)


@dataclass
class MergeStats:
    directories_inserted: int = 0
    directories_updated: int = 0
    directories_deleted: int = 0
    media_inserted: int = 0
    media_updated: int = 0
    media_deleted: int = 0

    def __iadd__(self, other: "MergeStats") -> "MergeStats":
        for field in fields(self):
            setattr(self, field.name, getattr(self, field.name) + getattr(other, field.name))
        return self

    @property
    def writes(self) -> int:
        return sum(getattr(self, field.name) for field in fields(self))


def _find_parent_row(session: Session, scanned: DirectoryNode) -> Optional[DirectoryRow]:
    if scanned.name == ROOT_NAME and scanned.path == ROOT_PARENT:
        return None
    parent_relative = scanned.path.rstrip("/") or "."
    name, path = split_relative(parent_relative)
    return find_directory(session, name, path)


def _update_directory_row(row: DirectoryRow, scanned: DirectoryNode) -> bool:
    values = {
        "last_modified": scanned.last_modified,
        "last_scanned": scanned.last_scanned,
        "scanned": True,
    }
    changed = False
    for key, value in values.items():
        if getattr(row, key) != value:
            setattr(row, key, value)
            changed = True
    return changed


def _merge_media(
    session: Session, row: DirectoryRow, scanned: DirectoryNode, *, delete_missing: bool
) -> MergeStats:
    stats = MergeStats()
    own_path = child_parent_path(row.name, row.path)
    remaining: dict[str, MediaRow] = {media.name: media for media in list_media(session, row.id)}
    items: list[MediaItem] = scanned.media
    for item in items:
        existing = remaining.pop(item.name, None)
        if existing is None:
            media_row = MediaRow(directory_id=row.id)
            write_media_row(media_row, item)
            session.add(media_row)
            stats.media_inserted += 1
            continue
        if metadata_snapshot(build_media_item(existing, own_path)) != metadata_snapshot(item):
            write_media_row(existing, item)
            stats.media_updated += 1
    if delete_missing:
        for media_row in remaining.values():
            session.delete(media_row)
            stats.media_deleted += 1
    return stats


def _insert_directory(session: Session, scanned: DirectoryNode, parent: DirectoryRow) -> DirectoryRow:
    row = DirectoryRow(
        name=scanned.name,
        path=scanned.path,
        parent_id=parent.id,
        last_modified=scanned.last_modified,
        last_scanned=scanned.last_scanned if scanned.scanned else None,
        scanned=scanned.scanned,
    )
    session.add(row)
    session.flush()
    return row


def merge_scanned_directory(
    session: Session, scanned: DirectoryNode, row: Optional[DirectoryRow] = None
) -> tuple[DirectoryRow, MergeStats]:
    """Apply a fully scanned directory to the store without committing.

    Fully scanned subdirectories are merged recursively. Partial ones only get
    their preview media upserted, since their remaining media were not listed.
    """
    stats = MergeStats()
    if row is None:
        row = find_directory(session, scanned.name, scanned.path)
    if row is None:
        parent = _find_parent_row(session, scanned)
        row = DirectoryRow(
            name=scanned.name,
            path=scanned.path,
            parent_id=parent.id if parent is not None else None,
            last_modified=scanned.last_modified,
            last_scanned=scanned.last_scanned,
            scanned=True,
        )
        session.add(row)
        session.flush()
        stats.directories_inserted += 1
    elif _update_directory_row(row, scanned):
        stats.directories_updated += 1

    remaining: dict[str, DirectoryRow] = {
        child.name: child for child in list_subdirectories(session, row.id)
    }
    for child in scanned.directories:
        child_row = remaining.pop(child.name, None)
        if child_row is None:
            # Indexed on its own before its parent was; link it instead of duplicating.
            child_row = find_directory(session, child.name, child.path)
            if child_row is not None:
                child_row.parent_id = row.id
                stats.directories_updated += 1
        if child_row is None:
            child_row = _insert_directory(session, child, row)
            stats.directories_inserted += 1
            if child.scanned:
                _, child_stats = merge_scanned_directory(session, child, child_row)
                stats += child_stats
            else:
                stats += _merge_media(session, child_row, child, delete_missing=False)
        elif child.scanned:
            _, child_stats = merge_scanned_directory(session, child, child_row)
            stats += child_stats
        else:
            stats += _merge_media(session, child_row, child, delete_missing=False)

    for child_row in remaining.values():
        session.delete(child_row)
        stats.directories_deleted += 1

    stats += _merge_media(session, row, scanned, delete_missing=True)
    return row, stats
