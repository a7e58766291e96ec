from __future__ import annotations

from typing import Any, Union

from sqlalchemy import select
from sqlalchemy.orm import Session

from gallery_index.core.models import (
    CameraData,
    DirectoryNode,
    FaceRegion,
    MediaSize,
    PhotoItem,
    PhotoMetadata,
    PositionData,
    VideoItem,
    VideoMetadata,
)
from gallery_index.core.paths import child_parent_path

from .schema import DirectoryRow, MediaRow

MediaItem = Union[PhotoItem, VideoItem]


def _dump(model: Any) -> Any:
    return model.model_dump(exclude_none=True) if model is not None else None


def _load_photo_metadata(row: MediaRow) -> PhotoMetadata:
    return PhotoMetadata(
        size=MediaSize(width=row.width, height=row.height),
        creation_date=row.creation_date,
        creation_date_offset=row.creation_date_offset,
        file_size=row.file_size,
        camera_data=CameraData(**row.camera_data) if row.camera_data else None,
        position_data=PositionData(**row.position_data) if row.position_data else None,
        keywords=list(row.keywords) if row.keywords else None,
        rating=row.rating,
        faces=[FaceRegion(**face) for face in row.faces] if row.faces else None,
        title=row.title,
        caption=row.caption,
    )


def _load_video_metadata(row: MediaRow) -> VideoMetadata:
    return VideoMetadata(
        size=MediaSize(width=row.width, height=row.height),
        bit_rate=row.bit_rate or 0,
        duration=row.duration or 0,
        fps=row.fps or 0,
        creation_date=row.creation_date,
        creation_date_offset=row.creation_date_offset,
        file_size=row.file_size,
        keywords=list(row.keywords) if row.keywords else None,
        rating=row.rating,
    )


def build_media_item(row: MediaRow, directory_path: str) -> MediaItem:
    if row.kind == "video":
        return VideoItem(name=row.name, directory_path=directory_path, metadata=_load_video_metadata(row))
    return PhotoItem(name=row.name, directory_path=directory_path, metadata=_load_photo_metadata(row))


def metadata_snapshot(item: MediaItem) -> dict[str, Any]:
    """Value used to decide whether a persisted media row is out of date.

    Two snapshots are equal when every persisted field is equal by value.
    Keywords compare as a set and empty collections compare equal to missing ones.
    """
    snapshot = item.metadata.model_dump()
    snapshot["kind"] = item.kind
    snapshot["keywords"] = sorted(set(item.metadata.keywords)) if item.metadata.keywords else None
    for key in ("faces", "camera_data", "position_data"):
        if not snapshot.get(key):
            snapshot[key] = None
    return snapshot


def write_media_row(row: MediaRow, item: MediaItem) -> None:
    """Copy a scanned media record onto its row, keeping the row identity."""
    metadata = item.metadata
    row.name = item.name
    row.kind = item.kind
    row.width = metadata.size.width
    row.height = metadata.size.height
    row.creation_date = metadata.creation_date
    row.creation_date_offset = metadata.creation_date_offset
    row.file_size = metadata.file_size
    row.rating = metadata.rating
    row.keywords = list(metadata.keywords) if metadata.keywords else None
    if isinstance(metadata, PhotoMetadata):
        row.title = metadata.title
        row.caption = metadata.caption
        row.camera_data = _dump(metadata.camera_data) or None
        row.position_data = _dump(metadata.position_data) or None
        row.faces = [face.model_dump() for face in metadata.faces] if metadata.faces else None
        row.bit_rate = row.duration = row.fps = None
    else:
        row.title = row.caption = None
        row.camera_data = row.position_data = row.faces = None
        row.bit_rate = metadata.bit_rate
        row.duration = metadata.duration
        row.fps = metadata.fps


def find_directory(session: Session, name: str, path: str) -> DirectoryRow | None:
    return session.scalar(
        select(DirectoryRow).where(DirectoryRow.name == name, DirectoryRow.path == path)
    )


def list_media(session: Session, directory_id: int, limit: int | None = None) -> list[MediaRow]:
    """Media rows of a directory; with a limit, the earliest created come first."""
    stmt = select(MediaRow).where(MediaRow.directory_id == directory_id)
    if limit is not None:
        stmt = stmt.order_by(MediaRow.creation_date.asc(), MediaRow.name.asc()).limit(limit)
    else:
        stmt = stmt.order_by(MediaRow.name.asc())
    return list(session.scalars(stmt))


def list_subdirectories(session: Session, directory_id: int) -> list[DirectoryRow]:
    return list(
        session.scalars(
            select(DirectoryRow)
            .where(DirectoryRow.parent_id == directory_id)
            .order_by(DirectoryRow.name.asc())
        )
    )


def _node(row: DirectoryRow, media: list[MediaRow], *, is_partial: bool) -> DirectoryNode:
    node = DirectoryNode(
        name=row.name,
        path=row.path,
        last_modified=row.last_modified,
        last_scanned=row.last_scanned,
        scanned=row.scanned,
        is_partial=is_partial,
    )
    own_path = child_parent_path(row.name, row.path)
    for media_row in media:
        item = build_media_item(media_row, own_path)
        if isinstance(item, VideoItem):
            node.videos.append(item)
        else:
            node.photos.append(item)
    return node


def load_directory_node(session: Session, row: DirectoryRow, preview_size: int) -> DirectoryNode:
    """Persisted view of a directory: all of its media, previews of its subdirectories."""
    node = _node(row, list_media(session, row.id), is_partial=False)
    for child in list_subdirectories(session, row.id):
        node.directories.append(
            _node(child, list_media(session, child.id, limit=preview_size), is_partial=True)
        )
    return node
