from __future__ import annotations

import pytest
from sqlalchemy import func, select

from gallery_index.core.models import DirectoryNode, MediaSize, PhotoItem, PhotoMetadata, VideoItem
from gallery_index.index import (
    DirectoryRow,
    MediaRow,
    init_db,
    load_directory_node,
    merge_scanned_directory,
    session_factory,
)


@pytest.fixture
def SessionLocal():
    engine = init_db("sqlite+pysqlite:///:memory:")
    return session_factory(engine)


def _photo(name: str, directory_path: str = "./", keywords=None, created: int = 1) -> PhotoItem:
    return PhotoItem(
        name=name,
        directory_path=directory_path,
        metadata=PhotoMetadata(
            size=MediaSize(width=4, height=3), creation_date=created, keywords=keywords
        ),
    )


def _root(*media, directories=(), scanned_at: int = 1000, modified: int = 500) -> DirectoryNode:
    node = DirectoryNode(
        name=".", path="./", last_modified=modified, last_scanned=scanned_at, scanned=True
    )
    for item in media:
        (node.videos if isinstance(item, VideoItem) else node.photos).append(item)
    node.directories.extend(directories)
    return node


def _partial(name: str, *media) -> DirectoryNode:
    return DirectoryNode(
        name=name, path="./", last_modified=10, scanned=False, is_partial=True, photos=list(media)
    )


def _merge(SessionLocal, node: DirectoryNode):
    with SessionLocal() as session, session.begin():
        _, stats = merge_scanned_directory(session, node)
    return stats


def _count(SessionLocal, model) -> int:
    with SessionLocal() as session:
        return session.scalar(select(func.count()).select_from(model))


def test_first_merge_inserts_everything(SessionLocal) -> None:
    stats = _merge(
        SessionLocal,
        _root(_photo("a.jpg"), _photo("b.jpg"), directories=[_partial("sub", _photo("s.jpg", "sub/"))]),
    )
    assert stats.directories_inserted == 2
    assert stats.media_inserted == 3
    assert _count(SessionLocal, MediaRow) == 3

    with SessionLocal() as session:
        sub = session.scalar(select(DirectoryRow).where(DirectoryRow.name == "sub"))
        assert sub is not None and sub.scanned is False and sub.parent is not None
        assert sub.parent.name == "."


def test_removing_one_photo_deletes_exactly_one_row(SessionLocal) -> None:
    _merge(SessionLocal, _root(_photo("a.jpg"), _photo("b.jpg"), _photo("c.jpg")))
    stats = _merge(SessionLocal, _root(_photo("a.jpg"), _photo("c.jpg")))
    assert stats.media_deleted == 1
    assert stats.media_inserted == 0
    assert stats.media_updated == 0
    with SessionLocal() as session:
        names = session.scalars(select(MediaRow.name).order_by(MediaRow.name)).all()
    assert names == ["a.jpg", "c.jpg"]


def test_changed_metadata_updates_row_in_place(SessionLocal) -> None:
    _merge(SessionLocal, _root(_photo("a.jpg", keywords=["x"])))
    with SessionLocal() as session:
        original_id = session.scalar(select(MediaRow.id))

    stats = _merge(SessionLocal, _root(_photo("a.jpg", keywords=["x", "y"])))
    assert stats.media_updated == 1
    with SessionLocal() as session:
        row = session.scalar(select(MediaRow))
        assert row.id == original_id
        assert row.keywords == ["x", "y"]


def test_keyword_order_is_not_a_change(SessionLocal) -> None:
    _merge(SessionLocal, _root(_photo("a.jpg", keywords=["x", "y"])))
    stats = _merge(SessionLocal, _root(_photo("a.jpg", keywords=["y", "x"])))
    assert stats.media_updated == 0
    assert stats.media_inserted == 0


def test_kind_change_is_a_change(SessionLocal) -> None:
    _merge(SessionLocal, _root(_photo("clip.mp4")))
    stats = _merge(SessionLocal, _root(VideoItem(name="clip.mp4", directory_path="./")))
    assert stats.media_updated == 1
    with SessionLocal() as session:
        assert session.scalar(select(MediaRow.kind)) == "video"


def test_removed_subdirectory_is_deleted_with_its_media(SessionLocal) -> None:
    _merge(SessionLocal, _root(directories=[_partial("gone", _photo("g.jpg", "gone/")), _partial("kept")]))
    stats = _merge(SessionLocal, _root(directories=[_partial("kept")]))
    assert stats.directories_deleted == 1
    assert _count(SessionLocal, DirectoryRow) == 2
    assert _count(SessionLocal, MediaRow) == 0


def test_partial_subdirectory_keeps_media_beyond_preview(SessionLocal) -> None:
    _merge(
        SessionLocal,
        _root(directories=[_partial("sub", _photo("a.jpg", "sub/"), _photo("b.jpg", "sub/"))]),
    )
    stats = _merge(SessionLocal, _root(directories=[_partial("sub", _photo("a.jpg", "sub/"))]))
    assert stats.media_deleted == 0
    assert _count(SessionLocal, MediaRow) == 2


def test_persisted_view_round_trips_scanned_tree(SessionLocal) -> None:
    scanned = _root(
        _photo("b.jpg", created=2),
        _photo("a.jpg", created=3),
        directories=[_partial("sub", _photo("late.jpg", "sub/", created=9), _photo("early.jpg", "sub/", created=1))],
    )
    _merge(SessionLocal, scanned)
    with SessionLocal() as session:
        root = session.scalar(select(DirectoryRow).where(DirectoryRow.name == "."))
        node = load_directory_node(session, root, preview_size=1)
    assert [photo.name for photo in node.photos] == ["a.jpg", "b.jpg"]
    assert node.photos[0].metadata == scanned.photos[1].metadata
    sub = node.directories[0]
    assert sub.is_partial and not sub.scanned
    assert [photo.name for photo in sub.photos] == ["early.jpg"]
    assert sub.photos[0].directory_path == "sub/"
