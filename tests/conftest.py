from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

import pytest
from PIL import Image

from gallery_index.core.config import GalleryConfig


@pytest.fixture
def image_folder(tmp_path: Path) -> Path:
    folder = tmp_path / "images"
    folder.mkdir()
    return folder


@pytest.fixture
def make_config(image_folder: Path, tmp_path: Path) -> Callable[..., GalleryConfig]:
    def _make(**overrides) -> GalleryConfig:
        values = dict(
            image_folder=image_folder,
            database_url=f"sqlite+pysqlite:///{tmp_path / 'gallery.db'}",
            folder_preview_size=2,
        )
        values.update(overrides)
        return GalleryConfig(**values)

    return _make


@pytest.fixture
def write_jpeg() -> Callable[..., Path]:
    def _write(
        path: Path,
        size: tuple[int, int] = (10, 10),
        exif_tags: Optional[dict[int, object]] = None,
        xmp: Optional[str] = None,
    ) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        img = Image.new("RGB", size, color="blue")
        if exif_tags:
            exif = Image.Exif()
            for tag, value in exif_tags.items():
                exif[tag] = value
            img.save(path, exif=exif)
        else:
            img.save(path)
        if xmp:
            # Packets are located by scanning the header bytes, so trailing data works.
            with path.open("ab") as out:
                out.write(xmp.encode("utf-8"))
        return path

    return _write
