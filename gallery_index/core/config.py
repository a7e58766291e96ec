from __future__ import annotations

import os
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Optional


class ReIndexingSensitivity(IntEnum):
    """How aggressively a persisted directory is revalidated against disk."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3

    @classmethod
    def parse(cls, value: str | int | "ReIndexingSensitivity") -> "ReIndexingSensitivity":
        if isinstance(value, cls):
            return value
        if isinstance(value, int):
            return cls(value)
        text = str(value).strip()
        if text.isdigit():
            return cls(int(text))
        try:
            return cls[text.upper()]
        except KeyError:
            raise ValueError(f"Unknown reindexing sensitivity: {value!r}") from None


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class GalleryConfig:
    image_folder: Path
    database_url: str = "sqlite+pysqlite:///./gallery_index.db"
    photo_metadata_size: int = 512 * 1024
    faces_enabled: bool = True
    keywords_to_persons: bool = True
    reindexing_sensitivity: ReIndexingSensitivity = ReIndexingSensitivity.LOW
    cached_folder_timeout_ms: int = 60 * 60 * 1000
    folder_preview_size: int = 2
    scan_workers: int = 1
    metadata_loader: Optional[str] = None
    ffprobe_path: str = "ffprobe"

    def __post_init__(self) -> None:
        self.image_folder = Path(self.image_folder)
        self.reindexing_sensitivity = ReIndexingSensitivity.parse(self.reindexing_sensitivity)
        if self.photo_metadata_size <= 0:
            raise ValueError("photo_metadata_size must be positive")
        if self.folder_preview_size < 0:
            raise ValueError("folder_preview_size must not be negative")
        if self.cached_folder_timeout_ms < 0:
            raise ValueError("cached_folder_timeout_ms must not be negative")
        if self.scan_workers < 1:
            raise ValueError("scan_workers must be at least 1")

    @classmethod
    def from_env(cls) -> "GalleryConfig":
        loader = os.getenv("METADATA_LOADER", "").strip() or None
        return cls(
            image_folder=Path(os.getenv("GALLERY_IMAGE_FOLDER", "./demo/images")),
            database_url=os.getenv("DATABASE_URL", "sqlite+pysqlite:///./gallery_index.db"),
            photo_metadata_size=int(os.getenv("PHOTO_METADATA_SIZE", str(512 * 1024))),
            faces_enabled=_env_flag("FACES_ENABLED", "1"),
            keywords_to_persons=_env_flag("FACES_KEYWORDS_TO_PERSONS", "1"),
            reindexing_sensitivity=ReIndexingSensitivity.parse(
                os.getenv("REINDEXING_SENSITIVITY", "low")
            ),
            cached_folder_timeout_ms=int(os.getenv("CACHED_FOLDER_TIMEOUT_MS", str(60 * 60 * 1000))),
            folder_preview_size=int(os.getenv("FOLDER_PREVIEW_SIZE", "2")),
            scan_workers=int(os.getenv("SCAN_WORKERS", "1")),
            metadata_loader=loader,
            ffprobe_path=os.getenv("FFPROBE_PATH", "ffprobe"),
        )
