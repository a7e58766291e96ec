from pathlib import Path

import pytest

from gallery_index.core.config import GalleryConfig, ReIndexingSensitivity


@pytest.mark.parametrize(
    "value,expected",
    [
        ("low", ReIndexingSensitivity.LOW),
        ("Medium", ReIndexingSensitivity.MEDIUM),
        (" HIGH ", ReIndexingSensitivity.HIGH),
        ("2", ReIndexingSensitivity.MEDIUM),
        (3, ReIndexingSensitivity.HIGH),
    ],
)
def test_sensitivity_parse(value, expected) -> None:
    assert ReIndexingSensitivity.parse(value) is expected


@pytest.mark.parametrize("value", ["extreme", 0, "9"])
def test_sensitivity_parse_rejects_unknown(value) -> None:
    with pytest.raises(ValueError):
        ReIndexingSensitivity.parse(value)


def test_from_env(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("GALLERY_IMAGE_FOLDER", str(tmp_path))
    monkeypatch.setenv("DATABASE_URL", "sqlite+pysqlite:///:memory:")
    monkeypatch.setenv("PHOTO_METADATA_SIZE", "1024")
    monkeypatch.setenv("FACES_ENABLED", "false")
    monkeypatch.setenv("FACES_KEYWORDS_TO_PERSONS", "0")
    monkeypatch.setenv("REINDEXING_SENSITIVITY", "medium")
    monkeypatch.setenv("CACHED_FOLDER_TIMEOUT_MS", "5000")
    monkeypatch.setenv("FOLDER_PREVIEW_SIZE", "4")
    monkeypatch.setenv("SCAN_WORKERS", "2")
    monkeypatch.setenv("METADATA_LOADER", " ")
    config = GalleryConfig.from_env()
    assert config.image_folder == tmp_path
    assert config.database_url == "sqlite+pysqlite:///:memory:"
    assert config.photo_metadata_size == 1024
    assert config.faces_enabled is False
    assert config.keywords_to_persons is False
    assert config.reindexing_sensitivity is ReIndexingSensitivity.MEDIUM
    assert config.cached_folder_timeout_ms == 5000
    assert config.folder_preview_size == 4
    assert config.scan_workers == 2
    assert config.metadata_loader is None


def test_defaults(tmp_path: Path) -> None:
    config = GalleryConfig(image_folder=str(tmp_path))
    assert config.image_folder == tmp_path
    assert config.photo_metadata_size == 512 * 1024
    assert config.reindexing_sensitivity is ReIndexingSensitivity.LOW
    assert config.cached_folder_timeout_ms == 3_600_000
    assert config.folder_preview_size == 2


@pytest.mark.parametrize(
    "field,value",
    [("photo_metadata_size", 0), ("folder_preview_size", -1), ("scan_workers", 0)],
)
def test_invalid_values(tmp_path: Path, field: str, value: int) -> None:
    with pytest.raises(ValueError):
        GalleryConfig(image_folder=tmp_path, **{field: value})
