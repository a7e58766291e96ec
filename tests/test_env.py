import logging
import os
from pathlib import Path

from gallery_index.core.env import NOISY_LOGGERS, configure_logging, load_dotenv_if_present


def test_env_file_from_gallery_env_file(tmp_path: Path, monkeypatch) -> None:
    env_file = tmp_path / "gallery.env"
    env_file.write_text("GALLERY_TEST_FOLDER=/from/file\nGALLERY_TEST_KEEP=file\n")
    monkeypatch.setenv("GALLERY_ENV_FILE", str(env_file))
    monkeypatch.setenv("GALLERY_TEST_KEEP", "process")
    monkeypatch.delenv("GALLERY_TEST_FOLDER", raising=False)

    assert load_dotenv_if_present() == env_file
    assert os.environ["GALLERY_TEST_FOLDER"] == "/from/file"
    assert os.environ["GALLERY_TEST_KEEP"] == "process"
    monkeypatch.delenv("GALLERY_TEST_FOLDER")


def test_missing_env_file_is_ignored(tmp_path: Path) -> None:
    assert load_dotenv_if_present(tmp_path / "absent.env") is None


def test_debug_logging_keeps_libraries_quiet(monkeypatch) -> None:
    saved = {name: logging.getLogger(name).level for name in NOISY_LOGGERS}
    monkeypatch.setenv("LOG_LEVEL", "debug")
    try:
        assert configure_logging() == logging.DEBUG
        assert all(logging.getLogger(name).level == logging.INFO for name in NOISY_LOGGERS)
    finally:
        for name, level in saved.items():
            logging.getLogger(name).setLevel(level)


def test_unknown_level_falls_back_to_info(monkeypatch) -> None:
    saved = {name: logging.getLogger(name).level for name in NOISY_LOGGERS}
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    try:
        assert configure_logging() == logging.INFO
    finally:
        for name, level in saved.items():
            logging.getLogger(name).setLevel(level)
