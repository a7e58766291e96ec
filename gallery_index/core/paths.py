from __future__ import annotations

import posixpath
from pathlib import Path

ROOT_NAME = "."
ROOT_PARENT = "./"


def normalize_relative(relative_path: str | Path) -> str:
    """Return a posix, normalized path relative to the image folder ("." for the root).

    Raises ValueError for paths escaping the image folder.
    """
    text = str(relative_path).replace("\\", "/").strip()
    text = text.lstrip("/")
    normalized = posixpath.normpath(text or ".")
    if normalized == ".." or normalized.startswith("../"):
        raise ValueError(f"Path escapes the image folder: {relative_path}")
    return normalized


def split_relative(relative_path: str) -> tuple[str, str]:
    """Split a normalized relative path into (name, parent path)."""
    if relative_path == ".":
        return ROOT_NAME, ROOT_PARENT
    parent = posixpath.normpath(posixpath.dirname(relative_path) or ".")
    return posixpath.basename(relative_path), _as_parent(parent)


def child_parent_path(name: str, parent_path: str) -> str:
    """Parent path stored on entries that live inside the directory (name, parent_path)."""
    return _as_parent(posixpath.normpath(posixpath.join(parent_path, name)))


def join_relative(name: str, parent_path: str) -> str:
    return posixpath.normpath(posixpath.join(parent_path, name))


def _as_parent(path: str) -> str:
    return ROOT_PARENT if path == "." else f"{path}/"
