from __future__ import annotations

import threading
from concurrent.futures import Executor, Future
from pathlib import Path
from typing import Callable

from gallery_index.core.models import MediaSize, PhotoMetadata, VideoMetadata


class FakeLoader:
    """Metadata loader that records calls and derives values from file stats."""

    def __init__(self, config=None) -> None:
        self.config = config
        self.loaded: list[str] = []
        self._lock = threading.Lock()

    def _record(self, path: Path) -> None:
        with self._lock:
            self.loaded.append(Path(path).name)

    def load_photo(self, path: Path) -> PhotoMetadata:
        self._record(path)
        path = Path(path)
        return PhotoMetadata(
            size=MediaSize(width=40, height=30),
            creation_date=int(path.stat().st_mtime * 1000),
            file_size=path.stat().st_size,
            keywords=["fake"],
        )

    def load_video(self, path: Path) -> VideoMetadata:
        self._record(path)
        return VideoMetadata(size=MediaSize(width=64, height=48), duration=1000, fps=25)


def fake_loader_factory(config) -> FakeLoader:
    return FakeLoader(config)


not_a_loader = object()


class RecordingExecutor(Executor):
    """Collects submitted work so tests decide when background rescans run."""

    def __init__(self) -> None:
        self.calls: list[tuple[Callable, tuple, dict]] = []

    def submit(self, fn, /, *args, **kwargs):
        self.calls.append((fn, args, kwargs))
        future: Future = Future()
        future.set_result(None)
        return future

    def run_pending(self) -> None:
        calls, self.calls = self.calls, []
        for fn, args, kwargs in calls:
            fn(*args, **kwargs)
