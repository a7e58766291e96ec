from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from sqlalchemy.orm import Session, sessionmaker

from gallery_index.core.config import GalleryConfig
from gallery_index.core.models import DirectoryNode
from gallery_index.core.paths import normalize_relative, split_relative
from gallery_index.ingest.loader import MetadataLoader, resolve_metadata_loader
from gallery_index.ingest.scanner import last_modified_ms, now_ms, scan_directory, stat_directory

from .merge import MergeStats, merge_scanned_directory
from .records import find_directory, load_directory_node
from .staleness import StalenessDecision, StalenessPolicy

logger = logging.getLogger(__name__)


class GalleryManager:
    """Serve directory listings from the index, rescanning disk when it is stale.

    At most one reconciliation pass runs per directory path at a time; callers
    asking for the same path wait for the pass in progress. A pass for a parent
    also writes its subdirectories, so the write step of every pass is
    serialized on one store-wide lock while scanning stays concurrent.
    Background rescans run on ``executor`` and never raise to the caller that
    triggered them.
    """

    def __init__(
        self,
        config: GalleryConfig,
        session_maker: sessionmaker[Session],
        loader: Optional[MetadataLoader] = None,
        *,
        executor: Optional[Executor] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.config = config
        self.SessionLocal = session_maker
        self.loader = loader or resolve_metadata_loader(config)
        self.policy = StalenessPolicy(
            sensitivity=config.reindexing_sensitivity,
            cached_folder_timeout_ms=config.cached_folder_timeout_ms,
        )
        self.clock = clock
        self._executor = executor
        self._owns_executor = executor is None
        # path -> (lock, number of threads holding or waiting on it)
        self._locks: dict[str, tuple[threading.Lock, int]] = {}
        self._write_lock = threading.Lock()
        self._locks_guard = threading.Lock()
        self._pending: set[str] = set()

    @contextmanager
    def _path_lock(self, relative_path: str) -> Iterator[None]:
        with self._locks_guard:
            lock, users = self._locks.get(relative_path, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[relative_path] = (lock, users + 1)
        try:
            with lock:
                yield
        finally:
            with self._locks_guard:
                _, users = self._locks[relative_path]
                if users <= 1:
                    del self._locks[relative_path]
                else:
                    self._locks[relative_path] = (lock, users - 1)

    def list_directory(
        self,
        relative_path: str = ".",
        known_last_modified: Optional[int] = None,
        known_last_scanned: Optional[int] = None,
    ) -> Optional[DirectoryNode]:
        """Return the current listing of a directory.

        Returns None when the caller's (known_last_modified, known_last_scanned)
        pair shows its cached copy is still valid. Raises DirectoryNotFoundError
        when the directory cannot be read.
        """
        relative = normalize_relative(relative_path)
        name, parent = split_relative(relative)
        with self._path_lock(relative):
            disk_last_modified = last_modified_ms(
                stat_directory(self.config.image_folder / relative, relative)
            )
            with self.SessionLocal() as session:
                row = find_directory(session, name, parent)
                persisted = row is not None and row.scanned
                decision = self.policy.decide(
                    persisted_last_modified=row.last_modified if persisted else None,
                    persisted_last_scanned=row.last_scanned if persisted else None,
                    disk_last_modified=disk_last_modified,
                    now=self.clock(),
                    known_last_modified=known_last_modified,
                    known_last_scanned=known_last_scanned,
                )
                logger.debug("Listing %s: %s", relative, decision.value)
                node: Optional[DirectoryNode] = None
                if decision in (StalenessDecision.SERVE_PERSISTED, StalenessDecision.SERVE_AND_RESCAN):
                    node = load_directory_node(session, row, self.config.folder_preview_size)
            if decision is StalenessDecision.RESCAN:
                node, _ = self._index_locked(relative)

        if decision is StalenessDecision.SERVE_AND_RESCAN:
            self._schedule_rescan(relative)
        return node

    def index_directory(self, relative_path: str) -> tuple[DirectoryNode, MergeStats]:
        """Scan a directory and write the result to the index, returning the fresh tree."""
        relative = normalize_relative(relative_path)
        with self._path_lock(relative):
            return self._index_locked(relative)

    def _index_locked(self, relative: str) -> tuple[DirectoryNode, MergeStats]:
        scanned = scan_directory(
            self.config.image_folder,
            relative,
            self.loader,
            max_depth=0,
            preview_size=self.config.folder_preview_size,
            workers=self.config.scan_workers,
        )
        with self._write_lock, self.SessionLocal() as session, session.begin():
            _, stats = merge_scanned_directory(session, scanned)
        logger.info(
            "Indexed %s: %d writes (%s)",
            relative,
            stats.writes,
            ", ".join(f"{key}={value}" for key, value in vars(stats).items() if value),
        )
        return scanned, stats

    def _schedule_rescan(self, relative: str) -> None:
        with self._locks_guard:
            if relative in self._pending:
                return
            self._pending.add(relative)
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="gallery-rescan")
        try:
            self._executor.submit(self._background_rescan, relative)
        except RuntimeError as exc:
            with self._locks_guard:
                self._pending.discard(relative)
            logger.warning("Could not schedule background rescan of %s: %s", relative, exc)

    def _background_rescan(self, relative: str) -> None:
        try:
            self.index_directory(relative)
        except Exception:
            logger.exception("Background rescan of %s failed", relative)
        finally:
            with self._locks_guard:
                self._pending.discard(relative)

    def close(self) -> None:
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
