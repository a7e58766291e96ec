"""Decide whether a persisted directory can be served without touching disk."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from gallery_index.core.config import ReIndexingSensitivity


class StalenessDecision(str, Enum):
    RESCAN = "rescan"  # scan synchronously and return the fresh tree
    CLIENT_CACHE_VALID = "client_cache_valid"  # caller already holds the current listing
    SERVE_PERSISTED = "serve_persisted"
    SERVE_AND_RESCAN = "serve_and_rescan"  # serve persisted, refresh in the background


@dataclass(frozen=True)
class StalenessPolicy:
    sensitivity: ReIndexingSensitivity
    cached_folder_timeout_ms: int

    def decide(
        self,
        *,
        persisted_last_modified: Optional[int],
        persisted_last_scanned: Optional[int],
        disk_last_modified: int,
        now: int,
        known_last_modified: Optional[int] = None,
        known_last_scanned: Optional[int] = None,
    ) -> StalenessDecision:
        """Single staleness predicate, evaluated in this order:

        1. nothing persisted (or never fully scanned) -> RESCAN
        2. directory changed on disk since the last scan -> RESCAN
        3. caller's (last_modified, last_scanned) matches the persisted pair and
           sensitivity is low, or medium with a scan younger than the timeout
           -> CLIENT_CACHE_VALID
        4. sensitivity high, or medium/high with a scan older than the timeout
           -> SERVE_AND_RESCAN
        5. otherwise -> SERVE_PERSISTED
        """
        if persisted_last_modified is None or persisted_last_scanned is None:
            return StalenessDecision.RESCAN
        if disk_last_modified != persisted_last_modified:
            return StalenessDecision.RESCAN

        age = now - persisted_last_scanned
        expired = age > self.cached_folder_timeout_ms
        caller_is_current = (
            known_last_modified is not None
            and known_last_scanned is not None
            and known_last_modified == persisted_last_modified
            and known_last_scanned == persisted_last_scanned
        )
        if caller_is_current:
            if self.sensitivity == ReIndexingSensitivity.LOW:
                return StalenessDecision.CLIENT_CACHE_VALID
            if self.sensitivity == ReIndexingSensitivity.MEDIUM and not expired:
                return StalenessDecision.CLIENT_CACHE_VALID

        if self.sensitivity >= ReIndexingSensitivity.HIGH or (
            self.sensitivity >= ReIndexingSensitivity.MEDIUM and expired
        ):
            return StalenessDecision.SERVE_AND_RESCAN
        return StalenessDecision.SERVE_PERSISTED
