from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional, Union

from gallery_index.core.models import PhotoMetadata, VideoMetadata

from .parsers import MetadataParsers

logger = logging.getLogger(__name__)

SIDECAR_EXTENSIONS = (".xmp", ".XMP")


def merge_keywords(existing: Optional[list[str]], new: Iterable[object]) -> list[str]:
    """Append keywords not already present (exact, case-sensitive match)."""
    merged = list(existing or [])
    seen = set(merged)
    for keyword in new:
        if not isinstance(keyword, str) or keyword in seen:
            continue
        merged.append(keyword)
        seen.add(keyword)
    return merged


def clamp_rating(value: object) -> Optional[int]:
    try:
        rating = int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        return None
    return max(0, min(5, rating))


def sidecar_candidates(media_path: Path) -> list[Path]:
    """Sidecar paths probed for a media file, in the order they are layered."""
    media_path = Path(media_path)
    stem = media_path.with_suffix("")
    candidates: list[Path] = []
    for base in (stem, media_path):
        for ext in SIDECAR_EXTENSIONS:
            candidate = base.with_name(base.name + ext)
            if candidate not in candidates:
                candidates.append(candidate)
    return candidates


def _subjects(sections: dict) -> list[object]:
    subject = (sections.get("dc") or {}).get("subject")
    if subject is None:
        return []
    return subject if isinstance(subject, list) else [subject]


def merge_sidecars(
    metadata: Union[PhotoMetadata, VideoMetadata],
    media_path: Path,
    parsers: MetadataParsers,
) -> None:
    """Layer keywords and ratings from any existing sidecar files onto the metadata."""
    for candidate in sidecar_candidates(media_path):
        if not candidate.exists():
            continue
        try:
            sections = parsers.parse_sidecar(candidate)
        except Exception as exc:
            logger.debug("Unable to parse sidecar %s: %s", candidate, exc)
            continue
        subjects = _subjects(sections)
        if subjects:
            metadata.keywords = merge_keywords(metadata.keywords, subjects)
        rating = (sections.get("xmp") or {}).get("Rating")
        if rating is not None:
            clamped = clamp_rating(rating)
            if clamped is not None:
                metadata.rating = clamped
