from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from gallery_index.core.models import MediaSize, VideoMetadata

from .parsers import MetadataParsers
from .sidecar import merge_sidecars

logger = logging.getLogger(__name__)

INT32_MAX = 2**31 - 1


def _as_int32(value: object) -> Optional[int]:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    number = math.floor(number)
    if not -INT32_MAX - 1 <= number <= INT32_MAX:
        return None
    return int(number)


def _duration_ms(value: object) -> Optional[int]:
    try:
        seconds = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(seconds):
        return None
    return _as_int32(seconds * 1000)


def _frame_rate(value: object) -> Optional[int]:
    text = str(value or "")
    numerator, _, denominator = text.partition("/")
    try:
        rate = float(numerator) / float(denominator or 1)
    except (ValueError, ZeroDivisionError):
        return None
    return _as_int32(rate)


def _rotation(stream: dict[str, Any]) -> int:
    tags = stream.get("tags") or {}
    candidates = [stream.get("rotation"), tags.get("rotate")]
    for side_data in stream.get("side_data_list") or []:
        candidates.append(side_data.get("rotation"))
    for candidate in candidates:
        rotation = _as_int32(candidate)
        if rotation is not None:
            return rotation
    return 0


def _parse_creation_time(value: object) -> Optional[int]:
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip().replace("Z", "+00:00")
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000) or None


def _apply_probe(metadata: VideoMetadata, probe: dict[str, Any]) -> None:
    stream_creation: Optional[int] = None
    for stream in probe.get("streams") or []:
        width, height = _as_int32(stream.get("width")), _as_int32(stream.get("height"))
        if not width:
            continue
        height = height or 1
        rotation = abs(_rotation(stream))
        if rotation % 90 == 0 and (rotation // 90) % 2 == 1:
            width, height = height, width
        metadata.size = MediaSize(width=max(1, width), height=max(1, height))
        duration = _duration_ms(stream.get("duration"))
        if duration:
            metadata.duration = duration
        bit_rate = _as_int32(stream.get("bit_rate"))
        if bit_rate:
            metadata.bit_rate = bit_rate
        fps = _frame_rate(stream.get("avg_frame_rate"))
        if fps:
            metadata.fps = fps
        stream_creation = _parse_creation_time((stream.get("tags") or {}).get("creation_time"))
        break

    container = probe.get("format") or {}
    # Container duration is only a fallback, stream duration is more accurate.
    if not metadata.duration:
        duration = _duration_ms(container.get("duration"))
        if duration:
            metadata.duration = duration
    # Container bit rate covers audio and video together.
    container_bit_rate = _as_int32(container.get("bit_rate"))
    if container_bit_rate:
        metadata.bit_rate = container_bit_rate

    creation = stream_creation or _parse_creation_time(
        (container.get("tags") or {}).get("creation_time")
    )
    if creation:
        metadata.creation_date = creation


def read_video_metadata(path: str | Path, parsers: MetadataParsers) -> VideoMetadata:
    """Build the normalized metadata record for one video. Never raises."""
    path = Path(path)
    metadata = VideoMetadata()
    try:
        stat = path.stat()
        metadata.file_size = stat.st_size
        metadata.creation_date = int(stat.st_mtime * 1000)
    except OSError as exc:
        logger.debug("Unable to stat %s: %s", path, exc)

    try:
        _apply_probe(metadata, parsers.probe_video(path))
    except Exception as exc:
        logger.debug("Error loading video metadata for %s: %s", path, exc)

    merge_sidecars(metadata, path, parsers)

    if not metadata.creation_date:
        metadata.creation_date = 0
    return metadata
