"""Capture-time resolution for embedded EXIF dates and UTC offsets."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

MIN_OFFSET_MINUTES = -12 * 60
MAX_OFFSET_MINUTES = 14 * 60

# (date tag, section holding it, offset tag that belongs to it)
CREATION_DATE_SOURCES = (
    ("DateTimeOriginal", "exif", "OffsetTimeOriginal"),
    ("CreateDate", "exif", "OffsetTimeDigitized"),
    ("ModifyDate", "ifd0", "OffsetTime"),
)
OFFSET_TAGS = tuple(source[2] for source in CREATION_DATE_SOURCES)

_OFFSET_RE = re.compile(r"^([+-])(\d{1,2}):?(\d{2})$")
_DATE_FORMATS = (
    "%Y:%m:%d %H:%M:%S.%f",
    "%Y:%m:%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y:%m:%d",
    "%Y%m%d",
)
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _offset_minutes(offset: str) -> int:
    match = _OFFSET_RE.match(offset)
    if match is None:
        raise ValueError(offset)
    sign, hours, minutes = match.groups()
    total = int(hours) * 60 + int(minutes)
    return -total if sign == "-" else total


def _format_offset(minutes: int) -> str:
    sign = "-" if minutes < 0 else "+"
    hours, mins = divmod(abs(minutes), 60)
    return f"{sign}{hours:02d}:{mins:02d}"


def normalize_offset(value: object) -> Optional[str]:
    """Return an offset as "+HH:MM" when it is well formed and within -12h..+14h."""
    if value is None:
        return None
    text = str(value).replace("\x00", "").strip()
    if not text:
        return None
    if text.upper() == "Z":
        return "+00:00"
    try:
        minutes = _offset_minutes(text)
    except ValueError:
        return None
    if not MIN_OFFSET_MINUTES <= minutes <= MAX_OFFSET_MINUTES:
        return None
    return _format_offset(minutes)


def parse_local_datetime(value: object) -> Optional[datetime]:
    """Parse an EXIF/IPTC style date into a naive local datetime."""
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if value is None:
        return None
    text = str(value).replace("\x00", "").strip()
    if not text:
        return None
    # Trailing zone designators belong to the offset tags, not the local time.
    text = re.sub(r"(Z|[+-]\d{2}:?\d{2})$", "", text)
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def to_epoch_ms(local: datetime, offset: Optional[str]) -> int:
    """Convert a naive local time to ms since epoch; an unknown offset means UTC."""
    minutes = _offset_minutes(offset) if offset else 0
    aware = local.replace(tzinfo=timezone(timedelta(minutes=minutes)))
    return int((aware - _EPOCH) / timedelta(milliseconds=1))


def gps_derived_offset(local: datetime, gps_utc: Optional[datetime]) -> Optional[str]:
    """Offset implied by comparing a local capture time to the GPS UTC stamp.

    The difference is rounded to the nearest quarter hour and rejected when it
    falls outside the -12h..+14h range of real-world zones.
    """
    if gps_utc is None:
        return None
    utc_naive = gps_utc.astimezone(timezone.utc).replace(tzinfo=None) if gps_utc.tzinfo else gps_utc
    minutes = (local - utc_naive).total_seconds() / 60.0
    rounded = int(round(minutes / 15.0)) * 15
    if not MIN_OFFSET_MINUTES <= rounded <= MAX_OFFSET_MINUTES:
        return None
    return _format_offset(rounded)


def resolve_creation_date(
    sections: Mapping[str, Mapping[str, object]],
    gps_utc: Optional[datetime] = None,
) -> Optional[tuple[int, Optional[str]]]:
    """Return (ms since epoch, offset) from the highest precedence embedded date.

    Dates are tried as DateTimeOriginal, CreateDate, then ModifyDate. Each
    uses its own offset tag first, then a sibling offset tag, then an offset
    derived from the GPS timestamp; without any the time is read as UTC.
    """
    exif = sections.get("exif") or {}
    offsets = {tag: normalize_offset(exif.get(tag)) for tag in OFFSET_TAGS}
    for date_tag, section_name, own_offset_tag in CREATION_DATE_SOURCES:
        section = sections.get(section_name) or {}
        local = parse_local_datetime(section.get(date_tag))
        if local is None:
            continue
        offset = offsets.get(own_offset_tag)
        if offset is None:
            offset = next(
                (offsets[tag] for tag in OFFSET_TAGS if tag != own_offset_tag and offsets[tag]),
                None,
            )
        if offset is None:
            offset = gps_derived_offset(local, gps_utc)
        try:
            return to_epoch_ms(local, offset), offset
        except (OverflowError, ValueError) as exc:
            logger.debug("Unusable %s value %r: %s", date_tag, section.get(date_tag), exc)
    return None
