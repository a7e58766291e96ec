from __future__ import annotations

import logging
import math
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional

from gallery_index.core.models import (
    CameraData,
    FaceBox,
    FaceRegion,
    GPSData,
    MediaSize,
    PhotoMetadata,
    PositionData,
)

from .orientation import parse_orientation, oriented_size, transform_for
from .parsers import MetadataParsers
from .sidecar import clamp_rating, merge_keywords, merge_sidecars
from .timestamps import (
    normalize_offset,
    parse_local_datetime,
    resolve_creation_date,
    to_epoch_ms,
)

logger = logging.getLogger(__name__)

UINT32_MAX = 2**32 - 1
FLOAT32_MAX = 3.4028234663852886e38


def empty_photo_metadata() -> PhotoMetadata:
    """Sentinel record for photos whose header could not be read at all."""
    return PhotoMetadata(size=MediaSize(width=1, height=1), creation_date=0, file_size=0)


def _clean(value: object) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    text = str(value).replace("\x00", "").strip()
    return text or None


def _as_uint32(value: object) -> Optional[int]:
    if isinstance(value, (tuple, list)):
        value = value[0] if value else None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not number.is_integer() or not 0 <= number <= UINT32_MAX:
        return None
    return int(number)


def _as_float32(value: object) -> Optional[float]:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or abs(number) > FLOAT32_MAX:
        return None
    return number


def _positive_int(value: object) -> Optional[int]:
    number = _as_uint32(value)
    return number if number else None


def _read_header(path: Path, size: int) -> bytes:
    with path.open("rb") as infile:
        return infile.read(size)


def _apply_iptc(metadata: PhotoMetadata, iptc: dict[str, Any]) -> None:
    position = metadata.position_data or PositionData()
    country = _clean(iptc.get("country_or_primary_location_name"))
    state = _clean(iptc.get("province_or_state"))
    city = _clean(iptc.get("city"))
    if country:
        position.country = country
    if state:
        position.state = state
    if city:
        position.city = city
    if country or state or city:
        metadata.position_data = position

    title = _clean(iptc.get("object_name"))
    if title:
        metadata.title = title
    caption = _clean(iptc.get("caption"))
    if caption:
        metadata.caption = caption

    keywords = iptc.get("keywords")
    if isinstance(keywords, list):
        metadata.keywords = merge_keywords(metadata.keywords, filter(None, map(_clean, keywords)))

    date_created = _clean(iptc.get("date_created"))
    if date_created:
        time_created = _clean(iptc.get("time_created")) or "000000"
        try:
            local = datetime.strptime(f"{date_created}{time_created[:6]}", "%Y%m%d%H%M%S")
        except ValueError:
            local = parse_local_datetime(date_created)
        if local is not None:
            # IPTC TimeCreated carries its zone as a +HHMM suffix.
            offset = normalize_offset(time_created[6:])
            metadata.creation_date = to_epoch_ms(local, offset)
            metadata.creation_date_offset = offset


def _resolve_size(sections: dict, path: Path, parsers: MetadataParsers) -> MediaSize:
    ifd0 = sections.get("ifd0") or {}
    exif = sections.get("exif") or {}
    for width_value, height_value in (
        (ifd0.get("ImageWidth"), ifd0.get("ImageHeight")),
        (exif.get("ExifImageWidth"), exif.get("ExifImageHeight")),
    ):
        width, height = _positive_int(width_value), _positive_int(height_value)
        if width and height:
            return MediaSize(width=width, height=height)
    try:
        width, height = parsers.probe_image_size(path)
    except Exception as exc:
        logger.debug("Dimension probe failed for %s: %s", path, exc)
        return MediaSize(width=1, height=1)
    return MediaSize(width=max(1, int(width or 1)), height=max(1, int(height or 1)))


def _camera_data(sections: dict) -> Optional[CameraData]:
    ifd0 = sections.get("ifd0") or {}
    exif = sections.get("exif") or {}
    camera = CameraData(
        make=_clean(ifd0.get("Make")),
        model=_clean(ifd0.get("Model")),
        lens=_clean(exif.get("LensModel")),
        iso=_as_uint32(exif.get("ISO")),
        focal_length=_as_float32(exif.get("FocalLength")),
    )
    exposure = _as_float32(exif.get("ExposureTime"))
    if exposure is not None:
        camera.exposure = round(exposure, 6)
    f_stop = _as_float32(exif.get("FNumber"))
    if f_stop is not None:
        camera.f_stop = round(f_stop, 2)
    if not camera.model_dump(exclude_none=True):
        return None
    return camera


def _gps_data(sections: dict) -> Optional[GPSData]:
    gps = sections.get("gps") or {}
    latitude = _as_float32(gps.get("latitude"))
    longitude = _as_float32(gps.get("longitude"))
    data = GPSData(
        latitude=round(latitude, 6) if latitude is not None and abs(latitude) <= 90 else None,
        longitude=round(longitude, 6) if longitude is not None and abs(longitude) <= 180 else None,
    )
    if data.latitude is None and data.longitude is None:
        return None
    return data


def _region_fields(entry: Any) -> Optional[tuple[Any, Any, dict]]:
    """Return (name, type, area) from either supported region layout."""
    if not isinstance(entry, dict):
        return None
    description = entry.get("rdf:Description")
    if isinstance(description, dict) and isinstance(description.get("mwg-rs:Area"), dict):
        attributes = description["mwg-rs:Area"].get("attributes") or {}
        area = {key: attributes.get(f"stArea:{key}") for key in ("w", "h", "x", "y")}
        return description.get("mwg-rs:Name"), description.get("mwg-rs:Type"), area
    if entry.get("Name") and entry.get("Type") and isinstance(entry.get("Area"), dict):
        return entry["Name"], entry["Type"], entry["Area"]
    return None


def _pixel_box(area: dict, size: MediaSize, orientation: int) -> FaceBox:
    """Map a ratio region onto the displayed image in pixels."""
    w, h, x, y = (float(area[key]) for key in ("w", "h", "x", "y"))
    transform = transform_for(orientation)
    if transform.swap_axes:
        x, y = y, x
        w, h = h, w
    width = round(w * size.width)
    height = round(h * size.height)
    center_x = abs(x - int(transform.mirror_x)) * size.width
    center_y = abs(y - int(transform.mirror_y)) * size.height
    return FaceBox(
        width=width,
        height=height,
        left=round(center_x - width / 2),
        top=round(center_y - height / 2),
    )


def _anchor_top_left(box: FaceBox) -> FaceBox:
    return FaceBox(
        width=box.width,
        height=box.height,
        left=round(max(0, box.left - box.width / 2)),
        top=round(max(0, box.top - box.height / 2)),
    )


def extract_face_regions(sections: dict, size: MediaSize, orientation: int) -> list[FaceRegion]:
    regions = ((sections.get("mwg-rs") or {}).get("Regions") or {}).get("RegionList")
    if not regions:
        return []
    if not isinstance(regions, list):
        regions = [regions]
    faces: list[FaceRegion] = []
    for entry in regions:
        fields = _region_fields(entry)
        if fields is None:
            continue
        name, region_type, area = fields
        if region_type != "Face" or not name:
            continue
        try:
            box = _anchor_top_left(_pixel_box(area, size, orientation))
        except (KeyError, TypeError, ValueError) as exc:
            logger.debug("Skipping malformed face region %r: %s", name, exc)
            continue
        faces.append(FaceRegion(name=str(name), box=box))
    return faces


def _guarded(path: Path, label: str, apply: Callable[[], None]) -> None:
    """Run one field group; a failure only drops the fields it would have set."""
    try:
        apply()
    except Exception as exc:
        logger.debug("Error reading %s for %s: %s", label, path, exc)


def _apply_sections(
    metadata: PhotoMetadata,
    sections: dict,
    path: Path,
    parsers: MetadataParsers,
    *,
    faces_enabled: bool,
    keywords_to_persons: bool,
) -> None:
    def keywords() -> None:
        subject = (sections.get("dc") or {}).get("subject")
        if subject:
            subjects = subject if isinstance(subject, list) else [subject]
            metadata.keywords = merge_keywords(metadata.keywords, subjects)

    orientation = parse_orientation((sections.get("ifd0") or {}).get("Orientation"))

    def size() -> None:
        resolved = _resolve_size(sections, path, parsers)
        width, height = oriented_size(resolved.width, resolved.height, orientation)
        metadata.size = MediaSize(width=width, height=height)

    def creation_date() -> None:
        created = resolve_creation_date(sections, (sections.get("gps") or {}).get("GPSDateTime"))
        if created is not None:
            metadata.creation_date, metadata.creation_date_offset = created

    def camera() -> None:
        data = _camera_data(sections)
        if data is not None:
            metadata.camera_data = data

    def gps() -> None:
        data = _gps_data(sections)
        if data is not None:
            metadata.position_data = metadata.position_data or PositionData()
            metadata.position_data.gps = data

    def rating() -> None:
        value = (sections.get("xmp") or {}).get("Rating")
        if value is not None:
            clamped = clamp_rating(value)
            if clamped is not None:
                metadata.rating = clamped

    def faces() -> None:
        regions = extract_face_regions(sections, metadata.size, orientation)
        if regions:
            metadata.faces = regions
            if keywords_to_persons and metadata.keywords:
                names = {face.name for face in regions}
                metadata.keywords = [kw for kw in metadata.keywords if kw not in names]

    _guarded(path, "keywords", keywords)
    _guarded(path, "dimensions", size)
    _guarded(path, "creation date", creation_date)
    _guarded(path, "camera data", camera)
    _guarded(path, "GPS", gps)
    _guarded(path, "rating", rating)
    if faces_enabled:
        _guarded(path, "face regions", faces)

def read_photo_metadata(
    path: str | Path,
    parsers: MetadataParsers,
    *,
    header_size: int = 512 * 1024,
    faces_enabled: bool = True,
    keywords_to_persons: bool = True,
) -> PhotoMetadata:
    """Build the normalized metadata record for one photo.

    Only the first ``header_size`` bytes are parsed for embedded metadata.
    Section and sidecar failures drop the affected fields; an unreadable
    file yields the 1x1 sentinel record. Nothing is raised.
    """
    path = Path(path)
    try:
        data = _read_header(path, header_size)
    except OSError as exc:
        logger.warning("Error during reading photo %s: %s", path, exc)
        return empty_photo_metadata()

    metadata = PhotoMetadata()
    try:
        stat = path.stat()
        metadata.file_size = stat.st_size
        metadata.creation_date = int(stat.st_mtime * 1000)
    except OSError as exc:
        logger.debug("Unable to stat %s: %s", path, exc)

    try:
        _apply_iptc(metadata, parsers.parse_iptc(data))
    except Exception as exc:
        logger.debug("Error parsing IPTC for %s: %s", path, exc)

    try:
        sections = parsers.parse_exif(data)
    except Exception as exc:
        logger.debug("Error parsing EXIF/XMP for %s: %s", path, exc)
        sections = {}
    _apply_sections(
        metadata,
        sections,
        path,
        parsers,
        faces_enabled=faces_enabled,
        keywords_to_persons=keywords_to_persons,
    )

    merge_sidecars(metadata, path, parsers)

    if not metadata.creation_date:
        metadata.creation_date = 0
    return metadata
