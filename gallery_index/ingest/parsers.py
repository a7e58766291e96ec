"""Section parsers for embedded metadata, sidecars and media containers.

Every parser either returns a structured result or raises; callers decide
how a failure degrades the final record.
"""

from __future__ import annotations

import json
import subprocess
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from io import BytesIO
from pathlib import Path
from typing import Any, Optional, Protocol

from PIL import Image, IptcImagePlugin

EXIF_IFD_TAG = 0x8769
GPS_IFD_TAG = 0x8825

IFD0_TAGS = {
    256: "ImageWidth",
    257: "ImageHeight",
    271: "Make",
    272: "Model",
    274: "Orientation",
    306: "ModifyDate",
}
EXIF_TAGS = {
    33434: "ExposureTime",
    33437: "FNumber",
    34855: "ISO",
    36867: "DateTimeOriginal",
    36868: "CreateDate",
    36880: "OffsetTime",
    36881: "OffsetTimeOriginal",
    36882: "OffsetTimeDigitized",
    37386: "FocalLength",
    40962: "ExifImageWidth",
    40963: "ExifImageHeight",
    42036: "LensModel",
}

IPTC_FIELDS = {
    (2, 5): "object_name",
    (2, 25): "keywords",
    (2, 55): "date_created",
    (2, 60): "time_created",
    (2, 90): "city",
    (2, 95): "province_or_state",
    (2, 101): "country_or_primary_location_name",
    (2, 120): "caption",
}

NS = {
    "x": "adobe:ns:meta/",
    "rdf": "http://www.w3.org/1999/02/22-rdf-syntax-ns#",
    "dc": "http://purl.org/dc/elements/1.1/",
    "xmp": "http://ns.adobe.com/xap/1.0/",
    "mwg-rs": "http://www.metadataworkinggroup.com/schemas/regions/",
    "stArea": "http://ns.adobe.com/xmp/sType/Area#",
}


class MetadataParsers(Protocol):
    def parse_iptc(self, data: bytes) -> dict[str, Any]: ...

    def parse_exif(self, data: bytes) -> dict[str, dict[str, Any]]: ...

    def parse_sidecar(self, path: Path) -> dict[str, dict[str, Any]]: ...

    def probe_image_size(self, path: Path) -> tuple[int, int]: ...

    def probe_video(self, path: Path) -> dict[str, Any]: ...


def _rational(value: Any) -> Optional[float]:
    if isinstance(value, tuple) and len(value) == 2:
        return float(value[0]) / float(value[1]) if value[1] else None
    try:
        return float(value)
    except (TypeError, ValueError, ZeroDivisionError):
        return None


def _text(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def _gps_coordinate(values: Any, ref: Any) -> Optional[float]:
    if not isinstance(values, tuple) or len(values) != 3:
        return None
    parts = [_rational(v) for v in values]
    if any(p is None for p in parts):
        return None
    degrees, minutes, seconds = parts  # type: ignore[misc]
    coordinate = degrees + minutes / 60.0 + seconds / 3600.0
    ref = _text(ref)
    if isinstance(ref, str) and ref.strip("\x00 ").upper() in {"S", "W"}:
        coordinate *= -1
    return coordinate


def _gps_datetime(datestamp: Any, timestamp: Any) -> Optional[datetime]:
    datestamp = _text(datestamp)
    if not isinstance(datestamp, str) or not isinstance(timestamp, tuple) or len(timestamp) != 3:
        return None
    parts = [_rational(v) for v in timestamp]
    if any(p is None for p in parts):
        return None
    try:
        year, month, day = (int(p) for p in datestamp.strip("\x00 ").split(":"))
        hours, minutes, seconds = parts  # type: ignore[misc]
        return datetime(
            year, month, day, int(hours), int(minutes), int(seconds), tzinfo=timezone.utc
        )
    except ValueError:
        return None


def _gps_section(gps_ifd: dict) -> dict[str, Any]:
    section: dict[str, Any] = {}
    latitude = _gps_coordinate(gps_ifd.get(2), gps_ifd.get(1))
    longitude = _gps_coordinate(gps_ifd.get(4), gps_ifd.get(3))
    if latitude is not None:
        section["latitude"] = latitude
    if longitude is not None:
        section["longitude"] = longitude
    stamp = _gps_datetime(gps_ifd.get(29), gps_ifd.get(7))
    if stamp is not None:
        section["GPSDateTime"] = stamp
    return section


def extract_xmp_packet(data: bytes) -> Optional[bytes]:
    """Return the raw XMP packet embedded anywhere in the given bytes."""
    for start_marker, end_marker in (
        (b"<x:xmpmeta", b"</x:xmpmeta>"),
        (b"<rdf:RDF", b"</rdf:RDF>"),
    ):
        start = data.find(start_marker)
        if start == -1:
            continue
        end = data.find(end_marker, start)
        if end == -1:
            continue
        return data[start : end + len(end_marker)]
    return None


def _qname(prefix: str, local: str) -> str:
    return f"{{{NS[prefix]}}}{local}"


def _prop(element: ET.Element, prefix: str, local: str) -> Optional[str]:
    """Read an RDF property written either as an attribute or as a child element."""
    value = element.get(_qname(prefix, local))
    if value is not None:
        return value
    child = element.find(f"{prefix}:{local}", NS)
    if child is not None and child.text is not None:
        return child.text.strip()
    return None


def _area_values(area: ET.Element) -> dict[str, Optional[str]]:
    return {key: _prop(area, "stArea", key) for key in ("w", "h", "x", "y")}


def _region_entry(item: ET.Element) -> Optional[dict[str, Any]]:
    description = item.find("rdf:Description", NS)
    if description is not None:
        area = description.find("mwg-rs:Area", NS)
        entry: dict[str, Any] = {
            "mwg-rs:Name": _prop(description, "mwg-rs", "Name"),
            "mwg-rs:Type": _prop(description, "mwg-rs", "Type"),
        }
        if area is not None:
            entry["mwg-rs:Area"] = {
                "attributes": {f"stArea:{key}": value for key, value in _area_values(area).items()}
            }
        return {"rdf:Description": entry}
    area = item.find("mwg-rs:Area", NS)
    if area is None:
        return None
    return {
        "Name": _prop(item, "mwg-rs", "Name"),
        "Type": _prop(item, "mwg-rs", "Type"),
        "Area": _area_values(area),
    }


def parse_xmp_packet(packet: bytes | str) -> dict[str, dict[str, Any]]:
    """Parse an XMP packet into xmp, dc and mwg-rs sections."""
    root = ET.fromstring(packet)
    sections: dict[str, dict[str, Any]] = {}
    subjects: list[str] = []
    regions: list[dict[str, Any]] = []
    for description in root.iter(_qname("rdf", "Description")):
        rating = _prop(description, "xmp", "Rating")
        if rating is not None:
            sections.setdefault("xmp", {})["Rating"] = rating
        for subject in description.findall("dc:subject", NS):
            for li in subject.iter(_qname("rdf", "li")):
                if li.text and li.text.strip():
                    subjects.append(li.text.strip())
        for region_list in description.findall("mwg-rs:Regions/mwg-rs:RegionList", NS):
            for bag in region_list:
                for item in bag.findall("rdf:li", NS):
                    entry = _region_entry(item)
                    if entry is not None:
                        regions.append(entry)
    if subjects:
        sections["dc"] = {"subject": subjects}
    if regions:
        sections["mwg-rs"] = {"Regions": {"RegionList": regions}}
    return sections


class PillowParsers:
    """Default parsers: Pillow for EXIF/IPTC/dimensions, ElementTree for XMP, ffprobe for video."""

    def __init__(self, ffprobe_path: str = "ffprobe") -> None:
        self.ffprobe_path = ffprobe_path

    def parse_iptc(self, data: bytes) -> dict[str, Any]:
        with Image.open(BytesIO(data)) as img:
            info = IptcImagePlugin.getiptcinfo(img) or {}
        record: dict[str, Any] = {}
        for key, field in IPTC_FIELDS.items():
            value = info.get(key)
            if value is None:
                continue
            if field == "keywords":
                values = value if isinstance(value, list) else [value]
                record[field] = [_text(v) for v in values]
            else:
                if isinstance(value, list):
                    value = value[0]
                record[field] = _text(value)
        return record

    def parse_exif(self, data: bytes) -> dict[str, dict[str, Any]]:
        sections: dict[str, dict[str, Any]] = {}
        with Image.open(BytesIO(data)) as img:
            exif = img.getexif()
            if exif:
                exif_ifd = exif.get_ifd(EXIF_IFD_TAG)
                ifd0 = {name: _text(exif[tag]) for tag, name in IFD0_TAGS.items() if tag in exif}
                exif_section: dict[str, Any] = {}
                for tag, name in EXIF_TAGS.items():
                    # Some writers leave Exif IFD tags in IFD0.
                    value = exif_ifd.get(tag, exif.get(tag))
                    if value is not None:
                        exif_section[name] = _text(value)
                for name in ("ExposureTime", "FNumber", "FocalLength"):
                    if name in exif_section:
                        exif_section[name] = _rational(exif_section[name])
                if ifd0:
                    sections["ifd0"] = ifd0
                if exif_section:
                    sections["exif"] = exif_section
                gps = _gps_section(exif.get_ifd(GPS_IFD_TAG))
                if gps:
                    sections["gps"] = gps
            xmp_raw = img.info.get("xmp") or img.info.get("XML:com.adobe.xmp")
        packet = _text(xmp_raw) if xmp_raw else extract_xmp_packet(data)
        if packet:
            if isinstance(packet, str):
                packet = packet.encode("utf-8")
            inner = extract_xmp_packet(packet) or packet
            sections.update(parse_xmp_packet(inner))
        return sections

    def parse_sidecar(self, path: Path) -> dict[str, dict[str, Any]]:
        raw = Path(path).read_bytes()
        return parse_xmp_packet(extract_xmp_packet(raw) or raw)

    def probe_image_size(self, path: Path) -> tuple[int, int]:
        with Image.open(path) as img:
            return img.size

    def probe_video(self, path: Path) -> dict[str, Any]:
        result = subprocess.run(
            [
                self.ffprobe_path,
                "-v",
                "error",
                "-print_format",
                "json",
                "-show_streams",
                "-show_format",
                str(path),
            ],
            capture_output=True,
            text=True,
            check=True,
        )
        return json.loads(result.stdout or "{}")
