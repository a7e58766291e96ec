from datetime import datetime, timezone

from gallery_index.ingest.timestamps import (
    gps_derived_offset,
    normalize_offset,
    parse_local_datetime,
    resolve_creation_date,
    to_epoch_ms,
)


def _ms(*args: int) -> int:
    return int(datetime(*args, tzinfo=timezone.utc).timestamp() * 1000)


def test_normalize_offset_accepts_real_zones_only() -> None:
    assert normalize_offset("+02:00") == "+02:00"
    assert normalize_offset("-0530") == "-05:30"
    assert normalize_offset("Z") == "+00:00"
    assert normalize_offset("+15:00") is None
    assert normalize_offset("-13:00") is None
    assert normalize_offset("\x00\x00") is None
    assert normalize_offset("garbage") is None


def test_parse_local_datetime_formats() -> None:
    assert parse_local_datetime("2020:06:01 12:30:00") == datetime(2020, 6, 1, 12, 30)
    assert parse_local_datetime("2020-06-01T12:30:00+02:00") == datetime(2020, 6, 1, 12, 30)
    assert parse_local_datetime("0000:00:00 00:00:00") is None
    assert parse_local_datetime("") is None


def test_to_epoch_ms_handles_offsets_and_pre_epoch() -> None:
    local = datetime(2020, 6, 1, 12, 0, 0)
    assert to_epoch_ms(local, "+02:00") == _ms(2020, 6, 1, 10, 0, 0)
    assert to_epoch_ms(local, None) == _ms(2020, 6, 1, 12, 0, 0)
    assert to_epoch_ms(datetime(1969, 12, 31, 23, 59, 59), None) == -1000


def test_datetime_original_uses_its_own_offset_first() -> None:
    sections = {
        "exif": {
            "DateTimeOriginal": "2020:06:01 12:00:00",
            "OffsetTimeOriginal": "+02:00",
            "OffsetTime": "+05:00",
            "CreateDate": "2019:01:01 00:00:00",
        },
        "ifd0": {"ModifyDate": "2018:01:01 00:00:00"},
    }
    assert resolve_creation_date(sections) == (_ms(2020, 6, 1, 10, 0, 0), "+02:00")


def test_sibling_offset_is_the_first_fallback() -> None:
    sections = {"exif": {"DateTimeOriginal": "2020:06:01 12:00:00", "OffsetTime": "-03:00"}}
    gps = datetime(2020, 6, 1, 10, 0, 0, tzinfo=timezone.utc)
    assert resolve_creation_date(sections, gps) == (_ms(2020, 6, 1, 15, 0, 0), "-03:00")


def test_gps_offset_used_when_no_offset_tags() -> None:
    sections = {"exif": {"CreateDate": "2020:06:01 12:00:00"}}
    gps = datetime(2020, 6, 1, 10, 0, 7, tzinfo=timezone.utc)
    assert resolve_creation_date(sections, gps) == (_ms(2020, 6, 1, 10, 0, 0), "+02:00")


def test_out_of_range_gps_offset_falls_back_to_utc() -> None:
    sections = {"ifd0": {"ModifyDate": "2020:06:01 12:00:00"}}
    gps = datetime(2020, 6, 2, 10, 0, 0, tzinfo=timezone.utc)
    assert gps_derived_offset(datetime(2020, 6, 1, 12, 0, 0), gps) is None
    assert resolve_creation_date(sections, gps) == (_ms(2020, 6, 1, 12, 0, 0), None)


def test_no_dates_resolves_to_none() -> None:
    assert resolve_creation_date({"exif": {"OffsetTime": "+01:00"}}) is None
