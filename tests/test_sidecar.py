from pathlib import Path

from gallery_index.ingest.sidecar import clamp_rating, merge_keywords, sidecar_candidates


def test_candidates_cover_stem_and_full_name() -> None:
    candidates = sidecar_candidates(Path("/photos/IMG_0001.JPG"))
    assert [c.name for c in candidates] == [
        "IMG_0001.xmp",
        "IMG_0001.XMP",
        "IMG_0001.JPG.xmp",
        "IMG_0001.JPG.XMP",
    ]
    assert all(c.parent == Path("/photos") for c in candidates)


def test_merge_keywords_is_exact_match_union() -> None:
    assert merge_keywords(None, ["a", "b", "a"]) == ["a", "b"]
    assert merge_keywords(["a", "B"], ["b", "B", "c"]) == ["a", "B", "b", "c"]
    assert merge_keywords(["a"], [None, 3, "d"]) == ["a", "d"]


def test_clamp_rating() -> None:
    assert clamp_rating("4") == 4
    assert clamp_rating(-1) == 0
    assert clamp_rating("7") == 5
    assert clamp_rating("2.0") == 2
    assert clamp_rating("high") is None
