import pytest

from gallery_index.ingest.orientation import (
    ORIENTATIONS,
    oriented_size,
    parse_orientation,
    transform_for,
)


def test_table_covers_all_eight_codes() -> None:
    assert sorted(ORIENTATIONS) == list(range(1, 9))
    assert [code for code, t in ORIENTATIONS.items() if t.swap_axes] == [5, 6, 7, 8]
    assert transform_for(2).mirror_x and not transform_for(2).mirror_y
    assert transform_for(3).mirror_x and transform_for(3).mirror_y
    assert transform_for(8).mirror_y and not transform_for(8).mirror_x


@pytest.mark.parametrize("code", [5, 6, 7, 8])
def test_rotated_codes_swap_size(code: int) -> None:
    assert oriented_size(400, 300, code) == (300, 400)


@pytest.mark.parametrize("code", [1, 2, 3, 4])
def test_upright_codes_keep_size(code: int) -> None:
    assert oriented_size(400, 300, code) == (400, 300)


def test_parse_orientation_defaults_to_top_left() -> None:
    assert parse_orientation("6") == 6
    assert parse_orientation(None) == 1
    assert parse_orientation(9) == 1
    assert parse_orientation("rotate") == 1
