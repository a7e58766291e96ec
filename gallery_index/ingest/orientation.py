"""EXIF orientation codes and the geometry each one implies.

Codes 1-8 follow the TIFF/EXIF definition of where row 0 and column 0 of the
stored pixels sit once the image is displayed upright.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class OrientationTransform:
    swap_axes: bool
    mirror_x: bool
    mirror_y: bool


TOP_LEFT = 1
TOP_RIGHT = 2
BOTTOM_RIGHT = 3
BOTTOM_LEFT = 4
LEFT_TOP = 5
RIGHT_TOP = 6
RIGHT_BOTTOM = 7
LEFT_BOTTOM = 8

ORIENTATIONS: dict[int, OrientationTransform] = {
    TOP_LEFT: OrientationTransform(swap_axes=False, mirror_x=False, mirror_y=False),
    TOP_RIGHT: OrientationTransform(swap_axes=False, mirror_x=True, mirror_y=False),
    BOTTOM_RIGHT: OrientationTransform(swap_axes=False, mirror_x=True, mirror_y=True),
    BOTTOM_LEFT: OrientationTransform(swap_axes=False, mirror_x=False, mirror_y=True),
    LEFT_TOP: OrientationTransform(swap_axes=True, mirror_x=False, mirror_y=False),
    RIGHT_TOP: OrientationTransform(swap_axes=True, mirror_x=True, mirror_y=False),
    RIGHT_BOTTOM: OrientationTransform(swap_axes=True, mirror_x=True, mirror_y=True),
    LEFT_BOTTOM: OrientationTransform(swap_axes=True, mirror_x=False, mirror_y=True),
}


def parse_orientation(value: object) -> int:
    """Return a valid orientation code, defaulting to TOP_LEFT."""
    try:
        code = int(str(value).strip())
    except (TypeError, ValueError):
        return TOP_LEFT
    return code if code in ORIENTATIONS else TOP_LEFT


def transform_for(orientation: int) -> OrientationTransform:
    return ORIENTATIONS.get(orientation, ORIENTATIONS[TOP_LEFT])


def oriented_size(width: int, height: int, orientation: int) -> tuple[int, int]:
    """Return (width, height) as displayed after applying the orientation."""
    if transform_for(orientation).swap_axes:
        return height, width
    return width, height
