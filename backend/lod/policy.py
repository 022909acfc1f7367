from __future__ import annotations

from typing import Literal

from borders.types import BorderSegment, Coords

DetailTier = Literal["low", "medium", "high"]

MEDIUM_ZOOM = 1.5
HIGH_ZOOM = 3.0


def select_tier(zoom: float) -> DetailTier:
    # Three-way threshold; no interpolation between tiers.
    z = float(zoom)
    if z >= HIGH_ZOOM:
        return "high"
    if z >= MEDIUM_ZOOM:
        return "medium"
    return "low"


def geometry_for_zoom(segment: BorderSegment, zoom: float) -> Coords:
    """
    Coordinates to draw `segment` at `zoom`.

    Only the low tier uses the simplified line, and only when it is non-empty;
    every other case falls back to `hi_res`, which is never empty.
    """
    low = segment.geometry.low_res
    if select_tier(zoom) == "low" and low:
        return low
    return segment.geometry.hi_res
