from __future__ import annotations

from functools import lru_cache
from typing import Iterable, Sequence

from pyproj import Geod

# Mean Earth radius; lengths are great-circle distances on this sphere.
EARTH_RADIUS_KM = 6371.0


@lru_cache(maxsize=1)
def sphere_geod() -> Geod:
    return Geod(a=EARTH_RADIUS_KM * 1000.0, f=0.0)


def line_length_km(coords: Sequence[tuple[float, float]]) -> float:
    """
    Summed great-circle distance across consecutive (lon, lat) points, in km.
    """
    if len(coords) < 2:
        return 0.0
    lons = [float(lon) for lon, _lat in coords]
    lats = [float(lat) for _lon, lat in coords]
    return float(sphere_geod().line_length(lons, lats)) / 1000.0


def coords_in_range(coords: Iterable[tuple[float, float]]) -> bool:
    return all(-180.0 <= lon <= 180.0 and -90.0 <= lat <= 90.0 for lon, lat in coords)
