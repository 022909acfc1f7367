from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, NamedTuple, TypeAlias

CountryId: TypeAlias = str
Coord: TypeAlias = tuple[float, float]  # (lon, lat)
Coords: TypeAlias = list[Coord]

SEA: Literal["SEA"] = "SEA"


@dataclass(frozen=True)
class CountryRecord:
    """
    Caller-owned country description.

    `geometry_ref` is the key of the country's geometry in the supplied topology
    (usually the feature id, sometimes the feature name).
    """

    country_id: CountryId
    name: str
    geometry_ref: str


@dataclass(frozen=True)
class BorderSegmentId:
    country_a: CountryId
    country_b: CountryId  # lexicographically larger id, or SEA
    index: int  # disambiguates disjoint pieces of the same pair


@dataclass(frozen=True)
class BorderSegmentGeometry:
    hi_res: Coords
    low_res: Coords | None = None


@dataclass(frozen=True)
class BorderSegment:
    id: BorderSegmentId
    country_a: CountryId
    country_b: CountryId
    geometry: BorderSegmentGeometry
    length_km: float
    segment_id: str
    is_maritime: bool = False


class CanonicalPair(NamedTuple):
    a: CountryId
    b: CountryId
    key: str


def canonical_pair(a: CountryId, b: CountryId) -> CanonicalPair:
    """
    Order a country pair so a border between A and B is represented once.

    Coastlines keep their country first: `canonical_pair("PRT", "SEA")` is
    `("PRT", "SEA", "PRT-SEA")`.
    """
    if b == SEA:
        return CanonicalPair(a, SEA, f"{a}-{SEA}")
    ca, cb = sorted((a, b))
    return CanonicalPair(ca, cb, f"{ca}-{cb}")


def format_segment_id(segment_id: BorderSegmentId) -> str:
    # External layers key their lookups on this string; the format must not change.
    return f"{segment_id.country_a}-{segment_id.country_b}-{segment_id.index}"


def parse_segment_id(text: str) -> BorderSegmentId:
    """
    Inverse of `format_segment_id`.

    Only unambiguous for country ids without "-" (the SEA suffix is always recognised).
    """
    pair, sep, raw_index = (text or "").rpartition("-")
    if not sep or not raw_index.isdigit():
        raise ValueError(f"Invalid border segment id: {text!r}")

    suffix = f"-{SEA}"
    if pair.endswith(suffix) and pair != SEA:
        country_a, country_b = pair[: -len(suffix)], SEA
    else:
        parts = pair.split("-")
        if len(parts) != 2 or not all(parts):
            raise ValueError(f"Ambiguous border segment id: {text!r}")
        country_a, country_b = parts

    if not country_a:
        raise ValueError(f"Invalid border segment id: {text!r}")
    return BorderSegmentId(country_a=country_a, country_b=country_b, index=int(raw_index))
