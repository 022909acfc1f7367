from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Iterator, Sequence, Union

from borders.config import BorderSettings, load_settings
from borders.matching import CountryMatcher, FirstMatchCountryMatcher, GeometryDescriptor
from borders.types import (
    SEA,
    BorderSegment,
    BorderSegmentGeometry,
    BorderSegmentId,
    CountryId,
    CountryRecord,
    Coords,
    canonical_pair,
    format_segment_id,
)
from geo.ops import coords_in_range, line_length_km
from geo.topology import (
    ArcOwnership,
    MalformedTopologyError,
    arc_index,
    arc_refs,
    decode_arcs,
    feature_geometry,
    resolve_countries_object,
    stitch_lines,
)
from lod.simplify import count_line_vertices, simplify_line

logger = logging.getLogger(__name__)


class SkipReason(str, Enum):
    unmatched_geometry = "unmatched_geometry"
    same_country = "same_country"
    degenerate_line = "degenerate_line"
    empty_geometry = "empty_geometry"
    out_of_range = "out_of_range"


@dataclass(frozen=True)
class SegmentProduced:
    segment: BorderSegment


@dataclass(frozen=True)
class Skipped:
    reason: SkipReason
    detail: str


# Fatal problems are not outcomes: they raise MalformedTopologyError.
ExtractionOutcome = Union[SegmentProduced, Skipped]


@dataclass(frozen=True)
class ExtractionResult:
    segments: list[BorderSegment]
    skipped: list[Skipped] = field(default_factory=list)
    # Countries whose coastline came from their own polygon rings.
    fallback_countries: list[CountryId] = field(default_factory=list)


class _SegmentFactory:
    """Allocates per-pair indices and derives length and low-res geometry."""

    def __init__(self, tolerance: float):
        self.tolerance = tolerance
        self._counters: dict[str, int] = {}

    def create(self, country_a: CountryId, country_b: CountryId, coords: Coords) -> ExtractionOutcome:
        if len(coords) < 2:
            return Skipped(
                SkipReason.degenerate_line,
                f"{country_a}-{country_b}: {len(coords)} point(s)",
            )
        if not coords_in_range(coords):
            return Skipped(
                SkipReason.out_of_range,
                f"{country_a}-{country_b}: coordinates outside lon/lat range",
            )

        # Only emitted lines allocate an index, so indices stay contiguous from 0.
        # Counters follow the formatted key so segment ids never collide.
        pair = canonical_pair(country_a, country_b)
        idx = self._counters.get(pair.key, 0)
        self._counters[pair.key] = idx + 1

        hi_res = [(float(lon), float(lat)) for lon, lat in coords]
        sid = BorderSegmentId(country_a=pair.a, country_b=pair.b, index=idx)
        segment = BorderSegment(
            id=sid,
            country_a=pair.a,
            country_b=pair.b,
            geometry=BorderSegmentGeometry(
                hi_res=hi_res,
                low_res=simplify_line(hi_res, self.tolerance),
            ),
            length_km=line_length_km(hi_res),
            segment_id=format_segment_id(sid),
            is_maritime=pair.b == SEA,
        )
        return SegmentProduced(segment)


class BorderExtractor:
    """
    Derives land borders and coastlines from the country collection of one topology.

    Discovery order: land borders for each adjacent geometry pair (lower index first),
    then coastlines per geometry. Both orders are deterministic for a given topology.
    """

    def __init__(
        self,
        countries: Iterable[CountryRecord],
        topology: dict[str, Any],
        *,
        matcher: CountryMatcher | None = None,
        settings: BorderSettings | None = None,
    ):
        self.countries = list(countries)
        self.topology = topology
        self.matcher = matcher or FirstMatchCountryMatcher()
        self.settings = settings or load_settings()

        self.object_key, obj = resolve_countries_object(topology)
        self.geometries: list[dict[str, Any]] = [g or {} for g in obj["geometries"]]
        self.arcs = decode_arcs(topology)
        self._check_arc_refs()
        self.ownership = ArcOwnership.from_geometries(self.geometries)

        self.fallback_countries: list[CountryId] = []
        self._factory = _SegmentFactory(self.settings.simplify_tolerance)

    def _check_arc_refs(self) -> None:
        n = len(self.arcs)
        for gi, geom in enumerate(self.geometries):
            if not isinstance(geom, dict):
                raise MalformedTopologyError(
                    f"Geometry {gi} of {self.object_key!r} is not an object: {type(geom).__name__}"
                )
            try:
                refs = list(arc_refs(geom))
            except (AttributeError, TypeError) as e:
                raise MalformedTopologyError(
                    f"Geometry {gi} of {self.object_key!r} has malformed arcs"
                ) from e
            for ref in refs:
                if not isinstance(ref, int) or arc_index(ref) >= n:
                    raise MalformedTopologyError(
                        f"Geometry {gi} of {self.object_key!r} references missing arc {ref!r}"
                    )

    def match_geometries(self) -> Iterator[tuple[int, CountryRecord | None, GeometryDescriptor]]:
        for gi, geom in enumerate(self.geometries):
            desc = GeometryDescriptor.from_geometry(gi, geom)
            yield gi, self.matcher.match(desc, self.countries), desc

    def outcomes(self) -> Iterator[ExtractionOutcome]:
        matched: dict[int, CountryRecord] = {}
        for gi, country, desc in self.match_geometries():
            if country is None:
                yield Skipped(SkipReason.unmatched_geometry, f"geometry {gi} ({desc.ref!r})")
            else:
                matched[gi] = country

        adjacency = self.ownership.neighbors()
        yield from self._land_borders(matched, adjacency)
        yield from self._coastlines(matched, adjacency)

    def _land_borders(
        self, matched: dict[int, CountryRecord], adjacency: list[list[int]]
    ) -> Iterator[ExtractionOutcome]:
        for i, adj in enumerate(adjacency):
            country_a = matched.get(i)
            if country_a is None:
                continue
            for j in adj:
                if j < i:
                    continue  # each unordered pair once
                country_b = matched.get(j)
                if country_b is None:
                    continue
                if country_b.country_id == country_a.country_id:
                    yield Skipped(
                        SkipReason.same_country,
                        f"geometries {i} and {j} both map to {country_a.country_id}",
                    )
                    continue
                for line in stitch_lines(self.arcs, self.ownership.shared_arcs(i, j)):
                    yield self._factory.create(country_a.country_id, country_b.country_id, line)

    def _coastlines(
        self, matched: dict[int, CountryRecord], adjacency: list[list[int]]
    ) -> Iterator[ExtractionOutcome]:
        for gi in sorted(matched):
            country_id = matched[gi].country_id
            lines = stitch_lines(self.arcs, self.ownership.exterior_arcs(gi))
            if lines:
                for line in lines:
                    yield self._factory.create(country_id, SEA, line)
                continue

            if self.settings.coastline_fallback == "isolated" and adjacency[gi]:
                continue

            rings = self._exterior_rings(gi)
            if not rings:
                yield Skipped(SkipReason.empty_geometry, f"geometry {gi} of {country_id} has no rings")
                continue

            logger.debug(
                "No exterior arcs for %s (geometry %d); using %d polygon ring(s) as coastline",
                country_id,
                gi,
                len(rings),
            )
            self.fallback_countries.append(country_id)
            for ring in rings:
                yield self._factory.create(country_id, SEA, ring)

    def _exterior_rings(self, gi: int) -> list[Coords]:
        geo = feature_geometry(self.geometries[gi], self.arcs, self.topology.get("transform"))
        if geo is None:
            return []
        if geo["type"] == "Polygon":
            polys = [geo["coordinates"]]
        elif geo["type"] == "MultiPolygon":
            polys = geo["coordinates"]
        else:
            return []
        return [poly[0] for poly in polys if poly]


def extract_border_segments(
    countries: Sequence[CountryRecord],
    topology_high: dict[str, Any],
    topology_low: dict[str, Any] | None = None,
    *,
    matcher: CountryMatcher | None = None,
    settings: BorderSettings | None = None,
) -> ExtractionResult:
    """
    Build canonical border segments (land borders and coastlines) from a topology.

    Both detail tiers come from `topology_high`: hi-res is the stitched arc geometry and
    low-res is its Douglas-Peucker simplification. `topology_low` is accepted for callers
    that load both atlases but is not needed to produce either tier.

    Raises MalformedTopologyError when the topology has no usable country collection.
    Unmatched geometries and degenerate lines are skipped and reported in the result.
    """
    extractor = BorderExtractor(countries, topology_high, matcher=matcher, settings=settings)
    if topology_low is not None:
        logger.debug("Low-detail topology supplied; low-res tier is simplified from high-detail arcs")

    segments: list[BorderSegment] = []
    skipped: list[Skipped] = []
    for outcome in extractor.outcomes():
        if isinstance(outcome, SegmentProduced):
            segments.append(outcome.segment)
        else:
            skipped.append(outcome)
            logger.debug("Skipped %s: %s", outcome.reason.value, outcome.detail)

    logger.info(
        "Extracted %d border segments from %r (%d geometries, %d skipped, %d coastline fallbacks); "
        "vertices hi=%d low=%d",
        len(segments),
        extractor.object_key,
        len(extractor.geometries),
        len(skipped),
        len(extractor.fallback_countries),
        count_line_vertices(s.geometry.hi_res for s in segments),
        count_line_vertices(s.geometry.low_res or [] for s in segments),
    )
    return ExtractionResult(
        segments=segments,
        skipped=skipped,
        fallback_countries=list(extractor.fallback_countries),
    )
