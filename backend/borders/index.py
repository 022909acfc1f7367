from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Sequence

from shapely.geometry import LineString
from shapely.geometry import box as shapely_box
from shapely.strtree import STRtree

from borders.config import BorderSettings
from borders.extract import ExtractionResult, extract_border_segments
from borders.matching import CountryMatcher
from borders.types import SEA, BorderSegment, CountryId, CountryRecord, canonical_pair
from geo.aoi import BBox

logger = logging.getLogger(__name__)


class BorderIndexNotInitializedError(RuntimeError):
    def __init__(self, message: str = "Border index not initialized. Call initialize_border_index first."):
        super().__init__(message)


@dataclass
class BorderIndex:
    """
    Lookup structures over a finalized segment list.

    Built once by `build_border_index`; never mutated afterwards, so concurrent readers
    need no locking.
    """

    segments: list[BorderSegment]
    by_country: dict[CountryId, list[BorderSegment]]
    # keyed on the canonical (country_a, country_b) tuple; ids may contain "-"
    by_pair: dict[tuple[CountryId, CountryId], list[BorderSegment]]
    by_id: dict[str, BorderSegment]
    # the extraction run this index was built from, published together with it
    extraction: ExtractionResult | None = field(default=None, repr=False)

    # hi-res lines in segment-list order, for bbox queries
    _tree: STRtree | None = field(default=None, repr=False)

    def segments_for_country(self, country_id: CountryId) -> list[BorderSegment]:
        return list(self.by_country.get(country_id, []))

    def segments_between(self, a: CountryId, b: CountryId) -> list[BorderSegment]:
        if a == SEA:
            a, b = b, a
        pair = canonical_pair(a, b)
        return list(self.by_pair.get((pair.a, pair.b), []))

    def segment(self, segment_id: str) -> BorderSegment | None:
        return self.by_id.get(segment_id)

    def countries(self) -> list[CountryId]:
        return sorted(self.by_country.keys())

    def segments_in_bbox(self, aoi: BBox) -> list[BorderSegment]:
        if self._tree is None:
            return []
        bbox = shapely_box(*aoi.normalized().as_tuple())
        idxs = _to_int_list(self._tree.query(bbox, predicate="intersects"))
        return [self.segments[i] for i in sorted(idxs)]


def build_border_index(
    segments: Sequence[BorderSegment], extraction: ExtractionResult | None = None
) -> BorderIndex:
    """Scan the segment list once to build the per-country and per-pair maps."""
    segs = list(segments)
    by_country: dict[CountryId, list[BorderSegment]] = {}
    by_pair: dict[tuple[CountryId, CountryId], list[BorderSegment]] = {}
    by_id: dict[str, BorderSegment] = {}

    for seg in segs:
        by_country.setdefault(seg.country_a, []).append(seg)
        if seg.country_b != SEA:
            by_country.setdefault(seg.country_b, []).append(seg)
        by_pair.setdefault((seg.country_a, seg.country_b), []).append(seg)
        if seg.segment_id in by_id:
            raise ValueError(f"Duplicate border segment id: {seg.segment_id}")
        by_id[seg.segment_id] = seg

    lines = [LineString(seg.geometry.hi_res) for seg in segs]
    return BorderIndex(
        segments=segs,
        by_country=by_country,
        by_pair=by_pair,
        by_id=by_id,
        extraction=extraction,
        _tree=STRtree(lines) if lines else None,
    )


class BorderIndexHandle:
    """
    Owns the most recently built index.

    `initialize` builds a complete index before publishing it, so readers only ever see
    a finished index. Each call fully replaces the previous one.
    """

    def __init__(self) -> None:
        self._index: BorderIndex | None = None
        self._lock = threading.RLock()

    def initialize(
        self,
        countries: Sequence[CountryRecord],
        topology_high: dict[str, Any],
        topology_low: dict[str, Any] | None = None,
        *,
        matcher: CountryMatcher | None = None,
        settings: BorderSettings | None = None,
    ) -> BorderIndex:
        result = extract_border_segments(
            countries, topology_high, topology_low, matcher=matcher, settings=settings
        )
        index = build_border_index(result.segments, result)
        with self._lock:
            self._index = index
        logger.info(
            "Published border index: %d segments, %d countries, %d pairs",
            len(index.segments),
            len(index.by_country),
            len(index.by_pair),
        )
        return index

    @property
    def initialized(self) -> bool:
        return self._index is not None

    @property
    def last_extraction(self) -> ExtractionResult | None:
        index = self._index
        return index.extraction if index is not None else None

    def get(self) -> BorderIndex:
        index = self._index
        if index is None:
            raise BorderIndexNotInitializedError()
        return index

    def all_segments(self) -> list[BorderSegment]:
        return list(self.get().segments)

    def segments_for_country(self, country_id: CountryId) -> list[BorderSegment]:
        return self.get().segments_for_country(country_id)

    def segments_between(self, a: CountryId, b: CountryId) -> list[BorderSegment]:
        return self.get().segments_between(a, b)

    def reset(self) -> None:
        with self._lock:
            self._index = None


_DEFAULT_HANDLE = BorderIndexHandle()


def default_handle() -> BorderIndexHandle:
    return _DEFAULT_HANDLE


def initialize_border_index(
    countries: Sequence[CountryRecord],
    topology_high: dict[str, Any],
    topology_low: dict[str, Any] | None = None,
    *,
    matcher: CountryMatcher | None = None,
    settings: BorderSettings | None = None,
) -> BorderIndex:
    return _DEFAULT_HANDLE.initialize(
        countries, topology_high, topology_low, matcher=matcher, settings=settings
    )


def get_border_index() -> BorderIndex:
    return _DEFAULT_HANDLE.get()


def get_all_segments() -> list[BorderSegment]:
    return _DEFAULT_HANDLE.all_segments()


def get_segments_for_country(country_id: CountryId) -> list[BorderSegment]:
    return _DEFAULT_HANDLE.segments_for_country(country_id)


def get_segments_between(a: CountryId, b: CountryId) -> list[BorderSegment]:
    return _DEFAULT_HANDLE.segments_between(a, b)


def reset_border_index() -> None:
    _DEFAULT_HANDLE.reset()


def _to_int_list(idxs: Any) -> list[int]:
    if idxs is None:
        return []
    return [int(i) for i in idxs]
