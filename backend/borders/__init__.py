"""
Border segment extraction and indexing.

Turns a country topology into canonical land-border and coastline segments and serves
lookups by country, by country pair, and by segment id.
"""
from .extract import ExtractionResult, extract_border_segments
from .index import (
    BorderIndex,
    BorderIndexHandle,
    BorderIndexNotInitializedError,
    get_all_segments,
    get_border_index,
    get_segments_between,
    get_segments_for_country,
    initialize_border_index,
    reset_border_index,
)
from .types import (
    SEA,
    BorderSegment,
    BorderSegmentGeometry,
    BorderSegmentId,
    CountryRecord,
    canonical_pair,
    format_segment_id,
    parse_segment_id,
)

__all__ = [
    "SEA",
    "BorderIndex",
    "BorderIndexHandle",
    "BorderIndexNotInitializedError",
    "BorderSegment",
    "BorderSegmentGeometry",
    "BorderSegmentId",
    "CountryRecord",
    "ExtractionResult",
    "canonical_pair",
    "extract_border_segments",
    "format_segment_id",
    "get_all_segments",
    "get_border_index",
    "get_segments_between",
    "get_segments_for_country",
    "initialize_border_index",
    "parse_segment_id",
    "reset_border_index",
]
