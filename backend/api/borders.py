from __future__ import annotations

import json

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from borders.index import BorderIndex, BorderIndexHandle, BorderIndexNotInitializedError
from borders.types import BorderSegment
from catalog.loaders import load_dataset
from catalog.registry import list_datasets
from catalog.types import DatasetConfig
from geo.aoi import BBox
from geo.topology import MalformedTopologyError
from lod.policy import DetailTier, geometry_for_zoom, select_tier

router = APIRouter()

# The index the HTTP surface serves; replaced wholesale by /borders/initialize.
HANDLE = BorderIndexHandle()


class InitializeRequest(BaseModel):
    datasetId: str


class InitializeResponse(BaseModel):
    datasetId: str
    segmentCount: int
    countryCount: int
    pairCount: int
    skippedCount: int
    fallbackCountries: list[str]


class SegmentOut(BaseModel):
    segmentId: str
    countryA: str
    countryB: str
    index: int
    lengthKm: float
    isMaritime: bool
    tier: DetailTier
    coords: list[tuple[float, float]]


def _segment_out(seg: BorderSegment, zoom: float) -> SegmentOut:
    return SegmentOut(
        segmentId=seg.segment_id,
        countryA=seg.country_a,
        countryB=seg.country_b,
        index=seg.id.index,
        lengthKm=round(seg.length_km, 3),
        isMaritime=seg.is_maritime,
        tier=select_tier(zoom),
        coords=geometry_for_zoom(seg, zoom),
    )


def _index() -> BorderIndex:
    try:
        return HANDLE.get()
    except BorderIndexNotInitializedError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e


@router.get("/datasets")
def get_datasets() -> list[DatasetConfig]:
    return list_datasets()


@router.post("/borders/initialize")
def initialize(body: InitializeRequest) -> InitializeResponse:
    try:
        ds = load_dataset(body.datasetId)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=f"Unknown dataset: {body.datasetId}") from e
    except (MalformedTopologyError, json.JSONDecodeError, OSError) as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    try:
        index = HANDLE.initialize(ds.countries, ds.topology_high, ds.topology_low)
    except MalformedTopologyError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    extraction = index.extraction
    return InitializeResponse(
        datasetId=ds.dataset_id,
        segmentCount=len(index.segments),
        countryCount=len(index.by_country),
        pairCount=len(index.by_pair),
        skippedCount=len(extraction.skipped) if extraction else 0,
        fallbackCountries=list(extraction.fallback_countries) if extraction else [],
    )


@router.get("/borders/segments")
def get_segments(
    zoom: float = Query(default=3.0, ge=0.0),
    bbox: str | None = Query(default=None, description="minLon,minLat,maxLon,maxLat"),
) -> list[SegmentOut]:
    index = _index()
    if bbox is None:
        segments = index.segments
    else:
        try:
            aoi = BBox.parse(bbox)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e
        segments = index.segments_in_bbox(aoi)
    return [_segment_out(s, zoom) for s in segments]


@router.get("/borders/segments/{segment_id}")
def get_segment(segment_id: str, zoom: float = Query(default=3.0, ge=0.0)) -> SegmentOut:
    seg = _index().segment(segment_id)
    if seg is None:
        raise HTTPException(status_code=404, detail=f"Unknown border segment: {segment_id}")
    return _segment_out(seg, zoom)


@router.get("/borders/countries/{country_id}")
def get_country_segments(
    country_id: str, zoom: float = Query(default=3.0, ge=0.0)
) -> list[SegmentOut]:
    return [_segment_out(s, zoom) for s in _index().segments_for_country(country_id)]


@router.get("/borders/between/{a}/{b}")
def get_pair_segments(a: str, b: str, zoom: float = Query(default=3.0, ge=0.0)) -> list[SegmentOut]:
    return [_segment_out(s, zoom) for s in _index().segments_between(a, b)]
