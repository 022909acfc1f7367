from __future__ import annotations

from pydantic import BaseModel, Field


class DatasetCountry(BaseModel):
    countryId: str
    name: str
    # Defaults to countryId when omitted.
    geometryRef: str | None = None


class DatasetConfig(BaseModel):
    """
    One topology dataset on disk (`datasets/<id>/dataset.yaml`).

    Paths are relative to the dataset.yaml directory.
    """

    id: str
    title: str
    enabled: bool = True
    topologyHigh: str
    topologyLow: str | None = None
    # Explicit country list; when omitted countries are derived from topology features.
    countries: list[DatasetCountry] | None = None
    defaultZoom: float = Field(default=1.0, ge=0.0, le=24.0)
