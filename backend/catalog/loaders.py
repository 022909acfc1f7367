from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from borders.types import CountryRecord
from catalog.registry import get_dataset
from geo.topology import MalformedTopologyError, resolve_countries_object


@dataclass(frozen=True)
class LoadedDataset:
    dataset_id: str
    countries: list[CountryRecord]
    topology_high: dict[str, Any]
    topology_low: dict[str, Any] | None


def load_topology(path: Path) -> dict[str, Any]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict) or data.get("type") != "Topology":
        raise MalformedTopologyError(f"Not a topology document: {path}")
    return data


def countries_from_topology(topology: dict[str, Any]) -> list[CountryRecord]:
    """
    One record per feature of the country collection.

    id and geometry ref are the feature id (or name when it has none); features with
    neither are left out. Duplicate ids keep their first feature.
    """
    _key, obj = resolve_countries_object(topology)
    out: list[CountryRecord] = []
    seen: set[str] = set()
    for geom in obj["geometries"]:
        geom = geom or {}
        raw_id = geom.get("id")
        name = (geom.get("properties") or {}).get("name")
        ref = str(raw_id) if raw_id is not None else (str(name) if name is not None else None)
        if ref is None or ref in seen:
            continue
        seen.add(ref)
        out.append(
            CountryRecord(
                country_id=ref,
                name=str(name) if name is not None else ref,
                geometry_ref=ref,
            )
        )
    return out


def load_dataset(dataset_id: str) -> LoadedDataset:
    entry = get_dataset(dataset_id)
    cfg = entry.config

    topology_high = load_topology(entry.resolve(cfg.topologyHigh))
    topology_low = load_topology(entry.resolve(cfg.topologyLow)) if cfg.topologyLow else None

    if cfg.countries:
        countries = [
            CountryRecord(
                country_id=c.countryId,
                name=c.name,
                geometry_ref=c.geometryRef or c.countryId,
            )
            for c in cfg.countries
        ]
    else:
        countries = countries_from_topology(topology_high)

    return LoadedDataset(
        dataset_id=cfg.id,
        countries=countries,
        topology_high=topology_high,
        topology_low=topology_low,
    )
