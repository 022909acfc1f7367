from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Sequence

from shapely.geometry import MultiLineString
from shapely.ops import linemerge

Coord = tuple[float, float]  # (lon, lat)


class MalformedTopologyError(ValueError):
    """The topology cannot be used for border extraction."""


def resolve_countries_object(topology: Any) -> tuple[str, dict[str, Any]]:
    """
    Find the country geometry collection of an arc-indexed topology.

    Convention: the first object whose key mentions "country", else the first object.
    """
    objects = topology.get("objects") if isinstance(topology, dict) else None
    if not isinstance(objects, dict) or not objects:
        raise MalformedTopologyError("Topology has no objects")

    key = next((k for k in objects if "country" in str(k).lower()), None)
    if key is None:
        key = next(iter(objects))

    obj = objects[key]
    geometries = obj.get("geometries") if isinstance(obj, dict) else None
    if not geometries:
        raise MalformedTopologyError(f"Topology object {key!r} has no geometries")
    return str(key), obj


def decode_arcs(topology: dict[str, Any]) -> list[list[Coord]]:
    """
    Absolute coordinates for every arc.

    Quantized topologies (with a `transform`) store delta-encoded integer positions.
    """
    raw = topology.get("arcs")
    if not isinstance(raw, list):
        raise MalformedTopologyError("Topology has no arcs")

    transform = topology.get("transform")
    if not transform:
        try:
            return [[(float(p[0]), float(p[1])) for p in arc] for arc in raw]
        except (IndexError, TypeError, ValueError) as e:
            raise MalformedTopologyError("Topology has malformed arc positions") from e

    try:
        sx, sy = (float(v) for v in transform["scale"])
        tx, ty = (float(v) for v in transform["translate"])
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedTopologyError(f"Invalid topology transform: {transform!r}") from e

    out: list[list[Coord]] = []
    for ai, arc in enumerate(raw):
        x = y = 0
        pts: list[Coord] = []
        try:
            for p in arc:
                x += p[0]
                y += p[1]
                pts.append((x * sx + tx, y * sy + ty))
        except (IndexError, TypeError) as e:
            raise MalformedTopologyError(f"Arc {ai} has malformed positions") from e
        out.append(pts)
    return out


def arc_index(ref: int) -> int:
    # Negative references (~i) walk arc i backwards.
    return ~ref if ref < 0 else ref


def arc_refs(geometry: dict[str, Any] | None) -> Iterator[int]:
    """Every signed arc reference of a topology geometry, in storage order."""
    if not geometry:
        return
    gtype = geometry.get("type")
    arcs = geometry.get("arcs") or []
    if gtype == "GeometryCollection":
        for g in geometry.get("geometries") or []:
            yield from arc_refs(g)
    elif gtype == "LineString":
        yield from arcs
    elif gtype in ("MultiLineString", "Polygon"):
        for line in arcs:
            yield from line
    elif gtype == "MultiPolygon":
        for poly in arcs:
            for ring in poly:
                yield from ring


@dataclass(frozen=True)
class ArcOwnership:
    """
    Which geometries reference each arc.

    `owners[arc]` lists `(signed_ref, geometry_index)` in the order geometries were
    scanned. Mesh filters look at the first and last owner of an arc, so an arc shared by
    exactly two geometries belongs to that pair, and an arc with a single owner is part
    of that geometry's exterior boundary.
    """

    geometry_count: int
    owners: dict[int, list[tuple[int, int]]]
    _by_ends: dict[tuple[int, int], list[int]] = field(default_factory=dict, repr=False)

    @classmethod
    def from_geometries(cls, geometries: Sequence[dict[str, Any]]) -> "ArcOwnership":
        owners: dict[int, list[tuple[int, int]]] = defaultdict(list)
        for gi, geom in enumerate(geometries):
            for ref in arc_refs(geom):
                owners[arc_index(ref)].append((ref, gi))

        by_ends: dict[tuple[int, int], list[int]] = defaultdict(list)
        for arc in sorted(owners):
            refs = owners[arc]
            first, last = refs[0][1], refs[-1][1]
            by_ends[(min(first, last), max(first, last))].append(refs[0][0])

        return cls(geometry_count=len(geometries), owners=dict(owners), _by_ends=dict(by_ends))

    def neighbors(self) -> list[list[int]]:
        out: list[set[int]] = [set() for _ in range(self.geometry_count)]
        for refs in self.owners.values():
            gis = {gi for _ref, gi in refs}
            if len(gis) < 2:
                continue
            for gi in gis:
                out[gi].update(gis - {gi})
        return [sorted(s) for s in out]

    def shared_arcs(self, i: int, j: int) -> list[int]:
        """Arcs bordering precisely geometries `i` and `j`, in ascending arc order."""
        if i == j:
            return []
        return list(self._by_ends.get((min(i, j), max(i, j)), []))

    def exterior_arcs(self, i: int) -> list[int]:
        """Arcs bordering geometry `i` and no other geometry."""
        return list(self._by_ends.get((i, i), []))


def neighbors(geometries: Sequence[dict[str, Any]]) -> list[list[int]]:
    """Sorted adjacency lists: geometries are adjacent when they share an arc."""
    return ArcOwnership.from_geometries(geometries).neighbors()


def stitch_lines(arcs: Sequence[Sequence[Coord]], refs: Iterable[int]) -> list[list[Coord]]:
    """
    Decode the referenced arcs and merge them into maximal line strings.

    Disjoint pieces (enclaves, multi-part borders) come back as separate lines.
    """
    lines: list[list[Coord]] = []
    for ref in refs:
        pts = list(arcs[arc_index(ref)])
        if ref < 0:
            pts.reverse()
        if len(set(pts)) < 2:
            continue
        lines.append(pts)
    if not lines:
        return []

    merged = linemerge(MultiLineString(lines))
    if merged.is_empty:
        return []
    parts = list(merged.geoms) if hasattr(merged, "geoms") else [merged]
    return [[(float(c[0]), float(c[1])) for c in g.coords] for g in parts if not g.is_empty]


def _line_coords(arcs: Sequence[Sequence[Coord]], refs: Iterable[int]) -> list[Coord]:
    points: list[Coord] = []
    for ref in refs:
        pts = list(arcs[arc_index(ref)])
        if ref < 0:
            pts.reverse()
        # Consecutive arcs share their junction vertex.
        points.extend(pts[1:] if points else pts)
    return points


def _ring_coords(arcs: Sequence[Sequence[Coord]], refs: Iterable[int]) -> list[Coord]:
    points = _line_coords(arcs, refs)
    if points and len(points) < 4:
        points.append(points[0])
    return points


def _position(p: Sequence[float], transform: dict[str, Any] | None) -> Coord:
    if not transform:
        return (float(p[0]), float(p[1]))
    sx, sy = transform["scale"]
    tx, ty = transform["translate"]
    return (p[0] * sx + tx, p[1] * sy + ty)


def feature_geometry(
    geometry: dict[str, Any] | None,
    arcs: Sequence[Sequence[Coord]],
    transform: dict[str, Any] | None = None,
) -> dict[str, Any] | None:
    """
    GeoJSON-like geometry for one topology geometry, or None for null geometries.
    """
    if not geometry:
        return None
    gtype = geometry.get("type")
    a = geometry.get("arcs") or []

    if gtype == "Polygon":
        return {"type": gtype, "coordinates": [_ring_coords(arcs, r) for r in a]}
    if gtype == "MultiPolygon":
        return {
            "type": gtype,
            "coordinates": [[_ring_coords(arcs, r) for r in poly] for poly in a],
        }
    if gtype == "LineString":
        return {"type": gtype, "coordinates": _line_coords(arcs, a)}
    if gtype == "MultiLineString":
        return {"type": gtype, "coordinates": [_line_coords(arcs, l) for l in a]}
    if gtype == "Point":
        return {"type": gtype, "coordinates": _position(geometry["coordinates"], transform)}
    if gtype == "MultiPoint":
        return {
            "type": gtype,
            "coordinates": [_position(p, transform) for p in geometry.get("coordinates") or []],
        }
    if gtype == "GeometryCollection":
        parts = [feature_geometry(g, arcs, transform) for g in geometry.get("geometries") or []]
        return {"type": gtype, "geometries": [p for p in parts if p is not None]}
    return None
