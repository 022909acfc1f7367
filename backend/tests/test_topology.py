from __future__ import annotations

import pytest

from geo.topology import (
    ArcOwnership,
    MalformedTopologyError,
    arc_refs,
    decode_arcs,
    feature_geometry,
    neighbors,
    resolve_countries_object,
    stitch_lines,
)


def test_resolve_prefers_country_like_object(complex_topology):
    key, obj = resolve_countries_object(complex_topology)
    assert key == "countries"
    assert len(obj["geometries"]) == 8


def test_resolve_falls_back_to_first_object(two_country_topology):
    topo = dict(two_country_topology)
    topo["objects"] = {"admin0": two_country_topology["objects"]["countries"]}
    key, _obj = resolve_countries_object(topo)
    assert key == "admin0"


@pytest.mark.parametrize(
    "topology",
    [
        None,
        {"type": "Topology", "arcs": []},
        {"type": "Topology", "arcs": [], "objects": {}},
        {"type": "Topology", "arcs": [], "objects": {"countries": {"type": "GeometryCollection"}}},
        {"type": "Topology", "arcs": [], "objects": {"countries": {"geometries": []}}},
    ],
)
def test_resolve_rejects_malformed_topologies(topology):
    with pytest.raises(MalformedTopologyError):
        resolve_countries_object(topology)


def test_decode_arcs_without_transform_keeps_coordinates(two_country_topology):
    arcs = decode_arcs(two_country_topology)
    assert arcs[0] == [(1.0, 0.0), (1.0, 1.0)]


def test_decode_arcs_delta_decodes_quantized_positions():
    topo = {
        "type": "Topology",
        "transform": {"scale": [0.5, 0.25], "translate": [-10, 20]},
        "arcs": [[[0, 0], [2, 0], [0, 4]], [[4, 4], [-2, 0]]],
        "objects": {},
    }
    arcs = decode_arcs(topo)
    assert arcs[0] == [(-10.0, 20.0), (-9.0, 20.0), (-9.0, 21.0)]
    assert arcs[1] == [(-8.0, 21.0), (-9.0, 21.0)]


def test_arc_refs_flattens_every_geometry_type():
    assert list(arc_refs({"type": "LineString", "arcs": [0, -2]})) == [0, -2]
    assert list(arc_refs({"type": "Polygon", "arcs": [[0, 1], [-3]]})) == [0, 1, -3]
    assert list(arc_refs({"type": "MultiPolygon", "arcs": [[[4, 5]], [[6, 7]]]})) == [4, 5, 6, 7]
    assert list(arc_refs({"type": None})) == []
    collection = {
        "type": "GeometryCollection",
        "geometries": [{"type": "LineString", "arcs": [3]}, {"type": "Point", "coordinates": [0, 0]}],
    }
    assert list(arc_refs(collection)) == [3]


def test_neighbors_share_arcs(complex_topology):
    geoms = complex_topology["objects"]["countries"]["geometries"]
    adj = neighbors(geoms)
    assert adj[0] == [1]
    assert adj[1] == [0]
    assert adj[2] == []
    assert adj[3] == [4]
    assert adj[5] == [6]
    assert adj[7] == []


def test_arc_ownership_splits_shared_and_exterior_arcs(complex_topology):
    geoms = complex_topology["objects"]["countries"]["geometries"]
    own = ArcOwnership.from_geometries(geoms)
    assert own.shared_arcs(0, 1) == [0]
    assert own.shared_arcs(1, 0) == [0]
    assert own.shared_arcs(3, 4) == [4, 6]
    assert own.shared_arcs(0, 0) == []
    assert own.exterior_arcs(0) == [1]
    assert own.exterior_arcs(3) == [5, 7]
    # The enclave's only arc is shared with the surrounding geometry.
    assert own.exterior_arcs(5) == []
    assert own.exterior_arcs(6) == [11]


def test_stitch_lines_merges_consecutive_arcs():
    arcs = [
        [(0.0, 0.0), (1.0, 0.0)],
        [(1.0, 0.0), (2.0, 0.0), (2.0, 1.0)],
        [(5.0, 5.0), (6.0, 5.0)],
    ]
    lines = stitch_lines(arcs, [0, 1, 2])
    assert len(lines) == 2
    merged = next(line for line in lines if len(line) == 4)
    assert {merged[0], merged[-1]} == {(0.0, 0.0), (2.0, 1.0)}


def test_stitch_lines_follows_reversed_references():
    arcs = [[(0.0, 0.0), (1.0, 0.0)], [(2.0, 0.0), (1.0, 0.0)]]
    lines = stitch_lines(arcs, [0, ~1])
    assert len(lines) == 1
    assert set(lines[0]) == {(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)}


def test_stitch_lines_drops_degenerate_arcs():
    arcs = [[(1.0, 1.0), (1.0, 1.0)]]
    assert stitch_lines(arcs, [0]) == []
    assert stitch_lines(arcs, []) == []


def test_feature_geometry_builds_closed_rings(two_country_topology):
    arcs = decode_arcs(two_country_topology)
    geoms = two_country_topology["objects"]["countries"]["geometries"]
    b = feature_geometry(geoms[1], arcs)
    assert b["type"] == "Polygon"
    ring = b["coordinates"][0]
    assert ring == [(1.0, 0.0), (2.0, 0.0), (2.0, 1.0), (1.0, 1.0), (1.0, 0.0)]


def test_feature_geometry_handles_multipolygons_and_nulls(complex_topology):
    arcs = decode_arcs(complex_topology)
    geoms = complex_topology["objects"]["countries"]["geometries"]
    d = feature_geometry(geoms[3], arcs)
    assert d["type"] == "MultiPolygon"
    assert len(d["coordinates"]) == 2
    assert feature_geometry(geoms[7], arcs) is None


def test_feature_geometry_applies_transform_to_points():
    point = {"type": "Point", "coordinates": [2, 4]}
    transform = {"scale": [0.5, 0.25], "translate": [-10, 20]}
    assert feature_geometry(point, [], transform) == {"type": "Point", "coordinates": (-9.0, 21.0)}


@pytest.mark.parametrize("arcs", [[[[175]]], [[[1, 2], None]], [[[1, "b"]]]])
def test_decode_arcs_rejects_malformed_positions(arcs):
    with pytest.raises(MalformedTopologyError):
        decode_arcs({"type": "Topology", "arcs": arcs, "objects": {}})
    quantized = {"type": "Topology", "transform": {"scale": [1, 1], "translate": [0, 0]}, "arcs": arcs}
    with pytest.raises(MalformedTopologyError):
        decode_arcs(quantized)
