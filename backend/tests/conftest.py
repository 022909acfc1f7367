import sys
from pathlib import Path

import pytest


# Ensure `backend/` is on sys.path so tests can import local modules
# like `borders.*`, `geo.*`, and `main`.
BACKEND_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_ROOT))

from borders.index import reset_border_index  # noqa: E402
from borders.types import CountryRecord  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_default_index():
    reset_border_index()
    yield
    reset_border_index()


@pytest.fixture
def two_country_topology():
    """
    A and B are unit squares sharing the edge x=1; every other edge is coastline.
    """
    return {
        "type": "Topology",
        "arcs": [
            [[1, 0], [1, 1]],
            [[1, 1], [0, 1], [0, 0], [1, 0]],
            [[1, 0], [2, 0], [2, 1], [1, 1]],
        ],
        "objects": {
            "countries": {
                "type": "GeometryCollection",
                "geometries": [
                    {"type": "Polygon", "id": "A", "properties": {"name": "Alpha"}, "arcs": [[0, 1]]},
                    {"type": "Polygon", "id": "B", "properties": {"name": "Beta"}, "arcs": [[2, -1]]},
                ],
            }
        },
    }


@pytest.fixture
def two_countries():
    return [
        CountryRecord(country_id="A", name="Alpha", geometry_ref="A"),
        CountryRecord(country_id="B", name="Beta", geometry_ref="B"),
    ]


@pytest.fixture
def complex_topology():
    """
    Geometries (index: id):
    0: A, 1: B      adjacent squares (one shared arc)
    2: C            island (single closed arc)
    3: D, 4: E      multipolygons whose border comes in two disjoint pieces
    5: L            enclave fully surrounded by 6
    6: Z            disputed area with no country record, L is its hole
    7: NUL          null geometry
    """
    return {
        "type": "Topology",
        "arcs": [
            [[1, 0], [1, 1]],
            [[1, 1], [0, 1], [0, 0], [1, 0]],
            [[1, 0], [2, 0], [2, 1], [1, 1]],
            [[5, 5], [6, 5], [6, 6], [5, 6], [5, 5]],
            [[11, 0], [11, 1]],
            [[11, 1], [10, 1], [10, 0], [11, 0]],
            [[11, 3], [11, 4]],
            [[11, 4], [10, 4], [10, 3], [11, 3]],
            [[11, 0], [12, 0], [12, 1], [11, 1]],
            [[11, 3], [12, 3], [12, 4], [11, 4]],
            [[20, 0], [21, 0], [21, 1], [20, 1], [20, 0]],
            [[19, -1], [22, -1], [22, 2], [19, 2], [19, -1]],
        ],
        "objects": {
            "land": {"type": "GeometryCollection", "geometries": []},
            "countries": {
                "type": "GeometryCollection",
                "geometries": [
                    {"type": "Polygon", "id": "A", "properties": {"name": "Alpha"}, "arcs": [[0, 1]]},
                    {"type": "Polygon", "id": "B", "properties": {"name": "Beta"}, "arcs": [[2, -1]]},
                    {"type": "Polygon", "id": "C", "properties": {"name": "Gamma"}, "arcs": [[3]]},
                    {"type": "MultiPolygon", "id": "D", "properties": {"name": "Delta"}, "arcs": [[[4, 5]], [[6, 7]]]},
                    {"type": "MultiPolygon", "id": "E", "properties": {"name": "Epsilon"}, "arcs": [[[8, -5]], [[9, -7]]]},
                    {"type": "Polygon", "id": "L", "properties": {"name": "Lambda"}, "arcs": [[10]]},
                    {"type": "Polygon", "properties": {"name": "Disputed"}, "arcs": [[11], [-11]]},
                    {"type": None, "id": "NUL", "properties": {"name": "Nowhere"}},
                ],
            },
        },
    }


@pytest.fixture
def complex_countries():
    return [
        CountryRecord(country_id=cid, name=name, geometry_ref=cid)
        for cid, name in [
            ("A", "Alpha"),
            ("B", "Beta"),
            ("C", "Gamma"),
            ("D", "Delta"),
            ("E", "Epsilon"),
            ("L", "Lambda"),
            ("NUL", "Nowhere"),
        ]
    ]
