import json

import matplotlib
import numpy as np
import pytest

from SpatialTypes import Coordinate, DemandRecord, OptimizationParams, Region, make_ring

matplotlib.use("Agg")

UNIT_SQUARE = make_ring([(0, 0), (0, 1), (1, 1), (1, 0)])


@pytest.fixture
def unit_square():
    return UNIT_SQUARE


@pytest.fixture
def unit_square_region():
    return Region(
        name="UNIT SQUARE",
        centroid=Coordinate(0.5, 0.5),
        boundary=UNIT_SQUARE,
        demand_records=(DemandRecord(polygon=UNIT_SQUARE, total_count=1000, label="whole"),)
    )


@pytest.fixture
def params():
    return OptimizationParams(samples_per_record=1000, random_seed=7)


@pytest.fixture
def rng():
    return np.random.default_rng(12345)


def _square_feature(area, x0, y0, size, **props):
    ring = [[x0, y0], [x0 + size, y0], [x0 + size, y0 + size], [x0, y0 + size], [x0, y0]]
    return {
        "type": "Feature",
        "properties": {"area": area, **props},
        "geometry": {"type": "MultiPolygon", "coordinates": [[ring]]}
    }


@pytest.fixture
def data_files(tmp_path):
    """A two-municipality data directory in the layout RegionDataStore reads."""
    boundaries = {
        "type": "FeatureCollection",
        "features": [
            _square_feature("Novo Sarajevo", 18.38, 43.84, 0.04),
            _square_feature("TRNOVO", 18.40, 43.60, 0.10),
        ]
    }
    demand = {
        "type": "FeatureCollection",
        "features": [
            _square_feature("NOVO SARAJEVO", 18.385, 43.845, 0.015, totalChildren=400),
            _square_feature("NOVO SARAJEVO", 18.40, 43.86, 0.015, totalChildren=250),
            _square_feature("TRNOVO", 18.42, 43.62, 0.02, totalChildren=50),
        ]
    }
    centroids = [
        {"area": "NOVO SARAJEVO", "centroid": {"type": "Point", "coordinates": [18.40, 43.86]}},
        {"area": "TRNOVO", "centroid": {"type": "Point", "coordinates": [18.45, 43.65]}},
        {"area": "ILIDZA", "centroid": {"type": "Point", "coordinates": [18.30, 43.83]}},
    ]
    schools = [
        {"Naziv": "OS Kovacici", "Latitude": 43.85, "Longitude": 18.39},
        {"Naziv": "OS Grbavica", "Latitude": 43.855, "Longitude": 18.405},
        {"Naziv": None, "Latitude": 43.87, "Longitude": 18.41},
    ]

    files = {
        "BOUNDARIES": tmp_path / "boundaries.geojson",
        "CENTROIDS": tmp_path / "centroids.json",
        "DEMAND": tmp_path / "demand.geojson",
        "SCHOOLS": tmp_path / "schools.json",
    }
    for key, payload in (("BOUNDARIES", boundaries), ("DEMAND", demand),
                         ("CENTROIDS", centroids), ("SCHOOLS", schools)):
        files[key].write_text(json.dumps(payload), encoding="utf-8")

    return {k: str(v) for k, v in files.items()}
