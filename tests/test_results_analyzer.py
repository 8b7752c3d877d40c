import json
import os

import pytest

from GeometryKernel import haversine_km
from PlacementMapRenderer import PlacementMapRenderer
from ResultsAnalyzer import ResultsAnalyzer
from SpatialTypes import Coordinate, DemandPoint, ExistingFacility, OptimizationParams, PlacedFacility, Region, make_ring

KM_PER_DEG = haversine_km(Coordinate(0, 0), Coordinate(1, 0))
CENTER = Coordinate(0.0, 0.0)


def at_km(east_km, north_km=0.0):
    return Coordinate(east_km / KM_PER_DEG, north_km / KM_PER_DEG)


@pytest.fixture
def scenario():
    region = Region(
        name="EQUATOR",
        centroid=CENTER,
        boundary=make_ring([(-0.1, -0.1), (-0.1, 0.1), (0.1, 0.1), (0.1, -0.1)]),
    )
    demand = [
        DemandPoint(at_km(0.5), 100.0, 90.0, 0.5),
        DemandPoint(at_km(1.0), 50.0, 40.0, 1.0),
        DemandPoint(at_km(-6.0), 200.0, 30.0, 6.0),
    ]
    existing = [ExistingFacility(at_km(0, 5.0), "OS North"), ExistingFacility(at_km(1.2), "OS East")]
    placed = [PlacedFacility(at_km(0.2), 1), PlacedFacility(at_km(-1.0), 2)]
    return region, demand, existing, placed


def test_assessments_follow_commit_order(scenario, tmp_path):
    region, demand, existing, placed = scenario
    params = OptimizationParams()
    analyzer = ResultsAnalyzer(region, demand, existing, params, output_dir=str(tmp_path))

    first, second = analyzer.analyze(placed)

    assert first.site_id == 1
    assert first.placed_penalty == 0.0
    assert second.placed_penalty < 0
    assert first.score == pytest.approx(analyzer.scorer.score(placed[0].location))
    assert second.score == pytest.approx(analyzer.scorer.score(placed[1].location, placed[:1]))


def test_demand_and_distances(scenario, tmp_path):
    region, demand, existing, placed = scenario
    analyzer = ResultsAnalyzer(region, demand, existing, OptimizationParams(), output_dir=str(tmp_path))

    first, second = analyzer.analyze(placed)

    # The far point at 6 km is outside the 2.5 km coverage radius
    assert first.demand_served == pytest.approx(150.0)
    assert first.weighted_demand_served == pytest.approx(130.0)
    assert first.nearest_existing_name == "OS East"
    assert first.nearest_existing_km == pytest.approx(1.0, abs=1e-6)
    assert first.nearest_new_km == pytest.approx(1.2, abs=1e-6)
    assert first.distance_to_center_km == pytest.approx(0.2, abs=1e-6)
    assert len(first.spacing_violations) == 2
    assert second.nearest_existing_name == "OS East"


def test_no_existing_schools(scenario, tmp_path):
    region, demand, _, placed = scenario
    analyzer = ResultsAnalyzer(region, demand, [], OptimizationParams(), output_dir=str(tmp_path))

    (only,) = analyzer.analyze(placed[:1])
    assert only.nearest_existing_name is None
    assert only.nearest_new_km is None
    assert only.spacing_violations == []


def test_export_json(scenario, tmp_path):
    region, demand, existing, placed = scenario
    params = OptimizationParams(random_seed=3)
    analyzer = ResultsAnalyzer(region, demand, existing, params, output_dir=str(tmp_path))

    path = analyzer.export_json(analyzer.analyze(placed))

    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    assert data["metadata"]["region"] == "EQUATOR"
    assert data["metadata"]["n_schools"] == 2
    assert data["metadata"]["params"]["random_seed"] == 3
    assert [s["site_id"] for s in data["schools"]] == [1, 2]


def test_print_report(scenario, tmp_path, capsys):
    region, demand, existing, placed = scenario
    analyzer = ResultsAnalyzer(region, demand, existing, OptimizationParams(), output_dir=str(tmp_path))

    analyzer.print_report(analyzer.analyze(placed))

    out = capsys.readouterr().out
    assert "NEW SCHOOL #1" in out
    assert "NEW SCHOOL #2" in out
    assert "OS East" in out


def test_renderer_writes_map_and_overview(scenario, tmp_path):
    region, demand, existing, placed = scenario
    params = OptimizationParams()
    assessments = ResultsAnalyzer(region, demand, existing, params, output_dir=str(tmp_path)).analyze(placed)

    map_path, overview_path = PlacementMapRenderer(str(tmp_path)).render(
        region, demand, existing, assessments, params.coverage_radius_km)

    assert os.path.getsize(map_path) > 0
    assert os.path.getsize(overview_path) > 0
    with open(map_path, encoding="utf-8") as f:
        assert "New School #2" in f.read()


def test_renderer_without_demand(scenario, tmp_path):
    region, _, _, _ = scenario
    map_path, overview_path = PlacementMapRenderer(str(tmp_path)).render(region, [], [], [], 2.5)
    assert os.path.exists(map_path)
    assert os.path.exists(overview_path)
