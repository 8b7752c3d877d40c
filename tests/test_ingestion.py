import json

import pandas as pd
import pytest

from PlacementErrors import DataFormatError
from PopulationSheetParser import EDUCATION_FIELDS, PopulationSheetParser, parse_cell_value, school_age_totals
from SchoolDataTransformer import SchoolDataTransformer


def _sheet_row(area, age, sex, total, education=None):
    education = education or ["-"] * len(EDUCATION_FIELDS)
    return [None, area, age, sex, total] + list(education)


@pytest.fixture
def census_workbook(tmp_path):
    width = 5 + len(EDUCATION_FIELDS)
    rows = [["Census 2013"] + [None] * (width - 1) for _ in range(6)]

    primary = ["3", "10", "100", "7"] + ["0"] * (len(EDUCATION_FIELDS) - 4)
    rows += [
        _sheet_row("CENTAR", "7", "Ukupno", "120", primary),        # row 7
        _sheet_row("CENTAR", "7", "Muško", "60"),
        _sheet_row("CENTAR", "7", "Žensko", "60"),
        _sheet_row("CENTAR", "10-14", "Ukupno", "300"),             # row 10
        _sheet_row("CENTAR", "10-14", "Muško", "150"),
        _sheet_row("CENTAR", "10-14", "Žensko", "150"),
        _sheet_row("CENTAR", "abc", "Ukupno", "5"),                 # row 13: bad age
        _sheet_row("CENTAR", "abc", "Muško", "2"),
        _sheet_row("CENTAR", "abc", "Žensko", "3"),
        _sheet_row("ILIDŽA", "8", "Muško", "40"),                   # row 16: not a total row
        _sheet_row("ILIDŽA", "8", "Muško", "20"),
        _sheet_row("ILIDŽA", "8", "Žensko", "20"),
        _sheet_row("ILIDŽA", "20", "Ukupno", "900"),                # row 19
        _sheet_row("ILIDŽA", "20", "Muško", "450"),
        _sheet_row("ILIDŽA", "20", "Žensko", "450"),
        _sheet_row(None, "9", "Ukupno", "11"),                      # row 22: no area
    ]
    path = tmp_path / "census.xlsx"
    pd.DataFrame(rows).to_excel(path, header=False, index=False)
    return str(path)


def test_population_sheet_keeps_total_rows(census_workbook):
    locations = PopulationSheetParser().parse(census_workbook)
    by_area = {loc["area"]: loc["ages"] for loc in locations}

    assert set(by_area) == {"CENTAR", "ILIDŽA"}
    assert [g["age"] for g in by_area["CENTAR"]] == [7, 10]
    assert by_area["CENTAR"][1]["age_label"] == "10-14"
    assert by_area["CENTAR"][0]["total"] == 120
    assert by_area["CENTAR"][0]["education"]["primary"] == 100
    assert by_area["CENTAR"][1]["education"]["primary"] == 0
    assert [g["age"] for g in by_area["ILIDŽA"]] == [20]


def test_school_age_totals(census_workbook):
    locations = PopulationSheetParser().parse(census_workbook)
    assert school_age_totals(locations, 6, 14) == {"CENTAR": 420, "ILIDŽA": 0}


def test_population_export_round_trips(census_workbook, tmp_path):
    parser = PopulationSheetParser()
    locations = parser.parse(census_workbook)
    out = tmp_path / "out" / "population.json"
    parser.export(locations, str(out))
    assert json.loads(out.read_text(encoding="utf-8")) == locations


def test_missing_workbook(tmp_path):
    with pytest.raises(DataFormatError):
        PopulationSheetParser().parse(str(tmp_path / "missing.xlsx"))


@pytest.mark.parametrize("text, expected", [("", 0), ("-", 0), ("12", 12), ("x1", 0)])
def test_parse_cell_value(text, expected):
    assert parse_cell_value(text) == expected


@pytest.fixture
def osm_export(tmp_path):
    data = {
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "properties": {"name": "OŠ Kovačići"},
             "geometry": {"type": "Point", "coordinates": [18.39, 43.85]}},
            {"type": "Feature", "properties": {},
             "geometry": {"type": "Point", "coordinates": [18.41, 43.86]}},
            {"type": "Feature", "properties": {"name": "Footprint"},
             "geometry": {"type": "Polygon", "coordinates": [[[18.4, 43.8], [18.5, 43.8], [18.5, 43.9]]]}},
            {"type": "Feature", "properties": {"name": "Null Island"},
             "geometry": {"type": "Point", "coordinates": [0, 43.9]}},
            {"type": "Feature", "properties": {"name": "No geometry"}, "geometry": None},
        ]
    }
    path = tmp_path / "export.geojson"
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def test_school_transformer_keeps_points(osm_export):
    schools = SchoolDataTransformer().transform(osm_export)

    assert [s["Naziv"] for s in schools] == ["OŠ Kovačići", "Unknown", "Null Island"]
    assert schools[0] == {"Naziv": "OŠ Kovačići", "Latitude": 43.85, "Longitude": 18.39}


def test_school_transformer_flags_incomplete(osm_export):
    transformer = SchoolDataTransformer()
    incomplete = transformer.incomplete_records(transformer.transform(osm_export))
    assert [s["Naziv"] for s in incomplete] == ["Null Island"]


def test_school_transformer_without_features():
    assert SchoolDataTransformer().simplify({"type": "FeatureCollection"}) == []
    assert SchoolDataTransformer().simplify([]) == []
