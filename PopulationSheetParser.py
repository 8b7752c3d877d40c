import json
import logging
import os
from typing import Dict, List

import pandas as pd

from config import CONFIG
from PlacementErrors import DataFormatError

EDUCATION_FIELDS = [
    "not_attending", "preschool", "primary", "secondary", "post_secondary",
    "higher", "basic_academic", "specialist", "masters", "doctoral",
    "first_cycle", "second_cycle", "integrated_cycle", "third_cycle",
]

# Zero-based sheet columns: B area, C age, D sex, E total, F..S education
COL_AREA, COL_AGE, COL_SEX, COL_TOTAL = 1, 2, 3, 4
COL_EDUCATION = 5


class PopulationSheetParser:
    """
    Reads the census workbook into per-area age groups.

    Every age group occupies three rows (total, male, female); only the
    total row is kept.
    """
    def __init__(self, settings=None):
        settings = settings or CONFIG["INGESTION"]
        self.first_row = settings["SHEET_FIRST_ROW"]
        self.row_step = settings["SHEET_ROW_STEP"]
        self.total_marker = settings["TOTAL_MARKER"]

    def parse(self, path) -> List[dict]:
        logging.info("=" * 80)
        logging.info("POPULATION SHEET INGESTION")
        logging.info("=" * 80)

        if not os.path.exists(path):
            raise DataFormatError(f"Workbook not found: {path}")
        sheet = pd.read_excel(path, sheet_name=0, header=None, dtype=object)
        logging.info(f"   Loaded worksheet with {len(sheet)} rows")

        locations = {}
        for row_no in range(self.first_row, len(sheet) + 1, self.row_step):
            row = sheet.iloc[row_no - 1]
            area = _cell_text(row, COL_AREA)
            age_label = _cell_text(row, COL_AGE)
            sex = _cell_text(row, COL_SEX)
            total = _cell_text(row, COL_TOTAL)

            if not area:
                logging.debug(f"   Row {row_no}: skipped, no area in column B")
                continue
            if not age_label or self.total_marker not in sex or not total:
                logging.debug(f"   Row {row_no}: skipped, not a total row or missing data")
                continue

            age_group = self._process_row(row_no, row, age_label, total)
            if age_group is not None:
                locations.setdefault(area, []).append(age_group)

        result = [{"area": area, "ages": ages} for area, ages in locations.items()]
        if not result:
            logging.warning("   No location data found in workbook")
        else:
            logging.info(f"   Found {len(result)} locations")
            for loc in result:
                logging.info(f"     {loc['area']}: {len(loc['ages'])} age groups")
        return result

    def _process_row(self, row_no, row, age_label, total):
        age = _parse_age(age_label)
        if age is None:
            logging.warning(f"   Row {row_no}: invalid age '{age_label}', skipping")
            return None
        try:
            total_value = int(total)
        except ValueError:
            logging.warning(f"   Row {row_no}: invalid total '{total}', skipping")
            return None

        education = {
            name: parse_cell_value(_cell_text(row, COL_EDUCATION + i))
            for i, name in enumerate(EDUCATION_FIELDS)
        }
        return {"age": age, "age_label": age_label, "total": total_value, "education": education}

    def export(self, locations, output_path):
        out_dir = os.path.dirname(output_path)
        if out_dir:
            os.makedirs(out_dir, exist_ok=True)
        with open(output_path, 'w', encoding="utf-8") as f:
            json.dump(locations, f, indent=2, ensure_ascii=False)
        logging.info(f"   Population data saved to {output_path}")


def school_age_totals(locations, min_age, max_age) -> Dict[str, int]:
    """Children per area whose age group starts inside [min_age, max_age]."""
    totals = {}
    for loc in locations:
        totals[loc["area"]] = sum(
            group["total"] for group in loc["ages"]
            if min_age <= group["age"] <= max_age
        )
    return totals


def parse_cell_value(text) -> int:
    if not text or text == "-":
        return 0
    try:
        return int(text)
    except ValueError:
        return 0


def _parse_age(label):
    try:
        return int(label)
    except ValueError:
        pass
    if "-" in label:
        try:
            return int(label.split("-")[0])
        except ValueError:
            return None
    return None


def _cell_text(row, col) -> str:
    if col >= len(row):
        return ""
    value = row.iloc[col]
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()
