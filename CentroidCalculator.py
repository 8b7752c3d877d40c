import json
import logging
import os
import re

import geopandas as gpd

from config import CONFIG
from GeometryKernel import polygon_centroid
from PlacementErrors import DataFormatError, InvalidGeometry
from RegionDataStore import ring_from_geometry, normalize_area


class CentroidCalculator:
    """
    Computes the reference center of every municipality boundary.

    The combined output file is what RegionDataStore reads as the
    authoritative region centroid.
    """
    def __init__(self, boundaries_path=None, output_path=None, per_area_dir=None):
        self.boundaries_path = boundaries_path or CONFIG["DATA_FILES"]["BOUNDARIES"]
        self.output_path = output_path or CONFIG["DATA_FILES"]["CENTROIDS"]
        self.per_area_dir = per_area_dir or os.path.join(CONFIG["OUTPUT_DIR"], "centroid_results")

    def execute(self):
        logging.info("=" * 80)
        logging.info("CENTROID COMPUTATION")
        logging.info("=" * 80)

        if not os.path.exists(self.boundaries_path):
            raise DataFormatError(f"Boundary file not found: {self.boundaries_path}")
        boundaries = gpd.read_file(self.boundaries_path)
        if "area" not in boundaries.columns:
            raise DataFormatError(f"{self.boundaries_path} has no 'area' property")

        os.makedirs(self.per_area_dir, exist_ok=True)

        docs = []
        for _, row in boundaries.iterrows():
            area = normalize_area(row["area"])
            try:
                centroid = polygon_centroid(ring_from_geometry(row.geometry))
            except (InvalidGeometry, DataFormatError) as e:
                logging.warning(f"   Skipping '{area}': {e}")
                continue

            doc = {
                "area": area,
                "centroid": {"type": "Point", "coordinates": [centroid.lon, centroid.lat]}
            }
            docs.append(doc)

            area_path = os.path.join(self.per_area_dir, f"{sanitize_file_name(area)}.json")
            with open(area_path, 'w', encoding="utf-8") as f:
                json.dump(doc, f, indent=2, ensure_ascii=False)
            logging.info(f"   Saved centroid for area '{area}' to file: {area_path}")

        out_dir = os.path.dirname(self.output_path)
        if out_dir:
            os.makedirs(out_dir, exist_ok=True)
        with open(self.output_path, 'w', encoding="utf-8") as f:
            json.dump(docs, f, indent=2, ensure_ascii=False)

        logging.info(f"   {len(docs)} centroids saved to {self.output_path}")
        return docs


def sanitize_file_name(name) -> str:
    return re.sub(r'[<>:"/\\|?*\x00-\x1f]', "_", name)
