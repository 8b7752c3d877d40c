import json
import logging
import os
from typing import List

from PlacementErrors import DataFormatError


class SchoolDataTransformer:
    """Flattens an OSM school export (GeoJSON) into name + coordinate records"""

    def transform(self, input_path) -> List[dict]:
        logging.info("=" * 80)
        logging.info("SCHOOL DATA TRANSFORMATION")
        logging.info("=" * 80)

        if not os.path.exists(input_path):
            raise DataFormatError(f"GeoJSON file not found: {input_path}")
        with open(input_path, encoding="utf-8") as f:
            data = json.load(f)

        schools = self.simplify(data)
        incomplete = self.incomplete_records(schools)

        logging.info(f"   Schools extracted: {len(schools)}")
        if incomplete:
            logging.warning(f"   {len(incomplete)} schools have incomplete data")
            for school in incomplete:
                logging.warning(f"     - {school['Naziv'] or '<no name>'}")
        return schools

    def simplify(self, data) -> List[dict]:
        features = data.get("features") if isinstance(data, dict) else None
        if not isinstance(features, list):
            return []

        schools = []
        for feature in features:
            geometry = feature.get("geometry") or {}
            coords = geometry.get("coordinates")
            if not isinstance(coords, list) or len(coords) < 2:
                continue
            try:
                lon, lat = float(coords[0]), float(coords[1])
            except (TypeError, ValueError):
                # Polygon footprints nest their coordinates one level deeper
                continue

            properties = feature.get("properties") or {}
            name = properties.get("name")
            schools.append({
                "Naziv": "Unknown" if name is None else str(name),
                "Latitude": lat,
                "Longitude": lon
            })
        return schools

    @staticmethod
    def incomplete_records(schools) -> List[dict]:
        return [s for s in schools if not s["Naziv"] or s["Latitude"] == 0 or s["Longitude"] == 0]

    def export(self, schools, output_path):
        out_dir = os.path.dirname(output_path)
        if out_dir:
            os.makedirs(out_dir, exist_ok=True)
        with open(output_path, 'w', encoding="utf-8") as f:
            json.dump(schools, f, indent=2, ensure_ascii=False)
        logging.info(f"   School locations saved to {output_path}")
