import json
import logging
import os
from typing import Dict, List

import geopandas as gpd
import pandas as pd

from config import CONFIG
from PlacementErrors import DataFormatError, RegionNotFound
from SpatialTypes import Coordinate, DemandRecord, ExistingFacility, Region, make_ring


def ring_from_geometry(geom):
    """Exterior ring of a Polygon, or of the first polygon of a MultiPolygon, without the closing vertex"""
    if geom is None or geom.is_empty:
        return ()
    if geom.geom_type == "MultiPolygon":
        geom = geom.geoms[0]
    if geom.geom_type != "Polygon":
        raise DataFormatError(f"Expected Polygon or MultiPolygon, got {geom.geom_type}")

    coords = list(geom.exterior.coords)
    if len(coords) > 1 and coords[0] == coords[-1]:
        coords = coords[:-1]
    return make_ring(coords)


def normalize_area(name) -> str:
    return str(name).strip().upper()


class RegionDataStore:
    """File-backed source of regions, demand records and existing schools"""
    def __init__(self, data_files=None):
        files = data_files or CONFIG["DATA_FILES"]
        self.boundaries_path = files["BOUNDARIES"]
        self.centroids_path = files["CENTROIDS"]
        self.demand_path = files["DEMAND"]
        self.schools_path = files["SCHOOLS"]

        self._boundaries = None
        self._demand = None
        self._centroids = None

    def load_region(self, name) -> Region:
        logging.info("=" * 80)
        logging.info("PHASE 1: DATA ACQUISITION & VALIDATION")
        logging.info("=" * 80)

        area = normalize_area(name)
        centroids = self.load_all_centroids()
        if area not in centroids:
            raise RegionNotFound(area, self.centroids_path)

        boundary = self._load_boundary(area)
        records = self._load_demand_records(area)

        logging.info(f"   Region: {area} | Boundary vertices: {len(boundary)} | Demand records: {len(records)}")
        logging.info(f"   Center: [{centroids[area].lon:.6f}, {centroids[area].lat:.6f}]")
        if not records:
            logging.warning(f"   No demand records for {area}; placement will fall back to the center")

        return Region(name=area, centroid=centroids[area], boundary=boundary, demand_records=tuple(records))

    def load_existing_facilities(self) -> List[ExistingFacility]:
        logging.info("Loading existing schools...")
        frame = self._read_json_frame(self.schools_path)

        facilities = []
        for idx, row in frame.iterrows():
            try:
                lon = float(row["Longitude"])
                lat = float(row["Latitude"])
            except (KeyError, TypeError, ValueError) as e:
                logging.warning(f"   Skipping school record {idx}: {e}")
                continue
            if pd.isna(lon) or pd.isna(lat):
                logging.warning(f"   Skipping school record {idx}: missing coordinates")
                continue

            name = row.get("Naziv")
            label = str(name) if isinstance(name, str) and name else "Unknown School"
            facilities.append(ExistingFacility(location=Coordinate(lon, lat), label=label))

        logging.info(f"   Existing schools: {len(facilities)}")
        return facilities

    def load_all_centroids(self) -> Dict[str, Coordinate]:
        if self._centroids is not None:
            return self._centroids

        if not os.path.exists(self.centroids_path):
            raise DataFormatError(f"Centroid file not found: {self.centroids_path}")
        with open(self.centroids_path, encoding="utf-8") as f:
            docs = json.load(f)

        centroids = {}
        for doc in docs:
            try:
                lon, lat = doc["centroid"]["coordinates"][:2]
                centroids[normalize_area(doc["area"])] = Coordinate(float(lon), float(lat))
            except (KeyError, TypeError, ValueError) as e:
                logging.warning(f"   Skipping malformed centroid document: {e}")

        self._centroids = centroids
        return centroids

    def list_regions(self) -> List[str]:
        return sorted(self.load_all_centroids())

    def _load_boundary(self, area):
        boundaries = self._boundaries_frame()
        matches = boundaries[boundaries["area"].map(normalize_area) == area]
        if matches.empty:
            raise RegionNotFound(area, self.boundaries_path)
        return ring_from_geometry(matches.geometry.iloc[0])

    def _load_demand_records(self, area) -> List[DemandRecord]:
        demand = self._demand_frame()
        matches = demand[demand["area"].map(normalize_area) == area]

        records = []
        for idx, row in matches.iterrows():
            try:
                total = int(row["totalChildren"])
                ring = ring_from_geometry(row.geometry)
            except (KeyError, TypeError, ValueError, DataFormatError) as e:
                logging.warning(f"   Error processing population area {idx}: {e}")
                continue
            if len(ring) < 3 or total < 0:
                logging.warning(f"   Skipping population area {idx}: invalid polygon or count")
                continue
            records.append(DemandRecord(polygon=ring, total_count=total, label=f"{area}#{idx}"))

        return records

    def _boundaries_frame(self):
        if self._boundaries is None:
            self._boundaries = self._read_geo_frame(self.boundaries_path)
        return self._boundaries

    def _demand_frame(self):
        if self._demand is None:
            self._demand = self._read_geo_frame(self.demand_path)
        return self._demand

    @staticmethod
    def _read_geo_frame(path):
        if not os.path.exists(path):
            raise DataFormatError(f"GeoJSON file not found: {path}")
        frame = gpd.read_file(path)
        if "area" not in frame.columns:
            raise DataFormatError(f"{path} has no 'area' property")
        return frame

    @staticmethod
    def _read_json_frame(path):
        if not os.path.exists(path):
            raise DataFormatError(f"JSON file not found: {path}")
        with open(path, encoding="utf-8") as f:
            records = json.load(f)
        if not isinstance(records, list):
            raise DataFormatError(f"{path} must contain a list of records")
        return pd.DataFrame.from_records(records)
