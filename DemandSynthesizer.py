import logging
from math import exp
from typing import List

import numpy as np

from GeometryKernel import haversine_km, bounding_box, points_inside_polygon
from SpatialTypes import Coordinate, DemandPoint, DemandRecord, OptimizationParams, Region


def gaussian_weight(distance_km, sigma_km):
    """exp(-d^2 / 2 sigma^2): 1 at the center, non-increasing with distance"""
    return exp(-(distance_km * distance_km) / (2 * sigma_km * sigma_km))


class DemandSynthesizer:
    """
    Turns aggregate counts over polygons into weighted point demand.

    Each demand record is spread evenly over rejection-sampled interior points,
    then every point is discounted by a Gaussian of its distance to the region
    center.
    """
    BATCH_SIZE = 1024

    def __init__(self, params: OptimizationParams = None, rng=None):
        self.params = params or OptimizationParams.from_config()
        if rng is None:
            rng = np.random.default_rng(self.params.random_seed)
        self.rng = rng

    def synthesize(self, region: Region) -> List[DemandPoint]:
        logging.info("=" * 80)
        logging.info(f"PHASE 2: DEMAND SYNTHESIS ({region.name})")
        logging.info("=" * 80)

        demand = []
        for record in region.demand_records:
            demand.extend(self.build_weighted_demand(record, region.centroid, self.params.sigma_km))

        # Stable: equal weights keep record/sample order
        demand.sort(key=lambda p: p.weighted_share, reverse=True)

        if demand:
            total_raw = sum(p.raw_share for p in demand)
            total_weighted = sum(p.weighted_share for p in demand)
            logging.info(f"   Demand points: {len(demand)} from {len(region.demand_records)} records")
            logging.info(f"   Raw demand: {total_raw:,.1f} | Weighted demand: {total_weighted:,.1f}")
        else:
            logging.warning("   No demand points synthesized (empty demand)")

        return demand

    def build_weighted_demand(self, record: DemandRecord, center: Coordinate, sigma_km) -> List[DemandPoint]:
        points = self.sample_interior_points(record.polygon, self.params.samples_per_record)
        if not points:
            logging.warning(f"   Skipping demand record '{record.label}': no interior points found")
            return []

        share_per_point = record.total_count / len(points)
        logging.info(
            f"  Processing area with {record.total_count} children using "
            f"{len(points)} interior points ({share_per_point:.1f} per point)"
        )

        demand = []
        for point in points:
            dist = haversine_km(center, point)
            weight = gaussian_weight(dist, sigma_km)
            demand.append(DemandPoint(
                location=point,
                raw_share=share_per_point,
                weighted_share=share_per_point * weight,
                distance_from_center=dist
            ))
        return demand

    def sample_interior_points(self, ring, target_count) -> List[Coordinate]:
        """
        Rejection sampling inside the ring's bounding box.

        Stops after target_count accepted points or target_count x attempt
        factor draws, whichever comes first. May return fewer points than
        requested, or none for degenerate rings.
        """
        if len(ring) < 3 or target_count <= 0:
            return []

        min_lon, min_lat, max_lon, max_lat = bounding_box(ring)
        if max_lon <= min_lon or max_lat <= min_lat:
            return []

        accepted = []
        max_attempts = target_count * self.params.sampling_attempt_factor
        attempts = 0

        while len(accepted) < target_count and attempts < max_attempts:
            batch = min(self.BATCH_SIZE, max_attempts - attempts)
            lons = self.rng.uniform(min_lon, max_lon, batch)
            lats = self.rng.uniform(min_lat, max_lat, batch)
            inside = points_inside_polygon(lons, lats, ring)

            hits = np.flatnonzero(inside)
            needed = target_count - len(accepted)
            if len(hits) >= needed:
                # Draws after the last accepted point are not counted as attempts
                hits = hits[:needed]
                attempts += int(hits[-1]) + 1
            else:
                attempts += batch

            accepted.extend(Coordinate(float(lons[i]), float(lats[i])) for i in hits)

        if len(accepted) < target_count:
            logging.debug(f"   Sampling budget exhausted: {len(accepted)}/{target_count} after {attempts} attempts")

        return accepted
