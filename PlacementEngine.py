import logging
import numbers
from typing import List, Optional

import numpy as np

from DemandSynthesizer import DemandSynthesizer
from GeometryKernel import is_inside_polygon, points_inside_polygon
from LocationScorer import LocationScorer
from PlacementErrors import InvalidGeometry, InvalidOptimizationInput
from SpatialTypes import Coordinate, OptimizationParams, PlacedFacility, Region


class PlacementEngine:
    """
    Greedy school placement with bounded local refinement.

    Each round scans every demand point inside the region boundary, keeps the
    best scoring one (first wins on ties), hill-climbs from it on an 8-neighbour
    stencil, and commits the result. Committed schools are never revisited and
    repel every later round through the new-school spacing penalty.
    """
    # (dlon, dlat) multipliers of the refinement step
    DIRECTIONS = (
        (-1, -1), (-1, 0), (-1, 1),
        (0, -1), (0, 1),
        (1, -1), (1, 0), (1, 1),
    )

    def __init__(self, region: Region, existing=(), params: OptimizationParams = None,
                 demand=None, rng=None):
        validate_region(region)
        self.region = region
        self.existing = tuple(existing)
        self.params = params or OptimizationParams.from_config()

        if demand is None:
            demand = DemandSynthesizer(self.params, rng).synthesize(region)
        self.demand = tuple(demand)

        self.scorer = LocationScorer(self.demand, self.existing, region.centroid, self.params)
        self.candidates = self._apply_constraints()
        self._placed: List[PlacedFacility] = []

    @property
    def placed(self):
        return tuple(self._placed)

    def _apply_constraints(self):
        if not self.demand:
            return []

        lons = np.array([p.location.lon for p in self.demand])
        lats = np.array([p.location.lat for p in self.demand])
        inside = points_inside_polygon(lons, lats, self.region.boundary)
        valid = [p.location for p, ok in zip(self.demand, inside) if ok]

        logging.info(
            f"   Valid candidates: {len(valid)} / {len(self.demand)} "
            f"({100 * len(valid) / len(self.demand):.1f}%) inside {self.region.name}"
        )
        return valid

    def run(self, facility_count) -> List[PlacedFacility]:
        validate_facility_count(facility_count)

        logging.info("=" * 80)
        logging.info(f"PHASE 3: GREEDY PLACEMENT ({facility_count} new schools)")
        logging.info("=" * 80)
        logging.info(f"   Existing schools: {len(self.existing)} | Demand points: {len(self.demand)}")

        for _ in self.iter_placements(facility_count):
            pass

        logging.info(f"   Placement complete | {len(self._placed)} schools committed")
        return list(self._placed)

    def iter_placements(self, facility_count):
        """Yield one committed school per round; stopping early leaves a valid partial result."""
        for _ in range(facility_count):
            yield self.place_next()

    def place_next(self) -> PlacedFacility:
        round_index = len(self._placed) + 1
        placed = self.placed

        if not self.candidates:
            location = self.region.centroid
            best_score = self.scorer.score(location, placed)
            logging.warning(f"  Round {round_index}: no demand candidates, falling back to region center")
        else:
            start, start_score = self._scan_candidates(placed)
            location, best_score = self._refine_locally(start, start_score, placed)

        facility = PlacedFacility(location=location, round_index=round_index, score=best_score)
        self._placed.append(facility)
        logging.info(
            f"  Round {round_index}: school at [{location.lon:.6f}, {location.lat:.6f}] "
            f"| Score: {best_score:.2f}"
        )
        return facility

    def _scan_candidates(self, placed):
        best = self.region.centroid
        best_score = -np.inf
        for candidate in self.candidates:
            s = self.scorer.score(candidate, placed)
            if s > best_score:
                best, best_score = candidate, s
        return best, best_score

    def _refine_locally(self, start: Coordinate, start_score, placed):
        best, best_score = start, start_score
        step = self.params.refinement_step_deg
        iterations = 0
        improved = True

        while improved and iterations < self.params.max_refine_iterations:
            improved = False
            iterations += 1

            for dlon, dlat in self.DIRECTIONS:
                neighbor = Coordinate(best.lon + dlon * step, best.lat + dlat * step)
                if not is_inside_polygon(neighbor, self.region.boundary):
                    continue

                s = self.scorer.score(neighbor, placed)
                if s > best_score:
                    # Move now; remaining directions are tried around the new point
                    best, best_score = neighbor, s
                    improved = True
                    logging.debug(f"    Improved to [{best.lon:.6f}, {best.lat:.6f}] with score: {best_score:.2f}")

        logging.info(
            f"   Local optimization completed after {iterations} iterations. "
            f"Final location: [{best.lon:.6f}, {best.lat:.6f}]"
        )
        return best, best_score


def validate_facility_count(facility_count):
    if isinstance(facility_count, bool) or not isinstance(facility_count, numbers.Integral):
        raise InvalidOptimizationInput(f"facility_count must be an integer, got {facility_count!r}")
    if facility_count <= 0:
        raise InvalidOptimizationInput(f"facility_count must be positive, got {facility_count}")


def validate_region(region: Region):
    if len(set(region.boundary)) < 3:
        raise InvalidGeometry(f"Boundary of '{region.name}' needs at least 3 distinct vertices")


def optimize(region: Region, facility_count, existing=(), params: Optional[OptimizationParams] = None,
             rng=None, demand=None) -> List[Coordinate]:
    """
    Place facility_count new schools in the region.

    Always returns exactly facility_count coordinates; regions without usable
    demand get the region center for every school.
    """
    validate_facility_count(facility_count)
    engine = PlacementEngine(region, existing, params, demand=demand, rng=rng)
    return [facility.location for facility in engine.run(facility_count)]
