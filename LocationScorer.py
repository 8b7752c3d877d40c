import numpy as np

from GeometryKernel import haversine_km, haversine_km_many
from SpatialTypes import OptimizationParams


class LocationScorer:
    """
    Desirability of a candidate school location.

    Score = coverage - existing-school penalty - new-school penalty + centrality.
    Spacing is a soft constraint: a candidate inside the minimum spacing is
    penalized, never rejected.
    """
    def __init__(self, demand, existing, center, params: OptimizationParams = None):
        self.params = params or OptimizationParams.from_config()
        self.center = center

        self.demand_lons = np.array([p.location.lon for p in demand], dtype=float)
        self.demand_lats = np.array([p.location.lat for p in demand], dtype=float)
        self.demand_weights = np.array([p.weighted_share for p in demand], dtype=float)

        self.existing_lons = np.array([f.location.lon for f in existing], dtype=float)
        self.existing_lats = np.array([f.location.lat for f in existing], dtype=float)

    def score(self, candidate, placed=()):
        return (
            self.coverage_term(candidate)
            + self.existing_exclusion_term(candidate)
            + self.placed_exclusion_term(candidate, placed)
            + self.centrality_term(candidate)
        )

    def breakdown(self, candidate, placed=()):
        terms = {
            "coverage": self.coverage_term(candidate),
            "existing_exclusion": self.existing_exclusion_term(candidate),
            "placed_exclusion": self.placed_exclusion_term(candidate, placed),
            "centrality": self.centrality_term(candidate),
        }
        terms["total"] = sum(terms.values())
        return terms

    def coverage_term(self, candidate):
        if self.demand_weights.size == 0:
            return 0.0
        radius = self.params.coverage_radius_km
        dists = haversine_km_many(candidate, self.demand_lons, self.demand_lats)
        covered = dists <= radius
        decay = np.exp(-dists[covered] / radius)
        return float(self.params.coverage_weight * (self.demand_weights[covered] * decay).sum())

    def existing_exclusion_term(self, candidate):
        return self._spacing_penalty(candidate, self.existing_lons, self.existing_lats,
                                     self.params.existing_penalty)

    def placed_exclusion_term(self, candidate, placed):
        if not placed:
            return 0.0
        lons = np.array([f.location.lon for f in placed], dtype=float)
        lats = np.array([f.location.lat for f in placed], dtype=float)
        return self._spacing_penalty(candidate, lons, lats, self.params.placed_penalty)

    def centrality_term(self, candidate):
        dist = haversine_km(candidate, self.center)
        return float(self.params.centrality_weight * np.exp(-dist / (2 * self.params.sigma_km)))

    def _spacing_penalty(self, candidate, lons, lats, coefficient):
        if lons.size == 0:
            return 0.0
        spacing = self.params.min_spacing_km
        dists = haversine_km_many(candidate, lons, lats)
        too_close = dists < spacing
        return float(-coefficient * (spacing - dists[too_close]).sum())


def score(candidate, demand, existing, placed, center, params=None):
    """Stateless scoring of one candidate; see LocationScorer."""
    return LocationScorer(demand, existing, center, params).score(candidate, placed)
