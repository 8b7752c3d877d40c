from dataclasses import dataclass, field
from typing import Tuple, Optional, List


@dataclass
class SiteAssessment:
    site_id: int
    coords: Tuple[float, float]      # (lon, lat)
    score: float

    # Score breakdown at the committed location
    coverage_score: float
    existing_penalty: float
    placed_penalty: float
    centrality_score: float

    # Context
    distance_to_center_km: float
    demand_served: float
    weighted_demand_served: float
    nearest_existing_name: Optional[str]
    nearest_existing_km: Optional[float]
    nearest_new_km: Optional[float]

    # Spacing checks
    spacing_violations: List[str] = field(default_factory=list)

    def to_dict(self):
        return {k: v for k, v in self.__dict__.items()}
