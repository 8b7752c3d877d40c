from dataclasses import dataclass, asdict
from typing import Tuple, Optional

from config import CONFIG
from PlacementErrors import InvalidOptimizationInput


@dataclass(frozen=True)
class Coordinate:
    lon: float
    lat: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.lon, self.lat)

    def as_latlon(self) -> Tuple[float, float]:
        """(lat, lon) order, as expected by folium"""
        return (self.lat, self.lon)


# Ring of coordinates, implicitly closed (last vertex connects to the first)
Polygon = Tuple[Coordinate, ...]


def make_ring(points) -> Polygon:
    """Build a ring from Coordinates or (lon, lat) pairs"""
    return tuple(p if isinstance(p, Coordinate) else Coordinate(float(p[0]), float(p[1])) for p in points)


@dataclass(frozen=True)
class DemandRecord:
    polygon: Polygon
    total_count: int
    label: str = ""


@dataclass(frozen=True)
class Region:
    name: str
    centroid: Coordinate
    boundary: Polygon
    demand_records: Tuple[DemandRecord, ...] = ()


@dataclass(frozen=True)
class DemandPoint:
    location: Coordinate
    raw_share: float
    weighted_share: float
    distance_from_center: float


@dataclass(frozen=True)
class ExistingFacility:
    location: Coordinate
    label: str = "Unknown School"


@dataclass(frozen=True)
class PlacedFacility:
    location: Coordinate
    round_index: int = 0
    score: Optional[float] = None


@dataclass(frozen=True)
class OptimizationParams:
    sigma_km: float = 3.0
    coverage_radius_km: float = 2.5
    min_spacing_km: float = 1.5
    refinement_step_deg: float = 0.002
    max_refine_iterations: int = 10
    samples_per_record: int = 1000
    sampling_attempt_factor: int = 100

    # Score coefficients
    coverage_weight: float = 2.0
    existing_penalty: float = 1000.0
    placed_penalty: float = 10000.0
    centrality_weight: float = 100.0

    random_seed: Optional[int] = None

    def __post_init__(self):
        for name in ("sigma_km", "coverage_radius_km", "refinement_step_deg",
                     "samples_per_record", "sampling_attempt_factor"):
            if not getattr(self, name) > 0:
                raise InvalidOptimizationInput(f"{name} must be positive, got {getattr(self, name)!r}")
        for name in ("min_spacing_km", "max_refine_iterations"):
            if not getattr(self, name) >= 0:
                raise InvalidOptimizationInput(f"{name} must not be negative, got {getattr(self, name)!r}")

    @classmethod
    def from_config(cls, config=None, **overrides):
        config = config or CONFIG
        opt = config["OPTIMIZATION_PARAMS"]
        weights = config["SCORING_WEIGHTS"]
        values = dict(
            sigma_km=opt["SIGMA_KM"],
            coverage_radius_km=opt["COVERAGE_RADIUS_KM"],
            min_spacing_km=opt["MIN_SPACING_KM"],
            refinement_step_deg=opt["REFINEMENT_STEP_DEG"],
            max_refine_iterations=opt["MAX_REFINE_ITERATIONS"],
            samples_per_record=opt["SAMPLES_PER_RECORD"],
            sampling_attempt_factor=opt["SAMPLING_ATTEMPT_FACTOR"],
            coverage_weight=weights["coverage"],
            existing_penalty=weights["existing_penalty"],
            placed_penalty=weights["placed_penalty"],
            centrality_weight=weights["centrality"],
            random_seed=opt.get("RANDOM_SEED"),
        )
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def to_dict(self):
        return asdict(self)
