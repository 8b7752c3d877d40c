import json
import logging
import os
import time
from typing import List

import numpy as np

from config import CONFIG
from GeometryKernel import haversine_km, haversine_km_many
from LocationScorer import LocationScorer
from SiteAssessment import SiteAssessment


class ResultsAnalyzer:
    """Post-placement diagnostics: coverage, spacing and distances per new school"""
    def __init__(self, region, demand, existing, params, output_dir=None):
        self.region = region
        self.demand = list(demand)
        self.existing = list(existing)
        self.params = params
        self.output_dir = output_dir or CONFIG["OUTPUT_DIR"]
        self.scorer = LocationScorer(self.demand, self.existing, region.centroid, params)

        self._demand_lons = np.array([p.location.lon for p in self.demand])
        self._demand_lats = np.array([p.location.lat for p in self.demand])
        self._raw = np.array([p.raw_share for p in self.demand])
        self._weighted = np.array([p.weighted_share for p in self.demand])

    def analyze(self, placed) -> List[SiteAssessment]:
        logging.info("=" * 80)
        logging.info("PHASE 4: OPTIMIZATION RESULTS ANALYSIS")
        logging.info("=" * 80)

        assessments = []
        for i, facility in enumerate(placed):
            # Each school is judged against the schools committed before it
            earlier = placed[:i]
            others = placed[:i] + placed[i + 1:]
            assessments.append(self._assess(i + 1, facility, earlier, others))

        self._log_summary(assessments)
        return assessments

    def _assess(self, site_id, facility, earlier, others) -> SiteAssessment:
        loc = facility.location
        terms = self.scorer.breakdown(loc, earlier)

        served_raw, served_weighted = self._demand_within_radius(loc)
        nearest_name, nearest_existing = self._nearest_existing(loc)
        nearest_new = min((haversine_km(loc, o.location) for o in others), default=None)

        violations = []
        spacing = self.params.min_spacing_km
        if nearest_existing is not None and nearest_existing < spacing:
            violations.append(f"Existing school '{nearest_name}' within {nearest_existing:.2f} km")
        if nearest_new is not None and nearest_new < spacing:
            violations.append(f"Another new school within {nearest_new:.2f} km")

        return SiteAssessment(
            site_id=site_id,
            coords=loc.as_tuple(),
            score=terms["total"],
            coverage_score=terms["coverage"],
            existing_penalty=terms["existing_exclusion"],
            placed_penalty=terms["placed_exclusion"],
            centrality_score=terms["centrality"],
            distance_to_center_km=haversine_km(loc, self.region.centroid),
            demand_served=served_raw,
            weighted_demand_served=served_weighted,
            nearest_existing_name=nearest_name,
            nearest_existing_km=nearest_existing,
            nearest_new_km=nearest_new,
            spacing_violations=violations
        )

    def _demand_within_radius(self, loc):
        if not self.demand:
            return 0.0, 0.0
        dists = haversine_km_many(loc, self._demand_lons, self._demand_lats)
        covered = dists <= self.params.coverage_radius_km
        return float(self._raw[covered].sum()), float(self._weighted[covered].sum())

    def _nearest_existing(self, loc):
        if not self.existing:
            return None, None
        dists = [haversine_km(loc, f.location) for f in self.existing]
        idx = int(np.argmin(dists))
        return self.existing[idx].label, dists[idx]

    def _log_summary(self, assessments):
        total_demand = float(self._raw.sum()) if self.demand else 0.0
        served = sum(a.demand_served for a in assessments)
        logging.info(f"   Target Region: {self.region.name}")
        logging.info(f"   Region Center: [{self.region.centroid.lon:.6f}, {self.region.centroid.lat:.6f}]")
        logging.info(f"   New Schools: {len(assessments)} | Existing Schools: {len(self.existing)}")
        if total_demand > 0:
            logging.info(f"   Demand within coverage: {served:,.0f} / {total_demand:,.0f} ({100 * served / total_demand:.1f}%)")
        violations = sum(len(a.spacing_violations) for a in assessments)
        if violations:
            logging.warning(f"   Spacing violations: {violations} (spacing is a soft constraint)")

    def print_report(self, assessments):
        for a in assessments:
            print("\n" + "=" * 90)
            print(f"NEW SCHOOL #{a.site_id}")
            print("=" * 90)
            print(f"Coordinates:    [Longitude: {a.coords[0]:.6f}, Latitude: {a.coords[1]:.6f}]")
            print(f"From center:    {a.distance_to_center_km:.2f} km")
            print(f"\nScore: {a.score:.2f}")
            print(f"  ├─ Coverage:             {a.coverage_score:10.2f}")
            print(f"  ├─ Existing proximity:   {a.existing_penalty:10.2f}")
            print(f"  ├─ New-school proximity: {a.placed_penalty:10.2f}")
            print(f"  └─ Centrality:           {a.centrality_score:10.2f}")
            print("\nImpact Analysis:")
            print(f"  • Children within {self.params.coverage_radius_km} km: ~{a.demand_served:,.0f}")
            nearest = f"{a.nearest_existing_name} ({a.nearest_existing_km:.2f} km)" if a.nearest_existing_km is not None else "N/A"
            print(f"  • Nearest existing school: {nearest}")
            print(f"  • Nearest new school:      {f'{a.nearest_new_km:.2f} km' if a.nearest_new_km is not None else 'N/A'}")
            if a.spacing_violations:
                print("\nSpacing Warnings:")
                for v in a.spacing_violations:
                    print(f"  - {v}")

    def export_json(self, assessments, filename="placements.json"):
        os.makedirs(self.output_dir, exist_ok=True)
        output_path = os.path.join(self.output_dir, filename)
        data = {
            "metadata": {
                "region": self.region.name,
                "center": list(self.region.centroid.as_tuple()),
                "timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
                "n_schools": len(assessments),
                "params": self.params.to_dict()
            },
            "schools": [a.to_dict() for a in assessments]
        }
        with open(output_path, 'w', encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        logging.info(f"   Placements exported to {output_path}")
        return output_path
