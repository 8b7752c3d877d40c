import argparse
import logging
import os
import sys
import warnings

import numpy as np

from CentroidCalculator import CentroidCalculator
from config import CONFIG
from DemandSynthesizer import DemandSynthesizer
from PlacementEngine import PlacementEngine, validate_facility_count
from PlacementErrors import PlacementError
from PlacementMapRenderer import PlacementMapRenderer
from PopulationSheetParser import PopulationSheetParser, school_age_totals
from RegionDataStore import RegionDataStore
from ResultsAnalyzer import ResultsAnalyzer
from SchoolDataTransformer import SchoolDataTransformer
from SpatialTypes import OptimizationParams


def configure_logging(level=logging.INFO):
    os.makedirs(CONFIG["OUTPUT_DIR"], exist_ok=True)
    logging.basicConfig(
        level=level,
        format='%(asctime)s | %(levelname)-8s | %(message)s',
        handlers=[
            logging.FileHandler(os.path.join(CONFIG["OUTPUT_DIR"], CONFIG["LOG_FILE"]), mode='w'),
            logging.StreamHandler(sys.stdout)
        ]
    )
    warnings.filterwarnings('ignore')


def run_optimization(store, region_name, facility_count, params, render=True):
    """
    Full pipeline for one region: load, synthesize demand, place, analyze.
    """
    validate_facility_count(facility_count)
    logging.info(f"Starting optimization for {facility_count} schools in {region_name}...")

    # PHASE 1: Data acquisition
    region = store.load_region(region_name)
    existing = store.load_existing_facilities()

    # PHASE 2: Demand synthesis
    rng = np.random.default_rng(params.random_seed)
    demand = DemandSynthesizer(params, rng).synthesize(region)

    # PHASE 3: Placement
    engine = PlacementEngine(region, existing, params, demand=demand)
    placed = engine.run(facility_count)

    # PHASE 4: Analysis
    analyzer = ResultsAnalyzer(region, demand, existing, params)
    assessments = analyzer.analyze(placed)
    analyzer.print_report(assessments)
    analyzer.export_json(assessments)

    # PHASE 5: Maps
    if render:
        PlacementMapRenderer().render(region, demand, existing, assessments, params.coverage_radius_km)

    print(f"\nOptimal school locations for {region.name}:")
    for facility in placed:
        loc = facility.location
        print(f"School {facility.round_index}: [Longitude: {loc.lon:.6f}, Latitude: {loc.lat:.6f}]")

    return placed, assessments


def display_centroids(store):
    centroids = store.load_all_centroids()
    print("Municipality Centroids:")
    print("=======================")
    for area, c in sorted(centroids.items()):
        print(f"{area}: [Longitude: {c.lon:.6f}, Latitude: {c.lat:.6f}]")


def interactive_loop(store, params, render=True, input_fn=input):
    print("\n=== INTERACTIVE MODE ===")
    print("Available municipalities:")
    for i, area in enumerate(store.list_regions(), start=1):
        print(f"{i}. {area}")

    while True:
        name = input_fn("\nEnter municipality name (or 'quit' to exit): ").strip()
        if name.lower() == "quit":
            break
        if not name:
            continue

        raw_count = input_fn("Enter number of schools to optimize: ").strip()
        try:
            count = int(raw_count)
        except ValueError:
            print("Please enter a valid number of schools.")
            continue
        if count <= 0:
            print("Please enter a valid number of schools.")
            continue

        try:
            run_optimization(store, name.upper(), count, params, render=render)
        except PlacementError as e:
            logging.error(f"  ✗ {e}")
            print(f"Error: {e}")


def _parse_args(argv=None):
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--verbose", action="store_true", help="Log refinement steps")

    parser = argparse.ArgumentParser(description="School location optimization")
    sub = parser.add_subparsers(dest="command", required=True)

    p_opt = sub.add_parser("optimize", parents=[common], help="Place new schools in one municipality")
    p_opt.add_argument("--region", default=CONFIG["TARGET_REGION"])
    p_opt.add_argument("--count", type=int, default=CONFIG["N_NEW_FACILITIES"])
    p_opt.add_argument("--seed", type=int, default=None)
    p_opt.add_argument("--no-map", action="store_true", help="Skip map rendering")

    sub.add_parser("list-regions", parents=[common], help="Display all municipality centroids")
    sub.add_parser("centroids", parents=[common], help="Compute municipality centroids from boundaries")

    p_pop = sub.add_parser("ingest-population", parents=[common], help="Convert the census workbook to JSON")
    p_pop.add_argument("--input", required=True)
    p_pop.add_argument("--output", default=os.path.join(CONFIG["OUTPUT_DIR"], "population.json"))

    p_sch = sub.add_parser("ingest-schools", parents=[common], help="Convert an OSM school export to the schools file")
    p_sch.add_argument("--input", required=True)
    p_sch.add_argument("--output", default=CONFIG["DATA_FILES"]["SCHOOLS"])

    p_int = sub.add_parser("interactive", parents=[common], help="Prompt for municipalities until 'quit'")
    p_int.add_argument("--seed", type=int, default=None)
    p_int.add_argument("--no-map", action="store_true")

    return parser.parse_args(argv)


def main(argv=None):
    """
    Entry point of the School Location Optimization System.
    """
    args = _parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)
    logging.info("Starting School Location Optimization System")

    store = RegionDataStore()
    seed = getattr(args, "seed", None)
    params = OptimizationParams.from_config(random_seed=seed)

    try:
        if args.command == "optimize":
            run_optimization(store, args.region, args.count, params, render=not args.no_map)
            print_summary(render=not args.no_map)
        elif args.command == "list-regions":
            display_centroids(store)
        elif args.command == "centroids":
            CentroidCalculator().execute()
        elif args.command == "ingest-population":
            parser = PopulationSheetParser()
            locations = parser.parse(args.input)
            parser.export(locations, args.output)
            lo, hi = CONFIG["INGESTION"]["SCHOOL_AGE_RANGE"]
            for area, total in school_age_totals(locations, lo, hi).items():
                logging.info(f"   {area}: {total:,} school-age children ({lo}-{hi})")
        elif args.command == "ingest-schools":
            transformer = SchoolDataTransformer()
            transformer.export(transformer.transform(args.input), args.output)
        elif args.command == "interactive":
            interactive_loop(store, params, render=not args.no_map)
    except PlacementError as e:
        logging.error(f"  ✗ {e}")
        return 1

    logging.info("Execution Complete")
    return 0


def print_summary(render=True):
    """
    Prints a summary of the output files generated.
    """
    output_dir = CONFIG['OUTPUT_DIR']
    outputs = [("JSON Export", "placements.json")]
    if render:
        outputs = [("Interactive Map", "placement_map.html"),
                   ("Placement Overview", "placement_overview.png")] + outputs

    print("\n" + "=" * 90)
    print("EXECUTION SUMMARY")
    print("=" * 90)
    print(f"\nOutput Directory: {output_dir}/")
    print("\nOUTPUTS:")
    for label, filename in outputs:
        path = os.path.join(output_dir, filename)
        if os.path.exists(path):
            print(f"  - {label + ':':<24}{path}")
    print(f"\nDetailed Log: {os.path.join(output_dir, CONFIG['LOG_FILE'])}")
    print("\n" + "=" * 90)


if __name__ == "__main__":
    sys.exit(main())
