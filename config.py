CONFIG = {
    "TARGET_REGION": "NOVO SARAJEVO",
    "N_NEW_FACILITIES": 3,

    "DATA_FILES": {
        "BOUNDARIES": "data/municipality_boundaries.geojson",
        "CENTROIDS": "data/municipality_centroids.json",
        "DEMAND": "data/children_by_area.geojson",
        "SCHOOLS": "data/schools.json",
    },

    "OPTIMIZATION_PARAMS": {
        "SIGMA_KM": 3.0,                 # Gaussian decay around the region center
        "COVERAGE_RADIUS_KM": 2.5,       # Effective catchment of a school
        "MIN_SPACING_KM": 1.5,           # Soft minimum distance between schools
        "REFINEMENT_STEP_DEG": 0.002,
        "MAX_REFINE_ITERATIONS": 10,
        "SAMPLES_PER_RECORD": 1000,      # Interior points per demand polygon
        "SAMPLING_ATTEMPT_FACTOR": 100,
        "RANDOM_SEED": None
    },

    "SCORING_WEIGHTS": {
        "coverage": 2.0,
        "existing_penalty": 1000.0,
        "placed_penalty": 10000.0,
        "centrality": 100.0
    },

    "INGESTION": {
        "SHEET_FIRST_ROW": 7,
        "SHEET_ROW_STEP": 3,
        "TOTAL_MARKER": "Ukupno",
        "SCHOOL_AGE_RANGE": (6, 14)
    },

    "OUTPUT_DIR": "school_output",
    "LOG_FILE": "school_optimization.log"
}
