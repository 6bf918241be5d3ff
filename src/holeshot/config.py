"""Centralized configuration for Holeshot.

All paths, model parameters, and settings in one place.
Environment variables can override defaults.

Path Constants:
    PROJECT_ROOT - Root directory of the project
    STORAGE_DIR - Storage for results data and artifacts
    MODELS_DIR - Trained model artifacts (overridable via HOLESHOT_MODEL_DIR)
    DEFAULT_RESULTS_PATH - Race results CSV (overridable via HOLESHOT_RESULTS_PATH)
    METADATA_PATH - Trained model metadata records

Scoring Constants:
    MAIN_EVENT_SIZE - Riders that make the main event (scored positions)
    POINTS_TABLE - Adjusted position -> base fantasy points

Environment Variables:
    HOLESHOT_MODEL_DIR - Override model artifact directory
    HOLESHOT_RESULTS_PATH - Override default race results CSV
"""

from __future__ import annotations

import os
from pathlib import Path

# Project root (src/holeshot/config.py -> holeshot -> src -> project_root)
PROJECT_ROOT = Path(__file__).parent.parent.parent
STORAGE_DIR = PROJECT_ROOT / "storage"

MODELS_DIR = Path(os.environ.get(
    "HOLESHOT_MODEL_DIR",
    str(STORAGE_DIR / "models"),
))
METADATA_PATH = MODELS_DIR / "metadata.json"
REPORTS_DIR = STORAGE_DIR / "reports"

DEFAULT_RESULTS_PATH = os.environ.get(
    "HOLESHOT_RESULTS_PATH",
    str(STORAGE_DIR / "results.csv")
)

# Scoring
MAIN_EVENT_SIZE = 22
DOUBLE_POINTS_MAX_POSITION = 10
POINTS_TABLE = {
    1: 25, 2: 22, 3: 20, 4: 18, 5: 17, 6: 16, 7: 15, 8: 14, 9: 13, 10: 12, 11: 11,
    12: 10, 13: 9, 14: 8, 15: 7, 16: 6, 17: 5, 18: 4, 19: 3, 20: 2, 21: 1, 22: 0,
}

# Roster rules
RIDERS_PER_CLASS = 4
ALL_STARS_PER_CLASS = 1
SOLVER_TIME_LIMIT = 10.0  # seconds

# Predictor constants
# NOTE: empirical values carried over from the first season of picks.
# They are not derived from data and should be recalibrated once the
# evaluator has a full season of predictions to score.
QUALIFICATION_CUTOFF = 0.20
MODEL_INTERVAL_MARGIN = 0.25
FALLBACK_INTERVAL_MARGIN = 0.50
FALLBACK_QUALIFICATION_RATE = 0.80
FALLBACK_BASE_FINISH = 12

# Confidence weights
BASE_CONFIDENCE = 0.3
HISTORY_CONFIDENCE = 0.3
TRACK_HISTORY_CONFIDENCE = 0.2
HEALTHY_CONFIDENCE = 0.2
FALLBACK_CONFIDENCE = 0.3

# Feature history
HISTORY_RACES = 5
HISTORY_YEARS = 2
MOMENTUM_RACES = 3
DNQ_FINISH_POSITION = 30  # DNQ counts as worse than last in the main
NO_DATA = -1.0
FACTORY_POINTS = 30.0
SATELLITE_POINTS = 15.0

# Training
MIN_TRAINING_SAMPLES = 200
TEST_FRACTION = 0.2
RANDOM_SEED = 42
MODEL_VERSION = "v2.0.0"

# Prediction cache
PREDICTION_CACHE_TTL = 30 * 60  # seconds
