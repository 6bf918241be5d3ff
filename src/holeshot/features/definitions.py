"""Feature column definitions and configuration.

Defines the feature order expected by the trained models. The order is
the real contract between training and inference: a model artifact is a
function of a vector, and the vector is built here.

Two model variants per bike class:
- QUALIFICATION_FEATURES: P(makes main event)
- FINISH_POSITION_FEATURES: finish position given a main event start

"Pick trend is excluded from qualification because it is only known
after the event opens for picks."
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from holeshot import config
from holeshot.data.schemas import RiderFeatures

QUALIFICATION_FEATURES = [
    "handicap",
    "avg_finish_last5",
    "finish_rate",
    "track_history",
    "is_all_star",
]

FINISH_POSITION_FEATURES = [
    "handicap",
    "avg_finish_last5",
    "avg_fantasy_points_last5",
    "track_history",
    "recent_momentum",
    "is_all_star_float",
    "track_type_indoor_float",
]

QUALIFICATION_LABEL = "made_main"
FINISH_POSITION_LABEL = "finish_position"

# Fill values when a history field is None
NO_DATA = config.NO_DATA
DEFAULT_FINISH_RATE = 100.0
DEFAULT_MOMENTUM = 0.0


@dataclass
class FeatureConfig:
    """Configuration for feature engineering."""

    history_races: int = config.HISTORY_RACES
    history_years: int = config.HISTORY_YEARS
    momentum_races: int = config.MOMENTUM_RACES
    dnq_finish_position: int = config.DNQ_FINISH_POSITION
    main_event_size: int = config.MAIN_EVENT_SIZE


def _or(value: Optional[float], default: float) -> float:
    return float(default if value is None else value)


def qualification_row(features: RiderFeatures) -> dict:
    """Map RiderFeatures onto the qualification model's named inputs."""
    return {
        "handicap": float(features.handicap),
        "avg_finish_last5": _or(features.avg_finish_last5, NO_DATA),
        "finish_rate": _or(features.finish_rate, DEFAULT_FINISH_RATE),
        "track_history": _or(features.track_history, NO_DATA),
        "is_all_star": 1.0 if features.is_all_star else 0.0,
    }


def finish_position_row(features: RiderFeatures) -> dict:
    """Map RiderFeatures onto the finish-position model's named inputs."""
    return {
        "handicap": float(features.handicap),
        "avg_finish_last5": _or(features.avg_finish_last5, NO_DATA),
        "avg_fantasy_points_last5": _or(features.avg_fantasy_points_last5, NO_DATA),
        "track_history": _or(features.track_history, NO_DATA),
        "recent_momentum": _or(features.recent_momentum, DEFAULT_MOMENTUM),
        "is_all_star_float": 1.0 if features.is_all_star else 0.0,
        "track_type_indoor_float": 1.0 if features.is_indoor else 0.0,
    }


def to_vector(row: dict, feature_cols: List[str]) -> np.ndarray:
    """Order a named row into a (1, n_features) matrix.

    Raises:
        ValueError: If the row lacks a column the model expects.
    """
    missing = [c for c in feature_cols if c not in row]
    if missing:
        raise ValueError(f"Missing required feature columns: {missing}")
    return np.array([[row[c] for c in feature_cols]], dtype=float)
