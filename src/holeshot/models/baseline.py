"""Baseline (fallback) predictor.

Handicap heuristic used when models are unavailable or a model call fails
for a rider. Also the benchmark the evaluator compares the models to.
If the models can't beat this, something is wrong.
"""

from __future__ import annotations

from typing import Optional

from holeshot.config import MAIN_EVENT_SIZE
from holeshot.data.schemas import RiderFeatures
from holeshot.models.prediction import PredictorConfig, RiderPrediction
from holeshot.models.scoring import calculate_points


def estimate_finish(handicap: int, base_finish: int = 12) -> int:
    """Handicap-proportional finish estimate: base - handicap, clamped to 1-22.

    A +10 handicap rider usually finishes somewhere around 10th-15th.
    """
    return min(max(base_finish - handicap, 1), MAIN_EVENT_SIZE)


def predict_baseline(
    features: RiderFeatures,
    config: Optional[PredictorConfig] = None,
) -> RiderPrediction:
    """Heuristic prediction from the handicap alone.

    Injured riders are certain zeros (confidence 1.0). Everyone else gets
    the estimated finish scored normally, an assumed 80% qualification
    rate, a 50% interval and low confidence.

    Args:
        features: Rider features (only handicap, all-star and injury are used).
        config: Predictor constants (default: PredictorConfig()).

    Returns:
        RiderPrediction.
    """
    config = config or PredictorConfig()

    if features.is_injured:
        return RiderPrediction.no_score(
            features.rider_id, features.bike_class, features.is_all_star, confidence=1.0
        )

    finish = estimate_finish(features.handicap, config.fallback_base_finish)
    points_if_qualifies = float(calculate_points(finish, features.handicap, features.is_all_star))
    expected_points = points_if_qualifies * config.fallback_qualification_rate

    prediction = RiderPrediction.no_score(
        features.rider_id,
        features.bike_class,
        features.is_all_star,
        confidence=config.fallback_confidence,
    )
    return prediction.with_points(
        predicted_finish=finish,
        points_if_qualifies=points_if_qualifies,
        expected_points=expected_points,
        margin=config.fallback_margin,
    )


__all__ = ["predict_baseline", "estimate_finish"]
