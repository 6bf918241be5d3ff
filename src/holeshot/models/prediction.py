"""Prediction result types and predictor configuration.

Key Classes:
    RiderPrediction - Immutable per-rider prediction
    PredictorConfig - Tunable constants for the predictor and fallback
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Dict, Optional

from holeshot import config
from holeshot.data.schemas import BikeClass


@dataclass(frozen=True)
class PredictorConfig:
    """Predictor constants.

    Attributes:
        qualification_cutoff: Riders with P(qualify) strictly below this are
            predicted DNQ. Exactly the cutoff passes.
        interval_margin: Interval half-width as a share of expected points.
        fallback_margin: Interval half-width for heuristic predictions.
        fallback_qualification_rate: Assumed P(qualify) for heuristic predictions.
        fallback_base_finish: Heuristic finish is this minus the handicap.
    """

    qualification_cutoff: float = config.QUALIFICATION_CUTOFF
    interval_margin: float = config.MODEL_INTERVAL_MARGIN
    fallback_margin: float = config.FALLBACK_INTERVAL_MARGIN
    fallback_qualification_rate: float = config.FALLBACK_QUALIFICATION_RATE
    fallback_base_finish: int = config.FALLBACK_BASE_FINISH
    fallback_confidence: float = config.FALLBACK_CONFIDENCE


@dataclass(frozen=True)
class RiderPrediction:
    """Prediction for one rider in one event.

    Attributes:
        rider_id: Rider identifier.
        bike_class: Class of the entry.
        is_all_star: All-Star designation (no doubling).
        expected_points: P(qualify) x points_if_qualifies.
        points_if_qualifies: Points at the predicted finish.
        predicted_finish: 1-22, or None for a predicted DNQ.
        lower_bound: Lower edge of the interval (never below 0).
        upper_bound: Upper edge of the interval.
        confidence: 0.0-1.0.
    """

    rider_id: str
    bike_class: BikeClass
    is_all_star: bool
    expected_points: float
    points_if_qualifies: float
    predicted_finish: Optional[int]
    lower_bound: float
    upper_bound: float
    confidence: float

    @property
    def is_qualifier(self) -> bool:
        return self.predicted_finish is not None

    @classmethod
    def no_score(
        cls,
        rider_id: str,
        bike_class: BikeClass,
        is_all_star: bool,
        confidence: float = 0.0,
    ) -> "RiderPrediction":
        """Predicted DNQ: zero points, no finish."""
        return cls(
            rider_id=rider_id,
            bike_class=BikeClass(bike_class),
            is_all_star=is_all_star,
            expected_points=0.0,
            points_if_qualifies=0.0,
            predicted_finish=None,
            lower_bound=0.0,
            upper_bound=0.0,
            confidence=confidence,
        )

    def with_points(
        self,
        predicted_finish: int,
        points_if_qualifies: float,
        expected_points: float,
        margin: float,
    ) -> "RiderPrediction":
        """Copy with new finish and points, interval recomputed at `margin`."""
        spread = expected_points * margin
        return replace(
            self,
            predicted_finish=predicted_finish,
            points_if_qualifies=points_if_qualifies,
            expected_points=expected_points,
            lower_bound=max(0.0, expected_points - spread),
            upper_bound=expected_points + spread,
        )

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON/CSV output."""
        data = asdict(self)
        data["bike_class"] = self.bike_class.value
        return data


__all__ = ["RiderPrediction", "PredictorConfig"]
