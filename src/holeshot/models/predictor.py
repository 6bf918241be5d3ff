"""Multi-stage rider predictor.

Fantasy points come out of three separate steps, so they are predicted
in three stages instead of one regression on points:

    Stage 1: Qualification (classifier) -> P(makes main event)
    Stage 2: Finish position (regressor) -> finish 1-22, only if P >= cutoff
    Stage 3: Scoring rules (deterministic) -> points, expected value

    expected_points = P(qualify) x points(finish, handicap, all_star)

Example:
    85% to qualify, predicted 5th, handicap +3 -> adjusted 2nd -> 22 base
    points -> not an All-Star so doubled to 44 -> expected 0.85 x 44 = 37.4

Batch prediction adds force-ranking: raw finishes can collide (three
riders "predicted 4th"), so each class is re-ranked 1..N and points are
recomputed from the forced rank.

Model state (Unloaded -> Loaded -> Reloading -> Loaded) is a single
immutable ModelHandles snapshot. reload_models() builds a new snapshot
under a lock and swaps the reference; predictions read the reference
once and never see a half-built set.

Key Classes:
    MultiStagePredictor - Per-rider and batch prediction
    ModelState - Model availability state

Usage:
    from holeshot.models import MultiStagePredictor

    predictor = MultiStagePredictor(model_dir)
    predictions = predictor.predict_batch(features_list)
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from holeshot.config import (
    BASE_CONFIDENCE,
    HEALTHY_CONFIDENCE,
    HISTORY_CONFIDENCE,
    MAIN_EVENT_SIZE,
    MODEL_VERSION,
    MODELS_DIR,
    TRACK_HISTORY_CONFIDENCE,
)
from holeshot.data.schemas import BikeClass, RiderFeatures
from holeshot.errors import PredictionCancelled
from holeshot.models.baseline import predict_baseline
from holeshot.models.prediction import PredictorConfig, RiderPrediction
from holeshot.models.registry import ModelHandles, artifacts_ready, load_model_handles
from holeshot.models.scoring import calculate_points

logger = logging.getLogger(__name__)


class ModelState(str, Enum):
    UNLOADED = "unloaded"
    LOADED = "loaded"
    RELOADING = "reloading"


def calculate_confidence(features: RiderFeatures) -> float:
    """Data-quality confidence before qualification uncertainty.

    0.3 base, +0.3 with finish history, +0.2 with track history,
    +0.2 when healthy. Capped at 1.0.
    """
    confidence = BASE_CONFIDENCE
    if features.has_history:
        confidence += HISTORY_CONFIDENCE
    if features.has_track_history:
        confidence += TRACK_HISTORY_CONFIDENCE
    if not features.is_injured:
        confidence += HEALTHY_CONFIDENCE
    return min(1.0, confidence)


def force_rank(
    predictions: Sequence[RiderPrediction],
    handicaps: Mapping[str, int],
    margin: float,
) -> List[RiderPrediction]:
    """Re-rank qualifiers 1..N per class and rescore from the forced rank.

    Qualifiers are ordered by raw finish, ties broken by higher expected
    points (then rider id so the order is total). Ranks are capped at 22.
    Points are recomputed from the forced rank and the rider's own
    handicap and All-Star status; expected points use the raw
    prediction's confidence as the qualification proxy. Non-qualifiers
    pass through unchanged. Inputs are never modified.

    Args:
        predictions: Raw predictions.
        handicaps: rider_id -> handicap (missing riders default to 0).
        margin: Interval half-width as a share of expected points.

    Returns:
        New list: per class, ranked qualifiers followed by non-qualifiers.
    """
    ranked: List[RiderPrediction] = []

    for bike_class in BikeClass:
        class_riders = [p for p in predictions if p.bike_class == bike_class]
        qualifiers = sorted(
            (p for p in class_riders if p.is_qualifier),
            key=lambda p: (p.predicted_finish, -p.expected_points, p.rider_id),
        )
        dnqs = [p for p in class_riders if not p.is_qualifier]

        for i, original in enumerate(qualifiers):
            forced_rank = min(i + 1, MAIN_EVENT_SIZE)
            points = float(calculate_points(
                forced_rank, handicaps.get(original.rider_id, 0), original.is_all_star
            ))
            ranked.append(original.with_points(
                predicted_finish=forced_rank,
                points_if_qualifies=points,
                expected_points=original.confidence * points,
                margin=margin,
            ))

        ranked.extend(dnqs)

        logger.info(
            f"Force-ranked {bike_class.value}: {min(len(qualifiers), MAIN_EVENT_SIZE)} "
            f"qualifiers (1-{MAIN_EVENT_SIZE}), {len(dnqs)} DNQs"
        )

    return ranked


class MultiStagePredictor:
    """Qualification -> finish position -> scoring, with heuristic fallback."""

    def __init__(
        self,
        model_dir: Optional[Path] = None,
        config: Optional[PredictorConfig] = None,
    ) -> None:
        """Initialize and attempt a first model load.

        Args:
            model_dir: Directory with the per-class artifacts (default: MODELS_DIR).
            config: Predictor constants.
        """
        self.model_dir = Path(model_dir) if model_dir is not None else MODELS_DIR
        self.config = config or PredictorConfig()
        self._reload_lock = threading.Lock()
        self._handles = ModelHandles(model_dir=self.model_dir)
        self._state = ModelState.UNLOADED

        self.reload_models()

    # -------------------------------------------------------------------------
    # Model state
    # -------------------------------------------------------------------------

    @property
    def state(self) -> ModelState:
        return self._state

    @property
    def handles(self) -> ModelHandles:
        """Current model snapshot."""
        return self._handles

    def is_model_ready(self) -> bool:
        """At least one qualification and one finish-position artifact exist."""
        ready = artifacts_ready(self.model_dir)
        if not ready:
            logger.debug(f"Models not ready in {self.model_dir}")
        return ready

    def reload_models(self) -> ModelHandles:
        """Load artifacts into a new snapshot and swap it in.

        Returns:
            The snapshot now in use.
        """
        logger.info(f"Reloading models from {self.model_dir}...")
        with self._reload_lock:
            previous = self._state
            self._state = ModelState.RELOADING
            try:
                handles = load_model_handles(self.model_dir)
            except Exception:
                self._state = previous
                raise
            self._handles = handles
            self._state = ModelState.LOADED if len(handles) else ModelState.UNLOADED

        logger.info(
            f"Model reload complete: {len(handles)} slot(s) loaded, "
            f"complete={handles.is_complete_for_any_class}"
        )
        return handles

    def model_info(self) -> Dict:
        """Summary of the loaded model set."""
        handles = self._handles
        return {
            "version": MODEL_VERSION,
            "state": self._state.value,
            "model_dir": str(self.model_dir),
            "loaded": sorted(f"{k[0].value}_{k[1].value}" for k in handles.models),
            "ready": self.is_model_ready(),
        }

    # -------------------------------------------------------------------------
    # Prediction
    # -------------------------------------------------------------------------

    def predict(self, features: RiderFeatures) -> RiderPrediction:
        """Predict fantasy points for one rider.

        Never raises for model problems: missing models or a failing model
        call fall back to the handicap heuristic.

        Args:
            features: Rider features for the event.

        Returns:
            RiderPrediction.
        """
        if not self.is_model_ready():
            logger.warning("Models not ready, using fallback")
            return predict_baseline(features, self.config)

        # Models were trained only on riders with history; -1 inputs give nonsense
        if not features.has_history:
            logger.debug(f"Skipping rider {features.rider_id} - no historical data")
            return RiderPrediction.no_score(
                features.rider_id, features.bike_class, features.is_all_star, confidence=0.0
            )

        handles = self._handles

        try:
            qual_probability = handles.qualification(features.bike_class).predict_probability(features)

            if qual_probability < self.config.qualification_cutoff:
                return RiderPrediction.no_score(
                    features.rider_id,
                    features.bike_class,
                    features.is_all_star,
                    confidence=qual_probability,
                )

            predicted_finish = handles.finish_position(features.bike_class).predict_finish(features)

            points_if_qualifies = float(
                calculate_points(predicted_finish, features.handicap, features.is_all_star)
            )
            expected_points = qual_probability * points_if_qualifies
            confidence = calculate_confidence(features) * qual_probability

            logger.debug(
                f"Rider {features.rider_id}: P(qual)={qual_probability:.2f}, "
                f"finish={predicted_finish}, points={points_if_qualifies:.0f}"
            )

            prediction = RiderPrediction.no_score(
                features.rider_id, features.bike_class, features.is_all_star, confidence=confidence
            )
            return prediction.with_points(
                predicted_finish=predicted_finish,
                points_if_qualifies=points_if_qualifies,
                expected_points=expected_points,
                margin=self.config.interval_margin,
            )
        except Exception as e:
            logger.warning(
                f"Multi-stage prediction failed for rider {features.rider_id}, using fallback: {e}"
            )
            return predict_baseline(features, self.config)

    def predict_batch(
        self,
        features_list: Iterable[RiderFeatures],
        cancel_event: Optional[threading.Event] = None,
    ) -> List[RiderPrediction]:
        """Predict every rider, then force-rank each class.

        Output order is by class, not by points; callers sort for display.

        Args:
            features_list: Features for every rider in the event.
            cancel_event: Checked between riders; when set, stops the batch.

        Returns:
            Force-ranked predictions.

        Raises:
            PredictionCancelled: If cancel_event was set.
        """
        all_features = list(features_list)

        raw: List[RiderPrediction] = []
        for features in all_features:
            if cancel_event is not None and cancel_event.is_set():
                raise PredictionCancelled(
                    f"Batch cancelled after {len(raw)} of {len(all_features)} riders"
                )
            raw.append(self.predict(features))

        handicaps = {f.rider_id: f.handicap for f in all_features}
        return force_rank(raw, handicaps, self.config.interval_margin)


__all__ = ["MultiStagePredictor", "ModelState", "calculate_confidence", "force_rank"]
