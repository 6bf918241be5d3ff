"""Prediction evaluation against completed events.

Scores a predictor on events that have already been raced, next to the
handicap baseline. If the models can't beat the baseline, something is
wrong.

Metrics (per event):
    finish_mae - |predicted - actual| finish, riders predicted AND actually in the main
    points_mae - |expected - actual| fantasy points, every rider
    qualification_accuracy - predicted qualifier == actually made the main
    top3_hit_rate - share of actual top-3 per class found in predicted top-3

Key Classes:
    Evaluator - Builds features, predicts, scores against actual results
    EvaluationMetrics - Container for one event's model and baseline scores

Usage:
    from holeshot.pipeline.evaluator import Evaluator

    evaluator = Evaluator(predictor)
    metrics = evaluator.evaluate_event("sx-2026-05", results_df)
    metrics.print_summary()
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from holeshot.config import MAIN_EVENT_SIZE
from holeshot.data.reader import normalize_results
from holeshot.data.schemas import BikeClass
from holeshot.features import FeatureBuilder
from holeshot.models.baseline import predict_baseline
from holeshot.models.prediction import RiderPrediction
from holeshot.models.predictor import MultiStagePredictor, force_rank

logger = logging.getLogger(__name__)

TOP_N = 3


def _round(value: float, digits: int = 4) -> Optional[float]:
    if value is None or math.isnan(value):
        return None
    return round(value, digits)


@dataclass(frozen=True)
class PredictionScores:
    """Accuracy of one set of predictions for one event."""

    finish_mae: float
    points_mae: float
    qualification_accuracy: float
    top3_hit_rate: float

    def to_dict(self) -> Dict:
        return {
            "finish_mae": _round(self.finish_mae),
            "points_mae": _round(self.points_mae),
            "qualification_accuracy": _round(self.qualification_accuracy),
            "top3_hit_rate": _round(self.top3_hit_rate),
        }


def score_predictions(predictions: Sequence[RiderPrediction], actuals: pd.DataFrame) -> PredictionScores:
    """Compare predictions with actual results.

    Args:
        predictions: Predictions for the event.
        actuals: Normalized result rows of the event (finish_position NaN = DNQ).

    Returns:
        PredictionScores (NaN where a metric has no samples).
    """
    actual_by_id = {row["rider_id"]: row for row in actuals.to_dict("records")}

    finish_errors: List[float] = []
    points_errors: List[float] = []
    qual_hits: List[bool] = []

    for p in predictions:
        row = actual_by_id.get(p.rider_id)
        if row is None:
            continue
        finish = row.get("finish_position")
        made_main = finish is not None and not pd.isna(finish) and finish <= MAIN_EVENT_SIZE
        points = row.get("fantasy_points")
        points = 0.0 if points is None or pd.isna(points) else float(points)

        points_errors.append(abs(p.expected_points - points))
        qual_hits.append(p.is_qualifier == made_main)
        if p.is_qualifier and made_main:
            finish_errors.append(abs(p.predicted_finish - float(finish)))

    top3_rates = []
    for bike_class in BikeClass:
        class_actuals = actuals[
            (actuals["bike_class"] == bike_class.value)
            & (actuals["finish_position"] <= MAIN_EVENT_SIZE)
        ]
        if len(class_actuals) < TOP_N:
            continue
        actual_top = set(class_actuals.nsmallest(TOP_N, "finish_position")["rider_id"])
        class_preds = sorted(
            (p for p in predictions if p.bike_class == bike_class),
            key=lambda p: (-p.expected_points, p.rider_id),
        )
        predicted_top = {p.rider_id for p in class_preds[:TOP_N]}
        top3_rates.append(len(actual_top & predicted_top) / TOP_N)

    def mean(values: Iterable[float]) -> float:
        values = list(values)
        return float(np.mean(values)) if values else float("nan")

    return PredictionScores(
        finish_mae=mean(finish_errors),
        points_mae=mean(points_errors),
        qualification_accuracy=mean(float(h) for h in qual_hits),
        top3_hit_rate=mean(top3_rates),
    )


class EvaluationMetrics:
    """Container for evaluation results."""

    def __init__(
        self,
        dataset_name: str,
        model: PredictionScores,
        baseline: PredictionScores,
        n_samples: int,
    ):
        self.dataset_name = dataset_name
        self.model = model
        self.baseline = baseline
        self.n_samples = n_samples

    @property
    def points_mae_improvement(self) -> float:
        """Relative points MAE improvement over baseline (negative is bad)."""
        if not self.baseline.points_mae:
            return 0.0
        return (self.baseline.points_mae - self.model.points_mae) / self.baseline.points_mae

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "dataset": self.dataset_name,
            "model": self.model.to_dict(),
            "baseline": self.baseline.to_dict(),
            "points_mae_improvement_pct": _round(self.points_mae_improvement * 100, 2),
            "n_samples": self.n_samples,
        }

    def print_summary(self):
        """Print evaluation summary."""
        print(f"\n{'='*60}")
        print(f"Evaluation: {self.dataset_name}")
        print(f"{'='*60}")
        print(f"{'':24} {'Model':>10} {'Baseline':>10}")
        print(f"{'Finish MAE':24} {self.model.finish_mae:>10.3f} {self.baseline.finish_mae:>10.3f}")
        print(f"{'Points MAE':24} {self.model.points_mae:>10.3f} {self.baseline.points_mae:>10.3f}")
        print(
            f"{'Qualification accuracy':24} {self.model.qualification_accuracy:>10.1%} "
            f"{self.baseline.qualification_accuracy:>10.1%}"
        )
        print(f"{'Top-3 hit rate':24} {self.model.top3_hit_rate:>10.1%} {self.baseline.top3_hit_rate:>10.1%}")
        print(f"\nPoints MAE improvement: {self.points_mae_improvement*100:+.2f}%")
        print(f"Samples:                {self.n_samples}")


class Evaluator:
    """Evaluate a predictor on completed events.

    Attributes:
        predictor: The predictor under test
        feature_builder: Builds event features from prior results only
    """

    def __init__(
        self,
        predictor: MultiStagePredictor,
        feature_builder: Optional[FeatureBuilder] = None,
    ):
        self.predictor = predictor
        self.feature_builder = feature_builder or FeatureBuilder()

    def evaluate_event(self, event_id: str, results: pd.DataFrame) -> EvaluationMetrics:
        """Evaluate model and baseline predictions for one completed event.

        Args:
            event_id: A completed event in `results`.
            results: Results table (the event's own rows are the ground truth).

        Returns:
            EvaluationMetrics with performance summary

        Raises:
            ValueError: If the event has no completed entries.
        """
        results = normalize_results(results)
        actuals = results[(results["event_id"] == str(event_id)) & results["is_completed"]]
        if actuals.empty:
            raise ValueError(f"No completed results for event {event_id}")

        logger.info(f"Evaluating event {event_id} ({len(actuals)} entries)")

        features = self.feature_builder.build_for_event(event_id, results)
        model_preds = self.predictor.predict_batch(features)

        handicaps = {f.rider_id: f.handicap for f in features}
        baseline_preds = force_rank(
            [predict_baseline(f, self.predictor.config) for f in features],
            handicaps,
            self.predictor.config.fallback_margin,
        )

        return EvaluationMetrics(
            dataset_name=str(event_id),
            model=score_predictions(model_preds, actuals),
            baseline=score_predictions(baseline_preds, actuals),
            n_samples=len(features),
        )

    def evaluate_events(
        self,
        event_ids: Iterable[str],
        results: pd.DataFrame,
    ) -> Dict[str, EvaluationMetrics]:
        """Evaluate several events; events without results are skipped."""
        evaluations = {}
        for event_id in event_ids:
            try:
                metrics = self.evaluate_event(event_id, results)
                metrics.print_summary()
                evaluations[str(event_id)] = metrics
            except ValueError as e:
                logger.warning(f"Skipping {event_id}: {e}")
        return evaluations

    def save_results(
        self,
        results: Dict[str, EvaluationMetrics],
        out_path: Optional[str] = None,
    ) -> str:
        """Save evaluation results to JSON.

        Args:
            results: Dictionary of evaluation metrics
            out_path: Path to save (default: model_dir/evaluation.json)

        Returns:
            Path to saved file
        """
        if out_path is None:
            out_path = self.predictor.model_dir / "evaluation.json"
        else:
            out_path = Path(out_path)

        out_path.parent.mkdir(parents=True, exist_ok=True)

        results_dict = {name: m.to_dict() for name, m in results.items()}

        with open(out_path, "w") as f:
            json.dump(results_dict, f, indent=2)

        logger.info(f"Results saved to {out_path}")
        return str(out_path)


__all__ = ["Evaluator", "EvaluationMetrics", "PredictionScores", "score_predictions"]
