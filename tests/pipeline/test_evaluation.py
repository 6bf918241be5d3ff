"""Tests for prediction evaluation and the end-to-end pipeline."""

import json

import numpy as np
import pandas as pd
import pytest

from holeshot.data.reader import normalize_results
from holeshot.data.schemas import BikeClass
from holeshot.models.predictor import MultiStagePredictor
from holeshot.models.prediction import RiderPrediction
from holeshot.pipeline import Pipeline
from holeshot.pipeline.evaluator import Evaluator, score_predictions


def _pred(rider_id, finish, expected, bike_class=BikeClass.CLASS_450):
    base = RiderPrediction.no_score(rider_id, bike_class, False, confidence=1.0)
    if finish is None:
        return base
    return base.with_points(finish, expected, expected, 0.25)


def _actuals(rows):
    df = pd.DataFrame([
        {
            "event_id": "e1", "event_date": "2025-01-04", "series_id": "s", "series_type": "Supercross",
            "venue": "Anaheim", "rider_id": rider_id, "bike_class": "Class450", "is_completed": True,
            "finish_position": finish, "fantasy_points": points,
        }
        for rider_id, finish, points in rows
    ])
    return normalize_results(df)


class TestScorePredictions:

    def test_metrics(self):
        predictions = [
            _pred("a", 1, 40.0),
            _pred("b", 3, 20.0),
            _pred("c", 2, 30.0),
            _pred("d", None, 0.0),
        ]
        actuals = _actuals([("a", 2, 44), ("b", 1, 50), ("c", 3, 40), ("d", np.nan, 0)])

        scores = score_predictions(predictions, actuals)

        assert scores.finish_mae == pytest.approx((1 + 2 + 1) / 3)
        assert scores.points_mae == pytest.approx((4 + 30 + 10 + 0) / 4)
        assert scores.qualification_accuracy == pytest.approx(1.0)
        assert scores.top3_hit_rate == pytest.approx(1.0)

    def test_wrong_qualifier(self):
        predictions = [_pred("a", None, 0.0), _pred("b", 5, 10.0)]
        actuals = _actuals([("a", 4, 30), ("b", np.nan, 0)])

        scores = score_predictions(predictions, actuals)

        assert scores.qualification_accuracy == 0.0
        assert np.isnan(scores.finish_mae)
        assert scores.to_dict()["finish_mae"] is None


class TestEvaluator:

    def test_fallback_matches_baseline(self, tmp_path, synthetic_results):
        """Without models the predictor is the baseline, so both score the same."""
        evaluator = Evaluator(MultiStagePredictor(tmp_path / "models"))

        metrics = evaluator.evaluate_event("sx-2025-10", synthetic_results)

        assert metrics.n_samples == 60
        assert metrics.model.points_mae == pytest.approx(metrics.baseline.points_mae)
        assert metrics.points_mae_improvement == pytest.approx(0.0)

    def test_upcoming_event_rejected(self, tmp_path, synthetic_results):
        evaluator = Evaluator(MultiStagePredictor(tmp_path / "models"))

        with pytest.raises(ValueError):
            evaluator.evaluate_event("sx-2025-11", synthetic_results)

    def test_save_results(self, tmp_path, synthetic_results, capsys):
        evaluator = Evaluator(MultiStagePredictor(tmp_path / "models"))
        results = evaluator.evaluate_events(["sx-2025-09", "sx-2025-11"], synthetic_results)

        path = evaluator.save_results(results, tmp_path / "out" / "evaluation.json")

        saved = json.loads(open(path).read())
        assert list(saved) == ["sx-2025-09"]
        assert set(saved["sx-2025-09"]) >= {"model", "baseline", "n_samples"}
        assert "Evaluation: sx-2025-09" in capsys.readouterr().out


class TestPipeline:

    def test_run_end_to_end(self, tmp_path, results_csv):
        model_dir = tmp_path / "models"

        pipeline = Pipeline.run(str(results_csv), model_dir)

        assert len(pipeline.trained) == 4
        assert all((model_dir / f"{c}_{t}.joblib").exists()
                   for c in ("Class250", "Class450")
                   for t in ("Qualification", "FinishPosition"))
        assert len(pipeline.metadata.history()) == 4
        assert (model_dir / "evaluation.json").exists()
        assert list(pipeline.evaluations) == ["sx-2025-10"]

        predictor = MultiStagePredictor(model_dir)
        assert predictor.is_model_ready()

    def test_insufficient_data_trains_nothing(self, tmp_path, results_factory):
        path = tmp_path / "small.csv"
        results_factory(n_events=4, riders_per_class=10).to_csv(path, index=False)

        pipeline = Pipeline(str(path), tmp_path / "models")
        pipeline.gather_data()
        pipeline.build_features()

        assert pipeline.train() == []

    def test_steps_require_order(self, tmp_path, results_csv):
        pipeline = Pipeline(str(results_csv), tmp_path / "models")

        with pytest.raises(ValueError):
            pipeline.build_features()
        with pytest.raises(ValueError):
            pipeline.train()
