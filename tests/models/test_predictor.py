"""Tests for the multi-stage predictor.

CONTRACT:
    - P(qualify) strictly below 0.20 -> zero points, confidence = P(qualify)
    - Exactly 0.20 passes to the finish model
    - No history -> zero points, confidence 0 (models never see -1 inputs)
    - Models missing or failing -> handicap fallback, never an exception
    - NaN or infinite model output counts as a failing model
    - Reloads never expose a half-built model set to running predictions
"""

import threading

import numpy as np
import pytest
from sklearn.linear_model import LogisticRegression

from holeshot.data.schemas import BikeClass
from holeshot.errors import PredictionCancelled
from holeshot.models.predictor import ModelState, MultiStagePredictor, calculate_confidence
from holeshot.models.qualification_model import QualificationModel


class NanQualifier:
    """Backend whose predict() returns NaN for every row."""

    def predict(self, X):
        return np.full(len(X), np.nan)


@pytest.fixture
def model_dir(tmp_path):
    return tmp_path / "models"


class TestConfidence:

    def test_full_data_healthy_rider(self, make_features):
        assert calculate_confidence(make_features()) == pytest.approx(1.0)

    def test_no_track_history(self, make_features):
        assert calculate_confidence(make_features(track_history=None)) == pytest.approx(0.8)

    def test_injured_without_history(self, make_features):
        features = make_features(avg_finish_last5=None, track_history=None, is_injured=True)
        assert calculate_confidence(features) == pytest.approx(0.3)


class TestModelPrediction:

    def test_qualifier_scored_through_all_stages(self, model_dir, make_features,
                                                 save_slot_models, dummy_qualifier, constant_finisher):
        """P=0.75, finish 5, +3 handicap: adjusted 2nd -> 44 points -> EV 33."""
        save_slot_models(model_dir, dummy_qualifier([1, 1, 1, 0]), constant_finisher(5.0))
        predictor = MultiStagePredictor(model_dir)

        p = predictor.predict(make_features(handicap=3))

        assert p.predicted_finish == 5
        assert p.points_if_qualifies == 44.0
        assert p.expected_points == pytest.approx(33.0)
        assert p.confidence == pytest.approx(0.75)
        assert p.lower_bound == pytest.approx(24.75)
        assert p.upper_bound == pytest.approx(41.25)

    def test_cutoff_is_inclusive(self, model_dir, make_features,
                                 save_slot_models, dummy_qualifier, constant_finisher):
        """Exactly 0.20 is not below the cutoff."""
        save_slot_models(model_dir, dummy_qualifier([1, 0, 0, 0, 0]), constant_finisher(10.0))
        predictor = MultiStagePredictor(model_dir)

        p = predictor.predict(make_features(handicap=0))

        assert p.is_qualifier
        assert p.predicted_finish == 10
        assert p.expected_points == pytest.approx(0.2 * 24.0)

    def test_below_cutoff_is_dnq(self, model_dir, make_features,
                                 save_slot_models, dummy_qualifier, constant_finisher):
        save_slot_models(model_dir, dummy_qualifier([1] + [0] * 9), constant_finisher(10.0))
        predictor = MultiStagePredictor(model_dir)

        p = predictor.predict(make_features())

        assert p.predicted_finish is None
        assert p.expected_points == 0.0
        assert p.points_if_qualifies == 0.0
        assert p.confidence == pytest.approx(0.1)

    def test_no_history_scores_zero(self, model_dir, make_features,
                                    save_slot_models, dummy_qualifier, constant_finisher):
        save_slot_models(model_dir, dummy_qualifier([1, 1, 1, 0]), constant_finisher(5.0))
        predictor = MultiStagePredictor(model_dir)

        p = predictor.predict(make_features(avg_finish_last5=None))

        assert p.predicted_finish is None
        assert p.expected_points == 0.0
        assert p.confidence == 0.0

    def test_predicted_finish_is_clamped(self, model_dir, make_features,
                                         save_slot_models, dummy_qualifier, constant_finisher):
        save_slot_models(model_dir, dummy_qualifier([1, 1, 1, 0]), constant_finisher(31.7))
        predictor = MultiStagePredictor(model_dir)

        assert predictor.predict(make_features()).predicted_finish == 22

    def test_model_failure_falls_back(self, model_dir, make_features,
                                      save_slot_models, constant_finisher):
        """A qualification model expecting 2 inputs fails on 5 and triggers the fallback."""
        broken = LogisticRegression().fit(np.array([[0, 0], [1, 1]]), [0, 1])
        save_slot_models(model_dir, broken, constant_finisher(5.0))
        predictor = MultiStagePredictor(model_dir)

        p = predictor.predict(make_features(handicap=3))

        assert p.confidence == pytest.approx(0.3)
        assert p.predicted_finish == 9


    def test_non_finite_probability_falls_back(self, model_dir, make_features,
                                               save_slot_models, constant_finisher):
        """A NaN P(qualify) never slips past the cutoff."""
        save_slot_models(model_dir, NanQualifier(), constant_finisher(5.0))
        predictor = MultiStagePredictor(model_dir)

        p = predictor.predict(make_features(handicap=3))

        assert p.confidence == pytest.approx(0.3)
        assert p.predicted_finish == 9
        assert np.isfinite(p.expected_points)
        assert np.isfinite(p.upper_bound)

    def test_non_finite_score_rejected(self, make_features):
        model = QualificationModel(NanQualifier(), bike_class=BikeClass.CLASS_450)

        with pytest.raises(ValueError, match="non-finite"):
            model.predict_probability(make_features())


class TestFallback:

    def test_no_models_uses_heuristic(self, model_dir, make_features):
        predictor = MultiStagePredictor(model_dir)
        assert predictor.state == ModelState.UNLOADED

        p = predictor.predict(make_features(handicap=3, is_all_star=False))

        # finish 12 - 3 = 9, points scored with the handicap again (adjusted 6th)
        assert p.predicted_finish == 9
        assert p.points_if_qualifies == 32.0
        assert p.expected_points == pytest.approx(25.6)
        assert p.confidence == pytest.approx(0.3)
        assert p.lower_bound == pytest.approx(12.8)
        assert p.upper_bound == pytest.approx(38.4)

    def test_injured_rider_fallback_is_certain_zero(self, model_dir, make_features):
        predictor = MultiStagePredictor(model_dir)

        p = predictor.predict(make_features(is_injured=True))

        assert p.expected_points == 0.0
        assert p.confidence == 1.0

    def test_partial_models_not_ready(self, model_dir, make_features,
                                      save_slot_models, dummy_qualifier):
        save_slot_models(model_dir, qualification=dummy_qualifier([1, 1, 1, 0]))
        predictor = MultiStagePredictor(model_dir)

        assert not predictor.is_model_ready()
        assert predictor.predict(make_features()).confidence == pytest.approx(0.3)

    def test_class_without_models_falls_back(self, model_dir, make_features,
                                             save_slot_models, dummy_qualifier, constant_finisher):
        """450 models only: a 250 rider gets the heuristic, not an error."""
        save_slot_models(
            model_dir, dummy_qualifier([1, 1, 1, 0]), constant_finisher(5.0),
            classes=(BikeClass.CLASS_450,),
        )
        predictor = MultiStagePredictor(model_dir)

        p = predictor.predict(make_features(bike_class=BikeClass.CLASS_250))

        assert p.confidence == pytest.approx(0.3)


class TestReload:

    def test_reload_picks_up_new_artifacts(self, model_dir, make_features,
                                           save_slot_models, dummy_qualifier, constant_finisher):
        predictor = MultiStagePredictor(model_dir)
        assert predictor.state == ModelState.UNLOADED

        save_slot_models(model_dir, dummy_qualifier([1, 1, 1, 0]), constant_finisher(5.0))
        handles = predictor.reload_models()

        assert predictor.state == ModelState.LOADED
        assert len(handles) == 4
        assert predictor.predict(make_features()).confidence == pytest.approx(0.75)

    def test_reload_swaps_snapshot(self, model_dir, save_slot_models,
                                   dummy_qualifier, constant_finisher):
        save_slot_models(model_dir, dummy_qualifier([1, 1, 1, 0]), constant_finisher(5.0))
        predictor = MultiStagePredictor(model_dir)
        before = predictor.handles

        predictor.reload_models()

        assert predictor.handles is not before
        assert len(before) == 4

    def test_deleted_artifacts_fall_back(self, model_dir, make_features,
                                         save_slot_models, dummy_qualifier, constant_finisher):
        save_slot_models(model_dir, dummy_qualifier([1, 1, 1, 0]), constant_finisher(5.0))
        predictor = MultiStagePredictor(model_dir)

        for path in model_dir.glob("*_FinishPosition.joblib"):
            path.unlink()

        assert predictor.predict(make_features()).confidence == pytest.approx(0.3)

    def test_model_info(self, model_dir, save_slot_models, dummy_qualifier, constant_finisher):
        save_slot_models(model_dir, dummy_qualifier([1, 1, 1, 0]), constant_finisher(5.0))
        info = MultiStagePredictor(model_dir).model_info()

        assert info["state"] == "loaded"
        assert info["ready"] is True
        assert "Class450_Qualification" in info["loaded"]

    def test_reload_during_predictions(self, model_dir, make_features,
                                       save_slot_models, dummy_qualifier, constant_finisher):
        """Predicting threads keep scoring through the models while reloads swap the set."""
        save_slot_models(model_dir, dummy_qualifier([1, 1, 1, 0]), constant_finisher(5.0))
        predictor = MultiStagePredictor(model_dir)
        features = make_features(handicap=3)
        stop = threading.Event()
        scored = threading.Event()
        confidences = []
        errors = []

        def keep_predicting():
            while not stop.is_set():
                try:
                    confidences.append(predictor.predict(features).confidence)
                except Exception as e:
                    errors.append(e)
                scored.set()

        workers = [threading.Thread(target=keep_predicting) for _ in range(4)]
        for worker in workers:
            worker.start()
        scored.wait(timeout=10)
        try:
            for _ in range(30):
                predictor.reload_models()
        finally:
            stop.set()
            for worker in workers:
                worker.join(timeout=30)

        assert errors == []
        assert confidences
        assert all(c == pytest.approx(0.75) for c in confidences)
        assert predictor.state == ModelState.LOADED


class TestBatch:

    def test_cancelled_batch_raises(self, model_dir, make_features):
        predictor = MultiStagePredictor(model_dir)
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(PredictionCancelled):
            predictor.predict_batch([make_features("a"), make_features("b")], cancel_event=cancel)

    def test_batch_ranks_identical_predictions_uniquely(self, model_dir, make_features,
                                                        save_slot_models, dummy_qualifier,
                                                        constant_finisher):
        save_slot_models(model_dir, dummy_qualifier([1, 1, 1, 0]), constant_finisher(5.0))
        predictor = MultiStagePredictor(model_dir)
        features = [make_features(f"r{i}", handicap=i) for i in range(5)]

        predictions = predictor.predict_batch(features)

        finishes = [p.predicted_finish for p in predictions]
        assert sorted(finishes) == [1, 2, 3, 4, 5]
        # Tie on raw finish: higher expected points takes the better rank
        by_id = {p.rider_id: p for p in predictions}
        assert by_id["r4"].predicted_finish == 1
        assert by_id["r0"].predicted_finish == 5

    def test_batch_deterministic(self, model_dir, make_features,
                                 save_slot_models, dummy_qualifier, constant_finisher):
        save_slot_models(model_dir, dummy_qualifier([1, 1, 1, 0]), constant_finisher(5.0))
        predictor = MultiStagePredictor(model_dir)
        features = [make_features(f"r{i}", handicap=i % 3) for i in range(8)]

        assert predictor.predict_batch(features) == predictor.predict_batch(features)
