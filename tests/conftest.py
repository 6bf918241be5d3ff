"""Pytest fixtures/config for Holeshot tests."""

import os
import sys

import numpy as np
import pandas as pd
import pytest


def pytest_sessionstart(session) -> None:  # type: ignore[unused-argument]
    repo_root = os.path.dirname(os.path.dirname(__file__))
    src_path = os.path.join(repo_root, "src")
    if src_path not in sys.path:
        sys.path.insert(0, src_path)


VENUES = ["Anaheim", "San Diego", "Arlington", "Daytona"]


def make_results(
    n_events: int = 12,
    riders_per_class: int = 30,
    series_type: str = "Supercross",
    series_id: str = "sx-2025",
    start: str = "2025-01-04",
    upcoming: bool = True,
    seed: int = 0,
) -> pd.DataFrame:
    """Synthetic results table: weekly events, both classes.

    Rider skill follows the rider index (r450_00 is the fastest) plus
    noise. The 5 fastest riders of each class are All-Stars. With
    `upcoming`, the last event is not yet raced.
    """
    from holeshot.models.scoring import calculate_points

    rng = np.random.default_rng(seed)
    start_date = pd.Timestamp(start, tz="UTC")
    rows = []

    for e in range(n_events):
        completed = not (upcoming and e == n_events - 1)
        event_date = start_date + pd.Timedelta(days=7 * e)
        for bike_class, prefix in (("Class450", "r450"), ("Class250", "r250")):
            score = np.arange(riders_per_class) + rng.normal(0, 4, riders_per_class)
            order = np.argsort(score)
            positions = np.empty(riders_per_class, dtype=int)
            positions[order] = np.arange(1, riders_per_class + 1)

            for idx in range(riders_per_class):
                handicap = int(min(max(idx // 3 - 1, -1), 9))
                is_all_star = idx < 5
                finish = int(positions[idx])
                made_main = completed and finish <= 22
                rows.append({
                    "event_id": f"{series_id}-{e:02d}",
                    "event_date": event_date.isoformat(),
                    "series_id": series_id,
                    "series_type": series_type,
                    "venue": VENUES[e % len(VENUES)],
                    "rider_id": f"{prefix}_{idx:02d}",
                    "bike_class": bike_class,
                    "handicap": handicap,
                    "is_all_star": is_all_star,
                    "is_injured": False,
                    "is_completed": completed,
                    "finish_position": finish if made_main else np.nan,
                    "fantasy_points": (
                        calculate_points(finish, handicap, is_all_star) if made_main
                        else (0 if completed else np.nan)
                    ),
                })

    return pd.DataFrame(rows)


@pytest.fixture
def results_factory():
    return make_results


@pytest.fixture
def synthetic_results() -> pd.DataFrame:
    return make_results()


@pytest.fixture
def results_csv(tmp_path, synthetic_results):
    path = tmp_path / "results.csv"
    synthetic_results.to_csv(path, index=False)
    return path


@pytest.fixture
def make_features():
    """Factory for RiderFeatures with usable history by default."""
    from holeshot.data.schemas import BikeClass, RiderFeatures

    def _make(rider_id="r1", bike_class=BikeClass.CLASS_450, **overrides):
        values = {
            "handicap": 3,
            "avg_finish_last5": 8.0,
            "avg_fantasy_points_last5": 20.0,
            "finish_rate": 100.0,
            "track_history": 6.0,
            "recent_momentum": 1.5,
            "track_type": "Indoor",
        }
        values.update(overrides)
        return RiderFeatures(rider_id=rider_id, bike_class=bike_class, **values)

    return _make


@pytest.fixture
def save_slot_models():
    """Save fitted sklearn estimators into every (or the given) class slot."""
    from holeshot.data.schemas import BikeClass
    from holeshot.features.definitions import FINISH_POSITION_FEATURES, QUALIFICATION_FEATURES
    from holeshot.models.finish_position_model import FinishPositionModel
    from holeshot.models.qualification_model import QualificationModel

    def _save(model_dir, qualification=None, finish_position=None, classes=tuple(BikeClass)):
        for bike_class in classes:
            if qualification is not None:
                QualificationModel(qualification, QUALIFICATION_FEATURES, bike_class).save(model_dir)
            if finish_position is not None:
                FinishPositionModel(finish_position, FINISH_POSITION_FEATURES, bike_class).save(model_dir)
        return model_dir

    return _save


@pytest.fixture
def dummy_qualifier():
    """DummyClassifier whose P(qualify) is the share of 1s in the labels."""
    from sklearn.dummy import DummyClassifier

    def _make(labels):
        y = np.array(labels)
        X = np.zeros((len(y), 5))
        return DummyClassifier(strategy="prior").fit(X, y)

    return _make


@pytest.fixture
def constant_finisher():
    """DummyRegressor that always predicts the given finish."""
    from sklearn.dummy import DummyRegressor

    def _make(finish):
        X = np.zeros((2, 7))
        return DummyRegressor(strategy="constant", constant=finish).fit(X, [finish, finish])

    return _make
