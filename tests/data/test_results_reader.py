import pandas as pd
import pytest

from holeshot.data import ResultsReader, normalize_results
from holeshot.data.schemas import BikeClass, RaceResultSchema, RiderFeatures, SeriesType


# Test: ResultsReader event lookups
def test_events_and_entries(results_csv):
    reader = ResultsReader(str(results_csv))

    events = reader.get_events()
    assert len(events) == 12
    assert events["event_date"].is_monotonic_increasing

    entries = reader.get_event_entries("sx-2025-03")
    assert len(entries) == 60
    assert set(entries["bike_class"]) == {"Class450", "Class250"}


# Test: next event is the first one not yet raced
def test_next_event(results_csv):
    reader = ResultsReader(str(results_csv))
    assert reader.get_next_event_id() == "sx-2025-11"


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        ResultsReader(str(tmp_path / "nope.csv"))


def test_validate_rows(results_csv):
    reader = ResultsReader(str(results_csv))
    records = reader.validate()

    assert len(records) == 12 * 60
    assert all(isinstance(r, RaceResultSchema) for r in records)
    assert records[0].series_type == SeriesType.SUPERCROSS


# Test: normalization fills optional columns and coerces types
def test_normalize_fills_defaults():
    df = pd.DataFrame([{
        "event_id": 1, "event_date": "2025-01-04", "series_id": "s", "series_type": "Supercross",
        "venue": "Anaheim", "rider_id": 7, "bike_class": "Class450", "is_completed": "true",
    }])

    out = normalize_results(df)

    assert out.loc[0, "rider_id"] == "7"
    assert out.loc[0, "handicap"] == 0
    assert bool(out.loc[0, "is_completed"]) is True
    assert bool(out.loc[0, "is_all_star"]) is False
    assert pd.isna(out.loc[0, "finish_position"])


def test_normalize_requires_columns():
    with pytest.raises(ValueError, match="rider_id"):
        normalize_results(pd.DataFrame([{"event_id": "e1"}]))


# Test: RiderFeatures helpers
def test_rider_features_flags():
    f = RiderFeatures(rider_id="r", bike_class=BikeClass.CLASS_250, track_type="Indoor")

    assert not f.has_history
    assert not f.has_track_history
    assert f.is_indoor
    assert SeriesType.MOTOCROSS.track_type == "Outdoor"


def test_finish_rate_bounds():
    with pytest.raises(ValueError):
        RiderFeatures(rider_id="r", bike_class=BikeClass.CLASS_250, finish_rate=120.0)


# Test: completed events carry full timestamps, the upcoming one a bare date
def test_normalize_mixed_iso_dates():
    base = {"series_id": "s", "series_type": "Supercross", "venue": "Anaheim",
            "rider_id": "r1", "bike_class": "Class450"}
    df = pd.DataFrame([
        {**base, "event_id": "e1", "event_date": "2025-01-04T19:00:00", "is_completed": True},
        {**base, "event_id": "e2", "event_date": "2025-01-11T19:00:00+00:00", "is_completed": True},
        {**base, "event_id": "e3", "event_date": "2025-01-18", "is_completed": False},
    ])

    out = normalize_results(df)

    assert list(out["event_id"]) == ["e1", "e2", "e3"]
    assert out.loc[2, "event_date"] == pd.Timestamp("2025-01-18", tz="UTC")
    assert str(out["event_date"].dt.tz) == "UTC"


def test_mixed_dates_from_csv(tmp_path, synthetic_results):
    df = synthetic_results.copy()
    upcoming = df["event_id"] == "sx-2025-11"
    df.loc[upcoming, "event_date"] = "2025-03-15"
    path = tmp_path / "results.csv"
    df.to_csv(path, index=False)

    reader = ResultsReader(str(path))

    assert reader.get_next_event_id() == "sx-2025-11"
    assert len(reader.get_event_entries("sx-2025-11")) == 60


# Test: injury and gate columns are optional numeric inputs
def test_injury_and_gate_columns():
    df = pd.DataFrame([{
        "event_id": "e1", "event_date": "2025-01-04", "series_id": "s", "series_type": "Supercross",
        "venue": "Anaheim", "rider_id": "r1", "bike_class": "Class450",
        "days_since_injury": "14", "gate_pick": 3,
    }])

    out = normalize_results(df)

    assert out.loc[0, "days_since_injury"] == 14
    assert out.loc[0, "gate_pick"] == 3
    assert pd.isna(normalize_results(df.drop(columns=["gate_pick"])).loc[0, "gate_pick"])
