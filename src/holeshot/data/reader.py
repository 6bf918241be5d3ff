"""Read-only access layer for race results.

Provides ResultsReader for loading the race results table (one row per
rider per event, history and upcoming events alike) from CSV into a
normalized pandas DataFrame. All methods are read-only.

Key Methods:
    get_results() - Full normalized results table
    get_event_entries() - Entries for a single event
    get_events() - One row per event (id, date, series, venue, completed)

Usage:
    from holeshot.data import ResultsReader

    reader = ResultsReader("storage/results.csv")
    df = reader.get_results()
    entries = reader.get_event_entries("sx-2026-01")
"""

from __future__ import annotations

import os
from typing import Iterable, List, Optional

import pandas as pd

from holeshot.config import DEFAULT_RESULTS_PATH
from holeshot.data.schemas import RaceResultSchema

REQUIRED_COLUMNS = [
    "event_id",
    "event_date",
    "series_id",
    "series_type",
    "venue",
    "rider_id",
    "bike_class",
]

BOOL_COLUMNS = ["is_all_star", "is_injured", "is_completed"]

OPTIONAL_COLUMNS = {
    "handicap": 0,
    "is_all_star": False,
    "is_injured": False,
    "is_completed": False,
    "finish_position": None,
    "fantasy_points": None,
    "pick_trend": None,
    "qualifying_position": None,
    "qualifying_lap_time": None,
    "qualy_gap_to_leader": None,
    "days_since_injury": None,
    "gate_pick": None,
}


def _to_bool(series: pd.Series) -> pd.Series:
    if series.dtype == bool:
        return series
    truthy = {"true", "1", "yes", "y", "t"}
    return series.fillna(False).astype(str).str.strip().str.lower().isin(truthy)


def normalize_results(df: pd.DataFrame) -> pd.DataFrame:
    """Coerce a raw results frame into the canonical column types.

    Args:
        df: Raw results DataFrame.

    Returns:
        Copy with all optional columns present, ids as strings, dates as
        UTC timestamps and booleans as bool.

    Raises:
        ValueError: If required columns are missing.
    """
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required result columns: {missing}")

    df = df.copy()
    for col, default in OPTIONAL_COLUMNS.items():
        if col not in df.columns:
            df[col] = default

    for col in ["event_id", "series_id", "rider_id", "venue", "series_type", "bike_class"]:
        df[col] = df[col].astype(str)

    df["event_date"] = pd.to_datetime(df["event_date"], utc=True, format="ISO8601")
    for col in BOOL_COLUMNS:
        df[col] = _to_bool(df[col])

    df["handicap"] = pd.to_numeric(df["handicap"], errors="coerce").fillna(0).astype(int)
    for col in ["finish_position", "fantasy_points", "pick_trend", "qualifying_position",
                "qualifying_lap_time", "qualy_gap_to_leader", "days_since_injury", "gate_pick"]:
        df[col] = pd.to_numeric(df[col], errors="coerce")

    return df.sort_values(["event_date", "event_id"]).reset_index(drop=True)


class ResultsReader:
    """CSV-backed client for race results."""

    def __init__(self, results_path: Optional[str] = None) -> None:
        self.results_path = results_path or DEFAULT_RESULTS_PATH
        if not os.path.exists(self.results_path):
            raise FileNotFoundError(f"Results file not found: {self.results_path}")
        self._cache: Optional[pd.DataFrame] = None

    def get_results(self, force: bool = False) -> pd.DataFrame:
        """Load all results (cached after first read)."""
        if self._cache is None or force:
            self._cache = normalize_results(pd.read_csv(self.results_path))
        return self._cache.copy()

    def get_event_entries(self, event_id: str) -> pd.DataFrame:
        """Get all rider entries for one event."""
        df = self.get_results()
        return df[df["event_id"] == str(event_id)].reset_index(drop=True)

    def get_events(self) -> pd.DataFrame:
        """One row per event, ordered by date."""
        df = self.get_results()
        cols = ["event_id", "event_date", "series_id", "series_type", "venue", "is_completed"]
        return (
            df[cols]
            .drop_duplicates(subset=["event_id"])
            .sort_values("event_date")
            .reset_index(drop=True)
        )

    def get_next_event_id(self) -> Optional[str]:
        """Earliest event not yet completed, or None."""
        events = self.get_events()
        upcoming = events[~events["is_completed"]]
        if upcoming.empty:
            return None
        return str(upcoming.iloc[0]["event_id"])

    def validate(self, rows: Optional[Iterable[dict]] = None) -> List[RaceResultSchema]:
        """Validate rows against RaceResultSchema.

        Args:
            rows: Row dicts to validate (default: every loaded row).

        Returns:
            Validated records.
        """
        if rows is None:
            df = self.get_results()
            df = df.astype(object).where(pd.notna(df), None)
            rows = df.to_dict("records")
        return [RaceResultSchema.model_validate(row) for row in rows]
