"""Feature engineering for rider fantasy point prediction.

Provides the FeatureBuilder class which transforms the race results table
into RiderFeatures records and model-ready training frames. Key
responsibilities:
- Same-discipline history (last 5 races, last 2 years, same series type)
- Finish averages with DNQ counted as position 30
- Track history at the venue, season-to-date points, recent momentum

Discipline isolation is enforced here: a Supercross event never sees
Motocross history and vice versa.

Key Classes:
    FeatureBuilder - Transforms results rows to RiderFeatures
    FeatureConfig - Configuration for feature computation

Usage:
    from holeshot.features import FeatureBuilder

    builder = FeatureBuilder()
    features = builder.build_for_event("sx-2026-03", results_df)
    qual_df, finish_df = builder.build_training_sets(results_df, BikeClass.CLASS_450)
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from holeshot.data.reader import normalize_results
from holeshot.data.schemas import BikeClass, RiderFeatures, SeriesType
from holeshot.config import FACTORY_POINTS, SATELLITE_POINTS
from holeshot.features.definitions import (
    FINISH_POSITION_FEATURES,
    FINISH_POSITION_LABEL,
    QUALIFICATION_FEATURES,
    QUALIFICATION_LABEL,
    FeatureConfig,
    finish_position_row,
    qualification_row,
)

logger = logging.getLogger(__name__)

__all__ = [
    "FeatureBuilder",
    "FeatureConfig",
]


def _optional(value: Any) -> Optional[Any]:
    """NaN/None -> None, anything else unchanged."""
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return value


class FeatureBuilder:
    """Builds RiderFeatures and training frames from race results."""

    def __init__(self, config: Optional[FeatureConfig] = None) -> None:
        self.config = config or FeatureConfig()

    # -------------------------------------------------------------------------
    # History windows
    # -------------------------------------------------------------------------

    def _window_start(self, event_date: pd.Timestamp) -> pd.Timestamp:
        return event_date - pd.DateOffset(years=self.config.history_years)

    def _prior_races(self, entry: Mapping, results: pd.DataFrame) -> pd.DataFrame:
        """Completed, same-series-type races before the entry's event, inside the window."""
        event_date = pd.Timestamp(entry["event_date"])
        mask = (
            (results["rider_id"] == str(entry["rider_id"]))
            & (results["series_type"] == str(entry["series_type"]))
            & results["is_completed"]
            & (results["event_date"] < event_date)
            & (results["event_date"] >= self._window_start(event_date))
        )
        return results[mask]

    def history_for(self, entry: Mapping, results: pd.DataFrame) -> pd.DataFrame:
        """Last N same-class, same-series-type races, newest first.

        Args:
            entry: Row (dict or Series) for the target event entry.
            results: Normalized results table.

        Returns:
            Up to `history_races` rows, most recent first.
        """
        prior = self._prior_races(entry, results)
        prior = prior[prior["bike_class"] == str(entry["bike_class"])]
        return prior.sort_values("event_date", ascending=False).head(self.config.history_races)

    def track_history_for(self, entry: Mapping, results: pd.DataFrame) -> pd.DataFrame:
        """Prior races at the same venue (same series type, inside the window)."""
        prior = self._prior_races(entry, results)
        return prior[prior["venue"] == str(entry["venue"])]

    # -------------------------------------------------------------------------
    # Aggregates
    # -------------------------------------------------------------------------

    def _finish_with_dnq(self, races: pd.DataFrame) -> pd.Series:
        return races["finish_position"].fillna(self.config.dnq_finish_position).astype(float)

    def _avg_finish(self, races: pd.DataFrame) -> Optional[float]:
        if races.empty:
            return None
        return float(self._finish_with_dnq(races).mean())

    def _avg_points(self, races: pd.DataFrame) -> Optional[float]:
        if races.empty:
            return None
        return float(races["fantasy_points"].fillna(0).mean())

    def _finish_rate(self, races: pd.DataFrame) -> Optional[float]:
        """Percentage of races that ended in the main event (finish <= 22)."""
        if races.empty:
            return None
        finishes = races["finish_position"]
        made_main = finishes.notna() & (finishes <= self.config.main_event_size)
        return float(made_main.sum()) / len(races) * 100.0

    def _recent_momentum(self, history: pd.DataFrame) -> Optional[float]:
        """Mean points of the newest 3 races minus the mean of the older ones.

        Positive means improving. None with fewer than 3 races; 0 when
        there is nothing older to compare against.
        """
        n = self.config.momentum_races
        if len(history) < n:
            return None
        points = history["fantasy_points"].fillna(0).astype(float).to_numpy()
        if len(points) == n:
            return 0.0
        return float(points[:n].mean() - points[n:].mean())

    def _season_points(self, entry: Mapping, results: pd.DataFrame) -> int:
        event_date = pd.Timestamp(entry["event_date"])
        mask = (
            (results["rider_id"] == str(entry["rider_id"]))
            & (results["series_id"] == str(entry["series_id"]))
            & results["is_completed"]
            & (results["event_date"] < event_date)
        )
        return int(results.loc[mask, "fantasy_points"].fillna(0).sum())

    @staticmethod
    def _team_quality(avg_points: Optional[float]) -> str:
        # Top scorers are almost always on factory rides
        if avg_points is not None and avg_points >= FACTORY_POINTS:
            return "Factory"
        if avg_points is not None and avg_points >= SATELLITE_POINTS:
            return "Satellite"
        return "Privateer"

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def build_for_entry(self, entry: Mapping, results: pd.DataFrame) -> RiderFeatures:
        """Build features for one rider's entry in one event.

        Args:
            entry: Row of the normalized results table for the target event.
            results: Normalized results table (history source).

        Returns:
            RiderFeatures with None for every history field the rider lacks.
        """
        history = self.history_for(entry, results)
        track_races = self.track_history_for(entry, results)
        avg_points = self._avg_points(history)

        qualy_pos = _optional(entry.get("qualifying_position"))
        days_out = _optional(entry.get("days_since_injury"))
        gate = _optional(entry.get("gate_pick"))

        return RiderFeatures(
            rider_id=str(entry["rider_id"]),
            bike_class=BikeClass(entry["bike_class"]),
            handicap=int(entry.get("handicap", 0) or 0),
            is_all_star=bool(entry.get("is_all_star", False)),
            is_injured=bool(entry.get("is_injured", False)),
            pick_trend=_optional(entry.get("pick_trend")),
            qualifying_position=int(qualy_pos) if qualy_pos is not None else None,
            qualifying_lap_time=_optional(entry.get("qualifying_lap_time")),
            qualy_gap_to_leader=_optional(entry.get("qualy_gap_to_leader")),
            avg_finish_last5=self._avg_finish(history),
            avg_fantasy_points_last5=avg_points,
            finish_rate=self._finish_rate(history),
            season_points=self._season_points(entry, results),
            track_history=self._avg_finish(track_races),
            recent_momentum=self._recent_momentum(history),
            track_type=SeriesType(entry["series_type"]).track_type,
            days_since_injury=int(days_out) if days_out is not None else None,
            team_quality=self._team_quality(avg_points),
            gate_pick=int(gate) if gate is not None else None,
        )

    def build_for_event(self, event_id: str, results: pd.DataFrame) -> List[RiderFeatures]:
        """Build features for every rider entered in an event.

        Args:
            event_id: Target event.
            results: Results table (normalized or raw).

        Returns:
            One RiderFeatures per entry; entries that fail are logged and skipped.
        """
        results = normalize_results(results)
        entries = results[results["event_id"] == str(event_id)]
        if entries.empty:
            logger.warning(f"No entries found for event {event_id}")
            return []

        features = []
        for entry in entries.to_dict("records"):
            try:
                features.append(self.build_for_entry(entry, results))
            except (KeyError, ValueError) as e:
                logger.warning(f"Skipping rider {entry.get('rider_id')} in event {event_id}: {e}")

        no_history = sum(1 for f in features if not f.has_history)
        logger.info(
            f"Built features for {len(features)} riders in event {event_id} "
            f"({no_history} without history)"
        )
        return features

    def build_training_sets(
        self,
        results: pd.DataFrame,
        bike_class: BikeClass,
    ) -> Tuple[pd.DataFrame, pd.DataFrame]:
        """Build qualification and finish-position training frames.

        Every completed entry of the class becomes a qualification row
        (label: made the main). Entries that made the main also become a
        finish-position row (label: finish). Riders without history are
        skipped: a model trained on -1 defaults only learns the handicap.

        Args:
            results: Results table (normalized or raw).
            bike_class: Class to build for.

        Returns:
            Tuple of (qualification_df, finish_position_df).
        """
        if results.empty:
            return (
                pd.DataFrame(columns=["event_id", "rider_id"] + QUALIFICATION_FEATURES + [QUALIFICATION_LABEL]),
                pd.DataFrame(columns=["event_id", "rider_id"] + FINISH_POSITION_FEATURES + [FINISH_POSITION_LABEL]),
            )

        results = normalize_results(results)
        entries = results[
            (results["bike_class"] == BikeClass(bike_class).value) & results["is_completed"]
        ]

        qual_rows = []
        finish_rows = []
        skipped_no_history = 0

        for entry in entries.to_dict("records"):
            features = self.build_for_entry(entry, results)
            if not features.has_history:
                skipped_no_history += 1
                continue

            finish = _optional(entry.get("finish_position"))
            made_main = finish is not None and finish <= self.config.main_event_size
            meta = {"event_id": entry["event_id"], "rider_id": entry["rider_id"]}

            qual_rows.append({**meta, **qualification_row(features), QUALIFICATION_LABEL: int(made_main)})
            if made_main:
                finish_rows.append({
                    **meta,
                    **finish_position_row(features),
                    FINISH_POSITION_LABEL: float(finish),
                })

        logger.info(
            f"{BikeClass(bike_class).value}: {len(qual_rows)} qualification rows, "
            f"{len(finish_rows)} finish rows, skipped {skipped_no_history} without history"
        )

        qual_df = pd.DataFrame(
            qual_rows,
            columns=["event_id", "rider_id"] + QUALIFICATION_FEATURES + [QUALIFICATION_LABEL],
        )
        finish_df = pd.DataFrame(
            finish_rows,
            columns=["event_id", "rider_id"] + FINISH_POSITION_FEATURES + [FINISH_POSITION_LABEL],
        )
        return qual_df, finish_df

    @staticmethod
    def label_rate(df: pd.DataFrame) -> float:
        """Share of qualification rows labeled as made-main."""
        if df.empty:
            return 0.0
        return float(np.mean(df[QUALIFICATION_LABEL]))
