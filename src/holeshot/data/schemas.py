"""Pydantic schemas for race data and model records.

Defines the enums and validated records shared across the codebase.

Models:
    RiderFeatures - Per (rider, event) feature record consumed by the predictor
    RaceResultSchema - One rider's entry in one event (history and upcoming)
    TrainedModelResult - Immutable record of one trained model artifact

Usage:
    from holeshot.data.schemas import BikeClass, RiderFeatures

    features = RiderFeatures(rider_id="r1", bike_class=BikeClass.CLASS_450, handicap=3)
    print(features.has_history, features.is_indoor)
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class BikeClass(str, Enum):
    """Bike class of a rider's event entry."""

    CLASS_250 = "Class250"
    CLASS_450 = "Class450"


class SeriesType(str, Enum):
    """Racing discipline. History never crosses series types."""

    SUPERCROSS = "Supercross"
    MOTOCROSS = "Motocross"
    SUPERMOTOCROSS = "SuperMotocross"

    @property
    def track_type(self) -> str:
        """Supercross runs indoors (stadiums), everything else outdoors."""
        return "Indoor" if self is SeriesType.SUPERCROSS else "Outdoor"


class ModelType(str, Enum):
    """The two model slots per bike class."""

    QUALIFICATION = "Qualification"
    FINISH_POSITION = "FinishPosition"


class RiderFeatures(BaseModel):
    """Feature record for one rider in one event.

    Historical aggregates are None when the rider has no same-series
    history ("no data"). Zero is a real observation and is never used
    to mean missing.
    """

    model_config = ConfigDict(frozen=True)

    rider_id: str
    bike_class: BikeClass
    handicap: int = 0
    is_all_star: bool = False
    is_injured: bool = False

    # Current event inputs
    pick_trend: Optional[float] = None
    qualifying_position: Optional[int] = None
    qualifying_lap_time: Optional[float] = None
    qualy_gap_to_leader: Optional[float] = None

    # History (same series type, last 5 races, last 2 years)
    avg_finish_last5: Optional[float] = None
    avg_fantasy_points_last5: Optional[float] = None
    finish_rate: Optional[float] = Field(None, ge=0.0, le=100.0)
    season_points: Optional[int] = None
    track_history: Optional[float] = None
    recent_momentum: Optional[float] = None

    # Context
    track_type: Optional[str] = None
    days_since_injury: Optional[int] = None
    team_quality: Optional[str] = None
    gate_pick: Optional[int] = None

    @property
    def has_history(self) -> bool:
        """True if the rider has a usable historical finish average."""
        return self.avg_finish_last5 is not None and self.avg_finish_last5 > 0

    @property
    def has_track_history(self) -> bool:
        return self.track_history is not None and self.track_history > 0

    @property
    def is_indoor(self) -> bool:
        return self.track_type == "Indoor"


class RaceResultSchema(BaseModel):
    """One rider's entry in one event.

    finish_position is None for a DNQ (or for an event not yet raced).
    """

    event_id: str
    event_date: datetime
    series_id: str
    series_type: SeriesType
    venue: str
    rider_id: str
    bike_class: BikeClass
    handicap: int = 0
    is_all_star: bool = False
    is_injured: bool = False
    is_completed: bool = False
    finish_position: Optional[int] = None
    fantasy_points: Optional[int] = None
    pick_trend: Optional[float] = None
    qualifying_position: Optional[int] = None
    qualifying_lap_time: Optional[float] = None
    qualy_gap_to_leader: Optional[float] = None
    days_since_injury: Optional[int] = None
    gate_pick: Optional[int] = None


class TrainedModelResult(BaseModel):
    """Record describing one trained model artifact.

    Produced once per training run and never mutated. For classifiers
    r_squared holds AUC and mean_absolute_error holds the error rate.
    """

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    version: str
    bike_class: BikeClass
    model_type: ModelType
    trained_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    training_samples: int
    r_squared: float = 0.0
    mean_absolute_error: float = 0.0
    root_mean_squared_error: float = 0.0
    validation_accuracy: float = 0.0
    model_path: str
    is_active: bool = True


# Persisted name for a trained model record
ModelMetadata = TrainedModelResult
