"""Data module - results access and schemas.

Public API:
    ResultsReader - CSV results access
    normalize_results - Canonical column types for a results frame
    BikeClass, SeriesType, ModelType - Enums
    RiderFeatures, RaceResultSchema, TrainedModelResult (ModelMetadata) - Pydantic models
"""

from holeshot.data.reader import ResultsReader, normalize_results
from holeshot.data.schemas import (
    BikeClass,
    ModelMetadata,
    ModelType,
    RaceResultSchema,
    RiderFeatures,
    SeriesType,
    TrainedModelResult,
)

__all__ = [
    "ResultsReader",
    "normalize_results",
    "BikeClass",
    "ModelType",
    "SeriesType",
    "RiderFeatures",
    "RaceResultSchema",
    "TrainedModelResult",
    "ModelMetadata",
]
