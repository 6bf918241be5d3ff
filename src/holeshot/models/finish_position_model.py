"""Finish-position model: expected finish given a main event start.

Regressor over FINISH_POSITION_FEATURES, trained only on riders who made
the main. Output is continuous; predict_finish() rounds and clamps to 1-22.
"""

from __future__ import annotations

from typing import Any, List, Optional

import numpy as np

from holeshot.config import MAIN_EVENT_SIZE
from holeshot.data.schemas import BikeClass, ModelType, RiderFeatures
from holeshot.features.definitions import FINISH_POSITION_FEATURES, finish_position_row
from holeshot.models.base import BaseModel


def clamp_finish(value: float) -> int:
    """Round a continuous finish and clamp it into 1..22."""
    return int(min(max(round(value), 1), MAIN_EVENT_SIZE))


class FinishPositionModel(BaseModel):
    """Per-class finish-position regressor."""

    MODEL_TYPE = ModelType.FINISH_POSITION

    def __init__(
        self,
        model_artifact: Any,
        feature_cols: Optional[List[str]] = None,
        bike_class: BikeClass = BikeClass.CLASS_450,
    ):
        super().__init__(
            model_artifact=model_artifact,
            feature_cols=feature_cols or FINISH_POSITION_FEATURES,
            bike_class=bike_class,
        )

    def _score(self, X: np.ndarray) -> np.ndarray:
        return np.asarray(self._model.predict(X), dtype=float).reshape(-1)

    def feature_row(self, features: RiderFeatures) -> dict:
        return finish_position_row(features)

    def predict_finish(self, features: RiderFeatures) -> int:
        """Predicted finish position (1-22) for one rider."""
        return clamp_finish(self.predict_one(features))


__all__ = ["FinishPositionModel", "clamp_finish"]
