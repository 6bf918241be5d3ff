"""Qualification model: P(rider makes the main event).

Binary classifier over QUALIFICATION_FEATURES. Trained on every completed
entry with history, DNQs included (label: finish <= 22).
"""

from __future__ import annotations

from typing import Any, List, Optional

import numpy as np

from holeshot.data.schemas import BikeClass, ModelType, RiderFeatures
from holeshot.features.definitions import QUALIFICATION_FEATURES, qualification_row
from holeshot.models.base import BaseModel


class QualificationModel(BaseModel):
    """Per-class qualification classifier."""

    MODEL_TYPE = ModelType.QUALIFICATION

    def __init__(
        self,
        model_artifact: Any,
        feature_cols: Optional[List[str]] = None,
        bike_class: BikeClass = BikeClass.CLASS_450,
    ):
        super().__init__(
            model_artifact=model_artifact,
            feature_cols=feature_cols or QUALIFICATION_FEATURES,
            bike_class=bike_class,
        )

    def _score(self, X: np.ndarray) -> np.ndarray:
        # sklearn classifiers expose predict_proba; a binary LightGBM
        # Booster already returns probabilities from predict()
        if hasattr(self._model, "predict_proba"):
            proba = np.asarray(self._model.predict_proba(X), dtype=float)
            proba = proba[:, 1] if proba.ndim == 2 else proba
        else:
            proba = np.asarray(self._model.predict(X), dtype=float)
        return np.clip(proba, 0.0, 1.0)

    def feature_row(self, features: RiderFeatures) -> dict:
        return qualification_row(features)

    def predict_probability(self, features: RiderFeatures) -> float:
        """P(makes main event) for one rider."""
        return self.predict_one(features)


__all__ = ["QualificationModel"]
