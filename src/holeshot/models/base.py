"""Base model interface for the per-class model slots.

Provides shared interfaces only. Each slot (qualification, finish
position) inherits and implements its own scoring.

The backend is anything with a scikit-learn style predict(X) (and
predict_proba(X) for classifiers) or a LightGBM Booster. The feature
order in holeshot.features.definitions is the contract, not the library.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List

import joblib
import numpy as np
import pandas as pd

from holeshot.config import NO_DATA
from holeshot.data.schemas import BikeClass, ModelType, RiderFeatures
from holeshot.errors import ModelUnavailableError
from holeshot.features.definitions import to_vector


def model_filename(bike_class: BikeClass, model_type: ModelType) -> str:
    """Stable artifact name per slot, e.g. Class450_Qualification.joblib."""
    return f"{BikeClass(bike_class).value}_{ModelType(model_type).value}.joblib"


class BaseModel(ABC):
    """Abstract base class for one (bike class, model type) slot."""

    MODEL_TYPE: ModelType

    def __init__(self, model_artifact: Any, feature_cols: List[str], bike_class: BikeClass):
        """Initialize with trained model and feature columns.

        Args:
            model_artifact: The trained model (LightGBM Booster, sklearn estimator)
            feature_cols: Feature column names, in the order the model expects
            bike_class: Class this model was trained for
        """
        self._model = model_artifact
        self._feature_cols = list(feature_cols)
        self.bike_class = BikeClass(bike_class)

    @property
    def feature_cols(self) -> List[str]:
        """Feature columns this model expects."""
        return self._feature_cols.copy()

    @property
    def name(self) -> str:
        return f"{self.bike_class.value}_{self.MODEL_TYPE.value}"

    @abstractmethod
    def _score(self, X: np.ndarray) -> np.ndarray:
        """Raw backend output for a feature matrix."""

    @abstractmethod
    def feature_row(self, features: RiderFeatures) -> dict:
        """Map RiderFeatures onto this model's named inputs."""

    def predict(self, df: pd.DataFrame) -> np.ndarray:
        """Score every row of a feature DataFrame.

        Args:
            df: DataFrame with feature columns

        Returns:
            Array of scores, one per row
        """
        return self._score(self._prepare_features(df))

    def predict_one(self, features: RiderFeatures) -> float:
        """Score a single rider.

        Raises:
            ValueError: If the backend returns NaN or infinity
        """
        X = to_vector(self.feature_row(features), self._feature_cols)
        score = float(self._score(X)[0])
        if not np.isfinite(score):
            raise ValueError(f"{self.name} returned a non-finite score for rider {features.rider_id}")
        return score

    def save(self, model_dir: Path) -> Path:
        """Save model to disk.

        Args:
            model_dir: Directory to save to

        Returns:
            Path to saved model
        """
        model_dir = Path(model_dir)
        model_dir.mkdir(parents=True, exist_ok=True)
        path = model_dir / model_filename(self.bike_class, self.MODEL_TYPE)

        joblib.dump({
            "model": self._model,
            "feature_cols": self._feature_cols,
            "bike_class": self.bike_class.value,
            "model_type": self.MODEL_TYPE.value,
        }, path)

        return path

    @classmethod
    def load(cls, model_dir: Path, bike_class: BikeClass) -> "BaseModel":
        """Load model from disk.

        Args:
            model_dir: Directory containing model artifacts
            bike_class: Which class slot to load

        Returns:
            Loaded model instance

        Raises:
            ModelUnavailableError: If the artifact doesn't exist
            ValueError: If the artifact has an unknown format
        """
        path = Path(model_dir) / model_filename(bike_class, cls.MODEL_TYPE)

        if not path.exists():
            raise ModelUnavailableError(
                f"{cls.MODEL_TYPE.value} model not found at {path}. "
                f"Train with: python scripts/ops/train_models.py"
            )

        data = joblib.load(path)

        if isinstance(data, dict) and "model" in data:
            return cls(
                model_artifact=data["model"],
                feature_cols=data.get("feature_cols"),
                bike_class=bike_class,
            )
        raise ValueError(f"Unknown model format in {path}")

    def _prepare_features(self, df: pd.DataFrame) -> np.ndarray:
        """Extract and validate features from DataFrame.

        Raises:
            ValueError: If required columns are missing
        """
        missing = [c for c in self._feature_cols if c not in df.columns]
        if missing:
            raise ValueError(f"Missing required feature columns: {missing}")

        return df[self._feature_cols].astype(float).fillna(NO_DATA).values


__all__ = ["BaseModel", "model_filename"]
