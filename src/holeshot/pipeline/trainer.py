"""Model trainer for the per-class slot models.

ALL TRAINING LOGIC MUST LIVE HERE.
This is the single source of truth for production model training.

Two slots per bike class:
    1. Qualification: binary LightGBM, P(finish <= 22), all entries with history
    2. Finish position: LightGBM regression, main event finishers only

Each call trains on an 80/20 split (fixed seed), scores the held-out
20%, saves the artifact under its stable slot name and returns an
immutable TrainedModelResult.

Key Classes:
    Trainer - Canonical trainer for all production models

Usage:
    from holeshot.pipeline import Trainer

    trainer = Trainer()
    result = trainer.train_qualification(qual_df, BikeClass.CLASS_450, model_dir)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import lightgbm as lgb
import numpy as np
import pandas as pd
from sklearn.metrics import (
    accuracy_score,
    f1_score,
    mean_absolute_error,
    mean_squared_error,
    r2_score,
    roc_auc_score,
)
from sklearn.model_selection import train_test_split

from holeshot.config import (
    MIN_TRAINING_SAMPLES,
    MODEL_VERSION,
    MODELS_DIR,
    NO_DATA,
    RANDOM_SEED,
    TEST_FRACTION,
)
from holeshot.data.schemas import BikeClass, ModelType, TrainedModelResult
from holeshot.errors import InsufficientTrainingDataError
from holeshot.features.definitions import (
    FINISH_POSITION_FEATURES,
    FINISH_POSITION_LABEL,
    QUALIFICATION_FEATURES,
    QUALIFICATION_LABEL,
)
from holeshot.models.finish_position_model import FinishPositionModel
from holeshot.models.qualification_model import QualificationModel

logger = logging.getLogger(__name__)


# =============================================================================
# Hyperparameters (centralized)
# =============================================================================

QUALIFICATION_PARAMS = {
    "objective": "binary",
    "metric": "binary_logloss",
    "verbosity": -1,
    "boosting_type": "gbdt",
    "learning_rate": 0.1,
    "num_leaves": 20,
    "min_data_in_leaf": 10,
    "seed": RANDOM_SEED,
}

FINISH_POSITION_PARAMS = {
    "objective": "regression",
    "metric": "l2",
    "verbosity": -1,
    "boosting_type": "gbdt",
    "learning_rate": 0.1,
    "num_leaves": 20,
    "min_data_in_leaf": 10,
    "seed": RANDOM_SEED,
}


class Trainer:
    """Canonical trainer for all production models.

    ALL training flows through this class. No other file may fit models.
    """

    def __init__(
        self,
        max_rounds: int = 100,
        min_samples: int = MIN_TRAINING_SAMPLES,
        test_fraction: float = TEST_FRACTION,
        seed: int = RANDOM_SEED,
        version: str = MODEL_VERSION,
    ):
        self.max_rounds = max_rounds
        self.min_samples = min_samples
        self.test_fraction = test_fraction
        self.seed = seed
        self.version = version

    def _validate(
        self,
        df: pd.DataFrame,
        feature_cols: List[str],
        label: str,
        bike_class: BikeClass,
        model_type: ModelType,
    ) -> None:
        required = feature_cols + [label]
        missing = [c for c in required if c not in df.columns]
        if missing:
            raise ValueError(f"Missing required columns: {missing}")

        if len(df) < self.min_samples:
            raise InsufficientTrainingDataError(
                bike_class.value, model_type.value, len(df), self.min_samples
            )

    def _split(
        self,
        df: pd.DataFrame,
        feature_cols: List[str],
        label: str,
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        X = df[feature_cols].astype(float).fillna(NO_DATA).values
        y = df[label].astype(float).values
        return train_test_split(X, y, test_size=self.test_fraction, random_state=self.seed)

    def train_qualification(
        self,
        df: pd.DataFrame,
        bike_class: BikeClass,
        model_dir: Optional[Path] = None,
    ) -> TrainedModelResult:
        """Train the qualification classifier for one class.

        Args:
            df: Qualification training frame (QUALIFICATION_FEATURES + made_main).
            bike_class: Class being trained.
            model_dir: Artifact directory (default: MODELS_DIR).

        Returns:
            TrainedModelResult. r_squared holds AUC, mean_absolute_error the
            held-out error rate.

        Raises:
            InsufficientTrainingDataError: Fewer than min_samples rows.
        """
        bike_class = BikeClass(bike_class)
        model_type = ModelType.QUALIFICATION
        self._validate(df, QUALIFICATION_FEATURES, QUALIFICATION_LABEL, bike_class, model_type)

        X_train, X_test, y_train, y_test = self._split(df, QUALIFICATION_FEATURES, QUALIFICATION_LABEL)

        logger.info(
            f"Training {bike_class.value} qualification model on {len(y_train):,} rows "
            f"(qualify rate {y_train.mean():.2%})"
        )
        booster = lgb.train(
            QUALIFICATION_PARAMS,
            lgb.Dataset(X_train, label=y_train, feature_name=QUALIFICATION_FEATURES),
            num_boost_round=self.max_rounds,
        )

        proba = booster.predict(X_test)
        predicted = (proba >= 0.5).astype(int)
        accuracy = float(accuracy_score(y_test, predicted))
        f1 = float(f1_score(y_test, predicted, zero_division=0))
        if len(np.unique(y_test)) > 1:
            auc = float(roc_auc_score(y_test, proba))
        else:
            logger.warning(f"{bike_class.value} qualification test split has one label; AUC undefined")
            auc = 0.0

        logger.info(
            f"{bike_class.value} qualification metrics - Accuracy: {accuracy:.2%}, "
            f"AUC: {auc:.3f}, F1: {f1:.3f}"
        )

        path = QualificationModel(booster, QUALIFICATION_FEATURES, bike_class).save(
            Path(model_dir) if model_dir is not None else MODELS_DIR
        )
        logger.info(f"Model saved to {path}")

        return TrainedModelResult(
            version=self.version,
            bike_class=bike_class,
            model_type=model_type,
            training_samples=len(df),
            r_squared=auc,
            mean_absolute_error=1.0 - accuracy,
            validation_accuracy=accuracy,
            model_path=str(path),
        )

    def train_finish_position(
        self,
        df: pd.DataFrame,
        bike_class: BikeClass,
        model_dir: Optional[Path] = None,
    ) -> TrainedModelResult:
        """Train the finish-position regressor for one class.

        Args:
            df: Finish-position training frame (FINISH_POSITION_FEATURES + finish_position).
            bike_class: Class being trained.
            model_dir: Artifact directory (default: MODELS_DIR).

        Returns:
            TrainedModelResult with R², MAE and RMSE on the held-out split.

        Raises:
            InsufficientTrainingDataError: Fewer than min_samples rows.
        """
        bike_class = BikeClass(bike_class)
        model_type = ModelType.FINISH_POSITION
        self._validate(df, FINISH_POSITION_FEATURES, FINISH_POSITION_LABEL, bike_class, model_type)

        X_train, X_test, y_train, y_test = self._split(df, FINISH_POSITION_FEATURES, FINISH_POSITION_LABEL)

        logger.info(f"Training {bike_class.value} finish position model on {len(y_train):,} rows")
        booster = lgb.train(
            FINISH_POSITION_PARAMS,
            lgb.Dataset(X_train, label=y_train, feature_name=FINISH_POSITION_FEATURES),
            num_boost_round=self.max_rounds,
        )

        y_pred = booster.predict(X_test)
        r_squared = float(r2_score(y_test, y_pred))
        mae = float(mean_absolute_error(y_test, y_pred))
        rmse = float(np.sqrt(mean_squared_error(y_test, y_pred)))

        logger.info(
            f"{bike_class.value} finish position metrics - R²: {r_squared:.3f}, "
            f"MAE: {mae:.2f}, RMSE: {rmse:.2f}"
        )

        path = FinishPositionModel(booster, FINISH_POSITION_FEATURES, bike_class).save(
            Path(model_dir) if model_dir is not None else MODELS_DIR
        )
        logger.info(f"Model saved to {path}")

        return TrainedModelResult(
            version=self.version,
            bike_class=bike_class,
            model_type=model_type,
            training_samples=len(df),
            r_squared=r_squared,
            mean_absolute_error=mae,
            root_mean_squared_error=rmse,
            model_path=str(path),
        )

    def train_class(
        self,
        qual_df: pd.DataFrame,
        finish_df: pd.DataFrame,
        bike_class: BikeClass,
        model_dir: Optional[Path] = None,
    ) -> Dict[ModelType, TrainedModelResult]:
        """Train both slots for a class. Each slot is independent.

        A slot with too little data is skipped with a warning; the other
        slot still trains.
        """
        results: Dict[ModelType, TrainedModelResult] = {}
        jobs = [
            (ModelType.QUALIFICATION, self.train_qualification, qual_df),
            (ModelType.FINISH_POSITION, self.train_finish_position, finish_df),
        ]
        for model_type, train_fn, df in jobs:
            try:
                results[model_type] = train_fn(df, bike_class, model_dir)
            except InsufficientTrainingDataError as e:
                logger.warning(str(e))
        return results


__all__ = ["Trainer", "QUALIFICATION_PARAMS", "FINISH_POSITION_PARAMS"]
