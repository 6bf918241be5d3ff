"""Holeshot training pipeline.

End-to-end pipeline that orchestrates:
1. Data gathering (ResultsReader)
2. Training sets per class (FeatureBuilder)
3. Model training per slot (Trainer)
4. Metadata recording (ModelMetadataStore)
5. Evaluation on the most recent completed events
6. Artifact saving

Usage:
    from holeshot.pipeline import Pipeline

    # Full pipeline
    Pipeline.run("storage/results.csv", "storage/models")

    # Or step by step
    pipeline = Pipeline(results_path, model_dir)
    pipeline.gather_data()
    pipeline.build_features()
    pipeline.train()
    pipeline.evaluate()
    pipeline.save_artifacts()
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pandas as pd

from holeshot.config import MODELS_DIR
from holeshot.data import BikeClass, ResultsReader, TrainedModelResult
from holeshot.features import FeatureBuilder
from holeshot.models.predictor import MultiStagePredictor
from holeshot.pipeline.evaluator import EvaluationMetrics, Evaluator
from holeshot.pipeline.metadata import ModelMetadataStore
from holeshot.pipeline.trainer import Trainer

logger = logging.getLogger(__name__)


class Pipeline:
    """End-to-end training pipeline."""

    def __init__(
        self,
        results_path: Optional[str] = None,
        model_dir: Optional[Path] = None,
        eval_events: int = 1,
    ):
        """Initialize pipeline.

        Args:
            results_path: Race results CSV (default: DEFAULT_RESULTS_PATH).
            model_dir: Artifact directory (default: MODELS_DIR).
            eval_events: How many of the latest completed events to evaluate.
        """
        self.results_path = results_path
        self.model_dir = Path(model_dir) if model_dir is not None else MODELS_DIR
        self.eval_events = eval_events
        self.metadata = ModelMetadataStore(self.model_dir / "metadata.json")

        # State
        self.results_df: Optional[pd.DataFrame] = None
        self.training_sets: Dict[BikeClass, Tuple[pd.DataFrame, pd.DataFrame]] = {}
        self.trained: List[TrainedModelResult] = []
        self.evaluations: Dict[str, EvaluationMetrics] = {}
        self.evaluator: Optional[Evaluator] = None

    def gather_data(self) -> pd.DataFrame:
        """Step 1: Load the results table."""
        reader = ResultsReader(self.results_path)
        logger.info(f"Results: {reader.results_path}")

        self.results_df = reader.get_results()
        logger.info(
            f"Gathered {len(self.results_df):,} rows, "
            f"{self.results_df['event_id'].nunique()} events, "
            f"{self.results_df['rider_id'].nunique()} riders"
        )
        return self.results_df

    def build_features(self) -> Dict[BikeClass, Tuple[pd.DataFrame, pd.DataFrame]]:
        """Step 2: Build qualification and finish training sets per class."""
        if self.results_df is None:
            raise ValueError("Call gather_data() first")

        builder = FeatureBuilder()
        self.training_sets = {
            bike_class: builder.build_training_sets(self.results_df, bike_class)
            for bike_class in BikeClass
        }
        return self.training_sets

    def train(self) -> List[TrainedModelResult]:
        """Step 3: Train every slot and record its metadata.

        Slots with insufficient data are skipped with a warning.
        """
        if not self.training_sets:
            raise ValueError("Call build_features() first")

        trainer = Trainer()
        self.trained = []
        for bike_class, (qual_df, finish_df) in self.training_sets.items():
            results = trainer.train_class(qual_df, finish_df, bike_class, self.model_dir)
            for result in results.values():
                self.trained.append(self.metadata.record(result))

        logger.info(f"Trained {len(self.trained)} of {2 * len(BikeClass)} models")
        return self.trained

    def evaluate(self) -> Dict[str, EvaluationMetrics]:
        """Step 4: Evaluate the fresh models on the latest completed events."""
        if self.results_df is None:
            raise ValueError("Call gather_data() first")

        completed = (
            self.results_df[self.results_df["is_completed"]]
            .drop_duplicates(subset=["event_id"])
            .sort_values("event_date")
        )
        event_ids = list(completed["event_id"].tail(self.eval_events))

        self.evaluator = Evaluator(MultiStagePredictor(self.model_dir))
        self.evaluations = self.evaluator.evaluate_events(event_ids, self.results_df)
        return self.evaluations

    def save_artifacts(self) -> Optional[Path]:
        """Step 5: Save evaluation report."""
        if not self.evaluations:
            logger.warning("No evaluations to save")
            return None

        return Path(self.evaluator.save_results(self.evaluations, self.model_dir / "evaluation.json"))

    @classmethod
    def run(
        cls,
        results_path: Optional[str] = None,
        model_dir: Optional[Path] = None,
    ) -> "Pipeline":
        """Run full pipeline end-to-end."""
        pipeline = cls(results_path=results_path, model_dir=model_dir)
        pipeline.gather_data()
        pipeline.build_features()
        pipeline.train()
        pipeline.evaluate()
        pipeline.save_artifacts()
        logger.info("Pipeline complete!")
        return pipeline


__all__ = ["Pipeline"]
