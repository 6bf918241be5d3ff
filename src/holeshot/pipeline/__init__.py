"""
Production Pipeline Module

End-to-end ML workflow orchestration for the per-class models.

Components:
    Pipeline  - Full workflow (gather → training sets → train → record → evaluate)
    Trainer   - LightGBM qualification and finish position training
    ModelMetadataStore - JSON record of trained models
    Evaluator - Prediction evaluation with baseline comparison
"""

from holeshot.pipeline.runner import Pipeline
from holeshot.pipeline.trainer import Trainer
from holeshot.pipeline.metadata import ModelMetadataStore
from holeshot.pipeline.evaluator import Evaluator, EvaluationMetrics

__all__ = [
    "Pipeline",
    "Trainer",
    "ModelMetadataStore",
    "Evaluator",
    "EvaluationMetrics",
]
