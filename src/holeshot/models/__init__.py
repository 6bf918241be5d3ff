"""Models module - per-class predictive models, scoring and team optimization.

This module contains:
- Slot models: qualification_model, finish_position_model
- registry: Model lookup and immutable model snapshots
- scoring: Deterministic fantasy scoring rules
- predictor: Multi-stage predictor with force-ranking
- baseline: Handicap heuristic fallback
- team: Roster optimization (PuLP 0/1 program)

For predictions, use holeshot.models.MultiStagePredictor.
"""

from holeshot.models.baseline import predict_baseline
from holeshot.models.finish_position_model import FinishPositionModel
from holeshot.models.prediction import PredictorConfig, RiderPrediction
from holeshot.models.predictor import ModelState, MultiStagePredictor, force_rank
from holeshot.models.qualification_model import QualificationModel
from holeshot.models.registry import (
    ModelHandles,
    get_model,
    list_available_models,
    load_model_handles,
)
from holeshot.models.scoring import calculate_points
from holeshot.models.team import OptimalTeam, TeamConstraints, TeamOptimizer, find_optimal_team

__all__ = [
    # Baseline
    "predict_baseline",
    # Scoring
    "calculate_points",
    # Predictor
    "MultiStagePredictor",
    "ModelState",
    "PredictorConfig",
    "RiderPrediction",
    "force_rank",
    # Slot models
    "get_model",
    "list_available_models",
    "load_model_handles",
    "ModelHandles",
    "QualificationModel",
    "FinishPositionModel",
    # Team
    "TeamOptimizer",
    "TeamConstraints",
    "OptimalTeam",
    "find_optimal_team",
]
