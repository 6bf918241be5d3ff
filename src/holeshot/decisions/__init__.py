"""Production decision functions.

Both CLI scripts and any app layer call these functions.

Decision Contract:
- Predictions: rank by expected_points (injured riders excluded)
- Team: 0/1 program maximize Σ(expected_points), 4 per class, 1 All-Star per class

GUARDRAIL: Decisions get predictions from PredictionService.
           Direct model loading is FORBIDDEN.
"""

from .predictions import FeatureSource, HistoryFeatureSource, PredictionService
from .team import pick_team

__all__ = [
    "PredictionService",
    "FeatureSource",
    "HistoryFeatureSource",
    "pick_team",
]
