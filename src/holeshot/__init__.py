"""
Holeshot - Decision Support for PulpMX Fantasy

Two decisions per event: who will score, and which 8 riders to pick.
One rule: maximize Σ(expected_points)

Structure:
    data/      - Results access and schemas
    features/  - Feature engineering
    models/    - Per-class models, scoring, prediction, team optimization
    pipeline/  - Training and evaluation workflow
    decisions/ - Prediction service and team selection

Usage:
    from holeshot.pipeline import Pipeline
    from holeshot.decisions import PredictionService, pick_team
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
