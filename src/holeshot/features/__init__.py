"""Feature engineering module.

Public API:
    FeatureBuilder - Build RiderFeatures and training frames from results
    FeatureConfig - History window configuration
    QUALIFICATION_FEATURES, FINISH_POSITION_FEATURES - Model input order

Usage:
    from holeshot.features import FeatureBuilder

    builder = FeatureBuilder()
    features = builder.build_for_event(event_id, results_df)
"""

from holeshot.features.builder import FeatureBuilder
from holeshot.features.definitions import (
    FINISH_POSITION_FEATURES,
    QUALIFICATION_FEATURES,
    FeatureConfig,
    finish_position_row,
    qualification_row,
)

__all__ = [
    # Core API
    "FeatureBuilder",
    "FeatureConfig",
    # Model contract
    "QUALIFICATION_FEATURES",
    "FINISH_POSITION_FEATURES",
    "qualification_row",
    "finish_position_row",
]
