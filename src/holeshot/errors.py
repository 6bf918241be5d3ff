"""Exception types for Holeshot.

Only conditions a caller can act on are exceptions. Riders without
history and infeasible rosters are normal outcomes and come back as
values (a zero-confidence prediction, an infeasible OptimalTeam).
"""


class HoleshotError(Exception):
    """Base class for all Holeshot errors."""


class ModelUnavailableError(HoleshotError, FileNotFoundError):
    """No trained artifact exists for a (bike class, model type) slot."""


class InsufficientTrainingDataError(HoleshotError, ValueError):
    """Training refused: fewer samples than MIN_TRAINING_SAMPLES."""

    def __init__(self, bike_class: str, model_type: str, found: int, required: int):
        self.bike_class = bike_class
        self.model_type = model_type
        self.found = found
        self.required = required
        super().__init__(
            f"Insufficient training data for {bike_class} {model_type} model. "
            f"Need {required}, got {found}. Import more historical events."
        )


class PredictionCancelled(HoleshotError, RuntimeError):
    """A batch prediction was cancelled between riders."""


__all__ = [
    "HoleshotError",
    "ModelUnavailableError",
    "InsufficientTrainingDataError",
    "PredictionCancelled",
]
