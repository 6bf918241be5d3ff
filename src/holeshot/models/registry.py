"""Model registry for the per-class model slots.

Four slots: {Class250, Class450} x {Qualification, FinishPosition}.
Artifacts are looked up by stable file name in a model directory and may
appear, disappear or be replaced at runtime.

load_model_handles() returns an immutable ModelHandles snapshot. The
predictor swaps whole snapshots; a snapshot is never edited.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple, Type

from holeshot.config import MODELS_DIR
from holeshot.data.schemas import BikeClass, ModelType
from holeshot.errors import ModelUnavailableError
from holeshot.models.base import BaseModel, model_filename
from holeshot.models.finish_position_model import FinishPositionModel
from holeshot.models.qualification_model import QualificationModel

logger = logging.getLogger(__name__)

SlotKey = Tuple[BikeClass, ModelType]

MODEL_CLASSES: Dict[ModelType, Type[BaseModel]] = {
    ModelType.QUALIFICATION: QualificationModel,
    ModelType.FINISH_POSITION: FinishPositionModel,
}


def _empty_slots() -> Mapping[SlotKey, BaseModel]:
    return MappingProxyType({})


@dataclass(frozen=True)
class ModelHandles:
    """Immutable set of loaded models keyed by (bike class, model type)."""

    models: Mapping[SlotKey, BaseModel] = field(default_factory=_empty_slots)
    model_dir: Optional[Path] = None

    def get(self, bike_class: BikeClass, model_type: ModelType) -> BaseModel:
        """Model for a slot.

        Raises:
            ModelUnavailableError: If the slot is empty
        """
        key = (BikeClass(bike_class), ModelType(model_type))
        if key not in self.models:
            raise ModelUnavailableError(
                f"No {key[1].value} model loaded for {key[0].value}"
            )
        return self.models[key]

    def qualification(self, bike_class: BikeClass) -> QualificationModel:
        return self.get(bike_class, ModelType.QUALIFICATION)

    def finish_position(self, bike_class: BikeClass) -> FinishPositionModel:
        return self.get(bike_class, ModelType.FINISH_POSITION)

    def has(self, model_type: ModelType) -> bool:
        return any(key[1] == model_type for key in self.models)

    @property
    def is_complete_for_any_class(self) -> bool:
        """True if at least one model of each type is loaded."""
        return self.has(ModelType.QUALIFICATION) and self.has(ModelType.FINISH_POSITION)

    def __len__(self) -> int:
        return len(self.models)


def get_model(
    bike_class: BikeClass,
    model_type: ModelType,
    model_dir: Optional[Path] = None,
) -> BaseModel:
    """Load the model for one slot. No fallbacks.

    Raises:
        ValueError: If model_type is unknown
        ModelUnavailableError: If the artifact doesn't exist
    """
    if model_dir is None:
        model_dir = MODELS_DIR

    try:
        model_class = MODEL_CLASSES[ModelType(model_type)]
    except ValueError:
        raise ValueError(
            f"Unknown model type: {model_type}. "
            f"Must be one of: {[t.value for t in ModelType]}"
        )
    return model_class.load(Path(model_dir), BikeClass(bike_class))


def list_available_models(model_dir: Optional[Path] = None) -> Dict[str, bool]:
    """Which slot artifacts exist on disk.

    Returns:
        Dict mapping slot name (e.g. "Class450_Qualification") to presence
    """
    if model_dir is None:
        model_dir = MODELS_DIR
    model_dir = Path(model_dir)

    available = {}
    for bike_class in BikeClass:
        for model_type in ModelType:
            name = f"{bike_class.value}_{model_type.value}"
            available[name] = (model_dir / model_filename(bike_class, model_type)).exists()
    return available


def artifacts_ready(model_dir: Optional[Path] = None) -> bool:
    """At least one qualification and one finish-position artifact exist."""
    available = list_available_models(model_dir)
    has_qual = any(v for k, v in available.items() if k.endswith(ModelType.QUALIFICATION.value))
    has_finish = any(v for k, v in available.items() if k.endswith(ModelType.FINISH_POSITION.value))
    return has_qual and has_finish


def load_model_handles(model_dir: Optional[Path] = None) -> ModelHandles:
    """Load every available slot into a fresh ModelHandles snapshot.

    Missing artifacts are logged and left empty; a corrupt artifact is
    logged and skipped. Never raises for absent models.
    """
    if model_dir is None:
        model_dir = MODELS_DIR
    model_dir = Path(model_dir)

    loaded: Dict[SlotKey, BaseModel] = {}
    for bike_class in BikeClass:
        for model_type, model_class in MODEL_CLASSES.items():
            try:
                loaded[(bike_class, model_type)] = model_class.load(model_dir, bike_class)
                logger.info(f"Loaded {model_type.value} model for {bike_class.value} from {model_dir}")
            except ModelUnavailableError:
                logger.warning(
                    f"{model_type.value} model file not found: "
                    f"{model_dir / model_filename(bike_class, model_type)}"
                )
            except Exception as e:
                logger.error(f"Failed to load {bike_class.value}_{model_type.value}: {e}")

    return ModelHandles(models=MappingProxyType(loaded), model_dir=model_dir)


__all__ = [
    "ModelHandles",
    "get_model",
    "list_available_models",
    "artifacts_ready",
    "load_model_handles",
    "MODEL_CLASSES",
]
