"""Trained model metadata, persisted as JSON.

One TrainedModelResult per training run. Records are appended and never
edited, except that recording a new model deactivates the previous
active record of the same (bike class, model type).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

from holeshot.config import METADATA_PATH
from holeshot.data.schemas import BikeClass, ModelType, TrainedModelResult

logger = logging.getLogger(__name__)


class ModelMetadataStore:
    """JSON-file store of TrainedModelResult records."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else METADATA_PATH

    def _load(self) -> List[TrainedModelResult]:
        if not self.path.exists():
            return []
        with open(self.path) as f:
            return [TrainedModelResult.model_validate(item) for item in json.load(f)]

    def _save(self, records: List[TrainedModelResult]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump([r.model_dump(mode="json") for r in records], f, indent=2)

    def record(self, result: TrainedModelResult) -> TrainedModelResult:
        """Append a record and make it the active one for its slot."""
        records = []
        for existing in self._load():
            same_slot = (
                existing.bike_class == result.bike_class
                and existing.model_type == result.model_type
            )
            if same_slot and existing.is_active:
                existing = existing.model_copy(update={"is_active": False})
            records.append(existing)

        result = result.model_copy(update={"is_active": True})
        records.append(result)
        self._save(records)

        logger.info(
            f"Recorded {result.bike_class.value}_{result.model_type.value} "
            f"{result.version} ({result.training_samples} samples)"
        )
        return result

    def active(self, bike_class: BikeClass, model_type: ModelType) -> Optional[TrainedModelResult]:
        """Active record for a slot, or None."""
        for record in reversed(self._load()):
            if (
                record.is_active
                and record.bike_class == BikeClass(bike_class)
                and record.model_type == ModelType(model_type)
            ):
                return record
        return None

    def history(
        self,
        bike_class: Optional[BikeClass] = None,
        model_type: Optional[ModelType] = None,
    ) -> List[TrainedModelResult]:
        """All records, oldest first, optionally filtered by slot."""
        records = self._load()
        if bike_class is not None:
            records = [r for r in records if r.bike_class == BikeClass(bike_class)]
        if model_type is not None:
            records = [r for r in records if r.model_type == ModelType(model_type)]
        return records


__all__ = ["ModelMetadataStore"]
