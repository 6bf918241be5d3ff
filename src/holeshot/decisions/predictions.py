"""Event prediction service.

Builds features for an event, runs the multi-stage predictor and caches
the result per event for a short time (default 30 minutes).

Decision Rule: rank by expected_points.
Injured riders are excluded before prediction.

Key Classes:
    PredictionService - Generate, cache and invalidate event predictions
    FeatureSource - Anything that can produce RiderFeatures for an event
    HistoryFeatureSource - FeatureSource backed by the results table
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict, List, Optional, Protocol, Tuple

from holeshot.config import PREDICTION_CACHE_TTL
from holeshot.data.reader import ResultsReader
from holeshot.data.schemas import RiderFeatures
from holeshot.features.builder import FeatureBuilder
from holeshot.models.prediction import RiderPrediction
from holeshot.models.predictor import MultiStagePredictor

logger = logging.getLogger(__name__)


class FeatureSource(Protocol):
    def features_for_event(self, event_id: str) -> List[RiderFeatures]:
        ...


class HistoryFeatureSource:
    """Features computed from the results CSV."""

    def __init__(
        self,
        reader: Optional[ResultsReader] = None,
        builder: Optional[FeatureBuilder] = None,
    ):
        self.reader = reader or ResultsReader()
        self.builder = builder or FeatureBuilder()

    def features_for_event(self, event_id: str) -> List[RiderFeatures]:
        return self.builder.build_for_event(event_id, self.reader.get_results())


class PredictionService:
    """Predictions per event with a TTL cache.

    Attributes:
        predictor: MultiStagePredictor used for every event
        feature_source: Produces RiderFeatures for an event
        cache_ttl: Seconds a cached event stays fresh
    """

    def __init__(
        self,
        predictor: MultiStagePredictor,
        feature_source: FeatureSource,
        cache_ttl: float = PREDICTION_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.predictor = predictor
        self.feature_source = feature_source
        self.cache_ttl = cache_ttl
        self._clock = clock
        self._cache: Dict[str, Tuple[float, List[RiderPrediction]]] = {}
        self._lock = threading.Lock()

    def generate_predictions(
        self,
        event_id: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[RiderPrediction]:
        """Predict every healthy rider in an event.

        Args:
            event_id: Target event.
            cancel_event: Passed through to predict_batch.

        Returns:
            Predictions sorted by expected points (descending); [] when the
            event has no riders.
        """
        features = self.feature_source.features_for_event(event_id)
        if not features:
            logger.warning(f"No riders found for event {event_id}")
            return []

        healthy = [f for f in features if not f.is_injured]
        injured = len(features) - len(healthy)
        if injured:
            logger.info(f"Excluding {injured} injured riders from event {event_id}")

        predictions = self.predictor.predict_batch(healthy, cancel_event=cancel_event)
        predictions.sort(key=lambda p: (-p.expected_points, p.rider_id))

        logger.info(f"Generated {len(predictions)} predictions for event {event_id}")
        return predictions

    def get_or_generate(self, event_id: str) -> List[RiderPrediction]:
        """Cached predictions for an event, regenerated after cache_ttl.

        Expired entries for other events are dropped on every write.
        """
        key = str(event_id)
        now = self._clock()
        with self._lock:
            cached = self._cache.get(key)
        if cached is not None and now - cached[0] < self.cache_ttl:
            logger.debug(f"Prediction cache hit for event {key}")
            return list(cached[1])

        predictions = self.generate_predictions(key)
        with self._lock:
            expired = [k for k, (stamp, _) in self._cache.items() if now - stamp >= self.cache_ttl]
            for k in expired:
                del self._cache[k]
            self._cache[key] = (now, predictions)
        return list(predictions)

    def invalidate(self, event_id: Optional[str] = None) -> None:
        """Drop one event from the cache (or all events when event_id is None)."""
        with self._lock:
            if event_id is None:
                self._cache.clear()
            else:
                self._cache.pop(str(event_id), None)


__all__ = ["PredictionService", "FeatureSource", "HistoryFeatureSource"]
