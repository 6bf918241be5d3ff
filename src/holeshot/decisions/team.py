"""Team selection for an event.

Decision Rule: maximize Σ(expected_points)
Subject to 4 riders per class, one All-Star per class (when required)
and no previously picked riders.
"""

from __future__ import annotations

import threading
from typing import List, Optional, Tuple

from holeshot.config import SOLVER_TIME_LIMIT
from holeshot.decisions.predictions import PredictionService
from holeshot.models.prediction import RiderPrediction
from holeshot.models.team import OptimalTeam, TeamConstraints, find_optimal_team


def pick_team(
    event_id: str,
    service: PredictionService,
    constraints: Optional[TeamConstraints] = None,
    time_limit: float = SOLVER_TIME_LIMIT,
    cancel_event: Optional[threading.Event] = None,
) -> Tuple[OptimalTeam, List[RiderPrediction]]:
    """Pick the optimal team for an event.

    Args:
        event_id: Target event.
        service: Source of (cached) event predictions.
        constraints: Roster rules (default: both All-Stars required, no exclusions).
        time_limit: Solver time limit in seconds.
        cancel_event: Optional cancellation signal for the solve.

    Returns:
        Tuple of (team, predictions). The team is infeasible (not an error)
        when the event has too few eligible riders.
    """
    predictions = service.get_or_generate(event_id)
    team = find_optimal_team(
        predictions,
        constraints,
        time_limit=time_limit,
        cancel_event=cancel_event,
    )
    return team, predictions
