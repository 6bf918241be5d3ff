"""Team Optimizer for fantasy supercross.

Selects an 8-rider roster (4 per class) using integer programming.
Maximizes total expected points while respecting roster rules.

Why not greedy: the constraints interact. Top 8 overall can be 8 riders
of one class, top 4 per class can miss the All-Star rule, and previous
picks remove riders. The 0/1 program is exact.

Formulation:
    x_i in {0, 1} for each eligible rider (excluded riders get no variable)
    maximize   sum(x_i * expected_points_i)
    subject to sum(x_i, Class450) == 4
               sum(x_i, Class250) == 4
               sum(x_i, Class450 All-Stars) == 1   (if required)
               sum(x_i, Class250 All-Stars) == 1   (if required)

An unsatisfiable roster is a normal result (is_feasible=False, empty
lists), not an error.

Key Classes:
    TeamOptimizer - Main optimizer class
    TeamConstraints - Exclusions and All-Star rules
    OptimalTeam - Optimization result

Usage:
    from holeshot.models import TeamOptimizer, TeamConstraints

    optimizer = TeamOptimizer(predictions, TeamConstraints(excluded_riders={"r12"}))
    team = optimizer.optimize()
    team.is_feasible, team.riders_450, team.riders_250
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from pulp import (
    PULP_CBC_CMD,
    LpBinary,
    LpMaximize,
    LpProblem,
    LpSolutionOptimal,
    LpStatus,
    LpVariable,
    PulpSolverError,
    lpSum,
    value,
)

from holeshot.config import ALL_STARS_PER_CLASS, RIDERS_PER_CLASS, SOLVER_TIME_LIMIT
from holeshot.data.schemas import BikeClass
from holeshot.models.prediction import RiderPrediction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TeamConstraints:
    """Roster rules for one event.

    Attributes:
        excluded_riders: Rider ids that may not be picked (previous round
            picks in the same series).
        require_all_star_450: Exactly one 450 All-Star.
        require_all_star_250: Exactly one 250 All-Star.
    """

    excluded_riders: FrozenSet[str] = field(default_factory=frozenset)
    require_all_star_450: bool = True
    require_all_star_250: bool = True

    def __post_init__(self):
        object.__setattr__(self, "excluded_riders", frozenset(self.excluded_riders or ()))

    def requires_all_star(self, bike_class: BikeClass) -> bool:
        if BikeClass(bike_class) == BikeClass.CLASS_450:
            return self.require_all_star_450
        return self.require_all_star_250


@dataclass(frozen=True)
class OptimalTeam:
    """Result of team optimization.

    Attributes:
        riders_450: Selected 450 rider ids (4 when feasible).
        riders_250: Selected 250 rider ids (4 when feasible).
        total_expected_points: Sum of expected points of the 8 riders.
        is_feasible: False when no roster satisfies the rules.
        solve_time_ms: Wall time spent, for observability.
        status: Solver status or the reason the problem was rejected.
    """

    riders_450: Tuple[str, ...] = ()
    riders_250: Tuple[str, ...] = ()
    total_expected_points: float = 0.0
    is_feasible: bool = False
    solve_time_ms: int = 0
    status: str = ""

    @property
    def rider_ids(self) -> Tuple[str, ...]:
        return self.riders_450 + self.riders_250

    @classmethod
    def infeasible(cls, solve_time_ms: int, status: str) -> "OptimalTeam":
        return cls(is_feasible=False, solve_time_ms=solve_time_ms, status=status)

    def print_team(self, predictions: Sequence[RiderPrediction]) -> None:
        """Print formatted roster."""
        TeamFormatter(self, predictions).print()


class TeamFormatter:
    """Handles display formatting for OptimalTeam."""

    HEADER_LABEL = "TEAM OPTIMIZER"

    def __init__(self, team: OptimalTeam, predictions: Sequence[RiderPrediction]):
        self.team = team
        self.by_id = {p.rider_id: p for p in predictions}

    def print(self) -> None:
        """Print full formatted team output."""
        print("\n" + "=" * 70)
        print(self.HEADER_LABEL)
        print("=" * 70)

        if not self.team.is_feasible:
            print(f"\nNo feasible team ({self.team.status})")
            print("=" * 70)
            return

        print(f"\nExpected Points: {self.team.total_expected_points:.1f}")
        print(f"Solved in {self.team.solve_time_ms}ms")
        self._print_class("450 CLASS", self.team.riders_450)
        self._print_class("250 CLASS", self.team.riders_250)
        print("=" * 70)

    def _print_class(self, label: str, rider_ids: Sequence[str]) -> None:
        print("\n" + "-" * 70)
        print(label)
        print("-" * 70)
        print(f"{'Rider':<20} {'AS':>3} {'Finish':>7} {'If Qual':>8} {'EV':>7} {'Conf':>6}")
        for rider_id in rider_ids:
            p = self.by_id.get(rider_id)
            if p is None:
                print(f"{rider_id:<20}")
                continue
            finish = "DNQ" if p.predicted_finish is None else str(p.predicted_finish)
            all_star = "*" if p.is_all_star else ""
            print(
                f"{p.rider_id:<20} {all_star:>3} {finish:>7} "
                f"{p.points_if_qualifies:>8.0f} {p.expected_points:>7.2f} {p.confidence:>5.0%}"
            )


class TeamOptimizer:
    """Roster optimizer using pure expected-points maximization.

    Example:
        >>> optimizer = TeamOptimizer(predictions, TeamConstraints())
        >>> team = optimizer.optimize()
        >>> team.print_team(predictions)
    """

    RIDERS_PER_CLASS = RIDERS_PER_CLASS
    ALL_STARS_PER_CLASS = ALL_STARS_PER_CLASS

    def __init__(
        self,
        predictions: Iterable[RiderPrediction],
        constraints: Optional[TeamConstraints] = None,
        time_limit: float = SOLVER_TIME_LIMIT,
    ) -> None:
        """Initialize optimizer.

        Args:
            predictions: Snapshot of rider predictions.
            constraints: Roster rules (default: TeamConstraints()).
            time_limit: Solver time limit in seconds.
        """
        self.predictions = list(predictions)
        self.constraints = constraints or TeamConstraints()
        self.time_limit = time_limit

        self._prepare_data()

    def _prepare_data(self) -> None:
        """Drop excluded riders and sort for a deterministic model."""
        excluded = self.constraints.excluded_riders
        eligible = [p for p in self.predictions if p.rider_id not in excluded]

        # Same rider twice in a snapshot: keep the first
        seen = set()
        self.riders: List[RiderPrediction] = []
        for p in sorted(eligible, key=lambda p: p.rider_id):
            if p.rider_id in seen:
                continue
            seen.add(p.rider_id)
            self.riders.append(p)

        filtered = len(self.predictions) - len(eligible)
        if filtered > 0:
            logger.info(f"Excluded {filtered} riders from previous picks")

        self.by_class: Dict[BikeClass, List[RiderPrediction]] = {
            bike_class: [p for p in self.riders if p.bike_class == bike_class]
            for bike_class in BikeClass
        }

    def _precheck(self) -> Optional[str]:
        """Reason the roster can't be built, or None."""
        if not self.riders:
            return "No predictions provided"

        for bike_class, riders in self.by_class.items():
            if len(riders) < self.RIDERS_PER_CLASS:
                return (
                    f"Insufficient {bike_class.value} riders: "
                    f"{len(riders)} available, need {self.RIDERS_PER_CLASS}"
                )
            if self.constraints.requires_all_star(bike_class):
                all_stars = sum(1 for p in riders if p.is_all_star)
                if all_stars < self.ALL_STARS_PER_CLASS:
                    return f"No {bike_class.value} All-Stars available, but required by constraints"
                non_all_stars = len(riders) - all_stars
                if non_all_stars < self.RIDERS_PER_CLASS - self.ALL_STARS_PER_CLASS:
                    return (
                        f"Insufficient non All-Star {bike_class.value} riders: "
                        f"{non_all_stars} available"
                    )
        return None

    def optimize(self, cancel_event: Optional[threading.Event] = None) -> OptimalTeam:
        """Run the optimization.

        Args:
            cancel_event: If set before the solve starts, returns infeasible.

        Returns:
            OptimalTeam (is_feasible=False when no roster satisfies the rules,
            the solver times out, or the run was cancelled).
        """
        start = time.perf_counter()

        def elapsed_ms() -> int:
            return int((time.perf_counter() - start) * 1000)

        reason = self._precheck()
        if reason is not None:
            logger.warning(reason)
            return OptimalTeam.infeasible(elapsed_ms(), reason)

        prob = LpProblem("TeamOptimizer", LpMaximize)

        # Decision variables (index names: rider ids may hold characters PuLP rewrites)
        x = {
            p.rider_id: LpVariable(f"x_{i}", cat=LpBinary)
            for i, p in enumerate(self.riders)
        }

        # Objective: maximize total expected points
        prob += lpSum(x[p.rider_id] * p.expected_points for p in self.riders), "TotalEV"

        # Constraints
        for bike_class, riders in self.by_class.items():
            label = bike_class.value
            prob += lpSum(x[p.rider_id] for p in riders) == self.RIDERS_PER_CLASS, f"Riders_{label}"

            if self.constraints.requires_all_star(bike_class):
                all_stars = [p for p in riders if p.is_all_star]
                prob += (
                    lpSum(x[p.rider_id] for p in all_stars) == self.ALL_STARS_PER_CLASS,
                    f"AllStar_{label}",
                )

        if cancel_event is not None and cancel_event.is_set():
            logger.warning("Team optimization cancelled before solve")
            return OptimalTeam.infeasible(elapsed_ms(), "Cancelled")

        logger.info(
            f"Solving team optimization with {len(self.riders)} riders "
            f"({len(self.by_class[BikeClass.CLASS_450])} in 450 class, "
            f"{len(self.by_class[BikeClass.CLASS_250])} in 250 class)"
        )

        # Solve
        try:
            prob.solve(PULP_CBC_CMD(msg=False, timeLimit=self.time_limit))
        except PulpSolverError as e:
            logger.error(f"Error in team optimization: {e}")
            return OptimalTeam.infeasible(elapsed_ms(), "SolverError")

        status = LpStatus[prob.status]
        # A time-limited solve can stop on a feasible but unproven roster
        if status != "Optimal" or prob.sol_status != LpSolutionOptimal:
            logger.warning(f"No optimal solution found. Solver status: {status}")
            return OptimalTeam.infeasible(elapsed_ms(), status)

        # Extract results
        selected = [p for p in self.riders if value(x[p.rider_id]) > 0.5]
        selected.sort(key=lambda p: (-p.expected_points, p.rider_id))

        riders_450 = tuple(p.rider_id for p in selected if p.bike_class == BikeClass.CLASS_450)
        riders_250 = tuple(p.rider_id for p in selected if p.bike_class == BikeClass.CLASS_250)
        total = float(sum(p.expected_points for p in selected))

        solve_ms = elapsed_ms()
        logger.info(
            f"Optimal team found: {len(riders_450)} from 450 class, {len(riders_250)} from 250 class, "
            f"{total:.1f} expected points (solved in {solve_ms}ms)"
        )

        return OptimalTeam(
            riders_450=riders_450,
            riders_250=riders_250,
            total_expected_points=total,
            is_feasible=True,
            solve_time_ms=solve_ms,
            status=status,
        )


def find_optimal_team(
    predictions: Iterable[RiderPrediction],
    constraints: Optional[TeamConstraints] = None,
    time_limit: float = SOLVER_TIME_LIMIT,
    cancel_event: Optional[threading.Event] = None,
) -> OptimalTeam:
    """Convenience function to run the team optimizer.

    Args:
        predictions: Snapshot of rider predictions.
        constraints: Roster rules.
        time_limit: Solver time limit in seconds.
        cancel_event: Optional cancellation signal.

    Returns:
        OptimalTeam. Deterministic for identical inputs (solve_time_ms aside).
    """
    optimizer = TeamOptimizer(predictions, constraints, time_limit=time_limit)
    return optimizer.optimize(cancel_event=cancel_event)


__all__ = [
    "TeamOptimizer",
    "TeamConstraints",
    "OptimalTeam",
    "TeamFormatter",
    "find_optimal_team",
]
