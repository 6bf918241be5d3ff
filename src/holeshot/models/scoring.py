"""Fantasy scoring rules.

Decision Rule (Frozen):
    adjusted = max(1, finish - handicap)
    points   = POINTS_TABLE[adjusted], doubled when the rider is not an
               All-Star and adjusted <= 10

All-Stars never double. Positions outside 1-22 score 0.

Usage:
    from holeshot.models.scoring import calculate_points

    calculate_points(8, 5, is_all_star=False)  # adjusted 3 -> 20 -> 40
"""

from __future__ import annotations

from holeshot.config import DOUBLE_POINTS_MAX_POSITION, MAIN_EVENT_SIZE, POINTS_TABLE


def adjusted_position(finish: int, handicap: int) -> int:
    """Finish position after the handicap, floored at 1."""
    return max(1, int(finish) - int(handicap))


def base_points(position: int) -> int:
    """Table points for an adjusted position (0 outside 1-22)."""
    if position < 1 or position > MAIN_EVENT_SIZE:
        return 0
    return POINTS_TABLE[position]


def is_doubled(position: int, is_all_star: bool) -> bool:
    """Non All-Stars double their points inside the top 10 adjusted."""
    return not is_all_star and position <= DOUBLE_POINTS_MAX_POSITION


def calculate_points(finish: int, handicap: int, is_all_star: bool) -> int:
    """Fantasy points for a (predicted or actual) finish.

    Args:
        finish: Finish position in the main event.
        handicap: Rider handicap, subtracted from the finish.
        is_all_star: All-Stars never receive double points.

    Returns:
        Final fantasy points.
    """
    position = adjusted_position(finish, handicap)
    points = base_points(position)
    return points * 2 if is_doubled(position, is_all_star) else points


__all__ = ["adjusted_position", "base_points", "is_doubled", "calculate_points"]
