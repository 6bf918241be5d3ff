#!/usr/bin/env python
"""Team Optimization: CLI wrapper for decision function.

Decision Rule: Maximize Σ(expected_points)
4 riders per class, one All-Star per class, no previous picks.

CONTRACT: This script MUST call pick_team()
from holeshot.decisions. No alternate execution paths allowed.

Usage:
    PYTHONPATH=src python scripts/decisions/team_cli.py
    PYTHONPATH=src python scripts/decisions/team_cli.py --event sx-2026-05
    PYTHONPATH=src python scripts/decisions/team_cli.py --exclude r12 --exclude r40
"""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

import pandas as pd

from holeshot.config import REPORTS_DIR
from holeshot.data import ResultsReader
from holeshot.decisions import HistoryFeatureSource, PredictionService, pick_team
from holeshot.models import MultiStagePredictor, TeamConstraints


def main(argv=None):
    parser = argparse.ArgumentParser(description="Pick the optimal fantasy team for an event")
    parser.add_argument("--results", default=None, help="Race results CSV")
    parser.add_argument("--event", default=None, help="Target event id (default: next event)")
    parser.add_argument("--model-dir", type=Path, default=None, help="Model artifact directory")
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="RIDER_ID",
        help="Previously picked rider (repeatable)",
    )
    parser.add_argument("--no-all-star-450", action="store_true", help="Don't require a 450 All-Star")
    parser.add_argument("--no-all-star-250", action="store_true", help="Don't require a 250 All-Star")
    parser.add_argument("--output", type=Path, default=None, help="CSV report path")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    print("\n" + "=" * 70)
    print("TEAM OPTIMIZER")
    print("=" * 70)

    try:
        reader = ResultsReader(args.results)
        event_id = args.event or reader.get_next_event_id()
        if event_id is None:
            print("ERROR: No upcoming event in results; pass --event")
            return 1

        service = PredictionService(
            MultiStagePredictor(args.model_dir),
            HistoryFeatureSource(reader),
        )
        constraints = TeamConstraints(
            excluded_riders=frozenset(args.exclude),
            require_all_star_450=not args.no_all_star_450,
            require_all_star_250=not args.no_all_star_250,
        )
        team, predictions = pick_team(event_id, service, constraints)
    except (ValueError, FileNotFoundError) as e:
        print(f"ERROR: {e}")
        return 1

    print(f"\nEvent: {event_id}")
    print(f"Model: {service.predictor.state.value}")
    team.print_team(predictions)

    if not team.is_feasible:
        return 1

    output_path = args.output or REPORTS_DIR / f"{event_id}_team.csv"
    output_path.parent.mkdir(parents=True, exist_ok=True)

    by_id = {p.rider_id: p for p in predictions}
    rows = []
    for role, rider_ids in (("450", team.riders_450), ("250", team.riders_250)):
        for rank, rider_id in enumerate(rider_ids, 1):
            rows.append({"class": role, "rank": rank, **by_id[rider_id].to_dict()})
    pd.DataFrame(rows).to_csv(output_path, index=False)
    print(f"\nSaved to {output_path}")

    print("\n" + "-" * 70)
    print("Decision Rule:")
    print("  maximize Σ(expected_points)")
    print("-" * 70 + "\n")

    return 0


if __name__ == "__main__":
    sys.exit(main())
