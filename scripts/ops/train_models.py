#!/usr/bin/env python
"""Training + evaluation pipeline runner.

Orchestrates the complete training workflow:
1. Load race results
2. Build training sets per class
3. Train qualification and finish position models per class
4. Record model metadata
5. Evaluate on the latest completed event
6. Save results

Usage:
    PYTHONPATH=src python scripts/ops/train_models.py
    PYTHONPATH=src python scripts/ops/train_models.py --results storage/results.csv --model-dir storage/models
"""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from holeshot.pipeline.runner import Pipeline


def main(argv=None):
    """Run full training + evaluation pipeline."""
    parser = argparse.ArgumentParser(
        description="Train and evaluate the per-class fantasy models"
    )
    parser.add_argument(
        "--results",
        default=None,
        help="Race results CSV (default: HOLESHOT_RESULTS_PATH or storage/results.csv)",
    )
    parser.add_argument(
        "--model-dir",
        type=Path,
        default=None,
        help="Model artifact directory (default: HOLESHOT_MODEL_DIR or storage/models)",
    )
    parser.add_argument(
        "--eval-events",
        type=int,
        default=1,
        help="Number of latest completed events to evaluate",
    )
    parser.add_argument(
        "--skip-eval",
        action="store_true",
        help="Skip evaluation after training",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("\n" + "=" * 70)
    print("HOLESHOT TRAINING + EVALUATION PIPELINE")
    print("=" * 70)

    pipeline = Pipeline(
        results_path=args.results,
        model_dir=args.model_dir,
        eval_events=args.eval_events,
    )

    try:
        pipeline.gather_data()
        pipeline.build_features()
        trained = pipeline.train()
    except (ValueError, FileNotFoundError) as e:
        print(f"ERROR: {e}")
        return 1

    print(f"\nTrained {len(trained)} models:")
    for result in trained:
        print(
            f"  {result.bike_class.value}_{result.model_type.value}: "
            f"{result.training_samples} samples, R²/AUC={result.r_squared:.3f}, "
            f"accuracy={result.validation_accuracy:.1%}"
        )

    if not trained:
        print("No models trained (insufficient data for every slot)")
        return 1

    if not args.skip_eval:
        pipeline.evaluate()
        path = pipeline.save_artifacts()
        if path is not None:
            print(f"\nEvaluation saved to {path}")

    print("\nPipeline complete!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
