"""CLI smoke tests for the scripts.

These are minimal tests that verify:
1. Script runs without crashing
2. Exit code matches the outcome
3. Output exists (stdout or file)

These tests do NOT verify correctness - that's the job of contract tests.
CLI scripts are thin wrappers around decision functions.
"""

import subprocess
import sys
from pathlib import Path

import pandas as pd


# Project root for PYTHONPATH
PROJECT_ROOT = Path(__file__).parent.parent
SCRIPTS_DIR = PROJECT_ROOT / "scripts"


def run_script(script_path: Path, args: list = None) -> subprocess.CompletedProcess:
    """Run a script with PYTHONPATH set to src."""
    env = {
        "PYTHONPATH": str(PROJECT_ROOT / "src"),
    }

    cmd = [sys.executable, str(script_path)]
    if args:
        cmd.extend(args)

    return subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        env={**subprocess.os.environ, **env},
        cwd=str(PROJECT_ROOT),
        timeout=300,
    )


class TestTeamCLI:
    """Smoke tests for team CLI script."""

    def test_team_with_fallback_predictions(self, tmp_path, results_csv):
        output = tmp_path / "team.csv"

        result = run_script(SCRIPTS_DIR / "decisions" / "team_cli.py", [
            "--results", str(results_csv),
            "--model-dir", str(tmp_path / "models"),
            "--exclude", "r450_00",
            "--output", str(output),
        ])

        assert result.returncode == 0, result.stdout + result.stderr
        assert "Event: sx-2025-11" in result.stdout
        report = pd.read_csv(output)
        assert len(report) == 8
        assert "r450_00" not in set(report["rider_id"])

    def test_missing_results_file(self, tmp_path):
        result = run_script(SCRIPTS_DIR / "decisions" / "team_cli.py", [
            "--results", str(tmp_path / "missing.csv"),
        ])

        assert result.returncode == 1
        assert "ERROR" in result.stdout


class TestTrainCLI:
    """Smoke tests for training script."""

    def test_train_models(self, tmp_path, results_csv):
        model_dir = tmp_path / "models"

        result = run_script(SCRIPTS_DIR / "ops" / "train_models.py", [
            "--results", str(results_csv),
            "--model-dir", str(model_dir),
        ])

        assert result.returncode == 0, result.stdout + result.stderr
        assert "Trained 4 models" in result.stdout
        assert (model_dir / "Class450_Qualification.joblib").exists()
        assert (model_dir / "evaluation.json").exists()
