"""CLI smoke test for the training + evaluation script.

Verifies only that the script runs, exits 0 and writes its report.
Correctness lives in the pipeline tests; the CLI is a thin wrapper.
"""

import json
import subprocess
import sys
from pathlib import Path

from conftest import make_orders


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


class TestTrainAndEvalCLI:
    """Smoke tests for train_and_eval.py."""

    def test_runs_and_writes_report(self, tmp_path):
        joined = make_orders(240, seed=6)
        orders = joined[[
            "restaurant_id", "order_value", "number_of_items",
            "order_acknowledged_at", "order_ready_at",
        ]]
        restaurants = joined[["restaurant_id", "country", "city", "type_of_food"]].drop_duplicates("restaurant_id")
        orders.to_csv(tmp_path / "orders.csv", index=False)
        restaurants.to_csv(tmp_path / "restaurants.csv", index=False)

        result = run_script(SCRIPTS_DIR / "train_and_eval.py", [
            "--orders", str(tmp_path / "orders.csv"),
            "--restaurants", str(tmp_path / "restaurants.csv"),
            "--variant", "asap",
            "--folds", "3",
            "--trees", "10",
            "--out", str(tmp_path / "out"),
        ])

        assert result.returncode == 0, f"Exit code {result.returncode}, stderr: {result.stderr}"
        assert "PIPELINE COMPLETE" in result.stdout

        with open(tmp_path / "out" / "asap_comparison_report.json") as f:
            payload = json.load(f)
        assert payload["selection"]["model"] in {"linear", "ensemble"}
