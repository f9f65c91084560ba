"""
Evaluation runner tests: spec filtering and run output.
"""
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from runner.experiment import EvaluationSpec
from runner.runner import run_evaluation
from src.common.tables import write_master_table


def test_eligible_contests():
    contests = [(2016, "Iowa"), (2020, "Nevada"), (2020, "Texas")]
    assert EvaluationSpec("all", "x").eligible_contests(contests) is None
    assert EvaluationSpec("c", "x", cycles=[2020]).eligible_contests(contests) == [(2020, "Nevada"), (2020, "Texas")]
    assert EvaluationSpec("s", "x", states=["Iowa"]).eligible_contests(contests) == [(2016, "Iowa")]
    assert EvaluationSpec("none", "x", cycles=[2016], states=["Texas"]).eligible_contests(contests) == []


def test_run_evaluation_writes_outputs(master_table, tmp_path):
    dataset_dir = write_master_table(master_table, version="test", output_dir=tmp_path / "datasets")
    spec = EvaluationSpec(run_name="unit", dataset_path=str(dataset_dir), min_lag=1, max_lag=4, cycles=[2020])
    
    snapshots, run_dir = run_evaluation(spec, runs_dir=tmp_path / "runs")
    
    assert snapshots["lag_days"].tolist() == [1, 2, 3, 4]
    assert snapshots["market_accuracy"].iloc[0] == 50.0
    for name in ["spec.json", "snapshots.csv", "contests.csv", "summary.json"]:
        assert (run_dir / name).exists(), f"{name} not written"
    
    summary = json.loads((run_dir / "summary.json").read_text())
    assert summary["lags"] == 4
    assert summary["mean_market_accuracy"] == 50.0
    assert summary["mean_poll_accuracy"] == 100.0
    assert json.loads((run_dir / "spec.json").read_text())["cycles"] == [2020]
