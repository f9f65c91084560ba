import sys
import time
from pathlib import Path
from typing import Tuple

# Add project root to sys.path at the beginning to avoid package shadowing
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pandas as pd

from src.common.config import config
from src.common.tables import latest_dataset, load_master_table
from runner.evaluator import contest_summary, evaluate_lags
from runner.experiment import EvaluationSpec
from runner.result_store import ResultStore

def run_evaluation(spec: EvaluationSpec, runs_dir: Path = None) -> Tuple[pd.DataFrame, Path]:
    """
    Evaluate a master table over an EvaluationSpec's lag range.
    
    Scores market and poll leaders at every lag, writes the snapshot
    sequence plus the eve-of-contest picks, and returns the snapshots.
    
    Args:
        spec: EvaluationSpec naming the dataset, lag range and contest filter
        runs_dir: Override for the output directory (defaults to data/runs)
        
    Returns:
        Tuple of (snapshots DataFrame, run directory)
    """
    print(f"Starting evaluation: {spec.run_name}")
    table = load_master_table(Path(spec.dataset_path))
    
    contests = sorted(set(zip(table["cycle_year"].astype(int), table["state"])))
    eligible = spec.eligible_contests(contests)
    print(f"Scoring {len(eligible) if eligible is not None else len(contests)} contests "
          f"at lags {spec.min_lag}-{spec.max_lag}...")
    
    snapshots = evaluate_lags(table, spec.lags(), eligible)
    picks = contest_summary(table, spec.min_lag, eligible)
    
    run_id = f"run_{int(time.time())}_{spec.run_name}"
    run_dir = ResultStore.write(run_id, spec, snapshots, picks, runs_dir=runs_dir)
    
    print(snapshots[["lag_days", "market_accuracy", "poll_accuracy"]].to_string(index=False))
    return snapshots, run_dir

def main():
    import argparse
    parser = argparse.ArgumentParser(description="Primary Signals Accuracy Runner")
    parser.add_argument("--name", type=str, default="evaluation", help="Run name")
    parser.add_argument("--dataset", type=str, help="Path to master table dataset (defaults to latest)")
    parser.add_argument("--min-lag", type=int, default=config.default_min_lag, help="Smallest lag in days")
    parser.add_argument("--max-lag", type=int, default=config.default_max_lag, help="Largest lag in days")
    parser.add_argument("--cycle", type=int, action="append", default=[], help="Restrict to a cycle (repeatable)")
    parser.add_argument("--state", type=str, action="append", default=[], help="Restrict to a state (repeatable)")
    parser.add_argument("--desc", type=str, default="", help="Description of the run")
    
    args = parser.parse_args()

    # 1. Resolve dataset path
    if args.dataset:
        dataset_path = args.dataset
    else:
        dataset_dir = latest_dataset()
        if dataset_dir is None:
            print("No master table found. Run scripts/build_primary.py first.")
            sys.exit(1)
        dataset_path = str(dataset_dir)
        print(f"Using dataset: {dataset_path}")

    # 2. Create spec
    spec = EvaluationSpec(
        run_name=args.name,
        dataset_path=dataset_path,
        min_lag=args.min_lag,
        max_lag=args.max_lag,
        cycles=args.cycle,
        states=args.state,
        description=args.desc
    )
    
    # 3. Run
    run_evaluation(spec)

if __name__ == "__main__":
    main()
