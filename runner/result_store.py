import json
import pandas as pd
from pathlib import Path
from typing import Optional
from src.common.config import config
from runner.experiment import EvaluationSpec

class ResultStore:
    @staticmethod
    def write(run_id: str, spec: EvaluationSpec, snapshots: pd.DataFrame,
              contests: Optional[pd.DataFrame] = None, runs_dir: Optional[Path] = None) -> Path:
        run_dir = (Path(runs_dir) if runs_dir is not None else config.runs_dir) / run_id
        run_dir.mkdir(parents=True, exist_ok=True)
        
        with open(run_dir / "spec.json", "w") as f:
            json.dump(spec.to_dict(), f, indent=2)
            
        snapshots.to_csv(run_dir / "snapshots.csv", index=False)
        if contests is not None:
            contests.to_csv(run_dir / "contests.csv", index=False)
        
        summary = {
            "lags": len(snapshots),
            "mean_market_accuracy": _mean(snapshots["market_accuracy"]),
            "mean_poll_accuracy": _mean(snapshots["poll_accuracy"]),
        }
        with open(run_dir / "summary.json", "w") as f:
            json.dump(summary, f, indent=2)
            
        print(f"Results written to {run_dir}")
        return run_dir

def _mean(values: pd.Series) -> Optional[float]:
    values = pd.to_numeric(values, errors="coerce").dropna()
    return round(float(values.mean()), 2) if len(values) else None
