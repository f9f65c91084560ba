"""
Accuracy plot smoke tests.
"""
import sys
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import pandas as pd

sys.path.insert(0, str(Path(__file__).parent.parent))

from scripts.results.plot_accuracy import plot_accuracy_by_lag


def test_plot_saved(tmp_path):
    snapshots = pd.DataFrame({
        "lag_days": [3, 1, 2, 4],
        "market_accuracy": [50.0, 66.67, 50.0, None],
        "poll_accuracy": [100.0, 100.0, 100.0, None],
    })
    output = tmp_path / "accuracy.png"
    plot_accuracy_by_lag(snapshots, title="Fixture cycles", output_path=str(output))
    assert output.exists()


def test_nothing_to_plot(tmp_path, capsys):
    snapshots = pd.DataFrame({"lag_days": [1], "market_accuracy": [None], "poll_accuracy": [None]})
    output = tmp_path / "accuracy.png"
    plot_accuracy_by_lag(snapshots, output_path=str(output))
    assert not output.exists()
    assert "No accuracy values" in capsys.readouterr().out
