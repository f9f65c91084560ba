#!/usr/bin/env python3
"""
Plot market vs. poll winner-call accuracy across lags.

Usage examples:
    # Plot the snapshots of an evaluation run
    uv run scripts/results/plot_accuracy.py --snapshots data/runs/run_1700000000_evaluation/snapshots.csv
    
    # Save plot to file
    uv run scripts/results/plot_accuracy.py --snapshots snapshots.csv --output accuracy.png
"""

import sys
import argparse
from pathlib import Path
from typing import Optional
import matplotlib.pyplot as plt
import pandas as pd

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


def plot_accuracy_by_lag(snapshots: pd.DataFrame, title: Optional[str] = None,
                         output_path: Optional[str] = None):
    """
    Line chart of market and poll accuracy against days before the contest.
    
    Args:
        snapshots: EvaluationSnapshot rows (lag_days, market_accuracy, poll_accuracy)
        title: Optional chart title
        output_path: Optional path to save plot
    """
    data = snapshots.sort_values("lag_days")
    if data[["market_accuracy", "poll_accuracy"]].dropna(how="all").empty:
        print("No accuracy values to plot.")
        return
    
    fig, ax = plt.subplots(figsize=(10, 6))
    ax.plot(data["lag_days"], data["market_accuracy"], marker="o", label="Market leader")
    ax.plot(data["lag_days"], data["poll_accuracy"], marker="s", label="Poll leader")
    
    # Days before the contest read left to right
    ax.invert_xaxis()
    ax.set_xlabel("Days before contest", fontsize=12)
    ax.set_ylabel("Winner called correctly (%)", fontsize=12)
    ax.set_ylim(0, 105)
    ax.set_title(title or "Winner-call accuracy by lag", fontsize=14, fontweight="bold")
    ax.legend()
    ax.grid(alpha=0.3, linestyle='--')
    plt.tight_layout()
    
    # Save or show
    if output_path:
        plt.savefig(output_path, dpi=300, bbox_inches='tight')
        print(f"Plot saved to {output_path}")
    else:
        plt.show()


def main():
    parser = argparse.ArgumentParser(
        description="Plot accuracy by lag",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument("--snapshots", type=str, required=True, help="snapshots.csv from an evaluation run")
    parser.add_argument("--title", type=str, help="Chart title")
    parser.add_argument("--output", type=str, help="Save plot to file (e.g., accuracy.png)")
    
    args = parser.parse_args()
    
    snapshots = pd.read_csv(args.snapshots)
    plot_accuracy_by_lag(snapshots, args.title, args.output)


if __name__ == "__main__":
    main()


# LESSONS LEARNED:
# 1. Inverting the x axis puts election day on the right, which is how people
#    read a campaign timeline.
# 2. Lags with no scored contest are NaN and leave gaps in the lines.
