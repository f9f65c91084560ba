"""
Accuracy Evaluator tests.
"""
import pytest
import sys
import pandas as pd
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from runner.evaluator import contest_summary, evaluate, evaluate_lags, rank_within_contest, snapshot
from test_utils import make_master_rows


@pytest.fixture
def two_contests():
    """Market right in Nevada, wrong in Texas; polls right in both."""
    return make_master_rows([
        (2020, "Nevada", "2020-02-22", "2020-02-21", "Bernie Sanders", 0.30, 0.85, True),
        (2020, "Nevada", "2020-02-22", "2020-02-21", "Joe Biden", 0.20, 0.08, False),
        (2020, "Texas", "2020-03-03", "2020-03-02", "Joe Biden", 0.30, 0.37, True),
        (2020, "Texas", "2020-03-03", "2020-03-02", "Bernie Sanders", 0.28, 0.55, False),
        (2020, "Texas", "2020-03-03", "2020-03-01", "Joe Biden", 0.29, 0.33, True),
    ])


def test_market_right_once_in_two(two_contests):
    result = evaluate(two_contests, lag_days=1)
    assert result["lag_days"] == 1
    assert result["market_accuracy"] == 50.00
    assert result["poll_accuracy"] == 100.00
    assert result["n_market_contests"] == 2


def test_snapshot_takes_exact_lag(two_contests):
    snap = snapshot(two_contests, 2)
    assert len(snap) == 1
    assert snap.iloc[0]["observation_date"] == pd.Timestamp("2020-03-01")


def test_no_qualifying_contests_gives_null(two_contests):
    result = evaluate(two_contests, lag_days=10)
    assert result["market_accuracy"] is None
    assert result["poll_accuracy"] is None
    assert result["n_market_contests"] == 0


def test_contests_without_winner_are_excluded():
    table = make_master_rows([
        (2020, "Texas", "2020-03-03", "2020-03-02", "Joe Biden", 0.30, 0.37, True),
        (2020, "Texas", "2020-03-03", "2020-03-02", "Bernie Sanders", 0.28, 0.55, False),
        (2020, "Ohio", "2020-03-17", "2020-03-16", "Joe Biden", 0.50, 0.90, None),
        (2020, "Ohio", "2020-03-17", "2020-03-16", "Bernie Sanders", 0.30, 0.10, None),
    ])
    result = evaluate(table, lag_days=1)
    assert result["market_accuracy"] == 0.0
    assert result["n_market_contests"] == 1


def test_ties_go_to_first_name():
    table = make_master_rows([
        (2020, "Texas", "2020-03-03", "2020-03-02", "Joe Biden", 0.30, 0.40, True),
        (2020, "Texas", "2020-03-03", "2020-03-02", "Bernie Sanders", 0.30, 0.40, False),
    ])
    ranks = rank_within_contest(snapshot(table, 1), "market_close")
    by_name = dict(zip(table.loc[ranks.index, "candidate_name"], ranks))
    assert by_name == {"Bernie Sanders": 1.0, "Joe Biden": 2.0}
    assert evaluate(table, 1)["market_accuracy"] == 0.0


def test_eligible_contests_restrict_scoring(two_contests):
    result = evaluate(two_contests, 1, eligible_contests=[(2020, "Nevada")])
    assert result["market_accuracy"] == 100.0
    assert result["n_market_contests"] == 1


def test_contest_summary_columns(two_contests):
    summary = contest_summary(two_contests, 1).set_index("state")
    assert summary.loc["Texas", "market_pick"] == "Bernie Sanders"
    assert summary.loc["Texas", "poll_pick"] == "Joe Biden"
    assert summary.loc["Texas", "actual_winner"] == "Joe Biden"
    assert not summary.loc["Texas", "market_correct"]
    assert summary.loc["Nevada", "viable_candidates"] == 2


def test_fixture_cycles_by_lag(master_table):
    result = evaluate(master_table, 1)
    # New Hampshire 2016 has no recorded winner
    assert result["n_market_contests"] == 3
    assert result["market_accuracy"] == 66.67
    assert result["poll_accuracy"] == 100.0
    assert result["market_vote_share_mae"] is not None
    
    summary = contest_summary(master_table, 1).set_index("state")
    assert summary.loc["Iowa", "viable_candidates"] == 2
    assert summary.loc["Nevada", "viable_candidates"] == 4


def test_evaluate_lags_sequence(master_table):
    eligible = [(2020, "Nevada"), (2020, "Texas")]
    snapshots = evaluate_lags(master_table, [4, 1, 2, 3], eligible)
    
    assert snapshots["lag_days"].tolist() == [1, 2, 3, 4]
    assert snapshots["market_accuracy"].iloc[:3].tolist() == [50.0, 50.0, 50.0]
    assert snapshots["poll_accuracy"].iloc[:3].tolist() == [100.0, 100.0, 100.0]
    assert pd.isna(snapshots["market_accuracy"].iloc[3])
