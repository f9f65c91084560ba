import pandas as pd
from typing import Any, Dict, Iterable, List, Optional, Tuple
from tqdm import tqdm
from src.common.config import config
from src.common.schema import EvaluationSnapshot

CONTEST_KEY = ["cycle_year", "state"]

Contest = Tuple[int, str]


def snapshot(table: pd.DataFrame, lag_days: int) -> pd.DataFrame:
    """Rows observed exactly lag_days before their contest (a copy)."""
    target = table["contest_date"] - pd.Timedelta(days=lag_days)
    return table[table["observation_date"] == target].copy()


def _restrict(snap: pd.DataFrame, eligible_contests: Optional[Iterable[Contest]]) -> pd.DataFrame:
    if eligible_contests is None:
        return snap
    eligible = {(int(cycle_year), state) for cycle_year, state in eligible_contests}
    keys = zip(snap["cycle_year"].astype(int), snap["state"])
    mask = pd.Series([key in eligible for key in keys], index=snap.index, dtype=bool)
    return snap[mask]


def rank_within_contest(snap: pd.DataFrame, column: str) -> pd.Series:
    """Descending rank of column inside each contest; ties go to the alphabetically first name."""
    ordered = snap.sort_values(CONTEST_KEY + ["candidate_name"])
    return ordered.groupby(CONTEST_KEY)[column].rank(method="first", ascending=False)


def contest_summary(table: pd.DataFrame, lag_days: int,
                    eligible_contests: Optional[Iterable[Contest]] = None) -> pd.DataFrame:
    """
    Per-contest picks and correctness at one lag.

    Returns one row per (cycle_year, state) with the market and poll rank-1
    picks, the actual winner, whether each pick was right (null when the
    winner or the relevant estimate is missing) and the number of viable
    candidates (market_close above the liquidity threshold).
    """
    snap = _restrict(snapshot(table, lag_days), eligible_contests)
    snap["market_rank"] = rank_within_contest(snap, "market_close")
    snap["poll_rank"] = rank_within_contest(snap, "poll_estimate")

    rows = []
    for (cycle_year, state), group in snap.groupby(CONTEST_KEY):
        winners = group[group["winner"].fillna(False).astype(bool)]
        actual = winners.iloc[0] if len(winners) == 1 else None

        row = {
            "cycle_year": int(cycle_year),
            "state": state,
            "lag_days": lag_days,
            "actual_winner": actual["candidate_name"] if actual is not None else None,
            "viable_candidates": int((group["market_close"] > config.viable_threshold).sum()),
        }
        for source, estimate in (("market", "market_close"), ("poll", "poll_estimate")):
            picks = group.loc[group[f"{source}_rank"] == 1, "candidate_name"]
            row[f"{source}_pick"] = picks.iloc[0] if len(picks) else None
            if actual is not None and pd.notna(actual[estimate]):
                row[f"{source}_correct"] = bool(actual[f"{source}_rank"] == 1)
            else:
                row[f"{source}_correct"] = None
        rows.append(row)

    columns = ["cycle_year", "state", "lag_days", "actual_winner", "market_pick", "market_correct",
               "poll_pick", "poll_correct", "viable_candidates"]
    return pd.DataFrame(rows, columns=columns)


def _accuracy(flags: pd.Series) -> Tuple[Optional[float], int]:
    decided = flags.dropna()
    if decided.empty:
        return None, 0
    return round(float(decided.astype(bool).sum()) / len(decided) * 100, 2), len(decided)


def _vote_share_mae(table: pd.DataFrame, snap: pd.DataFrame, estimate: str) -> Optional[float]:
    """Mean absolute gap (percentage points) between an estimate and the final vote share."""
    final_share = table.groupby(CONTEST_KEY + ["candidate_name"])["vote_percent"].max()
    if final_share.dropna().empty or snap.empty:
        return None
    joined = snap.join(final_share.rename("final_share"), on=CONTEST_KEY + ["candidate_name"])
    joined = joined.dropna(subset=[estimate, "final_share"])
    if joined.empty:
        return None
    return round(float((joined[estimate] - joined["final_share"]).abs().mean() * 100), 2)


def evaluate(table: pd.DataFrame, lag_days: int,
             eligible_contests: Optional[Iterable[Contest]] = None) -> Dict[str, Any]:
    """
    Score market and poll leaders as winner predictions at one lag.

    Args:
        table: Master table (CandidateDayRecord columns)
        lag_days: Days before each contest to take the snapshot
        eligible_contests: (cycle_year, state) pairs to score; all when None

    Returns:
        EvaluationSnapshot as a dict; accuracies are percentages rounded to
        2 dp, or None when no contest qualifies
    """
    if eligible_contests is not None:
        eligible_contests = list(eligible_contests)
    summary = contest_summary(table, lag_days, eligible_contests)
    market_accuracy, n_market = _accuracy(summary["market_correct"])
    poll_accuracy, n_poll = _accuracy(summary["poll_correct"])

    snap = _restrict(snapshot(table, lag_days), eligible_contests)
    result = EvaluationSnapshot(
        lag_days=lag_days,
        market_accuracy=market_accuracy,
        poll_accuracy=poll_accuracy,
        n_market_contests=n_market,
        n_poll_contests=n_poll,
        market_vote_share_mae=_vote_share_mae(table, snap, "market_close"),
        poll_vote_share_mae=_vote_share_mae(table, snap, "poll_estimate"),
    )
    return result.model_dump()


def evaluate_lags(table: pd.DataFrame, lags: Iterable[int],
                  eligible_contests: Optional[Iterable[Contest]] = None) -> pd.DataFrame:
    """One EvaluationSnapshot per lag, as a DataFrame ordered by lag."""
    if eligible_contests is not None:
        eligible_contests = list(eligible_contests)
    snapshots: List[Dict[str, Any]] = []
    for lag in tqdm(sorted(lags), desc="Evaluating lags", leave=False):
        snapshots.append(evaluate(table, lag, eligible_contests))
    return pd.DataFrame(snapshots, columns=list(EvaluationSnapshot.model_fields))
