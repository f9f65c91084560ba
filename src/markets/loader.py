import numpy as np
import pandas as pd
from functools import reduce
from pathlib import Path
from typing import Dict, Iterable, List, Tuple, Union
from src.common.csvio import parse_dates, read_source_csv, reject_bad_rows
from src.common.errors import ParseError
from src.common.logging import logger
from src.common.schema import NameSource
from src.names import normalize_series

MARKET_REQUIRED_COLUMNS = ["ContractName", "Date", "CloseSharePrice", "TradeVolume"]

MARKET_VALUE_COLUMNS = ["market_close", "market_volume"]

JOIN_KEY = ["date", "name", "state"]

OUTPUT_COLUMNS = [
    "state",
    "contest_date",
    "name",
    "date",
    "market_close",
    "market_volume",
    "poll_estimate",
    "poll_trend_adjusted",
]

def state_slug(state: str) -> str:
    return state.strip().lower().replace(" ", "_")

def market_file_for(market_dir: Union[str, Path], state: str) -> Path:
    return Path(market_dir) / f"{state_slug(state)}.csv"

def parse_currency(values: pd.Series) -> pd.Series:
    """'$0.37' -> 0.37, '1,204' -> 1204.0; blanks and garbage become NaN."""
    cleaned = values.fillna("").astype(str).str.replace(r"[$,\s]", "", regex=True)
    return pd.to_numeric(cleaned, errors="coerce")

def load_market_file(path: Union[str, Path], state: str, skip_bad_rows: bool = False) -> pd.DataFrame:
    """
    Load one state's daily contract quotes.

    Only the close price and volume are kept; open/high/low are discarded.

    Returns:
        DataFrame with state, name, date, market_close, market_volume
    """
    df = read_source_csv(path, MARKET_REQUIRED_COLUMNS, f"load market prices for {state}")

    dates = parse_dates(df["Date"].fillna(""))
    df = reject_bad_rows(df, dates.isna(), path, "malformed Date", skip_bad_rows)
    df["date"] = dates.loc[df.index]

    close = parse_currency(df["CloseSharePrice"])
    bad = (close.isna() & df["CloseSharePrice"].notna()) | (close < 0) | (close > 1)
    df = reject_bad_rows(df, bad, path, "invalid CloseSharePrice", skip_bad_rows)
    df["market_close"] = close.loc[df.index]

    volume = parse_currency(df["TradeVolume"])
    bad = (volume.isna() & df["TradeVolume"].notna()) | (volume < 0)
    df = reject_bad_rows(df, bad, path, "invalid TradeVolume", skip_bad_rows)
    df["market_volume"] = volume.loc[df.index].round().astype("Int64")

    df["name"] = normalize_series(df["ContractName"].str.strip(), NameSource.MARKET)
    df["state"] = state

    df = df.drop_duplicates(subset=["date", "name"], keep="last")
    return df[["state", "name", "date", "market_close", "market_volume"]].reset_index(drop=True)

def _with_market_columns(table: pd.DataFrame) -> pd.DataFrame:
    table = table.copy()
    for col in MARKET_VALUE_COLUMNS:
        if col not in table.columns:
            table[col] = np.nan
    return table

def merge_market(table: pd.DataFrame, market: pd.DataFrame) -> pd.DataFrame:
    """
    Full outer join one state's market quotes onto the accumulated table.

    Keyed on (date, name, state). Where both sides carry a market value the
    incoming one wins; the existing value survives only where the incoming one
    is null. Market-only rows inherit the state's contest date from its poll rows.
    """
    left = _with_market_columns(table)
    right = market[JOIN_KEY + MARKET_VALUE_COLUMNS]

    merged = left.merge(right, on=JOIN_KEY, how="outer", suffixes=("_prev", ""))
    for col in MARKET_VALUE_COLUMNS:
        incoming = merged[col].astype("float64")
        previous = merged[f"{col}_prev"].astype("float64")
        merged[col] = incoming.where(incoming.notna(), previous)
    merged = merged.drop(columns=[f"{col}_prev" for col in MARKET_VALUE_COLUMNS])
    merged["market_volume"] = merged["market_volume"].round().astype("Int64")

    contest_by_state = left.dropna(subset=["contest_date"]).groupby("state")["contest_date"].first()
    missing = merged["contest_date"].isna()
    merged.loc[missing, "contest_date"] = merged.loc[missing, "state"].map(contest_by_state)

    return merged[OUTPUT_COLUMNS].sort_values(["state", "name", "date"]).reset_index(drop=True)

def log_join_coverage(table: pd.DataFrame, market: pd.DataFrame, state: str) -> Dict[str, int]:
    """Count keys present on only one side of a state's join; gaps become nulls, not errors."""
    poll_keys = set(map(tuple, table.loc[table["state"] == state, JOIN_KEY].itertuples(index=False)))
    market_keys = set(map(tuple, market[JOIN_KEY].itertuples(index=False)))
    coverage = {
        "matched": len(poll_keys & market_keys),
        "poll_only": len(poll_keys - market_keys),
        "market_only": len(market_keys - poll_keys),
    }
    if coverage["poll_only"] or coverage["market_only"]:
        logger.info(
            f"  {state}: {coverage['matched']} matched keys, "
            f"{coverage['poll_only']} poll-only, {coverage['market_only']} market-only"
        )
    return coverage

def fold_markets(polls: pd.DataFrame, market_files: Union[Dict[str, Path], Iterable[Tuple[str, Path]]],
                 skip_bad_rows: bool = False) -> pd.DataFrame:
    """
    Fold every state's market file into the poll table, in the given order.

    Args:
        polls: Output of load_poll_averages
        market_files: (state, path) pairs, or a dict in the intended order
        skip_bad_rows: Passed through to load_market_file

    Returns:
        Accumulated table restricted to OUTPUT_COLUMNS

    A ParseError in one state's file skips that state; a missing file is fatal.
    """
    items: List[Tuple[str, Path]] = list(market_files.items()) if isinstance(market_files, dict) else list(market_files)

    def _fold_state(table: pd.DataFrame, item: Tuple[str, Path]) -> pd.DataFrame:
        state, path = item
        try:
            market = load_market_file(path, state, skip_bad_rows=skip_bad_rows)
        except ParseError as e:
            logger.error(f"Skipping market data for {state}: {e}")
            return table
        log_join_coverage(table, market, state)
        return merge_market(table, market)

    initial = _with_market_columns(polls)[OUTPUT_COLUMNS]
    logger.info(f"Folding market data for {len(items)} states...")
    return reduce(_fold_state, items, initial)

# --- LESSONS LEARNED ---
# 1. The right-biased merge makes the fold order irrelevant for disjoint states;
#    re-folding a state replaces its values instead of duplicating rows.
# 2. Contract names are surnames, so normalization has to happen before the join.
