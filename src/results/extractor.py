import pandas as pd
from bs4 import BeautifulSoup
from functools import reduce
from pathlib import Path
from typing import Callable, Dict, Iterable, Union
from src.common.config import config
from src.common.csvio import read_source_csv
from src.common.errors import DocumentFetchError, ParseError, ShapeMismatchError
from src.common.http import get_client
from src.common.logging import logger
from src.common.schema import ContestDescriptor, NameSource
from src.names import PLACEHOLDER_NAMES, normalize_series

RESULT_COLUMNS = ["state", "name", "votes", "vote_percent", "final_rank"]

ATTACHED_COLUMNS = ["state", "name", "date", "vote_percent", "final_rank"]

def fetch_document(source: str) -> str:
    """Return the markup of a results document given a URL or a local path."""
    if source.startswith(("http://", "https://")):
        return get_client().get_text(source)

    path = config.resolve(source)
    if not path.exists():
        raise DocumentFetchError(source, f"no such file {path}")
    return path.read_text(encoding="utf-8")

def assign_final_rank(results: pd.DataFrame, state: str) -> pd.DataFrame:
    """Rank by parsed vote share (ties keep listing order) and flag pages listed out of order."""
    results = results.copy()
    listed = pd.Series(range(1, len(results) + 1), index=results.index)
    results["final_rank"] = results["vote_percent"].rank(method="first", ascending=False).astype(int)
    if (results["final_rank"] != listed).any():
        logger.warning(f"Results for {state} are not listed in vote-share order; ranking by vote share")
    return results

def extract_results(html: str, descriptor: ContestDescriptor) -> pd.DataFrame:
    """
    Parse one contest's results table.

    The selected text nodes are read row-major into num_candidates rows of
    num_col cells laid out as descriptor.column_order.

    Returns:
        DataFrame with RESULT_COLUMNS, placeholder rows removed

    Raises:
        ShapeMismatchError: node count differs from num_candidates * num_col
        ParseError: a vote share cell is not a percentage
    """
    soup = BeautifulSoup(html, "html.parser")
    nodes = [node.get_text(" ", strip=True) for node in soup.select(descriptor.node_selector)]

    expected = descriptor.num_candidates * descriptor.num_col
    if len(nodes) != expected:
        raise ShapeMismatchError(descriptor.state, expected, len(nodes))

    rows = [nodes[i:i + descriptor.num_col] for i in range(0, expected, descriptor.num_col)]
    df = pd.DataFrame(rows, columns=descriptor.column_order)

    pct = pd.to_numeric(df["vote_percent"].str.replace("%", "", regex=False).str.strip(), errors="coerce")
    if pct.isna().any():
        bad_row = int(pct[pct.isna()].index[0]) + 1
        raise ParseError(descriptor.source, bad_row, f"malformed vote share {df.loc[bad_row - 1, 'vote_percent']!r}")
    df["vote_percent"] = pct / 100

    if "votes" in df.columns:
        df["votes"] = pd.to_numeric(df["votes"].str.replace(",", "", regex=False), errors="coerce").astype("Int64")
    else:
        df["votes"] = pd.array([pd.NA] * len(df), dtype="Int64")

    df["name"] = normalize_series(df["name"], NameSource.RESULTS)
    df = df[~df["name"].isin(PLACEHOLDER_NAMES)].reset_index(drop=True)
    df = assign_final_rank(df, descriptor.state)
    df["state"] = descriptor.state
    return df[RESULT_COLUMNS]

def attach_contest_results(table: pd.DataFrame, results: pd.DataFrame) -> pd.DataFrame:
    """
    Join one contest's results onto the table's eve-of-contest rows.

    Only rows observed the day before the contest are kept, and only
    candidates with a positive vote share.
    """
    states = results["state"].unique()
    eve = table[
        table["state"].isin(states)
        & (table["date"] == table["contest_date"] - pd.Timedelta(days=1))
    ]
    joined = eve.merge(results[["state", "name", "vote_percent", "final_rank"]], on=["name", "state"], how="left")
    joined = joined[joined["vote_percent"] > 0]
    return joined[ATTACHED_COLUMNS]

def fold_results(table: pd.DataFrame, descriptors: Iterable[ContestDescriptor],
                 fetch: Callable[[str], str] = fetch_document) -> pd.DataFrame:
    """
    Extract and attach every contest in order, accumulating eve-of-contest results.

    A contest whose document cannot be fetched or parsed is logged and
    skipped; the remaining contests are still processed. A later contest for
    a state already attached replaces the earlier results for that state.
    """
    def _fold_contest(acc: Dict[str, pd.DataFrame], descriptor: ContestDescriptor) -> Dict[str, pd.DataFrame]:
        try:
            results = extract_results(fetch(descriptor.source), descriptor)
        except (ShapeMismatchError, ParseError, DocumentFetchError) as e:
            logger.error(f"Skipping results for {descriptor.state}: {e}")
            return acc

        attached = attach_contest_results(table, results)
        if attached.empty:
            logger.warning(f"No eve-of-contest rows matched results for {descriptor.state}")
            return acc
        if descriptor.state in acc:
            logger.warning(f"Results for {descriptor.state} supplied again; replacing the earlier contest")
        logger.info(f"  Attached results for {descriptor.state}: {len(attached)} candidates")
        return {**acc, descriptor.state: attached}

    frames = reduce(_fold_contest, descriptors, {})
    if not frames:
        return pd.DataFrame(columns=ATTACHED_COLUMNS)
    return pd.concat(list(frames.values()), ignore_index=True)

def load_results_csv(path: Union[str, Path]) -> pd.DataFrame:
    """
    Load final results by state from a flat CSV (state, name, vote_percent).

    Vote shares may be fractions or 0-100 percentages; the latter are
    rescaled when any value exceeds 1.
    """
    df = read_source_csv(path, ["state", "name", "vote_percent"], "load results by state")

    pct = pd.to_numeric(df["vote_percent"], errors="coerce")
    if pct.isna().any():
        bad = df.loc[pct.isna(), "_row"].iloc[0]
        raise ParseError(path, int(bad), "malformed vote_percent")
    if (pct > 1).any():
        pct = pct / 100
    df["vote_percent"] = pct

    df["state"] = df["state"].str.strip()
    df["name"] = normalize_series(df["name"], NameSource.RESULTS)
    df = df[~df["name"].isin(PLACEHOLDER_NAMES)].copy()
    df["votes"] = pd.array([pd.NA] * len(df), dtype="Int64")
    df["final_rank"] = (
        df.groupby("state")["vote_percent"].rank(method="first", ascending=False).astype(int)
    )
    logger.info(f"Loaded results for {df['state'].nunique()} states from {path}")
    return df[RESULT_COLUMNS].reset_index(drop=True)

# --- LESSONS LEARNED ---
# 1. Pages list candidates in finish order, but rank is recomputed from the
#    parsed vote share so a mis-sorted page cannot crown the wrong winner.
# 2. Delegate columns are read only to keep the cell grid aligned.
