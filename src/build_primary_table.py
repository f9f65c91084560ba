import sys
import numpy as np
import pandas as pd
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from pydantic import ValidationError

# Add project root to sys.path
sys.path.append(str(Path(__file__).parent.parent))

from src.common.config import config, load_pipeline_config
from src.common.logging import logger
from src.common.schema import MASTER_COLUMNS, CandidateDayRecord, CycleConfig, PipelineConfig
from src.common.tables import coerce_dates, write_master_table
from src.dropout import DEFAULT_DROPOUTS, apply_dropouts
from src.markets.loader import JOIN_KEY, fold_markets, market_file_for
from src.names import unknown_names, validate_registry
from src.polls.loader import load_poll_averages
from src.results.extractor import attach_contest_results, fetch_document, fold_results, load_results_csv

MASTER_KEY = ["cycle_year", "state", "observation_date", "candidate_name"]

def integrate(table: pd.DataFrame) -> pd.DataFrame:
    """Keep rows quoted by both sources, observed on or before the contest, one per key."""
    before = len(table)
    table = table.dropna(subset=["market_close", "poll_trend_adjusted", "contest_date"])
    table = table[table["date"] <= table["contest_date"]]
    table = table.drop_duplicates(subset=JOIN_KEY, keep="last")
    logger.info(f"Integration kept {len(table)} of {before} rows with both poll and market data")
    return table.reset_index(drop=True)

def attach_results(table: pd.DataFrame, results: pd.DataFrame, default_winner: Optional[bool] = None) -> pd.DataFrame:
    """
    Put vote_percent on the eve-of-contest rows and winner on every row of a resulted state.

    States without results keep winner null unless default_winner is given.
    """
    table = table.drop(columns=["vote_percent", "final_rank", "winner"], errors="ignore")
    if results.empty:
        table["vote_percent"] = float("nan")
        table["winner"] = pd.Series(pd.NA if default_winner is None else default_winner,
                                    index=table.index, dtype="boolean")
        return table

    # Later results for the same key override earlier ones
    results = results.drop_duplicates(subset=["state", "name", "date"], keep="last")
    merged = table.merge(results[["state", "name", "date", "vote_percent"]], on=["state", "name", "date"], how="left")
    ranks = results[["state", "name", "final_rank"]].drop_duplicates(subset=["state", "name"], keep="last")
    merged = merged.merge(ranks, on=["state", "name"], how="left")

    winner = pd.Series(pd.NA, index=merged.index, dtype="boolean")
    resulted = merged["state"].isin(set(results["state"]))
    winner.loc[resulted] = merged.loc[resulted, "final_rank"].eq(1).values
    if default_winner is not None:
        winner = winner.fillna(default_winner)
    merged["winner"] = winner

    for state in sorted(set(results["state"])):
        winners = merged.loc[(merged["state"] == state) & merged["winner"].fillna(False).astype(bool), "name"].unique()
        if len(winners) != 1:
            logger.warning(f"{state}: expected one winner after results join, found {list(winners)}")
    return merged.drop(columns=["final_rank"])

def to_master(table: pd.DataFrame, cycle_year: int) -> pd.DataFrame:
    table = table.rename(columns={"name": "candidate_name", "date": "observation_date"})
    table["cycle_year"] = cycle_year
    return reconcile_columns(table)

def reconcile_columns(frame: pd.DataFrame) -> pd.DataFrame:
    """Conform a cycle's frame to MASTER_COLUMNS, null-filling absent columns and dropping extras."""
    extra = [c for c in frame.columns if c not in MASTER_COLUMNS]
    missing = [c for c in MASTER_COLUMNS if c not in frame.columns]
    if extra or missing:
        logger.debug(f"Reconciling columns: dropping {extra}, null-filling {missing}")
    frame = frame.reindex(columns=MASTER_COLUMNS)
    frame["market_volume"] = pd.to_numeric(frame["market_volume"]).astype("float64").round().astype("Int64")
    frame["winner"] = frame["winner"].astype("boolean")
    frame = coerce_dates(frame)
    return frame

def build_cycle(cycle: CycleConfig, skip_bad_rows: bool = False,
                fetch: Callable[[str], str] = fetch_document) -> pd.DataFrame:
    """
    Build one cycle's slice of the master table.

    Poll Loader -> market fold over cycle.states -> integration -> Dropout
    Filter -> results (scraped contests, or the flat results CSV) -> winner.
    """
    logger.info(f"Building {cycle.year} cycle ({len(cycle.states)} states)...")
    polls = load_poll_averages(config.resolve(cycle.poll_file), race=cycle.race, skip_bad_rows=skip_bad_rows)

    for source, missing in validate_registry(cycle.year).items():
        logger.warning(f"{cycle.year}: no {source} spelling registered for {missing}")

    unknown = unknown_names(polls["name"].unique(), cycle.year)
    if unknown:
        logger.warning(f"{cycle.year}: poll candidates outside the roster: {unknown}")

    market_files = [(state, config.resolve(market_file_for(cycle.market_dir, state))) for state in cycle.states]
    table = fold_markets(polls, market_files, skip_bad_rows=skip_bad_rows)
    table = integrate(table)

    dropouts = cycle.dropouts if cycle.dropouts is not None else DEFAULT_DROPOUTS.get(cycle.year, {})
    table = apply_dropouts(table, dropouts)

    if cycle.results_csv:
        results = attach_contest_results(table, load_results_csv(config.resolve(cycle.results_csv)))
        table = attach_results(table, results, default_winner=False)
    else:
        results = fold_results(table, cycle.contests, fetch=fetch)
        table = attach_results(table, results)

    master = to_master(table, cycle.year)
    logger.info(f"{cycle.year} cycle: {len(master)} rows, {master['state'].nunique()} states")
    return master

def build_primary_table(pipeline: PipelineConfig, cycles: Optional[List[int]] = None,
                        fetch: Callable[[str], str] = fetch_document) -> pd.DataFrame:
    """Build every configured cycle in order and union them into the master table."""
    frames = []
    for cycle in pipeline.cycles:
        if cycles and cycle.year not in cycles:
            continue
        frames.append(build_cycle(cycle, skip_bad_rows=pipeline.skip_bad_rows, fetch=fetch))

    if not frames:
        logger.warning("No cycles selected; master table is empty.")
        return reconcile_columns(pd.DataFrame(columns=MASTER_COLUMNS))

    master = pd.concat([reconcile_columns(f) for f in frames], ignore_index=True)
    master = master.sort_values(MASTER_KEY).reset_index(drop=True)

    for problem in validate_master_table(master):
        logger.warning(f"Master table check: {problem}")
    return master

def to_record(row: Dict[str, Any]) -> Dict[str, Any]:
    """Convert one master-table row (pandas/numpy scalars) to CandidateDayRecord input."""
    record = {}
    for key, value in row.items():
        if pd.isna(value):
            value = None
        elif isinstance(value, pd.Timestamp):
            value = value.date()
        elif isinstance(value, np.generic):
            value = value.item()
        record[key] = value
    return record

def validate_records(df: pd.DataFrame) -> List[str]:
    """Validate every row as a CandidateDayRecord; one message per failing row."""
    errors = []
    for i, row in enumerate(df[MASTER_COLUMNS].to_dict("records")):
        try:
            CandidateDayRecord(**to_record(row))
        except ValidationError as e:
            fields = "; ".join(f"{'.'.join(map(str, err['loc'])) or 'row'}: {err['msg']}" for err in e.errors())
            errors.append(f"row {i} ({row['state']}, {row['candidate_name']}): {fields}")
    return errors

def validate_master_table(df: pd.DataFrame) -> List[str]:
    """Return a description of every violated master-table invariant (empty when clean)."""
    problems = []

    dupes = int(df.duplicated(subset=MASTER_KEY).sum())
    if dupes:
        problems.append(f"{dupes} duplicate (cycle_year, state, observation_date, candidate_name) keys")

    record_errors = validate_records(df)
    if record_errors:
        problems.append(f"{len(record_errors)} rows fail record validation, e.g. {record_errors[:3]}")

    withdrawn = int((df["date_dropped"].notna() & (df["date_dropped"] < df["contest_date"])).sum())
    if withdrawn:
        problems.append(f"{withdrawn} rows for contests after the candidate withdrew")

    for col in ["market_close", "poll_trend_adjusted"]:
        nulls = int(df[col].isna().sum())
        if nulls:
            problems.append(f"{nulls} rows missing {col}")

    for (cycle_year, state), group in df.groupby(["cycle_year", "state"]):
        if group["vote_percent"].isna().all():
            continue
        winners = group.loc[group["winner"].fillna(False).astype(bool), "candidate_name"].unique()
        if len(winners) != 1:
            problems.append(f"{cycle_year} {state}: {len(winners)} winners")
            continue
        top = group.loc[group["vote_percent"].idxmax(), "candidate_name"]
        if top != winners[0]:
            problems.append(f"{cycle_year} {state}: winner {winners[0]} is not the top vote share ({top})")

    return problems

def run_build(config_path: Optional[Path] = None, cycles: Optional[List[int]] = None,
              version: Optional[str] = None, output_dir: Optional[Path] = None) -> Path:
    """Load the pipeline config, build the master table and write it out."""
    pipeline = load_pipeline_config(config_path)
    logger.info(f"Starting primary table build (cycles={cycles or [c.year for c in pipeline.cycles]})...")
    master = build_primary_table(pipeline, cycles=cycles)
    target = Path(output_dir) if output_dir is not None else config.resolve(pipeline.output_dir)
    dataset_dir = write_master_table(master, dataset_name=pipeline.dataset_name, version=version, output_dir=target)
    logger.info("Primary table build complete.")
    return dataset_dir

# --- LESSONS LEARNED ---
# 1. Dropouts must be applied before results are attached, otherwise a
#    withdrawn candidate's stale eve-of-contest row can pick up a winner flag.
# 2. The 2016 results CSV has no per-contest pages, so missing results mean
#    "did not win" there, while 2020 leaves them null.
