import pandas as pd
from pathlib import Path
from typing import Optional, Union
from src.common.csvio import ROW_COLUMN, parse_dates, read_source_csv, reject_bad_rows
from src.common.logging import logger
from src.common.schema import NameSource
from src.names import normalize_series

POLL_REQUIRED_COLUMNS = [
    "candidate_name",
    "modeldate",
    "pct_estimate",
    "pct_trend_adjusted",
    "contestdate",
    "state",
]

POLL_RENAMES = {
    "candidate_name": "name",
    "modeldate": "date",
    "contestdate": "contest_date",
    "pct_estimate": "poll_estimate",
    "pct_trend_adjusted": "poll_trend_adjusted",
}

POLL_COLUMNS = ["state", "contest_date", "name", "date", "poll_estimate", "poll_trend_adjusted"]

POLL_KEY = ["date", "name", "state"]

def load_poll_averages(path: Union[str, Path], race: Optional[str] = None,
                       skip_bad_rows: bool = False) -> pd.DataFrame:
    """
    Load a cycle's poll-average file into the working schema.
    
    Args:
        path: Poll-average CSV (FiveThirtyEight layout)
        race: Race identifier to keep when the file covers several cycles
        skip_bad_rows: Log and drop malformed rows instead of raising ParseError
        
    Returns:
        DataFrame with POLL_COLUMNS; percentages rescaled to fractions
    """
    logger.info(f"Loading poll averages from {path} (race={race})...")
    required = POLL_REQUIRED_COLUMNS + (["race"] if race is not None else [])
    df = read_source_csv(path, required, "load poll averages")
    
    if race is not None:
        df = df[df["race"].str.strip() == race]
        logger.info(f"  Filtered to race {race}: {len(df)} rows")
    
    df = df[POLL_REQUIRED_COLUMNS + [ROW_COLUMN]].rename(columns=POLL_RENAMES)
    
    # Dates
    for col in ["date", "contest_date"]:
        parsed = parse_dates(df[col].fillna(""))
        df = reject_bad_rows(df, parsed.isna(), path, f"malformed {col}", skip_bad_rows)
        df[col] = parsed.loc[df.index]
    
    # Percentages arrive on a 0-100 scale
    for col in ["poll_estimate", "poll_trend_adjusted"]:
        values = pd.to_numeric(df[col], errors="coerce").astype("float64")
        bad = values.isna() & df[col].notna()
        df = reject_bad_rows(df, bad, path, f"non-numeric {col}", skip_bad_rows)
        df[col] = values.loc[df.index] / 100
    df["poll_trend_adjusted"] = df["poll_trend_adjusted"].round(4)
    
    df["state"] = df["state"].str.strip()
    df["name"] = normalize_series(df["name"], NameSource.POLL)
    
    before = len(df)
    df = df.drop_duplicates(subset=POLL_KEY, keep="last")
    if len(df) < before:
        logger.warning(f"Dropped {before - len(df)} duplicate poll rows in {path}")
    
    logger.info(f"Loaded {len(df)} poll rows for {df['state'].nunique()} states")
    return df[POLL_COLUMNS].reset_index(drop=True)

# --- LESSONS LEARNED ---
# 1. pct_estimate / 100 is exact for two-decimal inputs (55.00 -> 0.55), so no
#    rounding on the raw estimate; only the trend-adjusted value is rounded.
