import pandas as pd
from pathlib import Path
from typing import List, Union
from src.common.errors import MissingInputError, ParseError
from src.common.logging import logger

DATE_FORMAT = "%m/%d/%Y"
ROW_COLUMN = "_row"

def read_source_csv(path: Union[str, Path], required: List[str], operation: str) -> pd.DataFrame:
    """
    Read a raw source CSV as strings and check its required columns.

    Adds a `_row` column holding the CSV line number of each record (header = 1)
    so later parse failures can point at the offending line.
    """
    path = Path(path)
    if not path.exists():
        raise MissingInputError(path, operation)
    
    df = pd.read_csv(path, dtype=str, keep_default_na=False, na_values=[""])
    df.columns = [c.strip() for c in df.columns]
    
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ParseError(path, None, f"missing required columns {missing}")
    
    df[ROW_COLUMN] = df.index + 2
    return df

def parse_dates(values: pd.Series) -> pd.Series:
    """Parse MM/DD/YYYY strings; malformed values become NaT."""
    return pd.to_datetime(values.str.strip(), format=DATE_FORMAT, errors="coerce")

def reject_bad_rows(df: pd.DataFrame, bad: pd.Series, path: Union[str, Path], detail: str,
                    skip_bad_rows: bool) -> pd.DataFrame:
    """Raise ParseError on the first flagged row, or log and drop all of them."""
    if not bad.any():
        return df
    
    rows = df.loc[bad, ROW_COLUMN].tolist()
    if not skip_bad_rows:
        raise ParseError(path, int(rows[0]), detail)
    
    logger.warning(f"Skipping {len(rows)} row(s) of {path} with {detail}: lines {rows[:10]}")
    return df.loc[~bad].copy()
