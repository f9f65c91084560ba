import pandas as pd
from datetime import date
from typing import Dict, Mapping, Optional, Union
from src.common.logging import logger

# Withdrawal dates by cycle; candidates not listed stayed in through the last contest
DEFAULT_DROPOUTS: Dict[int, Dict[str, date]] = {
    2016: {
        "Martin O'Malley": date(2016, 2, 1),
    },
    2020: {
        "Kamala Harris": date(2019, 12, 3),
        "Julian Castro": date(2020, 1, 2),
        "Marianne Williamson": date(2020, 1, 10),
        "Cory Booker": date(2020, 1, 13),
        "John Delaney": date(2020, 1, 31),
        "Andrew Yang": date(2020, 2, 11),
        "Michael Bennet": date(2020, 2, 11),
        "Deval Patrick": date(2020, 2, 12),
        "Tom Steyer": date(2020, 2, 29),
        "Pete Buttigieg": date(2020, 3, 1),
        "Amy Klobuchar": date(2020, 3, 2),
        "Michael Bloomberg": date(2020, 3, 4),
        "Elizabeth Warren": date(2020, 3, 5),
        "Tulsi Gabbard": date(2020, 3, 19),
        "Bernie Sanders": date(2020, 4, 8),
    },
}

def apply_dropouts(table: pd.DataFrame, dropouts: Optional[Mapping[str, Union[date, str]]] = None,
                   name_column: str = "name") -> pd.DataFrame:
    """
    Attach date_dropped and drop contests held after a candidate withdrew.

    A row is kept when the candidate never withdrew or withdrew on or after
    the contest date.
    """
    dropouts = dropouts or {}
    table = table.copy()
    dropped = {name: pd.Timestamp(d) for name, d in dropouts.items()}
    table["date_dropped"] = pd.to_datetime(table[name_column].map(dropped))

    keep = table["date_dropped"].isna() | (table["date_dropped"] >= table["contest_date"])
    removed = int((~keep).sum())
    if removed:
        gone = sorted(table.loc[~keep, name_column].unique())
        logger.info(f"Dropout filter removed {removed} rows for {len(gone)} withdrawn candidates: {gone}")
    return table.loc[keep].reset_index(drop=True)
