import json
import pandas as pd
from pathlib import Path
from datetime import datetime
from typing import Optional
from src.common.config import config
from src.common.logging import logger
from src.common.schema import MASTER_COLUMNS

DATE_COLUMNS = ["contest_date", "observation_date", "date_dropped"]

# Every date column shares one unit so reloaded tables compare equal
DATE_DTYPE = "datetime64[ns]"

def write_master_table(df: pd.DataFrame, dataset_name: str = "primary", version: Optional[str] = None,
                       output_dir: Optional[Path] = None) -> Path:
    """Write the master table to a versioned dataset directory (CSV + parquet + manifest)."""
    if version is None:
        version = datetime.now().strftime("%Y%m%d_%H%M")
    
    base_dir = Path(output_dir) if output_dir is not None else config.datasets_dir
    dataset_dir = base_dir / f"v{version}_{dataset_name}"
    dataset_dir.mkdir(parents=True, exist_ok=True)
    
    df = df[MASTER_COLUMNS]
    csv_path = dataset_dir / "data.csv"
    logger.info(f"Writing master table to {csv_path}...")
    df.to_csv(csv_path, index=False, date_format="%Y-%m-%d")
    
    # Parquet copy for fast reloads from notebooks
    df.to_parquet(dataset_dir / "data.parquet", index=False)
    
    manifest = {
        "version": version,
        "dataset_name": dataset_name,
        "created_at": datetime.now().isoformat(),
        "row_count": len(df),
        "cycles": sorted(int(c) for c in df["cycle_year"].dropna().unique()),
        "columns": MASTER_COLUMNS,
    }
    with open(dataset_dir / "manifest.json", "w") as f:
        json.dump(manifest, f, indent=2)
        
    return dataset_dir

def load_master_table(path: Path) -> pd.DataFrame:
    """Load a master table from a dataset directory, a CSV or a parquet file."""
    path = Path(path)
    if path.is_dir():
        parquet_path = path / "data.parquet"
        if parquet_path.exists():
            return _coerce_types(pd.read_parquet(parquet_path))
        path = path / "data.csv"
    if path.suffix == ".parquet":
        return _coerce_types(pd.read_parquet(path))
    return _coerce_types(pd.read_csv(path))

def latest_dataset(base_dir: Optional[Path] = None, dataset_name: str = "primary") -> Optional[Path]:
    base_dir = Path(base_dir) if base_dir is not None else config.datasets_dir
    datasets = sorted(base_dir.glob(f"v*_{dataset_name}"))
    return datasets[-1] if datasets else None

def coerce_dates(df: pd.DataFrame) -> pd.DataFrame:
    """Parse every present DATE_COLUMNS column and pin it to DATE_DTYPE (in place)."""
    for col in DATE_COLUMNS:
        if col in df.columns:
            df[col] = pd.to_datetime(df[col]).astype(DATE_DTYPE)
    return df

def _coerce_types(df: pd.DataFrame) -> pd.DataFrame:
    df = coerce_dates(df.copy())
    if "market_volume" in df.columns:
        df["market_volume"] = df["market_volume"].astype("Int64")
    if "winner" in df.columns:
        df["winner"] = df["winner"].astype("boolean")
    return df

# --- LESSONS LEARNED ---
# 1. CSV is the artifact downstream notebooks expect; parquet keeps the dtypes
#    (nullable winner / volume) without re-coercion.
