from datetime import date
from typing import Optional, List, Dict
from pydantic import BaseModel, Field, field_validator, model_validator

from enum import Enum

class NameSource(str, Enum):
    POLL = "poll"
    MARKET = "market"
    RESULTS = "results"

# Column order of the persisted master table
MASTER_COLUMNS = [
    "cycle_year",
    "state",
    "contest_date",
    "observation_date",
    "candidate_name",
    "poll_estimate",
    "poll_trend_adjusted",
    "market_close",
    "market_volume",
    "date_dropped",
    "vote_percent",
    "winner",
]

class CandidateDayRecord(BaseModel):
    cycle_year: int
    state: str
    contest_date: date
    observation_date: date
    candidate_name: str
    poll_estimate: Optional[float] = Field(default=None, ge=0, le=1)
    poll_trend_adjusted: Optional[float] = None
    market_close: Optional[float] = Field(default=None, ge=0, le=1)
    market_volume: Optional[int] = Field(default=None, ge=0)
    date_dropped: Optional[date] = None
    vote_percent: Optional[float] = Field(default=None, ge=0, le=1)
    winner: Optional[bool] = None

    @field_validator("cycle_year")
    @classmethod
    def _known_cycle(cls, v: int) -> int:
        if v not in (2016, 2020):
            raise ValueError(f"Unsupported cycle year: {v}")
        return v

    @model_validator(mode="after")
    def _observed_before_contest(self):
        if self.observation_date > self.contest_date:
            raise ValueError(
                f"observation_date {self.observation_date} is after contest_date {self.contest_date}"
            )
        return self

class EvaluationSnapshot(BaseModel):
    lag_days: int
    market_accuracy: Optional[float] = None  # percent, 2 dp
    poll_accuracy: Optional[float] = None
    n_market_contests: int = 0
    n_poll_contests: int = 0
    market_vote_share_mae: Optional[float] = None  # percentage points
    poll_vote_share_mae: Optional[float] = None

DEFAULT_COLUMN_ORDER = {
    3: ["name", "votes", "vote_percent"],
    4: ["name", "votes", "vote_percent", "delegates"],
}

class ContestDescriptor(BaseModel):
    """Where one contest's results document lives and how its table is laid out."""
    state: str
    source: str  # URL or local path
    num_candidates: int = Field(gt=0)
    num_col: int = 3
    node_selector: str = "td"
    column_order: Optional[List[str]] = None

    @model_validator(mode="after")
    def _fill_column_order(self):
        if self.column_order is None:
            if self.num_col not in DEFAULT_COLUMN_ORDER:
                raise ValueError(f"No default column order for {self.num_col} columns")
            self.column_order = list(DEFAULT_COLUMN_ORDER[self.num_col])
        if len(self.column_order) != self.num_col:
            raise ValueError(
                f"column_order has {len(self.column_order)} entries but num_col is {self.num_col}"
            )
        for required in ("name", "vote_percent"):
            if required not in self.column_order:
                raise ValueError(f"column_order must include '{required}'")
        return self

class CycleConfig(BaseModel):
    year: int
    poll_file: str
    race: Optional[str] = None
    market_dir: str
    states: List[str]
    dropouts: Optional[Dict[str, date]] = None  # None uses DEFAULT_DROPOUTS; {} means no withdrawals
    contests: List[ContestDescriptor] = Field(default_factory=list)
    results_csv: Optional[str] = None  # used instead of scraped contests (2016)

class LagRange(BaseModel):
    min: int = Field(default=1, ge=0)
    max: int = 30

    def values(self) -> List[int]:
        return list(range(self.min, self.max + 1))

class PipelineConfig(BaseModel):
    output_dir: str = "data/datasets"
    dataset_name: str = "primary"
    skip_bad_rows: bool = False
    lags: LagRange = Field(default_factory=LagRange)
    cycles: List[CycleConfig]

# --- LESSONS LEARNED ---
# 1. Pydantic V2: All fields MUST have type annotations or they are ignored/error out.
# 2. Enums: Use (str, Enum) so name sources read naturally in YAML and logs.
# 3. Canonical Schema: Keeping the master table flat makes pandas/CSV much happier.
