from dataclasses import dataclass, asdict, field
from typing import Optional, List, Dict, Any, Tuple

@dataclass
class EvaluationSpec:
    run_name: str
    dataset_path: str
    min_lag: int = 1
    max_lag: int = 30
    cycles: List[int] = field(default_factory=list)
    states: List[str] = field(default_factory=list)
    description: str = ""

    def lags(self) -> List[int]:
        return list(range(self.min_lag, self.max_lag + 1))

    def eligible_contests(self, contests: List[Tuple[int, str]]) -> Optional[List[Tuple[int, str]]]:
        """Filter the table's contests by the requested cycles/states (None = no restriction)."""
        if not self.cycles and not self.states:
            return None
        return [
            (cycle_year, state) for cycle_year, state in contests
            if (not self.cycles or cycle_year in self.cycles)
            and (not self.states or state in self.states)
        ]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
