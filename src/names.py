import warnings
import pandas as pd
from typing import Dict, Iterable, List, Tuple
from src.common.errors import UnmappedNameWarning
from src.common.logging import logger
from src.common.schema import NameSource

# Canonical "First Last" spellings per cycle
CANDIDATE_ROSTER: Dict[int, List[str]] = {
    2016: [
        "Hillary Clinton",
        "Bernie Sanders",
        "Martin O'Malley",
    ],
    2020: [
        "Joe Biden",
        "Bernie Sanders",
        "Elizabeth Warren",
        "Pete Buttigieg",
        "Amy Klobuchar",
        "Michael Bloomberg",
        "Tulsi Gabbard",
        "Tom Steyer",
        "Andrew Yang",
        "Kamala Harris",
        "Cory Booker",
        "Julian Castro",
        "Michael Bennet",
        "Deval Patrick",
        "John Delaney",
        "Beto O'Rourke",
        "Marianne Williamson",
    ],
}

CANONICAL_NAMES = frozenset(name for roster in CANDIDATE_ROSTER.values() for name in roster)

# Poll averages use full names with middle initials and suffixes
_POLL_SPELLINGS = {
    "Joseph R. Biden Jr.": "Joe Biden",
    "Joseph R. Biden": "Joe Biden",
    "Bernard Sanders": "Bernie Sanders",
    "Michael R. Bloomberg": "Michael Bloomberg",
    "Kamala D. Harris": "Kamala Harris",
    "Cory A. Booker": "Cory Booker",
    "Julián Castro": "Julian Castro",
    "Michael F. Bennet": "Michael Bennet",
    "John K. Delaney": "John Delaney",
    "Hillary Rodham Clinton": "Hillary Clinton",
}

# Market contracts are named by surname
_MARKET_SPELLINGS = {
    "Biden": "Joe Biden",
    "Sanders": "Bernie Sanders",
    "Warren": "Elizabeth Warren",
    "Buttigieg": "Pete Buttigieg",
    "Klobuchar": "Amy Klobuchar",
    "Bloomberg": "Michael Bloomberg",
    "Gabbard": "Tulsi Gabbard",
    "Steyer": "Tom Steyer",
    "Yang": "Andrew Yang",
    "Harris": "Kamala Harris",
    "Booker": "Cory Booker",
    "Castro": "Julian Castro",
    "Bennet": "Michael Bennet",
    "Patrick": "Deval Patrick",
    "Delaney": "John Delaney",
    "O'Rourke": "Beto O'Rourke",
    "Williamson": "Marianne Williamson",
    "Clinton": "Hillary Clinton",
    "O'Malley": "Martin O'Malley",
}

# Results pages print legal names
_RESULTS_SPELLINGS = {
    "Joseph R. Biden": "Joe Biden",
    "Joseph R. Biden Jr.": "Joe Biden",
    "Joseph Biden": "Joe Biden",
    "Bernard Sanders": "Bernie Sanders",
    "Michael R. Bloomberg": "Michael Bloomberg",
    "Mike Bloomberg": "Michael Bloomberg",
    "Thomas Steyer": "Tom Steyer",
    "Peter Buttigieg": "Pete Buttigieg",
    "Julián Castro": "Julian Castro",
    "Robert O'Rourke": "Beto O'Rourke",
    "Hillary Rodham Clinton": "Hillary Clinton",
    "Martin J. O'Malley": "Martin O'Malley",
}

NAME_REGISTRY: Dict[Tuple[NameSource, str], str] = {}
for _source, _spellings in (
    (NameSource.POLL, _POLL_SPELLINGS),
    (NameSource.MARKET, _MARKET_SPELLINGS),
    (NameSource.RESULTS, _RESULTS_SPELLINGS),
):
    for _raw, _canonical in _spellings.items():
        NAME_REGISTRY[(_source, _raw)] = _canonical

# Non-candidate rows some results pages append
PLACEHOLDER_NAMES = frozenset({"Others", "Other", "Uncommitted", "Write-ins", "No Preference"})

def _warn_unmapped(raw_name: str, source: NameSource) -> None:
    message = f"Unmapped {source.value} name: {raw_name!r}"
    logger.warning(message)
    warnings.warn(message, UnmappedNameWarning, stacklevel=3)

def normalize(raw_name: str, source: NameSource) -> str:
    """
    Map a source-specific spelling to its canonical name.

    Canonical names map to themselves. Spellings not in the registry are
    returned unchanged after an UnmappedNameWarning; callers validate the
    result against the cycle roster.
    """
    name = raw_name.strip()
    canonical = NAME_REGISTRY.get((NameSource(source), name))
    if canonical is not None:
        return canonical
    if name in CANONICAL_NAMES or name in PLACEHOLDER_NAMES:
        return name
    _warn_unmapped(name, NameSource(source))
    return name

def normalize_series(names: pd.Series, source: NameSource) -> pd.Series:
    """Vectorised normalize(); warns once per distinct unknown spelling."""
    mapping = {raw: normalize(str(raw), source) for raw in names.dropna().unique()}
    return names.map(mapping)

def unknown_names(names: Iterable[str], cycle_year: int) -> List[str]:
    """Names outside the cycle roster, sorted."""
    roster = set(CANDIDATE_ROSTER.get(cycle_year, []))
    return sorted({n for n in names if n not in roster})

def validate_registry(cycle_year: int) -> Dict[str, List[str]]:
    """
    Check that every roster candidate of a cycle can be reached from each source.

    Returns a dict of source -> roster names with no spelling for that source.
    Poll and results sources may also use the canonical spelling directly, so
    only the market source (surnames only) can have gaps.
    """
    roster = CANDIDATE_ROSTER.get(cycle_year, [])
    gaps = {}
    for source in NameSource:
        reachable = {c for (s, _), c in NAME_REGISTRY.items() if s == source}
        if source != NameSource.MARKET:
            reachable |= CANONICAL_NAMES
        missing = [name for name in roster if name not in reachable]
        if missing:
            gaps[source.value] = missing
    return gaps
