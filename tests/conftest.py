"""
Pytest configuration and fixtures for Primary Signals testing.

Fixture files describe a small 2020 cycle (Nevada, Texas) and a small 2016
cycle (Iowa, New Hampshire), written into tmp_path.
"""
import pytest
import sys
from pathlib import Path
from datetime import date

# Add project root to sys.path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.common.schema import ContestDescriptor, CycleConfig, PipelineConfig
from test_utils import results_html, write_csv, write_market_csv, write_poll_csv

# (poll spelling, market contract, poll pct by day, market close by day)
NEVADA = {
    "contest": "02/22/2020",
    "days": ["02/19/2020", "02/20/2020", "02/21/2020"],
    "candidates": [
        ("Bernard Sanders", "Sanders", [29.0, 30.0, 30.5], [0.80, 0.82, 0.85]),
        ("Joseph R. Biden Jr.", "Biden", [18.0, 19.0, 20.0], [0.10, 0.09, 0.08]),
        ("Elizabeth Warren", "Warren", [13.0, 13.0, 12.0], [0.04, 0.03, 0.02]),
        ("Pete Buttigieg", "Buttigieg", [15.0, 15.0, 14.0], [0.06, 0.05, 0.05]),
    ],
}

TEXAS = {
    "contest": "03/03/2020",
    "days": ["02/29/2020", "03/01/2020", "03/02/2020"],
    "candidates": [
        ("Joseph R. Biden Jr.", "Biden", [29.0, 29.5, 30.0], [0.30, 0.33, 0.37]),
        ("Bernard Sanders", "Sanders", [28.0, 28.2, 28.0], [0.62, 0.58, 0.55]),
        ("Elizabeth Warren", "Warren", [14.0, 14.1, 14.2], [0.05, 0.05, 0.05]),
        ("Pete Buttigieg", "Buttigieg", [9.0, 9.0, 9.1], [0.03, 0.02, 0.01]),
    ],
}

TEXAS_RESULTS = [
    ["Joseph R. Biden", "725,562", "34.6%", "113"],
    ["Bernard Sanders", "626,339", "30.0%", "99"],
    ["Michael R. Bloomberg", "300,608", "14.4%", "10"],
    ["Elizabeth Warren", "239,237", "11.4%", "0"],
    ["Others", "200,000", "9.6%", "0"],
]

NEVADA_RESULTS = [
    ["Bernard Sanders", "41,075", "46.8%"],
    ["Joseph R. Biden", "17,598", "20.2%"],
    ["Pete Buttigieg", "15,469", "14.3%"],
    ["Elizabeth Warren", "8,376", "9.6%"],
]


def _poll_rows(contest, state):
    rows = []
    for poll_name, _, pcts, _ in contest["candidates"]:
        for day, pct in zip(contest["days"], pcts):
            rows.append([poll_name, day, f"{pct:.2f}", f"{pct - 0.5:.2f}", contest["contest"], state])
    return rows


def _market_rows(contest):
    rows = []
    for _, contract, _, closes in contest["candidates"]:
        for i, (day, close) in enumerate(zip(contest["days"], closes)):
            rows.append([contract, day, close, 100 + 10 * i])
    return rows


@pytest.fixture
def dropouts_2020():
    return {"Pete Buttigieg": date(2020, 3, 1)}


@pytest.fixture
def cycle_2020_files(tmp_path):
    """Poll file, market files and results pages for Nevada and Texas."""
    root = tmp_path / "2020"
    poll_file = write_poll_csv(root / "polls.csv", _poll_rows(NEVADA, "Nevada") + _poll_rows(TEXAS, "Texas"))

    nevada_market = _market_rows(NEVADA)
    # Quotes after the contest and for a candidate with no polling
    nevada_market.append(["Sanders", "02/23/2020", 0.99, 500])
    nevada_market.append(["Klobuchar", "02/21/2020", 0.01, 5])
    write_market_csv(root / "markets" / "nevada.csv", nevada_market)
    write_market_csv(root / "markets" / "texas.csv", _market_rows(TEXAS))

    results_dir = root / "results"
    results_dir.mkdir(parents=True)
    (results_dir / "texas.html").write_text(results_html(TEXAS_RESULTS))
    (results_dir / "nevada.html").write_text(results_html(NEVADA_RESULTS))

    return {
        "root": root,
        "poll_file": poll_file,
        "market_dir": root / "markets",
        "texas_results": results_dir / "texas.html",
        "nevada_results": results_dir / "nevada.html",
    }


@pytest.fixture
def cycle_2020(cycle_2020_files, dropouts_2020):
    files = cycle_2020_files
    return CycleConfig(
        year=2020,
        poll_file=str(files["poll_file"]),
        market_dir=str(files["market_dir"]),
        states=["Nevada", "Texas"],
        dropouts=dropouts_2020,
        contests=[
            ContestDescriptor(state="Nevada", source=str(files["nevada_results"]), num_candidates=4, num_col=3),
            ContestDescriptor(state="Texas", source=str(files["texas_results"]), num_candidates=5, num_col=4),
        ],
    )


@pytest.fixture
def cycle_2016(tmp_path):
    """Iowa and New Hampshire, results from a flat CSV that omits New Hampshire."""
    root = tmp_path / "2016"
    iowa_days = ["01/29/2016", "01/30/2016", "01/31/2016"]
    nh_days = ["02/06/2016", "02/07/2016", "02/08/2016"]
    polls = []
    for day in iowa_days:
        polls.append(["Hillary Rodham Clinton", day, "47.00", "46.50", "02/01/2016", "Iowa", "2016D"])
        polls.append(["Bernard Sanders", day, "45.00", "44.50", "02/01/2016", "Iowa", "2016D"])
        polls.append(["Martin O'Malley", day, "4.00", "4.10", "02/01/2016", "Iowa", "2016D"])
        polls.append(["Donald Trump", day, "30.00", "29.00", "02/01/2016", "Iowa", "2016R"])
    for day in nh_days:
        polls.append(["Hillary Rodham Clinton", day, "40.00", "39.50", "02/09/2016", "New Hampshire", "2016D"])
        polls.append(["Bernard Sanders", day, "54.00", "53.50", "02/09/2016", "New Hampshire", "2016D"])
        polls.append(["Martin O'Malley", day, "2.00", "2.10", "02/09/2016", "New Hampshire", "2016D"])
    poll_file = write_poll_csv(root / "polls.csv", polls, extra_header=["race"])

    iowa_market = []
    for day, (clinton, sanders, omalley) in zip(iowa_days, [(0.70, 0.28, 0.02), (0.72, 0.26, 0.02), (0.75, 0.24, 0.01)]):
        iowa_market += [["Clinton", day, clinton, 1000], ["Sanders", day, sanders, 800], ["O'Malley", day, omalley, 10]]
    write_market_csv(root / "markets" / "iowa.csv", iowa_market)

    nh_market = []
    for day in nh_days:
        nh_market += [["Clinton", day, 0.10, 300], ["Sanders", day, 0.90, 900], ["O'Malley", day, 0.01, 1]]
    write_market_csv(root / "markets" / "new_hampshire.csv", nh_market)

    results_csv = write_csv(root / "results.csv", ["state", "name", "vote_percent"], [
        ["Iowa", "Hillary Clinton", "49.9"],
        ["Iowa", "Bernie Sanders", "49.6"],
        ["Iowa", "Martin O'Malley", "0.6"],
    ])

    return CycleConfig(
        year=2016,
        poll_file=str(poll_file),
        race="2016D",
        market_dir=str(root / "markets"),
        states=["Iowa", "New Hampshire"],
        dropouts={"Martin O'Malley": date(2016, 2, 1)},
        results_csv=str(results_csv),
    )


@pytest.fixture
def pipeline_config(cycle_2020, cycle_2016):
    return PipelineConfig(cycles=[cycle_2020, cycle_2016])


@pytest.fixture
def master_table(pipeline_config):
    """Master table built from both fixture cycles."""
    from src.build_primary_table import build_primary_table
    return build_primary_table(pipeline_config)

