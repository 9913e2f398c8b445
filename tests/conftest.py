from typing import Any, Dict

import pytest

from scoring_api import store
from scoring_api.models import Match
from scoring_api.state_machine import create_match, set_toss

TEAM_A_PLAYERS = [
    {"name": "Rohit", "player_id": "p-rohit"},
    {"name": "Gill", "player_id": "p-gill"},
    {"name": "Kohli", "player_id": "p-kohli"},
]
TEAM_B_PLAYERS = [
    {"name": "Starc", "player_id": "p-starc"},
    {"name": "Cummins", "player_id": "p-cummins"},
    {"name": "Carey", "player_id": "p-carey"},
]


@pytest.fixture(autouse=True)
def clean_store():
    store.clear()
    yield
    store.clear()


def _ball(
    runs: int = 0,
    striker: str = "Rohit",
    non_striker: str = "Gill",
    bowler: str = "Starc",
    **extra: Any,
) -> Dict[str, Any]:
    b = {
        "runs": runs,
        "strikerName": striker,
        "nonStrikerName": non_striker,
        "bowlerName": bowler,
    }
    b.update(extra)
    return b


@pytest.fixture
def make_ball():
    """Builds a raw delivery dict the way a scorer client sends it."""
    return _ball


@pytest.fixture
def scheduled_match() -> Match:
    return create_match(
        match_id="m1",
        match_name="India vs Australia",
        match_type="Custom",
        custom_overs=2,
        team_a_name="India",
        team_a_id="t-ind",
        team_a_players=TEAM_A_PLAYERS,
        team_b_name="Australia",
        team_b_id="t-aus",
        team_b_players=TEAM_B_PLAYERS,
        created_by="u1",
    )


@pytest.fixture
def live_match(scheduled_match: Match) -> Match:
    # India bat first
    return set_toss(scheduled_match, "teamA", "bat")
