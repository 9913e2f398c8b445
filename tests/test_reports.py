import pytest

from scoring_api import reports
from scoring_api.replay import replay_innings


@pytest.fixture
def scored_match(live_match, make_ball):
    balls = [
        make_ball(4),
        make_ball(0, extraType="wd"),
        make_ball(1),
        make_ball(6, striker="Gill", non_striker="Rohit"),
        make_ball(0, striker="Gill", non_striker="Rohit", isWicket=True, wicketKind="bowled"),
        make_ball(2, striker="Kohli", non_striker="Rohit"),
        make_ball(1, striker="Kohli", non_striker="Rohit"),
        make_ball(0, striker="Rohit", non_striker="Kohli", bowler="Cummins"),
        make_ball(4, striker="Rohit", non_striker="Kohli", bowler="Cummins"),
    ]
    return replay_innings(live_match, 1, balls)


def test_scorecard_shows_the_first_innings(scored_match):
    card = reports.scorecard(scored_match)
    assert card["match_id"] == "m1"
    assert len(card["innings"]) == 1

    inn = card["innings"][0]
    assert inn["batting_team"] == "India"
    assert inn["bowling_team"] == "Australia"
    assert inn["score"] == 19
    assert inn["wickets"] == 1
    assert inn["overs"] == "1.2"
    assert inn["target"] is None
    assert inn["extras"]["wides"] == 1
    assert [r["name"] for r in inn["batting"]] == ["Rohit", "Gill", "Kohli"]
    assert len(inn["fall_of_wickets"]) == 1


def test_top_performers(scored_match):
    batters = reports.top_batters(scored_match, 2)
    assert [b["name"] for b in batters] == ["Rohit", "Gill"]
    assert batters[0]["runs"] == 9

    bowlers = reports.top_bowlers(scored_match)
    assert bowlers[0]["name"] == "Starc"
    assert bowlers[0]["wickets"] == 1


def test_highlights_are_boundaries_and_wickets(scored_match):
    labels = [(h["label"], h["batsman"]) for h in reports.highlights(scored_match)]
    assert labels == [
        ("FOUR", "Rohit"),
        ("SIX", "Gill"),
        ("WICKET", "Gill"),
        ("FOUR", "Rohit"),
    ]


def test_over_summary(scored_match):
    overs = reports.over_summary(scored_match)
    assert [o["over_number"] for o in overs] == [1, 2]

    first, second = overs
    assert first["runs"] == 15
    assert first["wickets"] == 1
    assert first["extras"] == 1
    assert first["bowler"] == "Starc"
    assert second["runs"] == 4
    assert second["cumulative_runs"] == 19
    assert reports.over_summary(scored_match, inning=2) == []


def test_leaderboard_orders_and_filters():
    careers = [
        {"player_id": "a", "name": "A", "batting": {"innings": 3, "runs": 120, "strike_rate": 130.0}},
        {"player_id": "b", "name": "B", "batting": {"innings": 2, "runs": 120, "strike_rate": 150.0}},
        {"player_id": "c", "name": "C", "batting": {"innings": 4, "runs": 200, "strike_rate": 90.0}},
        {"player_id": "d", "name": "D", "batting": {"innings": 0}},
    ]
    rows = reports.leaderboard(careers, "batting", limit=10)
    assert [r["player_id"] for r in rows] == ["c", "b", "a"]
    assert [r["pos"] for r in rows] == [1, 2, 3]
    assert isinstance(rows[0]["runs"], int)

    assert len(reports.leaderboard(careers, "batting", limit=1)) == 1


def test_bowling_leaderboard_breaks_ties_on_economy():
    careers = [
        {"player_id": "a", "name": "A", "bowling": {"innings": 3, "wickets": 5, "economy": 8.5,
                                                     "best_figures": {"wickets": 3, "runs": 20}}},
        {"player_id": "b", "name": "B", "bowling": {"innings": 3, "wickets": 5, "economy": 6.25,
                                                     "best_figures": None}},
    ]
    rows = reports.leaderboard(careers, "bowling")
    assert [r["player_id"] for r in rows] == ["b", "a"]
    assert rows[1]["best_figures"] == "3/20"
    assert rows[0]["best_figures"] is None


def test_leaderboard_rejects_unknown_category():
    with pytest.raises(ValueError):
        reports.leaderboard([], "fielding")



def test_all_rounders_need_both_disciplines():
    careers = [
        {"player_id": "a", "name": "A", "batting": {"innings": 4, "runs": 150, "average": 37.5},
         "bowling": {"innings": 4, "wickets": 2, "economy": 9.0}},
        {"player_id": "b", "name": "B", "batting": {"innings": 4, "runs": 60},
         "bowling": {"innings": 4, "wickets": 6, "economy": 7.0}},
        {"player_id": "c", "name": "C", "batting": {"innings": 4, "runs": 400}},
        {"player_id": "d", "name": "D", "batting": {"innings": 4, "runs": 130},
         "bowling": {"innings": 2, "wickets": 3}},
    ]
    rows = reports.leaderboard(careers, "all-rounders")

    # D ties A on points and ranks below on runs
    assert [r["player_id"] for r in rows] == ["a", "d", "b"]
    assert [r["points"] for r in rows] == [190, 190, 180]
    assert rows[0]["batting_average"] == 37.5
    assert rows[2]["economy"] == 7.0
    assert [r["pos"] for r in rows] == [1, 2, 3]
