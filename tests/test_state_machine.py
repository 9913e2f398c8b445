import pytest

from scoring_api.models import ScoringError
from scoring_api.replay import overwrite_innings, replay_innings
from scoring_api.state_machine import (
    abandon_match,
    complete_match,
    create_match,
    ensure_deletable,
    ensure_scoring_open,
    evaluate_progress,
    reopen_first_innings,
    set_toss,
    start_second_innings,
)


def _finish_first_innings(match, runs, wickets=3, overs="2.0"):
    overwrite_innings(match, 1, runs=runs, wickets=wickets, overs=overs)
    return evaluate_progress(match)


@pytest.mark.parametrize("match_type, overs", [("T20", 20), ("ODI", 50)])
def test_fixed_formats(match_type, overs):
    m = create_match(match_id="x", match_name="M", match_type=match_type, team_a_name="A", team_b_name="B")
    assert m.total_overs == overs
    assert m.status == "scheduled"
    assert m.max_balls == overs * 6


def test_custom_format_and_string_rosters():
    m = create_match(
        match_id="x", match_name="M", match_type="Custom", custom_overs=7,
        team_a_name="A", team_b_name="B", team_a_players="Ann, Bea ,, Cat",
    )
    assert m.total_overs == 7
    assert [p.name for p in m.team_a.players] == ["Ann", "Bea", "Cat"]


def test_unknown_format_is_rejected():
    with pytest.raises(ScoringError, match="Unsupported match type"):
        create_match(match_id="x", match_name="M", match_type="Test", team_a_name="A", team_b_name="B")


def test_toss_decides_batting_order(scheduled_match):
    set_toss(scheduled_match, "teamA", "bowl")
    assert scheduled_match.status == "live"
    assert scheduled_match.first_innings.batting_team == "teamB"
    assert scheduled_match.second_innings.batting_team == "teamA"


@pytest.mark.parametrize("winner, decision", [("teamC", "bat"), ("teamA", "field"), ("", "")])
def test_toss_rejects_unknown_tokens(scheduled_match, winner, decision):
    with pytest.raises(ScoringError):
        set_toss(scheduled_match, winner, decision)
    assert scheduled_match.status == "scheduled"


def test_retoss_wipes_scoring_state(live_match, make_ball):
    m = replay_innings(live_match, 1, [make_ball(4), make_ball(0, isWicket=True)])
    set_toss(m, "teamB", "bat")

    assert m.ball_by_ball == []
    assert m.batsman_stats == []
    assert m.fall_of_wickets == []
    assert m.team_a.score == 0
    assert m.first_innings.score == 0
    assert m.first_innings.batting_team == "teamB"


def test_scoring_needs_a_toss(scheduled_match):
    with pytest.raises(ScoringError, match="Toss"):
        ensure_scoring_open(scheduled_match)


def test_first_innings_close_sets_the_target(live_match):
    t = _finish_first_innings(live_match, 150)

    assert t.innings_complete
    assert not t.match_complete
    assert "need 151 runs" in t.message
    assert live_match.status == "innings_break"
    assert live_match.current_inning == 2
    assert live_match.first_innings.is_completed
    assert live_match.second_innings.target == 151
    assert live_match.second_innings.batting_team == "teamB"


def test_chase_completes_on_the_winning_run(live_match):
    hook_calls = []
    _finish_first_innings(live_match, 150)
    start_second_innings(live_match)

    overwrite_innings(live_match, 2, runs=151, wickets=6, overs="1.3")
    t = evaluate_progress(live_match, on_complete=hook_calls.append)

    assert t.match_complete
    assert live_match.status == "completed"
    assert live_match.winner == "Australia"
    assert live_match.winning_team == "teamB"
    assert live_match.result_type == "wickets"
    assert live_match.result_margin == 4
    assert t.message == "Australia won by 4 wickets"
    assert hook_calls == [live_match]


def test_level_scores_are_a_tie(live_match):
    _finish_first_innings(live_match, 100)
    start_second_innings(live_match)
    overwrite_innings(live_match, 2, runs=100, wickets=8, overs="2.0")
    evaluate_progress(live_match)

    assert live_match.status == "completed"
    assert live_match.winner == "Tie"
    assert live_match.result_type == "tie"
    assert live_match.result_margin == 0
    assert live_match.winning_team is None


def test_defended_total_wins_by_runs(live_match):
    _finish_first_innings(live_match, 120)
    start_second_innings(live_match)
    overwrite_innings(live_match, 2, runs=101, wickets=10, overs="1.5")
    t = evaluate_progress(live_match)

    assert live_match.winner == "India"
    assert live_match.result_type == "runs"
    assert live_match.result_margin == 19
    assert t.message == "India won by 19 runs"


def test_completing_twice_is_an_error(live_match):
    calls = []
    complete_match(live_match, on_complete=calls.append)
    with pytest.raises(ScoringError, match="already completed"):
        complete_match(live_match, on_complete=calls.append)
    assert len(calls) == 1


def test_complete_needs_a_toss(scheduled_match):
    with pytest.raises(ScoringError, match="Toss"):
        complete_match(scheduled_match)


def test_abandoned_match_is_closed(live_match):
    abandon_match(live_match)
    assert live_match.status == "abandoned"
    assert live_match.result_type == "abandoned"

    with pytest.raises(ScoringError):
        ensure_scoring_open(live_match)
    with pytest.raises(ScoringError):
        complete_match(live_match)
    with pytest.raises(ScoringError):
        set_toss(live_match, "teamA", "bat")
    with pytest.raises(ScoringError):
        abandon_match(live_match)
    ensure_deletable(live_match)


def test_completed_match_cannot_be_deleted(live_match):
    complete_match(live_match)
    with pytest.raises(ScoringError, match="cannot be deleted"):
        ensure_deletable(live_match)


def test_first_innings_reopens_until_the_chase_starts(live_match, make_ball):
    _finish_first_innings(live_match, 40)
    reopen_first_innings(live_match)
    assert live_match.status == "live"
    assert live_match.current_inning == 1
    assert live_match.second_innings.target == 0
    assert not live_match.first_innings.is_completed

    _finish_first_innings(live_match, 40)
    start_second_innings(live_match)
    chase = replay_innings(live_match, 2, [make_ball(1, striker="Starc", bowler="Rohit")])
    with pytest.raises(ScoringError, match="second innings has started"):
        reopen_first_innings(chase)
