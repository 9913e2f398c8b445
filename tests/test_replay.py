import pytest

from scoring_api.models import ScoringError
from scoring_api.replay import overwrite_innings, replay_innings
from scoring_api.state_machine import evaluate_progress


def _bowler_row(match, name, inning=1):
    return next(r for r in match.bowler_stats if r.name == name and r.inning == inning)


def _batter_row(match, name, inning=1):
    return next(r for r in match.batsman_stats if r.name == name and r.inning == inning)


def test_six_dot_balls_make_one_maiden_over(live_match, make_ball):
    m = replay_innings(live_match, 1, [make_ball(0) for _ in range(6)])

    inn = m.first_innings
    assert (inn.overs, inn.balls) == (1, 0)
    assert inn.overs_display(m.balls_per_over) == "1.0"
    assert m.team_a.overs == "1.0"
    assert _bowler_row(m, "Starc").maidens == 1
    assert _batter_row(m, "Rohit").dot_balls == 6


def test_single_then_bowled(live_match, make_ball):
    balls = [
        make_ball(1),
        make_ball(0, striker="Gill", non_striker="Rohit", isWicket=True, wicketKind="bowled"),
    ]
    m = replay_innings(live_match, 1, balls)

    inn = m.first_innings
    assert inn.wickets == 1
    assert inn.legal_balls(m.balls_per_over) == 2
    assert len(m.fall_of_wickets) == 1

    fow = m.fall_of_wickets[0]
    assert fow.score == 1
    assert fow.overs == "0.2"
    assert fow.player_out == "Gill"
    assert fow.partnership_runs == 1

    gill = _batter_row(m, "Gill")
    assert gill.is_out
    assert gill.dismissal.kind == "bowled"
    assert gill.dismissal.bowler_name == "Starc"
    assert _bowler_row(m, "Starc").wickets == 1
    # fresh partnership after the wicket
    assert inn.partnership.runs == 0


def test_wide_is_all_extras_and_does_not_advance_the_over(live_match, make_ball):
    m = replay_innings(live_match, 1, [make_ball(0, extraType="wide")])

    inn = m.first_innings
    assert inn.score == 1
    assert inn.extras.wides == 1
    assert inn.extras.total == 1
    assert (inn.overs, inn.balls) == (0, 0)
    assert _bowler_row(m, "Starc").runs == 1
    assert _bowler_row(m, "Starc").balls == 0
    assert _batter_row(m, "Rohit").balls_faced == 0

    event = m.ball_by_ball[0]
    assert event.extra_type == "wide"
    assert event.total_runs == 1
    assert not event.is_legal


def test_byes_keep_the_maiden(live_match, make_ball):
    balls = [make_ball(0) for _ in range(5)] + [make_ball(1, extraType="bye")]
    m = replay_innings(live_match, 1, balls)
    starc = _bowler_row(m, "Starc")
    assert starc.maidens == 1
    assert starc.runs == 0
    assert m.first_innings.score == 1


def test_score_equals_sum_of_ball_totals(live_match, make_ball):
    balls = [
        make_ball(4),
        make_ball(1, extraType="nb"),
        make_ball(6),
        make_ball(2, extraType="lb"),
        make_ball(0, isWicket=True, wicketKind="caught", fielderName="Carey"),
        make_ball(3, striker="Kohli"),
        make_ball(2, extraType="wd", striker="Kohli"),
    ]
    m = replay_innings(live_match, 1, balls)
    inn = m.first_innings

    assert inn.score == sum(b.total_runs for b in m.balls_for(1))
    batter_runs = sum(r.runs for r in m.batsman_stats if r.inning == 1)
    assert inn.score == batter_runs + inn.extras.total
    assert inn.extras.total == inn.extras.wides + inn.extras.no_balls + inn.extras.byes + inn.extras.leg_byes
    assert inn.extras.no_balls == 1
    assert inn.extras.leg_byes == 2
    assert inn.extras.wides == 2
    assert _batter_row(m, "Rohit").fours == 1
    assert _batter_row(m, "Rohit").sixes == 1


def test_replay_is_deterministic(live_match, make_ball):
    log = [make_ball(1), make_ball(4, striker="Gill"), make_ball(0, extraType="wd")]

    once = replay_innings(live_match, 1, log)
    # replaying over an already-scored innings gives the same document
    twice = replay_innings(replay_innings(live_match, 1, [make_ball(6)] * 4), 1, log)

    assert once.to_dict() == twice.to_dict()


def test_replay_does_not_touch_the_input_match(live_match, make_ball):
    before = live_match.to_dict()
    replay_innings(live_match, 1, [make_ball(4)])
    assert live_match.to_dict() == before


def test_malformed_ball_rejects_the_whole_log(live_match, make_ball):
    scored = replay_innings(live_match, 1, [make_ball(2)])
    before = scored.to_dict()

    with pytest.raises(ScoringError, match="Ball 3"):
        replay_innings(scored, 1, [make_ball(1), make_ball(1), make_ball(-1)])
    with pytest.raises(ScoringError, match="Ball 2"):
        replay_innings(scored, 1, [make_ball(1), make_ball(1, bowlerName="")])

    assert scored.to_dict() == before


def test_ball_after_the_innings_ended_is_rejected(live_match, make_ball):
    # 2-over match: the 13th legal ball cannot exist
    with pytest.raises(ScoringError, match="Ball 13"):
        replay_innings(live_match, 1, [make_ball(1) for _ in range(13)])


def test_replaying_second_innings_keeps_first_innings(live_match, make_ball):
    m = replay_innings(live_match, 1, [make_ball(1) for _ in range(12)])
    evaluate_progress(m)
    assert m.status == "innings_break"
    assert m.second_innings.target == 13

    first_events = [b.to_dict() for b in m.balls_for(1)]
    first_rows = [r.to_dict() for r in m.batsman_stats if r.inning == 1]

    chase = dict(striker="Starc", non_striker="Cummins", bowler="Rohit")
    m = replay_innings(m, 2, [make_ball(4, **chase), make_ball(0, **chase)])
    m = replay_innings(m, 2, [make_ball(6, **chase)])

    assert [b.to_dict() for b in m.balls_for(1)] == first_events
    assert [r.to_dict() for r in m.batsman_stats if r.inning == 1] == first_rows
    assert m.second_innings.score == 6
    assert m.second_innings.target == 13
    assert m.team_b.score == 6
    assert m.team_a.score == 12
    assert m.balls_for(2)[0].ball_number == 12


def test_overwrite_sets_totals_without_ball_detail(live_match):
    overwrite_innings(live_match, 1, runs=17, wickets=2, overs="1.4")
    inn = live_match.first_innings
    assert (inn.score, inn.wickets, inn.overs, inn.balls) == (17, 2, 1, 4)
    assert live_match.team_a.overs == "1.4"
    assert inn.run_rate == 10.2


@pytest.mark.parametrize(
    "runs, wickets, overs",
    [(-1, 0, "1.0"), (10, 11, "1.0"), (10, 0, "1.6"), (10, 0, "3.0")],
)
def test_overwrite_rejects_bad_totals(live_match, runs, wickets, overs):
    with pytest.raises(ScoringError):
        overwrite_innings(live_match, 1, runs=runs, wickets=wickets, overs=overs)
