import pytest

from scoring_api.overs_math import (
    TeamAggregate,
    apply_match,
    average,
    balls_to_overs,
    balls_to_overs_decimal,
    bowling_strike_rate,
    nrr,
    overs_to_balls,
    required_run_rate,
    run_rate,
    strike_rate,
)


@pytest.mark.parametrize(
    "overs, balls",
    [("19.4", 118), ("20", 120), (7, 42), ("0.3", 3), ("12.", 72)],
)
def test_overs_to_balls(overs, balls):
    assert overs_to_balls(overs) == balls


@pytest.mark.parametrize("bad", ["3.6", "-1", "x", "", None])
def test_overs_to_balls_rejects_bad_notation(bad):
    with pytest.raises(ValueError):
        overs_to_balls(bad)


def test_eight_ball_overs():
    assert overs_to_balls("2.7", balls_per_over=8) == 23
    assert balls_to_overs(23, balls_per_over=8) == "2.7"


def test_balls_to_overs():
    assert balls_to_overs(0) == "0.0"
    assert balls_to_overs(119) == "19.5"
    assert balls_to_overs_decimal(15) == 2.3


def test_rates():
    assert run_rate(150, 120) == 7.5
    assert run_rate(10, 0) == 0.0
    assert required_run_rate(151, 100, 60, 120) == 5.1
    assert required_run_rate(151, 151, 60, 120) == 0.0
    assert strike_rate(45, 30) == 150.0
    assert average(90, 0) == 0.0
    assert average(90, 4) == 22.5


def test_bowling_strike_rate():
    assert bowling_strike_rate(120, 5) == 24.0
    assert bowling_strike_rate(25, 3) == 8.33
    assert bowling_strike_rate(30, 0) == 0.0


def test_apply_match_counts_all_out_as_full_allotment():
    first, second = TeamAggregate(), TeamAggregate()
    apply_match(
        first, second,
        first_runs=100, first_balls=90,
        second_runs=101, second_balls=60,
        max_balls=120,
        first_all_out=True,
    )
    assert first.balls_for == 120
    assert second.balls_against == 120
    assert second.balls_for == 60
    assert nrr(second) == round(101 * 6 / 60 - 100 * 6 / 120, 3)
    assert nrr(first) == -nrr(second)


def test_apply_match_skips_unplayed_innings():
    first, second = TeamAggregate(), TeamAggregate()
    apply_match(
        first, second,
        first_runs=80, first_balls=60,
        second_runs=0, second_balls=0,
        max_balls=120,
    )
    assert first == TeamAggregate()
    assert second == TeamAggregate()
