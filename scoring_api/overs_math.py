# scoring_api/overs_math.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

MAX_WICKETS = 10
OversLike = Union[str, int, float]


@dataclass
class TeamAggregate:
    """
    Aggregate stats needed for NRR.
    All overs are stored as BALLS (not float overs) to avoid mistakes.
    """
    runs_for: int = 0
    balls_for: int = 0
    runs_against: int = 0
    balls_against: int = 0


def overs_to_balls(overs: OversLike, balls_per_over: int = 6) -> int:
    """
    Converts cricket overs notation to balls.

    Supported inputs:
    - "20.0", "19.4", "7.2" (string overs notation)
    - 20 (int overs)
    - 19.4 (float) -> treated as "19.4" (NOTE: float precision issues possible; strings preferred)

    Rule: ".x" means x balls (0..balls_per_over-1). Example: 19.4 = 19*6 + 4 = 118 balls.
    """
    if overs is None:
        raise ValueError("Overs cannot be None")

    s = str(overs).strip()
    if not s:
        raise ValueError("Overs cannot be empty")

    try:
        if "." not in s:
            ov_i = int(s)
            balls_i = 0
        else:
            ov_part, ball_part = s.split(".", 1)
            ov_i = int(ov_part) if ov_part else 0
            ball_part = ball_part.strip()
            balls_i = int(ball_part) if ball_part else 0
    except ValueError as e:
        raise ValueError(f"Invalid overs: {overs}") from e

    if ov_i < 0:
        raise ValueError(f"Invalid overs: {overs}")
    if balls_i < 0 or balls_i >= balls_per_over:
        raise ValueError(
            f"Invalid overs format: {overs} (balls part must be 0-{balls_per_over - 1})"
        )

    return ov_i * balls_per_over + balls_i


def balls_to_overs(balls: int, balls_per_over: int = 6) -> str:
    """119 balls -> "19.5" """
    if balls <= 0:
        return "0.0"
    return f"{balls // balls_per_over}.{balls % balls_per_over}"


def balls_to_overs_decimal(balls: int, balls_per_over: int = 6) -> float:
    """
    Overs in scorecard notation as a number: 15 balls -> 2.3.
    Not an arithmetic quantity; use balls for math.
    """
    if balls <= 0:
        return 0.0
    return float(f"{balls // balls_per_over}.{balls % balls_per_over}")


def run_rate(runs: int, balls: int, balls_per_over: int = 6) -> float:
    if balls <= 0:
        return 0.0
    return round(runs * balls_per_over / balls, 2)


def required_run_rate(target: int, score: int, balls_used: int, total_balls: int, balls_per_over: int = 6) -> float:
    remaining_runs = target - score
    remaining_balls = total_balls - balls_used
    if remaining_runs <= 0 or remaining_balls <= 0:
        return 0.0
    return round(remaining_runs * balls_per_over / remaining_balls, 2)


def strike_rate(runs: int, balls: int) -> float:
    if balls <= 0:
        return 0.0
    return round(runs * 100.0 / balls, 2)


def economy(runs: int, balls: int, balls_per_over: int = 6) -> float:
    return run_rate(runs, balls, balls_per_over)


def average(runs: int, dismissals: int) -> float:
    if dismissals <= 0:
        return 0.0
    return round(runs / dismissals, 2)


def bowling_strike_rate(balls: int, wickets: int) -> float:
    """Balls bowled per wicket taken."""
    if wickets <= 0:
        return 0.0
    return round(balls / wickets, 2)


def nrr(agg: TeamAggregate, balls_per_over: int = 6) -> float:
    """
    Net Run Rate = (runs_for / overs_for) - (runs_against / overs_against)
    """
    rr_for = run_rate(agg.runs_for, agg.balls_for, balls_per_over)
    rr_against = run_rate(agg.runs_against, agg.balls_against, balls_per_over)
    return round(rr_for - rr_against, 3)


def normalize_innings_balls(balls: int, all_out: bool, max_balls: int) -> int:
    """
    NRR rule: if a team is all-out, innings counts as the full allotment.
    Otherwise, use actual balls faced.

    Note:
    - For chases completed early (e.g., 18.3), use actual balls unless all-out.
    """
    if balls < 0:
        raise ValueError("Balls cannot be negative")
    if balls == 0:
        # 0 balls innings should not be applied to aggregates (e.g., abandoned/NR).
        return 0
    return max_balls if all_out else balls


def apply_match(
    agg_first: TeamAggregate,
    agg_second: TeamAggregate,
    *,
    first_runs: int,
    first_balls: int,
    second_runs: int,
    second_balls: int,
    max_balls: int,
    first_all_out: bool = False,
    second_all_out: bool = False,
) -> None:
    """
    Canonical aggregate updater for a completed match.

    - first = side that batted first, second = side that chased
    - Applies all-out normalization internally
    - A side with a 0-ball innings is skipped entirely (nothing to divide by)
    """
    b1 = normalize_innings_balls(first_balls, first_all_out, max_balls)
    b2 = normalize_innings_balls(second_balls, second_all_out, max_balls)

    if b1 <= 0 or b2 <= 0:
        return

    agg_first.runs_for += int(first_runs)
    agg_first.balls_for += int(b1)
    agg_first.runs_against += int(second_runs)
    agg_first.balls_against += int(b2)

    agg_second.runs_for += int(second_runs)
    agg_second.balls_for += int(b2)
    agg_second.runs_against += int(first_runs)
    agg_second.balls_against += int(b1)
