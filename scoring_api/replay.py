# scoring_api/replay.py
from __future__ import annotations

import copy
import logging
from typing import Any, List, Mapping, Sequence, Tuple, Union

from scoring_api.classifier import Outcome, RawBall, classify
from scoring_api.delivery import InningsContext, record_delivery, refresh_rates, require_players
from scoring_api.models import Innings, Match, ScoringError
from scoring_api.overs_math import MAX_WICKETS, overs_to_balls
from scoring_api.state_machine import innings_ended

logger = logging.getLogger(__name__)

BallLike = Union[RawBall, Mapping[str, Any]]


def _prepare(balls: Sequence[BallLike]) -> List[Tuple[RawBall, Outcome]]:
    """
    Classifies the whole log up front. Any malformed entry rejects the
    request before a single field of the match is touched.
    """
    prepared: List[Tuple[RawBall, Outcome]] = []
    for idx, b in enumerate(balls, start=1):
        raw = b if isinstance(b, RawBall) else RawBall.from_mapping(b)
        try:
            require_players(raw)
            prepared.append((raw, classify(raw)))
        except ScoringError as e:
            raise ScoringError(f"Ball {idx}: {e}") from e
    return prepared


def _reset_innings(match: Match, inning: int) -> None:
    old = match.innings_for(inning)
    fresh = Innings(
        batting_team=old.batting_team,
        bowling_team=old.bowling_team,
        target=old.target,
    )
    if inning == 1:
        match.first_innings = fresh
    else:
        match.second_innings = fresh

    if fresh.batting_team:
        match.side(fresh.batting_team).reset_score()

    match.ball_by_ball = [b for b in match.ball_by_ball if b.inning != inning]
    match.batsman_stats = [r for r in match.batsman_stats if r.inning != inning]
    match.bowler_stats = [r for r in match.bowler_stats if r.inning != inning]
    match.fall_of_wickets = [f for f in match.fall_of_wickets if f.inning != inning]
    match.undo_log = []


def replay_innings(match: Match, inning: int, balls: Sequence[BallLike]) -> Match:
    """
    Rebuilds one innings from its full ball log.

    Returns a new Match; the one passed in is left untouched so a failure
    part-way through the fold never leaves a half-written innings behind.
    Ball events of the other innings are preserved as they are.
    """
    prepared = _prepare(balls)

    replayed = copy.deepcopy(match)
    _reset_innings(replayed, inning)

    ctx = InningsContext(replayed, inning)
    next_number = replayed.next_ball_number()

    for idx, (raw, outcome) in enumerate(prepared, start=1):
        if innings_ended(replayed, inning):
            raise ScoringError(f"Ball {idx} was bowled after the innings had ended")
        record_delivery(ctx, raw, outcome, next_number)
        next_number += 1

    refresh_rates(replayed, inning)

    inn = replayed.innings_for(inning)
    logger.info(
        "Replayed inning %s of match %s: %s balls -> %s/%s (%s)",
        inning, replayed.match_id, len(prepared), inn.score, inn.wickets,
        inn.overs_display(replayed.balls_per_over),
    )
    return replayed


def overwrite_innings(match: Match, inning: int, *, runs: int, wickets: int, overs: Any) -> Match:
    """
    Manual correction without ball detail: sets score/wickets/overs directly.
    Per-player figures and the ball log are left as they are.
    """
    bpo = match.balls_per_over
    try:
        balls = overs_to_balls(overs, bpo)
    except ValueError as e:
        raise ScoringError(str(e)) from e

    if runs is None or int(runs) < 0:
        raise ScoringError("runs must be zero or more")
    if wickets is None or not 0 <= int(wickets) <= MAX_WICKETS:
        raise ScoringError(f"wickets must be between 0 and {MAX_WICKETS}")
    if balls > match.max_balls:
        raise ScoringError(f"overs cannot exceed the {match.total_overs}-over allotment")

    inn = match.innings_for(inning)
    if not inn.batting_team:
        raise ScoringError("Toss has not been set; batting order is unknown")

    inn.score = int(runs)
    inn.wickets = int(wickets)
    inn.overs, inn.balls = divmod(balls, bpo)

    side = match.side(inn.batting_team)
    side.score = inn.score
    side.wickets = inn.wickets
    side.balls_played = balls
    side.overs = inn.overs_display(bpo)

    match.undo_log = []
    refresh_rates(match, inning)

    logger.info(
        "Overwrote inning %s of match %s: %s/%s (%s)",
        inning, match.match_id, inn.score, inn.wickets, side.overs,
    )
    return match
