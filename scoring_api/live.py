# scoring_api/live.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from scoring_api.classifier import RawBall, classify
from scoring_api.config import UNDO_LOG_LIMIT
from scoring_api.delivery import InningsContext, record_delivery, refresh_rates, require_players
from scoring_api.identity import name_key
from scoring_api.models import (
    BallEvent,
    BatsmanStat,
    BowlerStat,
    Innings,
    Match,
    ScoringError,
    TeamSide,
)
from scoring_api.state_machine import innings_ended, start_second_innings

logger = logging.getLogger(__name__)

Batter = Tuple[Optional[str], Optional[str]]  # (name, player_id)


@dataclass
class LiveResult:
    event: BallEvent
    over_complete: bool
    striker: Batter
    non_striker: Batter


# -----------------------------
# Undo log
# -----------------------------
def take_snapshot(match: Match) -> Dict[str, Any]:
    """
    Everything one live ball can change, captured before the ball.
    The log and fall-of-wickets are append-only, so their lengths suffice.
    """
    return {
        "status": match.status,
        "current_inning": match.current_inning,
        "crease": [
            match.current_striker, match.current_striker_id,
            match.current_non_striker, match.current_non_striker_id,
            match.current_bowler, match.current_bowler_id,
        ],
        "first_innings": match.first_innings.to_dict(),
        "second_innings": match.second_innings.to_dict(),
        "team_a": match.team_a.to_dict(),
        "team_b": match.team_b.to_dict(),
        "batsman_stats": [r.to_dict() for r in match.batsman_stats],
        "bowler_stats": [r.to_dict() for r in match.bowler_stats],
        "ball_count": len(match.ball_by_ball),
        "fow_count": len(match.fall_of_wickets),
    }


def restore_snapshot(match: Match, snap: Dict[str, Any]) -> None:
    match.status = snap["status"]
    match.current_inning = snap["current_inning"]
    match.set_crease(*snap["crease"])
    match.first_innings = Innings.from_dict(snap["first_innings"])
    match.second_innings = Innings.from_dict(snap["second_innings"])
    match.team_a = TeamSide.from_dict(snap["team_a"])
    match.team_b = TeamSide.from_dict(snap["team_b"])
    match.batsman_stats = [BatsmanStat.from_dict(r) for r in snap["batsman_stats"]]
    match.bowler_stats = [BowlerStat.from_dict(r) for r in snap["bowler_stats"]]
    match.ball_by_ball = match.ball_by_ball[: snap["ball_count"]]
    match.fall_of_wickets = match.fall_of_wickets[: snap["fow_count"]]


def _push_snapshot(match: Match, snap: Dict[str, Any], limit: int) -> None:
    match.undo_log.append(snap)
    overflow = len(match.undo_log) - limit
    if overflow > 0:
        del match.undo_log[:overflow]


# -----------------------------
# Strike rotation
# -----------------------------
def _is_batter(batter: Batter, name: Optional[str], player_id: Optional[str]) -> bool:
    b_name, b_id = batter
    if player_id and b_id:
        return str(player_id) == str(b_id)
    return bool(b_name) and name_key(b_name) == name_key(name)


def apply_live_ball(match: Match, raw: RawBall, *, undo_limit: int = UNDO_LOG_LIMIT) -> LiveResult:
    """
    Incremental fast path: one delivery on top of the current innings state.

    Crease after the ball:
    - swap when the batters completed an odd number of runs
      (the mandatory wide/no-ball run is not one they ran)
    - the dismissed batter's end is left empty for the incoming batter
    - swap again at the end of the over
    """
    require_players(raw)
    outcome = classify(raw)

    inning = match.current_inning
    if innings_ended(match, inning):
        raise ScoringError("The current innings has already ended")

    snapshot = take_snapshot(match)
    if match.status == "innings_break":
        start_second_innings(match)

    ctx = InningsContext(match, inning)
    result = record_delivery(ctx, raw, outcome, match.next_ball_number())
    refresh_rates(match, inning)

    striker: Batter = (raw.striker_name, raw.striker_id)
    non_striker: Batter = (raw.non_striker_name, raw.non_striker_id)

    if outcome.rotates_strike:
        striker, non_striker = non_striker, striker

    if outcome.is_wicket:
        if _is_batter(striker, result.dismissed_name, result.dismissed_id):
            striker = (None, None)
        elif _is_batter(non_striker, result.dismissed_name, result.dismissed_id):
            non_striker = (None, None)

    if result.over_complete:
        striker, non_striker = non_striker, striker

    match.set_crease(striker[0], striker[1], non_striker[0], non_striker[1], raw.bowler_name, raw.bowler_id)
    _push_snapshot(match, snapshot, undo_limit)

    return LiveResult(
        event=result.event,
        over_complete=result.over_complete,
        striker=striker,
        non_striker=non_striker,
    )


def undo_last_ball(match: Match) -> BallEvent:
    """Reverts the most recent live ball by restoring its pre-ball snapshot."""
    if match.status in ("completed", "abandoned"):
        raise ScoringError(f"Match is {match.status}; nothing can be undone")
    if not match.undo_log:
        raise ScoringError("No live ball to undo (the undo log is empty)")

    removed = match.ball_by_ball[-1]
    snap = match.undo_log.pop()
    restore_snapshot(match, snap)

    logger.info(
        "Undid ball %s (inning %s, %s.%s) of match %s",
        removed.ball_number, removed.inning, removed.over, removed.ball_in_over + 1, match.match_id,
    )
    return removed
