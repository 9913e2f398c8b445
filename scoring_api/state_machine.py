# scoring_api/state_machine.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Union

from scoring_api.config import DEFAULT_BALLS_PER_OVER, DEFAULT_TOTAL_OVERS
from scoring_api.delivery import refresh_rates
from scoring_api.models import (
    PRE_TOSS_STATUSES,
    TEAM_KEYS,
    Innings,
    Match,
    PlayerLink,
    ScoringError,
    TeamSide,
    Toss,
    other_team,
)
from scoring_api.overs_math import MAX_WICKETS

logger = logging.getLogger(__name__)

# Limited-overs formats and their fixed allotments
FORMAT_OVERS = {"T20": 20, "ODI": 50}
MATCH_TYPES = ("T20", "ODI", "Custom")

TOSS_DECISIONS = ("bat", "bowl")

StatsHook = Callable[[Match], None]
RosterEntry = Union[str, dict, PlayerLink]


@dataclass
class Transition:
    """What changed after an update; surfaced to the caller as response flags."""
    innings_complete: bool = False
    match_complete: bool = False
    over_complete: bool = False
    message: Optional[str] = None


# -----------------------------
# Creation
# -----------------------------
def _roster(entries: Optional[Iterable[RosterEntry]]) -> List[PlayerLink]:
    """
    Rosters arrive as plain names, "a, b, c" strings, or {name, player_id} links.
    """
    if entries is None:
        return []
    if isinstance(entries, str):
        entries = [p.strip() for p in entries.split(",")]

    out: List[PlayerLink] = []
    for e in entries:
        if isinstance(e, PlayerLink):
            link = e
        elif isinstance(e, dict):
            link = PlayerLink(name=str(e.get("name") or "").strip(), player_id=e.get("player_id"))
        else:
            link = PlayerLink(name=str(e).strip())
        if link.name:
            out.append(link)
    return out


def create_match(
    *,
    match_id: str,
    match_name: str,
    match_type: str,
    team_a_name: str,
    team_b_name: str,
    team_a_players: Optional[Iterable[RosterEntry]] = None,
    team_b_players: Optional[Iterable[RosterEntry]] = None,
    team_a_id: Optional[str] = None,
    team_b_id: Optional[str] = None,
    custom_overs: Optional[int] = None,
    balls_per_over: Optional[int] = None,
    venue: Optional[str] = None,
    match_date: Optional[str] = None,
    created_by: Optional[str] = None,
) -> Match:
    if not match_name or not team_a_name or not team_b_name:
        raise ScoringError("match_name, team_a_name and team_b_name are required")
    if match_type not in MATCH_TYPES:
        raise ScoringError(f"Unsupported match type: {match_type} (expected one of {', '.join(MATCH_TYPES)})")

    if match_type == "Custom":
        overs = int(custom_overs or DEFAULT_TOTAL_OVERS)
    else:
        overs = FORMAT_OVERS[match_type]
    bpo = int(balls_per_over or DEFAULT_BALLS_PER_OVER)

    if overs <= 0:
        raise ScoringError("Overs must be positive")
    if bpo <= 0:
        raise ScoringError("Balls per over must be positive")

    match = Match(
        match_id=match_id,
        match_name=match_name,
        match_type=match_type,
        total_overs=overs,
        balls_per_over=bpo,
        team_a=TeamSide(name=team_a_name.strip(), team_id=team_a_id, players=_roster(team_a_players)),
        team_b=TeamSide(name=team_b_name.strip(), team_id=team_b_id, players=_roster(team_b_players)),
        venue=venue,
        match_date=match_date,
        created_by=created_by,
        status="scheduled",
    )
    logger.info("Created match %s (%s, %s overs)", match_id, match_type, overs)
    return match


# -----------------------------
# Toss
# -----------------------------
def set_toss(match: Match, toss_winner_team: str, decision: str) -> Match:
    """
    Fixes batting order and wipes all scoring state. Allowed any time
    before completion, so a mis-recorded toss can simply be redone.
    """
    if match.status in ("completed", "abandoned"):
        raise ScoringError(f"Cannot set toss on a {match.status} match")
    if toss_winner_team not in TEAM_KEYS:
        raise ScoringError("tossWinnerTeam must be 'teamA' or 'teamB'")
    if decision not in TOSS_DECISIONS:
        raise ScoringError("decision must be 'bat' or 'bowl'")

    batting_first = toss_winner_team if decision == "bat" else other_team(toss_winner_team)
    bowling_first = other_team(batting_first)

    match.toss = Toss(winner=toss_winner_team, decision=decision)
    match.first_innings = Innings(batting_team=batting_first, bowling_team=bowling_first)
    match.second_innings = Innings(batting_team=bowling_first, bowling_team=batting_first)
    match.team_a.reset_score()
    match.team_b.reset_score()

    match.current_inning = 1
    match.set_crease(None, None, None, None, None, None)
    match.ball_by_ball = []
    match.batsman_stats = []
    match.bowler_stats = []
    match.fall_of_wickets = []
    match.undo_log = []

    match.winner = None
    match.winning_team = None
    match.result_type = None
    match.result_margin = None
    match.status = "live"

    logger.info(
        "Toss set for match %s: %s won and chose to %s; %s bat first",
        match.match_id, toss_winner_team, decision, batting_first,
    )
    return match


# -----------------------------
# Innings progress
# -----------------------------
def innings_ended(match: Match, inning: int) -> bool:
    inn = match.innings_for(inning)
    if inn.wickets >= MAX_WICKETS:
        return True
    if inn.legal_balls(match.balls_per_over) >= match.max_balls:
        return True
    if inning == 2 and inn.target > 0 and inn.score >= inn.target:
        return True
    return False


def _close_first_innings(match: Match) -> Transition:
    first = match.first_innings
    second = match.second_innings

    first.is_completed = True
    second.batting_team = first.bowling_team
    second.bowling_team = first.batting_team
    second.target = first.score + 1
    refresh_rates(match, 2)

    match.current_inning = 2
    match.set_crease(None, None, None, None, None, None)
    match.status = "innings_break"

    chasing = match.side(second.batting_team).name
    message = f"First innings complete. {chasing} need {second.target} runs to win"
    logger.info("Match %s: %s", match.match_id, message)
    return Transition(innings_complete=True, message=message)


def start_second_innings(match: Match) -> None:
    if match.status != "innings_break":
        raise ScoringError(f"Cannot start the second innings from status '{match.status}'")
    match.status = "live"
    logger.info("Match %s: second innings under way", match.match_id)


def reopen_first_innings(match: Match) -> None:
    """
    Undoes an innings transition when the first innings log is corrected
    before any second-innings ball has been bowled.
    """
    if match.current_inning != 2:
        return
    if match.balls_for(2) or match.status not in ("innings_break", "live"):
        raise ScoringError("Cannot edit the first innings once the second innings has started")

    match.first_innings.is_completed = False
    match.second_innings.target = 0
    match.second_innings.required_run_rate = 0.0
    match.current_inning = 1
    match.status = "live"
    logger.info("Match %s: first innings reopened for correction", match.match_id)


def evaluate_progress(match: Match, on_complete: Optional[StatsHook] = None) -> Transition:
    """
    Runs after every scoring update. Closes the first innings when it ends
    and completes the match when the chase ends (all out, overs done, or
    target reached on the winning run).
    """
    if match.status != "live":
        return Transition()

    inning = match.current_inning
    if not innings_ended(match, inning):
        return Transition()

    if inning == 1:
        return _close_first_innings(match)
    return complete_match(match, on_complete=on_complete)


# -----------------------------
# Completion
# -----------------------------
def _decide_result(match: Match) -> str:
    first = match.first_innings
    second = match.second_innings

    if first.score == second.score:
        match.winner = "Tie"
        match.winning_team = None
        match.result_type = "tie"
        match.result_margin = 0
        return "Match tied"

    if second.score > first.score:
        key = second.batting_team
        match.result_type = "wickets"
        match.result_margin = MAX_WICKETS - second.wickets
        unit = "wicket" if match.result_margin == 1 else "wickets"
    else:
        key = first.batting_team
        match.result_type = "runs"
        match.result_margin = first.score - second.score
        unit = "run" if match.result_margin == 1 else "runs"

    match.winning_team = key
    match.winner = match.side(key).name
    return f"{match.winner} won by {match.result_margin} {unit}"


def complete_match(match: Match, on_complete: Optional[StatsHook] = None) -> Transition:
    """
    Decides the result from the two innings totals and runs the stats hook once.
    Completing an already completed match is an error, never a silent no-op.
    """
    if match.status == "completed":
        raise ScoringError("Match is already completed")
    if match.status == "abandoned":
        raise ScoringError("Match was abandoned and cannot be completed")
    if match.toss is None or not match.first_innings.batting_team:
        raise ScoringError("Toss has not been set")

    message = _decide_result(match)

    match.first_innings.is_completed = True
    match.second_innings.is_completed = True
    match.status = "completed"
    match.set_crease(None, None, None, None, None, None)
    match.undo_log = []
    logger.info("Match %s completed: %s", match.match_id, message)

    if on_complete is not None:
        on_complete(match)

    return Transition(innings_complete=True, match_complete=True, message=message)


def abandon_match(match: Match) -> Transition:
    if match.status in ("completed", "abandoned"):
        raise ScoringError(f"Cannot abandon a {match.status} match")

    match.status = "abandoned"
    match.result_type = "abandoned"
    match.winner = None
    match.winning_team = None
    match.result_margin = None
    match.undo_log = []
    logger.info("Match %s abandoned", match.match_id)
    return Transition(message="Match abandoned")


def ensure_deletable(match: Match) -> None:
    if match.status == "completed":
        raise ScoringError("Completed matches cannot be deleted")


def ensure_scoring_open(match: Match) -> None:
    if match.status in PRE_TOSS_STATUSES:
        raise ScoringError("Toss has not been set")
    if match.status in ("completed", "abandoned"):
        raise ScoringError(f"Match is {match.status}; scoring is closed")
