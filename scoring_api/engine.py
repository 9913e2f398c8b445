# scoring_api/engine.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from scoring_api import store
from scoring_api.classifier import RawBall
from scoring_api.config import REQUIRE_SCORER_ID
from scoring_api.live import apply_live_ball, undo_last_ball
from scoring_api.models import Match, ScoringError
from scoring_api.replay import overwrite_innings, replay_innings
from scoring_api.state_machine import (
    Transition,
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
from scoring_api.stats import apply_match_stats

logger = logging.getLogger(__name__)


class MatchNotFoundError(KeyError):
    """Raised when no match document exists for the given id."""
    pass


class UnauthorizedScorerError(PermissionError):
    """Raised when someone other than the match creator tries to update it."""
    pass


# -----------------------------
# Load / save
# -----------------------------
def load_match(match_id: str) -> Match:
    doc = store.get(store.MATCHES, match_id)
    if doc is None:
        raise MatchNotFoundError(match_id)
    return Match.from_dict(doc)


def save_match(match: Match) -> None:
    store.put(store.MATCHES, match.match_id, match.to_dict())


def check_scorer(match: Match, user_id: Optional[str]) -> None:
    if not REQUIRE_SCORER_ID or not match.created_by:
        return
    if str(user_id or "") != str(match.created_by):
        logger.warning("Rejected update to match %s from user %r", match.match_id, user_id)
        raise UnauthorizedScorerError("Only the match creator can update this match")


def _aggregate(match: Match) -> None:
    apply_match_stats(match)


def _response(match: Match, transition: Optional[Transition] = None, **extra: Any) -> Dict[str, Any]:
    t = transition or Transition()
    out: Dict[str, Any] = {
        "match": match.to_public_dict(),
        "inningsComplete": t.innings_complete,
        "matchComplete": t.match_complete,
        "overComplete": t.over_complete,
        "message": t.message,
    }
    out.update(extra)
    return out


# -----------------------------
# Operations
# -----------------------------
def new_match(**fields: Any) -> Match:
    match = create_match(match_id=store.new_id(), **fields)
    save_match(match)
    return match


def list_matches(status: Optional[str] = None, created_by: Optional[str] = None) -> List[Match]:
    """Newest match date first; optionally only one status or one scorer's matches."""
    matches = [Match.from_dict(d) for d in store.list_documents(store.MATCHES)]
    if status is not None:
        matches = [m for m in matches if m.status == status]
    if created_by is not None:
        matches = [m for m in matches if str(m.created_by or "") == str(created_by)]
    return sorted(matches, key=lambda m: (m.match_date or "", m.match_id), reverse=True)


def toss(match_id: str, user_id: Optional[str], toss_winner_team: str, decision: str) -> Dict[str, Any]:
    match = load_match(match_id)
    check_scorer(match, user_id)
    set_toss(match, toss_winner_team, decision)
    save_match(match)
    return _response(match, message="Toss recorded")


# Crease roles: (match attribute, payload name keys, payload id keys)
_CREASE_ROLES = (
    ("current_striker", ("striker_name", "batsman_name"), ("striker_id", "batsman_id")),
    ("current_non_striker", ("non_striker_name",), ("non_striker_id",)),
    ("current_bowler", ("bowler_name",), ("bowler_id",)),
)


def _first(payload: Mapping[str, Any], keys) -> Optional[str]:
    return next((payload[k] for k in keys if payload.get(k)), None)


def _update_crease(match: Match, payload: Mapping[str, Any]) -> None:
    """Replaces only the roles the payload names; the rest stay as stored."""
    for attr, name_keys, id_keys in _CREASE_ROLES:
        name = _first(payload, name_keys)
        if not name:
            continue
        setattr(match, attr, name)
        setattr(match, f"{attr}_id", _first(payload, id_keys))


def _score_absolute(match: Match, payload: Mapping[str, Any]) -> Match:
    inning = int(payload.get("inning") or match.current_inning)
    if inning not in (1, 2):
        raise ScoringError(f"Invalid inning: {inning}")
    if inning == 1 and match.current_inning == 2:
        reopen_first_innings(match)
    elif inning != match.current_inning:
        raise ScoringError("Only the current innings can be rescored")

    if match.status == "innings_break":
        start_second_innings(match)

    balls = payload.get("ball_events")
    if balls is not None:
        match = replay_innings(match, inning, balls)
    else:
        overwrite_innings(
            match,
            inning,
            runs=payload.get("runs"),
            wickets=payload.get("wickets"),
            overs=payload.get("overs"),
        )

    _update_crease(match, payload)
    return match


def score(match_id: str, user_id: Optional[str], payload: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Scoring entry point.

    - mode="absolute": full ball log replay (ball_events given) or a direct
      score/wickets/overs overwrite
    - otherwise: exactly one live delivery
    The document is only saved when the whole update succeeded.
    """
    match = load_match(match_id)
    check_scorer(match, user_id)
    ensure_scoring_open(match)

    over_complete = False
    if payload.get("mode") == "absolute":
        match = _score_absolute(match, payload)
    else:
        result = apply_live_ball(match, RawBall.from_mapping(payload))
        over_complete = result.over_complete

    transition = evaluate_progress(match, on_complete=_aggregate)
    transition.over_complete = over_complete
    if over_complete and not transition.message:
        completed = match.innings_for(match.current_inning).overs
        transition.message = f"Over {completed} complete. Change bowler."

    save_match(match)
    return _response(match, transition)


def undo(match_id: str, user_id: Optional[str]) -> Dict[str, Any]:
    match = load_match(match_id)
    check_scorer(match, user_id)
    removed = undo_last_ball(match)
    save_match(match)
    return _response(match, message="Last ball removed", removedBall=removed.to_dict())


def complete(match_id: str, user_id: Optional[str]) -> Dict[str, Any]:
    match = load_match(match_id)
    check_scorer(match, user_id)
    transition = complete_match(match, on_complete=_aggregate)
    save_match(match)
    return _response(match, transition)


def abandon(match_id: str, user_id: Optional[str]) -> Dict[str, Any]:
    match = load_match(match_id)
    check_scorer(match, user_id)
    transition = abandon_match(match)
    save_match(match)
    return _response(match, transition)


def delete(match_id: str, user_id: Optional[str]) -> None:
    match = load_match(match_id)
    check_scorer(match, user_id)
    ensure_deletable(match)
    store.delete(store.MATCHES, match_id)
    logger.info("Deleted match %s", match_id)
