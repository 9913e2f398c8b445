# main.py (match scoring service)
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Literal, Optional, Union

from fastapi import FastAPI, Header, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from scoring_api import engine, reports, store
from scoring_api.config import LOG_LEVEL, validate_config
from scoring_api.engine import MatchNotFoundError, UnauthorizedScorerError
from scoring_api.stats import PlayerCareer, TeamRecord

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("scoring_api.http")

# -----------------------
# App
# -----------------------
app = FastAPI(
    title="Cricket Match Scoring API",
    version="0.1.0",
    description="Ball-by-ball scoring, innings replay, match results and career statistics for limited-overs cricket",
)


@app.on_event("startup")
def on_startup():
    validate_config()


@app.get("/health")
def health_check():
    return {"status": "ok", "time": datetime.utcnow().isoformat() + "Z"}


# -----------------------
# Helpers
# -----------------------
def _call(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Runs an engine operation and maps domain errors onto HTTP errors."""
    try:
        return fn(*args, **kwargs)
    except MatchNotFoundError as e:
        raise HTTPException(status_code=404, detail=f"Match not found: {e.args[0]}")
    except UnauthorizedScorerError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        # ScoringError and malformed numbers from the math helpers
        logger.warning("Rejected request: %s", e)
        raise HTTPException(status_code=400, detail=str(e))


class CamelModel(BaseModel):
    # clients send camelCase; snake_case is accepted too
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -----------------------
# Match lifecycle
# -----------------------
class PlayerIn(CamelModel):
    name: str
    player_id: Optional[str] = None


RosterIn = Union[str, List[Union[str, PlayerIn]]]


class CreateMatchRequest(CamelModel):
    match_name: str = Field(..., min_length=1)
    match_type: Literal["T20", "ODI", "Custom"]
    custom_overs: Optional[int] = Field(None, ge=1, le=50)
    balls_per_over: Optional[int] = Field(None, ge=1, le=10)

    team_a_name: str = Field(..., min_length=1)
    team_a_id: Optional[str] = None
    team_a_players: RosterIn = Field(default_factory=list)
    team_b_name: str = Field(..., min_length=1)
    team_b_id: Optional[str] = None
    team_b_players: RosterIn = Field(default_factory=list)

    venue: Optional[str] = None
    match_date: Optional[str] = Field(None, description="ISO date, e.g. 2026-04-12")


def _roster_in(roster: RosterIn) -> Union[str, List[Any]]:
    if isinstance(roster, str):
        return roster
    return [p.model_dump() if isinstance(p, PlayerIn) else p for p in roster]


@app.post("/api/matches", status_code=201)
def create_match(req: CreateMatchRequest, x_user_id: Optional[str] = Header(None)):
    match = _call(
        engine.new_match,
        match_name=req.match_name,
        match_type=req.match_type,
        custom_overs=req.custom_overs,
        balls_per_over=req.balls_per_over,
        team_a_name=req.team_a_name,
        team_a_id=req.team_a_id,
        team_a_players=_roster_in(req.team_a_players),
        team_b_name=req.team_b_name,
        team_b_id=req.team_b_id,
        team_b_players=_roster_in(req.team_b_players),
        venue=req.venue,
        match_date=req.match_date,
        created_by=x_user_id,
    )
    return {"message": "Match created", "match": match.to_public_dict()}


@app.get("/api/matches")
def list_matches(status: Optional[str] = None):
    matches = engine.list_matches(status)
    return {"count": len(matches), "matches": [m.to_public_dict() for m in matches]}


@app.get("/api/matches/live")
def list_live_matches():
    matches = engine.list_matches("live")
    return {"count": len(matches), "matches": [m.to_public_dict() for m in matches]}


@app.get("/api/matches/mine")
def list_my_matches(status: Optional[str] = None, x_user_id: Optional[str] = Header(None)):
    if not x_user_id:
        raise HTTPException(status_code=401, detail="X-User-Id header is required")
    matches = engine.list_matches(status, created_by=x_user_id)
    return {"count": len(matches), "matches": [m.to_public_dict() for m in matches]}


@app.get("/api/matches/{match_id}")
def get_match(match_id: str):
    return _call(engine.load_match, match_id).to_public_dict()


@app.delete("/api/matches/{match_id}")
def delete_match(match_id: str, x_user_id: Optional[str] = Header(None)):
    _call(engine.delete, match_id, x_user_id)
    return {"message": "Match deleted", "match_id": match_id}


class TossRequest(CamelModel):
    toss_winner_team: str = Field(..., description="teamA or teamB")
    decision: str = Field(..., description="bat or bowl")


@app.put("/api/matches/{match_id}/toss")
def set_toss(match_id: str, req: TossRequest, x_user_id: Optional[str] = Header(None)):
    return _call(engine.toss, match_id, x_user_id, req.toss_winner_team, req.decision)


@app.put("/api/matches/{match_id}/complete")
def complete_match(match_id: str, x_user_id: Optional[str] = Header(None)):
    return _call(engine.complete, match_id, x_user_id)


@app.put("/api/matches/{match_id}/abandon")
def abandon_match(match_id: str, x_user_id: Optional[str] = Header(None)):
    return _call(engine.abandon, match_id, x_user_id)


# -----------------------
# Scoring
# -----------------------
class BallEventIn(CamelModel):
    runs: int = Field(0, ge=0, le=10)
    extra_type: Optional[str] = Field(None, description="none / wd / nb / bye / lb (aliases accepted)")
    is_wicket: bool = False
    wicket_kind: Optional[str] = None

    striker_name: str = ""
    striker_id: Optional[str] = None
    non_striker_name: Optional[str] = None
    non_striker_id: Optional[str] = None
    bowler_name: str = ""
    bowler_id: Optional[str] = None

    wicket_player_name: Optional[str] = None
    wicket_player_id: Optional[str] = None
    fielder_name: Optional[str] = None
    commentary: Optional[str] = None


class ScoreRequest(BallEventIn):
    mode: Optional[Literal["absolute", "incremental"]] = None
    inning: Optional[int] = Field(None, ge=1, le=2)

    # absolute mode
    runs: Optional[int] = Field(None, ge=0)
    wickets: Optional[int] = Field(None, ge=0, le=10)
    overs: Optional[Union[str, float]] = Field(None, description="e.g. 12.4")
    batsman_name: Optional[str] = None
    batsman_id: Optional[str] = None
    ball_events: Optional[List[BallEventIn]] = None


@app.put("/api/matches/{match_id}/score")
def update_score(match_id: str, req: ScoreRequest, x_user_id: Optional[str] = Header(None)):
    return _call(engine.score, match_id, x_user_id, req.model_dump())


@app.post("/api/matches/{match_id}/undo")
def undo_last_ball(match_id: str, x_user_id: Optional[str] = Header(None)):
    return _call(engine.undo, match_id, x_user_id)


# -----------------------
# Read-only projections
# -----------------------
@app.get("/api/matches/{match_id}/scorecard")
def get_scorecard(match_id: str):
    return reports.scorecard(_call(engine.load_match, match_id))


@app.get("/api/matches/{match_id}/report")
def get_report(match_id: str, limit: int = 3):
    match = _call(engine.load_match, match_id)
    limit = min(max(limit, 1), 11)
    return {
        "match_id": match_id,
        "top_batters": reports.top_batters(match, limit),
        "top_bowlers": reports.top_bowlers(match, limit),
    }


@app.get("/api/matches/{match_id}/highlights")
def get_highlights(match_id: str):
    match = _call(engine.load_match, match_id)
    events = reports.highlights(match)
    return {"match_id": match_id, "count": len(events), "highlights": events}


@app.get("/api/matches/{match_id}/overs")
def get_over_summary(match_id: str, inning: Optional[int] = None):
    match = _call(engine.load_match, match_id)
    return {"match_id": match_id, "overs": reports.over_summary(match, inning)}


# -----------------------
# Career statistics
# -----------------------
@app.get("/api/players/{player_id}/stats")
def get_player_stats(player_id: str):
    doc = store.get(store.PLAYERS, player_id)
    if doc is None:
        raise HTTPException(status_code=404, detail=f"No statistics for player {player_id}")
    return PlayerCareer.from_dict(doc).to_dict()


@app.get("/api/teams/{team_id}/stats")
def get_team_stats(team_id: str):
    doc = store.get(store.TEAMS, team_id)
    if doc is None:
        raise HTTPException(status_code=404, detail=f"No statistics for team {team_id}")
    return TeamRecord.from_dict(doc).to_dict()


@app.get("/api/leaderboard/{category}")
def get_leaderboard(category: Literal["batting", "bowling", "all-rounders"], limit: int = 10):
    limit = min(max(limit, 1), 100)
    careers: List[Dict[str, Any]] = store.list_documents(store.PLAYERS)
    rows = reports.leaderboard(careers, category, limit)
    return {"category": category, "count": len(rows), "players": rows}
