# scoring_api/stats.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from scoring_api import store
from scoring_api.config import DEFAULT_BALLS_PER_OVER, TRACKED_FORMATS
from scoring_api.identity import PlayerIndex
from scoring_api.models import (
    TEAM_KEYS,
    BatsmanStat,
    BowlerStat,
    CompletionPhase,
    Document,
    Match,
    PlayerLink,
    ScoringError,
    other_team,
)
from scoring_api.overs_math import (
    TeamAggregate,
    apply_match,
    average,
    balls_to_overs_decimal,
    bowling_strike_rate,
    economy,
    nrr,
    strike_rate,
)

logger = logging.getLogger(__name__)


# -----------------------------
# Career documents
# -----------------------------
@dataclass
class BestFigures(Document):
    wickets: int = 0
    runs: int = 0


@dataclass
class BattingCareer(Document):
    innings: int = 0
    runs: int = 0
    balls_faced: int = 0
    highest_score: int = 0
    not_outs: int = 0
    average: float = 0.0
    strike_rate: float = 0.0
    centuries: int = 0
    half_centuries: int = 0
    fours: int = 0
    sixes: int = 0
    ducks: int = 0


@dataclass
class BowlingCareer(Document):
    innings: int = 0
    overs: float = 0.0
    balls: int = 0
    maidens: int = 0
    runs: int = 0
    wickets: int = 0
    best_figures: Optional[BestFigures] = None
    average: float = 0.0
    economy: float = 0.0
    strike_rate: float = 0.0
    five_wickets: int = 0

    _nested = {"best_figures": BestFigures}


@dataclass
class FieldingCareer(Document):
    catches: int = 0
    run_outs: int = 0
    stumpings: int = 0


@dataclass
class FormatSummary(Document):
    matches: int = 0
    runs: int = 0
    balls_faced: int = 0
    dismissals: int = 0
    wickets: int = 0
    average: float = 0.0
    strike_rate: float = 0.0


@dataclass
class MatchHistoryEntry(Document):
    match_id: str = ""
    match_name: str = ""
    match_type: str = ""
    match_date: Optional[str] = None
    team: Optional[str] = None
    result: str = "no_result"
    runs: int = 0
    wickets: int = 0


@dataclass
class PlayerCareer(Document):
    player_id: str = ""
    name: str = ""

    matches_played: int = 0
    wins: int = 0
    losses: int = 0
    ties: int = 0

    batting: BattingCareer = field(default_factory=BattingCareer)
    bowling: BowlingCareer = field(default_factory=BowlingCareer)
    fielding: FieldingCareer = field(default_factory=FieldingCareer)
    format_stats: Dict[str, FormatSummary] = field(default_factory=dict)
    match_history: List[MatchHistoryEntry] = field(default_factory=list)

    _nested = {"batting": BattingCareer, "bowling": BowlingCareer, "fielding": FieldingCareer}
    _nested_lists = {"match_history": MatchHistoryEntry}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PlayerCareer":
        data = dict(data or {})
        formats = data.pop("format_stats", None) or {}
        career = super().from_dict(data)
        career.format_stats = {k: FormatSummary.from_dict(v) for k, v in formats.items()}
        return career


@dataclass
class TeamRecord(Document):
    team_id: str = ""
    name: str = ""
    matches_played: int = 0
    wins: int = 0
    losses: int = 0
    draws: int = 0

    runs_for: int = 0
    balls_for: int = 0
    runs_against: int = 0
    balls_against: int = 0
    nrr: float = 0.0


@dataclass
class StatsSummary:
    players: List[str] = field(default_factory=list)
    teams: List[str] = field(default_factory=list)


# -----------------------------
# Folding helpers
# -----------------------------
def better_figures(wickets: int, runs: int, best: Optional[BestFigures]) -> bool:
    """More wickets wins; equal wickets, fewer runs conceded wins."""
    if best is None:
        return True
    if wickets != best.wickets:
        return wickets > best.wickets
    return runs < best.runs


def batting_involved(row: BatsmanStat) -> bool:
    return row.balls_faced > 0 or row.runs > 0 or row.is_out


def bowling_involved(row: BowlerStat) -> bool:
    return row.balls > 0 or row.runs > 0 or row.wickets > 0


def fold_batting(car: BattingCareer, row: BatsmanStat) -> None:
    car.innings += 1
    car.runs += row.runs
    car.balls_faced += row.balls_faced
    car.fours += row.fours
    car.sixes += row.sixes
    car.highest_score = max(car.highest_score, row.runs)

    if not row.is_out:
        car.not_outs += 1
    elif row.runs == 0:
        car.ducks += 1

    if row.runs >= 100:
        car.centuries += 1
    elif row.runs >= 50:
        car.half_centuries += 1

    car.average = average(car.runs, car.innings - car.not_outs)
    car.strike_rate = strike_rate(car.runs, car.balls_faced)


def fold_bowling(car: BowlingCareer, row: BowlerStat, balls_per_over: int = DEFAULT_BALLS_PER_OVER) -> None:
    """Career overs and economy use the balls per over of the match being folded."""
    car.innings += 1
    car.balls += row.balls
    car.runs += row.runs
    car.wickets += row.wickets
    car.maidens += row.maidens

    if better_figures(row.wickets, row.runs, car.best_figures):
        car.best_figures = BestFigures(wickets=row.wickets, runs=row.runs)
    if row.wickets >= 5:
        car.five_wickets += 1

    car.overs = balls_to_overs_decimal(car.balls, balls_per_over)
    car.economy = economy(car.runs, car.balls, balls_per_over)
    car.average = average(car.runs, car.wickets)
    car.strike_rate = bowling_strike_rate(car.balls, car.wickets)


# -----------------------------
# Participants
# -----------------------------
@dataclass
class _Participant:
    player_id: str
    name: str
    team: Optional[str]
    batting: List[BatsmanStat] = field(default_factory=list)
    bowling: List[BowlerStat] = field(default_factory=list)
    catches: int = 0
    run_outs: int = 0
    stumpings: int = 0


class _Participants:
    """
    Every identifiable player in the match, keyed by player id.
    Rows without an id are joined to the roster by name.
    """

    def __init__(self, match: Match) -> None:
        self.match = match
        self.by_id: Dict[str, _Participant] = {}
        self._rosters: Dict[str, PlayerIndex[PlayerLink]] = {
            key: PlayerIndex(match.side(key).players) for key in TEAM_KEYS
        }
        for key in TEAM_KEYS:
            for link in match.side(key).players:
                if link.player_id:
                    self._add(str(link.player_id), link.name, key)

    def _add(self, player_id: str, name: str, team: Optional[str]) -> _Participant:
        p = self.by_id.get(player_id)
        if p is None:
            p = _Participant(player_id=player_id, name=name, team=team)
            self.by_id[player_id] = p
        elif p.team is None:
            p.team = team
        return p

    def resolve(self, name: Optional[str], player_id: Optional[str], team: Optional[str]) -> Optional[_Participant]:
        if player_id:
            return self._add(str(player_id), name or "", team)
        for key in (team, other_team(team)) if team else TEAM_KEYS:
            link = self._rosters[key].find(name)
            if link is not None and link.player_id:
                return self._add(str(link.player_id), link.name, key)
        return None

    def collect(self) -> List[_Participant]:
        m = self.match
        for row in m.batsman_stats:
            p = self.resolve(row.name, row.player_id, m.innings_for(row.inning).batting_team)
            if p is not None:
                p.batting.append(row)

        for row in m.bowler_stats:
            p = self.resolve(row.name, row.player_id, m.innings_for(row.inning).bowling_team)
            if p is not None:
                p.bowling.append(row)

        for ev in m.ball_by_ball:
            if not ev.is_wicket or ev.wicket is None:
                continue
            fielding_team = m.innings_for(ev.inning).bowling_team
            kind = ev.wicket.kind
            if kind == "caught_and_bowled":
                p = self.resolve(ev.bowler_name, ev.bowler_id, fielding_team)
            elif kind in ("caught", "stumped", "run_out") and ev.wicket.fielder_name:
                p = self.resolve(ev.wicket.fielder_name, None, fielding_team)
            else:
                continue
            if p is None:
                continue
            if kind in ("caught", "caught_and_bowled"):
                p.catches += 1
            elif kind == "stumped":
                p.stumpings += 1
            else:
                p.run_outs += 1

        return list(self.by_id.values())


def _result_for(match: Match, team: Optional[str]) -> str:
    if match.result_type == "tie":
        return "tied"
    if match.winning_team is None or team is None:
        return "no_result"
    return "won" if team == match.winning_team else "lost"


def _fold_player(match: Match, p: _Participant) -> PlayerCareer:
    career = PlayerCareer.from_dict(store.get(store.PLAYERS, p.player_id) or {"player_id": p.player_id})
    career.name = career.name or p.name

    career.matches_played += 1
    result = _result_for(match, p.team)
    if result == "won":
        career.wins += 1
    elif result == "lost":
        career.losses += 1
    elif result == "tied":
        career.ties += 1

    runs = balls = outs = wickets = 0
    for row in p.batting:
        if batting_involved(row):
            fold_batting(career.batting, row)
            runs += row.runs
            balls += row.balls_faced
            outs += 1 if row.is_out else 0
    for row in p.bowling:
        if bowling_involved(row):
            fold_bowling(career.bowling, row, match.balls_per_over)
            wickets += row.wickets

    career.fielding.catches += p.catches
    career.fielding.run_outs += p.run_outs
    career.fielding.stumpings += p.stumpings

    if match.match_type in TRACKED_FORMATS:
        fs = career.format_stats.setdefault(match.match_type, FormatSummary())
        fs.matches += 1
        fs.runs += runs
        fs.balls_faced += balls
        fs.dismissals += outs
        fs.wickets += wickets
        fs.average = average(fs.runs, fs.dismissals)
        fs.strike_rate = strike_rate(fs.runs, fs.balls_faced)

    if not any(h.match_id == match.match_id for h in career.match_history):
        career.match_history.append(
            MatchHistoryEntry(
                match_id=match.match_id,
                match_name=match.match_name,
                match_type=match.match_type,
                match_date=match.match_date,
                team=match.side(p.team).name if p.team else None,
                result=result,
                runs=runs,
                wickets=wickets,
            )
        )

    store.put(store.PLAYERS, p.player_id, career.to_dict())
    return career


def _fold_teams(match: Match) -> List[str]:
    first = match.first_innings
    second = match.second_innings
    if not first.batting_team or not second.batting_team:
        return []

    bpo = match.balls_per_over
    records: Dict[str, TeamRecord] = {}
    aggs: Dict[str, TeamAggregate] = {}
    for key in TEAM_KEYS:
        side = match.side(key)
        if side.team_id:
            rec = TeamRecord.from_dict(store.get(store.TEAMS, side.team_id) or {"team_id": side.team_id})
            rec.name = rec.name or side.name
            records[key] = rec
            aggs[key] = TeamAggregate(rec.runs_for, rec.balls_for, rec.runs_against, rec.balls_against)
        else:
            aggs[key] = TeamAggregate()

    apply_match(
        aggs[first.batting_team],
        aggs[second.batting_team],
        first_runs=first.score,
        first_balls=first.legal_balls(bpo),
        second_runs=second.score,
        second_balls=second.legal_balls(bpo),
        max_balls=match.max_balls,
        first_all_out=first.wickets >= 10,
        second_all_out=second.wickets >= 10,
    )

    for key, rec in records.items():
        rec.matches_played += 1
        result = _result_for(match, key)
        if result == "won":
            rec.wins += 1
        elif result == "lost":
            rec.losses += 1
        elif result == "tied":
            rec.draws += 1

        agg = aggs[key]
        rec.runs_for, rec.balls_for = agg.runs_for, agg.balls_for
        rec.runs_against, rec.balls_against = agg.runs_against, agg.balls_against
        rec.nrr = nrr(agg, bpo)
        store.put(store.TEAMS, rec.team_id, rec.to_dict())

    return [rec.team_id for rec in records.values()]


def apply_match_stats(match: Match) -> Optional[StatsSummary]:
    """
    Folds a completed match into career records, once.

    Guarded by the match's completion phase: a second call is a no-op.
    Player and team documents are written one by one; there is no
    transaction spanning them.
    """
    if match.stats_applied:
        logger.info("Stats for match %s already applied; skipping", match.match_id)
        return None
    if match.status != "completed":
        raise ScoringError(f"Cannot aggregate stats for a match in status '{match.status}'")

    summary = StatsSummary()
    for p in _Participants(match).collect():
        _fold_player(match, p)
        summary.players.append(p.player_id)
    summary.teams = _fold_teams(match)

    match.completion_phase = CompletionPhase.STATS_APPLIED
    logger.info(
        "Applied stats for match %s: %d players, %d teams",
        match.match_id, len(summary.players), len(summary.teams),
    )
    return summary
