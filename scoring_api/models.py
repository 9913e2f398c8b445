from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Any, ClassVar, Dict, List, Literal, Optional

from scoring_api.overs_math import balls_to_overs


class ScoringError(ValueError):
    """Raised when a scoring request is malformed or not allowed in the current match state."""
    pass


# -----------------------------
# Match lifecycle semantics
# -----------------------------
MatchStatus = Literal["scheduled", "upcoming", "live", "innings_break", "completed", "abandoned"]
ResultType = Literal["runs", "wickets", "tie", "no_result", "abandoned"]
TeamKey = Literal["teamA", "teamB"]

TEAM_KEYS = ("teamA", "teamB")
PRE_TOSS_STATUSES = ("scheduled", "upcoming")


class CompletionPhase(str, Enum):
    PENDING = "pending"
    STATS_APPLIED = "stats_applied"


def other_team(key: str) -> str:
    return "teamB" if key == "teamA" else "teamA"


class Document:
    """
    Dataclass <-> plain dict round trip for the document store.
    Subclasses list nested dataclass fields in _nested / _nested_lists.
    Unknown keys are ignored so older documents still load.
    """
    _nested: ClassVar[Dict[str, type]] = {}
    _nested_lists: ClassVar[Dict[str, type]] = {}

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]):
        data = data or {}
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                continue
            if key in cls._nested and value is not None:
                value = cls._nested[key].from_dict(value)
            elif key in cls._nested_lists:
                value = [cls._nested_lists[key].from_dict(v) for v in (value or [])]
            kwargs[key] = value
        return cls(**kwargs)


# -----------------------------
# Teams
# -----------------------------
@dataclass
class PlayerLink(Document):
    name: str = ""
    player_id: Optional[str] = None


@dataclass
class TeamSide(Document):
    name: str = ""
    team_id: Optional[str] = None
    players: List[PlayerLink] = field(default_factory=list)

    # mirrored from the innings this side batted
    score: int = 0
    wickets: int = 0
    overs: str = "0.0"
    balls_played: int = 0

    _nested_lists = {"players": PlayerLink}

    def reset_score(self) -> None:
        self.score = 0
        self.wickets = 0
        self.overs = "0.0"
        self.balls_played = 0


@dataclass
class Toss(Document):
    winner: str = "teamA"
    decision: Literal["bat", "bowl"] = "bat"


# -----------------------------
# Innings
# -----------------------------
@dataclass
class Extras(Document):
    total: int = 0
    wides: int = 0
    no_balls: int = 0
    byes: int = 0
    leg_byes: int = 0
    penalties: int = 0


@dataclass
class Partnership(Document):
    runs: int = 0
    balls: int = 0
    batsman1: Optional[str] = None
    batsman2: Optional[str] = None


@dataclass
class Innings(Document):
    batting_team: Optional[str] = None
    bowling_team: Optional[str] = None

    score: int = 0
    wickets: int = 0
    overs: int = 0          # completed overs
    balls: int = 0          # legal balls in the current over
    is_completed: bool = False

    extras: Extras = field(default_factory=Extras)
    run_rate: float = 0.0
    target: int = 0         # second innings only
    required_run_rate: float = 0.0

    # runs conceded by the bowler in the over in progress (maidens)
    current_over_runs: int = 0
    partnership: Partnership = field(default_factory=Partnership)

    _nested = {"extras": Extras, "partnership": Partnership}

    def legal_balls(self, balls_per_over: int) -> int:
        return self.overs * balls_per_over + self.balls

    def overs_display(self, balls_per_over: int) -> str:
        return balls_to_overs(self.legal_balls(balls_per_over), balls_per_over)


# -----------------------------
# Ball-by-ball log
# -----------------------------
@dataclass
class WicketDetail(Document):
    kind: str = "bowled"
    player_out_name: Optional[str] = None
    player_out_id: Optional[str] = None
    fielder_name: Optional[str] = None


@dataclass
class BallEvent(Document):
    ball_number: int = 0
    inning: int = 1
    over: int = 0
    ball_in_over: int = 0
    is_legal: bool = True

    batsman_name: str = ""
    batsman_id: Optional[str] = None
    non_striker_name: Optional[str] = None
    non_striker_id: Optional[str] = None
    bowler_name: str = ""
    bowler_id: Optional[str] = None

    runs: int = 0            # as submitted
    total_runs: int = 0      # after classification
    batsman_runs: int = 0
    extra_type: str = "none"
    extra_runs: int = 0

    is_wicket: bool = False
    wicket: Optional[WicketDetail] = None
    commentary: Optional[str] = None

    _nested = {"wicket": WicketDetail}


# -----------------------------
# Per-innings player figures
# -----------------------------
@dataclass
class Dismissal(Document):
    kind: str = "bowled"
    bowler_name: Optional[str] = None
    fielder_name: Optional[str] = None
    over_number: int = 0


@dataclass
class BatsmanStat(Document):
    name: str = ""
    player_id: Optional[str] = None
    inning: int = 1

    runs: int = 0
    balls_faced: int = 0
    fours: int = 0
    sixes: int = 0
    strike_rate: float = 0.0

    is_out: bool = False
    dismissal: Optional[Dismissal] = None

    dot_balls: int = 0
    singles: int = 0
    twos: int = 0
    threes: int = 0

    _nested = {"dismissal": Dismissal}


@dataclass
class BowlerStat(Document):
    name: str = ""
    player_id: Optional[str] = None
    inning: int = 1

    overs: float = 0.0       # notation, e.g. 3.2
    balls: int = 0           # legal balls
    maidens: int = 0
    runs: int = 0
    wickets: int = 0
    economy: float = 0.0

    wides: int = 0
    no_balls: int = 0
    dot_balls: int = 0
    fours: int = 0
    sixes: int = 0


@dataclass
class FallOfWicket(Document):
    wicket_number: int = 0
    inning: int = 1
    player_out: str = ""
    player_out_id: Optional[str] = None
    score: int = 0
    overs: str = "0.0"
    partnership_runs: int = 0
    dismissal_type: str = "bowled"


# -----------------------------
# Match document
# -----------------------------
@dataclass
class Match(Document):
    match_id: str
    match_name: str = ""
    match_type: str = "T20"
    total_overs: int = 20
    balls_per_over: int = 6

    team_a: TeamSide = field(default_factory=TeamSide)
    team_b: TeamSide = field(default_factory=TeamSide)

    venue: Optional[str] = None
    match_date: Optional[str] = None
    created_by: Optional[str] = None

    status: MatchStatus = "scheduled"
    winner: Optional[str] = None
    winning_team: Optional[str] = None
    result_type: Optional[ResultType] = None
    result_margin: Optional[int] = None

    toss: Optional[Toss] = None

    current_inning: int = 1
    current_striker: Optional[str] = None
    current_striker_id: Optional[str] = None
    current_non_striker: Optional[str] = None
    current_non_striker_id: Optional[str] = None
    current_bowler: Optional[str] = None
    current_bowler_id: Optional[str] = None

    first_innings: Innings = field(default_factory=Innings)
    second_innings: Innings = field(default_factory=Innings)

    ball_by_ball: List[BallEvent] = field(default_factory=list)
    batsman_stats: List[BatsmanStat] = field(default_factory=list)
    bowler_stats: List[BowlerStat] = field(default_factory=list)
    fall_of_wickets: List[FallOfWicket] = field(default_factory=list)

    completion_phase: CompletionPhase = CompletionPhase.PENDING

    # pre-ball snapshots for live undo, newest last
    undo_log: List[Dict[str, Any]] = field(default_factory=list)

    _nested = {
        "team_a": TeamSide,
        "team_b": TeamSide,
        "toss": Toss,
        "first_innings": Innings,
        "second_innings": Innings,
    }
    _nested_lists = {
        "ball_by_ball": BallEvent,
        "batsman_stats": BatsmanStat,
        "bowler_stats": BowlerStat,
        "fall_of_wickets": FallOfWicket,
    }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Match":
        data = dict(data or {})
        phase = data.get("completion_phase")
        if phase is None and data.get("stats_processed"):
            # documents written before the phase enum existed
            phase = CompletionPhase.STATS_APPLIED
        data["completion_phase"] = CompletionPhase(phase or CompletionPhase.PENDING)
        return super().from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["completion_phase"] = self.completion_phase.value
        return out

    def to_public_dict(self) -> Dict[str, Any]:
        """Response shape: the stored document minus undo bookkeeping."""
        out = self.to_dict()
        out["undo_depth"] = len(out.pop("undo_log"))
        return out

    # -------- helpers --------
    @property
    def max_balls(self) -> int:
        return self.total_overs * self.balls_per_over

    @property
    def stats_applied(self) -> bool:
        return self.completion_phase is CompletionPhase.STATS_APPLIED

    def side(self, key: Optional[str]) -> TeamSide:
        if key == "teamA":
            return self.team_a
        if key == "teamB":
            return self.team_b
        raise ScoringError(f"Unknown team key: {key}")

    def innings_for(self, inning: int) -> Innings:
        if inning == 1:
            return self.first_innings
        if inning == 2:
            return self.second_innings
        raise ScoringError(f"Invalid inning: {inning}")

    def balls_for(self, inning: int) -> List[BallEvent]:
        return [b for b in self.ball_by_ball if b.inning == inning]

    def next_ball_number(self) -> int:
        if not self.ball_by_ball:
            return 0
        return max(b.ball_number for b in self.ball_by_ball) + 1

    def set_crease(
        self,
        striker: Optional[str],
        striker_id: Optional[str],
        non_striker: Optional[str],
        non_striker_id: Optional[str],
        bowler: Optional[str],
        bowler_id: Optional[str],
    ) -> None:
        self.current_striker = striker
        self.current_striker_id = striker_id
        self.current_non_striker = non_striker
        self.current_non_striker_id = non_striker_id
        self.current_bowler = bowler
        self.current_bowler_id = bowler_id
