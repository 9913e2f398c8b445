# scoring_api/classifier.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Literal, Mapping, Optional

from scoring_api.models import ScoringError

ExtraType = Literal["none", "wide", "noball", "bye", "legbye"]
WicketKind = Literal[
    "bowled",
    "caught",
    "lbw",
    "run_out",
    "stumped",
    "hit_wicket",
    "caught_and_bowled",
    "retired_hurt",
    "timed_out",
    "obstructing_field",
]

DEFAULT_WICKET_KIND: WicketKind = "bowled"

# Dismissals the bowler does not get credit for
NON_BOWLER_DISMISSALS = frozenset({"run_out", "retired_hurt", "timed_out", "obstructing_field"})

# Keys are compacted tokens: lowercase, no spaces / hyphens / underscores.
_EXTRA_ALIASES: Dict[str, ExtraType] = {
    "": "none",
    "none": "none",
    "null": "none",
    "wd": "wide",
    "wide": "wide",
    "wides": "wide",
    "nb": "noball",
    "noball": "noball",
    "noballs": "noball",
    "bye": "bye",
    "byes": "bye",
    "lb": "legbye",
    "legbye": "legbye",
    "legbyes": "legbye",
}

_WICKET_ALIASES: Dict[str, WicketKind] = {
    "bowled": "bowled",
    "caught": "caught",
    "ct": "caught",
    "lbw": "lbw",
    "runout": "run_out",
    "ro": "run_out",
    "stumped": "stumped",
    "st": "stumped",
    "hitwicket": "hit_wicket",
    "hw": "hit_wicket",
    "caughtandbowled": "caught_and_bowled",
    "c&b": "caught_and_bowled",
    "candb": "caught_and_bowled",
    "retiredhurt": "retired_hurt",
    "retired": "retired_hurt",
    "timedout": "timed_out",
    "obstructingfield": "obstructing_field",
    "obstructingthefield": "obstructing_field",
}

_SEPARATORS = re.compile(r"[\s_\-]+")


def _compact(token: Any) -> str:
    if token is None:
        return ""
    return _SEPARATORS.sub("", str(token).strip().lower())


def normalize_extra_type(token: Any) -> ExtraType:
    """
    "wd" -> "wide", "NB" -> "noball", "leg-bye" -> "legbye".
    Anything unrecognised is treated as a normal delivery.
    """
    return _EXTRA_ALIASES.get(_compact(token), "none")


def normalize_wicket_kind(token: Any) -> WicketKind:
    return _WICKET_ALIASES.get(_compact(token), DEFAULT_WICKET_KIND)


# Raw request keys (camelCase, as clients send them) -> RawBall attribute
_RAW_KEYS = {
    "runs": "runs",
    "extraType": "extra_type",
    "isWicket": "is_wicket",
    "wicketKind": "wicket_kind",
    "strikerName": "striker_name",
    "strikerId": "striker_id",
    "nonStrikerName": "non_striker_name",
    "nonStrikerId": "non_striker_id",
    "bowlerName": "bowler_name",
    "bowlerId": "bowler_id",
    "wicketPlayerName": "wicket_player_name",
    "wicketPlayerId": "wicket_player_id",
    "fielderName": "fielder_name",
    "commentary": "commentary",
}


@dataclass
class RawBall:
    """One delivery as the scorer described it, before any business rules."""
    runs: int = 0
    extra_type: Optional[str] = None
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

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RawBall":
        """Accepts either camelCase request keys or snake_case attribute names."""
        kwargs: Dict[str, Any] = {}
        attrs = set(_RAW_KEYS.values())
        for key, value in data.items():
            attr = _RAW_KEYS.get(key, key)
            if attr in attrs and value is not None:
                kwargs[attr] = value
        return cls(**kwargs)


@dataclass(frozen=True)
class Outcome:
    extra_type: ExtraType
    total_runs: int
    batter_runs: int
    extra_runs: int
    is_legal: bool
    bowler_runs: int
    is_wicket: bool
    wicket_kind: Optional[WicketKind]
    bowler_wicket: bool

    @property
    def runs_completed(self) -> int:
        """Runs the batters actually ran or hit; the mandatory wide/no-ball run is excluded."""
        if self.extra_type in ("wide", "noball"):
            return self.total_runs - 1
        return self.total_runs

    @property
    def rotates_strike(self) -> bool:
        return self.runs_completed % 2 == 1

    @property
    def off_the_bat(self) -> bool:
        """Legal delivery with no extras: counts toward dots/singles/boundaries."""
        return self.is_legal and self.extra_type == "none"


def _coerce_runs(value: Any) -> int:
    if isinstance(value, bool):
        raise ScoringError(f"Invalid runs value: {value!r}")
    try:
        runs = int(value)
    except (TypeError, ValueError) as e:
        raise ScoringError(f"Invalid runs value: {value!r}") from e
    if runs != value and not isinstance(value, str):
        raise ScoringError(f"Runs must be a whole number: {value!r}")
    if runs < 0:
        raise ScoringError(f"Runs cannot be negative: {value!r}")
    return runs


def classify(raw: RawBall) -> Outcome:
    """
    Turns one raw ball description into a normalized outcome.

    Rules:
    - wide / no-ball always cost at least one run
    - batter gets all runs on a normal ball, all but one on a no-ball, none otherwise
    - wide / no-ball are the only deliveries that do not count toward the over
    - byes / leg-byes are not charged to the bowler
    - run-outs, retirements, timed-out and obstruction are not bowler wickets
    """
    extra_type = normalize_extra_type(raw.extra_type)
    total = _coerce_runs(raw.runs)

    if extra_type in ("wide", "noball"):
        total = max(total, 1)

    if extra_type == "none":
        batter_runs = total
    elif extra_type == "noball":
        batter_runs = total - 1
    else:
        batter_runs = 0

    is_wicket = bool(raw.is_wicket)
    wicket_kind = normalize_wicket_kind(raw.wicket_kind) if is_wicket else None

    return Outcome(
        extra_type=extra_type,
        total_runs=total,
        batter_runs=batter_runs,
        extra_runs=total - batter_runs,
        is_legal=extra_type not in ("wide", "noball"),
        bowler_runs=0 if extra_type in ("bye", "legbye") else total,
        is_wicket=is_wicket,
        wicket_kind=wicket_kind,
        bowler_wicket=is_wicket and wicket_kind not in NON_BOWLER_DISMISSALS,
    )
