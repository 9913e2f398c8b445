# scoring_api/reports.py
from __future__ import annotations

import json
from typing import Any, Dict, List, Literal, Optional

import pandas as pd

from scoring_api.models import Match

LeaderboardCategory = Literal["batting", "bowling", "all-rounders"]

# One wicket is worth this many runs in the all-rounder ranking
ALL_ROUNDER_WICKET_WEIGHT = 20

# Career leaderboard sort keys: primary desc, tie-break as listed
_LEADERBOARD_SORT = {
    "batting": (["runs", "strike_rate"], [False, False]),
    "bowling": (["wickets", "economy"], [False, True]),
    "all-rounders": (["points", "runs"], [False, False]),
}

_LEADERBOARD_COLUMNS = {
    "batting": [
        "innings", "runs", "balls_faced", "highest_score", "not_outs", "average",
        "strike_rate", "fours", "sixes", "half_centuries", "centuries",
    ],
    "bowling": [
        "innings", "overs", "balls", "maidens", "runs", "wickets",
        "economy", "average", "strike_rate", "five_wickets",
    ],
}


def _innings_block(match: Match, inning: int) -> Dict[str, Any]:
    inn = match.innings_for(inning)
    bpo = match.balls_per_over
    return {
        "inning": inning,
        "batting_team": match.side(inn.batting_team).name if inn.batting_team else None,
        "bowling_team": match.side(inn.bowling_team).name if inn.bowling_team else None,
        "score": inn.score,
        "wickets": inn.wickets,
        "overs": inn.overs_display(bpo),
        "run_rate": inn.run_rate,
        "target": inn.target if inning == 2 else None,
        "required_run_rate": inn.required_run_rate if inning == 2 else None,
        "extras": inn.extras.to_dict(),
        "batting": [r.to_dict() for r in match.batsman_stats if r.inning == inning],
        "bowling": [r.to_dict() for r in match.bowler_stats if r.inning == inning],
        "fall_of_wickets": [f.to_dict() for f in match.fall_of_wickets if f.inning == inning],
    }


def scorecard(match: Match) -> Dict[str, Any]:
    innings = [_innings_block(match, 1)]
    if match.current_inning == 2 or match.second_innings.is_completed:
        innings.append(_innings_block(match, 2))
    return {
        "match_id": match.match_id,
        "match_name": match.match_name,
        "status": match.status,
        "winner": match.winner,
        "result_type": match.result_type,
        "result_margin": match.result_margin,
        "innings": innings,
    }


def top_batters(match: Match, limit: int = 3) -> List[Dict[str, Any]]:
    """Most runs first; fewer balls faced breaks ties."""
    rows = sorted(match.batsman_stats, key=lambda r: (-r.runs, r.balls_faced, r.name.lower()))
    return [
        {
            "name": r.name,
            "player_id": r.player_id,
            "inning": r.inning,
            "runs": r.runs,
            "balls_faced": r.balls_faced,
            "fours": r.fours,
            "sixes": r.sixes,
            "strike_rate": r.strike_rate,
            "is_out": r.is_out,
        }
        for r in rows[:limit]
    ]


def top_bowlers(match: Match, limit: int = 3) -> List[Dict[str, Any]]:
    """Most wickets first; fewer runs conceded breaks ties."""
    rows = sorted(match.bowler_stats, key=lambda r: (-r.wickets, r.runs, r.name.lower()))
    return [
        {
            "name": r.name,
            "player_id": r.player_id,
            "inning": r.inning,
            "overs": r.overs,
            "maidens": r.maidens,
            "runs": r.runs,
            "wickets": r.wickets,
            "economy": r.economy,
        }
        for r in rows[:limit]
    ]


def highlights(match: Match) -> List[Dict[str, Any]]:
    """Boundaries and wickets, in the order they happened."""
    out: List[Dict[str, Any]] = []
    for b in sorted(match.ball_by_ball, key=lambda e: e.ball_number):
        if b.is_wicket:
            label = "WICKET"
        elif b.batsman_runs == 6:
            label = "SIX"
        elif b.batsman_runs == 4:
            label = "FOUR"
        else:
            continue
        out.append({
            "label": label,
            "ball_number": b.ball_number,
            "inning": b.inning,
            "over": f"{b.over}.{b.ball_in_over + 1}",
            "batsman": b.batsman_name,
            "bowler": b.bowler_name,
            "runs": b.total_runs,
            "wicket": b.wicket.to_dict() if b.wicket else None,
            "commentary": b.commentary,
        })
    return out


def over_summary(match: Match, inning: Optional[int] = None) -> List[Dict[str, Any]]:
    """Runs, wickets and extras per over (Manhattan chart data)."""
    events = [b.to_dict() for b in match.ball_by_ball if inning is None or b.inning == inning]
    if not events:
        return []

    df = pd.DataFrame(events)
    df["is_wicket"] = df["is_wicket"].astype(int)
    grouped = (
        df.groupby(["inning", "over"], sort=True)
        .agg(
            runs=("total_runs", "sum"),
            wickets=("is_wicket", "sum"),
            extras=("extra_runs", "sum"),
            bowler=("bowler_name", "last"),
        )
        .reset_index()
    )
    grouped["cumulative_runs"] = grouped.groupby("inning")["runs"].cumsum()

    return [
        {
            "inning": int(r.inning),
            "over_number": int(r.over) + 1,
            "runs": int(r.runs),
            "wickets": int(r.wickets),
            "extras": int(r.extras),
            "bowler": r.bowler,
            "cumulative_runs": int(r.cumulative_runs),
        }
        for r in grouped.itertuples(index=False)
    ]


def _all_rounder_row(career: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    bat = career.get("batting") or {}
    bowl = career.get("bowling") or {}
    if not bat.get("innings") or not bowl.get("innings"):
        return None
    runs = bat.get("runs", 0)
    wickets = bowl.get("wickets", 0)
    return {
        "runs": runs,
        "batting_average": bat.get("average", 0.0),
        "batting_strike_rate": bat.get("strike_rate", 0.0),
        "wickets": wickets,
        "economy": bowl.get("economy", 0.0),
        "points": runs + ALL_ROUNDER_WICKET_WEIGHT * wickets,
    }


def _category_row(career: Dict[str, Any], category: str) -> Optional[Dict[str, Any]]:
    if category == "all-rounders":
        return _all_rounder_row(career)

    section = career.get(category) or {}
    if not section.get("innings"):
        return None
    row = {k: section.get(k, 0) for k in _LEADERBOARD_COLUMNS[category]}
    if category == "bowling":
        best = section.get("best_figures")
        row["best_figures"] = f"{best['wickets']}/{best['runs']}" if best else None
    return row


def leaderboard(careers: List[Dict[str, Any]], category: LeaderboardCategory = "batting", limit: int = 10) -> List[dict]:
    """
    Career leaderboard across stored player documents.
    Players with no innings in the category are left out; all-rounders
    need at least one batting and one bowling innings and are ranked by
    runs + ALL_ROUNDER_WICKET_WEIGHT * wickets.
    """
    if category not in _LEADERBOARD_SORT:
        raise ValueError(f"Unknown leaderboard category: {category}")

    rows: List[Dict[str, Any]] = []
    for c in careers:
        stats = _category_row(c, category)
        if stats is None:
            continue
        row = {
            "player_id": c.get("player_id"),
            "name": c.get("name"),
            "matches_played": c.get("matches_played", 0),
        }
        row.update(stats)
        rows.append(row)

    if not rows:
        return []

    by, ascending = _LEADERBOARD_SORT[category]
    df = pd.DataFrame(rows).sort_values(by=by, ascending=ascending, kind="mergesort").head(limit)
    df.insert(0, "pos", range(1, len(df) + 1))

    # to_json turns numpy scalars back into plain JSON numbers
    return json.loads(df.to_json(orient="records"))
