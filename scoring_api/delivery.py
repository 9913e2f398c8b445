# scoring_api/delivery.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from scoring_api.classifier import Outcome, RawBall
from scoring_api.identity import PlayerIndex, name_key
from scoring_api.models import (
    BallEvent,
    BatsmanStat,
    BowlerStat,
    Dismissal,
    FallOfWicket,
    Innings,
    Match,
    Partnership,
    ScoringError,
    TeamSide,
    WicketDetail,
)
from scoring_api.overs_math import (
    MAX_WICKETS,
    balls_to_overs,
    balls_to_overs_decimal,
    economy,
    required_run_rate,
    run_rate,
    strike_rate,
)

logger = logging.getLogger(__name__)


@dataclass
class DeliveryResult:
    event: BallEvent
    over_complete: bool = False
    dismissed_name: Optional[str] = None
    dismissed_id: Optional[str] = None


class InningsContext:
    """
    Everything one delivery touches for a single innings: the innings record,
    the batting side mirror and the per-player rows of that innings, indexed
    by player id then name.
    """

    def __init__(self, match: Match, inning: int) -> None:
        self.match = match
        self.inning = inning
        self.innings: Innings = match.innings_for(inning)
        if not self.innings.batting_team:
            raise ScoringError("Toss has not been set; batting order is unknown")
        self.side: TeamSide = match.side(self.innings.batting_team)

        self._batters: PlayerIndex[BatsmanStat] = PlayerIndex(
            r for r in match.batsman_stats if r.inning == inning
        )
        self._bowlers: PlayerIndex[BowlerStat] = PlayerIndex(
            r for r in match.bowler_stats if r.inning == inning
        )

    def batter(self, name: str, player_id: Optional[str]) -> BatsmanStat:
        row = self._batters.find(name, player_id)
        if row is None:
            row = BatsmanStat(name=name, player_id=player_id, inning=self.inning)
            self.match.batsman_stats.append(row)
            self._batters.add(row)
        return row

    def bowler(self, name: str, player_id: Optional[str]) -> BowlerStat:
        row = self._bowlers.find(name, player_id)
        if row is None:
            row = BowlerStat(name=name, player_id=player_id, inning=self.inning)
            self.match.bowler_stats.append(row)
            self._bowlers.add(row)
        return row


def require_players(raw: RawBall) -> None:
    if not str(raw.striker_name or "").strip():
        raise ScoringError("Striker name is required")
    if not str(raw.bowler_name or "").strip():
        raise ScoringError("Bowler name is required")


def _dismissed_player(raw: RawBall):
    if raw.wicket_player_name and name_key(raw.wicket_player_name) != name_key(raw.striker_name):
        return raw.wicket_player_name, raw.wicket_player_id
    return raw.striker_name, raw.wicket_player_id or raw.striker_id


def _count_scoring_shot(bat: BatsmanStat, bowl: BowlerStat, runs: int) -> None:
    if runs == 0:
        bat.dot_balls += 1
    elif runs == 1:
        bat.singles += 1
    elif runs == 2:
        bat.twos += 1
    elif runs == 3:
        bat.threes += 1
    elif runs == 4:
        bat.fours += 1
        bowl.fours += 1
    elif runs == 6:
        bat.sixes += 1
        bowl.sixes += 1


def record_delivery(ctx: InningsContext, raw: RawBall, outcome: Outcome, ball_number: int) -> DeliveryResult:
    """
    Applies one classified delivery to the innings, the batting side,
    the striker's and bowler's rows, fall of wickets and the ball log.
    Shared by the replay fold and the live applier.
    """
    match = ctx.match
    inn = ctx.innings
    side = ctx.side
    bpo = match.balls_per_over

    over_no, ball_in_over = inn.overs, inn.balls

    # 1) extras + score
    ex = inn.extras
    if outcome.extra_type == "wide":
        ex.wides += outcome.extra_runs
    elif outcome.extra_type == "noball":
        ex.no_balls += outcome.extra_runs
    elif outcome.extra_type == "bye":
        ex.byes += outcome.extra_runs
    elif outcome.extra_type == "legbye":
        ex.leg_byes += outcome.extra_runs
    ex.total += outcome.extra_runs

    inn.score += outcome.total_runs
    side.score += outcome.total_runs

    p = inn.partnership
    p.batsman1 = p.batsman1 or raw.striker_name
    p.batsman2 = p.batsman2 or raw.non_striker_name
    p.runs += outcome.total_runs
    if outcome.is_legal:
        p.balls += 1

    # 2) striker
    bat = ctx.batter(raw.striker_name, raw.striker_id)
    if outcome.is_legal:
        bat.balls_faced += 1
    bat.runs += outcome.batter_runs

    # 3) bowler
    bowl = ctx.bowler(raw.bowler_name, raw.bowler_id)
    if outcome.is_legal:
        bowl.balls += 1
        if outcome.bowler_runs == 0:
            bowl.dot_balls += 1
    bowl.runs += outcome.bowler_runs
    inn.current_over_runs += outcome.bowler_runs
    if outcome.extra_type == "wide":
        bowl.wides += 1
    elif outcome.extra_type == "noball":
        bowl.no_balls += 1
    if outcome.bowler_wicket:
        bowl.wickets += 1

    if outcome.off_the_bat:
        _count_scoring_shot(bat, bowl, outcome.batter_runs)

    # 4) wicket
    result_name: Optional[str] = None
    result_id: Optional[str] = None
    wicket: Optional[WicketDetail] = None
    if outcome.is_wicket:
        if inn.wickets >= MAX_WICKETS:
            raise ScoringError("All wickets have already fallen in this innings")
        inn.wickets += 1
        side.wickets += 1

        result_name, result_id = _dismissed_player(raw)
        out_row = ctx.batter(result_name, result_id)
        out_row.is_out = True
        out_row.dismissal = Dismissal(
            kind=outcome.wicket_kind or "bowled",
            bowler_name=raw.bowler_name if outcome.bowler_wicket else None,
            fielder_name=raw.fielder_name,
            over_number=over_no,
        )
        wicket = WicketDetail(
            kind=outcome.wicket_kind or "bowled",
            player_out_name=result_name,
            player_out_id=result_id,
            fielder_name=raw.fielder_name,
        )

    # 5) over position
    over_complete = False
    if outcome.is_legal:
        inn.balls += 1
        side.balls_played += 1
        if inn.balls >= bpo:
            inn.overs += 1
            inn.balls = 0
            over_complete = True
            if inn.current_over_runs == 0:
                bowl.maidens += 1
            inn.current_over_runs = 0

    legal = inn.legal_balls(bpo)
    side.overs = balls_to_overs(legal, bpo)
    bat.strike_rate = strike_rate(bat.runs, bat.balls_faced)
    bowl.overs = balls_to_overs_decimal(bowl.balls, bpo)
    bowl.economy = economy(bowl.runs, bowl.balls, bpo)

    if outcome.is_wicket:
        match.fall_of_wickets.append(
            FallOfWicket(
                wicket_number=inn.wickets,
                inning=ctx.inning,
                player_out=result_name or "",
                player_out_id=result_id,
                score=inn.score,
                overs=balls_to_overs(legal, bpo),
                partnership_runs=p.runs,
                dismissal_type=outcome.wicket_kind or "bowled",
            )
        )
        inn.partnership = Partnership()

    # 6) ball log
    event = BallEvent(
        ball_number=ball_number,
        inning=ctx.inning,
        over=over_no,
        ball_in_over=ball_in_over,
        is_legal=outcome.is_legal,
        batsman_name=raw.striker_name,
        batsman_id=raw.striker_id,
        non_striker_name=raw.non_striker_name,
        non_striker_id=raw.non_striker_id,
        bowler_name=raw.bowler_name,
        bowler_id=raw.bowler_id,
        runs=int(raw.runs),
        total_runs=outcome.total_runs,
        batsman_runs=outcome.batter_runs,
        extra_type=outcome.extra_type,
        extra_runs=outcome.extra_runs,
        is_wicket=outcome.is_wicket,
        wicket=wicket,
        commentary=raw.commentary,
    )
    match.ball_by_ball.append(event)

    logger.debug(
        "inning=%s ball=%s.%s total=%s extra=%s wicket=%s score=%s/%s",
        ctx.inning, over_no, ball_in_over + 1, outcome.total_runs,
        outcome.extra_type, outcome.is_wicket, inn.score, inn.wickets,
    )

    return DeliveryResult(
        event=event,
        over_complete=over_complete,
        dismissed_name=result_name,
        dismissed_id=result_id,
    )


def refresh_rates(match: Match, inning: int) -> None:
    inn = match.innings_for(inning)
    bpo = match.balls_per_over
    legal = inn.legal_balls(bpo)

    inn.run_rate = run_rate(inn.score, legal, bpo)
    if inning == 2 and inn.target > 0:
        inn.required_run_rate = required_run_rate(inn.target, inn.score, legal, match.max_balls, bpo)
    else:
        inn.required_run_rate = 0.0
