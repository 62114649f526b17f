"""Ball-in-play outcome resolution.

Outcomes are decided by ``OUTCOME_RULES``, an ordered table of
``(name, rule)`` pairs. Each rule returns an outcome or ``None``; the first
non-``None`` answer wins.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Tuple
import math
import random

from .config import TuningConfig
from .fielding import (
    OUTFIELD_IDS,
    FielderEvaluation,
    FielderLike,
    evaluate_fielders,
    fielder_ratings,
    primary_fielder,
    retrieving_outfielder,
)
from .models import BatterAbilities, DefensiveRatings
from .physics import BattedBall, Landing, calc_ball_landing, get_fence_distance


PA_RESULTS = (
    "single",
    "double",
    "triple",
    "homerun",
    "infieldHit",
    "error",
    "strikeout",
    "walk",
    "hitByPitch",
    "groundout",
    "flyout",
    "lineout",
    "popout",
    "doublePlay",
    "sacrificeFly",
    "fieldersChoice",
)
HIT_RESULTS = {"single", "double", "triple", "homerun", "infieldHit"}
BASES_FOR_HIT = {"single": 1, "infieldHit": 1, "double": 2, "triple": 3, "homerun": 4}

FIRST_BASE = (19.4, 19.4)
SECOND_BASE = (0.0, 38.8)
THIRD_BASE = (-19.4, 19.4)
BASE_PATH = 27.4


@dataclass
class BallInPlayContext:
    batter: BatterAbilities
    batted_ball: BattedBall
    landing: Landing
    evaluations: List[FielderEvaluation]
    fielders: Dict[int, DefensiveRatings]
    outs: int
    # runner speed on first/second/third, ``None`` for an empty base
    runners: Tuple[Optional[float], Optional[float], Optional[float]]
    rng: random.Random
    tuning: TuningConfig

    @property
    def primary(self) -> Optional[FielderEvaluation]:
        return primary_fielder(self.evaluations)

    @property
    def runners_on(self) -> int:
        return sum(1 for runner in self.runners if runner is not None)


@dataclass
class BallInPlayOutcome:
    result: str
    rule: str
    fielder_position: Optional[int] = None
    putouts: List[int] = field(default_factory=list)
    assists: List[int] = field(default_factory=list)
    error_position: Optional[int] = None
    fence_ratio: float = 0.0


OutcomeRule = Callable[[BallInPlayContext], Optional[BallInPlayOutcome]]


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def carry_factor(trajectory: int, tuning: TuningConfig) -> float:
    trajectory = max(1, min(4, int(trajectory)))
    return tuning.get(f"carry_trajectory_{trajectory}")


def fence_ratio(ctx: BallInPlayContext) -> float:
    fence = get_fence_distance(ctx.batted_ball.direction, ctx.tuning)
    return ctx.landing.distance * carry_factor(ctx.batter.trajectory, ctx.tuning) / fence


def home_run_chance(ratio: float, power: float, tuning: TuningConfig) -> float:
    certain = tuning.get("hr_certain_ratio")
    possible = tuning.get("hr_possible_ratio")
    if ratio >= certain:
        return 1.0
    if ratio < possible:
        return 0.0
    chance = (ratio - possible) / (certain - possible) + (power - 50.0) * tuning.get(
        "hr_power_bonus"
    )
    return _clamp(chance, tuning.get("hr_chance_min"), tuning.get("hr_chance_max"))


def runner_speed_mps(speed: float, tuning: TuningConfig) -> float:
    return tuning.get("runner_speed_base") + speed / 100.0 * tuning.get("runner_speed_scale")


def throw_speed_mps(arm: float, tuning: TuningConfig) -> float:
    return tuning.get("throw_speed_base") + arm / 100.0 * tuning.get("throw_speed_arm_scale")


def _distance(a: Tuple[float, float], b: Tuple[float, float]) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def _runner_time_to_base(bases: int, speed: float, tuning: TuningConfig) -> float:
    return tuning.get("base_runner_lead") + bases * BASE_PATH / runner_speed_mps(speed, tuning)


def _pivot_for(position_id: int) -> int:
    return 6 if position_id in (3, 4) else 4


def _force_cover(
    runners: Tuple[Optional[float], Optional[float], Optional[float]], pivot: int
) -> int:
    """Fielder taking the force on the lead forced runner."""

    if runners[1] is None:
        return pivot
    if runners[2] is None:
        return 5
    return 2


def resolve_hit_advancement(
    ctx: BallInPlayContext, retriever: Optional[FielderEvaluation]
) -> str:
    """Single, double or triple from the relay race against the batter."""

    if retriever is None or retriever.position_id not in OUTFIELD_IDS:
        return "single"
    tuning = ctx.tuning
    ratings = ctx.fielders[retriever.position_id]
    skill_gap = 1.0 - ratings.fielding / 100.0
    jitter = ctx.rng.uniform(0.0, tuning.get("retrieval_jitter"))
    pickup = tuning.get("pickup_time_base") + skill_gap * tuning.get("pickup_time_scale")
    ready = (
        max(retriever.time_to_reach, retriever.ball_arrival_time)
        + retriever.bounce_penalty
        + jitter
        + pickup
    )
    roll = 0.0
    if not ctx.landing.is_ground_ball:
        roll = _clamp(
            (ctx.landing.distance - 50.0) * tuning.get("roll_distance_scale"),
            0.0,
            tuning.get("roll_distance_max"),
        )
    rad = math.radians(ctx.landing.direction - 45.0)
    origin = (
        retriever.fielding_point[0] + roll * math.sin(rad),
        retriever.fielding_point[1] + roll * math.cos(rad),
    )
    throw = throw_speed_mps(ratings.arm, tuning)
    to_second = ready + _distance(origin, SECOND_BASE) / throw
    to_third = ready + _distance(origin, THIRD_BASE) / throw
    speed = ctx.batter.speed
    if _runner_time_to_base(3, speed, tuning) + tuning.get("triple_margin") < to_third:
        return "triple"
    if _runner_time_to_base(2, speed, tuning) < to_second:
        return "double"
    return "single"


def _home_run_rule(ctx: BallInPlayContext) -> Optional[BallInPlayOutcome]:
    if ctx.batted_ball.ball_type != "fly_ball":
        return None
    ratio = fence_ratio(ctx)
    chance = home_run_chance(ratio, ctx.batter.power, ctx.tuning)
    if chance >= 1.0 or (chance > 0.0 and ctx.rng.random() < chance):
        return BallInPlayOutcome(result="homerun", rule="homerun", fence_ratio=ratio)
    return None


def _unreachable_rule(ctx: BallInPlayContext) -> Optional[BallInPlayOutcome]:
    if ctx.primary is not None:
        return None
    retriever = retrieving_outfielder(ctx.evaluations)
    position = retriever.position_id if retriever else None
    if retriever is not None:
        skill_gap = 1.0 - ctx.fielders[retriever.position_id].fielding / 100.0
        error_rate = ctx.tuning.get("retrieval_error_base") + skill_gap * ctx.tuning.get(
            "retrieval_error_scale"
        )
        if ctx.rng.random() < error_rate:
            return BallInPlayOutcome(
                result="error",
                rule="unreachable",
                fielder_position=position,
                error_position=position,
            )
    return BallInPlayOutcome(
        result=resolve_hit_advancement(ctx, retriever),
        rule="unreachable",
        fielder_position=position,
    )


def _fielded_ground_ball_rule(ctx: BallInPlayContext) -> Optional[BallInPlayOutcome]:
    primary = ctx.primary
    if primary is None or ctx.batted_ball.ball_type != "ground_ball":
        return None
    tuning = ctx.tuning
    rng = ctx.rng
    pos = primary.position_id
    ratings = ctx.fielders[pos]
    fielding_rate = ratings.fielding / 100.0
    error_rate = _clamp(
        tuning.get("ground_error_base") - fielding_rate * tuning.get("ground_error_scale"),
        tuning.get("ground_error_min"),
        tuning.get("ground_error_max"),
    )
    if rng.random() < error_rate:
        return BallInPlayOutcome(
            result="error",
            rule="fielded_ground_ball",
            fielder_position=pos,
            error_position=pos,
        )

    secure = tuning.get("secure_time_base") + (1.0 - fielding_rate) * tuning.get(
        "secure_time_scale"
    )
    transfer = tuning.get("transfer_time_base") + (1.0 - ratings.arm / 100.0) * tuning.get(
        "transfer_time_scale"
    )
    throw = _distance(primary.fielding_point, FIRST_BASE) / throw_speed_mps(ratings.arm, tuning)
    field_time = max(primary.time_to_reach, primary.ball_arrival_time) + secure + transfer + throw
    runner_time = tuning.get("runner_start_delay") + BASE_PATH / runner_speed_mps(
        ctx.batter.speed, tuning
    )
    race_margin = runner_time - field_time
    if race_margin < 0:
        return BallInPlayOutcome(result="infieldHit", rule="fielded_ground_ball", fielder_position=pos)
    soft_chance = _clamp(
        (
            tuning.get("soft_infield_hit_base")
            + tuning.get("soft_infield_hit_speed") * ctx.batter.speed / 100.0
        )
        * (1.0 - race_margin / tuning.get("soft_infield_hit_window")),
        0.0,
        1.0,
    )
    if rng.random() < soft_chance:
        return BallInPlayOutcome(result="infieldHit", rule="fielded_ground_ball", fielder_position=pos)

    pivot = _pivot_for(pos)
    if ctx.runners[0] is not None and ctx.outs < 2:
        dp_rate = tuning.get("double_play_base") + (
            1.0 - ctx.batter.speed / 100.0
        ) * tuning.get("double_play_speed_scale")
        if rng.random() < dp_rate:
            cover = _force_cover(ctx.runners, pivot)
            assists = [pos, cover] if cover != pos else [pos]
            return BallInPlayOutcome(
                result="doublePlay",
                rule="fielded_ground_ball",
                fielder_position=pos,
                putouts=[cover, 3],
                assists=assists,
            )
    if ctx.runners_on and rng.random() < tuning.get("fielders_choice_rate"):
        return BallInPlayOutcome(
            result="fieldersChoice",
            rule="fielded_ground_ball",
            fielder_position=pos,
            putouts=[pivot],
            assists=[pos],
        )
    if pos == 3:
        return BallInPlayOutcome(
            result="groundout", rule="fielded_ground_ball", fielder_position=pos, putouts=[3]
        )
    return BallInPlayOutcome(
        result="groundout",
        rule="fielded_ground_ball",
        fielder_position=pos,
        putouts=[3],
        assists=[pos],
    )


def _air_catch_rule(ctx: BallInPlayContext) -> Optional[BallInPlayOutcome]:
    primary = ctx.primary
    if primary is None:
        return None
    tuning = ctx.tuning
    rng = ctx.rng
    pos = primary.position_id
    fielding_rate = ctx.fielders[pos].fielding / 100.0
    margin = primary.margin
    catch_rate = _clamp(
        tuning.get("catch_rate_min")
        + _clamp(margin / 1.0, 0.0, 1.0) * tuning.get("catch_margin_scale")
        + fielding_rate * tuning.get("catch_fielding_scale"),
        tuning.get("catch_rate_min"),
        tuning.get("catch_rate_max"),
    )
    if rng.random() >= catch_rate:
        if margin >= tuning.get("drop_error_margin"):
            return BallInPlayOutcome(
                result="error", rule="air_catch", fielder_position=pos, error_position=pos
            )
        return BallInPlayOutcome(
            result=resolve_hit_advancement(ctx, primary),
            rule="air_catch",
            fielder_position=pos,
        )

    ball_type = ctx.batted_ball.ball_type
    if ball_type == "fly_ball":
        third = ctx.runners[2]
        if third is not None and ctx.outs < 2:
            chance = _clamp(
                (ctx.landing.distance - tuning.get("sac_fly_min_distance"))
                / tuning.get("sac_fly_distance_span")
                + (third - 50.0) * tuning.get("sac_fly_speed_coef"),
                0.0,
                tuning.get("sac_fly_max"),
            )
            if rng.random() < chance:
                return BallInPlayOutcome(
                    result="sacrificeFly", rule="air_catch", fielder_position=pos, putouts=[pos]
                )
        result = "flyout"
    elif ball_type == "line_drive":
        result = "lineout"
    else:
        result = "popout"
    return BallInPlayOutcome(result=result, rule="air_catch", fielder_position=pos, putouts=[pos])


OUTCOME_RULES: List[Tuple[str, OutcomeRule]] = [
    ("homerun", _home_run_rule),
    ("unreachable", _unreachable_rule),
    ("fielded_ground_ball", _fielded_ground_ball_rule),
    ("air_catch", _air_catch_rule),
]


def resolve_ball_in_play(ctx: BallInPlayContext) -> BallInPlayOutcome:
    for _name, rule in OUTCOME_RULES:
        outcome = rule(ctx)
        if outcome is not None:
            return outcome
    raise RuntimeError(
        f"No outcome rule matched {ctx.batted_ball.ball_type} at {ctx.landing.distance:.1f}m"
    )


def build_context(
    batter: BatterAbilities,
    batted_ball: BattedBall,
    fielder_map: Mapping[int, FielderLike],
    *,
    outs: int = 0,
    runners: Tuple[Optional[float], Optional[float], Optional[float]] = (None, None, None),
    rng: random.Random,
    tuning: TuningConfig,
) -> BallInPlayContext:
    """Land the ball, evaluate the defence and package the decision inputs."""

    landing = calc_ball_landing(
        batted_ball.direction, batted_ball.launch_angle, batted_ball.exit_velocity, tuning
    )
    evaluations = evaluate_fielders(landing, batted_ball.ball_type, fielder_map, tuning)
    return BallInPlayContext(
        batter=batter,
        batted_ball=batted_ball,
        landing=landing,
        evaluations=evaluations,
        fielders={pos: fielder_ratings(f, pos) for pos, f in fielder_map.items()},
        outs=outs,
        runners=runners,
        rng=rng,
        tuning=tuning,
    )


__all__ = [
    "BASES_FOR_HIT",
    "BallInPlayContext",
    "BallInPlayOutcome",
    "HIT_RESULTS",
    "OUTCOME_RULES",
    "PA_RESULTS",
    "build_context",
    "carry_factor",
    "fence_ratio",
    "home_run_chance",
    "resolve_ball_in_play",
    "resolve_hit_advancement",
]
