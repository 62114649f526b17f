from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple, Union
import math

from .config import TuningConfig
from .models import POSITIONS, DefensiveRatings, Player
from .physics import Landing, get_fence_distance


INFIELD_IDS = {3, 4, 5, 6}
OUTFIELD_IDS = {7, 8, 9}

DEFAULT_FIELDER_POSITIONS: Dict[int, Tuple[float, float]] = {
    1: (0.0, 18.4),
    2: (0.0, 1.0),
    3: (20.0, 28.0),
    4: (8.0, 33.0),
    5: (-19.0, 27.0),
    6: (-12.0, 33.0),
    7: (-26.0, 68.0),
    8: (0.0, 76.0),
    9: (26.0, 68.0),
}

FielderLike = Union[Player, DefensiveRatings]

_DEFAULT_TUNING = TuningConfig()


@dataclass
class FielderEvaluation:
    position_id: int
    can_reach: bool
    time_to_reach: float
    ball_arrival_time: float
    distance: float
    fielding_point: Tuple[float, float] = (0.0, 0.0)
    role: Optional[str] = None  # "primary", "backup" or None
    bounce_penalty: float = 0.0

    @property
    def margin(self) -> float:
        return self.ball_arrival_time - self.time_to_reach


def fielder_ratings(fielder: FielderLike, position_id: int) -> DefensiveRatings:
    if isinstance(fielder, Player):
        return fielder.defense(POSITIONS[position_id - 1])
    return fielder


def reaction_time(
    ratings: DefensiveRatings, position_id: int, ball_type: str, tuning: TuningConfig
) -> float:
    skill_gap = 1.0 - ratings.fielding / 100.0
    reaction = tuning.get("reaction_base") + skill_gap * tuning.get("reaction_fielding_scale")
    if position_id == 1:
        reaction += tuning.get("pitcher_reaction_extra")
    if ball_type == "line_drive":
        reaction += tuning.get("line_drive_reaction_base") + skill_gap * tuning.get(
            "line_drive_reaction_scale"
        )
    return reaction


def running_speed(ratings: DefensiveRatings, tuning: TuningConfig) -> float:
    return (
        tuning.get("fly_speed_base")
        + ratings.speed / 100.0 * tuning.get("fly_speed_speed_scale")
        + ratings.fielding / 100.0 * tuning.get("fly_speed_fielding_scale")
    )


def lateral_speed(ratings: DefensiveRatings, tuning: TuningConfig) -> float:
    return tuning.get("ground_lateral_speed_base") + ratings.speed / 100.0 * tuning.get(
        "ground_lateral_speed_scale"
    )


def _evaluate_air(
    landing: Landing,
    ball_type: str,
    position_id: int,
    start: Tuple[float, float],
    ratings: DefensiveRatings,
    tuning: TuningConfig,
) -> FielderEvaluation:
    dist = math.hypot(landing.x - start[0], landing.y - start[1])
    reaction = reaction_time(ratings, position_id, ball_type, tuning)
    speed = running_speed(ratings, tuning)
    radius = tuning.get("catch_radius")
    eligible = True
    if position_id == 2:
        eligible = ball_type == "popup" and dist <= tuning.get("catcher_popup_range")
        if eligible:
            reaction = tuning.get("catcher_popup_reaction")
            speed = tuning.get("catcher_popup_speed")
            radius = tuning.get("catcher_popup_radius")
    elif position_id == 1:
        eligible = dist <= tuning.get("pitcher_fly_range")
    elif position_id in INFIELD_IDS:
        eligible = dist <= tuning.get("infield_fly_range")
    time_to_reach = reaction + max(0.0, dist - radius) / speed
    return FielderEvaluation(
        position_id=position_id,
        can_reach=eligible and time_to_reach <= landing.flight_time,
        time_to_reach=time_to_reach,
        ball_arrival_time=landing.flight_time,
        distance=dist,
        fielding_point=landing.position,
    )


def _evaluate_ground(
    landing: Landing,
    position_id: int,
    start: Tuple[float, float],
    ratings: DefensiveRatings,
    tuning: TuningConfig,
) -> FielderEvaluation:
    rad = math.radians(landing.direction - 45.0)
    ux, uy = math.sin(rad), math.cos(rad)
    stop_dist = math.hypot(landing.x - start[0], landing.y - start[1])
    reaction = reaction_time(ratings, position_id, "ground_ball", tuning)
    total = landing.distance
    t_stop = landing.flight_time

    if position_id in OUTFIELD_IDS:
        time_to_reach = reaction + stop_dist / running_speed(ratings, tuning)
        return FielderEvaluation(
            position_id=position_id,
            can_reach=False,
            time_to_reach=time_to_reach,
            ball_arrival_time=t_stop,
            distance=stop_dist,
            fielding_point=landing.position,
        )

    projection = start[0] * ux + start[1] * uy
    if 0.0 < projection < total:
        lateral = abs(start[0] * uy - start[1] * ux)
        # ball decelerates uniformly to rest at ``total`` metres
        arrival = t_stop * (1.0 - math.sqrt(1.0 - projection / total))
        time_to_reach = reaction + lateral / lateral_speed(ratings, tuning)
        can_reach = time_to_reach <= arrival + tuning.get("ground_path_slack")
        return FielderEvaluation(
            position_id=position_id,
            can_reach=can_reach,
            time_to_reach=time_to_reach,
            ball_arrival_time=arrival,
            distance=lateral,
            fielding_point=(projection * ux, projection * uy),
        )

    time_to_reach = reaction + stop_dist / running_speed(ratings, tuning)
    return FielderEvaluation(
        position_id=position_id,
        can_reach=time_to_reach <= t_stop + tuning.get("ground_stop_slack"),
        time_to_reach=time_to_reach,
        ball_arrival_time=t_stop,
        distance=stop_dist,
        fielding_point=landing.position,
    )


def _assign_roles(evaluations: List[FielderEvaluation]) -> None:
    reachable = [ev for ev in evaluations if ev.can_reach]
    if not reachable:
        return
    clean = [ev for ev in reachable if ev.margin >= 0.0]
    if clean:
        primary = min(clean, key=lambda ev: ev.margin)
    else:
        primary = max(reachable, key=lambda ev: ev.margin)
    for ev in reachable:
        ev.role = "primary" if ev is primary else "backup"


def _apply_outfield_penalties(
    evaluations: List[FielderEvaluation],
    landing: Landing,
    ratings_by_pos: Mapping[int, DefensiveRatings],
    tuning: TuningConfig,
) -> None:
    if any(ev.can_reach for ev in evaluations):
        return
    if landing.is_ground_ball:
        for ev in evaluations:
            if ev.position_id in OUTFIELD_IDS:
                skill_gap = 1.0 - ratings_by_pos[ev.position_id].fielding / 100.0
                ev.bounce_penalty = tuning.get("bounce_penalty_base") + skill_gap * tuning.get(
                    "bounce_penalty_scale"
                )
        return
    depth = max(0.0, min(1.0, (landing.distance - 50.0) / 50.0))
    penalty = tuning.get("air_penalty_base") + depth * tuning.get("air_penalty_depth")
    if landing.distance >= 0.9 * get_fence_distance(landing.direction, tuning):
        penalty += tuning.get("air_penalty_fence")
    for ev in evaluations:
        if ev.position_id in OUTFIELD_IDS:
            ev.bounce_penalty = penalty


def evaluate_fielders(
    landing: Landing,
    ball_type: str,
    fielder_map: Mapping[int, FielderLike],
    tuning: Optional[TuningConfig] = None,
    positions: Optional[Mapping[int, Tuple[float, float]]] = None,
) -> List[FielderEvaluation]:
    """Evaluate all nine fielders against one landing.

    ``fielder_map`` maps scorebook position ids (1-9) to players or raw
    defensive ratings. Exactly one reachable fielder is marked ``primary``;
    when nobody can reach the ball the outfielders carry the retrieval
    ``bounce_penalty`` used for hit advancement.
    """

    tuning = tuning or _DEFAULT_TUNING
    positions = positions or DEFAULT_FIELDER_POSITIONS
    ratings_by_pos = {
        pos: fielder_ratings(fielder, pos) for pos, fielder in fielder_map.items()
    }
    evaluations: List[FielderEvaluation] = []
    for pos in sorted(ratings_by_pos):
        start = positions[pos]
        if landing.is_ground_ball:
            ev = _evaluate_ground(landing, pos, start, ratings_by_pos[pos], tuning)
        else:
            ev = _evaluate_air(landing, ball_type, pos, start, ratings_by_pos[pos], tuning)
        evaluations.append(ev)
    _assign_roles(evaluations)
    _apply_outfield_penalties(evaluations, landing, ratings_by_pos, tuning)
    return evaluations


def primary_fielder(evaluations: List[FielderEvaluation]) -> Optional[FielderEvaluation]:
    for ev in evaluations:
        if ev.role == "primary":
            return ev
    return None


def retrieving_outfielder(evaluations: List[FielderEvaluation]) -> Optional[FielderEvaluation]:
    outfield = [ev for ev in evaluations if ev.position_id in OUTFIELD_IDS]
    if not outfield:
        return None
    return min(outfield, key=lambda ev: ev.time_to_reach)
