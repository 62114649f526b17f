"""Stateless batted-ball physics.

Coordinates are metres with home plate at the origin, ``y`` pointing to
centre field and ``x`` to the right-field side. Spray direction is measured in
degrees from the left-field line (0) to the right-field line (90).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional
import math
import random

from .config import TuningConfig
from .models import FASTBALL_TYPES, BatterAbilities, Pitch, PitcherAbilities


GRAVITY = 9.8
KMH_TO_MS = 1.0 / 3.6

BALL_TYPES = ("ground_ball", "line_drive", "fly_ball", "popup")

_DEFAULT_TUNING = TuningConfig()


@dataclass(frozen=True)
class BattedBall:
    direction: float
    launch_angle: float
    exit_velocity: float
    ball_type: str


@dataclass(frozen=True)
class Landing:
    x: float
    y: float
    distance: float
    flight_time: float
    is_ground_ball: bool
    direction: float
    initial_speed: float  # m/s off the bat

    @property
    def position(self) -> tuple[float, float]:
        return (self.x, self.y)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def calc_breaking_power(pitches: Iterable[Pitch]) -> float:
    """Aggregate off-speed quality on a 0-100 scale."""

    offspeed = [p for p in pitches if p.pitch_type not in FASTBALL_TYPES]
    if not offspeed:
        return 30.0
    total = sum(p.level * p.level for p in offspeed)
    return min(100.0, total / 245.0 * 130.0)


def sinker_bonus(pitches: Iterable[Pitch], cap: float = 5.0) -> float:
    """Launch-angle reduction from sinking pitches."""

    bonus = 0.0
    for pitch in pitches:
        if pitch.pitch_type == "sinker":
            bonus += pitch.level * 0.6
        elif pitch.pitch_type == "shoot":
            bonus += pitch.level * 0.4
    return min(cap, bonus)


def classify_batted_ball_type(angle: float, velocity: float) -> str:
    if angle >= 50 or (angle >= 38 and velocity < 140):
        return "popup"
    if angle < 10 or (angle < 15 and velocity < 100):
        return "ground_ball"
    if angle < 20:
        return "line_drive"
    return "fly_ball"


def generate_batted_ball(
    batter: BatterAbilities,
    pitcher: PitcherAbilities,
    *,
    bat_side: str = "R",
    rng: Optional[random.Random] = None,
    tuning: Optional[TuningConfig] = None,
) -> BattedBall:
    rng = rng or random.Random()
    tuning = tuning or _DEFAULT_TUNING

    pull_shift = (batter.power - 50.0) * tuning.get("pull_shift_per_power")
    side = bat_side.upper()
    if side == "R":
        dir_mean = tuning.get("direction_mean_right") - pull_shift
    elif side == "L":
        dir_mean = tuning.get("direction_mean_left") + pull_shift
    else:
        dir_mean = tuning.get("direction_mean_switch")
    direction = _clamp(rng.gauss(dir_mean, tuning.get("direction_sigma")), 0.0, 90.0)

    angle_mean = (
        tuning.get("launch_angle_base")
        + (batter.power - 50.0) * tuning.get("launch_power_coef")
        - (batter.contact - 50.0) * tuning.get("launch_contact_coef")
        + (batter.trajectory - 2) * tuning.get("launch_trajectory_coef")
        - sinker_bonus(pitcher.pitches, tuning.get("sinker_bonus_cap"))
    )
    angle = _clamp(rng.gauss(angle_mean, tuning.get("launch_angle_sigma")), -15.0, 70.0)

    breaking_penalty = (calc_breaking_power(pitcher.pitches) - 50.0) * tuning.get(
        "breaking_penalty_coef"
    )
    velo_mean = (
        tuning.get("exit_velocity_base")
        + (batter.power - 50.0) * tuning.get("exit_power_coef")
        + (batter.contact - 50.0) * tuning.get("exit_contact_coef")
        - breaking_penalty
    )
    velocity = _clamp(rng.gauss(velo_mean, tuning.get("exit_velocity_sigma")), 80.0, 170.0)

    return BattedBall(
        direction=direction,
        launch_angle=angle,
        exit_velocity=velocity,
        ball_type=classify_batted_ball_type(angle, velocity),
    )


def estimate_distance(
    velocity: float, angle: float, tuning: Optional[TuningConfig] = None
) -> float:
    """Carry distance in metres for an exit velocity in km/h."""

    if angle <= 0:
        return 0.0
    tuning = tuning or _DEFAULT_TUNING
    v = velocity * KMH_TO_MS
    rad = math.radians(angle)
    vx = v * math.cos(rad)
    vy = v * math.sin(rad)
    height = tuning.get("release_height")
    vacuum = vx * (vy + math.sqrt(vy * vy + 2.0 * GRAVITY * height)) / GRAVITY
    return vacuum * tuning.get("drag_factor")


def get_fence_distance(direction: float, tuning: Optional[TuningConfig] = None) -> float:
    tuning = tuning or _DEFAULT_TUNING
    return tuning.get("fence_base") + tuning.get("fence_peak_bonus") * math.sin(
        direction / 90.0 * math.pi
    )


def calc_ball_landing(
    direction: float,
    angle: float,
    velocity: float,
    tuning: Optional[TuningConfig] = None,
) -> Landing:
    tuning = tuning or _DEFAULT_TUNING
    v0 = velocity * KMH_TO_MS
    is_ground = angle < 10
    if is_ground:
        if angle < 0:
            bounce = max(0.3, 1.0 + angle / 30.0)
        else:
            bounce = 1.0 - angle / 10.0 * 0.15
        distance = min(tuning.get("ground_ball_max_distance"), v0 * 1.2) * bounce
        # uniform deceleration to a stop: mean speed is half the initial speed
        flight_time = distance / (0.5 * v0)
    else:
        distance = estimate_distance(velocity, angle, tuning)
        vy = v0 * math.sin(math.radians(angle))
        t_up = vy / GRAVITY
        max_height = tuning.get("release_height") + vy * vy / (2.0 * GRAVITY)
        t_down = math.sqrt(2.0 * max_height / GRAVITY)
        flight_time = (t_up + t_down) * 0.85

    rad = math.radians(direction - 45.0)
    return Landing(
        x=distance * math.sin(rad),
        y=distance * math.cos(rad),
        distance=distance,
        flight_time=flight_time,
        is_ground_ball=is_ground,
        direction=direction,
        initial_speed=v0,
    )


__all__ = [
    "BALL_TYPES",
    "BattedBall",
    "Landing",
    "calc_ball_landing",
    "calc_breaking_power",
    "classify_batted_ball_type",
    "estimate_distance",
    "generate_batted_ball",
    "get_fence_distance",
    "sinker_bonus",
]
