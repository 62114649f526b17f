from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Tuple
import random

from .config import TuningConfig
from .fielding import FielderLike
from .models import FASTBALL_TYPES, Pitch, PitcherAbilities, Player
from .outcomes import BallInPlayOutcome, build_context, resolve_ball_in_play
from .physics import BattedBall, Landing, calc_breaking_power, generate_batted_ball


# Share of a pitcher's fastball speed kept by each pitch type.
PITCH_SPEED_FACTORS = {
    "fastball": 1.0,
    "two_seam": 0.98,
    "cutter": 0.95,
    "sinker": 0.96,
    "shoot": 0.93,
    "slider": 0.90,
    "fork": 0.88,
    "changeup": 0.85,
    "curve": 0.80,
}
FASTBALL_SHARE = 0.5


@dataclass
class PitchEvent:
    pitch_type: str
    velocity: float
    location: Tuple[float, float]
    in_zone: bool
    count: str
    outcome: str  # ball, called_strike, swinging_strike, foul, foul_tip, in_play, hbp
    swing: bool = False
    contact: bool = False


@dataclass
class PlateAppearance:
    result: str
    pitches: List[PitchEvent] = field(default_factory=list)
    batted_ball: Optional[BattedBall] = None
    landing: Optional[Landing] = None
    ball_in_play: Optional[BallInPlayOutcome] = None
    looking: bool = False


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def choose_pitch(pitches: Tuple[Pitch, ...], rng: random.Random) -> str:
    offspeed = [p for p in pitches if p.pitch_type not in FASTBALL_TYPES]
    fastballs = [p.pitch_type for p in pitches if p.pitch_type in FASTBALL_TYPES]
    if not offspeed or rng.random() < FASTBALL_SHARE:
        return rng.choice(fastballs) if fastballs else "fastball"
    weights = [p.level for p in offspeed]
    return rng.choices([p.pitch_type for p in offspeed], weights=weights)[0]


def stuff_rating(velocity: float, breaking_power: float, tuning: TuningConfig) -> float:
    """Contact suppression from velocity and breaking stuff."""

    return (velocity - tuning.get("stuff_velocity_base")) * tuning.get("stuff_velocity_coef") + (
        breaking_power - tuning.get("stuff_breaking_base")
    ) * tuning.get("stuff_breaking_coef")


def swing_probability(
    batter: Player, in_zone: bool, strikes: int, tuning: TuningConfig
) -> float:
    abilities = batter.batting
    if in_zone:
        prob = tuning.get("zone_swing_base") + (abilities.contact - 50.0) * tuning.get(
            "zone_swing_contact"
        )
        if strikes >= 2:
            prob += tuning.get("two_strike_zone_swing")
    else:
        prob = _clamp(
            tuning.get("chase_swing_base")
            - (abilities.eye - 50.0) * tuning.get("chase_swing_eye"),
            tuning.get("chase_swing_min"),
            tuning.get("chase_swing_max"),
        )
        if strikes >= 2:
            prob += tuning.get("two_strike_chase_swing")
    return _clamp(prob, 0.0, 1.0)


def contact_probability(
    batter: Player, in_zone: bool, stuff: float, tuning: TuningConfig
) -> float:
    zone_contact = _clamp(
        tuning.get("zone_contact_base")
        + (batter.batting.contact - 50.0) * tuning.get("zone_contact_coef")
        - stuff,
        tuning.get("zone_contact_min"),
        tuning.get("zone_contact_max"),
    )
    if in_zone:
        return zone_contact
    return max(0.0, zone_contact - tuning.get("chase_contact_penalty"))


def hit_by_pitch_probability(control: float, tuning: TuningConfig) -> float:
    return _clamp(
        tuning.get("hbp_base") + (1.0 - control / 100.0) * tuning.get("hbp_control_scale"),
        tuning.get("hbp_min"),
        tuning.get("hbp_max"),
    )


def location_spread(control: float, tuning: TuningConfig) -> float:
    return max(
        0.1,
        tuning.get("location_spread_base") - control / 100.0 * tuning.get("location_spread_control"),
    )


def simulate_plate_appearance(
    batter: Player,
    pitcher: PitcherAbilities,
    fielder_map: Mapping[int, FielderLike],
    *,
    rng: random.Random,
    tuning: TuningConfig,
    outs: int = 0,
    runners: Tuple[Optional[float], Optional[float], Optional[float]] = (None, None, None),
    fatigue_penalty: float = 0.0,
) -> PlateAppearance:
    """Throw pitches until the plate appearance reaches a terminal outcome.

    ``fatigue_penalty`` (0 to 0.5) erodes the pitcher's control and fastball
    speed. A ball put in play is landed, fielded and classified by
    :func:`diamond_sim.outcomes.resolve_ball_in_play`.
    """

    control = pitcher.control * (1.0 - tuning.get("fatigue_control_loss") * fatigue_penalty)
    velocity = pitcher.velocity - tuning.get("fatigue_velocity_drop") * fatigue_penalty / 0.5
    spread = location_spread(control, tuning)
    stuff = stuff_rating(velocity, calc_breaking_power(pitcher.pitches), tuning)
    hbp_prob = hit_by_pitch_probability(control, tuning)
    max_fouls = int(tuning.get("max_two_strike_fouls"))

    pa = PlateAppearance(result="")
    balls = strikes = 0
    two_strike_fouls = 0
    while True:
        count = f"{balls}-{strikes}"
        pitch_type = choose_pitch(pitcher.pitches, rng)
        pitch_velocity = velocity * PITCH_SPEED_FACTORS.get(pitch_type, 1.0)

        if rng.random() < hbp_prob:
            pa.pitches.append(
                PitchEvent(pitch_type, pitch_velocity, (0.0, 1.5), False, count, "hbp")
            )
            pa.result = "hitByPitch"
            return pa

        location = (rng.gauss(0.0, spread), rng.gauss(0.0, spread))
        in_zone = abs(location[0]) <= 1.0 and abs(location[1]) <= 1.0
        event = PitchEvent(pitch_type, pitch_velocity, location, in_zone, count, "")
        pa.pitches.append(event)

        if rng.random() >= swing_probability(batter, in_zone, strikes, tuning):
            if in_zone:
                event.outcome = "called_strike"
                strikes += 1
                if strikes >= 3:
                    pa.result = "strikeout"
                    pa.looking = True
                    return pa
            else:
                event.outcome = "ball"
                balls += 1
                if balls >= 4:
                    pa.result = "walk"
                    return pa
            continue

        event.swing = True
        if rng.random() >= contact_probability(batter, in_zone, stuff, tuning):
            event.outcome = "swinging_strike"
            strikes += 1
            if strikes >= 3:
                pa.result = "strikeout"
                return pa
            continue

        event.contact = True
        foul_share = tuning.get("zone_foul_share" if in_zone else "chase_foul_share")
        fouls_exhausted = strikes >= 2 and two_strike_fouls >= max_fouls
        if not fouls_exhausted and rng.random() < foul_share:
            if rng.random() < tuning.get("foul_tip_share"):
                event.outcome = "foul_tip"
                strikes += 1
                if strikes >= 3:
                    pa.result = "strikeout"
                    return pa
                continue
            event.outcome = "foul"
            if strikes < 2:
                strikes += 1
            else:
                two_strike_fouls += 1
            continue

        event.outcome = "in_play"
        batted_ball = generate_batted_ball(
            batter.batting, pitcher, bat_side=batter.bats, rng=rng, tuning=tuning
        )
        ctx = build_context(
            batter.batting,
            batted_ball,
            fielder_map,
            outs=outs,
            runners=runners,
            rng=rng,
            tuning=tuning,
        )
        outcome = resolve_ball_in_play(ctx)
        pa.batted_ball = batted_ball
        pa.landing = ctx.landing
        pa.ball_in_play = outcome
        pa.result = outcome.result
        return pa
