import math
import random

import pytest

from diamond_sim.config import TuningConfig
from diamond_sim.models import BatterAbilities, PitcherAbilities, parse_pitches
from diamond_sim.physics import (
    calc_ball_landing,
    calc_breaking_power,
    classify_batted_ball_type,
    estimate_distance,
    generate_batted_ball,
    get_fence_distance,
    sinker_bonus,
)


def test_classify_batted_ball_type_thresholds() -> None:
    assert classify_batted_ball_type(55.0, 150.0) == "popup"
    assert classify_batted_ball_type(40.0, 120.0) == "popup"
    assert classify_batted_ball_type(40.0, 150.0) == "fly_ball"
    assert classify_batted_ball_type(5.0, 150.0) == "ground_ball"
    assert classify_batted_ball_type(12.0, 90.0) == "ground_ball"
    assert classify_batted_ball_type(12.0, 120.0) == "line_drive"
    assert classify_batted_ball_type(25.0, 150.0) == "fly_ball"


def test_breaking_power_and_sinker_bonus() -> None:
    assert calc_breaking_power(parse_pitches("")) == pytest.approx(30.0)
    mixed = parse_pitches("slider:5;curve:4;fork:4")
    assert calc_breaking_power(mixed) == pytest.approx(57 / 245 * 130)
    assert calc_breaking_power(parse_pitches("slider:7;curve:7;fork:7;changeup:7")) == 100.0
    assert sinker_bonus(parse_pitches("sinker:3")) == pytest.approx(1.8)
    assert sinker_bonus(parse_pitches("sinker:7;shoot:7")) == pytest.approx(5.0)


def test_estimate_distance_grows_with_exit_velocity() -> None:
    assert estimate_distance(150.0, 0.0) == 0.0
    assert estimate_distance(150.0, -5.0) == 0.0
    slow = estimate_distance(130.0, 28.0)
    fast = estimate_distance(165.0, 28.0)
    assert 0.0 < slow < fast
    assert 95.0 < estimate_distance(160.0, 28.0) < 125.0


def test_fence_distance_peaks_in_centre_field() -> None:
    assert get_fence_distance(0.0) == pytest.approx(100.0)
    assert get_fence_distance(90.0) == pytest.approx(100.0)
    assert get_fence_distance(45.0) == pytest.approx(122.0)


def test_ground_ball_landing_is_capped_and_decelerates() -> None:
    landing = calc_ball_landing(45.0, 2.0, 170.0)
    assert landing.is_ground_ball
    assert landing.distance <= 55.0
    v0 = 170.0 / 3.6
    assert landing.flight_time == pytest.approx(landing.distance / (0.5 * v0))
    assert landing.x == pytest.approx(0.0, abs=1e-9)
    assert landing.y == pytest.approx(landing.distance)


def test_air_landing_coordinates_follow_direction() -> None:
    left = calc_ball_landing(0.0, 30.0, 150.0)
    right = calc_ball_landing(90.0, 30.0, 150.0)
    assert not left.is_ground_ball
    assert left.x < 0 < right.x
    assert math.hypot(left.x, left.y) == pytest.approx(left.distance)
    assert left.flight_time > 0


def test_generate_batted_ball_is_reproducible_and_bounded() -> None:
    batter = BatterAbilities()
    pitcher = PitcherAbilities(pitches=parse_pitches("slider:5;curve:4;fork:4"))
    first = generate_batted_ball(batter, pitcher, rng=random.Random(7))
    second = generate_batted_ball(batter, pitcher, rng=random.Random(7))
    assert first == second

    rng = random.Random(11)
    for _ in range(500):
        ball = generate_batted_ball(batter, pitcher, rng=rng)
        assert 0.0 <= ball.direction <= 90.0
        assert -15.0 <= ball.launch_angle <= 70.0
        assert 80.0 <= ball.exit_velocity <= 170.0
        assert ball.ball_type == classify_batted_ball_type(ball.launch_angle, ball.exit_velocity)


def test_handedness_shifts_spray_direction() -> None:
    batter = BatterAbilities(power=70.0)
    pitcher = PitcherAbilities()
    rng = random.Random(3)
    right = [generate_batted_ball(batter, pitcher, bat_side="R", rng=rng).direction for _ in range(400)]
    left = [generate_batted_ball(batter, pitcher, bat_side="L", rng=rng).direction for _ in range(400)]
    assert sum(right) / len(right) < 45.0 < sum(left) / len(left)


def test_sinkers_lower_launch_angle() -> None:
    tuning = TuningConfig()
    batter = BatterAbilities()
    flat = PitcherAbilities(pitches=parse_pitches("slider:4"))
    sinking = PitcherAbilities(pitches=parse_pitches("slider:4;sinker:7"))
    rng = random.Random(5)
    flat_angles = [generate_batted_ball(batter, flat, rng=rng, tuning=tuning).launch_angle for _ in range(600)]
    sink_angles = [generate_batted_ball(batter, sinking, rng=rng, tuning=tuning).launch_angle for _ in range(600)]
    assert sum(sink_angles) / 600 < sum(flat_angles) / 600


def test_classify_reference_cases() -> None:
    assert classify_batted_ball_type(5.0, 130.0) == "ground_ball"
    assert classify_batted_ball_type(45.0, 150.0) == "fly_ball"
    assert classify_batted_ball_type(40.0, 120.0) == "popup"


@pytest.mark.parametrize("velocity", [80.0, 120.0, 150.0, 170.0])
def test_non_positive_angles_carry_nowhere(velocity: float) -> None:
    for angle in (-15.0, -5.0, -0.5, 0.0):
        assert estimate_distance(velocity, angle) == 0.0


@pytest.mark.parametrize("angle", [5.0, 15.0, 28.0, 45.0, 60.0])
def test_distance_strictly_increases_with_velocity(angle: float) -> None:
    distances = [estimate_distance(float(v), angle) for v in range(80, 171, 5)]
    assert all(a < b for a, b in zip(distances, distances[1:]))


@pytest.mark.parametrize("velocity", [100.0, 140.0, 165.0])
def test_distance_peaks_between_thirty_and_fifty_degrees(velocity: float) -> None:
    angles = [a / 2.0 for a in range(2, 180)]
    best = max(angles, key=lambda a: estimate_distance(velocity, a))
    assert 30.0 <= best <= 50.0


def test_centre_field_is_the_deepest_fence() -> None:
    peak = get_fence_distance(45.0)
    for step in range(0, 901):
        direction = step / 10.0
        assert get_fence_distance(direction) <= peak + 1e-9
        assert get_fence_distance(direction) == pytest.approx(get_fence_distance(90.0 - direction))


@pytest.mark.parametrize("angle", [-15.0, -5.0, 0.0, 4.0, 9.9])
def test_ground_balls_never_land_beyond_the_cap(angle: float) -> None:
    for velocity in range(40, 201, 5):
        landing = calc_ball_landing(30.0, angle, float(velocity))
        assert landing.is_ground_ball
        assert 0.0 < landing.distance <= 55.0


def test_batted_ball_type_shares_cover_every_ball() -> None:
    batter = BatterAbilities()
    pitcher = PitcherAbilities(pitches=parse_pitches("slider:5;curve:4;fork:4"))
    rng = random.Random(21)
    total = 5000
    counts = {"ground_ball": 0, "line_drive": 0, "fly_ball": 0, "popup": 0}
    for _ in range(total):
        counts[generate_batted_ball(batter, pitcher, rng=rng).ball_type] += 1
    shares = {kind: 100.0 * n / total for kind, n in counts.items()}
    assert sum(shares.values()) == pytest.approx(100.0)
    assert all(share > 0.0 for share in shares.values())
