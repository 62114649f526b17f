import random
from collections import Counter

from diamond_sim.config import TuningConfig
from diamond_sim.models import BatterAbilities, DefensiveRatings, PitcherAbilities, Player, parse_pitches
from diamond_sim.outcomes import PA_RESULTS
from diamond_sim.plate_appearance import (
    contact_probability,
    hit_by_pitch_probability,
    simulate_plate_appearance,
    swing_probability,
)


TUNING = TuningConfig()
PITCHER = PitcherAbilities(pitches=parse_pitches("slider:5;curve:4;fork:4"))


def _defense() -> dict[int, DefensiveRatings]:
    return {pos: DefensiveRatings(speed=50.0, fielding=50.0, catching=50.0, arm=50.0) for pos in range(1, 10)}


def _batter(**ratings: float) -> Player:
    return Player(player_id="b1", name="Batter", position="1B", batting=BatterAbilities(**ratings))


def test_swing_and_contact_probabilities() -> None:
    batter = _batter()
    assert swing_probability(batter, True, 0, TUNING) > swing_probability(batter, False, 0, TUNING)
    assert swing_probability(batter, True, 2, TUNING) > swing_probability(batter, True, 0, TUNING)
    patient = _batter(eye=90.0)
    assert swing_probability(patient, False, 0, TUNING) < swing_probability(batter, False, 0, TUNING)
    assert contact_probability(batter, True, 0.0, TUNING) > contact_probability(batter, False, 0.0, TUNING)
    assert contact_probability(batter, True, 0.1, TUNING) < contact_probability(batter, True, 0.0, TUNING)


def test_wild_pitchers_hit_more_batters() -> None:
    assert hit_by_pitch_probability(20.0, TUNING) > hit_by_pitch_probability(80.0, TUNING)


def test_plate_appearances_end_in_terminal_results() -> None:
    rng = random.Random(2024)
    batter = _batter()
    results = Counter()
    for _ in range(400):
        pa = simulate_plate_appearance(batter, PITCHER, _defense(), rng=rng, tuning=TUNING)
        assert pa.result in PA_RESULTS
        assert pa.pitches
        assert pa.pitches[0].count == "0-0"
        outcomes = [p.outcome for p in pa.pitches]
        if pa.result == "walk":
            assert outcomes.count("ball") == 4
            assert outcomes[-1] == "ball"
        elif pa.result == "strikeout":
            assert outcomes[-1] in {"called_strike", "swinging_strike", "foul_tip"}
            assert pa.looking == (outcomes[-1] == "called_strike")
        elif pa.result == "hitByPitch":
            assert outcomes[-1] == "hbp"
        else:
            assert outcomes[-1] == "in_play"
            assert pa.batted_ball is not None
            assert pa.landing is not None
            assert pa.ball_in_play is not None
        assert outcomes.count("ball") <= 4
        results[pa.result] += 1
    assert results["strikeout"] > 40
    assert results["walk"] > 10


def _zone_rate(fatigue: float) -> float:
    rng = random.Random(9)
    batter = _batter()
    in_zone = total = 0
    for _ in range(2000):
        pa = simulate_plate_appearance(
            batter, PITCHER, _defense(), rng=rng, tuning=TUNING, fatigue_penalty=fatigue
        )
        for pitch in pa.pitches:
            total += 1
            in_zone += pitch.in_zone
    return in_zone / total


def test_tired_pitchers_lose_the_zone() -> None:
    assert _zone_rate(0.5) < _zone_rate(0.0)
