from diamond_sim.fielding import (
    evaluate_fielders,
    primary_fielder,
    retrieving_outfielder,
)
from diamond_sim.models import DefensiveRatings, PitcherAbilities, Player
from diamond_sim.physics import Landing, calc_ball_landing


def _average_defense() -> dict[int, DefensiveRatings]:
    return {pos: DefensiveRatings(speed=50.0, fielding=50.0, catching=50.0, arm=50.0) for pos in range(1, 10)}


def _air_landing(x: float, y: float, flight_time: float) -> Landing:
    distance = (x * x + y * y) ** 0.5
    return Landing(
        x=x,
        y=y,
        distance=distance,
        flight_time=flight_time,
        is_ground_ball=False,
        direction=45.0,
        initial_speed=40.0,
    )


def test_exactly_one_primary_on_catchable_fly() -> None:
    evals = evaluate_fielders(_air_landing(0.0, 76.0, 4.5), "fly_ball", _average_defense())
    primaries = [ev for ev in evals if ev.role == "primary"]
    assert len(primaries) == 1
    assert primaries[0].position_id in {7, 8, 9}
    assert primaries[0].margin >= 0
    # infielders are out of range on a deep fly
    assert not any(ev.can_reach for ev in evals if ev.position_id in {3, 4, 5, 6})


def test_catcher_only_chases_popups() -> None:
    landing = _air_landing(0.0, 5.0, 3.0)
    fly = {ev.position_id: ev for ev in evaluate_fielders(landing, "fly_ball", _average_defense())}
    popup = {ev.position_id: ev for ev in evaluate_fielders(landing, "popup", _average_defense())}
    assert not fly[2].can_reach
    assert popup[2].can_reach


def test_outfielders_never_field_ground_balls_cleanly() -> None:
    landing = calc_ball_landing(45.0, 0.0, 165.0)
    evals = evaluate_fielders(landing, "ground_ball", _average_defense())
    for ev in evals:
        if ev.position_id in {7, 8, 9}:
            assert not ev.can_reach
            assert ev.role is None


def test_ball_in_the_gap_gets_retrieval_penalty() -> None:
    evals = evaluate_fielders(_air_landing(0.0, 120.0, 2.0), "fly_ball", _average_defense())
    assert primary_fielder(evals) is None
    outfield = [ev for ev in evals if ev.position_id in {7, 8, 9}]
    # deep drive near the wall: base 1.4 + depth 2.2 + fence 0.6
    assert all(abs(ev.bounce_penalty - 4.2) < 1e-9 for ev in outfield)
    retriever = retrieving_outfielder(evals)
    assert retriever is not None
    assert retriever.position_id == 8


def test_pitcher_uses_pitching_defense_ratings() -> None:
    slow_glove = Player(
        player_id="p1",
        name="Pitcher",
        position="P",
        pitching=PitcherAbilities(fielding=10.0, catching=10.0, arm=10.0),
    )
    fielders = dict(_average_defense())
    fielders[1] = slow_glove
    landing = _air_landing(0.0, 18.0, 3.0)
    evals = {ev.position_id: ev for ev in evaluate_fielders(landing, "popup", fielders)}
    baseline = {ev.position_id: ev for ev in evaluate_fielders(landing, "popup", _average_defense())}
    assert evals[1].time_to_reach > baseline[1].time_to_reach
