import json

from diamond_sim.engine import simulate_game
from diamond_sim.outputs import aggregate_pitch_log, format_box_score, game_result_to_dict
from tests.util.factories import make_team


def test_result_dict_is_json_ready() -> None:
    result = simulate_game(make_team("HOM"), make_team("AWY"), seed=31, collect_at_bat_logs=True)
    payload = game_result_to_dict(result)
    text = json.dumps(payload)
    assert json.loads(text)["score"] == {"home": result.home_score, "away": result.away_score}
    assert payload["decisions"]["win"] == result.winning_pitcher_id
    pitcher_line = payload["pitching"][0]
    assert "zone_pitches" in pitcher_line
    assert len(payload["at_bat_logs"]) == len(result.at_bat_logs)


def test_aggregate_pitch_log_counts_plate_discipline() -> None:
    logs = [
        {
            "batter_id": "b1",
            "pitcher_id": "p1",
            "result": "strikeout",
            "looking": True,
            "pitches": [
                {"count": "0-0", "outcome": "called_strike", "in_zone": True},
                {"count": "0-1", "outcome": "ball", "in_zone": False},
                {"count": "1-1", "outcome": "swinging_strike", "in_zone": False, "swing": True},
                {"count": "1-2", "outcome": "called_strike", "in_zone": True},
            ],
        },
        {
            "batter_id": "b2",
            "pitcher_id": "p1",
            "result": "single",
            "pitches": [
                {"count": "0-0", "outcome": "in_play", "in_zone": True, "swing": True, "contact": True},
            ],
        },
    ]
    batters, pitchers = aggregate_pitch_log(logs)
    assert batters["b1"]["pitches"] == 4
    assert batters["b1"]["so_looking"] == 1
    p1 = pitchers["p1"]
    assert p1["first_pitch_strikes"] == 2
    assert (p1["zone_pitches"], p1["o_zone_pitches"]) == (3, 2)
    assert (p1["zone_swings"], p1["o_zone_swings"]) == (1, 1)
    assert (p1["zone_contacts"], p1["o_zone_contacts"]) == (1, 0)


def test_box_score_lists_both_teams() -> None:
    result = simulate_game(make_team("HOM"), make_team("AWY"), seed=12)
    text = format_box_score(result)
    assert "HOM batting" in text
    assert "AWY pitching" in text
    assert "HOM-SP" in text
