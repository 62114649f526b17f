import pytest

from diamond_sim.boxscore import (
    BoxScore,
    accumulate,
    check_non_negative,
    innings_pitched,
    pitcher_line_summary,
)


def _pa(result: str, **extra) -> dict:
    event = {
        "type": "plate_appearance",
        "batter_id": "b1",
        "pitcher_id": "p1",
        "result": result,
        "outs_on_play": 0,
        "pitches": [{"outcome": "ball"}, {"outcome": "in_play"}],
        "rbi": 0,
        "runs": [],
    }
    event.update(extra)
    return event


def test_hits_and_outs_fold_into_batting_and_pitching() -> None:
    events = [
        _pa("double", batted_ball_type="line_drive"),
        _pa("groundout", outs_on_play=1, batted_ball_type="ground_ball", putouts=["f3"], assists=["f6"]),
        _pa(
            "homerun",
            batted_ball_type="fly_ball",
            rbi=2,
            runs=[
                {"runner_id": "r9", "pitcher_id": "p1", "earned": True},
                {"runner_id": "b1", "pitcher_id": "p1", "earned": True},
            ],
        ),
    ]
    box = accumulate(events)
    batter = box.batting["b1"]
    assert (batter.pa, batter.ab, batter.h, batter.b2, batter.hr, batter.rbi, batter.r) == (3, 3, 2, 1, 1, 2, 1)
    pitcher = box.pitching["p1"]
    assert pitcher.outs == 1
    assert pitcher.pitches == 6
    assert pitcher.balls == 3
    assert pitcher.strikes == 3
    assert (pitcher.hits, pitcher.home_runs, pitcher.runs, pitcher.earned_runs) == (2, 1, 2, 2)
    assert (pitcher.gb, pitcher.fb, pitcher.ld) == (1, 1, 1)
    assert box.fielding["f3"].po == 1
    assert box.fielding["f6"].a == 1


def test_walks_sac_flies_and_hbp_are_not_at_bats() -> None:
    box = accumulate([_pa("walk"), _pa("sacrificeFly", outs_on_play=1, rbi=1), _pa("hitByPitch")])
    batter = box.batting["b1"]
    assert batter.pa == 3
    assert batter.ab == 0
    assert (batter.bb, batter.sf, batter.hbp) == (1, 1, 1)


def test_unearned_runs_and_errors() -> None:
    box = accumulate(
        [
            _pa("error", errors=["f5"]),
            _pa("single", runs=[{"runner_id": "b2", "pitcher_id": "p1", "earned": False}], rbi=1),
        ]
    )
    assert box.pitching["p1"].runs == 1
    assert box.pitching["p1"].earned_runs == 0
    assert box.fielding["f5"].e == 1
    assert box.batting["b1"].roe == 1


def test_double_play_credits_every_fielder_once() -> None:
    box = accumulate(
        [_pa("doublePlay", outs_on_play=2, putouts=["f4", "f3"], assists=["f6", "f4"])]
    )
    assert box.batting["b1"].gidp == 1
    assert box.pitching["p1"].outs == 2
    assert {pid: line.dp for pid, line in box.fielding.items()} == {"f4": 1, "f3": 1, "f6": 1}
    assert box.fielding["f4"].po == 1
    assert box.fielding["f4"].a == 1


def test_steals_appearances_and_decisions() -> None:
    events = [
        {"type": "stolen_base", "runner_id": "b1", "pitcher_id": "p1", "success": True},
        {
            "type": "stolen_base",
            "runner_id": "b1",
            "pitcher_id": "p1",
            "success": False,
            "putouts": ["ss"],
            "assists": ["c"],
        },
        {"type": "appearance", "role": "pitcher", "player_id": "p1", "started": True},
        {
            "type": "appearance",
            "role": "pitcher",
            "player_id": "p2",
            "started": False,
            "inherited_runners": 2,
            "save_opportunity": True,
        },
        {"type": "decision", "pitcher_id": "p1", "decision": "win"},
        {"type": "decision", "pitcher_id": "p2", "decision": "save"},
        {"type": "unknown"},
    ]
    box = accumulate(events)
    assert (box.batting["b1"].sb, box.batting["b1"].cs) == (1, 1)
    assert box.pitching["p1"].outs == 1
    assert box.pitching["p1"].gs == 1
    assert box.pitching["p2"].ir == 2
    assert box.pitching["p2"].svo == 1
    assert box.pitching["p1"].w == 1
    assert box.pitching["p2"].sv == 1
    assert box.fielding["c"].a == 1


def test_accumulate_is_additive() -> None:
    first = [_pa("single")]
    second = [_pa("strikeout", outs_on_play=1)]
    merged = accumulate(second, accumulate(first))
    at_once = accumulate(first + second)
    assert merged == at_once


def test_innings_pitched_notation() -> None:
    assert innings_pitched(20) == pytest.approx(6.2)
    assert innings_pitched(27) == pytest.approx(9.0)
    line = BoxScore().pitcher("p9")
    line.outs = 4
    assert pitcher_line_summary(line)["innings_pitched"] == pytest.approx(1.1)


def test_negative_counters_are_rejected() -> None:
    box = BoxScore()
    box.batter("b1").h = -1
    with pytest.raises(RuntimeError):
        check_non_negative(box)
