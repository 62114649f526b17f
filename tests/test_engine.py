import logging
import random

import pytest

from diamond_sim.engine import build_team_state, simulate_game
from diamond_sim.config import TuningConfig
from diamond_sim.exceptions import InvalidRosterError
from diamond_sim.models import Team
from diamond_sim.outcomes import PA_RESULTS
from diamond_sim.usage import BullpenLedger
from tests.util.factories import make_pitcher, make_team


def _outs_by_half(logs: list[dict]) -> dict[tuple[int, str], int]:
    outs: dict[tuple[int, str], int] = {}
    for entry in logs:
        key = (entry["inning"], entry["half"])
        outs[key] = outs.get(key, 0) + entry["outs_on_play"]
    return outs


def test_game_produces_consistent_result() -> None:
    home, away = make_team("HOM"), make_team("AWY")
    result = simulate_game(home, away, seed=123, collect_at_bat_logs=True)

    assert result.home_score == sum(e["home"] or 0 for e in result.innings)
    assert result.away_score == sum(e["away"] for e in result.innings)
    assert len(result.innings) >= 9
    if not result.ended_in_tie:
        assert result.home_score != result.away_score
        assert result.winning_pitcher_id is not None
        assert result.losing_pitcher_id is not None

    runs = sum(line["r"] for line in result.player_stats)
    assert runs == result.home_score + result.away_score
    logs = result.at_bat_logs
    assert logs is not None
    assert len(logs) == sum(line["pa"] for line in result.player_stats)
    assert all(entry["result"] in PA_RESULTS for entry in logs)


def test_every_full_half_inning_has_three_outs() -> None:
    for seed in range(5):
        result = simulate_game(make_team("HOM"), make_team("AWY"), seed=seed, collect_at_bat_logs=True)
        outs = _outs_by_half(result.at_bat_logs)
        away_outs = sum(line["outs"] for line in result.pitcher_stats if line["team"] == "home")
        innings = len(result.innings)
        # caught stealing outs do not appear in plate-appearance logs
        assert all(count <= 3 for count in outs.values())
        assert away_outs == 3 * innings


def test_regulation_game_without_walk_off_records_54_outs() -> None:
    for seed in range(20):
        result = simulate_game(make_team("HOM"), make_team("AWY"), seed=seed)
        outs = sum(line["outs"] for line in result.pitcher_stats)
        last = result.innings[-1]
        if len(result.innings) == 9 and last["home"] is not None and result.away_score > result.home_score:
            assert outs == 54
            return
    pytest.skip("no road win in nine innings among the sampled seeds")


def test_same_seed_same_game() -> None:
    first = simulate_game(make_team("HOM"), make_team("AWY"), seed=77)
    second = simulate_game(make_team("HOM"), make_team("AWY"), seed=77)
    assert first.innings == second.innings
    assert first.player_stats == second.player_stats
    third = simulate_game(make_team("HOM"), make_team("AWY"), rng=random.Random(77))
    assert third.innings == first.innings


def test_logs_only_when_requested() -> None:
    result = simulate_game(make_team("HOM"), make_team("AWY"), seed=5)
    assert result.at_bat_logs is None


def test_ledger_is_copied_and_updated() -> None:
    ledger = BullpenLedger()
    result = simulate_game(make_team("HOM"), make_team("AWY"), seed=8, ledger=ledger, game_day=3)
    assert ledger.workloads == {}
    assert ledger.current_day is None
    assert result.ledger is not ledger
    assert result.ledger.current_day == 3
    assert result.ledger.workloads["HOM-SP"].last_used_day == 3
    assert result.ledger.workloads["AWY-SP"].appearances == 1

    follow_up = simulate_game(make_team("HOM"), make_team("AWY"), seed=9, ledger=result.ledger)
    assert follow_up.ledger.current_day == 4


def test_pitcher_decisions_are_consistent() -> None:
    for seed in range(10):
        result = simulate_game(make_team("HOM"), make_team("AWY"), seed=seed)
        if result.ended_in_tie:
            continue
        winner_prefix = "HOM" if result.home_score > result.away_score else "AWY"
        assert result.winning_pitcher_id.startswith(winner_prefix)
        assert not result.losing_pitcher_id.startswith(winner_prefix)
        if result.save_pitcher_id is not None:
            assert result.save_pitcher_id.startswith(winner_prefix)
            assert result.save_pitcher_id != result.winning_pitcher_id
        lines = {line["player_id"]: line for line in result.pitcher_stats}
        assert lines[result.winning_pitcher_id]["w"] == 1
        assert lines[result.losing_pitcher_id]["l"] == 1
        assert sum(line["gs"] for line in result.pitcher_stats) == 2


def test_earned_runs_never_exceed_runs() -> None:
    for seed in range(10):
        result = simulate_game(make_team("HOM"), make_team("AWY"), seed=seed)
        for line in result.pitcher_stats:
            assert 0 <= line["er"] <= line["r"]
        charged = sum(line["r"] for line in result.pitcher_stats)
        assert charged == result.home_score + result.away_score


def test_tie_after_inning_cap() -> None:
    # no runs can score when nobody makes contact and nobody walks
    overrides = {
        "zone_contact_base": 0.0,
        "zone_contact_min": 0.0,
        "zone_contact_max": 0.0,
        "location_spread_base": 0.1,
        "location_spread_control": 0.0,
        "hbp_min": 0.0,
        "hbp_max": 0.0,
        "max_innings": 10,
    }
    result = simulate_game(make_team("HOM"), make_team("AWY"), seed=1, tuning_overrides=overrides)
    assert result.ended_in_tie
    assert len(result.innings) == 10
    assert result.home_score == result.away_score == 0
    assert result.winning_pitcher_id is None


def test_invalid_rosters_are_rejected() -> None:
    team = make_team("BAD")
    short = Team(
        team_id="BAD",
        name="Bad",
        roster=team.roster,
        lineup_ids=team.lineup_ids[:5],
        starting_pitcher_id=team.starting_pitcher_id,
        reliever_ids=team.reliever_ids,
        usage=team.usage,
    )
    with pytest.raises(InvalidRosterError) as excinfo:
        simulate_game(short, make_team("AWY"), seed=1)
    assert excinfo.value.team_id == "BAD"

    no_pitcher = Team(
        team_id="NOP",
        name="No pitchers",
        roster=[p for p in team.roster if not p.is_pitcher],
    )
    with pytest.raises(InvalidRosterError):
        build_team_state(no_pitcher, "home", TuningConfig())

    unknown = make_team("UNK")
    unknown.lineup_ids[0] = "ghost"
    with pytest.raises(InvalidRosterError) as excinfo:
        simulate_game(make_team("HOM"), unknown, seed=1)
    assert any("ghost" in problem for problem in excinfo.value.problems)


def test_default_lineup_and_starter_are_filled_in() -> None:
    team = make_team("AUTO")
    bare = Team(team_id="AUTO", name="Auto", roster=team.roster + [make_pitcher("AUTO-SP2")])
    state = build_team_state(bare, "home", TuningConfig())
    assert len(state.lineup) == 9
    assert all(not p.is_pitcher for p in state.lineup)
    assert state.starter.player.is_pitcher
    assert set(state.fielders) == set(range(1, 10))


def test_pitching_changes_are_logged(caplog) -> None:
    caplog.set_level(logging.DEBUG, logger="diamond_sim.engine")
    for seed in range(3):
        simulate_game(make_team("HOM"), make_team("AWY"), seed=seed)
    assert any("pitching change" in record.getMessage() for record in caplog.records)
