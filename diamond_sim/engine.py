from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
import logging
import random

from .baserunning import BaseState, Runner, advance_runners, attempt_steal
from .boxscore import (
    BoxScore,
    accumulate,
    batter_line_summary,
    check_non_negative,
    fielding_line_summary,
    pitcher_line_summary,
)
from .config import TuningConfig, resolve_tuning
from .data_loader import load_teams
from .exceptions import InvalidRosterError
from .models import POSITION_IDS, POSITIONS, PitcherUsageConfig, Player, Team
from .pitching import (
    PitcherState,
    build_pitcher_state,
    closer_available,
    earns_hold,
    fatigue_penalty,
    lead_lost,
    save_opportunity,
    select_reliever,
    should_hook,
)
from .plate_appearance import simulate_plate_appearance
from .usage import BullpenLedger


logger = logging.getLogger(__name__)

LINEUP_SIZE = 9


@dataclass
class GameResult:
    home_score: int
    away_score: int
    innings: List[Dict[str, Any]]
    player_stats: List[Dict[str, Any]]
    pitcher_stats: List[Dict[str, Any]]
    fielding_stats: List[Dict[str, Any]] = field(default_factory=list)
    at_bat_logs: Optional[List[Dict[str, Any]]] = None
    save_pitcher_id: Optional[str] = None
    hold_pitcher_ids: List[str] = field(default_factory=list)
    winning_pitcher_id: Optional[str] = None
    losing_pitcher_id: Optional[str] = None
    ended_in_tie: bool = False
    ledger: Optional[BullpenLedger] = None
    box: Optional[BoxScore] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class TeamGameState:
    team: Team
    side: str
    lineup: List[Player]
    fielders: Dict[int, Player]
    starter: PitcherState
    bullpen: List[PitcherState]
    current: PitcherState
    batting_index: int = 0
    score: int = 0

    def all_pitchers(self) -> List[PitcherState]:
        return [self.starter] + list(self.bullpen)

    @property
    def catcher(self) -> Player:
        return self.fielders[POSITION_IDS["C"]]


def _default_lineup(team: Team) -> List[Player]:
    batters = [p for p in team.roster if not p.is_pitcher]
    return sorted(
        batters,
        key=lambda p: p.batting.contact + p.batting.power + p.batting.speed,
        reverse=True,
    )[:LINEUP_SIZE]


def _resolve_starter(team: Team, problems: List[str]) -> Optional[Player]:
    if team.starting_pitcher_id:
        starter = team.player(team.starting_pitcher_id)
        if starter is None or not starter.is_pitcher:
            problems.append(f"starting pitcher {team.starting_pitcher_id!r} is not a rostered pitcher")
            return None
        return starter
    pitchers = [p for p in team.roster if p.is_pitcher]
    for pitcher in pitchers:
        if team.usage_for(pitcher.player_id).is_starter:
            return pitcher
    if pitchers:
        return pitchers[0]
    problems.append("no eligible pitcher")
    return None


def _assign_fielders(
    lineup: List[Player], bench: List[Player], problems: List[str]
) -> Dict[int, Player]:
    fielders: Dict[int, Player] = {}
    assigned: set[str] = set()
    candidates = [p for p in lineup if not p.is_pitcher] + [p for p in bench if not p.is_pitcher]
    for code in POSITIONS[1:]:
        for player in candidates:
            if player.player_id not in assigned and player.position == code:
                fielders[POSITION_IDS[code]] = player
                assigned.add(player.player_id)
                break
    for code in POSITIONS[1:]:
        pos = POSITION_IDS[code]
        if pos in fielders:
            continue
        spare = next((p for p in candidates if p.player_id not in assigned), None)
        if spare is None:
            problems.append(f"nobody available to play {code}")
            continue
        fielders[pos] = spare
        assigned.add(spare.player_id)
    return fielders


def build_team_state(team: Team, side: str, tuning: TuningConfig) -> TeamGameState:
    """Validate a team and build its in-game state.

    Raises :class:`InvalidRosterError` listing every problem found.
    """

    problems: List[str] = []
    if not team.roster:
        raise InvalidRosterError(team.team_id, ["roster is empty"])

    if team.lineup_ids:
        lineup: List[Player] = []
        for player_id in team.lineup_ids[:LINEUP_SIZE]:
            player = team.player(player_id)
            if player is None:
                problems.append(f"lineup player {player_id!r} is not on the roster")
            else:
                lineup.append(player)
    else:
        lineup = _default_lineup(team)
    if len(lineup) < LINEUP_SIZE and not problems:
        problems.append(f"lineup has {len(lineup)} batters, need {LINEUP_SIZE}")

    starter_player = _resolve_starter(team, problems)
    bullpen: List[PitcherState] = []
    for player_id in team.reliever_ids:
        player = team.player(player_id)
        if player is None or not player.is_pitcher:
            problems.append(f"reliever {player_id!r} is not a rostered pitcher")
            continue
        if starter_player is not None and player_id == starter_player.player_id:
            continue
        bullpen.append(build_pitcher_state(player, team.usage_for(player_id), tuning))

    lineup_ids = {p.player_id for p in lineup}
    bench = [p for p in team.roster if p.player_id not in lineup_ids]
    fielders = _assign_fielders(lineup, bench, problems)
    if problems or starter_player is None:
        raise InvalidRosterError(team.team_id, problems)

    usage = team.usage_for(starter_player.player_id)
    if not usage.is_starter:
        usage = PitcherUsageConfig(starter_policy="starter", max_innings=usage.max_innings)
    starter = build_pitcher_state(starter_player, usage, tuning)
    starter.used = True
    fielders[POSITION_IDS["P"]] = starter_player
    return TeamGameState(
        team=team,
        side=side,
        lineup=lineup,
        fielders=fielders,
        starter=starter,
        bullpen=bullpen,
        current=starter,
    )


def _fielder_id(state: TeamGameState, position_id: Optional[int]) -> Optional[str]:
    if position_id is None:
        return None
    player = state.fielders.get(position_id)
    return player.player_id if player is not None else None


def simulate_game(
    home: Team,
    away: Team,
    *,
    collect_at_bat_logs: bool = False,
    seed: int | None = None,
    rng: random.Random | None = None,
    ledger: BullpenLedger | None = None,
    tuning_overrides: TuningConfig | Dict[str, Any] | None = None,
    game_day: int | None = None,
) -> GameResult:
    """Simulate one game between ``home`` and ``away``.

    Randomness comes from ``rng`` when given, otherwise from a generator
    seeded with ``seed``. The ``ledger`` is copied, updated with this game's
    pitcher usage and returned on the result; the caller's ledger is left
    untouched. ``game_day`` defaults to the day after the ledger's last day.
    """

    tuning = resolve_tuning(tuning_overrides)
    rng = rng or random.Random(seed)
    ledger_out = ledger.copy() if ledger is not None else BullpenLedger()
    day = game_day if game_day is not None else ledger_out.next_day()
    ledger_out.advance_day(day=day, tuning=tuning)

    home_state = build_team_state(home, "home", tuning)
    away_state = build_team_state(away, "away", tuning)
    states = {"home": home_state, "away": away_state}

    events: List[Dict[str, Any]] = []
    line_score: List[Dict[str, Any]] = []
    win_candidate: Dict[str, Optional[str]] = {"home": None, "away": None}
    loss_candidate: Dict[str, Optional[str]] = {"home": None, "away": None}
    hold_ids: List[str] = []
    regulation = int(tuning.get("regulation_innings"))

    for state in (away_state, home_state):
        for player in state.lineup:
            events.append(
                {"type": "appearance", "role": "batter", "player_id": player.player_id, "started": True}
            )
        events.append(
            {
                "type": "appearance",
                "role": "pitcher",
                "player_id": state.starter.player_id,
                "started": True,
            }
        )

    def change_pitcher(defense: TeamGameState, inning: int, bases: BaseState) -> None:
        lead = defense.score - states["away" if defense.side == "home" else "home"].score
        outgoing = defense.current
        candidates = defense.bullpen
        if not should_hook(
            outgoing,
            inning=inning,
            outs_in_inning=current_outs[0],
            lead=lead,
            closer_waiting=closer_available(candidates, day=day, ledger=ledger_out, tuning=tuning),
            tuning=tuning,
        ):
            return
        replacement = select_reliever(
            candidates, inning=inning, lead=lead, day=day, ledger=ledger_out, tuning=tuning
        )
        if replacement is None:
            return
        if earns_hold(outgoing, lead=lead, game_finished=False):
            hold_ids.append(outgoing.player_id)
            events.append({"type": "decision", "pitcher_id": outgoing.player_id, "decision": "hold"})
        replacement.used = True
        replacement.entered_inning = inning
        replacement.start_inning(inning)
        save_opp = save_opportunity(lead=lead, runners_on=bases.runners_on(), tuning=tuning)
        replacement.entered_save_opp = save_opp
        replacement.in_save_situation = save_opp
        defense.current = replacement
        defense.fielders[POSITION_IDS["P"]] = replacement.player
        events.append(
            {
                "type": "appearance",
                "role": "pitcher",
                "player_id": replacement.player_id,
                "started": False,
                "inherited_runners": bases.runners_on(),
                "save_opportunity": save_opp,
            }
        )
        logger.debug(
            "%s pitching change in inning %d: %s -> %s (%d pitches)",
            defense.team.team_id,
            inning,
            outgoing.player_id,
            replacement.player_id,
            outgoing.pitches,
        )

    current_outs = [0]

    def score_runs(
        offense: TeamGameState, defense: TeamGameState, scored: List[Runner]
    ) -> List[Dict[str, Any]]:
        runs: List[Dict[str, Any]] = []
        for runner in scored:
            was_tied = offense.score == defense.score
            offense.score += 1
            runs.append(
                {
                    "runner_id": runner.player.player_id,
                    "pitcher_id": runner.pitcher_id,
                    "earned": runner.earned,
                }
            )
            if was_tied:
                win_candidate[offense.side] = offense.current.player_id
                loss_candidate[defense.side] = runner.pitcher_id
            if lead_lost(defense.current, lead=defense.score - offense.score):
                events.append(
                    {
                        "type": "decision",
                        "pitcher_id": defense.current.player_id,
                        "decision": "blown_save",
                    }
                )
        return runs

    def play_half_inning(
        offense: TeamGameState, defense: TeamGameState, inning: int, half: str
    ) -> int:
        bases = BaseState()
        current_outs[0] = 0
        start_score = offense.score
        walk_off_possible = half == "bottom" and inning >= regulation
        defense.current.start_inning(inning)

        while current_outs[0] < 3:
            outs = current_outs[0]
            change_pitcher(defense, inning, bases)
            pitcher_state = defense.current
            catcher = defense.catcher

            steal = attempt_steal(
                bases,
                catcher_arm=catcher.defense("C").arm,
                outs=outs,
                rng=rng,
                tuning=tuning,
            )
            if steal is not None:
                target = steal.from_base + 1
                steal_event: Dict[str, Any] = {
                    "type": "stolen_base",
                    "inning": inning,
                    "half": half,
                    "runner_id": steal.runner.player.player_id,
                    "pitcher_id": pitcher_state.player_id,
                    "catcher_id": catcher.player_id,
                    "to_base": target,
                    "success": steal.success,
                }
                if not steal.success:
                    covering = POSITION_IDS["SS"] if target == 2 else POSITION_IDS["3B"]
                    steal_event["putouts"] = [_fielder_id(defense, covering)]
                    steal_event["assists"] = [catcher.player_id]
                    pitcher_state.outs += 1
                    current_outs[0] += 1
                events.append(steal_event)
                if current_outs[0] >= 3:
                    break
                outs = current_outs[0]

            batter = offense.lineup[offense.batting_index % len(offense.lineup)]
            pa = simulate_plate_appearance(
                batter,
                pitcher_state.abilities,
                defense.fielders,
                rng=rng,
                tuning=tuning,
                outs=outs,
                runners=bases.runner_speeds(),
                fatigue_penalty=fatigue_penalty(pitcher_state, tuning),
            )
            pitcher_state.pitches += len(pa.pitches)
            pitcher_state.batters_faced += 1

            bip = pa.ball_in_play
            fielder_pos = bip.fielder_position if bip is not None else None
            arm = 50.0
            if fielder_pos is not None:
                arm = defense.fielders[fielder_pos].defense(POSITIONS[fielder_pos - 1]).arm
            batter_runner = Runner(batter, pitcher_state.player_id, earned=pa.result != "error")
            adv = advance_runners(
                pa.result, bases, batter_runner, outs=outs, arm=arm, rng=rng, tuning=tuning
            )
            outs_on_play = min(adv.outs, 3 - outs)
            current_outs[0] += outs_on_play
            pitcher_state.outs += outs_on_play
            runs = score_runs(offense, defense, adv.scored)
            pitcher_state.runs += len(runs)
            pitcher_state.inning_runs += len(runs)
            if pa.result == "walk":
                pitcher_state.walks += 1
                pitcher_state.inning_walks += 1

            if pa.result == "strikeout":
                putouts = [catcher.player_id]
                assists: List[str] = []
            elif bip is not None:
                putouts = [_fielder_id(defense, pos) for pos in bip.putouts]
                assists = [_fielder_id(defense, pos) for pos in bip.assists]
            else:
                putouts, assists = [], []
            errors = []
            if bip is not None and bip.error_position is not None:
                errors = [_fielder_id(defense, bip.error_position)]

            event: Dict[str, Any] = {
                "type": "plate_appearance",
                "inning": inning,
                "half": half,
                "batting_team": offense.side,
                "batter_id": batter.player_id,
                "pitcher_id": pitcher_state.player_id,
                "result": pa.result,
                "looking": pa.looking,
                "outs_before": outs,
                "outs_on_play": outs_on_play,
                "rbi": adv.rbi,
                "runs": runs,
                "putouts": [pid for pid in putouts if pid],
                "assists": [pid for pid in assists if pid],
                "errors": [pid for pid in errors if pid],
                "fielder_position": fielder_pos,
                "batted_ball_type": pa.batted_ball.ball_type if pa.batted_ball else None,
                "direction": pa.batted_ball.direction if pa.batted_ball else None,
                "launch_angle": pa.batted_ball.launch_angle if pa.batted_ball else None,
                "exit_velocity": pa.batted_ball.exit_velocity if pa.batted_ball else None,
                "distance": pa.landing.distance if pa.landing else None,
                "rule": bip.rule if bip is not None else None,
                "pitches": [asdict(pitch) for pitch in pa.pitches],
                "score": {"away": away_state.score, "home": home_state.score},
            }
            events.append(event)
            offense.batting_index += 1

            if walk_off_possible and offense.score > defense.score:
                logger.debug("Walk-off in inning %d for %s", inning, offense.team.team_id)
                break
        if current_outs[0] > 3:
            raise RuntimeError(f"Half inning recorded {current_outs[0]} outs")
        return offense.score - start_score

    max_innings = int(tuning.get("max_innings"))
    inning = 1
    ended_in_tie = False
    while True:
        away_runs = play_half_inning(away_state, home_state, inning, "top")
        if inning >= regulation and home_state.score > away_state.score:
            line_score.append({"inning": inning, "away": away_runs, "home": None})
            break
        home_runs = play_half_inning(home_state, away_state, inning, "bottom")
        line_score.append({"inning": inning, "away": away_runs, "home": home_runs})
        if inning >= regulation and home_state.score != away_state.score:
            break
        inning += 1
        if inning > max_innings:
            ended_in_tie = True
            inning -= 1
            logger.debug("Game tied after %d innings", inning)
            break

    winning_pid: Optional[str] = None
    losing_pid: Optional[str] = None
    save_pid: Optional[str] = None
    if home_state.score != away_state.score:
        winner = home_state if home_state.score > away_state.score else away_state
        loser = away_state if winner is home_state else home_state
        winning_pid = win_candidate[winner.side] or winner.current.player_id
        if winning_pid == winner.starter.player_id and winner.starter.outs < tuning.get(
            "win_min_starter_outs"
        ):
            relievers = [p for p in winner.bullpen if p.used]
            if relievers:
                winning_pid = max(relievers, key=lambda p: p.outs).player_id
        losing_pid = loss_candidate[loser.side] or loser.current.player_id
        events.append({"type": "decision", "pitcher_id": winning_pid, "decision": "win"})
        events.append({"type": "decision", "pitcher_id": losing_pid, "decision": "loss"})

        closer = winner.current
        lead = winner.score - loser.score
        long_relief = closer.outs >= tuning.get("save_long_innings") * 3
        if (
            closer is not winner.starter
            and closer.player_id != winning_pid
            and not closer.blown_save
            and (closer.entered_save_opp or (long_relief and lead > 0))
        ):
            save_pid = closer.player_id
            events.append({"type": "decision", "pitcher_id": save_pid, "decision": "save"})

    for state in (away_state, home_state):
        for pitcher in state.all_pitchers():
            if pitcher.used:
                ledger_out.record_outing(
                    pitcher_id=pitcher.player_id, pitches=pitcher.pitches, day=day, tuning=tuning
                )

    box = accumulate(events)
    check_non_negative(box)

    def team_of(player_id: str) -> str:
        return "home" if home.player(player_id) is not None else "away"

    player_stats = [
        dict(batter_line_summary(line), team=team_of(pid)) for pid, line in box.batting.items()
    ]
    pitcher_stats = [
        dict(pitcher_line_summary(line), team=team_of(pid)) for pid, line in box.pitching.items()
    ]
    fielding_stats = [
        dict(fielding_line_summary(line), team=team_of(pid)) for pid, line in box.fielding.items()
    ]

    return GameResult(
        home_score=home_state.score,
        away_score=away_state.score,
        innings=line_score,
        player_stats=player_stats,
        pitcher_stats=pitcher_stats,
        fielding_stats=fielding_stats,
        at_bat_logs=(
            [e for e in events if e["type"] == "plate_appearance"] if collect_at_bat_logs else None
        ),
        save_pitcher_id=save_pid,
        hold_pitcher_ids=hold_ids,
        winning_pitcher_id=winning_pid,
        losing_pitcher_id=losing_pid,
        ended_in_tie=ended_in_tie,
        ledger=ledger_out,
        box=box,
        metadata={
            "seed": seed,
            "day": day,
            "innings": inning,
            "home_team": home.team_id,
            "away_team": away.team_id,
            "plate_appearances": sum(1 for e in events if e["type"] == "plate_appearance"),
            "results": dict(
                Counter(e["result"] for e in events if e["type"] == "plate_appearance")
            ),
            "pitchers_used": {
                side: [p.player_id for p in state.all_pitchers() if p.used]
                for side, state in states.items()
            },
        },
    )


def simulate_matchup_from_files(
    *,
    away_team: str,
    home_team: str,
    players_path: Path,
    seed: int | None = None,
    tuning_overrides: Dict[str, Any] | None = None,
    ledger: BullpenLedger | None = None,
    game_day: int | None = None,
    collect_at_bat_logs: bool = False,
) -> GameResult:
    """Load both teams from a players CSV and simulate a matchup."""

    teams = load_teams(Path(players_path))
    missing = [team_id for team_id in (away_team, home_team) if team_id not in teams]
    if missing:
        raise InvalidRosterError(missing[0], [f"no players found in {players_path}"])
    return simulate_game(
        teams[home_team],
        teams[away_team],
        collect_at_bat_logs=collect_at_bat_logs,
        seed=seed,
        ledger=ledger,
        tuning_overrides=tuning_overrides,
        game_day=game_day,
    )
