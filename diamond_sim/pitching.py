from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from .config import TuningConfig
from .models import PitcherAbilities, PitcherUsageConfig, Player
from .physics import calc_breaking_power
from .usage import BullpenLedger


@dataclass
class PitcherState:
    player: Player
    usage: PitcherUsageConfig
    pitch_limit: float = 0.0
    pitches: int = 0
    outs: int = 0
    batters_faced: int = 0
    runs: int = 0
    walks: int = 0
    inning_runs: int = 0
    inning_walks: int = 0
    current_inning: int = 0
    entered_inning: int = 0
    used: bool = False
    entered_save_opp: bool = False
    in_save_situation: bool = False
    blown_save: bool = False

    @property
    def player_id(self) -> str:
        return self.player.player_id

    @property
    def abilities(self) -> PitcherAbilities:
        if self.player.pitching is None:
            return PitcherAbilities()
        return self.player.pitching

    @property
    def is_starter(self) -> bool:
        return self.usage.is_starter

    def start_inning(self, inning: int) -> None:
        if inning != self.current_inning:
            self.current_inning = inning
            self.inning_runs = 0
            self.inning_walks = 0


def pitch_limit(abilities: PitcherAbilities, *, starter: bool, tuning: TuningConfig) -> float:
    if starter:
        return tuning.get("pitch_limit_base") + abilities.stamina * tuning.get("pitch_limit_stamina")
    return tuning.get("reliever_pitch_limit_base") + abilities.stamina * tuning.get(
        "reliever_pitch_limit_stamina"
    )


def build_pitcher_state(
    player: Player, usage: PitcherUsageConfig, tuning: TuningConfig
) -> PitcherState:
    state = PitcherState(player=player, usage=usage)
    state.pitch_limit = pitch_limit(state.abilities, starter=usage.is_starter, tuning=tuning)
    return state


def fatigue_penalty(state: PitcherState, tuning: TuningConfig) -> float:
    over = state.pitches - state.pitch_limit
    if over <= 0:
        return 0.0
    return min(tuning.get("fatigue_max_penalty"), over / tuning.get("fatigue_window"))


def reliever_max_outs(state: PitcherState, tuning: TuningConfig) -> int:
    if state.usage.max_innings:
        return int(state.usage.max_innings * 3)
    policy = state.usage.reliever_policy or "behind_ok"
    return int(tuning.get(f"{policy}_max_outs", 6.0))


def save_opportunity(*, lead: int, runners_on: int, tuning: TuningConfig) -> bool:
    save_diff = int(tuning.get("save_opportunity_run_diff"))
    if lead <= 0:
        return False
    if lead <= save_diff:
        return True
    # tying run on base, at bat or on deck
    if lead == save_diff + 1 and runners_on >= 2:
        return True
    if lead == save_diff + 2 and runners_on >= 3:
        return True
    return False


def leverage_type(inning: int, lead: int, tuning: TuningConfig) -> str:
    if abs(lead) >= tuning.get("blowout_run_diff"):
        return "blowout"
    save_diff = int(tuning.get("save_opportunity_run_diff"))
    if inning >= tuning.get("closer_inning") and 0 < lead <= save_diff:
        return "save"
    if abs(lead) <= tuning.get("close_game_run_diff") or 0 < lead <= save_diff:
        return "close"
    if lead < 0:
        return "behind"
    return "ahead"


POLICY_ORDER = {
    "save": ["closer", "close_game", "behind_ok", "mop_up"],
    "close": ["close_game", "behind_ok", "mop_up", "closer"],
    "behind": ["behind_ok", "mop_up", "close_game"],
    "ahead": ["behind_ok", "close_game", "mop_up"],
    "blowout": ["mop_up", "behind_ok", "close_game"],
}


def should_hook(
    state: PitcherState,
    *,
    inning: int,
    outs_in_inning: int,
    lead: int,
    closer_waiting: bool,
    tuning: TuningConfig,
) -> bool:
    """Decide whether to replace the pitcher before the next batter.

    ``closer_waiting`` is set by the caller when a rested closer could take a
    save situation at the start of an inning.
    """

    if state.pitches >= state.pitch_limit:
        return True
    if state.usage.max_innings and state.outs >= state.usage.max_innings * 3:
        return True
    if state.is_starter:
        if state.runs >= tuning.get("hook_runs_allowed"):
            return True
        if state.inning_runs >= tuning.get("hook_inning_runs"):
            return True
        if state.inning_walks >= tuning.get("hook_walks_in_inning"):
            return True
    elif state.outs >= reliever_max_outs(state, tuning) and outs_in_inning == 0:
        return True
    if (
        closer_waiting
        and outs_in_inning == 0
        and state.usage.reliever_policy != "closer"
        and leverage_type(inning, lead, tuning) == "save"
    ):
        return True
    return False


def reliever_score(state: PitcherState, ledger: BullpenLedger | None) -> float:
    abilities = state.abilities
    score = (
        (abilities.velocity - 130.0) * 0.5
        + abilities.control * 0.3
        + calc_breaking_power(abilities.pitches) * 0.3
    )
    if ledger is not None:
        workload = ledger.workloads.get(state.player_id)
        if workload is not None:
            score -= workload.fatigue_debt * 0.1
    return score


def select_reliever(
    candidates: Sequence[PitcherState],
    *,
    inning: int,
    lead: int,
    day: int,
    ledger: BullpenLedger | None,
    tuning: TuningConfig,
) -> Optional[PitcherState]:
    """Pick the next reliever by situation and usage policy.

    Relievers already used in this game, and relievers the ledger shows
    pitching too many consecutive days, are skipped. Returns ``None`` when
    nobody is available.
    """

    available: List[PitcherState] = [
        c
        for c in candidates
        if not c.used and (ledger is None or not ledger.is_overused(c.player_id, day, tuning))
    ]
    if not available:
        return None
    order = POLICY_ORDER[leverage_type(inning, lead, tuning)]
    for policy in order:
        pool = [c for c in available if c.usage.reliever_policy == policy]
        if pool:
            return max(pool, key=lambda c: reliever_score(c, ledger))
    return max(available, key=lambda c: reliever_score(c, ledger))


def closer_available(
    candidates: Sequence[PitcherState],
    *,
    day: int,
    ledger: BullpenLedger | None,
    tuning: TuningConfig,
) -> bool:
    return any(
        c.usage.reliever_policy == "closer"
        and not c.used
        and (ledger is None or not ledger.is_overused(c.player_id, day, tuning))
        for c in candidates
    )


def lead_lost(state: PitcherState, *, lead: int) -> bool:
    """Flag a blown save once the protected lead is gone."""

    if state.in_save_situation and lead <= 0:
        state.in_save_situation = False
        state.blown_save = True
        return True
    return False


def earns_hold(state: PitcherState, *, lead: int, game_finished: bool) -> bool:
    held = (
        state.entered_save_opp
        and state.in_save_situation
        and lead > 0
        and not game_finished
        and state.outs > 0
    )
    state.in_save_situation = False
    return held
