from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple
import random

from .config import TuningConfig
from .models import Player


# (minimum speed, attempt rate per plate appearance)
STEAL_SECOND_RATES = [(80.0, 0.10), (70.0, 0.06), (60.0, 0.025), (50.0, 0.008)]
STEAL_THIRD_RATES = [(85.0, 0.04), (75.0, 0.02), (65.0, 0.006)]

OUT_RESULTS = {"strikeout", "groundout", "flyout", "lineout", "popout"}


@dataclass
class Runner:
    player: Player
    pitcher_id: str  # pitcher charged if this runner scores
    earned: bool = True

    @property
    def speed(self) -> float:
        return self.player.batting.speed


@dataclass
class BaseState:
    first: Optional[Runner] = None
    second: Optional[Runner] = None
    third: Optional[Runner] = None

    def as_tuple(self) -> Tuple[Optional[Runner], Optional[Runner], Optional[Runner]]:
        return (self.first, self.second, self.third)

    def runner_speeds(self) -> Tuple[Optional[float], Optional[float], Optional[float]]:
        first, second, third = (
            r.speed if r is not None else None for r in self.as_tuple()
        )
        return (first, second, third)

    def runners_on(self) -> int:
        return sum(1 for runner in self.as_tuple() if runner is not None)

    def clear(self) -> None:
        self.first = self.second = self.third = None


@dataclass
class AdvanceResult:
    scored: List[Runner] = field(default_factory=list)
    outs: int = 0
    retired: List[Runner] = field(default_factory=list)
    rbi: int = 0


def advance_prob(
    speed: float, arm: float, tuning: TuningConfig, extra: float = 0.0
) -> float:
    base = (
        tuning.get("advance_base")
        + (speed - 50.0) / tuning.get("advance_speed_divisor")
        - (arm - 50.0) / tuning.get("advance_arm_divisor")
        + extra
    )
    return max(tuning.get("advance_min"), min(tuning.get("advance_max"), base))


def _force_advance(bases: BaseState, batter: Runner, scored: List[Runner]) -> None:
    if bases.first is not None:
        if bases.second is not None:
            if bases.third is not None:
                scored.append(bases.third)
            bases.third = bases.second
        bases.second = bases.first
    bases.first = batter


def _lead_forced_base(bases: BaseState) -> Optional[int]:
    """Most advanced base whose runner is forced by the batter (0 = first)."""

    if bases.first is None:
        return None
    if bases.second is None:
        return 0
    if bases.third is None:
        return 1
    return 2


def advance_runners(
    result: str,
    bases: BaseState,
    batter: Runner,
    *,
    outs: int,
    arm: float,
    rng: random.Random,
    tuning: TuningConfig,
) -> AdvanceResult:
    """Move runners for one plate-appearance result, mutating ``bases``.

    ``arm`` is the arm rating of the fielder who handled the ball and drives
    extra-base decisions on hits.
    """

    adv = AdvanceResult()
    scored = adv.scored
    extra = tuning.get("two_out_advance_bonus") if outs == 2 else 0.0

    if result == "homerun":
        scored.extend(r for r in (bases.third, bases.second, bases.first) if r is not None)
        scored.append(batter)
        bases.clear()
    elif result == "triple":
        scored.extend(r for r in (bases.third, bases.second, bases.first) if r is not None)
        bases.clear()
        bases.third = batter
    elif result == "double":
        scored.extend(r for r in (bases.third, bases.second) if r is not None)
        lead = bases.first
        bases.clear()
        if lead is not None:
            if rng.random() < advance_prob(lead.speed, arm, tuning, extra):
                scored.append(lead)
            else:
                bases.third = lead
        bases.second = batter
    elif result in {"single", "error"}:
        if bases.third is not None:
            scored.append(bases.third)
            bases.third = None
        if bases.second is not None:
            runner = bases.second
            bases.second = None
            if rng.random() < advance_prob(runner.speed, arm, tuning, extra):
                scored.append(runner)
            else:
                bases.third = runner
        if bases.first is not None:
            runner = bases.first
            bases.first = None
            if bases.third is None and rng.random() < advance_prob(
                runner.speed, arm, tuning, extra - tuning.get("first_to_third_penalty")
            ):
                bases.third = runner
            else:
                bases.second = runner
        bases.first = batter
    elif result in {"infieldHit", "walk", "hitByPitch"}:
        _force_advance(bases, batter, scored)
    elif result == "doublePlay":
        # Lead forced runner is out at the next base, the runners forced
        # behind them move up one, and the batter is out at first.
        lead = _lead_forced_base(bases)
        slots = ["first", "second", "third"]
        if lead is not None:
            adv.retired.append(getattr(bases, slots[lead]))
            for index in range(lead, 0, -1):
                setattr(bases, slots[index], getattr(bases, slots[index - 1]))
            bases.first = None
        adv.retired.append(batter)
        adv.outs = len(adv.retired)
    elif result == "fieldersChoice":
        slots = ["first", "second", "third"]
        lead = _lead_forced_base(bases)
        if lead is None:
            lead = max(i for i, r in enumerate(bases.as_tuple()) if r is not None)
        adv.retired.append(getattr(bases, slots[lead]))
        setattr(bases, slots[lead], None)
        _force_advance(bases, batter, scored)
        adv.outs = 1
    elif result == "sacrificeFly":
        if bases.third is not None:
            scored.append(bases.third)
            bases.third = None
        if bases.second is not None:
            bases.third, bases.second = bases.second, None
        if bases.first is not None:
            bases.second, bases.first = bases.first, None
        adv.retired.append(batter)
        adv.outs = 1
    elif result in OUT_RESULTS:
        adv.retired.append(batter)
        adv.outs = 1
    else:
        raise ValueError(f"Unknown plate appearance result: {result}")

    if result == "error":
        for runner in scored:
            runner.earned = False
    if result not in {"doublePlay", "error"}:
        adv.rbi = len(scored)
    return adv


@dataclass
class StealAttempt:
    runner: Runner
    from_base: int  # 1 = first, 2 = second
    success: bool


def _rate_for(speed: float, table: List[Tuple[float, float]]) -> float:
    for threshold, rate in table:
        if speed >= threshold:
            return rate
    return 0.0


def steal_attempt_rate(speed: float, target_base: int, outs: int, tuning: TuningConfig) -> float:
    table = STEAL_SECOND_RATES if target_base == 2 else STEAL_THIRD_RATES
    rate = _rate_for(speed, table) * tuning.get("steal_freq_scale")
    if outs == 2:
        rate *= tuning.get("steal_two_out_scale")
    return rate


def steal_success_prob(
    speed: float, catcher_arm: float, target_base: int, tuning: TuningConfig
) -> float:
    if target_base == 3:
        base = tuning.get("steal_third_success_base")
        arm_coef = tuning.get("steal_third_success_arm")
    else:
        base = tuning.get("steal_success_base")
        arm_coef = tuning.get("steal_success_arm")
    prob = base + (speed - 50.0) * tuning.get("steal_success_speed") - (catcher_arm - 50.0) * arm_coef
    return max(tuning.get("steal_success_min"), min(tuning.get("steal_success_max"), prob))


def attempt_steal(
    bases: BaseState,
    *,
    catcher_arm: float,
    outs: int,
    rng: random.Random,
    tuning: TuningConfig,
) -> Optional[StealAttempt]:
    """Maybe send a runner before the next pitch, mutating ``bases``."""

    if bases.first is not None and bases.second is None:
        runner, from_base, target = bases.first, 1, 2
    elif bases.second is not None and bases.third is None:
        runner, from_base, target = bases.second, 2, 3
    else:
        return None
    if rng.random() >= steal_attempt_rate(runner.speed, target, outs, tuning):
        return None
    success = rng.random() < steal_success_prob(runner.speed, catcher_arm, target, tuning)
    if from_base == 1:
        bases.first = None
        if success:
            bases.second = runner
    else:
        bases.second = None
        if success:
            bases.third = runner
    return StealAttempt(runner=runner, from_base=from_base, success=success)
