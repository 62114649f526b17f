from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable

from .config import TuningConfig


@dataclass
class PitcherWorkload:
    fatigue_debt: float = 0.0
    last_used_day: int | None = None
    consecutive_days_used: int = 0
    last_update_day: int | None = None
    appearances: int = 0
    last_pitches: int = 0


@dataclass
class BullpenLedger:
    """Pitcher appearance and fatigue counters carried between games.

    :func:`diamond_sim.engine.simulate_game` never mutates the ledger it is
    given; it returns an updated copy on the game result.
    """

    current_day: int | None = None
    workloads: Dict[str, PitcherWorkload] = field(default_factory=dict)

    def copy(self) -> "BullpenLedger":
        return BullpenLedger(
            current_day=self.current_day,
            workloads={pid: replace(w) for pid, w in self.workloads.items()},
        )

    def workload_for(self, pitcher_id: str) -> PitcherWorkload:
        if pitcher_id not in self.workloads:
            self.workloads[pitcher_id] = PitcherWorkload()
        return self.workloads[pitcher_id]

    def next_day(self) -> int:
        return 0 if self.current_day is None else self.current_day + 1

    def advance_day(
        self,
        *,
        day: int,
        pitcher_ids: Iterable[str] | None = None,
        tuning: TuningConfig,
    ) -> None:
        if self.current_day is None or day > self.current_day:
            self.current_day = day
        if day < self.current_day:
            return

        recovery_per_day = tuning.get("daily_recovery")
        ids = list(pitcher_ids) if pitcher_ids is not None else list(self.workloads)
        for pitcher_id in ids:
            workload = self.workload_for(pitcher_id)
            last_update = workload.last_update_day
            if last_update is None:
                workload.last_update_day = day
                continue
            days_passed = day - last_update
            if days_passed <= 0:
                continue
            workload.fatigue_debt = max(0.0, workload.fatigue_debt - days_passed * recovery_per_day)
            workload.last_update_day = day
            if workload.last_used_day is not None and day - workload.last_used_day > 1:
                workload.consecutive_days_used = 0

    def is_overused(self, pitcher_id: str, day: int, tuning: TuningConfig) -> bool:
        """True when pitching today would extend a run of consecutive days."""

        workload = self.workloads.get(pitcher_id)
        if workload is None or workload.last_used_day is None:
            return False
        if day - workload.last_used_day != 1:
            return False
        return workload.consecutive_days_used >= int(tuning.get("max_consecutive_days"))

    def record_outing(
        self,
        *,
        pitcher_id: str,
        pitches: int,
        day: int,
        tuning: TuningConfig,
    ) -> None:
        workload = self.workload_for(pitcher_id)
        workload.fatigue_debt += pitches
        if workload.last_used_day is not None and day - workload.last_used_day == 1:
            workload.consecutive_days_used += 1
        elif workload.last_used_day != day:
            workload.consecutive_days_used = 1
        workload.last_used_day = day
        workload.last_update_day = day
        workload.appearances += 1
        workload.last_pitches = pitches
        penalty = tuning.get("consecutive_usage_penalty")
        if workload.consecutive_days_used > 1:
            workload.fatigue_debt += penalty * (workload.consecutive_days_used - 1)
        if self.current_day is None or day > self.current_day:
            self.current_day = day
