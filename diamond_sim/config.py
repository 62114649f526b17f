from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
import json
import logging


logger = logging.getLogger(__name__)


DEFAULT_TUNING: Dict[str, float] = {
    # Batted-ball generation
    "direction_mean_switch": 45.0,
    "direction_mean_right": 38.0,
    "direction_mean_left": 52.0,
    "pull_shift_per_power": 0.08,
    "direction_sigma": 18.0,
    "launch_angle_base": 12.0,
    "launch_power_coef": 0.08,
    "launch_contact_coef": 0.04,
    "launch_trajectory_coef": 3.0,
    "launch_angle_sigma": 16.0,
    "sinker_bonus_cap": 5.0,
    "exit_velocity_base": 132.0,
    "exit_power_coef": 0.15,
    "exit_contact_coef": 0.15,
    "breaking_penalty_coef": 0.15,
    "exit_velocity_sigma": 18.0,
    # Flight and landing
    "drag_factor": 0.65,
    "release_height": 1.2,
    "ground_ball_max_distance": 55.0,
    "fence_base": 100.0,
    "fence_peak_bonus": 22.0,
    # Fielder movement
    "reaction_base": 0.3,
    "reaction_fielding_scale": 0.3,
    "pitcher_reaction_extra": 0.6,
    "line_drive_reaction_base": 0.1,
    "line_drive_reaction_scale": 0.2,
    "fly_speed_base": 7.0,
    "fly_speed_speed_scale": 2.0,
    "fly_speed_fielding_scale": 1.0,
    "catch_radius": 1.5,
    "infield_fly_range": 30.0,
    "pitcher_fly_range": 20.0,
    "catcher_popup_range": 20.0,
    "catcher_popup_reaction": 0.15,
    "catcher_popup_speed": 8.5,
    "catcher_popup_radius": 3.5,
    "ground_lateral_speed_base": 5.0,
    "ground_lateral_speed_scale": 3.0,
    "ground_path_slack": 0.1,
    "ground_stop_slack": 1.0,
    "bounce_penalty_base": 0.5,
    "bounce_penalty_scale": 0.5,
    "air_penalty_base": 1.4,
    "air_penalty_depth": 2.2,
    "air_penalty_fence": 0.6,
    "retrieval_jitter": 0.8,
    # Outcome classification
    "hr_certain_ratio": 1.05,
    "hr_possible_ratio": 0.95,
    "hr_power_bonus": 0.002,
    "hr_chance_min": 0.01,
    "hr_chance_max": 0.90,
    "carry_trajectory_1": 0.90,
    "carry_trajectory_2": 1.00,
    "carry_trajectory_3": 1.05,
    "carry_trajectory_4": 1.10,
    "retrieval_error_base": 0.005,
    "retrieval_error_scale": 0.01,
    "ground_error_base": 0.025,
    "ground_error_scale": 0.02,
    "ground_error_min": 0.005,
    "ground_error_max": 0.05,
    "secure_time_base": 0.25,
    "secure_time_scale": 0.15,
    "transfer_time_base": 0.25,
    "transfer_time_scale": 0.15,
    "throw_speed_base": 30.0,
    "throw_speed_arm_scale": 20.0,
    "runner_start_delay": 0.65,
    "runner_speed_base": 6.5,
    "runner_speed_scale": 2.5,
    "soft_infield_hit_base": 0.04,
    "soft_infield_hit_speed": 0.08,
    "soft_infield_hit_window": 3.0,
    "double_play_base": 0.12,
    "double_play_speed_scale": 0.06,
    "fielders_choice_rate": 0.05,
    "catch_rate_min": 0.85,
    "catch_rate_max": 0.99,
    "catch_margin_scale": 0.12,
    "catch_fielding_scale": 0.03,
    "drop_error_margin": 0.5,
    "sac_fly_min_distance": 65.0,
    "sac_fly_distance_span": 35.0,
    "sac_fly_speed_coef": 0.005,
    "sac_fly_max": 0.9,
    "pickup_time_base": 0.3,
    "pickup_time_scale": 0.4,
    "roll_distance_scale": 0.15,
    "roll_distance_max": 12.0,
    "base_runner_lead": 0.3,
    "triple_margin": 1.5,
    # Plate appearance
    "hbp_base": 0.0015,
    "hbp_control_scale": 0.003,
    "hbp_min": 0.001,
    "hbp_max": 0.01,
    "location_spread_base": 1.30,
    "location_spread_control": 0.64,
    "zone_swing_base": 0.66,
    "zone_swing_contact": 0.001,
    "chase_swing_base": 0.30,
    "chase_swing_eye": 0.004,
    "chase_swing_min": 0.05,
    "chase_swing_max": 0.6,
    "two_strike_zone_swing": 0.12,
    "two_strike_chase_swing": 0.08,
    "zone_contact_base": 0.86,
    "zone_contact_coef": 0.004,
    "zone_contact_min": 0.5,
    "zone_contact_max": 0.97,
    "chase_contact_penalty": 0.27,
    "stuff_velocity_base": 145.0,
    "stuff_velocity_coef": 0.004,
    "stuff_breaking_base": 30.0,
    "stuff_breaking_coef": 0.0015,
    "zone_foul_share": 0.45,
    "chase_foul_share": 0.55,
    "foul_tip_share": 0.06,
    "max_two_strike_fouls": 12.0,
    "fatigue_velocity_drop": 4.0,
    # Baserunning
    "advance_base": 0.45,
    "advance_speed_divisor": 200.0,
    "advance_arm_divisor": 250.0,
    "advance_min": 0.05,
    "advance_max": 0.95,
    "two_out_advance_bonus": 0.15,
    "first_to_third_penalty": 0.15,
    "steal_freq_scale": 1.0,
    "steal_two_out_scale": 0.3,
    "steal_success_base": 0.60,
    "steal_success_speed": 0.005,
    "steal_success_arm": 0.004,
    "steal_third_success_base": 0.55,
    "steal_third_success_arm": 0.005,
    "steal_success_min": 0.25,
    "steal_success_max": 0.90,
    # Pitcher usage
    "pitch_limit_base": 60.0,
    "pitch_limit_stamina": 0.6,
    "reliever_pitch_limit_base": 20.0,
    "reliever_pitch_limit_stamina": 0.3,
    "fatigue_window": 60.0,
    "fatigue_max_penalty": 0.5,
    "fatigue_control_loss": 0.4,
    "hook_runs_allowed": 6.0,
    "hook_inning_runs": 4.0,
    "hook_walks_in_inning": 3.0,
    "closer_max_outs": 3.0,
    "close_game_max_outs": 3.0,
    "behind_ok_max_outs": 6.0,
    "mop_up_max_outs": 9.0,
    "win_min_starter_outs": 15.0,
    "save_opportunity_run_diff": 3.0,
    "closer_inning": 9.0,
    "close_game_run_diff": 2.0,
    "blowout_run_diff": 5.0,
    "save_long_innings": 3.0,
    "max_consecutive_days": 2.0,
    "daily_recovery": 30.0,
    "consecutive_usage_penalty": 8.0,
    # Game flow
    "regulation_innings": 9.0,
    "max_innings": 12.0,
}


@dataclass
class TuningConfig:
    """Container for all user-adjustable tuning knobs."""

    values: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_TUNING))

    @classmethod
    def from_overrides(
        cls,
        *,
        overrides: Optional[Dict[str, Any]] = None,
        overrides_path: Optional[Path] = None,
    ) -> "TuningConfig":
        base = dict(DEFAULT_TUNING)
        data: Dict[str, Any] = {}
        if overrides_path:
            try:
                with Path(overrides_path).open("r", encoding="utf-8") as fh:
                    loaded = json.load(fh)
                    if isinstance(loaded, dict):
                        data.update(loaded)
            except (OSError, json.JSONDecodeError) as exc:
                logger.warning("Ignoring tuning overrides at %s: %s", overrides_path, exc)
        if overrides:
            data.update(overrides)
        for k, v in data.items():
            if k not in base:
                logger.debug("Unknown tuning key %r ignored", k)
                continue
            try:
                base[k] = float(v)
            except (TypeError, ValueError):
                continue
        return cls(values=base)

    def get(self, key: str, default: Optional[float] = None) -> float:
        if default is None:
            default = DEFAULT_TUNING.get(key, 0.0)
        return float(self.values.get(key, default))


def load_tuning(
    overrides: Optional[Dict[str, Any]] = None, overrides_path: Optional[Path] = None
) -> TuningConfig:
    """Load a :class:`TuningConfig` merging optional overrides."""

    return TuningConfig.from_overrides(overrides=overrides, overrides_path=overrides_path)


def resolve_tuning(tuning: TuningConfig | Dict[str, Any] | None) -> TuningConfig:
    """Accept a config, a plain override dict, or ``None``."""

    if isinstance(tuning, TuningConfig):
        return tuning
    return load_tuning(overrides=tuning)
