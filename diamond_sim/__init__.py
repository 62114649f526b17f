"""
Physics-flavoured single-game baseball simulator.

Teams of rated players are played pitch by pitch: batted balls get a launch
angle, exit velocity and spray direction, land somewhere on the field and are
chased down by the nine fielders. The result carries a line score, box score
lines and an updated bullpen ledger.
"""

from .engine import GameResult, simulate_game, simulate_matchup_from_files  # noqa: F401
from .config import load_tuning, TuningConfig  # noqa: F401
from .data_loader import load_players, load_teams  # noqa: F401
from .exceptions import InvalidRosterError  # noqa: F401
from .models import Player, Team  # noqa: F401
from .outputs import format_box_score, game_result_to_dict  # noqa: F401
from .usage import BullpenLedger  # noqa: F401
from .fielding import evaluate_fielders  # noqa: F401
from .physics import (  # noqa: F401
    calc_ball_landing,
    calc_breaking_power,
    classify_batted_ball_type,
    estimate_distance,
    generate_batted_ball,
    get_fence_distance,
)
