import pytest

import diamond_sim
from diamond_sim import fielding, physics


@pytest.mark.parametrize(
    "name, module",
    [
        ("estimate_distance", physics),
        ("get_fence_distance", physics),
        ("generate_batted_ball", physics),
        ("classify_batted_ball_type", physics),
        ("calc_ball_landing", physics),
        ("calc_breaking_power", physics),
        ("evaluate_fielders", fielding),
    ],
)
def test_numeric_helpers_are_exported_from_the_package(name, module) -> None:
    assert getattr(diamond_sim, name) is getattr(module, name)
