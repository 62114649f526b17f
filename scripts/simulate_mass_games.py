"""Simulate many games between two teams and report league-style averages.

Aggregate batting average, home runs per game and the ground-out to air-out
ratio are compared with target ranges; values outside a range only print a
warning. Structural problems (a half inning with the wrong number of outs, a
negative counter) abort the run.
"""

from __future__ import annotations

from collections import Counter
from pathlib import Path
import argparse
import logging
import multiprocessing as mp
import os
import random
import sys

import pandas as pd
from tqdm import tqdm

# Ensure project root is on the path when running this script directly
sys.path.append(str(Path(__file__).resolve().parent.parent))

from diamond_sim.data_loader import load_teams
from diamond_sim.engine import GameResult, simulate_game
from diamond_sim.models import Team


TARGETS = {
    "BA": (0.24, 0.30),
    "HR/G": (0.8, 2.5),
    "GO/AO": (0.7, 1.4),
}
GROUND_OUT_RESULTS = ("groundout", "doublePlay")
AIR_OUT_RESULTS = ("flyout", "sacrificeFly", "popout", "lineout")
BATTING_KEYS = ("pa", "ab", "h", "b2", "b3", "hr", "bb", "so", "hbp", "sf", "gidp", "sb", "cs")

_TEAMS: dict[str, Team] | None = None


def _init_pool(teams: dict[str, Team]) -> None:
    """Initializer to share teams across worker processes."""

    global _TEAMS
    _TEAMS = teams


def expected_outs(result: GameResult) -> int:
    """Outs a game must contain given its line score."""

    outs = 0
    for index, entry in enumerate(result.innings):
        outs += 3
        if entry["home"] is None:
            continue
        walk_off = index == len(result.innings) - 1 and result.home_score > result.away_score
        if not walk_off:
            outs += 3
    return outs


def check_game(result: GameResult, seed: int) -> None:
    outs = sum(line["outs"] for line in result.pitcher_stats)
    minimum = expected_outs(result)
    # a walk-off half inning ends with 0-2 outs
    assert minimum <= outs <= minimum + 2, f"seed {seed}: {outs} outs, expected {minimum}"
    for line in result.player_stats + result.pitcher_stats + result.fielding_stats:
        for key, value in line.items():
            assert not (isinstance(value, (int, float)) and value < 0), (
                f"seed {seed}: negative {key} for {line['player_id']}"
            )


def _simulate_game(home_id: str, away_id: str, seed: int) -> dict[str, object]:
    """Simulate a single game and return one row of per-game totals."""

    assert _TEAMS is not None
    result = simulate_game(_TEAMS[home_id], _TEAMS[away_id], seed=seed)
    check_game(result, seed)

    results = Counter(result.metadata.get("results", {}))
    row: dict[str, object] = {
        "seed": seed,
        "home": home_id,
        "away": away_id,
        "home_score": result.home_score,
        "away_score": result.away_score,
        "innings": len(result.innings),
        "tie": result.ended_in_tie,
        "go": sum(results[r] for r in GROUND_OUT_RESULTS),
        "ao": sum(results[r] for r in AIR_OUT_RESULTS),
        "pitches": sum(line["pitches"] for line in result.pitcher_stats),
    }
    for key in BATTING_KEYS:
        row[key] = sum(line[key] for line in result.player_stats)
    return row


def _simulate_game_star(args: tuple[str, str, int]) -> dict[str, object]:
    """Helper to unpack arguments for ``imap_unordered``."""

    return _simulate_game(*args)


def summarize(frame: pd.DataFrame) -> dict[str, float]:
    games = len(frame)
    at_bats = frame["ab"].sum()
    air_outs = frame["ao"].sum()
    return {
        "Games": float(games),
        "R/G": (frame["home_score"] + frame["away_score"]).sum() / games if games else 0.0,
        "BA": frame["h"].sum() / at_bats if at_bats else 0.0,
        "HR/G": frame["hr"].sum() / games if games else 0.0,
        "GO/AO": frame["go"].sum() / air_outs if air_outs else 0.0,
        "BB/G": frame["bb"].sum() / games if games else 0.0,
        "SO/G": frame["so"].sum() / games if games else 0.0,
        "SB/G": frame["sb"].sum() / games if games else 0.0,
        "Pitches/PA": frame["pitches"].sum() / frame["pa"].sum() if games else 0.0,
        "Ties": float(frame["tie"].sum()),
    }


def simulate_mass_games(
    players_path: Path,
    *,
    games: int,
    home_id: str | None = None,
    away_id: str | None = None,
    seed: int | None = None,
    use_tqdm: bool = True,
    processes: int | None = None,
) -> pd.DataFrame:
    teams = load_teams(players_path)
    ids = sorted(teams)
    home_id = home_id or ids[0]
    away_id = away_id or ids[-1]

    rng = random.Random(seed)
    jobs = [(home_id, away_id, rng.randrange(2**32)) for _ in range(games)]
    rows: list[dict[str, object]] = []
    with mp.Pool(processes=processes, initializer=_init_pool, initargs=(teams,)) as pool:
        iterator = pool.imap_unordered(_simulate_game_star, jobs, chunksize=10)
        if use_tqdm:
            iterator = tqdm(iterator, total=len(jobs), desc="Simulating games")
        for row in iterator:
            rows.append(row)
    return pd.DataFrame(rows).sort_values("seed").reset_index(drop=True)


def report(summary: dict[str, float]) -> list[str]:
    """Print the summary and return warnings for values outside targets."""

    warnings: list[str] = []
    print("Averages over all games (both teams):")
    for key, value in summary.items():
        print(f"{key}: {value:.3f}")
    for key, (low, high) in TARGETS.items():
        value = summary[key]
        if not low <= value <= high:
            warnings.append(f"{key} {value:.3f} outside target range {low}-{high}")
    for warning in warnings:
        print(f"[Warning] {warning}")
    return warnings


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Simulate many games and report average box score stats."
    )
    parser.add_argument("--games", type=int, default=1000, help="Number of games to simulate")
    parser.add_argument(
        "--players-file",
        type=Path,
        default=Path("samples/players.csv"),
        help="CSV containing player definitions (default: samples/players.csv)",
    )
    parser.add_argument("--home", help="Home team ID (default: first team in the file)")
    parser.add_argument("--away", help="Away team ID (default: last team in the file)")
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for deterministic runs (default: random)",
    )
    parser.add_argument("--processes", type=int, default=None, help="Worker process count")
    parser.add_argument(
        "--output",
        type=Path,
        help="Optional CSV path for the per-game results",
    )
    parser.add_argument(
        "--disable-tqdm",
        action="store_true",
        help="Disable tqdm progress bar.",
    )
    args = parser.parse_args()
    logging.basicConfig(level=logging.WARNING)

    env_disable = os.getenv("DISABLE_TQDM", "").lower() in {"1", "true", "yes"}
    frame = simulate_mass_games(
        args.players_file,
        games=args.games,
        home_id=args.home,
        away_id=args.away,
        seed=args.seed,
        use_tqdm=not (args.disable_tqdm or env_disable),
        processes=args.processes,
    )
    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        frame.to_csv(args.output, index=False)
        print(f"Saved per-game results to {args.output}")
    report(summarize(frame))
