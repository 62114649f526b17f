"""Simulate a single game between two teams and print the box score."""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys
from typing import Iterable

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from diamond_sim.engine import simulate_matchup_from_files
from diamond_sim.exceptions import InvalidRosterError
from diamond_sim.outputs import format_box_score, game_result_to_dict


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Simulate a single game")
    parser.add_argument("home", help="Home team ID (matches team_id in the players file)")
    parser.add_argument("away", help="Away team ID")
    parser.add_argument(
        "--players-file",
        type=Path,
        default=Path("samples/players.csv"),
        help="CSV containing player definitions (default: samples/players.csv)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Optional random seed for reproducible simulations",
    )
    parser.add_argument(
        "--tuning",
        type=Path,
        help="Optional JSON file of tuning overrides",
    )
    parser.add_argument(
        "--json-output",
        type=Path,
        help="Optional path to save the full game result as JSON",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    overrides = None
    if args.tuning is not None:
        overrides = json.loads(args.tuning.read_text(encoding="utf-8"))

    try:
        result = simulate_matchup_from_files(
            away_team=args.away,
            home_team=args.home,
            players_path=args.players_file,
            seed=args.seed,
            tuning_overrides=overrides,
            collect_at_bat_logs=args.json_output is not None,
        )
    except InvalidRosterError as exc:
        print(f"Cannot simulate: {exc}", file=sys.stderr)
        return 1

    print(format_box_score(result))
    if args.json_output is not None:
        args.json_output.parent.mkdir(parents=True, exist_ok=True)
        args.json_output.write_text(
            json.dumps(game_result_to_dict(result), indent=2), encoding="utf-8"
        )
        print(f"Saved game result to {args.json_output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
