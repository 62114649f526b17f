from __future__ import annotations

import csv
from pathlib import Path
from typing import Dict, List

from .models import PitcherUsageConfig, Player, Team


def _read_rows(csv_path: Path) -> List[Dict[str, str]]:
    with Path(csv_path).open("r", newline="", encoding="utf-8") as fh:
        return list(csv.DictReader(fh))


def load_players(csv_path: Path) -> List[Player]:
    """Load every player in ``players.csv``."""

    return [Player.from_row(row) for row in _read_rows(csv_path)]


def _slot(row: Dict[str, str]) -> int | None:
    raw = str(row.get("lineup_slot", "") or "").strip()
    try:
        return int(raw) if raw else None
    except ValueError:
        return None


def load_teams(csv_path: Path) -> Dict[str, Team]:
    """Group ``players.csv`` rows by ``team_id`` into teams.

    Batters with a ``lineup_slot`` form the batting order. The first ``SP``
    row of a team starts; ``RP`` rows make up the bullpen with their
    ``reliever_policy``.
    """

    teams: Dict[str, Team] = {}
    slots: Dict[str, List[tuple[int, str]]] = {}
    for row in _read_rows(csv_path):
        team_id = str(row.get("team_id", "") or "").strip()
        if not team_id:
            continue
        player = Player.from_row(row)
        team = teams.get(team_id)
        if team is None:
            team = Team(team_id=team_id, name=str(row.get("team_name", "") or team_id), roster=[])
            teams[team_id] = team
            slots[team_id] = []
        team.roster.append(player)

        slot = _slot(row)
        if slot is not None:
            slots[team_id].append((slot, player.player_id))
        if player.is_pitcher:
            usage = PitcherUsageConfig.from_row(row)
            team.usage[player.player_id] = usage
            if usage.is_starter:
                if team.starting_pitcher_id is None:
                    team.starting_pitcher_id = player.player_id
            else:
                team.reliever_ids.append(player.player_id)

    for team_id, team in teams.items():
        team.lineup_ids = [pid for _, pid in sorted(slots[team_id])]
    return teams
