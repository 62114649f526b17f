from __future__ import annotations

from typing import Any, Dict, Iterable, List

from .boxscore import innings_pitched
from .engine import GameResult


def aggregate_pitch_log(
    at_bat_logs: Iterable[dict[str, Any]],
) -> tuple[dict[str, dict[str, int]], dict[str, dict[str, int]]]:
    """Plate-discipline counters per batter and pitcher from at-bat logs."""

    batter_stats: dict[str, dict[str, int]] = {}
    pitcher_stats: dict[str, dict[str, int]] = {}

    def batter_entry(player_id: str) -> dict[str, int]:
        return batter_stats.setdefault(
            player_id,
            {"pitches": 0, "so_looking": 0, "so_swinging": 0},
        )

    def pitcher_entry(player_id: str) -> dict[str, int]:
        return pitcher_stats.setdefault(
            player_id,
            {
                "first_pitch_strikes": 0,
                "zone_pitches": 0,
                "o_zone_pitches": 0,
                "zone_swings": 0,
                "o_zone_swings": 0,
                "zone_contacts": 0,
                "o_zone_contacts": 0,
                "so_looking": 0,
                "so_swinging": 0,
            },
        )

    for entry in at_bat_logs:
        batter_id = entry.get("batter_id")
        pitcher_id = entry.get("pitcher_id")
        if not batter_id or not pitcher_id:
            continue
        batter = batter_entry(str(batter_id))
        pitcher = pitcher_entry(str(pitcher_id))

        for pitch in entry.get("pitches") or []:
            batter["pitches"] += 1
            outcome = pitch.get("outcome")
            if pitch.get("count") == "0-0" and outcome not in {"ball", "hbp"}:
                pitcher["first_pitch_strikes"] += 1
            in_zone = bool(pitch.get("in_zone"))
            if in_zone:
                pitcher["zone_pitches"] += 1
            else:
                pitcher["o_zone_pitches"] += 1
            if pitch.get("swing"):
                if in_zone:
                    pitcher["zone_swings"] += 1
                else:
                    pitcher["o_zone_swings"] += 1
                if pitch.get("contact"):
                    if in_zone:
                        pitcher["zone_contacts"] += 1
                    else:
                        pitcher["o_zone_contacts"] += 1

        if entry.get("result") == "strikeout":
            key = "so_looking" if entry.get("looking") else "so_swinging"
            batter[key] += 1
            pitcher[key] += 1

    return batter_stats, pitcher_stats


def _merge_line_stats(
    lines: list[dict[str, Any]],
    extras: dict[str, dict[str, int]],
) -> list[dict[str, Any]]:
    merged: list[dict[str, Any]] = []
    for line in lines:
        line = dict(line)
        updates = extras.get(str(line.get("player_id")))
        if updates:
            for key, value in updates.items():
                line.setdefault(key, value)
        merged.append(line)
    return merged


def game_result_to_dict(result: GameResult) -> Dict[str, Any]:
    """Plain-data view of a game result, safe to dump as JSON."""

    batting = result.player_stats
    pitching = result.pitcher_stats
    if result.at_bat_logs:
        batter_extra, pitcher_extra = aggregate_pitch_log(result.at_bat_logs)
        batting = _merge_line_stats(batting, batter_extra)
        pitching = _merge_line_stats(pitching, pitcher_extra)
    payload: Dict[str, Any] = {
        "score": {"home": result.home_score, "away": result.away_score},
        "innings": result.innings,
        "ended_in_tie": result.ended_in_tie,
        "decisions": {
            "win": result.winning_pitcher_id,
            "loss": result.losing_pitcher_id,
            "save": result.save_pitcher_id,
            "holds": list(result.hold_pitcher_ids),
        },
        "batting": batting,
        "pitching": pitching,
        "fielding": result.fielding_stats,
        "metadata": dict(result.metadata),
    }
    if result.at_bat_logs is not None:
        payload["at_bat_logs"] = result.at_bat_logs
    return payload


def _line_score_rows(result: GameResult) -> List[str]:
    header = "      " + " ".join(f"{entry['inning']:>2}" for entry in result.innings) + "   R"
    rows = [header]
    for side in ("away", "home"):
        team = result.metadata.get(f"{side}_team", side)
        cells = []
        for entry in result.innings:
            runs = entry.get(side)
            cells.append(" x" if runs is None else f"{runs:>2}")
        total = result.away_score if side == "away" else result.home_score
        rows.append(f"{str(team)[:5]:<5} " + " ".join(cells) + f"  {total:>2}")
    return rows


def format_box_score(result: GameResult) -> str:
    """Render a plain-text box score."""

    lines = _line_score_rows(result)
    for side in ("away", "home"):
        lines.append("")
        lines.append(f"{result.metadata.get(f'{side}_team', side)} batting")
        lines.append(f"{'player':<12} {'AB':>3} {'R':>3} {'H':>3} {'HR':>3} {'RBI':>3} {'BB':>3} {'SO':>3}")
        for line in result.player_stats:
            if line.get("team") != side:
                continue
            lines.append(
                f"{line['player_id']:<12} {line['ab']:>3} {line['r']:>3} {line['h']:>3} "
                f"{line['hr']:>3} {line['rbi']:>3} {line['bb']:>3} {line['so']:>3}"
            )
        lines.append(f"{result.metadata.get(f'{side}_team', side)} pitching")
        lines.append(f"{'pitcher':<12} {'IP':>5} {'H':>3} {'R':>3} {'ER':>3} {'BB':>3} {'SO':>3} {'NP':>4}")
        for line in result.pitcher_stats:
            if line.get("team") != side:
                continue
            lines.append(
                f"{line['player_id']:<12} {innings_pitched(line['outs']):>5.1f} {line['h']:>3} "
                f"{line['r']:>3} {line['er']:>3} {line['bb']:>3} {line['so']:>3} {line['pitches']:>4}"
            )

    decisions = []
    if result.winning_pitcher_id:
        decisions.append(f"W: {result.winning_pitcher_id}")
    if result.losing_pitcher_id:
        decisions.append(f"L: {result.losing_pitcher_id}")
    if result.save_pitcher_id:
        decisions.append(f"S: {result.save_pitcher_id}")
    if result.hold_pitcher_ids:
        decisions.append("HLD: " + ", ".join(result.hold_pitcher_ids))
    if result.ended_in_tie:
        decisions.append("Tie")
    if decisions:
        lines.append("")
        lines.append("  ".join(decisions))
    return "\n".join(lines)


__all__ = ["aggregate_pitch_log", "format_box_score", "game_result_to_dict"]
