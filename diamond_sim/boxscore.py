"""Fold game events into counting stats.

Every event is a plain dict with a ``type`` key. The fold only ever adds to
counters, so the order events arrive in does not matter and the lines for
two halves of a game can be merged by folding their events together.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from .outcomes import HIT_RESULTS


BATTED_BALL_KEYS = {
    "ground_ball": "gb",
    "fly_ball": "fb",
    "line_drive": "ld",
    "popup": "pu",
}


@dataclass
class BatterLine:
    player_id: str
    g: int = 0
    gs: int = 0
    pa: int = 0
    ab: int = 0
    r: int = 0
    h: int = 0
    b1: int = 0
    b2: int = 0
    b3: int = 0
    hr: int = 0
    rbi: int = 0
    bb: int = 0
    so: int = 0
    hbp: int = 0
    sf: int = 0
    gidp: int = 0
    roe: int = 0
    fc: int = 0
    sb: int = 0
    cs: int = 0


@dataclass
class PitcherLine:
    pitcher_id: str
    g: int = 0
    gs: int = 0
    w: int = 0
    l: int = 0
    sv: int = 0
    svo: int = 0
    hld: int = 0
    bs: int = 0
    ir: int = 0
    batters_faced: int = 0
    outs: int = 0
    pitches: int = 0
    strikes: int = 0
    balls: int = 0
    hits: int = 0
    runs: int = 0
    earned_runs: int = 0
    walks: int = 0
    strikeouts: int = 0
    hbp: int = 0
    home_runs: int = 0
    gb: int = 0
    fb: int = 0
    ld: int = 0
    pu: int = 0


@dataclass
class FieldingLine:
    player_id: str
    po: int = 0
    a: int = 0
    e: int = 0
    dp: int = 0


@dataclass
class BoxScore:
    batting: Dict[str, BatterLine] = field(default_factory=dict)
    pitching: Dict[str, PitcherLine] = field(default_factory=dict)
    fielding: Dict[str, FieldingLine] = field(default_factory=dict)

    def batter(self, player_id: str) -> BatterLine:
        line = self.batting.get(player_id)
        if line is None:
            line = BatterLine(player_id=player_id)
            self.batting[player_id] = line
        return line

    def pitcher(self, pitcher_id: str) -> PitcherLine:
        line = self.pitching.get(pitcher_id)
        if line is None:
            line = PitcherLine(pitcher_id=pitcher_id)
            self.pitching[pitcher_id] = line
        return line

    def fielder(self, player_id: str) -> FieldingLine:
        line = self.fielding.get(player_id)
        if line is None:
            line = FieldingLine(player_id=player_id)
            self.fielding[player_id] = line
        return line


def _fold_plate_appearance(box: BoxScore, event: Dict[str, Any]) -> None:
    result = event["result"]
    batter = box.batter(event["batter_id"])
    pitcher = box.pitcher(event["pitcher_id"])

    batter.pa += 1
    pitcher.batters_faced += 1
    pitcher.outs += int(event.get("outs_on_play", 0))
    pitches = event.get("pitches") or []
    pitcher.pitches += len(pitches)
    for pitch in pitches:
        if pitch.get("outcome") in {"ball", "hbp"}:
            pitcher.balls += 1
        else:
            pitcher.strikes += 1

    if result == "walk":
        batter.bb += 1
        pitcher.walks += 1
    elif result == "hitByPitch":
        batter.hbp += 1
        pitcher.hbp += 1
    elif result == "sacrificeFly":
        batter.sf += 1
    else:
        batter.ab += 1

    if result in HIT_RESULTS:
        batter.h += 1
        pitcher.hits += 1
        if result == "double":
            batter.b2 += 1
        elif result == "triple":
            batter.b3 += 1
        elif result == "homerun":
            batter.hr += 1
            pitcher.home_runs += 1
        else:
            batter.b1 += 1
    elif result == "strikeout":
        batter.so += 1
        pitcher.strikeouts += 1
    elif result == "doublePlay":
        batter.gidp += 1
    elif result == "error":
        batter.roe += 1
    elif result == "fieldersChoice":
        batter.fc += 1

    ball_key = BATTED_BALL_KEYS.get(event.get("batted_ball_type") or "")
    if ball_key:
        setattr(pitcher, ball_key, getattr(pitcher, ball_key) + 1)

    batter.rbi += int(event.get("rbi", 0))
    for run in event.get("runs") or []:
        box.batter(run["runner_id"]).r += 1
        charged = box.pitcher(run["pitcher_id"])
        charged.runs += 1
        if run.get("earned", True):
            charged.earned_runs += 1

    _fold_fielding(box, event)
    if result == "doublePlay":
        for player_id in set(event.get("putouts") or []) | set(event.get("assists") or []):
            box.fielder(player_id).dp += 1


def _fold_fielding(box: BoxScore, event: Dict[str, Any]) -> None:
    for player_id in event.get("putouts") or []:
        box.fielder(player_id).po += 1
    for player_id in event.get("assists") or []:
        box.fielder(player_id).a += 1
    for player_id in event.get("errors") or []:
        box.fielder(player_id).e += 1


def _fold_steal(box: BoxScore, event: Dict[str, Any]) -> None:
    runner = box.batter(event["runner_id"])
    if event["success"]:
        runner.sb += 1
    else:
        runner.cs += 1
        box.pitcher(event["pitcher_id"]).outs += 1
    _fold_fielding(box, event)


def _fold_appearance(box: BoxScore, event: Dict[str, Any]) -> None:
    started = 1 if event.get("started") else 0
    if event["role"] == "pitcher":
        line = box.pitcher(event["player_id"])
        line.g += 1
        line.gs += started
        line.ir += int(event.get("inherited_runners", 0))
        if event.get("save_opportunity"):
            line.svo += 1
    else:
        line = box.batter(event["player_id"])
        line.g += 1
        line.gs += started


DECISION_FIELDS = {"win": "w", "loss": "l", "save": "sv", "hold": "hld", "blown_save": "bs"}


def _fold_decision(box: BoxScore, event: Dict[str, Any]) -> None:
    line = box.pitcher(event["pitcher_id"])
    attr = DECISION_FIELDS[event["decision"]]
    setattr(line, attr, getattr(line, attr) + 1)


FOLDERS = {
    "plate_appearance": _fold_plate_appearance,
    "stolen_base": _fold_steal,
    "appearance": _fold_appearance,
    "decision": _fold_decision,
}


def accumulate(events: Iterable[Dict[str, Any]], box: BoxScore | None = None) -> BoxScore:
    box = box if box is not None else BoxScore()
    for event in events:
        folder = FOLDERS.get(event.get("type", ""))
        if folder is not None:
            folder(box, event)
    return box


def innings_pitched(outs: int) -> float:
    """Baseball notation: 20 outs is ``6.2``."""

    return outs // 3 + (outs % 3) / 10.0


def batter_line_summary(line: BatterLine) -> Dict[str, Any]:
    return {
        "player_id": line.player_id,
        "g": line.g,
        "gs": line.gs,
        "pa": line.pa,
        "ab": line.ab,
        "r": line.r,
        "h": line.h,
        "b1": line.b1,
        "b2": line.b2,
        "b3": line.b3,
        "hr": line.hr,
        "rbi": line.rbi,
        "bb": line.bb,
        "so": line.so,
        "hbp": line.hbp,
        "sf": line.sf,
        "gidp": line.gidp,
        "roe": line.roe,
        "fc": line.fc,
        "sb": line.sb,
        "cs": line.cs,
    }


def pitcher_line_summary(line: PitcherLine) -> Dict[str, Any]:
    return {
        "player_id": line.pitcher_id,
        "g": line.g,
        "gs": line.gs,
        "w": line.w,
        "l": line.l,
        "sv": line.sv,
        "svo": line.svo,
        "hld": line.hld,
        "bs": line.bs,
        "ir": line.ir,
        "bf": line.batters_faced,
        "outs": line.outs,
        "innings_pitched": innings_pitched(line.outs),
        "pitches": line.pitches,
        "strikes": line.strikes,
        "balls": line.balls,
        "h": line.hits,
        "r": line.runs,
        "er": line.earned_runs,
        "bb": line.walks,
        "so": line.strikeouts,
        "hbp": line.hbp,
        "hr": line.home_runs,
        "gb": line.gb,
        "fb": line.fb,
        "ld": line.ld,
        "pu": line.pu,
    }


def fielding_line_summary(line: FieldingLine) -> Dict[str, Any]:
    return {"player_id": line.player_id, "po": line.po, "a": line.a, "e": line.e, "dp": line.dp}


def check_non_negative(box: BoxScore) -> None:
    """Raise if any counter went negative."""

    lines: List[Any] = list(box.batting.values()) + list(box.pitching.values()) + list(
        box.fielding.values()
    )
    for line in lines:
        for name, value in vars(line).items():
            if isinstance(value, int) and value < 0:
                raise RuntimeError(f"Negative {name} in box score line {line}")
