from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


FASTBALL_TYPES = {"fastball", "two_seam", "cutter"}
OFFSPEED_TYPES = {"slider", "curve", "fork", "changeup", "sinker", "shoot"}
PITCH_TYPES = FASTBALL_TYPES | OFFSPEED_TYPES

POSITIONS = ["P", "C", "1B", "2B", "3B", "SS", "LF", "CF", "RF"]
# Scorebook numbering: 1 = pitcher ... 9 = right field.
POSITION_IDS: Dict[str, int] = {pos: idx + 1 for idx, pos in enumerate(POSITIONS)}

RELIEVER_POLICIES = ("closer", "close_game", "behind_ok", "mop_up")


def _float(row: Dict[str, str], key: str, default: float = 50.0) -> float:
    try:
        return float(row.get(key, default))
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class Pitch:
    pitch_type: str
    level: int


def parse_pitches(raw: str | None) -> Tuple[Pitch, ...]:
    """Parse ``"slider:5;curve:4"`` into a repertoire."""

    pitches: List[Pitch] = []
    for chunk in (raw or "").replace(",", ";").split(";"):
        name, _, level = chunk.strip().partition(":")
        name = name.strip().lower()
        if name not in PITCH_TYPES:
            continue
        try:
            value = int(float(level))
        except ValueError:
            continue
        pitches.append(Pitch(name, max(1, min(7, value))))
    return tuple(pitches)


@dataclass(frozen=True)
class BatterAbilities:
    contact: float = 50.0
    power: float = 50.0
    trajectory: int = 2  # 1 (grounders) to 4 (high arc)
    speed: float = 50.0
    arm: float = 50.0
    fielding: float = 50.0
    catching: float = 50.0
    eye: float = 50.0

    @classmethod
    def from_row(cls, row: Dict[str, str]) -> "BatterAbilities":
        trajectory = int(_float(row, "trajectory", 2.0))
        return cls(
            contact=_float(row, "contact"),
            power=_float(row, "power"),
            trajectory=max(1, min(4, trajectory)),
            speed=_float(row, "speed"),
            arm=_float(row, "arm"),
            fielding=_float(row, "fielding"),
            catching=_float(row, "catching"),
            eye=_float(row, "eye"),
        )


@dataclass(frozen=True)
class PitcherAbilities:
    velocity: float = 145.0  # km/h
    control: float = 50.0
    stamina: float = 50.0
    pitches: Tuple[Pitch, ...] = ()
    mental_toughness: float = 50.0
    arm: float = 50.0
    fielding: float = 50.0
    catching: float = 50.0

    @classmethod
    def from_row(cls, row: Dict[str, str]) -> "PitcherAbilities":
        return cls(
            velocity=_float(row, "velocity", 145.0),
            control=_float(row, "control"),
            stamina=_float(row, "stamina"),
            pitches=parse_pitches(row.get("pitches")),
            mental_toughness=_float(row, "mental_toughness"),
            arm=_float(row, "arm"),
            fielding=_float(row, "fielding"),
            catching=_float(row, "catching"),
        )


@dataclass(frozen=True)
class DefensiveRatings:
    speed: float
    fielding: float
    catching: float
    arm: float


@dataclass
class Player:
    player_id: str
    name: str
    position: str
    batting: BatterAbilities = field(default_factory=BatterAbilities)
    pitching: Optional[PitcherAbilities] = None
    throws: str = "R"
    bats: str = "R"

    @property
    def is_pitcher(self) -> bool:
        return self.pitching is not None

    def defense(self, position: str) -> DefensiveRatings:
        """Ratings used when this player fields ``position``."""

        if position == "P" and self.pitching is not None:
            return DefensiveRatings(
                speed=self.batting.speed,
                fielding=self.pitching.fielding,
                catching=self.pitching.catching,
                arm=self.pitching.arm,
            )
        return DefensiveRatings(
            speed=self.batting.speed,
            fielding=self.batting.fielding,
            catching=self.batting.catching,
            arm=self.batting.arm,
        )

    @classmethod
    def from_row(cls, row: Dict[str, str]) -> "Player":
        is_pitcher = str(row.get("is_pitcher", "0")).strip().lower() in {"1", "true", "yes"}
        position = str(row.get("position", "") or ("P" if is_pitcher else "")).upper()
        return cls(
            player_id=str(row.get("player_id", "")),
            name=str(row.get("name", "") or row.get("player_id", "")),
            position=position,
            batting=BatterAbilities.from_row(row),
            pitching=PitcherAbilities.from_row(row) if is_pitcher else None,
            throws=str(row.get("throws", "") or "R").upper(),
            bats=str(row.get("bats", "") or "R").upper(),
        )


@dataclass(frozen=True)
class PitcherUsageConfig:
    starter_policy: Optional[str] = None
    reliever_policy: Optional[str] = None
    max_innings: Optional[float] = None

    @property
    def is_starter(self) -> bool:
        return self.starter_policy is not None

    @classmethod
    def from_row(cls, row: Dict[str, str]) -> "PitcherUsageConfig":
        role = str(row.get("role", "") or "").upper()
        max_innings = row.get("max_innings")
        try:
            limit = float(max_innings) if max_innings not in (None, "") else None
        except (TypeError, ValueError):
            limit = None
        if role == "SP":
            return cls(starter_policy="starter", max_innings=limit)
        policy = str(row.get("reliever_policy", "") or "behind_ok").lower()
        if policy not in RELIEVER_POLICIES:
            policy = "behind_ok"
        return cls(reliever_policy=policy, max_innings=limit)


@dataclass
class Team:
    team_id: str
    name: str
    roster: List[Player]
    lineup_ids: List[str] = field(default_factory=list)
    starting_pitcher_id: Optional[str] = None
    reliever_ids: List[str] = field(default_factory=list)
    usage: Dict[str, PitcherUsageConfig] = field(default_factory=dict)

    def player(self, player_id: str) -> Optional[Player]:
        for candidate in self.roster:
            if candidate.player_id == player_id:
                return candidate
        return None

    def usage_for(self, player_id: str) -> PitcherUsageConfig:
        config = self.usage.get(player_id)
        if config is not None:
            return config
        if player_id == self.starting_pitcher_id:
            return PitcherUsageConfig(starter_policy="starter")
        return PitcherUsageConfig(reliever_policy="behind_ok")
