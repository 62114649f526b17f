"""Exception types raised by the simulator."""

from __future__ import annotations

from typing import Iterable


class InvalidRosterError(ValueError):
    """Raised when a team cannot field a legal game."""

    def __init__(self, team_id: str, problems: Iterable[str] | None = None):
        self.team_id = team_id
        self.problems = list(problems or [])
        message = f"Team {team_id!r} cannot play a game"
        if self.problems:
            message += ": " + "; ".join(self.problems)
        super().__init__(message)


__all__ = ["InvalidRosterError"]
