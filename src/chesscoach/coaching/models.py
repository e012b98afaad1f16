"""Data models produced by move coaching."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class MoveGrade(StrEnum):
    """Letter grade for a played move, best first."""

    A_PLUS = "A+"
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    F = "F"


@dataclass(slots=True, frozen=True)
class MoveRecord:
    """Coaching feedback for one accepted user move."""

    ply: int
    san: str
    grade: MoveGrade
    cp_loss: int
    note: str

    @property
    def pawn_loss(self) -> float:
        return self.cp_loss / 100


@dataclass(slots=True, frozen=True)
class OpeningEntry:
    """A named opening and the move prefix that defines it."""

    eco: str
    name: str
    moves: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class OpeningMatch:
    """The book opening matched by the current game."""

    eco: str
    name: str
    matched_length: int
