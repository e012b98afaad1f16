"""Move grading and heuristic move explanations."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import chess

from chesscoach.coaching.models import MoveGrade
from chesscoach.i18n import Strings, t

# Inclusive upper bounds on centipawn loss, best grade first.
_GRADE_BOUNDS: tuple[tuple[int, MoveGrade], ...] = (
    (10, MoveGrade.A_PLUS),
    (20, MoveGrade.A),
    (50, MoveGrade.B),
    (90, MoveGrade.C),
    (150, MoveGrade.D),
)

_CENTER_SQUARES = frozenset({chess.D4, chess.D5, chess.E4, chess.E5})
_MINOR_PIECES = frozenset({chess.KNIGHT, chess.BISHOP})


def grade_from_loss(cp_loss: int) -> MoveGrade:
    """Map a centipawn loss to a letter grade. Only the magnitude counts."""
    loss = abs(cp_loss)
    for bound, grade in _GRADE_BOUNDS:
        if loss <= bound:
            return grade
    return MoveGrade.F


def centipawn_loss(before_cp: int, after_cp: int) -> int:
    """How much a move worsened the mover's evaluation.

    Both scores are engine scores for the side to move: *before_cp* is from
    the mover's point of view, *after_cp* from the opponent's.  Positive
    values mean the move made things worse for the mover.
    """
    return before_cp + after_cp


# ── Rationale rules ──────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class MoveContext:
    """A move together with the positions on either side of it."""

    before: chess.Board
    after: chess.Board
    move: chess.Move
    san: str

    @classmethod
    def build(cls, before: chess.Board, move: chess.Move) -> MoveContext:
        after = before.copy(stack=False)
        san = before.san(move)
        after.push(move)
        return cls(before=before, after=after, move=move, san=san)


@dataclass(slots=True, frozen=True)
class RationaleRule:
    """One heuristic: if ``applies`` holds, ``phrase`` is added to the note."""

    name: str
    applies: Callable[[MoveContext], bool]
    phrase: Callable[[Strings], str]


def _is_capture(ctx: MoveContext) -> bool:
    return ctx.before.is_capture(ctx.move)


def _gives_check(ctx: MoveContext) -> bool:
    return "+" in ctx.san


def _gives_mate(ctx: MoveContext) -> bool:
    return "#" in ctx.san


def _takes_center(ctx: MoveContext) -> bool:
    return ctx.move.to_square in _CENTER_SQUARES


def _moves_minor_piece(ctx: MoveContext) -> bool:
    return ctx.before.piece_type_at(ctx.move.from_square) in _MINOR_PIECES


def _is_castling(ctx: MoveContext) -> bool:
    return ctx.before.is_castling(ctx.move)


def _is_under_defended(ctx: MoveContext) -> bool:
    target = ctx.move.to_square
    mover = ctx.before.turn
    # After the move it is the opponent's turn, so legal moves are theirs.
    attackers = sum(1 for m in ctx.after.legal_moves if m.to_square == target)
    defenders = len(ctx.after.attackers(mover, target))
    return attackers > defenders


RATIONALE_RULES: tuple[RationaleRule, ...] = (
    RationaleRule("capture", _is_capture, lambda s: s.note_captured),
    RationaleRule("check", _gives_check, lambda s: s.note_check),
    RationaleRule("mate", _gives_mate, lambda s: s.note_mate),
    RationaleRule("center", _takes_center, lambda s: s.note_center),
    RationaleRule("minor_piece", _moves_minor_piece, lambda s: s.note_minor_piece),
    RationaleRule("castling", _is_castling, lambda s: s.note_castled),
    RationaleRule("under_defended", _is_under_defended, lambda s: s.note_under_defended),
)


def explain_move(
    before: chess.Board,
    move: chess.Move,
    rules: tuple[RationaleRule, ...] = RATIONALE_RULES,
) -> str:
    """Describe *move* played from *before* in one or more short sentences."""
    ctx = MoveContext.build(before, move)
    strings = t()
    parts = [rule.phrase(strings) for rule in rules if rule.applies(ctx)]
    if not parts:
        parts.append(strings.note_fallback)
    return " ".join(parts)
