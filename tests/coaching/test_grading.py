"""Tests for centipawn-loss grading and move explanations."""

from __future__ import annotations

import chess
import pytest

from chesscoach.coaching.grading import (
    RATIONALE_RULES,
    MoveContext,
    RationaleRule,
    centipawn_loss,
    explain_move,
    grade_from_loss,
)
from chesscoach.coaching.models import MoveGrade
from chesscoach.i18n import set_language, t


def _board(*san: str, fen: str | None = None) -> chess.Board:
    board = chess.Board(fen) if fen else chess.Board()
    for move in san:
        board.push_san(move)
    return board


def _rule(name: str) -> RationaleRule:
    return next(rule for rule in RATIONALE_RULES if rule.name == name)


def _context(board: chess.Board, san: str) -> MoveContext:
    return MoveContext.build(board, board.parse_san(san))


class TestGradeFromLoss:
    @pytest.mark.parametrize(
        ("loss", "grade"),
        [
            (0, MoveGrade.A_PLUS),
            (10, MoveGrade.A_PLUS),
            (11, MoveGrade.A),
            (20, MoveGrade.A),
            (21, MoveGrade.B),
            (50, MoveGrade.B),
            (51, MoveGrade.C),
            (90, MoveGrade.C),
            (91, MoveGrade.D),
            (150, MoveGrade.D),
            (151, MoveGrade.F),
            (100_000, MoveGrade.F),
        ],
    )
    def test_bucket_bounds_are_inclusive(self, loss: int, grade: MoveGrade) -> None:
        assert grade_from_loss(loss) == grade

    def test_magnitude_only(self) -> None:
        assert grade_from_loss(-10) == MoveGrade.A_PLUS
        assert grade_from_loss(-60) == MoveGrade.C
        assert grade_from_loss(-151) == MoveGrade.F

    def test_monotonic(self) -> None:
        order = list(MoveGrade)
        ranks = [order.index(grade_from_loss(loss)) for loss in range(0, 400, 5)]
        assert ranks == sorted(ranks)

    def test_grade_text(self) -> None:
        assert str(MoveGrade.A_PLUS) == "A+"


class TestCentipawnLoss:
    def test_post_move_score_is_seen_from_the_mover(self) -> None:
        # +30 for the mover before, +120 for the opponent after.
        assert centipawn_loss(30, 120) == 150

    def test_keeping_the_evaluation_loses_nothing(self) -> None:
        assert centipawn_loss(30, -30) == 0

    def test_improvement_is_negative(self) -> None:
        assert centipawn_loss(0, -50) == -50


class TestRationaleRules:
    def test_rule_order(self) -> None:
        assert [rule.name for rule in RATIONALE_RULES] == [
            "capture",
            "check",
            "mate",
            "center",
            "minor_piece",
            "castling",
            "under_defended",
        ]

    def test_capture(self) -> None:
        ctx = _context(_board("e4", "d5"), "exd5")
        assert _rule("capture").applies(ctx)
        assert _rule("center").applies(ctx)

    def test_check_without_mate(self) -> None:
        ctx = _context(_board("e4", "f6"), "Qh5+")
        assert _rule("check").applies(ctx)
        assert not _rule("mate").applies(ctx)

    def test_mate_without_check_decoration(self) -> None:
        ctx = _context(_board("f3", "e5", "g4"), "Qh4#")
        assert _rule("mate").applies(ctx)
        assert not _rule("check").applies(ctx)

    def test_minor_piece(self) -> None:
        assert _rule("minor_piece").applies(_context(_board(), "Nf3"))
        assert _rule("minor_piece").applies(_context(_board("e4", "e5"), "Bc4"))
        assert not _rule("minor_piece").applies(_context(_board(), "e4"))

    def test_castling(self) -> None:
        board = _board(fen="r3k2r/pppppppp/8/8/8/8/PPPPPPPP/R3K2R w KQkq - 0 1")
        assert _rule("castling").applies(_context(board, "O-O"))
        assert _rule("castling").applies(_context(board, "O-O-O"))
        assert not _rule("castling").applies(_context(board, "Kf1"))

    def test_under_defended_counts_after_the_move(self) -> None:
        # Bc8 now eyes g4 and nothing of White's covers it.
        ctx = _context(_board("e4", "d5"), "Qg4")
        assert _rule("under_defended").applies(ctx)

    def test_defended_square_is_fine(self) -> None:
        # ...Nxd4 is answered by Qxd4.
        board = _board("e4", "e5", "Nf3", "Nc6", "d4", "exd4")
        ctx = _context(board, "Nxd4")
        assert not _rule("under_defended").applies(ctx)


class TestExplainMove:
    def test_center_pawn(self) -> None:
        assert explain_move(_board(), chess.Move.from_uci("e2e4")) == t().note_center

    def test_development(self) -> None:
        note = explain_move(_board(), chess.Move.from_uci("g1f3"))
        assert note == t().note_minor_piece

    def test_phrases_follow_rule_order(self) -> None:
        board = _board("e4", "e5", "Bc4", "Nc6", "Qh5", "Nf6")
        note = explain_move(board, board.parse_san("Qxf7#"))
        assert note == f"{t().note_captured} {t().note_mate}"

    def test_fallback(self) -> None:
        assert explain_move(_board(), chess.Move.from_uci("a2a3")) == t().note_fallback

    def test_custom_rule_table(self) -> None:
        rules = (RationaleRule("always", lambda _ctx: True, lambda _s: "Always."),)
        assert explain_move(_board(), chess.Move.from_uci("a2a3"), rules) == "Always."

    def test_follows_active_language(self) -> None:
        set_language("Russian")
        note = explain_move(_board(), chess.Move.from_uci("d2d4"))
        assert note == "Вы боролись за центр."
