"""Move coaching: grading, explanations, opening detection and the game pipeline.

Quick start::

    from chesscoach.coaching import CoachingPipeline

    pipeline = CoachingPipeline(channel, depth=16)
    pipeline.events.on_record.append(print)
    pipeline.new_game()
    pipeline.apply_user_move("e4")
"""

from chesscoach.coaching.grading import (
    RATIONALE_RULES,
    MoveContext,
    RationaleRule,
    centipawn_loss,
    explain_move,
    grade_from_loss,
)
from chesscoach.coaching.models import MoveGrade, MoveRecord, OpeningEntry, OpeningMatch
from chesscoach.coaching.openings import OPENING_BOOK, detect_opening
from chesscoach.coaching.pipeline import CoachEvents, CoachingPipeline, CoachPhase

__all__ = [
    "OPENING_BOOK",
    "RATIONALE_RULES",
    "CoachEvents",
    "CoachPhase",
    "CoachingPipeline",
    "MoveContext",
    "MoveGrade",
    "MoveRecord",
    "OpeningEntry",
    "OpeningMatch",
    "RationaleRule",
    "centipawn_loss",
    "detect_opening",
    "explain_move",
    "grade_from_loss",
]
