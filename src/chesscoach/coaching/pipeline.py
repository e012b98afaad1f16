"""CoachingPipeline — grades user moves and plays the engine's replies.

Per user move: evaluate the position before the move, apply it, evaluate the
position after it, then record a grade and a note, update the opening and
let the engine answer.  Every engine round trip goes through the shared
:class:`AnalysisChannel`; results that arrive after the pipeline has moved
on (new game, undo, a newer request) are ignored.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import IntEnum, auto

import chess

from chesscoach.coaching.grading import centipawn_loss, explain_move, grade_from_loss
from chesscoach.coaching.models import MoveGrade, MoveRecord, OpeningMatch
from chesscoach.coaching.openings import detect_opening
from chesscoach.engine.channel import AnalysisChannel, PendingAnalysis
from chesscoach.engine.protocol import resolve_move_token
from chesscoach.engine.search import (
    AnalysisRequest,
    AnalysisResult,
    EngineOptions,
    PrincipalVariation,
    SearchLimits,
)

_LOGGER = logging.getLogger(__name__)

MIN_DEPTH = 8
MAX_DEPTH = 22
DEFAULT_DEPTH = 16
_EVAL_MAX_DEPTH = 18
_HINT_COUNT = 3
_ENGINE_REPLY_RETRIES = 1

# ── Event definitions ────────────────────────────────────────────────────────

RecordCallback = Callable[[MoveRecord], None]
EvaluationCallback = Callable[[AnalysisResult, int], None]  # result, white cp
OpeningCallback = Callable[[OpeningMatch | None], None]
EngineMoveCallback = Callable[[str], None]  # san
HintsCallback = Callable[[tuple[PrincipalVariation, ...]], None]
GameOverCallback = Callable[[str], None]  # "1-0", "0-1", "1/2-1/2"
EngineStalledCallback = Callable[[], None]


class CoachPhase(IntEnum):
    """What the pipeline is waiting for."""

    NOT_STARTED = auto()
    AWAITING_MOVE = auto()
    EVALUATING = auto()  # grading a user move
    ENGINE_THINKING = auto()
    GAME_OVER = auto()


PhaseCallback = Callable[[CoachPhase], None]


@dataclass
class CoachEvents:
    """Observable callbacks. Multiple handlers per event."""

    on_record: list[RecordCallback] = field(default_factory=list)
    on_evaluation: list[EvaluationCallback] = field(default_factory=list)
    on_opening: list[OpeningCallback] = field(default_factory=list)
    on_engine_move: list[EngineMoveCallback] = field(default_factory=list)
    on_hints: list[HintsCallback] = field(default_factory=list)
    on_game_over: list[GameOverCallback] = field(default_factory=list)
    on_engine_stalled: list[EngineStalledCallback] = field(default_factory=list)
    on_phase_changed: list[PhaseCallback] = field(default_factory=list)


def clamp_depth(depth: int) -> int:
    return max(MIN_DEPTH, min(MAX_DEPTH, depth))


class CoachingPipeline:
    """Orchestrates one coached game against the engine.

    Single-threaded: all entry points and all analysis callbacks run on the
    Qt event loop.
    """

    __slots__ = (
        "_channel",
        "_depth",
        "_board",
        "_history_san",
        "_records",
        "_opening",
        "_user_color",
        "_phase",
        "_pending",
        "_reply_retries",
        "events",
    )

    def __init__(self, channel: AnalysisChannel, *, depth: int = DEFAULT_DEPTH) -> None:
        self._channel = channel
        self._depth = clamp_depth(depth)
        self._board = chess.Board()
        self._history_san: list[str] = []
        self._records: list[MoveRecord] = []
        self._opening: OpeningMatch | None = None
        self._user_color = chess.WHITE
        self._phase = CoachPhase.NOT_STARTED
        self._pending: PendingAnalysis | None = None
        self._reply_retries = 0
        self.events = CoachEvents()

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def board(self) -> chess.Board:
        """A copy of the current position."""
        return self._board.copy()

    @property
    def records(self) -> tuple[MoveRecord, ...]:
        return tuple(self._records)

    @property
    def history_san(self) -> tuple[str, ...]:
        return tuple(self._history_san)

    @property
    def opening(self) -> OpeningMatch | None:
        return self._opening

    @property
    def phase(self) -> CoachPhase:
        return self._phase

    @property
    def user_color(self) -> chess.Color:
        return self._user_color

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def engine_options(self) -> EngineOptions:
        return self._channel.session.options

    # ── Entry points ─────────────────────────────────────────────────────

    def new_game(self, user_color: chess.Color = chess.WHITE) -> None:
        self._pending = None
        self._user_color = user_color
        self._board = chess.Board()
        self._history_san = []
        self._records = []
        self._set_opening(None)
        self._prompt_next()

    def apply_user_move(self, text: str) -> bool:
        """Play *text* (SAN or UCI) for the user and start grading it.

        Returns ``False`` without touching any state if the move is not
        legal, the pipeline is not waiting for a move, or it is the engine's
        turn.  Without an engine the user plays both sides.
        """
        if self._phase != CoachPhase.AWAITING_MOVE or not self._users_turn():
            return False
        move = self._parse_user_move(text)
        if move is None:
            return False

        before = self._board.copy()
        self._set_phase(CoachPhase.EVALUATING)
        self._analyze(
            before,
            self._search_limits(),
            functools.partial(self._on_pre_move_eval, before, move),
        )
        return True

    def request_hint(self) -> bool:
        """Ask the engine for the best candidate moves in the current position."""
        if self._phase != CoachPhase.AWAITING_MOVE or not self._users_turn():
            return False
        limits = SearchLimits.at_depth(max(MIN_DEPTH, self._depth))
        self._analyze(self._board, limits, self._on_hint_result)
        return True

    def undo(self) -> bool:
        """Take back the last user move and the engine's reply to it."""
        if self._phase not in (CoachPhase.AWAITING_MOVE, CoachPhase.GAME_OVER):
            return False
        if not self._board.move_stack:
            return False

        self._pending = None
        self._pop_ply()
        if self._board.turn != self._user_color and self._board.move_stack:
            self._pop_ply()
        self._set_opening(detect_opening(self._history_san))
        self._prompt_next()
        return True

    def configure(self, options: EngineOptions) -> None:
        self._channel.session.configure(options)

    def set_depth(self, depth: int) -> None:
        self._depth = clamp_depth(depth)

    # ── Move grading chain ───────────────────────────────────────────────

    def _on_pre_move_eval(
        self,
        before: chess.Board,
        move: chess.Move,
        pre: AnalysisResult,
    ) -> None:
        san = self._push(move)
        self._analyze(
            self._board,
            self._search_limits(),
            functools.partial(self._on_post_move_eval, before, move, san, pre),
        )

    def _on_post_move_eval(
        self,
        before: chess.Board,
        move: chess.Move,
        san: str,
        pre: AnalysisResult,
        post: AnalysisResult,
    ) -> None:
        loss = centipawn_loss(pre.score_cp, post.score_cp)
        # Without an engine there is no loss to measure; such moves get a flat A.
        grade = grade_from_loss(loss) if self._channel.session.is_ready else MoveGrade.A
        record = MoveRecord(
            ply=len(self._board.move_stack),
            san=san,
            grade=grade,
            cp_loss=loss,
            note=explain_move(before, move),
        )
        self._records.append(record)
        for cb in self.events.on_record:
            cb(record)
        self._emit_evaluation(post, self._board.turn)
        self._set_opening(detect_opening(self._history_san))
        self._prompt_next()

    def _on_engine_result(self, result: AnalysisResult) -> None:
        move = None
        if result.best_move is not None:
            move = resolve_move_token(self._board, result.best_move)
        if move is None:
            if self._reply_retries > 0 and self._channel.session.is_ready:
                self._reply_retries -= 1
                _LOGGER.info("Engine produced no move; asking again")
                self._request_engine_move()
                return
            # The turn stays with the engine; the user may undo or start over.
            _LOGGER.warning("Engine produced no move for %s", self._board.fen())
            self._set_phase(CoachPhase.AWAITING_MOVE)
            for cb in self.events.on_engine_stalled:
                cb()
            return

        san = self._push(move)
        for cb in self.events.on_engine_move:
            cb(san)
        self._set_opening(detect_opening(self._history_san))
        if self._board.is_game_over():
            self._finish_game()
            return
        self._set_phase(CoachPhase.AWAITING_MOVE)
        self._refresh_evaluation()

    def _on_hint_result(self, result: AnalysisResult) -> None:
        hints = result.variations[:_HINT_COUNT]
        for cb in self.events.on_hints:
            cb(hints)

    def _on_evaluation_result(self, turn: chess.Color, result: AnalysisResult) -> None:
        self._emit_evaluation(result, turn)

    # ── Internal helpers ─────────────────────────────────────────────────

    def _prompt_next(self) -> None:
        """Hand the turn to whoever moves next."""
        if self._board.is_game_over():
            self._finish_game()
            return
        engine_to_move = self._board.turn != self._user_color
        if engine_to_move and self._channel.session.is_ready:
            self._reply_retries = _ENGINE_REPLY_RETRIES
            self._request_engine_move()
            return
        self._set_phase(CoachPhase.AWAITING_MOVE)
        self._refresh_evaluation()

    def _users_turn(self) -> bool:
        if not self._channel.session.is_ready:
            return True
        return self._board.turn == self._user_color

    def _request_engine_move(self) -> None:
        self._set_phase(CoachPhase.ENGINE_THINKING)
        self._analyze(self._board, self._search_limits(), self._on_engine_result)

    def _refresh_evaluation(self) -> None:
        if not self._channel.session.is_ready:
            return
        limits = SearchLimits.at_depth(min(self._depth, _EVAL_MAX_DEPTH))
        self._analyze(
            self._board,
            limits,
            functools.partial(self._on_evaluation_result, self._board.turn),
        )

    def _analyze(
        self,
        board: chess.Board,
        limits: SearchLimits,
        then: Callable[[AnalysisResult], None],
    ) -> None:
        # Cleared first: issuing a request settles the one it supersedes.
        self._pending = None
        pending = self._channel.analyze(AnalysisRequest(board.fen(), limits))
        self._pending = pending
        pending.add_done_callback(functools.partial(self._dispatch, pending, then))

    def _dispatch(
        self,
        pending: PendingAnalysis,
        then: Callable[[AnalysisResult], None],
        result: AnalysisResult,
    ) -> None:
        if pending is not self._pending:
            return
        self._pending = None
        then(result)

    def _search_limits(self) -> SearchLimits:
        return SearchLimits.at_depth(self._depth)

    def _parse_user_move(self, text: str) -> chess.Move | None:
        text = text.strip()
        if not text:
            return None
        try:
            move = self._board.parse_san(text)
        except ValueError:
            try:
                move = chess.Move.from_uci(text.lower())
            except ValueError:
                return None
            if move.promotion is None and self._is_promotion_square(move):
                move = chess.Move(move.from_square, move.to_square, promotion=chess.QUEEN)
        # Null moves parse but are never legal here.
        if not move or move not in self._board.legal_moves:
            return None
        return move

    def _is_promotion_square(self, move: chess.Move) -> bool:
        if self._board.piece_type_at(move.from_square) != chess.PAWN:
            return False
        return chess.square_rank(move.to_square) in (0, 7)

    def _push(self, move: chess.Move) -> str:
        san = self._board.san(move)
        self._board.push(move)
        self._history_san.append(san)
        return san

    def _pop_ply(self) -> None:
        self._board.pop()
        self._history_san.pop()

    def _finish_game(self) -> None:
        self._set_phase(CoachPhase.GAME_OVER)
        result = self._board.result()
        for cb in self.events.on_game_over:
            cb(result)

    def _emit_evaluation(self, result: AnalysisResult, turn: chess.Color) -> None:
        # Engine scores are side-to-move-centric; listeners get White's view.
        white_cp = result.score_cp if turn == chess.WHITE else -result.score_cp
        for cb in self.events.on_evaluation:
            cb(result, white_cp)

    def _set_opening(self, opening: OpeningMatch | None) -> None:
        if opening == self._opening:
            return
        self._opening = opening
        for cb in self.events.on_opening:
            cb(opening)

    def _set_phase(self, phase: CoachPhase) -> None:
        if phase == self._phase:
            return
        self._phase = phase
        for cb in self.events.on_phase_changed:
            cb(phase)
