"""Console front end: reads moves and commands, prints coaching feedback."""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from typing import TextIO

import chess
from PyQt6.QtCore import QObject, QSocketNotifier

from chesscoach.coaching.models import MoveRecord, OpeningMatch
from chesscoach.coaching.pipeline import CoachingPipeline
from chesscoach.engine.search import (
    MATE_SCORE_CP,
    AnalysisResult,
    EngineOptions,
    PrincipalVariation,
)
from chesscoach.i18n import t

_LOGGER = logging.getLogger(__name__)

_QUIT_COMMANDS = frozenset({"quit", "exit", "q"})


def format_pawns(white_cp: int) -> str:
    """Signed pawn value, or ``#+``/``#-`` for a forced mate."""
    if white_cp >= MATE_SCORE_CP:
        return "#+"
    if white_cp <= -MATE_SCORE_CP:
        return "#-"
    return f"{white_cp / 100:+.2f}"


def format_lines(variations: tuple[PrincipalVariation, ...]) -> str:
    return ", ".join(f"{pv.rank}. {pv.san}" for pv in variations)


class ConsoleCoach:
    """Text UI over a :class:`CoachingPipeline`.

    Input arrives one line at a time, either from stdin through a
    :class:`QSocketNotifier` or directly via :meth:`handle_command`.
    """

    __slots__ = ("__weakref__", "_pipeline", "_out", "_on_quit", "_notifier")

    def __init__(
        self,
        pipeline: CoachingPipeline,
        *,
        out: TextIO | None = None,
        on_quit: Callable[[], None] | None = None,
    ) -> None:
        self._pipeline = pipeline
        self._out = out if out is not None else sys.stdout
        self._on_quit = on_quit
        self._notifier: QSocketNotifier | None = None

        events = pipeline.events
        events.on_record.append(self._show_record)
        events.on_evaluation.append(self._show_evaluation)
        events.on_opening.append(self._show_opening)
        events.on_engine_move.append(self._show_engine_move)
        events.on_hints.append(self._show_hints)
        events.on_game_over.append(self._show_game_over)
        events.on_engine_stalled.append(self._show_engine_stalled)

    # ── Input ────────────────────────────────────────────────────────────

    def attach_stdin(self, parent: QObject | None = None) -> None:
        """Read commands from stdin on the Qt event loop."""
        if self._notifier is not None:
            return
        notifier = QSocketNotifier(sys.stdin.fileno(), QSocketNotifier.Type.Read, parent)
        notifier.activated.connect(self._on_stdin_ready)
        self._notifier = notifier

    def _on_stdin_ready(self) -> None:
        line = sys.stdin.readline()
        if not line:
            _LOGGER.debug("stdin closed")
            if self._notifier is not None:
                self._notifier.setEnabled(False)
            self._quit()
            return
        self.handle_command(line)

    def handle_command(self, line: str) -> None:
        words = line.split()
        if not words:
            return
        command = words[0].lower()

        if command in _QUIT_COMMANDS:
            self._quit()
        elif command == "help":
            self._print(t().console_help)
        elif command == "hint":
            if not self._pipeline.request_hint():
                self._print(t().console_no_hints)
        elif command == "undo":
            if not self._pipeline.undo():
                self._print(t().console_nothing_to_undo)
        elif command == "new":
            self._new_game(words[1:])
        elif command == "elo":
            self._set_elo(words[1:])
        elif len(words) == 1:
            if not self._pipeline.apply_user_move(words[0]):
                self._print(t().console_illegal_move.format(move=words[0]))
        else:
            self._print(t().console_unknown_command.format(command=command))

    def _new_game(self, args: list[str]) -> None:
        color = chess.BLACK if args and args[0].lower() == "black" else chess.WHITE
        name = t().color_black if color == chess.BLACK else t().color_white
        self._print(t().console_new_game.format(color=name))
        self._pipeline.new_game(color)

    def _set_elo(self, args: list[str]) -> None:
        current = self._pipeline.engine_options
        try:
            elo = int(args[0]) if args else current.elo
            options = EngineOptions(elo=elo, multipv=current.multipv)
        except ValueError as exc:
            self._print(t().console_invalid_setting.format(msg=exc))
            return
        self._pipeline.configure(options)
        self._print(t().console_strength.format(elo=options.elo))

    def _quit(self) -> None:
        if self._on_quit is not None:
            self._on_quit()

    # ── Engine status ────────────────────────────────────────────────────

    def show_engine_starting(self, program: str) -> None:
        self._print(t().console_engine_starting.format(program=program))

    def show_engine_ready(self) -> None:
        self._print(t().console_engine_ready)

    def show_engine_unavailable(self, message: str) -> None:
        self._print(t().console_engine_unavailable.format(msg=message))

    # ── Pipeline output ──────────────────────────────────────────────────

    def _show_record(self, record: MoveRecord) -> None:
        self._print(
            t().console_record.format(
                ply=record.ply,
                san=record.san,
                grade=record.grade,
                pawns=f"{record.pawn_loss:.2f}",
                note=record.note,
            )
        )

    def _show_evaluation(self, result: AnalysisResult, white_cp: int) -> None:
        self._print(t().console_evaluation.format(pawns=format_pawns(white_cp)))
        if result.variations:
            self._print(t().console_lines.format(lines=format_lines(result.variations)))

    def _show_opening(self, opening: OpeningMatch | None) -> None:
        if opening is None:
            return
        self._print(t().console_opening.format(name=opening.name, eco=opening.eco))

    def _show_engine_move(self, san: str) -> None:
        self._print(t().console_engine_move.format(san=san))

    def _show_hints(self, variations: tuple[PrincipalVariation, ...]) -> None:
        if not variations:
            self._print(t().console_no_hints)
            return
        self._print(t().console_hints.format(lines=format_lines(variations)))

    def _show_game_over(self, result: str) -> None:
        self._print(t().console_game_over.format(result=result))

    def _show_engine_stalled(self) -> None:
        self._print(t().console_engine_stalled)

    def _print(self, text: str) -> None:
        print(text, file=self._out, flush=True)
