"""Internationalisation strings for Chess Coach.

Usage::

    from chesscoach.i18n import t, set_language

    set_language("Russian")
    print(t().note_center)        # "Вы боролись за центр."
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Strings:
    # ── Move rationale ───────────────────────────────────────────────────
    note_captured: str
    note_check: str
    note_mate: str
    note_center: str
    note_minor_piece: str
    note_castled: str
    note_under_defended: str
    note_fallback: str

    # ── Console ──────────────────────────────────────────────────────────
    console_help: str
    console_engine_starting: str  # "Starting engine {program}..."
    console_engine_ready: str
    console_engine_unavailable: str  # "Engine unavailable ({msg}); ..."
    console_new_game: str  # "New game. You play {color}."
    console_illegal_move: str  # "Not a legal move right now: {move}"
    console_unknown_command: str  # "Unknown command: {command}"
    console_invalid_setting: str  # "Invalid setting: {msg}"
    console_record: str  # "{ply}. {san} [{grade}] Δ {pawns} pawns. {note}"
    console_opening: str  # "Opening: {name} ({eco})"
    console_evaluation: str  # "Eval: {pawns}"
    console_lines: str  # "Lines: {lines}"
    console_engine_move: str  # "Engine plays {san}"
    console_engine_stalled: str
    console_hints: str  # "Hints: {lines}"
    console_no_hints: str
    console_nothing_to_undo: str
    console_game_over: str  # "Game over: {result}"
    console_strength: str  # "Engine strength set to {elo}."
    color_white: str
    color_black: str


_EN = Strings(
    note_captured="You captured material.",
    note_check="You gave check.",
    note_mate="Checkmate, nice.",
    note_center="You fought for the center.",
    note_minor_piece="You developed a minor piece.",
    note_castled="You castled your king to safety.",
    note_under_defended="The moved piece is under-defended.",
    note_fallback="Idea makes sense, but there may be a more precise square.",
    console_help=(
        "Enter a move (e4, Nf3, e7e8q). Commands: hint, undo, "
        "new white|black, elo N, quit"
    ),
    console_engine_starting="Starting engine {program}...",
    console_engine_ready="Engine ready.",
    console_engine_unavailable="Engine unavailable ({msg}); moves will not be graded.",
    console_new_game="New game. You play {color}.",
    console_illegal_move="Not a legal move right now: {move}",
    console_unknown_command="Unknown command: {command}",
    console_invalid_setting="Invalid setting: {msg}",
    console_record="{ply}. {san} [{grade}] Δ {pawns} pawns. {note}",
    console_opening="Opening: {name} ({eco})",
    console_evaluation="Eval: {pawns}",
    console_lines="Lines: {lines}",
    console_engine_move="Engine plays {san}",
    console_engine_stalled="The engine did not answer. Type undo or new to continue.",
    console_hints="Hints: {lines}",
    console_no_hints="No hints available.",
    console_nothing_to_undo="Nothing to undo.",
    console_game_over="Game over: {result}",
    console_strength="Engine strength set to {elo}.",
    color_white="White",
    color_black="Black",
)

_RU = Strings(
    note_captured="Вы взяли материал.",
    note_check="Вы объявили шах.",
    note_mate="Мат, отлично.",
    note_center="Вы боролись за центр.",
    note_minor_piece="Вы развили лёгкую фигуру.",
    note_castled="Вы увели короля в безопасность рокировкой.",
    note_under_defended="Походившая фигура недостаточно защищена.",
    note_fallback="Идея разумна, но, возможно, есть более точное поле.",
    console_help=(
        "Введите ход (e4, Nf3, e7e8q). Команды: hint, undo, "
        "new white|black, elo N, quit"
    ),
    console_engine_starting="Запуск движка {program}...",
    console_engine_ready="Движок готов.",
    console_engine_unavailable="Движок недоступен ({msg}); ходы не будут оцениваться.",
    console_new_game="Новая игра. Вы играете за {color}.",
    console_illegal_move="Сейчас этот ход невозможен: {move}",
    console_unknown_command="Неизвестная команда: {command}",
    console_invalid_setting="Неверная настройка: {msg}",
    console_record="{ply}. {san} [{grade}] Δ {pawns} пешки. {note}",
    console_opening="Дебют: {name} ({eco})",
    console_evaluation="Оценка: {pawns}",
    console_lines="Варианты: {lines}",
    console_engine_move="Движок играет {san}",
    console_engine_stalled="Движок не ответил. Введите undo или new, чтобы продолжить.",
    console_hints="Подсказки: {lines}",
    console_no_hints="Подсказок нет.",
    console_nothing_to_undo="Нечего отменять.",
    console_game_over="Конец игры: {result}",
    console_strength="Сила движка: {elo}.",
    color_white="белых",
    color_black="чёрных",
)

_LOCALES: dict[str, Strings] = {
    "English": _EN,
    "Russian": _RU,
}

LANGUAGES: list[str] = list(_LOCALES.keys())

_current: Strings = _EN


def t() -> Strings:
    """Return the active locale strings."""
    return _current


def set_language(language: str) -> None:
    """Switch the global locale. Unknown names fall back to English."""
    global _current
    _current = _LOCALES.get(language, _EN)
