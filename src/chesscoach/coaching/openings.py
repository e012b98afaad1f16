"""Opening identification against a small static book."""

from __future__ import annotations

import functools
from collections.abc import Sequence

import chess

from chesscoach.coaching.models import OpeningEntry, OpeningMatch

OPENING_BOOK: tuple[OpeningEntry, ...] = (
    OpeningEntry("C20", "King's Pawn Game", ("e4",)),
    OpeningEntry("C40", "King's Knight Opening", ("e4", "e5", "Nf3")),
    OpeningEntry("C50", "Italian Game", ("e4", "e5", "Nf3", "Nc6", "Bc4")),
    OpeningEntry("C60", "Ruy Lopez", ("e4", "e5", "Nf3", "Nc6", "Bb5")),
    OpeningEntry("B30", "Sicilian Defense", ("e4", "c5")),
    OpeningEntry("C00", "French Defense", ("e4", "e6")),
    OpeningEntry("B01", "Scandinavian Defense", ("e4", "d5")),
    OpeningEntry("D00", "Queen's Pawn Game", ("d4", "d5")),
    OpeningEntry("D06", "Slav Defense", ("d4", "d5", "c4", "c6")),
    OpeningEntry("D20", "Queen's Gambit Accepted", ("d4", "d5", "c4", "dxc4")),
    OpeningEntry("D30", "Queen's Gambit Declined", ("d4", "d5", "c4", "e6")),
    OpeningEntry("E60", "King's Indian Defense", ("d4", "Nf6", "c4", "g6")),
)


def _strip_decorations(san: str) -> str:
    return san.rstrip("+#")


def _resolve_book_token(board: chess.Board, token: str) -> chess.Move | None:
    """Match a coordinate pair (``g1f3``) or a SAN token (``Nf3``)."""
    wanted = _strip_decorations(token)
    for move in board.legal_moves:
        if chess.square_name(move.from_square) + chess.square_name(move.to_square) == token:
            return move
        if _strip_decorations(board.san(move)) == wanted:
            return move
    return None


@functools.cache
def replay_entry(entry: OpeningEntry) -> tuple[str, ...] | None:
    """SAN of *entry*'s moves from the initial position, or ``None`` if any
    token does not resolve to a legal move."""
    board = chess.Board()
    sans: list[str] = []
    for token in entry.moves:
        move = _resolve_book_token(board, token)
        if move is None:
            return None
        sans.append(board.san(move))
        board.push(move)
    return tuple(sans)


def match_entry(entry: OpeningEntry, history_san: Sequence[str]) -> OpeningMatch | None:
    """Compare one book entry with a game's SAN history."""
    book_san = replay_entry(entry)
    if book_san is None:
        return None
    length = min(len(book_san), len(history_san))
    if length == 0:
        return None
    for book_move, played in zip(book_san[:length], history_san[:length]):
        if _strip_decorations(book_move) != _strip_decorations(played):
            return None
    return OpeningMatch(eco=entry.eco, name=entry.name, matched_length=length)


def detect_opening(
    history_san: Sequence[str],
    book: Sequence[OpeningEntry] = OPENING_BOOK,
) -> OpeningMatch | None:
    """Find the book opening sharing the longest prefix with *history_san*.

    On equal matched length the entry listed first in *book* wins.
    """
    best: OpeningMatch | None = None
    for entry in book:
        match = match_entry(entry, history_san)
        if match is not None and (best is None or match.matched_length > best.matched_length):
            best = match
    return best
