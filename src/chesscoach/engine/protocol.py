"""UCI text protocol: outbound command formatting and inbound line parsing.

Inbound lines are decoded into small frozen records::

    >>> parse_line("info depth 12 multipv 1 score cp 31 pv e2e4 e7e5")
    InfoLine(score_cp=31, rank=1, pv_move='e2e4')
    >>> parse_line("bestmove e2e4 ponder e7e5")
    BestMoveLine(move='e2e4')

Anything the coach does not care about parses to ``None``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

import chess

from chesscoach.engine.search import MATE_SCORE_CP, PrincipalVariation, SearchLimits

_LOGGER = logging.getLogger(__name__)

_COORDINATE_RE = re.compile(r"^[a-h][1-8][a-h][1-8][qrbn]?$")

# Tokens after which the rest of an info line is free text or a move list.
_INFO_TERMINATORS = frozenset({"string", "refutation", "currline"})


# ── Inbound records ──────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class HandshakeAck:
    """``uciok``"""


@dataclass(slots=True, frozen=True)
class ReadyAck:
    """``readyok``"""


@dataclass(slots=True, frozen=True)
class InfoLine:
    """Fields of an ``info`` line relevant to coaching."""

    score_cp: int | None = None
    rank: int | None = None
    pv_move: str | None = None


@dataclass(slots=True, frozen=True)
class BestMoveLine:
    """Terminal line of a search. ``move`` is ``None`` for ``(none)``."""

    move: str | None


EngineLine = HandshakeAck | ReadyAck | InfoLine | BestMoveLine


def parse_line(line: str) -> EngineLine | None:
    """Decode one line of engine output. Never raises."""
    tokens = line.split()
    if not tokens:
        return None

    head = tokens[0]
    if head == "uciok":
        return HandshakeAck()
    if head == "readyok":
        return ReadyAck()
    if head == "info":
        return _parse_info(tokens[1:])
    if head == "bestmove":
        move = tokens[1] if len(tokens) > 1 else None
        if move is not None and not _COORDINATE_RE.match(move):
            move = None
        return BestMoveLine(move=move)

    _LOGGER.debug("Ignoring engine line: %s", line)
    return None


def _parse_info(tokens: list[str]) -> InfoLine | None:
    score_cp: int | None = None
    rank: int | None = None
    pv_move: str | None = None

    i = 0
    while i < len(tokens):
        tok = tokens[i]
        if tok in _INFO_TERMINATORS:
            break
        if tok == "score" and i + 2 < len(tokens):
            score_cp = _parse_score(tokens[i + 1], tokens[i + 2])
            i += 3
            continue
        if tok == "multipv" and i + 1 < len(tokens):
            rank = _parse_int(tokens[i + 1])
            i += 2
            continue
        if tok == "pv":
            if i + 1 < len(tokens) and _COORDINATE_RE.match(tokens[i + 1]):
                pv_move = tokens[i + 1]
            # The principal variation is always the last field.
            break
        i += 1

    if score_cp is None and pv_move is None:
        return None
    return InfoLine(score_cp=score_cp, rank=rank, pv_move=pv_move)


def _parse_score(kind: str, value: str) -> int | None:
    number = _parse_int(value)
    if number is None:
        return None
    if kind == "cp":
        return number
    if kind == "mate":
        # "mate 0" / "mate -N": the side to move is being mated.
        return MATE_SCORE_CP if number > 0 else -MATE_SCORE_CP
    return None


def _parse_int(text: str) -> int | None:
    try:
        return int(text)
    except ValueError:
        return None


# ── Move tokens ──────────────────────────────────────────────────────────────


def resolve_move_token(board: chess.Board, token: str) -> chess.Move | None:
    """Find the legal move in *board* spelled by a coordinate *token*."""
    if not _COORDINATE_RE.match(token):
        return None
    for move in board.legal_moves:
        if move.uci() == token:
            return move
    return None


class VariationTable:
    """Latest principal-variation fragment per rank for one search.

    Ranks may arrive out of order and be overwritten as the search deepens.
    Ranks above *max_rank* are not tracked.
    """

    __slots__ = ("_board", "_max_rank", "_by_rank")

    def __init__(self, board: chess.Board, max_rank: int | None = None) -> None:
        self._board = board
        self._max_rank = max_rank
        self._by_rank: dict[int, PrincipalVariation] = {}

    def record(self, rank: int, uci: str, score_cp: int) -> bool:
        """Store a fragment. Returns ``False`` if the move is not legal here."""
        if rank < 1 or (self._max_rank is not None and rank > self._max_rank):
            return False
        move = resolve_move_token(self._board, uci)
        if move is None:
            _LOGGER.debug("Dropping unresolvable PV move %s", uci)
            return False
        self._by_rank[rank] = PrincipalVariation(
            rank=rank,
            uci=uci,
            san=self._board.san(move),
            score_cp=score_cp,
        )
        return True

    def compact(self) -> tuple[PrincipalVariation, ...]:
        """Filled ranks in ascending order, renumbered from 1 without gaps."""
        return tuple(
            PrincipalVariation(
                rank=index,
                uci=pv.uci,
                san=pv.san,
                score_cp=pv.score_cp,
            )
            for index, (_rank, pv) in enumerate(sorted(self._by_rank.items()), 1)
        )

    def __len__(self) -> int:
        return len(self._by_rank)


# ── Outbound commands ────────────────────────────────────────────────────────

CMD_UCI = "uci"
CMD_ISREADY = "isready"
CMD_STOP = "stop"
CMD_QUIT = "quit"


def setoption(name: str, value: object) -> str:
    if isinstance(value, bool):
        value = "true" if value else "false"
    return f"setoption name {name} value {value}"


def position_command(fen: str) -> str:
    return f"position fen {fen}"


def go_command(limits: SearchLimits) -> str:
    if limits.depth is not None:
        return f"go depth {limits.depth}"
    return f"go movetime {limits.time_ms}"
