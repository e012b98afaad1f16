"""Single-flight analysis requests over an :class:`EngineSession`.

UCI output carries no request id, so correlation is structural: at most one
request is active at a time, and output of searches that were superseded or
timed out is flushed with an ``isready``/``readyok`` round trip before the
next search starts.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable

import chess
from PyQt6.QtCore import QObject, QTimer

from chesscoach.engine import protocol
from chesscoach.engine.protocol import BestMoveLine, InfoLine, ReadyAck, VariationTable
from chesscoach.engine.search import AnalysisRequest, AnalysisResult
from chesscoach.engine.session import EngineSession

_LOGGER = logging.getLogger(__name__)

ResultCallback = Callable[[AnalysisResult], None]


class PendingAnalysis:
    """Handle for an analysis that settles exactly once."""

    __slots__ = ("request", "_result", "_callbacks")

    def __init__(self, request: AnalysisRequest) -> None:
        self.request = request
        self._result: AnalysisResult | None = None
        self._callbacks: list[ResultCallback] = []

    def done(self) -> bool:
        return self._result is not None

    def result(self) -> AnalysisResult | None:
        """The settled result, or ``None`` while still pending."""
        return self._result

    def add_done_callback(self, callback: ResultCallback) -> None:
        """Call *callback* with the result; immediately if already settled."""
        if self._result is not None:
            callback(self._result)
            return
        self._callbacks.append(callback)

    def _resolve(self, result: AnalysisResult) -> bool:
        if self._result is not None:
            return False
        self._result = result
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback(result)
        return True


class _ActiveSearch:
    """Fragments collected for the request currently owning the engine."""

    __slots__ = ("pending", "table", "best_move", "score_cp", "timer", "started")

    def __init__(
        self,
        pending: PendingAnalysis,
        table: VariationTable,
        timer: QTimer,
    ) -> None:
        self.pending = pending
        self.table = table
        self.best_move: str | None = None
        self.score_cp: int | None = None
        self.timer = timer
        # Set once "position"/"go" went out; a search may wait for a resync.
        self.started = False

    def observe(self, info: InfoLine) -> None:
        rank = info.rank if info.rank is not None else 1
        if info.score_cp is not None and rank == 1:
            self.score_cp = info.score_cp
        if info.pv_move is not None:
            score = info.score_cp if info.score_cp is not None else self.score_cp
            self.table.record(rank, info.pv_move, score or 0)

    def result(self, *, timed_out: bool) -> AnalysisResult:
        return AnalysisResult(
            best_move=self.best_move,
            score_cp=self.score_cp or 0,
            variations=self.table.compact(),
            timed_out=timed_out,
        )


class AnalysisChannel:
    """Serializes analysis requests and settles each one exactly once.

    A request settles on the engine's ``bestmove`` line or, if that never
    arrives, after the search budget plus ``grace_ms`` with whatever was
    observed so far.  Issuing a new request settles the previous one with
    its partial data.

    Whenever the engine may still be running a search nobody waits for
    (after a supersede or a timeout) the channel sends ``stop`` and
    ``isready`` and drops every line up to the ``readyok``.  The next search
    is only started after that reply.
    """

    DEFAULT_GRACE_MS = 1500

    __slots__ = (
        "__weakref__",
        "_session",
        "_grace_ms",
        "_parent",
        "_active",
        "_token",
        "_searching",
        "_resyncing",
    )

    def __init__(
        self,
        session: EngineSession,
        *,
        grace_ms: int = DEFAULT_GRACE_MS,
        parent: QObject | None = None,
    ) -> None:
        self._session = session
        self._grace_ms = grace_ms
        self._parent = parent
        self._active: _ActiveSearch | None = None
        self._token: int | None = None
        # A "go" went out and its "bestmove" has not been seen yet.
        self._searching = False
        # An "isready" went out and its "readyok" has not been seen yet.
        self._resyncing = False

    @property
    def session(self) -> EngineSession:
        return self._session

    @property
    def is_busy(self) -> bool:
        return self._active is not None

    @property
    def is_resyncing(self) -> bool:
        return self._resyncing

    def analyze(self, request: AnalysisRequest) -> PendingAnalysis:
        """Start analysing *request*; the returned handle settles once."""
        pending = PendingAnalysis(request)
        self._supersede()

        if not self._session.is_ready:
            self._reset()
            pending._resolve(AnalysisResult.neutral())
            return pending

        try:
            board = chess.Board(request.fen)
        except ValueError:
            _LOGGER.warning("Cannot analyse invalid FEN: %s", request.fen)
            pending._resolve(AnalysisResult.neutral())
            return pending

        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        table = VariationTable(board, self._session.options.multipv)
        search = _ActiveSearch(pending, table, timer)
        timer.timeout.connect(functools.partial(self._on_timeout, search))

        self._active = search
        if self._token is None:
            self._token = self._session.subscribe(self._on_line)
        timer.start(request.limits.budget_ms + self._grace_ms)

        if self._searching and not self._resyncing:
            self._begin_resync()
        if not self._resyncing:
            self._start(search)
        return pending

    def close(self) -> None:
        """Settle any pending request and drop the engine subscription."""
        self._supersede()
        self._reset()

    # ── Internal helpers ─────────────────────────────────────────────────

    def _start(self, search: _ActiveSearch) -> None:
        if search.started:
            return
        search.started = True
        # Must precede the sends; a transport may deliver replies synchronously.
        self._searching = True
        request = search.pending.request
        self._session.send(protocol.CMD_STOP)
        self._session.send(protocol.position_command(request.fen))
        self._session.send(protocol.go_command(request.limits))

    def _begin_resync(self) -> None:
        _LOGGER.debug("Resynchronising with the engine")
        self._searching = False
        self._resyncing = True
        self._session.send(protocol.CMD_STOP)
        self._session.send(protocol.CMD_ISREADY)

    def _on_line(self, line: str) -> None:
        parsed = protocol.parse_line(line)
        if isinstance(parsed, ReadyAck):
            if not self._resyncing:
                return
            # Everything the engine printed before this belongs to old searches.
            self._resyncing = False
            self._searching = False
            if self._active is not None:
                self._start(self._active)
            else:
                self._release_subscription()
        elif self._resyncing:
            return
        elif isinstance(parsed, BestMoveLine):
            self._searching = False
            search = self._active
            if search is not None and search.started:
                search.best_move = parsed.move
                self._settle(search, timed_out=False)
            if self._active is None and not self._resyncing:
                self._release_subscription()
        elif isinstance(parsed, InfoLine):
            if self._active is not None and self._active.started:
                self._active.observe(parsed)

    def _on_timeout(self, search: _ActiveSearch) -> None:
        if search is not self._active:
            return
        _LOGGER.debug(
            "Analysis timed out for %s; using partial result",
            search.pending.request.fen,
        )
        if not search.started:
            # The "readyok" we waited for is presumed lost; ask again.
            self._resyncing = False
            self._searching = True
        self._settle(search, timed_out=True)
        if self._active is None and self._searching:
            self._begin_resync()

    def _supersede(self) -> None:
        # Settling runs callbacks, which may start (and so supersede) again.
        while self._active is not None:
            self._settle(self._active, timed_out=False)

    def _settle(self, search: _ActiveSearch, *, timed_out: bool) -> None:
        search.timer.stop()
        if self._active is search:
            self._active = None
        search.pending._resolve(search.result(timed_out=timed_out))

    def _reset(self) -> None:
        self._searching = False
        self._resyncing = False
        self._release_subscription()

    def _release_subscription(self) -> None:
        if self._token is not None:
            self._session.unsubscribe(self._token)
            self._token = None
