"""Shared pytest fixtures used across the test suite."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator

import chess
import pytest

from chesscoach.engine.session import EngineSession

Responder = Callable[[str], Iterable[str]]


class FakeTransport:
    """In-memory line transport.

    Every sent line is recorded; the optional *responder* turns it into
    engine output, delivered synchronously.
    """

    def __init__(self, responder: Responder | None = None) -> None:
        self.responder = responder
        self.open_ok = True
        self.sent: list[str] = []
        self.closed = False
        self._on_line: Callable[[str], None] | None = None
        self._on_failure: Callable[[str], None] | None = None

    def open(
        self,
        on_line: Callable[[str], None],
        on_failure: Callable[[str], None],
    ) -> bool:
        if not self.open_ok:
            return False
        self._on_line = on_line
        self._on_failure = on_failure
        return True

    def send(self, line: str) -> None:
        self.sent.append(line)
        if self.responder is not None:
            self.feed(*self.responder(line))

    def close(self) -> None:
        self.closed = True
        self._on_line = None
        self._on_failure = None

    def feed(self, *lines: str) -> None:
        for line in lines:
            if self._on_line is not None:
                self._on_line(line)

    def fail(self, message: str = "engine crashed") -> None:
        callback = self._on_failure
        self._on_line = None
        self._on_failure = None
        if callback is not None:
            callback(message)


class ScriptedEngine:
    """Speaks just enough UCI to drive a session and its analysis channel.

    Scores are looked up by FEN and are from the side to move.  The reply
    is the first legal move of ``prefer``, else the first legal move in
    coordinate order.  A ``silent`` engine never finishes a search; with
    ``hold_ready`` set, ``isready`` goes unanswered until a test feeds
    ``readyok`` itself.  The next ``drop_bestmoves`` searches end without
    their ``bestmove`` line.
    """

    def __init__(self) -> None:
        self.scores: dict[str, int] = {}
        self.default_score = 0
        self.prefer: list[str] = []
        self.silent = False
        self.hold_ready = False
        self.drop_bestmoves = 0
        self.multipv = 1
        self.fen = chess.STARTING_FEN
        self.searches = 0

    def __call__(self, line: str) -> list[str]:
        if line == "uci":
            return ["id name Scripted", "uciok"]
        if line == "isready":
            if self.hold_ready:
                return []
            return ["readyok"]
        if line.startswith("setoption name MultiPV value "):
            self.multipv = int(line.rsplit(" ", 1)[1])
        elif line.startswith("position fen "):
            self.fen = line.removeprefix("position fen ")
        elif line.startswith("go "):
            self.searches += 1
            if self.silent:
                return []
            lines = self.search(self.fen)
            if self.drop_bestmoves > 0:
                self.drop_bestmoves -= 1
                return lines[:-1]
            return lines
        return []

    def search(self, fen: str) -> list[str]:
        board = chess.Board(fen)
        moves = sorted(board.legal_moves, key=lambda m: m.uci())
        if not moves:
            return ["info depth 0 score mate 0", "bestmove (none)"]
        preferred = [m for m in moves if m.uci() in self.prefer]
        preferred.sort(key=lambda m: self.prefer.index(m.uci()))
        ordered = preferred + [m for m in moves if m not in preferred]

        score = self.scores.get(fen, self.default_score)
        lines = [
            f"info depth 10 multipv {rank} score cp {score - 10 * (rank - 1)} "
            f"nodes 1000 pv {move.uci()}"
            for rank, move in enumerate(ordered[: self.multipv], 1)
        ]
        lines.append(f"bestmove {ordered[0].uci()}")
        return lines


@pytest.fixture(scope="session")
def qapp() -> Iterator[object]:
    """Provide a singleton QCoreApplication for event-loop tests."""
    from PyQt6.QtCore import QCoreApplication

    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


@pytest.fixture(autouse=True)
def _reset_language() -> Iterator[None]:
    """Reset shared i18n state between tests."""
    from chesscoach.i18n import set_language

    set_language("English")
    yield
    set_language("English")


@pytest.fixture
def wait_until(qapp: object) -> Callable[..., bool]:
    """Spin the event loop until a predicate holds or the timeout elapses."""
    del qapp
    from PyQt6.QtTest import QTest

    def wait(predicate: Callable[[], bool], timeout_ms: int = 2000) -> bool:
        remaining = timeout_ms
        while not predicate() and remaining > 0:
            QTest.qWait(10)
            remaining -= 10
        return predicate()

    return wait


@pytest.fixture
def engine() -> ScriptedEngine:
    return ScriptedEngine()


@pytest.fixture
def transport(engine: ScriptedEngine) -> FakeTransport:
    return FakeTransport(engine)


@pytest.fixture
def session(transport: FakeTransport) -> Iterator[EngineSession]:
    """A session over the scripted engine; not started."""
    session = EngineSession(transport_factory=lambda: transport)
    yield session
    session.shutdown()


@pytest.fixture
def ready_session(session: EngineSession) -> EngineSession:
    session.start()
    assert session.is_ready
    return session
