"""Lifecycle and configuration of one UCI engine instance."""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import IntEnum, auto

from chesscoach.engine import protocol
from chesscoach.engine.protocol import HandshakeAck, ReadyAck
from chesscoach.engine.search import EngineOptions
from chesscoach.engine.transport import LineTransport

_LOGGER = logging.getLogger(__name__)

TransportFactory = Callable[[], LineTransport | None]
LineListener = Callable[[str], None]


class SessionState(IntEnum):
    """Handshake progress of an :class:`EngineSession`."""

    UNINITIALIZED = auto()
    HANDSHAKE_SENT = auto()
    READY = auto()


class EngineSession:
    """Owns an engine transport, performs the UCI handshake, keeps options current.

    The session is constructed and torn down by its caller; there is no
    module-level engine handle.  All methods are meant to be called from the
    thread running the Qt event loop.
    """

    __slots__ = (
        "__weakref__",
        "_transport_factory",
        "_options",
        "_on_ready",
        "_on_unavailable",
        "_transport",
        "_state",
        "_handshake_acked",
        "_listeners",
        "_next_token",
        "_unavailable_reported",
    )

    def __init__(
        self,
        *,
        transport_factory: TransportFactory,
        options: EngineOptions | None = None,
        on_ready: Callable[[], None] | None = None,
        on_unavailable: Callable[[str], None] | None = None,
    ) -> None:
        self._transport_factory = transport_factory
        self._options = options or EngineOptions()
        self._on_ready = on_ready
        self._on_unavailable = on_unavailable

        self._transport: LineTransport | None = None
        self._state = SessionState.UNINITIALIZED
        self._handshake_acked = False
        self._listeners: dict[int, LineListener] = {}
        self._next_token = 0
        self._unavailable_reported = False

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state == SessionState.READY

    @property
    def options(self) -> EngineOptions:
        return self._options

    # ── Lifecycle ────────────────────────────────────────────────────────

    def start(self) -> None:
        """Launch the engine and send the handshake. No-op once started."""
        if self._transport is not None or self._unavailable_reported:
            return

        transport = self._transport_factory()
        if transport is None:
            self._report_unavailable("Engine capability is not available")
            return
        if not transport.open(self._on_line, self._on_transport_failure):
            self._report_unavailable("Engine transport could not be opened")
            return

        self._transport = transport
        self._handshake_acked = False
        self._state = SessionState.HANDSHAKE_SENT
        transport.send(protocol.CMD_UCI)

    def shutdown(self) -> None:
        """Quit the engine and release the transport."""
        transport = self._transport
        if transport is None:
            return
        transport.send(protocol.CMD_QUIT)
        self._transport = None
        self._listeners.clear()
        self._state = SessionState.UNINITIALIZED
        self._handshake_acked = False
        transport.close()

    def configure(self, options: EngineOptions) -> None:
        """Apply new strength options; sent live once the engine is ready."""
        self._options = options
        if self._state != SessionState.READY:
            return
        self.send(protocol.setoption("UCI_Elo", options.elo))
        self.send(protocol.setoption("MultiPV", options.multipv))

    # ── Messaging ────────────────────────────────────────────────────────

    def send(self, line: str) -> None:
        if self._transport is None:
            return
        _LOGGER.debug(">> %s", line)
        self._transport.send(line)

    def subscribe(self, listener: LineListener) -> int:
        """Register a raw-line listener; returns a token for :meth:`unsubscribe`."""
        self._next_token += 1
        self._listeners[self._next_token] = listener
        return self._next_token

    def unsubscribe(self, token: int) -> None:
        self._listeners.pop(token, None)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _on_line(self, line: str) -> None:
        _LOGGER.debug("<< %s", line)
        parsed = protocol.parse_line(line)
        if isinstance(parsed, HandshakeAck):
            self._on_handshake_ack()
        elif isinstance(parsed, ReadyAck):
            self._on_ready_ack()

        # Listeners may (un)subscribe while being notified.
        for token, listener in tuple(self._listeners.items()):
            if token in self._listeners:
                listener(line)

    def _on_handshake_ack(self) -> None:
        if self._state != SessionState.HANDSHAKE_SENT or self._handshake_acked:
            return
        self._handshake_acked = True
        options = self._options
        self.send(protocol.setoption("UCI_LimitStrength", True))
        self.send(protocol.setoption("UCI_Elo", options.elo))
        self.send(protocol.setoption("MultiPV", options.multipv))
        self.send(protocol.CMD_ISREADY)

    def _on_ready_ack(self) -> None:
        if self._state != SessionState.HANDSHAKE_SENT or not self._handshake_acked:
            return
        self._state = SessionState.READY
        _LOGGER.info(
            "Engine ready (Elo %d, MultiPV %d)",
            self._options.elo,
            self._options.multipv,
        )
        if self._on_ready is not None:
            self._on_ready()

    def _on_transport_failure(self, message: str) -> None:
        self._transport = None
        self._listeners.clear()
        self._state = SessionState.UNINITIALIZED
        self._handshake_acked = False
        self._report_unavailable(message)

    def _report_unavailable(self, message: str) -> None:
        if self._unavailable_reported:
            return
        self._unavailable_reported = True
        _LOGGER.warning("Engine unavailable: %s", message)
        if self._on_unavailable is not None:
            self._on_unavailable(message)
