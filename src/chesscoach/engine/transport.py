"""Line-oriented pipes to an external engine process."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from typing import Protocol

from PyQt6.QtCore import QObject, QProcess

_LOGGER = logging.getLogger(__name__)

LineCallback = Callable[[str], None]
FailureCallback = Callable[[str], None]


class LineTransport(Protocol):
    """Minimal duplex text channel used by :class:`EngineSession`."""

    def open(self, on_line: LineCallback, on_failure: FailureCallback) -> bool: ...

    def send(self, line: str) -> None: ...

    def close(self) -> None: ...


class ProcessTransport(QObject):
    """Runs a UCI engine executable under :class:`QProcess`.

    Output is delivered line by line on the Qt event loop; nothing here
    blocks waiting for the process.
    """

    _KILL_TIMEOUT_MS = 1000

    def __init__(
        self,
        program: str,
        args: list[str] | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._program = program
        self._args = list(args or [])
        self._process: QProcess | None = None
        self._buffer = b""
        self._on_line: LineCallback | None = None
        self._on_failure: FailureCallback | None = None

    @property
    def program(self) -> str:
        return self._program

    def open(self, on_line: LineCallback, on_failure: FailureCallback) -> bool:
        if self._process is not None:
            return True
        self._on_line = on_line
        self._on_failure = on_failure

        process = QProcess(self)
        process.setProcessChannelMode(QProcess.ProcessChannelMode.SeparateChannels)
        process.readyReadStandardOutput.connect(self._on_ready_read)
        process.errorOccurred.connect(self._on_error)
        process.finished.connect(self._on_finished)
        self._process = process
        self._buffer = b""
        process.start(self._program, self._args)
        return True

    def send(self, line: str) -> None:
        process = self._process
        if process is None or process.state() == QProcess.ProcessState.NotRunning:
            return
        process.write((line + "\n").encode())

    def close(self) -> None:
        process = self._process
        if process is None:
            return
        self._process = None
        self._on_line = None
        self._on_failure = None
        if process.state() != QProcess.ProcessState.NotRunning:
            process.closeWriteChannel()
            if not process.waitForFinished(self._KILL_TIMEOUT_MS):
                process.kill()
                process.waitForFinished(self._KILL_TIMEOUT_MS)
        process.deleteLater()

    def _on_ready_read(self) -> None:
        process = self._process
        if process is None:
            return
        self._buffer += bytes(process.readAllStandardOutput())
        *lines, self._buffer = self._buffer.split(b"\n")
        for raw in lines:
            # The callback may close the transport mid-batch.
            if self._on_line is None:
                return
            self._on_line(raw.decode(errors="replace").rstrip("\r"))

    def _on_error(self, error: QProcess.ProcessError) -> None:
        _LOGGER.warning("Engine process %s error: %s", self._program, error.name)
        if error in (
            QProcess.ProcessError.FailedToStart,
            QProcess.ProcessError.Crashed,
        ):
            self._report_failure(f"{self._program}: {error.name}")

    def _on_finished(self, exit_code: int, _status: QProcess.ExitStatus) -> None:
        _LOGGER.info("Engine process %s exited with code %d", self._program, exit_code)
        self._report_failure(f"{self._program} exited with code {exit_code}")

    def _report_failure(self, message: str) -> None:
        callback = self._on_failure
        # Report once; close() or a previous failure clears the callback.
        self._on_failure = None
        self._on_line = None
        if callback is not None:
            callback(message)


def process_transport_factory(
    program: str,
    args: list[str] | None = None,
) -> Callable[[], ProcessTransport | None]:
    """Build a factory that returns ``None`` when *program* is not installed."""

    def factory() -> ProcessTransport | None:
        resolved = shutil.which(program)
        if resolved is None:
            _LOGGER.warning("Engine executable not found: %s", program)
            return None
        return ProcessTransport(resolved, args)

    return factory
