"""Application entry point."""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence

from chesscoach.config import CoachSettings, load_settings

_LOGGER = logging.getLogger(__name__)


def run_application(settings: CoachSettings) -> int:
    """Start the engine, wire the console coach and run the Qt event loop."""
    from PyQt6.QtCore import QCoreApplication

    from chesscoach.coaching.pipeline import CoachingPipeline, CoachPhase
    from chesscoach.engine.channel import AnalysisChannel
    from chesscoach.engine.session import EngineSession
    from chesscoach.engine.transport import process_transport_factory
    from chesscoach.i18n import set_language
    from chesscoach.ui.console import ConsoleCoach

    app = QCoreApplication(sys.argv[:1])
    app.setApplicationName("Chess Coach")
    set_language(settings.language)

    # Both callbacks fire from session.start() onwards, once everything exists.
    def on_ready() -> None:
        console.show_engine_ready()
        pipeline.new_game(settings.user_color)

    def on_unavailable(message: str) -> None:
        console.show_engine_unavailable(message)
        if pipeline.phase == CoachPhase.NOT_STARTED:
            pipeline.new_game(settings.user_color)

    session = EngineSession(
        transport_factory=process_transport_factory(settings.engine_path),
        options=settings.engine_options(),
        on_ready=on_ready,
        on_unavailable=on_unavailable,
    )
    channel = AnalysisChannel(session, grace_ms=settings.grace_ms, parent=app)
    pipeline = CoachingPipeline(channel, depth=settings.depth)
    console = ConsoleCoach(pipeline, on_quit=app.quit)

    console.show_engine_starting(settings.engine_path)
    console.attach_stdin(app)
    session.start()

    try:
        return app.exec()
    finally:
        channel.close()
        session.shutdown()
        _LOGGER.info("Chess Coach stopped")


def main(argv: Sequence[str] | None = None) -> None:
    """Launch the Chess Coach console application."""
    settings = load_settings(argv)
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    sys.exit(run_application(settings))


if __name__ == "__main__":
    main()
