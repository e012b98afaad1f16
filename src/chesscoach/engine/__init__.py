"""UCI engine access: protocol parsing, session lifecycle and analysis channel."""

from chesscoach.engine.channel import AnalysisChannel, PendingAnalysis
from chesscoach.engine.search import (
    DEFAULT_ELO,
    DEFAULT_MULTIPV,
    ELO_PRESETS,
    MATE_SCORE_CP,
    AnalysisRequest,
    AnalysisResult,
    EngineOptions,
    PrincipalVariation,
    SearchLimits,
)
from chesscoach.engine.session import EngineSession, SessionState
from chesscoach.engine.transport import (
    LineTransport,
    ProcessTransport,
    process_transport_factory,
)

__all__ = [
    "DEFAULT_ELO",
    "DEFAULT_MULTIPV",
    "ELO_PRESETS",
    "MATE_SCORE_CP",
    "AnalysisChannel",
    "AnalysisRequest",
    "AnalysisResult",
    "EngineOptions",
    "EngineSession",
    "LineTransport",
    "PendingAnalysis",
    "PrincipalVariation",
    "ProcessTransport",
    "SearchLimits",
    "SessionState",
    "process_transport_factory",
]
