"""Shared engine search models."""

from __future__ import annotations

from dataclasses import dataclass

ELO_PRESETS: tuple[int, ...] = (800, 1000, 1200, 1400, 1600, 1800, 2000, 2200)
DEFAULT_ELO = 1200
DEFAULT_MULTIPV = 3

# Mate scores saturate to this value, signed by the mating side.
MATE_SCORE_CP = 100_000

# Depth-limited searches have no wall-clock bound of their own.
_DEPTH_BUDGET_MS_PER_PLY = 250


@dataclass(slots=True, frozen=True)
class EngineOptions:
    """Strength and reporting options applied to the engine."""

    elo: int = DEFAULT_ELO
    multipv: int = DEFAULT_MULTIPV

    def __post_init__(self) -> None:
        if self.elo not in ELO_PRESETS:
            raise ValueError(f"Unsupported Elo {self.elo}; expected one of {ELO_PRESETS}")
        if self.multipv < 1:
            raise ValueError("MultiPV must be >= 1")


@dataclass(slots=True, frozen=True)
class SearchLimits:
    """Search constraint for a single analysis: a depth or a move time."""

    depth: int | None = None
    time_ms: int | None = None

    def __post_init__(self) -> None:
        if (self.depth is None) == (self.time_ms is None):
            raise ValueError("Exactly one of depth or time_ms must be set")
        if self.depth is not None and self.depth < 1:
            raise ValueError("Search depth must be >= 1")
        if self.time_ms is not None and self.time_ms < 1:
            raise ValueError("Search time must be >= 1 ms")

    @classmethod
    def at_depth(cls, depth: int) -> SearchLimits:
        return cls(depth=depth)

    @classmethod
    def for_time(cls, time_ms: int) -> SearchLimits:
        return cls(time_ms=time_ms)

    @property
    def budget_ms(self) -> int:
        """Expected wall-clock length of the search, before any grace period."""
        if self.time_ms is not None:
            return self.time_ms
        assert self.depth is not None
        return self.depth * _DEPTH_BUDGET_MS_PER_PLY


@dataclass(slots=True, frozen=True)
class AnalysisRequest:
    """A position to analyse and the limit to analyse it with."""

    fen: str
    limits: SearchLimits


@dataclass(slots=True, frozen=True)
class PrincipalVariation:
    """One ranked candidate line, identified by its first move."""

    rank: int
    uci: str
    san: str
    score_cp: int


@dataclass(slots=True, frozen=True)
class AnalysisResult:
    """Settled outcome of one analysis request.

    ``score_cp`` is from the point of view of the side to move in the
    analysed position.
    """

    best_move: str | None
    score_cp: int
    variations: tuple[PrincipalVariation, ...] = ()
    timed_out: bool = False

    @classmethod
    def neutral(cls) -> AnalysisResult:
        """The zero result used whenever the engine cannot be consulted."""
        return cls(best_move=None, score_cp=0, variations=())
