"""User-configurable settings: defaults, environment, then command line."""

from __future__ import annotations

import argparse
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

import chess

from chesscoach.coaching.pipeline import DEFAULT_DEPTH, clamp_depth
from chesscoach.engine.channel import AnalysisChannel
from chesscoach.engine.search import (
    DEFAULT_ELO,
    DEFAULT_MULTIPV,
    ELO_PRESETS,
    EngineOptions,
)
from chesscoach.i18n import LANGUAGES

ENV_ENGINE = "CHESSCOACH_ENGINE"
ENV_ELO = "CHESSCOACH_ELO"
ENV_LANGUAGE = "CHESSCOACH_LANGUAGE"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class CoachSettings:
    """All user-configurable settings."""

    # Engine
    engine_path: str = "stockfish"
    elo: int = DEFAULT_ELO
    multipv: int = DEFAULT_MULTIPV
    depth: int = DEFAULT_DEPTH
    grace_ms: int = AnalysisChannel.DEFAULT_GRACE_MS

    # Game
    play_black: bool = False

    # General
    language: str = "English"
    log_level: str = "WARNING"

    @property
    def user_color(self) -> chess.Color:
        return chess.BLACK if self.play_black else chess.WHITE

    def engine_options(self) -> EngineOptions:
        return EngineOptions(elo=self.elo, multipv=self.multipv)


def _elo_arg(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {text!r}") from None
    if value not in ELO_PRESETS:
        choices = ", ".join(map(str, ELO_PRESETS))
        raise argparse.ArgumentTypeError(f"{value} is not one of {choices}")
    return value


def _positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {text!r}") from None
    if value < 1:
        raise argparse.ArgumentTypeError("must be >= 1")
    return value


def build_parser(defaults: CoachSettings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chesscoach",
        description="Play against a UCI engine and get every move graded.",
    )
    parser.add_argument(
        "--engine",
        dest="engine_path",
        default=defaults.engine_path,
        help="UCI engine executable (default: %(default)s)",
    )
    parser.add_argument(
        "--elo",
        type=_elo_arg,
        default=defaults.elo,
        help="engine strength preset (default: %(default)s)",
    )
    parser.add_argument(
        "--multipv",
        type=_positive_int,
        default=defaults.multipv,
        help="number of ranked lines to report (default: %(default)s)",
    )
    parser.add_argument(
        "--depth",
        type=_positive_int,
        default=defaults.depth,
        help="search depth, clamped to 8..22 (default: %(default)s)",
    )
    parser.add_argument(
        "--grace-ms",
        dest="grace_ms",
        type=_positive_int,
        default=defaults.grace_ms,
        help="extra wait before an analysis times out (default: %(default)s)",
    )
    parser.add_argument(
        "--black",
        dest="play_black",
        action="store_true",
        default=defaults.play_black,
        help="play the black pieces",
    )
    parser.add_argument("--language", choices=LANGUAGES, default=defaults.language)
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=_LOG_LEVELS,
        default=defaults.log_level,
    )
    return parser


def settings_from_env(environ: Mapping[str, str] | None = None) -> CoachSettings:
    """Defaults overridden by ``CHESSCOACH_*`` environment variables.

    Unparseable values are ignored.
    """
    env = os.environ if environ is None else environ
    settings = CoachSettings()
    if env.get(ENV_ENGINE):
        settings.engine_path = env[ENV_ENGINE]
    elo_text = env.get(ENV_ELO, "")
    if elo_text.isdigit() and int(elo_text) in ELO_PRESETS:
        settings.elo = int(elo_text)
    if env.get(ENV_LANGUAGE) in LANGUAGES:
        settings.language = env[ENV_LANGUAGE]
    return settings


def load_settings(
    argv: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> CoachSettings:
    """Resolve settings from defaults, the environment and *argv*."""
    defaults = settings_from_env(environ)
    args = build_parser(defaults).parse_args(argv)
    return CoachSettings(
        engine_path=args.engine_path,
        elo=args.elo,
        multipv=args.multipv,
        depth=clamp_depth(args.depth),
        grace_ms=args.grace_ms,
        play_black=args.play_black,
        language=args.language,
        log_level=args.log_level,
    )
