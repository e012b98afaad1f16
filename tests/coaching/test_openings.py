"""Tests for opening-prefix matching against the static book."""

from __future__ import annotations

from chesscoach.coaching.models import OpeningEntry, OpeningMatch
from chesscoach.coaching.openings import (
    OPENING_BOOK,
    detect_opening,
    match_entry,
    replay_entry,
)


def test_kings_knight_opening() -> None:
    match = detect_opening(["e4", "e5", "Nf3"])
    assert match == OpeningMatch(eco="C40", name="King's Knight Opening", matched_length=3)


def test_equal_length_keeps_first_candidate() -> None:
    # Ruy Lopez and Italian Game also match three moves here.
    ruy = next(entry for entry in OPENING_BOOK if entry.eco == "C60")
    assert match_entry(ruy, ["e4", "e5", "Nf3"]) is not None
    assert detect_opening(["e4", "e5", "Nf3"]).eco == "C40"  # type: ignore[union-attr]


def test_longer_match_wins_once_lines_diverge() -> None:
    ruy = detect_opening(["e4", "e5", "Nf3", "Nc6", "Bb5"])
    italian = detect_opening(["e4", "e5", "Nf3", "Nc6", "Bc4", "Bc5"])
    assert ruy is not None and ruy.name == "Ruy Lopez"
    assert ruy.matched_length == 5
    assert italian is not None and italian.name == "Italian Game"
    assert italian.matched_length == 5


def test_matched_length_bounded_by_history_and_entry() -> None:
    match = detect_opening(["e4", "c5", "Nf3", "d6", "d4"])
    assert match is not None
    assert match.eco == "B30"
    assert match.matched_length == 2


def test_kings_indian_with_extra_moves() -> None:
    match = detect_opening(["d4", "Nf6", "c4", "g6", "Nc3"])
    assert match is not None and match.eco == "E60"


def test_no_match() -> None:
    assert detect_opening(["a3"]) is None
    assert detect_opening([]) is None


def test_check_decorations_are_ignored() -> None:
    book = (OpeningEntry("X01", "Early Queen", ("e4", "f6", "Qh5+")),)
    match = detect_opening(["e4", "f6", "Qh5"], book)
    assert match is not None and match.matched_length == 3


def test_coordinate_tokens_resolve() -> None:
    entry = OpeningEntry("C40", "Coordinates", ("e2e4", "e7e5", "g1f3"))
    assert replay_entry(entry) == ("e4", "e5", "Nf3")
    assert match_entry(entry, ["e4", "e5", "Nf3"]) == OpeningMatch(
        eco="C40", name="Coordinates", matched_length=3
    )


def test_unplayable_entry_is_rejected_entirely() -> None:
    broken = OpeningEntry("Z99", "Broken", ("e4", "e4"))
    book = (broken, OpeningEntry("C20", "King's Pawn Game", ("e4",)))
    assert replay_entry(broken) is None
    match = detect_opening(["e4"], book)
    assert match is not None and match.eco == "C20"


def test_every_book_entry_replays() -> None:
    for entry in OPENING_BOOK:
        assert replay_entry(entry) is not None, entry.name
