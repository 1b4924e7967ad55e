"""
Tests for the longest-think table and platform selection.
"""
from datetime import timedelta

import pytest

from nap_tracker.chess_com_client import ChessComClient
from nap_tracker.game_data import MoveTiming, NormalizedGame
from nap_tracker.game_source import get_game_source, position_url
from nap_tracker.highlights import (
    build_highlights,
    format_move_notation,
    format_time_spent,
    link_ply,
)
from nap_tracker.lichess_client import LichessClient


def timing(move, number, is_white, spent=None) -> MoveTiming:
    return MoveTiming(
        move_text=move,
        move_number=number,
        is_white=is_white,
        clock_remaining=timedelta(seconds=100),
        clock="1:40",
        time_spent=spent,
    )


def make_game(game_id, date, white="alice", black="bob", timings=()) -> NormalizedGame:
    return NormalizedGame(
        id=game_id,
        date=date,
        white_player=white,
        black_player=black,
        result="win",
        rating=1500,
        game_type="blitz rated",
        time_control="3+2",
        move_timings=list(timings),
    )


@pytest.fixture
def games():
    return [
        make_game("g1", "2024-05-10T12:00:00.000Z", timings=[
            timing("e4", 1, True),
            timing("e5", 1, False),
            timing("Nf3", 2, True, spent=25),
            timing("Nc6", 2, False, spent=90),
            timing("Bb5", 3, True, spent=5),
        ]),
        make_game("g2", "2024-05-12T12:00:00.000Z", white="bob", black="Alice", timings=[
            timing("d4", 1, True, spent=120),
            timing("d5", 1, False, spent=40),
        ]),
    ]


class TestBuildHighlights:

    def test_only_the_users_long_moves(self, games):
        rows = build_highlights(games, "alice", min_time=20)
        assert [(row.game_id, row.move) for row in rows] == [("g2", "d5"), ("g1", "Nf3")]

    def test_rows_carry_context(self, games):
        row = build_highlights(games, "alice", min_time=20)[0]
        assert row.is_white is False
        assert row.move_number == 1
        assert row.link_ply == 2
        assert row.players == "bob vs Alice"
        assert row.time_control == "3+2"

    def test_sort_by_date(self, games):
        rows = build_highlights(games, "alice", min_time=0, sort_by="date")
        assert [row.game_id for row in rows] == ["g2", "g1", "g1"]

    def test_min_time_is_inclusive(self, games):
        rows = build_highlights(games, "alice", min_time=25)
        assert [row.move for row in rows] == ["d5", "Nf3"]

    def test_unknown_sort(self, games):
        with pytest.raises(ValueError):
            build_highlights(games, "alice", sort_by="rating")


class TestFormatting:

    @pytest.mark.parametrize("seconds, label", [
        (45, "45s"),
        (60, "1:00"),
        (75, "1:15"),
        (3725, "1:02:05"),
    ])
    def test_format_time_spent(self, seconds, label):
        assert format_time_spent(seconds) == label

    def test_move_notation(self):
        assert format_move_notation(12, "Nf3", True) == "12.Nf3"
        assert format_move_notation(12, "Nc6", False) == "12...Nc6"

    def test_link_ply(self):
        assert link_ply(1, True) == 1
        assert link_ply(1, False) == 2
        assert link_ply(10, True) == 19


class TestGameSource:

    def test_selects_client_by_platform(self):
        assert isinstance(get_game_source("chess.com"), ChessComClient)
        assert isinstance(get_game_source("lichess.org"), LichessClient)

    def test_unknown_platform(self):
        with pytest.raises(ValueError):
            get_game_source("chess24")

    def test_position_url(self):
        assert position_url("lichess.org", "abcd1234", 3) == "https://lichess.org/abcd1234#3"
        assert position_url("chess.com", "https://www.chess.com/game/live/9", 3) == (
            "https://www.chess.com/analysis/game/live/9?tab=review&move=3"
        )
