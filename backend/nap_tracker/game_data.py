"""
Data models for normalized chess games.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional

import chess


STANDARD_START_FEN = chess.STARTING_FEN

WIN = "win"
LOSS = "loss"
DRAW = "draw"


class GameType(str, Enum):
    """Speed classes a query can be restricted to."""
    ALL = "all"
    BLITZ = "blitz"
    RAPID = "rapid"
    CLASSICAL = "classical"


@dataclass(frozen=True)
class MoveTiming:
    """Clock reading and think time for a single ply."""
    move_text: str  # SAN, without move number or clock comment
    move_number: int  # 1-based full-move index
    is_white: bool
    clock_remaining: timedelta  # Clock right after the move was made
    clock: str  # Clock as the source renders it ("0:5:12" or "5:12")
    time_spent: Optional[int] = None  # Seconds, only when > 0


@dataclass(frozen=True)
class NormalizedGame:
    """A finished game in the shape shared by every game source."""
    id: str  # Chess.com game URL or Lichess game id
    date: str  # ISO-8601 completion time
    white_player: str
    black_player: str
    result: str  # "win", "loss" or "draw" for the queried user
    rating: Optional[int]
    game_type: str  # e.g. "blitz rated"
    time_control: str
    move_timings: List[MoveTiming] = field(default_factory=list)
    move_text: Optional[str] = None  # Flattened moves with clock comments removed

    def is_white_player(self, username: str) -> bool:
        """Whether the given user had the white pieces."""
        return self.white_player.lower() == username.lower()


def classify_result(user_is_white: bool, white_won: bool, black_won: bool) -> str:
    """Convert an absolute outcome to win/loss/draw from the user's side."""
    if white_won:
        return WIN if user_is_white else LOSS
    if black_won:
        return LOSS if user_is_white else WIN
    return DRAW


def format_timestamp(epoch_seconds: float) -> str:
    """Render epoch seconds the way the browser's toISOString does."""
    moment = datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def date_to_timestamp(date_str: str) -> float:
    """
    Convert a "YYYY-MM-DD" query date to epoch seconds at UTC midnight.

    Raises:
        ValueError: if the string is not a calendar date
    """
    parsed = datetime.strptime(date_str.strip(), "%Y-%m-%d")
    return parsed.replace(tzinfo=timezone.utc).timestamp()
