"""
Building the "longest thinks" table from normalized games.

Each row is one of the queried player's own moves whose think time reached
a minimum, with enough context to link back to the position.
"""
from dataclasses import dataclass
from typing import Iterable, List

from .game_data import NormalizedGame

SORT_BY_TIME = "time"
SORT_BY_DATE = "date"

DEFAULT_MIN_TIME = 20


@dataclass(frozen=True)
class Highlight:
    """A long think by the queried player."""
    move: str
    time_spent: int
    move_number: int
    is_white: bool
    link_ply: int
    date: str
    players: str
    time_control: str
    game_id: str


def link_ply(move_number: int, is_white: bool) -> int:
    """1-based ply index of a full move and colour, as deep links expect."""
    return move_number * 2 - 1 if is_white else move_number * 2


def format_time_spent(seconds: int) -> str:
    """
    Render a think time.

    Examples:
        45 -> "45s", 75 -> "1:15", 3725 -> "1:02:05"
    """
    if seconds < 60:
        return f"{seconds}s"

    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_move_notation(move_number: int, move: str, is_white: bool) -> str:
    """Move label like "12.Nf3" for white or "12...Nc6" for black."""
    return f"{move_number}.{move}" if is_white else f"{move_number}...{move}"


def build_highlights(
    games: Iterable[NormalizedGame],
    username: str,
    min_time: int = DEFAULT_MIN_TIME,
    sort_by: str = SORT_BY_TIME,
) -> List[Highlight]:
    """
    Collect the user's moves that took at least min_time seconds.

    Args:
        games: Games fetched for the user
        username: Player whose moves to keep
        min_time: Minimum think time in seconds
        sort_by: "time" (longest first) or "date" (newest first)

    Raises:
        ValueError: for an unknown sort_by
    """
    if sort_by not in (SORT_BY_TIME, SORT_BY_DATE):
        raise ValueError(f"Unknown sort order: {sort_by!r}")

    rows = []
    for game in games:
        user_is_white = game.is_white_player(username)
        for timing in game.move_timings:
            if timing.is_white != user_is_white:
                continue
            if timing.time_spent is None or timing.time_spent < min_time:
                continue
            rows.append(Highlight(
                move=timing.move_text,
                time_spent=timing.time_spent,
                move_number=timing.move_number,
                is_white=user_is_white,
                link_ply=link_ply(timing.move_number, user_is_white),
                date=game.date,
                players=f"{game.white_player} vs {game.black_player}",
                time_control=game.time_control,
                game_id=game.id,
            ))

    if sort_by == SORT_BY_TIME:
        rows.sort(key=lambda row: row.time_spent, reverse=True)
    else:
        rows.sort(key=lambda row: row.date, reverse=True)
    return rows
