"""
PGN move text and clock comment parsing for Chess.com games.

Chess.com PGNs carry the remaining clock after every ply in a comment:

    1. e4 {[%clk 0:09:59.9]} 1... e5 {[%clk 0:09:58.2]} 2. Nf3 {[%clk 0:09:57]}

The regexes below are the grammar for that text. Keep them in step with what
Chess.com emits, since think times are derived directly from them.
"""
import re
from datetime import timedelta
from typing import Iterator, List, NamedTuple, Optional, Tuple

from .game_data import MoveTiming


HEADER_PATTERN = re.compile(r'\[.*?\]\s*\n')
PLY_PATTERN = re.compile(r'(\d+\.(?:\.\.)?\s*\S+(?:\s*\{[^}]*\})?)')
COMMENT_PATTERN = re.compile(r'\{([^}]*)\}')
CLOCK_PATTERN = re.compile(r'\[%clk\s+(\d+):(\d+):(\d+(?:\.\d+)?)\]')
MOVE_NUMBER_PREFIX = re.compile(r'^\d+\.\.?\.?\s*')


class PlyToken(NamedTuple):
    """One ply of move text, split from its trailing comment."""
    text: str  # "12. Nf3" or "12... Nc6"
    comment: Optional[str] = None

    @property
    def san(self) -> str:
        """The move without its move-number prefix."""
        return MOVE_NUMBER_PREFIX.sub('', self.text)


def strip_headers(pgn: str) -> str:
    """Remove the bracketed tag pair lines from a PGN."""
    return HEADER_PATTERN.sub('', pgn).strip()


def iter_ply_tokens(move_text: str) -> Iterator[PlyToken]:
    """
    Lazily split move text into plies.

    Args:
        move_text: PGN move text with headers already removed

    Yields:
        PlyToken per ply, in game order. Result markers ("1-0") are skipped.
    """
    for match in PLY_PATTERN.finditer(move_text):
        raw = match.group(1)
        comment = COMMENT_PATTERN.search(raw)
        if comment is None:
            yield PlyToken(raw)
        else:
            # Only the first comment belongs to the token
            text = COMMENT_PATTERN.sub('', raw, count=1).strip()
            yield PlyToken(text, comment.group(1))


def parse_clock_comment(comment: str) -> Optional[str]:
    """
    Read a [%clk H:MM:SS.f] annotation.

    Returns:
        Clock as "H:M:S" with integer parts, fractions truncated
        ("[%clk 0:05:12.9]" -> "0:5:12"), or None if there is no clock.
    """
    match = CLOCK_PATTERN.search(comment)
    if not match:
        return None
    hours, minutes, seconds = match.groups()
    return f"{int(hours)}:{int(minutes)}:{int(float(seconds))}"


def clock_to_seconds(clock: str) -> int:
    """Total seconds on a "H:M:S" or "M:S" clock label."""
    total = 0
    for part in clock.split(':'):
        total = total * 60 + int(part)
    return total


def calculate_time_spent(current_clock: str, previous_clock: str, increment: int = 0) -> Optional[int]:
    """
    Seconds used between two readings of the same player's clock.

    Non-positive values come from lag compensation or clock quirks rather
    than thinking, so they are reported as None.
    """
    time_spent = clock_to_seconds(previous_clock) - clock_to_seconds(current_clock) + increment
    if time_spent <= 0:
        return None
    return time_spent


def format_pgn(pgn: str) -> Tuple[str, List[MoveTiming]]:
    """
    Extract per-ply clocks and think times from a Chess.com PGN.

    Args:
        pgn: Full PGN including headers

    Returns:
        Tuple of (move text with clock comments removed, MoveTiming list).
        Plies without a clock stay in the text but get no MoveTiming.
    """
    formatted_moves = []
    timings = []

    move_number = 1
    is_white = True
    previous_clock = {True: None, False: None}

    for token in iter_ply_tokens(strip_headers(pgn)):
        formatted_moves.append(token.text)
        clock = parse_clock_comment(token.comment) if token.comment is not None else None

        if clock is not None:
            time_spent = None
            if previous_clock[is_white] is not None:
                time_spent = calculate_time_spent(clock, previous_clock[is_white])

            timings.append(MoveTiming(
                move_text=token.san,
                move_number=move_number,
                is_white=is_white,
                clock_remaining=timedelta(seconds=clock_to_seconds(clock)),
                clock=clock,
                time_spent=time_spent,
            ))
            previous_clock[is_white] = clock

        if not is_white:
            move_number += 1
        is_white = not is_white

    return ' '.join(formatted_moves), timings
