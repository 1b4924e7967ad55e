"""
Lichess API client for fetching a player's games with move clocks.
"""
import json
import logging
import time
from datetime import timedelta
from typing import List, Optional

import requests

from . import config
from .errors import NapTrackerError, NotFoundError
from .game_data import (
    STANDARD_START_FEN,
    GameType,
    MoveTiming,
    NormalizedGame,
    classify_result,
    date_to_timestamp,
    format_timestamp,
)
from .time_control import format_lichess_time_control

logger = logging.getLogger(__name__)

# perfType query values per game type; other types send no speed filter
PERF_TYPES = {
    GameType.ALL.value: "blitz,rapid,classical",
    GameType.BLITZ.value: "blitz",
    GameType.RAPID.value: "rapid",
    GameType.CLASSICAL.value: "classical",
}

ENGINE_NAME_MARKERS = ("bot", "stockfish", "engine")


def format_clock_time(centiseconds: int) -> str:
    """Centiseconds to a "M:SS" label, dropping the fraction."""
    minutes, seconds = divmod(int(centiseconds // 100), 60)
    return f"{minutes}:{seconds:02d}"


def _clock_seconds(clock: str) -> int:
    minutes, seconds = clock.split(':')
    return int(minutes) * 60 + int(seconds)


def parse_moves(moves: str, clocks: Optional[List[int]], increment: int = 0) -> List[MoveTiming]:
    """
    Pair a Lichess move list with its clock array.

    Args:
        moves: Space separated SAN moves
        clocks: Remaining clock per ply in centiseconds (may be shorter than moves)
        increment: Seconds added after each move

    Returns:
        MoveTiming per ply that has a clock reading. time_spent is the
        previous reading of the same colour minus this one plus the
        increment, kept only when positive.
    """
    clocks = clocks or []
    timings = []
    previous_seconds = {True: None, False: None}

    for i, move in enumerate(moves.split(' ')):
        if not move.strip():
            continue

        is_white = i % 2 == 0
        clock = format_clock_time(clocks[i]) if i < len(clocks) else None
        seconds = _clock_seconds(clock) if clock is not None else None

        time_spent = None
        if seconds is not None and previous_seconds[is_white] is not None:
            time_spent = previous_seconds[is_white] - seconds + increment
            if time_spent <= 0:
                time_spent = None

        # A ply without a clock breaks the chain for that colour
        previous_seconds[is_white] = seconds

        if clock is None:
            continue

        timings.append(MoveTiming(
            move_text=move,
            move_number=i // 2 + 1,
            is_white=is_white,
            clock_remaining=timedelta(seconds=seconds),
            clock=clock,
            time_spent=time_spent,
        ))

    return timings


def _player_name(player: dict) -> str:
    return (player.get('user') or {}).get('name', '')


def filter_games(games: List[dict], username: str) -> List[dict]:
    """Keep standard-position games between humans."""
    skipped_setup = 0
    skipped_engine = 0
    kept = []

    for game in games:
        initial_fen = game.get('initialFen')
        if initial_fen and initial_fen != STANDARD_START_FEN:
            skipped_setup += 1
            continue

        players = game.get('players') or {}
        white = players.get('white') or {}
        black = players.get('black') or {}

        # Games against the Lichess AI carry an aiLevel
        if 'aiLevel' in white or 'aiLevel' in black:
            skipped_engine += 1
            continue

        white_name = _player_name(white)
        opponent = _player_name(black) if white_name.lower() == username.lower() else white_name
        if any(marker in opponent.lower() for marker in ENGINE_NAME_MARKERS):
            skipped_engine += 1
            continue

        kept.append(game)

    if skipped_setup > 0:
        logger.info(f"Skipped {skipped_setup} non-standard start games for {username}")
    if skipped_engine > 0:
        logger.info(f"Skipped {skipped_engine} games against engines for {username}")

    return kept


def normalize_game(game: dict, username: str) -> NormalizedGame:
    """Convert a Lichess game export into a NormalizedGame for the given user."""
    players = game.get('players') or {}
    white = players.get('white') or {}
    black = players.get('black') or {}
    is_white = _player_name(white).lower() == username.lower()

    clock = game.get('clock')
    increment = (clock or {}).get('increment') or 0
    finished_at = game.get('lastMoveAt') or game['createdAt']
    winner = game.get('winner')

    return NormalizedGame(
        id=game['id'],
        date=format_timestamp(finished_at / 1000),
        white_player=_player_name(white),
        black_player=_player_name(black),
        result=classify_result(is_white, white_won=winner == 'white', black_won=winner == 'black'),
        rating=white.get('rating') if is_white else black.get('rating'),
        game_type=f"{game.get('speed', '')} {'rated' if game.get('rated') else 'casual'}",
        time_control=format_lichess_time_control(clock),
        move_timings=parse_moves(game.get('moves') or '', game.get('clocks'), increment),
        move_text=game.get('moves'),
    )


def lichess_position_url(game_id: str, ply: int) -> str:
    """Game page link opened at the given ply."""
    return f"https://lichess.org/{game_id}#{ply}"


class LichessClient:
    """Client for interacting with Lichess API."""

    BASE_URL = "https://lichess.org/api"

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        rate_limit_delay: Optional[float] = None,
        timeout: Optional[float] = None,
    ):
        self.session = session if session is not None else requests.Session()
        self.session.headers.update({
            'Accept': 'application/x-ndjson',
            'User-Agent': config.USER_AGENT
        })
        self.rate_limit_delay = (
            config.LICHESS_RATE_LIMIT_DELAY if rate_limit_delay is None else rate_limit_delay
        )
        self.timeout = config.LICHESS_TIMEOUT if timeout is None else timeout

    def _stream_games(self, url: str, params: dict) -> List[dict]:
        """
        Read an NDJSON game export, one game per line.

        A single malformed line fails the whole export.
        """
        time.sleep(self.rate_limit_delay)
        with self.session.get(url, params=params, timeout=self.timeout, stream=True) as response:
            try:
                response.raise_for_status()
            except requests.exceptions.HTTPError as e:
                logger.warning(f"HTTP error fetching {url}: {e}")
                raise NotFoundError() from e

            if response.encoding is None:
                response.encoding = 'utf-8'

            games = []
            for line in response.iter_lines(decode_unicode=True):
                if not line or not line.strip():
                    continue
                games.append(json.loads(line))
        return games

    def fetch_games(
        self,
        username: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        game_type: str = GameType.ALL,
    ) -> List[NormalizedGame]:
        """
        Fetch a user's games with per-move clocks, newest first.

        Args:
            username: Lichess username
            start_date: First day to include ("YYYY-MM-DD"), unbounded if None
            end_date: Upper bound ("YYYY-MM-DD"), now if None
            game_type: "all", "blitz", "rapid" or "classical"

        Raises:
            NotFoundError: if the export is empty, every game is filtered
                out or the request fails
        """
        try:
            return self._fetch_games(username, start_date, end_date, game_type)
        except NapTrackerError:
            raise
        except Exception as e:
            logger.error(f"Error fetching Lichess games for {username}: {e}")
            raise NotFoundError() from e

    def _fetch_games(
        self,
        username: str,
        start_date: Optional[str],
        end_date: Optional[str],
        game_type: str,
    ) -> List[NormalizedGame]:
        since = int(date_to_timestamp(start_date) * 1000) if start_date else 0
        until = int(date_to_timestamp(end_date) * 1000) if end_date else int(time.time() * 1000)

        params = {
            'tags': 'true',
            'clocks': 'true',
        }
        perf_type = PERF_TYPES.get(getattr(game_type, 'value', game_type))
        if perf_type:
            params['perfType'] = perf_type
        params['since'] = since
        params['until'] = until

        raw_games = self._stream_games(f"{self.BASE_URL}/games/user/{username}", params)
        if not raw_games:
            raise NotFoundError()

        games = [normalize_game(game, username) for game in filter_games(raw_games, username)]
        games.sort(key=lambda g: g.date, reverse=True)

        if not games:
            raise NotFoundError()

        logger.info(f"Fetched {len(games)} Lichess games for {username}")
        return games


def fetch_lichess_games(
    username: str,
    game_type: str = GameType.ALL,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> List[NormalizedGame]:
    """Fetch a user's Lichess games with a default client."""
    return LichessClient().fetch_games(username, start_date, end_date, game_type)
