"""
Chess.com API client for fetching a player's games with move clocks.
"""
import calendar
import logging
import time
from datetime import datetime
from typing import List, Optional, Tuple

import requests

from . import config
from .errors import NapTrackerError, NotFoundError
from .game_data import (
    STANDARD_START_FEN,
    GameType,
    NormalizedGame,
    classify_result,
    date_to_timestamp,
    format_timestamp,
)
from .pgn_parser import format_pgn
from .time_control import format_chess_com_time_control

logger = logging.getLogger(__name__)

ANALYSIS_URL = "https://www.chess.com/analysis/game/live/{game_id}?tab=review&move={ply}"


def archive_bounds(archive_url: str) -> Tuple[float, float]:
    """
    Time span covered by a monthly archive URL (".../games/2024/05").

    Returns:
        (first day 00:00, last day 00:00) of the month in local time, as
        epoch seconds.

    Raises:
        ValueError: if the URL does not end in a year and month
    """
    year_str, month_str = archive_url.rstrip('/').split('/')[-2:]
    year, month = int(year_str), int(month_str)
    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1).timestamp()
    end = datetime(year, month, last_day).timestamp()
    return start, end


def select_archives(archives: List[str], start_timestamp: float, end_timestamp: float) -> List[str]:
    """Archives overlapping [start, end], newest first."""
    relevant = []
    for archive_url in archives:
        try:
            archive_start, archive_end = archive_bounds(archive_url)
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Ignoring archive with unreadable month {archive_url!r}: {e}")
            continue
        if archive_start <= end_timestamp and archive_end >= start_timestamp:
            relevant.append(archive_url)
    relevant.reverse()
    return relevant


def _opponent_name(game: dict, username: str) -> str:
    white = (game.get('white') or {}).get('username', '')
    black = (game.get('black') or {}).get('username', '')
    return black if white.lower() == username.lower() else white


def filter_games(
    games: List[dict],
    username: str,
    start_timestamp: float,
    end_timestamp: float,
    game_type: str,
) -> List[dict]:
    """
    Keep finished standard-chess games against humans in the date window.

    Args:
        games: Raw game dicts from the monthly archives
        username: Player the query is for
        start_timestamp: Earliest end_time to keep (epoch seconds)
        end_timestamp: Latest end_time to keep (epoch seconds)
        game_type: "all" (blitz and rapid only) or a Chess.com time_class
    """
    allowed_classes = ('blitz', 'rapid') if game_type == GameType.ALL.value else (game_type,)
    skipped = {'window': 0, 'time_class': 0, 'variant': 0, 'setup': 0, 'bot': 0}
    kept = []

    for game in games:
        end_time = game.get('end_time') if isinstance(game, dict) else None
        if not end_time or not start_timestamp <= end_time <= end_timestamp:
            skipped['window'] += 1
            continue

        if game.get('time_class') not in allowed_classes:
            skipped['time_class'] += 1
            continue

        rules = game.get('rules')
        if rules and rules != 'chess':
            skipped['variant'] += 1
            continue

        initial_setup = game.get('initial_setup')
        if initial_setup and initial_setup != STANDARD_START_FEN:
            skipped['setup'] += 1
            continue

        opponent = _opponent_name(game, username).lower()
        if 'bot' in opponent or 'computer' in opponent:
            skipped['bot'] += 1
            continue

        kept.append(game)

    for reason, count in skipped.items():
        if count:
            logger.info(f"Skipped {count} games for {username} ({reason})")

    return kept


def normalize_game(game: dict, username: str) -> NormalizedGame:
    """Convert a Chess.com archive game into a NormalizedGame for the given user."""
    white = game.get('white') or {}
    black = game.get('black') or {}
    is_white = white.get('username', '').lower() == username.lower()

    move_text, timings = format_pgn(game.get('pgn') or '')
    time_class = game.get('time_class', '')

    return NormalizedGame(
        id=game.get('url', ''),
        date=format_timestamp(game['end_time']),
        white_player=white.get('username', ''),
        black_player=black.get('username', ''),
        result=classify_result(
            is_white,
            white_won=white.get('result') == 'win',
            black_won=black.get('result') == 'win',
        ),
        rating=white.get('rating') if is_white else black.get('rating'),
        game_type=f"{time_class} {'rated' if game.get('rated') else 'casual'}",
        time_control=format_chess_com_time_control(game.get('time_control')),
        move_timings=timings,
        move_text=move_text,
    )


def chess_com_position_url(game_url: str, ply: int) -> Optional[str]:
    """Analysis board link for a game URL, opened at the given ply."""
    game_id = game_url.split('/')[-1].split('?')[0]
    if not game_id:
        return None
    return ANALYSIS_URL.format(game_id=game_id, ply=ply)


class ChessComClient:
    """Client for the Chess.com Published Data API."""

    BASE_URL = "https://api.chess.com/pub"

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        rate_limit_delay: Optional[float] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the Chess.com API client.

        Args:
            session: HTTP session to use (a new one by default)
            rate_limit_delay: Seconds to sleep before each request
            timeout: Seconds to wait for each response
        """
        self.session = session if session is not None else requests.Session()
        self.session.headers.update({
            'User-Agent': config.USER_AGENT
        })
        self.rate_limit_delay = (
            config.CHESS_COM_RATE_LIMIT_DELAY if rate_limit_delay is None else rate_limit_delay
        )
        self.timeout = config.CHESS_COM_TIMEOUT if timeout is None else timeout

    def _get_json(self, url: str):
        """GET a URL and decode its JSON body, raising on HTTP errors."""
        time.sleep(self.rate_limit_delay)
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def get_archives(self, username: str) -> List[str]:
        """Monthly archive URLs for a user, oldest first."""
        url = f"{self.BASE_URL}/player/{username}/games/archives"
        try:
            data = self._get_json(url)
        except requests.exceptions.HTTPError as e:
            logger.warning(f"HTTP error fetching {url}: {e}")
            raise NotFoundError() from e

        if not isinstance(data, dict) or not isinstance(data.get('archives'), list):
            logger.warning(f"Unexpected archive index for {username}")
            raise NotFoundError()
        return data['archives']

    def get_monthly_games(self, archive_url: str) -> List[dict]:
        """Games from one monthly archive; an archive that fails to load yields none."""
        try:
            data = self._get_json(archive_url)
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.warning(f"Skipping archive {archive_url}: {e}")
            return []

        games = data.get('games') if isinstance(data, dict) else None
        return games if isinstance(games, list) else []

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
            username: Chess.com username
            start_date: First day to include ("YYYY-MM-DD"), unbounded if None
            end_date: Last day to include ("YYYY-MM-DD"), unbounded if None
            game_type: "all", "blitz", "rapid" or another Chess.com time class

        Raises:
            NotFoundError: if the user has no archives, nothing falls in the
                window, every game is filtered out or the request fails
        """
        try:
            return self._fetch_games(username, start_date, end_date, game_type)
        except NapTrackerError:
            raise
        except Exception as e:
            logger.error(f"Error fetching Chess.com games for {username}: {e}")
            raise NotFoundError() from e

    def _fetch_games(
        self,
        username: str,
        start_date: Optional[str],
        end_date: Optional[str],
        game_type: str,
    ) -> List[NormalizedGame]:
        start_timestamp = date_to_timestamp(start_date) if start_date else 0
        end_timestamp = date_to_timestamp(end_date) if end_date else float('inf')
        game_type = getattr(game_type, 'value', game_type)

        archives = select_archives(self.get_archives(username), start_timestamp, end_timestamp)
        if not archives:
            logger.info(f"No archives for {username} between {start_date} and {end_date}")
            raise NotFoundError()

        all_games = []
        for archive_url in archives:
            all_games.extend(self.get_monthly_games(archive_url))

        games = [
            normalize_game(game, username)
            for game in filter_games(all_games, username, start_timestamp, end_timestamp, game_type)
        ]
        games.sort(key=lambda g: g.date, reverse=True)

        if not games:
            raise NotFoundError()

        logger.info(f"Fetched {len(games)} Chess.com games for {username}")
        return games


def fetch_chess_com_games(
    username: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    game_type: str = GameType.ALL,
) -> List[NormalizedGame]:
    """Fetch a user's Chess.com games with a default client."""
    return ChessComClient().fetch_games(username, start_date, end_date, game_type)
