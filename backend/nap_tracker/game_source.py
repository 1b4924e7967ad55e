"""
Selecting a game source by platform.
"""
from enum import Enum
from typing import List, Optional, Protocol

from .chess_com_client import ChessComClient, chess_com_position_url
from .game_data import GameType, NormalizedGame
from .lichess_client import LichessClient, lichess_position_url


class Platform(str, Enum):
    """Game hosting services games can be fetched from."""
    CHESS_COM = "chess.com"
    LICHESS = "lichess.org"


class GameSource(Protocol):
    """Anything that can fetch a user's normalized games."""

    def fetch_games(
        self,
        username: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        game_type: str = GameType.ALL,
    ) -> List[NormalizedGame]:
        ...


# Game types each platform offers in its filter
SUPPORTED_GAME_TYPES = {
    Platform.CHESS_COM: (GameType.ALL, GameType.BLITZ, GameType.RAPID),
    Platform.LICHESS: (GameType.ALL, GameType.BLITZ, GameType.RAPID, GameType.CLASSICAL),
}


def get_game_source(platform: str) -> GameSource:
    """
    Build the client for a platform.

    Raises:
        ValueError: for an unknown platform name
    """
    platform = Platform(platform)
    if platform is Platform.CHESS_COM:
        return ChessComClient()
    return LichessClient()


def position_url(platform: str, game_id: str, ply: int) -> Optional[str]:
    """Link that opens a game on its platform at the given ply."""
    if Platform(platform) is Platform.CHESS_COM:
        return chess_com_position_url(game_id, ply)
    return lichess_position_url(game_id, ply)
