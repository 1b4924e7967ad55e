"""
Chess Nap Tracker API
"""
import logging
from datetime import date, timedelta
from typing import List, Optional, Tuple

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from nap_tracker import config
from nap_tracker.errors import NotFoundError
from nap_tracker.game_data import GameType, NormalizedGame
from nap_tracker.game_source import SUPPORTED_GAME_TYPES, Platform, get_game_source, position_url
from nap_tracker.highlights import (
    DEFAULT_MIN_TIME,
    SORT_BY_DATE,
    SORT_BY_TIME,
    build_highlights,
    format_move_notation,
    format_time_spent,
)

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Chess Nap Tracker API")

# Date range shown when the caller does not pick one
DEFAULT_RANGE_DAYS = 30


# ============================================
# Pydantic models for responses
# ============================================

class MoveTimingResponse(BaseModel):
    moveText: str
    moveNumber: int
    isWhite: bool
    clock: str
    clockRemaining: int
    timeSpent: Optional[int] = None


class GameResponse(BaseModel):
    id: str
    date: str
    whitePlayer: str
    blackPlayer: str
    result: str
    rating: Optional[int] = None
    gameType: str
    timeControl: str
    moveTimings: List[MoveTimingResponse]
    pgn: Optional[str] = None


class GamesResponse(BaseModel):
    username: str
    platform: str
    games: List[GameResponse]
    total: int


class HighlightResponse(BaseModel):
    move: str
    notation: str
    timeSpent: int
    timeSpentLabel: str
    moveNumber: int
    isWhite: bool
    linkMoveNumber: int
    date: str
    players: str
    timeControl: str
    gameId: str
    url: Optional[str] = None


class HighlightsResponse(BaseModel):
    username: str
    platform: str
    highlights: List[HighlightResponse]
    total: int


app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================
# Helper functions
# ============================================

def default_date_range(today: Optional[date] = None) -> Tuple[str, str]:
    """Last DEFAULT_RANGE_DAYS days up to today, as YYYY-MM-DD strings."""
    today = today or date.today()
    start = today - timedelta(days=DEFAULT_RANGE_DAYS)
    return start.isoformat(), today.isoformat()


def game_to_response(game: NormalizedGame) -> GameResponse:
    """Convert a NormalizedGame to its API shape."""
    return GameResponse(
        id=game.id,
        date=game.date,
        whitePlayer=game.white_player,
        blackPlayer=game.black_player,
        result=game.result,
        rating=game.rating,
        gameType=game.game_type,
        timeControl=game.time_control,
        moveTimings=[
            MoveTimingResponse(
                moveText=timing.move_text,
                moveNumber=timing.move_number,
                isWhite=timing.is_white,
                clock=timing.clock,
                clockRemaining=int(timing.clock_remaining.total_seconds()),
                timeSpent=timing.time_spent,
            )
            for timing in game.move_timings
        ],
        pgn=game.move_text,
    )


def load_games(
    username: str,
    platform: str,
    game_type: str,
    start_date: Optional[str],
    end_date: Optional[str],
) -> List[NormalizedGame]:
    """Validate query parameters and fetch games from the chosen platform."""
    if not username:
        raise HTTPException(status_code=400, detail="Please enter a username")

    try:
        platform_value = Platform(platform)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown platform: {platform}")

    try:
        game_type_value = GameType(game_type)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown game type: {game_type}")
    if game_type_value not in SUPPORTED_GAME_TYPES[platform_value]:
        raise HTTPException(
            status_code=400,
            detail=f"{platform_value.value} does not support game type {game_type_value.value}",
        )

    default_start, default_end = default_date_range()
    start_date = start_date or default_start
    end_date = end_date or default_end

    logger.info(f"Fetching {game_type_value.value} games for {username} on {platform_value.value} "
                f"from {start_date} to {end_date}")

    source = get_game_source(platform_value)
    try:
        return source.fetch_games(username, start_date, end_date, game_type_value)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


# ============================================
# Endpoints
# ============================================

@app.get("/api/games", response_model=GamesResponse)
def get_games(
    username: str = Query(..., description="Username on the chosen platform"),
    platform: str = Query(Platform.CHESS_COM.value, description="chess.com or lichess.org"),
    gameType: str = Query(GameType.ALL.value, description="all, blitz, rapid or classical"),
    startDate: Optional[str] = Query(None, description="First day (YYYY-MM-DD), default 30 days ago"),
    endDate: Optional[str] = Query(None, description="Last day (YYYY-MM-DD), default today"),
):
    """Fetch a user's games with per-move clocks and think times."""
    games = load_games(username, platform, gameType, startDate, endDate)
    return GamesResponse(
        username=username,
        platform=platform,
        games=[game_to_response(game) for game in games],
        total=len(games),
    )


@app.get("/api/highlights", response_model=HighlightsResponse)
def get_highlights(
    username: str = Query(..., description="Username on the chosen platform"),
    platform: str = Query(Platform.CHESS_COM.value, description="chess.com or lichess.org"),
    gameType: str = Query(GameType.ALL.value, description="all, blitz, rapid or classical"),
    startDate: Optional[str] = Query(None, description="First day (YYYY-MM-DD), default 30 days ago"),
    endDate: Optional[str] = Query(None, description="Last day (YYYY-MM-DD), default today"),
    minTime: int = Query(DEFAULT_MIN_TIME, ge=0, description="Minimum think time in seconds"),
    sortBy: str = Query(SORT_BY_TIME, description="time or date"),
):
    """The moves the user spent the most time on."""
    if sortBy not in (SORT_BY_TIME, SORT_BY_DATE):
        raise HTTPException(status_code=400, detail=f"Unknown sort order: {sortBy}")

    games = load_games(username, platform, gameType, startDate, endDate)
    highlights = build_highlights(games, username, min_time=minTime, sort_by=sortBy)

    return HighlightsResponse(
        username=username,
        platform=platform,
        highlights=[
            HighlightResponse(
                move=row.move,
                notation=format_move_notation(row.move_number, row.move, row.is_white),
                timeSpent=row.time_spent,
                timeSpentLabel=format_time_spent(row.time_spent),
                moveNumber=row.move_number,
                isWhite=row.is_white,
                linkMoveNumber=row.link_ply,
                date=row.date,
                players=row.players,
                timeControl=row.time_control,
                gameId=row.game_id,
                url=position_url(platform, row.game_id, row.link_ply),
            )
            for row in highlights
        ],
        total=len(highlights),
    )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok"}
