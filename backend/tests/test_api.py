"""
Tests for the HTTP API.
"""
from datetime import date, timedelta

import pytest

import main
from nap_tracker.errors import NotFoundError
from nap_tracker.game_data import MoveTiming, NormalizedGame


class FakeSource:
    def __init__(self, games=None, error=None):
        self.games = games or []
        self.error = error
        self.calls = []

    def fetch_games(self, username, start_date=None, end_date=None, game_type="all"):
        self.calls.append((username, start_date, end_date, game_type))
        if self.error:
            raise self.error
        return self.games


def sample_game() -> NormalizedGame:
    return NormalizedGame(
        id="https://www.chess.com/game/live/111",
        date="2024-05-10T12:00:00.000Z",
        white_player="alice",
        black_player="bob",
        result="win",
        rating=1500,
        game_type="blitz rated",
        time_control="3+2",
        move_timings=[
            MoveTiming("e4", 1, True, timedelta(seconds=181), "0:3:1"),
            MoveTiming("e5", 1, False, timedelta(seconds=180), "0:3:0"),
            MoveTiming("Nf3", 2, True, timedelta(seconds=95), "0:1:35", time_spent=86),
        ],
        move_text="1. e4 1... e5 2. Nf3",
    )


@pytest.fixture
def source(monkeypatch):
    fake = FakeSource(games=[sample_game()])
    monkeypatch.setattr(main, "get_game_source", lambda platform: fake)
    return fake


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


class TestGamesEndpoint:

    def test_returns_games(self, client, source):
        resp = client.get("/api/games", params={
            "username": "alice",
            "startDate": "2024-05-01",
            "endDate": "2024-05-31",
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 1
        game = data["games"][0]
        assert game["whitePlayer"] == "alice"
        assert game["moveTimings"][2] == {
            "moveText": "Nf3",
            "moveNumber": 2,
            "isWhite": True,
            "clock": "0:1:35",
            "clockRemaining": 95,
            "timeSpent": 86,
        }
        assert source.calls == [("alice", "2024-05-01", "2024-05-31", "all")]

    def test_default_date_range(self, client, source):
        client.get("/api/games", params={"username": "alice"})
        _, start_date, end_date, _ = source.calls[0]
        today = date.today()
        assert end_date == today.isoformat()
        assert start_date == (today - timedelta(days=30)).isoformat()

    def test_not_found(self, client, monkeypatch):
        monkeypatch.setattr(main, "get_game_source", lambda platform: FakeSource(error=NotFoundError()))
        resp = client.get("/api/games", params={"username": "nobody"})
        assert resp.status_code == 404
        assert resp.json()["detail"] == "No games found"

    def test_unknown_platform(self, client, source):
        resp = client.get("/api/games", params={"username": "alice", "platform": "chess24"})
        assert resp.status_code == 400

    def test_classical_not_offered_on_chess_com(self, client, source):
        resp = client.get("/api/games", params={"username": "alice", "gameType": "classical"})
        assert resp.status_code == 400
        assert source.calls == []


class TestHighlightsEndpoint:

    def test_long_thinks(self, client, source):
        resp = client.get("/api/highlights", params={"username": "alice", "minTime": 60})
        assert resp.status_code == 200
        rows = resp.json()["highlights"]
        assert len(rows) == 1
        assert rows[0]["notation"] == "2.Nf3"
        assert rows[0]["timeSpentLabel"] == "1:26"
        assert rows[0]["linkMoveNumber"] == 3
        assert rows[0]["url"] == "https://www.chess.com/analysis/game/live/111?tab=review&move=3"

    def test_bad_sort(self, client, source):
        resp = client.get("/api/highlights", params={"username": "alice", "sortBy": "rating"})
        assert resp.status_code == 400
