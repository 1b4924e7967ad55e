"""
Runtime settings read from the environment.
"""
import os


def _float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}")


USER_AGENT = os.getenv("NAP_TRACKER_USER_AGENT", "ChessNapTracker/0.1")

# Seconds to wait for an HTTP response
CHESS_COM_TIMEOUT = _float_env("NAP_TRACKER_CHESS_COM_TIMEOUT", 10.0)
LICHESS_TIMEOUT = _float_env("NAP_TRACKER_LICHESS_TIMEOUT", 120.0)

# Delay between requests in seconds
CHESS_COM_RATE_LIMIT_DELAY = _float_env("NAP_TRACKER_CHESS_COM_DELAY", 0.1)
LICHESS_RATE_LIMIT_DELAY = _float_env("NAP_TRACKER_LICHESS_DELAY", 1.0)

LOG_LEVEL = os.getenv("NAP_TRACKER_LOG_LEVEL", "INFO").upper()

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "NAP_TRACKER_CORS_ORIGINS",
        "http://localhost:5173,http://localhost:3000",
    ).split(",")
    if origin.strip()
]
