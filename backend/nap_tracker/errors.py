"""
Exceptions raised by the game sources.
"""


class NapTrackerError(Exception):
    """Base class for errors the game sources raise on purpose."""


class NotFoundError(NapTrackerError):
    """No qualifying games could be produced for a query."""

    def __init__(self, message: str = "No games found"):
        super().__init__(message)
        self.message = message
