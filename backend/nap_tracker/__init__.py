"""Chess Nap Tracker: find the moves you spent the longest thinking about."""

__version__ = "0.1.0"
