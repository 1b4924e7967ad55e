"""
Human-readable time control labels for both game sources.
"""
from typing import Optional

UNKNOWN_TIME_CONTROL = "-"

# Chess.com daily games encode "one move per N seconds"
DAILY_TIME_CONTROLS = {
    "1/86400": "1 day",
    "1/259200": "3 days",
    "1/432000": "5 days",
    "1/604800": "7 days",
    "1/1209600": "14 days",
}


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _format_number(value: float) -> str:
    """Print a number without a trailing ".0" on whole values."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def format_chess_com_time_control(time_control: Optional[str]) -> str:
    """
    Format a Chess.com time control string ("180+2", "600", "1/86400").

    Returns:
        Label like "3+2", "10+0", "30s+0", "1:30+0" or "7 days", or "-" when
        the base time cannot be read.
    """
    if not time_control:
        return UNKNOWN_TIME_CONTROL

    if time_control in DAILY_TIME_CONTROLS:
        return DAILY_TIME_CONTROLS[time_control]

    parts = time_control.split("+")
    base = _parse_int(parts[0])
    if base is None:
        return UNKNOWN_TIME_CONTROL
    increment = _parse_int(parts[1]) if len(parts) > 1 else None

    minutes, seconds = divmod(base, 60)
    if minutes > 0:
        label = f"{minutes}"
        if seconds > 0:
            label += f":{seconds:02d}"
    else:
        label = f"{seconds}s"

    # Increment is always shown, even when zero
    label += f"+{increment if increment is not None else 0}"
    return label


def format_lichess_time_control(clock: Optional[dict]) -> str:
    """Format a Lichess clock object ({"initial": 180, "increment": 2}) as "3+2"."""
    if not clock:
        return UNKNOWN_TIME_CONTROL

    initial = clock.get("initial")
    increment = clock.get("increment", 0)
    if not isinstance(initial, (int, float)) or isinstance(initial, bool):
        return UNKNOWN_TIME_CONTROL

    return f"{_format_number(initial / 60)}+{_format_number(increment or 0)}"
