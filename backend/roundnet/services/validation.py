from typing import Any, Optional

from ..config import MAX_SETS, PLAYERS, SUPPORTED_WIN_POINTS
from ..schemas import GameSettings
from ..scoring.rotation import rotation_table


class ValidationError(Exception):
    """Raised when a score edit, set number or setting is invalid."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


def validate_score_value(value: Any, *, label: str = "Score") -> int:
    """Coerce a submitted score to a non-negative integer.

    Booleans are rejected explicitly (bool is a subclass of int in Python).
    """
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be an integer (not a boolean).")
    try:
        score = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be an integer.")
    if score < 0:
        raise ValidationError(f"{label} must be >= 0.")
    return score


def validate_set_number(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError("Set must be an integer (not a boolean).")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Set must be an integer.")
    if number < 1 or number > MAX_SETS:
        raise ValidationError(f"Set must be between 1 and {MAX_SETS}.")
    return number


def validate_serve_configuration(server: Optional[str], receiver: Optional[str]) -> None:
    """Require one of the eight legal ``(server, receiver)`` pairs."""
    if server not in PLAYERS or receiver not in PLAYERS:
        raise ValidationError("Starting server and receiver must be one of a, b, c, d.")
    if rotation_table(server, receiver) is None:
        raise ValidationError(
            f"Starting receiver '{receiver}' must play on the other team than server '{server}'."
        )


def validate_game_settings(settings: GameSettings) -> GameSettings:
    """Validate settings before they are applied to a scoreboard.

    Rules:
    - ``win_points`` must be one of the supported targets (overtime receiver
      orders only exist for those)
    - ``hardcap`` must be above ``win_points``
    - ``min_win_margin`` must be at least 1
    - ``set_mode`` must be a positive odd number of sets
    """
    if settings.win_points not in SUPPORTED_WIN_POINTS:
        allowed = ", ".join(str(v) for v in SUPPORTED_WIN_POINTS)
        raise ValidationError(f"Winning score must be one of {allowed}.")
    if settings.hardcap <= settings.win_points:
        raise ValidationError("Hardcap must be greater than the winning score.")
    if settings.min_win_margin < 1:
        raise ValidationError("Minimum win margin must be >= 1.")

    mode = (settings.set_mode or "").strip()
    if not mode.isdigit() or int(mode) <= 0 or int(mode) % 2 == 0:
        raise ValidationError("Set mode must be a positive odd number of sets.")
    if int(mode) > MAX_SETS:
        raise ValidationError(f"Set mode must be <= {MAX_SETS}.")

    return settings
