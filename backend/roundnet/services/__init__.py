"""Internal application services (pure helpers, no I/O)."""

from .validation import ValidationError, validate_game_settings
from .event_log import EventLog, ScoreHistory
from .scoreboard import Scoreboard, ScoreboardState
from .snapshot import apply_snapshot, build_write_batch, scoreboard_from_snapshot
from .stats import (
    calculate_statistics,
    group_by_set,
    percentage,
    score_progression,
    team_points,
    best_players,
)

__all__ = [
    "ValidationError",
    "validate_game_settings",
    "EventLog",
    "ScoreHistory",
    "Scoreboard",
    "ScoreboardState",
    "apply_snapshot",
    "build_write_batch",
    "scoreboard_from_snapshot",
    "calculate_statistics",
    "group_by_set",
    "percentage",
    "score_progression",
    "team_points",
    "best_players",
]
