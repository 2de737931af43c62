"""Translate between a channel's stored snapshot and a :class:`Scoreboard`.

Snapshots are nested key/value maps. Internally every value is addressed by a
dotted path (``score.set_1.team_a.score``); the store addresses the same value
as ``/match-{channel}/score/set_1/team_a/score``.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable, Mapping, Optional

from ..config import MAX_SETS, SUPPORTED_WIN_POINTS
from .event_log import EventLog
from .scoreboard import Changes, Scoreboard, ScoreboardState, PLAYER_SLOTS
from .validation import ValidationError, validate_score_value, validate_set_number

logger = logging.getLogger(__name__)

_SCORE_RE = re.compile(r"^score\.set_(\d+)\.team_([ab])\.score$")
_SERVE_RE = re.compile(r"^score\.set_(\d+)\.starting_(server|receiver)$")
_SQUAD_RE = re.compile(r"^score\.squad\.team_([ab])\.squad_score$")
_PLAYER_RE = re.compile(r"^teams_info\.team_([ab])\.player_([12])$")
_SLOT_PLAYERS = {slot: player for player, slot in PLAYER_SLOTS.items()}


def flatten_paths(data: Mapping[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Flatten nested mappings to ``{dotted.path: leaf}``; lists are leaves."""
    paths: Dict[str, Any] = {}
    for key, value in data.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping) and path != "event_history":
            paths.update(flatten_paths(value, path))
        else:
            paths[path] = value
    return paths


def _int_or_warn(path: str, value: Any) -> Optional[int]:
    try:
        return validate_score_value(value, label=path)
    except ValidationError as exc:
        logger.warning("Ignoring %s=%r: %s", path, value, exc.detail)
        return None


def _apply_game_setting(scoreboard: Scoreboard, key: str, value: Any) -> Optional[Any]:
    settings = scoreboard.state.game_settings
    if key not in type(settings).model_fields:
        logger.debug("Ignoring unknown game setting %r", key)
        return None
    if key == "set_mode":
        coerced: Any = str(value)
    else:
        try:
            coerced = int(value)
        except (TypeError, ValueError):
            logger.warning("game_settings.%s is not a number (got %r); keeping %r", key, value, getattr(settings, key))
            return None
    scoreboard.state.game_settings = settings.model_copy(update={key: coerced})
    if key == "win_points" and coerced not in SUPPORTED_WIN_POINTS:
        logger.warning(
            "win_points=%s has no overtime receiver order; overtime receivers will be unavailable",
            coerced,
        )
    return coerced


def apply_snapshot(
    scoreboard: Scoreboard,
    data: Mapping[str, Any],
    locked_paths: Iterable[str] = (),
) -> Changes:
    """Load snapshot values into ``scoreboard``, skipping ``locked_paths``.

    Scores are written to the score table directly; the event log is only
    replaced by an explicit ``event_history`` value. Returns the dotted paths
    that were applied with their coerced values.
    """
    locked = set(locked_paths)
    state = scoreboard.state
    changes: Changes = {}

    for path, value in flatten_paths(data).items():
        if path in locked:
            logger.info("Skipping locked field: %s", path)
            continue

        if path == "event_history":
            state.log = EventLog.from_wire(value)
            changes[path] = state.log.to_wire()
            continue

        if path == "active_set":
            try:
                state.active_set = validate_set_number(value)
            except ValidationError as exc:
                logger.warning("Ignoring active_set=%r: %s", value, exc.detail)
                continue
            changes[path] = state.active_set
            continue

        match = _SCORE_RE.match(path)
        if match:
            set_number = int(match.group(1))
            if not 1 <= set_number <= MAX_SETS:
                logger.warning("Ignoring %s: no such set", path)
                continue
            score = _int_or_warn(path, value)
            if score is None:
                continue
            state.scores[(set_number, match.group(2))] = score
            changes[path] = score
            continue

        match = _SERVE_RE.match(path)
        if match:
            if not 1 <= int(match.group(1)) <= MAX_SETS:
                logger.warning("Ignoring %s: no such set", path)
                continue
            config = scoreboard.serve_configuration(int(match.group(1)))
            player = str(value).strip().lower() if value else None
            setattr(config, f"starting_{match.group(2)}", player)
            changes[path] = player
            continue

        match = _SQUAD_RE.match(path)
        if match:
            score = _int_or_warn(path, value)
            if score is None:
                continue
            state.squad_scores[match.group(1)] = score
            changes[path] = score
            continue

        match = _PLAYER_RE.match(path)
        if match:
            player = _SLOT_PLAYERS[(match.group(1), int(match.group(2)))]
            changes.update(scoreboard.set_player_name(player, "" if value is None else str(value)))
            continue

        if path.startswith("game_settings."):
            coerced = _apply_game_setting(scoreboard, path.split(".", 1)[1], value)
            if coerced is not None:
                changes[path] = coerced
            continue

        logger.debug("Ignoring snapshot path %s", path)

    return changes


def scoreboard_from_snapshot(data: Any) -> Scoreboard:
    """Rehydrate a scoreboard; a missing snapshot yields a fresh match."""
    scoreboard = Scoreboard(ScoreboardState())
    if not isinstance(data, Mapping):
        if data is not None:
            logger.warning("Snapshot is not a mapping (got %s); starting fresh", type(data).__name__)
        return scoreboard
    apply_snapshot(scoreboard, data)
    return scoreboard


def _is_integer_path(path: str) -> bool:
    return (
        ("score" in path or "active_set" in path)
        and "starting_server" not in path
        and "starting_receiver" not in path
        and "admin_settings" not in path
    )


def channel_path(channel: int, dotted: str) -> str:
    return f"/match-{channel}/{dotted.replace('.', '/')}"


def build_write_batch(channel: int, changes: Mapping[str, Any], log: EventLog) -> Dict[str, Any]:
    """Channel-scoped ``{path: value}`` batch for one logical edit.

    The event log is always included so the log and scores land together.
    Score values that do not parse as integers are dropped individually.
    """
    batch: Dict[str, Any] = {channel_path(channel, "event_history"): log.to_wire()}
    for dotted, value in changes.items():
        if dotted == "event_history":
            continue
        path = channel_path(channel, dotted)
        if _is_integer_path(path):
            try:
                value = int(value)
            except (TypeError, ValueError):
                logger.warning("%r can't be converted to integer; dropping %s", value, path)
                continue
        batch[path] = value
    return batch
