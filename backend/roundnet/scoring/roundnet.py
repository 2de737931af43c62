"""Roundnet set scoring.

Rally scoring to ``win_points`` with a ``min_win_margin`` requirement and a
``hardcap`` at which the leading team wins outright. Matches are best-of
``set_mode`` sets.
"""

from typing import Iterable, Optional, Tuple

from ..schemas import GameSettings


def set_winner(score_a: int, score_b: int, settings: GameSettings) -> Optional[str]:
    """Return ``"a"``/``"b"`` once a set is decided, otherwise ``None``.

    Reaching the hardcap decides the set regardless of margin. Equal scores at
    or above the hardcap cannot be produced by rally scoring and resolve to
    ``"b"``.
    """
    if score_a >= settings.hardcap or score_b >= settings.hardcap:
        return "a" if score_a > score_b else "b"

    if score_a >= settings.win_points or score_b >= settings.win_points:
        if abs(score_a - score_b) >= settings.min_win_margin:
            return "a" if score_a > score_b else "b"

    return None


def is_overtime(score_a: int, score_b: int, settings: GameSettings) -> bool:
    """True once the hardcap is hit or the target is reached without the margin."""
    if score_a >= settings.hardcap or score_b >= settings.hardcap:
        return True

    if score_a >= settings.win_points or score_b >= settings.win_points:
        return abs(score_a - score_b) < settings.min_win_margin

    return False


def sets_won(
    team: str,
    set_scores: Iterable[Tuple[int, int]],
    active_set: int,
    settings: GameSettings,
) -> int:
    """Count the sets before ``active_set`` won by ``team``.

    ``set_scores`` yields ``(score_a, score_b)`` for set 1, 2, ... in order.
    """
    won = 0
    for number, (score_a, score_b) in enumerate(set_scores, start=1):
        if number >= active_set:
            break
        if set_winner(score_a, score_b, settings) == team:
            won += 1
    return won


def sets_needed(settings: GameSettings) -> Optional[int]:
    """Sets required to take the match, or ``None`` for a non-numeric mode."""
    mode = (settings.set_mode or "").strip()
    if not mode.isdigit() or int(mode) <= 0:
        return None
    return int(mode) // 2 + 1


def match_winner(
    set_scores: Iterable[Tuple[int, int]], active_set: int, settings: GameSettings
) -> Optional[str]:
    needed = sets_needed(settings)
    if not needed:
        return None

    scores = list(set_scores)
    # The active set counts once it is decided.
    through = active_set + 1
    won_a = sets_won("a", scores, through, settings)
    won_b = sets_won("b", scores, through, settings)
    if won_a >= needed:
        return "a"
    if won_b >= needed:
        return "b"
    return None
