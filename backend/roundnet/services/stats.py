from __future__ import annotations

from collections import defaultdict
import logging
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from ..schemas import PointMarkerOut, ScoreSetEvent, StatisticsOut
from ..scoring.rotation import team_of

logger = logging.getLogger(__name__)

# (point_index, set_number) -> player id, or None when no rotation applies
PlayerOracle = Callable[[int, int], Optional[str]]


def percentage(count: int, opportunities: int) -> int:
    """Whole-number percentage rounded half up; 0 when there were no chances."""
    if opportunities <= 0:
        return 0
    return (200 * count + opportunities) // (2 * opportunities)


def group_by_set(events: Iterable[ScoreSetEvent]) -> Dict[int, List[ScoreSetEvent]]:
    """Group score events by set number, keeping log order within each set."""
    grouped: Dict[int, List[ScoreSetEvent]] = defaultdict(list)
    for event in events:
        if not event.set:
            continue
        grouped[event.set].append(event)
    return dict(sorted(grouped.items()))


def calculate_statistics(
    events_by_set: Mapping[int, Sequence[ScoreSetEvent]],
    server_at: PlayerOracle,
    receiver_at: PlayerOracle,
) -> StatisticsOut:
    """Aggregate break and sideout counts for teams and players.

    Each set's events are indexed from 0; the oracles name who served and who
    received that point. A point won by the serving team is a break for the
    team and the server, otherwise a sideout for the receiver.
    """
    stats = StatisticsOut()
    teams = {"a": stats.teamA, "b": stats.teamB}

    for set_number, events in events_by_set.items():
        for index, event in enumerate(events):
            server = server_at(index, set_number)
            receiver = receiver_at(index, set_number)
            serving_team = team_of(server)
            if serving_team is None or receiver not in stats.players:
                logger.debug(
                    "No rotation for set %s point %d; skipping", set_number, index
                )
                continue

            teams[serving_team].breakOpportunities += 1
            stats.players[server].breakOpportunities += 1
            stats.players[receiver].sideoutOpportunities += 1

            if event.team == serving_team:
                teams[event.team].breaks += 1
                stats.players[server].breaks += 1
            else:
                stats.players[receiver].sideouts += 1

    for team_stats in teams.values():
        team_stats.breakPercentage = percentage(
            team_stats.breaks, team_stats.breakOpportunities
        )
    for player_stats in stats.players.values():
        player_stats.sideoutPercentage = percentage(
            player_stats.sideouts, player_stats.sideoutOpportunities
        )
        player_stats.breakPercentage = percentage(
            player_stats.breaks, player_stats.breakOpportunities
        )
    return stats


def team_points(events: Iterable[ScoreSetEvent], team: str) -> list[int]:
    """Running score of ``team`` after each event of a set's history."""
    points: list[int] = []
    last = 0
    for event in events:
        if event.team == team:
            last = event.score
        points.append(last)
    return points


def score_progression(
    events: Sequence[ScoreSetEvent],
    team: str,
    set_number: int,
    server_at: PlayerOracle,
) -> list[PointMarkerOut]:
    """Per-point markers for a team's score row.

    A point is ``scored`` when the team's running score went up; ``streak``
    counts consecutive scored points; a scored point is a break when one of
    the team's own players served it.
    """
    markers: list[PointMarkerOut] = []
    streak = 0
    previous = 0
    for index, score in enumerate(team_points(events, team)):
        scored = score > previous
        streak = streak + 1 if scored else 0
        is_break = scored and team_of(server_at(index, set_number)) == team
        markers.append(
            PointMarkerOut(score=score, scored=scored, streak=streak, isBreak=is_break)
        )
        previous = score
    return markers


def best_players(stats: StatisticsOut) -> Dict[str, list[str]]:
    """Players holding the top non-zero sideout and break percentages."""
    best: Dict[str, list[str]] = {"sideout": [], "break": []}
    max_sideout = max(p.sideoutPercentage for p in stats.players.values())
    max_break = max(p.breakPercentage for p in stats.players.values())
    for player, player_stats in stats.players.items():
        if max_sideout > 0 and player_stats.sideoutPercentage == max_sideout:
            best["sideout"].append(player)
        if max_break > 0 and player_stats.breakPercentage == max_break:
            best["break"].append(player)
    return best
