from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from ..config import MAX_SETS, PLAYERS, TEAMS
from ..exceptions import InvalidServeConfiguration, ServeConfigurationLocked
from ..schemas import (
    CurrentPlayersOut,
    GameSettings,
    GameSettingsIn,
    PointMarkerOut,
    ScoreboardOut,
    ServeInfoOut,
    SetChangeEvent,
    ResetEvent,
    SetScoreOut,
    StatisticsOut,
)
from ..scoring import roundnet as rules
from ..scoring import rotation
from .event_log import EventLog, ScoreHistory
from .stats import calculate_statistics, group_by_set, score_progression, team_points
from .validation import (
    ValidationError,
    validate_game_settings,
    validate_score_value,
    validate_serve_configuration,
    validate_set_number,
)

# dotted snapshot path -> new value, as produced by every mutation
Changes = Dict[str, Any]

PLAYER_SLOTS = {"a": ("a", 1), "b": ("a", 2), "c": ("b", 1), "d": ("b", 2)}


def score_path(set_number: int, team: str) -> str:
    return f"score.set_{set_number}.team_{team}.score"


def squad_score_path(team: str) -> str:
    return f"score.squad.team_{team}.squad_score"


def _empty_scores() -> Dict[Tuple[int, str], int]:
    return {(n, t): 0 for n in range(1, MAX_SETS + 1) for t in TEAMS}


@dataclass
class ServeConfiguration:
    starting_server: Optional[str] = None
    starting_receiver: Optional[str] = None


@dataclass
class ScoreboardState:
    """Everything a channel persists about one match."""

    scores: Dict[Tuple[int, str], int] = field(default_factory=_empty_scores)
    squad_scores: Dict[str, int] = field(default_factory=lambda: {t: 0 for t in TEAMS})
    active_set: int = 1
    game_settings: GameSettings = field(default_factory=GameSettings)
    serve: Dict[int, ServeConfiguration] = field(
        default_factory=lambda: {n: ServeConfiguration() for n in range(1, MAX_SETS + 1)}
    )
    player_names: Dict[str, str] = field(default_factory=dict)
    log: EventLog = field(default_factory=EventLog)


class Scoreboard:
    """Queries and mutation entry points over a :class:`ScoreboardState`.

    Queries are pure. Each mutation updates the event log and the scores
    together and returns the snapshot paths it changed.
    """

    def __init__(self, state: Optional[ScoreboardState] = None) -> None:
        self.state = state or ScoreboardState()

    # ---------------------------------------------------------
    # Accessors
    # ---------------------------------------------------------

    @property
    def settings(self) -> GameSettings:
        return self.state.game_settings

    @property
    def active_set(self) -> int:
        return self.state.active_set

    @property
    def log(self) -> EventLog:
        return self.state.log

    def _set(self, set_number: Optional[int]) -> int:
        return self.state.active_set if set_number is None else set_number

    def get_score(self, set_number: int, team: str) -> int:
        return self.state.scores.get((set_number, team), 0)

    def _set_scores(self) -> List[Tuple[int, int]]:
        return [
            (self.get_score(n, "a"), self.get_score(n, "b"))
            for n in range(1, MAX_SETS + 1)
        ]

    def total_points(self, set_number: Optional[int] = None) -> int:
        n = self._set(set_number)
        return self.get_score(n, "a") + self.get_score(n, "b")

    def serve_configuration(self, set_number: Optional[int] = None) -> ServeConfiguration:
        n = self._set(set_number)
        return self.state.serve.setdefault(n, ServeConfiguration())

    def rotation_table(self, set_number: Optional[int] = None) -> Optional[rotation.RotationTable]:
        config = self.serve_configuration(set_number)
        return rotation.rotation_table(config.starting_server, config.starting_receiver)

    def player_name(self, player: str) -> str:
        name = (self.state.player_names.get(player) or "").strip()
        return name or f"Player {player.upper()}"

    # ---------------------------------------------------------
    # Set winner & overtime
    # ---------------------------------------------------------

    def set_winner(self, set_number: Optional[int] = None) -> Optional[str]:
        n = self._set(set_number)
        return rules.set_winner(self.get_score(n, "a"), self.get_score(n, "b"), self.settings)

    def sets_won(self, team: str) -> int:
        return rules.sets_won(team, self._set_scores(), self.state.active_set, self.settings)

    def match_winner(self) -> Optional[str]:
        return rules.match_winner(self._set_scores(), self.state.active_set, self.settings)

    def completed_sets_count(self) -> int:
        return sum(1 for n in range(1, MAX_SETS + 1) if self.set_winner(n) is not None)

    def score_history(self, set_number: Optional[int] = None) -> ScoreHistory:
        return self.log.score_history(self._set(set_number))

    def team_points(self, set_number: Optional[int] = None, team: str = "a") -> list[int]:
        return team_points(self.score_history(set_number), team)

    def score_at_point(self, set_number: int, team: str, point_index: int) -> int:
        """Team score after history point ``point_index``; current score past the end."""
        points = team_points(self.score_history(set_number), team)
        if point_index >= len(points):
            return self.get_score(set_number, team)
        return points[point_index]

    def is_overtime(self, set_number: Optional[int] = None, point_index: Optional[int] = None) -> bool:
        n = self._set(set_number)
        if point_index is None:
            score_a, score_b = self.get_score(n, "a"), self.get_score(n, "b")
        else:
            score_a = self.score_at_point(n, "a", point_index)
            score_b = self.score_at_point(n, "b", point_index)
        return rules.is_overtime(score_a, score_b, self.settings)

    # ---------------------------------------------------------
    # Rotation
    # ---------------------------------------------------------

    def get_server(self, point_index: int, set_number: Optional[int] = None) -> Optional[str]:
        n = self._set(set_number)
        return rotation.server_at(
            self.rotation_table(n),
            point_index,
            overtime=self.is_overtime(n, point_index),
            win_points=self.settings.win_points,
        )

    def get_receiver(self, point_index: int, set_number: Optional[int] = None) -> Optional[str]:
        n = self._set(set_number)
        return rotation.receiver_at(
            self.rotation_table(n),
            point_index,
            overtime=self.is_overtime(n, point_index),
            win_points=self.settings.win_points,
        )

    def serve_info(self) -> Optional[ServeInfoOut]:
        """Serving team and serve number for the next point of the active set.

        ``None`` when no starting server is configured. A decided set still
        reports the turn; ``view()`` hides it.
        """
        starting_team = rotation.team_of(self.serve_configuration().starting_server)
        if starting_team is None:
            return None

        total = self.total_points()
        overtime = self.is_overtime()
        return ServeInfoOut(
            team=rotation.serving_team_at(starting_team, total, overtime=overtime),
            serveNumber=rotation.serve_number_at(total, overtime=overtime),
            isOvertime=overtime,
            singleServe=total == 0 or overtime,
        )

    def current_players(self) -> CurrentPlayersOut:
        total = self.total_points()
        server = self.get_server(total)
        receiver = self.get_receiver(total)
        if not server or not receiver:
            return CurrentPlayersOut()
        return CurrentPlayersOut(
            server=server,
            receiver=receiver,
            serverName=self.player_name(server),
            receiverName=self.player_name(receiver),
        )

    # ---------------------------------------------------------
    # Statistics
    # ---------------------------------------------------------

    def calculate_statistics(self, scope: str = "match", set_number: Optional[int] = None) -> StatisticsOut:
        """Break/sideout statistics for the whole match or a single set."""
        if scope == "match":
            events = [e for e in self.log.since_last_reset() if e.type == "score"]
            events_by_set = group_by_set(events)
        elif scope == "set":
            n = self._set(set_number)
            events_by_set = {n: list(self.score_history(n))}
        else:
            raise ValidationError(f"Unknown statistics scope '{scope}'.")
        return calculate_statistics(events_by_set, self._server_oracle(), self._receiver_oracle())

    def _overtime_oracle(self):
        # Per-set running scores, computed once per statistics pass.
        cache: Dict[int, Tuple[list[int], list[int]]] = {}

        def overtime(point_index: int, set_number: int) -> bool:
            if set_number not in cache:
                history = list(self.score_history(set_number))
                cache[set_number] = (team_points(history, "a"), team_points(history, "b"))
            points_a, points_b = cache[set_number]
            if point_index < len(points_a):
                score_a, score_b = points_a[point_index], points_b[point_index]
            else:
                score_a = self.get_score(set_number, "a")
                score_b = self.get_score(set_number, "b")
            return rules.is_overtime(score_a, score_b, self.settings)

        return overtime

    def _server_oracle(self):
        overtime = self._overtime_oracle()
        return lambda i, n: rotation.server_at(
            self.rotation_table(n), i, overtime=overtime(i, n), win_points=self.settings.win_points
        )

    def _receiver_oracle(self):
        overtime = self._overtime_oracle()
        return lambda i, n: rotation.receiver_at(
            self.rotation_table(n), i, overtime=overtime(i, n), win_points=self.settings.win_points
        )

    def statistics_sets(self, stats_type: Union[str, int] = "match") -> list[int]:
        """Set numbers shown in per-set statistics for a display mode."""
        if stats_type == "match":
            completed = self.completed_sets_count()
            numbers = list(range(1, completed + 1))
            if self.state.active_set != completed and self.total_points() > 0:
                numbers.append(self.state.active_set)
            return list(dict.fromkeys(numbers))
        if stats_type == "active_set":
            return [self.state.active_set]
        return [validate_set_number(stats_type)]

    def set_statistics(self, stats_type: Union[str, int] = "match") -> Dict[int, StatisticsOut]:
        return {n: self.calculate_statistics("set", n) for n in self.statistics_sets(stats_type)}

    def score_progression(self, set_number: Optional[int] = None, team: str = "a") -> list[PointMarkerOut]:
        n = self._set(set_number)
        return score_progression(list(self.score_history(n)), team, n, self._server_oracle())

    # ---------------------------------------------------------
    # Derived view
    # ---------------------------------------------------------

    def view(self) -> ScoreboardOut:
        """Recompute everything a display shows; call after each state change."""
        sets = [
            SetScoreOut(
                set=n,
                a=self.get_score(n, "a"),
                b=self.get_score(n, "b"),
                winner=self.set_winner(n),
            )
            for n in range(1, self.state.active_set + 1)
        ]
        return ScoreboardOut(
            activeSet=self.state.active_set,
            sets=sets,
            setsWon={team: self.sets_won(team) for team in TEAMS},
            matchWinner=self.match_winner(),
            isOvertime=self.is_overtime(),
            serveInfo=None if self.set_winner() else self.serve_info(),
            currentPlayers=self.current_players(),
            gameSettings=self.settings,
        )

    # ---------------------------------------------------------
    # Mutations
    # ---------------------------------------------------------

    def edit_score(
        self,
        team: str,
        set_number: Optional[int],
        new_score: Any,
        *,
        squad: bool = False,
    ) -> Changes:
        """Apply a direct score edit to the log and the score table together."""
        if team not in TEAMS:
            raise ValidationError(f"Unknown team '{team}'.")
        score = validate_score_value(new_score)

        if squad:
            self.log.on_score_edit(team, None, score, squad=True)
            self.state.squad_scores[team] = score
            return {squad_score_path(team): score}

        n = validate_set_number(self._set(set_number))
        self.log.on_score_edit(team, n, score)
        self.state.scores[(n, team)] = score
        return {score_path(n, team): score}

    def change_score(self, team: str, change: int) -> Changes:
        """Score button: nudge the active set's score; never below zero."""
        n = self.state.active_set
        current = self.get_score(n, team)
        if current + change < 0:
            return {}
        return self.edit_score(team, n, current + change)

    def go_to_set(self, set_number: Any) -> Changes:
        n = validate_set_number(set_number)
        self.state.active_set = n
        self.log.append(SetChangeEvent(set=n))
        return {"active_set": n}

    def change_set(self, change: int) -> Changes:
        """Set navigation; moves outside 1..7 are ignored."""
        target = self.state.active_set + change
        if target < 1 or target > MAX_SETS:
            return {}
        return self.go_to_set(target)

    def reset(self) -> Changes:
        """Zero all scores, return to set 1 and restart the history window."""
        changes: Changes = {}
        for (n, team) in list(self.state.scores):
            self.state.scores[(n, team)] = 0
            changes[score_path(n, team)] = 0
        for team in TEAMS:
            self.state.squad_scores[team] = 0
            changes[squad_score_path(team)] = 0
        self.state.active_set = 1
        changes["active_set"] = 1
        self.log.append(ResetEvent())
        return changes

    def configure_serve(self, set_number: Any, server: str, receiver: str) -> Changes:
        """Choose the opening server/receiver pair of a set.

        The pair can change only while the set has no points since the last
        reset.
        """
        n = validate_set_number(set_number)
        try:
            validate_serve_configuration(server, receiver)
        except ValidationError:
            raise InvalidServeConfiguration(server, receiver)

        config = self.serve_configuration(n)
        unchanged = (config.starting_server, config.starting_receiver) == (server, receiver)
        if not unchanged and len(self.score_history(n)) > 0:
            raise ServeConfigurationLocked(n)

        config.starting_server = server
        config.starting_receiver = receiver
        return {
            f"score.set_{n}.starting_server": server,
            f"score.set_{n}.starting_receiver": receiver,
        }

    def update_game_settings(self, update: GameSettingsIn) -> Changes:
        merged = self.settings.model_copy(update=update.model_dump(exclude_none=True))
        self.state.game_settings = validate_game_settings(merged)
        return {
            f"game_settings.{key}": value
            for key, value in update.model_dump(exclude_none=True).items()
        }

    def set_player_name(self, player: str, name: str) -> Changes:
        if player not in PLAYERS:
            raise ValidationError(f"Unknown player '{player}'.")
        self.state.player_names[player] = name
        team, slot = PLAYER_SLOTS[player]
        return {f"teams_info.team_{team}.player_{slot}": name}
