from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field, TypeAdapter, field_validator, ConfigDict

from .config import MAX_SETS

Team = Literal["a", "b"]
PlayerId = Literal["a", "b", "c", "d"]
StatsScope = Literal["match", "set"]


def _normalize_team(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


# -----------------------------------------------------------------------------
# Event log entries
# -----------------------------------------------------------------------------
class ScoreSetEvent(BaseModel):
    """A team's score in one set was set to ``score``."""

    model_config = ConfigDict(frozen=True)

    type: Literal["score"] = "score"
    team: Team
    set: int = Field(..., ge=1, le=MAX_SETS)
    score: int = Field(..., ge=0)

    @field_validator("team", mode="before")
    @classmethod
    def _validate_team(cls, value: Any) -> Any:
        return _normalize_team(value)


class SquadScoreEvent(BaseModel):
    """Auxiliary squad score, not tied to a set."""

    model_config = ConfigDict(frozen=True)

    type: Literal["squad_score"] = "squad_score"
    team: Team
    score: int = Field(..., ge=0)
    set: Literal["squad"] = "squad"

    @field_validator("team", mode="before")
    @classmethod
    def _validate_team(cls, value: Any) -> Any:
        return _normalize_team(value)


class SetChangeEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["set"] = "set"
    set: int = Field(..., ge=1, le=MAX_SETS)


class ResetEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["reset"] = "reset"


Event = Annotated[
    Union[ScoreSetEvent, SquadScoreEvent, SetChangeEvent, ResetEvent],
    Field(discriminator="type"),
]
EVENT_ADAPTER: TypeAdapter[Event] = TypeAdapter(Event)


# -----------------------------------------------------------------------------
# Settings
# -----------------------------------------------------------------------------
class GameSettings(BaseModel):
    win_points: int = 15
    min_win_margin: int = 2
    hardcap: int = 21
    set_mode: str = "3"


class GameSettingsIn(BaseModel):
    win_points: Optional[int] = None
    min_win_margin: Optional[int] = None
    hardcap: Optional[int] = None
    set_mode: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


# -----------------------------------------------------------------------------
# Mutation payloads
# -----------------------------------------------------------------------------
class ScoreEditIn(BaseModel):
    team: Team
    set: Optional[int] = Field(default=None, ge=1, le=MAX_SETS)
    score: int
    squad: bool = False

    model_config = ConfigDict(extra="forbid")

    @field_validator("team", mode="before")
    @classmethod
    def _validate_team(cls, value: Any) -> Any:
        return _normalize_team(value)


class ScoreChangeIn(BaseModel):
    team: Team
    change: int

    @field_validator("team", mode="before")
    @classmethod
    def _validate_team(cls, value: Any) -> Any:
        return _normalize_team(value)


class SetChangeIn(BaseModel):
    change: int


class ServeConfigIn(BaseModel):
    starting_server: PlayerId
    starting_receiver: PlayerId


class SnapshotImportIn(BaseModel):
    data: Dict[str, Any]
    locked: List[str] = Field(default_factory=list)


# -----------------------------------------------------------------------------
# Derived views
# -----------------------------------------------------------------------------
class ServeInfoOut(BaseModel):
    team: Team
    serveNumber: Literal[1, 2]
    isOvertime: bool
    singleServe: bool = False


class CurrentPlayersOut(BaseModel):
    server: Optional[PlayerId] = None
    receiver: Optional[PlayerId] = None
    serverName: str = "-"
    receiverName: str = "-"


class TeamStatsOut(BaseModel):
    breaks: int = 0
    breakOpportunities: int = 0
    breakPercentage: int = 0


class PlayerStatsOut(BaseModel):
    sideouts: int = 0
    sideoutOpportunities: int = 0
    sideoutPercentage: int = 0
    breaks: int = 0
    breakOpportunities: int = 0
    breakPercentage: int = 0


def _empty_players() -> Dict[str, PlayerStatsOut]:
    return {player: PlayerStatsOut() for player in ("a", "b", "c", "d")}


class StatisticsOut(BaseModel):
    teamA: TeamStatsOut = Field(default_factory=TeamStatsOut)
    teamB: TeamStatsOut = Field(default_factory=TeamStatsOut)
    players: Dict[str, PlayerStatsOut] = Field(default_factory=_empty_players)


class PointMarkerOut(BaseModel):
    """One entry of a team's score progression within a set."""

    score: int
    scored: bool
    streak: int
    isBreak: bool = False


class SetScoreOut(BaseModel):
    set: int
    a: int
    b: int
    winner: Optional[Team] = None


class ScoreboardOut(BaseModel):
    activeSet: int
    sets: List[SetScoreOut]
    setsWon: Dict[str, int]
    matchWinner: Optional[Team] = None
    isOvertime: bool
    serveInfo: Optional[ServeInfoOut] = None
    currentPlayers: CurrentPlayersOut
    gameSettings: GameSettings
