# backend/roundnet/routers/scoreboard.py
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from ..config import MAX_SETS
from ..exceptions import http_problem
from ..schemas import (
    GameSettingsIn,
    ScoreboardOut,
    ScoreChangeIn,
    ScoreEditIn,
    ServeConfigIn,
    SetChangeIn,
    SnapshotImportIn,
    StatisticsOut,
    StatsScope,
)
from ..services import (
    Scoreboard,
    ValidationError,
    apply_snapshot,
    best_players,
    build_write_batch,
    scoreboard_from_snapshot,
)
from ..services.scoreboard import Changes
from ..store import MatchStore, get_store
from .streams import broadcast

router = APIRouter(prefix="/channels", tags=["scoreboard"])
logger = logging.getLogger(__name__)


def _invalid(exc: ValidationError):
    return http_problem(
        status_code=422,
        detail=exc.detail,
        code="scoreboard_invalid_input",
    )


async def _load(channel: int, store: MatchStore) -> Scoreboard:
    return scoreboard_from_snapshot(await store.read(channel))


async def _commit(
    channel: int, scoreboard: Scoreboard, changes: Changes, store: MatchStore
) -> ScoreboardOut:
    """Persist one logical edit as a single batch and notify displays."""
    await store.write(build_write_batch(channel, changes, scoreboard.log))
    view = scoreboard.view()
    await broadcast(channel, view.model_dump())
    return view


# GET /api/v0/channels/3
@router.get("/{channel}", response_model=ScoreboardOut)
async def get_scoreboard(channel: int, store: MatchStore = Depends(get_store)):
    scoreboard = await _load(channel, store)
    return scoreboard.view()


@router.get("/{channel}/history")
async def get_history(
    channel: int,
    set_number: Optional[int] = Query(None, alias="set", ge=1, le=MAX_SETS),
    store: MatchStore = Depends(get_store),
) -> Dict[str, Any]:
    """Score history of a set (active set by default) with per-team progression."""
    scoreboard = await _load(channel, store)
    n = scoreboard.active_set if set_number is None else set_number
    return {
        "set": n,
        "events": [e.model_dump() for e in scoreboard.score_history(n)],
        "progression": {
            team: [m.model_dump() for m in scoreboard.score_progression(n, team)]
            for team in ("a", "b")
        },
    }


@router.get("/{channel}/statistics")
async def get_statistics(
    channel: int,
    scope: StatsScope = "match",
    set_number: Optional[int] = Query(None, alias="set", ge=1, le=MAX_SETS),
    store: MatchStore = Depends(get_store),
) -> Dict[str, Any]:
    scoreboard = await _load(channel, store)
    try:
        stats = scoreboard.calculate_statistics(scope, set_number)
    except ValidationError as exc:
        raise _invalid(exc)
    return {"statistics": stats.model_dump(), "best": best_players(stats)}


@router.get("/{channel}/set-statistics", response_model=Dict[int, StatisticsOut])
async def get_set_statistics(
    channel: int,
    stats_type: str = "match",
    store: MatchStore = Depends(get_store),
):
    scoreboard = await _load(channel, store)
    try:
        return scoreboard.set_statistics(stats_type)
    except ValidationError as exc:
        raise _invalid(exc)


@router.post("/{channel}/scores", response_model=ScoreboardOut)
async def edit_score(
    channel: int, body: ScoreEditIn, store: MatchStore = Depends(get_store)
):
    scoreboard = await _load(channel, store)
    try:
        changes = scoreboard.edit_score(body.team, body.set, body.score, squad=body.squad)
    except ValidationError as exc:
        raise _invalid(exc)
    return await _commit(channel, scoreboard, changes, store)


@router.post("/{channel}/scores/change", response_model=ScoreboardOut)
async def change_score(
    channel: int, body: ScoreChangeIn, store: MatchStore = Depends(get_store)
):
    scoreboard = await _load(channel, store)
    changes = scoreboard.change_score(body.team, body.change)
    return await _commit(channel, scoreboard, changes, store)


@router.post("/{channel}/sets", response_model=ScoreboardOut)
async def change_set(
    channel: int, body: SetChangeIn, store: MatchStore = Depends(get_store)
):
    scoreboard = await _load(channel, store)
    changes = scoreboard.change_set(body.change)
    return await _commit(channel, scoreboard, changes, store)


@router.post("/{channel}/reset", response_model=ScoreboardOut)
async def reset(channel: int, store: MatchStore = Depends(get_store)):
    scoreboard = await _load(channel, store)
    logger.info("Resetting channel %s", channel)
    changes = scoreboard.reset()
    return await _commit(channel, scoreboard, changes, store)


@router.put("/{channel}/serve/{set_number}", response_model=ScoreboardOut)
async def configure_serve(
    channel: int,
    set_number: int,
    body: ServeConfigIn,
    store: MatchStore = Depends(get_store),
):
    scoreboard = await _load(channel, store)
    try:
        changes = scoreboard.configure_serve(
            set_number, body.starting_server, body.starting_receiver
        )
    except ValidationError as exc:
        raise _invalid(exc)
    return await _commit(channel, scoreboard, changes, store)


@router.put("/{channel}/settings", response_model=ScoreboardOut)
async def update_settings(
    channel: int, body: GameSettingsIn, store: MatchStore = Depends(get_store)
):
    scoreboard = await _load(channel, store)
    try:
        changes = scoreboard.update_game_settings(body)
    except ValidationError as exc:
        raise _invalid(exc)
    return await _commit(channel, scoreboard, changes, store)


@router.post("/{channel}/import", response_model=ScoreboardOut)
async def import_snapshot(
    channel: int, body: SnapshotImportIn, store: MatchStore = Depends(get_store)
):
    scoreboard = await _load(channel, store)
    changes = apply_snapshot(scoreboard, body.data, body.locked)
    logger.info("Imported %d fields into channel %s", len(changes), channel)
    return await _commit(channel, scoreboard, changes, store)
